"""Nested-array storage: rank-1 storage is a linear ndarray, higher ranks are lists of lower-rank storage."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .errors import MeshAllocationError, MeshShapeError, MeshUnsupportedError
from .scalars import ScalarKind


def is_storage(data: object) -> bool:
    """True if ``data`` is already laid out as nested storage."""
    while isinstance(data, list):
        if not data:
            return False
        data = data[0]
    return isinstance(data, np.ndarray) and data.ndim == 1


def allocate(kind: ScalarKind, shape: Sequence[int], element_type: type | None = None):
    dims = tuple(shape)
    if not dims:
        raise MeshAllocationError("Mesh needs at least one dimension")
    if any(int(n) < 0 for n in dims):
        raise MeshAllocationError(f"Negative extent in shape {dims}")
    return _allocate(kind, tuple(int(n) for n in dims), element_type)


def _allocate(kind: ScalarKind, dims: tuple[int, ...], element_type: type | None):
    if len(dims) > 1:
        return [_allocate(kind, dims[1:], element_type) for _ in range(dims[0])]
    if kind is not ScalarKind.OBJECT:
        return np.zeros(dims[0], dtype=kind.dtype)
    leaf = np.empty(dims[0], dtype=object)
    if element_type is None or element_type is object:
        return leaf
    for i in range(dims[0]):
        try:
            leaf[i] = element_type()
        except Exception as exc:
            raise MeshAllocationError(f"Cannot create elements of type: {element_type.__name__}") from exc
    return leaf


def shape_of(data: object) -> tuple[int, ...]:
    """Shape of nested storage; raises MeshShapeError unless it is rectangular."""
    shape, _ = _inspect(data, where="data")
    return shape


def kind_of(data: object) -> ScalarKind:
    _, leaf = _inspect(data, where="data")
    return ScalarKind.for_array(leaf)


def _inspect(data: object, *, where: str) -> tuple[tuple[int, ...], np.ndarray]:
    if isinstance(data, np.ndarray):
        if data.ndim != 1:
            raise MeshShapeError(f"{where} is a {data.ndim}-d array; storage leaves must be linear")
        return (data.shape[0],), data
    if not isinstance(data, list):
        raise MeshShapeError(f"{where} has unsupported storage type {type(data).__name__}")
    if not data:
        raise MeshShapeError(f"{where} is an empty list; its element type cannot be derived")

    first_shape, first_leaf = _inspect(data[0], where=f"{where}[0]")
    for idx in range(1, len(data)):
        shape, leaf = _inspect(data[idx], where=f"{where}[{idx}]")
        if shape != first_shape:
            raise MeshShapeError(f"{where}[{idx}] has shape {shape}, expected {first_shape}")
        if leaf.dtype != first_leaf.dtype:
            raise MeshShapeError(f"{where}[{idx}] has element type {leaf.dtype}, expected {first_leaf.dtype}")
    return (len(data),) + first_shape, first_leaf


def leaves(data: object):
    """Yield the linear leaf arrays in row-major order."""
    if isinstance(data, np.ndarray):
        yield data
        return
    for item in data:
        yield from leaves(item)


def object_type_of(data: object) -> type:
    """Class of the first non-empty cell of object storage."""
    for leaf in leaves(data):
        for cell in leaf:
            if cell is not None:
                return type(cell)
    return object


def from_ndarray(array: np.ndarray):
    """Nested storage whose leaves are row views of ``array``."""
    if array.ndim == 0:
        raise MeshShapeError("Cannot wrap a 0-d array as a mesh")
    if array.ndim == 1:
        return array
    return [from_ndarray(array[i]) for i in range(array.shape[0])]


def from_sequence(values: object):
    """Convert nested Python sequences of scalars into fresh storage."""
    try:
        array = np.asarray(values)
    except ValueError as exc:
        raise MeshShapeError(f"Data is not rectangular: {exc}") from exc
    if array.dtype.kind == "U":
        array = array.astype(object)
    elif array.dtype.kind not in "biufO":
        raise MeshUnsupportedError(f"Unsupported element type {array.dtype}")
    if array.dtype.kind == "O" and any(isinstance(cell, (list, tuple)) for cell in array.flat):
        raise MeshShapeError("Data is not rectangular")
    if not array.flags.writeable:
        array = array.copy()
    return from_ndarray(array)


def to_ndarray(data: object) -> np.ndarray:
    shape, leaf = _inspect(data, where="data")
    out = np.empty(shape, dtype=leaf.dtype)
    flat = out.reshape(-1)
    offset = 0
    for row in leaves(data):
        flat[offset : offset + row.shape[0]] = row
        offset += row.shape[0]
    return out


def deep_copy(data: object):
    if isinstance(data, np.ndarray):
        if data.dtype != object:
            return data.copy()
        out = np.empty(data.shape[0], dtype=object)
        for i, cell in enumerate(data):
            out[i] = cell.copy() if hasattr(cell, "copy") else cell
        return out
    return [deep_copy(item) for item in data]


def sub_storage(data: object, index: Sequence[int]):
    for i in index:
        data = data[i]
    return data
