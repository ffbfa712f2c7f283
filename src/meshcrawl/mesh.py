"""N-dimensional typed mesh container over nested storage."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import ClassVar

import numpy as np

from . import storage
from .crawler import MeshCrawler
from .errors import MeshIndexError, MeshParseError, MeshShapeError, MeshUnsupportedError, non_conforming
from .literal import format_literal, infer_literal_type, parse_literal
from .scalars import ScalarKind


def _as_index(index: int | Sequence[int]) -> tuple[int, ...]:
    if isinstance(index, (int, np.integer)):
        return (int(index),)
    return tuple(int(i) for i in index)


def _as_storage(data: object) -> tuple[object, ScalarKind, tuple[int, ...], type]:
    """Nested storage for ``data`` plus its kind, shape and element type."""
    if isinstance(data, Mesh):
        raise TypeError("Data is already a mesh; use copy() or sub_mesh_at()")
    if isinstance(data, np.ndarray):
        if data.dtype.kind == "U":
            data = data.astype(object)
        nested = storage.from_ndarray(data)
    elif not isinstance(data, (list, tuple)) and hasattr(data, "__array__") and hasattr(data, "shape"):
        nested = storage.from_ndarray(np.array(data))
    elif storage.is_storage(data):
        nested = data
    else:
        nested = storage.from_sequence(data)

    shape = storage.shape_of(nested)
    kind = storage.kind_of(nested)
    etype = storage.object_type_of(nested) if kind is ScalarKind.OBJECT else kind.element_type
    return nested, kind, shape, etype


class MeshView:
    """Marks a mesh whose cells alias those of its ``base`` mesh.

    Writes through a view are visible in the base mesh and vice versa.
    ``copy()`` on a view returns an owning mesh of the base's type.
    """

    is_view: ClassVar[bool] = True


class Mesh:
    """Rectangular N-dimensional array of one element type.

    Storage is nested: a rank-1 mesh holds a linear ``numpy`` array, a rank-R
    mesh a list of rank-(R-1) storages. Every traversal goes through a
    :class:`~meshcrawl.crawler.MeshCrawler`.

    Subclasses declare ``storage_kind`` (a fixed leaf kind) and/or
    ``element_base`` (a class or protocol object elements must satisfy) and are
    registered, so that :meth:`create` and :meth:`wrap` return the most
    specific mesh type for the data. Each registered class gets a ``View``
    companion type used for aliasing sub-meshes.
    """

    storage_kind: ClassVar[ScalarKind | None] = None
    element_base: ClassVar[type | None] = None
    is_view: ClassVar[bool] = False

    View: ClassVar[type]
    _owner: ClassVar[type]
    _registry: ClassVar[list[type]] = []

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if issubclass(cls, MeshView):
            return
        cls._owner = cls
        cls.View = type(f"{cls.__name__}View", (MeshView, cls), {"__module__": cls.__module__})
        if "storage_kind" in cls.__dict__ or "element_base" in cls.__dict__:
            Mesh._registry.append(cls)

    def __init__(
        self,
        data: object,
        kind: ScalarKind,
        shape: Sequence[int],
        element_type: type | None = None,
        base: "Mesh | None" = None,
    ) -> None:
        self._data = data
        self._kind = kind
        self._shape = tuple(int(n) for n in shape)
        self._element_type = element_type if element_type is not None else kind.element_type
        self._base = base

    # -- construction ------------------------------------------------------

    @classmethod
    def accepts(cls, kind: ScalarKind, element_type: type) -> bool:
        if cls.storage_kind is not None and kind is not cls.storage_kind:
            return False
        if cls.element_base is not None:
            return isinstance(element_type, type) and issubclass(element_type, cls.element_base)
        return True

    @classmethod
    def _class_for(cls, kind: ScalarKind, element_type: type) -> type:
        for candidate in reversed(Mesh._registry):
            if issubclass(candidate, cls) and candidate.accepts(kind, element_type):
                return candidate
        if cls.accepts(kind, element_type):
            return cls._owner
        raise MeshUnsupportedError(f"{cls.__name__} cannot hold elements of type {getattr(element_type, '__name__', element_type)}")

    @classmethod
    def _fixed_element_type(cls) -> object | None:
        if cls.element_base is not None:
            return cls.element_base
        if cls.storage_kind is not None and cls.storage_kind is not ScalarKind.OBJECT:
            return cls.storage_kind
        return None

    @classmethod
    def create(cls, element_type: object, shape: Sequence[int]) -> "Mesh":
        """Allocate a zero/default-initialized mesh of the given shape."""
        kind = ScalarKind.resolve(element_type)
        etype = element_type if kind is ScalarKind.OBJECT and isinstance(element_type, type) else kind.element_type
        mesh_cls = cls._class_for(kind, etype)
        data = storage.allocate(kind, shape, etype if kind is ScalarKind.OBJECT else None)
        return mesh_cls(data, kind, shape, etype)

    @classmethod
    def zeros(cls, shape: Sequence[int]) -> "Mesh":
        etype = cls._fixed_element_type()
        if etype is None:
            raise MeshUnsupportedError(f"{cls.__name__} has no fixed element type; use create()")
        return cls.create(etype, shape)

    @classmethod
    def wrap(cls, data: object) -> "Mesh":
        """Wrap existing data; nested storage and ndarrays are aliased, not copied.

        An empty outer list carries no leaf array to take the element type
        from, so a mesh whose first extent is zero (shape ``(0, n)``) comes
        back from ``wrap(mesh.data)`` as an empty rank-1 mesh of shape
        ``(0,)``. Use :meth:`create` to rebuild such meshes.
        """
        nested, kind, shape, etype = _as_storage(data)
        mesh_cls = cls._class_for(kind, etype)
        return mesh_cls(nested, kind, shape, etype)

    @classmethod
    def parse(cls, text: str) -> "Mesh":
        """Parse a brace literal such as ``{{1,2},{3,4}}``.

        Called on ``Mesh`` (or any class without a fixed element type) the
        element type is the lowest common type every leaf parses as.
        """
        items, shape = parse_literal(text)
        element_type = cls._fixed_element_type()
        if element_type is None:
            element_type = infer_literal_type(items).element_type
        mesh = cls.create(element_type, shape)
        crawler = mesh.crawler()
        for item in items:
            try:
                value = mesh.parse_element(item.text)
            except (ValueError, TypeError, ArithmeticError) as exc:
                raise MeshParseError(
                    f"Cannot parse element {item.text!r}",
                    item.start,
                    item.end,
                    expected=(getattr(mesh.element_type, "__name__", str(mesh.element_type)),),
                    found=item.text,
                ) from exc
            crawler.set_next(value)
        return mesh

    def parse_element(self, text: str):
        if self._kind is not ScalarKind.OBJECT:
            return self._kind.parse(text)
        parser = getattr(self._element_type, "parse", None)
        if callable(parser):
            return parser(text)
        if self._element_type in (str, object):
            return text
        return self._element_type(text)

    # -- shape -------------------------------------------------------------

    @property
    def data(self) -> object:
        return self._data

    @property
    def kind(self) -> ScalarKind:
        return self._kind

    @property
    def element_type(self) -> type:
        return self._element_type

    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def rank(self) -> int:
        return len(self._shape)

    @property
    def size(self) -> int:
        return math.prod(self._shape)

    @property
    def base(self) -> "Mesh | None":
        return self._base

    def extent(self, dim: int) -> int:
        return self._shape[dim]

    def _require_owner(self, what: str) -> None:
        if self.is_view:
            raise MeshUnsupportedError(f"Cannot {what} a view; it shares cells with its base mesh")

    def set_size(self, shape: Sequence[int]) -> None:
        """Replace the storage with fresh default cells of ``shape``.

        The scalar kind and element type are kept. Old contents are dropped.
        """
        self._require_owner("resize")
        etype = self._element_type if self._kind is ScalarKind.OBJECT else None
        self._data = storage.allocate(self._kind, shape, etype)
        self._shape = tuple(int(n) for n in shape)

    def set_data(self, data: object) -> None:
        """Re-point this mesh at ``data``, converted and aliased like :meth:`wrap`."""
        self._require_owner("re-point")
        nested, kind, shape, etype = _as_storage(data)
        if not self._owner.accepts(kind, etype):
            raise MeshUnsupportedError(
                f"{type(self).__name__} cannot hold elements of type {getattr(etype, '__name__', etype)}"
            )
        self._data = nested
        self._kind = kind
        self._shape = shape
        self._element_type = etype

    def conforms_to(self, other: "Mesh") -> bool:
        return self._shape == other.shape

    def _require_conforming(self, what: str, *others: "Mesh") -> None:
        for other in others:
            if not other.conforms_to(self):
                raise non_conforming(what, self._shape, other.shape)

    # -- traversal ---------------------------------------------------------

    def crawler(self, from_: Sequence[int] | None = None, to: Sequence[int] | None = None) -> MeshCrawler:
        lo = (0,) * self.rank if from_ is None else _as_index(from_)
        hi = self._shape if to is None else _as_index(to)
        if len(lo) != self.rank or len(hi) != self.rank:
            raise MeshIndexError(f"Crawler bounds {lo}..{hi} do not match mesh rank {self.rank}")
        return MeshCrawler.create_for(self._data, lo, hi)

    def __iter__(self) -> MeshCrawler:
        return self.crawler()

    # -- indexed access ----------------------------------------------------

    def _checked(self, index: int | Sequence[int]) -> tuple[int, ...]:
        idx = _as_index(index)
        if len(idx) > self.rank:
            raise MeshIndexError(f"Index {idx} exceeds mesh rank {self.rank}")
        for k, i in enumerate(idx):
            if not 0 <= i < self._shape[k]:
                raise MeshIndexError(f"Index {i} outside of range [0, {self._shape[k]}) in dimension {k}")
        return idx

    def element_at(self, index: int | Sequence[int]):
        idx = self._checked(index)
        if len(idx) != self.rank:
            raise MeshIndexError(f"Index {idx} does not select a single element of a rank-{self.rank} mesh")
        leaf = storage.sub_storage(self._data, idx[:-1])
        return self._kind.from_cell(leaf[idx[-1]])

    def set_element_at(self, index: int | Sequence[int], value) -> None:
        idx = self._checked(index)
        if len(idx) != self.rank:
            raise MeshIndexError(f"Index {idx} does not select a single element of a rank-{self.rank} mesh")
        leaf = storage.sub_storage(self._data, idx[:-1])
        leaf[idx[-1]] = self._kind.to_cell(self._coerce(value))

    def sub_mesh_at(self, index: int | Sequence[int]) -> "Mesh":
        """A view of the sub-array at ``index``, sharing cells with this mesh."""
        idx = self._checked(index)
        if len(idx) >= self.rank:
            raise MeshIndexError(f"Index {idx} selects an element, not a sub-mesh")
        return self._owner.View(
            storage.sub_storage(self._data, idx),
            self._kind,
            self._shape[len(idx) :],
            self._element_type,
            base=self,
        )

    def __getitem__(self, index: int | Sequence[int]):
        if len(_as_index(index)) == self.rank:
            return self.element_at(index)
        return self.sub_mesh_at(index)

    def __setitem__(self, index: int | Sequence[int], value) -> None:
        self.set_element_at(index, value)

    # -- copying -----------------------------------------------------------

    def _coerce(self, value):
        return value

    def _copy_element(self, value):
        return value

    def copy(self) -> "Mesh":
        """Deep copy with fresh cells; a copied view owns its storage."""
        return self._owner(storage.deep_copy(self._data), self._kind, self._shape, self._element_type)

    def copy_from(self, other: "Mesh") -> None:
        self._require_conforming("copy", other)
        dst = self.crawler()
        src = other.crawler()
        while dst.has_next():
            dst.set_next(self._copy_element(self._coerce(src.advance())))

    def copy_to(self, destination: "Mesh", offset: Sequence[int]) -> None:
        """Paste this mesh into ``destination`` at ``offset``, clipped to the overlap."""
        if destination is self:
            raise ValueError("Cannot copy mesh onto itself")
        dim = self.rank
        if destination.rank != dim:
            raise MeshShapeError(f"Cannot copy rank-{dim} mesh into rank-{destination.rank} mesh")
        shift = _as_index(offset)
        if len(shift) != dim:
            raise MeshShapeError(f"Offset {shift} does not match mesh rank {dim}")

        dst_from = [max(0, shift[k]) for k in range(dim)]
        dst_to = [min(destination.extent(k), shift[k] + self._shape[k]) for k in range(dim)]
        if any(lo >= hi for lo, hi in zip(dst_from, dst_to)):
            return
        src_from = [dst_from[k] - shift[k] for k in range(dim)]
        src_to = [dst_to[k] - shift[k] for k in range(dim)]

        dst = destination.crawler(dst_from, dst_to)
        src = self.crawler(src_from, src_to)
        while dst.has_next():
            dst.set_next(destination._copy_element(destination._coerce(src.advance())))

    def _patch_crawler(self, center: Sequence[float], patch_size: Sequence[float]) -> MeshCrawler | None:
        """Crawler over the cells a patch at ``center`` overlaps, or None if it misses the mesh."""
        if len(center) != self.rank or len(patch_size) != self.rank:
            raise MeshShapeError(f"Patch of rank {len(center)}/{len(patch_size)} on a rank-{self.rank} mesh")
        lo: list[int] = []
        hi: list[int] = []
        for k in range(self.rank):
            if not (math.isfinite(center[k]) and math.isfinite(center[k] + patch_size[k])):
                return None
            start = max(0, math.floor(center[k]))
            if start > self._shape[k]:
                return None
            stop = min(self._shape[k], math.ceil(center[k] + patch_size[k]))
            if stop <= start:
                return None
            lo.append(start)
            hi.append(stop)
        return self.crawler(lo, hi)

    def fill(self, value, from_: Sequence[int] | None = None, to: Sequence[int] | None = None) -> None:
        value = self._coerce(value)
        crawler = self.crawler(from_, to)
        while crawler.has_next():
            crawler.set_next(self._copy_element(value))

    # -- conversion --------------------------------------------------------

    def tolist(self) -> list:
        return self._tolist(self._data, 0)

    def _tolist(self, data: object, depth: int) -> list:
        if depth < self.rank - 1:
            return [self._tolist(item, depth + 1) for item in data]
        if self._kind is ScalarKind.CHAR:
            return [chr(code) for code in data.tolist()]
        if self._kind is ScalarKind.OBJECT:
            return list(data)
        return data.tolist()

    def to_numpy(self) -> np.ndarray:
        if self.size == 0:
            return np.zeros(self._shape, dtype=self._kind.dtype)
        return storage.to_ndarray(self._data)

    def __str__(self) -> str:
        return format_literal(self._elements(self._data, 0))

    def _elements(self, data: object, depth: int) -> list:
        if depth < self.rank - 1:
            return [self._elements(item, depth + 1) for item in data]
        return [self._kind.from_cell(cell) for cell in data]

    def __repr__(self) -> str:
        etype = getattr(self._element_type, "__name__", str(self._element_type))
        return f"{type(self).__name__}(shape={self._shape}, element_type={etype})"


class ObjectMesh(Mesh):
    """Mesh of arbitrary object references."""

    storage_kind = ScalarKind.OBJECT

    def _copy_element(self, value):
        copier = getattr(value, "copy", None)
        return copier() if callable(copier) else value


Mesh.View = type("PlainMeshView", (MeshView, Mesh), {"__module__": __name__})
Mesh._owner = Mesh
