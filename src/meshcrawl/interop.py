"""Conversion between meshes and numpy / jax arrays."""

from __future__ import annotations

import jax.numpy as jnp
import numpy as np

from .errors import MeshUnsupportedError
from .mesh import Mesh
from .scalars import ScalarKind


def as_numpy(mesh: Mesh) -> np.ndarray:
    """Fresh, stacked ``ndarray`` copy of the mesh's cells."""
    return np.array(mesh.to_numpy(), copy=True)


def as_jax_array(mesh: Mesh):
    if not (mesh.kind.is_numeric or mesh.kind is ScalarKind.BOOLEAN):
        raise MeshUnsupportedError(f"Cannot convert a {mesh.kind.value} mesh to a jax array")
    return jnp.asarray(mesh.to_numpy())


def mesh_from_jax(array) -> Mesh:
    """Copy a jax array into a new mesh of the matching kind.

    jax arrays are immutable, so the mesh never aliases ``array``.
    """
    return Mesh.wrap(np.array(array))
