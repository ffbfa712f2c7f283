"""meshcrawl public API.

Array interop with jax lives in :mod:`meshcrawl.interop`.
"""

from .errors import (
    MeshAllocationError,
    MeshError,
    MeshExhaustedError,
    MeshIndexError,
    MeshParseError,
    MeshShapeError,
    MeshUnsupportedError,
)
from .scalars import ScalarKind
from .crawler import ArrayCrawler, MeshCrawler, NestedCrawler
from .mesh import Mesh, MeshView, ObjectMesh
from .number import (
    ByteMesh,
    DoubleMesh,
    FloatingMesh,
    FloatMesh,
    IntegerMesh,
    IntMesh,
    LongMesh,
    NumberMesh,
    ShortMesh,
)
from .boolean import BooleanMesh
from .vectors import Additive, Complex, Linear, Vector2D
from .linear import AdditiveMesh, ComplexMesh, LinearMesh, Vector2DMesh
from .literal import LiteralType, format_literal, infer_literal_type, parse_literal, tokenize

__all__ = [
    "Additive",
    "AdditiveMesh",
    "ArrayCrawler",
    "BooleanMesh",
    "ByteMesh",
    "Complex",
    "ComplexMesh",
    "DoubleMesh",
    "FloatMesh",
    "FloatingMesh",
    "IntMesh",
    "IntegerMesh",
    "Linear",
    "LinearMesh",
    "LiteralType",
    "LongMesh",
    "Mesh",
    "MeshAllocationError",
    "MeshCrawler",
    "MeshError",
    "MeshExhaustedError",
    "MeshIndexError",
    "MeshParseError",
    "MeshShapeError",
    "MeshUnsupportedError",
    "MeshView",
    "NestedCrawler",
    "NumberMesh",
    "ObjectMesh",
    "ScalarKind",
    "ShortMesh",
    "Vector2D",
    "Vector2DMesh",
    "format_literal",
    "infer_literal_type",
    "parse_literal",
    "tokenize",
]
