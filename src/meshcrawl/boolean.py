"""Boolean meshes."""

from __future__ import annotations

from .mesh import Mesh
from .scalars import ScalarKind


class BooleanMesh(Mesh):
    storage_kind = ScalarKind.BOOLEAN

    def _coerce(self, value):
        return bool(value)

    def and_(self, other: Mesh) -> None:
        self._require_conforming("AND", other)
        mine = self.crawler()
        theirs = other.crawler()
        while mine.has_next():
            value = bool(mine.advance())
            operand = bool(theirs.advance())
            mine.set_current(value and operand)

    def or_(self, other: Mesh) -> None:
        self._require_conforming("OR", other)
        mine = self.crawler()
        theirs = other.crawler()
        while mine.has_next():
            value = bool(mine.advance())
            operand = bool(theirs.advance())
            mine.set_current(value or operand)

    def not_(self) -> None:
        crawler = self.crawler()
        while crawler.has_next():
            crawler.set_current(not crawler.advance())

    def contains_true(self) -> bool:
        return any(bool(value) for value in self)

    def contains_false(self) -> bool:
        return not all(bool(value) for value in self)
