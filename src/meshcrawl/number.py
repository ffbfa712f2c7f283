"""Numeric meshes: element-wise arithmetic over the crawler protocol."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from numbers import Number

from .mesh import Mesh
from .scalars import ScalarKind


class NumberMesh(Mesh):
    """Mesh of one primitive numeric kind.

    Every operation is a crawl over ``self`` (and its operands, in lock-step)
    using the kind's ``cast``/``sum``/``difference`` primitives. Operands may
    be any conforming mesh of numbers; their values are promoted and cast
    back to this mesh's kind. Shapes are checked before any cell changes.
    """

    @classmethod
    def accepts(cls, kind: ScalarKind, element_type: type) -> bool:
        return kind.is_numeric and super().accepts(kind, element_type)

    def _coerce(self, value):
        return self._kind.cast(value)

    def zero(self) -> None:
        self.fill(self._kind.zero)

    def is_null(self) -> bool:
        ops = self._kind
        return all(ops.value_of(value) == 0.0 for value in self)

    def scale(self, factor: float) -> None:
        ops = self._kind
        crawler = self.crawler()
        while crawler.has_next():
            value = crawler.advance()
            crawler.set_current(ops.cast(ops.value_of(value) * factor))

    def add(self, other: Mesh | Number) -> None:
        """Add a conforming mesh element-wise, or a scalar to every cell."""
        ops = self._kind
        if not isinstance(other, Mesh):
            offset = ops.cast(other)
            crawler = self.crawler()
            while crawler.has_next():
                crawler.set_current(ops.sum(crawler.advance(), offset))
            return
        self._require_conforming("add", other)
        mine = self.crawler()
        theirs = other.crawler()
        while mine.has_next():
            mine.set_current(ops.sum(mine.advance(), theirs.advance()))

    def subtract(self, other: Mesh | Number) -> None:
        ops = self._kind
        if not isinstance(other, Mesh):
            offset = ops.cast(other)
            crawler = self.crawler()
            while crawler.has_next():
                crawler.set_current(ops.difference(crawler.advance(), offset))
            return
        self._require_conforming("subtract", other)
        mine = self.crawler()
        theirs = other.crawler()
        while mine.has_next():
            mine.set_current(ops.difference(mine.advance(), theirs.advance()))

    def add_scaled(self, other: Mesh, factor: float) -> None:
        """``self += other * factor``.

        The operand is promoted to double before scaling and the sum is cast
        back to this mesh's kind, so integer meshes truncate after the
        double-precision product rather than scaling in their own type.
        """
        ops = self._kind
        self._require_conforming("add", other)
        mine = self.crawler()
        theirs = other.crawler()
        while mine.has_next():
            mine.set_current(ops.sum(mine.advance(), ops.value_of(theirs.advance()) * factor))

    def set_sum(self, a: Mesh, b: Mesh) -> None:
        ops = self._kind
        self._require_conforming("sum", a, b)
        mine = self.crawler()
        first = a.crawler()
        second = b.crawler()
        while mine.has_next():
            mine.set_next(ops.sum(first.advance(), second.advance()))

    def set_difference(self, a: Mesh, b: Mesh) -> None:
        ops = self._kind
        self._require_conforming("subtract", a, b)
        mine = self.crawler()
        first = a.crawler()
        second = b.crawler()
        while mine.has_next():
            mine.set_next(ops.difference(first.advance(), second.advance()))

    def add_patch_at(
        self,
        center: Sequence[float],
        kernel: Callable[[tuple[float, ...]], Number],
        patch_size: Sequence[float],
    ) -> None:
        """Accumulate ``kernel(index - center)`` into every cell the patch overlaps.

        The patch covers ``[floor(center), ceil(center + patch_size))`` in each
        dimension, clipped to the mesh. A patch entirely outside the mesh is a
        no-op.
        """
        crawler = self._patch_crawler(center, patch_size)
        if crawler is None:
            return
        ops = self._kind
        origin = tuple(float(c) for c in center)
        index = [0] * self.rank
        while crawler.has_next():
            value = crawler.advance()
            crawler.position(index)
            offset = tuple(i - c for i, c in zip(index, origin))
            crawler.set_current(ops.sum(value, kernel(offset)))


class FloatingMesh(NumberMesh):
    """Numeric mesh of a floating-point kind."""

    @classmethod
    def accepts(cls, kind: ScalarKind, element_type: type) -> bool:
        return kind.is_floating and super().accepts(kind, element_type)


class IntegerMesh(NumberMesh):
    """Numeric mesh of an integer kind, with product/ratio and bitwise algebra."""

    @classmethod
    def accepts(cls, kind: ScalarKind, element_type: type) -> bool:
        return kind.is_integer and super().accepts(kind, element_type)

    def _combine(self, what: str, other: Mesh, op) -> None:
        self._require_conforming(what, other)
        mine = self.crawler()
        theirs = other.crawler()
        while mine.has_next():
            mine.set_current(op(mine.advance(), theirs.advance()))

    def multiply(self, other: Mesh) -> None:
        self._combine("multiply", other, self._kind.product)

    def divide(self, other: Mesh) -> None:
        # Integer division truncates toward zero; a zero divisor raises
        # ZeroDivisionError with the cells before it already updated.
        self._combine("divide", other, self._kind.ratio)

    def bitwise_and(self, other: Mesh) -> None:
        self._combine("bitwise AND", other, self._kind.bitwise_and)

    def bitwise_or(self, other: Mesh) -> None:
        self._combine("bitwise OR", other, self._kind.bitwise_or)

    def bitwise_xor(self, other: Mesh) -> None:
        self._combine("bitwise XOR", other, self._kind.bitwise_xor)

    def bitwise_nand(self, other: Mesh) -> None:
        self._combine("bitwise NAND", other, self._kind.bitwise_nand)

    def bitwise_not(self) -> None:
        ops = self._kind
        crawler = self.crawler()
        while crawler.has_next():
            crawler.set_current(ops.bitwise_not(crawler.advance()))


class DoubleMesh(FloatingMesh):
    storage_kind = ScalarKind.DOUBLE


class FloatMesh(FloatingMesh):
    storage_kind = ScalarKind.FLOAT


class LongMesh(IntegerMesh):
    storage_kind = ScalarKind.LONG


class IntMesh(IntegerMesh):
    storage_kind = ScalarKind.INT


class ShortMesh(IntegerMesh):
    storage_kind = ScalarKind.SHORT


class ByteMesh(IntegerMesh):
    storage_kind = ScalarKind.BYTE
