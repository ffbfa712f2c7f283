"""Meshes of mutable vector-space elements.

Cells hold object references; arithmetic calls each element's own in-place
method, so views and outside references to an element observe the update.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from .mesh import Mesh, ObjectMesh
from .number import DoubleMesh
from .vectors import Additive, Complex, Linear, Vector2D


class AdditiveMesh(ObjectMesh):
    element_base = Additive

    def add(self, other) -> None:
        """Add a conforming mesh element-wise, or one element to every cell."""
        if not isinstance(other, Mesh):
            for element in self:
                element.add(other)
            return
        self._require_conforming("add", other)
        theirs = other.crawler()
        for element in self:
            element.add(theirs.advance())

    def subtract(self, other) -> None:
        if not isinstance(other, Mesh):
            for element in self:
                element.subtract(other)
            return
        self._require_conforming("subtract", other)
        theirs = other.crawler()
        for element in self:
            element.subtract(theirs.advance())

    def set_sum(self, a: Mesh, b: Mesh) -> None:
        self._require_conforming("sum", a, b)
        first = a.crawler()
        second = b.crawler()
        for element in self:
            element.set_sum(first.advance(), second.advance())

    def set_difference(self, a: Mesh, b: Mesh) -> None:
        self._require_conforming("subtract", a, b)
        first = a.crawler()
        second = b.crawler()
        for element in self:
            element.set_difference(first.advance(), second.advance())

    def add_patch_at(
        self,
        center: Sequence[float],
        kernel: Callable[[tuple[float, ...]], object],
        patch_size: Sequence[float],
    ) -> None:
        """Add ``kernel(index - center)`` to every element the patch overlaps."""
        crawler = self._patch_crawler(center, patch_size)
        if crawler is None:
            return
        origin = tuple(float(c) for c in center)
        index = [0] * self.rank
        while crawler.has_next():
            element = crawler.advance()
            crawler.position(index)
            element.add(kernel(tuple(i - c for i, c in zip(index, origin))))


class LinearMesh(AdditiveMesh):
    element_base = Linear

    def scale(self, factor: float) -> None:
        for element in self:
            element.scale(factor)

    def add_scaled(self, other: Mesh, factor: float) -> None:
        self._require_conforming("add", other)
        theirs = other.crawler()
        for element in self:
            element.add_scaled(theirs.advance(), factor)

    def is_null(self) -> bool:
        return all(element.is_null() for element in self)

    def zero(self) -> None:
        for element in self:
            element.zero()


class Vector2DMesh(LinearMesh):
    element_base = Vector2D

    def copy_from(self, other: Mesh) -> None:
        """Overwrite every element's components in place."""
        self._require_conforming("copy", other)
        theirs = other.crawler()
        for element in self:
            value = theirs.advance()
            element.set(value.x, value.y)

    def _per_component(self, what: str, other: Mesh, update) -> None:
        self._require_conforming(what, other)
        ops = other.kind
        theirs = other.crawler()
        for element in self:
            update(element, ops.value_of(theirs.advance()))

    def add_x(self, other: Mesh) -> None:
        self._per_component("add", other, Vector2D.add_x)

    def add_y(self, other: Mesh) -> None:
        self._per_component("add", other, Vector2D.add_y)

    def subtract_x(self, other: Mesh) -> None:
        self._per_component("subtract", other, Vector2D.subtract_x)

    def subtract_y(self, other: Mesh) -> None:
        self._per_component("subtract", other, Vector2D.subtract_y)

    def add_scaled_x(self, other: Mesh, factor: float) -> None:
        self._per_component("add", other, lambda element, value: element.add_x(value * factor))

    def add_scaled_y(self, other: Mesh, factor: float) -> None:
        self._per_component("add", other, lambda element, value: element.add_y(value * factor))


class ComplexMesh(Vector2DMesh):
    element_base = Complex

    def conjugate(self) -> None:
        for element in self:
            element.conjugate()

    def multiply_by(self, z) -> None:
        """Multiply every cell by one complex value, or element-wise by a conforming mesh."""
        if not isinstance(z, Mesh):
            for element in self:
                element.multiply_by(z)
            return
        self._require_conforming("multiply", z)
        theirs = z.crawler()
        for element in self:
            element.multiply_by(theirs.advance())

    def real_part(self) -> DoubleMesh:
        return self._component_mesh(lambda element: element.re)

    def imaginary_part(self) -> DoubleMesh:
        return self._component_mesh(lambda element: element.im)

    def _component_mesh(self, component) -> DoubleMesh:
        out = DoubleMesh.zeros(self.shape)
        crawler = out.crawler()
        for element in self:
            crawler.set_next(component(element))
        return out
