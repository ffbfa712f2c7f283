from __future__ import annotations

import unittest

import numpy as np

from meshcrawl import (
    Additive,
    AdditiveMesh,
    BooleanMesh,
    Complex,
    ComplexMesh,
    DoubleMesh,
    Linear,
    LinearMesh,
    Mesh,
    MeshShapeError,
    Vector2D,
    Vector2DMesh,
)


class _Counter:
    """Additive but not linear: has no scale/add_scaled."""

    def __init__(self, n: int = 0) -> None:
        self.n = n

    def add(self, other) -> None:
        self.n += other if isinstance(other, int) else other.n

    def subtract(self, other) -> None:
        self.n -= other if isinstance(other, int) else other.n

    def set_sum(self, a, b) -> None:
        self.n = a.n + b.n

    def set_difference(self, a, b) -> None:
        self.n = a.n - b.n


def _vectors(*pairs) -> Vector2DMesh:
    mesh = Mesh.create(Vector2D, (len(pairs),))
    for i, (x, y) in enumerate(pairs):
        mesh[i].set(x, y)
    return mesh


class BooleanMeshTests(unittest.TestCase):
    def test_logic_ops(self) -> None:
        a = BooleanMesh.wrap(np.array([True, True, False, False]))
        b = BooleanMesh.wrap(np.array([True, False, True, False]))

        c = a.copy()
        c.and_(b)
        self.assertEqual(c.tolist(), [True, False, False, False])

        c = a.copy()
        c.or_(b)
        self.assertEqual(c.tolist(), [True, True, True, False])

        c.not_()
        self.assertEqual(c.tolist(), [False, False, False, True])

    def test_contains(self) -> None:
        mesh = BooleanMesh.zeros((2, 2))
        self.assertFalse(mesh.contains_true())
        self.assertTrue(mesh.contains_false())
        mesh.fill(True)
        self.assertTrue(mesh.contains_true())
        self.assertFalse(mesh.contains_false())

    def test_copy_from_numeric_mesh(self) -> None:
        mesh = BooleanMesh.zeros((3,))
        mesh.copy_from(DoubleMesh.wrap(np.array([0.0, 2.5, -1.0])))
        self.assertEqual(mesh.tolist(), [False, True, True])

    def test_parse_accepts_words_and_digits(self) -> None:
        mesh = BooleanMesh.parse("{{yes,0},{T,off}}")
        self.assertEqual(mesh.tolist(), [[True, False], [True, False]])

    def test_non_conforming_rejected(self) -> None:
        with self.assertRaises(MeshShapeError):
            BooleanMesh.zeros((2,)).and_(BooleanMesh.zeros((3,)))


class AdditiveMeshTests(unittest.TestCase):
    def test_element_protocols(self) -> None:
        self.assertIsInstance(Vector2D(), Linear)
        self.assertIsInstance(_Counter(), Additive)
        self.assertNotIsInstance(_Counter(), Linear)

    def test_additive_only_elements_get_additive_mesh(self) -> None:
        mesh = Mesh.create(_Counter, (2,))
        self.assertIs(type(mesh), AdditiveMesh)
        self.assertFalse(hasattr(mesh, "scale"))

    def test_add_mesh_and_single_element(self) -> None:
        mesh = Mesh.create(_Counter, (2,))
        mesh.add(_Counter(3))
        other = Mesh.create(_Counter, (2,))
        other[1].n = 10
        mesh.add(other)
        self.assertEqual([c.n for c in mesh], [3, 13])
        mesh.subtract(other)
        self.assertEqual([c.n for c in mesh], [3, 3])

    def test_set_sum_updates_elements_in_place(self) -> None:
        mesh = _vectors((0.0, 0.0), (0.0, 0.0))
        first = mesh[0]
        mesh.set_sum(_vectors((1.0, 2.0), (3.0, 4.0)), _vectors((1.0, 1.0), (1.0, 1.0)))
        self.assertIs(mesh[0], first)
        self.assertEqual(first, Vector2D(2.0, 3.0))
        mesh.set_difference(_vectors((1.0, 2.0), (3.0, 4.0)), _vectors((1.0, 1.0), (1.0, 1.0)))
        self.assertEqual(mesh[1], Vector2D(2.0, 3.0))


class LinearMeshTests(unittest.TestCase):
    def test_vector_mesh_is_linear(self) -> None:
        mesh = _vectors((1.0, 2.0), (3.0, -4.0))
        self.assertIsInstance(mesh, LinearMesh)
        mesh.scale(2.0)
        self.assertEqual(mesh[1], Vector2D(6.0, -8.0))
        mesh.add_scaled(mesh.copy(), -1.0)
        self.assertTrue(mesh.is_null())

    def test_zero(self) -> None:
        mesh = _vectors((1.0, 2.0))
        mesh.zero()
        self.assertTrue(mesh[0].is_null())

    def test_copy_from_keeps_element_identity(self) -> None:
        mesh = _vectors((0.0, 0.0), (0.0, 0.0))
        first = mesh[0]
        source = _vectors((5.0, 6.0), (7.0, 8.0))
        mesh.copy_from(source)
        self.assertIs(mesh[0], first)
        self.assertIsNot(mesh[0], source[0])
        self.assertEqual(mesh[1], Vector2D(7.0, 8.0))

    def test_component_updates_from_numeric_meshes(self) -> None:
        mesh = _vectors((1.0, 1.0), (1.0, 1.0))
        dx = DoubleMesh.wrap(np.array([1.0, 2.0]))
        mesh.add_x(dx)
        mesh.add_y(dx)
        mesh.subtract_y(dx)
        mesh.subtract_x(dx)
        mesh.add_scaled_x(dx, 2.0)
        mesh.add_scaled_y(dx, -1.0)
        self.assertEqual(mesh[0], Vector2D(3.0, 0.0))
        self.assertEqual(mesh[1], Vector2D(5.0, -1.0))
        with self.assertRaises(MeshShapeError):
            mesh.add_x(DoubleMesh.zeros((3,)))


class ComplexMeshTests(unittest.TestCase):
    def test_parse_and_conjugate(self) -> None:
        mesh = Mesh.parse("{1+2i,3,-i}")
        self.assertIsInstance(mesh, ComplexMesh)
        mesh.conjugate()
        self.assertEqual(mesh[0], 1 - 2j)
        self.assertEqual(mesh[2], 1j)

    def test_multiply_by_scalar_and_mesh(self) -> None:
        mesh = Mesh.create(Complex, (2,))
        mesh[0].set(1.0, 1.0)
        mesh[1].set(0.0, 2.0)
        mesh.multiply_by(Complex(0.0, 1.0))
        self.assertEqual(mesh[0], -1 + 1j)
        self.assertEqual(mesh[1], -2 + 0j)

        other = Mesh.create(Complex, (2,))
        other[0].set(2.0, 0.0)
        other[1].set(0.0, 1.0)
        mesh.multiply_by(other)
        self.assertEqual(mesh[0], -2 + 2j)
        self.assertEqual(mesh[1], -2j)

    def test_real_and_imaginary_parts(self) -> None:
        mesh = Mesh.parse("{{1+2i,3-4i}}")
        re = mesh.real_part()
        im = mesh.imaginary_part()
        self.assertIsInstance(re, DoubleMesh)
        self.assertEqual(re.tolist(), [[1.0, 3.0]])
        self.assertEqual(im.tolist(), [[2.0, -4.0]])


if __name__ == "__main__":
    unittest.main()
