from __future__ import annotations

import unittest

import numpy as np

from meshcrawl import (
    BooleanMesh,
    ByteMesh,
    ComplexMesh,
    DoubleMesh,
    FloatMesh,
    IntMesh,
    LongMesh,
    Mesh,
    MeshAllocationError,
    MeshIndexError,
    MeshShapeError,
    MeshUnsupportedError,
    MeshView,
    ObjectMesh,
    ScalarKind,
    ShortMesh,
    Vector2D,
    Vector2DMesh,
)
from meshcrawl.vectors import Complex


class _NoDefault:
    def __init__(self, value) -> None:
        self.value = value


class MeshCreationTests(unittest.TestCase):
    def test_create_picks_most_specific_class(self) -> None:
        self.assertIsInstance(Mesh.create(float, (2, 3)), DoubleMesh)
        self.assertIsInstance(Mesh.create(np.float32, (2,)), FloatMesh)
        self.assertIsInstance(Mesh.create(int, (2,)), LongMesh)
        self.assertIsInstance(Mesh.create("short", (2,)), ShortMesh)
        self.assertIsInstance(Mesh.create(bool, (2,)), BooleanMesh)
        self.assertIsInstance(Mesh.create(Vector2D, (2,)), Vector2DMesh)
        self.assertIsInstance(Mesh.create(Complex, (2,)), ComplexMesh)
        self.assertIsInstance(Mesh.create(str, (2,)), ObjectMesh)
        self.assertIs(type(Mesh.create(ScalarKind.CHAR, (2,))), Mesh)

    def test_create_initializes_cells(self) -> None:
        mesh = DoubleMesh.zeros((2, 3))
        self.assertEqual(mesh.shape, (2, 3))
        self.assertEqual(mesh.rank, 2)
        self.assertEqual(mesh.size, 6)
        self.assertEqual(mesh.tolist(), [[0.0] * 3] * 2)

        vectors = Mesh.create(Vector2D, (2, 2))
        cells = list(vectors)
        self.assertEqual(len({id(cell) for cell in cells}), 4)
        self.assertTrue(all(cell.is_null() for cell in cells))

    def test_create_rejects_bad_shapes_and_element_types(self) -> None:
        with self.assertRaises(MeshAllocationError):
            Mesh.create(float, ())
        with self.assertRaises(MeshAllocationError):
            Mesh.create(float, (2, -1))
        with self.assertRaises(MeshAllocationError):
            Mesh.create(_NoDefault, (2,))
        with self.assertRaises(MeshUnsupportedError):
            DoubleMesh.create(int, (2,))

    def test_zero_extent_mesh(self) -> None:
        mesh = IntMesh.zeros((0, 3))
        self.assertEqual(mesh.size, 0)
        self.assertFalse(mesh.crawler().has_next())
        self.assertEqual(mesh.to_numpy().shape, (0, 3))


class MeshWrapTests(unittest.TestCase):
    def test_wrap_ndarray_aliases_rows(self) -> None:
        array = np.zeros((2, 3), dtype=np.int16)
        mesh = Mesh.wrap(array)
        self.assertIsInstance(mesh, ShortMesh)
        mesh[1, 2] = 5
        self.assertEqual(array[1, 2], 5)

    def test_wrap_nested_storage_without_copy(self) -> None:
        rows = [np.array([1.0, 2.0]), np.array([3.0, 4.0])]
        mesh = Mesh.wrap(rows)
        self.assertIs(mesh.data, rows)
        self.assertEqual(mesh.shape, (2, 2))

    def test_wrap_python_sequences(self) -> None:
        self.assertIsInstance(Mesh.wrap([[1, 2], [3, 4]]), LongMesh)
        self.assertIsInstance(Mesh.wrap([True, False]), BooleanMesh)
        strings = Mesh.wrap(["a", "b"])
        self.assertIsInstance(strings, ObjectMesh)
        self.assertIs(strings.element_type, str)

    def test_wrap_rejects_ragged_and_unsupported(self) -> None:
        with self.assertRaises(MeshShapeError):
            Mesh.wrap([[1, 2], [3]])
        with self.assertRaises(MeshShapeError):
            Mesh.wrap([np.array([1.0]), np.array([1.0, 2.0])])
        with self.assertRaises(MeshShapeError):
            Mesh.wrap([np.array([1.0]), np.array([1], dtype=np.int32)])
        with self.assertRaises(MeshUnsupportedError):
            Mesh.wrap(np.zeros(3, dtype=np.uint64))
        with self.assertRaises(MeshUnsupportedError):
            ByteMesh.wrap(np.zeros(3))

    def test_wrap_of_empty_outer_list_is_rank_one(self) -> None:
        mesh = DoubleMesh.zeros((0, 3))
        self.assertEqual(mesh.shape, (0, 3))
        rewrapped = Mesh.wrap(mesh.data)
        self.assertEqual(rewrapped.shape, (0,))
        self.assertIsInstance(rewrapped, DoubleMesh)


class MeshResizeTests(unittest.TestCase):
    def test_set_size_reallocates_same_kind(self) -> None:
        mesh = IntMesh.wrap(np.arange(6, dtype=np.int32).reshape(2, 3))
        old = mesh.data
        mesh.set_size((3, 1, 2))
        self.assertEqual(mesh.shape, (3, 1, 2))
        self.assertEqual(mesh.kind, ScalarKind.INT)
        self.assertIsNot(mesh.data, old)
        self.assertTrue(mesh.is_null())
        self.assertEqual(sum(1 for _ in mesh), 6)

    def test_set_size_builds_fresh_object_elements(self) -> None:
        mesh = Mesh.create(Vector2D, (1,))
        mesh[0] = Vector2D(1.0, 2.0)
        mesh.set_size((2, 2))
        cells = list(mesh)
        self.assertEqual(len({id(cell) for cell in cells}), 4)
        self.assertTrue(all(cell.is_null() for cell in cells))

    def test_set_size_rejects_bad_shape_and_unbuildable_elements(self) -> None:
        mesh = DoubleMesh.zeros((2,))
        with self.assertRaises(MeshAllocationError):
            mesh.set_size(())
        with self.assertRaises(MeshAllocationError):
            mesh.set_size((2, -1))
        self.assertEqual(mesh.shape, (2,))

        objects = ObjectMesh.wrap(np.array([_NoDefault(1)], dtype=object))
        self.assertIs(objects.element_type, _NoDefault)
        with self.assertRaises(MeshAllocationError):
            objects.set_size((3,))
        self.assertEqual(objects.shape, (1,))

    def test_set_data_aliases_and_rederives_shape(self) -> None:
        mesh = DoubleMesh.zeros((2,))
        array = np.zeros((3, 4))
        mesh.set_data(array)
        self.assertEqual(mesh.shape, (3, 4))
        mesh[2, 3] = 1.5
        self.assertEqual(array[2, 3], 1.5)

        rows = [np.array([1, 2], dtype=np.int32)]
        plain = Mesh.create(ScalarKind.CHAR, (1,))
        plain.set_data(rows)
        self.assertIs(plain.data, rows)
        self.assertEqual(plain.kind, ScalarKind.INT)
        self.assertEqual(plain.shape, (1, 2))

    def test_set_data_rejects_kind_the_class_cannot_hold(self) -> None:
        mesh = DoubleMesh.zeros((2,))
        with self.assertRaises(MeshUnsupportedError):
            mesh.set_data(np.zeros(3, dtype=np.int32))
        with self.assertRaises(MeshShapeError):
            mesh.set_data([[1.0, 2.0], [3.0]])
        self.assertEqual(mesh.shape, (2,))
        self.assertEqual(mesh.kind, ScalarKind.DOUBLE)

        vectors = Mesh.create(Vector2D, (2,))
        with self.assertRaises(MeshUnsupportedError):
            vectors.set_data(np.array(["a", "b"], dtype=object))

    def test_views_cannot_be_resized_or_repointed(self) -> None:
        mesh = DoubleMesh.zeros((2, 3))
        row = mesh[0]
        with self.assertRaises(MeshUnsupportedError):
            row.set_size((4,))
        with self.assertRaises(MeshUnsupportedError):
            row.set_data(np.zeros(3))
        self.assertEqual(mesh.shape, (2, 3))


class MeshAccessTests(unittest.TestCase):
    def test_element_access_and_bounds(self) -> None:
        mesh = IntMesh.zeros((2, 3))
        mesh.set_element_at((1, 2), 7)
        self.assertEqual(mesh.element_at((1, 2)), 7)
        self.assertEqual(mesh[1, 2], 7)
        with self.assertRaises(MeshIndexError):
            mesh.element_at((2, 0))
        with self.assertRaises(MeshIndexError):
            mesh.element_at((0, -1))
        with self.assertRaises(MeshIndexError):
            mesh.element_at((0, 0, 0))
        with self.assertRaises(MeshIndexError):
            mesh.element_at(0)

    def test_set_element_casts_to_kind(self) -> None:
        mesh = ByteMesh.zeros((2,))
        mesh[0] = 200
        mesh[1] = 2.9
        self.assertEqual(mesh.tolist(), [-56, 2])

    def test_sub_mesh_is_an_aliasing_view(self) -> None:
        mesh = DoubleMesh.zeros((3, 4))
        row = mesh.sub_mesh_at(1)
        self.assertIsInstance(row, MeshView)
        self.assertIsInstance(row, DoubleMesh)
        self.assertTrue(row.is_view)
        self.assertFalse(mesh.is_view)
        self.assertIs(row.base, mesh)
        self.assertEqual(row.shape, (4,))

        row[2] = 1.5
        self.assertEqual(mesh[1, 2], 1.5)
        mesh[1, 0] = -1.0
        self.assertEqual(row[0], -1.0)
        self.assertIs(type(mesh[2]), type(row))

    def test_copy_of_view_owns_storage(self) -> None:
        mesh = DoubleMesh.zeros((2, 2))
        owned = mesh[0].copy()
        self.assertIs(type(owned), DoubleMesh)
        self.assertFalse(owned.is_view)
        owned[0] = 3.0
        self.assertEqual(mesh[0, 0], 0.0)

    def test_copy_duplicates_object_elements(self) -> None:
        mesh = Mesh.create(Vector2D, (2,))
        twin = mesh.copy()
        twin[0].add(Vector2D(1.0, 1.0))
        self.assertTrue(mesh[0].is_null())


class MeshCopyTests(unittest.TestCase):
    def test_copy_from_conforming_mesh_casts(self) -> None:
        source = Mesh.wrap(np.array([[1.7, -2.2], [300.0, 4.0]]))
        target = ByteMesh.zeros((2, 2))
        target.copy_from(source)
        self.assertEqual(target.tolist(), [[1, -2], [44, 4]])

    def test_copy_from_rejects_non_conforming(self) -> None:
        target = IntMesh.zeros((2, 2))
        with self.assertRaises(MeshShapeError):
            target.copy_from(IntMesh.zeros((2, 3)))

    def test_copy_to_clips_to_overlap(self) -> None:
        small = IntMesh.wrap(np.array([[1, 2], [3, 4]], dtype=np.int32))
        big = IntMesh.zeros((3, 3))
        small.copy_to(big, (2, -1))
        self.assertEqual(big.tolist(), [[0, 0, 0], [0, 0, 0], [2, 0, 0]])

        small.copy_to(big, (5, 5))
        self.assertEqual(big.tolist(), [[0, 0, 0], [0, 0, 0], [2, 0, 0]])

    def test_copy_to_rejects_self_and_rank_mismatch(self) -> None:
        mesh = IntMesh.zeros((2, 2))
        with self.assertRaises(ValueError):
            mesh.copy_to(mesh, (0, 0))
        with self.assertRaises(MeshShapeError):
            mesh.copy_to(IntMesh.zeros((4,)), (0,))

    def test_fill_whole_and_sub_range(self) -> None:
        mesh = LongMesh.zeros((3, 3))
        mesh.fill(1)
        mesh.fill(5, (1, 1), (3, 3))
        self.assertEqual(mesh.tolist(), [[1, 1, 1], [1, 5, 5], [1, 5, 5]])

    def test_fill_object_mesh_copies_the_value(self) -> None:
        mesh = Mesh.create(Vector2D, (2,))
        mesh.fill(Vector2D(1.0, 2.0))
        self.assertIsNot(mesh[0], mesh[1])
        self.assertEqual(mesh[1], Vector2D(1.0, 2.0))


class MeshConversionTests(unittest.TestCase):
    def test_str_is_a_brace_literal(self) -> None:
        mesh = DoubleMesh.wrap(np.array([[1.0, 2.0], [3.0, 4.0]]))
        self.assertEqual(str(mesh), "{{1.0,2.0},{3.0,4.0}}")
        self.assertEqual(str(BooleanMesh.wrap(np.array([True, False]))), "{true,false}")
        self.assertEqual(str(FloatMesh.parse("{0.1,2.5}")), "{0.1,2.5}")

    def test_repr_names_type_and_shape(self) -> None:
        self.assertEqual(repr(IntMesh.zeros((2, 1))), "IntMesh(shape=(2, 1), element_type=int32)")

    def test_to_numpy_stacks_rows(self) -> None:
        mesh = IntMesh.zeros((2, 3))
        mesh[1, 1] = 4
        array = mesh.to_numpy()
        self.assertEqual(array.dtype, np.int32)
        self.assertEqual(array.tolist(), [[0, 0, 0], [0, 4, 0]])
        array[0, 0] = 9
        self.assertEqual(mesh[0, 0], 0)

    def test_char_mesh_round_trips_characters(self) -> None:
        mesh = Mesh.create(ScalarKind.CHAR, (3,))
        for i, ch in enumerate("abc"):
            mesh[i] = ch
        self.assertEqual(mesh.tolist(), ["a", "b", "c"])


if __name__ == "__main__":
    unittest.main()
