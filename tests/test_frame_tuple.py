import unittest
import copy
import math
import numpy as np

from framekit import (
    FramePoint2D,
    FramePoint3D,
    FrameVector2D,
    FrameVector3D,
    RigidTransform,
    ReferenceFrameMismatchError,
    CrossRootTransformError,
    NotAnXYTransformError,
    create_root_frame,
    create_fixed_frame,
)
from framekit import random_tools


class FrameTupleTestCase(unittest.TestCase):
    def setUp(self):
        self.rng = np.random.default_rng(2024)
        self.root = create_root_frame("root")
        self.frames = random_tools.next_reference_frame_tree(self.rng, self.root, 20)
        self.frame_a = create_fixed_frame("a", self.root, random_tools.next_rigid_transform(self.rng))
        self.frame_b = create_fixed_frame("b", self.root, random_tools.next_rigid_transform(self.rng))
        self.other_root = create_root_frame("other root")

    def random_frame(self):
        return self.frames[int(self.rng.integers(len(self.frames)))]


class TestConstruction(FrameTupleTestCase):
    def test_zero(self):
        p = FramePoint3D(self.frame_a)
        np.testing.assert_array_equal(p.to_array(), np.zeros(3))
        self.assertIs(p.reference_frame, self.frame_a)

    def test_coordinates(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        self.assertEqual((p.x, p.y, p.z), (1.0, 2.0, 3.0))
        v = FrameVector3D(self.frame_a, [4.0, 5.0, 6.0])
        self.assertEqual(list(v), [4.0, 5.0, 6.0])
        self.assertEqual(len(v), 3)
        self.assertEqual(v[1], 5.0)
        p2 = FramePoint2D(self.frame_a, np.array([1.0, 2.0]))
        self.assertEqual((p2.x, p2.y), (1.0, 2.0))
        self.assertEqual(len(p2), 2)

    def test_invalid_coordinates(self):
        with self.assertRaises(ValueError):
            FramePoint3D(self.frame_a, 1.0, 2.0)
        with self.assertRaises(ValueError):
            FramePoint2D(self.frame_a, [1.0, 2.0, 3.0])
        with self.assertRaises(TypeError):
            FramePoint3D("frame", 1.0, 2.0, 3.0)

    def test_copy_other_frame_value(self):
        source = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        p = FramePoint3D(source)
        self.assertIs(p.reference_frame, self.frame_a)
        np.testing.assert_array_equal(p.to_array(), [1.0, 2.0, 3.0])

        # another concrete type, from 2D to 3D and back
        v = FrameVector3D(FramePoint2D(self.frame_b, 1.0, 2.0))
        self.assertIs(v.reference_frame, self.frame_b)
        np.testing.assert_array_equal(v.to_array(), [1.0, 2.0, 0.0])
        v = FrameVector3D(FramePoint2D(self.frame_b, 1.0, 2.0), 5.0)
        np.testing.assert_array_equal(v.to_array(), [1.0, 2.0, 5.0])
        p2 = FramePoint2D(source)
        np.testing.assert_array_equal(p2.to_array(), [1.0, 2.0])

    def test_setters(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        p.x = 4.0
        p.y = 5.0
        p.z = 6.0
        np.testing.assert_array_equal(p.to_array(), [4.0, 5.0, 6.0])
        p.set(7.0, 8.0, 9.0)
        np.testing.assert_array_equal(p.to_array(), [7.0, 8.0, 9.0])
        p.set([1.0, 1.0, 1.0])
        np.testing.assert_array_equal(p.to_array(), [1.0, 1.0, 1.0])

    def test_to_array_is_a_copy(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        p.to_array()[0] = 10.0
        self.assertEqual(p.x, 1.0)
        np.testing.assert_array_equal(np.asarray(p), [1.0, 2.0, 3.0])


class TestFrameBinding(FrameTupleTestCase):
    def test_set_including_frame(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        p.set_including_frame(self.frame_b, 4.0, 5.0, 6.0)
        self.assertIs(p.reference_frame, self.frame_b)
        np.testing.assert_array_equal(p.to_array(), [4.0, 5.0, 6.0])

        other = FramePoint3D(self.frame_a, 7.0, 8.0, 9.0)
        p.set_including_frame(other)
        self.assertIs(p.reference_frame, self.frame_a)
        np.testing.assert_array_equal(p.to_array(), [7.0, 8.0, 9.0])

    def test_set_reference_frame_keeps_coordinates(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        p.set_reference_frame(self.frame_b)
        self.assertIs(p.reference_frame, self.frame_b)
        np.testing.assert_array_equal(p.to_array(), [1.0, 2.0, 3.0])

    def test_set_to_zero_and_nan(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        self.assertFalse(p.contains_nan())
        p.set_to_nan()
        self.assertTrue(p.contains_nan())
        p.set_to_zero(self.frame_b)
        self.assertIs(p.reference_frame, self.frame_b)
        np.testing.assert_array_equal(p.to_array(), np.zeros(3))


class TestFrameMismatch(FrameTupleTestCase):
    def test_binary_operations_check_frames(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        q = FramePoint3D(self.frame_b, 1.0, 2.0, 3.0)
        v = FrameVector3D(self.frame_b, 1.0, 0.0, 0.0)
        operations = [
            lambda: p.set(q),
            lambda: p.add(q),
            lambda: p.add(p, q),
            lambda: p.sub(q),
            lambda: p.sub(q, p),
            lambda: p.scale_add(2.0, q),
            lambda: p.scale_add(2.0, p, q),
            lambda: p.scale_sub(2.0, q),
            lambda: p.interpolate(q, 0.5),
            lambda: p.interpolate(p, q, 0.5),
            lambda: p.distance(q),
            lambda: p.distance_squared(q),
            lambda: p.geometrically_equals(q, 1e-9),
            lambda: FrameVector3D(self.frame_a).dot(v),
            lambda: FrameVector3D(self.frame_a).cross(v),
            lambda: FrameVector3D(self.frame_a).angle(v),
        ]
        for operation in operations:
            before = p.to_array()
            with self.assertRaises(ReferenceFrameMismatchError):
                operation()
            np.testing.assert_array_equal(p.to_array(), before)
            self.assertIs(p.reference_frame, self.frame_a)

    def test_mismatch_error_names_frames(self):
        p = FramePoint3D(self.frame_a)
        q = FramePoint3D(self.frame_b)
        with self.assertRaises(ReferenceFrameMismatchError) as context:
            p.add(q)
        self.assertIs(context.exception.frame_a, self.frame_a)
        self.assertIs(context.exception.frame_b, self.frame_b)
        self.assertIn("'a'", str(context.exception))
        self.assertIn("'b'", str(context.exception))

    def test_same_name_is_not_same_frame(self):
        twin_root = create_root_frame("root")
        twin_a = create_fixed_frame("a", twin_root, RigidTransform.identity())
        with self.assertRaises(ReferenceFrameMismatchError):
            FramePoint3D(self.frame_a).add(FramePoint3D(twin_a))

    def test_plain_coordinates_are_not_checked(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        p.add([1.0, 1.0, 1.0])
        np.testing.assert_array_equal(p.to_array(), [2.0, 3.0, 4.0])
        p.add(FramePoint3D(self.frame_a, 1.0, 1.0, 1.0), np.array([1.0, 0.0, 0.0]))
        np.testing.assert_array_equal(p.to_array(), [2.0, 1.0, 1.0])
        with self.assertRaises(ReferenceFrameMismatchError):
            p.add(np.zeros(3), FramePoint3D(self.frame_b))

    def test_change_frame_across_roots(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        with self.assertRaises(CrossRootTransformError):
            p.change_frame(self.other_root)
        self.assertIs(p.reference_frame, self.frame_a)
        np.testing.assert_array_equal(p.to_array(), [1.0, 2.0, 3.0])

        q = FramePoint3D(self.other_root, 1.0, 1.0, 1.0)
        with self.assertRaises(CrossRootTransformError):
            p.set_matching_frame(q)
        self.assertIs(p.reference_frame, self.frame_a)
        np.testing.assert_array_equal(p.to_array(), [1.0, 2.0, 3.0])
        with self.assertRaises(CrossRootTransformError):
            FramePoint2D(self.frame_a).change_frame_and_project_to_xy_plane(self.other_root)


class TestArithmetic(FrameTupleTestCase):
    def test_add_sub_scale(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        q = FramePoint3D(self.frame_a, 0.5, 0.5, 0.5)
        p.add(q)
        np.testing.assert_allclose(p.to_array(), [1.5, 2.5, 3.5])
        p.sub(q)
        np.testing.assert_allclose(p.to_array(), [1.0, 2.0, 3.0])
        p.scale(2.0)
        np.testing.assert_allclose(p.to_array(), [2.0, 4.0, 6.0])
        p.sub(p, q)
        np.testing.assert_allclose(p.to_array(), [1.5, 3.5, 5.5])

    def test_scale_add_and_sub(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        q = FramePoint3D(self.frame_a, 1.0, 1.0, 1.0)
        p.scale_add(2.0, q)
        np.testing.assert_allclose(p.to_array(), [3.0, 5.0, 7.0])
        p.scale_sub(2.0, q)
        np.testing.assert_allclose(p.to_array(), [5.0, 9.0, 13.0])
        p.scale_add(3.0, q, [1.0, 0.0, 0.0])
        np.testing.assert_allclose(p.to_array(), [4.0, 3.0, 3.0])
        p.scale_sub(3.0, q, [1.0, 0.0, 0.0])
        np.testing.assert_allclose(p.to_array(), [2.0, 3.0, 3.0])

    def test_interpolate(self):
        p = FramePoint3D(self.frame_a, 0.0, 0.0, 0.0)
        q = FramePoint3D(self.frame_a, 2.0, 4.0, 6.0)
        p.interpolate(q, 0.25)
        np.testing.assert_allclose(p.to_array(), [0.5, 1.0, 1.5])
        p.interpolate(FramePoint3D(self.frame_a), q, 0.5)
        np.testing.assert_allclose(p.to_array(), [1.0, 2.0, 3.0])

    def test_negate_absolute_clip(self):
        v = FrameVector3D(self.frame_a, 1.0, -2.0, 3.0)
        v.negate()
        np.testing.assert_array_equal(v.to_array(), [-1.0, 2.0, -3.0])
        v.absolute()
        np.testing.assert_array_equal(v.to_array(), [1.0, 2.0, 3.0])
        v.clip_to_min_max(1.5, 2.5)
        np.testing.assert_array_equal(v.to_array(), [1.5, 2.0, 2.5])

    def test_vector_operations(self):
        v = FrameVector3D(self.frame_a, 3.0, 4.0, 0.0)
        w = FrameVector3D(self.frame_a, 0.0, 0.0, 2.0)
        self.assertEqual(v.norm(), 5.0)
        self.assertEqual(v.norm_squared(), 25.0)
        self.assertEqual(v.dot(w), 0.0)
        self.assertAlmostEqual(v.angle(w), math.pi / 2.0)
        cross = v.cross(w)
        self.assertIs(cross.reference_frame, self.frame_a)
        np.testing.assert_allclose(cross.to_array(), [8.0, -6.0, 0.0])
        u = FrameVector3D(self.frame_a)
        u.set_to_cross(v, w)
        np.testing.assert_allclose(u.to_array(), [8.0, -6.0, 0.0])
        v.normalize()
        np.testing.assert_allclose(v.to_array(), [0.6, 0.8, 0.0])

        zero = FrameVector3D(self.frame_a)
        zero.normalize()
        self.assertTrue(zero.contains_nan())

    def test_vector2d_operations(self):
        v = FrameVector2D(self.frame_a, 1.0, 0.0)
        w = FrameVector2D(self.frame_a, 0.0, 2.0)
        self.assertEqual(v.cross(w), 2.0)
        self.assertEqual(w.cross(v), -2.0)
        self.assertAlmostEqual(v.angle(w), math.pi / 2.0)
        self.assertEqual(w.norm(), 2.0)

    def test_point_distances(self):
        p = FramePoint3D(self.frame_a, 1.0, 1.0, 1.0)
        q = FramePoint3D(self.frame_a, 4.0, 5.0, 13.0)
        self.assertEqual(p.distance(q), 13.0)
        self.assertEqual(p.distance_squared(q), 169.0)
        self.assertEqual(p.distance_xy(q), 5.0)
        self.assertEqual(FramePoint3D(self.frame_a, 3.0, 4.0, 0.0).distance_from_origin(), 5.0)
        self.assertEqual(FramePoint2D(self.frame_a, 0.0, 0.0).distance([3.0, 4.0]), 5.0)


class TestChangeFrame(FrameTupleTestCase):
    def test_point_change_frame(self):
        for _ in range(100):
            source = self.random_frame()
            target = self.random_frame()
            coordinates = self.rng.uniform(-1.0, 1.0, 3)
            p = FramePoint3D(source, coordinates)
            p.change_frame(target)
            self.assertIs(p.reference_frame, target)
            expected = source.get_transform_to_desired_frame(target).transform_point(coordinates)
            np.testing.assert_allclose(p.to_array(), expected, atol=1e-12)

            # the point is the same physical point in the root frame
            in_root = FramePoint3D(p)
            in_root.change_frame(self.root)
            np.testing.assert_allclose(
                in_root.to_array(), source.get_transform_to_root().transform_point(coordinates), atol=1e-9)

    def test_vector_change_frame_ignores_translation(self):
        frame = create_fixed_frame("translated", self.root, RigidTransform.from_translation([5.0, 6.0, 7.0]))
        v = FrameVector3D(frame, 1.0, 2.0, 3.0)
        v.change_frame(self.root)
        np.testing.assert_allclose(v.to_array(), [1.0, 2.0, 3.0])
        p = FramePoint3D(frame, 1.0, 2.0, 3.0)
        p.change_frame(self.root)
        np.testing.assert_allclose(p.to_array(), [6.0, 8.0, 10.0])

    def test_change_frame_round_trip(self):
        for _ in range(50):
            source = self.random_frame()
            target = self.random_frame()
            coordinates = self.rng.uniform(-1.0, 1.0, 3)
            v = FrameVector3D(source, coordinates)
            v.change_frame(target)
            v.change_frame(source)
            np.testing.assert_allclose(v.to_array(), coordinates, atol=1e-9)

    def test_change_to_same_frame(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        p.change_frame(self.frame_a)
        np.testing.assert_array_equal(p.to_array(), [1.0, 2.0, 3.0])

    def test_set_matching_frame(self):
        for _ in range(100):
            source = FramePoint3D(self.random_frame(), self.rng.uniform(-1.0, 1.0, 3))
            source_frame, source_values = source.reference_frame, source.to_array()
            target_frame = self.random_frame()
            p = FramePoint3D(target_frame, self.rng.uniform(-1.0, 1.0, 3))

            expected = FramePoint3D(source)
            expected.change_frame(target_frame)

            p.set_matching_frame(source)
            self.assertIs(p.reference_frame, target_frame)
            np.testing.assert_allclose(p.to_array(), expected.to_array(), atol=1e-12)
            # the source is untouched
            self.assertIs(source.reference_frame, source_frame)
            np.testing.assert_array_equal(source.to_array(), source_values)

    def test_set_matching_frame_from_coordinates(self):
        p = FrameVector3D(self.frame_a)
        p.set_matching_frame(self.frame_b, 1.0, 0.0, 0.0)
        expected = self.frame_b.get_transform_to_desired_frame(self.frame_a).transform_vector([1.0, 0.0, 0.0])
        self.assertIs(p.reference_frame, self.frame_a)
        np.testing.assert_allclose(p.to_array(), expected, atol=1e-12)

    def test_set_from_reference_frame(self):
        p = FramePoint3D(self.frame_a)
        p.set_from_reference_frame(self.frame_b)
        self.assertIs(p.reference_frame, self.frame_a)
        expected = self.frame_b.get_transform_to_desired_frame(self.frame_a).translation
        np.testing.assert_allclose(p.to_array(), expected, atol=1e-12)

    def test_apply_transform(self):
        t = random_tools.next_rigid_transform(self.rng)
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        p.apply_transform(t)
        self.assertIs(p.reference_frame, self.frame_a)
        np.testing.assert_allclose(p.to_array(), t.transform_point([1.0, 2.0, 3.0]))
        p.apply_inverse_transform(t)
        np.testing.assert_allclose(p.to_array(), [1.0, 2.0, 3.0], atol=1e-12)

    def test_3d_project_to_xy_plane(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        expected = self.frame_a.get_transform_to_desired_frame(self.frame_b).transform_point([1.0, 2.0, 3.0])
        p.change_frame_and_project_to_xy_plane(self.frame_b)
        self.assertIs(p.reference_frame, self.frame_b)
        np.testing.assert_allclose(p.to_array(), [expected[0], expected[1], 0.0], atol=1e-12)


class TestFrameTuple2D(FrameTupleTestCase):
    def test_change_frame_with_yaw_only(self):
        root = create_root_frame("planar")
        frames = random_tools.next_reference_frame_tree(self.rng, root, 10, use_2d_transforms=True)
        for _ in range(50):
            source = frames[int(self.rng.integers(len(frames)))]
            target = frames[int(self.rng.integers(len(frames)))]
            coordinates = self.rng.uniform(-1.0, 1.0, 2)
            p = FramePoint2D(source, coordinates)
            p.change_frame(target)
            expected = source.get_transform_to_desired_frame(target).transform_point([coordinates[0], coordinates[1], 0.0])
            np.testing.assert_allclose(p.to_array(), expected[:2], atol=1e-12)

            v = FrameVector2D(source, coordinates)
            v.change_frame(target)
            expected = source.get_transform_to_desired_frame(target).transform_vector([coordinates[0], coordinates[1], 0.0])
            np.testing.assert_allclose(v.to_array(), expected[:2], atol=1e-12)

    def test_change_frame_requires_xy_transform(self):
        tilted = create_fixed_frame("tilted", self.root, RigidTransform.from_euler_angles(0.3, 0.0, 0.0))
        p = FramePoint2D(tilted, 1.0, 2.0)
        with self.assertRaises(NotAnXYTransformError):
            p.change_frame(self.root)
        # nothing changed
        self.assertIs(p.reference_frame, tilted)
        np.testing.assert_array_equal(p.to_array(), [1.0, 2.0])

        with self.assertRaises(NotAnXYTransformError):
            p.apply_transform(RigidTransform.from_euler_angles(0.0, 0.2, 0.0))

    def test_change_frame_and_project_to_xy_plane(self):
        tilted = create_fixed_frame(
            "tilted", self.root, RigidTransform.from_euler_angles(0.3, -0.2, 0.5, translation=[1.0, 2.0, 3.0]))
        p = FramePoint2D(tilted, 1.0, 2.0)
        expected = tilted.get_transform_to_root().transform_point([1.0, 2.0, 0.0])
        p.change_frame_and_project_to_xy_plane(self.root)
        self.assertIs(p.reference_frame, self.root)
        np.testing.assert_allclose(p.to_array(), expected[:2], atol=1e-12)

    def test_set_matching_frame_2d(self):
        root = create_root_frame("planar")
        a = create_fixed_frame("a", root, RigidTransform.from_yaw(0.4, [1.0, 0.0, 0.0]))
        b = create_fixed_frame("b", root, RigidTransform.from_yaw(-1.1, [0.0, 2.0, 0.0]))
        source = FramePoint2D(a, 0.5, -0.5)
        p = FramePoint2D(b)
        p.set_matching_frame(source)
        expected = FramePoint2D(source)
        expected.change_frame(b)
        self.assertIs(p.reference_frame, b)
        np.testing.assert_allclose(p.to_array(), expected.to_array(), atol=1e-12)


class TestComparisons(FrameTupleTestCase):
    def test_equals_requires_same_frame(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        self.assertEqual(p, FramePoint3D(self.frame_a, 1.0, 2.0, 3.0))
        self.assertNotEqual(p, FramePoint3D(self.frame_b, 1.0, 2.0, 3.0))
        self.assertNotEqual(p, FramePoint3D(self.frame_a, 1.0, 2.0, 3.5))
        self.assertNotEqual(p, FrameVector3D(self.frame_a, 1.0, 2.0, 3.0))
        self.assertTrue(p.equals(FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)))

    def test_epsilon_equals(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        q = FramePoint3D(self.frame_a, 1.0 + 1e-8, 2.0, 3.0)
        self.assertTrue(p.epsilon_equals(q, 1e-7))
        self.assertFalse(p.epsilon_equals(q, 1e-9))
        # frames differ: not equal, no error
        self.assertFalse(p.epsilon_equals(FramePoint3D(self.frame_b, 1.0, 2.0, 3.0), 1.0))

    def test_coordinates_equal_ignores_frames(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        q = FramePoint3D(self.frame_b, 1.0, 2.0, 3.0)
        self.assertTrue(p.coordinates_equal(q))
        self.assertTrue(p.coordinates_equal([1.0, 2.0, 3.0 + 1e-10], 1e-9))
        self.assertFalse(p.coordinates_equal([1.0, 2.0]))

    def test_geometrically_equals(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        self.assertTrue(p.geometrically_equals(FramePoint3D(self.frame_a, 1.0, 2.0, 3.0 + 1e-10), 1e-9))
        self.assertFalse(p.geometrically_equals(FramePoint3D(self.frame_a, 1.0, 2.1, 3.0), 1e-9))

    def test_unhashable(self):
        with self.assertRaises(TypeError):
            hash(FramePoint3D(self.frame_a))

    def test_copies_share_the_frame(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        for c in (p.copy(), copy.copy(p), copy.deepcopy(p)):
            self.assertIs(c.reference_frame, self.frame_a)
            self.assertEqual(c, p)
            c.x = 10.0
            self.assertEqual(p.x, 1.0)

    def test_repr(self):
        p = FramePoint3D(self.frame_a, 1.0, 2.0, 3.0)
        self.assertEqual(repr(p), "FramePoint3D([1.0, 2.0, 3.0], frame='a')")
        self.assertIn("a", str(p))


if __name__ == "__main__":
    unittest.main()
