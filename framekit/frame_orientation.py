# frame_orientation.py
import math
from typing import Tuple, Iterable

import numpy as np
from numpy import asarray as np_asarray
from numpy import float64 as np_float64

from framekit.frame_tools import check_reference_frame_match
from framekit.frame_tuple import FrameVector3D, _require_frame
from framekit.geometry import (
    quaternion_distance,
    quaternion_multiply,
    quaternion_to_rotation,
    quaternion_transform,
    rotation_to_euler,
    rotation_to_quaternion,
    euler_to_rotation,
    axis_angle_to_rotation,
    rotation_to_yaw,
)
from framekit.transform import RigidTransform

_IDENTITY_QUATERNION = np.array([0.0, 0.0, 0.0, 1.0], dtype=np_float64)


def _as_unit_quaternion(values) -> np.ndarray:
    q = np.array(values, dtype=np_float64)
    if q.shape != (4,):
        raise ValueError(f"Quaternion must be a 4D vector, got {q.shape}")
    norm = np.linalg.norm(q)
    if norm == 0.0:
        raise ValueError("Cannot build an orientation from a zero quaternion")
    return q / norm


class FrameQuaternion:
    """
    A unit quaternion [x, y, z, w] expressed in a reference frame.

    The quaternion rotates vectors expressed in a body frame into `reference_frame`, so that
    changing its frame pre-multiplies it by the rotation of the frame-to-frame transform.
    Inputs are normalized on assignment.
    """
    __slots__ = ("_data", "_reference_frame")

    def __init__(self, frame_or_value, *quaternion):
        self._data = _IDENTITY_QUATERNION.copy()
        self._reference_frame = None
        self.set_including_frame(frame_or_value, *quaternion)

    @classmethod
    def from_rotation_matrix(cls, frame, rotation: Iterable) -> "FrameQuaternion":
        instance = cls(frame)
        instance.set_from_rotation_matrix(rotation)
        return instance

    @classmethod
    def from_euler_angles(cls, frame, roll: float, pitch: float, yaw: float, degrees: bool = False) -> "FrameQuaternion":
        instance = cls(frame)
        instance.set_from_euler_angles(roll, pitch, yaw, degrees)
        return instance

    @classmethod
    def from_axis_angle(cls, frame, axis: Iterable, angle: float) -> "FrameQuaternion":
        instance = cls(frame)
        instance.set_from_rotation_matrix(axis_angle_to_rotation(np_asarray(axis, dtype=np_float64), float(angle)))
        return instance

    @property
    def reference_frame(self):
        return self._reference_frame

    @property
    def x(self) -> float:
        return float(self._data[0])

    @property
    def y(self) -> float:
        return float(self._data[1])

    @property
    def z(self) -> float:
        return float(self._data[2])

    @property
    def s(self) -> float:
        """Scalar part of the quaternion."""
        return float(self._data[3])

    def to_array(self) -> np.ndarray:
        return self._data.copy()

    def _quaternion_of(self, value) -> np.ndarray:
        if isinstance(value, FrameQuaternion):
            check_reference_frame_match(self, value)
            return value._data
        return _as_unit_quaternion(value)

    # ------------------------------------------------------------------
    # setters
    #

    def set_including_frame(self, frame_or_value, *quaternion) -> None:
        if isinstance(frame_or_value, FrameQuaternion):
            if quaternion:
                raise ValueError("No extra values are expected when copying a FrameQuaternion")
            data = frame_or_value._data.copy()
            frame = frame_or_value._reference_frame
        else:
            frame = _require_frame(frame_or_value)
            if len(quaternion) == 0:
                data = _IDENTITY_QUATERNION.copy()
            elif len(quaternion) == 1:
                data = _as_unit_quaternion(quaternion[0])
            else:
                data = _as_unit_quaternion(quaternion)
        self._data = data
        self._reference_frame = frame

    def set_reference_frame(self, frame) -> None:
        self._reference_frame = _require_frame(frame)

    def set(self, *value) -> None:
        if len(value) == 1:
            self._data = self._quaternion_of(value[0]).copy()
        else:
            self._data = _as_unit_quaternion(value)

    def set_to_zero(self, frame=None) -> None:
        """Set to the identity orientation."""
        if frame is not None:
            self._reference_frame = _require_frame(frame)
        self._data = _IDENTITY_QUATERNION.copy()

    def set_to_nan(self, frame=None) -> None:
        if frame is not None:
            self._reference_frame = _require_frame(frame)
        self._data[:] = np.nan

    def contains_nan(self) -> bool:
        return bool(np.isnan(self._data).any())

    def set_from_rotation_matrix(self, rotation: Iterable) -> None:
        rotation = np_asarray(rotation, dtype=np_float64)
        if rotation.shape != (3, 3):
            raise ValueError(f"Rotation must be a 3x3 matrix, got {rotation.shape}")
        self._data = rotation_to_quaternion(np.ascontiguousarray(rotation), True)

    def set_from_euler_angles(self, roll: float, pitch: float, yaw: float, degrees: bool = False) -> None:
        self._data = rotation_to_quaternion(euler_to_rotation(float(roll), float(pitch), float(yaw), degrees), True)

    def set_from_yaw(self, yaw: float) -> None:
        half = 0.5 * float(yaw)
        self._data = np.array([0.0, 0.0, math.sin(half), math.cos(half)], dtype=np_float64)

    # ------------------------------------------------------------------
    # algebra
    #

    def multiply(self, value) -> None:
        """self = self * value."""
        self._data = quaternion_multiply(self._data, self._quaternion_of(value))

    def pre_multiply(self, value) -> None:
        """self = value * self."""
        self._data = quaternion_multiply(self._quaternion_of(value), self._data)

    def multiply_conjugate_other(self, value) -> None:
        """self = self * conjugate(value)."""
        q = self._quaternion_of(value)
        self._data = quaternion_multiply(self._data, np.array([-q[0], -q[1], -q[2], q[3]]))

    def conjugate(self) -> None:
        self._data[:3] = -self._data[:3]

    def inverse(self) -> None:
        self.conjugate()
        self._data = self._data / (self._data @ self._data)

    def normalize(self) -> None:
        self._data = _as_unit_quaternion(self._data)

    def normalize_and_limit_to_pi(self) -> None:
        """Normalize and pick the representative with a non-negative scalar part."""
        self.normalize()
        if self._data[3] < 0.0:
            self._data = -self._data

    def distance(self, other) -> float:
        """Angle in [0, pi] of the rotation between the two orientations."""
        return quaternion_distance(self._data, self._quaternion_of(other))

    def get_angle(self) -> float:
        """Angle in [0, pi] of this orientation."""
        return quaternion_distance(_IDENTITY_QUATERNION, self._data)

    def transform(self, vector):
        """
        Rotate a vector.

        A FrameVector3D must be expressed in the same frame and is rotated in place; an
        array-like is rotated into a new array.
        """
        if isinstance(vector, FrameVector3D):
            check_reference_frame_match(self, vector)
            vector.set(quaternion_transform(self._data, vector._data))
            return vector
        return quaternion_transform(self._data, np_asarray(vector, dtype=np_float64))

    def inverse_transform(self, vector):
        conjugate = np.array([-self._data[0], -self._data[1], -self._data[2], self._data[3]])
        if isinstance(vector, FrameVector3D):
            check_reference_frame_match(self, vector)
            vector.set(quaternion_transform(conjugate, vector._data))
            return vector
        return quaternion_transform(conjugate, np_asarray(vector, dtype=np_float64))

    def to_rotation_matrix(self) -> np.ndarray:
        return quaternion_to_rotation(self._data, True)

    def to_euler_angles(self, degrees: bool = False) -> Tuple[float, float, float]:
        return rotation_to_euler(self.to_rotation_matrix(), degrees)

    def get_yaw(self) -> float:
        return rotation_to_yaw(self.to_rotation_matrix())

    def apply_transform(self, transform: RigidTransform) -> None:
        """Pre-multiply by the rotation part of the transform; the frame is unchanged."""
        self._data = quaternion_multiply(transform.rotation_as_quaternion(), self._data)

    def apply_inverse_transform(self, transform: RigidTransform) -> None:
        q = transform.rotation_as_quaternion()
        self._data = quaternion_multiply(np.array([-q[0], -q[1], -q[2], q[3]]), self._data)

    # ------------------------------------------------------------------
    # frame changes
    #

    def change_frame(self, desired_frame) -> None:
        if desired_frame is self._reference_frame:
            return
        transform = self._reference_frame.get_transform_to_desired_frame(desired_frame)
        data = quaternion_multiply(transform.rotation_as_quaternion(), self._data)
        self._data = data
        self._reference_frame = desired_frame

    def set_matching_frame(self, source, *quaternion) -> None:
        """Copy `source` with its frame, then change back to the original frame of self."""
        original_frame = self._reference_frame
        original_data = self._data
        self.set_including_frame(source, *quaternion)
        try:
            self.change_frame(original_frame)
        except Exception:
            self._data = original_data
            self._reference_frame = original_frame
            raise

    def set_from_reference_frame(self, frame) -> None:
        """Set to the orientation of `frame` expressed in the current frame of self."""
        self.set_matching_frame(frame)

    # ------------------------------------------------------------------
    # comparisons
    #

    def epsilon_equals(self, other: "FrameQuaternion", epsilon: float) -> bool:
        """Component-wise comparison, frames must be identical."""
        if not isinstance(other, FrameQuaternion) or other._reference_frame is not self._reference_frame:
            return False
        return bool(np.all(np.abs(self._data - other._data) <= epsilon))

    def equals(self, other: "FrameQuaternion") -> bool:
        return self.epsilon_equals(other, 0.0)

    def geometrically_equals(self, other, epsilon: float) -> bool:
        """
        True if both quaternions describe the same rotation up to epsilon, q and -q included.

        Raises:
            ReferenceFrameMismatchError: if `other` is expressed in another frame.
        """
        return self.distance(other) <= epsilon

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FrameQuaternion):
            return NotImplemented
        return self.equals(other)

    __hash__ = None

    def copy(self) -> "FrameQuaternion":
        instance = object.__new__(self.__class__)
        instance._data = self._data.copy()
        instance._reference_frame = self._reference_frame
        return instance

    def __copy__(self):
        return self.copy()

    def __deepcopy__(self, memo):
        return self.copy()

    def __iter__(self):
        return iter(self._data.tolist())

    def __len__(self) -> int:
        return 4

    def __getitem__(self, index):
        return self._data[index]

    def __repr__(self):
        frame = None if self._reference_frame is None else self._reference_frame.name
        return f"{self.__class__.__name__}({self._data.tolist()}, frame={frame!r})"
