# frame_pose.py
"""
Frame-aware poses: a position and an orientation expressed in one reference frame.
"""
import math
from typing import Iterable, Optional

from framekit.errors import NotAnXYTransformError
from framekit.frame_orientation import FrameQuaternion
from framekit.frame_tools import check_reference_frame_match
from framekit.frame_tuple import FramePoint2D, FramePoint3D, _require_frame
from framekit.geometry import quaternion_slerp, shift_angle_to_plus_minus_pi
from framekit.transform import RigidTransform, ROTATION_EPSILON


class FramePose3D:
    """
    A 3D pose: a FramePoint3D and a FrameQuaternion always expressed in the same frame.

    The pose can be seen as the transform from a body frame to `reference_frame`.

    Args:
        frame_or_pose: the reference frame, or another FramePose3D to copy.
        position: optional array-like (or FramePoint3D in the same frame).
        orientation: optional [x, y, z, w] quaternion (or FrameQuaternion in the same frame).
    """
    __slots__ = ("_position", "_orientation")

    def __init__(self, frame_or_pose, position: Optional[Iterable] = None, orientation: Optional[Iterable] = None):
        if isinstance(frame_or_pose, FramePose3D):
            if position is not None or orientation is not None:
                raise ValueError("No position or orientation is expected when copying a FramePose3D")
            self._position = frame_or_pose._position.copy()
            self._orientation = frame_or_pose._orientation.copy()
            return
        frame = _require_frame(frame_or_pose)
        self._position = FramePoint3D(frame)
        self._orientation = FrameQuaternion(frame)
        if position is not None:
            self._position.set(position)
        if orientation is not None:
            self._orientation.set(orientation)

    @classmethod
    def from_transform(cls, frame, transform: RigidTransform) -> "FramePose3D":
        pose = cls(frame)
        pose.set_from_transform(transform)
        return pose

    @property
    def reference_frame(self):
        return self._position.reference_frame

    @property
    def position(self) -> FramePoint3D:
        return self._position

    @property
    def orientation(self) -> FrameQuaternion:
        return self._orientation

    @property
    def x(self) -> float:
        return self._position.x

    @property
    def y(self) -> float:
        return self._position.y

    @property
    def z(self) -> float:
        return self._position.z

    def get_yaw(self) -> float:
        return self._orientation.get_yaw()

    # ------------------------------------------------------------------
    # setters
    #

    def set_including_frame(self, frame_or_pose, position: Optional[Iterable] = None, orientation: Optional[Iterable] = None) -> None:
        if isinstance(frame_or_pose, FramePose3D):
            self._position.set_including_frame(frame_or_pose._position)
            self._orientation.set_including_frame(frame_or_pose._orientation)
            return
        frame = _require_frame(frame_or_pose)
        self._position.set_to_zero(frame)
        self._orientation.set_to_zero(frame)
        if position is not None:
            self._position.set(position)
        if orientation is not None:
            self._orientation.set(orientation)

    def set_reference_frame(self, frame) -> None:
        self._position.set_reference_frame(frame)
        self._orientation.set_reference_frame(frame)

    def set(self, pose_or_position, orientation: Optional[Iterable] = None) -> None:
        """Set from another pose in the same frame, or from a position and an orientation."""
        if isinstance(pose_or_position, FramePose3D):
            check_reference_frame_match(self, pose_or_position)
            self._position.set(pose_or_position._position)
            self._orientation.set(pose_or_position._orientation)
            return
        self._position.set(pose_or_position)
        if orientation is not None:
            self._orientation.set(orientation)

    def set_position(self, *position) -> None:
        self._position.set(*position)

    def set_orientation(self, *orientation) -> None:
        self._orientation.set(*orientation)

    def set_to_zero(self, frame=None) -> None:
        self._position.set_to_zero(frame)
        self._orientation.set_to_zero(frame)

    def set_to_nan(self, frame=None) -> None:
        self._position.set_to_nan(frame)
        self._orientation.set_to_nan(frame)

    def contains_nan(self) -> bool:
        return self._position.contains_nan() or self._orientation.contains_nan()

    def set_from_transform(self, transform: RigidTransform) -> None:
        """Set the position and orientation from a transform, keeping the frame."""
        self._position.set(transform.translation)
        self._orientation.set_from_rotation_matrix(transform.rotation)

    def to_transform(self) -> RigidTransform:
        return RigidTransform.from_unchecked_values(
            self._position.to_array(), self._orientation.to_rotation_matrix())

    # ------------------------------------------------------------------
    # frame changes
    #

    def apply_transform(self, transform: RigidTransform) -> None:
        self._position.apply_transform(transform)
        self._orientation.apply_transform(transform)

    def apply_inverse_transform(self, transform: RigidTransform) -> None:
        self._position.apply_inverse_transform(transform)
        self._orientation.apply_inverse_transform(transform)

    def change_frame(self, desired_frame) -> None:
        if desired_frame is self.reference_frame:
            return
        transform = self.reference_frame.get_transform_to_desired_frame(desired_frame)
        self.apply_transform(transform)
        self.set_reference_frame(desired_frame)

    def set_matching_frame(self, source: "FramePose3D") -> None:
        """Copy `source` with its frame, then change back to the original frame of self."""
        original_position = self._position.copy()
        original_orientation = self._orientation.copy()
        self.set_including_frame(source)
        try:
            self.change_frame(original_position.reference_frame)
        except Exception:
            self._position.set_including_frame(original_position)
            self._orientation.set_including_frame(original_orientation)
            raise

    def set_from_reference_frame(self, frame) -> None:
        """Set to the pose of `frame` expressed in the current frame of self."""
        self.set_matching_frame(frame)

    def append_transform(self, transform: RigidTransform) -> None:
        """Compose this pose with a transform expressed in the body frame of the pose."""
        self.set_from_transform(self.to_transform() @ transform)

    def prepend_transform(self, transform: RigidTransform) -> None:
        """Compose a transform expressed in the reference frame with this pose."""
        self.set_from_transform(transform @ self.to_transform())

    # ------------------------------------------------------------------
    # operations with other poses
    #

    def interpolate(self, pose, other_or_alpha, alpha: float = None) -> None:
        """
        Linear interpolation of the position, spherical of the orientation.

        interpolate(b, alpha) goes from self to b, interpolate(a, b, alpha) from a to b.
        """
        if alpha is None:
            alpha = other_or_alpha
            start, end = self, pose
        else:
            start, end = pose, other_or_alpha
        check_reference_frame_match(self, start)
        check_reference_frame_match(self, end)
        q = quaternion_slerp(start._orientation._data, end._orientation._data, float(alpha))
        self._position.interpolate(start._position, end._position, alpha)
        self._orientation.set(q)

    def position_distance(self, other) -> float:
        other_position = other._position if isinstance(other, FramePose3D) else other
        return self._position.distance(other_position)

    def orientation_distance(self, other) -> float:
        other_orientation = other._orientation if isinstance(other, FramePose3D) else other
        return self._orientation.distance(other_orientation)

    def epsilon_equals(self, other: "FramePose3D", epsilon: float) -> bool:
        if not isinstance(other, FramePose3D):
            return False
        return (self._position.epsilon_equals(other._position, epsilon)
                and self._orientation.epsilon_equals(other._orientation, epsilon))

    def geometrically_equals(self, other: "FramePose3D", epsilon: float) -> bool:
        """
        Raises:
            ReferenceFrameMismatchError: if `other` is expressed in another frame.
        """
        check_reference_frame_match(self, other)
        return (self._position.geometrically_equals(other._position, epsilon)
                and self._orientation.geometrically_equals(other._orientation, epsilon))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FramePose3D):
            return NotImplemented
        return self.epsilon_equals(other, 0.0)

    __hash__ = None

    def copy(self) -> "FramePose3D":
        return self.__class__(self)

    def __copy__(self):
        return self.copy()

    def __deepcopy__(self, memo):
        return self.copy()

    def __repr__(self):
        return (f"{self.__class__.__name__}(position={self._position.to_array().tolist()}, "
                f"orientation={self._orientation.to_array().tolist()}, frame={self.reference_frame.name!r})")


class FramePose2D:
    """
    A pose in the XY-plane of a reference frame: a FramePoint2D and a yaw angle.

    Changing the frame of a 2D pose requires a transform whose rotation is a pure yaw.
    """
    __slots__ = ("_position", "_yaw")

    def __init__(self, frame_or_pose, position: Optional[Iterable] = None, yaw: float = 0.0):
        if isinstance(frame_or_pose, FramePose2D):
            self._position = frame_or_pose._position.copy()
            self._yaw = frame_or_pose._yaw
            return
        self._position = FramePoint2D(_require_frame(frame_or_pose))
        if position is not None:
            self._position.set(position)
        self._yaw = shift_angle_to_plus_minus_pi(float(yaw))

    @property
    def reference_frame(self):
        return self._position.reference_frame

    @property
    def position(self) -> FramePoint2D:
        return self._position

    @property
    def x(self) -> float:
        return self._position.x

    @property
    def y(self) -> float:
        return self._position.y

    @property
    def yaw(self) -> float:
        return self._yaw

    @yaw.setter
    def yaw(self, value: float):
        self._yaw = shift_angle_to_plus_minus_pi(float(value))

    def set_including_frame(self, frame_or_pose, position: Optional[Iterable] = None, yaw: float = 0.0) -> None:
        if isinstance(frame_or_pose, FramePose2D):
            self._position.set_including_frame(frame_or_pose._position)
            self._yaw = frame_or_pose._yaw
            return
        self._position.set_to_zero(frame_or_pose)
        if position is not None:
            self._position.set(position)
        self.yaw = yaw

    def set_reference_frame(self, frame) -> None:
        self._position.set_reference_frame(frame)

    def set(self, pose_or_position, yaw: Optional[float] = None) -> None:
        if isinstance(pose_or_position, FramePose2D):
            check_reference_frame_match(self, pose_or_position)
            self._position.set(pose_or_position._position)
            self._yaw = pose_or_position._yaw
            return
        self._position.set(pose_or_position)
        if yaw is not None:
            self.yaw = yaw

    def set_to_zero(self, frame=None) -> None:
        self._position.set_to_zero(frame)
        self._yaw = 0.0

    def set_to_nan(self, frame=None) -> None:
        self._position.set_to_nan(frame)
        self._yaw = math.nan

    def contains_nan(self) -> bool:
        return self._position.contains_nan() or math.isnan(self._yaw)

    def set_from_transform(self, transform: RigidTransform) -> None:
        """
        Raises:
            NotAnXYTransformError: if the rotation of the transform is not a pure yaw.
        """
        if not transform.is_rotation_2d(ROTATION_EPSILON):
            raise NotAnXYTransformError("Cannot set a FramePose2D from a transform that is not in the XY-plane")
        self._position.set(transform.translation[:2])
        self.yaw = transform.yaw()

    def to_transform(self) -> RigidTransform:
        return RigidTransform.from_yaw(self._yaw, (self.x, self.y, 0.0))

    def apply_transform(self, transform: RigidTransform) -> None:
        self._position.apply_transform(transform)
        self.yaw = self._yaw + transform.yaw()

    def apply_inverse_transform(self, transform: RigidTransform) -> None:
        self._position.apply_inverse_transform(transform)
        self.yaw = self._yaw - transform.yaw()

    def change_frame(self, desired_frame) -> None:
        """
        Raises:
            NotAnXYTransformError: if the two frames are not related by a pure yaw.
        """
        if desired_frame is self.reference_frame:
            return
        transform = self.reference_frame.get_transform_to_desired_frame(desired_frame)
        self.apply_transform(transform)
        self.set_reference_frame(desired_frame)

    def set_matching_frame(self, source: "FramePose2D") -> None:
        original_position = self._position.copy()
        original_yaw = self._yaw
        self.set_including_frame(source)
        try:
            self.change_frame(original_position.reference_frame)
        except Exception:
            self._position.set_including_frame(original_position)
            self._yaw = original_yaw
            raise

    def set_from_reference_frame(self, frame) -> None:
        """Set to the pose of `frame` in the current frame of self, which must share its XY-plane."""
        self.set_matching_frame(frame)

    def interpolate(self, pose, other_or_alpha, alpha: float = None) -> None:
        """Linear interpolation of the position, shortest-arc interpolation of the yaw."""
        if alpha is None:
            alpha = other_or_alpha
            start, end = self, pose
        else:
            start, end = pose, other_or_alpha
        check_reference_frame_match(self, start)
        check_reference_frame_match(self, end)
        delta = shift_angle_to_plus_minus_pi(end._yaw - start._yaw)
        yaw = start._yaw + alpha * delta
        self._position.interpolate(start._position, end._position, alpha)
        self.yaw = yaw

    def position_distance(self, other: "FramePose2D") -> float:
        return self._position.distance(other._position)

    def orientation_distance(self, other: "FramePose2D") -> float:
        check_reference_frame_match(self, other)
        return abs(shift_angle_to_plus_minus_pi(other._yaw - self._yaw))

    def epsilon_equals(self, other: "FramePose2D", epsilon: float) -> bool:
        if not isinstance(other, FramePose2D):
            return False
        return (self._position.epsilon_equals(other._position, epsilon)
                and abs(shift_angle_to_plus_minus_pi(other._yaw - self._yaw)) <= epsilon)

    def geometrically_equals(self, other: "FramePose2D", epsilon: float) -> bool:
        return self.position_distance(other) <= epsilon and self.orientation_distance(other) <= epsilon

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FramePose2D):
            return NotImplemented
        return self.epsilon_equals(other, 0.0)

    __hash__ = None

    def copy(self) -> "FramePose2D":
        return self.__class__(self)

    def __copy__(self):
        return self.copy()

    def __deepcopy__(self, memo):
        return self.copy()

    def __repr__(self):
        return (f"{self.__class__.__name__}(position={self._position.to_array().tolist()}, "
                f"yaw={self._yaw}, frame={self.reference_frame.name!r})")
