# pose_frames.py
"""
Reference frames whose transform to parent is given by a pose expressed in the parent frame.
"""
from typing import Iterable, Union

from framekit.frame_orientation import FrameQuaternion
from framekit.frame_pose import FramePose2D, FramePose3D
from framekit.frame_tools import check_if_frame_aware
from framekit.frame_tuple import FramePoint2D, FramePoint3D
from framekit.reference_frame import ReferenceFrame
from framekit.transform import RigidTransform


class PoseReferenceFrame(ReferenceFrame):
    """
    A frame located by a FramePose3D expressed in its parent.

    Every setter stores the new pose then calls update(), so the frame always reflects the
    last pose given. Poses, points and orientations expressed in any frame other than the
    parent are rejected with a ReferenceFrameMismatchError.
    """
    __slots__ = ("_pose",)

    def __init__(self, name: str, parent: ReferenceFrame, pose: Union[None, FramePose3D] = None):
        if parent is None:
            raise ValueError("A pose reference frame needs a parent frame")
        super().__init__(name, parent)
        self._pose = FramePose3D(parent)
        if pose is not None:
            try:
                self.set_pose_and_update(pose)
            except Exception:
                self._tree.remove(self)
                raise

    def update_transform_to_parent(self, transform_to_parent: RigidTransform) -> RigidTransform:
        return self._pose.to_transform()

    def get_pose(self) -> FramePose3D:
        return self._pose.copy()

    def set_pose_and_update(self, pose: FramePose3D) -> None:
        self._pose.set(pose)
        self.update()

    def set_transform_and_update(self, transform_to_parent: RigidTransform) -> None:
        self._pose.set_from_transform(transform_to_parent)
        self.update()

    def set_position_and_update(self, position: Union[FramePoint3D, Iterable]) -> None:
        check_if_frame_aware(self._pose, position)
        self._pose.set_position(position)
        self.update()

    def set_orientation_and_update(self, orientation: Union[FrameQuaternion, Iterable]) -> None:
        check_if_frame_aware(self._pose, orientation)
        self._pose.set_orientation(orientation)
        self.update()

    def set_position_and_orientation_and_update(self, position, orientation) -> None:
        check_if_frame_aware(self._pose, position)
        check_if_frame_aware(self._pose, orientation)
        self._pose.set(position, orientation)
        self.update()


class Pose2DReferenceFrame(ReferenceFrame):
    """A frame located in the XY-plane of its parent by a FramePose2D."""
    __slots__ = ("_pose",)

    def __init__(self, name: str, parent: ReferenceFrame, pose: Union[None, FramePose2D] = None):
        if parent is None:
            raise ValueError("A pose reference frame needs a parent frame")
        super().__init__(name, parent)
        self._pose = FramePose2D(parent)
        if pose is not None:
            try:
                self.set_pose_and_update(pose)
            except Exception:
                self._tree.remove(self)
                raise

    def update_transform_to_parent(self, transform_to_parent: RigidTransform) -> RigidTransform:
        return self._pose.to_transform()

    def get_pose(self) -> FramePose2D:
        return self._pose.copy()

    def set_pose_and_update(self, pose: FramePose2D) -> None:
        self._pose.set(pose)
        self.update()

    def set_position_and_update(self, position: Union[FramePoint2D, Iterable]) -> None:
        check_if_frame_aware(self._pose, position)
        self._pose.set(position)
        self.update()

    def set_yaw_and_update(self, yaw: float) -> None:
        self._pose.yaw = yaw
        self.update()
