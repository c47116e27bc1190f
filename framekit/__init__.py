"""
Framekit: reference-frame trees with lazily cached transforms, frame-aware points, vectors,
orientations and poses, and a 3x3 SVD producing proper rotations.

Frames are organized in trees; values tagged with a frame can only be combined with values
expressed in the very same frame, and are moved between frames with `change_frame`.
"""

__version__ = version = "0.1.0"

# exposing the public API of the package
from framekit.axis import Axis3D
from framekit.errors import (
    FramekitError,
    ReferenceFrameMismatchError,
    CrossRootTransformError,
    FrameRegistryError,
    RemovedFrameError,
    NotAnXYTransformError,
)
from framekit.transform import RigidTransform
from framekit.svd import SingularValueDecomposition3D, SVD3DOutput, pure_rotation
from framekit.reference_frame import (
    FrameTree,
    ReferenceFrame,
    create_root_frame,
    create_child_frame,
    create_fixed_frame,
    create_fixed_translation_frame,
    create_changing_frame,
    set_transform_holder,
    update,
    get_transform_to_root,
    get_transform_to_desired_frame,
    verify_same_roots,
    remove_frame,
    get_world_frame,
    clear_world_frame_tree,
)
from framekit.frame_tools import check_reference_frame_match
from framekit.frame_tuple import (
    FramePoint2D,
    FramePoint3D,
    FrameVector2D,
    FrameVector3D,
)
from framekit.frame_orientation import FrameQuaternion
from framekit.frame_pose import FramePose2D, FramePose3D
from framekit.pose_frames import PoseReferenceFrame, Pose2DReferenceFrame

__all__ = [
    "Axis3D",
    "FramekitError",
    "ReferenceFrameMismatchError",
    "CrossRootTransformError",
    "FrameRegistryError",
    "RemovedFrameError",
    "NotAnXYTransformError",
    "RigidTransform",
    "SingularValueDecomposition3D",
    "SVD3DOutput",
    "pure_rotation",
    "FrameTree",
    "ReferenceFrame",
    "create_root_frame",
    "create_child_frame",
    "create_fixed_frame",
    "create_fixed_translation_frame",
    "create_changing_frame",
    "set_transform_holder",
    "update",
    "get_transform_to_root",
    "get_transform_to_desired_frame",
    "verify_same_roots",
    "remove_frame",
    "get_world_frame",
    "clear_world_frame_tree",
    "check_reference_frame_match",
    "FramePoint2D",
    "FramePoint3D",
    "FrameVector2D",
    "FrameVector3D",
    "FrameQuaternion",
    "FramePose2D",
    "FramePose3D",
    "PoseReferenceFrame",
    "Pose2DReferenceFrame",
]
