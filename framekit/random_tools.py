# random_tools.py
"""
Random generators for transforms, frames and frame-aware values.

All the generators take a numpy `Generator` (see `numpy.random.default_rng`) so that test
scenarios are reproducible from a seed.
"""
import itertools
import math
from typing import List, Optional

import numpy as np
from numpy.random import Generator

from framekit.frame_orientation import FrameQuaternion
from framekit.frame_pose import FramePose2D, FramePose3D
from framekit.frame_tuple import FramePoint2D, FramePoint3D, FrameVector2D, FrameVector3D
from framekit.reference_frame import ReferenceFrame, create_fixed_frame, get_world_frame
from framekit.transform import RigidTransform

_name_counter = itertools.count()


def _next_name(prefix: str) -> str:
    return f"{prefix}{next(_name_counter)}"


def next_quaternion(rng: Generator) -> np.ndarray:
    """Uniformly distributed unit [x, y, z, w] quaternion."""
    q = rng.standard_normal(4)
    while np.linalg.norm(q) < 1e-6:
        q = rng.standard_normal(4)
    return q / np.linalg.norm(q)


def next_rotation_matrix(rng: Generator) -> np.ndarray:
    return RigidTransform.from_quaternion(next_quaternion(rng)).rotation


def next_rigid_transform(rng: Generator, translation_min_max: float = 1.0) -> RigidTransform:
    """Random rotation and a translation with coordinates in [-translation_min_max, translation_min_max]."""
    translation = rng.uniform(-translation_min_max, translation_min_max, 3)
    return RigidTransform.from_quaternion(next_quaternion(rng), translation)


def next_rigid_transform_2d(rng: Generator, translation_min_max: float = 1.0) -> RigidTransform:
    """Random yaw and a translation in the XY-plane."""
    translation = np.zeros(3)
    translation[:2] = rng.uniform(-translation_min_max, translation_min_max, 2)
    return RigidTransform.from_yaw(rng.uniform(-math.pi, math.pi), translation)


def next_reference_frame(
    rng: Generator,
    parent: Optional[ReferenceFrame] = None,
    name: Optional[str] = None,
    use_2d_transform: bool = False,
) -> ReferenceFrame:
    """
    Create a frame fixed in `parent` (the world frame by default) with a random transform.
    """
    if parent is None:
        parent = get_world_frame()
    if name is None:
        name = _next_name("randomFrame")
    if use_2d_transform:
        transform = next_rigid_transform_2d(rng)
    else:
        transform = next_rigid_transform(rng)
    return create_fixed_frame(name, parent, transform)


def next_reference_frame_tree(
    rng: Generator,
    root: Optional[ReferenceFrame] = None,
    number_of_frames: int = 20,
    use_2d_transforms: bool = False,
    name_prefix: str = "randomFrame",
) -> List[ReferenceFrame]:
    """
    Grow a random tree of fixed frames below `root` (the world frame by default).

    Each new frame picks its parent uniformly among the frames created before it.

    Returns:
        The list of frames, `root` first.
    """
    if root is None:
        root = get_world_frame()
    frames = [root]
    for _ in range(number_of_frames):
        parent = frames[int(rng.integers(len(frames)))]
        frames.append(next_reference_frame(rng, parent, _next_name(name_prefix), use_2d_transforms))
    return frames


def next_frame_point3d(rng: Generator, frame: ReferenceFrame, min_max: float = 1.0) -> FramePoint3D:
    return FramePoint3D(frame, rng.uniform(-min_max, min_max, 3))


def next_frame_vector3d(rng: Generator, frame: ReferenceFrame, min_max: float = 1.0) -> FrameVector3D:
    return FrameVector3D(frame, rng.uniform(-min_max, min_max, 3))


def next_frame_point2d(rng: Generator, frame: ReferenceFrame, min_max: float = 1.0) -> FramePoint2D:
    return FramePoint2D(frame, rng.uniform(-min_max, min_max, 2))


def next_frame_vector2d(rng: Generator, frame: ReferenceFrame, min_max: float = 1.0) -> FrameVector2D:
    return FrameVector2D(frame, rng.uniform(-min_max, min_max, 2))


def next_frame_quaternion(rng: Generator, frame: ReferenceFrame) -> FrameQuaternion:
    return FrameQuaternion(frame, next_quaternion(rng))


def next_frame_pose3d(rng: Generator, frame: ReferenceFrame, position_min_max: float = 1.0) -> FramePose3D:
    return FramePose3D(frame, rng.uniform(-position_min_max, position_min_max, 3), next_quaternion(rng))


def next_frame_pose2d(rng: Generator, frame: ReferenceFrame, position_min_max: float = 1.0) -> FramePose2D:
    return FramePose2D(frame, rng.uniform(-position_min_max, position_min_max, 2), rng.uniform(-math.pi, math.pi))


def next_matrix3d(rng: Generator, min_max: float = 1.0) -> np.ndarray:
    return rng.uniform(-min_max, min_max, (3, 3))


def next_diagonal_matrix3d(rng: Generator, min_max: float = 1.0) -> np.ndarray:
    return np.diag(rng.uniform(-min_max, min_max, 3))


def next_symmetric_matrix3d(rng: Generator, min_max: float = 1.0) -> np.ndarray:
    M = rng.uniform(-min_max, min_max, (3, 3))
    return 0.5 * (M + M.T)
