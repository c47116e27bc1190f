# frame_tuple.py
"""
Points and vectors tagged with the reference frame their coordinates are expressed in.

Every operation combining two frame-aware values first checks that both are expressed in
the very same frame and raises `ReferenceFrameMismatchError` otherwise. Plain array-likes are
accepted wherever a frame-aware value is, and are assumed to be in the frame of `self`.
"""
import math
from typing import Iterator, Union

import numpy as np
from numpy import asarray as np_asarray
from numpy import float64 as np_float64

from framekit.errors import NotAnXYTransformError
from framekit.frame_tools import check_reference_frame_match
from framekit.transform import RigidTransform, ROTATION_EPSILON


def _require_frame(frame):
    from framekit.reference_frame import ReferenceFrame
    if not isinstance(frame, ReferenceFrame):
        raise TypeError(f"Expected a ReferenceFrame, got {type(frame).__name__}")
    return frame


class FrameTuple:
    """
    Base of the frame-aware 2D and 3D tuples.

    Construction:
        FramePoint3D(frame)                 zero, expressed in frame
        FramePoint3D(frame, x, y, z)
        FramePoint3D(frame, [x, y, z])
        FramePoint3D(other)                 copies coordinates and frame of another frame tuple
        FramePoint3D(other_2d, z)           2D values seed the first two coordinates
    """
    __slots__ = ("_data", "_reference_frame")
    _SIZE = 3

    def __init__(self, frame_or_value, *coordinates):
        self._data = np.zeros(self._SIZE, dtype=np_float64)
        self._reference_frame = None
        self.set_including_frame(frame_or_value, *coordinates)

    # ------------------------------------------------------------------
    # coordinate parsing
    #

    def _parse_coordinates(self, coordinates) -> np.ndarray:
        size = self._SIZE
        if len(coordinates) == 0:
            return np.zeros(size, dtype=np_float64)
        if len(coordinates) == 1 and np.ndim(coordinates[0]) > 0:
            data = np.array(coordinates[0], dtype=np_float64)
        else:
            data = np.array(coordinates, dtype=np_float64)
        if data.shape != (size,):
            raise ValueError(f"Expected {size} coordinates, got shape {data.shape}")
        return data

    def _from_frame_tuple(self, other: "FrameTuple", extra) -> np.ndarray:
        size = self._SIZE
        data = np.zeros(size, dtype=np_float64)
        n = min(size, other._SIZE)
        data[:n] = other._data[:n]
        extra = np.array(extra, dtype=np_float64).ravel()
        if len(extra) > 0 and n + len(extra) != size:
            raise ValueError(f"Cannot build {size} coordinates from a {other._SIZE}D tuple and {len(extra)} value(s)")
        data[n:n + len(extra)] = extra
        return data

    def _coordinates_of(self, value) -> np.ndarray:
        """Coordinates of a frame-aware value after checking its frame, or of a plain array-like."""
        if isinstance(value, FrameTuple):
            check_reference_frame_match(self, value)
            if value._SIZE != self._SIZE:
                raise ValueError(f"Expected a {self._SIZE}D tuple, got a {value._SIZE}D one")
            return value._data
        data = np_asarray(value, dtype=np_float64)
        if data.shape != (self._SIZE,):
            raise ValueError(f"Expected {self._SIZE} coordinates, got shape {data.shape}")
        return data

    # ------------------------------------------------------------------
    # accessors
    #

    @property
    def reference_frame(self):
        return self._reference_frame

    @property
    def x(self) -> float:
        return float(self._data[0])

    @x.setter
    def x(self, value: float):
        self._data[0] = value

    @property
    def y(self) -> float:
        return float(self._data[1])

    @y.setter
    def y(self, value: float):
        self._data[1] = value

    def to_array(self) -> np.ndarray:
        return self._data.copy()

    # ------------------------------------------------------------------
    # setters
    #

    def set_including_frame(self, frame_or_value, *coordinates) -> None:
        """
        Overwrite both the coordinates and the frame, without any transformation.

        Accepts either a reference frame followed by coordinates, or another frame tuple
        (optionally followed by the missing coordinates when it has a lower dimension).
        """
        if isinstance(frame_or_value, FrameTuple):
            data = self._from_frame_tuple(frame_or_value, coordinates)
            frame = frame_or_value._reference_frame
        else:
            frame = _require_frame(frame_or_value)
            data = self._parse_coordinates(coordinates)
        self._data = data
        self._reference_frame = frame

    def set_reference_frame(self, frame) -> None:
        """Rebind to another frame keeping the coordinates untouched."""
        self._reference_frame = _require_frame(frame)

    def set(self, *value) -> None:
        """Set the coordinates from another tuple in the same frame, an array-like or scalars."""
        if len(value) == 1 and isinstance(value[0], FrameTuple):
            self._data = self._coordinates_of(value[0]).copy()
        else:
            self._data = self._parse_coordinates(value)

    def set_to_zero(self, frame=None) -> None:
        if frame is not None:
            self._reference_frame = _require_frame(frame)
        self._data[:] = 0.0

    def set_to_nan(self, frame=None) -> None:
        if frame is not None:
            self._reference_frame = _require_frame(frame)
        self._data[:] = np.nan

    def contains_nan(self) -> bool:
        return bool(np.isnan(self._data).any())

    # ------------------------------------------------------------------
    # arithmetic
    #

    def add(self, value, other=None) -> None:
        """self = self + value, or self = value + other when other is given."""
        if other is None:
            self._data = self._data + self._coordinates_of(value)
        else:
            self._data = self._coordinates_of(value) + self._coordinates_of(other)

    def sub(self, value, other=None) -> None:
        """self = self - value, or self = value - other when other is given."""
        if other is None:
            self._data = self._data - self._coordinates_of(value)
        else:
            self._data = self._coordinates_of(value) - self._coordinates_of(other)

    def scale(self, factor: float) -> None:
        self._data = self._data * factor

    def scale_add(self, factor: float, value, other=None) -> None:
        """self = factor * self + value, or self = factor * value + other."""
        if other is None:
            self._data = factor * self._data + self._coordinates_of(value)
        else:
            self._data = factor * self._coordinates_of(value) + self._coordinates_of(other)

    def scale_sub(self, factor: float, value, other=None) -> None:
        """self = factor * self - value, or self = factor * value - other."""
        if other is None:
            self._data = factor * self._data - self._coordinates_of(value)
        else:
            self._data = factor * self._coordinates_of(value) - self._coordinates_of(other)

    def interpolate(self, value, other_or_alpha, alpha: float = None) -> None:
        """
        Linear interpolation.

        interpolate(b, alpha) sets self = (1 - alpha) * self + alpha * b;
        interpolate(a, b, alpha) sets self = (1 - alpha) * a + alpha * b.
        """
        if alpha is None:
            alpha = other_or_alpha
            start, end = self._data, self._coordinates_of(value)
        else:
            start, end = self._coordinates_of(value), self._coordinates_of(other_or_alpha)
        self._data = (1.0 - alpha) * start + alpha * end

    def negate(self) -> None:
        self._data = -self._data

    def absolute(self) -> None:
        self._data = np.abs(self._data)

    def clip_to_min_max(self, minimum: float, maximum: float) -> None:
        self._data = np.clip(self._data, minimum, maximum)

    # ------------------------------------------------------------------
    # frame changes
    #

    def _transform_data(self, transform: RigidTransform, data: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def _inverse_transform_data(self, transform: RigidTransform, data: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def apply_transform(self, transform: RigidTransform) -> None:
        """Transform the coordinates in place; the frame is unchanged."""
        self._data = self._transform_data(transform, self._data)

    def apply_inverse_transform(self, transform: RigidTransform) -> None:
        self._data = self._inverse_transform_data(transform, self._data)

    def change_frame(self, desired_frame) -> None:
        """
        Express this value in `desired_frame`.

        Both the coordinates and the frame are replaced together once the new coordinates
        are computed.

        Raises:
            CrossRootTransformError: if `desired_frame` is not in the same tree.
        """
        if desired_frame is self._reference_frame:
            return
        transform = self._reference_frame.get_transform_to_desired_frame(desired_frame)
        data = self._transform_data(transform, self._data)
        self._data = data
        self._reference_frame = desired_frame

    def set_matching_frame(self, source, *coordinates) -> None:
        """
        Set this value from a source expressed in another frame, keeping the frame of self.

        The source (a frame tuple, or a frame followed by coordinates) is first copied with its
        frame, then brought back to the original frame of self with change_frame.
        """
        original_frame = self._reference_frame
        original_data = self._data
        self.set_including_frame(source, *coordinates)
        try:
            self.change_frame(original_frame)
        except Exception:
            self._data = original_data
            self._reference_frame = original_frame
            raise

    def set_from_reference_frame(self, frame) -> None:
        """Set to the origin (or zero) of `frame`, expressed in the current frame of self."""
        self.set_matching_frame(frame)

    # ------------------------------------------------------------------
    # comparisons
    #

    def coordinates_equal(self, other, epsilon: float = 0.0) -> bool:
        """Compare the coordinates only, whatever the frames."""
        data = other._data if isinstance(other, FrameTuple) else np_asarray(other, dtype=np_float64)
        if data.shape != self._data.shape:
            return False
        if epsilon == 0.0:
            return bool(np.array_equal(self._data, data))
        return bool(np.all(np.abs(self._data - data) <= epsilon))

    def epsilon_equals(self, other: "FrameTuple", epsilon: float) -> bool:
        """True if both values are in the same frame and every coordinate is within epsilon."""
        if not isinstance(other, FrameTuple) or other._reference_frame is not self._reference_frame:
            return False
        return self.coordinates_equal(other, epsilon)

    def equals(self, other: "FrameTuple") -> bool:
        return self.epsilon_equals(other, 0.0)

    def geometrically_equals(self, other, epsilon: float) -> bool:
        """
        True if the distance between both values is at most epsilon.

        Raises:
            ReferenceFrameMismatchError: if `other` is expressed in another frame.
        """
        return bool(np.linalg.norm(self._data - self._coordinates_of(other)) <= epsilon)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FrameTuple):
            return NotImplemented
        return type(self) is type(other) and self.equals(other)

    __hash__ = None

    # ------------------------------------------------------------------
    # python protocols
    #

    def copy(self):
        instance = object.__new__(self.__class__)
        instance._data = self._data.copy()
        instance._reference_frame = self._reference_frame
        return instance

    def __copy__(self):
        return self.copy()

    def __deepcopy__(self, memo):
        # the frame is shared, never duplicated
        return self.copy()

    def __iter__(self) -> Iterator[float]:
        return iter(self._data.tolist())

    def __len__(self) -> int:
        return self._SIZE

    def __getitem__(self, index):
        return self._data[index]

    def __array__(self, dtype=None, copy=None):
        return np.array(self._data, dtype=dtype)

    def __repr__(self):
        frame = None if self._reference_frame is None else self._reference_frame.name
        return f"{self.__class__.__name__}({self._data.tolist()}, frame={frame!r})"

    def __str__(self):
        return f"{tuple(self._data.tolist())} - {self._reference_frame}"


class FrameTuple2D(FrameTuple):
    """
    A frame-aware 2D tuple, living in the XY-plane of its frame.

    Changing the frame of a 2D value requires the transform between the two frames to be
    a pure rotation about the z-axis; use change_frame_and_project_to_xy_plane otherwise.
    """
    __slots__ = ()
    _SIZE = 2

    def _transform_data_3d(self, transform: RigidTransform, data: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def _inverse_transform_data_3d(self, transform: RigidTransform, data: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def _transform_data(self, transform: RigidTransform, data: np.ndarray) -> np.ndarray:
        if not transform.is_rotation_2d(ROTATION_EPSILON):
            raise NotAnXYTransformError(f"Cannot transform a {self.__class__.__name__}: the rotation is not a yaw")
        return self._transform_data_3d(transform, np.array((data[0], data[1], 0.0)))[:2]

    def _inverse_transform_data(self, transform: RigidTransform, data: np.ndarray) -> np.ndarray:
        if not transform.is_rotation_2d(ROTATION_EPSILON):
            raise NotAnXYTransformError(f"Cannot transform a {self.__class__.__name__}: the rotation is not a yaw")
        return self._inverse_transform_data_3d(transform, np.array((data[0], data[1], 0.0)))[:2]

    def change_frame_and_project_to_xy_plane(self, desired_frame) -> None:
        """Change the frame through any rotation and drop the out-of-plane component."""
        if desired_frame is self._reference_frame:
            return
        transform = self._reference_frame.get_transform_to_desired_frame(desired_frame)
        data = self._transform_data_3d(transform, np.array((self._data[0], self._data[1], 0.0)))[:2]
        self._data = data
        self._reference_frame = desired_frame


class FrameTuple3D(FrameTuple):
    __slots__ = ()
    _SIZE = 3

    @property
    def z(self) -> float:
        return float(self._data[2])

    @z.setter
    def z(self, value: float):
        self._data[2] = value

    def _transform_data(self, transform: RigidTransform, data: np.ndarray) -> np.ndarray:
        return self._transform_data_3d(transform, data)

    def _inverse_transform_data(self, transform: RigidTransform, data: np.ndarray) -> np.ndarray:
        return self._inverse_transform_data_3d(transform, data)

    def change_frame_and_project_to_xy_plane(self, desired_frame) -> None:
        """Change the frame then zero the z coordinate."""
        self.change_frame(desired_frame)
        self._data[2] = 0.0


class _PointOperations:
    """Transformation rules and metric operations of points."""
    __slots__ = ()

    def _transform_data_3d(self, transform: RigidTransform, data: np.ndarray) -> np.ndarray:
        return transform.transform_point(data)

    def _inverse_transform_data_3d(self, transform: RigidTransform, data: np.ndarray) -> np.ndarray:
        return transform.inverse_transform_point(data)

    def distance_squared(self, other) -> float:
        diff = self._data - self._coordinates_of(other)
        return float(diff @ diff)

    def distance(self, other) -> float:
        return math.sqrt(self.distance_squared(other))

    def distance_from_origin(self) -> float:
        return float(np.linalg.norm(self._data))


class _VectorOperations:
    """Transformation rules and algebra of free vectors; translations are ignored."""
    __slots__ = ()

    def _transform_data_3d(self, transform: RigidTransform, data: np.ndarray) -> np.ndarray:
        return transform.transform_vector(data)

    def _inverse_transform_data_3d(self, transform: RigidTransform, data: np.ndarray) -> np.ndarray:
        return transform.inverse_transform_vector(data)

    def dot(self, other) -> float:
        return float(self._data @ self._coordinates_of(other))

    def norm_squared(self) -> float:
        return float(self._data @ self._data)

    def norm(self) -> float:
        return math.sqrt(self.norm_squared())

    def normalize(self) -> None:
        """Scale to unit norm; a zero vector becomes NaN."""
        norm = self.norm()
        if norm == 0.0:
            self._data[:] = np.nan
        else:
            self._data = self._data / norm

    def angle(self, other) -> float:
        """Angle in [0, pi] between this vector and another."""
        other_data = self._coordinates_of(other)
        norm_product = self.norm() * float(np.linalg.norm(other_data))
        if norm_product == 0.0:
            return 0.0
        cos_angle = float(self._data @ other_data) / norm_product
        return math.acos(min(1.0, max(-1.0, cos_angle)))


class FramePoint2D(_PointOperations, FrameTuple2D):
    __slots__ = ()


class FrameVector2D(_VectorOperations, FrameTuple2D):
    __slots__ = ()

    def cross(self, other) -> float:
        """The z-component of the 3D cross product of the two vectors."""
        other_data = self._coordinates_of(other)
        return float(self._data[0] * other_data[1] - self._data[1] * other_data[0])


class FramePoint3D(_PointOperations, FrameTuple3D):
    __slots__ = ()

    def distance_xy(self, other) -> float:
        diff = self._data[:2] - self._coordinates_of(other)[:2]
        return math.sqrt(float(diff @ diff))


class FrameVector3D(_VectorOperations, FrameTuple3D):
    __slots__ = ()

    def cross(self, other) -> "FrameVector3D":
        """Return self x other, expressed in the frame of self."""
        result = self.copy()
        result._data = np.cross(self._data, self._coordinates_of(other))
        return result

    def set_to_cross(self, value, other) -> None:
        """self = value x other."""
        self._data = np.cross(self._coordinates_of(value), self._coordinates_of(other))


FramePointLike = Union[FramePoint2D, FramePoint3D]
FrameVectorLike = Union[FrameVector2D, FrameVector3D]
