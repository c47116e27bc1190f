# transform.py
import numpy as np
from numpy import asarray as np_asarray
from numpy import float64 as np_float64
from typing import Union, Iterable, Tuple
from framekit.geometry import (
    quaternion_to_rotation,
    rotation_to_quaternion,
    euler_to_rotation,
    rotation_to_euler,
    axis_angle_to_rotation,
    rotation_to_axis_angle,
    yaw_to_rotation,
    rotation_to_yaw,
    is_rotation_2d,
)
from framekit.svd import pure_rotation

_BASE_TRANSLATION = np.zeros(3, dtype=np_float64)
_BASE_ROTATION = np.eye(3, dtype=np_float64)

# tolerance used to decide whether a rotation is proper or a pure yaw
ROTATION_EPSILON = 1e-9


class RigidTransform:
    """
    A rigid transformation in 3D space: a proper rotation followed by a translation.

    Applied to a point p, the transform gives R @ p + t. Composition follows the matrix
    convention: (A @ B) applies B first, then A.
    """

    __slots__ = ('_translation', '_rotation')

    def __init__(self, translation: Union[None, Iterable] = None, rotation: Union[None, Iterable] = None):
        if translation is not None:
            self._translation = np.array(translation, dtype=np_float64)
            if self._translation.shape != (3,):
                raise ValueError(
                    f"Translation must be a 3D vector, got {self._translation.shape}")
        else:
            self._translation = _BASE_TRANSLATION.copy()

        if rotation is not None:
            self._rotation = np.array(rotation, dtype=np_float64)
            if self._rotation.shape != (3, 3):
                raise ValueError(
                    f"Rotation must be a 3x3 matrix, got {self._rotation.shape}")
        else:
            self._rotation = _BASE_ROTATION.copy()

    @classmethod
    def identity(cls) -> "RigidTransform":
        """
        Create an identity RigidTransform.

        Returns:
            A RigidTransform with zero translation and identity rotation.
        """
        return cls.from_unchecked_values(_BASE_TRANSLATION.copy(), _BASE_ROTATION.copy())

    @classmethod
    def from_unchecked_values(cls, translation: np.ndarray, rotation: np.ndarray) -> "RigidTransform":
        """Create a RigidTransform without checking the validity of the inputs. Useful for performance when you are sure of the input shapes and types."""
        instance = object.__new__(cls)
        instance._translation = translation
        instance._rotation = rotation
        return instance

    @classmethod
    def from_translation(cls, translation: Iterable) -> "RigidTransform":
        return cls(translation=translation)

    @classmethod
    def from_rotation(cls, rotation: Iterable, translation: Union[None, Iterable] = None) -> "RigidTransform":
        return cls(translation=translation, rotation=rotation)

    @classmethod
    def from_quaternion(cls, quaternion: Iterable, translation: Union[None, Iterable] = None, w_last: bool = True) -> "RigidTransform":
        """
        Create a RigidTransform from a unit quaternion and an optional translation.

        Args:
            quaternion: 4-element array, [x, y, z, w] when w_last is True.
            translation: length-3 array.
            w_last: position of the scalar part of the quaternion.
        """
        q = np_asarray(quaternion, dtype=np_float64)
        if q.shape != (4,):
            raise ValueError(f"Quaternion must be a 4D vector, got {q.shape}")
        return cls(translation=translation, rotation=quaternion_to_rotation(q / np.linalg.norm(q), w_last))

    @classmethod
    def from_euler_angles(cls, roll: float, pitch: float, yaw: float, translation: Union[None, Iterable] = None, degrees: bool = False) -> "RigidTransform":
        return cls(translation=translation, rotation=euler_to_rotation(float(roll), float(pitch), float(yaw), degrees))

    @classmethod
    def from_axis_angle(cls, axis: Iterable, angle: float, translation: Union[None, Iterable] = None) -> "RigidTransform":
        return cls(translation=translation, rotation=axis_angle_to_rotation(np_asarray(axis, dtype=np_float64), float(angle)))

    @classmethod
    def from_yaw(cls, yaw: float, translation: Union[None, Iterable] = None) -> "RigidTransform":
        """A transform rotating about the z-axis only, as used for 2D frames."""
        return cls(translation=translation, rotation=yaw_to_rotation(float(yaw)))

    @classmethod
    def from_matrix(cls, matrix: Iterable) -> "RigidTransform":
        """
        Create a RigidTransform from a 4x4 homogeneous matrix.

        The upper-left block is projected onto the nearest proper rotation.
        """
        matrix = np_asarray(matrix, dtype=np_float64)
        if matrix.shape != (4, 4):
            raise ValueError(f"Invalid matrix shape: {matrix.shape}")
        return cls.from_unchecked_values(matrix[:3, 3].copy(), pure_rotation(matrix[:3, :3]))

    @property
    def translation(self) -> np.ndarray:
        """Get the translation vector."""
        return self._translation

    @property
    def rotation(self) -> np.ndarray:
        """Get the rotation matrix."""
        return self._rotation

    def rotation_as_quaternion(self, w_last: bool = True) -> np.ndarray:
        return rotation_to_quaternion(self._rotation, w_last)

    def rotation_as_euler(self, degrees: bool = False) -> Tuple[float, float, float]:
        return rotation_to_euler(self._rotation, degrees)

    def rotation_as_axis_angle(self) -> Tuple[np.ndarray, float]:
        """Unit axis and angle in [0, pi] of the rotation part."""
        return rotation_to_axis_angle(self._rotation)

    def yaw(self) -> float:
        return rotation_to_yaw(self._rotation)

    def is_rotation_2d(self, epsilon: float = ROTATION_EPSILON) -> bool:
        """True if the rotation part only rotates about the z-axis."""
        return is_rotation_2d(self._rotation, epsilon)

    def is_rigid(self, epsilon: float = ROTATION_EPSILON) -> bool:
        """True if the rotation part is orthonormal with a determinant of +1."""
        R = self._rotation
        return bool(np.allclose(R @ R.T, _BASE_ROTATION, atol=epsilon)
                    and abs(np.linalg.det(R) - 1.0) <= epsilon)

    def normalize_rotation(self) -> "RigidTransform":
        """
        Project the rotation part onto the nearest proper rotation, in place.

        Useful after long chains of compositions where numerical drift accumulates.

        Returns:
            self, for chaining.
        """
        self._rotation = pure_rotation(self._rotation)
        return self

    def inverse(self) -> "RigidTransform":
        """
        Invert this RigidTransform.

        Returns:
            A new RigidTransform that is the inverse of this transform.
        """
        rotation_t = self._rotation.T.copy()
        return self.__class__.from_unchecked_values(
            -rotation_t @ self._translation,
            rotation_t
        )

    def multiply_inverse_of(self, other: "RigidTransform") -> "RigidTransform":
        """Return self @ other.inverse() without building the intermediate inverse."""
        rotation = self._rotation @ other._rotation.T
        return self.__class__.from_unchecked_values(
            self._translation - rotation @ other._translation,
            rotation
        )

    def inverse_multiply(self, other: "RigidTransform") -> "RigidTransform":
        """Return self.inverse() @ other without building the intermediate inverse."""
        rotation_t = self._rotation.T
        return self.__class__.from_unchecked_values(
            rotation_t @ (other._translation - self._translation),
            rotation_t @ other._rotation
        )

    def to_matrix(self) -> np.ndarray:
        """
        Get the 4x4 homogeneous matrix of this RigidTransform.
        """
        m = np.eye(4, dtype=np_float64)
        m[:3, :3] = self._rotation
        m[:3, 3] = self._translation
        return m

    def transform_point(self, point: Iterable) -> np.ndarray:
        """
        Transform a point using this RigidTransform.

        Args:
            point: A 3D array-like representing the point.

        Returns:
            The transformed point as a 3D numpy array.
        """
        return self._translation + self._rotation @ np_asarray(point, dtype=np_float64)

    def transform_vector(self, vector: Iterable) -> np.ndarray:
        """
        Transform a vector using this RigidTransform, the translation is ignored.
        """
        return self._rotation @ np_asarray(vector, dtype=np_float64)

    def inverse_transform_point(self, point: Iterable) -> np.ndarray:
        return self._rotation.T @ (np_asarray(point, dtype=np_float64) - self._translation)

    def inverse_transform_vector(self, vector: Iterable) -> np.ndarray:
        return self._rotation.T @ np_asarray(vector, dtype=np_float64)

    def transform_rotation(self, rotation: np.ndarray) -> np.ndarray:
        """
        Transform a rotation matrix using this RigidTransform.

        Args:
            rotation: A 3x3 numpy array representing the rotation matrix.

        Returns:
            The transformed rotation matrix as a 3x3 numpy array.
        """
        return self._rotation @ rotation

    def copy(self) -> "RigidTransform":
        """
        Create a copy of this RigidTransform.

        Returns:
            A new RigidTransform with independent copies of translation and rotation.
        """
        return self.__class__.from_unchecked_values(
            self._translation.copy(), self._rotation.copy()
        )

    def epsilon_equals(self, other: "RigidTransform", epsilon: float) -> bool:
        return bool(np.allclose(self._translation, other._translation, rtol=0.0, atol=epsilon)
                    and np.allclose(self._rotation, other._rotation, rtol=0.0, atol=epsilon))

    def __matmul__(self, other: "RigidTransform") -> "RigidTransform":
        """
        Right-multiply this RigidTransform by another RigidTransform.

        Args:
            other: The RigidTransform to multiply with.

        Returns:
            A new RigidTransform that applies other first, then self.
        """
        if not isinstance(other, RigidTransform):
            return NotImplemented
        # parent=self, child=other
        translation = self._translation + self._rotation @ other._translation
        rotation = self._rotation @ other._rotation
        return self.__class__.from_unchecked_values(translation, rotation)

    def __eq__(self, other: object) -> bool:
        """
        True if `other` is a RigidTransform with equal rotation and translation within a small tolerance.
        """
        if self is other:
            return True
        if not isinstance(other, RigidTransform):
            return NotImplemented
        return bool(np.allclose(self._translation, other._translation)
                    and np.allclose(self._rotation, other._rotation))

    __hash__ = None

    def __repr__(self):
        return f"{self.__class__.__name__}(translation={self._translation.tolist()}, rotation={self._rotation.tolist()})"

    def __str__(self):
        return self.__repr__()

    def __copy__(self) -> "RigidTransform":
        return self.copy()

    def __deepcopy__(self, memo) -> "RigidTransform":
        # arrays are numeric, so shallow vs deep is effectively the same here
        return self.copy()

    def __reduce__(self):
        """
        Pickle support: reduces to (class, (translation, rotation))
        """
        return (self.__class__, (self._translation.copy(), self._rotation.copy()))
