# geometry.py
import math
from numpy import float64 as np_float64
from numpy import ndarray
import numpy as np
from typing import Tuple
from numba import njit

from numba.core.errors import NumbaPerformanceWarning
import warnings
warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)


@njit(cache=True)
def det3(M: ndarray) -> float:
    """Determinant of a 3 x 3 (faster than np.linalg.det for tiny mats)."""
    return (
        M[0, 0] * (M[1, 1] * M[2, 2] - M[1, 2] * M[2, 1])
        - M[0, 1] * (M[1, 0] * M[2, 2] - M[1, 2] * M[2, 0])
        + M[0, 2] * (M[1, 0] * M[2, 1] - M[1, 1] * M[2, 0])
    )


@njit(cache=True)
def quaternion_to_rotation(quaternion: ndarray, w_last: bool = True) -> ndarray:
    """
    Convert a unit quaternion to a 3x3 rotation matrix.

    Parameters:
        quaternion (ndarray): A 4-element array representing the quaternion.
        w_last (bool, optional): Determines the order of the quaternion components.
            - True: quaternion is [x, y, z, w] (default).
            - False: quaternion is [w, x, y, z].

    Returns:
        ndarray: A 3x3 rotation matrix corresponding to the input quaternion.
    """
    if w_last:
        x, y, z, w = quaternion[0], quaternion[1], quaternion[2], quaternion[3]
    else:
        w, x, y, z = quaternion[0], quaternion[1], quaternion[2], quaternion[3]

    xx = x*x
    yy = y*y
    zz = z*z
    xy = x*y
    xz = x*z
    yz = y*z
    wx = w*x
    wy = w*y
    wz = w*z

    R = np.empty((3, 3), dtype=np_float64)
    R[0, 0] = 1 - 2*(yy + zz)
    R[0, 1] = 2*(xy - wz)
    R[0, 2] = 2*(xz + wy)

    R[1, 0] = 2*(xy + wz)
    R[1, 1] = 1 - 2*(xx + zz)
    R[1, 2] = 2*(yz - wx)

    R[2, 0] = 2*(xz - wy)
    R[2, 1] = 2*(yz + wx)
    R[2, 2] = 1 - 2*(xx + yy)
    return R


@njit(cache=True)
def rotation_to_quaternion(rotation: ndarray, w_last: bool = True) -> ndarray:
    """
    Convert a 3x3 rotation matrix to a normalized quaternion with a non-negative scalar part.

    The branch is picked from the trace of the matrix (or its largest diagonal element)
    so that the square root is always taken of a well-conditioned value.

    Parameters:
        rotation (ndarray): A proper 3x3 rotation matrix.
        w_last (bool, optional): If True, the quaternion is returned as [x, y, z, w],
            otherwise as [w, x, y, z]. Default is True.

    Returns:
        ndarray: A 4-element normalized quaternion.
    """
    a00, a01, a02 = rotation[0, 0], rotation[0, 1], rotation[0, 2]
    a10, a11, a12 = rotation[1, 0], rotation[1, 1], rotation[1, 2]
    a20, a21, a22 = rotation[2, 0], rotation[2, 1], rotation[2, 2]

    tr = a00 + a11 + a22

    if tr > 0.0:
        S = math.sqrt(tr + 1.0) * 2.0
        qw = 0.25 * S
        qx = (a21 - a12) / S
        qy = (a02 - a20) / S
        qz = (a10 - a01) / S
    elif a00 > a11 and a00 > a22:
        S = math.sqrt(1.0 + a00 - a11 - a22) * 2.0
        qw = (a21 - a12) / S
        qx = 0.25 * S
        qy = (a01 + a10) / S
        qz = (a02 + a20) / S
    elif a11 > a22:
        S = math.sqrt(1.0 + a11 - a00 - a22) * 2.0
        qw = (a02 - a20) / S
        qx = (a01 + a10) / S
        qy = 0.25 * S
        qz = (a12 + a21) / S
    else:
        S = math.sqrt(1.0 + a22 - a00 - a11) * 2.0
        qw = (a10 - a01) / S
        qx = (a02 + a20) / S
        qy = (a12 + a21) / S
        qz = 0.25 * S

    # keep the scalar part positive so equal rotations map to equal quaternions
    if qw < 0.0:
        qx, qy, qz, qw = -qx, -qy, -qz, -qw

    norm = math.sqrt(qx*qx + qy*qy + qz*qz + qw*qw)
    qx /= norm
    qy /= norm
    qz /= norm
    qw /= norm

    out = np.empty(4, dtype=np_float64)
    if w_last:
        out[0], out[1], out[2], out[3] = qx, qy, qz, qw
    else:
        out[0], out[1], out[2], out[3] = qw, qx, qy, qz
    return out


@njit(cache=True)
def quaternion_multiply(q1: ndarray, q2: ndarray) -> ndarray:
    """Hamilton product q1 * q2 of two [x, y, z, w] quaternions."""
    x1, y1, z1, w1 = q1[0], q1[1], q1[2], q1[3]
    x2, y2, z2, w2 = q2[0], q2[1], q2[2], q2[3]
    out = np.empty(4, dtype=np_float64)
    out[0] = w1*x2 + x1*w2 + y1*z2 - z1*y2
    out[1] = w1*y2 - x1*z2 + y1*w2 + z1*x2
    out[2] = w1*z2 + x1*y2 - y1*x2 + z1*w2
    out[3] = w1*w2 - x1*x2 - y1*y2 - z1*z2
    return out


@njit(cache=True)
def quaternion_transform(quaternion: ndarray, vector: ndarray) -> ndarray:
    """Rotate a 3-vector by a unit [x, y, z, w] quaternion."""
    qx, qy, qz, qw = quaternion[0], quaternion[1], quaternion[2], quaternion[3]
    vx, vy, vz = vector[0], vector[1], vector[2]
    # t = 2 * (q_vec x v)
    tx = 2.0 * (qy*vz - qz*vy)
    ty = 2.0 * (qz*vx - qx*vz)
    tz = 2.0 * (qx*vy - qy*vx)
    out = np.empty(3, dtype=np_float64)
    out[0] = vx + qw*tx + (qy*tz - qz*ty)
    out[1] = vy + qw*ty + (qz*tx - qx*tz)
    out[2] = vz + qw*tz + (qx*ty - qy*tx)
    return out


@njit(cache=True)
def quaternion_distance(q1: ndarray, q2: ndarray) -> float:
    """
    Angle in [0, pi] of the rotation that takes q1 onto q2.

    Both quaternions are expected to be unit [x, y, z, w] quaternions; the double cover is
    accounted for, so q and -q are at distance zero.
    """
    x1, y1, z1, w1 = -q1[0], -q1[1], -q1[2], q1[3]
    x2, y2, z2, w2 = q2[0], q2[1], q2[2], q2[3]
    dx = w1*x2 + x1*w2 + y1*z2 - z1*y2
    dy = w1*y2 - x1*z2 + y1*w2 + z1*x2
    dz = w1*z2 + x1*y2 - y1*x2 + z1*w2
    dw = w1*w2 - x1*x2 - y1*y2 - z1*z2
    sin_half = math.sqrt(dx*dx + dy*dy + dz*dz)
    return 2.0 * math.atan2(sin_half, abs(dw))


@njit(cache=True)
def rotation_to_euler(rotation: ndarray, degrees: bool = False) -> Tuple[float, float, float]:
    """
    Converts a 3x3 rotation matrix to Euler angles (roll, pitch, yaw) with R = Rz(yaw) @ Ry(pitch) @ Rx(roll).

    Parameters:
            rotation (ndarray): A 3x3 rotation matrix.
            degrees (bool, optional): If True, the Euler angles are returned in degrees. Defaults to False.

    Returns:
            tuple of float: roll, pitch and yaw.
    """
    sp = -rotation[2, 0]
    if sp > 1.0:
        sp = 1.0
    elif sp < -1.0:
        sp = -1.0
    pitch = math.asin(sp)

    roll = math.atan2(rotation[2, 1], rotation[2, 2])
    yaw = math.atan2(rotation[1, 0], rotation[0, 0])

    if degrees:
        roll = math.degrees(roll)
        pitch = math.degrees(pitch)
        yaw = math.degrees(yaw)

    return roll, pitch, yaw


@njit(cache=True)
def euler_to_rotation(
        roll: float,
        pitch: float,
        yaw: float,
        degrees: bool = False) -> ndarray:
    """
    Compute R = Rz(yaw) @ Ry(pitch) @ Rx(roll).

    Parameters:
        roll (float): Rotation angle about the x-axis.
        pitch (float): Rotation angle about the y-axis.
        yaw (float): Rotation angle about the z-axis.
        degrees (bool, optional): Flag indicating whether the input angles are in degrees. Defaults to False.

    Returns:
        ndarray: A 3x3 rotation matrix.
    """
    if degrees:
        roll *= np.pi/180.0
        pitch *= np.pi/180.0
        yaw *= np.pi/180.0

    sr, cr = math.sin(roll),  math.cos(roll)
    sp, cp = math.sin(pitch), math.cos(pitch)
    sy, cy = math.sin(yaw),   math.cos(yaw)

    R = np.empty((3, 3), dtype=np_float64)
    R[0, 0] = cy*cp
    R[0, 1] = cy*sp*sr - sy*cr
    R[0, 2] = cy*sp*cr + sy*sr

    R[1, 0] = sy*cp
    R[1, 1] = sy*sp*sr + cy*cr
    R[1, 2] = sy*sp*cr - cy*sr

    R[2, 0] = -sp
    R[2, 1] = cp*sr
    R[2, 2] = cp*cr
    return R


@njit(cache=True)
def axis_angle_to_rotation(axis: ndarray, angle: float) -> ndarray:
    """Rodrigues formula; the axis does not need to be normalized."""
    n = math.sqrt(axis[0]*axis[0] + axis[1]*axis[1] + axis[2]*axis[2])
    R = np.eye(3, dtype=np_float64)
    if n < 1e-12:
        return R
    ux, uy, uz = axis[0]/n, axis[1]/n, axis[2]/n
    c = math.cos(angle)
    s = math.sin(angle)
    one_c = 1.0 - c

    R[0, 0] = c + ux*ux*one_c
    R[0, 1] = ux*uy*one_c - uz*s
    R[0, 2] = ux*uz*one_c + uy*s

    R[1, 0] = uy*ux*one_c + uz*s
    R[1, 1] = c + uy*uy*one_c
    R[1, 2] = uy*uz*one_c - ux*s

    R[2, 0] = uz*ux*one_c - uy*s
    R[2, 1] = uz*uy*one_c + ux*s
    R[2, 2] = c + uz*uz*one_c
    return R


@njit(cache=True)
def rotation_to_axis_angle(rotation: ndarray) -> Tuple[ndarray, float]:
    """
    Convert a rotation matrix to a unit axis and an angle in [0, pi].

    Goes through the quaternion so that angles close to pi stay accurate.
    A zero rotation returns the x-axis with a zero angle.
    """
    q = rotation_to_quaternion(rotation, True)
    sin_half = math.sqrt(q[0]*q[0] + q[1]*q[1] + q[2]*q[2])
    axis = np.zeros(3, dtype=np_float64)
    if sin_half < 1e-12:
        axis[0] = 1.0
        return axis, 0.0
    axis[0] = q[0] / sin_half
    axis[1] = q[1] / sin_half
    axis[2] = q[2] / sin_half
    return axis, 2.0 * math.atan2(sin_half, q[3])


@njit(cache=True)
def yaw_to_rotation(yaw: float) -> ndarray:
    """Rotation about the z-axis."""
    c = math.cos(yaw)
    s = math.sin(yaw)
    R = np.eye(3, dtype=np_float64)
    R[0, 0] = c
    R[0, 1] = -s
    R[1, 0] = s
    R[1, 1] = c
    return R


@njit(cache=True)
def rotation_to_yaw(rotation: ndarray) -> float:
    return math.atan2(rotation[1, 0], rotation[0, 0])


@njit(cache=True)
def is_rotation_2d(rotation: ndarray, epsilon: float) -> bool:
    """True if the rotation only rotates about the z-axis (the XY-plane is preserved)."""
    return (abs(rotation[0, 2]) <= epsilon
            and abs(rotation[1, 2]) <= epsilon
            and abs(rotation[2, 0]) <= epsilon
            and abs(rotation[2, 1]) <= epsilon
            and abs(rotation[2, 2] - 1.0) <= epsilon)


@njit(cache=True)
def any_orthogonal_unit_vector(u: ndarray) -> ndarray:
    """
    Return a unit vector orthogonal to the unit vector u.

    The basis vector least aligned with u is projected onto the plane normal to u, so for
    u = e_i the result is a basis vector as well.
    """
    ax, ay, az = abs(u[0]), abs(u[1]), abs(u[2])
    e = np.zeros(3, dtype=np_float64)
    if ax <= ay and ax <= az:
        e[0] = 1.0
    elif ay <= az:
        e[1] = 1.0
    else:
        e[2] = 1.0
    d = e[0]*u[0] + e[1]*u[1] + e[2]*u[2]
    out = np.empty(3, dtype=np_float64)
    out[0] = e[0] - d*u[0]
    out[1] = e[1] - d*u[1]
    out[2] = e[2] - d*u[2]
    n = math.sqrt(out[0]*out[0] + out[1]*out[1] + out[2]*out[2])
    out[0] /= n
    out[1] /= n
    out[2] /= n
    return out


@njit(cache=True)
def quaternion_slerp(q1: ndarray, q2: ndarray, alpha: float) -> ndarray:
    """
    Spherical linear interpolation between two unit [x, y, z, w] quaternions.

    The shortest path is taken: q2 is negated when the two quaternions lie in opposite
    hemispheres. Falls back to a normalized linear interpolation for nearly equal inputs.
    """
    d = q1[0]*q2[0] + q1[1]*q2[1] + q1[2]*q2[2] + q1[3]*q2[3]
    sign = 1.0
    if d < 0.0:
        sign = -1.0
        d = -d
    out = np.empty(4, dtype=np_float64)
    if d > 0.9995:
        for i in range(4):
            out[i] = (1.0 - alpha) * q1[i] + alpha * sign * q2[i]
    else:
        theta = math.acos(d)
        sin_theta = math.sin(theta)
        a = math.sin((1.0 - alpha) * theta) / sin_theta
        b = math.sin(alpha * theta) / sin_theta * sign
        for i in range(4):
            out[i] = a * q1[i] + b * q2[i]
    n = math.sqrt(out[0]*out[0] + out[1]*out[1] + out[2]*out[2] + out[3]*out[3])
    for i in range(4):
        out[i] /= n
    return out


def shift_angle_to_plus_minus_pi(angle: float) -> float:
    """Wrap an angle in radians to [-pi, pi)."""
    return (angle + math.pi) % (2.0 * math.pi) - math.pi
