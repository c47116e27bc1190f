# svd.py
"""
Closed-form singular value decomposition of 3x3 matrices.

A = U · diag(W) · Vᵀ is computed from the symmetric eigen-problem of AᵀA:

1. A fixed number of cyclic Jacobi sweeps over the (XY, XZ, YZ) off-diagonal pairs of AᵀA.
   Each sweep uses the approximate Givens rotation of McAdams et al. ("Computing the
   Singular Value Decomposition of 3x3 matrices with minimal branching and elementary
   floating point operations"), with the fixed pi/8 half-angle fallback when the
   diagonal entries are too close for the closed-form half-angle to be accurate.
   The rotations are accumulated in a quaternion, so V is orthonormal to machine precision.
2. B = A · V; the singular values are the column norms of B and U is B with normalized
   columns, made orthonormal and completed when A is rank deficient.
3. U and V are both proper rotations. The sign of det(A) is carried by W[2] only.

The number of sweeps is fixed (no convergence test) so the cost of a decomposition
does not depend on the input.
"""
import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from numpy import asarray as np_asarray
from numpy import float64 as np_float64
from numpy import ndarray
from numba import njit

from framekit.axis import Axis3D, _AXIS_TO_PLANE
from framekit.geometry import (
    quaternion_multiply,
    quaternion_to_rotation,
    any_orthogonal_unit_vector,
    det3,
)

from numba.core.errors import NumbaPerformanceWarning
import warnings
warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)

GAMMA = 3.0 + 2.0 * math.sqrt(2.0)
COS_PI_OVER_EIGHT = math.cos(math.pi / 8.0)
SIN_PI_OVER_EIGHT = math.sin(math.pi / 8.0)

DEFAULT_NUMBER_OF_SWEEPS = 10

# A column of B shorter than this fraction of the longest column is treated as zero.
_DEGENERATE_COLUMN_RATIO = 1.0e-14

_EYE3 = np.eye(3, dtype=np_float64)


@njit(cache=True)
def approximate_givens_quaternion(s_pp: float, s_pq: float, s_qq: float) -> tuple:
    """
    Half-angle (cos, sin) of the Jacobi rotation that approximately zeroes s_pq.

    Falls back to a pi/8 half-angle when gamma * sh^2 >= ch^2.
    """
    ch = 2.0 * (s_pp - s_qq)
    sh = s_pq

    if GAMMA * sh * sh < ch * ch:
        omega = 1.0 / math.sqrt(ch * ch + sh * sh)
        return ch * omega, sh * omega
    return COS_PI_OVER_EIGHT, SIN_PI_OVER_EIGHT


@njit(cache=True)
def _apply_jacobi_givens_rotation(p: int, q: int, ch: float, sh: float, S: ndarray) -> None:
    """In place S <- Qᵀ S Q, Q rotating the (p, q) plane by twice the half-angle (ch, sh)."""
    ch2 = ch * ch
    sh2 = sh * sh
    norm2 = ch2 + sh2
    c = (ch2 - sh2) / norm2
    s = 2.0 * ch * sh / norm2
    r = 3 - p - q

    s_pp = S[p, p]
    s_qq = S[q, q]
    s_pq = S[p, q]
    s_rp = S[r, p]
    s_rq = S[r, q]

    cc = c * c
    ss = s * s
    cs = c * s

    new_pp = cc * s_pp + 2.0 * cs * s_pq + ss * s_qq
    new_qq = ss * s_pp - 2.0 * cs * s_pq + cc * s_qq
    new_pq = (cc - ss) * s_pq - cs * (s_pp - s_qq)
    new_rp = c * s_rp + s * s_rq
    new_rq = c * s_rq - s * s_rp

    S[p, p] = new_pp
    S[q, q] = new_qq
    S[p, q] = new_pq
    S[q, p] = new_pq
    S[r, p] = new_rp
    S[p, r] = new_rp
    S[r, q] = new_rq
    S[q, r] = new_rq


@njit(cache=True)
def _givens_quaternion(p: int, q: int, ch: float, sh: float) -> ndarray:
    """Quaternion [x, y, z, w] of the (p, q) plane rotation used by the Jacobi step."""
    g = np.zeros(4, dtype=np_float64)
    g[3] = ch
    if p == 0 and q == 1:
        g[2] = sh
    elif p == 0 and q == 2:
        # the (0, 2) plane rotation turns about -y
        g[1] = -sh
    else:
        g[0] = sh
    return g


@njit(cache=True)
def _jacobi_eigen_quaternion(S: ndarray, number_of_sweeps: int) -> ndarray:
    """Diagonalize the symmetric S in place and return the accumulated rotation as a unit quaternion."""
    quaternion = np.zeros(4, dtype=np_float64)
    quaternion[3] = 1.0

    for _ in range(number_of_sweeps):
        for pair in range(3):
            if pair == 0:
                p, q = 0, 1
            elif pair == 1:
                p, q = 0, 2
            else:
                p, q = 1, 2

            s_pq = S[p, q]
            if s_pq == 0.0:
                # already decoupled, a pi/8 fallback would only spin a degenerate subspace
                continue

            ch, sh = approximate_givens_quaternion(S[p, p], s_pq, S[q, q])
            _apply_jacobi_givens_rotation(p, q, ch, sh, S)
            quaternion = quaternion_multiply(quaternion, _givens_quaternion(p, q, ch, sh))

    n = math.sqrt(quaternion[0]**2 + quaternion[1]**2 + quaternion[2]**2 + quaternion[3]**2)
    for i in range(4):
        quaternion[i] /= n
    return quaternion


@njit(cache=True)
def _swap_columns(col1: int, negate_col1: bool, col2: int, M: ndarray) -> None:
    sign = -1.0 if negate_col1 else 1.0
    for row in range(3):
        tmp = M[row, col1]
        M[row, col1] = M[row, col2]
        M[row, col2] = sign * tmp


@njit(cache=True)
def _sort_b_columns(B: ndarray, V: ndarray) -> None:
    """
    Reorder the columns of B (and V alongside) by decreasing norm.

    Each swap negates one of the two columns so V stays a proper rotation and B = A·V holds.
    Equal norms are left in place.
    """
    rho0 = B[0, 0]**2 + B[1, 0]**2 + B[2, 0]**2
    rho1 = B[0, 1]**2 + B[1, 1]**2 + B[2, 1]**2
    rho2 = B[0, 2]**2 + B[1, 2]**2 + B[2, 2]**2

    if rho0 < rho1:
        _swap_columns(0, True, 1, B)
        _swap_columns(0, True, 1, V)
        rho0, rho1 = rho1, rho0
    if rho0 < rho2:
        _swap_columns(0, True, 2, B)
        _swap_columns(0, True, 2, V)
        rho0, rho2 = rho2, rho0
    if rho1 < rho2:
        _swap_columns(1, True, 2, B)
        _swap_columns(1, True, 2, V)


@njit(cache=True)
def _orthonormalize_b(B: ndarray, U: ndarray, W: ndarray) -> None:
    """
    Fill U with the normalized columns of B and W with the column norms.

    Columns are processed by decreasing norm: the longest is normalized, the second is made
    orthogonal to it (or replaced by any orthogonal direction if it vanishes), and the last
    column of U is the cross product that makes det(U) = +1. The singular value of that last
    column is the signed projection of B onto it, and is moved to W[2] if negative.
    """
    rho = np.empty(3, dtype=np_float64)
    for j in range(3):
        rho[j] = B[0, j]**2 + B[1, j]**2 + B[2, j]**2

    a, b, c = 0, 1, 2
    if rho[a] < rho[b]:
        a, b = b, a
    if rho[a] < rho[c]:
        a, c = c, a
    if rho[b] < rho[c]:
        b, c = c, b

    # first column
    w_a = math.sqrt(rho[a])
    ua = np.zeros(3, dtype=np_float64)
    if w_a > 0.0:
        for i in range(3):
            ua[i] = B[i, a] / w_a
    else:
        ua[a] = 1.0

    # second column
    proj = ua[0]*B[0, b] + ua[1]*B[1, b] + ua[2]*B[2, b]
    t = np.empty(3, dtype=np_float64)
    for i in range(3):
        t[i] = B[i, b] - proj * ua[i]
    t_norm = math.sqrt(t[0]**2 + t[1]**2 + t[2]**2)
    if t_norm > _DEGENERATE_COLUMN_RATIO * w_a and t_norm > 0.0:
        ub = t / t_norm
        w_b = t_norm
    else:
        ub = any_orthogonal_unit_vector(ua)
        w_b = ub[0]*t[0] + ub[1]*t[1] + ub[2]*t[2]
        if w_b < 0.0:
            ub = -ub
            w_b = -w_b

    # third column completes a right-handed basis
    uc = np.empty(3, dtype=np_float64)
    uc[0] = ua[1]*ub[2] - ua[2]*ub[1]
    uc[1] = ua[2]*ub[0] - ua[0]*ub[2]
    uc[2] = ua[0]*ub[1] - ua[1]*ub[0]
    even = (a == 0 and b == 1) or (a == 1 and b == 2) or (a == 2 and b == 0)
    if not even:
        uc = -uc
    w_c = uc[0]*B[0, c] + uc[1]*B[1, c] + uc[2]*B[2, c]

    for i in range(3):
        U[i, a] = ua[i]
        U[i, b] = ub[i]
        U[i, c] = uc[i]
    W[a] = w_a
    W[b] = w_b
    W[c] = w_c

    # only W[2] may be negative: negating two columns of U keeps it proper
    if w_c < 0.0 and c != 2:
        for i in range(3):
            U[i, c] = -U[i, c]
            U[i, 2] = -U[i, 2]
        W[c] = -W[c]
        W[2] = -W[2]


@njit(cache=True)
def _multiply3(A: ndarray, B: ndarray, transpose_a: bool) -> ndarray:
    """A·B, or Aᵀ·B, for 3x3 matrices."""
    out = np.zeros((3, 3), dtype=np_float64)
    for i in range(3):
        for j in range(3):
            acc = 0.0
            for k in range(3):
                if transpose_a:
                    acc += A[k, i] * B[k, j]
                else:
                    acc += A[i, k] * B[k, j]
            out[i, j] = acc
    return out


@njit(cache=True)
def _decompose(A: ndarray, number_of_sweeps: int, sort_descending: bool, U: ndarray, W: ndarray, V: ndarray) -> None:
    S = _multiply3(A, A, True)
    quaternion = _jacobi_eigen_quaternion(S, number_of_sweeps)
    V_local = quaternion_to_rotation(quaternion, True)
    B = _multiply3(A, V_local, False)

    if sort_descending:
        _sort_b_columns(B, V_local)

    _orthonormalize_b(B, U, W)
    V[:, :] = V_local


@dataclass
class SVD3DOutput:
    """Holds the result of the last decomposition; overwritten in place by every call."""
    U: ndarray = field(default_factory=lambda: _EYE3.copy())
    W: ndarray = field(default_factory=lambda: np.zeros(3, dtype=np_float64))
    V: ndarray = field(default_factory=lambda: _EYE3.copy())

    def get_w_matrix(self) -> ndarray:
        return np.diag(self.W)

    def reconstruct(self) -> ndarray:
        """Return U · diag(W) · Vᵀ."""
        return (self.U * self.W) @ self.V.T


class SingularValueDecomposition3D:
    """
    SVD specialized for 3x3 matrices, with U and V guaranteed to be proper rotations.

    Unlike the textbook convention, the third singular value may be negative: its sign is
    the sign of det(A). By default the singular values are sorted so that
    |W[0]| >= |W[1]| >= |W[2]|.

    Example:
        >>> svd = SingularValueDecomposition3D()
        >>> svd.decompose(np.diag([0.3, 0.3, 0.0]))
        True
        >>> svd.get_w()
        array([0.3, 0.3, 0. ])
    """
    __slots__ = ("_output", "_sort_descending", "_number_of_sweeps")

    def __init__(self, sort_descending: bool = True, number_of_sweeps: int = DEFAULT_NUMBER_OF_SWEEPS):
        self._output = SVD3DOutput()
        self._sort_descending = bool(sort_descending)
        self.set_number_of_sweeps(number_of_sweeps)

    def set_sort_descending_order(self, sort_descending: bool) -> None:
        self._sort_descending = bool(sort_descending)

    def set_number_of_sweeps(self, number_of_sweeps: int) -> None:
        number_of_sweeps = int(number_of_sweeps)
        if number_of_sweeps < 1:
            raise ValueError(f"Number of sweeps must be at least 1, got {number_of_sweeps}")
        self._number_of_sweeps = number_of_sweeps

    @property
    def sort_descending(self) -> bool:
        return self._sort_descending

    @property
    def number_of_sweeps(self) -> int:
        return self._number_of_sweeps

    def decompose(self, A) -> bool:
        """
        Decompose the 3x3 matrix A.

        Always returns True; non-finite input propagates to a non-finite output.
        """
        A = np_asarray(A, dtype=np_float64)
        if A.shape != (3, 3):
            raise ValueError(f"Expected a 3x3 matrix, got {A.shape}")
        out = self._output
        _decompose(np.ascontiguousarray(A), self._number_of_sweeps, self._sort_descending, out.U, out.W, out.V)
        return True

    def get_output(self) -> SVD3DOutput:
        return self._output

    def get_u(self) -> ndarray:
        return self._output.U

    def get_w(self) -> ndarray:
        return self._output.W

    def get_w_matrix(self) -> ndarray:
        return self._output.get_w_matrix()

    def get_v(self) -> ndarray:
        return self._output.V


def swap_columns(col1: int, negate_col1: bool, col2: int, M: ndarray) -> None:
    """
    Swap two columns of M in place, negating the one that was at col1 if requested.

    Raises:
        ValueError: if col2 <= col1.
    """
    if col2 <= col1:
        raise ValueError("col2 is expected to be strictly greater than col1")
    _swap_columns(col1, bool(negate_col1), col2, M)


def sort_b_columns(B: ndarray, V: ndarray) -> None:
    _sort_b_columns(B, V)


def apply_jacobi_givens_rotation(axis: Axis3D, ch: float, sh: float, S: ndarray) -> None:
    """Apply the Jacobi step of half-angle (ch, sh) for the plane normal to axis, in place."""
    p, q = _AXIS_TO_PLANE[axis]
    _apply_jacobi_givens_rotation(p, q, float(ch), float(sh), S)


def pure_rotation(M: ndarray, svd: Optional[SingularValueDecomposition3D] = None) -> ndarray:
    """
    Nearest proper rotation to the 3x3 matrix M (the U·Vᵀ factor of its polar decomposition).

    Fast path: M is returned unchanged (as a copy) when it already is a proper rotation.
    """
    M = np_asarray(M, dtype=np_float64)
    if np.allclose(M.T @ M, _EYE3, atol=1e-12) and abs(det3(M) - 1.0) <= 1e-12:
        return M.copy()
    if svd is None:
        svd = SingularValueDecomposition3D()
    svd.decompose(M)
    return svd.get_u() @ svd.get_v().T
