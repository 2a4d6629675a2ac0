"""
Jones Matrix Array Operations.

Vectorised algebra over stacks of Jones matrices, shape (..., 2, 2), for
applying corrections across many visibility samples at once. Semantics
match the JonesMatrix methods element by element.
"""

import numpy as np
from typing import Optional, Sequence

from skyframe.errors import SingularMatrix
from skyframe.jones.matrix import SINGULAR_EPS_FACTOR

# Stokes (I, Q, U, V) to linear-feed coherency (XX, XY, YX, YY)
STOKES_TO_COHERENCY = np.array([
    [1, 1, 0, 0],
    [0, 0, 1, 1j],
    [0, 0, 1, -1j],
    [1, -1, 0, 0],
], dtype=np.complex128)

# STOKES_TO_COHERENCY is sqrt(2) times a unitary matrix
COHERENCY_TO_STOKES = 0.5 * STOKES_TO_COHERENCY.conj().T


def _validate_stack(J, name: str = "J") -> np.ndarray:
    J = np.asarray(J)
    if J.shape[-2:] != (2, 2):
        raise ValueError(f"{name} must have shape (..., 2, 2), got {J.shape}")
    return J


def jones_multiply(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """
    Matrix product A @ B for each pair in two broadcastable stacks.

    Each entry is written out so the result is identical whichever BLAS
    numpy is linked against.
    """
    A = _validate_stack(A, "A")
    B = _validate_stack(B, "B")
    out = np.empty(np.broadcast_shapes(A.shape, B.shape),
                   dtype=np.result_type(A, B, np.complex128))
    for r in (0, 1):
        for c in (0, 1):
            out[..., r, c] = A[..., r, 0] * B[..., 0, c] + A[..., r, 1] * B[..., 1, c]
    return out


def jones_determinant(J: np.ndarray) -> np.ndarray:
    """Determinant of each matrix; the result drops the trailing (2, 2)."""
    J = _validate_stack(J)
    return J[..., 0, 0] * J[..., 1, 1] - J[..., 0, 1] * J[..., 1, 0]


def _first_singular(J: np.ndarray, det: np.ndarray, eps: Optional[float]):
    """Index of the first singular matrix in the stack, or None."""
    if eps is None:
        largest = np.abs(J).max(axis=(-2, -1))
        eps = SINGULAR_EPS_FACTOR * np.finfo(np.float64).eps * largest ** 2
    singular = np.logical_or(~np.isfinite(det), np.abs(det) <= eps)
    if not singular.any():
        return None
    if det.ndim == 0:
        return ()
    return tuple(int(k) for k in np.argwhere(singular)[0])


def jones_inverse(J: np.ndarray, eps: Optional[float] = None) -> np.ndarray:
    """
    Invert every matrix in a stack via the adjugate.

    Parameters
    ----------
    J : ndarray (..., 2, 2)
    eps : float, optional
        Fixed |det| threshold. When omitted each matrix is tested against
        4·eps_machine·max|j|², the same rule as JonesMatrix.inverse.

    Returns
    -------
    ndarray (..., 2, 2)

    Raises
    ------
    SingularMatrix
        At least one matrix is singular. Nothing is returned for the rest
        of the stack; the error value is the first bad index.
    """
    J = _validate_stack(J)
    det = jones_determinant(J)

    idx = _first_singular(J, det, eps)
    if idx is not None:
        bad = complex(det[idx])
        raise SingularMatrix(
            f"Jones matrix at index {idx} is singular (|det| = {abs(bad):.3e})",
            idx, determinant=bad,
        )

    adj = np.stack([
        np.stack([J[..., 1, 1], -J[..., 0, 1]], axis=-1),
        np.stack([-J[..., 1, 0], J[..., 0, 0]], axis=-1),
    ], axis=-2).astype(np.complex128)
    return adj / det[..., None, None]


def jones_hermitian(J: np.ndarray) -> np.ndarray:
    """Conjugate transpose of each matrix."""
    return np.swapaxes(_validate_stack(J), -1, -2).conj()


def jones_apply_vector(J: np.ndarray, e: np.ndarray) -> np.ndarray:
    """
    Propagate field vectors e (..., 2) through Jones matrices J (..., 2, 2).

    Leading dimensions broadcast against each other.
    """
    J = _validate_stack(J)
    e = np.asarray(e, dtype=np.complex128)
    if e.shape[-1] != 2:
        raise ValueError(f"Field vectors must have shape (..., 2), got {e.shape}")
    out = np.empty(np.broadcast_shapes(J.shape[:-2], e.shape[:-1]) + (2,),
                   dtype=np.complex128)
    for r in (0, 1):
        out[..., r] = J[..., r, 0] * e[..., 0] + J[..., r, 1] * e[..., 1]
    return out


def apply_jones(V: np.ndarray, J_p: np.ndarray, J_q: np.ndarray) -> np.ndarray:
    """
    Corrupt a coherency matrix with the responses of the two antennas
    forming the baseline: J_p · V · J_qᴴ.

    Parameters
    ----------
    V : ndarray (..., 2, 2)
        True (model) coherency
    J_p, J_q : ndarray (..., 2, 2)
        Jones terms of the first and second antenna

    Returns
    -------
    ndarray (..., 2, 2)
        Coherency as the correlator would measure it
    """
    return jones_multiply(jones_multiply(J_p, V), jones_hermitian(J_q))


def unapply_jones(
    V_obs: np.ndarray,
    J_p: np.ndarray,
    J_q: np.ndarray,
    eps: Optional[float] = None,
) -> np.ndarray:
    """
    Undo apply_jones: J_p⁻¹ · V_obs · (J_q⁻¹)ᴴ.

    Raises SingularMatrix when either antenna's term cannot be inverted.
    """
    inv_p = jones_inverse(J_p, eps)
    inv_q = jones_inverse(J_q, eps)
    return jones_multiply(jones_multiply(inv_p, V_obs), jones_hermitian(inv_q))


def composite_jones(chain: Sequence[np.ndarray]) -> np.ndarray:
    """
    Collapse a measurement-equation chain into a single term.

    ``chain`` is ordered as the signal meets each effect, first element
    nearest the sky. Each later term multiplies from the left, so
    [A, B, C] gives C @ B @ A. An empty chain is the identity.
    """
    total = np.eye(2, dtype=np.complex128)
    for term in chain:
        total = jones_multiply(term, total)
    return total


def jones_to_mueller(J: np.ndarray) -> np.ndarray:
    """
    Equivalent 4x4 Mueller matrix acting on Stokes (I, Q, U, V).

    The coherency of a linear-feed pair transforms as J ⊗ J*; the Mueller
    matrix is that product expressed in the Stokes basis.

    Parameters
    ----------
    J : ndarray (..., 2, 2)

    Returns
    -------
    M : ndarray (..., 4, 4)
    """
    J = _validate_stack(J)
    kron = np.einsum("...ac,...bd->...abcd", J, J.conj())
    kron = kron.reshape(J.shape[:-2] + (4, 4))
    return COHERENCY_TO_STOKES @ kron @ STOKES_TO_COHERENCY
