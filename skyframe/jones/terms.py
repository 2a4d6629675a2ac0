"""
Jones Matrix Constructors.

Instrumental response terms returned as (..., 2, 2) complex128 arrays.
Every argument broadcasts, so one call builds a term per antenna, per
timestep or per channel.

Feed index 0 is p (X or R), index 1 is q (Y or L).

Wrap a single (2, 2) result with JonesMatrix.from_array for value semantics.
"""

import numpy as np
from typing import Optional, Union

ArrayLike = Union[float, complex, np.ndarray]


def _assemble(j00: ArrayLike, j01: ArrayLike, j10: ArrayLike, j11: ArrayLike) -> np.ndarray:
    """Stack four broadcastable components into (..., 2, 2)."""
    parts = [np.asarray(c, dtype=np.complex128) for c in (j00, j01, j10, j11)]
    shape = np.broadcast_shapes(*(p.shape for p in parts))
    J = np.empty(shape + (2, 2), dtype=np.complex128)
    J[..., 0, 0], J[..., 0, 1], J[..., 1, 0], J[..., 1, 1] = parts
    return J


def identity_jones(shape: Optional[tuple] = None) -> np.ndarray:
    """
    Unit response, optionally repeated over leading dimensions.

    Parameters
    ----------
    shape : tuple, optional
        Leading dimensions, e.g. (n_ant,) or (n_time, n_ant)

    Returns
    -------
    I : ndarray (*shape, 2, 2)
    """
    one = np.ones(tuple(shape) if shape is not None else ())
    return _assemble(one, 0.0, 0.0, one)


def gain_jones(g_p: ArrayLike, g_q: ArrayLike) -> np.ndarray:
    """
    Diagonal complex gain.

    G = | g_p   0  |
        |  0   g_q |
    """
    return _assemble(g_p, 0.0, 0.0, g_q)


def phase_jones(phi_p: ArrayLike, phi_q: ArrayLike) -> np.ndarray:
    """Unit-amplitude gain exp(i·φ) on each feed (phases in radians)."""
    phi_p = np.asarray(phi_p, dtype=np.float64)
    phi_q = np.asarray(phi_q, dtype=np.float64)
    return gain_jones(np.exp(1j * phi_p), np.exp(1j * phi_q))


def rotation_jones(psi: ArrayLike) -> np.ndarray:
    """
    Rotation of the polarisation plane for linear feeds.

    P = | cos ψ   -sin ψ |
        | sin ψ    cos ψ |

    Real, orthogonal, det = 1. Positive ψ rotates a field vector
    counter-clockwise, so P @ (1, 0) = (cos ψ, sin ψ).

    Parameters
    ----------
    psi : float or ndarray
        Rotation angle in radians, typically the parallactic angle

    Returns
    -------
    P : ndarray (..., 2, 2)
    """
    psi = np.asarray(psi, dtype=np.float64)
    c, s = np.cos(psi), np.sin(psi)
    return _assemble(c, -s, s, c)


def circular_rotation_jones(psi: ArrayLike) -> np.ndarray:
    """
    The same physical rotation seen by circular feeds: a differential phase.

    P = | e^{-iψ}    0     |
        |    0     e^{+iψ} |
    """
    psi = np.asarray(psi, dtype=np.float64)
    return _assemble(np.exp(-1j * psi), 0.0, 0.0, np.exp(1j * psi))


def leakage_jones(d_pq: ArrayLike, d_qp: ArrayLike) -> np.ndarray:
    """
    Polarisation leakage (D-terms).

    D = |  1    d_pq |
        | d_qp   1   |

    Parameters
    ----------
    d_pq : complex or ndarray
        Fraction of the q signal appearing on feed p
    d_qp : complex or ndarray
        Fraction of the p signal appearing on feed q

    Returns
    -------
    D : ndarray (..., 2, 2)
    """
    return _assemble(1.0, d_pq, d_qp, 1.0)


def full_jones(j00: ArrayLike, j01: ArrayLike, j10: ArrayLike, j11: ArrayLike) -> np.ndarray:
    """General 2x2 term from its four components, row-major."""
    return _assemble(j00, j01, j10, j11)
