"""
Jones Matrix Value Type.

A JonesMatrix is an immutable 2x2 complex matrix.

Component order (part of the serialisation contract):
    - row-major: [j00, j01, j10, j11]
    - to_floats(): [re00, im00, re01, im01, re10, im10, re11, im11]
    - for linear feeds index 0 = X, 1 = Y; for circular feeds 0 = R, 1 = L

For many matrices at once use the array functions in
skyframe.jones.operations, which work on (..., 2, 2) arrays.
"""

from typing import Iterable, Optional, Sequence

import numpy as np

from skyframe.errors import SingularMatrix

# Multiple of machine epsilon used for the default singularity threshold
SINGULAR_EPS_FACTOR = 4.0


def default_singular_eps(entries: np.ndarray) -> float:
    """
    Determinant threshold scaled to the matrix entries.

    det is a sum of products of two entries, so the rounding floor scales
    with the square of the largest entry.
    """
    scale = float(np.max(np.abs(entries))) if entries.size else 0.0
    return SINGULAR_EPS_FACTOR * np.finfo(np.float64).eps * scale * scale


class JonesMatrix:
    """
    Immutable 2x2 complex matrix.

    J = | j00  j01 |
        | j10  j11 |
    """

    __slots__ = ("_m",)

    def __init__(self, j00=1.0, j01=0.0, j10=0.0, j11=1.0):
        m = np.array([[j00, j01], [j10, j11]], dtype=np.complex128)
        m.setflags(write=False)
        object.__setattr__(self, "_m", m)

    def __setattr__(self, name, value):
        raise AttributeError("JonesMatrix is immutable")

    # -------------------------------------------------------------------------
    # Construction / serialisation
    # -------------------------------------------------------------------------

    @classmethod
    def from_array(cls, arr) -> "JonesMatrix":
        arr = np.asarray(arr, dtype=np.complex128)
        if arr.shape == (4,):
            arr = arr.reshape(2, 2)
        if arr.shape != (2, 2):
            raise ValueError(f"Expected a (2, 2) or (4,) array, got {arr.shape}")
        return cls(arr[0, 0], arr[0, 1], arr[1, 0], arr[1, 1])

    @classmethod
    def from_floats(cls, values: Sequence[float]) -> "JonesMatrix":
        """From [re00, im00, re01, im01, re10, im10, re11, im11]."""
        vals = np.asarray(values, dtype=np.float64)
        if vals.shape != (8,):
            raise ValueError(f"Expected 8 floats, got shape {vals.shape}")
        c = vals[0::2] + 1j * vals[1::2]
        return cls(*c)

    def to_array(self) -> np.ndarray:
        """Writable (2, 2) complex128 copy."""
        return self._m.copy()

    def to_floats(self) -> np.ndarray:
        flat = self._m.reshape(4)
        out = np.empty(8, dtype=np.float64)
        out[0::2] = flat.real
        out[1::2] = flat.imag
        return out

    def __iter__(self) -> Iterable[complex]:
        return iter(complex(c) for c in self._m.reshape(4))

    def __getitem__(self, idx):
        return complex(self._m[idx])

    # -------------------------------------------------------------------------
    # Algebra
    # -------------------------------------------------------------------------

    def multiply(self, other: "JonesMatrix") -> "JonesMatrix":
        """Matrix product self @ other (associative, not commutative)."""
        a, b = self._m, other._m
        return JonesMatrix(
            a[0, 0] * b[0, 0] + a[0, 1] * b[1, 0],
            a[0, 0] * b[0, 1] + a[0, 1] * b[1, 1],
            a[1, 0] * b[0, 0] + a[1, 1] * b[1, 0],
            a[1, 0] * b[0, 1] + a[1, 1] * b[1, 1],
        )

    def add(self, other: "JonesMatrix") -> "JonesMatrix":
        return JonesMatrix.from_array(self._m + other._m)

    def subtract(self, other: "JonesMatrix") -> "JonesMatrix":
        return JonesMatrix.from_array(self._m - other._m)

    def scale(self, factor: complex) -> "JonesMatrix":
        return JonesMatrix.from_array(self._m * factor)

    def hermitian_conjugate(self) -> "JonesMatrix":
        """Conjugate transpose J^H."""
        m = self._m
        return JonesMatrix(
            np.conj(m[0, 0]), np.conj(m[1, 0]),
            np.conj(m[0, 1]), np.conj(m[1, 1]),
        )

    h = hermitian_conjugate

    def determinant(self) -> complex:
        m = self._m
        return complex(m[0, 0] * m[1, 1] - m[0, 1] * m[1, 0])

    def inverse(self, eps: Optional[float] = None) -> "JonesMatrix":
        """
        Matrix inverse.

        J^{-1} = (1/det) * |  j11  -j01 |
                           | -j10   j00 |

        Parameters
        ----------
        eps : float, optional
            Absolute threshold on |det|. Default scales with the entries
            (see default_singular_eps).

        Raises
        ------
        SingularMatrix
            |det| <= eps
        """
        det = self.determinant()
        if eps is None:
            eps = default_singular_eps(self._m)
        if not np.isfinite(det) or abs(det) <= eps:
            raise SingularMatrix(
                f"Jones matrix is singular (|det| = {abs(det):.3e} <= {eps:.3e})",
                self, determinant=det,
            )
        m = self._m
        return JonesMatrix(m[1, 1] / det, -m[0, 1] / det, -m[1, 0] / det, m[0, 0] / det)

    def apply(self, vec) -> np.ndarray:
        """
        Apply to a 2-element field (Jones) vector.

        Returns
        -------
        out : ndarray (2,) complex128
        """
        v = np.asarray(vec, dtype=np.complex128)
        if v.shape != (2,):
            raise ValueError(f"Expected a 2-element vector, got shape {v.shape}")
        m = self._m
        return np.array([
            m[0, 0] * v[0] + m[0, 1] * v[1],
            m[1, 0] * v[0] + m[1, 1] * v[1],
        ])

    def axb(self, other: "JonesMatrix") -> "JonesMatrix":
        """self @ other."""
        return self.multiply(other)

    def axbh(self, other: "JonesMatrix") -> "JonesMatrix":
        """self @ other^H."""
        return self.multiply(other.hermitian_conjugate())

    def norm_sqr(self) -> np.ndarray:
        """|j|^2 per element, row-major, as 4 floats."""
        return np.abs(self._m.reshape(4)) ** 2

    def trace(self) -> complex:
        return complex(self._m[0, 0] + self._m[1, 1])

    def allclose(self, other: "JonesMatrix", rtol: float = 1e-10, atol: float = 1e-12) -> bool:
        return bool(np.allclose(self._m, other._m, rtol=rtol, atol=atol))

    # -------------------------------------------------------------------------
    # Operators
    # -------------------------------------------------------------------------

    def __matmul__(self, other):
        if isinstance(other, JonesMatrix):
            return self.multiply(other)
        return NotImplemented

    def __mul__(self, other):
        if isinstance(other, JonesMatrix):
            return self.multiply(other)
        if np.isscalar(other):
            return self.scale(other)
        return NotImplemented

    def __rmul__(self, other):
        if np.isscalar(other):
            return self.scale(other)
        return NotImplemented

    def __truediv__(self, other):
        if np.isscalar(other):
            return self.scale(1.0 / other)
        return NotImplemented

    def __add__(self, other):
        if isinstance(other, JonesMatrix):
            return self.add(other)
        return NotImplemented

    def __sub__(self, other):
        if isinstance(other, JonesMatrix):
            return self.subtract(other)
        return NotImplemented

    def __neg__(self):
        return self.scale(-1.0)

    def __eq__(self, other):
        if not isinstance(other, JonesMatrix):
            return NotImplemented
        return bool(np.array_equal(self._m, other._m))

    def __hash__(self):
        return hash(self._m.tobytes())

    def __repr__(self):
        m = self._m
        return (f"JonesMatrix({m[0, 0]!r}, {m[0, 1]!r}, "
                f"{m[1, 0]!r}, {m[1, 1]!r})")


IDENTITY = JonesMatrix(1.0, 0.0, 0.0, 1.0)
ZERO = JonesMatrix(0.0, 0.0, 0.0, 0.0)
