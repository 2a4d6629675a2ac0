"""
Jones Matrix Algebra.

JonesMatrix value type, constructors for common instrumental terms and
vectorised operations over stacks of matrices.
"""

from skyframe.jones.matrix import (
    JonesMatrix,
    IDENTITY,
    ZERO,
    default_singular_eps,
)

from skyframe.jones.terms import (
    identity_jones,
    gain_jones,
    phase_jones,
    rotation_jones,
    circular_rotation_jones,
    leakage_jones,
    full_jones,
)

from skyframe.jones.operations import (
    jones_multiply,
    jones_determinant,
    jones_inverse,
    jones_hermitian,
    jones_apply_vector,
    apply_jones,
    unapply_jones,
    composite_jones,
    jones_to_mueller,
)

__all__ = [
    # Value type
    "JonesMatrix",
    "IDENTITY",
    "ZERO",
    "default_singular_eps",
    # Terms
    "identity_jones",
    "gain_jones",
    "phase_jones",
    "rotation_jones",
    "circular_rotation_jones",
    "leakage_jones",
    "full_jones",
    # Operations
    "jones_multiply",
    "jones_determinant",
    "jones_inverse",
    "jones_hermitian",
    "jones_apply_vector",
    "apply_jones",
    "unapply_jones",
    "composite_jones",
    "jones_to_mueller",
]
