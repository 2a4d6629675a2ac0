"""
Tests for Jones matrix algebra.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from skyframe.errors import SingularMatrix
from skyframe.jones.matrix import JonesMatrix, IDENTITY, ZERO
from skyframe.jones.terms import (
    identity_jones, gain_jones, phase_jones,
    rotation_jones, circular_rotation_jones, leakage_jones, full_jones,
)
from skyframe.jones.operations import (
    jones_multiply, jones_determinant, jones_inverse, jones_hermitian,
    jones_apply_vector, apply_jones, unapply_jones, composite_jones,
    jones_to_mueller,
)


@pytest.fixture
def A():
    return JonesMatrix(1 + 2j, 0.5 - 1j, -0.3 + 0.2j, 2 - 0.5j)


@pytest.fixture
def B():
    return JonesMatrix(0.1 - 0.7j, 1.5 + 0.2j, 0.9 + 0.9j, -1.1 + 0.3j)


@pytest.fixture
def C():
    return JonesMatrix(2.0, 0.3j, -0.4 + 0.1j, 0.8 - 0.2j)


class TestJonesMatrixAlgebra:
    """Test the JonesMatrix value type."""

    def test_identity_right(self, A):
        assert A.multiply(IDENTITY) == A

    def test_identity_left(self, A):
        assert IDENTITY.multiply(A) == A

    def test_multiply_matches_numpy(self, A, B):
        assert_allclose((A @ B).to_array(), A.to_array() @ B.to_array(), rtol=1e-14)

    def test_associative(self, A, B, C):
        left = (A @ B) @ C
        right = A @ (B @ C)
        assert left.allclose(right, rtol=1e-12, atol=1e-14)

    def test_not_commutative(self):
        A = JonesMatrix(1, 2, 3, 4)
        B = JonesMatrix(0, 1, 1, 0)
        assert (A @ B) == JonesMatrix(2, 1, 4, 3)
        assert (B @ A) == JonesMatrix(3, 4, 1, 2)
        assert not (A @ B).allclose(B @ A)

    def test_add(self, A, B):
        assert_allclose(A.add(B).to_array(), A.to_array() + B.to_array())
        assert (A + B) == A.add(B)

    def test_scalar_multiply(self, A):
        assert_allclose((2j * A).to_array(), 2j * A.to_array())
        assert_allclose((A * 0.5).to_array(), 0.5 * A.to_array())

    def test_hermitian(self, A):
        assert_allclose(A.hermitian_conjugate().to_array(), A.to_array().conj().T)
        assert A.h().h() == A

    def test_determinant(self, A):
        assert_allclose(A.determinant(), np.linalg.det(A.to_array()), rtol=1e-14)

    def test_inverse(self, A):
        assert (A @ A.inverse()).allclose(IDENTITY, atol=1e-14)
        assert (A.inverse() @ A).allclose(IDENTITY, atol=1e-14)

    def test_inverse_of_product(self, A, B):
        lhs = (A @ B).inverse()
        rhs = B.inverse() @ A.inverse()
        assert lhs.allclose(rhs, rtol=1e-12, atol=1e-14)

    def test_axbh(self, A, B):
        assert A.axbh(B).allclose(A @ B.h())
        assert A.axb(B) == A @ B

    def test_norm_sqr(self):
        J = JonesMatrix(3 + 4j, 1, 1j, 0)
        assert_allclose(J.norm_sqr(), [25.0, 1.0, 1.0, 0.0])

    def test_trace(self, A):
        assert A.trace() == (1 + 2j) + (2 - 0.5j)


class TestSingular:
    """Inverse must fail rather than divide by a near-zero determinant."""

    def test_zero_matrix(self):
        with pytest.raises(SingularMatrix):
            ZERO.inverse()

    def test_rank_one(self):
        J = JonesMatrix(1, 2, 2, 4)
        with pytest.raises(SingularMatrix) as err:
            J.inverse()
        assert err.value.determinant == 0
        assert err.value.value == J

    def test_custom_eps(self):
        J = JonesMatrix(1, 0, 0, 1e-3)
        J.inverse()
        with pytest.raises(SingularMatrix):
            J.inverse(eps=1e-2)

    def test_default_eps_scales_with_entries(self):
        # tiny but well-conditioned
        J = JonesMatrix(1e-100, 0, 0, 1e-100)
        assert (J @ J.inverse()).allclose(IDENTITY)

    def test_singular_is_arithmetic_error(self):
        with pytest.raises(ArithmeticError):
            ZERO.inverse()


class TestJonesMatrixValue:
    """Immutability, ordering and serialisation."""

    def test_component_order(self):
        J = JonesMatrix(1 + 2j, 3 + 4j, 5 + 6j, 7 + 8j)
        assert_allclose(J.to_floats(), [1, 2, 3, 4, 5, 6, 7, 8])
        assert list(J) == [1 + 2j, 3 + 4j, 5 + 6j, 7 + 8j]
        assert J[0, 1] == 3 + 4j
        assert J[1, 0] == 5 + 6j

    def test_floats_round_trip(self, A):
        assert JonesMatrix.from_floats(A.to_floats()) == A

    def test_from_array(self, A):
        assert JonesMatrix.from_array(A.to_array()) == A
        assert JonesMatrix.from_array(A.to_array().reshape(4)) == A

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            JonesMatrix.from_array(np.zeros((3, 3)))
        with pytest.raises(ValueError):
            JonesMatrix.from_floats([1.0, 2.0])

    def test_immutable(self, A):
        with pytest.raises(AttributeError):
            A.foo = 1
        arr = A.to_array()
        arr[0, 0] = 99.0
        assert A[0, 0] == 1 + 2j

    def test_operations_return_new_values(self, A, B):
        before = A.to_array()
        A @ B
        A.inverse()
        A.h()
        assert_allclose(A.to_array(), before)

    def test_hashable(self, A):
        assert {A: 1}[JonesMatrix.from_floats(A.to_floats())] == 1

    def test_constants(self):
        assert_allclose(IDENTITY.to_array(), np.eye(2))
        assert_allclose(ZERO.to_array(), np.zeros((2, 2)))


class TestRotationScenario:
    """Known polarisation rotation on a unit field vector."""

    def test_rotate_45(self):
        R = JonesMatrix.from_array(rotation_jones(np.pi / 4))
        out = R.apply([1.0, 0.0])
        assert_allclose(out, [np.sqrt(0.5), np.sqrt(0.5)], atol=1e-15)

    def test_rotate_back(self):
        R = JonesMatrix.from_array(rotation_jones(np.pi / 4))
        e = np.array([0.3 + 0.1j, -0.2j])
        assert_allclose(R.inverse().apply(R.apply(e)), e, atol=1e-15)

    def test_rotation_preserves_power(self):
        R = JonesMatrix.from_array(rotation_jones(0.7))
        e = np.array([1.0 + 1j, 0.5])
        out = R.apply(e)
        assert_allclose(np.sum(np.abs(out) ** 2), np.sum(np.abs(e) ** 2))

    def test_apply_bad_shape(self, A):
        with pytest.raises(ValueError):
            A.apply([1.0, 2.0, 3.0])


class TestTerms:
    """Test Jones constructors."""

    def test_identity_shape_scalar(self):
        I = identity_jones()
        assert I.shape == (2, 2)
        assert_allclose(I, np.eye(2))

    def test_identity_shape_broadcast(self):
        I = identity_jones((3, 4))
        assert I.shape == (3, 4, 2, 2)
        assert_allclose(I[2, 1], np.eye(2))

    def test_gain(self):
        g_X = 1.5 * np.exp(1j * np.pi / 6)
        g_Y = 1.2 * np.exp(1j * np.pi / 4)
        G = gain_jones(g_X, g_Y)
        assert G[0, 0] == g_X
        assert G[1, 1] == g_Y
        assert G[0, 1] == 0
        assert G[1, 0] == 0

    def test_phase_only(self):
        G = phase_jones(np.linspace(0, np.pi, 10), 0.3)
        assert G.shape == (10, 2, 2)
        assert_allclose(np.abs(G[..., 0, 0]), 1.0)
        assert_allclose(np.abs(G[..., 1, 1]), 1.0)

    def test_rotation_orthogonal(self):
        P = rotation_jones(np.pi / 6)
        assert_allclose(P @ P.T.conj(), np.eye(2), atol=1e-15)
        assert_allclose(jones_determinant(P), 1.0)

    def test_circular_rotation(self):
        psi = np.pi / 4
        P = circular_rotation_jones(psi)
        assert P[0, 1] == 0
        assert P[1, 0] == 0
        assert_allclose(P[0, 0], np.exp(-1j * psi))
        assert_allclose(P[1, 1], np.exp(1j * psi))

    def test_leakage(self):
        D = leakage_jones(0.05 + 0.02j, 0.03 - 0.01j)
        assert D[0, 0] == 1.0
        assert D[1, 1] == 1.0
        assert D[0, 1] == 0.05 + 0.02j
        assert D[1, 0] == 0.03 - 0.01j

    def test_full(self):
        J = full_jones(1, 2j, 3, 4j)
        assert JonesMatrix.from_array(J) == JonesMatrix(1, 2j, 3, 4j)


class TestOperations:
    """Test vectorised Jones operations."""

    def test_multiply_matches_matmul(self):
        rng = np.random.default_rng(7)
        A = rng.normal(size=(5, 2, 2)) + 1j * rng.normal(size=(5, 2, 2))
        B = rng.normal(size=(5, 2, 2)) + 1j * rng.normal(size=(5, 2, 2))
        assert_allclose(jones_multiply(A, B), A @ B, rtol=1e-13)

    def test_inverse_stack(self):
        J = gain_jones(np.linspace(1, 2, 6) * np.exp(0.3j), 1.2j) @ leakage_jones(0.05, -0.02j)
        assert_allclose(jones_multiply(J, jones_inverse(J)), identity_jones((6,)), atol=1e-14)

    def test_inverse_stack_singular(self):
        J = identity_jones((4,))
        J[2] = [[1, 2], [2, 4]]
        with pytest.raises(SingularMatrix) as err:
            jones_inverse(J)
        assert err.value.value == (2,)

    def test_inverse_matches_value_type(self, A):
        assert_allclose(jones_inverse(A.to_array()), A.inverse().to_array())

    def test_hermitian(self):
        J = gain_jones(1.5 * np.exp(1j * 0.3), 1.2 * np.exp(1j * 0.5)) + leakage_jones(0.1j, 0.2)
        assert_allclose(jones_hermitian(J), J.conj().T)

    def test_apply_vector(self):
        P = rotation_jones(np.array([0.0, np.pi / 2]))
        out = jones_apply_vector(P, np.array([1.0, 0.0]))
        assert_allclose(out, [[1.0, 0.0], [0.0, 1.0]], atol=1e-15)

    def test_apply_identity(self):
        V = np.array([[1 + 1j, 0.1], [0.1j, 1 - 0.5j]])
        I = identity_jones()
        assert_allclose(apply_jones(V, I, I), V)

    def test_apply_unapply_inverse(self):
        V = np.array([[1 + 1j, 0.1], [0.1j, 1 - 0.5j]])
        J = gain_jones(1.5 * np.exp(1j * 0.3), 1.2 * np.exp(1j * 0.5)) @ leakage_jones(0.05, 0.02j)

        V_corrupted = apply_jones(V, J, J)
        V_recovered = unapply_jones(V_corrupted, J, J)

        assert_allclose(V_recovered, V, rtol=1e-12)

    def test_unapply_singular(self):
        V = np.eye(2, dtype=np.complex128)
        with pytest.raises(SingularMatrix):
            unapply_jones(V, np.zeros((2, 2)), identity_jones())

    def test_composite_order(self):
        G1 = gain_jones(2.0, 1.0)
        G2 = leakage_jones(0.1, 0.0)

        # C = G2 @ G1 (signal order: G1 then G2)
        C = composite_jones([G1, G2])
        assert_allclose(C, G2 @ G1)

    def test_composite_empty(self):
        assert_allclose(composite_jones([]), np.eye(2))

    def test_mueller_identity(self):
        assert_allclose(jones_to_mueller(identity_jones()), np.eye(4), atol=1e-15)

    def test_mueller_rotation_is_real(self):
        M = jones_to_mueller(rotation_jones(0.4))
        assert_allclose(M.imag, 0.0, atol=1e-15)
        # total intensity is unchanged by a rotation
        assert_allclose(M[0], [1.0, 0.0, 0.0, 0.0], atol=1e-15)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
