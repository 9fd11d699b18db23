"""Tests for posetrack linear state transition model."""
import numpy as np
import pytest
import sys, os
from numpy.testing import assert_array_equal, assert_allclose

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from posetrack.posetrack_models import (
    DimensionMismatchError,
    LinearStateTransitionModel,
    StateTransitionFunction,
)


@pytest.fixture
def model():
    """4-state / 2-noise model with simple, distinguishable matrices."""
    m = LinearStateTransitionModel(4, 2, 1)
    A = m.create_dynamics_matrix()
    A[0, 2] = A[1, 3] = 0.5
    B = m.create_noise_matrix()
    B[0, 0] = B[2, 0] = 2.0
    B[1, 1] = B[3, 1] = 3.0
    C = m.create_input_matrix()
    C[:, 0] = [1.0, 0.0, 0.0, -1.0]
    m.dynamics_matrix = A
    m.noise_matrix = B
    m.input_matrix = C
    return m


class TestConstruction:
    """Dimensions and default matrices."""

    def test_defaults(self):
        m = LinearStateTransitionModel(12, 6)
        assert m.input_dimension == 1
        assert_array_equal(m.dynamics_matrix, np.eye(12))
        assert_array_equal(m.noise_matrix, np.zeros((12, 6)))
        assert_array_equal(m.input_matrix, np.zeros((12, 1)))

    def test_factories_return_writable_copies(self):
        m = LinearStateTransitionModel(12, 6)
        A = m.create_dynamics_matrix()
        A[0, 0] = 5.0
        assert m.dynamics_matrix[0, 0] == 1.0
        assert m.create_noise_matrix().shape == (12, 6)
        assert m.create_input_matrix().shape == (12, 1)

    def test_noise_dim_must_be_half_state_dim(self):
        with pytest.raises(DimensionMismatchError, match="state_dim / 2"):
            LinearStateTransitionModel(12, 5)

    @pytest.mark.parametrize("dims", [(-2, -1, 1), (4, 2, -1), (4.0, 2, 1), (True, 0, 1)])
    def test_bad_dimensions(self, dims):
        with pytest.raises(DimensionMismatchError):
            LinearStateTransitionModel(*dims)

    def test_empty_model(self):
        m = LinearStateTransitionModel(0, 0)
        assert m.apply(np.zeros(0), np.zeros(0)).shape == (0,)

    def test_is_transition_function(self, model):
        assert isinstance(model, StateTransitionFunction)

    def test_abstract_capability(self):
        with pytest.raises(TypeError):
            StateTransitionFunction()

    def test_repr(self, model):
        assert "state_dim=4" in repr(model)


class TestMatrixAssignment:
    """Setters check shape, copy and freeze."""

    def test_wrong_shape_rejected(self, model):
        with pytest.raises(DimensionMismatchError, match="dynamics matrix"):
            model.dynamics_matrix = np.eye(3)
        with pytest.raises(DimensionMismatchError, match="noise matrix"):
            model.noise_matrix = np.zeros((4, 3))
        with pytest.raises(DimensionMismatchError, match="input matrix"):
            model.input_matrix = np.zeros((4, 2))

    def test_assignment_copies(self):
        m = LinearStateTransitionModel(4, 2)
        A = np.eye(4)
        m.dynamics_matrix = A
        A[0, 0] = 9.0
        assert m.dynamics_matrix[0, 0] == 1.0

    def test_stored_matrices_read_only(self, model):
        for M in (model.dynamics_matrix, model.noise_matrix, model.input_matrix):
            assert not M.flags.writeable

    def test_sealed_model_rejects_assignment(self, model):
        assert not model.sealed
        assert model.seal() is model
        A = model.dynamics_matrix.copy()
        with pytest.raises(AttributeError, match="sealed"):
            model.dynamics_matrix = np.eye(4)
        with pytest.raises(AttributeError):
            model.noise_matrix = np.zeros((4, 2))
        with pytest.raises(AttributeError):
            model.input_matrix = np.zeros((4, 1))
        assert_array_equal(model.dynamics_matrix, A)

    def test_integer_matrix_stored_as_float(self):
        m = LinearStateTransitionModel(2, 1)
        m.dynamics_matrix = [[1, 0], [0, 1]]
        assert m.dynamics_matrix.dtype == np.float64


class TestApply:
    """x' = A x + B w + C u."""

    def test_single_vector(self, model):
        x = np.array([1.0, 2.0, 3.0, 4.0])
        w = np.array([0.5, -1.0])
        expected = model.dynamics_matrix @ x + model.noise_matrix @ w
        assert_array_equal(model.apply(x, w), expected)
        assert_allclose(model.apply(x, w), [3.5, 1.0, 4.0, 1.0])

    def test_call_forwards_to_apply(self, model):
        x = np.arange(4.0)
        w = np.ones(2)
        assert_array_equal(model(x, w), model.apply(x, w))

    def test_input(self, model):
        x = np.zeros(4)
        w = np.zeros(2)
        assert_allclose(model.apply(x, w, np.array([2.0])), [2.0, 0.0, 0.0, -2.0])

    def test_none_input_is_zero_input(self, model):
        x = np.arange(4.0)
        w = np.ones(2)
        assert_array_equal(model.apply(x, w), model.apply(x, w, np.zeros(1)))

    def test_batch_matches_loop(self, model):
        rng = np.random.default_rng(3)
        X = rng.normal(size=(20, 4))
        W = rng.normal(size=(20, 2))
        batch = model.apply(X, W)
        assert batch.shape == (20, 4)
        for k in range(20):
            assert_allclose(batch[k], model.apply(X[k], W[k]), rtol=1e-12)

    def test_batch_with_shared_noise(self, model):
        X = np.ones((5, 4))
        w = np.array([1.0, 0.0])
        out = model.apply(X, w)
        assert out.shape == (5, 4)
        assert_allclose(out[0], model.apply(X[0], w))

    def test_batch_input(self, model):
        X = np.zeros((3, 4))
        W = np.zeros((3, 2))
        U = np.array([[1.0], [2.0], [3.0]])
        assert_allclose(model.apply(X, W, U)[:, 0], [1.0, 2.0, 3.0])

    def test_list_arguments(self, model):
        assert_allclose(model.apply([0, 0, 0, 0], [1, 1]), [2.0, 3.0, 2.0, 3.0])

    def test_shape_errors(self, model):
        with pytest.raises(DimensionMismatchError, match="state"):
            model.apply(np.zeros(3), np.zeros(2))
        with pytest.raises(DimensionMismatchError, match="noise"):
            model.apply(np.zeros(4), np.zeros(4))
        with pytest.raises(DimensionMismatchError, match="input"):
            model.apply(np.zeros(4), np.zeros(2), np.zeros(2))
        with pytest.raises(DimensionMismatchError, match="batch sizes"):
            model.apply(np.zeros((3, 4)), np.zeros((2, 2)))
        with pytest.raises(DimensionMismatchError):
            model.apply(np.zeros((2, 2, 4)), np.zeros(2))

    def test_input_batch_size_mismatch(self, model):
        with pytest.raises(DimensionMismatchError, match="batch sizes"):
            model.apply(np.zeros((3, 4)), np.zeros((3, 2)), np.zeros((2, 1)))

    def test_batch_input_with_single_state(self, model):
        with pytest.raises(DimensionMismatchError, match="batch sizes"):
            model.apply(np.zeros(4), np.zeros(2), np.zeros((5, 1)))

    def test_batch_input_with_batch_noise(self, model):
        """A noise batch on one state yields a batch the input may match."""
        out = model.apply(np.zeros(4), np.zeros((3, 2)), np.ones((3, 1)))
        assert out.shape == (3, 4)
        assert_allclose(out[:, 0], np.ones(3))


class TestGaussianPredict:
    """Moments and noise sampling for the predict step."""

    def test_noise_covariance(self, model):
        B = model.noise_matrix
        assert_array_equal(model.noise_covariance(), B @ B.T)

    def test_predict_moments(self, model):
        m = np.array([1.0, 0.0, 2.0, 0.0])
        P = np.diag([1.0, 2.0, 3.0, 4.0])
        mean, cov = model.predict_moments(m, P)
        A, B = model.dynamics_matrix, model.noise_matrix
        assert_allclose(mean, A @ m)
        assert_allclose(cov, A @ P @ A.T + B @ B.T)
        assert_allclose(cov, cov.T)

    def test_predict_moments_shape_errors(self, model):
        with pytest.raises(DimensionMismatchError, match="mean"):
            model.predict_moments(np.zeros(3), np.eye(4))
        with pytest.raises(DimensionMismatchError, match="covariance"):
            model.predict_moments(np.zeros(4), np.eye(3))

    def test_sample_noise_shapes(self, model):
        rng = np.random.default_rng(0)
        assert model.sample_noise(rng=rng).shape == (2,)
        assert model.sample_noise(100, rng=rng).shape == (100, 2)

    def test_sample_noise_reproducible(self, model):
        a = model.sample_noise(10, rng=np.random.default_rng(7))
        b = model.sample_noise(10, rng=np.random.default_rng(7))
        assert_array_equal(a, b)

    def test_monte_carlo_matches_moments(self, model):
        """Empirical covariance of propagated particles ≈ A P Aᵀ + B Bᵀ."""
        rng = np.random.default_rng(11)
        m = np.array([1.0, -1.0, 0.5, 0.0])
        P = np.diag([0.5, 0.5, 0.2, 0.2])
        X = rng.multivariate_normal(m, P, size=50000)
        X_next = model.apply(X, model.sample_noise(len(X), rng=rng))

        mean, cov = model.predict_moments(m, P)
        assert_allclose(X_next.mean(axis=0), mean, atol=0.05)
        assert_allclose(np.cov(X_next.T), cov, atol=0.25)
