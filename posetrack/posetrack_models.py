"""posetrack: state transition functions.

Capability consumed by a filter's predict step, plus the linear-Gaussian
model that implements it:

    x(k+1) = A x(k) + B w(k) + C u(k),     w ~ N(0, I)

A is the dynamics matrix, B the noise matrix (it carries the noise
standard deviations, so the process covariance is B Bᵀ) and C the input
matrix. The model is timestep-agnostic: nothing here scales with dt.

License: AGPL-3.0-or-later
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

from .posetrack_state import noise_dimension


class DimensionMismatchError(ValueError):
    """Matrix or vector shape inconsistent with the model dimensions."""


# ===== CAPABILITY =====

class StateTransitionFunction(ABC):
    """Anything that advances a state by one step given noise and input."""

    @property
    @abstractmethod
    def state_dimension(self) -> int:
        ...

    @property
    @abstractmethod
    def noise_dimension(self) -> int:
        ...

    @property
    @abstractmethod
    def input_dimension(self) -> int:
        ...

    @abstractmethod
    def apply(self, state: np.ndarray, noise: np.ndarray,
              input: Optional[np.ndarray] = None) -> np.ndarray:
        """Next state for ``state`` driven by ``noise`` and ``input``."""

    def __call__(self, state, noise, input=None) -> np.ndarray:
        return self.apply(state, noise, input)


# ===== LINEAR MODEL =====

def _check_dim(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise DimensionMismatchError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise DimensionMismatchError(f"{name} must be non-negative, got {value}")
    return int(value)


def _check_vector(name: str, v: np.ndarray, dim: int) -> None:
    if v.ndim not in (1, 2) or v.shape[-1] != dim:
        raise DimensionMismatchError(
            f"{name} must have trailing dimension {dim}, got shape {v.shape}")


class LinearStateTransitionModel(StateTransitionFunction):
    """Linear state transition x' = A x + B w + C u.

    Dimensions are fixed at construction. Matrices assigned through the
    ``dynamics_matrix`` / ``noise_matrix`` / ``input_matrix`` setters are
    shape-checked, copied and frozen (read-only). Once ``seal()`` is called
    the matrices can no longer be replaced.

    Example::

        model = LinearStateTransitionModel(12, 6, 1)
        A = model.create_dynamics_matrix()
        A[:6, 6:] = np.eye(6)
        model.dynamics_matrix = A
        x_next = model.apply(x, model.sample_noise())
    """

    def __init__(self, state_dim: int, noise_dim: int, input_dim: int = 1):
        state_dim = _check_dim("state_dim", state_dim)
        noise_dim = _check_dim("noise_dim", noise_dim)
        input_dim = _check_dim("input_dim", input_dim)
        if noise_dim != noise_dimension(state_dim):
            raise DimensionMismatchError(
                f"noise_dim must be state_dim / 2 = {noise_dimension(state_dim)}, "
                f"got {noise_dim}")

        self._state_dim = state_dim
        self._noise_dim = noise_dim
        self._input_dim = input_dim

        self._A = self._freeze(self.create_dynamics_matrix())
        self._B = self._freeze(self.create_noise_matrix())
        self._C = self._freeze(self.create_input_matrix())
        self._sealed = False

    @staticmethod
    def _freeze(M: np.ndarray) -> np.ndarray:
        M.setflags(write=False)
        return M

    def _assign(self, name: str, M, shape: Tuple[int, int]) -> np.ndarray:
        if self._sealed:
            raise AttributeError(f"{name} of a sealed model cannot be replaced")
        M = np.array(M, dtype=np.float64)
        if M.shape != shape:
            raise DimensionMismatchError(
                f"{name} must have shape {shape}, got {M.shape}")
        return self._freeze(M)

    def seal(self) -> "LinearStateTransitionModel":
        """Forbid further matrix assignment; the model is then immutable."""
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    # ----- dimensions -----

    @property
    def state_dimension(self) -> int:
        return self._state_dim

    @property
    def noise_dimension(self) -> int:
        return self._noise_dim

    @property
    def input_dimension(self) -> int:
        return self._input_dim

    # ----- matrix factories (fresh, writable) -----

    def create_dynamics_matrix(self) -> np.ndarray:
        """Identity A of shape (state_dim, state_dim)."""
        return np.eye(self._state_dim)

    def create_noise_matrix(self) -> np.ndarray:
        """Zero B of shape (state_dim, noise_dim)."""
        return np.zeros((self._state_dim, self._noise_dim))

    def create_input_matrix(self) -> np.ndarray:
        """Zero C of shape (state_dim, input_dim)."""
        return np.zeros((self._state_dim, self._input_dim))

    # ----- matrices -----

    @property
    def dynamics_matrix(self) -> np.ndarray:
        return self._A

    @dynamics_matrix.setter
    def dynamics_matrix(self, A):
        self._A = self._assign("dynamics matrix", A, (self._state_dim, self._state_dim))

    @property
    def noise_matrix(self) -> np.ndarray:
        return self._B

    @noise_matrix.setter
    def noise_matrix(self, B):
        self._B = self._assign("noise matrix", B, (self._state_dim, self._noise_dim))

    @property
    def input_matrix(self) -> np.ndarray:
        return self._C

    @input_matrix.setter
    def input_matrix(self, C):
        self._C = self._assign("input matrix", C, (self._state_dim, self._input_dim))

    # ----- evaluation -----

    def apply(self, state: np.ndarray, noise: np.ndarray,
              input: Optional[np.ndarray] = None) -> np.ndarray:
        """x' = A x + B w (+ C u).

        Args:
            state: (state_dim,) or a batch (n, state_dim)
            noise: (noise_dim,) or a batch (n, noise_dim)
            input: (input_dim,) / (n, input_dim); None means zero input

        Returns:
            Next state(s), same leading shape as ``state``
        """
        x = np.asarray(state, dtype=np.float64)
        w = np.asarray(noise, dtype=np.float64)
        _check_vector("state", x, self._state_dim)
        _check_vector("noise", w, self._noise_dim)
        if x.ndim == 2 and w.ndim == 2 and x.shape[0] != w.shape[0]:
            raise DimensionMismatchError(
                f"batch sizes differ: {x.shape[0]} states, {w.shape[0]} noise samples")

        if x.ndim == 1 and w.ndim == 1:
            x_next = self._A @ x + self._B @ w
        else:
            # row-vector batch, e.g. particles
            x_next = x @ self._A.T + w @ self._B.T

        if input is not None:
            u = np.asarray(input, dtype=np.float64)
            _check_vector("input", u, self._input_dim)
            if u.ndim == 2 and (x_next.ndim != 2 or u.shape[0] != x_next.shape[0]):
                raise DimensionMismatchError(
                    f"batch sizes differ: next state shape {x_next.shape}, "
                    f"input shape {u.shape}")
            x_next = x_next + (self._C @ u if u.ndim == 1 else u @ self._C.T)
        return x_next

    def noise_covariance(self) -> np.ndarray:
        """Process noise covariance Q = B Bᵀ."""
        return self._B @ self._B.T

    def predict_moments(self, mean: np.ndarray,
                        covariance: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Gaussian predict: (A m, A P Aᵀ + B Bᵀ)."""
        m = np.asarray(mean, dtype=np.float64)
        P = np.asarray(covariance, dtype=np.float64)
        n = self._state_dim
        if m.shape != (n,):
            raise DimensionMismatchError(f"mean must have shape ({n},), got {m.shape}")
        if P.shape != (n, n):
            raise DimensionMismatchError(
                f"covariance must have shape ({n}, {n}), got {P.shape}")

        A = self._A
        return A @ m, A @ P @ A.T + self.noise_covariance()

    def sample_noise(self, size: Optional[int] = None,
                     rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """Standard-normal noise vector(s) for ``apply``."""
        rng = rng if rng is not None else np.random.default_rng()
        shape = self._noise_dim if size is None else (size, self._noise_dim)
        return rng.standard_normal(shape)

    def __repr__(self):
        return (f"LinearStateTransitionModel(state_dim={self._state_dim}, "
                f"noise_dim={self._noise_dim}, input_dim={self._input_dim})")
