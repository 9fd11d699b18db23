"""posetrack: object transition model builder.

Damped constant-velocity process model for N free-floating rigid bodies.
Per body (pose p, velocity v, 6-vector noise w, damping f):

    p' = p + f·v + Σ_w w
    v' =     f·v + Σ_w w           Σ_w = diag(σ_lin·I3, σ_ang·I3)

The same noise sample enters pose and velocity. Bodies are independent, so
A and B are block diagonal with one 12×12 / 12×6 block per body.

Example::

    params = ObjectTransitionParams(linear_sigma=0.01, angular_sigma=0.05,
                                    velocity_factor=0.8, part_count=2)
    transition = ObjectTransitionModelBuilder(params).build()
    x_next = transition.apply(x, w)

License: AGPL-3.0-or-later
"""

import logging
import math
import numbers
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .posetrack_models import LinearStateTransitionModel, StateTransitionFunction
from .posetrack_state import (
    PART_NOISE_DIM, PART_STATE_DIM, POSE_DIM, noise_dimension,
)

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Invalid process model parameter.

    Attributes:
        field: Name of the offending parameter
    """

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


# ===== CONFIGURATION =====

def _is_real(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


@dataclass(frozen=True)
class ObjectTransitionParams:
    """Process model parameters.

    Attributes:
        linear_sigma: Std of the linear acceleration noise per step
        angular_sigma: Std of the angular acceleration noise per step
        velocity_factor: Damping applied to velocity each step, in [0, 1]
        part_count: Number of tracked rigid bodies
    """
    linear_sigma: float
    angular_sigma: float
    velocity_factor: float
    part_count: int

    def validate(self, stacklevel: int = 2) -> "ObjectTransitionParams":
        """Raise ConfigurationError naming the first bad field.

        Args:
            stacklevel: Passed to warnings.warn; 2 blames the caller
        """
        if (isinstance(self.part_count, bool)
                or not isinstance(self.part_count, numbers.Integral)):
            raise ConfigurationError(
                "part_count", f"must be an integer, got {self.part_count!r}")
        if self.part_count < 1:
            raise ConfigurationError(
                "part_count", f"must be at least 1, got {self.part_count}")

        for name in ("linear_sigma", "angular_sigma"):
            sigma = getattr(self, name)
            if not _is_real(sigma) or not math.isfinite(sigma):
                raise ConfigurationError(name, f"must be a finite number, got {sigma!r}")
            if sigma < 0:
                raise ConfigurationError(name, f"must be non-negative, got {sigma}")

        f = self.velocity_factor
        if not _is_real(f) or not math.isfinite(f):
            raise ConfigurationError(
                "velocity_factor", f"must be a finite number, got {f!r}")
        if not 0.0 <= f <= 1.0:
            warnings.warn(
                f"velocity_factor={f} is outside [0, 1]; velocities will "
                f"{'grow' if abs(f) > 1.0 else 'alternate sign'} each step",
                RuntimeWarning, stacklevel=stacklevel)
        return self


# ===== PER-BODY BLOCKS =====

def make_part_dynamics_block(velocity_factor: float) -> np.ndarray:
    """12×12 dynamics block of a single body.

    Built in three steps on a fresh buffer:
      1. identity (pose and velocity persist)
      2. top-right 6×6 = identity (pose receives velocity)
      3. scale the right 6 columns by the damping factor, which damps
         both the pose←velocity corner and the velocity diagonal
    """
    part_A = np.eye(PART_STATE_DIM)
    part_A[:POSE_DIM, POSE_DIM:] = np.eye(POSE_DIM)
    part_A[:, POSE_DIM:] *= velocity_factor
    return part_A


def make_part_noise_block(linear_sigma: float, angular_sigma: float) -> np.ndarray:
    """12×6 noise block of a single body.

    Rows 0-2 / 3-5 map linear / angular noise onto the pose; rows 6-11
    repeat them so the same sample drives the velocity.
    """
    part_B = np.zeros((PART_STATE_DIM, PART_NOISE_DIM))
    part_B[0:3, 0:3] = np.eye(3) * linear_sigma
    part_B[3:6, 3:6] = np.eye(3) * angular_sigma
    part_B[POSE_DIM:, :] = part_B[:POSE_DIM, :]
    return part_B


def make_rigid_body_matrices(linear_sigma: float, angular_sigma: float,
                             velocity_factor: float) -> Tuple[np.ndarray, np.ndarray]:
    """Fixed-size single-body model.

    Returns:
        A (12×12), B (12×6)
    """
    return (make_part_dynamics_block(velocity_factor),
            make_part_noise_block(linear_sigma, angular_sigma))


# ===== BUILDERS =====

class StateTransitionFunctionBuilder(ABC):
    """Produces a transition function for a filter's predict step."""

    @abstractmethod
    def build(self) -> StateTransitionFunction:
        ...


class ObjectTransitionModelBuilder(StateTransitionFunctionBuilder):
    """Block-diagonal damped constant-velocity model for ``part_count`` bodies.

    Parameters are validated on construction. The built model is immutable
    and may be shared between filters and threads.
    """

    def __init__(self, params: ObjectTransitionParams, stacklevel: int = 2):
        self.params = params.validate(stacklevel=stacklevel + 1)

    def build(self) -> StateTransitionFunction:
        """Transition function handle for the filter's predict step."""
        return self.build_model()

    def build_model(self) -> LinearStateTransitionModel:
        """Assemble A, B, C and wrap them in a linear model."""
        p = self.params

        total_state_dim = p.part_count * PART_STATE_DIM
        total_noise_dim = noise_dimension(total_state_dim)

        A = np.zeros((total_state_dim, total_state_dim))
        B = np.zeros((total_state_dim, total_noise_dim))
        C = np.zeros((total_state_dim, 1))

        part_A = make_part_dynamics_block(p.velocity_factor)
        part_B = make_part_noise_block(p.linear_sigma, p.angular_sigma)

        for i in range(p.part_count):
            r = i * PART_STATE_DIM
            c = i * PART_NOISE_DIM
            A[r:r + PART_STATE_DIM, r:r + PART_STATE_DIM] = part_A
            B[r:r + PART_STATE_DIM, c:c + PART_NOISE_DIM] = part_B

        model = LinearStateTransitionModel(total_state_dim, total_noise_dim, 1)
        model.dynamics_matrix = A
        model.noise_matrix = B
        model.input_matrix = C
        model.seal()

        logger.debug("built object transition model: %d bodies, A %s, B %s",
                     p.part_count, A.shape, B.shape)
        return model


def build_object_transition_model(params: ObjectTransitionParams) -> StateTransitionFunction:
    """Shortcut for ``ObjectTransitionModelBuilder(params).build()``."""
    return ObjectTransitionModelBuilder(params, stacklevel=3).build()
