"""posetrack: process models for multi-body 6-DoF pose tracking.

Damped constant-velocity transition model for N rigid bodies, built as
dense block-diagonal matrices for a UKF / particle filter predict step.

Quick Start::

    from posetrack import ObjectTransitionParams, ObjectTransitionModelBuilder
    params = ObjectTransitionParams(linear_sigma=0.01, angular_sigma=0.05,
                                    velocity_factor=0.8, part_count=2)
    transition = ObjectTransitionModelBuilder(params).build()
    x_next = transition.apply(x, w)
"""

__version__ = "1.0.0"
__license__ = "AGPL-3.0-or-later"

# ---------------------------------------------------------------------------
# State layout
# ---------------------------------------------------------------------------
from .posetrack_state import (
    DYNAMIC,
    PART_STATE_DIM,
    PART_NOISE_DIM,
    POSE_DIM,
    VELOCITY_DIM,
    StateLayout,
    noise_dimension,
)

# ---------------------------------------------------------------------------
# Transition functions
# ---------------------------------------------------------------------------
from .posetrack_models import (
    DimensionMismatchError,
    StateTransitionFunction,
    LinearStateTransitionModel,
)

# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
from .posetrack_builder import (
    ConfigurationError,
    ObjectTransitionParams,
    StateTransitionFunctionBuilder,
    ObjectTransitionModelBuilder,
    build_object_transition_model,
    make_part_dynamics_block,
    make_part_noise_block,
    make_rigid_body_matrices,
)

# ---------------------------------------------------------------------------
# Parameter files
# ---------------------------------------------------------------------------
from .posetrack_config import (
    params_from_mapping,
    params_to_mapping,
    load_params,
    dump_params,
)

__all__ = [
    "__version__",
    # Layout
    "DYNAMIC", "PART_STATE_DIM", "PART_NOISE_DIM", "POSE_DIM", "VELOCITY_DIM",
    "StateLayout", "noise_dimension",
    # Models
    "DimensionMismatchError", "StateTransitionFunction", "LinearStateTransitionModel",
    # Builders
    "ConfigurationError", "ObjectTransitionParams",
    "StateTransitionFunctionBuilder", "ObjectTransitionModelBuilder",
    "build_object_transition_model",
    "make_part_dynamics_block", "make_part_noise_block", "make_rigid_body_matrices",
    # Config
    "params_from_mapping", "params_to_mapping", "load_params", "dump_params",
]
