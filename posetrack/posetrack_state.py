"""posetrack: rigid-body state layout.

Describes how a stacked multi-body state vector is partitioned:

    body i  →  state[12i : 12i+12] = [tx, ty, tz, rx, ry, rz,    (pose)
                                      vx, vy, vz, wx, wy, wz]    (velocity)
            →  noise[6i : 6i+6]    = [ax, ay, az, αx, αy, αz]

The process noise vector is always half the size of the state. A size that
is only known at run time is carried as ``DYNAMIC`` instead of a number.

License: AGPL-3.0-or-later
"""

from dataclasses import dataclass


DYNAMIC = -1            # size known only at run time

PART_STATE_DIM = 12     # 6 pose + 6 velocity
PART_NOISE_DIM = 6      # 3 linear + 3 angular
POSE_DIM = 6
VELOCITY_DIM = 6


def noise_dimension(state_dim: int) -> int:
    """Noise dimension for a state dimension (``state_dim // 2``).

    ``DYNAMIC`` stays ``DYNAMIC``. A size of 0 gives 0.
    """
    if state_dim == DYNAMIC:
        return DYNAMIC
    if state_dim < 0:
        raise ValueError(f"state dimension must be non-negative, got {state_dim}")
    return state_dim // 2


def _half(dim: int) -> int:
    return DYNAMIC if dim == DYNAMIC else dim // 2


@dataclass(frozen=True)
class StateLayout:
    """Partition of a multi-body state vector into pose / velocity / noise.

    Attributes:
        state_dim: Total state dimension, or ``DYNAMIC``
    """
    state_dim: int

    def __post_init__(self):
        # validates the size descriptor
        noise_dimension(self.state_dim)

    @classmethod
    def for_parts(cls, part_count: int) -> "StateLayout":
        """Layout for ``part_count`` rigid bodies."""
        if part_count < 0:
            raise ValueError(f"part count must be non-negative, got {part_count}")
        return cls(PART_STATE_DIM * part_count)

    @property
    def is_dynamic(self) -> bool:
        return self.state_dim == DYNAMIC

    @property
    def noise_dim(self) -> int:
        return noise_dimension(self.state_dim)

    @property
    def pose_dim(self) -> int:
        return _half(self.state_dim)

    @property
    def velocity_dim(self) -> int:
        return _half(self.state_dim)

    @property
    def part_count(self) -> int:
        if self.is_dynamic:
            return DYNAMIC
        return self.state_dim // PART_STATE_DIM

    # ----- per-body index helpers -----

    def _check_part(self, i: int) -> int:
        if self.is_dynamic:
            raise ValueError("per-body slices need a concrete state dimension")
        if not 0 <= i < self.part_count:
            raise IndexError(f"body index {i} out of range for {self.part_count} bodies")
        return i * PART_STATE_DIM

    def part_slice(self, i: int) -> slice:
        """Full 12-vector of body ``i``."""
        start = self._check_part(i)
        return slice(start, start + PART_STATE_DIM)

    def pose_slice(self, i: int) -> slice:
        start = self._check_part(i)
        return slice(start, start + POSE_DIM)

    def position_slice(self, i: int) -> slice:
        start = self._check_part(i)
        return slice(start, start + 3)

    def orientation_slice(self, i: int) -> slice:
        start = self._check_part(i)
        return slice(start + 3, start + 6)

    def velocity_slice(self, i: int) -> slice:
        start = self._check_part(i) + POSE_DIM
        return slice(start, start + VELOCITY_DIM)

    def linear_velocity_slice(self, i: int) -> slice:
        start = self._check_part(i) + POSE_DIM
        return slice(start, start + 3)

    def angular_velocity_slice(self, i: int) -> slice:
        start = self._check_part(i) + POSE_DIM
        return slice(start + 3, start + 6)

    def noise_slice(self, i: int) -> slice:
        """6-vector of noise driving body ``i``."""
        self._check_part(i)
        start = i * PART_NOISE_DIM
        return slice(start, start + PART_NOISE_DIM)
