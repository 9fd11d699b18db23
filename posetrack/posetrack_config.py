"""posetrack: process model parameters from YAML / dicts.

Accepts the tracker parameter names as well as the field names::

    object_transition:
      linear_acceleration_sigma: 0.01    # -> linear_sigma
      angular_acceleration_sigma: 0.05   # -> angular_sigma
      damping: 0.8                       # -> velocity_factor
      object_names: [mug, box]           # -> part_count = 2

License: AGPL-3.0-or-later
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .posetrack_builder import ConfigurationError, ObjectTransitionParams

logger = logging.getLogger(__name__)

SECTION = "object_transition"

# field -> accepted keys, first match wins
PARAMETER_ALIASES = {
    "linear_sigma": ("linear_sigma", "linear_acceleration_sigma"),
    "angular_sigma": ("angular_sigma", "angular_acceleration_sigma"),
    "velocity_factor": ("velocity_factor", "damping"),
}


def _lookup(mapping: Mapping[str, Any], field: str) -> Any:
    for key in PARAMETER_ALIASES[field]:
        if key in mapping:
            return mapping[key]
    raise ConfigurationError(
        field, f"missing (expected one of {', '.join(PARAMETER_ALIASES[field])})")


def params_from_mapping(mapping: Mapping[str, Any],
                        part_count: Optional[int] = None,
                        stacklevel: int = 2) -> ObjectTransitionParams:
    """Build validated parameters from a flat mapping.

    Args:
        mapping: Parameter dict (field names or tracker parameter names)
        part_count: Overrides ``part_count`` / ``object_names`` when given
        stacklevel: Stack level of the damping range warning

    Returns:
        ObjectTransitionParams
    """
    if part_count is None:
        # null keys count as absent
        if mapping.get("part_count") is not None:
            part_count = mapping["part_count"]
        elif mapping.get("object_names") is not None:
            names = mapping["object_names"]
            if isinstance(names, str) or not isinstance(names, (list, tuple)):
                raise ConfigurationError(
                    "part_count", f"object_names must be a list, got {names!r}")
            part_count = len(names)
        else:
            raise ConfigurationError(
                "part_count", "missing (expected part_count or object_names)")

    params = ObjectTransitionParams(
        linear_sigma=_lookup(mapping, "linear_sigma"),
        angular_sigma=_lookup(mapping, "angular_sigma"),
        velocity_factor=_lookup(mapping, "velocity_factor"),
        part_count=part_count,
    )
    return params.validate(stacklevel=stacklevel + 1)


def load_params(path: Union[str, Path],
                part_count: Optional[int] = None) -> ObjectTransitionParams:
    """Load parameters from a YAML file.

    Uses the ``object_transition`` section if present, else the top level.
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(SECTION, f"{path} does not contain a mapping")

    section = data.get(SECTION, data)
    if not isinstance(section, dict):
        raise ConfigurationError(SECTION, f"section in {path} is not a mapping")

    logger.debug("loading process model parameters from %s", path)
    return params_from_mapping(section, part_count=part_count, stacklevel=3)


def params_to_mapping(params: ObjectTransitionParams) -> Dict[str, Any]:
    """Tracker parameter names for ``params``."""
    return {
        "linear_acceleration_sigma": float(params.linear_sigma),
        "angular_acceleration_sigma": float(params.angular_sigma),
        "damping": float(params.velocity_factor),
        "part_count": int(params.part_count),
    }


def dump_params(params: ObjectTransitionParams, path: Union[str, Path]) -> None:
    """Write ``params`` under the ``object_transition`` section."""
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump({SECTION: params_to_mapping(params)}, f, sort_keys=False)
