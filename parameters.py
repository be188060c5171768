# parameters.py
"""
Validation and sanitizing of simulation parameters.

The simulation is meant to stay live while it is being edited, so a bad
parameter is never fatal: sanitize_params() clamps every value to its
nearest valid bound and logs what it changed. validate_params() is the
strict counterpart for callers that want to know about problems instead.
"""
import logging
from typing import Dict, Any, List

from constants import (
    WORLD_SIZE, WORLD_DIAGONAL, MAX_PARTICLE_COUNT, MIN_PARTICLE_TYPES,
    MAX_PARTICLE_TYPES, MIN_DELTA_TIME, MIN_CELL_SIZE, RADIUS_MARGIN
)

# --- Data Contracts ---
#
# sanitize_params(params: Dict[str, Any]) -> Dict[str, Any]:
#   - Inputs:
#     - params: The "simulation_parameters" section of config.json. Missing
#       keys are filled from DEFAULT_PARAMS.
#   - Outputs: A new dictionary in which every value lies in its valid range.
#   - Side Effects: Logs one warning per corrected value.
#   - Invariants: Never raises. Idempotent on its own output.
#
# validate_params(params: Dict[str, Any]) -> None:
#   - Raises ConfigurationError listing every out-of-range value.

DEFAULT_PARAMS: Dict[str, Any] = {
    "seed": 1337,
    "particle_count": 500,
    "particle_types": 5,
    "interaction_matrix": "ring",
    "interaction_radius_min": 0.12,
    "interaction_radius_max": 0.75,
    "delta_time": 0.03,
    "drag": 1.0,
    "max_velocity": 1.5,
    "wrap": False,
    "grid_cell_size": 0.1,
    "mutual_only": False,
    "settle_enabled": True,
    "settle_damping": 0.2,
    "settle_radius": 0.2,
}

_INT_KEYS = ("seed", "particle_count", "particle_types")
_BOOL_KEYS = ("wrap", "mutual_only", "settle_enabled")
_FLOAT_KEYS = (
    "interaction_radius_min", "interaction_radius_max", "delta_time", "drag",
    "max_velocity", "grid_cell_size", "settle_damping", "settle_radius",
)


class ConfigurationError(ValueError):
    """Raised when parameters or a rule matrix are outside their valid shape or range."""


def _bounds(params: Dict[str, Any]) -> Dict[str, tuple]:
    """Valid (low, high) bounds per numeric key. Radii depend on r_min and R."""
    r_min = params["interaction_radius_min"]
    r_max = params["interaction_radius_max"]
    return {
        "particle_count": (0, MAX_PARTICLE_COUNT),
        "particle_types": (MIN_PARTICLE_TYPES, MAX_PARTICLE_TYPES),
        "interaction_radius_min": (RADIUS_MARGIN, 1.0 - RADIUS_MARGIN),
        "interaction_radius_max": (r_min + RADIUS_MARGIN, WORLD_DIAGONAL),
        "delta_time": (MIN_DELTA_TIME, float("inf")),
        "drag": (0.0, float("inf")),
        "max_velocity": (0.0, float("inf")),
        "grid_cell_size": (MIN_CELL_SIZE, WORLD_SIZE),
        "settle_damping": (0.0, float("inf")),
        "settle_radius": (r_min + RADIUS_MARGIN, r_max),
    }


def _coerce(key: str, value: Any) -> Any:
    if key in _BOOL_KEYS:
        return bool(value)
    if key in _INT_KEYS:
        return int(value)
    return float(value)


def sanitize_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Returns a copy of params with defaults filled in and every value clamped
    to its nearest valid bound.
    """
    clean = dict(DEFAULT_PARAMS)
    clean.update(params or {})

    for key in _INT_KEYS + _BOOL_KEYS + _FLOAT_KEYS:
        try:
            clean[key] = _coerce(key, clean[key])
        except (TypeError, ValueError):
            logging.warning(
                f"Parameter '{key}' has invalid value {clean[key]!r}. "
                f"Using default {DEFAULT_PARAMS[key]!r}."
            )
            clean[key] = DEFAULT_PARAMS[key]
        if key in _FLOAT_KEYS and clean[key] != clean[key]:
            logging.warning(f"Parameter '{key}' is NaN. Using default {DEFAULT_PARAMS[key]!r}.")
            clean[key] = DEFAULT_PARAMS[key]

    # Order matters: the radius bounds depend on the already-clamped r_min and R.
    for key in (
        "particle_count", "particle_types", "interaction_radius_min",
        "interaction_radius_max", "delta_time", "drag", "max_velocity",
        "grid_cell_size", "settle_damping", "settle_radius",
    ):
        low, high = _bounds(clean)[key]
        value = clean[key]
        clamped = min(max(value, low), high)
        if clamped != value:
            logging.warning(
                f"Parameter '{key}'={value} is outside [{low}, {high}]. "
                f"Clamped to {clamped}."
            )
            clean[key] = clamped

    return clean


def validate_params(params: Dict[str, Any]) -> None:
    """
    Checks params strictly without modifying them.

    Raises:
        ConfigurationError: If any value is missing, malformed or out of range.
    """
    merged = dict(DEFAULT_PARAMS)
    merged.update(params or {})
    problems: List[str] = []

    for key in _INT_KEYS + _BOOL_KEYS + _FLOAT_KEYS:
        try:
            merged[key] = _coerce(key, merged[key])
        except (TypeError, ValueError):
            problems.append(f"'{key}' has invalid value {merged[key]!r}")

    if not problems:
        for key, (low, high) in _bounds(merged).items():
            if not low <= merged[key] <= high:
                problems.append(f"'{key}'={merged[key]} is outside [{low}, {high}]")

    if problems:
        raise ConfigurationError("Invalid simulation parameters: " + "; ".join(problems))
