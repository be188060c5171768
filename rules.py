# rules.py
"""
Rule matrix presets, validation, editing helpers and persistence.

A rule matrix A is a K x K table with entries in [-1, 1]. A[i][j] scales
the force that a type-j particle exerts on a type-i particle (row is the
receiver, column the source). The matrix need not be symmetric.
"""
import json
import logging
import os
from typing import Any, Optional

import numpy as np

from constants import (
    RING_SELF_WEIGHT, RING_NEXT_WEIGHT, RING_OTHER_WEIGHT,
    RANDOM_SELF_RANGE, RULE_CYCLE_STEPS
)
from parameters import ConfigurationError

# --- Data Contracts ---
#
# resolve_matrix(candidate, k, rng, rules_file=None) -> np.ndarray:
#   - Inputs:
#     - candidate: A K x K nested list / array, or one of the generation
#       requests "ring", "random", "zero" or None.
#     - k: int, the live particle type count.
#     - rng: np.random.Generator used by the "random" preset.
#     - rules_file: Optional path to a persisted {"K", "A"} record.
#   - Outputs: A (k, k) float64 array with entries in [-1, 1].
#   - Invariants: Never raises. A malformed candidate falls back to the
#     persisted record, then to the ring preset.
#
# Persistence record: {"K": int, "A": number[][]}.

GENERATION_REQUESTS = ("ring", "random", "zero")


def ring_preset(
    k: int,
    self_weight: float = RING_SELF_WEIGHT,
    next_weight: float = RING_NEXT_WEIGHT,
    others: float = RING_OTHER_WEIGHT,
) -> np.ndarray:
    """Each type attracts itself and its successor, wrapping around at K."""
    matrix = np.full((k, k), others, dtype=np.float64)
    for i in range(k):
        matrix[i, i] = self_weight
        matrix[i, (i + 1) % k] = next_weight
    return matrix


def random_matrix(k: int, rng: np.random.Generator) -> np.ndarray:
    """
    Random rules: self-interaction uniform in RANDOM_SELF_RANGE, every other
    entry uniform in [-1, 1).
    """
    matrix = rng.uniform(-1.0, 1.0, size=(k, k))
    low, high = RANDOM_SELF_RANGE
    np.fill_diagonal(matrix, rng.uniform(low, high, size=k))
    return matrix


def zero_matrix(k: int) -> np.ndarray:
    return np.zeros((k, k), dtype=np.float64)


def validate_matrix(matrix: Any, k: int) -> np.ndarray:
    """
    Checks that matrix is a finite K x K numeric table.

    Returns:
        np.ndarray: A float64 copy with entries clipped into [-1, 1].

    Raises:
        ConfigurationError: If the shape does not match K or values are not
            finite numbers.
    """
    try:
        array = np.array(matrix, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Rule matrix is not numeric: {e}") from e

    if array.shape != (k, k):
        raise ConfigurationError(
            f"Rule matrix shape {array.shape} does not match particle_types ({k}). "
            f"The matrix must be square and its dimensions must equal the number of particle types."
        )
    if not np.all(np.isfinite(array)):
        raise ConfigurationError("Rule matrix contains non-finite values.")

    return np.clip(array, -1.0, 1.0)


def generate_matrix(request: Optional[str], k: int, rng: np.random.Generator) -> np.ndarray:
    """Builds the preset named by request. None means the ring preset."""
    if request == "random":
        return random_matrix(k, rng)
    if request == "zero":
        return zero_matrix(k)
    return ring_preset(k)


def resolve_matrix(
    candidate: Any,
    k: int,
    rng: np.random.Generator,
    rules_file: Optional[str] = None,
) -> np.ndarray:
    """Picks the rule matrix for a new simulation. See the data contract above."""
    if candidate is None or isinstance(candidate, str):
        if candidate is not None and candidate not in GENERATION_REQUESTS:
            logging.warning(f"Unknown matrix preset '{candidate}'. Using the ring preset.")
            candidate = "ring"
        persisted = load_rules(rules_file, k) if rules_file else None
        if persisted is not None:
            return persisted
        logging.info(f"Generating '{candidate or 'ring'}' rule matrix for {k} types.")
        return generate_matrix(candidate, k, rng)

    try:
        return validate_matrix(candidate, k)
    except ConfigurationError as e:
        logging.warning(f"{e} Regenerating a default rule matrix.")

    persisted = load_rules(rules_file, k) if rules_file else None
    if persisted is not None:
        return persisted
    return ring_preset(k)


# --- Editing helpers ---

def cycle_value(value: float, direction: int) -> float:
    """
    Steps value through -1 -> 0 -> +1 (direction +1) or the reverse
    (direction -1). Values that are not one of the steps reset to 0.
    """
    for idx, step in enumerate(RULE_CYCLE_STEPS):
        if abs(step - value) < 1e-6:
            return RULE_CYCLE_STEPS[(idx + direction) % len(RULE_CYCLE_STEPS)]
    return 0.0


def with_entry(matrix: np.ndarray, i: int, j: int, value: float) -> np.ndarray:
    """Returns a copy of matrix with A[i][j] set to value, clipped into [-1, 1]."""
    updated = np.array(matrix, dtype=np.float64, copy=True)
    updated[i, j] = min(max(float(value), -1.0), 1.0)
    return updated


# --- Persistence ---

def save_rules(path: str, matrix: np.ndarray) -> None:
    """Writes the {"K", "A"} record for matrix to path."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    record = {"K": int(matrix.shape[0]), "A": np.asarray(matrix).tolist()}
    with open(path, 'w') as f:
        json.dump(record, f)
    logging.info(f"Saved {record['K']}x{record['K']} rule matrix to {path}.")


def load_rules(path: str, k: int) -> Optional[np.ndarray]:
    """
    Loads a persisted rule matrix.

    Returns None if the file is missing, unreadable, or holds a record whose
    K or shape does not match the live type count.
    """
    if not os.path.exists(path):
        logging.debug(f"No persisted rules at {path}.")
        return None
    try:
        with open(path, 'r') as f:
            record = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logging.warning(f"Could not read persisted rules from {path}: {e}")
        return None

    if not isinstance(record, dict) or record.get("K") != k:
        logging.info(f"Persisted rules at {path} are not for {k} types. Ignoring them.")
        return None
    try:
        matrix = validate_matrix(record.get("A"), k)
    except ConfigurationError as e:
        logging.warning(f"Persisted rules at {path} are malformed: {e}")
        return None

    logging.info(f"Loaded {k}x{k} rule matrix from {path}.")
    return matrix
