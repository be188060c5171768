# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They describe the fixed simulation world and the hard limits used when
sanitizing configuration, as opposed to the experimental parameters in
config.json.
"""
import math

# --- World ---
# The world is the square [-1, 1] x [-1, 1].
WORLD_MIN = -1.0
WORLD_MAX = 1.0
WORLD_SIZE = WORLD_MAX - WORLD_MIN
WORLD_DIAGONAL = WORLD_SIZE * math.sqrt(2.0)

# --- Numerics ---
# Guards divisions by (1 - r_min) and (settle_radius - r_min).
FORCE_EPSILON = 1e-6
# Half-width of the uniform range used for initial velocity components.
INITIAL_SPEED = 0.05

# --- Configuration limits ---
MAX_PARTICLE_COUNT = 50000
MIN_PARTICLE_TYPES = 2
MAX_PARTICLE_TYPES = 16
MIN_DELTA_TIME = 1e-4
MIN_CELL_SIZE = 0.01
# Smallest gap enforced between r_min and the radii that must exceed it.
RADIUS_MARGIN = 1e-3

# --- Rule matrix presets ---
# Ring preset: each type attracts itself and the next type (i -> i, i -> i+1).
RING_SELF_WEIGHT = 0.9
RING_NEXT_WEIGHT = 0.6
RING_OTHER_WEIGHT = 0.0
# Random preset: self-interaction is always attractive.
RANDOM_SELF_RANGE = (0.5, 0.9)
# Values the live editor cycles through.
RULE_CYCLE_STEPS = (-1.0, 0.0, 1.0)

# Parameters that may change on a running simulation without a reset.
LIVE_PARAMETERS = ("mutual_only", "settle_enabled", "settle_damping", "settle_radius")
