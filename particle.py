# particle.py
"""
Manages the state of all particles in the simulation.

This module defines the ParticleSystem class, which is responsible for
initializing and storing particle data (position, velocity, type) in
parallel NumPy arrays rather than per-particle objects.
"""
import logging
import numpy as np
from typing import Dict, Any, Optional

from constants import WORLD_MIN, WORLD_MAX, INITIAL_SPEED

# --- Data Contracts ---
#
# class ParticleSystem:
#   - __init__(self, params: Dict[str, Any], seed: Optional[int] = None):
#     - Inputs:
#       - params: Sanitized simulation parameters.
#         - "seed": int (used when seed is None)
#         - "particle_count": int
#         - "particle_types": int
#       - seed: Optional override of params["seed"].
#     - Outputs: None
#     - Side Effects: Initializes internal NumPy arrays for particle state.
#     - Invariants:
#       - self.positions is a NumPy array of shape (N, 2) of dtype float64,
#         every coordinate in [-1, 1].
#       - self.velocities is a NumPy array of shape (N, 2) of dtype float64.
#       - self.types is a NumPy array of shape (N,) of dtype int32, values
#         in [0, particle_types).

class ParticleSystem:
    """
    A container for all particles, managing their state via NumPy arrays.
    """
    def __init__(self, params: Dict[str, Any], seed: Optional[int] = None):
        """
        Initializes the particle system.

        Args:
            params (Dict[str, Any]): Sanitized simulation parameters.
            seed (Optional[int]): Overrides params['seed'] when given.
        """
        count = params['particle_count']
        particle_types = params['particle_types']
        seed = params['seed'] if seed is None else seed

        # Rule 12: All randomness is controlled by a single master seed.
        # The generator is kept so the simulation can draw rule presets
        # from the same deterministic stream.
        rng = np.random.default_rng(seed)

        # Initialize particle state arrays
        positions = rng.uniform(
            low=WORLD_MIN,
            high=WORLD_MAX,
            size=(count, 2)
        )
        velocities = rng.uniform(
            low=-INITIAL_SPEED,
            high=INITIAL_SPEED,
            size=(count, 2)
        )
        types = rng.integers(
            low=0,
            high=particle_types,
            size=count,
            dtype=np.int32
        )
        self._set_state(particle_types, seed, rng, positions, velocities, types)

        logging.info(
            f"ParticleSystem initialized with {self.particle_count} "
            f"particles of {self.particle_types} types (seed {self.seed})."
        )
        logging.debug(
            f"Particle data arrays created. "
            f"Positions shape: {self.positions.shape}, "
            f"Velocities shape: {self.velocities.shape}, "
            f"Types shape: {self.types.shape}"
        )

    @classmethod
    def from_arrays(
        cls,
        positions,
        types,
        particle_types: int,
        velocities=None,
        seed: int = 0,
    ) -> "ParticleSystem":
        """
        Builds a system with explicitly placed particles instead of random ones.

        Positions are clipped into the world so the grid binning stays valid.
        """
        positions = np.clip(np.array(positions, dtype=np.float64).reshape(-1, 2), WORLD_MIN, WORLD_MAX)
        count = positions.shape[0]
        types = np.array(types, dtype=np.int32).reshape(count)
        if np.any(types < 0) or np.any(types >= particle_types):
            raise ValueError(f"Particle types must lie in [0, {particle_types}).")
        if velocities is None:
            velocities = np.zeros((count, 2), dtype=np.float64)
        else:
            velocities = np.array(velocities, dtype=np.float64).reshape(count, 2)

        system = cls.__new__(cls)
        system._set_state(
            particle_types, seed, np.random.default_rng(seed), positions, velocities, types
        )
        logging.debug(f"ParticleSystem built from {count} explicitly placed particles.")
        return system

    def _set_state(self, particle_types, seed, rng, positions, velocities, types):
        """Single place where every particle attribute is assigned."""
        self.particle_count = positions.shape[0]
        self.particle_types = particle_types
        self.seed = seed
        self.rng = rng
        self.positions = positions
        self.velocities = velocities
        self.types = types
