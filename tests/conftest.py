import numpy as np
import pytest

from particle import ParticleSystem
from simulation import Simulation


@pytest.fixture
def pair_params():
    """Parameters for hand-placed two-particle experiments."""
    return {
        "seed": 0,
        "particle_count": 2,
        "particle_types": 2,
        "interaction_radius_min": 0.1,
        "interaction_radius_max": 0.9,
        "delta_time": 0.05,
        "drag": 0.0,
        "max_velocity": 10.0,
        "wrap": False,
        "grid_cell_size": 0.1,
        "mutual_only": False,
        "settle_enabled": False,
        "settle_damping": 0.2,
        "settle_radius": 0.2,
    }


@pytest.fixture
def make_pair():
    """Builds a Simulation over explicitly placed particles."""
    def _make(params, positions, types, matrix, velocities=None, particle_types=None):
        k = particle_types if particle_types is not None else len(matrix)
        particles = ParticleSystem.from_arrays(positions, types, k, velocities=velocities)
        return Simulation(particles, dict(params, interaction_matrix=matrix))
    return _make


@pytest.fixture
def rng():
    return np.random.default_rng(42)
