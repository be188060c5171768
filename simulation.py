# simulation.py
"""
Handles the core simulation logic and physics calculations.

This module defines the Simulation class, which is responsible for
advancing the state of the particle system by one time step. Each step
rebuilds the spatial grid, accumulates the non-reciprocal pair forces and
the settling dashpot, and integrates velocities and positions.
"""
import logging
import numpy as np
from typing import Dict, Any, NamedTuple, Optional
from numba import jit

from particle import ParticleSystem
from parameters import ConfigurationError, sanitize_params
from spatial import SpatialGrid, minimum_image, _gather_neighbors_numba
from forces import pair_accelerations, settle_weight, settle_coefficient
from integrator import integrate
from rules import (
    resolve_matrix, validate_matrix, ring_preset, random_matrix, zero_matrix,
    cycle_value, with_entry
)
from constants import LIVE_PARAMETERS

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, particles: ParticleSystem, params: Dict[str, Any],
#              rules_file: Optional[str] = None):
#     - Inputs:
#       - particles: An initialized ParticleSystem object.
#       - params: Simulation parameters. Sanitized on entry.
#       - rules_file: Optional path of a persisted rule matrix record.
#     - Side Effects: Allocates the spatial grid and force accumulators and
#       resolves the interaction matrix.
#
#   - step(self) -> None:
#     - Side Effects: Modifies the ParticleSystem positions and velocities,
#       updates self.frame and self.max_speed.
#     - Invariants: Particle count remains constant. Every coordinate lies
#       in [-1, 1] afterwards. The interaction matrix is (K, K).
#
#   - apply_matrix(self, matrix) -> bool:
#     - Swaps the whole interaction matrix between steps. Returns False and
#       keeps the current matrix when matrix is not K x K.


class SimulationSnapshot(NamedTuple):
    """Read-only view of the simulation for rendering or analysis."""
    positions: np.ndarray
    velocities: np.ndarray
    types: np.ndarray
    frame: int
    max_speed: float


@jit(nopython=True)
def _calculate_forces_numba(
    positions, velocities, types, forces,
    cell_head, next_index, grid_dim, reach, wrap,
    interaction_matrix, radius_min, radius_max, delta_time,
    mutual_only, settle_enabled, settle_damping, settle_radius
):
    """
    Numba-jitted function to accumulate inter-particle forces.

    Every unordered pair within radius_max is visited once (j > i). The force
    on i uses A[type_i, type_j] and the force on j uses A[type_j, type_i], so
    an asymmetric matrix produces chasing and fleeing.
    """
    particle_count = positions.shape[0]
    forces[:, :] = 0.0
    neighbors = np.empty(particle_count, dtype=np.int64)
    radius_max_sq = radius_max * radius_max
    damping = settle_coefficient(settle_damping, delta_time)

    for i in range(particle_count):
        type_i = types[i]
        count = _gather_neighbors_numba(
            i, positions, cell_head, next_index, grid_dim, reach, wrap, neighbors
        )
        for k in range(count):
            j = neighbors[k]
            if j <= i:
                continue

            dx = positions[j, 0] - positions[i, 0]
            dy = positions[j, 1] - positions[i, 1]
            if wrap:
                dx = minimum_image(dx)
                dy = minimum_image(dy)

            distance_sq = dx * dx + dy * dy
            # Coincident particles have no direction; treat as no interaction.
            if distance_sq == 0.0 or distance_sq > radius_max_sq:
                continue

            distance = np.sqrt(distance_sq)
            # Direction is FROM i TO j
            ux = dx / distance
            uy = dy / distance

            type_j = types[j]
            a_ij = interaction_matrix[type_i, type_j]
            a_ji = interaction_matrix[type_j, type_i]
            f_ij, f_ji = pair_accelerations(a_ij, a_ji, distance, radius_min, mutual_only)

            forces[i, 0] += f_ij * ux
            forces[i, 1] += f_ij * uy
            forces[j, 0] -= f_ji * ux
            forces[j, 1] -= f_ji * uy

            # Radial dashpot for mutually attracted neighbors in (r_min, settle_radius).
            if settle_enabled and a_ij > 0.0 and a_ji > 0.0:
                if radius_min < distance < settle_radius:
                    v_rel = (
                        (velocities[i, 0] - velocities[j, 0]) * ux
                        + (velocities[i, 1] - velocities[j, 1]) * uy
                    )
                    weight = settle_weight(distance, radius_min, settle_radius)
                    if weight > 0.0:
                        f_damp = -damping * v_rel * weight
                        forces[i, 0] += f_damp * ux
                        forces[i, 1] += f_damp * uy
                        forces[j, 0] -= f_damp * ux
                        forces[j, 1] -= f_damp * uy


class Simulation:
    """
    Manages the simulation loop and physics calculations using a spatial grid
    for performance optimization.
    """
    def __init__(self, particles: ParticleSystem, params: Dict[str, Any], rules_file: Optional[str] = None):
        """
        Initializes the simulation environment.

        Args:
            particles (ParticleSystem): The particle system to simulate.
            params (Dict[str, Any]): Simulation parameters from config.
            rules_file (Optional[str]): Persisted rule matrix to prefer over
                a generated preset.
        """
        self.particles = particles
        self.params = sanitize_params(params)
        self.rng = particles.rng
        self.num_types = particles.particle_types

        self.delta_time = self.params['delta_time']
        self.drag = self.params['drag']
        self.max_velocity = self.params['max_velocity']
        self.radius_min = self.params['interaction_radius_min']
        self.radius_max = self.params['interaction_radius_max']
        self.wrap = self.params['wrap']
        self.mutual_only = self.params['mutual_only']
        self.settle_enabled = self.params['settle_enabled']
        self.settle_damping = self.params['settle_damping']
        self.settle_radius = self.params['settle_radius']

        self.interaction_matrix = resolve_matrix(
            self.params['interaction_matrix'], self.num_types, self.rng, rules_file
        )

        # --- Spatial Grid Initialization ---
        self.grid = SpatialGrid(
            self.params['grid_cell_size'], self.radius_max,
            particles.particle_count, self.wrap
        )
        self.forces = np.zeros((particles.particle_count, 2), dtype=np.float64)

        self.frame = 0
        self.max_speed = 0.0

        logging.info("Simulation logic initialized and configuration validated.")

    def step(self):
        """
        Executes one time step of the simulation.
        """
        self._ensure_matrix_shape()
        positions = self.particles.positions
        velocities = self.particles.velocities

        # 1. Rebuild the spatial grid from the previous step's positions
        self.grid.rebuild(positions)

        # 2. Accumulate pair forces and settling (zeroes the accumulators first)
        _calculate_forces_numba(
            positions, velocities, self.particles.types, self.forces,
            self.grid.cell_head, self.grid.next_index, self.grid.grid_dim,
            self.grid.reach, self.wrap,
            self.interaction_matrix, self.radius_min, self.radius_max, self.delta_time,
            self.mutual_only, self.settle_enabled, self.settle_damping, self.settle_radius
        )

        # 3. Integrate velocities and positions, apply the boundary policy
        self.max_speed = integrate(
            positions, velocities, self.forces,
            self.delta_time, self.drag, self.max_velocity, self.wrap
        )

        self.frame += 1

    def _ensure_matrix_shape(self):
        matrix = self.interaction_matrix
        if matrix.shape != (self.num_types, self.num_types):
            logging.warning(
                f"Interaction matrix shape {matrix.shape} does not match "
                f"particle_types ({self.num_types}). Regenerating the ring preset."
            )
            self.interaction_matrix = ring_preset(self.num_types)

    # --- Rule matrix editing ---
    #
    # Every edit builds a new array and swaps the reference, so a step never
    # observes a partially updated matrix.

    def apply_matrix(self, matrix) -> bool:
        """
        Hot-swaps the interaction matrix without touching particle buffers.

        Returns:
            bool: True if the matrix was applied, False if it was rejected.
        """
        try:
            self.interaction_matrix = validate_matrix(matrix, self.num_types)
        except ConfigurationError as e:
            logging.warning(f"Rejected interaction matrix: {e}")
            return False
        logging.info("Interaction matrix applied.")
        return True

    def set_rule(self, row: int, col: int, value: float):
        old_value = self.interaction_matrix[row, col]
        self.interaction_matrix = with_entry(self.interaction_matrix, row, col, value)
        logging.info(
            f"Interaction matrix updated at ({row}, {col}). "
            f"Old: {old_value:.2f}, New: {self.interaction_matrix[row, col]:.2f}"
        )

    def cycle_rule(self, row: int, col: int, direction: int = 1):
        """Steps A[row][col] through -1, 0, +1 in the given direction."""
        self.set_rule(row, col, cycle_value(self.interaction_matrix[row, col], direction))

    def apply_ring_preset(self):
        self.interaction_matrix = ring_preset(self.num_types)
        logging.info("Interaction matrix set to the ring preset.")

    def randomize_interaction_matrix(self, seed: Optional[int] = None):
        """
        Replaces the current interaction matrix with random rules.

        Draws from the simulation's own generator unless a seed is given.
        """
        rng = self.rng if seed is None else np.random.default_rng(seed)
        self.interaction_matrix = random_matrix(self.num_types, rng)
        logging.info("Interaction matrix randomized.")

    def clear_interaction_matrix(self):
        self.interaction_matrix = zero_matrix(self.num_types)
        logging.info("Interaction matrix reset to all zeros.")

    # --- Live parameters ---

    def set_behavior(self, **changes) -> Dict[str, Any]:
        """
        Updates non-structural parameters on the running simulation.

        Keys outside LIVE_PARAMETERS need a new simulation and are ignored.

        Returns:
            Dict[str, Any]: The values actually in effect for the applied keys.
        """
        accepted = {}
        for key, value in changes.items():
            if key in LIVE_PARAMETERS:
                accepted[key] = value
            else:
                logging.warning(f"Parameter '{key}' cannot change without a reset. Ignoring it.")

        if not accepted:
            return {}

        self.params = sanitize_params({**self.params, **accepted})
        self.mutual_only = self.params['mutual_only']
        self.settle_enabled = self.params['settle_enabled']
        self.settle_damping = self.params['settle_damping']
        self.settle_radius = self.params['settle_radius']

        applied = {key: self.params[key] for key in accepted}
        logging.info(f"Behavior parameters updated: {applied}")
        return applied

    def snapshot(self) -> SimulationSnapshot:
        """Returns read-only copies of the particle arrays and counters."""
        arrays = []
        for array in (self.particles.positions, self.particles.velocities, self.particles.types):
            copy = array.copy()
            copy.flags.writeable = False
            arrays.append(copy)
        return SimulationSnapshot(*arrays, frame=self.frame, max_speed=self.max_speed)


def init_simulation(params: Dict[str, Any], seed: Optional[int] = None, rules_file: Optional[str] = None) -> Simulation:
    """
    Builds a fresh simulation: sanitizes params, places particles and
    resolves the rule matrix.

    Any change to particle count, type count, cell size or the other
    structural parameters is handled by calling this again.
    """
    params = sanitize_params(params)
    particles = ParticleSystem(params, seed)
    return Simulation(particles, params, rules_file)
