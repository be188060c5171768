# integrator.py
"""
Advances particle velocities and positions from accumulated forces.

Operates in place on the ParticleSystem arrays using vectorized NumPy
operations, then applies the world's boundary policy.
"""
import numpy as np

from constants import WORLD_MIN, WORLD_MAX, WORLD_SIZE

# --- Data Contracts ---
#
# integrate(positions, velocities, forces, dt, drag, max_velocity, wrap) -> float:
#   - Inputs:
#     - positions, velocities, forces: float64 arrays of shape (N, 2).
#     - dt: Step size, > 0.
#     - drag: Linear drag rate, >= 0.
#     - max_velocity: Speed cap, >= 0.
#     - wrap: True for a torus, False for a reflecting box.
#   - Outputs: The maximum particle speed after the update (0.0 for N = 0).
#   - Side Effects: Modifies positions and velocities in place.
#   - Invariants: Every coordinate lies in [-1, 1] afterwards and no speed
#     exceeds max_velocity.


def integrate(positions, velocities, forces, dt, drag, max_velocity, wrap) -> float:
    """
    Executes the velocity and position update for one time step.
    """
    # 1. Update velocities with forces, then apply drag. The drag factor is
    #    clamped at zero so a large drag * dt cannot reverse the motion.
    drag_factor = max(0.0, 1.0 - drag * dt)
    velocities += dt * forces
    velocities *= drag_factor

    # 2. Apply velocity cap, preserving direction
    speed = np.linalg.norm(velocities, axis=1)
    over_speed_mask = speed > max_velocity
    velocities[over_speed_mask] = (
        velocities[over_speed_mask] / speed[over_speed_mask, np.newaxis]
    ) * max_velocity
    speed[over_speed_mask] = max_velocity

    # 3. Update positions with velocities
    positions += dt * velocities

    # 4. Handle boundary conditions
    apply_boundary(positions, velocities, wrap)

    return float(speed.max()) if speed.size else 0.0


def apply_boundary(positions, velocities, wrap) -> None:
    """
    Brings every coordinate back into the world.

    With wrap, out-of-range coordinates are shifted by the world size. Without
    it, the overshoot is mirrored back inside and the matching velocity
    component is pointed back into the world (an elastic bounce).
    """
    if wrap:
        outside = (positions < WORLD_MIN) | (positions > WORLD_MAX)
        positions[outside] = np.mod(positions[outside] - WORLD_MIN, WORLD_SIZE) + WORLD_MIN
        return

    below = positions < WORLD_MIN
    positions[below] = 2.0 * WORLD_MIN - positions[below]
    velocities[below] = np.abs(velocities[below])

    above = positions > WORLD_MAX
    positions[above] = 2.0 * WORLD_MAX - positions[above]
    velocities[above] = -np.abs(velocities[above])

    # An overshoot wider than the world is still outside after one mirror.
    np.clip(positions, WORLD_MIN, WORLD_MAX, out=positions)
