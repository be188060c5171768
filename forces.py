# forces.py
"""
The pairwise force model.

All functions here are scalar and Numba-jitted so the simulation kernel can
call them from its hot loop; they are equally callable from plain Python.
"""
from numba import jit

from constants import FORCE_EPSILON

# --- Data Contracts ---
#
# accel(a: float, r: float, r_min: float) -> float:
#   - Inputs:
#     - a: Interaction coefficient in [-1, 1].
#     - r: Particle separation. r <= 0 is degenerate and yields 0.
#     - r_min: Repulsion threshold in (0, 1).
#   - Outputs: Signed magnitude along the direction towards the source
#     particle. Negative pushes apart, positive pulls together.
#   - Invariants:
#     - r < r_min: r / r_min - 1, independent of a (hard-core repulsion).
#     - r >= r_min: a * (1 - |1 + r_min - 2r| / (1 - r_min)), a bell that
#       is 0 at r_min, peaks at a for r = (1 + r_min) / 2 and crosses 0 at 1.
#       Past r = 1 it keeps the opposite sign of a.
#
# settle_weight(r, r_min, settle_radius) -> float:
#   - 1 at r_min, 0 at settle_radius, cubic smoothstep in between.


@jit(nopython=True)
def accel(a, r, r_min):
    """Particle Life accelerator magnitude for one direction of a pair."""
    if r <= 0.0:
        return 0.0
    # Hard-core repulsion regardless of the coefficient.
    if r < r_min:
        return r / r_min - 1.0
    denom = max(FORCE_EPSILON, 1.0 - r_min)
    return a * (1.0 - abs(1.0 + r_min - 2.0 * r) / denom)


@jit(nopython=True)
def pair_accelerations(a_ij, a_ji, r, r_min, mutual_only):
    """
    Returns (f_ij, f_ji): the magnitude applied to i by j and to j by i.

    The two directions use independent coefficients, so Newton's third law
    does not hold when the rule matrix is asymmetric. With mutual_only the
    coefficients are zeroed unless both are positive, leaving only the
    hard-core repulsion.
    """
    if mutual_only and not (a_ij > 0.0 and a_ji > 0.0):
        a_ij = 0.0
        a_ji = 0.0
    return accel(a_ij, r, r_min), accel(a_ji, r, r_min)


@jit(nopython=True)
def smoothstep01(t):
    x = min(max(t, 0.0), 1.0)
    return x * x * (3.0 - 2.0 * x)


@jit(nopython=True)
def settle_weight(r, r_min, settle_radius):
    t = (r - r_min) / max(FORCE_EPSILON, settle_radius - r_min)
    return 1.0 - smoothstep01(t)


@jit(nopython=True)
def settle_coefficient(settle_damping, dt):
    """Damping coefficient clamped to [0, 2 / dt] to keep explicit integration stable."""
    return min(max(settle_damping, 0.0), 2.0 / dt)
