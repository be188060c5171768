# spatial.py
"""
Uniform-grid spatial index for neighbor queries.

The world [-1, 1]^2 is divided into grid_dim x grid_dim square cells. Each
cell holds an intrusive singly-linked list of particle indices: cell_head[c]
is the first particle in cell c and next_index[i] the particle after i, with
-1 terminating a list. The lists are rebuilt from scratch every step, which
keeps the hot path free of per-step allocations.
"""
import logging
import math
import numpy as np
from numba import jit

from constants import WORLD_SIZE

# --- Data Contracts ---
#
# class SpatialGrid:
#   - __init__(self, cell_size: float, interaction_radius: float,
#              particle_count: int, wrap: bool):
#     - Side Effects: Allocates cell_head (grid_dim * grid_dim,) and
#       next_index (particle_count,) int32 arrays.
#
#   - rebuild(self, positions: np.ndarray) -> None:
#     - Inputs: positions of shape (N, 2), every coordinate in [-1, 1].
#     - Invariants: After the call every particle appears in exactly one
#       cell list.
#
#   - neighbors_of(self, i: int, positions: np.ndarray,
#                  radius: Optional[float] = None) -> np.ndarray:
#     - Outputs: Indices of all particles in the (2*reach+1)^2 block of cells
#       around particle i's cell, excluding i. Over-covers the radius; callers
#       filter by true distance.


@jit(nopython=True)
def _cell_coord(value, grid_dim):
    """Maps one world coordinate to a clamped cell coordinate."""
    c = int(math.floor((value + 1.0) * 0.5 * grid_dim))
    if c < 0:
        return 0
    if c > grid_dim - 1:
        return grid_dim - 1
    return c


@jit(nopython=True)
def minimum_image(d):
    """Folds a coordinate difference into [-1, 1] on the torus."""
    if d > 1.0:
        return d - 2.0
    if d < -1.0:
        return d + 2.0
    return d


@jit(nopython=True)
def _rebuild_grid_numba(positions, cell_head, next_index, grid_dim):
    """
    Numba-jitted function to repopulate the cell lists.

    Each particle is pushed onto the front of its cell's list, so a rebuild
    is a single O(N) pass with no allocation.
    """
    cell_head[:] = -1
    particle_count = positions.shape[0]
    for i in range(particle_count):
        cx = _cell_coord(positions[i, 0], grid_dim)
        cy = _cell_coord(positions[i, 1], grid_dim)
        cell = cx + cy * grid_dim
        next_index[i] = cell_head[cell]
        cell_head[cell] = i


@jit(nopython=True)
def _gather_neighbors_numba(i, positions, cell_head, next_index, grid_dim, reach, wrap, out):
    """
    Writes the candidate neighbors of particle i into out and returns how
    many were written.

    Under wrap, a block wider than the grid is reduced to one pass over every
    row and column so that no cell, and therefore no particle, is visited twice.
    """
    cx = _cell_coord(positions[i, 0], grid_dim)
    cy = _cell_coord(positions[i, 1], grid_dim)

    span = 2 * reach + 1
    start_x = cx - reach
    start_y = cy - reach
    if wrap and span > grid_dim:
        span = grid_dim
        start_x = 0
        start_y = 0

    count = 0
    for oy in range(span):
        ny = start_y + oy
        if wrap:
            ny = ((ny % grid_dim) + grid_dim) % grid_dim
        elif ny < 0 or ny >= grid_dim:
            continue
        for ox in range(span):
            nx = start_x + ox
            if wrap:
                nx = ((nx % grid_dim) + grid_dim) % grid_dim
            elif nx < 0 or nx >= grid_dim:
                continue

            j = cell_head[nx + ny * grid_dim]
            while j != -1:
                if j != i:
                    out[count] = j
                    count += 1
                j = next_index[j]
    return count


class SpatialGrid:
    """
    Buckets particles by cell for amortized O(1) neighbor queries.
    """
    def __init__(self, cell_size: float, interaction_radius: float, particle_count: int, wrap: bool):
        self.cell_size = float(cell_size)
        self.interaction_radius = float(interaction_radius)
        self.wrap = bool(wrap)
        self.grid_dim = max(1, int(math.ceil(WORLD_SIZE / self.cell_size)))
        self.reach = self.reach_for(self.interaction_radius)

        self.cell_head = np.full(self.grid_dim * self.grid_dim, -1, dtype=np.int32)
        self.next_index = np.full(particle_count, -1, dtype=np.int32)
        self._scratch = np.empty(particle_count, dtype=np.int64)

        logging.info(
            f"Spatial grid enabled: {self.grid_dim}x{self.grid_dim} cells, "
            f"cell size {self.cell_size:.3f}, reach {self.reach} cells."
        )

    def reach_for(self, radius: float) -> int:
        """Number of cells needed on each side to cover radius."""
        # grid_dim is rounded up, so real cells are WORLD_SIZE / grid_dim wide,
        # narrower than cell_size when it does not divide the world.
        return max(1, int(math.ceil(radius * self.grid_dim / WORLD_SIZE)))

    def cell_index(self, x: float, y: float) -> int:
        """Row-major index of the cell containing (x, y)."""
        return _cell_coord(x, self.grid_dim) + _cell_coord(y, self.grid_dim) * self.grid_dim

    def rebuild(self, positions: np.ndarray) -> None:
        _rebuild_grid_numba(positions, self.cell_head, self.next_index, self.grid_dim)

    def neighbors_of(self, i: int, positions: np.ndarray, radius=None) -> np.ndarray:
        """Candidate neighbor indices of particle i from the last rebuild."""
        reach = self.reach if radius is None else self.reach_for(radius)
        count = _gather_neighbors_numba(
            i, positions, self.cell_head, self.next_index,
            self.grid_dim, reach, self.wrap, self._scratch
        )
        return self._scratch[:count].copy()

    def cell_members(self, cell: int) -> list:
        """Walks one cell's list, most recently inserted first."""
        members = []
        j = self.cell_head[cell]
        while j != -1:
            members.append(int(j))
            j = self.next_index[j]
        return members
