import numpy as np
import pytest

from spatial import SpatialGrid, minimum_image


def _brute_force_neighbors(positions, i, radius, wrap):
    delta = positions - positions[i]
    if wrap:
        delta = np.where(delta > 1.0, delta - 2.0, delta)
        delta = np.where(delta < -1.0, delta + 2.0, delta)
    distance = np.linalg.norm(delta, axis=1)
    return {j for j in np.nonzero(distance <= radius)[0] if j != i}


def test_grid_dimensions():
    grid = SpatialGrid(cell_size=0.1, interaction_radius=0.3, particle_count=0, wrap=False)
    assert grid.grid_dim == 20
    assert grid.reach == 3
    assert grid.cell_head.shape == (400,)


def test_grid_dimension_rounds_up():
    grid = SpatialGrid(cell_size=0.3, interaction_radius=0.3, particle_count=0, wrap=False)
    assert grid.grid_dim == 7


def test_cell_index_mapping_is_row_major_and_clamped():
    grid = SpatialGrid(cell_size=0.1, interaction_radius=0.2, particle_count=0, wrap=False)
    assert grid.cell_index(-1.0, -1.0) == 0
    assert grid.cell_index(0.0, 0.0) == 10 + 10 * 20
    assert grid.cell_index(1.0, 1.0) == 20 * 20 - 1
    assert grid.cell_index(-0.95, 0.95) == 0 + 19 * 20


def test_rebuild_places_each_particle_in_exactly_one_cell(rng):
    positions = rng.uniform(-1.0, 1.0, size=(500, 2))
    grid = SpatialGrid(cell_size=0.15, interaction_radius=0.3, particle_count=500, wrap=False)
    grid.rebuild(positions)

    seen = []
    for cell in range(grid.grid_dim * grid.grid_dim):
        members = grid.cell_members(cell)
        for i in members:
            assert grid.cell_index(*positions[i]) == cell
        seen.extend(members)
    assert sorted(seen) == list(range(500))


def test_rebuild_clears_previous_lists():
    grid = SpatialGrid(cell_size=0.5, interaction_radius=0.5, particle_count=1, wrap=False)
    grid.rebuild(np.array([[-0.9, -0.9]]))
    first = grid.cell_index(-0.9, -0.9)
    grid.rebuild(np.array([[0.9, 0.9]]))
    assert grid.cell_members(first) == []
    assert grid.cell_members(grid.cell_index(0.9, 0.9)) == [0]


@pytest.mark.parametrize("wrap", [False, True])
def test_neighbors_cover_every_particle_within_radius(rng, wrap):
    positions = rng.uniform(-1.0, 1.0, size=(300, 2))
    grid = SpatialGrid(cell_size=0.1, interaction_radius=0.25, particle_count=300, wrap=wrap)
    grid.rebuild(positions)

    for i in range(0, 300, 7):
        candidates = grid.neighbors_of(i, positions)
        assert i not in candidates
        assert len(set(candidates.tolist())) == len(candidates)
        assert _brute_force_neighbors(positions, i, 0.25, wrap) <= set(candidates.tolist())


def test_out_of_range_cells_are_skipped_without_wrap():
    positions = np.array([[-0.99, -0.99], [0.99, 0.99]])
    grid = SpatialGrid(cell_size=0.1, interaction_radius=0.2, particle_count=2, wrap=False)
    grid.rebuild(positions)
    assert grid.neighbors_of(0, positions).tolist() == []


def test_wrap_sees_across_the_boundary():
    positions = np.array([[-0.99, -0.99], [0.99, 0.99]])
    grid = SpatialGrid(cell_size=0.1, interaction_radius=0.2, particle_count=2, wrap=True)
    grid.rebuild(positions)
    assert grid.neighbors_of(0, positions).tolist() == [1]


def test_wide_reach_under_wrap_reports_each_particle_once(rng):
    positions = rng.uniform(-1.0, 1.0, size=(50, 2))
    grid = SpatialGrid(cell_size=0.5, interaction_radius=2.0, particle_count=50, wrap=True)
    grid.rebuild(positions)
    neighbors = grid.neighbors_of(0, positions)
    assert sorted(neighbors.tolist()) == list(range(1, 50))


def test_radius_override_changes_reach():
    positions = np.array([[-0.95, 0.0], [0.0, 0.0]])
    grid = SpatialGrid(cell_size=0.1, interaction_radius=0.1, particle_count=2, wrap=False)
    grid.rebuild(positions)
    assert grid.neighbors_of(0, positions).tolist() == []
    assert grid.neighbors_of(0, positions, radius=1.0).tolist() == [1]


@pytest.mark.parametrize("d, expected", [(1.5, -0.5), (-1.5, 0.5), (0.3, 0.3), (1.0, 1.0)])
def test_minimum_image(d, expected):
    assert minimum_image(d) == pytest.approx(expected)


def test_reach_uses_actual_cell_width():
    # 2 / 0.3 rounds up to 7 cells of width 2/7, narrower than 0.3.
    grid = SpatialGrid(cell_size=0.3, interaction_radius=0.3, particle_count=0, wrap=False)
    assert grid.grid_dim == 7
    assert grid.reach == 2


def test_neighbor_two_narrow_cells_away_is_found():
    x_i = -1.0 + 3 * (2.0 / 7.0) + 0.001
    positions = np.array([[x_i, 0.0], [x_i - 0.29, 0.0]])
    grid = SpatialGrid(cell_size=0.3, interaction_radius=0.3, particle_count=2, wrap=False)
    grid.rebuild(positions)
    assert grid.cell_index(*positions[0]) % 7 == 3
    assert grid.cell_index(*positions[1]) % 7 == 1
    assert grid.neighbors_of(0, positions).tolist() == [1]


@pytest.mark.parametrize("wrap", [False, True])
@pytest.mark.parametrize("cell_size, radius", [(0.3, 0.3), (0.45, 0.5), (0.7, 0.35)])
def test_neighbors_cover_radius_when_cell_size_does_not_divide_world(rng, wrap, cell_size, radius):
    positions = rng.uniform(-1.0, 1.0, size=(300, 2))
    grid = SpatialGrid(cell_size=cell_size, interaction_radius=radius, particle_count=300, wrap=wrap)
    grid.rebuild(positions)

    for i in range(0, 300, 5):
        candidates = set(grid.neighbors_of(i, positions).tolist())
        assert _brute_force_neighbors(positions, i, radius, wrap) <= candidates
