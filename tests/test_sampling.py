from math import comb

import numpy as np
import pytest

from PaintMixer.ColorMath.Sampling import SimplexGrid, SimplexGridSize


@pytest.mark.parametrize("dim,steps", [(1, 12), (2, 12), (3, 12), (3, 3), (4, 6)])
def test_rows_are_positive_compositions(dim, steps):
    grid = SimplexGrid(dim, steps)
    assert grid.shape == (comb(steps - 1, dim - 1), dim)
    assert len(grid) == SimplexGridSize(dim, steps)
    assert np.all(grid.sum(axis=1) == steps)
    assert np.all(grid >= 1)
    assert len({tuple(r) for r in grid}) == len(grid)


def test_rows_are_sorted():
    grid = SimplexGrid(3, 6)
    rows = [tuple(r) for r in grid]
    assert rows == sorted(rows)


def test_more_paints_than_steps():
    assert SimplexGrid(5, 4).shape == (0, 5)
    assert SimplexGridSize(5, 4) == 0


def test_grid_is_read_only():
    with pytest.raises(ValueError):
        SimplexGrid(2, 4)[0, 0] = 3


def test_invalid_arguments():
    with pytest.raises(ValueError):
        SimplexGrid(0, 4)
