from functools import lru_cache
from itertools import combinations
from math import comb

import numpy as np
import numpy.typing as npt


@lru_cache(maxsize=64)
def SimplexGrid(dim: int, steps: int) -> npt.NDArray:
    """
    All ways of splitting `steps` equal parts among `dim` paints with every paint getting at least one part.

    Rows are in lexicographic order. Dividing by `steps` gives the ratio points of a simplex grid
    with resolution 1/steps, excluding its faces (those belong to smaller subsets).

    :param dim: number of paints
    :param steps: grid denominator
    :return: (num_points, dim) integer array, each row summing to steps
    """
    if dim < 1 or steps < 1:
        raise ValueError("Simplex grid needs a positive dimension and number of steps")
    if dim > steps:
        return np.zeros((0, dim), dtype=int)
    rows = []
    # stars and bars: pick dim-1 cut points among the steps-1 gaps
    for cuts in combinations(range(1, steps), dim - 1):
        bounds = (0,) + cuts + (steps,)
        rows.append([bounds[i + 1] - bounds[i] for i in range(dim)])
    grid = np.array(rows, dtype=int).reshape(-1, dim)
    grid.setflags(write=False)
    return grid


def SimplexGridSize(dim: int, steps: int) -> int:
    if dim > steps:
        return 0
    return comb(steps - 1, dim - 1)
