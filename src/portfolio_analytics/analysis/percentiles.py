from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np


def _rank_index(p: float, n: int) -> int:
    # nearest-rank without interpolation; p=100 lands one past the end
    return min(math.floor(p / 100 * n), n - 1)


def nearest_rank(sorted_values: Sequence[float] | np.ndarray, p: float) -> float:
    values = np.asarray(sorted_values, dtype=float)
    if values.size == 0:
        raise ValueError("cannot take a percentile of an empty sample")
    return float(values[_rank_index(p, values.size)])


def percentile_table(
    sorted_values: Sequence[float] | np.ndarray,
    percentiles: Sequence[int],
) -> dict[int, float]:
    return {p: nearest_rank(sorted_values, p) for p in percentiles}


def select_paths(
    terminal_values: np.ndarray,
    paths: np.ndarray,
    percentiles: Sequence[int],
) -> dict[int, list[float]]:
    """Pick, per percentile, the simulated trajectory ranked at that position.

    ``terminal_values[i]`` must belong to ``paths[i]``. Every returned path is
    an actual simulation, never a blend across simulations.
    """
    terminal_values = np.asarray(terminal_values, dtype=float)
    n = terminal_values.size
    if n == 0:
        return {p: [] for p in percentiles}
    order = np.argsort(terminal_values, kind="stable")
    return {p: paths[order[_rank_index(p, n)]].tolist() for p in percentiles}
