from __future__ import annotations

import math
from typing import Callable

import numpy as np


def bisection_steps(width: float, tolerance: float) -> int:
    """
    Number of interval halvings that bring a bracket of `width` below `tolerance`.
    """
    if not tolerance > 0.0:
        raise ValueError("tolerance must be > 0")
    ratio = float(width) / float(tolerance)
    if ratio < 1.0:
        return 0
    return int(math.floor(math.log2(ratio))) + 1


def bisect_crossing(
    not_reached: Callable[[np.ndarray], np.ndarray],
    left: np.ndarray,
    right: np.ndarray,
    steps: int,
) -> np.ndarray:
    """
    Vectorized bisection for the parameter where a ray crosses a surface.

    `not_reached(t)` returns True where the trial point at `t` is still on the
    near side of the surface; those entries move `left` up, the others move
    `right` down. Every element runs exactly `steps` halvings, so the work per
    element is uniform and the loop always terminates. Returns the bracket midpoints.
    """
    left, right = np.broadcast_arrays(np.asarray(left, dtype=np.float64), np.asarray(right, dtype=np.float64))
    left = left.copy()
    right = right.copy()
    for _ in range(int(steps)):
        mid = 0.5 * (left + right)
        near = np.asarray(not_reached(mid), dtype=bool)
        left = np.where(near, mid, left)
        right = np.where(near, right, mid)
    return 0.5 * (left + right)
