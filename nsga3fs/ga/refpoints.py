from __future__ import annotations
from itertools import combinations
from typing import List, Optional

import numpy as np

from nsga3fs.errors import GenerationTimeout
from nsga3fs.utils import n_choose_k

METHODS = ("das_dennis", "sampling")


def two_objective_line(step: float = 0.05) -> np.ndarray:
    """Points from (0, 0.5) to (0.5, 0); each pair sums to 0.5, not 1."""
    n = int(round(0.5 / step)) + 1
    a = np.round(np.arange(n) * step, 10)
    return np.column_stack([a, a[::-1]])


def divisions(n_obj: int) -> int:
    return n_obj + 1


def target_count(n_obj: int) -> int:
    p = divisions(n_obj)
    return n_choose_k(n_obj + p - 1, p)


def das_dennis(n_obj: int, n_div: int) -> np.ndarray:
    """All points of the simplex lattice with coordinates k / n_div summing to 1.

    Enumerated with stars and bars, so the count is C(n_div + n_obj - 1, n_obj - 1).
    """
    if n_obj == 1:
        return np.ones((1, 1))
    rows = []
    slots = n_div + n_obj - 1
    for bars in combinations(range(slots), n_obj - 1):
        prev = -1
        counts = []
        for b in bars:
            counts.append(b - prev - 1)
            prev = b
        counts.append(slots - prev - 1)
        rows.append(counts)
    return np.asarray(rows, dtype=float) / float(n_div)


def sample_points(n_obj: int, rng: np.random.Generator, max_iter: int = 1_000_000) -> np.ndarray:
    """Rejection sampling over a discretized coordinate set.

    Draws candidate coordinates from {0, 1, step, 2*step, ...} and keeps points
    that sum to 1 until the target count of unique points is reached.
    """
    n = target_count(n_obj)
    d = max(1, int(round(n / n_obj)) - 1)
    step = 1.0 / d
    options = np.concatenate([[0.0, 1.0], step * np.arange(1, d + 1)])

    first = np.zeros(n_obj)
    first[0] = 1.0
    seen = {tuple(first)}
    rows: List[np.ndarray] = [first]
    for _ in range(int(max_iter)):
        if len(rows) >= n:
            break
        point = np.round(rng.choice(options, size=n_obj), 10)
        if np.isclose(point.sum(), 1.0) and tuple(point) not in seen:
            seen.add(tuple(point))
            rows.append(point)
    if len(rows) < n:
        raise GenerationTimeout(
            f"Reference point sampling reached {len(rows)}/{n} points for {n_obj} objectives "
            f"after {max_iter} draws"
        )
    return np.vstack(rows)


def reference_points(
    n_obj: int,
    method: str = "das_dennis",
    rng: Optional[np.random.Generator] = None,
    max_iter: int = 1_000_000,
) -> np.ndarray:
    if n_obj < 1:
        raise ValueError("At least one objective is required")
    if n_obj == 2:
        return two_objective_line()
    if method == "das_dennis":
        return das_dennis(n_obj, divisions(n_obj))
    if method == "sampling":
        return sample_points(n_obj, rng if rng is not None else np.random.default_rng(), max_iter=max_iter)
    raise ValueError(f"Unknown reference point method: {method} (expected one of {METHODS})")
