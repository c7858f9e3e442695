from __future__ import annotations
from typing import List, Sequence

import numpy as np
import pandas as pd

DIRECTIONS = ("min", "max")


def parse_direction(d: str) -> str:
    d = str(d).strip().lower()
    if d in ("min", "minimize", "low"):
        return "min"
    if d in ("max", "maximize", "high"):
        return "max"
    raise ValueError(f"Unknown objective direction: {d!r} (expected one of {DIRECTIONS})")


def to_minimize(objs: np.ndarray, directions: Sequence[str]) -> np.ndarray:
    """Negate maximize columns so every axis reads smaller-is-better."""
    objs = np.asarray(objs, dtype=float)
    signs = np.array([-1.0 if parse_direction(d) == "max" else 1.0 for d in directions])
    return objs * signs


def dominates(a: Sequence[float], b: Sequence[float], maximize: Sequence[bool]) -> bool:
    # a dominates b if a is >= b for all (or <= if minimize) and strictly better in at least one
    strictly_better = False
    for i, (av, bv) in enumerate(zip(a, b)):
        if maximize[i]:
            if av < bv:
                return False
            if av > bv:
                strictly_better = True
        else:
            if av > bv:
                return False
            if av < bv:
                strictly_better = True
    return strictly_better


def fast_nondominated_sort(objs: np.ndarray, directions: Sequence[str]) -> List[List[int]]:
    """Peel Pareto fronts; returns row positions per front, best front first."""
    objs = np.asarray(objs, dtype=float)
    n = len(objs)
    if n == 0:
        return []
    maximize = [parse_direction(d) == "max" for d in directions]
    if objs.shape[1] != len(maximize):
        raise ValueError(f"{objs.shape[1]} objective columns but {len(maximize)} directions")

    S: List[List[int]] = [[] for _ in range(n)]
    n_dom = [0] * n
    fronts: List[List[int]] = [[]]

    for p in range(n):
        for q in range(p + 1, n):
            if dominates(objs[p], objs[q], maximize):
                S[p].append(q)
                n_dom[q] += 1
            elif dominates(objs[q], objs[p], maximize):
                S[q].append(p)
                n_dom[p] += 1

    for p in range(n):
        if n_dom[p] == 0:
            fronts[0].append(p)

    i = 0
    while fronts[i]:
        next_front = []
        for p in fronts[i]:
            for q in S[p]:
                n_dom[q] -= 1
                if n_dom[q] == 0:
                    next_front.append(q)
        i += 1
        fronts.append(next_front)
    fronts.pop()
    return fronts


def rank_fronts(table: pd.DataFrame, directions: Sequence[str]) -> pd.Series:
    """Front rank (1 = non-dominated) for every row of a fitness table, indexed like the table."""
    ranks = np.zeros(len(table), dtype=int)
    for level, front in enumerate(fast_nondominated_sort(table.to_numpy(dtype=float), directions), start=1):
        ranks[front] = level
    return pd.Series(ranks, index=table.index, name="rank")


def split_fronts(table: pd.DataFrame, directions: Sequence[str]) -> List[List[int]]:
    """Row labels of the table grouped by front, best front first."""
    labels = list(table.index)
    return [[labels[i] for i in front] for front in fast_nondominated_sort(table.to_numpy(dtype=float), directions)]
