from __future__ import annotations
from typing import List, Sequence

import numpy as np


def repair(genes: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Force one random gene on when the subset is empty."""
    genes = np.asarray(genes, dtype=np.int8).copy()
    if genes.sum() == 0:
        genes[int(rng.integers(len(genes)))] = 1
    return genes


def crossover(a: np.ndarray, b: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    # uniform: every gene picks its parent independently
    pick_a = rng.random(len(a)) < 0.5
    return np.where(pick_a, a, b).astype(np.int8)


def create_children(mating_pool: Sequence[np.ndarray], rng: np.random.Generator) -> List[np.ndarray]:
    """Pair i with n-1-i over the whole pool, yielding one child per parent."""
    n = len(mating_pool)
    return [crossover(mating_pool[i], mating_pool[n - 1 - i], rng) for i in range(n)]


def mutate(genes: np.ndarray, rate: float, rng: np.random.Generator) -> np.ndarray:
    genes = np.asarray(genes, dtype=np.int8)
    flip = rng.random(len(genes)) < rate
    out = np.where(flip, 1 - genes, genes).astype(np.int8)
    return repair(out, rng)


def mutate_all(pop: Sequence[np.ndarray], rate: float, rng: np.random.Generator) -> List[np.ndarray]:
    return [mutate(g, rate, rng) for g in pop]
