from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from nsga3fs.ga.operators import repair


@dataclass
class Population:
    """Arena of individuals and their objective vectors keyed by a stable integer id.

    Ids are never reused within a run, so parent and child rows can be merged
    and split without positional bookkeeping.
    """
    n_features: int
    individuals: Dict[int, np.ndarray] = field(default_factory=dict)
    fitness: Dict[int, np.ndarray] = field(default_factory=dict)
    _next_id: int = 0

    def add(self, genes: Sequence[int], objectives: Optional[Sequence[float]] = None) -> int:
        arr = np.asarray(genes, dtype=np.int8)
        if arr.shape != (self.n_features,):
            raise ValueError(f"Individual has shape {arr.shape}, expected ({self.n_features},)")
        ind_id = self._next_id
        self._next_id += 1
        self.individuals[ind_id] = arr
        if objectives is not None:
            self.set_fitness(ind_id, objectives)
        return ind_id

    def set_fitness(self, ind_id: int, objectives: Sequence[float]):
        if ind_id not in self.individuals:
            raise KeyError(f"Unknown individual id: {ind_id}")
        self.fitness[ind_id] = np.asarray(objectives, dtype=float)

    def genes(self, ind_id: int) -> np.ndarray:
        return self.individuals[ind_id]

    def ids(self) -> List[int]:
        return list(self.individuals.keys())

    def retain(self, keep: Iterable[int]):
        """Drop every individual (and its fitness record) whose id is not in keep."""
        keep = set(keep)
        for ind_id in [i for i in self.individuals if i not in keep]:
            del self.individuals[ind_id]
            self.fitness.pop(ind_id, None)

    def gene_matrix(self, ids: Optional[Sequence[int]] = None) -> np.ndarray:
        ids = self.ids() if ids is None else list(ids)
        if not ids:
            return np.zeros((0, self.n_features), dtype=np.int8)
        return np.vstack([self.individuals[i] for i in ids])

    def fitness_matrix(self, ids: Optional[Sequence[int]] = None) -> np.ndarray:
        ids = self.ids() if ids is None else list(ids)
        missing = [i for i in ids if i not in self.fitness]
        if missing:
            raise KeyError(f"Individuals without fitness: {missing[:5]}")
        if not ids:
            return np.zeros((0, 0), dtype=float)
        return np.vstack([self.fitness[i] for i in ids])

    def fitness_table(self, obj_names: Sequence[str], ids: Optional[Sequence[int]] = None) -> pd.DataFrame:
        ids = self.ids() if ids is None else list(ids)
        mat = self.fitness_matrix(ids)
        return pd.DataFrame(mat.reshape(len(ids), len(obj_names)), index=pd.Index(ids, name="id"), columns=list(obj_names))

    def __len__(self) -> int:
        return len(self.individuals)


def density_ramp(size: int, lo: float = 0.1, hi: float = 0.9) -> np.ndarray:
    if size == 1:
        return np.array([lo])
    return np.linspace(lo, hi, size)


def random_individuals(n_features: int, size: int, rng: np.random.Generator) -> List[np.ndarray]:
    """Sparse-to-dense initial individuals.

    Individual i includes each gene independently with probability ramping
    linearly from 0.1 (first) to 0.9 (last), then gets the zero-sum repair.
    """
    out = []
    for p in density_ramp(size):
        genes = (rng.random(n_features) < p).astype(np.int8)
        out.append(repair(genes, rng))
    return out


def init_population(n_features: int, size: int, rng: np.random.Generator) -> Population:
    pop = Population(n_features=n_features)
    for genes in random_individuals(n_features, size, rng):
        pop.add(genes)
    return pop
