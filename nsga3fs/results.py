from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd

from nsga3fs.ga.normalize import normalize_front
from nsga3fs.ga.population import Population
from nsga3fs.ga.sorting import split_fronts, to_minimize


@dataclass
class NSGA3Result:
    ids: List[int]
    individuals: List[np.ndarray]
    fitness: pd.DataFrame
    normalized: pd.DataFrame
    per_individual: List[Dict[str, Any]]
    votes_table: pd.DataFrame
    features_above_threshold: List[str]
    runtime: Dict[str, Any]
    history: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "front": {
                "ids": list(self.ids),
                "individuals": [g.tolist() for g in self.individuals],
                "fitness_table": self.fitness.reset_index().to_dict(orient="records"),
                "normalized": self.normalized.reset_index().to_dict(orient="records"),
            },
            "per_individual": self.per_individual,
            "majority_vote": {
                "votes_table": self.votes_table.to_dict(orient="records"),
                "features_above_threshold": list(self.features_above_threshold),
            },
            "runtime_stats": self.runtime,
            "history": self.history,
        }


def majority_vote(genes: np.ndarray, feature_names: Sequence[str]) -> pd.DataFrame:
    """Share of individuals that include each feature."""
    genes = np.asarray(genes, dtype=float)
    if genes.ndim != 2 or genes.shape[1] != len(feature_names):
        raise ValueError(f"Gene matrix shape {genes.shape} does not match {len(feature_names)} features")
    votes = genes.mean(axis=0) if len(genes) else np.zeros(len(feature_names))
    return pd.DataFrame({"feature": list(feature_names), "vote": votes})


def features_above(votes: pd.DataFrame, threshold: float) -> List[str]:
    return [str(f) for f in votes.loc[votes["vote"] >= threshold, "feature"]]


def aggregate(
    pop: Population,
    obj_names: Sequence[str],
    directions: Sequence[str],
    feature_names: Sequence[str],
    threshold: float,
    runtime: Dict[str, Any] | None = None,
    history: List[Dict[str, Any]] | None = None,
) -> NSGA3Result:
    """Build the final Pareto front views from a terminal population."""
    table = pop.fitness_table(obj_names)
    fronts = split_fronts(table, directions)
    ids = list(fronts[0]) if fronts else []

    fitness = table.loc[ids]
    individuals = [pop.genes(i).copy() for i in ids]
    if ids:
        norm = normalize_front(to_minimize(fitness.to_numpy(), directions)).normalized
    else:
        norm = np.zeros((0, len(obj_names)))
    normalized = pd.DataFrame(norm, index=fitness.index, columns=list(obj_names))

    names = list(feature_names)
    per_individual = []
    for ind_id, genes in zip(ids, individuals):
        per_individual.append({
            "id": int(ind_id),
            "objective_values": {k: float(v) for k, v in fitness.loc[ind_id].items()},
            "selected_feature_names": [n for n, g in zip(names, genes) if g],
        })

    votes = majority_vote(np.vstack(individuals) if individuals else np.zeros((0, len(names))), names)
    return NSGA3Result(
        ids=[int(i) for i in ids],
        individuals=individuals,
        fitness=fitness,
        normalized=normalized,
        per_individual=per_individual,
        votes_table=votes,
        features_above_threshold=features_above(votes, threshold),
        runtime=dict(runtime or {}),
        history=list(history or []),
    )
