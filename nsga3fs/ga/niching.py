from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np

from nsga3fs.errors import SelectionUnderflow
from nsga3fs.ga.normalize import Normalization, normalize_front


@dataclass
class NicheAssignment:
    ids: List[int]
    ref_index: np.ndarray  # nearest reference point per id
    normalization: Normalization

    def members(self) -> Dict[int, List[int]]:
        out: Dict[int, List[int]] = {}
        for ind_id, r in zip(self.ids, self.ref_index):
            out.setdefault(int(r), []).append(ind_id)
        return out


def associate(normalized: np.ndarray, refs: np.ndarray):
    """Nearest reference point by Euclidean distance.

    Equidistant reference points resolve to the lowest reference index.
    """
    d = np.linalg.norm(normalized[:, None, :] - refs[None, :, :], axis=2)
    idx = np.argmin(d, axis=1)
    return idx, d[np.arange(len(normalized)), idx]


def assign_niches(ids: Sequence[int], front: np.ndarray, refs: np.ndarray) -> NicheAssignment:
    front = np.asarray(front, dtype=float)
    if front.shape[1] != refs.shape[1]:
        raise ValueError(f"Front has {front.shape[1]} objectives but reference points have {refs.shape[1]}")
    norm = normalize_front(front)
    idx, _ = associate(norm.normalized, refs)
    return NicheAssignment(ids=list(ids), ref_index=idx, normalization=norm)


def niche_select(
    ids: Sequence[int],
    front: np.ndarray,
    refs: np.ndarray,
    k: int,
    rng: np.random.Generator,
) -> List[int]:
    """Pick exactly k ids from a boundary front, least crowded niche first.

    `front` holds the minimize-convention objective rows aligned with `ids`.
    Reference points are visited in ascending order of occupancy (ties by
    reference index); each visit takes one random, not yet selected member.
    Passes repeat until k ids are chosen.
    """
    ids = list(ids)
    if k <= 0:
        return []
    if len(set(ids)) < k:
        raise SelectionUnderflow(f"Boundary front has {len(set(ids))} distinct candidates, {k} requested")

    assignment = assign_niches(ids, front, refs)
    members = assignment.members()
    order = sorted(members, key=lambda r: (len(members[r]), r))
    remaining = {r: list(members[r]) for r in order}

    selected: List[int] = []
    chosen = set()
    while len(selected) < k:
        progressed = False
        for r in order:
            pool = [i for i in remaining[r] if i not in chosen]
            remaining[r] = pool
            if not pool:
                continue
            pick = pool[int(rng.integers(len(pool)))]
            chosen.add(pick)
            selected.append(pick)
            progressed = True
            if len(selected) == k:
                break
        if not progressed:
            raise SelectionUnderflow(f"Niching ran out of candidates after selecting {len(selected)}/{k}")
    return selected
