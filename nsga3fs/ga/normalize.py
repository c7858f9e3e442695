"""Objective normalization for reference point association.

Every function here works in the minimize convention; callers fold maximize
axes with ``sorting.to_minimize`` first.

Extreme points are taken as the record with the largest translated value on
each axis, and the intercept on axis i is that record's own axis-i value.
This is a simplification of the achievement scalarizing function search and
hyperplane intercepts described by Deb & Jain (2014).
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

import numpy as np

EPS = 1e-6


@dataclass(frozen=True)
class Normalization:
    ideal: np.ndarray
    extremes: np.ndarray  # row i = extreme point of axis i (translated)
    intercepts: np.ndarray
    normalized: np.ndarray


def ideal_point(front: np.ndarray) -> np.ndarray:
    return np.min(front, axis=0)


def translate(front: np.ndarray, ideal: np.ndarray) -> np.ndarray:
    return front - ideal


def extreme_points(translated: np.ndarray) -> np.ndarray:
    idx = np.argmax(translated, axis=0)
    return translated[idx, :]


def intercepts(extremes: np.ndarray) -> np.ndarray:
    return np.diag(extremes).copy()


def scale(translated: np.ndarray, intercept: Sequence[float], eps: float = EPS) -> np.ndarray:
    denom = np.where(np.asarray(intercept) == 0, eps, intercept)
    return translated / denom


def normalize_front(front: np.ndarray, eps: float = EPS) -> Normalization:
    front = np.asarray(front, dtype=float)
    if front.ndim != 2 or len(front) == 0:
        raise ValueError("Cannot normalize an empty front")
    z = ideal_point(front)
    t = translate(front, z)
    ext = extreme_points(t)
    a = intercepts(ext)
    return Normalization(ideal=z, extremes=ext, intercepts=a, normalized=scale(t, a, eps))
