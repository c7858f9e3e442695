from __future__ import annotations
from typing import Any, Dict, Optional

from sklearn.base import BaseEstimator
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import KFold, ShuffleSplit, StratifiedKFold, StratifiedShuffleSplit
from sklearn.naive_bayes import GaussianNB
from sklearn.neighbors import KNeighborsClassifier
from sklearn.tree import DecisionTreeClassifier

MODELS = {
    "logistic_regression": LogisticRegression,
    "random_forest": RandomForestClassifier,
    "decision_tree": DecisionTreeClassifier,
    "knn": KNeighborsClassifier,
    "naive_bayes": GaussianNB,
}

RESAMPLING = ("cv", "stratified_cv", "holdout")


def make_model(name: str, params: Optional[Dict[str, Any]] = None) -> BaseEstimator:
    key = str(name).strip().lower()
    if key not in MODELS:
        raise KeyError(f"Unknown model: {name} (available: {', '.join(sorted(MODELS))})")
    return MODELS[key](**dict(params or {}))


def make_resampling(cfg: Optional[Dict[str, Any]] = None):
    """Build a sklearn splitter from a resampling config dict.

    cv / stratified_cv: k folds (``folds``, default 3), shuffled with ``seed``.
    holdout: one shuffled split holding out ``test_size`` (default 0.3).
    """
    cfg = dict(cfg or {})
    method = str(cfg.get("method", "stratified_cv")).lower()
    seed = cfg.get("seed", 0)
    if method == "cv":
        return KFold(n_splits=int(cfg.get("folds", 3)), shuffle=True, random_state=seed)
    if method == "stratified_cv":
        return StratifiedKFold(n_splits=int(cfg.get("folds", 3)), shuffle=True, random_state=seed)
    if method == "holdout":
        test_size = float(cfg.get("test_size", 0.3))
        if bool(cfg.get("stratify", True)):
            return StratifiedShuffleSplit(n_splits=1, test_size=test_size, random_state=seed)
        return ShuffleSplit(n_splits=1, test_size=test_size, random_state=seed)
    raise ValueError(f"Unknown resampling method: {method} (expected one of {RESAMPLING})")
