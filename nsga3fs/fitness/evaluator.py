from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Protocol

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, clone

from nsga3fs.errors import ConfigError, EvaluationFailure
from nsga3fs.fitness.metrics import Prediction, get_metric, default_direction, needs_proba
from nsga3fs.fitness.models import make_model, make_resampling
from nsga3fs.ga.sorting import parse_direction

NUM_FEATURES_NAME = "n_features"
COST_NAME = "feature_cost"


class Evaluator(Protocol):
    """Anything that turns a gene vector into an objective vector.

    Implementations must not mutate shared state so they can run in a worker pool.
    Failures are raised as EvaluationFailure.
    """
    feature_names: List[str]
    obj_names: List[str]
    directions: List[str]

    def evaluate(self, genes: np.ndarray) -> np.ndarray: ...


@dataclass
class Objective:
    name: str
    fn: Callable[[Prediction], float]
    direction: str
    needs_proba: bool = False

    @staticmethod
    def from_metric(name: str, direction: Optional[str] = None, label: Optional[str] = None) -> "Objective":
        return Objective(
            name=label or name,
            fn=get_metric(name),
            direction=parse_direction(direction or default_direction(name)),
            needs_proba=needs_proba(name),
        )


def select_columns(features: pd.DataFrame, genes: np.ndarray) -> pd.DataFrame:
    cols = [c for c, g in zip(features.columns, genes) if g]
    sub = features[cols]
    # reference-level dummy coding for categorical columns
    return pd.get_dummies(sub, drop_first=True, dtype=float)


def predict_resampled(model: BaseEstimator, X: pd.DataFrame, y: pd.Series, resampling, positive: Any) -> Prediction:
    y_arr = y.to_numpy()
    y_true, y_pred, proba = [], [], []
    has_proba = hasattr(model, "predict_proba")
    for train_idx, test_idx in resampling.split(X, y_arr):
        est = clone(model)
        est.fit(X.iloc[train_idx], y_arr[train_idx])
        X_test = X.iloc[test_idx]
        y_true.append(y_arr[test_idx])
        y_pred.append(est.predict(X_test))
        if has_proba:
            p = est.predict_proba(X_test)
            classes = list(est.classes_)
            if positive in classes:
                proba.append(p[:, classes.index(positive)])
            else:
                proba.append(np.zeros(len(test_idx)))
    return Prediction(
        y_true=np.concatenate(y_true),
        y_pred=np.concatenate(y_pred),
        proba=np.concatenate(proba) if has_proba else None,
        positive=positive,
    )


@dataclass
class SklearnEvaluator:
    """Resampled classifier training on the feature subset encoded by a gene vector.

    Objective order: configured objectives, then the selected feature count
    (when ``num_features``), then the summed feature cost (when any cost is nonzero).
    """
    features: pd.DataFrame
    target: pd.Series
    objectives: List[Objective]
    model: BaseEstimator
    resampling: Any
    num_features: bool = True
    feature_cost: Optional[np.ndarray] = None
    positive: Any = None
    num_features_name: str = NUM_FEATURES_NAME
    cost_name: str = COST_NAME
    obj_names: List[str] = field(init=False)
    directions: List[str] = field(init=False)

    def __post_init__(self):
        if not self.objectives:
            raise ConfigError("At least one objective function is required")
        if self.features.shape[1] == 0:
            raise ConfigError("Dataset has no feature columns")
        proba_objs = [o.name for o in self.objectives if o.needs_proba]
        if proba_objs and not hasattr(self.model, "predict_proba"):
            raise ConfigError(
                f"Objectives {proba_objs} need class probabilities but {type(self.model).__name__} has no predict_proba"
            )
        if self.feature_cost is not None:
            cost = np.asarray(self.feature_cost, dtype=float)
            if cost.shape != (self.features.shape[1],):
                raise ConfigError(
                    f"Feature cost has length {cost.size}, expected {self.features.shape[1]} (one per feature)"
                )
            self.feature_cost = cost if np.any(cost != 0) else None
        if self.positive is None:
            labels = sorted(pd.unique(self.target))
            self.positive = 1 if 1 in labels else labels[-1]
        names = [o.name for o in self.objectives]
        dirs = [o.direction for o in self.objectives]
        if self.num_features:
            names.append(self.num_features_name)
            dirs.append("min")
        if self.feature_cost is not None:
            names.append(self.cost_name)
            dirs.append("min")
        if len(set(names)) != len(names):
            raise ConfigError(f"Objective names must be unique: {names}")
        self.obj_names = names
        self.directions = dirs

    @property
    def feature_names(self) -> List[str]:
        return [str(c) for c in self.features.columns]

    @property
    def n_features(self) -> int:
        return int(self.features.shape[1])

    @staticmethod
    def from_frame(df: pd.DataFrame, target: str, **kwargs) -> "SklearnEvaluator":
        if target not in df.columns:
            raise ConfigError(f"Target column {target!r} not found in dataset")
        features = df[[c for c in df.columns if c != target]]
        return SklearnEvaluator(features=features, target=df[target], **kwargs)

    def evaluate(self, genes: np.ndarray) -> np.ndarray:
        genes = np.asarray(genes)
        if genes.shape != (self.n_features,):
            raise EvaluationFailure(f"Gene vector has shape {genes.shape}, expected ({self.n_features},)", genes)
        try:
            X = select_columns(self.features, genes)
            pred = predict_resampled(self.model, X, self.target, self.resampling, self.positive)
            values = [float(o.fn(pred)) for o in self.objectives]
        except EvaluationFailure:
            raise
        except Exception as exc:
            raise EvaluationFailure(f"Model evaluation failed: {exc}", genes) from exc
        if self.num_features:
            values.append(float(genes.sum()))
        if self.feature_cost is not None:
            values.append(float(self.feature_cost[genes.astype(bool)].sum()))
        return np.asarray(values, dtype=float)

    def describe(self) -> dict:
        return {
            "model": type(self.model).__name__,
            "model_params": self.model.get_params(deep=False),
            "resampling": type(self.resampling).__name__,
            "n_rows": int(self.features.shape[0]),
            "n_features": self.n_features,
            "target": str(self.target.name),
            "objectives": list(self.obj_names),
            "directions": list(self.directions),
        }


def evaluator_from_config(cfg, df: pd.DataFrame) -> SklearnEvaluator:
    """Wire a SklearnEvaluator from a nsga3fs.config.Config and a loaded frame."""
    try:
        objectives = [
            Objective.from_metric(o["name"], direction=o.get("direction"), label=o.get("label"))
            for o in cfg.objectives
        ]
    except (KeyError, ValueError) as exc:
        raise ConfigError(str(exc)) from exc

    model_cfg = cfg.model
    try:
        model = make_model(model_cfg.get("name", "logistic_regression"), model_cfg.get("params"))
        resampling = make_resampling(cfg.resampling)
    except (KeyError, ValueError, TypeError) as exc:
        raise ConfigError(str(exc)) from exc

    ev = SklearnEvaluator.from_frame(
        df,
        cfg.target,
        objectives=objectives,
        model=model,
        resampling=resampling,
        num_features=cfg.num_features,
        feature_cost=cfg.feature_cost,
        positive=model_cfg.get("positive"),
    )
    names = cfg.obj_names
    if names is not None:
        if len(names) != len(ev.obj_names):
            raise ConfigError(
                f"{len(names)} objective names given but the run has {len(ev.obj_names)} objectives "
                f"({', '.join(ev.obj_names)})"
            )
        if len(set(names)) != len(names):
            raise ConfigError(f"Objective names must be unique: {names}")
        ev.obj_names = list(names)
    return ev
