from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np
from sklearn import metrics as skm


@dataclass
class Prediction:
    """Predictions pooled over every resampling fold."""
    y_true: np.ndarray
    y_pred: np.ndarray
    proba: Optional[np.ndarray]  # positive-class probability, None if the model has no predict_proba
    positive: Any


def accuracy(pred: Prediction) -> float:
    return float(skm.accuracy_score(pred.y_true, pred.y_pred))


def mmce(pred: Prediction) -> float:
    # mean misclassification error
    return 1.0 - accuracy(pred)


def balanced_accuracy(pred: Prediction) -> float:
    return float(skm.balanced_accuracy_score(pred.y_true, pred.y_pred))


def auc(pred: Prediction) -> float:
    y = (pred.y_true == pred.positive).astype(int)
    score = pred.proba if pred.proba is not None else (pred.y_pred == pred.positive).astype(float)
    if len(np.unique(y)) < 2:
        return 0.5
    return float(skm.roc_auc_score(y, score))


def f1(pred: Prediction) -> float:
    return float(skm.f1_score(pred.y_true, pred.y_pred, pos_label=pred.positive, zero_division=0))


def precision(pred: Prediction) -> float:
    return float(skm.precision_score(pred.y_true, pred.y_pred, pos_label=pred.positive, zero_division=0))


def recall(pred: Prediction) -> float:
    return float(skm.recall_score(pred.y_true, pred.y_pred, pos_label=pred.positive, zero_division=0))


def log_loss(pred: Prediction) -> float:
    if pred.proba is None:
        raise ValueError("log_loss needs a model with predict_proba")
    y = (pred.y_true == pred.positive).astype(int)
    return float(skm.log_loss(y, pred.proba, labels=[0, 1]))


# name -> (function, natural direction)
METRICS: Dict[str, Tuple[Callable[[Prediction], float], str]] = {
    "accuracy": (accuracy, "max"),
    "mmce": (mmce, "min"),
    "balanced_accuracy": (balanced_accuracy, "max"),
    "auc": (auc, "max"),
    "f1": (f1, "max"),
    "precision": (precision, "max"),
    "recall": (recall, "max"),
    "log_loss": (log_loss, "min"),
}


def get_metric(name: str) -> Callable[[Prediction], float]:
    key = str(name).strip().lower()
    if key not in METRICS:
        raise KeyError(f"Unknown metric: {name} (available: {', '.join(sorted(METRICS))})")
    return METRICS[key][0]


def default_direction(name: str) -> str:
    key = str(name).strip().lower()
    if key not in METRICS:
        raise KeyError(f"Unknown metric: {name}")
    return METRICS[key][1]


# metrics that read Prediction.proba and cannot fall back to hard labels
PROBA_METRICS = frozenset({"log_loss"})


def needs_proba(name: str) -> bool:
    return str(name).strip().lower() in PROBA_METRICS
