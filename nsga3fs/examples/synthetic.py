from __future__ import annotations
import numpy as np
import pandas as pd


def make_synthetic_classification(
    n: int = 200,
    n_informative: int = 3,
    n_noise: int = 5,
    n_categorical: int = 0,
    seed: int = 7,
    target: str = "target",
) -> pd.DataFrame:
    """Binary target driven by the first n_informative columns; the rest is noise."""
    rng = np.random.default_rng(seed)
    informative = rng.normal(0, 1, size=(n, n_informative))
    weights = np.linspace(2.0, 0.5, n_informative)
    logits = informative @ weights
    y = (logits + rng.normal(0, 0.5, n) > 0).astype(int)

    cols = {f"x{i}": informative[:, i] for i in range(n_informative)}
    for j in range(n_noise):
        cols[f"noise{j}"] = rng.normal(0, 1, n)
    for j in range(n_categorical):
        cols[f"cat{j}"] = rng.choice(["a", "b", "c"], size=n)
    df = pd.DataFrame(cols)
    df[target] = y
    return df
