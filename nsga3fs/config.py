from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from nsga3fs.errors import ConfigError

FAILURE_POLICIES = ("raise", "penalize")


def load_yaml(path: str | Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get(d: Dict[str, Any], path: str, default=None):
    cur = d
    for p in path.split("."):
        if not isinstance(cur, dict) or p not in cur:
            return default
        cur = cur[p]
    return cur


@dataclass(frozen=True)
class RunSettings:
    """Validated loop parameters handed to the generation controller."""
    pop_size: int = 20
    max_gen: int = 10
    mutation_rate: float = 0.1
    threshold: float = 0.5
    seed: Optional[int] = None
    workers: int = 1
    use_processes: bool = False
    failure_policy: str = "raise"
    ref_method: str = "das_dennis"
    ref_max_iter: int = 1_000_000

    def __post_init__(self):
        if self.pop_size < 2:
            raise ConfigError(f"Population size must be at least 2, got {self.pop_size}")
        if self.max_gen < 0:
            raise ConfigError(f"Generation count must be non-negative, got {self.max_gen}")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ConfigError(f"Mutation rate must be in [0, 1], got {self.mutation_rate}")
        if not 0.0 <= self.threshold <= 1.0:
            raise ConfigError(f"Majority vote threshold must be in [0, 1], got {self.threshold}")
        if self.workers < 1:
            raise ConfigError(f"Worker count must be at least 1, got {self.workers}")
        if self.failure_policy not in FAILURE_POLICIES:
            raise ConfigError(f"Unknown failure policy {self.failure_policy!r} (expected one of {FAILURE_POLICIES})")
        if self.ref_max_iter < 1:
            raise ConfigError("Reference point iteration cap must be positive")


@dataclass(frozen=True)
class Config:
    raw: Dict[str, Any]
    path: Optional[Path] = None

    @staticmethod
    def load(path: str | Path) -> "Config":
        p = Path(path)
        return Config(raw=load_yaml(p), path=p)

    @property
    def data_path(self) -> Optional[Path]:
        val = get(self.raw, "data.path", None)
        if val in (None, ""):
            return None
        p = Path(str(val))
        if not p.is_absolute() and self.path is not None:
            p = self.path.parent / p
        return p

    @property
    def target(self) -> str:
        val = get(self.raw, "data.target", None)
        if val in (None, ""):
            raise ConfigError("data.target is required")
        return str(val)

    @property
    def objectives(self) -> List[Dict[str, Any]]:
        objs = get(self.raw, "objectives", None) or [{"name": "mmce"}]
        out = []
        for o in objs:
            if isinstance(o, str):
                o = {"name": o}
            if not isinstance(o, dict) or "name" not in o:
                raise ConfigError(f"Objective entries need a name: {o!r}")
            out.append(dict(o))
        return out

    @property
    def obj_names(self) -> Optional[List[str]]:
        # optional explicit column names; must cover the trailing feature objectives too
        val = get(self.raw, "obj_names", None)
        return None if val is None else [str(v) for v in val]

    @property
    def num_features(self) -> bool:
        return bool(get(self.raw, "features.num_features", True))

    @property
    def feature_cost(self) -> Optional[List[float]]:
        val = get(self.raw, "features.cost", None)
        if val in (None, False):
            return None
        return [float(v) for v in val]

    @property
    def model(self) -> Dict[str, Any]:
        return dict(get(self.raw, "model", {}) or {"name": "logistic_regression"})

    @property
    def resampling(self) -> Dict[str, Any]:
        return dict(get(self.raw, "resampling", {}) or {})

    @property
    def run_root(self) -> Path:
        return Path(get(self.raw, "project.run_root", "runs"))

    @property
    def run_name(self) -> str:
        return str(get(self.raw, "project.run_name", "latest"))

    def settings(self, **overrides) -> RunSettings:
        seed = get(self.raw, "ga.seed", None)
        values = dict(
            pop_size=int(get(self.raw, "ga.population", 20)),
            max_gen=int(get(self.raw, "ga.generations", 10)),
            mutation_rate=float(get(self.raw, "ga.mutation_rate", 0.1)),
            threshold=float(get(self.raw, "ga.threshold", 0.5)),
            seed=None if seed is None else int(seed),
            workers=int(get(self.raw, "evaluation.workers", 1)),
            use_processes=bool(get(self.raw, "evaluation.use_processes", False)),
            failure_policy=str(get(self.raw, "evaluation.failure_policy", "raise")),
            ref_method=str(get(self.raw, "reference_points.method", "das_dennis")),
            ref_max_iter=int(get(self.raw, "reference_points.max_iter", 1_000_000)),
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return RunSettings(**values)
