from __future__ import annotations
from typing import Optional, Sequence


class NSGA3FSError(Exception):
    """Base class for all errors raised by nsga3fs."""


class ConfigError(NSGA3FSError, ValueError):
    """Run configuration is inconsistent; raised before the loop starts."""


class EvaluationFailure(NSGA3FSError):
    def __init__(self, message: str, genes: Optional[Sequence[int]] = None, ind_id: Optional[int] = None):
        super().__init__(message)
        self.genes = None if genes is None else [int(g) for g in genes]
        self.ind_id = ind_id


class GenerationTimeout(NSGA3FSError):
    """Reference point sampling hit its iteration cap before reaching the target count."""


class SelectionUnderflow(NSGA3FSError):
    """Niching could not find enough distinct candidates to fill the requested slots."""
