"""Multi-objective feature selection with NSGA-III."""

from nsga3fs.errors import (
    NSGA3FSError,
    ConfigError,
    EvaluationFailure,
    GenerationTimeout,
    SelectionUnderflow,
)

__version__ = "0.1.0"

__all__ = [
    "NSGA3FSError",
    "ConfigError",
    "EvaluationFailure",
    "GenerationTimeout",
    "SelectionUnderflow",
    "__version__",
]
