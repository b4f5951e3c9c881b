"""Exception hierarchy for perf-audit."""

from .analysis import (
    AnalysisError,
    BuildNotFoundError,
    FileAccessError,
    PersistenceError,
)
from .base import PerfAuditError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
    InvalidSizeError,
    UnknownBudgetError,
)

__all__ = [
    "PerfAuditError",
    "AnalysisError",
    "FileAccessError",
    "PersistenceError",
    "BuildNotFoundError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
    "InvalidSizeError",
    "UnknownBudgetError",
]
