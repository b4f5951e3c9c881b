"""Configuration exceptions: size strings, budget tables, paths, settings."""

from pathlib import Path
from typing import Any, Iterable

from .base import PerfAuditError


class ConfigurationError(PerfAuditError):
    """Base class for configuration-related errors."""

    pass


class InvalidPathError(ConfigurationError):
    """Raised when a provided path is invalid."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid path: {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class InvalidSizeError(ConfigurationError):
    """Raised when a human-readable size string cannot be parsed."""

    def __init__(self, value: Any):
        super().__init__(
            f"Invalid size format: {value}",
            details={"expected": "<number><B|KB|MB|GB|TB>"},
        )
        self.value = value


class UnknownBudgetError(ConfigurationError):
    """Raised when a budget table references a bucket that does not exist."""

    def __init__(self, bucket: str, target: str, known: Iterable[str]):
        super().__init__(
            f"Unknown budget bucket '{bucket}' for {target}",
            details={"target": target, "known": ", ".join(known)},
        )
        self.bucket = bucket
        self.target = target
