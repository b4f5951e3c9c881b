"""Root of the perf-audit exception hierarchy."""

from typing import Any, Mapping, Optional


class PerfAuditError(Exception):
    """Base exception for all perf-audit errors.

    ``details`` carries the structured context (path, key, build id) so
    the CLI can render it as text or as JSON.
    """

    def __init__(self, message: str, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": {k: str(v) for k, v in self.details.items()},
        }

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({context})"
