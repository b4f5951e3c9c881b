"""Analysis and persistence exceptions."""

from pathlib import Path

from .base import PerfAuditError


class AnalysisError(PerfAuditError):
    """Base class for analysis-related errors."""

    pass


class FileAccessError(AnalysisError):
    """Raised when a build artifact cannot be measured."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class PersistenceError(PerfAuditError):
    """Base class for build history storage errors."""

    pass


class BuildNotFoundError(PersistenceError):
    """Raised when a build id does not exist in the history database."""

    def __init__(self, build_id: int):
        super().__init__(f"No build with id={build_id}", details={"build_id": str(build_id)})
        self.build_id = build_id
