"""Core domain records: artifacts, analysis results, statuses and exit codes.

Everything here is immutable. Budget evaluation and change detection return
new objects rather than editing the ones they were given.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Literal, Optional

AnalysisTarget = Literal["client", "server", "both"]


class Target(str, Enum):
    """Which side of the application an artifact was built for."""

    CLIENT = "client"
    SERVER = "server"


class Status(str, Enum):
    """Budget status, ordered by severity."""

    OK = "ok"
    WARNING = "warning"
    ERROR = "error"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def worst(cls, statuses) -> "Status":
        """Return the most severe status, or OK for an empty iterable."""
        result = cls.OK
        for status in statuses:
            if status.severity > result.severity:
                result = status
        return result


_SEVERITY = {Status.OK: 0, Status.WARNING: 1, Status.ERROR: 2}

# ── Exit codes ───────────────────────────────────────────────────────
# CI pipelines key off these values; do not renumber.

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_WARNING = 2

_EXIT_CODES = {Status.OK: EXIT_SUCCESS, Status.WARNING: EXIT_WARNING, Status.ERROR: EXIT_ERROR}


def exit_code_for(status: Status) -> int:
    """Map a budget status to the process exit code (ok=0, error=1, warning=2)."""
    return _EXIT_CODES[Status(status)]


@dataclass(frozen=True)
class Artifact:
    """One measured build-output file."""

    name: str  # relative to the output root, POSIX separators
    raw_size: int
    target: Target
    compressed_size: Optional[int] = None
    status: Status = Status.OK
    delta: Optional[int] = None

    def with_status(self, status: Status) -> "Artifact":
        return replace(self, status=status)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "size": self.raw_size,
            "gzip_size": self.compressed_size,
            "target": self.target.value,
            "status": self.status.value,
        }
        if self.delta is not None:
            data["delta"] = self.delta
        return data


@dataclass(frozen=True)
class AnalysisResult:
    """One scan of one or both targets, after budget evaluation."""

    timestamp: str  # ISO-8601
    artifacts: tuple[Artifact, ...] = ()
    budget_status: Status = Status.OK
    recommendations: tuple[str, ...] = ()
    analysis_target: AnalysisTarget = "client"

    @property
    def client_artifacts(self) -> tuple[Artifact, ...]:
        return tuple(a for a in self.artifacts if a.target is Target.CLIENT)

    @property
    def server_artifacts(self) -> tuple[Artifact, ...]:
        return tuple(a for a in self.artifacts if a.target is Target.SERVER)

    @property
    def is_empty(self) -> bool:
        return not self.artifacts

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "analysis_target": self.analysis_target,
            "budget_status": self.budget_status.value,
            "artifacts": [a.to_dict() for a in self.artifacts],
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class Totals:
    """Combined sizes for a set of artifacts.

    ``compressed_size`` is ``None`` unless every artifact was measured
    compressed.
    """

    raw_size: int
    compressed_size: Optional[int] = None
    count: int = 0


@dataclass(frozen=True)
class BudgetReport:
    """Artifact statuses combined with per-target total budget checks."""

    result: AnalysisResult
    total_status: dict[Target, Status] = field(default_factory=dict)
    totals: dict[Target, Totals] = field(default_factory=dict)

    @property
    def status(self) -> Status:
        return Status.worst([self.result.budget_status, *self.total_status.values()])

    @property
    def passed(self) -> bool:
        return self.status is Status.OK

    @property
    def violations(self) -> tuple[Artifact, ...]:
        return tuple(a for a in self.result.artifacts if a.status is not Status.OK)
