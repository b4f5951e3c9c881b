"""Records stored in and returned by the build history database.

Timestamps are stored as UTC ISO-8601 strings with millisecond precision
and a ``Z`` suffix, so lexical order in SQL equals chronological order and
the first ten characters are the UTC calendar date.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from ..models import AnalysisResult, AnalysisTarget, Artifact, Status, Target


def to_storage_timestamp(value: Union[str, datetime]) -> str:
    """Normalize an ISO-8601 string or datetime to the stored UTC form.

    Naive values are taken to be UTC.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RecommendationRecord:
    message: str
    type: str = "performance"
    impact: str = "medium"


@dataclass
class BuildRecord:
    """A ``builds`` row without its children."""

    id: int
    timestamp: str
    branch: Optional[str] = None
    commit_hash: Optional[str] = None
    url: Optional[str] = None
    device: Optional[str] = None
    analysis_target: AnalysisTarget = "client"
    budget_status: Status = Status.OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "branch": self.branch,
            "commit_hash": self.commit_hash,
            "url": self.url,
            "device": self.device,
            "analysis_target": self.analysis_target,
            "budget_status": self.budget_status.value,
        }


@dataclass
class NewBuild:
    """Everything written by one ``save_build`` transaction."""

    timestamp: str
    artifacts: list[Artifact] = field(default_factory=list)
    metrics: dict[str, float] = field(default_factory=dict)
    recommendations: list[RecommendationRecord] = field(default_factory=list)
    branch: Optional[str] = None
    commit_hash: Optional[str] = None
    url: Optional[str] = None
    device: Optional[str] = None
    analysis_target: AnalysisTarget = "client"
    budget_status: Status = Status.OK

    @classmethod
    def from_result(
        cls,
        result: AnalysisResult,
        metrics: Optional[dict[str, float]] = None,
        branch: Optional[str] = None,
        commit_hash: Optional[str] = None,
        url: Optional[str] = None,
        device: Optional[str] = None,
    ) -> "NewBuild":
        return cls(
            timestamp=result.timestamp,
            artifacts=list(result.artifacts),
            metrics=dict(metrics or {}),
            recommendations=[RecommendationRecord(m) for m in result.recommendations],
            branch=branch,
            commit_hash=commit_hash,
            url=url,
            device=device,
            analysis_target=result.analysis_target,
            budget_status=result.budget_status,
        )


@dataclass
class StoredBuild:
    """A build with all of its child rows."""

    build: BuildRecord
    artifacts: list[Artifact] = field(default_factory=list)
    metrics: dict[str, float] = field(default_factory=dict)
    recommendations: list[RecommendationRecord] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.build.id

    def to_result(self) -> AnalysisResult:
        """Rebuild the in-memory result this build was saved from."""
        return AnalysisResult(
            timestamp=self.build.timestamp,
            artifacts=tuple(self.artifacts),
            budget_status=self.build.budget_status,
            recommendations=tuple(r.message for r in self.recommendations),
            analysis_target=self.build.analysis_target,
        )

    def to_dict(self) -> dict[str, Any]:
        data = self.build.to_dict()
        data["artifacts"] = [a.to_dict() for a in self.artifacts]
        data["metrics"] = dict(self.metrics)
        data["recommendations"] = [r.message for r in self.recommendations]
        return data


@dataclass
class StoredArtifact:
    """An artifact row together with the build it belongs to."""

    build_id: int
    artifact: Artifact


@dataclass
class TrendPoint:
    """One (date, target) bucket of the trend aggregation.

    ``target`` is ``None`` for the bucket of builds that recorded metrics
    but no artifacts.
    """

    date: str  # YYYY-MM-DD, UTC
    target: Optional[Target]
    raw_size: int
    compressed_size: Optional[int]
    build_count: int
    metrics: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "target": self.target.value if self.target is not None else None,
            "raw_size": self.raw_size,
            "compressed_size": self.compressed_size,
            "build_count": self.build_count,
            "metrics": dict(self.metrics),
        }


@dataclass
class TrendSummary:
    """Least-squares growth of the daily total size for one target."""

    target: Target
    points: int
    first_size: int
    last_size: int
    mean_size: float
    slope_bytes_per_day: float

    @property
    def direction(self) -> str:
        if self.slope_bytes_per_day > 0:
            return "growing"
        if self.slope_bytes_per_day < 0:
            return "shrinking"
        return "stable"


@dataclass
class ArtifactDiff:
    name: str
    old_size: int
    new_size: int
    delta: int
    old_compressed_size: Optional[int]
    new_compressed_size: Optional[int]
    compressed_delta: Optional[int]  # None unless both sides were measured


@dataclass
class MetricDiff:
    name: str
    old_value: float
    new_value: float
    delta: float


@dataclass
class BuildComparison:
    """Historical diff of two stored builds, names present on both sides only."""

    build1: BuildRecord
    build2: BuildRecord
    artifacts: list[ArtifactDiff] = field(default_factory=list)
    metrics: list[MetricDiff] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "build1": self.build1.to_dict(),
            "build2": self.build2.to_dict(),
            "artifacts": [vars(d).copy() for d in self.artifacts],
            "metrics": [vars(d).copy() for d in self.metrics],
        }


@dataclass
class MetricPoint:
    build_id: int
    timestamp: str
    value: float


@dataclass
class MetricStats:
    name: str
    count: int
    average: float
    min: float
    max: float


@dataclass
class ArtifactStats:
    total_builds: int
    average_size: float
    largest: list[StoredArtifact] = field(default_factory=list)
