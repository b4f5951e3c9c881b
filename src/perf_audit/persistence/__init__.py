"""Build history: SQLite storage, queries and comparisons."""

from .database import DEFAULT_DB_PATH, PerformanceDB
from .models import (
    ArtifactDiff,
    ArtifactStats,
    BuildComparison,
    BuildRecord,
    MetricDiff,
    MetricPoint,
    MetricStats,
    NewBuild,
    RecommendationRecord,
    StoredArtifact,
    StoredBuild,
    TrendPoint,
    TrendSummary,
    to_storage_timestamp,
)
from .repository import BuildRepository

__all__ = [
    "DEFAULT_DB_PATH",
    "ArtifactDiff",
    "ArtifactStats",
    "BuildComparison",
    "BuildRecord",
    "BuildRepository",
    "MetricDiff",
    "MetricPoint",
    "MetricStats",
    "NewBuild",
    "PerformanceDB",
    "RecommendationRecord",
    "StoredArtifact",
    "StoredBuild",
    "TrendPoint",
    "TrendSummary",
    "to_storage_timestamp",
]
