"""Repository facade over the build history database.

A process opens exactly one ``BuildRepository`` and passes it to whatever
needs history (audit pipeline, watch orchestrator, CLI commands). There is
no module-level instance; whoever constructs it closes it.
"""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..exceptions import PersistenceError
from .comparison import get_comparison
from .database import DEFAULT_DB_PATH, PerformanceDB
from .models import (
    ArtifactStats,
    BuildComparison,
    BuildRecord,
    MetricPoint,
    MetricStats,
    NewBuild,
    StoredArtifact,
    StoredBuild,
    TrendPoint,
    TrendSummary,
)
from .queries import LARGE_ARTIFACT_BYTES, HistoryQuery, summarize_trend
from .reader import (
    find_artifacts_by_name,
    find_by_date_range,
    find_by_id,
    find_large_artifacts,
    find_recent,
    load_build,
)
from .writer import cleanup_builds, delete_all_builds, save_build


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    """Re-raise driver errors as PersistenceError."""
    try:
        yield
    except (sqlite3.Error, OSError) as e:
        raise PersistenceError(f"Failed to {action}", details={"error": str(e)}) from e


class BuildRepository:
    """Build history: writes, point lookups, listings, trends and comparisons.

    Usage::

        with BuildRepository(config.database_path) as repo:
            build_id = repo.save_build(NewBuild.from_result(result))

    The connection opens lazily on first use.
    """

    def __init__(self, db_path: Union[str, Path] = DEFAULT_DB_PATH) -> None:
        self.db = PerformanceDB(db_path)

    @property
    def conn(self) -> sqlite3.Connection:
        self.open()
        return self.db.conn

    @property
    def is_open(self) -> bool:
        return self.db.is_connected

    def open(self) -> None:
        if not self.db.is_connected:
            with _storage_errors("open the history database"):
                self.db.connect()

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "BuildRepository":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── writes ────────────────────────────────────────────────────────

    def save_build(self, build: NewBuild) -> int:
        with _storage_errors("save build"):
            return save_build(self.conn, build)

    def cleanup(self, retention_days: int, now: Optional[datetime] = None) -> int:
        """Delete builds strictly older than *retention_days*; returns the count."""
        with _storage_errors("clean up old builds"):
            return cleanup_builds(self.conn, retention_days, now=now)

    def delete_all(self) -> int:
        with _storage_errors("delete builds"):
            return delete_all_builds(self.conn)

    # ── builds ────────────────────────────────────────────────────────

    def find_by_id(self, build_id: int) -> Optional[BuildRecord]:
        with _storage_errors("read build"):
            return find_by_id(self.conn, build_id)

    def load_build(self, build_id: int) -> StoredBuild:
        """Load a build with its children. Raises BuildNotFoundError."""
        with _storage_errors("read build"):
            return load_build(self.conn, build_id)

    def find_recent(self, limit: int = 10, order: str = "DESC") -> list[BuildRecord]:
        with _storage_errors("list builds"):
            return find_recent(self.conn, limit, order)

    def find_by_date_range(
        self,
        start: Optional[Union[str, datetime]] = None,
        end: Optional[Union[str, datetime]] = None,
        limit: Optional[int] = None,
        order: str = "DESC",
    ) -> list[BuildRecord]:
        with _storage_errors("list builds"):
            return find_by_date_range(self.conn, start, end, limit, order)

    def get_comparison(self, build_id1: int, build_id2: int) -> BuildComparison:
        with _storage_errors("compare builds"):
            return get_comparison(self.conn, build_id1, build_id2)

    # ── artifacts ─────────────────────────────────────────────────────

    def find_artifacts_by_name(self, name: str, limit: int = 10) -> list[StoredArtifact]:
        with _storage_errors("search artifacts"):
            return find_artifacts_by_name(self.conn, name, limit)

    def find_large_artifacts(
        self, min_size: int = LARGE_ARTIFACT_BYTES, limit: int = 10
    ) -> list[StoredArtifact]:
        with _storage_errors("search artifacts"):
            return find_large_artifacts(self.conn, min_size, limit)

    # ── aggregates ────────────────────────────────────────────────────

    def query(self, now: Optional[datetime] = None) -> HistoryQuery:
        return HistoryQuery(self.conn, now=now)

    def get_trend_data(
        self, days: int = 30, order: str = "ASC", now: Optional[datetime] = None
    ) -> list[TrendPoint]:
        with _storage_errors("read trend data"):
            return self.query(now).trend(days, order)

    def summarize_trend(self, days: int = 30, now: Optional[datetime] = None) -> list[TrendSummary]:
        return summarize_trend(self.get_trend_data(days, "ASC", now))

    def get_metric_history(
        self, name: str, days: int = 30, now: Optional[datetime] = None
    ) -> list[MetricPoint]:
        with _storage_errors("read metric history"):
            return self.query(now).metric_history(name, days)

    def get_metric_stats(
        self, name: str, days: int = 30, now: Optional[datetime] = None
    ) -> MetricStats:
        with _storage_errors("read metric stats"):
            return self.query(now).metric_stats(name, days)

    def get_frequent_recommendations(
        self, days: int = 30, limit: int = 10, now: Optional[datetime] = None
    ) -> list[tuple[str, int]]:
        with _storage_errors("read recommendations"):
            return self.query(now).frequent_recommendations(days, limit)

    def get_artifact_stats(
        self, days: int = 30, now: Optional[datetime] = None
    ) -> ArtifactStats:
        with _storage_errors("read artifact stats"):
            return self.query(now).artifact_stats(days)
