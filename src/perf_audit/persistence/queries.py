"""History query helpers: trend, metric and recommendation aggregates.

These operate on the database created by ``PerformanceDB`` and provide the
data for the ``trend`` and ``history`` CLI commands.
"""

import sqlite3
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Optional

import numpy as np

from ..models import Target
from .models import (
    ArtifactStats,
    MetricPoint,
    MetricStats,
    StoredArtifact,
    TrendPoint,
    TrendSummary,
    to_storage_timestamp,
    utc_now,
)
from .reader import row_to_artifact, sort_order

LARGE_ARTIFACT_BYTES = 100 * 1024

_STATS_BUILD_SAMPLE = 10


def _target_order(point: TrendPoint) -> tuple[int, str]:
    if point.target is None:
        return (1, "")
    return (0, point.target.value)


class HistoryQuery:
    """Read-only aggregate queries against the history database.

    Parameters
    ----------
    conn:
        An open ``sqlite3.Connection`` with ``row_factory = sqlite3.Row``
        (as returned by ``PerformanceDB.connect()``).
    now:
        Reference time for day windows. Defaults to the current UTC time
        at each call.
    """

    def __init__(self, conn: sqlite3.Connection, now: Optional[datetime] = None):
        self.conn = conn
        self._now = now

    def _cutoff(self, days: int) -> str:
        return to_storage_timestamp((self._now or utc_now()) - timedelta(days=days))

    # ── trend ─────────────────────────────────────────────────────────

    def trend(self, days: int = 30, order: str = "ASC") -> list[TrendPoint]:
        """One point per (UTC date, target) among builds in the last *days*.

        Sizes are summed across every artifact of every build in the
        bucket. The compressed sum is ``None`` when any of those artifacts
        was not measured compressed. Metrics keep the maximum value per
        name among the bucket's builds.

        Builds that recorded metrics but no artifacts (a page-load audit on
        its own) land in a ``target=None`` bucket for their date, listed
        after that date's target buckets.
        """
        direction = sort_order(order)
        cutoff = self._cutoff(days)

        size_rows = self.conn.execute(
            """
            SELECT substr(b.timestamp, 1, 10)   AS day,
                   a.target                     AS target,
                   SUM(a.raw_size)              AS raw_size,
                   SUM(a.compressed_size)       AS compressed_size,
                   COUNT(a.compressed_size)     AS compressed_count,
                   COUNT(*)                     AS artifact_count,
                   COUNT(DISTINCT b.id)         AS build_count
            FROM builds b
            JOIN artifacts a ON a.build_id = b.id
            WHERE b.timestamp >= ?
            GROUP BY day, a.target
            """,
            (cutoff,),
        ).fetchall()

        metrics_only_rows = self.conn.execute(
            """
            SELECT substr(b.timestamp, 1, 10) AS day,
                   COUNT(*)                   AS build_count
            FROM builds b
            WHERE b.timestamp >= ?
              AND NOT EXISTS (SELECT 1 FROM artifacts a WHERE a.build_id = b.id)
              AND EXISTS (SELECT 1 FROM metrics m WHERE m.build_id = b.id)
            GROUP BY day
            """,
            (cutoff,),
        ).fetchall()

        # LEFT JOIN: artifact-less builds keep their metrics under target NULL
        metric_rows = self.conn.execute(
            """
            SELECT substr(b.timestamp, 1, 10) AS day,
                   t.target                   AS target,
                   m.name                     AS name,
                   MAX(m.value)               AS value
            FROM metrics m
            JOIN builds b ON b.id = m.build_id
            LEFT JOIN (SELECT DISTINCT build_id, target FROM artifacts) t ON t.build_id = b.id
            WHERE b.timestamp >= ?
            GROUP BY day, t.target, m.name
            """,
            (cutoff,),
        ).fetchall()

        metrics: dict[tuple[str, Optional[str]], dict[str, float]] = defaultdict(dict)
        for r in metric_rows:
            metrics[(r["day"], r["target"])][r["name"]] = r["value"]

        points = []
        for r in size_rows:
            complete = r["compressed_count"] == r["artifact_count"]
            points.append(
                TrendPoint(
                    date=r["day"],
                    target=Target(r["target"]),
                    raw_size=r["raw_size"],
                    compressed_size=r["compressed_size"] if complete else None,
                    build_count=r["build_count"],
                    metrics=metrics.get((r["day"], r["target"]), {}),
                )
            )
        for r in metrics_only_rows:
            points.append(
                TrendPoint(
                    date=r["day"],
                    target=None,
                    raw_size=0,
                    compressed_size=None,
                    build_count=r["build_count"],
                    metrics=metrics.get((r["day"], None), {}),
                )
            )

        # Date in the requested direction; within a date, targets then None
        points.sort(key=_target_order)
        points.sort(key=lambda p: p.date, reverse=direction == "DESC")
        return points

    # ── metrics ───────────────────────────────────────────────────────

    def metric_history(self, name: str, days: int = 30) -> list[MetricPoint]:
        """Values of metric *name* in the last *days*, newest first."""
        rows = self.conn.execute(
            """
            SELECT m.build_id, b.timestamp, m.value
            FROM metrics m
            JOIN builds b ON b.id = m.build_id
            WHERE m.name = ? AND b.timestamp >= ?
            ORDER BY b.timestamp DESC, b.id DESC
            """,
            (name, self._cutoff(days)),
        ).fetchall()
        return [
            MetricPoint(build_id=r["build_id"], timestamp=r["timestamp"], value=r["value"])
            for r in rows
        ]

    def metric_stats(self, name: str, days: int = 30) -> MetricStats:
        """Count, average, min and max of metric *name*; zeros when absent."""
        row = self.conn.execute(
            """
            SELECT COUNT(m.value) AS count,
                   AVG(m.value)   AS average,
                   MIN(m.value)   AS min,
                   MAX(m.value)   AS max
            FROM metrics m
            JOIN builds b ON b.id = m.build_id
            WHERE m.name = ? AND b.timestamp >= ?
            """,
            (name, self._cutoff(days)),
        ).fetchone()

        if row is None or row["count"] == 0:
            return MetricStats(name=name, count=0, average=0.0, min=0.0, max=0.0)
        return MetricStats(
            name=name,
            count=row["count"],
            average=row["average"],
            min=row["min"],
            max=row["max"],
        )

    # ── recommendations ───────────────────────────────────────────────

    def frequent_recommendations(self, days: int = 30, limit: int = 10) -> list[tuple[str, int]]:
        """Most repeated recommendation messages as ``(message, count)``."""
        rows = self.conn.execute(
            """
            SELECT r.message, COUNT(*) AS count
            FROM recommendations r
            JOIN builds b ON b.id = r.build_id
            WHERE b.timestamp >= ?
            GROUP BY r.message
            ORDER BY count DESC, r.message
            LIMIT ?
            """,
            (self._cutoff(days), limit),
        ).fetchall()
        return [(r["message"], r["count"]) for r in rows]

    # ── artifacts ─────────────────────────────────────────────────────

    def artifact_stats(self, days: int = 30, min_size: int = LARGE_ARTIFACT_BYTES) -> ArtifactStats:
        """Build count in the window, mean artifact size over the newest
        builds, and the largest artifacts on record."""
        cutoff = self._cutoff(days)

        total_builds = self.conn.execute(
            "SELECT COUNT(*) AS n FROM builds WHERE timestamp >= ?", (cutoff,)
        ).fetchone()["n"]

        avg_row = self.conn.execute(
            """
            SELECT AVG(a.raw_size) AS average
            FROM artifacts a
            WHERE a.build_id IN (
                SELECT id FROM builds
                WHERE timestamp >= ?
                ORDER BY timestamp DESC, id DESC
                LIMIT ?
            )
            """,
            (cutoff, _STATS_BUILD_SAMPLE),
        ).fetchone()

        largest_rows = self.conn.execute(
            """
            SELECT build_id, name, target, raw_size, compressed_size, status, delta
            FROM artifacts
            WHERE raw_size >= ?
            ORDER BY raw_size DESC, build_id DESC
            LIMIT 10
            """,
            (min_size,),
        ).fetchall()

        return ArtifactStats(
            total_builds=total_builds,
            average_size=avg_row["average"] or 0.0,
            largest=[
                StoredArtifact(build_id=r["build_id"], artifact=row_to_artifact(r))
                for r in largest_rows
            ],
        )


def summarize_trend(points: list[TrendPoint]) -> list[TrendSummary]:
    """Fit a least-squares line to each target's daily raw size.

    The slope is in bytes per calendar day, so gaps between dates are
    weighted by their real distance. Targets with a single point have a
    slope of zero. Metric-only points (no target) carry no size and are skipped.
    """
    by_target: dict[Target, list[TrendPoint]] = defaultdict(list)
    for p in points:
        if p.target is None:
            continue
        by_target[p.target].append(p)

    summaries = []
    for target in sorted(by_target, key=lambda t: t.value):
        series = sorted(by_target[target], key=lambda p: p.date)
        sizes = np.array([p.raw_size for p in series], dtype=float)
        origin = date.fromisoformat(series[0].date)
        days = np.array([(date.fromisoformat(p.date) - origin).days for p in series], dtype=float)

        if len(series) < 2 or days[-1] == days[0]:
            slope = 0.0
        else:
            slope = float(np.polyfit(days, sizes, 1)[0])

        summaries.append(
            TrendSummary(
                target=target,
                points=len(series),
                first_size=int(sizes[0]),
                last_size=int(sizes[-1]),
                mean_size=float(np.mean(sizes)),
                slope_bytes_per_day=slope,
            )
        )
    return summaries
