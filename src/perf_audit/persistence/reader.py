"""Read builds back from the history database."""

import sqlite3
from datetime import datetime
from typing import Optional, Union

from ..exceptions import BuildNotFoundError
from ..models import Artifact, Status, Target
from .models import (
    BuildRecord,
    RecommendationRecord,
    StoredArtifact,
    StoredBuild,
    to_storage_timestamp,
)

_BUILD_COLUMNS = "id, timestamp, branch, commit_hash, url, device, analysis_target, budget_status"


def sort_order(order: str) -> str:
    """Validate an ``ASC`` / ``DESC`` keyword (case-insensitive)."""
    upper = order.upper()
    if upper not in ("ASC", "DESC"):
        raise ValueError(f"order must be ASC or DESC, got {order!r}")
    return upper


def find_by_id(conn: sqlite3.Connection, build_id: int) -> Optional[BuildRecord]:
    row = conn.execute(f"SELECT {_BUILD_COLUMNS} FROM builds WHERE id = ?", (build_id,)).fetchone()
    return _build_record(row) if row is not None else None


def load_build(conn: sqlite3.Connection, build_id: int) -> StoredBuild:
    """Load a complete build by its primary key.

    Parameters
    ----------
    conn:
        An open ``sqlite3.Connection`` (from ``PerformanceDB.connect()``).
    build_id:
        The build's ``id`` column.

    Returns
    -------
    StoredBuild
        The build with its artifacts, metrics and recommendations.

    Raises
    ------
    BuildNotFoundError
        If no build with that ID exists.
    """
    record = find_by_id(conn, build_id)
    if record is None:
        raise BuildNotFoundError(build_id)
    return _hydrate(conn, record)


def find_recent(conn: sqlite3.Connection, limit: int = 10, order: str = "DESC") -> list[BuildRecord]:
    """The ``limit`` most recent builds, newest-first (``DESC``) or oldest-first (``ASC``).

    ``ASC`` still selects the most recent builds; only their order changes.
    """
    direction = sort_order(order)
    rows = conn.execute(
        f"SELECT {_BUILD_COLUMNS} FROM builds ORDER BY timestamp DESC, id DESC LIMIT ?",
        (limit,),
    ).fetchall()
    records = [_build_record(r) for r in rows]
    if direction == "ASC":
        records.reverse()
    return records


def find_by_date_range(
    conn: sqlite3.Connection,
    start: Optional[Union[str, datetime]] = None,
    end: Optional[Union[str, datetime]] = None,
    limit: Optional[int] = None,
    order: str = "DESC",
) -> list[BuildRecord]:
    """Builds with ``start <= timestamp <= end``. Either bound may be omitted.

    A date-only ``end`` (``YYYY-MM-DD``) covers that whole day.
    """
    direction = sort_order(order)
    clauses = []
    params: list = []
    if start is not None:
        clauses.append("timestamp >= ?")
        params.append(_bound(start, is_end=False))
    if end is not None:
        clauses.append("timestamp <= ?")
        params.append(_bound(end, is_end=True))

    query = f"SELECT {_BUILD_COLUMNS} FROM builds"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += f" ORDER BY timestamp {direction}, id {direction}"
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)

    return [_build_record(r) for r in conn.execute(query, params).fetchall()]


def find_artifacts_by_name(
    conn: sqlite3.Connection, name: str, limit: int = 10
) -> list[StoredArtifact]:
    """Artifacts whose name contains *name*, most recent build first."""
    rows = conn.execute(
        """
        SELECT build_id, name, target, raw_size, compressed_size, status, delta
        FROM artifacts
        WHERE name LIKE ? ESCAPE '\\'
        ORDER BY build_id DESC, id
        LIMIT ?
        """,
        (f"%{_escape_like(name)}%", limit),
    ).fetchall()
    return [StoredArtifact(build_id=r["build_id"], artifact=row_to_artifact(r)) for r in rows]


def find_large_artifacts(
    conn: sqlite3.Connection, min_size: int, limit: int = 10
) -> list[StoredArtifact]:
    """Artifacts with ``raw_size >= min_size``, largest first."""
    rows = conn.execute(
        """
        SELECT build_id, name, target, raw_size, compressed_size, status, delta
        FROM artifacts
        WHERE raw_size >= ?
        ORDER BY raw_size DESC, build_id DESC
        LIMIT ?
        """,
        (min_size, limit),
    ).fetchall()
    return [StoredArtifact(build_id=r["build_id"], artifact=row_to_artifact(r)) for r in rows]


# ── internal helpers ──────────────────────────────────────────────


def _bound(value: Union[str, datetime], is_end: bool) -> str:
    if isinstance(value, str) and len(value.strip()) == 10:
        value = value.strip() + ("T23:59:59.999" if is_end else "T00:00:00")
    return to_storage_timestamp(value)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _build_record(row: sqlite3.Row) -> BuildRecord:
    return BuildRecord(
        id=row["id"],
        timestamp=row["timestamp"],
        branch=row["branch"],
        commit_hash=row["commit_hash"],
        url=row["url"],
        device=row["device"],
        analysis_target=row["analysis_target"],
        budget_status=Status(row["budget_status"]),
    )


def row_to_artifact(row: sqlite3.Row) -> Artifact:
    return Artifact(
        name=row["name"],
        raw_size=row["raw_size"],
        target=Target(row["target"]),
        compressed_size=row["compressed_size"],
        status=Status(row["status"]),
        delta=row["delta"],
    )


def _hydrate(conn: sqlite3.Connection, record: BuildRecord) -> StoredBuild:
    """Attach child rows to a build record."""
    artifact_rows = conn.execute(
        """
        SELECT name, target, raw_size, compressed_size, status, delta
        FROM artifacts WHERE build_id = ? ORDER BY id
        """,
        (record.id,),
    ).fetchall()

    metric_rows = conn.execute(
        "SELECT name, value FROM metrics WHERE build_id = ? ORDER BY id",
        (record.id,),
    ).fetchall()

    rec_rows = conn.execute(
        "SELECT type, message, impact FROM recommendations WHERE build_id = ? ORDER BY id",
        (record.id,),
    ).fetchall()

    return StoredBuild(
        build=record,
        artifacts=[row_to_artifact(r) for r in artifact_rows],
        metrics={r["name"]: r["value"] for r in metric_rows},
        recommendations=[
            RecommendationRecord(message=r["message"], type=r["type"], impact=r["impact"])
            for r in rec_rows
        ],
    )
