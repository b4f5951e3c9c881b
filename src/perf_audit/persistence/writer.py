"""Write builds into the history database, one transaction per mutation."""

import sqlite3
from datetime import datetime, timedelta
from typing import Optional

from ..logging_config import get_logger
from .models import NewBuild, to_storage_timestamp, utc_now

logger = get_logger(__name__)


def save_build(conn: sqlite3.Connection, build: NewBuild) -> int:
    """Persist a build and all of its child rows.

    All inserts happen inside a single transaction so readers never see a
    build with only some of its artifacts, metrics or recommendations.

    Parameters
    ----------
    conn:
        An open ``sqlite3.Connection`` (from ``PerformanceDB.connect()``).
    build:
        The ``NewBuild`` to persist.

    Returns
    -------
    int
        The ``build_id`` (primary key) of the newly inserted row.
    """
    cur = conn.cursor()
    try:
        cur.execute("BEGIN")

        # ── builds row ───────────────────────────────────────────
        cur.execute(
            """
            INSERT INTO builds (
                timestamp, branch, commit_hash, url, device,
                analysis_target, budget_status
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                to_storage_timestamp(build.timestamp),
                build.branch,
                build.commit_hash,
                build.url,
                build.device,
                build.analysis_target,
                build.budget_status.value,
            ),
        )
        build_id = cur.lastrowid
        assert build_id is not None

        # ── artifacts (batch) ────────────────────────────────────
        if build.artifacts:
            cur.executemany(
                """
                INSERT INTO artifacts (
                    build_id, name, target, raw_size, compressed_size, status, delta
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        build_id,
                        a.name,
                        a.target.value,
                        a.raw_size,
                        a.compressed_size,
                        a.status.value,
                        a.delta,
                    )
                    for a in build.artifacts
                ],
            )

        # ── metrics (batch) ──────────────────────────────────────
        if build.metrics:
            cur.executemany(
                "INSERT INTO metrics (build_id, name, value) VALUES (?, ?, ?)",
                [(build_id, name, float(value)) for name, value in build.metrics.items()],
            )

        # ── recommendations (batch) ──────────────────────────────
        if build.recommendations:
            cur.executemany(
                """
                INSERT INTO recommendations (build_id, type, message, impact)
                VALUES (?, ?, ?, ?)
                """,
                [(build_id, r.type, r.message, r.impact) for r in build.recommendations],
            )

        conn.commit()
        logger.debug(
            "Saved build %d (%d artifacts, %d metrics)",
            build_id,
            len(build.artifacts),
            len(build.metrics),
        )
        return build_id

    except Exception:
        conn.rollback()
        raise


def cleanup_builds(
    conn: sqlite3.Connection, retention_days: int, now: Optional[datetime] = None
) -> int:
    """Delete builds strictly older than ``now - retention_days``.

    Child rows go with their build via ``ON DELETE CASCADE``.

    Returns
    -------
    int
        Number of builds deleted.
    """
    cutoff = to_storage_timestamp((now or utc_now()) - timedelta(days=retention_days))

    cur = conn.cursor()
    try:
        cur.execute("BEGIN")
        cur.execute("DELETE FROM builds WHERE timestamp < ?", (cutoff,))
        deleted = cur.rowcount
        conn.commit()
    except Exception:
        conn.rollback()
        raise

    logger.info("Cleanup removed %d build(s) older than %s", deleted, cutoff)
    return deleted


def delete_all_builds(conn: sqlite3.Connection) -> int:
    """Remove every build. Used by ``clean --all``."""
    cur = conn.cursor()
    try:
        cur.execute("BEGIN")
        cur.execute("DELETE FROM builds")
        deleted = cur.rowcount
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return deleted
