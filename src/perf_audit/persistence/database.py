"""SQLite-backed build history stored at ``.perf-audit/performance.db`` by default."""

import sqlite3
from pathlib import Path
from typing import Optional, Union

from ..logging_config import get_logger

logger = get_logger(__name__)

# Current schema version (bump when tables change).
_SCHEMA_VERSION = 1

DEFAULT_DB_PATH = ".perf-audit/performance.db"


class PerformanceDB:
    """Manages the build history SQLite database.

    Usage::

        with PerformanceDB(".perf-audit/performance.db") as db:
            save_build(db.conn, build)

    Pass ``":memory:"`` for a throwaway in-memory database.
    """

    def __init__(self, db_path: Union[str, Path] = DEFAULT_DB_PATH) -> None:
        self.db_path = str(db_path)
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the active connection. Raises if not connected."""
        if self._conn is None:
            raise RuntimeError(
                "PerformanceDB is not connected. Use as context manager or call connect()."
            )
        return self._conn

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    # ── lifecycle ─────────────────────────────────────────────────

    def _ensure_dir(self) -> None:
        if self.db_path == ":memory:":
            return
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def connect(self) -> sqlite3.Connection:
        """Open (or create) the database and run migrations."""
        if self._conn is not None:
            return self._conn
        self._ensure_dir()
        # Watch mode writes from its consumer thread
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row
        self._conn = conn
        self._migrate()
        logger.debug("Performance DB connected at %s", self.db_path)
        return conn

    def close(self) -> None:
        """Close the connection if open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug("Performance DB closed")

    def __enter__(self) -> "PerformanceDB":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── migration ─────────────────────────────────────────────────

    def _migrate(self) -> None:
        """Idempotently create / upgrade all tables."""
        c = self.conn

        c.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER NOT NULL
            )
            """
        )

        row = c.execute("SELECT version FROM schema_version").fetchone()
        if row is None:
            c.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (_SCHEMA_VERSION,),
            )

        # ── builds ───────────────────────────────────────────────
        c.execute(
            """
            CREATE TABLE IF NOT EXISTS builds (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp       TEXT    NOT NULL,
                branch          TEXT,
                commit_hash     TEXT,
                url             TEXT,
                device          TEXT,
                analysis_target TEXT    NOT NULL DEFAULT 'client',
                budget_status   TEXT    NOT NULL DEFAULT 'ok'
            )
            """
        )

        # ── artifacts ────────────────────────────────────────────
        c.execute(
            """
            CREATE TABLE IF NOT EXISTS artifacts (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                build_id        INTEGER NOT NULL REFERENCES builds(id) ON DELETE CASCADE,
                name            TEXT    NOT NULL,
                target          TEXT    NOT NULL,
                raw_size        INTEGER NOT NULL,
                compressed_size INTEGER,
                status          TEXT    NOT NULL DEFAULT 'ok',
                delta           INTEGER
            )
            """
        )

        # ── metrics ──────────────────────────────────────────────
        c.execute(
            """
            CREATE TABLE IF NOT EXISTS metrics (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                build_id    INTEGER NOT NULL REFERENCES builds(id) ON DELETE CASCADE,
                name        TEXT    NOT NULL,
                value       REAL    NOT NULL
            )
            """
        )

        # ── recommendations ──────────────────────────────────────
        c.execute(
            """
            CREATE TABLE IF NOT EXISTS recommendations (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                build_id    INTEGER NOT NULL REFERENCES builds(id) ON DELETE CASCADE,
                type        TEXT    NOT NULL DEFAULT 'performance',
                message     TEXT    NOT NULL,
                impact      TEXT    NOT NULL DEFAULT 'medium'
            )
            """
        )

        # ── indexes ──────────────────────────────────────────────
        c.execute("CREATE INDEX IF NOT EXISTS idx_builds_timestamp ON builds(timestamp)")
        c.execute("CREATE INDEX IF NOT EXISTS idx_artifacts_build ON artifacts(build_id)")
        c.execute("CREATE INDEX IF NOT EXISTS idx_artifacts_name ON artifacts(name)")
        c.execute("CREATE INDEX IF NOT EXISTS idx_artifacts_size ON artifacts(raw_size)")
        c.execute("CREATE INDEX IF NOT EXISTS idx_metrics_build ON metrics(build_id)")
        c.execute("CREATE INDEX IF NOT EXISTS idx_metrics_name ON metrics(name)")
        c.execute(
            "CREATE INDEX IF NOT EXISTS idx_recommendations_build ON recommendations(build_id)"
        )

        c.commit()

    def schema_version(self) -> int:
        row = self.conn.execute("SELECT version FROM schema_version").fetchone()
        return int(row["version"]) if row is not None else 0
