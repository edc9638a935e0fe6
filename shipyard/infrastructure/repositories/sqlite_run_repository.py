"""
SQLite Run Repository

Architectural Intent:
- Persistent run history using SQLite (stdlib)
- Issues monotonically increasing build identifiers
- Stores finished runs with their stage results and post-run phases

Design Decisions:
- Single database file at configurable path (default: shipyard.db)
- Build ids come from a one-row counter table so they never repeat,
  even for runs that were never saved; recorded runs are never replaced
- Timestamps stored as ISO 8601 strings
"""

from __future__ import annotations
import json
import logging
import sqlite3
from typing import Any, Optional

from shipyard.domain.entities.pipeline_run import PipelineRun
from shipyard.domain.value_objects.build_id import BuildId

logger = logging.getLogger(__name__)


class SQLiteRunRepository:
    """Persistent pipeline run history."""

    def __init__(self, db_path: str = "shipyard.db"):
        self._db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    def connect(self) -> None:
        """Open database connection and create tables."""
        self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.row_factory = sqlite3.Row
        self._create_tables()
        logger.info("Run history connected: %s", self._db_path)

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def _db(self) -> sqlite3.Connection:
        if self._conn is None:
            self.connect()
        assert self._conn is not None
        return self._conn

    def _create_tables(self) -> None:
        assert self._conn is not None
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS build_counter (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                last_build_id INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS runs (
                build_id INTEGER PRIMARY KEY,
                outcome TEXT NOT NULL,
                started_at TEXT NOT NULL,
                finished_at TEXT,
                environment TEXT DEFAULT '{}',
                phases TEXT DEFAULT '[]'
            );

            CREATE TABLE IF NOT EXISTS stage_results (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                build_id INTEGER NOT NULL REFERENCES runs(build_id) ON DELETE CASCADE,
                position INTEGER NOT NULL,
                stage TEXT NOT NULL,
                status TEXT NOT NULL,
                elapsed_seconds REAL,
                timed_out INTEGER NOT NULL DEFAULT 0,
                error TEXT,
                output TEXT DEFAULT ''
            );

            CREATE INDEX IF NOT EXISTS idx_stage_build ON stage_results(build_id);
        """)

    def next_build_id(self) -> BuildId:
        conn = self._db()
        with conn:
            conn.execute(
                "INSERT OR IGNORE INTO build_counter (id, last_build_id) VALUES (1, 0)"
            )
            conn.execute(
                "UPDATE build_counter SET last_build_id = "
                "MAX(last_build_id, COALESCE((SELECT MAX(build_id) FROM runs), 0)) + 1 "
                "WHERE id = 1"
            )
            row = conn.execute("SELECT last_build_id FROM build_counter WHERE id = 1").fetchone()
        return BuildId(row["last_build_id"])

    def save(self, run: PipelineRun) -> None:
        if not run.is_finished:
            raise ValueError("Only finished runs can be recorded")
        conn = self._db()
        build_id = run.build_id.value
        try:
            with conn:
                conn.execute(
                    """INSERT INTO runs
                       (build_id, outcome, started_at, finished_at, environment, phases)
                       VALUES (?, ?, ?, ?, ?, ?)""",
                    (
                        build_id,
                        run.outcome.value,
                        run.started_at,
                        run.finished_at,
                        json.dumps(dict(run.environment)),
                        json.dumps([p.to_dict() for p in run.phases]),
                    ),
                )
                conn.executemany(
                    """INSERT INTO stage_results
                       (build_id, position, stage, status, elapsed_seconds, timed_out, error, output)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    [
                        (
                            build_id,
                            position,
                            r.stage,
                            r.status.value,
                            r.elapsed_seconds,
                            int(r.timed_out),
                            r.error,
                            r.output,
                        )
                        for position, r in enumerate(run.results)
                    ],
                )
                # explicit build ids still move the counter forward
                conn.execute(
                    "INSERT OR IGNORE INTO build_counter (id, last_build_id) VALUES (1, 0)"
                )
                conn.execute(
                    "UPDATE build_counter SET last_build_id = MAX(last_build_id, ?) WHERE id = 1",
                    (build_id,),
                )
        except sqlite3.IntegrityError as e:
            raise ValueError(f"Run #{build_id} is already recorded") from e
        logger.debug("Recorded run #%s (%s)", build_id, run.outcome.value)

    def get(self, build_id: BuildId) -> Optional[dict[str, Any]]:
        conn = self._db()
        row = conn.execute("SELECT * FROM runs WHERE build_id = ?", (build_id.value,)).fetchone()
        if row is None:
            return None
        stages = conn.execute(
            "SELECT * FROM stage_results WHERE build_id = ? ORDER BY position",
            (build_id.value,),
        ).fetchall()
        run = self._row_to_dict(row)
        run["results"] = [
            {
                "stage": s["stage"],
                "status": s["status"],
                "elapsed_seconds": s["elapsed_seconds"],
                "timed_out": bool(s["timed_out"]),
                "error": s["error"],
                "output": s["output"],
            }
            for s in stages
        ]
        return run

    def list_runs(self, limit: int = 20) -> list[dict[str, Any]]:
        rows = self._db().execute(
            "SELECT * FROM runs ORDER BY build_id DESC LIMIT ?", (limit,)
        ).fetchall()
        return [self._row_to_dict(r) for r in rows]

    @staticmethod
    def _row_to_dict(row: sqlite3.Row) -> dict[str, Any]:
        return {
            "build_id": row["build_id"],
            "outcome": row["outcome"],
            "started_at": row["started_at"],
            "finished_at": row["finished_at"],
            "environment": json.loads(row["environment"] or "{}"),
            "phases": json.loads(row["phases"] or "[]"),
        }
