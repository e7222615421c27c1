"""Social insights database interface.

Persists the active post dataset, the chat transcript and a log of upload
runs in SQLite.
"""

from __future__ import annotations

import argparse
import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .logging_config import get_logger
from .models import ConversationMessage, Dataset, IngestionReport, NormalizedRecord

ISO_TIMESTAMP_SUFFIX = "Z"
CHAT_ROLES = ("user", "assistant")

logger = get_logger("database")


def _utc_now() -> str:
    """Return a UTC timestamp string with second precision."""
    return datetime.utcnow().replace(microsecond=0).isoformat() + ISO_TIMESTAMP_SUFFIX


class SocialInsightsDatabase:
    """High-level helper for the social insights SQLite database."""

    DEFAULT_DB_PATH = Path("database/social_insights.db")

    def __init__(self, db_path: Optional[Union[str, Path]] = None, auto_initialize: bool = True) -> None:
        path = Path(db_path) if db_path else self.DEFAULT_DB_PATH
        if not path.is_absolute():
            path = Path.cwd() / path
        self.db_path = path
        if auto_initialize:
            self.initialize()

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------
    def initialize(self) -> None:
        """Initialise database directory and ensure schema exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            self._apply_pragmas(conn)
            self._create_schema(conn)
            conn.commit()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    @staticmethod
    def _apply_pragmas(conn: sqlite3.Connection) -> None:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA temp_store=MEMORY")

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS posts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                position INTEGER NOT NULL,
                network TEXT NOT NULL,
                message_url TEXT NOT NULL UNIQUE,
                date TEXT NOT NULL,
                occurred_at TEXT NOT NULL,
                message TEXT NOT NULL,
                type TEXT NOT NULL,
                content_type TEXT NOT NULL,
                profile TEXT NOT NULL,
                followers INTEGER NOT NULL,
                engagements INTEGER NOT NULL,
                formatted_date TEXT NOT NULL,
                created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS chat_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                created_at TEXT NOT NULL,
                edited INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS upload_runs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT,
                started_at TEXT NOT NULL,
                completed_at TEXT,
                status TEXT NOT NULL DEFAULT 'running',
                rows_read INTEGER NOT NULL DEFAULT 0,
                accepted INTEGER NOT NULL DEFAULT 0,
                discarded INTEGER NOT NULL DEFAULT 0,
                metadata TEXT
            );

            CREATE INDEX IF NOT EXISTS idx_posts_position ON posts(position);
            CREATE INDEX IF NOT EXISTS idx_posts_network ON posts(network);
            CREATE INDEX IF NOT EXISTS idx_posts_profile ON posts(profile);
            CREATE INDEX IF NOT EXISTS idx_chat_created_at ON chat_history(created_at);
            CREATE INDEX IF NOT EXISTS idx_runs_started_at ON upload_runs(started_at);
            """
        )

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------
    def replace_posts(self, dataset: Dataset) -> int:
        """Replace every stored post with the dataset in one transaction."""
        rows = [
            {
                "position": position,
                "network": record.network,
                "message_url": record.message_url,
                "date": record.date,
                "occurred_at": record.occurred_at.isoformat(),
                "message": record.message,
                "type": record.type,
                "content_type": record.content_type,
                "profile": record.profile,
                "followers": record.followers,
                "engagements": record.engagements,
                "formatted_date": record.formatted_date,
            }
            for position, record in enumerate(dataset)
        ]

        with self._connect() as conn:
            conn.execute("BEGIN")
            conn.execute("DELETE FROM posts")
            conn.executemany(
                """
                INSERT INTO posts (
                    position, network, message_url, date, occurred_at, message,
                    type, content_type, profile, followers, engagements, formatted_date
                ) VALUES (
                    :position, :network, :message_url, :date, :occurred_at, :message,
                    :type, :content_type, :profile, :followers, :engagements, :formatted_date
                )
                """,
                rows,
            )
            conn.commit()

        logger.info(f"Stored {len(rows)} posts")
        return len(rows)

    def load_dataset(self) -> Dataset:
        """Rebuild the stored dataset in its persisted order."""
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM posts ORDER BY position ASC").fetchall()
        return Dataset(records=tuple(self._row_to_record(row) for row in rows))

    def count_posts(self) -> int:
        with self._connect() as conn:
            (count,) = conn.execute("SELECT COUNT(*) FROM posts").fetchone()
        return int(count)

    # ------------------------------------------------------------------
    # Chat history
    # ------------------------------------------------------------------
    def append_message(self, role: str, content: str) -> ConversationMessage:
        if role not in CHAT_ROLES:
            raise ValueError(f"role must be one of {CHAT_ROLES}, got {role!r}")
        created_at = _utc_now()
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO chat_history (role, content, created_at) VALUES (?, ?, ?)",
                (role, content, created_at),
            )
            message_id = int(cur.lastrowid)
            conn.commit()
        return ConversationMessage(id=message_id, role=role, content=content, created_at=created_at)

    def edit_message(self, message_id: int, content: str) -> bool:
        """Replace a message's content and flag it as edited."""
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE chat_history SET content = ?, edited = 1 WHERE id = ?",
                (content, message_id),
            )
            conn.commit()
        return cur.rowcount > 0

    def delete_message(self, message_id: int) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM chat_history WHERE id = ?", (message_id,))
            conn.commit()
        return cur.rowcount > 0

    def clear_history(self) -> int:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM chat_history")
            conn.commit()
        return cur.rowcount

    def get_history(self, limit: Optional[int] = None) -> List[ConversationMessage]:
        """Return the transcript oldest first; ``limit`` keeps the newest N."""
        if limit is not None:
            sql = (
                "SELECT * FROM (SELECT * FROM chat_history ORDER BY id DESC LIMIT ?) "
                "ORDER BY id ASC"
            )
            params: Sequence[Any] = (max(limit, 0),)
        else:
            sql = "SELECT * FROM chat_history ORDER BY id ASC"
            params = ()
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._row_to_message(row) for row in rows]

    # ------------------------------------------------------------------
    # Upload run helpers
    # ------------------------------------------------------------------
    def start_upload_run(self, filename: Optional[str] = None) -> int:
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO upload_runs (filename, started_at) VALUES (?, ?)",
                (filename, _utc_now()),
            )
            run_id = int(cur.lastrowid)
            conn.commit()
        return run_id

    def complete_upload_run(
        self,
        run_id: int,
        *,
        status: str = "completed",
        report: Optional[IngestionReport] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        rows_read = report.rows_read if report else 0
        accepted = report.accepted if report else 0
        discarded = report.discarded if report else 0
        payload = dict(metadata or {})
        if report is not None:
            payload.setdefault("discard_counts", report.discard_counts())

        with self._connect() as conn:
            conn.execute(
                """
                UPDATE upload_runs
                   SET status = ?,
                       completed_at = ?,
                       rows_read = ?,
                       accepted = ?,
                       discarded = ?,
                       metadata = COALESCE(?, metadata)
                 WHERE id = ?
                """,
                (
                    status,
                    _utc_now(),
                    rows_read,
                    accepted,
                    discarded,
                    self._to_json(payload or None),
                    run_id,
                ),
            )
            conn.commit()

    def get_upload_runs(self) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM upload_runs ORDER BY id ASC").fetchall()
        runs = []
        for row in rows:
            data = dict(row)
            data["metadata"] = self._from_json(data.get("metadata"), default={})
            runs.append(data)
        return runs

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> NormalizedRecord:
        return NormalizedRecord(
            network=row["network"],
            message_url=row["message_url"],
            date=row["date"],
            occurred_at=datetime.fromisoformat(row["occurred_at"]),
            message=row["message"],
            type=row["type"],
            content_type=row["content_type"],
            profile=row["profile"],
            followers=int(row["followers"]),
            engagements=int(row["engagements"]),
            formatted_date=row["formatted_date"],
        )

    @staticmethod
    def _row_to_message(row: sqlite3.Row) -> ConversationMessage:
        return ConversationMessage(
            id=int(row["id"]),
            role=row["role"],
            content=row["content"],
            created_at=row["created_at"],
            edited=bool(row["edited"]),
        )

    @staticmethod
    def _to_json(value: Optional[Any]) -> Optional[str]:
        if value is None:
            return None
        return json.dumps(value, sort_keys=True)

    @staticmethod
    def _from_json(value: Optional[str], default: Any) -> Any:
        if not value:
            return default
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return default


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Social insights database helper")
    parser.add_argument("--init", action="store_true", help="Initialise the database schema")
    parser.add_argument("--db-path", help="Override database path", default=None)
    args = parser.parse_args(argv)

    db = SocialInsightsDatabase(db_path=args.db_path, auto_initialize=False)
    if args.init:
        db.initialize()
        print(f"Initialised social insights database at {db.db_path}")
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
