"""SQLite-backed cache for the signed-in user's profile summary.

Only display data lives here. Access tokens are never written to disk.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from session_client.schemas import User

logger = logging.getLogger(__name__)

_PROFILE_KEY = "user"


class ProfileCache:
    """Single-slot key-value table holding the last known :class:`User`."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path).expanduser()
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS profile_cache (
                    key TEXT PRIMARY KEY,
                    data TEXT NOT NULL
                )
                """
            )

    def save(self, user: User) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO profile_cache (key, data)
                VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET data = excluded.data
                """,
                (_PROFILE_KEY, user.model_dump_json()),
            )

    def load(self) -> Optional[User]:
        """Return the cached user, or ``None`` when absent or unreadable."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data FROM profile_cache WHERE key = ?",
                (_PROFILE_KEY,),
            ).fetchone()
        if not row:
            return None
        try:
            return User.model_validate(json.loads(row["data"]))
        except (ValueError, ValidationError) as exc:
            logger.warning("Ignoring unreadable cached profile: %s", exc)
            return None

    def clear(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM profile_cache WHERE key = ?", (_PROFILE_KEY,))


__all__ = ["ProfileCache"]
