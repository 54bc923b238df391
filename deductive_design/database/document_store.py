"""Bulk tier — fail-soft JSON document store on top of SQLite.

No method raises: read failures (missing row, corrupt JSON, closed or
locked database) come back as ``None``; write failures come back as
``False`` and leave the previously stored value in place.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import Any

from deductive_design.database.db_manager import DatabaseManager

logger = logging.getLogger(__name__)


class DocumentStore:
    """Key → JSON document store for large per-project blobs."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def get(self, key: str) -> Any | None:
        """Read and decode a document. Returns None if absent or unreadable."""
        try:
            conn = self._db.connect()
            row = conn.execute(
                "SELECT value_json FROM documents WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error:
            logger.warning("Failed to read document %s", key, exc_info=True)
            return None
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except (json.JSONDecodeError, TypeError):
            logger.warning("Discarding corrupt document %s", key, exc_info=True)
            return None

    def set(self, key: str, value: Any) -> bool:
        """Replace a document. Returns False if the write was dropped."""
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError):
            logger.warning("Document %s is not JSON-serializable", key, exc_info=True)
            return False
        try:
            conn = self._db.connect()
            with conn:
                conn.execute(
                    """INSERT OR REPLACE INTO documents (key, value_json, updated_at)
                       VALUES (?, ?, ?)""",
                    (key, payload, datetime.now().isoformat()),
                )
        except sqlite3.Error:
            logger.warning("Failed to write document %s", key, exc_info=True)
            return False
        return True

    def delete(self, key: str) -> bool:
        """Remove a document; absent keys are not an error."""
        try:
            conn = self._db.connect()
            with conn:
                conn.execute("DELETE FROM documents WHERE key = ?", (key,))
        except sqlite3.Error:
            logger.warning("Failed to delete document %s", key, exc_info=True)
            return False
        return True

    def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with ``prefix``."""
        try:
            conn = self._db.connect()
            rows = conn.execute(
                "SELECT key FROM documents WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            ).fetchall()
        except sqlite3.Error:
            logger.warning("Failed to list documents", exc_info=True)
            return []
        return [r[0] for r in rows]

    def close(self) -> None:
        self._db.close()
