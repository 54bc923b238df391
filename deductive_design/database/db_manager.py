"""SQLite file behind the document store.

One ``documents`` table of JSON blobs keyed by string
(``project-state-<id>``). The layout version is stamped into
``PRAGMA user_version`` so a file written by a newer build is noticed.
"""

import logging
import sqlite3
from pathlib import Path

from deductive_design.constants import DB_FILENAME

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    key TEXT PRIMARY KEY,
    value_json TEXT NOT NULL,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""


class DatabaseManager:
    """Owns the single SQLite connection shared by a DocumentStore."""

    def __init__(self, db_path: Path | str | None = None, timeout: float = 5.0):
        if db_path is None:
            db_path = Path.cwd() / DB_FILENAME
        self._db_path = Path(db_path)
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None

    @property
    def db_path(self) -> Path:
        return self._db_path

    def connect(self) -> sqlite3.Connection:
        """Open (or return the open) connection, creating the parent directory."""
        if self._conn is None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path), timeout=self._timeout)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=NORMAL")
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def schema_version(self) -> int:
        return self.connect().execute("PRAGMA user_version").fetchone()[0]

    def initialize_database(self) -> int:
        """Create the documents table and stamp the layout version.

        Returns:
            The version found before initialization (0 for a new file).
        """
        conn = self.connect()
        found = self.schema_version()
        if found > SCHEMA_VERSION:
            logger.warning(
                "%s has layout version %d, newer than %d",
                self._db_path, found, SCHEMA_VERSION,
            )
        conn.executescript(_SCHEMA_SQL)
        if found < SCHEMA_VERSION:
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            logger.info("Initialized document database %s", self._db_path)
        conn.commit()
        return found
