"""
SQLite Storage Backend

Stores one row per page in a ``pages`` table keyed by page id. Re-archiving a
page overwrites every column, so the table always holds the latest fetch.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .errors import ConfigError, StorageError
from .models import PageContent, PageRef, utc_now
from .persister import Persister
from mwarchive.utils.file_manager import FileManager


SCHEMA = """
CREATE TABLE IF NOT EXISTS pages (
    page_id INTEGER PRIMARY KEY,
    namespace INTEGER NOT NULL,
    title TEXT NOT NULL,
    text TEXT NOT NULL,
    rev_id INTEGER,
    parent_id INTEGER,
    rev_timestamp TEXT,
    rev_sha1 TEXT,
    rev_size INTEGER,
    content_model TEXT,
    content_format TEXT,
    retrieved_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_pages_namespace_title ON pages(namespace, title);
"""

UPSERT = """
INSERT INTO pages (
    page_id, namespace, title, text, rev_id, parent_id,
    rev_timestamp, rev_sha1, rev_size, content_model, content_format, retrieved_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(page_id) DO UPDATE SET
    namespace=excluded.namespace,
    title=excluded.title,
    text=excluded.text,
    rev_id=excluded.rev_id,
    parent_id=excluded.parent_id,
    rev_timestamp=excluded.rev_timestamp,
    rev_sha1=excluded.rev_sha1,
    rev_size=excluded.rev_size,
    content_model=excluded.content_model,
    content_format=excluded.content_format,
    retrieved_at=excluded.retrieved_at
"""


class SQLitePersister(Persister):
    """Upsert-by-key backend. Each statement is committed on its own."""

    def __init__(self, db_path: str, clock: Callable[[], str] = utc_now):
        self.db_path = str(db_path)
        self.clock = clock
        self.logger = logging.getLogger(__name__)
        self.conn = self._open()

    def _open(self) -> sqlite3.Connection:
        try:
            parent = Path(self.db_path).parent
            parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, isolation_level=None)
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"cannot open database {self.db_path}: {e}") from e

        try:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA foreign_keys=ON;")
            conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            conn.close()
            raise StorageError(f"cannot initialize database {self.db_path}: {e}") from e

        self.logger.info(f"Opened archive database: {self.db_path}")
        return conn

    def persist(self, namespace: int, ref: PageRef, content: PageContent) -> bool:
        content = content.stamped(self.clock())
        try:
            self.conn.execute(UPSERT, (
                content.page_id,
                namespace,
                content.title,
                content.text,
                content.rev_id,
                content.parent_id,
                content.timestamp,
                content.sha1,
                content.size,
                content.content_model,
                content.content_format,
                content.retrieved_at,
            ))
        except sqlite3.Error as e:
            raise StorageError(f"failed to store page {content.page_id}: {e}") from e

        self.logger.debug(f"Stored page: page_id={content.page_id} rev_id={content.rev_id}")
        return True

    def get_page(self, page_id: int) -> Optional[Dict[str, Any]]:
        """Return the stored row for a page as a dict, or None."""
        try:
            cursor = self.conn.execute("SELECT * FROM pages WHERE page_id = ?", (page_id,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"failed to read page {page_id}: {e}") from e
        if row is None:
            return None
        columns = [d[0] for d in cursor.description]
        return dict(zip(columns, row))

    def count_pages(self, namespace: Optional[int] = None) -> int:
        try:
            if namespace is None:
                row = self.conn.execute("SELECT COUNT(*) FROM pages").fetchone()
            else:
                row = self.conn.execute(
                    "SELECT COUNT(*) FROM pages WHERE namespace = ?", (namespace,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"failed to count pages: {e}") from e
        return row[0]

    def close(self):
        if self.conn is None:
            return
        try:
            self.conn.close()
        except sqlite3.Error as e:
            self.logger.error(f"Failed to close archive database: {e}")
        self.conn = None


def open_persister(config) -> Persister:
    """
    Build the storage backend selected by ``config.backend``.

    Raises:
        StorageError: The store cannot be opened
        ConfigError: Unknown backend
    """
    if config.backend == 'sqlite':
        return SQLitePersister(config.storage_path)
    if config.backend == 'files':
        return FileManager(config.storage_path)
    raise ConfigError(f"unknown storage backend: {config.backend!r}")
