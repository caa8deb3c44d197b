"""SQLite metadata store."""

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Optional

from imgrelay.db.base import MetadataStore
from imgrelay.models.asset import ImageAsset

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS uploads (
    ip TEXT NOT NULL,
    date TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_uploads_ip_date ON uploads (ip, date);
CREATE TABLE IF NOT EXISTS images (
    url TEXT NOT NULL,
    md5 TEXT NOT NULL UNIQUE,
    original_url TEXT NULL,
    content_type TEXT,
    created_at TEXT
);
"""


class SQLiteMetadataStore(MetadataStore):
    """Metadata store backed by a single SQLite connection.

    Statements run under a process lock, so each conditional write is
    atomic with respect to other requests in this process.
    """

    def __init__(self, path: str = "data/imgrelay.db"):
        self.path = path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    async def initialize(self) -> None:
        self.connect()

    async def close(self) -> None:
        self.disconnect()

    def connect(self) -> None:
        """Open the connection and create the schema."""
        if self._conn is not None:
            return
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False)
        with self._lock:
            self._conn.executescript(SCHEMA)
        logger.info(f"Initialized SQLite metadata store: {self.path}")

    def disconnect(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("SQLite metadata store not initialized")
        return self._conn

    async def record_upload_if_allowed(self, client_id: str, day: str, limit: int) -> bool:
        conn = self._get_conn()
        with self._lock:
            cursor = conn.execute(
                "INSERT INTO uploads (ip, date) SELECT ?, ? "
                "WHERE (SELECT COUNT(*) FROM uploads WHERE ip = ? AND date = ?) < ?",
                (client_id, day, client_id, day, limit),
            )
        return cursor.rowcount == 1

    async def count_uploads(self, client_id: str, day: str) -> int:
        conn = self._get_conn()
        with self._lock:
            row = conn.execute(
                "SELECT COUNT(*) FROM uploads WHERE ip = ? AND date = ?", (client_id, day)
            ).fetchone()
        return row[0]

    async def find_image_url(self, fingerprint: str) -> Optional[str]:
        conn = self._get_conn()
        with self._lock:
            row = conn.execute("SELECT url FROM images WHERE md5 = ?", (fingerprint,)).fetchone()
        return row[0] if row else None

    async def insert_image(self, asset: ImageAsset) -> str:
        conn = self._get_conn()
        with self._lock:
            conn.execute(
                "INSERT INTO images (url, md5, original_url, content_type, created_at) "
                "VALUES (?, ?, ?, ?, ?) ON CONFLICT (md5) DO NOTHING",
                (
                    asset.canonical_url,
                    asset.fingerprint,
                    asset.source_url,
                    asset.content_type,
                    asset.stored_at.isoformat(),
                ),
            )
            row = conn.execute("SELECT url FROM images WHERE md5 = ?", (asset.fingerprint,)).fetchone()
        return row[0]
