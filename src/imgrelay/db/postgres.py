"""PostgreSQL metadata store."""

import logging
from typing import Optional

import asyncpg
from asyncpg import Pool

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
    created_at TIMESTAMPTZ
);
"""


class PostgresMetadataStore(MetadataStore):
    """Metadata store backed by an asyncpg connection pool.

    Quota checks take a transaction-scoped advisory lock keyed on the
    client and day, so concurrent requests from one client serialize on the
    conditional insert.
    """

    def __init__(self, dsn: str, min_size: int = 1, max_size: int = 10):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[Pool] = None

    async def initialize(self) -> None:
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=30,
            )
            async with self._pool.acquire() as conn:
                await conn.execute(SCHEMA)
            logger.info("Initialized PostgreSQL metadata store")

    async def close(self) -> None:
        if self._pool:
            await self._pool.close()
            self._pool = None

    def _get_pool(self) -> Pool:
        if not self._pool:
            raise RuntimeError("Database pool not initialized")
        return self._pool

    async def record_upload_if_allowed(self, client_id: str, day: str, limit: int) -> bool:
        async with self._get_pool().acquire() as conn:
            async with conn.transaction():
                await conn.execute(
                    "SELECT pg_advisory_xact_lock(hashtext($1))", f"{client_id}|{day}"
                )
                inserted = await conn.fetchval(
                    "INSERT INTO uploads (ip, date) SELECT $1, $2 "
                    "WHERE (SELECT COUNT(*) FROM uploads WHERE ip = $1 AND date = $2) < $3 "
                    "RETURNING 1",
                    client_id,
                    day,
                    limit,
                )
        return inserted is not None

    async def count_uploads(self, client_id: str, day: str) -> int:
        async with self._get_pool().acquire() as conn:
            return await conn.fetchval(
                "SELECT COUNT(*) FROM uploads WHERE ip = $1 AND date = $2", client_id, day
            )

    async def find_image_url(self, fingerprint: str) -> Optional[str]:
        async with self._get_pool().acquire() as conn:
            return await conn.fetchval("SELECT url FROM images WHERE md5 = $1", fingerprint)

    async def insert_image(self, asset: ImageAsset) -> str:
        async with self._get_pool().acquire() as conn:
            url = await conn.fetchval(
                "INSERT INTO images (url, md5, original_url, content_type, created_at) "
                "VALUES ($1, $2, $3, $4, $5) ON CONFLICT (md5) DO NOTHING RETURNING url",
                asset.canonical_url,
                asset.fingerprint,
                asset.source_url,
                asset.content_type,
                asset.stored_at,
            )
            if url is None:
                url = await conn.fetchval("SELECT url FROM images WHERE md5 = $1", asset.fingerprint)
        return url
