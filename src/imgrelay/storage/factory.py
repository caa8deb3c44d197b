"""Backend selection and pipeline wiring."""

import asyncio
import logging
from typing import Optional
from zoneinfo import ZoneInfoNotFoundError

from imgrelay.core.clock import SystemClock
from imgrelay.core.config import settings
from imgrelay.core.exceptions import UnsupportedRuntimeError
from imgrelay.db.base import MetadataStore
from imgrelay.ingest.dedup import DedupIndex
from imgrelay.ingest.fetcher import ContentFetcher
from imgrelay.ingest.pipeline import IngestionPipeline
from imgrelay.ingest.rate_limiter import RateLimiter
from imgrelay.storage.base import ObjectStore

logger = logging.getLogger(__name__)

_pipeline: Optional[IngestionPipeline] = None
_pipeline_lock = asyncio.Lock()


def get_object_store() -> ObjectStore:
    """Build the configured object store.

    Raises:
        UnsupportedRuntimeError: If the backend is unknown or misconfigured
    """
    if not settings.base_url:
        raise UnsupportedRuntimeError("OBJECT_STORE_BASE_URL not configured")

    backend = settings.OBJECT_STORE_BACKEND
    if backend == "local":
        from imgrelay.storage.local import LocalObjectStore

        return LocalObjectStore(settings.base_url, settings.LOCAL_STORAGE_PATH)
    if backend == "gcs":
        if not settings.GCS_BUCKET_NAME:
            raise UnsupportedRuntimeError("GCS_BUCKET_NAME not configured")
        from imgrelay.storage.gcs import GCSObjectStore

        return GCSObjectStore(settings.base_url, settings.GCS_BUCKET_NAME, settings.GCP_PROJECT_ID)
    if backend == "memory":
        from imgrelay.storage.memory import MemoryObjectStore

        return MemoryObjectStore(settings.base_url)

    raise UnsupportedRuntimeError(f"Unknown object store backend: {backend}")


def get_metadata_store() -> MetadataStore:
    """Build the configured metadata store.

    Raises:
        UnsupportedRuntimeError: If the backend is unknown or misconfigured
    """
    backend = settings.METADATA_BACKEND
    if backend == "sqlite":
        from imgrelay.db.sqlite import SQLiteMetadataStore

        return SQLiteMetadataStore(settings.SQLITE_PATH)
    if backend == "postgres":
        if not settings.DATABASE_URL:
            raise UnsupportedRuntimeError("DATABASE_URL not configured")
        from imgrelay.db.postgres import PostgresMetadataStore

        return PostgresMetadataStore(settings.DATABASE_URL)

    raise UnsupportedRuntimeError(f"Unknown metadata backend: {backend}")


async def build_pipeline() -> IngestionPipeline:
    """Wire a pipeline from settings and initialize its metadata store."""
    try:
        clock = SystemClock(settings.rate_limit_tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.error(f"Invalid RATE_LIMIT_TIMEZONE {settings.RATE_LIMIT_TIMEZONE!r}: {e}")
        raise UnsupportedRuntimeError(
            f"Unknown RATE_LIMIT_TIMEZONE: {settings.RATE_LIMIT_TIMEZONE}"
        ) from e

    object_store = get_object_store()
    metadata_store = get_metadata_store()
    try:
        await metadata_store.initialize()
    except Exception as e:
        logger.error(f"Metadata store initialization failed: {e}", exc_info=True)
        raise UnsupportedRuntimeError() from e

    logger.info(
        f"Ingestion pipeline ready: object_store={object_store.get_backend_name()}, "
        f"metadata={settings.METADATA_BACKEND}"
    )
    return IngestionPipeline(
        fetcher=ContentFetcher(settings.MAX_BODY_SIZE, settings.FETCH_TIMEOUT_SECONDS),
        rate_limiter=RateLimiter(metadata_store, clock, settings.MAX_UPLOAD_COUNT),
        dedup_index=DedupIndex(metadata_store),
        object_store=object_store,
        clock=clock,
        key_prefix=settings.OBJECT_STORE_KEY_PREFIX,
    )


async def get_pipeline() -> IngestionPipeline:
    """FastAPI dependency returning the process-wide pipeline."""
    global _pipeline
    if _pipeline is None:
        async with _pipeline_lock:
            # Concurrent first requests wait here and reuse one pipeline
            if _pipeline is None:
                _pipeline = await build_pipeline()
    return _pipeline


async def close_pipeline() -> None:
    """Release pipeline resources on shutdown."""
    global _pipeline
    if _pipeline is not None:
        await _pipeline.close()
        _pipeline = None
