"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone

import pytest

from imgrelay.core.clock import Clock
from imgrelay.db.sqlite import SQLiteMetadataStore
from imgrelay.ingest.dedup import DedupIndex
from imgrelay.ingest.fetcher import ContentFetcher
from imgrelay.ingest.pipeline import IngestionPipeline
from imgrelay.ingest.rate_limiter import RateLimiter
from imgrelay.storage.memory import MemoryObjectStore

BASE_URL = "https://img.example.com"

# Smallest valid PNG header plus IHDR chunk start; content only matters for hashing
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


class FixedClock(Clock):
    """Clock frozen at a settable instant."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current


@pytest.fixture
def clock():
    """Clock frozen at 2024-05-01 12:30:45.123 UTC."""
    return FixedClock(datetime(2024, 5, 1, 12, 30, 45, 123000, tzinfo=timezone.utc))


@pytest.fixture
def metadata_store():
    """Fresh in-memory SQLite metadata store."""
    store = SQLiteMetadataStore(":memory:")
    store.connect()
    yield store
    store.disconnect()


@pytest.fixture
def object_store():
    """Fresh in-memory object store."""
    return MemoryObjectStore(BASE_URL)


@pytest.fixture
def make_pipeline(metadata_store, object_store, clock):
    """Factory for pipelines sharing the test stores and clock."""

    def _make(max_per_day: int = 5, max_bytes: int = 1024, transport=None) -> IngestionPipeline:
        return IngestionPipeline(
            fetcher=ContentFetcher(max_bytes=max_bytes, timeout=5, transport=transport),
            rate_limiter=RateLimiter(metadata_store, clock, max_per_day),
            dedup_index=DedupIndex(metadata_store),
            object_store=object_store,
            clock=clock,
            key_prefix="images/",
        )

    return _make
