"""Tests for backend selection and pipeline wiring."""

import asyncio

import pytest

from imgrelay.core.config import settings
from imgrelay.core.exceptions import UnsupportedRuntimeError
from imgrelay.db.postgres import PostgresMetadataStore
from imgrelay.db.sqlite import SQLiteMetadataStore
from imgrelay.storage import factory
from imgrelay.storage.gcs import GCSObjectStore
from imgrelay.storage.local import LocalObjectStore
from imgrelay.storage.memory import MemoryObjectStore


@pytest.fixture
def storage_settings(monkeypatch, tmp_path):
    """Configure a working local setup."""
    monkeypatch.setattr(settings, "OBJECT_STORE_BACKEND", "memory")
    monkeypatch.setattr(settings, "OBJECT_STORE_BASE_URL", "https://img.example.com/")
    monkeypatch.setattr(settings, "OBJECT_STORE_KEY_PREFIX", "img/")
    monkeypatch.setattr(settings, "METADATA_BACKEND", "sqlite")
    monkeypatch.setattr(settings, "SQLITE_PATH", str(tmp_path / "meta.db"))
    monkeypatch.setattr(settings, "LOCAL_STORAGE_PATH", str(tmp_path / "images"))
    monkeypatch.setattr(settings, "RATE_LIMIT_TIMEZONE", "UTC")
    monkeypatch.setattr(factory, "_pipeline", None)
    monkeypatch.setattr(factory, "_pipeline_lock", asyncio.Lock())
    return settings


@pytest.mark.parametrize(
    "backend,expected",
    [("local", LocalObjectStore), ("memory", MemoryObjectStore)],
)
def test_get_object_store(storage_settings, monkeypatch, backend, expected):
    """Test object store selection."""
    monkeypatch.setattr(settings, "OBJECT_STORE_BACKEND", backend)

    store = factory.get_object_store()

    assert isinstance(store, expected)
    assert store.base_url == "https://img.example.com"


def test_get_object_store_gcs(storage_settings, monkeypatch):
    """Test GCS selection requires a bucket."""
    monkeypatch.setattr(settings, "OBJECT_STORE_BACKEND", "gcs")
    monkeypatch.setattr(settings, "GCS_BUCKET_NAME", "")

    with pytest.raises(UnsupportedRuntimeError, match="GCS_BUCKET_NAME"):
        factory.get_object_store()

    monkeypatch.setattr(settings, "GCS_BUCKET_NAME", "images-bucket")
    store = factory.get_object_store()
    assert isinstance(store, GCSObjectStore)
    assert store.bucket_name == "images-bucket"


def test_get_object_store_unsupported(storage_settings, monkeypatch):
    """Test unknown backends and missing base URL."""
    monkeypatch.setattr(settings, "OBJECT_STORE_BACKEND", "r2")
    with pytest.raises(UnsupportedRuntimeError, match="Unknown object store backend"):
        factory.get_object_store()

    monkeypatch.setattr(settings, "OBJECT_STORE_BACKEND", "local")
    monkeypatch.setattr(settings, "OBJECT_STORE_BASE_URL", "")
    with pytest.raises(UnsupportedRuntimeError):
        factory.get_object_store()


def test_get_metadata_store(storage_settings, monkeypatch):
    """Test metadata store selection."""
    assert isinstance(factory.get_metadata_store(), SQLiteMetadataStore)

    monkeypatch.setattr(settings, "METADATA_BACKEND", "postgres")
    monkeypatch.setattr(settings, "DATABASE_URL", "")
    with pytest.raises(UnsupportedRuntimeError, match="DATABASE_URL"):
        factory.get_metadata_store()

    monkeypatch.setattr(settings, "DATABASE_URL", "postgresql://localhost/imgrelay")
    assert isinstance(factory.get_metadata_store(), PostgresMetadataStore)

    monkeypatch.setattr(settings, "METADATA_BACKEND", "d1")
    with pytest.raises(UnsupportedRuntimeError):
        factory.get_metadata_store()


@pytest.mark.asyncio
async def test_get_pipeline_is_cached(storage_settings):
    """Test that the dependency builds the pipeline once and closes it on shutdown."""
    pipeline = await factory.get_pipeline()

    assert await factory.get_pipeline() is pipeline
    assert pipeline.key_prefix == "img/"
    assert pipeline.fetcher.max_bytes == settings.MAX_BODY_SIZE
    assert pipeline.rate_limiter.max_per_day == settings.MAX_UPLOAD_COUNT

    await factory.close_pipeline()
    assert factory._pipeline is None


@pytest.mark.asyncio
async def test_get_pipeline_concurrent_first_requests_build_once(storage_settings, monkeypatch):
    """Test that simultaneous first requests share a single pipeline."""
    build_pipeline = factory.build_pipeline
    builds = []

    async def slow_build():
        builds.append(1)
        await asyncio.sleep(0.05)
        return await build_pipeline()

    monkeypatch.setattr(factory, "build_pipeline", slow_build)

    pipelines = await asyncio.gather(*(factory.get_pipeline() for _ in range(5)))

    assert len(builds) == 1
    assert all(p is pipelines[0] for p in pipelines)

    await factory.close_pipeline()


@pytest.mark.asyncio
async def test_build_pipeline_invalid_timezone(storage_settings, monkeypatch):
    """Test that an unknown rate-limit timezone is reported as an unavailable runtime."""
    monkeypatch.setattr(settings, "RATE_LIMIT_TIMEZONE", "Not/AZone")

    with pytest.raises(UnsupportedRuntimeError, match="RATE_LIMIT_TIMEZONE") as exc_info:
        await factory.get_pipeline()

    assert exc_info.value.http_status == 501
    assert factory._pipeline is None
