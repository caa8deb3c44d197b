"""Deduplicating image ingestion pipeline.

Every upload runs the same steps:

1. Fetch and validate the payload (URL download or request body)
2. Admit the client against its daily quota
3. Fingerprint the bytes and return the indexed URL on a dedup hit
4. Store the object under a fresh key
5. Index the fingerprint, keeping whichever URL wins a concurrent insert

Failures surface immediately as ``IngestionError`` subclasses; nothing is
retried here.
"""

import logging
from typing import AsyncIterable, Mapping, Optional, Union
from uuid import uuid4

from imgrelay.core.clock import Clock
from imgrelay.core.exceptions import (
    IngestionError,
    InvalidInputError,
    RateLimitedError,
    StoreFailedError,
)
from imgrelay.ingest.content_types import extension_for
from imgrelay.ingest.dedup import DedupIndex
from imgrelay.ingest.fetcher import ContentFetcher
from imgrelay.ingest.hashing import fingerprint
from imgrelay.ingest.rate_limiter import RateLimiter
from imgrelay.models.asset import (
    FetchedContent,
    FromBody,
    FromURL,
    ImageAsset,
    IngestResult,
    UploadRequest,
)
from imgrelay.storage.base import ObjectStore

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Orchestrates fetch, admission, dedup, store and index for uploads."""

    def __init__(
        self,
        fetcher: ContentFetcher,
        rate_limiter: RateLimiter,
        dedup_index: DedupIndex,
        object_store: ObjectStore,
        clock: Clock,
        key_prefix: str = "",
    ):
        self.fetcher = fetcher
        self.rate_limiter = rate_limiter
        self.dedup_index = dedup_index
        self.object_store = object_store
        self.clock = clock
        self.key_prefix = key_prefix

    async def ingest(self, request: UploadRequest, client_id: Optional[str]) -> IngestResult:
        """Run the pipeline for either kind of upload request."""
        if isinstance(request, FromURL):
            return await self.ingest_from_url(request.source_url, client_id)
        if isinstance(request, FromBody):
            return await self.ingest_from_body(request.headers, request.body, client_id)
        raise TypeError(f"Unsupported upload request: {type(request).__name__}")

    async def ingest_from_url(self, source_url: Optional[str], client_id: Optional[str]) -> IngestResult:
        """Ingest the image behind ``source_url``.

        URLs already served by the object store are returned unchanged without
        a fetch and without charging the client.
        """
        source_url = (source_url or "").strip()
        if not source_url:
            raise InvalidInputError("URL is required")

        if self.object_store.owns_url(source_url):
            logger.info("Source URL is already canonical", extra={"url": source_url})
            return IngestResult(url=source_url)

        content = await self.fetcher.fetch_from_url(source_url)
        return await self._ingest(content, client_id, source_url)

    async def ingest_from_body(
        self,
        headers: Mapping[str, str],
        body: Union[bytes, AsyncIterable[bytes]],
        client_id: Optional[str],
    ) -> IngestResult:
        """Ingest an image sent as the request body."""
        content = await self.fetcher.fetch_from_body(headers, body)
        return await self._ingest(content, client_id, None)

    async def _ingest(
        self, content: FetchedContent, client_id: Optional[str], source_url: Optional[str]
    ) -> IngestResult:
        if not await self.rate_limiter.admit(client_id):
            raise RateLimitedError()

        digest = fingerprint(content.data)
        existing_url = await self.dedup_index.lookup(digest)
        if existing_url:
            logger.info(
                "Duplicate image, returning indexed URL",
                extra={"fingerprint": digest, "url": existing_url},
            )
            return IngestResult(url=existing_url, fingerprint=digest, deduplicated=True)

        key = self.generate_key(content.content_type)
        try:
            url = await self.object_store.store(key, content.data, content.content_type)
        except IngestionError:
            raise
        except Exception as e:
            logger.error(
                "Failed to store image",
                extra={
                    "key": key,
                    "backend": self.object_store.get_backend_name(),
                    "error": str(e),
                },
                exc_info=True,
            )
            raise StoreFailedError() from e

        asset = ImageAsset(
            fingerprint=digest,
            canonical_url=url,
            content_type=content.content_type,
            stored_at=self.clock.now(),
            source_url=source_url,
        )
        try:
            canonical_url = await self.dedup_index.record(asset)
        except StoreFailedError:
            await self._discard(key)
            raise

        if canonical_url != url:
            # Lost the insert race; the winner's object is the only one kept
            await self._discard(key)
            return IngestResult(url=canonical_url, fingerprint=digest, deduplicated=True)

        logger.info(
            "Image stored",
            extra={
                "fingerprint": digest,
                "url": url,
                "content_type": content.content_type,
                "size_bytes": len(content.data),
                "source_url": source_url,
            },
        )
        return IngestResult(url=url, fingerprint=digest)

    def generate_key(self, content_type: str) -> str:
        """Build a collision-free object key: prefix, timestamp, random suffix, extension."""
        timestamp = self.clock.now().strftime("%Y%m%d%H%M%S%f")[:-3]
        return f"{self.key_prefix}{timestamp}-{uuid4().hex[:8]}.{extension_for(content_type)}"

    async def _discard(self, key: str) -> None:
        """Delete an object that never made it into the index."""
        try:
            await self.object_store.delete(key)
        except Exception as e:
            logger.warning(
                "Failed to delete unindexed object",
                extra={"key": key, "error": str(e)},
                exc_info=True,
            )

    async def close(self) -> None:
        await self.dedup_index.store.close()
