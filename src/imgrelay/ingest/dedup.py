"""Fingerprint index of stored images."""

import logging
from typing import Optional

from imgrelay.core.exceptions import StoreFailedError
from imgrelay.db.base import MetadataStore
from imgrelay.models.asset import ImageAsset

logger = logging.getLogger(__name__)


class DedupIndex:
    """Maps content fingerprints to canonical URLs."""

    def __init__(self, store: MetadataStore):
        self.store = store

    async def lookup(self, fingerprint: str) -> Optional[str]:
        """Return the canonical URL already stored for ``fingerprint``."""
        try:
            return await self.store.find_image_url(fingerprint)
        except Exception as e:
            logger.error(
                "Fingerprint lookup failed",
                extra={"fingerprint": fingerprint, "error": str(e)},
                exc_info=True,
            )
            raise StoreFailedError() from e

    async def record(self, asset: ImageAsset) -> str:
        """Index ``asset`` unless its fingerprint is already taken.

        Returns:
            The canonical URL owning the fingerprint. It differs from
            ``asset.canonical_url`` when a concurrent upload won the insert.
        """
        try:
            url = await self.store.insert_image(asset)
        except Exception as e:
            logger.error(
                "Failed to index image",
                extra={"fingerprint": asset.fingerprint, "url": asset.canonical_url, "error": str(e)},
                exc_info=True,
            )
            raise StoreFailedError() from e

        if url != asset.canonical_url:
            logger.info(
                "Fingerprint already indexed by concurrent upload",
                extra={"fingerprint": asset.fingerprint, "url": url},
            )
        return url
