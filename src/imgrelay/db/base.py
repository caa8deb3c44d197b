"""Abstract metadata store over the relational ``uploads``/``images`` schema."""

from abc import ABC, abstractmethod
from typing import Optional

from imgrelay.models.asset import ImageAsset


class MetadataStore(ABC):
    """Relational store holding upload attempts and the fingerprint index.

    Implementations must make ``record_upload_if_allowed`` and
    ``insert_image`` single conditional writes: concurrent callers can never
    both pass the quota check at the limit, and a fingerprint is owned by
    exactly one URL.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Open connections and create the schema if needed."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release connections."""
        pass

    @abstractmethod
    async def record_upload_if_allowed(self, client_id: str, day: str, limit: int) -> bool:
        """Append an upload row unless the client already has ``limit`` rows for ``day``.

        Returns:
            True if the row was appended
        """
        pass

    @abstractmethod
    async def count_uploads(self, client_id: str, day: str) -> int:
        """Count upload rows recorded for a client on a day."""
        pass

    @abstractmethod
    async def find_image_url(self, fingerprint: str) -> Optional[str]:
        """Return the URL stored for a fingerprint, if any."""
        pass

    @abstractmethod
    async def insert_image(self, asset: ImageAsset) -> str:
        """Insert an image row unless the fingerprint is already indexed.

        Returns:
            URL owning the fingerprint after the insert: ``asset.canonical_url``
            if this call won, otherwise the previously stored URL
        """
        pass
