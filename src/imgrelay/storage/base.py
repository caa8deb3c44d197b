"""Abstract object storage interface."""

from abc import ABC, abstractmethod


class ObjectStore(ABC):
    """Abstract base class for object storage backends.

    Objects are addressed by key and served publicly under ``base_url``.
    """

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    @abstractmethod
    async def store(self, key: str, data: bytes, content_type: str) -> str:
        """Durably write an object.

        Args:
            key: Object key generated by the pipeline
            data: Object content
            content_type: MIME type recorded as object metadata

        Returns:
            Public URL of the stored object
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove an object. Missing keys are ignored."""
        pass

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return backend identifier."""
        pass

    def public_url(self, key: str) -> str:
        """Build the public URL of ``key``."""
        return f"{self.base_url}/{key}"

    def owns_url(self, url: str) -> bool:
        """Check whether ``url`` is one of this store's public URLs."""
        return url.startswith(f"{self.base_url}/")
