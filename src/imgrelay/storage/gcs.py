"""Google Cloud Storage object store."""

import logging
from typing import Optional

from google.cloud import storage
from google.cloud.exceptions import NotFound

from imgrelay.storage.base import ObjectStore

logger = logging.getLogger(__name__)


class GCSObjectStore(ObjectStore):
    """Google Cloud Storage object store.

    Objects are written as blobs named by their key; the public URL is
    built from the configured base URL, which is expected to serve the
    bucket (directly or through a CDN).
    """

    def __init__(self, base_url: str, bucket_name: str, project_id: str = ""):
        super().__init__(base_url)
        self.bucket_name = bucket_name
        self.project_id = project_id
        self._client: Optional[storage.Client] = None
        self._bucket: Optional[storage.Bucket] = None

    def _get_bucket(self) -> storage.Bucket:
        """Lazy-load and cache GCS bucket."""
        if self._bucket is None:
            if not self.bucket_name:
                raise ValueError("GCS_BUCKET_NAME not configured")

            self._client = storage.Client(project=self.project_id or None)
            self._bucket = self._client.bucket(self.bucket_name)

        return self._bucket

    async def store(self, key: str, data: bytes, content_type: str) -> str:
        """Upload object bytes to GCS."""
        bucket = self._get_bucket()
        blob = bucket.blob(key)
        blob.content_type = content_type
        blob.upload_from_string(data, content_type=content_type)

        logger.debug(
            "Object uploaded to GCS",
            extra={"bucket": self.bucket_name, "object_name": key, "size_bytes": len(data)},
        )
        return self.public_url(key)

    async def delete(self, key: str) -> None:
        bucket = self._get_bucket()
        try:
            bucket.blob(key).delete()
        except NotFound:
            pass

    def get_backend_name(self) -> str:
        return "gcs"
