"""Local filesystem object store."""

import re
from pathlib import Path

from imgrelay.storage.base import ObjectStore


class LocalObjectStore(ObjectStore):
    """Local filesystem object store."""

    def __init__(self, base_url: str, base_path: str = "data/images"):
        super().__init__(base_url)
        self.base_path = Path(base_path)

    def get_target_path(self, key: str) -> Path:
        """Resolve the file path for an object key."""
        return self.base_path / self._sanitize_key(key)

    async def store(self, key: str, data: bytes, content_type: str) -> str:
        """Write object bytes to the filesystem."""
        safe_key = self._sanitize_key(key)
        target_path = self.base_path / safe_key
        target_path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a sibling temp file first so readers never see partial content
        tmp_path = target_path.with_name(target_path.name + ".part")
        with open(tmp_path, "wb") as f:
            f.write(data)
        tmp_path.replace(target_path)

        return self.public_url(safe_key)

    async def delete(self, key: str) -> None:
        self.get_target_path(key).unlink(missing_ok=True)

    def get_backend_name(self) -> str:
        return "local"

    @staticmethod
    def _sanitize_key(key: str) -> str:
        """Remove path traversal and dangerous characters."""
        parts = [p for p in re.split(r"[\\/]+", key) if p not in ("", ".", "..")]
        safe = "/".join(re.sub(r"[^a-zA-Z0-9._-]", "_", p) for p in parts)
        return safe[:255]
