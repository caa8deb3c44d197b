"""In-memory object store."""

from dataclasses import dataclass
from typing import Dict

from imgrelay.storage.base import ObjectStore


@dataclass
class StoredObject:
    """Object held by the in-memory store."""

    data: bytes
    content_type: str


class MemoryObjectStore(ObjectStore):
    """Dict-backed object store for tests and demos. Not durable."""

    def __init__(self, base_url: str):
        super().__init__(base_url)
        self.objects: Dict[str, StoredObject] = {}

    async def store(self, key: str, data: bytes, content_type: str) -> str:
        self.objects[key] = StoredObject(data=data, content_type=content_type)
        return self.public_url(key)

    async def delete(self, key: str) -> None:
        self.objects.pop(key, None)

    def get_backend_name(self) -> str:
        return "memory"
