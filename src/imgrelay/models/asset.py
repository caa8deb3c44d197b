"""Domain records flowing through the ingestion pipeline."""

from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterable, Mapping, Optional, Union


@dataclass(frozen=True)
class FromURL:
    """Upload request naming a remote image."""

    source_url: str


@dataclass(frozen=True)
class FromBody:
    """Upload request carrying the image as the request body.

    ``body`` is either the complete payload or an async stream of chunks.
    """

    headers: Mapping[str, str]
    body: Union[bytes, AsyncIterable[bytes]]


UploadRequest = Union[FromURL, FromBody]


@dataclass(frozen=True)
class FetchedContent:
    """Validated image payload."""

    data: bytes
    content_type: str


@dataclass(frozen=True)
class ImageAsset:
    """Stored image, one per unique fingerprint."""

    fingerprint: str
    canonical_url: str
    content_type: str
    stored_at: datetime
    source_url: Optional[str] = None


@dataclass(frozen=True)
class IngestResult:
    """Outcome of a successful ingestion."""

    url: str
    fingerprint: Optional[str] = None
    deduplicated: bool = False
