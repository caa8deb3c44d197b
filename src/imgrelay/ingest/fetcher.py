"""Image retrieval from remote URLs and inbound request bodies."""

import asyncio
import logging
from typing import AsyncIterable, Mapping, Optional, Union
from urllib.parse import urlparse

import httpx

from imgrelay.core.exceptions import (
    FetchFailedError,
    InvalidFormatError,
    InvalidInputError,
    TooLargeError,
)
from imgrelay.ingest.content_types import is_image_type, normalize_content_type
from imgrelay.models.asset import FetchedContent

logger = logging.getLogger(__name__)


def _declared_length(value: Optional[str]) -> Optional[int]:
    """Parse a Content-Length header, treating garbage as absent."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


async def _as_chunks(body: Union[bytes, AsyncIterable[bytes]]) -> AsyncIterable[bytes]:
    if isinstance(body, (bytes, bytearray)):
        yield bytes(body)
        return
    async for chunk in body:
        yield chunk


class ContentFetcher:
    """Fetches and validates image payloads.

    Both entry points check the declared content type and length before
    reading, then read the payload with a hard cutoff at ``max_bytes``
    whatever the declared length said.
    """

    def __init__(
        self,
        max_bytes: int,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.max_bytes = max_bytes
        self.timeout = timeout
        self._transport = transport

    def _validate_headers(self, content_type: Optional[str], content_length: Optional[str]) -> str:
        if not is_image_type(content_type):
            raise InvalidFormatError()

        declared = _declared_length(content_length)
        if declared is not None and declared > self.max_bytes:
            raise TooLargeError()

        return normalize_content_type(content_type)

    async def _read_capped(self, chunks: AsyncIterable[bytes]) -> bytes:
        buffer = bytearray()
        async for chunk in chunks:
            buffer.extend(chunk)
            if len(buffer) > self.max_bytes:
                raise TooLargeError()
        if not buffer:
            raise InvalidInputError("Image body is empty")
        return bytes(buffer)

    async def _download(self, url: str) -> tuple[str, bytes]:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                content_type = self._validate_headers(
                    response.headers.get("content-type"),
                    response.headers.get("content-length"),
                )
                data = await self._read_capped(response.aiter_bytes())
        return content_type, data

    async def fetch_from_url(self, url: str) -> FetchedContent:
        """Download an image from ``url``.

        Raises:
            InvalidInputError: If the URL is not an absolute http(s) URL
            InvalidFormatError: If the response is not declared as an image
            TooLargeError: If the declared or actual size exceeds the ceiling
            FetchFailedError: On network error, timeout or non-2xx status
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidInputError("URL must be an absolute http(s) URL")

        try:
            # One deadline for the whole download; httpx timeouts are per phase
            content_type, data = await asyncio.wait_for(self._download(url), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning("Source fetch timed out", extra={"source_url": url, "timeout": self.timeout})
            raise FetchFailedError() from e
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Source responded with error status",
                extra={"source_url": url, "status_code": e.response.status_code},
            )
            raise FetchFailedError() from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Source fetch failed", extra={"source_url": url, "error": str(e)})
            raise FetchFailedError() from e

        logger.debug(
            "Fetched image from URL",
            extra={"source_url": url, "content_type": content_type, "size_bytes": len(data)},
        )
        return FetchedContent(data=data, content_type=content_type)

    async def fetch_from_body(
        self,
        headers: Mapping[str, str],
        body: Union[bytes, AsyncIterable[bytes]],
    ) -> FetchedContent:
        """Validate and read an image sent as the request body.

        Raises:
            InvalidFormatError: If the request is not declared as an image
            TooLargeError: If the declared or actual size exceeds the ceiling
            InvalidInputError: If the body is empty
        """
        content_type = self._validate_headers(
            headers.get("content-type"),
            headers.get("content-length"),
        )
        data = await self._read_capped(_as_chunks(body))
        return FetchedContent(data=data, content_type=content_type)
