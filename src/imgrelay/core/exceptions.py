"""Error taxonomy for the ingestion pipeline.

Every failure the pipeline can surface is an ``IngestionError`` subclass
carrying the HTTP status and the client-facing message it renders as.
"""


class IngestionError(Exception):
    """Base exception for the ingestion pipeline."""

    http_status: int = 500
    default_message: str = "Failed to upload image"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(IngestionError):
    """Missing URL, missing content type, empty payload or malformed request."""

    http_status = 400
    default_message = "Invalid request"


class InvalidFormatError(IngestionError):
    """Declared content type is not an image."""

    http_status = 400
    default_message = "Invalid image format"


class TooLargeError(IngestionError):
    """Declared or actual payload size exceeds the configured ceiling."""

    http_status = 400
    default_message = "Image size exceeds the limit"


class RateLimitedError(IngestionError):
    """Client exhausted its daily upload quota."""

    http_status = 429
    default_message = "Upload limit exceeded for this IP"


class FetchFailedError(IngestionError):
    """Network error, timeout or non-2xx response from the source URL."""

    http_status = 500


class StoreFailedError(IngestionError):
    """Object store write or metadata write failed."""

    http_status = 500


class UnsupportedRuntimeError(IngestionError):
    """Object or relational storage is not available in this runtime."""

    http_status = 501
    default_message = "Storage runtime is not available"
