"""Tests for the ingestion error taxonomy."""

import pytest

from imgrelay.core.exceptions import (
    FetchFailedError,
    IngestionError,
    InvalidFormatError,
    InvalidInputError,
    RateLimitedError,
    StoreFailedError,
    TooLargeError,
    UnsupportedRuntimeError,
)


@pytest.mark.parametrize(
    "error_class,status",
    [
        (InvalidInputError, 400),
        (InvalidFormatError, 400),
        (TooLargeError, 400),
        (RateLimitedError, 429),
        (FetchFailedError, 500),
        (StoreFailedError, 500),
        (UnsupportedRuntimeError, 501),
    ],
)
def test_error_statuses(error_class, status):
    """Test that each error maps to its HTTP status and derives from IngestionError."""
    assert issubclass(error_class, IngestionError)
    assert error_class.http_status == status


def test_default_messages():
    """Test the client-facing default messages."""
    assert InvalidFormatError().message == "Invalid image format"
    assert TooLargeError().message == "Image size exceeds the limit"
    assert RateLimitedError().message == "Upload limit exceeded for this IP"
    assert FetchFailedError().message == "Failed to upload image"
    assert StoreFailedError().message == "Failed to upload image"


def test_custom_message():
    """Test that an explicit message overrides the default."""
    error = InvalidInputError("URL is required")

    assert error.message == "URL is required"
    assert str(error) == "URL is required"


def test_exceptions_can_be_caught_as_base():
    """Test that specific exceptions can be caught as IngestionError."""
    with pytest.raises(IngestionError):
        raise TooLargeError()

    with pytest.raises(IngestionError):
        raise StoreFailedError("index write failed")
