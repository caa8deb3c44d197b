"""MIME type to file extension mapping."""

from typing import Optional

from imgrelay.core.exceptions import InvalidInputError

IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
    "image/svg+xml": "svg",
}

UNKNOWN_EXTENSION = "unknown"


def normalize_content_type(content_type: Optional[str]) -> Optional[str]:
    """Strip parameters and lowercase a Content-Type header value."""
    if content_type is None:
        return None
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type or None


def is_image_type(content_type: Optional[str]) -> bool:
    """Check whether a content type declares an image."""
    media_type = normalize_content_type(content_type)
    return media_type is not None and media_type.startswith("image/")


def extension_for(content_type: Optional[str]) -> str:
    """Map a content type to a file extension.

    Present but unmapped types map to ``"unknown"``; image-ness is checked by
    the fetcher, not here.

    Raises:
        InvalidInputError: If the content type is missing
    """
    media_type = normalize_content_type(content_type)
    if media_type is None:
        raise InvalidInputError("Content-Type is required")
    return IMAGE_EXTENSIONS.get(media_type, UNKNOWN_EXTENSION)
