"""Content fingerprinting."""

import hashlib


def fingerprint(data: bytes) -> str:
    """Return the hex MD5 digest of ``data``.

    The digest is a deduplication key, not a security boundary.
    """
    return hashlib.md5(data, usedforsecurity=False).hexdigest()
