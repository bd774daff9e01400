from __future__ import annotations

from base64 import urlsafe_b64encode
from secrets import token_bytes

from .errors import EntropySourceFailure
from .media_types import extension_for

__all__ = [
    "IDENTIFIER_BYTES",
    "IDENTIFIER_LENGTH",
    "generate_identifier",
    "asset_filename",
]

IDENTIFIER_BYTES = 32
# 32 bytes of base64 without the trailing "=".
IDENTIFIER_LENGTH = 43


def generate_identifier() -> str:
    """Return a random, URL and filesystem safe asset identifier.

    Returns:
        43 characters of unpadded URL-safe base64 over 32 random bytes.

    Raises:
        EntropySourceFailure: if the system random source is unavailable.
    """
    try:
        raw = token_bytes(IDENTIFIER_BYTES)
    except (OSError, NotImplementedError) as exc:
        raise EntropySourceFailure("failed to read random bytes") from exc
    return urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def asset_filename(media_type: str) -> str:
    """Mint a fresh ``{identifier}{extension}`` name for an upload of ``media_type``."""
    extension = extension_for(media_type)
    return f"{generate_identifier()}{extension}"
