from __future__ import annotations

from .errors import MalformedMediaType


def extension_for(media_type: str) -> str:
    """Return the file extension for a MIME type, e.g. ``video/mp4`` -> ``.mp4``.

    The subtype is used verbatim. It comes from the client's declared
    content type, so it must only ever be treated as a name.

    Raises:
        MalformedMediaType: if the value has no ``/``.
    """
    _, sep, subtype = media_type.partition("/")
    if not sep:
        raise MalformedMediaType(media_type)
    return f".{subtype}"


__all__ = ["extension_for"]
