"""Error taxonomy for asset ingestion.

Every recoverable failure raised by the asset components derives from
``AssetError`` and keeps the underlying exception as ``__cause__``.
``EntropySourceFailure`` is deliberately outside that hierarchy.
"""

from __future__ import annotations


class EntropySourceFailure(BaseException):
    """The operating system random source could not supply bytes.

    Derives from ``BaseException`` so that request-level ``except Exception``
    handlers do not turn it into an ordinary error response.
    """


class AssetError(Exception):
    """Base class for recoverable asset ingestion errors."""


class MalformedMediaType(AssetError):
    def __init__(self, media_type: str):
        super().__init__(f"malformed media type: {media_type!r}")
        self.media_type = media_type


class StorageUnavailable(AssetError):
    """The asset storage backend rejected or could not complete an operation."""


class ProbeError(AssetError):
    """Base class for failures while inspecting an uploaded video."""


class ProbeExecutionFailed(ProbeError):
    def __init__(self, message: str, *, stderr: str | None = None):
        super().__init__(message)
        self.stderr = stderr


class ProbeOutputMalformed(ProbeError):
    pass


class NoStreamsFound(ProbeError):
    pass


class InvalidStreamDimensions(ProbeError):
    def __init__(self, width: int, height: int):
        super().__init__(f"invalid stream dimensions: width={width}, height={height}")
        self.width = width
        self.height = height


class UploadError(Exception):
    """Base class for failures specific to the upload flow."""


class VideoNotFound(UploadError):
    pass


class NotVideoOwner(UploadError):
    pass


class UploadTooLarge(UploadError):
    def __init__(self, limit_bytes: int):
        super().__init__(f"upload exceeds {limit_bytes} bytes")
        self.limit_bytes = limit_bytes


__all__ = [
    "EntropySourceFailure",
    "AssetError",
    "MalformedMediaType",
    "StorageUnavailable",
    "ProbeError",
    "ProbeExecutionFailed",
    "ProbeOutputMalformed",
    "NoStreamsFound",
    "InvalidStreamDimensions",
    "UploadError",
    "VideoNotFound",
    "NotVideoOwner",
    "UploadTooLarge",
]
