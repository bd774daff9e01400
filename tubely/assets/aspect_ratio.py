from __future__ import annotations

import enum
import subprocess
from pathlib import Path
from typing import List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tubely.core.logging import get_logger

from .errors import InvalidStreamDimensions, NoStreamsFound, ProbeExecutionFailed, ProbeOutputMalformed

__all__ = [
    "Orientation",
    "MediaProbe",
    "FFprobeMediaProbe",
    "AspectRatioClassifier",
    "classify_dimensions",
    "LANDSCAPE_RATIO",
    "PORTRAIT_RATIO",
    "DEFAULT_TOLERANCE",
]

LANDSCAPE_RATIO = 16.0 / 9.0
PORTRAIT_RATIO = 9.0 / 16.0
DEFAULT_TOLERANCE = 0.05

logger = get_logger(component="aspect_ratio")


class Orientation(str, enum.Enum):
    landscape = "landscape"
    portrait = "portrait"
    other = "other"


class MediaProbe(Protocol):
    def probe_streams(self, path: Path) -> str:
        """Return the probe's raw JSON description of the streams in ``path``."""
        ...


class FFprobeMediaProbe:
    """Runs ffprobe as a blocking subprocess. There is no timeout."""

    def __init__(self, binary: str = "ffprobe"):
        self.binary = binary

    def command(self, path: Path) -> list[str]:
        return [
            self.binary,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_streams",
            str(path),
        ]

    def probe_streams(self, path: Path) -> str:
        command = self.command(path)
        try:
            proc = subprocess.run(
                command,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            logger.warning("ffprobe_failed", path=str(path), returncode=exc.returncode, stderr=stderr)
            raise ProbeExecutionFailed(f"ffprobe exited with status {exc.returncode}", stderr=stderr) from exc
        except OSError as exc:
            logger.warning("ffprobe_not_started", binary=self.binary, error=str(exc))
            raise ProbeExecutionFailed(f"could not run {self.binary}") from exc
        return proc.stdout


class _ProbeStream(BaseModel):
    model_config = ConfigDict(extra="ignore")

    codec_type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class _ProbeOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    streams: Optional[List[_ProbeStream]] = Field(default=None)


def classify_dimensions(width: int, height: int, tolerance: float = DEFAULT_TOLERANCE) -> Orientation:
    """Bucket a frame size by its relative distance to 16:9 and 9:16.

    The comparison is strict, so a ratio exactly ``tolerance`` away from a
    target is not in that bucket.
    """
    if width == 0 or height == 0:
        raise InvalidStreamDimensions(width, height)

    ratio = float(width) / float(height)
    if abs(ratio - LANDSCAPE_RATIO) / LANDSCAPE_RATIO < tolerance:
        return Orientation.landscape
    if abs(ratio - PORTRAIT_RATIO) / PORTRAIT_RATIO < tolerance:
        return Orientation.portrait
    return Orientation.other


class AspectRatioClassifier:
    """Classifies a video file as landscape, portrait or other.

    Only the first stream reported by the probe is looked at, whatever its
    type. An audio stream listed first therefore fails with
    ``InvalidStreamDimensions``.
    """

    def __init__(self, probe: MediaProbe, *, tolerance: float = DEFAULT_TOLERANCE):
        self.probe = probe
        self.tolerance = tolerance

    def classify(self, path: Path | str) -> Orientation:
        raw = self.probe.probe_streams(Path(path))
        try:
            output = _ProbeOutput.model_validate_json(raw)
        except ValidationError as exc:
            raise ProbeOutputMalformed("unexpected ffprobe output") from exc

        streams = output.streams or []
        if not streams:
            raise NoStreamsFound(f"no streams found in {path}")

        first = streams[0]
        orientation = classify_dimensions(first.width or 0, first.height or 0, self.tolerance)
        logger.debug(
            "video_classified",
            path=str(path),
            width=first.width,
            height=first.height,
            orientation=orientation.value,
        )
        return orientation
