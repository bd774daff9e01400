from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from .errors import StorageUnavailable
from .identifiers import generate_identifier
from .media_types import extension_for

if TYPE_CHECKING:
    from tubely.core.config import Settings

__all__ = [
    "StorageMode",
    "AssetReference",
    "LocationStrategy",
    "AssetLocator",
    "strategy_from_settings",
    "STORAGE_ROOT_MODE",
]

StorageMode = Literal["local", "s3"]

STORAGE_ROOT_MODE = 0o755


@dataclass(frozen=True, slots=True)
class AssetReference:
    """A stored asset: random identifier, extension and orientation bucket.

    ``classification`` is empty for assets that are not bucketed (thumbnails).
    """

    identifier: str
    extension: str
    classification: str = ""

    @classmethod
    def mint(cls, media_type: str, classification: str = "") -> "AssetReference":
        return cls(
            identifier=generate_identifier(),
            extension=extension_for(media_type),
            classification=classification,
        )

    @property
    def filename(self) -> str:
        return f"{self.identifier}{self.extension}"


@dataclass(frozen=True, slots=True)
class LocationStrategy:
    """Formats storage keys and public URLs for one storage mode.

    Both modes share the same shape, ``{base_url}/{key}``; they differ only in
    the base URL and in whether the classification is part of the key.
    """

    mode: StorageMode
    base_url: str
    classified: bool

    @classmethod
    def local(cls, port: int | str) -> "LocationStrategy":
        return cls(mode="local", base_url=f"http://localhost:{port}/assets", classified=False)

    @classmethod
    def object_storage(cls, bucket: str, region: str) -> "LocationStrategy":
        return cls(mode="s3", base_url=f"https://{bucket}.s3.{region}.amazonaws.com", classified=True)

    def key_for(self, reference: AssetReference) -> str:
        if self.classified and reference.classification:
            return f"{reference.classification}/{reference.filename}"
        return reference.filename

    def url_for(self, reference: AssetReference) -> str:
        return f"{self.base_url}/{self.key_for(reference)}"


def strategy_from_settings(settings: "Settings") -> LocationStrategy:
    if settings.storage_mode == "s3":
        if not settings.s3_bucket or not settings.s3_region:
            raise ValueError("s3 storage mode requires a bucket and a region")
        return LocationStrategy.object_storage(settings.s3_bucket, settings.s3_region)
    # Memory mode serves through the same local URL space.
    return LocationStrategy.local(settings.port)


class AssetLocator:
    """Resolves asset references to disk paths, storage keys and URLs."""

    def __init__(self, strategy: LocationStrategy, assets_root: Path):
        self.strategy = strategy
        self.assets_root = Path(assets_root)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "AssetLocator":
        return cls(strategy_from_settings(settings), settings.assets_root)

    @property
    def mode(self) -> StorageMode:
        return self.strategy.mode

    def disk_path(self, reference: AssetReference) -> Path:
        return self.assets_root / reference.filename

    def storage_key(self, reference: AssetReference) -> str:
        return self.strategy.key_for(reference)

    def public_url(self, reference: AssetReference) -> str:
        return self.strategy.url_for(reference)

    def ensure_storage_root(self) -> Path:
        """Create the assets root if it does not exist yet.

        Raises:
            StorageUnavailable: if the directory cannot be created.
        """
        try:
            os.makedirs(self.assets_root, mode=STORAGE_ROOT_MODE, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f"cannot create assets root {self.assets_root}") from exc
        return self.assets_root
