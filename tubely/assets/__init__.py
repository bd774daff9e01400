"""Asset naming, location and classification used by the upload flow."""

from tubely.assets.aspect_ratio import AspectRatioClassifier, FFprobeMediaProbe, MediaProbe, Orientation
from tubely.assets.identifiers import asset_filename, generate_identifier
from tubely.assets.locator import AssetLocator, AssetReference, LocationStrategy, strategy_from_settings
from tubely.assets.media_types import extension_for

__all__ = [
    "AspectRatioClassifier",
    "AssetLocator",
    "AssetReference",
    "FFprobeMediaProbe",
    "LocationStrategy",
    "MediaProbe",
    "Orientation",
    "asset_filename",
    "extension_for",
    "generate_identifier",
    "strategy_from_settings",
]
