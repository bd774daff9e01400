from __future__ import annotations

import argparse
import shutil
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from .assets.aspect_ratio import AspectRatioClassifier, FFprobeMediaProbe
from .assets.errors import AssetError, ProbeExecutionFailed
from .assets.locator import AssetLocator, AssetReference
from .core.config import get_settings
from .core.logging import configure_logging, level_from_name

console = Console()


def main(argv: Optional[list[str]] = None) -> None:
    """The main entry point for the CLI.

    Args:
        argv: The command-line arguments.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=level_from_name(get_settings().log_level))

    if getattr(args, "check", False):
        _run_environment_check(args.ffprobe)
        return

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tubely asset developer CLI")
    parser.add_argument("--check", action="store_true", help="Validate presence of the ffprobe dependency")
    parser.add_argument("--ffprobe", default=None, help="ffprobe executable (defaults to TUBELY_FFPROBE_BINARY)")

    subparsers = parser.add_subparsers(dest="command")

    classify_parser = subparsers.add_parser("classify", help="Print the orientation bucket of a video file")
    classify_parser.add_argument("--file", required=True, help="Path to the video file")
    classify_parser.set_defaults(func=_cmd_classify)

    locate_parser = subparsers.add_parser("locate", help="Mint an asset name and print where it would be stored")
    locate_parser.add_argument("--media-type", required=True, help="MIME type of the asset, e.g. video/mp4")
    locate_parser.add_argument(
        "--classification",
        default="",
        choices=["", "landscape", "portrait", "other"],
        help="Orientation bucket for videos (empty for thumbnails).",
    )
    locate_parser.set_defaults(func=_cmd_locate)
    return parser


def _ffprobe_binary(override: Optional[str]) -> str:
    return override or get_settings().ffprobe_binary


def _cmd_classify(args: argparse.Namespace) -> None:
    """Run ffprobe against a file and print its orientation.

    Args:
        args: The command-line arguments.
    """
    media_path = Path(args.file).expanduser().resolve()
    if not media_path.exists():
        console.print(f"[red]File not found: {media_path}[/]")
        sys.exit(2)

    classifier = AspectRatioClassifier(FFprobeMediaProbe(_ffprobe_binary(args.ffprobe)))
    try:
        orientation = classifier.classify(media_path)
    except ProbeExecutionFailed as exc:
        console.print(f"[red]ffprobe failed:[/] {exc.stderr or exc}")
        sys.exit(3)
    except AssetError as exc:
        console.print(f"[red]{type(exc).__name__}:[/] {exc}")
        sys.exit(4)
    console.print_json(data={"file": str(media_path), "orientation": orientation.value})


def _cmd_locate(args: argparse.Namespace) -> None:
    """Print the key, disk path and URL a fresh asset of the given type would get.

    Args:
        args: The command-line arguments.
    """
    settings = get_settings()
    locator = AssetLocator.from_settings(settings)
    try:
        reference = AssetReference.mint(args.media_type, args.classification)
    except AssetError as exc:
        console.print(f"[red]{exc}[/]")
        sys.exit(2)
    console.print_json(
        data={
            "identifier": reference.identifier,
            "extension": reference.extension,
            "classification": reference.classification,
            "storage_mode": locator.mode,
            "key": locator.storage_key(reference),
            "disk_path": str(locator.disk_path(reference)),
            "url": locator.public_url(reference),
        }
    )


def _run_environment_check(override: Optional[str]) -> None:
    """Check that the probe executable can be found."""
    binary = _ffprobe_binary(override)
    found = shutil.which(binary) is not None

    console.rule("[bold]Environment Check")
    console.print(f"[bold]{binary}[/]: {'✅' if found else '❌'}")

    if not found:
        console.print("[red]ffprobe is required to classify uploaded videos.[/]")
        sys.exit(1)
    console.print("[green]Environment looks good![/]")


if __name__ == "__main__":
    main()
