from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path

import pytest

from tubely.assets import aspect_ratio
from tubely.assets.aspect_ratio import AspectRatioClassifier, FFprobeMediaProbe, Orientation, classify_dimensions
from tubely.assets.errors import (
    InvalidStreamDimensions,
    NoStreamsFound,
    ProbeExecutionFailed,
    ProbeOutputMalformed,
)


def _video(width, height, codec_type="video"):
    return {"index": 0, "codec_type": codec_type, "codec_name": "h264", "width": width, "height": height}


@pytest.mark.parametrize(
    "width, height, expected",
    [
        (1920, 1080, Orientation.landscape),
        (1280, 720, Orientation.landscape),
        (1080, 1920, Orientation.portrait),
        (720, 1280, Orientation.portrait),
        (1000, 1000, Orientation.other),
        (640, 480, Orientation.other),
    ],
)
def test_classify_common_sizes(fake_probe, width, height, expected):
    classifier = AspectRatioClassifier(fake_probe.with_streams(_video(width, height)))
    assert classifier.classify("clip.mp4") == expected


@pytest.mark.parametrize(
    "width, height, expected",
    [
        # ~4.0% and ~6.0% away from 16:9
        (1849, 1000, Orientation.landscape),
        (1885, 1000, Orientation.other),
        # ~4.9% and ~5.2% away from 9:16
        (590, 1000, Orientation.portrait),
        (592, 1000, Orientation.other),
    ],
)
def test_classify_near_five_percent(width, height, expected):
    assert classify_dimensions(width, height) == expected


def test_default_tolerance_upper_edge_is_other():
    # 2016x1080 is 16:9 stretched by exactly 5%.
    assert classify_dimensions(2016, 1080) == Orientation.other
    assert classify_dimensions(2015, 1080) == Orientation.landscape


def test_default_tolerance_lower_edge_rounds_inside():
    # 1824x1080 is 16:9 shrunk by exactly 5%, but the relative deviation
    # computes to 0.04999999999999995 in binary floating point.
    assert classify_dimensions(1824, 1080) == Orientation.landscape
    assert classify_dimensions(1823, 1080) == Orientation.other


def test_tolerance_comparison_is_strict():
    # 45/64 is exactly 25% above 9/16, representable without rounding.
    assert classify_dimensions(45, 64, tolerance=0.25) == Orientation.other
    assert classify_dimensions(44, 64, tolerance=0.25) == Orientation.portrait


@pytest.mark.parametrize("width, height", [(0, 1080), (1920, 0), (0, 0)])
def test_zero_dimension_is_invalid(fake_probe, width, height):
    classifier = AspectRatioClassifier(fake_probe.with_streams(_video(width, height)))
    with pytest.raises(InvalidStreamDimensions) as excinfo:
        classifier.classify("clip.mp4")
    assert (excinfo.value.width, excinfo.value.height) == (width, height)


def test_missing_dimensions_count_as_zero(fake_probe):
    classifier = AspectRatioClassifier(fake_probe.with_streams({"index": 0, "codec_type": "video", "width": None}))
    with pytest.raises(InvalidStreamDimensions):
        classifier.classify("clip.mp4")


@pytest.mark.parametrize("output", ['{"streams": []}', "{}", '{"streams": null}'])
def test_no_streams(fake_probe, output):
    classifier = AspectRatioClassifier(fake_probe(output=output))
    with pytest.raises(NoStreamsFound):
        classifier.classify("clip.mp4")


@pytest.mark.parametrize(
    "output",
    [
        "",
        "ffprobe version 6.1",
        "[]",
        '{"streams": "video"}',
        '{"streams": [{"width": "wide", "height": 1080}]}',
        '{"streams": [{"width": 1920.5, "height": 1080}]}',
    ],
)
def test_malformed_output(fake_probe, output):
    classifier = AspectRatioClassifier(fake_probe(output=output))
    with pytest.raises(ProbeOutputMalformed) as excinfo:
        classifier.classify("clip.mp4")
    assert excinfo.value.__cause__ is not None


def test_only_first_stream_is_examined(fake_probe):
    probe = fake_probe.with_streams(_video(1080, 1920), _video(1920, 1080))
    assert AspectRatioClassifier(probe).classify("clip.mp4") == Orientation.portrait


def test_audio_stream_first_is_invalid(fake_probe):
    audio = {"index": 0, "codec_type": "audio", "codec_name": "aac", "channels": 2}
    probe = fake_probe.with_streams(audio, _video(1920, 1080))
    with pytest.raises(InvalidStreamDimensions):
        AspectRatioClassifier(probe).classify("clip.mp4")


def test_probe_errors_propagate(fake_probe):
    probe = fake_probe(error=ProbeExecutionFailed("ffprobe exited with status 1", stderr="moov atom not found"))
    with pytest.raises(ProbeExecutionFailed):
        AspectRatioClassifier(probe).classify("clip.mp4")


def test_classifier_passes_path_to_probe(fake_probe, tmp_path: Path):
    probe = fake_probe.with_streams(_video(1920, 1080))
    AspectRatioClassifier(probe).classify(str(tmp_path / "clip.mp4"))
    assert probe.calls == [tmp_path / "clip.mp4"]


def test_ffprobe_command_line():
    probe = FFprobeMediaProbe("ffprobe")
    assert probe.command(Path("/tmp/upload.tmp")) == [
        "ffprobe",
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_streams",
        "/tmp/upload.tmp",
    ]


def test_ffprobe_output_is_returned(monkeypatch):
    stdout = json.dumps({"streams": [_video(1920, 1080)]})
    seen = {}

    def fake_run(command, **kwargs):
        seen["command"] = command
        return subprocess.CompletedProcess(command, 0, stdout=stdout, stderr="")

    monkeypatch.setattr(aspect_ratio.subprocess, "run", fake_run)
    classifier = AspectRatioClassifier(FFprobeMediaProbe())
    assert classifier.classify("/tmp/upload.tmp") == Orientation.landscape
    assert seen["command"][-1] == "/tmp/upload.tmp"


def test_ffprobe_nonzero_exit(monkeypatch):
    def fake_run(command, **kwargs):
        raise subprocess.CalledProcessError(1, command, output="", stderr="Invalid data found when processing input\n")

    monkeypatch.setattr(aspect_ratio.subprocess, "run", fake_run)
    with pytest.raises(ProbeExecutionFailed) as excinfo:
        FFprobeMediaProbe().probe_streams(Path("/tmp/upload.tmp"))
    assert excinfo.value.stderr == "Invalid data found when processing input"
    assert isinstance(excinfo.value.__cause__, subprocess.CalledProcessError)


def test_ffprobe_missing_binary():
    probe = FFprobeMediaProbe("tubely-no-such-ffprobe")
    with pytest.raises(ProbeExecutionFailed) as excinfo:
        probe.probe_streams(Path("/tmp/upload.tmp"))
    assert isinstance(excinfo.value.__cause__, OSError)


@pytest.mark.skipif(shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None, reason="ffmpeg not installed")
def test_real_ffprobe_classifies_generated_video(tmp_path: Path):
    video_path = tmp_path / "portrait.mp4"
    command = [
        "ffmpeg",
        "-f", "lavfi",
        "-i", "color=c=black:s=72x128:r=30",
        "-t", "1",
        "-pix_fmt", "yuv420p",
        str(video_path),
    ]
    subprocess.run(command, check=True, capture_output=True)

    classifier = AspectRatioClassifier(FFprobeMediaProbe())
    assert classifier.classify(video_path) == Orientation.portrait
