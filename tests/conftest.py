"""Shared test fixtures for clipgraph tests."""

import subprocess

import pytest
import imageio_ffmpeg
from PIL import Image

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


@pytest.fixture
def source_video(tmp_path):
    """Create a 5-second test video (320x240, 10fps) with audio using ffmpeg.

    Shared across the probe, compiler and render tests.
    """
    out = tmp_path / "source.mp4"
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", "color=c=blue:s=320x240:d=5:r=10",
            "-f", "lavfi", "-i", "anullsrc=r=44100:cl=mono",
            "-shortest",
            "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
            "-c:a", "aac", "-b:a", "32k",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out


@pytest.fixture
def source_image(tmp_path):
    """A 400x300 PNG still."""
    out = tmp_path / "still.png"
    Image.new("RGB", (400, 300), (200, 80, 40)).save(out)
    return out


@pytest.fixture
def work_dir(tmp_path):
    """Directory for generated artifacts, isolated per test."""
    d = tmp_path / "work"
    d.mkdir()
    return d
