"""FFmpeg argv construction for the main render and text passes.

Commands are argv lists handed straight to subprocess, so the filter graph
travels as a single argument with no shell quoting applied on top.
"""

from pathlib import Path

import imageio_ffmpeg

from .constants import DEFAULT_EXPORT
from .text import TEXT_OUTPUT_LABEL

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


def export_settings(overrides: dict | None = None) -> dict:
    """DEFAULT_EXPORT with the given keys replaced (None values ignored)."""
    settings = dict(DEFAULT_EXPORT)
    for key, value in (overrides or {}).items():
        if value is not None:
            settings[key] = value
    return settings


def _video_codec_args(settings: dict) -> list[str]:
    args = ["-c:v", settings["video_codec"], "-preset", settings["preset"]]
    if settings.get("video_bitrate"):
        args += ["-b:v", str(settings["video_bitrate"])]
    else:
        args += ["-crf", str(settings["crf"])]
    return args + ["-pix_fmt", "yuv420p"]


def _audio_codec_args(settings: dict) -> list[str]:
    return [
        "-c:a", settings["audio_codec"],
        "-b:a", str(settings["audio_bitrate"]),
        "-ar", str(settings["audio_sample_rate"]),
    ]


def build_command(compiled, output_path: str | Path, settings: dict | None = None,
                  ffmpeg: str | None = None) -> list[str]:
    """argv for the main render of a CompiledProject.

    Args:
        compiled: Result of compile_project().
        output_path: File to write.
        settings: Export settings; missing keys come from DEFAULT_EXPORT.
        ffmpeg: Binary to run (defaults to the imageio-ffmpeg one).
    """
    settings = export_settings(settings)
    cmd = [ffmpeg or _FFMPEG, "-y"]
    for spec in compiled.inputs:
        cmd += spec.to_args()
    cmd += ["-filter_complex", compiled.filter_complex]

    has_video = compiled.video_label is not None
    has_audio = compiled.audio_label is not None
    if has_video:
        cmd += ["-map", f"[{compiled.video_label}]"]
    if has_audio:
        cmd += ["-map", f"[{compiled.audio_label}]"]
    if has_video:
        cmd += _video_codec_args(settings)
    if has_audio:
        cmd += _audio_codec_args(settings)
    if has_video and has_audio:
        cmd.append("-shortest")
    cmd += ["-movflags", "+faststart", str(output_path)]
    return cmd


def build_text_pass_command(input_path: str | Path, filter_complex: str,
                            output_path: str | Path, settings: dict | None = None,
                            ffmpeg: str | None = None) -> list[str]:
    """argv for one text pass: draw text over a rendered file, copy its audio."""
    settings = export_settings(settings)
    return [
        ffmpeg or _FFMPEG, "-y",
        "-i", str(input_path),
        "-filter_complex", filter_complex,
        "-map", f"[{TEXT_OUTPUT_LABEL}]",
        "-map", "0:a?",
        "-c:v", settings["intermediate_codec"],
        "-preset", settings["intermediate_preset"],
        "-crf", str(settings["intermediate_crf"]),
        "-pix_fmt", "yuv420p",
        "-c:a", "copy",
        "-movflags", "+faststart",
        str(output_path),
    ]
