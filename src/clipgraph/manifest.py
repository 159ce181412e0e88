"""Project manifest loader — a YAML description of one timeline.

Manifest schema:
  video:
    resolution: [1920, 1080]    # canvas the picture is built at
    fps: 30
    preset: youtube             # platform preset, sets resolution and fps
    fill_gaps: black            # optional; gaps are an error without it
    output_resolution: [1280, 720]  # optional final scale
  export:
    video_codec: libx264
    crf: 23
    preset: medium
    audio_codec: aac
    audio_bitrate: 192k
    text_batch_size: 75
  paths:
    media: "/path/to/media"
  clips:
    - type: video
      url: "${media}/intro.mp4"
      duration: 5               # position omitted: follows the previous picture
    - type: image
      url: "${media}/still.jpg"
      duration: 4
      ken_burns: zoom-in
      transition: {type: fade, duration: 0.5}
    - type: text
      text: "Hello"
      position: 1
      end: 3

Explicit `resolution` / `fps` win over the preset's values.
"""

from pathlib import Path

import pydantic
import yaml

from .clips import PICTURE_TYPES, is_picture, parse_clip
from .common import parse_color, resolve_path_vars
from .constants import (
    DEFAULT_EXPORT,
    DEFAULT_FPS,
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    PLATFORM_PRESETS,
    VIDEO_PRESETS,
)
from .errors import ValidationError
from .picture import check_transitions

# Clip fields that hold file paths and get ${var} substitution.
PATH_FIELDS = ("url", "font_file")

AUDIO_TYPES = {"audio"}


# ── Sections ──────────────────────────────────────────────────────

def _resolution(value, name: str) -> tuple[int, int]:
    if (
        not isinstance(value, (list, tuple))
        or len(value) != 2
        or not all(isinstance(v, int) and v > 0 for v in value)
    ):
        raise ValueError(f"Manifest: video.{name} must be [width, height], got {value!r}")
    w, h = value
    if w % 2 or h % 2:
        raise ValueError(f"Manifest: video.{name} must be even, got {w}x{h}")
    return w, h


def apply_platform_preset(video: dict, name: str) -> dict:
    """Return video settings with a platform preset's size and fps applied.

    Raises:
        ValueError: Unknown preset name.
    """
    if name not in PLATFORM_PRESETS:
        raise ValueError(
            f"Unknown platform preset '{name}'. Valid: {sorted(PLATFORM_PRESETS)}"
        )
    width, height, fps = PLATFORM_PRESETS[name]
    return {**video, "width": width, "height": height, "fps": fps, "preset": name}


def _load_video(raw: dict) -> dict:
    video = {
        "width": DEFAULT_WIDTH,
        "height": DEFAULT_HEIGHT,
        "fps": DEFAULT_FPS,
        "preset": None,
        "fill_gaps": None,
        "output_size": None,
    }
    if raw.get("preset") is not None:
        video = apply_platform_preset(video, raw["preset"])

    if "resolution" in raw:
        video["width"], video["height"] = _resolution(raw["resolution"], "resolution")

    if "fps" in raw:
        fps = raw["fps"]
        if not isinstance(fps, int) or fps <= 0:
            raise ValueError(f"Manifest: video.fps must be a positive integer, got {fps!r}")
        video["fps"] = fps

    fill = raw.get("fill_gaps")
    if fill is not None:
        if fill is True:
            fill = "black"
        if fill is not False:
            parse_color(str(fill))
            video["fill_gaps"] = str(fill)

    if raw.get("output_resolution") is not None:
        video["output_size"] = _resolution(raw["output_resolution"], "output_resolution")

    unknown = set(raw) - {"resolution", "fps", "preset", "fill_gaps", "output_resolution"}
    if unknown:
        raise ValueError(f"Manifest: unknown video settings {sorted(unknown)}")
    return video


def _load_export(raw: dict) -> dict:
    unknown = set(raw) - set(DEFAULT_EXPORT)
    if unknown:
        raise ValueError(
            f"Manifest: unknown export settings {sorted(unknown)}. "
            f"Valid: {sorted(DEFAULT_EXPORT)}"
        )
    export = {**DEFAULT_EXPORT, **{k: v for k, v in raw.items() if v is not None}}

    for key in ("preset", "intermediate_preset"):
        if export[key] not in VIDEO_PRESETS:
            raise ValueError(
                f"Manifest: invalid export.{key} '{export[key]}'. "
                f"Valid: {sorted(VIDEO_PRESETS)}"
            )
    for key in ("crf", "intermediate_crf"):
        value = export[key]
        if not isinstance(value, int) or not 0 <= value <= 51:
            raise ValueError(f"Manifest: export.{key} must be an integer 0-51, got {value!r}")
    batch = export["text_batch_size"]
    if not isinstance(batch, int) or batch < 1:
        raise ValueError(
            f"Manifest: export.text_batch_size must be a positive integer, got {batch!r}"
        )
    return export


# ── Clips ─────────────────────────────────────────────────────────

def _format_pydantic(exc: pydantic.ValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        # Drop the discriminator tag pydantic puts first in the location.
        loc = [str(part) for part in err["loc"][1:]]
        where = ".".join(loc)
        msg = err["msg"].removeprefix("Value error, ")
        messages.append(f"{where}: {msg}" if where else msg)
    return messages


def _load_clips(raw_clips: list, paths: dict) -> list:
    """Resolve paths, auto-sequence, and validate every clip.

    Errors from all clips are collected and raised together.
    """
    clips = []
    errors = []
    picture_end = 0.0
    audio_end = 0.0

    for i, raw in enumerate(raw_clips):
        if not isinstance(raw, dict):
            errors.append(f"Clip {i}: expected a mapping, got {type(raw).__name__}")
            continue
        kind = raw.get("type", "?")
        data = dict(raw)

        try:
            for name in PATH_FIELDS:
                if isinstance(data.get(name), str):
                    data[name] = resolve_path_vars(data[name], paths)
        except ValueError as e:
            errors.append(f"Clip {i} ({kind}): {e}")
            continue

        # Clips without a position follow the previous clip on their track.
        if data.get("position") is None:
            if kind in PICTURE_TYPES:
                data["position"] = picture_end
            elif kind in AUDIO_TYPES:
                data["position"] = audio_end

        try:
            clip = parse_clip(data)
        except pydantic.ValidationError as e:
            errors.extend(f"Clip {i} ({kind}): {msg}" for msg in _format_pydantic(e))
            continue

        if is_picture(clip):
            picture_end = clip.end
        elif clip.type in AUDIO_TYPES:
            audio_end = clip.end
        clips.append(clip)

    if errors:
        raise ValidationError(
            f"Manifest has {len(errors)} invalid clip field(s):\n  " + "\n  ".join(errors),
            errors=errors,
        )
    return clips


# ── Public ────────────────────────────────────────────────────────

def load_manifest(manifest_path: str | Path) -> dict:
    """Load, validate, and normalize a project manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Validate video settings (preset, resolution, fps, fill_gaps).
      3. Validate export settings over the defaults.
      4. Resolve ${path} variables in clip paths.
      5. Auto-sequence picture and audio clips that omit `position`.
      6. Validate each clip against its kind's model.
      7. Cross-clip checks (transitions longer than the clips they join).

    Args:
        manifest_path: Path to the YAML manifest.

    Returns:
        Config dict with keys `video`, `export`, `paths` and `clips`
        (validated clip models).

    Raises:
        ValueError: Malformed sections or settings.
        ValidationError: Invalid clips (every problem listed).
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError("Manifest: expected a mapping at the top level")
    if not raw.get("clips"):
        raise ValueError("Manifest: missing required 'clips' list")
    if not isinstance(raw["clips"], list):
        raise ValueError("Manifest: 'clips' must be a list")

    video = _load_video(raw.get("video") or {})
    export = _load_export(raw.get("export") or {})

    paths = raw.get("paths") or {}
    clips = _load_clips(raw["clips"], paths)
    check_transitions(clips)

    return {
        "video": video,
        "export": export,
        "paths": paths,
        "clips": clips,
    }


def validate_manifest_paths(config: dict) -> None:
    """Check that every file a clip references exists on disk.

    Raises:
        FileNotFoundError: Lists all missing files.
    """
    missing = []
    for clip in config["clips"]:
        for name in PATH_FIELDS:
            value = getattr(clip, name, None)
            if value and not Path(value).exists() and value not in missing:
                missing.append(value)

    if missing:
        msg = f"Missing {len(missing)} media file(s):\n"
        for p in missing:
            msg += f"  - {p}\n"
        raise FileNotFoundError(msg)
