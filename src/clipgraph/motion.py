"""Ken Burns motion — resolve a pan/zoom spec and render zoompan expressions.

Positions are fractions of the free travel (0 = left/top edge, 1 =
right/bottom edge, 0.5 = centered). Zoom is a scale factor (1 = no zoom).
A pan with no zoom has nowhere to travel, so panning motions are given a
small default zoom.
"""

from dataclasses import dataclass, replace

import numpy as np

from .clips import KenBurns
from .common import format_number, round_half_up

DEFAULT_PAN_ZOOM = 1.12
MIN_PAN_ZOOM = 1.04
PRESET_ZOOM = 1.15


@dataclass(frozen=True)
class Motion:
    start_zoom: float = 1.0
    end_zoom: float = 1.0
    start_x: float = 0.5
    start_y: float = 0.5
    end_x: float = 0.5
    end_y: float = 0.5
    easing: str = "ease-in-out"

    @property
    def pans(self) -> bool:
        return self.start_x != self.end_x or self.start_y != self.end_y


# ── Resolution ────────────────────────────────────────────────────

_PRESETS = {
    "zoom-in": Motion(start_zoom=1.0, end_zoom=PRESET_ZOOM),
    "zoom-out": Motion(start_zoom=PRESET_ZOOM, end_zoom=1.0),
    "pan-left": Motion(start_x=1.0, end_x=0.0),
    "pan-right": Motion(start_x=0.0, end_x=1.0),
    "pan-up": Motion(start_y=1.0, end_y=0.0),
    "pan-down": Motion(start_y=0.0, end_y=1.0),
    "custom": Motion(),
}

_ZOOM_PRESETS = {"zoom-in", "zoom-out"}


def _smart_motion(anchor, width, height, source_width, source_height) -> Motion:
    """Pick the pan axis from the anchor, else from the aspect ratios."""
    if anchor == "top":
        return Motion(start_y=0.0, end_y=1.0)
    if anchor == "bottom":
        return Motion(start_y=1.0, end_y=0.0)
    if anchor == "left":
        return Motion(start_x=0.0, end_x=1.0)
    if anchor == "right":
        return Motion(start_x=1.0, end_x=0.0)

    if source_width and source_height:
        vertical = source_width / source_height < width / height
    else:
        vertical = height > width
    if vertical:
        return Motion(start_y=0.0, end_y=1.0)
    return Motion(start_x=0.0, end_x=1.0)


def resolve_motion(
    spec: KenBurns | str,
    width: int,
    height: int,
    source_width: int | None = None,
    source_height: int | None = None,
) -> Motion:
    """Turn a preset name or KenBurns spec into concrete start/end values.

    Explicit fields on the spec override the preset's values one by one.
    When the result pans but no zoom was set (explicitly or by a zoom
    preset), both zooms become DEFAULT_PAN_ZOOM; when a panning motion has
    a zoom set, each end is raised to at least MIN_PAN_ZOOM.
    """
    if isinstance(spec, str):
        spec = KenBurns(type=spec)

    if spec.type == "smart":
        base = _smart_motion(spec.anchor, width, height, source_width, source_height)
    else:
        base = _PRESETS[spec.type]

    overrides = {
        name: getattr(spec, name)
        for name in ("start_zoom", "end_zoom", "start_x", "start_y", "end_x", "end_y")
        if getattr(spec, name) is not None
    }
    motion = replace(base, easing=spec.easing, **overrides)

    zoom_set = (
        spec.type in _ZOOM_PRESETS
        or spec.start_zoom is not None
        or spec.end_zoom is not None
    )
    if motion.pans:
        if not zoom_set:
            motion = replace(motion, start_zoom=DEFAULT_PAN_ZOOM, end_zoom=DEFAULT_PAN_ZOOM)
        else:
            motion = replace(
                motion,
                start_zoom=max(motion.start_zoom, MIN_PAN_ZOOM),
                end_zoom=max(motion.end_zoom, MIN_PAN_ZOOM),
            )
    return motion


# ── Expressions ───────────────────────────────────────────────────

def motion_frames(duration: float, fps: int) -> int:
    return max(1, round_half_up(duration * fps))


def eased_expression(easing: str, frames: int) -> str:
    """Progress 0→1 over the output frames, as an FFmpeg expression in `on`."""
    t = f"(on/{max(1, frames - 1)})"
    if easing == "linear":
        return t
    if easing == "ease-in":
        return f"{t}*{t}"
    if easing == "ease-out":
        return f"1-((1-{t})*(1-{t}))"
    return f"0.5-0.5*cos(PI*{t})"


def _ramp(start: float, end: float, eased: str) -> str:
    if start == end:
        return format_number(start)
    return f"{format_number(start)}+({format_number(end - start)})*({eased})"


def zoompan_expressions(motion: Motion, frames: int) -> tuple[str, str, str]:
    """Return the (z, x, y) expressions for a zoompan filter.

    x and y travel over the space left free by the zoom: iw - iw/zoom.
    """
    eased = eased_expression(motion.easing, frames)
    z = _ramp(motion.start_zoom, motion.end_zoom, eased)
    x = f"(iw - iw/zoom)*({_ramp(motion.start_x, motion.end_x, eased)})"
    y = f"(ih - ih/zoom)*({_ramp(motion.start_y, motion.end_y, eased)})"
    return z, x, y


def overscan_width(width: int) -> int:
    """Width the still is upscaled to before zoompan, to hide sub-pixel jitter."""
    return max(width * 3, 4000)


def sample_motion(motion: Motion, frames: int) -> dict[str, np.ndarray]:
    """Evaluate the motion per output frame — zoom, x and y fractions.

    Uses the same closed form as the zoompan expressions, which makes the
    motion easy to inspect without running FFmpeg.
    """
    t = np.arange(frames, dtype=float) / max(1, frames - 1)
    if motion.easing == "linear":
        eased = t
    elif motion.easing == "ease-in":
        eased = t * t
    elif motion.easing == "ease-out":
        eased = 1 - (1 - t) * (1 - t)
    else:
        eased = 0.5 - 0.5 * np.cos(np.pi * t)

    return {
        "zoom": motion.start_zoom + (motion.end_zoom - motion.start_zoom) * eased,
        "x": motion.start_x + (motion.end_x - motion.start_x) * eased,
        "y": motion.start_y + (motion.end_y - motion.start_y) * eased,
    }
