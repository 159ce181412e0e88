"""Clip models — one frozen pydantic model per clip kind.

Every kind shares the temporal trait (position / end / duration) through
the Temporal base. The `Clip` union is discriminated on the `type` field,
so a plain dict from a manifest validates straight into the right model.

Clips are immutable: transforms (gap fill, range clamping, probing) build
new clips with `model_copy(update=...)` instead of mutating.
"""

from typing import Annotated, ClassVar, Literal, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)

from .common import parse_color
from .constants import (
    DEFAULT_FONT_COLOR,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_KARAOKE_HIGHLIGHT,
    DEFAULT_MUSIC_VOLUME,
    DEFAULT_TRANSITION_DURATION,
    DEFAULT_VOLUME,
    DEFAULT_WATERMARK_MARGIN,
    DEFAULT_WATERMARK_SCALE,
)


# ── Enumerations ──────────────────────────────────────────────────

PICTURE_TYPES = {"video", "image", "color"}

# xfade transition names accepted by ffmpeg.
XFADE_TRANSITIONS = {
    "fade", "fadeblack", "fadewhite", "fadegrays", "distance", "dissolve",
    "wipeleft", "wiperight", "wipeup", "wipedown",
    "slideleft", "slideright", "slideup", "slidedown",
    "smoothleft", "smoothright", "smoothup", "smoothdown",
    "circlecrop", "rectcrop", "circleopen", "circleclose",
    "vertopen", "vertclose", "horzopen", "horzclose",
    "diagtl", "diagtr", "diagbl", "diagbr",
    "hlslice", "hrslice", "vuslice", "vdslice",
    "radial", "pixelize", "squeezeh", "squeezev", "zoomin",
    "hblur", "coverleft", "coverright", "coverup", "coverdown",
    "revealleft", "revealright", "revealup", "revealdown",
}

KEN_BURNS_PRESETS = {
    "zoom-in", "zoom-out", "pan-left", "pan-right", "pan-up", "pan-down",
    "smart", "custom",
}

EASINGS = {"linear", "ease-in", "ease-out", "ease-in-out"}

TEXT_MODES = Literal["static", "word-replace", "word-sequential", "karaoke"]

TEXT_ANIMATIONS = Literal[
    "none", "fade-in", "fade-out", "fade-in-out", "fade",
    "pop", "pop-bounce", "scale-in", "pulse", "typewriter",
]

WATERMARK_POSITIONS = {"top-left", "top-right", "bottom-left", "bottom-right", "center"}


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ── Shared value types ────────────────────────────────────────────

class Transition(_Frozen):
    """Overlap between a picture clip and its predecessor."""

    kind: str = Field(
        "fade", validation_alias=AliasChoices("kind", "type"),
    )
    duration: float = Field(DEFAULT_TRANSITION_DURATION, gt=0)

    @model_validator(mode="before")
    @classmethod
    def _from_name(cls, data):
        # `transition: wipeleft` is shorthand for {kind: wipeleft}.
        if isinstance(data, str):
            return {"kind": data}
        return data

    @field_validator("kind")
    @classmethod
    def _known_kind(cls, value):
        if value not in XFADE_TRANSITIONS:
            raise ValueError(
                f"Unknown transition '{value}'. Valid: {sorted(XFADE_TRANSITIONS)}"
            )
        return value


class KenBurns(_Frozen):
    """Explicit pan/zoom spec. Unset fields fall back to the preset."""

    type: str = "custom"
    start_zoom: float | None = Field(None, gt=0)
    end_zoom: float | None = Field(None, gt=0)
    start_x: float | None = Field(None, ge=0, le=1)
    start_y: float | None = Field(None, ge=0, le=1)
    end_x: float | None = Field(None, ge=0, le=1)
    end_y: float | None = Field(None, ge=0, le=1)
    anchor: Literal["top", "bottom", "left", "right", "center"] | None = None
    easing: str = "ease-in-out"

    @field_validator("type")
    @classmethod
    def _known_preset(cls, value):
        if value not in KEN_BURNS_PRESETS:
            raise ValueError(
                f"Unknown Ken Burns preset '{value}'. Valid: {sorted(KEN_BURNS_PRESETS)}"
            )
        return value

    @field_validator("easing")
    @classmethod
    def _known_easing(cls, value):
        if value not in EASINGS:
            raise ValueError(f"Unknown easing '{value}'. Valid: {sorted(EASINGS)}")
        return value


class Gradient(_Frozen):
    """Generated gradient background for a color clip."""

    type: Literal["linear-gradient", "radial-gradient"] = "linear-gradient"
    colors: list[str] = Field(min_length=2)
    direction: Literal["vertical", "horizontal"] | float = "vertical"


class Word(_Frozen):
    """One timed word for word-level text modes and karaoke."""

    text: str
    start: float
    end: float
    line_break: bool = False


class TextAnimation(_Frozen):
    type: TEXT_ANIMATIONS = "none"
    in_: float | None = Field(None, gt=0, validation_alias=AliasChoices("in", "in_"))
    out: float | None = Field(None, gt=0)
    intensity: float | None = Field(None, ge=0, le=1)
    speed: float | None = Field(None, gt=0)

    @model_validator(mode="before")
    @classmethod
    def _from_name(cls, data):
        if isinstance(data, str):
            return {"type": data}
        return data


class Placement(_Frozen):
    """Custom watermark placement — percentage or pixel, not both."""

    x_percent: float | None = None
    y_percent: float | None = None
    x: float | None = None
    y: float | None = None

    @model_validator(mode="after")
    def _one_system(self):
        has_percent = self.x_percent is not None or self.y_percent is not None
        has_pixel = self.x is not None or self.y is not None
        if has_percent and has_pixel:
            raise ValueError("placement cannot mix percentage and pixel values")
        if has_percent and (self.x_percent is None or self.y_percent is None):
            raise ValueError("placement requires both x_percent and y_percent")
        if has_pixel and (self.x is None or self.y is None):
            raise ValueError("placement requires both x and y")
        return self


# ── Temporal trait ────────────────────────────────────────────────

class Temporal(_Frozen):
    """Common timing fields. `duration` is accepted on input as end - position."""

    end_required: ClassVar[bool] = True

    position: float = Field(0.0, ge=0)
    end: float | None = None

    @model_validator(mode="before")
    @classmethod
    def _duration_to_end(cls, data):
        if not isinstance(data, dict) or "duration" not in data:
            return data
        data = dict(data)
        duration = data.pop("duration")
        if data.get("end") is not None:
            raise ValueError("use 'end' or 'duration', not both")
        if duration is not None:
            if duration <= 0:
                raise ValueError("'duration' must be greater than 0")
            data["end"] = data.get("position", 0.0) + duration
        return data

    @model_validator(mode="after")
    def _check_window(self):
        if self.end is None:
            if self.end_required:
                raise ValueError("'end' (or 'duration') is required")
            return self
        if self.end <= self.position:
            raise ValueError(
                f"'end' ({self.end}) must be greater than 'position' ({self.position})"
            )
        return self

    @property
    def duration(self) -> float:
        if self.end is None:
            return 0.0
        return self.end - self.position


# ── Clip kinds ────────────────────────────────────────────────────

class VideoClip(Temporal):
    type: Literal["video"] = "video"
    url: str
    cut_from: float = Field(0.0, ge=0)
    volume: float = Field(DEFAULT_VOLUME, ge=0)
    transition: Transition | None = None
    media_duration: float | None = None
    has_audio: bool = False
    width: int | None = None
    height: int | None = None
    rotation: int = 0


class ImageClip(Temporal):
    type: Literal["image"] = "image"
    url: str
    ken_burns: KenBurns | str | None = None
    transition: Transition | None = None
    width: int | None = None
    height: int | None = None

    @field_validator("ken_burns")
    @classmethod
    def _known_preset(cls, value):
        if isinstance(value, str) and value not in KEN_BURNS_PRESETS:
            raise ValueError(
                f"Unknown Ken Burns preset '{value}'. Valid: {sorted(KEN_BURNS_PRESETS)}"
            )
        return value


class ColorClip(Temporal):
    type: Literal["color"] = "color"
    color: Gradient | str = "black"
    transition: Transition | None = None

    @field_validator("color")
    @classmethod
    def _known_color(cls, value):
        if isinstance(value, str):
            parse_color(value)
        return value


class AudioClip(Temporal):
    type: Literal["audio"] = "audio"
    url: str
    cut_from: float = Field(0.0, ge=0)
    volume: float = Field(DEFAULT_VOLUME, ge=0)
    media_duration: float | None = None


class MusicClip(Temporal):
    end_required: ClassVar[bool] = False

    type: Literal["music"] = "music"
    url: str
    cut_from: float = Field(0.0, ge=0)
    volume: float = Field(DEFAULT_MUSIC_VOLUME, ge=0)
    media_duration: float | None = None


class TextClip(Temporal):
    type: Literal["text"] = "text"
    text: str = ""
    mode: TEXT_MODES = "static"
    words: list[Word] | None = None
    word_timestamps: list[float] | None = None

    font_file: str | None = None
    font_family: str = DEFAULT_FONT_FAMILY
    font_size: int = Field(DEFAULT_FONT_SIZE, gt=0)
    font_color: str = DEFAULT_FONT_COLOR

    x_percent: float | None = None
    y_percent: float | None = None
    x: float | None = None
    y: float | None = None
    x_offset: float = 0
    y_offset: float = 0

    border_color: str | None = None
    border_width: float | None = None
    shadow_color: str | None = None
    shadow_x: float | None = None
    shadow_y: float | None = None
    background_color: str | None = None
    background_opacity: float | None = Field(None, ge=0, le=1)
    padding: float | None = None

    animation: TextAnimation | None = None

    highlight_color: str = DEFAULT_KARAOKE_HIGHLIGHT
    highlight_style: Literal["smooth", "instant"] = "smooth"
    opacity: float = Field(1.0, ge=0, le=1)

    @model_validator(mode="after")
    def _needs_content(self):
        if self.mode in ("static", "karaoke") and not self.text.strip() and not self.words:
            raise ValueError(f"'{self.mode}' text requires non-empty 'text'")
        if self.mode in ("word-replace", "word-sequential") and not self.text.strip() and not self.words:
            raise ValueError(f"'{self.mode}' text requires 'text' or 'words'")
        return self


class SubtitleClip(Temporal):
    """Imported caption file (SRT/VTT/ASS) or a free-form styled caption."""

    end_required: ClassVar[bool] = False

    type: Literal["subtitle"] = "subtitle"
    url: str | None = None
    text: str | None = None
    font_family: str = "Arial"
    font_size: int = Field(48, gt=0)
    font_color: str = "#FFFFFF"
    border_color: str = "#000000"
    border_width: float = 2
    y_percent: float | None = None
    opacity: float = Field(1.0, ge=0, le=1)

    @model_validator(mode="after")
    def _source(self):
        if self.url is None and not self.text:
            raise ValueError("subtitle clips need 'url' or 'text'")
        if self.url is not None:
            ext = self.url.rsplit(".", 1)[-1].lower()
            if ext not in ("srt", "vtt", "ass", "ssa"):
                raise ValueError(
                    f"Unsupported subtitle format '.{ext}'. Expected: .srt, .vtt, .ass, .ssa"
                )
        elif self.end is None:
            raise ValueError("inline subtitle text requires 'end' (or 'duration')")
        return self


class EffectClip(Temporal):
    type: Literal["effect"] = "effect"
    effect: Literal["vignette", "filmGrain", "gaussianBlur", "colorAdjust"]
    params: dict[str, float | bool] = Field(default_factory=dict)
    fade_in: float = Field(0.0, ge=0)
    fade_out: float = Field(0.0, ge=0)


class WatermarkClip(Temporal):
    """Logo or text mark over the finished picture. No `end` = whole video."""

    end_required: ClassVar[bool] = False

    type: Literal["watermark"] = "watermark"
    mode: Literal["image", "text"] = "image"
    url: str | None = None
    text: str | None = None
    placement: Placement | str = "bottom-right"
    margin: float = Field(DEFAULT_WATERMARK_MARGIN, ge=0)
    scale: float = Field(DEFAULT_WATERMARK_SCALE, gt=0, le=1)
    opacity: float = Field(1.0, ge=0, le=1)
    font_file: str | None = None
    font_family: str = DEFAULT_FONT_FAMILY
    font_size: int = Field(24, gt=0)
    font_color: str = DEFAULT_FONT_COLOR
    border_color: str | None = None
    border_width: float | None = None
    shadow_color: str | None = None
    shadow_x: float | None = None
    shadow_y: float | None = None

    @model_validator(mode="after")
    def _content(self):
        if self.mode == "image" and not self.url:
            raise ValueError("image watermarks require 'url'")
        if self.mode == "text" and not self.text:
            raise ValueError("text watermarks require 'text'")
        if isinstance(self.placement, str) and self.placement not in WATERMARK_POSITIONS:
            raise ValueError(
                f"placement must be one of {sorted(WATERMARK_POSITIONS)}; "
                f"got '{self.placement}'"
            )
        return self


Clip = Annotated[
    Union[
        VideoClip, ImageClip, ColorClip, AudioClip, MusicClip,
        TextClip, SubtitleClip, EffectClip, WatermarkClip,
    ],
    Field(discriminator="type"),
]

PictureClip = Union[VideoClip, ImageClip, ColorClip]

_CLIP_ADAPTER = TypeAdapter(Clip)


def parse_clip(data: dict) -> Clip:
    """Validate one clip dict into its kind's model (pydantic errors propagate)."""
    return _CLIP_ADAPTER.validate_python(data)


def is_picture(clip) -> bool:
    return clip.type in PICTURE_TYPES


def picture_track(clips) -> list:
    """Picture clips ordered by position (stable for equal positions)."""
    return sorted((c for c in clips if is_picture(c)), key=lambda c: c.position)
