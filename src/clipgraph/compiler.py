"""Graph assembler — compile a clip list into one filter_complex.

Stages run in a fixed order over one CompileContext:

  picture: gap check/fill -> picture track -> effects -> text -> subtitles
           -> watermarks -> optional output scale
  audio:   clip audio -> standalone audio -> music -> fit to picture

The result carries everything the command builder and the renderer need:
the graph text, the inputs, the final labels, the total duration, the text
windows deferred to extra passes, and the generated artifacts.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .audio import build_audio_track
from .clips import (
    AudioClip,
    EffectClip,
    MusicClip,
    SubtitleClip,
    TextClip,
    WatermarkClip,
    parse_clip,
    picture_track,
)
from .constants import DEFAULT_EXPORT, DEFAULT_FPS, DEFAULT_HEIGHT, DEFAULT_WIDTH
from .context import CompileContext, InputSpec, default_work_dir
from .effects import build_effects
from .errors import ValidationError
from .gaps import check_gaps
from .picture import build_picture_track, check_transitions
from .subtitles import build_subtitle_overlays
from .text import TextWindow, build_text_overlays, expand_text_windows, to_visual_windows
from .watermark import build_watermarks

logger = logging.getLogger(__name__)


@dataclass
class CompiledProject:
    filter_complex: str
    inputs: list[InputSpec]
    video_label: str | None
    audio_label: str | None
    total_duration: float
    width: int
    height: int
    fps: int
    # Windows too many for the main graph, rendered in later passes.
    text_windows: list[TextWindow] = field(default_factory=list)
    artifacts: list[Path] = field(default_factory=list)
    work_dir: Path = field(default_factory=default_work_dir)

    @property
    def needs_text_passes(self) -> bool:
        return bool(self.text_windows)


def _overlay_end(clips: list) -> float | None:
    """Latest end among text and subtitle clips, if any."""
    ends = [
        c.end for c in clips
        if isinstance(c, (TextClip, SubtitleClip)) and c.end is not None
    ]
    return max(ends) if ends else None


def _fallback_duration(clips: list) -> float:
    ends = [c.end for c in clips if c.end is not None]
    return max(ends) if ends else 0.0


def compile_project(
    clips: list,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    fps: int = DEFAULT_FPS,
    fill_gaps: str | None = None,
    work_dir: str | Path | None = None,
    text_batch_size: int = DEFAULT_EXPORT["text_batch_size"],
    output_size: tuple[int, int] | None = None,
) -> CompiledProject:
    """Compile clips into a filter graph.

    Args:
        clips: Clip models (or plain dicts, validated here).
        width, height, fps: Canvas the picture is built at.
        fill_gaps: Color for gap filling. None makes any gap an error.
        work_dir: Where generated files (gradients, text files, subtitle
            documents) are written. Names are derived from content, so the
            same clips always give the same graph.
        text_batch_size: Most drawtext stages allowed in the main graph.
        output_size: Final (width, height) to scale the picture to.

    Raises:
        ValidationError: Gaps without a fill color, bad transitions, or
            nothing to render.
        GraphError: The assembled graph breaks label wiring.
    """
    clips = [parse_clip(c) if isinstance(c, dict) else c for c in clips]

    timeline_end = _overlay_end(clips) if fill_gaps is not None else None
    clips = check_gaps(clips, fill_color=fill_gaps, timeline_end=timeline_end)
    check_transitions(clips)

    ctx = CompileContext(
        width=width, height=height, fps=fps,
        work_dir=work_dir if work_dir is not None else default_work_dir(),
    )

    pictures = picture_track(clips)
    track = build_picture_track(ctx, pictures)
    total = track.duration if track.label else _fallback_duration(clips)

    video = track.label
    deferred = []
    text_clips = [c for c in clips if isinstance(c, TextClip)]
    if video:
        video = build_effects(ctx, [c for c in clips if isinstance(c, EffectClip)], video)

        windows = to_visual_windows(expand_text_windows(text_clips), ctx.ledger, total)
        if len(windows) > text_batch_size:
            logger.info(
                "%d text windows exceed the batch size of %d; rendering them in passes",
                len(windows), text_batch_size,
            )
            deferred = windows
        else:
            video = build_text_overlays(ctx, windows, video)

        subtitle_clips = [
            c for c in clips
            if isinstance(c, SubtitleClip) or (isinstance(c, TextClip) and c.mode == "karaoke")
        ]
        video = build_subtitle_overlays(ctx, subtitle_clips, video)
        video = build_watermarks(
            ctx, [c for c in clips if isinstance(c, WatermarkClip)], video, total,
        )

        if output_size:
            out_w, out_h = output_size
            scaled = ctx.label("outscaled")
            ctx.graph.add(
                f"scale={out_w}:{out_h}:force_original_aspect_ratio=decrease,"
                f"pad={out_w}:{out_h}:(ow-iw)/2:(oh-ih)/2",
                [video], [scaled],
            )
            video = scaled
    elif any(not isinstance(c, (AudioClip, MusicClip)) for c in clips):
        logger.warning("No picture clips: overlays are skipped")

    audio = build_audio_track(
        ctx, pictures, track,
        [c for c in clips if isinstance(c, AudioClip)],
        [c for c in clips if isinstance(c, MusicClip)],
        total,
    )

    if video is None and audio is None:
        raise ValidationError("Nothing to render: no picture or audio clips")

    ctx.graph.check([label for label in (video, audio) if label])

    out_w, out_h = output_size if output_size else (width, height)
    return CompiledProject(
        filter_complex=ctx.graph.serialize(),
        inputs=list(ctx.inputs),
        video_label=video,
        audio_label=audio,
        total_duration=total,
        width=out_w,
        height=out_h,
        fps=fps,
        text_windows=deferred,
        artifacts=list(ctx.artifacts),
        work_dir=ctx.work_dir,
    )
