"""Picture track — one fitted stream per picture clip, then sequenced.

Each video, image or color clip becomes a stream at the canvas size and
frame rate. The streams are then joined in position order, by concat or by
xfade where a clip declares a transition. The transition ledger is filled
in along the way.
"""

from dataclasses import dataclass, field

from .clips import ColorClip, Gradient, ImageClip, VideoClip, picture_track
from .common import format_number
from .context import CompileContext
from .errors import ValidationError
from .gradient import write_gradient
from .motion import motion_frames, overscan_width, resolve_motion, zoompan_expressions


@dataclass
class PictureTrack:
    label: str | None = None
    duration: float = 0.0
    durations: list[float] = field(default_factory=list)
    # Command input index per clip; None for generated color sources.
    input_indexes: list[int | None] = field(default_factory=list)


def clip_duration(clip) -> float:
    """Playable duration: the requested window, capped by the source media."""
    requested = max(0.0, clip.end - clip.position)
    media = getattr(clip, "media_duration", None)
    if media is not None:
        return max(0.0, min(requested, media - getattr(clip, "cut_from", 0.0)))
    return requested


# ── Per-clip streams ──────────────────────────────────────────────

def _tail(ctx: CompileContext) -> str:
    return f"setsar=1,settb=1/{ctx.fps}"


def fit_chain(ctx: CompileContext, cut_from: float, duration: float) -> str:
    """Trim a source and letterbox it into the canvas."""
    w, h, fps = ctx.width, ctx.height, ctx.fps
    return (
        f"trim=start={format_number(cut_from)}:duration={format_number(duration)},"
        f"setpts=PTS-STARTPTS,fps={fps},"
        f"scale={w}:{h}:force_original_aspect_ratio=decrease,"
        f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2,"
        f"{_tail(ctx)}"
    )


def ken_burns_chain(ctx: CompileContext, clip: ImageClip, duration: float) -> str:
    """Cover-crop the still, overscan it, then animate with zoompan."""
    w, h, fps = ctx.width, ctx.height, ctx.fps
    motion = resolve_motion(clip.ken_burns, w, h, clip.width, clip.height)
    frames = motion_frames(duration, fps)
    z, x, y = zoompan_expressions(motion, frames)
    return (
        f"select='eq(n,0)',setpts=PTS-STARTPTS,"
        f"scale={w}:{h}:force_original_aspect_ratio=increase,setsar=1,"
        f"crop={w}:{h},"
        f"scale={overscan_width(w)}:-1,"
        f"zoompan=z='{z}':x='{x}':y='{y}':d={frames}:s={ctx.size}:fps={fps},"
        f"fps={fps},settb=1/{fps}"
    )


def color_source(ctx: CompileContext, color: str, duration: float) -> str:
    return (
        f"color=c={color}:s={ctx.size}:d={format_number(duration)}:r={ctx.fps},"
        f"fps={ctx.fps},{_tail(ctx)}"
    )


def _still_options(duration: float) -> list[str]:
    return ["-loop", "1", "-t", format_number(duration)]


def add_picture_stream(ctx: CompileContext, clip, duration: float) -> tuple[str, int | None]:
    """Add the node for one picture clip.

    Returns:
        (output label, command input index or None for color sources).
    """
    out = ctx.label("scaled")
    index = None

    if isinstance(clip, VideoClip):
        index = ctx.add_input(clip.url)
        ctx.graph.add(fit_chain(ctx, clip.cut_from, duration), [f"{index}:v"], [out])

    elif isinstance(clip, ImageClip):
        index = ctx.add_input(clip.url, _still_options(duration))
        if clip.ken_burns:
            ctx.graph.add(ken_burns_chain(ctx, clip, duration), [f"{index}:v"], [out])
        else:
            ctx.graph.add(fit_chain(ctx, 0.0, duration), [f"{index}:v"], [out])

    elif isinstance(clip, ColorClip):
        if isinstance(clip.color, Gradient):
            path = write_gradient(clip.color, ctx.width, ctx.height, ctx.ensure_work_dir())
            ctx.add_artifact(path)
            index = ctx.add_input(path, _still_options(duration))
            ctx.graph.add(fit_chain(ctx, 0.0, duration), [f"{index}:v"], [out])
        else:
            ctx.graph.add(color_source(ctx, clip.color, duration), [], [out])

    else:
        raise TypeError(f"Not a picture clip: {clip.type}")

    return out, index


# ── Sequencing ────────────────────────────────────────────────────

def build_picture_track(ctx: CompileContext, clips: list) -> PictureTrack:
    """Build the picture track for clips already sorted by position.

    Returns:
        PictureTrack with the final label and the visual duration, which is
        the sum of clip durations minus the sum of transition durations.
        An empty clip list gives an empty track (label None, duration 0).
    """
    if not clips:
        return PictureTrack()

    labels = []
    durations = []
    indexes = []
    for i, clip in enumerate(clips):
        duration = clip_duration(clip)
        label, index = add_picture_stream(ctx, clip, duration)
        labels.append(label)
        indexes.append(index)
        durations.append(duration)
        overlap = clip.transition.duration if i > 0 and clip.transition else 0.0
        ctx.ledger.record(clip.position, overlap)

    fps = ctx.fps
    if not any(clip.transition for clip in clips[1:]):
        out = ctx.label("outv")
        ctx.graph.add(
            f"concat=n={len(labels)}:v=1:a=0,fps={fps},settb=1/{fps}", labels, [out],
        )
        return PictureTrack(out, sum(durations), durations, indexes)

    current = labels[0]
    running = durations[0]
    for clip, label, duration in zip(clips[1:], labels[1:], durations[1:]):
        if clip.transition:
            t = clip.transition
            offset = max(0.0, running - t.duration)
            out = ctx.label("vtrans")
            ctx.graph.add(
                f"xfade=transition={t.kind}:duration={format_number(t.duration)}:"
                f"offset={format_number(offset)},fps={fps},settb=1/{fps}",
                [current, label], [out],
            )
            running += duration - t.duration
        else:
            out = ctx.label("vcat")
            ctx.graph.add(
                f"concat=n=2:v=1:a=0,fps={fps},settb=1/{fps}", [current, label], [out],
            )
            running += duration
        current = out

    return PictureTrack(current, running, durations, indexes)


def check_transitions(clips: list) -> None:
    """Reject transitions longer than either clip they join.

    The first picture clip's transition is ignored, as there is nothing
    before it to blend with.

    Raises:
        ValidationError: Listing every offending clip.
    """
    errors = []
    track = picture_track(clips)
    for prev, clip in zip(track, track[1:]):
        t = clip.transition
        if t is None:
            continue
        limit = min(clip_duration(prev), clip_duration(clip))
        if t.duration > limit:
            errors.append(
                f"Clip at {format_number(clip.position, 3)}s ({clip.type}): "
                f"transition '{t.kind}' of {format_number(t.duration, 3)}s is longer "
                f"than the clips it joins ({format_number(limit, 3)}s)"
            )
    if errors:
        raise ValidationError("; ".join(errors), errors=errors)
