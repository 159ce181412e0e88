"""Audio track — clip audio, standalone audio and background music.

All audio is placed in visual time: picture audio and standalone audio are
delayed by their position minus the transition offset at that position.
Music is laid under the whole piece at its raw position.
"""

import logging

from .clips import AudioClip, MusicClip, VideoClip
from .common import format_number, round_half_up
from .context import CompileContext
from .picture import PictureTrack, clip_duration

logger = logging.getLogger(__name__)


def _clip_chain(volume: float, cut_from: float, duration: float, delay_ms: int) -> str:
    return (
        f"volume={format_number(volume)},"
        f"atrim=start={format_number(cut_from)}:duration={format_number(duration)},"
        f"asetpts=PTS-STARTPTS,adelay={delay_ms}|{delay_ms}"
    )


def _mix(ctx: CompileContext, labels: list[str], prefix: str) -> str:
    out = ctx.label(prefix)
    ctx.graph.add(f"amix=inputs={len(labels)}:duration=longest", labels, [out])
    return out


def build_picture_audio(ctx: CompileContext, clips: list, track: PictureTrack) -> str | None:
    """Mix the audio of video clips that carry an audio stream.

    Args:
        clips: The picture clips the track was built from, in the same order.
        track: The built picture track (durations and input indexes).
    """
    labels = []
    for clip, duration, index in zip(clips, track.durations, track.input_indexes):
        if not isinstance(clip, VideoClip) or not clip.has_audio or index is None:
            continue
        out = ctx.label("va")
        chain = _clip_chain(
            clip.volume, clip.cut_from, duration, ctx.ledger.delay_ms(clip.position),
        )
        ctx.graph.add(chain, [f"{index}:a"], [out])
        labels.append(out)

    if not labels:
        return None
    return _mix(ctx, labels, "outa")


def build_standalone_audio(ctx: CompileContext, clips: list[AudioClip],
                           existing: str | None) -> str | None:
    """Add standalone audio clips and mix them with the existing audio."""
    labels = []
    for clip in clips:
        index = ctx.add_input(clip.url)
        out = ctx.label("a")
        chain = _clip_chain(
            clip.volume, clip.cut_from, clip_duration(clip),
            ctx.ledger.delay_ms(clip.position),
        )
        ctx.graph.add(chain, [f"{index}:a"], [out])
        labels.append(out)

    if not labels:
        return existing
    if existing:
        labels.insert(0, existing)
    return _mix(ctx, labels, "mixaudio")


def build_music(ctx: CompileContext, clips: list[MusicClip], existing: str | None,
                visual_end: float) -> str | None:
    """Lay background music under the existing audio.

    A music clip with no `end` runs to the end of the picture. When other
    audio exists, a silent anchor starting at zero is mixed in with weight 0
    so amix starts producing output immediately; the remaining inputs share
    equal weights with normalization off.
    """
    labels = []
    for clip in clips:
        end = clip.end if clip.end is not None else visual_end
        duration = end - clip.position
        if clip.media_duration is not None:
            duration = min(duration, clip.media_duration - clip.cut_from)
        if duration <= 0:
            logger.warning(
                "Music clip %s at %ss has nothing to play; skipped", clip.url, clip.position,
            )
            continue
        index = ctx.add_input(clip.url)
        delay = round_half_up(clip.position * 1000)
        out = ctx.label("bg")
        ctx.graph.add(
            f"volume={format_number(clip.volume)},"
            f"atrim=start={format_number(clip.cut_from)}:"
            f"end={format_number(clip.cut_from + duration)},"
            f"asetpts=PTS-STARTPTS,adelay={delay}|{delay}",
            [f"{index}:a"], [out],
        )
        labels.append(out)

    if not labels:
        return existing
    if not existing:
        return _mix(ctx, labels, "finalaudio")

    anchor = ctx.label("bgmpad")
    ctx.graph.add(
        f"anullsrc=cl=stereo,atrim=end={format_number(max(visual_end, 0.1))}", [], [anchor],
    )
    real = len(labels) + 1
    weight = f"{1 / real:.6f}"
    weights = " ".join(["0"] + [weight] * real)
    out = ctx.label("finalaudio")
    ctx.graph.add(
        f"amix=inputs={real + 1}:duration=longest:weights='{weights}':normalize=0",
        [anchor, existing, *labels], [out],
    )
    return out


def fit_audio(ctx: CompileContext, label: str, visual_end: float) -> str:
    """Pad or cut the mixed audio to exactly the visual duration."""
    out = ctx.label("audfit")
    ctx.graph.add(f"apad,atrim=end={format_number(visual_end)}", [label], [out])
    return out


def build_audio_track(ctx: CompileContext, picture_clips: list, track: PictureTrack,
                      audio_clips: list, music_clips: list,
                      visual_end: float) -> str | None:
    """Build every audio stage in order; return the final label or None."""
    label = build_picture_audio(ctx, picture_clips, track)
    label = build_standalone_audio(ctx, audio_clips, label)
    label = build_music(ctx, music_clips, label, visual_end)
    if label is None:
        return None
    return fit_audio(ctx, label, visual_end)
