"""Text overlays — drawtext stages chained over the picture stream.

A text clip expands into one or more windows (a string shown over a time
range). Word modes split the clip into per-word windows, the typewriter
animation into one window per revealed prefix. Each window becomes one
time-gated drawtext stage.

Windows are computed in timeline time and then moved into visual time
through the transition ledger, so text stays with the picture it was
placed on.
"""

import logging
from dataclasses import dataclass

from .clips import TextClip
from .common import artifact_path, format_number
from .constants import (
    DEFAULT_PULSE_SPEED,
    DEFAULT_TEXT_ANIM_IN,
    DEFAULT_TEXT_ANIM_INTENSITY,
    DEFAULT_TYPEWRITER_SPEED,
)
from .context import CompileContext
from .escaping import escape_drawtext_text, escape_filter_path, has_problematic_chars
from .ledger import TransitionLedger

logger = logging.getLogger(__name__)

TEXT_OUTPUT_LABEL = "outVideoAndText"


@dataclass(frozen=True)
class TextWindow:
    clip: TextClip
    text: str
    start: float
    end: float
    # Typewriter prefixes are always escaped inline, never written to a file.
    inline: bool = False


# ── Windows ───────────────────────────────────────────────────────

def indexed_word_windows(clip: TextClip, words: list[str]) -> list[tuple[int, float, float, str]]:
    """Split a clip's time range across words.

    Timing comes from, in order: the clip's explicit `words` (clamped to
    the clip), its `word_timestamps` (n+1 boundaries or n start times), or
    an even split where the last word ends exactly at the clip end.

    Returns:
        (index, start, end, text) per kept word. `index` points into
        `clip.words` when the clip has explicit words, else into `words`.
        Words left with no time are dropped.
    """
    start_base, end_base = clip.position, clip.end

    if clip.words:
        windows = []
        for i, w in enumerate(clip.words):
            start = max(start_base, w.start)
            end = min(end_base, w.end)
            if end > start:
                windows.append((i, start, end, w.text))
        return windows

    if clip.word_timestamps:
        ts = sorted(min(end_base, max(start_base, t)) for t in clip.word_timestamps)
        if len(ts) == len(words) + 1:
            return [
                (i, ts[i], ts[i + 1], words[i])
                for i in range(len(words)) if ts[i + 1] > ts[i]
            ]
        if len(ts) == len(words):
            windows = []
            for i, word in enumerate(words):
                end = ts[i + 1] if i + 1 < len(ts) else end_base
                if end > ts[i]:
                    windows.append((i, ts[i], end, word))
            return windows
        logger.warning(
            "Text clip at %ss: %d timestamps for %d words; splitting evenly",
            clip.position, len(ts), len(words),
        )

    total = max(0.0, end_base - start_base)
    if not words or total <= 0:
        return []
    step = total / len(words)
    windows = []
    for i, word in enumerate(words):
        start = start_base + i * step
        end = end_base if i == len(words) - 1 else start_base + (i + 1) * step
        windows.append((i, start, end, word))
    return windows


def word_windows(clip: TextClip, words: list[str]) -> list[tuple[float, float, str]]:
    """(start, end, text) per word; see `indexed_word_windows`."""
    return [(s, e, text) for _, s, e, text in indexed_word_windows(clip, words)]


def _source_words(clip: TextClip) -> list[str]:
    if clip.words:
        return [w.text for w in clip.words]
    return clip.text.split()


def _typewriter_windows(clip: TextClip) -> list[TextWindow]:
    anim = clip.animation
    speed = anim.speed if anim.speed is not None else DEFAULT_TYPEWRITER_SPEED
    windows = []
    for i in range(1, len(clip.text) + 1):
        start = clip.position + (i - 1) * speed
        if start >= clip.end:
            break
        end = min(clip.position + i * speed, clip.end)
        windows.append(TextWindow(clip, clip.text[:i], start, end, inline=True))
    # The last revealed prefix stays until the clip ends.
    if windows and windows[-1].end < clip.end:
        last = windows[-1]
        windows[-1] = TextWindow(clip, last.text, last.start, clip.end, inline=True)
    return windows


def expand_text_windows(clips: list[TextClip]) -> list[TextWindow]:
    """Expand drawtext clips into windows, in timeline time.

    Karaoke clips are rendered as subtitles and produce no windows here.
    """
    windows = []
    for clip in clips:
        if clip.mode == "karaoke":
            continue
        if clip.mode == "static":
            if clip.animation and clip.animation.type == "typewriter":
                windows.extend(_typewriter_windows(clip))
            else:
                windows.append(TextWindow(clip, clip.text, clip.position, clip.end))
            continue

        words = _source_words(clip)
        spans = word_windows(clip, words)
        if clip.mode == "word-replace":
            windows.extend(TextWindow(clip, text, s, e) for s, e, text in spans)
        else:
            shown = []
            for s, e, text in spans:
                shown.append(text)
                windows.append(TextWindow(clip, " ".join(shown), s, e))
    return windows


def to_visual_windows(windows: list[TextWindow], ledger: TransitionLedger,
                      picture_duration: float) -> list[TextWindow]:
    """Move windows into visual time and clip them to the picture.

    Windows that start at or after the end of the picture are dropped.
    """
    result = []
    dropped = 0
    for w in windows:
        start = ledger.to_visual(w.start)
        end = min(ledger.to_visual(w.end), picture_duration)
        if start >= picture_duration or end <= start:
            dropped += 1
            continue
        result.append(TextWindow(w.clip, w.text, start, end, w.inline))
    if dropped:
        logger.warning("%d text window(s) fall outside the picture and were dropped", dropped)
    return result


# ── drawtext parameters ───────────────────────────────────────────

def _offset(value: float) -> str:
    if not value:
        return ""
    if value < 0:
        return f"-{format_number(-value)}"
    return f"+{format_number(value)}"


def _x_param(clip: TextClip, width: int) -> str:
    if clip.x_percent is not None:
        base = f"{format_number(clip.x_percent * width)}-text_w/2"
    elif clip.x is not None:
        base = format_number(clip.x)
    else:
        base = f"({width} - text_w)/2"
    return f":x={base}{_offset(clip.x_offset)}"


def _y_param(clip: TextClip, height: int) -> str:
    if clip.y_percent is not None:
        base = f"{format_number(clip.y_percent * height)}-text_h/2"
    elif clip.y is not None:
        base = format_number(clip.y)
    else:
        base = f"({height} - text_h)/2"
    return f":y={base}{_offset(clip.y_offset)}"


def _anim_in(anim) -> float:
    return anim.in_ if anim.in_ is not None else DEFAULT_TEXT_ANIM_IN


def _fontsize_param(clip: TextClip, start: float) -> str:
    size = clip.font_size
    anim = clip.animation
    kind = anim.type if anim else "none"
    s = format_number(start)

    if kind in ("pop", "pop-bounce"):
        entry = _anim_in(anim)
        overshoot = 0.4 if kind == "pop-bounce" else 0.3
        return (
            f":fontsize=if(lt(t\\,{format_number(start + entry)})\\,"
            f"{size * 0.7:.3f}+{size * overshoot:.3f}*sin(PI/2*(t-{s})/{format_number(entry)})"
            f"\\,{size})"
        )
    if kind == "scale-in":
        entry = _anim_in(anim)
        intensity = anim.intensity if anim.intensity is not None else DEFAULT_TEXT_ANIM_INTENSITY
        low = size * (1 - intensity)
        return (
            f":fontsize=if(lt(t\\,{format_number(start + entry)})\\,"
            f"{low:.3f}+{size - low:.3f}*(t-{s})/{format_number(entry)}"
            f"\\,{size})"
        )
    if kind == "pulse":
        speed = anim.speed if anim.speed is not None else DEFAULT_PULSE_SPEED
        intensity = anim.intensity if anim.intensity is not None else DEFAULT_TEXT_ANIM_INTENSITY
        return (
            f":fontsize={size}+{size * intensity:.3f}"
            f"*sin(2*PI*{format_number(speed)}*(t-{s}))"
        )
    return f":fontsize={size}"


def _alpha_param(clip: TextClip, start: float, end: float) -> str:
    anim = clip.animation
    kind = anim.type if anim else "none"
    s, e = format_number(start), format_number(end)

    if kind == "fade-in":
        entry = _anim_in(anim)
        return (
            f":alpha=if(lt(t\\,{s})\\,0\\,if(lt(t\\,{format_number(start + entry)})"
            f"\\,(t-{s})/{format_number(entry)}\\,1))"
        )
    if kind in ("fade-in-out", "fade"):
        entry = _anim_in(anim)
        exit_ = anim.out if anim.out is not None else entry
        fade_out_start = max(start, end - exit_)
        return (
            f":alpha=if(lt(t\\,{s})\\,0\\,if(lt(t\\,{format_number(start + entry)})"
            f"\\,(t-{s})/{format_number(entry)}"
            f"\\,if(lt(t\\,{format_number(fade_out_start)})\\,1"
            f"\\,if(lt(t\\,{e})\\,(({e}-t)/{format_number(exit_)})\\,0))))"
        )
    if kind == "fade-out":
        exit_ = anim.out if anim.out is not None else _anim_in(anim)
        fade_out_start = max(start, end - exit_)
        return (
            f":alpha=if(lt(t\\,{format_number(fade_out_start)})\\,1"
            f"\\,if(lt(t\\,{e})\\,(({e}-t)/{format_number(exit_)})\\,0))"
        )
    return ""


def _style_params(clip: TextClip) -> str:
    params = ""
    if clip.border_color:
        params += f":bordercolor={clip.border_color}"
    if clip.border_width:
        params += f":borderw={format_number(clip.border_width)}"
    if clip.shadow_color:
        params += f":shadowcolor={clip.shadow_color}"
    if clip.shadow_x:
        params += f":shadowx={format_number(clip.shadow_x)}"
    if clip.shadow_y:
        params += f":shadowy={format_number(clip.shadow_y)}"
    if clip.background_color:
        params += f":box=1:boxcolor={clip.background_color}"
        if clip.background_opacity is not None:
            params += f"@{format_number(clip.background_opacity)}"
    if clip.padding:
        params += f":boxborderw={format_number(clip.padding)}"
    return params


def text_source(ctx: CompileContext, text: str, inline: bool = False) -> str:
    """The text= or textfile= part of a drawtext filter.

    Text with characters that are fragile inside a filter graph is written
    to a file under the work dir, named after its content.
    """
    if inline or not has_problematic_chars(text):
        return f"text='{escape_drawtext_text(text)}'"
    path = artifact_path(ctx.work_dir, "text", text, ".txt")
    if not path.exists():
        ctx.ensure_work_dir()
        path.write_text(text, encoding="utf-8")
    ctx.add_artifact(path)
    return f"textfile='{escape_filter_path(path)}':expansion=none"


def font_param(font_file: str | None, font_family: str) -> str:
    if font_file:
        return f":fontfile='{escape_filter_path(font_file)}'"
    return f":font={font_family}"


def drawtext_params(ctx: CompileContext, window: TextWindow) -> str:
    """Full drawtext filter for one window, including its enable range."""
    clip = window.clip
    s, e = format_number(window.start), format_number(window.end)
    return (
        f"drawtext={text_source(ctx, window.text, window.inline)}"
        f"{font_param(clip.font_file, clip.font_family)}"
        f"{_fontsize_param(clip, window.start)}"
        f":fontcolor={clip.font_color}"
        f"{_x_param(clip, ctx.width)}"
        f"{_y_param(clip, ctx.height)}"
        f"{_alpha_param(clip, window.start, window.end)}"
        f"{_style_params(clip)}"
        f":enable='between(t,{s},{e})'"
    )


# ── Graph stages ──────────────────────────────────────────────────

def build_text_overlays(ctx: CompileContext, windows: list[TextWindow], label: str) -> str:
    """Chain one drawtext stage per window onto `label`.

    Returns the label of the final stage, or `label` unchanged when there
    are no windows.
    """
    if not windows:
        return label
    current = label
    for window in windows:
        out = ctx.label("vtext")
        ctx.graph.add(drawtext_params(ctx, window), [current], [out])
        current = out
    ctx.graph.add("null", [current], [TEXT_OUTPUT_LABEL])
    return TEXT_OUTPUT_LABEL


def batch_windows(windows: list[TextWindow], batch_size: int) -> list[list[TextWindow]]:
    return [windows[i:i + batch_size] for i in range(0, len(windows), batch_size)]


def build_text_pass_graph(windows: list[TextWindow], width: int, height: int,
                          fps: int, work_dir) -> tuple[str, list]:
    """Filter graph for one text pass over a rendered file (input 0).

    Returns:
        (filter_complex, artifacts written for this pass).
    """
    ctx = CompileContext(width=width, height=height, fps=fps, work_dir=work_dir)
    ctx.graph.add("null", ["0:v"], ["invid"])
    out = build_text_overlays(ctx, windows, "invid")
    ctx.graph.check([out])
    return ctx.graph.serialize(), ctx.artifacts
