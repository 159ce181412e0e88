"""Subtitle-track overlays rendered through libass.

Karaoke text clips, inline subtitle text and imported caption files
(SRT, WebVTT, ASS/SSA) each become one ASS document, written to the work
dir and burned in with an `ass` filter stage. Cue times are moved into
visual time through the transition ledger, the same way drawtext windows
and audio delays are.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from .clips import SubtitleClip, TextClip
from .common import artifact_path, parse_color, round_half_up
from .context import CompileContext
from .errors import MediaNotFoundError
from .escaping import escape_filter_path
from .text import indexed_word_windows

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "clipgraph subtitles"

# libass color names differ from FFmpeg's for a few entries (green).
ASS_NAMED_COLORS = {
    "white": "FFFFFF",
    "black": "000000",
    "red": "FF0000",
    "green": "00FF00",
    "blue": "0000FF",
    "yellow": "FFFF00",
    "cyan": "00FFFF",
    "magenta": "FF00FF",
    "orange": "FFA500",
    "pink": "FFC0CB",
    "purple": "800080",
    "gold": "FFD700",
}


@dataclass(frozen=True)
class Cue:
    start: float
    end: float
    # Already escaped for ASS.
    text: str
    style: str = "Default"


# ── ASS primitives ────────────────────────────────────────────────

def hex_to_ass_color(color: str, opacity: float = 1.0) -> str:
    """Convert '#RRGGBB' (or a color name) to ASS '&HAABBGGRR'.

    ASS alpha is inverted: 00 is opaque, FF fully transparent.
    """
    named = ASS_NAMED_COLORS.get(color.lower())
    if named:
        r, g, b = int(named[0:2], 16), int(named[2:4], 16), int(named[4:6], 16)
    else:
        r, g, b = parse_color(color)
    alpha = round_half_up((1 - opacity) * 255)
    return f"&H{alpha:02X}{b:02X}{g:02X}{r:02X}"


def seconds_to_ass_time(seconds: float) -> str:
    """Format seconds as H:MM:SS.cc (centiseconds)."""
    total_cs = round_half_up(max(0.0, seconds) * 100)
    cs = total_cs % 100
    total_s = total_cs // 100
    h, rem = divmod(total_s, 3600)
    m, s = divmod(rem, 60)
    return f"{h}:{m:02d}:{s:02d}.{cs:02d}"


def escape_ass_text(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace("{", "\\{")
        .replace("}", "\\}")
        .replace("\n", "\\N")
    )


def ass_header(width: int, height: int, title: str = DEFAULT_TITLE) -> str:
    return (
        "[Script Info]\n"
        f"Title: {title}\n"
        "ScriptType: v4.00+\n"
        "WrapStyle: 0\n"
        "ScaledBorderAndShadow: yes\n"
        "YCbCr Matrix: TV.709\n"
        f"PlayResX: {width}\n"
        f"PlayResY: {height}\n"
        "\n"
    )


def ass_style(
    name: str = "Default",
    font_family: str = "Arial",
    font_size: int = 48,
    primary_color: str = "#FFFFFF",
    secondary_color: str = "#FFFF00",
    outline_color: str = "#000000",
    back_color: str = "#000000",
    bold: bool = False,
    italic: bool = False,
    outline: float = 2,
    shadow: float = 1,
    alignment: int = 5,
    margin_l: int = 20,
    margin_r: int = 20,
    margin_v: int = 20,
    opacity: float = 1.0,
) -> str:
    """One `Style:` line. The secondary color is the karaoke fill color."""
    fields = [
        name,
        font_family,
        font_size,
        hex_to_ass_color(primary_color, opacity),
        hex_to_ass_color(secondary_color, opacity),
        hex_to_ass_color(outline_color),
        hex_to_ass_color(back_color, 0.5),
        -1 if bold else 0,
        -1 if italic else 0,
        0,  # underline
        0,  # strikeout
        100, 100, 0, 0,  # scale x/y, spacing, angle
        1,  # border style: outline + shadow
        _num(outline),
        _num(shadow),
        alignment,
        margin_l,
        margin_r,
        margin_v,
        1,  # encoding
    ]
    return "Style: " + ",".join(str(f) for f in fields)


def _num(value: float):
    return int(value) if float(value).is_integer() else value


def ass_styles(styles: list[str]) -> str:
    return (
        "[V4+ Styles]\n"
        "Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, "
        "OutlineColour, BackColour, Bold, Italic, Underline, StrikeOut, ScaleX, "
        "ScaleY, Spacing, Angle, BorderStyle, Outline, Shadow, Alignment, "
        "MarginL, MarginR, MarginV, Encoding\n"
        + "".join(f"{s}\n" for s in (styles or [ass_style()]))
        + "\n"
    )


def ass_dialogue(cue: Cue, layer: int = 0, name: str = "", margin_l: int = 0,
                 margin_r: int = 0, margin_v: int = 0, effect: str = "") -> str:
    return (
        f"Dialogue: {layer},{seconds_to_ass_time(cue.start)},"
        f"{seconds_to_ass_time(cue.end)},{cue.style},{name},"
        f"{margin_l},{margin_r},{margin_v},{effect},{cue.text}"
    )


def ass_events(cues: list[Cue]) -> str:
    return (
        "[Events]\n"
        "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
        + "".join(f"{ass_dialogue(c)}\n" for c in cues)
    )


# ── Placement ─────────────────────────────────────────────────────

def _alignment(y_percent: float | None, default: int) -> int:
    if y_percent is None:
        return default
    if y_percent < 0.33:
        return 8
    if y_percent > 0.66:
        return 2
    return 5


def _identity(t: float) -> float:
    return t


# ── Karaoke ───────────────────────────────────────────────────────

def karaoke_words(clip: TextClip) -> list[tuple[str, float, float, bool]]:
    """(text, start, end, line_break_after) per word, in timeline time.

    Word timing follows the drawtext word modes: explicit words clamped to
    the clip, then timestamps, then an even split.
    """
    if clip.words:
        return [
            (text, start, end, clip.words[i].line_break)
            for i, start, end, text in indexed_word_windows(clip, [])
        ]

    words = []
    breaks = set()
    lines = clip.text.split("\n")
    for i, line in enumerate(lines):
        words.extend(line.split())
        if i < len(lines) - 1 and words:
            breaks.add(len(words) - 1)

    return [
        (text, start, end, i in breaks)
        for i, start, end, text in indexed_word_windows(clip, words)
    ]


def build_karaoke_ass(clip: TextClip, width: int, height: int, to_visual=_identity) -> str:
    """ASS document for a karaoke text clip.

    Each word gets a `\\kf` (smooth fill) or `\\k` (instant) tag with its
    duration in centiseconds, measured in visual time.
    """
    alignment = _alignment(clip.y_percent, 5)
    if clip.y_percent is not None:
        if clip.y_percent < 0.5:
            margin_v = round_half_up(clip.y_percent * height)
        else:
            margin_v = round_half_up((1 - clip.y_percent) * height)
    elif clip.y is not None:
        margin_v = int(clip.y)
    else:
        margin_v = 20

    style = ass_style(
        name="Karaoke",
        font_family=clip.font_family,
        font_size=clip.font_size,
        primary_color=clip.font_color,
        secondary_color=clip.highlight_color,
        outline_color=clip.border_color or "#000000",
        outline=clip.border_width if clip.border_width is not None else 2,
        shadow=1 if clip.shadow_color else 0,
        alignment=alignment,
        margin_v=margin_v,
        opacity=clip.opacity,
    )

    tag = "\\k" if clip.highlight_style == "instant" else "\\kf"
    words = karaoke_words(clip)
    cue_start, cue_end = to_visual(clip.position), to_visual(clip.end)
    last = round_half_up(cue_end * 100)
    # Word boundaries in visual centiseconds, kept in order and inside the cue.
    cursor = round_half_up(cue_start * 100)
    parts = []
    for i, (text, start, end, line_break) in enumerate(words):
        word_start = min(max(round_half_up(to_visual(start) * 100), cursor), last)
        word_end = min(max(round_half_up(to_visual(end) * 100), word_start), last)
        if word_start > cursor:
            parts.append(f"{{\\k{word_start - cursor}}}")
        parts.append(f"{{{tag}{word_end - word_start}}}{escape_ass_text(text)}")
        cursor = word_end
        if i < len(words) - 1:
            parts.append("\\N" if line_break else " ")

    cue = Cue(cue_start, cue_end, "".join(parts), "Karaoke")
    return ass_header(width, height, "Karaoke") + ass_styles([style]) + ass_events([cue])


# ── Inline subtitle text ──────────────────────────────────────────

def _subtitle_style(clip: SubtitleClip, alignment: int, margin_v: int) -> str:
    return ass_style(
        font_family=clip.font_family,
        font_size=clip.font_size,
        primary_color=clip.font_color,
        outline_color=clip.border_color,
        outline=clip.border_width,
        alignment=alignment,
        margin_v=margin_v,
        opacity=clip.opacity,
    )


def build_subtitle_ass(clip: SubtitleClip, width: int, height: int, to_visual=_identity) -> str:
    """ASS document for a subtitle clip given as inline text."""
    alignment = _alignment(clip.y_percent, 2)
    margin_v = 20
    if clip.y_percent is not None:
        if alignment == 8:
            margin_v = round_half_up(clip.y_percent * height)
        elif alignment == 2:
            margin_v = round_half_up((1 - clip.y_percent) * height)

    cue = Cue(to_visual(clip.position), to_visual(clip.end), escape_ass_text(clip.text))
    return (
        ass_header(width, height, "Subtitles")
        + ass_styles([_subtitle_style(clip, alignment, margin_v)])
        + ass_events([cue])
    )


# ── Caption files ─────────────────────────────────────────────────

_HTML_TAG = re.compile(r"<[^>]+>")
_LONG_TIMESTAMP = re.compile(
    r"(\d{2}):(\d{2}):(\d{2})[,.](\d{3})\s*-->\s*(\d{2}):(\d{2}):(\d{2})[,.](\d{3})"
)
_SHORT_TIMESTAMP = re.compile(r"(\d{2}):(\d{2})\.(\d{3})\s*-->\s*(\d{2}):(\d{2})\.(\d{3})")


def _cue_text(lines: list[str]) -> str:
    return "\\N".join(escape_ass_text(_HTML_TAG.sub("", line)) for line in lines)


def _blocks(content: str) -> list[list[str]]:
    content = content.replace("\r\n", "\n").strip()
    return [block.split("\n") for block in re.split(r"\n\n+", content) if block]


def _timing_line(lines: list[str]) -> int | None:
    for i, line in enumerate(lines):
        if "-->" in line:
            return i
    return None


def _parse_blocks(content: str, allow_short: bool) -> list[Cue]:
    cues = []
    for lines in _blocks(content):
        i = _timing_line(lines)
        if i is None:
            continue
        long_match = _LONG_TIMESTAMP.search(lines[i])
        short_match = _SHORT_TIMESTAMP.search(lines[i]) if allow_short else None
        if long_match:
            g = [int(x) for x in long_match.groups()]
            start = g[0] * 3600 + g[1] * 60 + g[2] + g[3] / 1000
            end = g[4] * 3600 + g[5] * 60 + g[6] + g[7] / 1000
        elif short_match:
            g = [int(x) for x in short_match.groups()]
            start = g[0] * 60 + g[1] + g[2] / 1000
            end = g[3] * 60 + g[4] + g[5] / 1000
        else:
            continue
        text_lines = lines[i + 1:]
        if not "".join(_HTML_TAG.sub("", line) for line in text_lines).strip():
            continue
        cues.append(Cue(start, end, _cue_text(text_lines)))
    return cues


def parse_srt(content: str) -> list[Cue]:
    """Parse SubRip content into cues (HTML tags stripped)."""
    return _parse_blocks(content, allow_short=False)


def parse_vtt(content: str) -> list[Cue]:
    """Parse WebVTT content, including the MM:SS.mmm short timestamps."""
    content = re.sub(r"^WEBVTT.*?\n\n", "", content.replace("\r\n", "\n"), flags=re.S)
    return _parse_blocks(content, allow_short=True)


def load_subtitle_file(clip: SubtitleClip, width: int, height: int,
                       to_visual=_identity) -> str:
    """Read a caption file and return an ASS document.

    SRT and VTT cues are shifted by the clip's position and mapped into
    visual time. When the clip has an `end`, cues past it are dropped and
    the last one is cut at it. ASS/SSA files are used unchanged.

    Raises:
        MediaNotFoundError: The file does not exist.
    """
    path = Path(clip.url)
    if not path.exists():
        raise MediaNotFoundError(path)
    content = path.read_text(encoding="utf-8")
    ext = path.suffix.lower()
    if ext in (".ass", ".ssa"):
        return content

    cues = parse_srt(content) if ext == ".srt" else parse_vtt(content)

    shifted = []
    for cue in cues:
        start = cue.start + clip.position
        end = cue.end + clip.position
        if clip.end is not None:
            if start >= clip.end:
                continue
            end = min(end, clip.end)
        shifted.append(Cue(to_visual(start), to_visual(end), cue.text))

    style = ass_style(
        font_family=clip.font_family,
        font_size=clip.font_size,
        primary_color=clip.font_color,
        outline_color=clip.border_color,
        outline=clip.border_width,
        alignment=2,
        margin_v=30,
        opacity=clip.opacity,
    )
    logger.debug("Loaded %d cue(s) from %s", len(shifted), path)
    return ass_header(width, height, "Imported Subtitles") + ass_styles([style]) + ass_events(shifted)


# ── Graph stages ──────────────────────────────────────────────────

def subtitle_document(ctx: CompileContext, clip) -> str:
    to_visual = ctx.ledger.to_visual
    if isinstance(clip, TextClip):
        return build_karaoke_ass(clip, ctx.width, ctx.height, to_visual)
    if clip.url is not None:
        return load_subtitle_file(clip, ctx.width, ctx.height, to_visual)
    return build_subtitle_ass(clip, ctx.width, ctx.height, to_visual)


def build_subtitle_overlays(ctx: CompileContext, clips: list, label: str) -> str:
    """Burn one ASS document per clip onto `label`; return the new label.

    Args:
        clips: Karaoke TextClips and SubtitleClips, in the order to layer them.
    """
    current = label
    for clip in clips:
        document = subtitle_document(ctx, clip)
        path = artifact_path(ctx.work_dir, "subtitle", document, ".ass")
        if not path.exists():
            ctx.ensure_work_dir()
            path.write_text(document, encoding="utf-8")
        ctx.add_artifact(path)
        out = ctx.label("outass")
        ctx.graph.add(f"ass='{escape_filter_path(path)}'", [current], [out])
        current = out
    return current
