"""Gap analysis for the picture track.

Finds the stretches of the timeline no picture clip covers, and optionally
fills them with solid color clips. Filling is a pure transform: it returns a
new clip list and never touches the one passed in.
"""

from dataclasses import dataclass

from .clips import ColorClip, is_picture, picture_track
from .common import format_number
from .constants import GAP_EPSILON
from .errors import ValidationError


@dataclass(frozen=True)
class Gap:
    start: float
    end: float
    duration: float


def _gap(start: float, end: float) -> Gap:
    return Gap(start=start, end=end, duration=end - start)


def find_gaps(
    clips: list,
    timeline_end: float | None = None,
    epsilon: float = GAP_EPSILON,
) -> list[Gap]:
    """Return uncovered intervals of the picture track, in time order.

    Only video, image and color clips count. Overlaps (transitions) are not
    gaps. Differences within `epsilon` are treated as touching.

    Args:
        clips: Any clip list; non-picture clips are ignored.
        timeline_end: Where the timeline should end. When given, a trailing
            gap after the last picture clip is reported too.
        epsilon: Tolerance in seconds.
    """
    track = picture_track(clips)

    if not track:
        if timeline_end is not None and timeline_end > epsilon:
            return [_gap(0.0, timeline_end)]
        return []

    gaps = []
    if track[0].position > epsilon:
        gaps.append(_gap(0.0, track[0].position))

    covered_until = track[0].end
    for clip in track[1:]:
        if clip.position - covered_until > epsilon:
            gaps.append(_gap(covered_until, clip.position))
        covered_until = max(covered_until, clip.end)

    if timeline_end is not None and timeline_end - covered_until > epsilon:
        gaps.append(_gap(covered_until, timeline_end))

    return gaps


def fill_gaps(
    clips: list,
    color: str = "black",
    timeline_end: float | None = None,
) -> list:
    """Return a new clip list with a ColorClip spliced into every gap.

    Fill clips are inserted just before the first picture clip that starts
    at or after the gap, so the picture order stays the position order.
    Non-picture clips keep their relative order.
    """
    gaps = find_gaps(clips, timeline_end=timeline_end)
    if not gaps:
        return list(clips)

    fillers = [
        ColorClip(color=color, position=gap.start, end=gap.end) for gap in gaps
    ]

    result = []
    pending = list(fillers)
    for clip in clips:
        if is_picture(clip):
            while pending and pending[0].position <= clip.position:
                result.append(pending.pop(0))
        result.append(clip)
    result.extend(pending)
    return result


def check_gaps(
    clips: list,
    fill_color: str | None = None,
    timeline_end: float | None = None,
) -> list:
    """Enforce the contiguous-picture rule.

    Without a fill color any gap is an error. With one, the gaps are filled
    and the new list is returned.

    Raises:
        ValidationError: Gaps exist and no fill color was given.
    """
    if fill_color is not None:
        return fill_gaps(clips, fill_color, timeline_end=timeline_end)

    gaps = find_gaps(clips, timeline_end=timeline_end)
    if gaps:
        errors = [
            f"Gap in picture track from {format_number(g.start, 3)}s "
            f"to {format_number(g.end, 3)}s ({format_number(g.duration, 3)}s)"
            for g in gaps
        ]
        raise ValidationError(
            "Picture track has gaps: " + "; ".join(errors)
            + ". Fill them with clips or enable gap filling.",
            errors=errors,
        )
    return list(clips)
