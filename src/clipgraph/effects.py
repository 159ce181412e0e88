"""Timed visual effects composited over the picture.

Each effect splits the current stream into a base and a processed branch,
runs the effect filter on the processed branch, sets its opacity (with
optional alpha fades), and overlays it back onto the base inside the
effect's time window.
"""

import math

from .clips import EffectClip
from .common import format_number
from .context import CompileContext


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def effect_filter(clip: EffectClip) -> str:
    """The filter applied to the processed branch."""
    params = clip.params

    if clip.effect == "vignette":
        angle = params.get("angle", math.pi / 5)
        return f"vignette=angle={format_number(angle)}:eval=frame"

    if clip.effect == "filmGrain":
        strength = _clamp(params.get("amount", 0.35) * 100, 0, 100)
        flags = "u" if params.get("temporal") is False else "t+u"
        return f"noise=alls={format_number(strength, 3)}:allf={flags}"

    if clip.effect == "gaussianBlur":
        if "sigma" in params:
            sigma = params["sigma"]
        else:
            sigma = params.get("amount", 0.5) * 20
        return f"gblur=sigma={format_number(_clamp(sigma, 0, 100), 4)}"

    # colorAdjust
    return (
        f"eq=brightness={format_number(params.get('brightness', 0), 4)}"
        f":contrast={format_number(params.get('contrast', 1), 4)}"
        f":saturation={format_number(params.get('saturation', 1), 4)}"
        f":gamma={format_number(params.get('gamma', 1), 4)}"
    )


def alpha_chain(clip: EffectClip, start: float, end: float) -> str:
    amount = _clamp(clip.params.get("amount", 1), 0, 1)
    chain = f"format=rgba,colorchannelmixer=aa={format_number(amount, 4)}"
    if clip.fade_in > 0:
        chain += (
            f",fade=t=in:st={format_number(start, 4)}"
            f":d={format_number(clip.fade_in, 4)}:alpha=1"
        )
    if clip.fade_out > 0:
        fade_out_start = max(start, end - clip.fade_out)
        chain += (
            f",fade=t=out:st={format_number(fade_out_start, 4)}"
            f":d={format_number(clip.fade_out, 4)}:alpha=1"
        )
    return chain


def build_effects(ctx: CompileContext, clips: list[EffectClip], label: str) -> str:
    """Apply effects in (position, end) order; return the final label."""
    ordered = sorted(clips, key=lambda c: (c.position, c.end))
    current = label
    for clip in ordered:
        start = ctx.ledger.to_visual(clip.position)
        end = ctx.ledger.to_visual(clip.end)
        base, source = ctx.label("fxbase"), ctx.label("fxsrc")
        raw, alpha, out = ctx.label("fxraw"), ctx.label("fxa"), ctx.label("fxout")

        ctx.graph.add("split=2", [current], [base, source])
        ctx.graph.add(effect_filter(clip), [source], [raw])
        ctx.graph.add(alpha_chain(clip, start, end), [raw], [alpha])
        ctx.graph.add(
            "overlay=shortest=1:eof_action=pass:"
            f"enable='between(t,{format_number(start, 4)},{format_number(end, 4)})'",
            [base, alpha], [out],
        )
        current = out
    return current
