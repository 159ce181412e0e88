"""Watermarks — a logo image or a line of text over the finished picture."""

from .clips import Placement, WatermarkClip
from .common import format_number, is_hex_color, round_half_up
from .context import CompileContext
from .escaping import escape_drawtext_text
from .text import font_param


def watermark_position(clip: WatermarkClip, width: int, height: int,
                       is_text: bool = False) -> tuple[str, str]:
    """x and y expressions for a placement preset or custom placement.

    Image overlays size themselves with w/h against the main W/H; drawtext
    uses tw/th against the numeric canvas size.
    """
    margin = format_number(clip.margin)
    w_var, h_var = ("tw", "th") if is_text else ("w", "h")
    big_w, big_h = (width, height) if is_text else ("W", "H")

    placement = clip.placement
    if isinstance(placement, Placement):
        if placement.x_percent is not None:
            return (
                f"{format_number(placement.x_percent * width)}-{w_var}/2",
                f"{format_number(placement.y_percent * height)}-{h_var}/2",
            )
        return format_number(placement.x), format_number(placement.y)

    if placement == "top-left":
        return margin, margin
    if placement == "top-right":
        return f"{big_w}-{w_var}-{margin}", margin
    if placement == "bottom-left":
        return margin, f"{big_h}-{h_var}-{margin}"
    if placement == "center":
        return f"({big_w}-{w_var})/2", f"({big_h}-{h_var})/2"
    return f"{big_w}-{w_var}-{margin}", f"{big_h}-{h_var}-{margin}"


def _window(ctx: CompileContext, clip: WatermarkClip, total: float) -> tuple[float, float]:
    start = ctx.ledger.to_visual(clip.position)
    end = total if clip.end is None else min(ctx.ledger.to_visual(clip.end), total)
    return start, end


def _enable(start: float, end: float, total: float) -> str:
    if start == 0 and end >= total:
        return ""
    return f":enable='between(t,{format_number(start)},{format_number(end)})'"


def _with_opacity(color: str, opacity: float) -> str:
    """Apply opacity as a hex alpha suffix, or as @alpha for named colors."""
    if opacity >= 1:
        return color
    if is_hex_color(color):
        digits = color[2:] if color.lower().startswith("0x") else color[1:]
        if len(digits) == 3:
            color = "#" + "".join(c * 2 for c in digits)
        return f"{color}{round_half_up(opacity * 255):02x}"
    return f"{color}@{format_number(opacity)}"


def build_image_watermark(ctx: CompileContext, clip: WatermarkClip, label: str,
                          total: float) -> str:
    index = ctx.add_input(clip.url)
    scaled = ctx.label("wm_scaled")
    chain = f"scale={round_half_up(ctx.width * clip.scale)}:-1"
    if clip.opacity < 1:
        chain += f",format=rgba,colorchannelmixer=aa={format_number(clip.opacity)}"
    ctx.graph.add(chain, [f"{index}:v"], [scaled])

    x, y = watermark_position(clip, ctx.width, ctx.height)
    start, end = _window(ctx, clip, total)
    out = ctx.label("outwm")
    ctx.graph.add(f"overlay={x}:{y}{_enable(start, end, total)}", [label, scaled], [out])
    return out


def build_text_watermark(ctx: CompileContext, clip: WatermarkClip, label: str,
                         total: float) -> str:
    x, y = watermark_position(clip, ctx.width, ctx.height, is_text=True)
    params = (
        f"drawtext=text='{escape_drawtext_text(clip.text)}'"
        f"{font_param(clip.font_file, clip.font_family)}"
        f":fontsize={clip.font_size}"
        f":fontcolor={_with_opacity(clip.font_color, clip.opacity)}"
        f":x={x}:y={y}"
    )
    if clip.border_color:
        params += f":bordercolor={_with_opacity(clip.border_color, clip.opacity)}"
    if clip.border_width is not None:
        params += f":borderw={format_number(clip.border_width)}"
    if clip.shadow_color:
        params += f":shadowcolor={clip.shadow_color}"
        if clip.shadow_x is not None:
            params += f":shadowx={format_number(clip.shadow_x)}"
        if clip.shadow_y is not None:
            params += f":shadowy={format_number(clip.shadow_y)}"

    start, end = _window(ctx, clip, total)
    params += _enable(start, end, total)
    out = ctx.label("outwm")
    ctx.graph.add(params, [label], [out])
    return out


def build_watermarks(ctx: CompileContext, clips: list[WatermarkClip], label: str,
                     total: float) -> str:
    """Layer every watermark in order; return the final video label."""
    for clip in clips:
        if clip.mode == "text":
            label = build_text_watermark(ctx, clip, label, total)
        else:
            label = build_image_watermark(ctx, clip, label, total)
    return label
