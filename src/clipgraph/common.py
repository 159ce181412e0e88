"""clipgraph.common — shared helpers for graph compilation.

Contains: number formatting for filter arguments, color parsing, path
variable resolution, and deterministic artifact naming.
"""

import hashlib
import math
import re
from pathlib import Path


# ── Number formatting ──────────────────────────────────────────────
# Filter arguments print numbers in shortest form: 5 not 5.0, 0.2 not
# 0.19999999999999996. Rounding to a fixed number of decimals first
# absorbs float noise from subtraction.

def format_number(value: float, decimals: int = 6) -> str:
    """Format a number for a filter argument (rounded, no trailing zeros)."""
    rounded = round(float(value), decimals)
    if rounded == 0:
        return "0"
    if rounded.is_integer():
        return str(int(rounded))
    return repr(rounded)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


# ── Color utilities ────────────────────────────────────────────────

NAMED_COLORS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "lime": (0, 255, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "cyan": (0, 255, 255),
    "magenta": (255, 0, 255),
    "orange": (255, 165, 0),
    "pink": (255, 192, 203),
    "purple": (128, 0, 128),
    "gold": (255, 215, 0),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "silver": (192, 192, 192),
    "navy": (0, 0, 128),
    "teal": (0, 128, 128),
    "maroon": (128, 0, 0),
    "olive": (128, 128, 0),
    "brown": (165, 42, 42),
    "coral": (255, 127, 80),
    "crimson": (220, 20, 60),
    "indigo": (75, 0, 130),
    "violet": (238, 130, 238),
    "skyblue": (135, 206, 235),
    "darkblue": (0, 0, 139),
    "darkgreen": (0, 100, 0),
    "darkred": (139, 0, 0),
    "darkgray": (169, 169, 169),
    "lightgray": (211, 211, 211),
    "midnightblue": (25, 25, 112),
}


def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB', '#RGB', '0xRRGGBB' or 'RRGGBB' to an (R, G, B) tuple."""
    if hex_str.lower().startswith("0x"):
        hex_str = hex_str[2:]
    hex_str = hex_str.lstrip("#")
    if len(hex_str) == 3:
        hex_str = "".join(c * 2 for c in hex_str)
    return (int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16))


def parse_color(value: str) -> tuple[int, int, int]:
    """Resolve an FFmpeg-style color (name, hex, optional @alpha) to RGB.

    Raises ValueError when the value is neither a known name nor hex.
    """
    color = value.split("@", 1)[0].strip()
    if color.lower() in NAMED_COLORS:
        return NAMED_COLORS[color.lower()]
    digits = color[2:] if color.lower().startswith("0x") else color.lstrip("#")
    if len(digits) in (3, 6, 8) and all(c in "0123456789abcdefABCDEF" for c in digits):
        return parse_hex_color(color)
    raise ValueError(
        f"Unknown color: '{value}'. Not a named color and not a hex value."
    )


def is_hex_color(value: str) -> bool:
    """True when the value is written as '#...' or '0x...'."""
    return value.startswith("#") or value.lower().startswith("0x")


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


def artifact_path(work_dir: str | Path, prefix: str, content: str, suffix: str) -> Path:
    """Deterministic file path for a generated artifact.

    The name is derived from a hash of the content, so compiling the same
    clip list twice references the same files and yields the same graph.
    """
    digest = hashlib.sha1(content.encode("utf-8")).hexdigest()[:12]
    return Path(work_dir) / f"{prefix}_{digest}{suffix}"
