"""Gradient backgrounds for color clips.

Renders linear (vertical, horizontal or any angle) and radial gradients
with two or more evenly spaced color stops into an RGB image, which the
picture builder then feeds through the still-image path.
"""

import math
from pathlib import Path

import numpy as np
from PIL import Image

from .clips import Gradient
from .common import artifact_path, parse_color


def interpolate_stops(stops: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Map positions t (0..1, any shape) onto evenly spaced color stops.

    Args:
        stops: (n, 3) array of RGB stops, n >= 2.
        t: Positions along the gradient; clamped to [0, 1].

    Returns:
        uint8 array of shape t.shape + (3,).
    """
    segments = len(stops) - 1
    seg_float = np.clip(t, 0.0, 1.0) * segments
    seg_idx = np.minimum(np.floor(seg_float).astype(int), segments - 1)
    seg_t = (seg_float - seg_idx)[..., None]

    c0 = stops[seg_idx]
    c1 = stops[seg_idx + 1]
    rgb = np.floor(c0 + (c1 - c0) * seg_t + 0.5)
    return rgb.astype(np.uint8)


def gradient_positions(gradient: Gradient, width: int, height: int) -> np.ndarray:
    """Per-pixel gradient position t, shape (height, width)."""
    xs = np.arange(width, dtype=float)
    ys = np.arange(height, dtype=float)
    gx, gy = np.meshgrid(xs, ys)

    if gradient.type == "radial-gradient":
        cx = (width - 1) / 2
        cy = (height - 1) / 2
        max_dist = math.hypot(cx, cy) or 1.0
        return np.hypot(gx - cx, gy - cy) / max_dist

    nx = gx / (width - 1) if width > 1 else np.full_like(gx, 0.5)
    ny = gy / (height - 1) if height > 1 else np.full_like(gy, 0.5)
    if gradient.direction == "horizontal":
        dx, dy = 1.0, 0.0
    elif gradient.direction == "vertical":
        dx, dy = 0.0, 1.0
    else:
        rad = math.radians(gradient.direction)
        dx, dy = math.cos(rad), math.sin(rad)
    return nx * dx + ny * dy


def render_gradient(gradient: Gradient, width: int, height: int) -> np.ndarray:
    """Render a gradient to an (height, width, 3) uint8 frame."""
    stops = np.array([parse_color(c) for c in gradient.colors], dtype=float)
    return interpolate_stops(stops, gradient_positions(gradient, width, height))


def write_gradient(gradient: Gradient, width: int, height: int,
                   work_dir: str | Path) -> Path:
    """Write the gradient as PNG under work_dir and return the path.

    The file name is derived from the gradient and canvas size, so an
    existing file is reused as-is.
    """
    key = f"{gradient.model_dump_json()}|{width}x{height}"
    path = artifact_path(work_dir, "gradient", key, ".png")
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.fromarray(render_gradient(gradient, width, height)).save(path)
    return path
