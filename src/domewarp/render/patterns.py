from __future__ import annotations

import numpy as np


def dome_grid_texture(
    size: int = 1024,
    altitude_step_deg: float = 15.0,
    azimuth_step_deg: float = 30.0,
    line_width_deg: float = 0.6,
) -> np.ndarray:
    """
    Returns a uint8 (size,size) azimuthal-equidistant dome master with an
    altitude/azimuth grid: bright lines on a mid-gray disk, black outside the
    springline circle. Useful to preview a warp without source footage.
    """
    size = int(size)
    if size <= 0:
        raise ValueError("size must be > 0")

    c = (size - 1) * 0.5
    yy, xx = np.meshgrid(np.arange(size, dtype=np.float64), np.arange(size, dtype=np.float64), indexing="ij")
    dx = (xx - c) / (0.5 * size)
    dy = (c - yy) / (0.5 * size)
    r = np.hypot(dx, dy)  # 1.0 at the springline
    polar_deg = r * 90.0
    azimuth_deg = np.degrees(np.arctan2(dy, dx)) % 360.0

    half = 0.5 * float(line_width_deg)
    alt_dist = np.abs(((polar_deg + 0.5 * altitude_step_deg) % altitude_step_deg) - 0.5 * altitude_step_deg)
    # Azimuth lines keep a constant width on the dome, so widen them towards the zenith.
    az_width = half / np.maximum(np.sin(np.radians(np.minimum(polar_deg, 90.0))), 1e-3)
    az_dist = np.abs(((azimuth_deg + 0.5 * azimuth_step_deg) % azimuth_step_deg) - 0.5 * azimuth_step_deg)

    tex = np.full((size, size), 96, dtype=np.uint8)
    tex[(alt_dist <= half) | (az_dist <= az_width)] = 255
    tex[r > 1.0] = 0
    return tex


def checker_texture(size: int = 1024, squares: int = 16) -> np.ndarray:
    """Plain checkerboard over the full texture square (uint8)."""
    size = int(size)
    squares = max(1, int(squares))
    cell = size / float(squares)
    idx = np.floor(np.arange(size, dtype=np.float64) / cell).astype(np.int32)
    gy, gx = np.meshgrid(idx, idx, indexing="ij")
    v = ((gx + gy) & 1).astype(np.uint8)
    return (0.2 * 255 + 0.7 * 255 * v).astype(np.uint8)


PATTERNS = {
    "grid": dome_grid_texture,
    "checker": checker_texture,
}


def make_pattern(name: str, size: int = 1024) -> np.ndarray:
    if name not in PATTERNS:
        raise ValueError(f"pattern must be one of {'|'.join(sorted(PATTERNS))}")
    return PATTERNS[name](size)

