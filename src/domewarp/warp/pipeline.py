from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np

from domewarp.config import WarpConfig, WarpGeometry
from domewarp.warp.dome import DomeCoords, DomeHit, dome_coordinates, intersect_dome
from domewarp.warp.mirror import MirrorHit, intersect_mirror, projector_angles

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RayTrace:
    """All intermediate values of the warp for a batch of screen coordinates."""

    sx: np.ndarray
    sy: np.ndarray
    a1: np.ndarray
    a2: np.ndarray
    mirror: MirrorHit
    dome: DomeHit
    coords: DomeCoords

    @property
    def u(self) -> np.ndarray:
        return self.coords.u

    @property
    def v(self) -> np.ndarray:
        return self.coords.v

    @property
    def intensity(self) -> np.ndarray:
        return self.dome.intensity


def trace_rays(geometry: WarpGeometry, sx: np.ndarray, sy: np.ndarray) -> RayTrace:
    sx, sy = np.broadcast_arrays(np.asarray(sx, dtype=np.float64), np.asarray(sy, dtype=np.float64))
    a1, a2 = projector_angles(geometry, sx, sy)
    mirror = intersect_mirror(geometry, sx, sy)
    dome = intersect_dome(geometry, mirror)
    coords = dome_coordinates(geometry, dome.point)
    return RayTrace(sx=sx, sy=sy, a1=a1, a2=a2, mirror=mirror, dome=dome, coords=coords)


def warp_coordinates(geometry: WarpGeometry, sx: np.ndarray, sy: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Screen coordinates in [0,1]^2 -> (u, v, intensity).

    (u, v) is the dome-master texture coordinate to sample; intensity is 1.0 where
    the ray reaches the dome through the mirror and 0.0 where it must stay black.
    Every element runs the full computation, hit or miss.
    """
    t = trace_rays(geometry, sx, sy)
    return t.u, t.v, t.intensity


def screen_grid(width: int, height: int) -> tuple[np.ndarray, np.ndarray]:
    """
    Pixel-centre screen coordinates shaped (H,W).

    Convention: row 0 is the top of the projector image, sy grows upwards.
    """
    cols = (np.arange(width, dtype=np.float64) + 0.5) / float(width)
    rows = 1.0 - (np.arange(height, dtype=np.float64) + 0.5) / float(height)
    sx, sy = np.meshgrid(cols, rows)
    return sx, sy


@dataclass(frozen=True)
class WarpMap:
    config: WarpConfig
    u: np.ndarray  # (H,W) float
    v: np.ndarray  # (H,W) float
    intensity: np.ndarray  # (H,W) uint8 in {0,1}

    @property
    def width(self) -> int:
        return int(self.u.shape[1])

    @property
    def height(self) -> int:
        return int(self.u.shape[0])

    @property
    def coverage(self) -> float:
        """Fraction of screen pixels that reach the dome."""
        return float(np.mean(self.intensity)) if self.intensity.size else 0.0

    def pixel_maps(self, src_width: int, src_height: int) -> tuple[np.ndarray, np.ndarray]:
        """
        Source pixel coordinates for cv2.remap, float32 (H,W).

        Texture v = 1 is the top row of the source image; pixel centres sit at
        integer coordinates.
        """
        map_x = (np.asarray(self.u, dtype=np.float64) * src_width - 0.5).astype(np.float32)
        map_y = ((1.0 - np.asarray(self.v, dtype=np.float64)) * src_height - 0.5).astype(np.float32)
        return map_x, map_y


def compute_warp_map(
    geometry: WarpGeometry,
    width: int = 512,
    height: int = 512,
    *,
    workers: int = 1,
    rows_per_chunk: int = 64,
) -> WarpMap:
    """
    Evaluate the warp on every pixel of a width x height projector image.

    Row chunks are independent and write disjoint slices, so `workers > 1`
    runs them on a thread pool without changing the result.
    """
    width = int(width)
    height = int(height)
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be > 0")
    rows_per_chunk = max(1, int(rows_per_chunk))
    workers = max(1, int(workers))

    sx, sy = screen_grid(width, height)
    u = np.empty((height, width), dtype=np.float64)
    v = np.empty((height, width), dtype=np.float64)
    intensity = np.empty((height, width), dtype=np.uint8)

    def run(r0: int) -> None:
        r1 = min(height, r0 + rows_per_chunk)
        cu, cv, ci = warp_coordinates(geometry, sx[r0:r1], sy[r0:r1])
        u[r0:r1] = cu
        v[r0:r1] = cv
        intensity[r0:r1] = ci.astype(np.uint8)

    starts = list(range(0, height, rows_per_chunk))
    logger.debug(
        "computing %dx%d warp map in %d chunks (%d rows each, %d workers)",
        width,
        height,
        len(starts),
        rows_per_chunk,
        workers,
    )
    if workers == 1:
        for r0 in starts:
            run(r0)
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # list() re-raises the first worker exception here.
            list(executor.map(run, starts))

    warp_map = WarpMap(config=geometry.config, u=u, v=v, intensity=intensity)
    logger.info("warp map %dx%d: %.1f%% of pixels reach the dome", width, height, 100.0 * warp_map.coverage)
    return warp_map
