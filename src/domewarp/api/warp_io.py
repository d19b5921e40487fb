from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import numpy as np

from domewarp.config import ConfigValidationError, WarpGeometry, config_to_dict, parse_warp_config
from domewarp.warp.pipeline import WarpMap, warp_coordinates

logger = logging.getLogger(__name__)

WARPMAP_SCHEMA = "domewarp.warpmap.v0"


class WarpMapFormatError(ValueError):
    pass


def save_warp_map(map_dir: Path, warp_map: WarpMap) -> Path:
    """
    Save a warp map into a directory:

      warp.json + maps.npz

    The JSON holds the schema, the image size and the full optical configuration;
    the NPZ holds the (H,W) arrays u, v (float32) and intensity (uint8).
    """
    map_dir = Path(map_dir)
    map_dir.mkdir(parents=True, exist_ok=True)

    maps_path = map_dir / "maps.npz"
    np.savez_compressed(
        maps_path,
        u=np.asarray(warp_map.u, dtype=np.float32),
        v=np.asarray(warp_map.v, dtype=np.float32),
        intensity=np.asarray(warp_map.intensity, dtype=np.uint8),
    )

    meta: dict[str, Any] = {
        "schema_version": WARPMAP_SCHEMA,
        "image": {"width_px": warp_map.width, "height_px": warp_map.height},
        "coverage": warp_map.coverage,
        "config": config_to_dict(warp_map.config),
        "maps": {"format": "npz", "path": maps_path.name, "keys": ["u", "v", "intensity"]},
    }
    json_path = map_dir / "warp.json"
    json_path.write_text(json.dumps(meta, indent=2, sort_keys=True), encoding="utf-8")
    logger.info("wrote warp map %s", json_path)
    return json_path


def load_warp_map(map_dir: Path) -> WarpMap:
    map_dir = Path(map_dir)
    json_path = map_dir / "warp.json"
    if not json_path.exists():
        raise FileNotFoundError(f"Missing {json_path}")
    meta = json.loads(json_path.read_text(encoding="utf-8"))
    if str(meta.get("schema_version")) != WARPMAP_SCHEMA:
        raise WarpMapFormatError(f"{json_path} schema_version must be {WARPMAP_SCHEMA}")

    try:
        config = parse_warp_config(meta["config"])
        w = int(meta["image"]["width_px"])
        h = int(meta["image"]["height_px"])
        maps_path = map_dir / str(meta["maps"]["path"])
    except KeyError as e:
        raise WarpMapFormatError(f"{json_path} missing key: {e}") from e
    except ConfigValidationError as e:
        raise WarpMapFormatError(f"{json_path} invalid config: {e}") from e

    with np.load(str(maps_path)) as npz:
        arrays = {}
        for k in ("u", "v", "intensity"):
            if k not in npz:
                raise WarpMapFormatError(f"{maps_path} missing key: {k}")
            arrays[k] = np.asarray(npz[k])

    for k, arr in arrays.items():
        if arr.shape != (h, w):
            raise WarpMapFormatError(f"{maps_path} {k} has shape {arr.shape}, expected {(h, w)}")

    return WarpMap(
        config=config,
        u=arrays["u"].astype(np.float64),
        v=arrays["v"].astype(np.float64),
        intensity=arrays["intensity"].astype(np.uint8),
    )


def export_bourke_mesh(path: Path, geometry: WarpGeometry, nx: int = 64, ny: int = 48) -> Path:
    """
    Write the warp as a Paul Bourke "meshmapper" mesh file.

    Layout: a type line (2 = rectangular mesh), then "nx ny", then ny rows of nx
    nodes, each "x y u v intensity". x spans [-aspect, aspect] and y spans [-1, 1]
    across the projector image; u, v are dome-master texture coordinates.
    Node values are evaluated directly on the node positions.
    """
    nx = int(nx)
    ny = int(ny)
    if nx < 2 or ny < 2:
        raise ValueError("mesh needs at least 2x2 nodes")

    sx = np.linspace(0.0, 1.0, nx)
    sy = np.linspace(0.0, 1.0, ny)
    gx, gy = np.meshgrid(sx, sy)
    u, v, intensity = warp_coordinates(geometry, gx, gy)
    x = (2.0 * gx - 1.0) * geometry.ar
    y = 2.0 * gy - 1.0

    lines = ["2", f"{nx} {ny}"]
    for j in range(ny):
        for i in range(nx):
            lines.append(f"{x[j, i]:.6f} {y[j, i]:.6f} {u[j, i]:.6f} {v[j, i]:.6f} {intensity[j, i]:.0f}")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.info("wrote %dx%d mesh %s", nx, ny, path)
    return path

