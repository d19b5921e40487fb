from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from domewarp.api.warp_io import export_bourke_mesh, load_warp_map, save_warp_map
from domewarp.config import WarpConfig, WarpGeometry, load_warp_config, save_warp_config
from domewarp.core.image_io import load_image_u8, save_image_u8
from domewarp.render.patterns import PATTERNS, make_pattern
from domewarp.render.remap import warp_image
from domewarp.warp.pipeline import compute_warp_map

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool = False) -> None:
    """Configure logging for CLI (stderr, level from --verbose or DOMEWARP_LOG)."""
    level = logging.DEBUG if verbose else logging.WARNING
    env_level = os.environ.get("DOMEWARP_LOG", "").upper()
    if env_level in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        level = getattr(logging, env_level)
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _geometry(config_path: Path | None) -> WarpGeometry:
    cfg = load_warp_config(config_path) if config_path is not None else WarpConfig()
    return WarpGeometry.from_config(cfg)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="domewarp")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging on stderr.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    dc = sub.add_parser("default-config", help="Write the reference mirror/dome configuration as JSON.")
    dc.add_argument("--out", type=Path, required=True)

    comp = sub.add_parser("compute", help="Compute a per-pixel warp map (warp.json + maps.npz).")
    comp.add_argument("--config", type=Path, default=None, help="Config JSON (default: reference values).")
    comp.add_argument("--out", type=Path, required=True, help="Output directory.")
    comp.add_argument("--width", type=int, default=512)
    comp.add_argument("--height", type=int, default=512)
    comp.add_argument("--workers", type=int, default=1, help="Threads evaluating row chunks.")
    comp.add_argument("--rows-per-chunk", type=int, default=64)

    mesh = sub.add_parser("export-mesh", help="Export the warp as a Paul Bourke meshmapper file.")
    mesh.add_argument("--config", type=Path, default=None, help="Config JSON (default: reference values).")
    mesh.add_argument("--out", type=Path, required=True)
    mesh.add_argument("--nx", type=int, default=64)
    mesh.add_argument("--ny", type=int, default=48)

    wi = sub.add_parser("warp-image", help="Pre-distort a dome-master image with a saved warp map.")
    wi.add_argument("--map", type=Path, required=True, help="Directory written by `compute`.")
    wi.add_argument("--out", type=Path, required=True)
    src = wi.add_mutually_exclusive_group(required=True)
    src.add_argument("--input", type=Path, help="Dome-master (fisheye) source image.")
    src.add_argument("--pattern", type=str, choices=sorted(PATTERNS), help="Use a generated test pattern.")
    wi.add_argument("--pattern-size", type=int, default=1024)
    wi.add_argument("--interp", type=str, default="linear", choices=["nearest", "linear", "cubic", "lanczos4"])

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.cmd == "default-config":
        save_warp_config(args.out, WarpConfig())
        print(f"Wrote {args.out}")
        return 0

    if args.cmd == "compute":
        geometry = _geometry(args.config)
        warp_map = compute_warp_map(
            geometry,
            args.width,
            args.height,
            workers=args.workers,
            rows_per_chunk=args.rows_per_chunk,
        )
        json_path = save_warp_map(args.out, warp_map)
        print(f"Wrote {json_path} (coverage {100.0 * warp_map.coverage:.1f}%)")
        return 0

    if args.cmd == "export-mesh":
        path = export_bourke_mesh(args.out, _geometry(args.config), nx=args.nx, ny=args.ny)
        print(f"Wrote {path}")
        return 0

    if args.cmd == "warp-image":
        warp_map = load_warp_map(args.map)
        if args.input is not None:
            image = load_image_u8(args.input, mode="RGB")
        else:
            image = make_pattern(args.pattern, args.pattern_size)
        logger.debug("warping %s source (%dx%d)", args.input or args.pattern, image.shape[1], image.shape[0])
        out = warp_image(image, warp_map, interp=args.interp)
        save_image_u8(args.out, out)
        print(f"Wrote {args.out}")
        return 0

    raise AssertionError(f"Unhandled cmd: {args.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
