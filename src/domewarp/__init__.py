from domewarp.api import WarpMapFormatError, export_bourke_mesh, load_warp_map, save_warp_map
from domewarp.config import ConfigValidationError, WarpConfig, WarpGeometry, load_warp_config, parse_warp_config
from domewarp.core.oblate import FocalRegionError
from domewarp.render.remap import warp_image
from domewarp.warp.pipeline import WarpMap, compute_warp_map, trace_rays, warp_coordinates

__all__ = [
    "ConfigValidationError",
    "FocalRegionError",
    "WarpConfig",
    "WarpGeometry",
    "WarpMap",
    "WarpMapFormatError",
    "compute_warp_map",
    "export_bourke_mesh",
    "load_warp_config",
    "load_warp_map",
    "parse_warp_config",
    "save_warp_map",
    "trace_rays",
    "warp_coordinates",
    "warp_image",
]
