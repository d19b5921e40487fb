from domewarp.api.warp_io import WarpMapFormatError, export_bourke_mesh, load_warp_map, save_warp_map

__all__ = [
    "WarpMapFormatError",
    "export_bourke_mesh",
    "load_warp_map",
    "save_warp_map",
]
