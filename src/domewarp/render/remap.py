from __future__ import annotations

import cv2
import numpy as np

from domewarp.warp.pipeline import WarpMap

_INTERP_FLAGS = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
    "lanczos4": cv2.INTER_LANCZOS4,
}


def warp_image(image: np.ndarray, warp_map: WarpMap, interp: str = "linear") -> np.ndarray:
    """
    Pre-distort a dome-master image for projection through the mirror.

    Each output pixel samples `image` at its warp-map texture coordinate and is
    multiplied by the intensity mask, so pixels outside the optical path are black.
    Accepts uint8 (H,W) or (H,W,C) images; the output has the warp map's size.
    """
    interp = str(interp)
    if interp not in _INTERP_FLAGS:
        raise ValueError("interp must be nearest|linear|cubic|lanczos4")
    image = np.asarray(image)
    if image.ndim not in (2, 3):
        raise ValueError("image must be (H,W) or (H,W,C)")
    if image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)

    src_h, src_w = image.shape[:2]
    map_x, map_y = warp_map.pixel_maps(src_w, src_h)
    sampled = cv2.remap(
        image,
        map_x,
        map_y,
        interpolation=_INTERP_FLAGS[interp],
        borderMode=cv2.BORDER_REPLICATE,
    )
    if sampled.ndim == 2 and image.ndim == 3:
        # cv2 drops a trailing singleton channel.
        sampled = sampled[..., None]

    mask = warp_map.intensity.astype(bool)
    if sampled.ndim == 3:
        mask = mask[..., None]
    return np.where(mask, sampled, 0).astype(np.uint8)
