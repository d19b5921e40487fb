from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image


def load_image_u8(path: str | Path, mode: str = "RGB") -> np.ndarray:
    """
    Load an image as uint8, converted to the Pillow `mode` ("L" -> (H,W), "RGB" -> (H,W,3)).
    """
    with Image.open(Path(path)) as im:
        im = im.convert(mode)
        arr = np.asarray(im, dtype=np.uint8)
    return arr


def save_image_u8(path: str | Path, img_u8: np.ndarray) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    arr = np.asarray(img_u8)
    if arr.dtype != np.uint8:
        arr = np.clip(arr, 0, 255).astype(np.uint8)
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[..., 0]
    im = Image.fromarray(arr)
    if p.suffix.lower() == ".webp":
        im.save(p, lossless=True)
    else:
        im.save(p)
    return p
