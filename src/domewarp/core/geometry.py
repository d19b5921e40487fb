from __future__ import annotations

import math

import numpy as np


def dot(u: np.ndarray, w: np.ndarray) -> np.ndarray:
    return np.sum(np.asarray(u, dtype=np.float64) * np.asarray(w, dtype=np.float64), axis=-1)


def normalize(vec: np.ndarray) -> np.ndarray:
    vec = np.asarray(vec, dtype=np.float64)
    norms = np.linalg.norm(vec, axis=-1, keepdims=True)
    return vec / norms


def reflect(direction: np.ndarray, normal: np.ndarray) -> np.ndarray:
    """
    Mirror reflection of `direction` about the surface with unit `normal`:
    r = d - 2 (d . n) n.
    """
    direction = np.asarray(direction, dtype=np.float64)
    normal = np.asarray(normal, dtype=np.float64)
    return direction - 2.0 * dot(direction, normal)[..., None] * normal


def rotate_about_y(vec: np.ndarray, angle: float) -> np.ndarray:
    """
    Rotate (x, z) components by `angle` (radians); positive angles turn +x towards +z.
    """
    vec = np.asarray(vec, dtype=np.float64)
    c = math.cos(angle)
    s = math.sin(angle)
    x = vec[..., 0]
    z = vec[..., 2]
    return np.stack([c * x - s * z, vec[..., 1], s * x + c * z], axis=-1)
