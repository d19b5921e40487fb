"""
Projector ray -> mirror surface intersection.

Mirror frame: the spheroid is centred at the origin with its symmetry axis
along z, and the projector lens sits on that axis at (0, 0, v) looking down -z.
A projector ray is parametrized by its distance parameter d as
(d sin a1, d sin a2, v - d).
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from domewarp.config import WarpGeometry
from domewarp.core.bisection import bisect_crossing
from domewarp.core.geometry import normalize
from domewarp.core.oblate import oblate_from_cartesian


@dataclass(frozen=True)
class MirrorHit:
    mu: np.ndarray
    nu: np.ndarray
    phi: np.ndarray
    distance: np.ndarray
    incident: np.ndarray  # (...,3) unit ray direction
    intensity: np.ndarray  # 0.0 where the ray misses the mirror


def projector_angles(geometry: WarpGeometry, sx: np.ndarray, sy: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Screen coordinates in [0,1] -> (horizontal, vertical) projector ray angles."""
    sx = np.asarray(sx, dtype=np.float64)
    sy = np.asarray(sy, dtype=np.float64)
    a1 = geometry.beam * (sx - 0.5)
    a2 = geometry.gamma * sy + geometry.beta
    a1, a2 = np.broadcast_arrays(a1, a2)
    return a1, a2


def ray_point(geometry: WarpGeometry, a1: np.ndarray, a2: np.ndarray, distance: np.ndarray) -> np.ndarray:
    distance = np.asarray(distance, dtype=np.float64)
    x = distance * np.sin(a1)
    y = distance * np.sin(a2)
    z = geometry.v - distance
    return np.stack(np.broadcast_arrays(x, y, z), axis=-1)


def reaches_mirror(geometry: WarpGeometry, a1: np.ndarray, a2: np.ndarray) -> np.ndarray:
    """
    Quick test on the ray point in the mirror's equatorial plane (d = v).

    A ray whose equatorial-plane point lies outside the mirror spheroid misses it.
    A point exactly on the rim counts as a hit.
    """
    mu1, _nu, _phi = oblate_from_cartesian(geometry.a, ray_point(geometry, a1, a2, geometry.v))
    return mu1 <= geometry.mu


def intersect_mirror(geometry: WarpGeometry, sx: np.ndarray, sy: np.ndarray) -> MirrorHit:
    a1, a2 = projector_angles(geometry, sx, sy)
    intensity = reaches_mirror(geometry, a1, a2).astype(np.float64)

    def not_reached(d: np.ndarray) -> np.ndarray:
        mu1, _nu, _phi = oblate_from_cartesian(geometry.a, ray_point(geometry, a1, a2, d))
        return mu1 > geometry.mu

    # At d = v - R the ray point is at height R >= b, i.e. outside the mirror;
    # at d = v it is in the equatorial plane. Rejected rays run the same loop.
    distance = bisect_crossing(
        not_reached,
        np.full(a1.shape, geometry.v - geometry.R),
        np.full(a1.shape, geometry.v),
        geometry.mirror_steps,
    )
    mu1, nu1, phi1 = oblate_from_cartesian(geometry.a, ray_point(geometry, a1, a2, distance))
    incident = normalize(np.stack([np.sin(a1), np.sin(a2), -np.ones_like(a1)], axis=-1))
    return MirrorHit(mu=mu1, nu=nu1, phi=phi1, distance=distance, incident=incident, intensity=intensity)
