"""
Mirror reflection -> dome sphere intersection -> dome-master texture coordinates.

Dome frame: the dome sphere of radius S is centred at the origin with z up and
the springline in the plane z = 0. The mirror frame is tilted by alpha about y
and its origin sits at (-M, 0, -H) in the dome frame.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from domewarp.config import WarpGeometry
from domewarp.core.bisection import bisect_crossing
from domewarp.core.geometry import normalize, reflect, rotate_about_y
from domewarp.core.oblate import cartesian_from_oblate, oblate_normal
from domewarp.warp.mirror import MirrorHit


@dataclass(frozen=True)
class DomeHit:
    location: np.ndarray  # (...,3) mirror point, mirror frame
    normal: np.ndarray  # (...,3) mirror normal, mirror frame
    reflected: np.ndarray  # (...,3) unit reflected direction, dome frame
    floor_distance: np.ndarray  # ray parameter where z = 0 is reached
    distance: np.ndarray  # ray parameter of the dome hit
    point: np.ndarray  # (...,3) dome hit, dome frame
    intensity: np.ndarray


@dataclass(frozen=True)
class DomeCoords:
    polar: np.ndarray
    azimuth: np.ndarray
    altitude: np.ndarray
    u: np.ndarray
    v: np.ndarray


def to_dome_frame(geometry: WarpGeometry, location: np.ndarray, direction: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    location = rotate_about_y(location, geometry.alpha) - np.array([geometry.M, 0.0, geometry.H])
    direction = rotate_about_y(direction, geometry.alpha)
    return location, direction


def intersect_dome(geometry: WarpGeometry, mirror: MirrorHit) -> DomeHit:
    location = cartesian_from_oblate(geometry.a, mirror.mu, mirror.nu, mirror.phi)
    normal = oblate_normal(mirror.mu, mirror.nu, mirror.phi)
    reflected = reflect(mirror.incident, normal)

    origin, direction = to_dome_frame(geometry, location, reflected)
    direction = normalize(direction)

    S = geometry.S
    rz = direction[..., 2]
    upward = rz > 0.0
    # Parameter where the reflected ray crosses the springline plane; clamped to 0
    # when the mirror point is already above it.
    rzz = np.where(upward, -origin[..., 2] / np.where(upward, rz, 1.0), 0.0)
    rzz = np.maximum(rzz, 0.0)
    floor_point = origin + rzz[..., None] * direction
    inside = np.linalg.norm(floor_point, axis=-1) <= S
    ok = upward & inside
    intensity = mirror.intensity * ok

    # Rejected rays start at the mirror point (inside the dome) so the bracket stays valid.
    lower = np.where(ok, rzz, 0.0)

    def not_reached(t: np.ndarray) -> np.ndarray:
        p = origin + t[..., None] * direction
        return np.linalg.norm(p, axis=-1) < S

    distance = bisect_crossing(not_reached, lower, np.full(lower.shape, 3.0 * S), geometry.dome_steps)
    point = origin + distance[..., None] * direction
    return DomeHit(
        location=location,
        normal=normal,
        reflected=direction,
        floor_distance=rzz,
        distance=distance,
        point=point,
        intensity=intensity,
    )


def dome_coordinates(geometry: WarpGeometry, point: np.ndarray) -> DomeCoords:
    """
    Dome hit -> azimuthal equidistant (fisheye dome-master) texture coordinates.

    The polar angle is measured from the zenith; a polar angle of pi/2 (the
    springline) lands on the unit circle of the [0,1]^2 texture.
    """
    point = np.asarray(point, dtype=np.float64)
    x = point[..., 0]
    y = point[..., 1]
    z = point[..., 2]
    # Same angle as acos(z / S) on the sphere, without the acos domain edge at the zenith.
    polar = np.arctan2(np.hypot(x, y), z)
    azimuth = np.arctan2(y, x)
    scale = 0.5 / (0.5 * math.pi)
    u = np.clip(scale * polar * np.cos(azimuth + geometry.phase) + 0.5, 0.0, 1.0)
    v = np.clip(scale * polar * np.sin(azimuth + geometry.phase) + 0.5, 0.0, 1.0)
    return DomeCoords(polar=polar, azimuth=azimuth, altitude=0.5 * math.pi - polar, u=u, v=v)
