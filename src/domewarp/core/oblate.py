from __future__ import annotations

import numpy as np

# Rounding slack allowed below the domain of acosh before the input is rejected.
_DOMAIN_SLACK = 1e-12


class FocalRegionError(ValueError):
    """The point cannot be expressed in oblate spheroidal coordinates for this focal parameter."""


def cartesian_from_oblate(a: float, mu: np.ndarray, nu: np.ndarray, phi: np.ndarray) -> np.ndarray:
    """
    Oblate spheroidal (mu, nu, phi) -> Cartesian (x, y, z), stacked on the last axis.

    The symmetry axis is z; constant-mu surfaces are spheroids with equatorial
    radius a*cosh(mu) and polar semi-axis a*sinh(mu).
    """
    mu = np.asarray(mu, dtype=np.float64)
    nu = np.asarray(nu, dtype=np.float64)
    phi = np.asarray(phi, dtype=np.float64)
    rho = a * np.cosh(mu) * np.cos(nu)
    x = rho * np.cos(phi)
    y = rho * np.sin(phi)
    z = a * np.sinh(mu) * np.sin(nu)
    return np.stack(np.broadcast_arrays(x, y, z), axis=-1)


def oblate_from_cartesian(a: float, xyz: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Cartesian (x, y, z) -> oblate spheroidal (mu, nu, phi).

    Uses the two distances d1, d2 from the focal ring in the meridian plane:
    cosh(mu) = (d1 + d2) / 2a and cos(nu) = (d1 - d2) / 2a. nu takes the sign of z,
    so nu lies in [-pi/2, pi/2]. Points on the focal disk map to mu = 0.

    Raises FocalRegionError for a non-positive focal parameter, non-finite input,
    or a point whose distance sum falls below 2a by more than rounding.
    """
    a = float(a)
    if not (np.isfinite(a) and a > 0.0):
        raise FocalRegionError(f"focal parameter must be finite and > 0, got {a}")
    xyz = np.asarray(xyz, dtype=np.float64)
    if xyz.shape[-1] != 3:
        raise ValueError("xyz must have a trailing dimension of size 3")
    if not np.all(np.isfinite(xyz)):
        raise FocalRegionError("non-finite point")

    x = xyz[..., 0]
    y = xyz[..., 1]
    z = xyz[..., 2]
    phi = np.arctan2(y, x)
    rho = np.hypot(x, y)
    d1 = np.hypot(rho + a, z)
    d2 = np.hypot(rho - a, z)

    cosh_mu = (d1 + d2) / (2.0 * a)
    if np.any(cosh_mu < 1.0 - _DOMAIN_SLACK):
        raise FocalRegionError("point lies inside the focal region (d1 + d2 < 2a)")
    cos_nu = (d1 - d2) / (2.0 * a)

    mu = np.arccosh(np.maximum(cosh_mu, 1.0))
    nu = np.copysign(np.arccos(np.clip(cos_nu, -1.0, 1.0)), z)
    return mu, nu, phi


def oblate_normal(mu: np.ndarray, nu: np.ndarray, phi: np.ndarray) -> np.ndarray:
    """Unit outward normal of the constant-mu shell through (mu, nu, phi)."""
    mu = np.asarray(mu, dtype=np.float64)
    nu = np.asarray(nu, dtype=np.float64)
    phi = np.asarray(phi, dtype=np.float64)
    sinh_mu = np.sinh(mu)
    sin_nu = np.sin(nu)
    scale = 1.0 / np.sqrt(sinh_mu * sinh_mu + sin_nu * sin_nu)
    radial = scale * sinh_mu * np.cos(nu)
    n = (radial * np.cos(phi), radial * np.sin(phi), scale * np.cosh(mu) * sin_nu)
    return np.stack(np.broadcast_arrays(*n), axis=-1)
