import numpy as np
import pytest

from domewarp.core.oblate import FocalRegionError, cartesian_from_oblate, oblate_from_cartesian, oblate_normal


def _random_coords(rng: np.random.Generator, n: int = 2000):
    mu = rng.uniform(0.05, 2.5, size=n)
    nu = rng.uniform(-0.5 * np.pi + 0.05, 0.5 * np.pi - 0.05, size=n)
    phi = rng.uniform(-np.pi + 0.01, np.pi - 0.01, size=n)
    return mu, nu, phi


@pytest.mark.parametrize("a", [0.05, 0.37, 2.0])
def test_oblate_roundtrip(a: float):
    rng = np.random.default_rng(0)
    mu, nu, phi = _random_coords(rng)
    xyz = cartesian_from_oblate(a, mu, nu, phi)
    assert xyz.shape == (mu.size, 3)
    mu2, nu2, phi2 = oblate_from_cartesian(a, xyz)
    assert np.max(np.abs(mu2 - mu)) < 1e-6
    assert np.max(np.abs(nu2 - nu)) < 1e-6
    assert np.max(np.abs(phi2 - phi)) < 1e-6


def test_lower_half_keeps_sign_of_nu():
    a = 0.18
    p = np.array([0.2, 0.1, -0.3])
    mu, nu, phi = oblate_from_cartesian(a, p)
    assert nu < 0.0
    assert np.linalg.norm(cartesian_from_oblate(a, mu, nu, phi) - p) < 1e-12


def test_focal_disk_maps_to_mu_zero():
    a = 0.37
    mu, nu, _phi = oblate_from_cartesian(a, np.array([0.5 * a, 0.0, 0.0]))
    assert np.isfinite(mu) and np.isfinite(nu)
    assert mu < 1e-7
    assert abs(nu - np.pi / 3.0) < 1e-7


def test_normal_is_unit_and_outward():
    rng = np.random.default_rng(1)
    a = 0.4
    mu, nu, phi = _random_coords(rng, 500)
    n = oblate_normal(mu, nu, phi)
    assert np.max(np.abs(np.linalg.norm(n, axis=-1) - 1.0)) < 1e-6

    h = 1e-6
    d_mu = cartesian_from_oblate(a, mu + h, nu, phi) - cartesian_from_oblate(a, mu - h, nu, phi)
    assert np.all(np.sum(n * d_mu, axis=-1) > 0.0)


def test_normal_is_orthogonal_to_shell():
    rng = np.random.default_rng(2)
    a = 0.4
    mu, nu, phi = _random_coords(rng, 500)
    n = oblate_normal(mu, nu, phi)
    h = 1e-6
    for t in (
        cartesian_from_oblate(a, mu, nu + h, phi) - cartesian_from_oblate(a, mu, nu - h, phi),
        cartesian_from_oblate(a, mu, nu, phi + h) - cartesian_from_oblate(a, mu, nu, phi - h),
    ):
        t_len = np.linalg.norm(t, axis=-1)
        cos = np.abs(np.sum(n * t, axis=-1)) / t_len
        assert np.max(cos) < 1e-6


def test_inverse_rejects_bad_input():
    with pytest.raises(FocalRegionError):
        oblate_from_cartesian(0.0, np.array([1.0, 0.0, 0.0]))
    with pytest.raises(FocalRegionError):
        oblate_from_cartesian(0.3, np.array([np.nan, 0.0, 0.0]))
    with pytest.raises(ValueError):
        oblate_from_cartesian(0.3, np.array([1.0, 0.0]))
    assert issubclass(FocalRegionError, ValueError)
