from __future__ import annotations

import math

import numpy as np
import pytest

from domewarp.config import DomeMeta, MountMeta, OutputMeta, ProjectorMeta, WarpConfig, WarpGeometry
from domewarp.warp.pipeline import compute_warp_map, screen_grid, trace_rays, warp_coordinates


def _symmetric_geometry(offset_x_m: float) -> WarpGeometry:
    cfg = WarpConfig(
        projector=ProjectorMeta(aspect_ratio=1.0),
        mount=MountMeta(alpha_rad=0.0, beta_rad=0.0),
        dome=DomeMeta(offset_x_m=offset_x_m, offset_z_m=1.0),
        output=OutputMeta(phase_angle_rad=-0.5 * math.pi),
    )
    return WarpGeometry.from_config(cfg)


def test_boresight_reaches_zenith_when_mirror_is_centred():
    g = _symmetric_geometry(offset_x_m=0.0)
    t = trace_rays(g, 0.5, 0.0)
    assert float(t.intensity) == 1.0
    assert abs(float(t.coords.altitude) - 0.5 * math.pi) < 1e-9
    assert abs(float(t.u) - 0.5) < 1e-9
    assert abs(float(t.v) - 0.5) < 1e-9
    assert np.allclose(t.dome.reflected, [0.0, 0.0, 1.0])


def test_boresight_reflects_vertically_with_reference_offsets():
    g = _symmetric_geometry(offset_x_m=2.5)
    t = trace_rays(g, 0.5, 0.0)
    assert float(t.intensity) == 1.0
    expected = np.array([-2.5, 0.0, math.sqrt(g.S**2 - 2.5**2)])
    assert np.linalg.norm(t.dome.point - expected) < 1e-6


def test_reference_config_centre_pixel():
    g = WarpGeometry.from_config(WarpConfig())
    u, v, intensity = warp_coordinates(g, 0.5, 0.5)
    assert float(intensity) == 1.0
    assert 0.0 <= float(u) <= 1.0
    assert 0.0 <= float(v) <= 1.0


def test_extreme_beam_edges_are_masked():
    g = WarpGeometry.from_config(WarpConfig(projector=ProjectorMeta(beam_rad=2.0)))
    u, v, intensity = warp_coordinates(g, np.array([0.0, 1.0, 0.0, 1.0]), np.array([0.5, 0.5, 0.1, 0.9]))
    assert np.all(intensity == 0.0)
    assert np.all(np.isfinite(u)) and np.all(np.isfinite(v))


@pytest.mark.parametrize("sy", [0.1, 0.3, 0.5, 0.7, 0.9])
def test_mask_along_a_row_has_few_transitions(sy: float):
    g = WarpGeometry.from_config(WarpConfig())
    sx = np.linspace(0.0, 1.0, 801)
    _u, _v, intensity = warp_coordinates(g, sx, np.full_like(sx, sy))
    transitions = int(np.count_nonzero(np.diff(intensity)))
    assert transitions <= 4
    if sy == 0.5:
        assert intensity[400] == 1.0


def test_outputs_are_finite_and_in_unit_square():
    g = WarpGeometry.from_config(WarpConfig())
    sx, sy = screen_grid(64, 48)
    u, v, intensity = warp_coordinates(g, sx, sy)
    assert u.shape == (48, 64)
    for arr in (u, v):
        assert np.all(np.isfinite(arr))
        assert np.all((arr >= 0.0) & (arr <= 1.0))
    assert set(np.unique(intensity)) <= {0.0, 1.0}
    assert 0.0 < intensity.mean() < 1.0


def test_screen_grid_orientation():
    sx, sy = screen_grid(4, 2)
    assert sx.shape == (2, 4)
    assert np.allclose(sx[0], [0.125, 0.375, 0.625, 0.875])
    assert np.allclose(sy[:, 0], [0.75, 0.25])


def test_warp_map_independent_of_chunking_and_workers():
    g = WarpGeometry.from_config(WarpConfig())
    a = compute_warp_map(g, 40, 30)
    b = compute_warp_map(g, 40, 30, workers=3, rows_per_chunk=7)
    assert np.array_equal(a.intensity, b.intensity)
    assert np.allclose(a.u, b.u, atol=1e-9)
    assert np.allclose(a.v, b.v, atol=1e-9)

    sx, sy = screen_grid(40, 30)
    u, v, intensity = warp_coordinates(g, sx, sy)
    assert np.array_equal(a.intensity, intensity.astype(np.uint8))
    assert np.allclose(a.u, u, atol=1e-9)
    assert a.intensity.dtype == np.uint8
    assert a.config == g.config


def test_warp_map_pixel_maps():
    g = WarpGeometry.from_config(WarpConfig())
    wm = compute_warp_map(g, 8, 6)
    map_x, map_y = wm.pixel_maps(100, 50)
    assert map_x.dtype == np.float32 and map_y.shape == (6, 8)
    assert np.allclose(map_x, wm.u * 100 - 0.5, atol=1e-4)
    assert np.allclose(map_y, (1.0 - wm.v) * 50 - 0.5, atol=1e-4)
    with pytest.raises(ValueError):
        compute_warp_map(g, 0, 6)


def test_flip_flags_do_not_change_the_warp():
    base = WarpGeometry.from_config(WarpConfig())
    flipped = WarpGeometry.from_config(WarpConfig(output=OutputMeta(flip_horizontal=True, flip_vertical=True)))
    sx, sy = screen_grid(16, 12)
    assert np.array_equal(np.stack(warp_coordinates(base, sx, sy)), np.stack(warp_coordinates(flipped, sx, sy)))
