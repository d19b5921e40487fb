"""
Sanity check for the mirror-dome warp on the reference configuration.

Traces a screen grid, reports mask coverage, and verifies that every lit
ray lands on the mirror surface and on the dome hemisphere within the
bisection tolerance.
"""
from __future__ import annotations

import numpy as np

from domewarp.config import WarpConfig, WarpGeometry
from domewarp.core.oblate import cartesian_from_oblate
from domewarp.warp.pipeline import screen_grid, trace_rays


def main():
    g = WarpGeometry.from_config(WarpConfig())
    print(f"mirror: R={g.R:.3f} b={g.b:.3f} a={g.a:.4f} mu={g.mu:.4f} ({g.mirror_steps} bisection steps)")
    print(f"dome:   S={g.S:.3f} M={g.M:.3f} H={g.H:.3f} ({g.dome_steps} bisection steps)")

    sx, sy = screen_grid(256, 192)
    t = trace_rays(g, sx, sy)
    lit = t.intensity == 1.0
    print(f"coverage: {100.0 * lit.mean():.1f}% of {lit.size} pixels")
    if not lit.any():
        print("No lit pixels; check configuration.")
        return

    p = cartesian_from_oblate(g.a, t.mirror.mu, t.mirror.nu, t.mirror.phi)[lit]
    mirror_res = (p[:, 0] ** 2 + p[:, 1] ** 2) / g.R**2 + p[:, 2] ** 2 / g.b**2 - 1.0
    dome_res = np.linalg.norm(t.dome.point[lit], axis=-1) / g.S - 1.0
    print(f"mirror residual: max={np.max(np.abs(mirror_res)):.3e}")
    print(f"dome residual:   max={np.max(np.abs(dome_res)):.3e}")

    alt = np.degrees(t.coords.altitude[lit])
    print(f"altitude range: {alt.min():.2f} .. {alt.max():.2f} deg")
    print(f"u range: {t.u[lit].min():.4f} .. {t.u[lit].max():.4f}")
    print(f"v range: {t.v[lit].min():.4f} .. {t.v[lit].max():.4f}")


if __name__ == "__main__":
    main()
