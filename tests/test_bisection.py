import numpy as np
import pytest

from domewarp.core.bisection import bisect_crossing, bisection_steps


def test_bisection_steps_for_relative_tolerance():
    assert bisection_steps(1.0, 1e-8) == 27
    assert bisection_steps(3.0, 1e-8) == 29
    assert bisection_steps(3.658 * 3.0, 3.658 * 1e-8) <= 60
    assert bisection_steps(0.5, 1.0) == 0
    with pytest.raises(ValueError):
        bisection_steps(1.0, 0.0)


def test_bisect_scalar_root():
    steps = bisection_steps(2.0, 1e-12)
    root = bisect_crossing(lambda t: t * t < 2.0, 0.0, 2.0, steps)
    assert abs(float(root) - np.sqrt(2.0)) < 1e-12


def test_bisect_runs_uniform_steps_per_element():
    roots = np.array([0.1, 0.5, 0.9])
    calls = []

    def not_reached(t):
        calls.append(t.shape)
        return t < roots

    steps = bisection_steps(1.0, 1e-10)
    out = bisect_crossing(not_reached, np.zeros(3), np.ones(3), steps)
    assert len(calls) == steps
    assert np.max(np.abs(out - roots)) < 1e-10
