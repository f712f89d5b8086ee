from __future__ import annotations

import math

import numpy as np
import pytest

from sketch2d import FrameClock, NoiseConfig, NoiseField, lerp, polar_spiral


def test_lerp_midpoint() -> None:
    assert lerp(5, 0, 10, 0, 100) == 50


@pytest.mark.parametrize("x", [-3.0, 0.0, 2.5, 1e9])
def test_lerp_degenerate_range_returns_lower_bound(x: float) -> None:
    assert lerp(x, 4.0, 4.0, 7.0, 11.0) == 7.0


def test_lerp_arrays() -> None:
    out = lerp(np.array([0.0, 0.5, 1.0]), 0.0, 1.0, 10.0, 20.0)
    np.testing.assert_allclose(out, [10.0, 15.0, 20.0])
    flat = lerp(np.array([1.0, 2.0]), 3.0, 3.0, -1.0, 1.0)
    np.testing.assert_array_equal(flat, [-1.0, -1.0])


def test_lerp_accepts_sequences() -> None:
    np.testing.assert_allclose(lerp([0, 5, 10], 0, 10, 0, 100), [0.0, 50.0, 100.0])
    np.testing.assert_array_equal(lerp((2.0, 9.0), 1.0, 1.0, 3.0, 4.0), [3.0, 3.0])


def test_clock_is_monotonic() -> None:
    clock = FrameClock(step=0.25)
    times = [clock.advance() for _ in range(8)]
    assert times == sorted(times)
    assert clock.time == pytest.approx(2.0)
    assert clock.ticks == 8
    clock.advance(0.0)
    assert clock.time == pytest.approx(2.0)
    assert clock.ticks == 9


@pytest.mark.parametrize("bad", [-0.1, math.nan, math.inf])
def test_clock_rejects_bad_steps(bad: float) -> None:
    clock = FrameClock()
    with pytest.raises(ValueError):
        clock.advance(bad)
    assert clock.time == 0.0


def test_noise_is_deterministic_and_bounded() -> None:
    rng = np.random.default_rng(7)
    pts = rng.uniform(-50.0, 50.0, size=(3, 2000))
    a = NoiseField(NoiseConfig(seed=3)).sample(*pts)
    b = NoiseField(NoiseConfig(seed=3)).sample(*pts)
    np.testing.assert_array_equal(a, b)
    assert a.min() >= 0.0 and a.max() <= 1.0
    # not a constant field
    assert a.std() > 0.02


def test_noise_scalar_matches_array() -> None:
    field = NoiseField()
    v = field.sample(1.3, 2.7, 0.4)
    assert isinstance(v, float)
    arr = field.sample(np.array([1.3]), np.array([2.7]), np.array([0.4]))
    assert arr[0] == pytest.approx(v)


def test_noise_is_continuous() -> None:
    field = NoiseField()
    xs = np.linspace(0.0, 10.0, 10001)
    vals = field.sample(xs, 0.37, 1.1)
    assert float(np.abs(np.diff(vals)).max()) < 0.01


def test_noise_seed_changes_field() -> None:
    xs = np.linspace(0.1, 20.0, 200)
    a = NoiseField(NoiseConfig(seed=1)).sample(xs, 0.5, 0.5)
    b = NoiseField(NoiseConfig(seed=2)).sample(xs, 0.5, 0.5)
    assert not np.allclose(a, b)


@pytest.mark.parametrize("kwargs", [{"octaves": 0}, {"falloff": 0.0}, {"falloff": 1.0}])
def test_noise_config_validation(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        NoiseConfig(**kwargs)


def test_polar_spiral_radius_grows_with_angle() -> None:
    radii = [polar_spiral(a, 0.5)[2] for a in np.linspace(0.1, 20.0, 50)]
    assert all(r1 < r2 for r1, r2 in zip(radii, radii[1:]))
    x, y, r = polar_spiral(math.pi / 2, 2.0)
    assert x == pytest.approx(0.0, abs=1e-12)
    assert y == pytest.approx(math.pi)
    assert r == pytest.approx(math.pi)
