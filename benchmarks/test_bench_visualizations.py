from __future__ import annotations

import numpy as np
import pytest

from sketch2d import FrameClock, InputState, NoiseField, create_visualization


@pytest.mark.benchmark(group="noise-grid")
@pytest.mark.parametrize("cols,rows", [(20, 15), (80, 60), (200, 150)])
def test_noise_grid_step_benchmark(benchmark, cols: int, rows: int) -> None:
    vis = create_visualization("grid", seed=0, parameters={"cols": cols, "rows": rows})
    clock = FrameClock()
    pointer = InputState(400.0, 300.0)

    def run() -> None:
        clock.advance()
        prims = vis.step(clock, vis.params.snapshot(), pointer)
        assert len(prims) == cols * rows
    benchmark(run)


@pytest.mark.benchmark(group="noise-sample")
@pytest.mark.parametrize("N", [1_000, 100_000])
def test_noise_sample_benchmark(benchmark, N: int) -> None:
    rng = np.random.default_rng(0)
    pts = rng.uniform(-100.0, 100.0, size=(3, N))
    field = NoiseField()
    benchmark(lambda: field.sample(*pts))


@pytest.mark.benchmark(group="trails")
@pytest.mark.parametrize("name,capacity_key,capacity", [("spiral", "maxPoints", 2000), ("mouse", "maxTrail", 500)])
def test_trail_step_benchmark(benchmark, name: str, capacity_key: str, capacity: int) -> None:
    vis = create_visualization(name, parameters={capacity_key: capacity})
    clock = FrameClock()
    pointer = InputState(100.0, 100.0)
    for _ in range(capacity):
        clock.advance()
        vis.step(clock, vis.params.snapshot(), pointer)

    def run() -> None:
        clock.advance()
        vis.step(clock, vis.params.snapshot(), pointer)
    benchmark(run)
