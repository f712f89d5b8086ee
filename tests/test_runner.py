from __future__ import annotations

import logging

from sketch2d import (
    Canvas,
    Frame,
    FrameClock,
    InputState,
    MouseTrail,
    ParticleField,
    RenderPrimitive,
    SketchRunner,
    SpiralTrail,
    UpdateResult,
)


def test_tick_advances_clock_and_returns_frame() -> None:
    runner = SketchRunner(SpiralTrail(Canvas(400.0, 400.0)))
    frame = runner.tick(InputState())
    assert isinstance(frame, Frame)
    assert frame.index == 1
    assert runner.clock.ticks == 1
    assert len(frame.primitives) == 1
    assert frame.background.alpha == 10.0


def test_submit_applies_when_idle() -> None:
    runner = SketchRunner(MouseTrail())
    res = runner.submit({"maxTrail": 2})
    assert res == UpdateResult(ok=True)
    assert runner.visualization.params["maxTrail"] == 2


def test_rejected_update_reports_key_and_animation_continues(caplog) -> None:
    runner = SketchRunner(ParticleField(seed=0))
    runner.tick(InputState(10.0, 10.0))
    with caplog.at_level(logging.WARNING, logger="sketch2d"):
        res = runner.submit({"fadeSpeed": 3.0, "spawnRate": float("nan")})
    assert not res
    assert res.key == "spawnRate"
    assert "spawnRate" in caplog.text
    assert runner.visualization.params["fadeSpeed"] == 2.0
    frame = runner.tick(InputState(10.0, 10.0))
    assert frame.index == 2


class _SelfTuning(SpiralTrail):
    """Submits a parameter change from inside its own step."""
    runner: SketchRunner | None = None
    seen: list[float] = []

    def step(self, clock: FrameClock, params, inputs: InputState) -> list[RenderPrimitive]:
        self.seen.append(params["spiralSpeed"])
        if self.runner is not None and clock.ticks == 1:
            res = self.runner.submit({"spiralSpeed": 0.5})
            assert res.ok and res.deferred
            # the running step keeps observing the old values
            assert self.params["spiralSpeed"] == 0.1
        return super().step(clock, params, inputs)


def test_merge_during_step_is_deferred_until_step_completes() -> None:
    vis = _SelfTuning()
    vis.seen = []
    runner = SketchRunner(vis)
    vis.runner = runner
    runner.tick(InputState())
    assert runner.pending == 0
    assert vis.params["spiralSpeed"] == 0.5
    runner.tick(InputState())
    assert vis.seen == [0.1, 0.5]
    assert vis.angle == 0.1 + 0.5


def test_frames_hold_copies_not_live_entities() -> None:
    runner = SketchRunner(MouseTrail(parameters={"maxTrail": 3}))
    first = runner.tick(InputState(0.0, 0.0))
    pts_before = first.primitives
    runner.tick(InputState(800.0, 600.0))
    assert first.primitives == pts_before


def test_oversized_integer_update_is_rejected_not_raised() -> None:
    runner = SketchRunner(ParticleField(seed=0))
    res = runner.submit({"fadeSpeed": 10**400})
    assert res == UpdateResult(ok=False, key="fadeSpeed", message="must be finite")
    assert runner.visualization.params["fadeSpeed"] == 2.0
