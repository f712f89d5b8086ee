from __future__ import annotations

from collections.abc import Iterator

from sketch2d import (
    AnimationConfig,
    Canvas,
    InputState,
    SketchRunner,
    SpiralTrail,
    run_animation,
    setup_logging,
)


def main() -> None:
    setup_logging("DEBUG")
    vis = SpiralTrail(Canvas(800.0, 600.0), parameters={"spiralSpeed": 0.12, "maxPoints": 800})
    runner = SketchRunner(vis)

    def centered_inputs(retune_at: int = 150) -> Iterator[InputState]:
        k = 0
        while True:
            if k == retune_at:
                # live edit, as a UI slider would send it
                runner.submit({"spiralTightness": 0.8, "colorSpeed": 20})
            k += 1
            yield InputState(*vis.canvas.center)

    cfg = AnimationConfig(figsize=(8.0, 6.0), max_history=48)
    run_animation(runner, steps=900, inputs=centered_inputs(), config=cfg, save_path=None, fps=30)


if __name__ == "__main__":
    main()
