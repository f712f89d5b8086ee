from __future__ import annotations

from sketch2d import Canvas, InputState, NoiseGrid, SketchRunner, plot_frame


def main() -> None:
    vis = NoiseGrid(Canvas(800.0, 600.0), seed=7, parameters={"cols": 32, "rows": 24})
    runner = SketchRunner(vis)
    frame = None
    for k in range(240):
        frame = runner.tick(InputState(200.0 + k, 150.0 + 0.5 * k))
    assert frame is not None
    plot_frame(frame, vis.canvas)


if __name__ == "__main__":
    main()
