from __future__ import annotations

import pytest

pytest.importorskip("plotly")

from sketch2d import (
    InputState,
    MouseTrail,
    NoiseGrid,
    PlotlySnapshotConfig,
    SketchRunner,
    WaveField,
    create_visualization,
    plot_frame_interactive,
    run_animation_interactive,
)


def test_snapshot_has_fixed_traces_and_rect_shapes() -> None:
    vis = NoiseGrid(parameters={"cols": 3, "rows": 2})
    frame = SketchRunner(vis).tick(InputState(10.0, 10.0))
    fig = plot_frame_interactive(frame, vis.canvas)
    assert len(fig.data) == 2
    assert len(fig.layout.shapes) == 6
    assert fig.layout.yaxis.range == (vis.canvas.height, 0.0)


def test_animation_frames(tmp_path) -> None:
    runner = SketchRunner(create_visualization("particles", seed=3, parameters={"spawnRate": 1}))
    path = tmp_path / "particles.html"
    fig = run_animation_interactive(
        runner,
        steps=5,
        inputs=[InputState(100.0 + k, 100.0) for k in range(5)],
        save_html=str(path),
    )
    assert len(fig.frames) == 5
    assert len(fig.frames[-1].data[0].x) == 5
    assert path.exists()


def test_invalid_config_and_steps() -> None:
    with pytest.raises(ValueError):
        PlotlySnapshotConfig(marker_scale=0.0)
    runner = SketchRunner(create_visualization("spiral"))
    with pytest.raises(ValueError):
        run_animation_interactive(runner, steps=0)


def test_each_wave_layer_keeps_its_stroke_color() -> None:
    vis = WaveField(parameters={"numLayers": 3})
    frame = SketchRunner(vis).tick(InputState())
    fig = plot_frame_interactive(frame, vis.canvas)
    strokes = [s for s in fig.layout.shapes if not s.path.endswith("Z")]
    assert len(strokes) == 3
    assert len({s.line.color for s in strokes}) == 3
    assert {s.line.width for s in strokes} == {2.0}


def test_mouse_trail_strokes_taper() -> None:
    runner = SketchRunner(MouseTrail(parameters={"maxTrail": 6}))
    for k in range(6):
        frame = runner.tick(InputState(100.0 + 40.0 * k, 100.0))
    fig = plot_frame_interactive(frame, runner.visualization.canvas)
    widths = [s.line.width for s in fig.layout.shapes]
    assert len(widths) >= 2
    assert len(set(widths)) > 1


def test_short_inputs_hold_last_position() -> None:
    runner = SketchRunner(MouseTrail(parameters={"smoothAmount": 1.0}))
    fig = run_animation_interactive(runner, steps=4, inputs=[InputState(50.0, 60.0)])
    assert len(fig.frames) == 4
    assert runner.visualization.cursor == pytest.approx((50.0, 60.0))
