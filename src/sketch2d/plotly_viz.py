from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from itertools import repeat
from typing import Any

try:
    import plotly.graph_objects as go
    _PLOTLY = True
except Exception:  # pragma: no cover
    _PLOTLY = False

from .api import Frame, SketchRunner
from .mpl_viz import hsba_to_rgba, rect_outline
from .sketch2d import Canvas, Color, InputState, RenderPrimitive


@dataclass(slots=True)
class PlotlySnapshotConfig:
    template: str = "plotly_dark"
    marker_scale: float = 1.0
    show_hud: bool = True
    frame_duration_ms: int = 33

    def __post_init__(self) -> None:
        if self.marker_scale <= 0.0:
            raise ValueError("marker_scale must be positive.")


def _css(color: Color) -> str:
    r, g, b, a = hsba_to_rgba(color)
    return f"rgba({round(r * 255)},{round(g * 255)},{round(b * 255)},{a:.3f})"


def _rect_shapes(prims: list[RenderPrimitive]) -> list[dict[str, Any]]:
    shapes = []
    for p in prims:
        pts = rect_outline(p)
        path = "M " + " L ".join(f"{x:.2f},{y:.2f}" for x, y in pts) + " Z"
        shapes.append(dict(type="path", path=path, fillcolor=_css(p.color), line=dict(width=0), layer="below"))
    return shapes


def _stroke_shapes(prims: list[RenderPrimitive]) -> list[dict[str, Any]]:
    """One open path per line/polyline so each keeps its own color and width."""
    shapes = []
    for p in prims:
        path = "M " + " L ".join(f"{x:.2f},{y:.2f}" for x, y in p.points)
        shapes.append(dict(
            type="path", path=path, fillcolor="rgba(0,0,0,0)",
            line=dict(color=_css(p.color), width=p.stroke_weight or 1.0),
        ))
    return shapes


def _frame_traces(frame: Frame, cfg: PlotlySnapshotConfig) -> tuple[list[Any], list[dict[str, Any]]]:
    """Fixed trace layout per frame: points, text. Rects and strokes become layout shapes."""
    by_shape: dict[str, list[RenderPrimitive]] = {}
    for prim in frame.primitives:
        by_shape.setdefault(prim.shape, []).append(prim)

    points = by_shape.get("point", [])
    texts = by_shape.get("text", []) if cfg.show_hud else []
    traces = [
        go.Scatter(
            x=[p.points[0][0] for p in points], y=[p.points[0][1] for p in points],
            mode="markers",
            marker=dict(size=[p.size * cfg.marker_scale for p in points],
                        color=[_css(p.color) for p in points], line=dict(width=0)),
            name="points",
        ),
        go.Scatter(
            x=[p.points[0][0] for p in texts], y=[p.points[0][1] for p in texts],
            mode="text", text=[p.label or "" for p in texts],
            textfont=dict(color="white"), textposition="middle right",
            name="hud", hoverinfo="skip",
        ),
    ]
    strokes = by_shape.get("polyline", []) + by_shape.get("line", [])
    return traces, _rect_shapes(by_shape.get("rect", [])) + _stroke_shapes(strokes)


def _layout(fig: Any, frame: Frame, canvas: Canvas, cfg: PlotlySnapshotConfig, shapes: list[dict[str, Any]]) -> None:
    fig.update_layout(
        title=f"frame {frame.index}",
        template=cfg.template,
        plot_bgcolor=_css(frame.background._replace(alpha=255.0)),
        xaxis=dict(range=[0.0, canvas.width], visible=False, scaleanchor="y", scaleratio=1),
        yaxis=dict(range=[canvas.height, 0.0], visible=False),
        shapes=shapes,
        showlegend=False,
    )


def plot_frame_interactive(
    frame: Frame,
    canvas: Canvas,
    *,
    config: PlotlySnapshotConfig | None = None,
    save_html: str | None = None,
) -> Any:
    """Interactive snapshot of one frame with Plotly (pan/zoom, hover). Returns the Figure."""
    if not _PLOTLY:
        raise RuntimeError("plotly is not installed. `pip install plotly`")

    cfg = config or PlotlySnapshotConfig()
    traces, shapes = _frame_traces(frame, cfg)
    fig = go.Figure(data=traces)
    _layout(fig, frame, canvas, cfg, shapes)
    if save_html:
        fig.write_html(save_html, include_plotlyjs="cdn")
    return fig


def run_animation_interactive(
    runner: SketchRunner,
    *,
    steps: int,
    inputs: Iterable[InputState] | None = None,
    config: PlotlySnapshotConfig | None = None,
    save_html: str | None = None,
) -> Any:
    """Precompute ``steps`` frames into a Plotly animation with play/pause controls.

    Without ``inputs`` the pointer rests at the canvas center; a finite
    ``inputs`` shorter than ``steps`` holds its last position.
    """
    if not _PLOTLY:
        raise RuntimeError("plotly is not installed. `pip install plotly`")
    if steps < 1:
        raise ValueError("steps must be >= 1.")

    cfg = config or PlotlySnapshotConfig()
    canvas = runner.visualization.canvas
    pointer = InputState(*canvas.center)
    input_iter = repeat(pointer) if inputs is None else iter(inputs)

    frames = []
    slider_steps = []
    first: Frame | None = None
    first_traces: list[Any] = []
    first_shapes: list[dict[str, Any]] = []
    for k in range(steps):
        pointer = next(input_iter, pointer)
        frame = runner.tick(pointer)
        traces, shapes = _frame_traces(frame, cfg)
        if first is None:
            first, first_traces, first_shapes = frame, traces, shapes
        frames.append(go.Frame(data=traces, layout=dict(shapes=shapes), name=f"{k}"))
        slider_steps.append(dict(method="animate", label=str(k), args=[[f"{k}"], {"mode": "immediate"}]))

    assert first is not None
    fig = go.Figure(data=first_traces, frames=frames)
    _layout(fig, first, canvas, cfg, first_shapes)
    fig.update_layout(
        updatemenus=[
            dict(
                type="buttons",
                buttons=[
                    dict(label="Play", method="animate",
                         args=[None, {"fromcurrent": True, "frame": {"duration": cfg.frame_duration_ms}}]),
                    dict(label="Pause", method="animate", args=[[None], {"mode": "immediate"}]),
                ],
                x=0.02, y=1.07, xanchor="left", yanchor="top",
            )
        ],
        sliders=[dict(active=0, steps=slider_steps, x=0.1, xanchor="left", len=0.8)],
    )

    if save_html:
        fig.write_html(save_html, include_plotlyjs="cdn")
    return fig
