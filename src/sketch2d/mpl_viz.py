from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

import logging
import numpy as np
import matplotlib.pyplot as plt
from matplotlib import animation
from matplotlib.artist import Artist
from matplotlib.axes import Axes
from matplotlib.backend_bases import MouseEvent
from matplotlib.collections import Collection, LineCollection, PatchCollection, PolyCollection
from matplotlib.colors import hsv_to_rgb
from matplotlib.figure import Figure
from matplotlib.patches import Circle

from .api import Frame, SketchRunner
from .sketch2d import Canvas, Color, FloatArray, InputState, RenderPrimitive

logger = logging.getLogger(__name__)

RGBA = tuple[float, float, float, float]


def hsba_to_rgba(color: Color) -> RGBA:
    """Convert an HSBA color to matplotlib RGBA floats in [0, 1]."""
    hsv = np.array([
        (color.hue % 360.0) / 360.0,
        min(max(color.saturation / 100.0, 0.0), 1.0),
        min(max(color.brightness / 100.0, 0.0), 1.0),
    ])
    r, g, b = hsv_to_rgb(hsv)
    return (float(r), float(g), float(b), min(max(color.alpha / 255.0, 0.0), 1.0))


def rect_outline(prim: RenderPrimitive, arc_segments: int = 4) -> FloatArray:
    """Closed outline (k, 2) of a rect primitive, rounded corners included."""
    (x, y), half = prim.points[0], 0.5 * max(prim.size, 0.0)
    r = min(max(prim.corner_radius, 0.0), half)
    inner = half - r
    if r > 0.0:
        corners = [(inner, inner, 0.0), (-inner, inner, 0.5), (-inner, -inner, 1.0), (inner, -inner, 1.5)]
        pts = []
        for ox, oy, start in corners:
            theta = np.pi * (start + np.linspace(0.0, 0.5, arc_segments + 1))
            pts.append(np.stack([ox + r * np.cos(theta), oy + r * np.sin(theta)], axis=1))
        local = np.vstack(pts)
    else:
        local = np.array([[half, half], [-half, half], [-half, -half], [half, -half]], dtype=np.float64)
    c, s = np.cos(prim.rotation or 0.0), np.sin(prim.rotation or 0.0)
    rot = np.array([[c, -s], [s, c]])
    return np.asarray(local @ rot.T + np.array([x, y]), dtype=np.float64)


# ------------------------------
# Drawing
# ------------------------------
def setup_axes(ax: Axes, canvas: Canvas, background: Color | None = None) -> None:
    ax.set_xlim(0.0, canvas.width)
    ax.set_ylim(canvas.height, 0.0)
    ax.set_aspect("equal", adjustable="box")
    ax.set_axis_off()
    if background is not None:
        ax.set_facecolor(hsba_to_rgba(background._replace(alpha=255.0)))


def draw_frame(ax: Axes, frame: Frame, *, show_hud: bool = True) -> list[Artist]:
    """Add the frame's primitives to ``ax``; returns the new artists."""
    artists: list[Artist] = []
    by_shape: dict[str, list[RenderPrimitive]] = {}
    for prim in frame.primitives:
        by_shape.setdefault(prim.shape, []).append(prim)

    if rects := by_shape.get("rect"):
        coll = PolyCollection(
            [rect_outline(p) for p in rects],
            facecolors=[hsba_to_rgba(p.color) for p in rects],
            edgecolors="none",
        )
        artists.append(ax.add_collection(coll))

    strokes = by_shape.get("polyline", []) + by_shape.get("line", [])
    if strokes:
        coll = LineCollection(
            [np.asarray(p.points) for p in strokes],
            colors=[hsba_to_rgba(p.color) for p in strokes],
            linewidths=[p.stroke_weight or 1.0 for p in strokes],
            capstyle="round",
        )
        artists.append(ax.add_collection(coll))

    if points := by_shape.get("point"):
        coll = PatchCollection(
            [Circle(p.points[0], radius=0.5 * p.size) for p in points],
            facecolors=[hsba_to_rgba(p.color) for p in points],
            edgecolors="none",
        )
        artists.append(ax.add_collection(coll))

    if show_hud:
        for p in by_shape.get("text", []):
            x, y = p.points[0]
            artists.append(ax.text(x, y, p.label or "", color=hsba_to_rgba(p.color), fontsize=p.size))
    return artists


def _fade_artist(artist: Artist, keep: float) -> None:
    if isinstance(artist, Collection):
        for getter, setter in ((artist.get_facecolor, artist.set_facecolor),
                               (artist.get_edgecolor, artist.set_edgecolor)):
            colors = np.array(getter(), dtype=np.float64)
            if colors.size:
                colors[:, 3] *= keep
                setter(colors)
    else:
        alpha = artist.get_alpha()
        artist.set_alpha((1.0 if alpha is None else alpha) * keep)


class TrailCompositor:
    """Emulates a translucent overlay by fading and retiring earlier frames' artists."""

    def __init__(self, max_history: int = 64) -> None:
        if max_history < 1:
            raise ValueError("max_history must be >= 1.")
        self._max_history = max_history
        self._layers: deque[tuple[list[Artist], float]] = deque()

    def __len__(self) -> int:
        return len(self._layers)

    def push(self, artists: list[Artist], overlay_alpha: float) -> None:
        keep = 1.0 - min(max(overlay_alpha / 255.0, 0.0), 1.0)
        layers: deque[tuple[list[Artist], float]] = deque()
        for layer, weight in self._layers:
            weight *= keep
            if weight < 1.0 / 255.0:
                for art in layer:
                    art.remove()
                continue
            for art in layer:
                _fade_artist(art, keep)
            layers.append((layer, weight))
        layers.append((artists, 1.0))
        while len(layers) > self._max_history:
            for art in layers.popleft()[0]:
                art.remove()
        self._layers = layers


class PointerTracker:
    """InputState source fed by matplotlib mouse-motion events."""

    def __init__(self, canvas: Canvas) -> None:
        self._state = InputState(*canvas.center)
        self._cid: int | None = None

    @property
    def state(self) -> InputState: return self._state

    def connect(self, fig: Figure) -> None:
        self._cid = fig.canvas.mpl_connect("motion_notify_event", self.on_move)

    def on_move(self, event: MouseEvent) -> None:
        if event.xdata is None or event.ydata is None:
            return
        self._state = InputState(float(event.xdata), float(event.ydata))

    def __iter__(self) -> Iterator[InputState]:
        while True:
            yield self._state


# ------------------------------
# Plot helpers
# ------------------------------
@dataclass(slots=True)
class AnimationConfig:
    figsize: tuple[float, float] = (8.0, 6.0)
    dpi: int = 100
    show_hud: bool = True
    max_history: int = 64

    def __post_init__(self) -> None:
        if self.dpi <= 0:
            raise ValueError("dpi must be positive.")
        if self.max_history < 1:
            raise ValueError("max_history must be >= 1.")


def plot_frame(
    frame: Frame,
    canvas: Canvas,
    *,
    config: AnimationConfig | None = None,
    show: bool = True,
) -> Figure:
    cfg = config or AnimationConfig()
    fig, ax = plt.subplots(figsize=cfg.figsize, dpi=cfg.dpi)
    setup_axes(ax, canvas, frame.background)
    draw_frame(ax, frame, show_hud=cfg.show_hud)
    ax.set_title(f"frame {frame.index}")
    if show:
        plt.show()
    return fig


def run_animation(
    runner: SketchRunner,
    *,
    steps: int,
    inputs: Iterable[InputState] | None = None,
    config: AnimationConfig | None = None,
    save_path: str | None = None,
    fps: int = 30,
) -> animation.FuncAnimation:
    """Animate ``runner`` for ``steps`` frames; follows the mouse when ``inputs`` is None."""
    cfg = config or AnimationConfig()
    if save_path and not save_path.lower().endswith((".mp4", ".gif")):
        raise ValueError("Unsupported extension. Use .mp4 or .gif")

    canvas = runner.visualization.canvas
    fig, ax = plt.subplots(figsize=cfg.figsize, dpi=cfg.dpi)
    setup_axes(ax, canvas, runner.visualization.background())

    pointer = InputState(*canvas.center)
    if inputs is None:
        tracker = PointerTracker(canvas)
        tracker.connect(fig)
        input_iter: Iterator[InputState] = iter(tracker)
    else:
        input_iter = iter(inputs)

    compositor = TrailCompositor(cfg.max_history)

    def _update(_i: int) -> list[Any]:
        nonlocal pointer
        # finite inputs shorter than steps hold their last position
        pointer = next(input_iter, pointer)
        frame = runner.tick(pointer)
        artists = draw_frame(ax, frame, show_hud=cfg.show_hud)
        compositor.push(artists, frame.background.alpha)
        return artists

    anim = animation.FuncAnimation(fig, _update, frames=steps, interval=1000 / fps, blit=False)
    logger.debug("animating %s for %d frames", runner.visualization.name, steps)

    if save_path:
        if save_path.lower().endswith(".mp4"):
            Writer = animation.FFMpegWriter
            writer = Writer(fps=fps, metadata={"artist": "sketch2d"}, bitrate=1800)
            anim.save(save_path, writer=writer, dpi=150)
        else:
            anim.save(save_path, writer="pillow", fps=fps, dpi=cfg.dpi)
        logger.info("saved %d frames to %s", steps, save_path)
    else:
        plt.show()
    return anim
