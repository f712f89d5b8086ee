from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

import logging
import math
import numpy as np

from .api import ParameterStore, ParamSpec
from .sketch2d import (
    ALWAYS,
    WHITE,
    BoundedCollection,
    Canvas,
    Color,
    Entity,
    FrameClock,
    InputState,
    NoiseConfig,
    NoiseField,
    RateGated,
    RenderPrimitive,
    integrate_with_attraction,
    lerp,
    polar_spiral,
    smooth_toward,
    spawn_particle,
)

logger = logging.getLogger(__name__)

Params = Mapping[str, float]


class Visualization:
    """Base class for frame generators.

    Subclasses declare ``name``, ``OPTIONS`` and ``BACKGROUND`` and implement
    ``step``. The parameter store lives on the instance; ``step`` receives a
    read-only snapshot of it.
    """
    name: ClassVar[str] = ""
    OPTIONS: ClassVar[tuple[ParamSpec, ...]] = ()
    BACKGROUND: ClassVar[Color] = Color(0.0, 0.0, 0.0)
    OVERLAY_KEY: ClassVar[str | None] = None

    def __init__(
        self,
        canvas: Canvas | None = None,
        *,
        seed: int | None = None,
        parameters: Mapping[str, Any] | None = None,
    ) -> None:
        self.canvas = canvas or Canvas()
        self.seed = seed
        self.params: ParameterStore
        self.initialize(parameters)

    @classmethod
    def defaults(cls) -> dict[str, float]:
        return {spec.name: spec.default for spec in cls.OPTIONS}

    def initialize(self, parameters: Mapping[str, Any] | None = None) -> None:
        """Reset parameters to defaults plus ``parameters`` and clear all state."""
        self.params = ParameterStore(self.OPTIONS, parameters, on_change=self._on_params_changed)
        self._reset()
        logger.debug("initialized %s with %s", self.name, dict(self.params))

    def update_parameters(self, partial: Mapping[str, Any]) -> None:
        self.params.merge(partial)

    def background(self) -> Color:
        if self.OVERLAY_KEY is None:
            return self.BACKGROUND
        return self.BACKGROUND._replace(alpha=float(self.params[self.OVERLAY_KEY]))

    def step(self, clock: FrameClock, params: Params, inputs: InputState) -> list[RenderPrimitive]:
        raise NotImplementedError

    def _reset(self) -> None:
        pass

    def _on_params_changed(self, changed: frozenset[str]) -> None:
        pass


# ---------------------------
# Wave field
# ---------------------------
class WaveField(Visualization):
    """Layers of two summed sinusoids drawn as polylines."""
    name = "waves"
    BACKGROUND = Color(240.0, 66.7, 11.8)
    OPTIONS = (
        ParamSpec("numLayers", 10, minimum=1, maximum=100, integer=True, dimension=True,
                  doc="Number of wave layers"),
        ParamSpec("waveSpeed", 0.05, minimum=0.0, doc="Phase advance per frame"),
        ParamSpec("waveAmplitude", 80.0, minimum=0.0, doc="Primary wave height"),
        ParamSpec("secondaryAmplitude", 40.0, minimum=0.0, doc="Secondary wave height"),
        ParamSpec("layerSpacing", 30.0, doc="Vertical distance between layers"),
        ParamSpec("strokeThickness", 2.0, minimum=0.0, doc="Line thickness"),
        ParamSpec("colorStart", 180.0, minimum=0.0, maximum=360.0, doc="Hue of the first layer"),
        ParamSpec("colorEnd", 320.0, minimum=0.0, maximum=360.0, doc="Hue of the last layer"),
    )

    STEP_X: ClassVar[float] = 5.0

    def _reset(self) -> None:
        self._time = FrameClock()
        n = math.floor(self.canvas.width / self.STEP_X) + 1
        self._xs = np.arange(n, dtype=np.float64) * self.STEP_X

    @property
    def time(self) -> float: return self._time.time

    def step(self, clock: FrameClock, params: Params, inputs: InputState) -> list[RenderPrimitive]:
        t = self._time.time
        layers = int(params["numLayers"])
        speed = params["waveSpeed"]
        xs = self._xs
        out: list[RenderPrimitive] = []
        for i in range(layers):
            hue = lerp(i, 0, layers, params["colorStart"], params["colorEnd"])
            ys = (
                0.5 * self.canvas.height
                + np.sin(xs * 0.01 + t * speed + i * 0.3) * params["waveAmplitude"]
                + np.sin(xs * 0.02 + t * speed * 0.6 + i * 0.5) * params["secondaryAmplitude"]
                + i * params["layerSpacing"]
            )
            out.append(RenderPrimitive.polyline(
                list(zip(xs.tolist(), ys.tolist())),
                Color(hue, 80.0, 90.0),
                params["strokeThickness"],
            ))
        self._time.advance()
        return out


# ---------------------------
# Particle field
# ---------------------------
class ParticleField(Visualization):
    """Particles spawned at the pointer, attracted to it, fading out."""
    name = "particles"
    BACKGROUND = Color(240.0, 50.0, 15.7)
    OVERLAY_KEY = "trailAlpha"
    OPTIONS = (
        ParamSpec("spawnRate", 2, minimum=1, integer=True, doc="Spawn every N frames"),
        ParamSpec("fadeSpeed", 2.0, minimum=0.0, maximum=255.0, doc="Alpha lost per frame"),
        ParamSpec("attractionRadius", 200.0, minimum=0.0, doc="Pointer attraction distance"),
        ParamSpec("attractionStrength", 0.0001, minimum=0.0, doc="Pull per unit distance"),
        ParamSpec("velocityRange", 2.0, minimum=0.0, doc="Initial speed range"),
        ParamSpec("minSize", 3.0, minimum=0.0, doc="Minimum particle diameter"),
        ParamSpec("maxSize", 8.0, minimum=0.0, doc="Maximum particle diameter"),
        ParamSpec("trailAlpha", 25.0, minimum=0.0, maximum=255.0, doc="Background overlay alpha"),
        ParamSpec("hueMin", 270.0, minimum=0.0, maximum=360.0, doc="Lowest particle hue"),
        ParamSpec("hueMax", 330.0, minimum=0.0, maximum=360.0, doc="Highest particle hue"),
        ParamSpec("maxParticles", 2000, minimum=0, integer=True, doc="Population cap"),
    )

    def _reset(self) -> None:
        self._rng = np.random.default_rng(self.seed)
        self._particles = BoundedCollection(int(self.params["maxParticles"]))

    def _on_params_changed(self, changed: frozenset[str]) -> None:
        if "maxParticles" in changed:
            self._particles.resize(int(self.params["maxParticles"]))

    @property
    def particles(self) -> tuple[Entity, ...]:
        return self._particles.snapshot()

    def step(self, clock: FrameClock, params: Params, inputs: InputState) -> list[RenderPrimitive]:
        self._particles.spawn(
            RateGated(int(params["spawnRate"])),
            clock.ticks,
            lambda: spawn_particle(
                self._rng, inputs.x, inputs.y,
                velocity_range=params["velocityRange"],
                min_size=params["minSize"],
                max_size=params["maxSize"],
                hue_min=params["hueMin"],
                hue_max=params["hueMax"],
            ),
        )
        attractor = (inputs.x, inputs.y)
        radius = params["attractionRadius"]
        strength = params["attractionStrength"]
        fade = params["fadeSpeed"]
        self._particles.update(
            lambda e: integrate_with_attraction(e, attractor, radius=radius, strength=strength, fade=fade)
        )
        self._particles.remove_dead()

        out = [
            RenderPrimitive.point(e.x, e.y, e.size, Color(e.hue, e.saturation, e.brightness, e.alpha))
            for e in self._particles.snapshot()
        ]
        out.append(RenderPrimitive.text(10.0, 20.0, f"Particles: {len(self._particles)}", WHITE))
        return out


# ---------------------------
# Spiral trail
# ---------------------------
class SpiralTrail(Visualization):
    """Archimedean spiral; a bounded history of points, newest brightest."""
    name = "spiral"
    BACKGROUND = Color(240.0, 40.0, 9.8)
    OVERLAY_KEY = "fadeAlpha"
    OPTIONS = (
        ParamSpec("spiralSpeed", 0.1, minimum=0.0, doc="Angle increment per frame"),
        ParamSpec("spiralTightness", 0.5, minimum=0.0, doc="Radius growth per radian"),
        ParamSpec("maxPoints", 500, minimum=0, integer=True, doc="Points kept in history"),
        ParamSpec("minSize", 2.0, minimum=0.0, doc="Minimum point diameter"),
        ParamSpec("maxSize", 8.0, minimum=0.0, doc="Maximum point diameter"),
        ParamSpec("colorSpeed", 10.0, doc="Hue degrees per radian"),
        ParamSpec("fadeAlpha", 10.0, minimum=0.0, maximum=255.0, doc="Background overlay alpha"),
    )

    def _reset(self) -> None:
        self._angle = FrameClock(step=self.params["spiralSpeed"])
        self._points = BoundedCollection(int(self.params["maxPoints"]))

    def _on_params_changed(self, changed: frozenset[str]) -> None:
        if "maxPoints" in changed:
            self._points.resize(int(self.params["maxPoints"]))

    @property
    def angle(self) -> float: return self._angle.time

    @property
    def radius(self) -> float:
        return self._angle.time * self.params["spiralTightness"]

    @property
    def points(self) -> tuple[Entity, ...]:
        return self._points.snapshot()

    def step(self, clock: FrameClock, params: Params, inputs: InputState) -> list[RenderPrimitive]:
        angle = self._angle.time
        cx, cy = self.canvas.center

        def make() -> Entity:
            x, y, _ = polar_spiral(angle, params["spiralTightness"])
            return Entity(
                x=cx + x, y=cy + y,
                size=lerp(math.sin(angle * 0.1), -1.0, 1.0, params["minSize"], params["maxSize"]),
                hue=(angle * params["colorSpeed"]) % 360.0,
                saturation=80.0,
            )

        self._points.spawn(ALWAYS, clock.ticks, make)
        history = self._points.snapshot()
        n = len(history)
        out = [
            RenderPrimitive.point(
                pt.x, pt.y, pt.size,
                Color(pt.hue, pt.saturation, pt.brightness, lerp(i, 0, n, 50.0, 255.0)),
            )
            for i, pt in enumerate(history)
        ]
        self._angle.advance(params["spiralSpeed"])
        return out


# ---------------------------
# Noise grid
# ---------------------------
class NoiseGrid(Visualization):
    """Lattice of rotating squares sized by noise and colored by pointer distance."""
    name = "grid"
    BACKGROUND = Color(0.0, 0.0, 0.0)
    OPTIONS = (
        ParamSpec("cols", 20, minimum=1, maximum=400, integer=True, dimension=True, doc="Grid columns"),
        ParamSpec("rows", 15, minimum=1, maximum=400, integer=True, dimension=True, doc="Grid rows"),
        ParamSpec("noiseScale", 0.1, doc="Noise frequency per cell"),
        ParamSpec("timeSpeed", 0.01, doc="Noise drift per frame"),
        ParamSpec("rotationSpeed", 0.01, doc="Rotation per frame"),
        ParamSpec("minSize", 10.0, minimum=0.0, doc="Minimum square size"),
        ParamSpec("saturation", 70.0, minimum=0.0, maximum=100.0, doc="Color intensity"),
        ParamSpec("brightness", 90.0, minimum=0.0, maximum=100.0, doc="Color brightness"),
        ParamSpec("cornerRadius", 5.0, minimum=0.0, doc="Rounded corners"),
    )

    def _reset(self) -> None:
        self._time = FrameClock()
        self._noise = NoiseField(NoiseConfig(seed=self.seed or 0))
        self._cell_size = self.canvas.width / self.params["cols"]

    def _on_params_changed(self, changed: frozenset[str]) -> None:
        if "cols" in changed or "rows" in changed:
            self._cell_size = self.canvas.width / self.params["cols"]

    @property
    def cell_size(self) -> float: return self._cell_size

    @property
    def time(self) -> float: return self._time.time

    def step(self, clock: FrameClock, params: Params, inputs: InputState) -> list[RenderPrimitive]:
        t = self._time.time
        cell = self._cell_size
        scale = params["noiseScale"]
        ii, jj = np.meshgrid(
            np.arange(int(params["cols"]), dtype=np.float64),
            np.arange(int(params["rows"]), dtype=np.float64),
            indexing="ij",
        )
        cx = ii * cell + 0.5 * cell
        cy = jj * cell + 0.5 * cell
        n = np.asarray(self._noise.sample(ii * scale, jj * scale, t * params["timeSpeed"]))
        sizes = lerp(n, 0.0, 1.0, params["minSize"], cell - 5.0)
        hues = lerp(np.hypot(cx - inputs.x, cy - inputs.y), 0.0, self.canvas.width, 0.0, 360.0)
        rotations = n * (2.0 * math.pi) + t * params["rotationSpeed"]

        sat, bright, corner = params["saturation"], params["brightness"], params["cornerRadius"]
        out = [
            RenderPrimitive.rect(x, y, s, Color(h, sat, bright), rotation=r, corner_radius=corner)
            for x, y, s, h, r in zip(
                cx.ravel().tolist(), cy.ravel().tolist(), sizes.ravel().tolist(),
                hues.ravel().tolist(), rotations.ravel().tolist(),
            )
        ]
        self._time.advance()
        return out


# ---------------------------
# Mouse trail
# ---------------------------
class MouseTrail(Visualization):
    """Smoothed cursor following the pointer with a tapering ribbon behind it."""
    name = "mouse"
    BACKGROUND = Color(240.0, 50.0, 19.6)
    OVERLAY_KEY = "fadeAlpha"
    CURSOR_HUE: ClassVar[float] = 320.0
    OPTIONS = (
        ParamSpec("maxTrail", 50, minimum=0, integer=True, doc="Points kept in the trail"),
        ParamSpec("smoothAmount", 0.1, minimum=1e-3, maximum=1.0, doc="Fraction of the gap closed per frame"),
        ParamSpec("fadeAlpha", 30.0, minimum=0.0, maximum=255.0, doc="Background overlay alpha"),
        ParamSpec("lineWeightMin", 1.0, minimum=0.0, doc="Thinnest (oldest) segment"),
        ParamSpec("lineWeightMax", 8.0, minimum=0.0, doc="Thickest (newest) segment"),
        ParamSpec("circleMin", 5.0, minimum=0.0, doc="Smallest trail circle"),
        ParamSpec("circleMax", 20.0, minimum=0.0, doc="Largest trail circle"),
        ParamSpec("colorStart", 180.0, minimum=0.0, maximum=360.0, doc="Hue at the trail tail"),
        ParamSpec("colorEnd", 320.0, minimum=0.0, maximum=360.0, doc="Hue at the trail head"),
        ParamSpec("cursorSize", 25.0, minimum=0.0, doc="Outer cursor diameter"),
        ParamSpec("cursorInnerSize", 10.0, minimum=0.0, doc="Inner cursor diameter"),
    )

    def _reset(self) -> None:
        cx, cy = self.canvas.center
        self._cursor = Entity(x=cx, y=cy)
        self._trail = BoundedCollection(int(self.params["maxTrail"]))

    def _on_params_changed(self, changed: frozenset[str]) -> None:
        if "maxTrail" in changed:
            self._trail.resize(int(self.params["maxTrail"]))

    @property
    def cursor(self) -> tuple[float, float]:
        return self._cursor.position

    @property
    def trail(self) -> tuple[Entity, ...]:
        return self._trail.snapshot()

    def step(self, clock: FrameClock, params: Params, inputs: InputState) -> list[RenderPrimitive]:
        smooth_toward(self._cursor, (inputs.x, inputs.y), params["smoothAmount"])
        cx, cy = self._cursor.position
        self._trail.spawn(ALWAYS, clock.ticks, lambda: Entity(x=cx, y=cy))

        trail = self._trail.snapshot()
        n = len(trail)
        start, end = params["colorStart"], params["colorEnd"]
        out: list[RenderPrimitive] = []
        for i in range(n - 1):
            out.append(RenderPrimitive.line(
                trail[i].position, trail[i + 1].position,
                Color(lerp(i, 0, n, start, end), 80.0, 100.0, lerp(i, 0, n, 0.0, 255.0)),
                lerp(i, 0, n, params["lineWeightMin"], params["lineWeightMax"]),
            ))
        for i, pt in enumerate(trail):
            out.append(RenderPrimitive.point(
                pt.x, pt.y,
                lerp(i, 0, n, params["circleMin"], params["circleMax"]),
                Color(lerp(i, 0, n, end - 40.0, start + 20.0), 80.0, 100.0, 200.0),
            ))
        out.append(RenderPrimitive.point(cx, cy, params["cursorSize"], Color(self.CURSOR_HUE)))
        out.append(RenderPrimitive.point(cx, cy, params["cursorInnerSize"], WHITE))
        return out


# ---------------------------
# Registry
# ---------------------------
VISUALIZATIONS: dict[str, type[Visualization]] = {
    cls.name: cls for cls in (WaveField, ParticleField, SpiralTrail, NoiseGrid, MouseTrail)
}


def create_visualization(
    name: str,
    canvas: Canvas | None = None,
    *,
    seed: int | None = None,
    parameters: Mapping[str, Any] | None = None,
) -> Visualization:
    try:
        cls = VISUALIZATIONS[name]
    except KeyError:
        raise ValueError(f"Unknown visualization: {name!r}. Choose from {sorted(VISUALIZATIONS)}.") from None
    return cls(canvas, seed=seed, parameters=parameters)
