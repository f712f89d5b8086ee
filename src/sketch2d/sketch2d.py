from __future__ import annotations

from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from typing import Literal, NamedTuple, Protocol

import logging
import math
import numpy as np
from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.float64]
Point2D = tuple[float, float]


class CapacityViolation(RuntimeError):
    """A bounded collection holds more entities than its capacity after eviction."""


# ---------------------------
# Utility
# ---------------------------
def _finite(value: float, name: str) -> float:
    v = float(value)
    if not math.isfinite(v):
        raise ValueError(f"{name} must be finite.")
    return v


def lerp(
    value: float | ArrayLike,
    in_min: float,
    in_max: float,
    out_min: float,
    out_max: float,
) -> float | FloatArray:
    """Linearly remap ``value`` from [in_min, in_max] onto [out_min, out_max].

    A collapsed input range maps every value to ``out_min``. Arrays are mapped
    elementwise; the result is not clamped.
    """
    span = in_max - in_min
    if not np.isscalar(value):
        value = np.asarray(value, dtype=np.float64)
    if isinstance(value, np.ndarray):
        if span == 0:
            return np.full(value.shape, float(out_min), dtype=np.float64)
        return out_min + (value.astype(np.float64) - in_min) * ((out_max - out_min) / span)
    if span == 0:
        return float(out_min)
    return float(out_min + (value - in_min) * (out_max - out_min) / span)


# ---------------------------
# Canvas & input
# ---------------------------
@dataclass(slots=True)
class Canvas:
    """Drawing surface size in canvas units (origin top-left, y down)."""
    width: float = 800.0
    height: float = 600.0

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            v = _finite(getattr(self, name), name)
            if v <= 0.0:
                raise ValueError(f"{name} must be positive.")
            setattr(self, name, v)

    @property
    def center(self) -> Point2D:
        return (0.5 * self.width, 0.5 * self.height)


@dataclass(frozen=True, slots=True)
class InputState:
    """Pointer position for one tick."""
    x: float = 0.0
    y: float = 0.0

    def __post_init__(self) -> None:
        _finite(self.x, "x")
        _finite(self.y, "y")


# ---------------------------
# Frame clock
# ---------------------------
class FrameClock:
    """Monotonic scalar advanced once per frame.

    ``time`` accumulates the steps, ``ticks`` counts the calls to ``advance``.
    """

    def __init__(self, step: float = 1.0, start: float = 0.0) -> None:
        self._step = self._check_step(step)
        self._time = _finite(start, "start")
        self._ticks = 0

    @staticmethod
    def _check_step(step: float) -> float:
        s = _finite(step, "step")
        if s < 0.0:
            raise ValueError("step must be non-negative.")
        return s

    @property
    def time(self) -> float: return self._time

    @property
    def ticks(self) -> int: return self._ticks

    @property
    def step(self) -> float: return self._step

    def advance(self, step: float | None = None) -> float:
        """Add ``step`` (or the configured step) and return the new time."""
        s = self._step if step is None else self._check_step(step)
        self._time += s
        self._ticks += 1
        return self._time


# ---------------------------
# Noise field
# ---------------------------
@dataclass(slots=True)
class NoiseConfig:
    """Seeded fractal gradient noise.

    octaves: number of summed layers, each at twice the previous frequency
    falloff: amplitude ratio between successive octaves
    """
    seed: int = 0
    octaves: int = 4
    falloff: float = 0.5

    def __post_init__(self) -> None:
        if self.octaves < 1:
            raise ValueError("octaves must be >= 1.")
        if not (0.0 < self.falloff < 1.0):
            raise ValueError("falloff must lie in (0, 1).")


_GRAD3 = np.array(
    [
        [1, 1, 0], [-1, 1, 0], [1, -1, 0], [-1, -1, 0],
        [1, 0, 1], [-1, 0, 1], [1, 0, -1], [-1, 0, -1],
        [0, 1, 1], [0, -1, 1], [0, 1, -1], [0, -1, -1],
    ],
    dtype=np.float64,
)


def _fade(t: np.ndarray) -> np.ndarray:
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


class NoiseField:
    """Deterministic, continuous 3-D noise in [0, 1].

    Improved Perlin gradient noise summed over octaves. The only state is the
    permutation table drawn from the seed at construction.
    """

    def __init__(self, config: NoiseConfig | None = None) -> None:
        self._cfg = config or NoiseConfig()
        perm = np.random.default_rng(self._cfg.seed).permutation(256)
        self._perm = np.concatenate([perm, perm]).astype(np.int64)
        amps = self._cfg.falloff ** np.arange(self._cfg.octaves)
        self._amps = amps / amps.sum()

    @property
    def config(self) -> NoiseConfig: return self._cfg

    def _gradient_noise(self, x: np.ndarray, y: np.ndarray, z: np.ndarray) -> np.ndarray:
        p = self._perm
        fx, fy, fz = np.floor(x), np.floor(y), np.floor(z)
        xi = fx.astype(np.int64) & 255
        yi = fy.astype(np.int64) & 255
        zi = fz.astype(np.int64) & 255
        x, y, z = x - fx, y - fy, z - fz
        u, v, w = _fade(x), _fade(y), _fade(z)

        a = p[xi] + yi
        aa = p[a] + zi
        ab = p[a + 1] + zi
        b = p[xi + 1] + yi
        ba = p[b] + zi
        bb = p[b + 1] + zi

        def grad(h: np.ndarray, dx: np.ndarray, dy: np.ndarray, dz: np.ndarray) -> np.ndarray:
            g = _GRAD3[p[h] % 12]
            return g[..., 0] * dx + g[..., 1] * dy + g[..., 2] * dz

        def mix(lo: np.ndarray, hi: np.ndarray, t: np.ndarray) -> np.ndarray:
            return lo + t * (hi - lo)

        x1 = mix(grad(aa, x, y, z), grad(ba, x - 1, y, z), u)
        x2 = mix(grad(ab, x, y - 1, z), grad(bb, x - 1, y - 1, z), u)
        x3 = mix(grad(aa + 1, x, y, z - 1), grad(ba + 1, x - 1, y, z - 1), u)
        x4 = mix(grad(ab + 1, x, y - 1, z - 1), grad(bb + 1, x - 1, y - 1, z - 1), u)
        return mix(mix(x1, x2, v), mix(x3, x4, v), w)

    def sample(
        self,
        x: float | ArrayLike,
        y: float | ArrayLike,
        z: float | ArrayLike = 0.0,
    ) -> float | FloatArray:
        """Noise value at (x, y, z). Scalars give a float, arrays broadcast."""
        xs, ys, zs = np.broadcast_arrays(
            np.asarray(x, dtype=np.float64),
            np.asarray(y, dtype=np.float64),
            np.asarray(z, dtype=np.float64),
        )
        acc = np.zeros(xs.shape, dtype=np.float64)
        freq = 1.0
        for amp in self._amps:
            acc += amp * self._gradient_noise(xs * freq, ys * freq, zs * freq)
            freq *= 2.0
        out = np.clip(0.5 * (acc + 1.0), 0.0, 1.0)
        if out.ndim == 0:
            return float(out)
        return out


# ---------------------------
# Entities
# ---------------------------
@dataclass(slots=True)
class Entity:
    """One particle, history point or trail point."""
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    alpha: float = 255.0
    size: float = 1.0
    hue: float = 0.0
    saturation: float = 100.0
    brightness: float = 100.0

    @property
    def position(self) -> Point2D:
        return (self.x, self.y)


def is_dead(entity: Entity) -> bool:
    return entity.alpha <= 0.0


def spawn_particle(
    rng: np.random.Generator,
    x: float,
    y: float,
    *,
    velocity_range: float,
    min_size: float,
    max_size: float,
    hue_min: float,
    hue_max: float,
) -> Entity:
    """Fully opaque particle at (x, y) with randomized velocity, size and hue."""
    vx, vy = rng.uniform(-velocity_range, velocity_range, size=2)
    return Entity(
        x=float(x), y=float(y),
        vx=float(vx), vy=float(vy),
        alpha=255.0,
        size=float(rng.uniform(min_size, max_size)),
        hue=float(rng.uniform(hue_min, hue_max)),
        saturation=float(rng.uniform(30.0, 60.0)),
        brightness=100.0,
    )


def integrate_with_attraction(
    entity: Entity,
    attractor: Point2D,
    *,
    radius: float,
    strength: float,
    fade: float,
) -> None:
    """Advance position by velocity, fade alpha, then pull toward ``attractor``.

    The pull is ``(attractor - position) * strength`` inside ``radius``: it grows
    with distance, so large strengths diverge.
    """
    entity.x += entity.vx
    entity.y += entity.vy
    entity.alpha -= fade
    dx = attractor[0] - entity.x
    dy = attractor[1] - entity.y
    if math.hypot(dx, dy) < radius:
        entity.vx += dx * strength
        entity.vy += dy * strength


def smooth_toward(entity: Entity, target: Point2D, amount: float) -> None:
    """Exponential smoothing: move ``amount`` of the way toward ``target``."""
    entity.x += (target[0] - entity.x) * amount
    entity.y += (target[1] - entity.y) * amount


def polar_spiral(angle: float, tightness: float) -> tuple[float, float, float]:
    """Archimedean spiral point (x, y, radius) around the origin."""
    r = angle * tightness
    return (math.cos(angle) * r, math.sin(angle) * r, r)


# ---------------------------
# Spawn policies
# ---------------------------
class SpawnPolicy(Protocol):
    def due(self, tick: int) -> bool: ...


@dataclass(frozen=True, slots=True)
class RateGated:
    """Spawn on ticks that are a multiple of ``interval``."""
    interval: int = 1

    def __post_init__(self) -> None:
        if self.interval < 1:
            raise ValueError("interval must be >= 1.")

    def due(self, tick: int) -> bool:
        return tick % self.interval == 0


@dataclass(frozen=True, slots=True)
class Always:
    """Spawn on every tick."""

    def due(self, tick: int) -> bool:
        return True


ALWAYS = Always()


# ---------------------------
# Bounded dynamic collection
# ---------------------------
class BoundedCollection:
    """Age-ordered entities with FIFO eviction at a fixed capacity.

    Index 0 is the oldest entity. The length never exceeds the capacity once an
    insertion returns.
    """

    def __init__(self, capacity: int) -> None:
        self._items: deque[Entity] = deque()
        self._capacity = self._check_capacity(capacity)

    @staticmethod
    def _check_capacity(capacity: int) -> int:
        c = int(capacity)
        if c != capacity or c < 0:
            raise ValueError("capacity must be a non-negative integer.")
        return c

    @property
    def capacity(self) -> int: return self._capacity

    def __len__(self) -> int:
        return len(self._items)

    def resize(self, capacity: int) -> int:
        """Change the capacity, dropping the oldest entities that no longer fit."""
        self._capacity = self._check_capacity(capacity)
        dropped = 0
        while len(self._items) > self._capacity:
            self._items.popleft()
            dropped += 1
        if dropped:
            logger.debug("capacity now %d, dropped %d oldest entities", self._capacity, dropped)
        return dropped

    def push(self, entity: Entity) -> Entity | None:
        if self._capacity == 0:
            return None
        self._items.append(entity)
        self.evict()
        return entity

    def spawn(
        self,
        policy: SpawnPolicy,
        tick: int,
        factory: Callable[[], Entity],
    ) -> Entity | None:
        """Create and push one entity if ``policy`` says this tick is due."""
        if self._capacity == 0 or not policy.due(tick):
            return None
        return self.push(factory())

    def evict(self) -> Entity | None:
        removed = self._items.popleft() if len(self._items) > self._capacity else None
        if len(self._items) > self._capacity:
            raise CapacityViolation(
                f"{len(self._items)} entities exceed capacity {self._capacity} after eviction."
            )
        return removed

    def update(self, fn: Callable[[Entity], None]) -> None:
        for entity in self._items:
            fn(entity)

    def remove_dead(self, predicate: Callable[[Entity], bool] = is_dead) -> int:
        before = len(self._items)
        self._items = deque(e for e in self._items if not predicate(e))
        return before - len(self._items)

    def clear(self) -> None:
        self._items.clear()

    def snapshot(self) -> tuple[Entity, ...]:
        """Copies of the entities, oldest first."""
        return tuple(replace(e) for e in self._items)


# ---------------------------
# Render primitives
# ---------------------------
class Color(NamedTuple):
    """Hue in degrees, saturation and brightness in [0, 100], alpha in [0, 255]."""
    hue: float
    saturation: float = 100.0
    brightness: float = 100.0
    alpha: float = 255.0


WHITE = Color(0.0, 0.0, 100.0)

Shape = Literal["point", "line", "polyline", "rect", "text"]


@dataclass(frozen=True, slots=True)
class RenderPrimitive:
    """Renderer-agnostic description of one drawable shape for one frame.

    point:    filled disc of diameter ``size`` at ``points[0]``
    line:     segment ``points[0]`` -> ``points[1]`` with ``stroke_weight``
    polyline: connected ``points`` with ``stroke_weight``
    rect:     square of side ``size`` centered at ``points[0]``, rotated by
              ``rotation`` radians, corners rounded by ``corner_radius``
    text:     ``label`` anchored at ``points[0]``, font size ``size``
    """
    shape: Shape
    points: tuple[Point2D, ...]
    size: float
    color: Color
    stroke_weight: float | None = None
    rotation: float | None = None
    corner_radius: float = 0.0
    filled: bool = True
    label: str | None = None

    @classmethod
    def point(cls, x: float, y: float, size: float, color: Color) -> RenderPrimitive:
        return cls("point", ((float(x), float(y)),), float(size), color)

    @classmethod
    def line(cls, p0: Point2D, p1: Point2D, color: Color, weight: float) -> RenderPrimitive:
        return cls(
            "line",
            ((float(p0[0]), float(p0[1])), (float(p1[0]), float(p1[1]))),
            float(weight), color, stroke_weight=float(weight), filled=False,
        )

    @classmethod
    def polyline(cls, points: Sequence[Point2D], color: Color, weight: float) -> RenderPrimitive:
        pts = tuple((float(px), float(py)) for px, py in points)
        return cls("polyline", pts, float(weight), color, stroke_weight=float(weight), filled=False)

    @classmethod
    def rect(
        cls,
        x: float,
        y: float,
        size: float,
        color: Color,
        *,
        rotation: float = 0.0,
        corner_radius: float = 0.0,
    ) -> RenderPrimitive:
        return cls(
            "rect", ((float(x), float(y)),), float(size), color,
            rotation=float(rotation), corner_radius=float(corner_radius),
        )

    @classmethod
    def text(cls, x: float, y: float, label: str, color: Color, size: float = 12.0) -> RenderPrimitive:
        return cls("text", ((float(x), float(y)),), float(size), color, label=label)
