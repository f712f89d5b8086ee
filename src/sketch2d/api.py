from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import logging
import math
import numbers

from .sketch2d import Color, FrameClock, InputState, RenderPrimitive

if TYPE_CHECKING:
    from .visualizations import Visualization

logger = logging.getLogger(__name__)


class InvalidParameter(ValueError):
    """A parameter merge was rejected; ``key`` names the offending option."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"{key}: {message}")
        self.key = key
        self.message = message


# ----------------------
# Option tables
# ----------------------

@dataclass(frozen=True, slots=True)
class ParamSpec:
    """One live-editable option.

    Values outside [minimum, maximum] are clamped on merge. ``integer`` options
    reject non-integral values; ``dimension`` options additionally reject
    values <= 0.
    """
    name: str
    default: float
    minimum: float | None = None
    maximum: float | None = None
    integer: bool = False
    dimension: bool = False
    doc: str = ""

    def __post_init__(self) -> None:
        if self.dimension and not self.integer:
            raise ValueError(f"{self.name}: dimension options must be integer.")
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise ValueError(f"{self.name}: minimum exceeds maximum.")
        if self.coerce(self.default) != self.default:
            raise ValueError(f"{self.name}: default {self.default!r} is out of range.")

    def coerce(self, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidParameter(self.name, f"expected a number, got {type(value).__name__}")
        try:
            v = float(value)
        except (OverflowError, ValueError):
            raise InvalidParameter(self.name, "must be finite") from None
        if not math.isfinite(v):
            raise InvalidParameter(self.name, "must be finite")
        if self.integer:
            if not v.is_integer():
                raise InvalidParameter(self.name, "must be an integer")
            if self.dimension and v <= 0:
                raise InvalidParameter(self.name, "must be a positive integer")
        if self.minimum is not None:
            v = max(v, self.minimum)
        if self.maximum is not None:
            v = min(v, self.maximum)
        return int(v) if self.integer else v


ChangeListener = Callable[[frozenset[str]], None]


class ParameterStore(Mapping[str, float]):
    """Named parameter set with atomic, validated partial merges."""

    def __init__(
        self,
        options: Iterable[ParamSpec],
        overrides: Mapping[str, Any] | None = None,
        *,
        on_change: ChangeListener | None = None,
    ) -> None:
        self._specs: dict[str, ParamSpec] = {}
        for spec in options:
            if spec.name in self._specs:
                raise ValueError(f"Duplicate option: {spec.name}")
            self._specs[spec.name] = spec
        self._values: dict[str, float] = {k: s.default for k, s in self._specs.items()}
        if overrides:
            self._values.update(self.validate(overrides))
        self._listeners: list[ChangeListener] = [on_change] if on_change is not None else []

    # -------- mapping --------
    def __getitem__(self, key: str) -> float:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    @property
    def options(self) -> tuple[ParamSpec, ...]:
        return tuple(self._specs.values())

    def defaults(self) -> dict[str, float]:
        return {k: s.default for k, s in self._specs.items()}

    def snapshot(self) -> Mapping[str, float]:
        """Read-only copy of the current values."""
        return MappingProxyType(dict(self._values))

    # -------- updates --------
    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def validate(self, partial: Mapping[str, Any]) -> dict[str, float]:
        """Coerced copy of ``partial``; raises InvalidParameter on the first bad key."""
        staged: dict[str, float] = {}
        for key, value in partial.items():
            spec = self._specs.get(key)
            if spec is None:
                raise InvalidParameter(str(key), "unknown option")
            staged[key] = spec.coerce(value)
        return staged

    def merge(self, partial: Mapping[str, Any]) -> None:
        """Overwrite exactly the given keys, all or none."""
        staged = self.validate(partial)
        changed = frozenset(k for k, v in staged.items() if self._values[k] != v)
        self._values.update(staged)
        if changed:
            for listener in self._listeners:
                listener(changed)


# ----------------------
# Frame loop
# ----------------------

@dataclass(frozen=True, slots=True)
class Frame:
    """Everything a renderer needs for one tick.

    background: overlay painted before the primitives; alpha < 255 leaves
    translucent trails of earlier frames.
    """
    index: int
    background: Color
    primitives: tuple[RenderPrimitive, ...]


@dataclass(frozen=True, slots=True)
class UpdateResult:
    ok: bool
    key: str | None = None
    message: str = ""
    deferred: bool = False

    def __bool__(self) -> bool:
        return self.ok


class SketchRunner:
    """Drives one visualization: one step per tick, merges never mid-step."""

    def __init__(self, visualization: Visualization, *, clock: FrameClock | None = None) -> None:
        self._vis = visualization
        self._clock = clock or FrameClock()
        self._pending: deque[dict[str, float]] = deque()
        self._stepping = False

    @property
    def visualization(self) -> Visualization: return self._vis

    @property
    def clock(self) -> FrameClock: return self._clock

    @property
    def pending(self) -> int: return len(self._pending)

    def tick(self, inputs: InputState) -> Frame:
        self._clock.advance()
        self._stepping = True
        try:
            primitives = tuple(self._vis.step(self._clock, self._vis.params.snapshot(), inputs))
            background = self._vis.background()
        finally:
            self._stepping = False
        self._drain()
        return Frame(index=self._clock.ticks, background=background, primitives=primitives)

    def submit(self, partial: Mapping[str, Any]) -> UpdateResult:
        """Validate a partial update; apply it now, or after the running step."""
        try:
            staged = self._vis.params.validate(partial)
        except InvalidParameter as exc:
            logger.warning("rejected update for %s: %s", self._vis.name, exc)
            return UpdateResult(ok=False, key=exc.key, message=exc.message)
        if self._stepping:
            self._pending.append(staged)
            return UpdateResult(ok=True, deferred=True)
        self._vis.update_parameters(staged)
        return UpdateResult(ok=True)

    def _drain(self) -> None:
        while self._pending:
            self._vis.update_parameters(self._pending.popleft())
