from __future__ import annotations

import math

import numpy as np
import pytest

from sketch2d import InvalidParameter, ParameterStore, ParamSpec

OPTIONS = (
    ParamSpec("speed", 0.1, minimum=0.0, maximum=1.0),
    ParamSpec("cols", 20, minimum=1, integer=True, dimension=True),
    ParamSpec("capacity", 50, minimum=0, integer=True),
    ParamSpec("hue", 180.0),
)


def test_defaults() -> None:
    store = ParameterStore(OPTIONS)
    assert dict(store) == {"speed": 0.1, "cols": 20, "capacity": 50, "hue": 180.0}
    assert store.defaults() == dict(store)
    assert store.get("missing") is None


def test_merge_overwrites_only_given_keys() -> None:
    store = ParameterStore(OPTIONS)
    store.merge({"hue": 42.0})
    assert store["hue"] == 42.0
    assert store["speed"] == 0.1
    assert store["cols"] == 20


@pytest.mark.parametrize(
    "partial,key",
    [
        ({"speed": math.nan}, "speed"),
        ({"hue": math.inf}, "hue"),
        ({"hue": "red"}, "hue"),
        ({"hue": True}, "hue"),
        ({"cols": 0}, "cols"),
        ({"cols": -4}, "cols"),
        ({"cols": 2.5}, "cols"),
        ({"nope": 1.0}, "nope"),
        ({"speed": 10**400}, "speed"),
    ],
)
def test_invalid_merge_is_rejected_atomically(partial: dict[str, object], key: str) -> None:
    store = ParameterStore(OPTIONS)
    before = dict(store)
    with pytest.raises(InvalidParameter) as info:
        store.merge({"hue": 10.0, **partial} if key != "hue" else partial)
    assert info.value.key == key
    assert dict(store) == before


def test_out_of_range_values_are_clamped() -> None:
    store = ParameterStore(OPTIONS)
    store.merge({"speed": 5.0, "capacity": -3})
    assert store["speed"] == 1.0
    assert store["capacity"] == 0


def test_integer_options_accept_integral_numbers() -> None:
    store = ParameterStore(OPTIONS)
    store.merge({"cols": 8.0, "capacity": np.int64(12)})
    assert store["cols"] == 8 and isinstance(store["cols"], int)
    assert store["capacity"] == 12


def test_listener_runs_inside_merge_with_changed_keys() -> None:
    seen: list[frozenset[str]] = []
    store = ParameterStore(OPTIONS, on_change=seen.append)
    store.merge({"cols": 20, "hue": 1.0})
    assert seen == [frozenset({"hue"})]
    store.merge({"hue": 1.0})
    assert len(seen) == 1


def test_listener_not_called_on_rejected_merge() -> None:
    seen: list[frozenset[str]] = []
    store = ParameterStore(OPTIONS, on_change=seen.append)
    with pytest.raises(InvalidParameter):
        store.merge({"hue": 3.0, "cols": 0})
    assert seen == []


def test_snapshot_is_read_only_and_detached() -> None:
    store = ParameterStore(OPTIONS)
    snap = store.snapshot()
    with pytest.raises(TypeError):
        snap["hue"] = 1.0  # type: ignore[index]
    store.merge({"hue": 5.0})
    assert snap["hue"] == 180.0


def test_overrides_at_construction() -> None:
    store = ParameterStore(OPTIONS, {"cols": 3})
    assert store["cols"] == 3
    with pytest.raises(InvalidParameter):
        ParameterStore(OPTIONS, {"cols": 0})


def test_spec_validation() -> None:
    with pytest.raises(ValueError):
        ParamSpec("a", 5.0, minimum=10.0)
    with pytest.raises(ValueError):
        ParamSpec("b", 1.0, dimension=True)
    with pytest.raises(ValueError):
        ParameterStore([ParamSpec("c", 1.0), ParamSpec("c", 2.0)])
