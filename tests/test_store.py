"""Tests for WaypointStore."""

from __future__ import annotations

import pytest

from wayfinder.errors import CapacityExceeded, IndexOutOfRange
from wayfinder.models import GeoPoint
from wayfinder.store import WaypointStore


def make_store(n: int = 3) -> WaypointStore:
    store = WaypointStore()
    for i in range(n):
        store.add(f"P{i}", GeoPoint(0.0, float(i)))
    return store


def labels(store: WaypointStore) -> list[str]:
    return [w.label for w in store.all()]


# ---------------------------------------------------------------------------
# add
# ---------------------------------------------------------------------------

def test_add_appends_in_order_with_unique_ids():
    store = make_store(3)
    assert labels(store) == ["P0", "P1", "P2"]
    assert len({w.id for w in store.all()}) == 3


def test_eleventh_waypoint_raises_capacity_exceeded():
    store = make_store(10)
    with pytest.raises(CapacityExceeded):
        store.add("one too many", GeoPoint(1, 1))
    assert len(store) == 10


def test_custom_capacity():
    store = WaypointStore(capacity=2)
    store.add("a", GeoPoint(0, 0))
    store.add("b", GeoPoint(0, 1))
    with pytest.raises(CapacityExceeded):
        store.add("c", GeoPoint(0, 2))


# ---------------------------------------------------------------------------
# remove / clear
# ---------------------------------------------------------------------------

def test_remove_preserves_relative_order():
    store = make_store(3)
    middle = store.all()[1]
    assert store.remove(middle.id) is True
    assert labels(store) == ["P0", "P2"]


def test_remove_unknown_id_is_noop():
    store = make_store(2)
    before = store.all()
    assert store.remove("does-not-exist") is False
    assert store.remove("does-not-exist") is False
    assert store.all() == before


def test_clear_empties_store():
    store = make_store(4)
    store.clear()
    assert len(store) == 0
    assert store.all() == ()


# ---------------------------------------------------------------------------
# swap / move
# ---------------------------------------------------------------------------

def test_swap_exchanges_positions_and_keeps_membership():
    store = make_store(3)
    ids_before = {w.id for w in store.all()}
    store.swap(0, 2)
    assert labels(store) == ["P2", "P1", "P0"]
    assert {w.id for w in store.all()} == ids_before
    assert len(store) == 3


@pytest.mark.parametrize("a, b", [(0, 3), (-1, 0), (5, 5)])
def test_swap_out_of_range(a, b):
    store = make_store(3)
    with pytest.raises(IndexOutOfRange):
        store.swap(a, b)
    assert labels(store) == ["P0", "P1", "P2"]


def test_move_up_and_down():
    store = make_store(3)
    store.move_up(2)
    assert labels(store) == ["P0", "P2", "P1"]
    store.move_down(0)
    assert labels(store) == ["P2", "P0", "P1"]


def test_move_past_the_ends_raises():
    store = make_store(2)
    with pytest.raises(IndexOutOfRange):
        store.move_up(0)
    with pytest.raises(IndexOutOfRange):
        store.move_down(1)


# ---------------------------------------------------------------------------
# snapshots and write-back
# ---------------------------------------------------------------------------

def test_all_is_a_snapshot():
    store = make_store(2)
    snap = store.all()
    store.add("later", GeoPoint(5, 5))
    assert len(snap) == 2


def test_get_by_id():
    store = make_store(2)
    first = store.all()[0]
    assert store.get(first.id) is first
    assert store.get("missing") is None


def test_replace_order_accepts_permutation():
    store = make_store(3)
    reordered = list(reversed(store.all()))
    store.replace_order(reordered)
    assert labels(store) == ["P2", "P1", "P0"]


def test_replace_order_rejects_foreign_waypoints():
    store = make_store(3)
    other = make_store(3)
    with pytest.raises(ValueError):
        store.replace_order(list(other.all()))
    with pytest.raises(ValueError):
        store.replace_order(list(store.all())[:2])
