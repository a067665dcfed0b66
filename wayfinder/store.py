"""Ordered, capacity-limited collection of waypoints."""

from typing import Iterator, Optional

from .config import CONFIG
from .errors import CapacityExceeded, IndexOutOfRange
from .models import GeoPoint, Waypoint, new_waypoint_id


class WaypointStore:
    """Waypoints in visiting order. Order is the only source of truth for routing."""

    def __init__(self, capacity: Optional[int] = None):
        self.capacity = capacity if capacity is not None else CONFIG["max_waypoints"]
        self._items: list[Waypoint] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Waypoint]:
        return iter(tuple(self._items))

    def add(self, label: str, position: GeoPoint) -> Waypoint:
        if len(self._items) >= self.capacity:
            raise CapacityExceeded(self.capacity)
        waypoint = Waypoint(id=new_waypoint_id(), label=label, position=position)
        self._items.append(waypoint)
        return waypoint

    def remove(self, waypoint_id: str) -> bool:
        """Remove by id. Unknown ids are ignored; returns whether anything was removed."""
        for i, waypoint in enumerate(self._items):
            if waypoint.id == waypoint_id:
                del self._items[i]
                return True
        return False

    def _check_index(self, index: int):
        if not 0 <= index < len(self._items):
            raise IndexOutOfRange(index, len(self._items))

    def swap(self, index_a: int, index_b: int):
        self._check_index(index_a)
        self._check_index(index_b)
        items = self._items
        items[index_a], items[index_b] = items[index_b], items[index_a]

    def move_up(self, index: int):
        self._check_index(index)
        self.swap(index, index - 1)

    def move_down(self, index: int):
        self._check_index(index)
        self.swap(index, index + 1)

    def clear(self):
        self._items.clear()

    def all(self) -> tuple[Waypoint, ...]:
        return tuple(self._items)

    def get(self, waypoint_id: str) -> Optional[Waypoint]:
        for waypoint in self._items:
            if waypoint.id == waypoint_id:
                return waypoint
        return None

    def replace_order(self, waypoints: list[Waypoint]):
        """Write back a reordering. Must contain exactly the stored ids."""
        current = sorted(w.id for w in self._items)
        proposed = sorted(w.id for w in waypoints)
        if current != proposed:
            raise ValueError("new order must be a permutation of the stored waypoints")
        self._items = list(waypoints)
