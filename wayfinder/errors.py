"""Error kinds raised and recorded by Wayfinder."""

from typing import Optional


class WayfinderError(Exception):
    """Base class for every error the session can report"""

    kind = "error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    def default_message(self) -> str:
        return self.kind

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class GeolocationUnavailable(WayfinderError):
    kind = "geolocation_unavailable"

    def default_message(self) -> str:
        return "Geolocation is not supported on this device"


class TrackingFailed(WayfinderError):
    kind = "tracking_failed"

    def __init__(self, reason: str = "unknown error"):
        self.reason = reason
        super().__init__(f"Tracking failed: {reason}")


class GeocodeNotFound(WayfinderError):
    kind = "geocode_not_found"

    def __init__(self, query: str):
        self.query = query
        super().__init__(f"Destination not found: {query!r}")


class RoutingFailed(WayfinderError):
    kind = "routing_failed"

    def __init__(self, reason: str = "unknown error"):
        self.reason = reason
        super().__init__(f"Failed to fetch route: {reason}")


class RouteNotFound(RoutingFailed):
    kind = "route_not_found"


class CapacityExceeded(WayfinderError):
    kind = "capacity_exceeded"

    def __init__(self, capacity: int):
        self.capacity = capacity
        super().__init__(f"Cannot add more than {capacity} waypoints")


class IndexOutOfRange(WayfinderError):
    kind = "index_out_of_range"

    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        super().__init__(f"Index {index} outside [0, {length})")


class InsufficientPoints(WayfinderError):
    kind = "insufficient_points"

    def __init__(self, count: int):
        self.count = count
        super().__init__(f"Need at least 2 points, have {count}")


class OptimizeInProgress(WayfinderError):
    kind = "optimize_in_progress"

    def default_message(self) -> str:
        return "Route optimization already running"
