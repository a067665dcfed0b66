"""Route session: tracking, waypoint edits, optimization and route summaries."""

import time
from typing import Callable, Optional

from .errors import (
    CapacityExceeded,
    GeocodeNotFound,
    GeolocationUnavailable,
    InsufficientPoints,
    OptimizeInProgress,
    TrackingFailed,
    WayfinderError,
)
from .logger import Logger, silent_logger
from .models import (
    CurrentPosition,
    GeoPoint,
    RouteRequest,
    RouteSummary,
    SessionSnapshot,
    SessionState,
    Waypoint,
)
from .optimizer import nearest_neighbor_order, tour_length
from .store import WaypointStore


class RouteSession:
    """Owns the route state and processes one event at a time.

    Summary requests go through ``dispatcher``. The default dispatcher calls
    ``router.route`` synchronously; a deferred dispatcher may resolve requests
    later through ``on_route_found`` / ``on_route_failed``. Only the response
    to the newest request for the current point list is ever applied.
    """

    def __init__(self, router=None, feed=None, geocoder=None,
                 store: Optional[WaypointStore] = None,
                 logger: Optional[Logger] = None,
                 dispatcher: Optional[Callable[[RouteRequest], None]] = None,
                 clock: Callable[[], float] = time.time):
        self.router = router
        self.feed = feed
        self.geocoder = geocoder
        self.store = store if store is not None else WaypointStore()
        self.logger = logger or silent_logger()
        self.dispatcher = dispatcher or self._dispatch_sync
        self.clock = clock

        self.state = SessionState.IDLE
        self.current: Optional[CurrentPosition] = None
        self.summary: Optional[RouteSummary] = None
        self.last_error: Optional[WayfinderError] = None

        self._summary_request: Optional[RouteRequest] = None  # produced self.summary
        self._latest_request: Optional[RouteRequest] = None
        self._request_seq = 0
        self._subscription: Optional[int] = None
        self._listeners: list[Callable[[SessionSnapshot], None]] = []

    # ------------------------------------------------------------------
    # Read side

    @property
    def waypoints(self) -> tuple[Waypoint, ...]:
        return self.store.all()

    @property
    def tracking(self) -> bool:
        return self._subscription is not None

    @property
    def eta(self) -> Optional[float]:
        """Arrival time (POSIX seconds) for the current summary"""
        if self.summary is None or self._summary_request is None:
            return None
        return self._summary_request.requested_at + self.summary.duration_s

    @property
    def pending(self) -> bool:
        return self._latest_request is not None

    def effective_points(self) -> tuple[GeoPoint, ...]:
        points = [w.position for w in self.store.all()]
        if self.current is not None:
            points.insert(0, self.current.position)
        return tuple(points)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self.state,
            tracking=self.tracking,
            current=self.current,
            waypoints=self.store.all(),
            effective_points=self.effective_points(),
            summary=self.summary,
            eta=self.eta,
            last_error=self.last_error,
            pending=self.pending,
        )

    def register_listener(self, callback: Callable[[SessionSnapshot], None]):
        self._listeners.append(callback)

    def _notify(self):
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for callback in list(self._listeners):
            callback(snapshot)

    # ------------------------------------------------------------------
    # Errors

    def _record_error(self, error: WayfinderError):
        self.last_error = error
        self.logger.log("Error", error.to_dict())

    def _fail(self, error: WayfinderError):
        self._record_error(error)
        self._notify()
        raise error

    def _succeeded(self):
        self.last_error = None

    # ------------------------------------------------------------------
    # Tracking

    def start_tracking(self):
        if self.tracking:
            return
        if self.feed is None:
            self._fail(GeolocationUnavailable())
        self._subscription = self.feed.subscribe(self.on_position_update, self.on_tracking_error)
        self.logger.log("Tracking started", {"handle": self._subscription})
        self._notify()

    def stop_tracking(self):
        """Release the feed subscription. Safe to call any number of times."""
        handle, self._subscription = self._subscription, None
        if handle is None:
            return
        self.feed.unsubscribe(handle)
        self.logger.log("Tracking stopped", {"handle": handle})
        self._notify()

    def close(self):
        self.stop_tracking()

    def on_position_update(self, current: CurrentPosition):
        self.current = current
        self._succeeded()
        self.logger.log("Position", current.to_dict())
        self._points_changed()

    def on_tracking_error(self, error):
        if not isinstance(error, WayfinderError):
            error = TrackingFailed(str(error))
        self._record_error(error)
        if self.tracking:
            self.stop_tracking()
        else:
            self._notify()

    # ------------------------------------------------------------------
    # Waypoint edits

    def add_waypoint(self, label: str, position: GeoPoint) -> Waypoint:
        try:
            waypoint = self.store.add(label, position)
        except WayfinderError as e:
            self._fail(e)
        self._succeeded()
        self.logger.log("Waypoint added", waypoint.to_dict())
        self._points_changed()
        return waypoint

    def add_waypoint_at(self, lat: float, lon: float) -> Waypoint:
        """Map click: add an unnamed waypoint at a coordinate"""
        return self.add_waypoint(f"{lat:.5f}, {lon:.5f}", GeoPoint(lat=lat, lon=lon))

    def add_place(self, text: str) -> Waypoint:
        """Geocode free text and add the result as a waypoint"""
        if self.geocoder is None:
            self._fail(GeocodeNotFound(text))
        if len(self.store) >= self.store.capacity:
            self._fail(CapacityExceeded(self.store.capacity))
        try:
            position = self.geocoder.geocode(text)
        except WayfinderError as e:
            self._fail(e)
        return self.add_waypoint(text, position)

    def set_destination(self, text: str) -> Waypoint:
        """Single-destination mode: replace all waypoints with one place"""
        if self.geocoder is None:
            self._fail(GeocodeNotFound(text))
        try:
            position = self.geocoder.geocode(text)
        except WayfinderError as e:
            self._fail(e)
        self.store.clear()
        return self.add_waypoint(text, position)

    def remove_waypoint(self, waypoint_id: str):
        self._succeeded()
        if self.store.remove(waypoint_id):
            self.logger.log("Waypoint removed", {"id": waypoint_id})
            self._points_changed()

    def swap_waypoints(self, index_a: int, index_b: int):
        self._edit(self.store.swap, index_a, index_b)

    def move_up(self, index: int):
        self._edit(self.store.move_up, index)

    def move_down(self, index: int):
        self._edit(self.store.move_down, index)

    def clear_waypoints(self):
        self.store.clear()
        self.logger.log("Waypoints cleared")
        self._succeeded()
        self._points_changed()

    def _edit(self, operation, *args):
        try:
            operation(*args)
        except WayfinderError as e:
            self._fail(e)
        self._succeeded()
        self.logger.log("Waypoints reordered", {"order": [w.label for w in self.store.all()]})
        self._points_changed()

    # ------------------------------------------------------------------
    # Optimization

    def request_optimize(self) -> list[Waypoint]:
        if self.state == SessionState.OPTIMIZING:
            self._fail(OptimizeInProgress())
        count = len(self.effective_points())
        if self.state != SessionState.ROUTE_ACTIVE or count < 2:
            self._fail(InsufficientPoints(count))

        start = self.current.position if self.current else None
        before = self.store.all()
        self.state = SessionState.OPTIMIZING
        try:
            ordered = nearest_neighbor_order(before, start=start)
            self.store.replace_order(ordered)
        finally:
            self.state = SessionState.ROUTE_ACTIVE

        self.logger.log("Route optimized", {
            "order": [w.label for w in ordered],
            "before_km": round(tour_length(before, start), 3),
            "after_km": round(tour_length(ordered, start), 3),
        })
        self._succeeded()
        self._request_summary()
        self._notify()
        return ordered

    # ------------------------------------------------------------------
    # Route summaries

    def _points_changed(self):
        points = self.effective_points()
        if len(points) >= 2:
            if self.state == SessionState.IDLE:
                self.logger.log("State", {"from": self.state.value, "to": SessionState.ROUTE_ACTIVE.value})
            self.state = SessionState.ROUTE_ACTIVE
            self._request_summary()
        else:
            if self.state != SessionState.IDLE:
                self.logger.log("State", {"from": self.state.value, "to": SessionState.IDLE.value})
            self.state = SessionState.IDLE
            self.summary = None
            self._summary_request = None
            self._latest_request = None
        self._notify()

    def _request_summary(self):
        self._request_seq += 1
        request = RouteRequest(
            seq=self._request_seq,
            points=self.effective_points(),
            requested_at=self.clock(),
        )
        self._latest_request = request
        self.logger.log("Route requested", {"seq": request.seq, "points": len(request.points)})
        self.dispatcher(request)

    def _dispatch_sync(self, request: RouteRequest):
        if self.router is None:
            return
        try:
            summary = self.router.route(request.points)
        except WayfinderError as e:
            self.on_route_failed(request, e)
            return
        self.on_route_found(request, summary)

    def _is_current(self, request: RouteRequest) -> bool:
        return (request is self._latest_request
                and request.points == self.effective_points())

    def on_route_found(self, request: RouteRequest, summary: RouteSummary) -> bool:
        """Apply a routing response. Returns False if it was stale and discarded."""
        if not self._is_current(request):
            self.logger.log("Discarded stale route", {"seq": request.seq})
            return False
        self.summary = summary
        self._summary_request = request
        self._latest_request = None
        self._succeeded()
        self.logger.log("Route found", {
            "seq": request.seq,
            "distance_m": summary.distance_m,
            "duration_s": summary.duration_s,
            "eta": self.eta,
        })
        self._notify()
        return True

    def on_route_failed(self, request: RouteRequest, error: WayfinderError) -> bool:
        """Record a routing failure. The previous summary, if any, is kept."""
        if not self._is_current(request):
            self.logger.log("Discarded stale route failure", {"seq": request.seq})
            return False
        self._latest_request = None
        self._record_error(error)
        self._notify()
        return True
