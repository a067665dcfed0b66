"""Wayfinder - live position tracking and multi-stop route planning."""

from .config import CONFIG
from .errors import (
    WayfinderError,
    GeolocationUnavailable,
    TrackingFailed,
    GeocodeNotFound,
    RoutingFailed,
    RouteNotFound,
    CapacityExceeded,
    IndexOutOfRange,
    InsufficientPoints,
    OptimizeInProgress,
)
from .models import (
    GeoPoint,
    Waypoint,
    CurrentPosition,
    RouteSummary,
    RouteRequest,
    SessionState,
    SessionSnapshot,
)
from .logger import Logger
from .geo import (
    haversine_distance,
    distance,
    path_length,
    bearing_between,
    bearing_to_compass,
    retry_with_backoff,
)
from .store import WaypointStore
from .optimizer import nearest_neighbor_order, tour_length
from .routing import OSRMRouter, NominatimGeocoder
from .gps import GPS, GPSRecorder, GPSPlayback, TrackingFeed
from .browser_feed import BrowserGeolocation
from .renderer import MapRenderer, format_distance, format_duration, format_eta
from .session import RouteSession

__all__ = [
    "CONFIG",
    "WayfinderError",
    "GeolocationUnavailable",
    "TrackingFailed",
    "GeocodeNotFound",
    "RoutingFailed",
    "RouteNotFound",
    "CapacityExceeded",
    "IndexOutOfRange",
    "InsufficientPoints",
    "OptimizeInProgress",
    "GeoPoint",
    "Waypoint",
    "CurrentPosition",
    "RouteSummary",
    "RouteRequest",
    "SessionState",
    "SessionSnapshot",
    "Logger",
    "haversine_distance",
    "distance",
    "path_length",
    "bearing_between",
    "bearing_to_compass",
    "retry_with_backoff",
    "WaypointStore",
    "nearest_neighbor_order",
    "tour_length",
    "OSRMRouter",
    "NominatimGeocoder",
    "GPS",
    "GPSRecorder",
    "GPSPlayback",
    "TrackingFeed",
    "BrowserGeolocation",
    "MapRenderer",
    "format_distance",
    "format_duration",
    "format_eta",
    "RouteSession",
]
