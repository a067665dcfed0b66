"""Data classes for Wayfinder."""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float

    def __post_init__(self):
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"latitude out of range: {self.lat}")
        if not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"longitude out of range: {self.lon}")

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}

    @classmethod
    def from_dict(cls, d: dict) -> "GeoPoint":
        return cls(lat=float(d["lat"]), lon=float(d["lon"]))

    def as_latlon(self) -> list[float]:
        return [self.lat, self.lon]


def new_waypoint_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Waypoint:
    """A named stop; id stays the same across reorders"""
    id: str
    label: str
    position: GeoPoint

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "position": self.position.to_dict()}


@dataclass(frozen=True)
class CurrentPosition:
    """Latest tracking sample"""
    position: GeoPoint
    accuracy: float = 0.0  # meters
    observed_at: float = 0.0  # POSIX seconds

    def __post_init__(self):
        if self.accuracy < 0:
            raise ValueError(f"accuracy must be >= 0, got {self.accuracy}")

    def to_dict(self) -> dict:
        return {
            "lat": self.position.lat,
            "lon": self.position.lon,
            "accuracy": self.accuracy,
            "observed_at": self.observed_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "CurrentPosition":
        return cls(
            position=GeoPoint(float(d["lat"]), float(d["lon"])),
            accuracy=float(d.get("accuracy") or 0.0),
            observed_at=float(d.get("observed_at") or d.get("timestamp") or 0.0),
        )


@dataclass(frozen=True)
class RouteSummary:
    distance_m: float
    duration_s: float
    geometry: tuple[GeoPoint, ...] = ()

    def __post_init__(self):
        if self.distance_m < 0 or self.duration_s < 0:
            raise ValueError("route distance and duration must be >= 0")

    def to_dict(self) -> dict:
        return {
            "distance_m": self.distance_m,
            "duration_s": self.duration_s,
            "geometry": [p.as_latlon() for p in self.geometry],
        }


@dataclass(frozen=True)
class RouteRequest:
    """Snapshot of the effective point list a summary was requested for"""
    seq: int
    points: tuple[GeoPoint, ...]
    requested_at: float


class SessionState(Enum):
    IDLE = "idle"
    ROUTE_ACTIVE = "route_active"
    OPTIMIZING = "optimizing"


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a RouteSession handed to renderers and listeners"""
    state: SessionState
    tracking: bool
    current: Optional[CurrentPosition]
    waypoints: tuple[Waypoint, ...]
    effective_points: tuple[GeoPoint, ...]
    summary: Optional[RouteSummary] = None
    eta: Optional[float] = None
    last_error: Optional[Exception] = None
    pending: bool = False

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "tracking": self.tracking,
            "current": self.current.to_dict() if self.current else None,
            "waypoints": [w.to_dict() for w in self.waypoints],
            "summary": self.summary.to_dict() if self.summary else None,
            "eta": self.eta,
            "last_error": str(self.last_error) if self.last_error else None,
            "pending": self.pending,
        }
