"""Routing and geocoding clients for OSRM and Nominatim."""

from typing import Optional, Sequence

import requests

from .config import CONFIG
from .errors import GeocodeNotFound, RouteNotFound, RoutingFailed
from .models import GeoPoint, RouteSummary


class OSRMRouter:
    """Road distance, duration and geometry from an OSRM server"""

    NOT_FOUND_CODES = {"NoRoute", "NoSegment", "NoMatch"}

    def __init__(self, base_url: Optional[str] = None, profile: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.base_url = (base_url or CONFIG["osrm_url"]).rstrip("/")
        self.profile = profile or CONFIG["osrm_profile"]
        self.timeout = timeout or CONFIG["http_timeout"]

    def route_url(self, points: Sequence[GeoPoint]) -> str:
        # OSRM wants lon,lat pairs
        coords = ";".join(f"{p.lon:.6f},{p.lat:.6f}" for p in points)
        return f"{self.base_url}/route/v1/{self.profile}/{coords}"

    def route(self, points: Sequence[GeoPoint]) -> RouteSummary:
        """Route through points in order. Raises RouteNotFound or RoutingFailed."""
        if len(points) < 2:
            raise RoutingFailed(f"need at least 2 points, got {len(points)}")

        try:
            response = requests.get(
                self.route_url(points),
                params={"overview": "full", "geometries": "geojson"},
                headers={"User-Agent": CONFIG["user_agent"]},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RoutingFailed(str(e)) from e

        try:
            data = response.json()
        except ValueError:
            data = None

        code = data.get("code") if isinstance(data, dict) else None
        if code in self.NOT_FOUND_CODES:
            raise RouteNotFound(data.get("message") or code)
        if response.status_code != 200 or code != "Ok":
            raise RoutingFailed(f"HTTP {response.status_code}, code {code}")

        routes = data.get("routes") or []
        if not routes:
            raise RouteNotFound("no routes returned")
        return self.parse_route(routes[0])

    @staticmethod
    def parse_route(route: dict) -> RouteSummary:
        try:
            coordinates = (route.get("geometry") or {}).get("coordinates") or []
            geometry = tuple(GeoPoint(lat=c[1], lon=c[0]) for c in coordinates)
            return RouteSummary(
                distance_m=float(route["distance"]),
                duration_s=float(route["duration"]),
                geometry=geometry,
            )
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise RoutingFailed(f"malformed route: {e}") from e


class NominatimGeocoder:
    """Free-text place search via Nominatim"""

    def __init__(self, search_url: Optional[str] = None, timeout: Optional[float] = None):
        self.search_url = search_url or CONFIG["nominatim_url"]
        self.timeout = timeout or CONFIG["http_timeout"]
        self._cache: dict[str, GeoPoint] = {}

    def geocode(self, text: str) -> GeoPoint:
        """Return the first match for text. Raises GeocodeNotFound or RoutingFailed."""
        query = text.strip()
        if not query:
            raise GeocodeNotFound(text)
        key = query.lower()
        if key in self._cache:
            return self._cache[key]

        try:
            response = requests.get(
                self.search_url,
                params={"format": "json", "q": query, "limit": 1},
                headers={"User-Agent": CONFIG["user_agent"]},
                timeout=self.timeout,
            )
            response.raise_for_status()
            results = response.json()
        except requests.RequestException as e:
            raise RoutingFailed(f"geocoding request failed: {e}") from e
        except ValueError as e:
            raise RoutingFailed(f"invalid geocoding response: {e}") from e

        if not results:
            raise GeocodeNotFound(query)
        try:
            point = GeoPoint(lat=float(results[0]["lat"]), lon=float(results[0]["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise RoutingFailed(f"malformed geocoding result: {e}") from e

        self._cache[key] = point
        return point
