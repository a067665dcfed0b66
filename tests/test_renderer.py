"""Tests for the folium renderer and display formatting."""

from __future__ import annotations

from unittest.mock import MagicMock

import folium
import pytest

from wayfinder.errors import RouteNotFound
from wayfinder.models import CurrentPosition, GeoPoint, RouteSummary
from wayfinder.renderer import MapRenderer, format_distance, format_duration, format_eta
from wayfinder.session import RouteSession

NOW = 1_000_000.0


def make_session(summary: RouteSummary) -> RouteSession:
    router = MagicMock()
    router.route.return_value = summary
    return RouteSession(router=router, clock=lambda: NOW)


def route_snapshot(geometry=()):
    session = make_session(RouteSummary(2000, 600, geometry))
    session.on_position_update(CurrentPosition(GeoPoint(13.761, 100.511), 25.0, NOW))
    session.add_waypoint("Cafe", GeoPoint(13.75, 100.50))
    session.add_waypoint("Park", GeoPoint(13.76, 100.51))
    return session.snapshot()


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("meters, expected", [
    (None, "N/A"), (0, "N/A"), (850.4, "850 m"), (999.6, "1000 m"), (1000, "1.0 km"), (2049, "2.0 km"),
])
def test_format_distance(meters, expected):
    assert format_distance(meters) == expected


@pytest.mark.parametrize("seconds, expected", [
    (None, "N/A"), (0, "N/A"), (59, "0m"), (720, "12m"), (3600, "1h 0m"), (3900, "1h 5m"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_format_eta():
    assert format_eta(None) == "N/A"
    assert len(format_eta(NOW)) == 5


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def test_render_route_contains_markers_and_summary():
    m = MapRenderer().render(route_snapshot())
    assert isinstance(m, folium.Map)
    html = m.get_root().render()
    assert "1. Cafe" in html
    assert "2. Park" in html
    assert "2.0 km" in html
    assert "10m" in html


def test_render_draws_accuracy_circle_and_route_line():
    m = MapRenderer().render(route_snapshot())
    kinds = {type(child).__name__ for child in m._children.values()}
    assert "Circle" in kinds
    assert "PolyLine" in kinds


def test_render_uses_route_geometry_when_present():
    geometry = (GeoPoint(13.761, 100.511), GeoPoint(13.7605, 100.5105), GeoPoint(13.76, 100.51))
    m = MapRenderer().render(route_snapshot(geometry))
    lines = [c for c in m._children.values() if isinstance(c, folium.PolyLine)]
    assert len(lines) == 1
    assert len(lines[0].locations) == 3


def test_render_idle_session_has_no_route_line():
    session = RouteSession(clock=lambda: NOW)
    m = MapRenderer().render(session.snapshot())
    assert not any(isinstance(c, folium.PolyLine) for c in m._children.values())
    assert m.location == [13.7563, 100.5018]


def test_center_on_focuses_current_position():
    m = MapRenderer().center_on(route_snapshot())
    assert m.location == [13.761, 100.511]
    assert not any(key.startswith("fit_bounds") for key in m._children)


def test_render_shows_last_error():
    router = MagicMock()
    router.route.side_effect = RouteNotFound("no road")
    session = RouteSession(router=router, clock=lambda: NOW)
    session.add_waypoint("Cafe", GeoPoint(13.75, 100.50))
    session.add_waypoint("Island", GeoPoint(10.0, 99.0))
    html = MapRenderer.legend_html(session.snapshot())
    assert "no road" in html


def test_save_and_listener_write_html(tmp_path):
    path = tmp_path / "route.html"
    renderer = MapRenderer(str(path))
    session = make_session(RouteSummary(2000, 600))
    session.register_listener(renderer.on_snapshot)
    session.add_waypoint("Cafe", GeoPoint(13.75, 100.50))
    assert path.exists()
    assert "Cafe" in path.read_text()


def test_save_without_path_raises():
    with pytest.raises(ValueError):
        MapRenderer().save(RouteSession().snapshot())
