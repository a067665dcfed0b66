"""Tests for the browser geolocation source (message handling only, no sockets)."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

from wayfinder.browser_feed import BrowserGeolocation
from wayfinder.errors import GeolocationUnavailable, TrackingFailed
from wayfinder.gps import TrackingFeed
from wayfinder.models import GeoPoint
from wayfinder.session import RouteSession

NOW = 1_700_000_000.0


def message(msg_type: str, **data) -> str:
    return json.dumps({"type": msg_type, "data": data})


# ---------------------------------------------------------------------------
# handle_message
# ---------------------------------------------------------------------------

def test_position_message_is_queued_as_sample():
    source = BrowserGeolocation()
    assert source.handle_message(message("position", lat=13.75, lon=100.5,
                                         accuracy=12.3, timestamp=1700000000.0)) is True
    location = source.get_location(timeout=0.1)
    assert location.position == GeoPoint(13.75, 100.5)
    assert location.accuracy == 12.3
    assert location.observed_at == 1700000000.0
    assert source.last_location is location


def test_error_message_becomes_tracking_failed():
    source = BrowserGeolocation()
    source.handle_message(message("error", message="User denied Geolocation"))
    assert source.get_location(timeout=0.1) is None
    assert isinstance(source.last_error, TrackingFailed)
    assert "User denied Geolocation" in str(source.last_error)


def test_unsupported_message_becomes_unavailable():
    source = BrowserGeolocation()
    source.handle_message(message("unsupported"))
    assert source.get_location(timeout=0.1) is None
    assert isinstance(source.last_error, GeolocationUnavailable)


def test_garbage_is_ignored():
    source = BrowserGeolocation()
    assert source.handle_message("not json {{") is False
    assert source.handle_message(json.dumps([1, 2])) is False
    assert source.handle_message(message("position", lat="north")) is False
    assert source.handle_message(message("position", lat=95, lon=0)) is False
    assert source.handle_message(message("hello")) is False
    assert source.samples.empty()


def test_quiet_page_is_not_an_error():
    source = BrowserGeolocation()
    source.last_error = TrackingFailed("old")
    assert source.get_location(timeout=0.01) is None
    assert source.last_error is None


def test_get_location_takes_newest_fix_and_empties_queue():
    source = BrowserGeolocation()
    for lat in range(5):
        source.handle_message(message("position", lat=lat, lon=100.5, timestamp=NOW))
    location = source.get_location(timeout=0.1)
    assert location.position == GeoPoint(4, 100.5)
    assert source.samples.empty()


def test_error_after_newest_fix_wins():
    source = BrowserGeolocation()
    source.handle_message(message("position", lat=1, lon=1, timestamp=NOW))
    source.handle_message(message("error", message="Position unavailable"))
    assert source.get_location(timeout=0.1) is None
    assert isinstance(source.last_error, TrackingFailed)
    assert source.samples.empty()


def test_fix_after_error_wins():
    source = BrowserGeolocation()
    source.handle_message(message("error", message="Position unavailable"))
    source.handle_message(message("position", lat=1, lon=1, timestamp=NOW))
    assert source.get_location(timeout=0.1).position == GeoPoint(1, 1)
    assert source.last_error is None


def test_discard_pending_empties_queue():
    source = BrowserGeolocation()
    source.handle_message(message("position", lat=1, lon=1))
    source.handle_message(message("position", lat=2, lon=2))
    source.discard_pending()
    assert source.samples.empty()


def test_unsubscribing_feed_drops_queued_samples():
    source = BrowserGeolocation()
    feed = TrackingFeed(source)
    handle = feed.subscribe(lambda s: None, lambda e: None)
    source.handle_message(message("position", lat=1, lon=1))
    feed.unsubscribe(handle)
    assert source.samples.empty()


# ---------------------------------------------------------------------------
# Served page
# ---------------------------------------------------------------------------

def test_page_carries_ports_and_watch_options():
    page = BrowserGeolocation(ws_port=9999, high_accuracy=True).render_page()
    assert ":9999" in page
    assert "enableHighAccuracy: true" in page
    assert "maximumAge: 10000" in page
    assert "timeout: 10000" in page
    assert "{{" not in page


# ---------------------------------------------------------------------------
# Through the feed and session
# ---------------------------------------------------------------------------

def test_one_poll_delivers_latest_of_a_burst():
    source = BrowserGeolocation()
    feed = TrackingFeed(source, clock=lambda: NOW)
    session = RouteSession(router=MagicMock(), feed=feed, clock=lambda: NOW)
    session.start_tracking()
    for lat in range(5):
        source.handle_message(message("position", lat=lat, lon=100.5, timestamp=NOW))
    assert feed.poll() is True
    assert session.current.position == GeoPoint(4, 100.5)
    assert source.samples.empty()


def test_quiet_poll_keeps_session_tracking():
    source = BrowserGeolocation()
    feed = TrackingFeed(source, fix_timeout=0.01, clock=lambda: NOW)
    session = RouteSession(router=MagicMock(), feed=feed, clock=lambda: NOW)
    session.start_tracking()
    assert feed.poll() is False
    assert session.tracking
    assert session.last_error is None


def test_page_error_still_stops_tracking():
    source = BrowserGeolocation()
    feed = TrackingFeed(source, fix_timeout=0.01, clock=lambda: NOW)
    session = RouteSession(router=MagicMock(), feed=feed, clock=lambda: NOW)
    session.start_tracking()
    source.handle_message(message("error", message="User denied Geolocation"))
    feed.poll()
    assert not session.tracking
    assert isinstance(session.last_error, TrackingFailed)


def test_send_snapshot_without_clients_is_noop():
    source = BrowserGeolocation()
    source.send_snapshot(None)
    assert source.get_status() == "Browser feed (0 clients)"
