#!/usr/bin/env python3
"""
Wayfinder - live position tracking and multi-stop route planning

Usage:
    python -m wayfinder [options]

Options:
    --lat LAT          Starting latitude (skips the initial GPS fix)
    --lon LON          Starting longitude
    --stop STOP        Add a stop, either "Label@lat,lon" or free text to geocode (repeatable)
    --destination TXT  Single destination: geocode TXT and route to it
    --optimize         Reorder stops with the nearest-neighbor heuristic
    --profile NAME     OSRM profile (driving, walking, cycling)
    --html FILE        Write the route map to an HTML file (redrawn on every update)
    --track MODE       Keep tracking: none, gps, playback or browser
    --playback FILE    GPS trace for --track playback
    --record FILE      Record GPS trace to JSON file (with --track gps)
    --speed FACTOR     Playback speed multiplier (default: 1.0)
    --log FILE         Append session log to FILE
"""

import argparse
import sys
import time
from pathlib import Path
from typing import Optional

from .browser_feed import BrowserGeolocation
from .config import CONFIG
from .errors import WayfinderError
from .geo import bearing_between, bearing_to_compass, distance, retry_with_backoff
from .gps import GPS, GPSPlayback, GPSRecorder, TrackingFeed
from .logger import Logger
from .models import CurrentPosition, GeoPoint, SessionSnapshot
from .renderer import MapRenderer, format_distance, format_duration, format_eta
from .routing import NominatimGeocoder, OSRMRouter
from .session import RouteSession


def parse_stop(value: str) -> tuple[str, Optional[GeoPoint]]:
    """Split "Label@lat,lon" into its parts; anything else is a place to geocode."""
    label, sep, coords = value.rpartition("@")
    if sep and label:
        parts = coords.split(",")
        if len(parts) == 2:
            try:
                return label.strip(), GeoPoint(lat=float(parts[0]), lon=float(parts[1]))
            except ValueError:
                pass
    return value.strip(), None


def describe(snapshot: SessionSnapshot) -> list[str]:
    """Human readable lines for a snapshot"""
    lines = [f"State: {snapshot.state.value}"]
    prev = None
    if snapshot.current:
        prev = snapshot.current.position
        lines.append(f"Start: {prev.lat:.5f}, {prev.lon:.5f} (accuracy {snapshot.current.accuracy:.0f} m)")
    for i, waypoint in enumerate(snapshot.waypoints):
        point = waypoint.position
        leg = ""
        if prev is not None:
            km = distance(prev, point)
            heading = bearing_to_compass(bearing_between(prev.lat, prev.lon, point.lat, point.lon))
            leg = f" - {format_distance(km * 1000)} {heading}"
        lines.append(f"{i + 1}. {waypoint.label}{leg}")
        prev = point
    if snapshot.summary:
        lines.append(f"Distance: {format_distance(snapshot.summary.distance_m)}, "
                     f"travel time: {format_duration(snapshot.summary.duration_s)}, "
                     f"ETA: {format_eta(snapshot.eta)}")
    if snapshot.last_error:
        lines.append(f"Error: {snapshot.last_error}")
    return lines


def _initial_fix(source, logger: Logger) -> Optional[CurrentPosition]:
    def try_gps():
        loc = source.get_location(timeout=CONFIG["tracking_fix_timeout"],
                                  high_accuracy=CONFIG["tracking_high_accuracy"])
        if loc:
            logger.log("GPS fix obtained", loc.to_dict())
        else:
            logger.log("GPS attempt failed")
        return loc

    return retry_with_backoff(try_gps, max_time=30.0, initial_delay=1.0,
                              max_delay=8.0, description="GPS fix")


def main():
    parser = argparse.ArgumentParser(
        description="Live position tracking and multi-stop route planning"
    )
    parser.add_argument("--lat", type=float, help="Starting latitude")
    parser.add_argument("--lon", type=float, help="Starting longitude")
    parser.add_argument("--stop", action="append", default=[],
                        help='Stop as "Label@lat,lon" or free text to geocode (repeatable)')
    parser.add_argument("--destination", help="Single destination to geocode and route to")
    parser.add_argument("--optimize", action="store_true",
                        help="Reorder stops with the nearest-neighbor heuristic")
    parser.add_argument("--profile", default=CONFIG["osrm_profile"], help="OSRM profile")
    parser.add_argument("--html", help="Write route map to HTML file")
    parser.add_argument("--track", choices=["none", "gps", "playback", "browser"], default="none",
                        help="Keep tracking after planning")
    parser.add_argument("--playback", help="GPS trace JSON for --track playback")
    parser.add_argument("--record", help="Record GPS trace to JSON file (with --track gps)")
    parser.add_argument("--speed", type=float, default=1.0, help="Playback speed multiplier")
    parser.add_argument("--log", help="Append session log to file")

    args = parser.parse_args()

    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be used together")
    if args.track == "playback" and not args.playback:
        parser.error("--track playback requires --playback FILE")
    if args.playback and not Path(args.playback).exists():
        print(f"Playback file not found: {args.playback}")
        sys.exit(1)

    logger = Logger(args.log)

    # Position source
    source = None
    if args.track == "gps":
        source = GPS()
        if args.record:
            source = GPSRecorder(source, args.record)
    elif args.track == "playback":
        source = GPSPlayback(args.playback, args.speed)
    elif args.track == "browser":
        source = BrowserGeolocation()
        source.start()
    feed = TrackingFeed(source) if source else None

    session = RouteSession(
        router=OSRMRouter(profile=args.profile),
        feed=feed,
        geocoder=NominatimGeocoder(),
        logger=logger,
    )
    if args.html:
        session.register_listener(MapRenderer(args.html).on_snapshot)
    if isinstance(source, BrowserGeolocation):
        session.register_listener(source.send_snapshot)

    try:
        if args.lat is not None:
            session.on_position_update(CurrentPosition(
                position=GeoPoint(lat=args.lat, lon=args.lon), accuracy=0.0, observed_at=time.time()
            ))
        elif isinstance(source, (GPS, GPSRecorder)):
            location = _initial_fix(source, logger)
            if location:
                session.on_position_update(location)
            else:
                print("Could not get GPS location")

        if args.destination:
            try:
                session.set_destination(args.destination)
            except WayfinderError as e:
                print(f"Destination skipped: {e}")

        for value in args.stop:
            label, point = parse_stop(value)
            try:
                if point is not None:
                    session.add_waypoint(label, point)
                else:
                    session.add_place(label)
            except WayfinderError as e:
                print(f"Stop {value!r} skipped: {e}")

        if args.optimize:
            try:
                session.request_optimize()
            except WayfinderError as e:
                print(f"Cannot optimize: {e}")

        print("\n".join(describe(session.snapshot())))

        if feed is None:
            return

        try:
            session.start_tracking()
        except WayfinderError as e:
            print(f"Tracking unavailable: {e}")
            return

        print("Tracking... (Ctrl+C to stop)")
        while session.tracking:
            if feed.poll():
                print("\n".join(describe(session.snapshot())))
            if isinstance(source, GPSPlayback):
                if source.is_finished():
                    break
                time.sleep(source.get_poll_interval())
            else:
                time.sleep(CONFIG["poll_interval"])
    except KeyboardInterrupt:
        print("\nStopped")
    finally:
        session.close()
        if isinstance(source, GPSRecorder):
            source.save()
        if isinstance(source, BrowserGeolocation):
            source.stop()
        logger.close()


if __name__ == "__main__":
    main()
