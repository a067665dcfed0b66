"""Folium map rendering of session snapshots."""

from datetime import datetime
from typing import Optional

import folium

from .config import CONFIG
from .models import SessionSnapshot, SessionState


def format_distance(meters: Optional[float]) -> str:
    if not meters:
        return "N/A"
    if meters >= 1000:
        return f"{meters / 1000:.1f} km"
    return f"{round(meters)} m"


def format_duration(seconds: Optional[float]) -> str:
    if not seconds:
        return "N/A"
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_eta(timestamp: Optional[float]) -> str:
    if timestamp is None:
        return "N/A"
    return datetime.fromtimestamp(timestamp).strftime("%H:%M")


class MapRenderer:
    """Draws snapshots: position marker, accuracy circle, waypoints and route"""

    def __init__(self, output_path: Optional[str] = None):
        self.output_path = output_path
        self.last_map: Optional[folium.Map] = None

    def _center(self, snapshot: SessionSnapshot) -> tuple[list[float], int]:
        if snapshot.current:
            return snapshot.current.position.as_latlon(), CONFIG["map_focus_zoom"]
        if snapshot.waypoints:
            return snapshot.waypoints[0].position.as_latlon(), CONFIG["map_default_zoom"]
        return list(CONFIG["map_default_center"]), CONFIG["map_default_zoom"]

    def render(self, snapshot: SessionSnapshot, focus: bool = False) -> folium.Map:
        """Build a map. With focus, zoom to the current position instead of the whole route."""
        center, zoom = self._center(snapshot)
        m = folium.Map(location=center, zoom_start=zoom)

        if snapshot.current:
            position = snapshot.current.position.as_latlon()
            folium.Marker(
                position,
                popup=f"You are here<br>Accuracy: {snapshot.current.accuracy:.0f} m",
                icon=folium.Icon(color="blue", icon="user"),
            ).add_to(m)
            if snapshot.current.accuracy > 0:
                color = CONFIG["accuracy_circle_color"]
                folium.Circle(
                    location=position,
                    radius=snapshot.current.accuracy,
                    color=color,
                    fill=True,
                    fill_color=color,
                    fill_opacity=0.2,
                ).add_to(m)

        waypoints_group = folium.FeatureGroup(name="Waypoints", show=True)
        for i, waypoint in enumerate(snapshot.waypoints):
            folium.Marker(
                waypoint.position.as_latlon(),
                popup=folium.Popup(f"<b>{i + 1}. {waypoint.label}</b>", max_width=200),
                tooltip=f"{i + 1}. {waypoint.label}",
                icon=folium.Icon(color="red" if i == len(snapshot.waypoints) - 1 else "orange",
                                 icon="flag"),
            ).add_to(waypoints_group)
        waypoints_group.add_to(m)

        if snapshot.state != SessionState.IDLE:
            if snapshot.summary and snapshot.summary.geometry:
                coords = [p.as_latlon() for p in snapshot.summary.geometry]
                dash = None
            else:
                # no road geometry yet - straight legs between stops
                coords = [p.as_latlon() for p in snapshot.effective_points]
                dash = "6 8"
            if len(coords) >= 2:
                folium.PolyLine(
                    coords,
                    weight=5,
                    color=CONFIG["route_line_color"],
                    opacity=0.8,
                    dash_array=dash,
                ).add_to(m)
                if not (focus and snapshot.current):
                    m.fit_bounds(coords)

        m.get_root().html.add_child(folium.Element(self.legend_html(snapshot)))
        self.last_map = m
        return m

    def center_on(self, snapshot: SessionSnapshot) -> folium.Map:
        return self.render(snapshot, focus=True)

    @staticmethod
    def legend_html(snapshot: SessionSnapshot) -> str:
        summary = snapshot.summary
        rows = [
            ("Stops", str(len(snapshot.waypoints))),
            ("Distance", format_distance(summary.distance_m if summary else None)),
            ("Travel time", format_duration(summary.duration_s if summary else None)),
            ("ETA", format_eta(snapshot.eta)),
        ]
        if snapshot.last_error:
            rows.append(("Error", str(snapshot.last_error)))
        body = "".join(f"<div><b>{label}:</b> {value}</div>" for label, value in rows)
        return f'''
        <div style="position: fixed; bottom: 30px; left: 30px; z-index: 1000;
                    background: white; padding: 10px 14px; border-radius: 6px;
                    box-shadow: 0 2px 6px rgba(0,0,0,0.3); font-size: 13px;">
            {body}
        </div>
        '''

    def save(self, snapshot: SessionSnapshot, path: Optional[str] = None) -> str:
        path = path or self.output_path
        if not path:
            raise ValueError("no output path for map")
        self.render(snapshot).save(path)
        return path

    def on_snapshot(self, snapshot: SessionSnapshot):
        """Session listener: redraw to the configured output file"""
        if self.output_path:
            self.save(snapshot)
