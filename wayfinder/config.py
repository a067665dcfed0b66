"""Configuration settings for Wayfinder."""

CONFIG = {
    "max_waypoints": 10,
    "earth_radius_km": 6371.0,
    # Tracking feed
    "tracking_high_accuracy": True,
    "tracking_max_sample_age": 10,  # seconds - older samples are dropped
    "tracking_fix_timeout": 10,  # seconds per fix
    "poll_interval": 3,  # seconds between feed polls in the CLI loop
    # Routing / geocoding services
    "osrm_url": "https://router.project-osrm.org",
    "osrm_profile": "driving",
    "nominatim_url": "https://nominatim.openstreetmap.org/search",
    "http_timeout": 15,  # seconds
    "user_agent": "wayfinder/0.1 (route planner)",
    # Map rendering
    "map_default_center": (13.7563, 100.5018),
    "map_default_zoom": 13,
    "map_focus_zoom": 16,
    "accuracy_circle_color": "#3182ce",
    "route_line_color": "#6366f1",
    # Browser geolocation feed
    "browser_http_port": 8080,
    "browser_ws_port": 8765,
}
