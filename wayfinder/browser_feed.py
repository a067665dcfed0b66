"""Browser geolocation as a position source.

A small page served over HTTP runs ``navigator.geolocation.watchPosition`` and
pushes every fix (or error) to a WebSocket server in this process. Samples are
queued and handed out by ``get_location`` on the caller's thread.
"""

import asyncio
import http.server
import json
import queue
import socketserver
import threading
import time
from functools import partial
from typing import Optional

from .config import CONFIG
from .errors import GeolocationUnavailable, TrackingFailed, WayfinderError
from .models import CurrentPosition, GeoPoint, SessionSnapshot


TRACKER_HTML = '''<!DOCTYPE html>
<html>
<head>
    <title>Wayfinder Tracker</title>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; margin: 20px; }
        .status { padding: 8px 12px; border-radius: 6px; background: #e2e8f0; margin-bottom: 12px; }
        .error { background: #fee2e2; color: #991b1b; }
        pre { background: #1e293b; color: #e2e8f0; padding: 12px; border-radius: 6px; }
    </style>
</head>
<body>
    <h1>Wayfinder Tracker</h1>
    <div id="status" class="status">Connecting...</div>
    <pre id="route">No route</pre>
    <script>
        var ws = new WebSocket('ws://' + location.hostname + ':{{WS_PORT}}');
        var statusEl = document.getElementById('status');
        function send(type, data) {
            if (ws.readyState === 1) ws.send(JSON.stringify({type: type, data: data}));
        }
        ws.onopen = function() {
            if (!navigator.geolocation) {
                send('unsupported', {});
                statusEl.textContent = 'Geolocation is not supported by your browser';
                statusEl.className = 'status error';
                return;
            }
            statusEl.textContent = 'Tracking';
            navigator.geolocation.watchPosition(function(position) {
                send('position', {
                    lat: position.coords.latitude,
                    lon: position.coords.longitude,
                    accuracy: position.coords.accuracy,
                    timestamp: position.timestamp / 1000
                });
                statusEl.className = 'status';
                statusEl.textContent = 'Fix ' + position.coords.latitude.toFixed(5) + ', ' +
                    position.coords.longitude.toFixed(5) + ' (' + Math.round(position.coords.accuracy) + ' m)';
            }, function(err) {
                send('error', {message: err.message});
                statusEl.className = 'status error';
                statusEl.textContent = err.message;
            }, {
                enableHighAccuracy: {{HIGH_ACCURACY}},
                maximumAge: {{MAX_AGE_MS}},
                timeout: {{TIMEOUT_MS}}
            });
        };
        ws.onmessage = function(event) {
            var msg = JSON.parse(event.data);
            if (msg.type === 'state') {
                document.getElementById('route').textContent = JSON.stringify(msg.data, null, 2);
            }
        };
    </script>
</body>
</html>'''


class BrowserGeolocation:
    """Position source fed by a browser over WebSocket"""

    def __init__(self, http_port: Optional[int] = None, ws_port: Optional[int] = None,
                 high_accuracy: Optional[bool] = None):
        self.http_port = http_port or CONFIG["browser_http_port"]
        self.ws_port = ws_port or CONFIG["browser_ws_port"]
        self.high_accuracy = CONFIG["tracking_high_accuracy"] if high_accuracy is None else high_accuracy
        self.samples: queue.Queue = queue.Queue()
        self.last_location: Optional[CurrentPosition] = None
        self.last_error: Optional[WayfinderError] = None
        self.connected_clients: set = set()
        self.http_thread = None
        self.ws_thread = None
        self.ws_loop = None
        self._running = False

    def render_page(self) -> str:
        return (TRACKER_HTML
                .replace("{{WS_PORT}}", str(self.ws_port))
                .replace("{{HIGH_ACCURACY}}", "true" if self.high_accuracy else "false")
                .replace("{{MAX_AGE_MS}}", str(int(CONFIG["tracking_max_sample_age"] * 1000)))
                .replace("{{TIMEOUT_MS}}", str(int(CONFIG["tracking_fix_timeout"] * 1000))))

    def start(self):
        """Start HTTP and WebSocket servers in background threads"""
        self._running = True

        self.http_thread = threading.Thread(target=self._run_http_server, daemon=True)
        self.http_thread.start()

        self.ws_thread = threading.Thread(target=self._run_ws_server, daemon=True)
        self.ws_thread.start()

        # Give servers time to start
        time.sleep(0.5)
        print(f"Open http://localhost:{self.http_port} on the device to share its location")

    def stop(self):
        self._running = False

    def _run_http_server(self):
        handler = partial(_TrackerHTTPHandler, self.render_page())
        with socketserver.TCPServer(("", self.http_port), handler) as httpd:
            httpd.allow_reuse_address = True
            while self._running:
                httpd.handle_request()

    def _run_ws_server(self):
        self.ws_loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.ws_loop)

        async def handler(websocket):
            self.connected_clients.add(websocket)
            try:
                async for message in websocket:
                    self.handle_message(message)
            finally:
                self.connected_clients.discard(websocket)

        async def main():
            try:
                import websockets
                async with websockets.serve(handler, "", self.ws_port):
                    while self._running:
                        await asyncio.sleep(0.1)
            except OSError as e:
                print(f"WebSocket server error: {e}")

        self.ws_loop.run_until_complete(main())

    def handle_message(self, message: str) -> bool:
        """Queue one message from the page. Returns False for anything unusable."""
        try:
            msg = json.loads(message)
        except json.JSONDecodeError:
            return False
        if not isinstance(msg, dict):
            return False

        msg_type = msg.get("type")
        data = msg.get("data") or {}
        if msg_type == "position":
            try:
                sample = CurrentPosition(
                    position=GeoPoint(lat=float(data["lat"]), lon=float(data["lon"])),
                    accuracy=float(data.get("accuracy") or 0.0),
                    observed_at=float(data.get("timestamp") or time.time()),
                )
            except (KeyError, TypeError, ValueError):
                return False
            self.samples.put(sample)
            return True
        if msg_type == "error":
            self.samples.put(TrackingFailed(str(data.get("message") or "unknown error")))
            return True
        if msg_type == "unsupported":
            self.samples.put(GeolocationUnavailable())
            return True
        return False

    def get_location(self, timeout: float = 30, high_accuracy: bool = True) -> Optional[CurrentPosition]:
        """Wait for the page, then take the newest queued fix or error.

        Returns None with ``last_error`` cleared when nothing arrived in time;
        a quiet page is not a failure.
        """
        try:
            item = self.samples.get(timeout=timeout)
        except queue.Empty:
            self.last_error = None
            return None
        while True:
            try:
                item = self.samples.get_nowait()
            except queue.Empty:
                break
        if isinstance(item, WayfinderError):
            self.last_error = item
            return None
        self.last_location = item
        self.last_error = None
        return item

    def discard_pending(self):
        while True:
            try:
                self.samples.get_nowait()
            except queue.Empty:
                return

    def get_status(self) -> str:
        clients = len(self.connected_clients)
        return f"Browser feed ({clients} client{'s' if clients != 1 else ''})"

    def send_snapshot(self, snapshot: SessionSnapshot):
        """Session listener: push route state back to the page"""
        if not self.connected_clients or not self.ws_loop:
            return

        message = json.dumps({"type": "state", "data": snapshot.to_dict()})

        async def send_to_all():
            for client in list(self.connected_clients):
                try:
                    await client.send(message)
                except Exception:
                    self.connected_clients.discard(client)

        asyncio.run_coroutine_threadsafe(send_to_all(), self.ws_loop)


class _TrackerHTTPHandler(http.server.SimpleHTTPRequestHandler):
    """Serves the tracker page"""

    def __init__(self, page: str, *args, **kwargs):
        self.page = page
        super().__init__(*args, **kwargs)

    def do_GET(self):
        if self.path == '/' or self.path == '/index.html':
            self.send_response(200)
            self.send_header('Content-type', 'text/html')
            self.end_headers()
            self.wfile.write(self.page.encode())
        else:
            self.send_error(404)

    def log_message(self, format, *args):
        pass  # Suppress HTTP log messages
