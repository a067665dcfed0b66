"""Position sources and the tracking feed that delivers their samples."""

import json
import subprocess
import time
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from .config import CONFIG
from .errors import GeolocationUnavailable, TrackingFailed, WayfinderError
from .models import CurrentPosition, GeoPoint


class GPS:
    """GPS access via Termux API"""

    def __init__(self):
        self.last_location: Optional[CurrentPosition] = None
        self.last_error: Optional[WayfinderError] = None
        self.consecutive_failures = 0

    def _fail(self, error: WayfinderError) -> None:
        self.consecutive_failures += 1
        self.last_error = error
        return None

    def get_location(self, timeout: int = 30, high_accuracy: bool = True) -> Optional[CurrentPosition]:
        """Get current location using termux-location"""
        provider = "gps" if high_accuracy else "network"
        try:
            result = subprocess.run(
                ["termux-location", "-p", provider, "-r", "once"],
                capture_output=True,
                text=True,
                timeout=timeout
            )

            if result.returncode != 0:
                error_msg = result.stderr.strip() if result.stderr else "unknown error"
                return self._fail(TrackingFailed(error_msg))

            if not result.stdout or not result.stdout.strip():
                return self._fail(TrackingFailed("empty response"))

            data = json.loads(result.stdout)
            location = CurrentPosition(
                position=GeoPoint(lat=data["latitude"], lon=data["longitude"]),
                accuracy=data.get("accuracy") or 0.0,
                observed_at=time.time()
            )
            self.last_location = location
            self.last_error = None
            self.consecutive_failures = 0
            return location

        except subprocess.TimeoutExpired:
            return self._fail(TrackingFailed("Timeout expired"))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            return self._fail(TrackingFailed(f"bad location data: {e}"))
        except FileNotFoundError:
            return self._fail(GeolocationUnavailable())

    def get_status(self) -> str:
        """Get GPS status string"""
        if self.consecutive_failures == 0:
            acc = f", accuracy {self.last_location.accuracy:.0f}m" if self.last_location and self.last_location.accuracy else ""
            return f"GPS OK{acc}"
        else:
            return f"GPS: {self.consecutive_failures} consecutive failures"


class GPSRecorder:
    """Records GPS trace to file"""

    def __init__(self, gps, record_path: str):
        self.gps = gps
        self.record_path = record_path
        self.trace: list[dict] = []
        self.start_time = time.time()

    @property
    def last_error(self) -> Optional[WayfinderError]:
        return self.gps.last_error

    def get_location(self, timeout: int = 30, high_accuracy: bool = True) -> Optional[CurrentPosition]:
        """Get location and record it"""
        location = self.gps.get_location(timeout, high_accuracy)

        # Record even failed attempts
        entry = {
            "elapsed": time.time() - self.start_time,
            "timestamp": time.time(),
            "location": location.to_dict() if location else None,
            "status": self.gps.get_status()
        }
        self.trace.append(entry)

        return location

    def get_status(self) -> str:
        return self.gps.get_status()

    def save(self):
        """Save trace to file"""
        with open(self.record_path, "w") as f:
            json.dump({
                "recorded_at": datetime.now().isoformat(),
                "trace": self.trace
            }, f, indent=2)
        print(f"GPS trace saved to {self.record_path} ({len(self.trace)} entries)")


class GPSPlayback:
    """Plays back GPS trace from file, restamping samples as if they were live"""

    def __init__(self, playback_path: str, speed: float = 1.0,
                 clock: Callable[[], float] = time.time):
        self.playback_path = playback_path
        self.speed = speed
        self.clock = clock
        self.trace: list[dict] = []
        self.index = 0
        self.last_location: Optional[CurrentPosition] = None
        self.last_error: Optional[WayfinderError] = None
        self.consecutive_failures = 0

        with open(playback_path) as f:
            data = json.load(f)
            self.trace = data["trace"]
        print(f"Loaded GPS trace from {playback_path} ({len(self.trace)} entries)")

    def get_location(self, timeout: int = 30, high_accuracy: bool = True) -> Optional[CurrentPosition]:
        """Get next location from trace sequentially"""
        if self.index >= len(self.trace):
            self.last_error = TrackingFailed("playback finished")
            return None

        entry = self.trace[self.index]
        self.index += 1

        if entry["location"]:
            location = CurrentPosition.from_dict(entry["location"])
            location = replace(location, observed_at=self.clock())
            self.last_location = location
            self.last_error = None
            self.consecutive_failures = 0
            return location
        else:
            self.consecutive_failures += 1
            self.last_error = TrackingFailed(entry.get("status") or "no fix in trace")
            return None

    def get_poll_interval(self) -> float:
        """Get the interval to wait between polls based on trace timing and speed"""
        if self.index <= 0 or self.index >= len(self.trace):
            return CONFIG["poll_interval"] / self.speed

        prev_elapsed = self.trace[self.index - 1].get("elapsed", 0)
        curr_elapsed = self.trace[self.index].get("elapsed", 0)
        delta = curr_elapsed - prev_elapsed

        # Apply speed multiplier and clamp to reasonable range
        interval = delta / self.speed
        return max(0.1, min(interval, 5.0))

    def is_finished(self) -> bool:
        """Check if playback is complete"""
        return self.index >= len(self.trace)

    def get_status(self) -> str:
        progress = f"{self.index}/{len(self.trace)}"
        if self.consecutive_failures == 0:
            return f"Playback OK ({progress})"
        else:
            return f"Playback: {self.consecutive_failures} failures ({progress})"


class TrackingFeed:
    """Delivers samples from a position source to subscribers.

    Polled from the owner's thread, so subscribers never run concurrently.
    Samples older than ``max_sample_age`` seconds are dropped.
    """

    def __init__(self, source, high_accuracy: Optional[bool] = None,
                 max_sample_age: Optional[float] = None,
                 fix_timeout: Optional[float] = None,
                 clock: Callable[[], float] = time.time):
        self.source = source
        self.high_accuracy = CONFIG["tracking_high_accuracy"] if high_accuracy is None else high_accuracy
        self.max_sample_age = CONFIG["tracking_max_sample_age"] if max_sample_age is None else max_sample_age
        self.fix_timeout = CONFIG["tracking_fix_timeout"] if fix_timeout is None else fix_timeout
        self.clock = clock
        self._subscribers: dict[int, tuple[Callable, Callable]] = {}
        self._next_handle = 1

    @property
    def active(self) -> bool:
        return bool(self._subscribers)

    def subscribe(self, on_sample: Callable[[CurrentPosition], None],
                  on_error: Callable[[WayfinderError], None]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._subscribers[handle] = (on_sample, on_error)
        return handle

    def unsubscribe(self, handle: Optional[int]):
        """Release a subscription. Unknown or already released handles are ignored."""
        self._subscribers.pop(handle, None)
        if not self._subscribers and hasattr(self.source, "discard_pending"):
            self.source.discard_pending()

    def poll(self) -> bool:
        """Fetch one sample and dispatch it. Returns True if a sample was delivered."""
        if not self._subscribers:
            return False

        sample = self.source.get_location(timeout=self.fix_timeout,
                                          high_accuracy=self.high_accuracy)
        if sample is None:
            error = getattr(self.source, "last_error", None)
            if error is None:
                # quiet interval
                return False
            for _, on_error in list(self._subscribers.values()):
                on_error(error)
            return False

        if self.max_sample_age and self.clock() - sample.observed_at > self.max_sample_age:
            return False

        for on_sample, _ in list(self._subscribers.values()):
            on_sample(sample)
        return True
