"""Dummy position source for testing without a GPS receiver."""

import itertools
import math
import random
import threading
import time
from collections import deque
from typing import Any, Optional

from locwatch.constants import DEFAULT_DUMMY_LATITUDE, DEFAULT_DUMMY_LONGITUDE
from locwatch.location.position_source import AbstractPositionSource, ErrorCallback, PositionOptions, SuccessCallback
from locwatch.logging import LOCWATCH_LOGGER

# Roughly one meter in degrees of latitude
_METER_DEG = 1.0 / 111_320.0


class DummyPositionSource(AbstractPositionSource):
    """
    In-process simulated device.

    Tests drive it directly with ``emit_position``/``emit_error``, which deliver
    synchronously to every active subscription, and queue one-shot results with
    ``queue_fetch_result``. With ``auto_interval_seconds`` set, each subscription
    also gets a background thread reporting a slow random walk around the
    configured location.
    """

    def __init__(
        self,
        latitude: float = DEFAULT_DUMMY_LATITUDE,
        longitude: float = DEFAULT_DUMMY_LONGITUDE,
        auto_interval_seconds: Optional[float] = None,
    ):
        self.latitude = latitude
        self.longitude = longitude
        self.auto_interval_seconds = auto_interval_seconds

        self._lock = threading.Lock()
        self._subscriptions: dict[int, tuple[SuccessCallback, ErrorCallback]] = {}
        self._threads: dict[int, tuple[threading.Thread, threading.Event]] = {}
        self._handle_ids = itertools.count(1)
        self._fetch_results: deque = deque()

        # Call log, for assertions
        self.subscribe_calls: list[PositionOptions] = []
        self.unsubscribe_calls: list[Any] = []
        self.fetch_calls: list[PositionOptions] = []

    @property
    def active_handles(self) -> list[int]:
        with self._lock:
            return list(self._subscriptions)

    def make_position(self, latitude: Optional[float] = None, longitude: Optional[float] = None) -> dict:
        """Build a raw position at the given (or configured) location."""
        return {
            "coords": {
                "latitude": self.latitude if latitude is None else latitude,
                "longitude": self.longitude if longitude is None else longitude,
                "altitude": 4302.0,
                "altitudeAccuracy": 10.0,
                "heading": None,
                "speed": 0.0,
                "accuracy": 5.0,
            },
            "timestamp": int(time.time() * 1000),
        }

    def queue_fetch_result(self, result: Any, is_error: bool = False) -> None:
        """Queue the result of the next ``fetch_once``; otherwise a position at the configured location is returned."""
        self._fetch_results.append((is_error, result))

    # -- AbstractPositionSource --

    def fetch_once(self, options: PositionOptions, on_success: SuccessCallback, on_error: ErrorCallback) -> None:
        self.fetch_calls.append(options)
        if self._fetch_results:
            is_error, result = self._fetch_results.popleft()
            if is_error:
                on_error(result)
            else:
                on_success(result)
            return
        on_success(self.make_position())

    def subscribe(self, options: PositionOptions, on_success: SuccessCallback, on_error: ErrorCallback) -> int:
        handle = next(self._handle_ids)
        self.subscribe_calls.append(options)
        with self._lock:
            self._subscriptions[handle] = (on_success, on_error)

        if self.auto_interval_seconds:
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._walk_loop,
                args=(handle, stop_event),
                name=f"dummy-watch-{handle}",
                daemon=True,
            )
            with self._lock:
                self._threads[handle] = (thread, stop_event)
            thread.start()
        LOCWATCH_LOGGER.debug(f"Dummy watch {handle} subscribed")
        return handle

    def unsubscribe(self, handle: Any) -> None:
        self.unsubscribe_calls.append(handle)
        with self._lock:
            self._subscriptions.pop(handle, None)
            thread_entry = self._threads.pop(handle, None)
        if thread_entry is not None:
            thread, stop_event = thread_entry
            stop_event.set()
            if thread is not threading.current_thread():
                thread.join(timeout=5.0)
        LOCWATCH_LOGGER.debug(f"Dummy watch {handle} unsubscribed")

    def close(self) -> None:
        for handle in self.active_handles:
            self.unsubscribe(handle)

    # -- simulation --

    def emit_position(self, raw: Any = None) -> int:
        """Deliver a position to every subscription. Returns the number of subscribers reached."""
        raw = raw if raw is not None else self.make_position()
        with self._lock:
            callbacks = [on_success for on_success, _ in self._subscriptions.values()]
        for on_success in callbacks:
            on_success(raw)
        return len(callbacks)

    def emit_error(self, error: Any) -> int:
        """Deliver an error to every subscription. Returns the number of subscribers reached."""
        with self._lock:
            callbacks = [on_error for _, on_error in self._subscriptions.values()]
        for on_error in callbacks:
            on_error(error)
        return len(callbacks)

    def _walk_loop(self, handle: int, stop_event: threading.Event) -> None:
        latitude, longitude = self.latitude, self.longitude
        while not stop_event.wait(timeout=self.auto_interval_seconds):
            step = random.uniform(0.0, 3.0) * _METER_DEG
            bearing = random.uniform(0.0, 2 * math.pi)
            latitude += step * math.cos(bearing)
            longitude += step * math.sin(bearing) / max(math.cos(math.radians(latitude)), 1e-6)
            with self._lock:
                entry = self._subscriptions.get(handle)
            if entry is None:
                return
            entry[0](self.make_position(latitude, longitude))
