"""Position source backed by gpsd.

Queries the GPS receiver through ``gpspipe`` on worker threads and reports fixes
through the position source callbacks.
"""

import itertools
import json
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional

from dateutil import parser as dtparser

from locwatch.constants import (
    DEFAULT_GPS_POLL_INTERVAL_SECONDS,
    DEFAULT_GPSPIPE_MESSAGE_COUNT,
    DEFAULT_GPSPIPE_TIMEOUT_SECONDS,
)
from locwatch.location.errors import PositionErrorCode, PositionSourceError
from locwatch.location.position_source import AbstractPositionSource, ErrorCallback, PositionOptions, SuccessCallback
from locwatch.logging import LOCWATCH_LOGGER

# gpsd TPV key -> platform coordinate key
_TPV_FIELDS = {
    "lat": "latitude",
    "lon": "longitude",
    "alt": "altitude",
    "epv": "altitudeAccuracy",
    "track": "heading",
    "speed": "speed",
    "eph": "accuracy",
}


@dataclass
class _Subscription:
    options: PositionOptions
    on_success: SuccessCallback
    on_error: ErrorCallback
    stop_event: threading.Event
    thread: Optional[threading.Thread] = None


class GpsdPositionSource(AbstractPositionSource):
    """
    Position source reading fixes from gpsd via ``gpspipe``.

    Each subscription runs its own polling thread; callbacks are invoked on that
    thread. ``fetch_once`` runs a single query on a short-lived thread.
    """

    def __init__(
        self,
        poll_interval_seconds: float = DEFAULT_GPS_POLL_INTERVAL_SECONDS,
        message_count: int = DEFAULT_GPSPIPE_MESSAGE_COUNT,
    ):
        """
        Initialize the gpsd source.

        Args:
            poll_interval_seconds: Seconds between gpsd queries while subscribed
            message_count: Number of gpsd JSON messages read per query
        """
        self.poll_interval_seconds = poll_interval_seconds
        self.message_count = message_count

        self._lock = threading.Lock()
        self._subscriptions: dict[int, _Subscription] = {}
        self._stopping: list[_Subscription] = []  # unsubscribed, thread not yet joined
        self._handle_ids = itertools.count(1)

    def is_available(self) -> bool:
        """
        Check if gpsd tooling is available (gpspipe command exists).

        Returns:
            True if gpspipe command is available, False otherwise.
        """
        try:
            result = subprocess.run(
                ["which", "gpspipe"],
                capture_output=True,
                timeout=2,
            )
            return result.returncode == 0
        except (OSError, subprocess.SubprocessError):
            return False

    # -- AbstractPositionSource --

    def fetch_once(self, options: PositionOptions, on_success: SuccessCallback, on_error: ErrorCallback) -> None:
        thread = threading.Thread(
            target=self._fetch_worker,
            args=(options, on_success, on_error),
            name="gpsd-fetch",
            daemon=True,
        )
        thread.start()

    def subscribe(self, options: PositionOptions, on_success: SuccessCallback, on_error: ErrorCallback) -> int:
        handle = next(self._handle_ids)
        subscription = _Subscription(options, on_success, on_error, threading.Event())
        subscription.thread = threading.Thread(
            target=self._watch_loop,
            args=(subscription,),
            name=f"gpsd-watch-{handle}",
            daemon=True,
        )
        with self._lock:
            self._subscriptions[handle] = subscription
        subscription.thread.start()
        LOCWATCH_LOGGER.info(f"gpsd watch {handle} started (poll interval: {self.poll_interval_seconds}s)")
        return handle

    def unsubscribe(self, handle: Any) -> None:
        """Signal the polling thread to stop. Does not wait for an in-flight gpsd query."""
        with self._lock:
            subscription = self._subscriptions.pop(handle, None)
            if subscription is not None:
                self._stopping.append(subscription)
        if subscription is None:
            return

        subscription.stop_event.set()
        LOCWATCH_LOGGER.info(f"gpsd watch {handle} stopped")

    def close(self) -> None:
        """Stop every subscription and wait for the polling threads to exit."""
        with self._lock:
            handles = list(self._subscriptions)
        for handle in handles:
            self.unsubscribe(handle)

        with self._lock:
            stopping, self._stopping = self._stopping, []
        for subscription in stopping:
            if subscription.thread is not None and subscription.thread is not threading.current_thread():
                subscription.thread.join(timeout=DEFAULT_GPSPIPE_TIMEOUT_SECONDS)

    # -- worker threads --

    def _fetch_worker(self, options: PositionOptions, on_success: SuccessCallback, on_error: ErrorCallback) -> None:
        try:
            raw = self.read_position(options)
        except PositionSourceError as e:
            on_error(e)
            return
        except Exception as e:
            LOCWATCH_LOGGER.error(f"gpsd fetch failed: {e}", exc_info=True)
            on_error(PositionSourceError(PositionErrorCode.POSITION_UNAVAILABLE, str(e)))
            return
        on_success(raw)

    def _watch_loop(self, subscription: _Subscription) -> None:
        last_timestamp = None
        while not subscription.stop_event.is_set():
            try:
                raw = self.read_position(subscription.options)
            except PositionSourceError as e:
                if not subscription.stop_event.is_set():
                    subscription.on_error(e)
            except Exception as e:
                LOCWATCH_LOGGER.error(f"gpsd watch poll failed: {e}", exc_info=True)
                if not subscription.stop_event.is_set():
                    subscription.on_error(PositionSourceError(PositionErrorCode.POSITION_UNAVAILABLE, str(e)))
            else:
                # Only report fixes gpsd hasn't already handed us
                if raw["timestamp"] != last_timestamp and not subscription.stop_event.is_set():
                    last_timestamp = raw["timestamp"]
                    subscription.on_success(raw)

            if subscription.stop_event.wait(timeout=self.poll_interval_seconds):
                break

    # -- gpsd access --

    def read_position(self, options: PositionOptions) -> dict:
        """
        Query gpsd for a single fix.

        Returns:
            Raw position ``{"coords": {...}, "timestamp": ms}``.

        Raises:
            PositionSourceError: gpsd is unreachable, timed out or has no fix.
        """
        timeout = DEFAULT_GPSPIPE_TIMEOUT_SECONDS
        if options.timeout_ms is not None:
            timeout = options.timeout_ms / 1000.0

        try:
            result = subprocess.run(
                ["gpspipe", "-w", "-n", str(self.message_count)],
                capture_output=True,
                timeout=timeout,
                text=True,
            )
        except subprocess.TimeoutExpired:
            raise PositionSourceError(PositionErrorCode.TIMEOUT, f"gpsd did not answer within {timeout:.1f}s")
        except (FileNotFoundError, OSError) as e:
            raise PositionSourceError(PositionErrorCode.POSITION_UNAVAILABLE, f"gpspipe unavailable: {e}")
        except UnicodeDecodeError as e:
            raise PositionSourceError(PositionErrorCode.POSITION_UNAVAILABLE, f"gpspipe output is not valid UTF-8: {e}")

        if result.returncode != 0:
            raise PositionSourceError(
                PositionErrorCode.POSITION_UNAVAILABLE, f"gpspipe exited with code {result.returncode}"
            )

        raw = self.parse_gpspipe_output(result.stdout)
        if raw is None:
            raise PositionSourceError(PositionErrorCode.POSITION_UNAVAILABLE, "GPS fix unavailable")
        return raw

    @staticmethod
    def parse_gpspipe_output(output: str) -> Optional[dict]:
        """
        Extract the most recent usable TPV fix from ``gpspipe -w`` output.

        TPV messages without latitude and longitude, or with a ``time`` that
        can't be parsed, are skipped.

        Returns:
            Raw position dict, or None if no TPV message carried a usable fix.
        """
        fix = None
        timestamp = None
        for line in output.strip().split("\n"):
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(data, dict):
                continue
            if data.get("class") != "TPV" or "lat" not in data or "lon" not in data:
                continue

            if "time" in data:
                try:
                    line_timestamp = int(dtparser.isoparse(data["time"]).timestamp() * 1000)
                except (ValueError, OverflowError, TypeError):
                    LOCWATCH_LOGGER.debug(f"Skipping TPV with unparseable time: {data['time']!r:.60}")
                    continue
            else:
                line_timestamp = int(time.time() * 1000)
            fix, timestamp = data, line_timestamp

        if fix is None:
            return None

        coords = {key: fix.get(tpv_key) for tpv_key, key in _TPV_FIELDS.items()}
        if coords["altitude"] is None:
            coords["altitude"] = fix.get("altHAE")
        return {"coords": coords, "timestamp": timestamp}
