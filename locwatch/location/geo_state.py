"""Shared "current geolocation" state."""

import threading
from typing import Optional

from locwatch.location.position import GeoPosition


class CurrentGeoLocation:
    """Last known position of the device; last write wins (thread-safe)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._position: Optional[GeoPosition] = None
        self._updates = 0

    def set(self, position: GeoPosition) -> None:
        with self._lock:
            self._position = position
            self._updates += 1

    def get(self) -> Optional[GeoPosition]:
        with self._lock:
            return self._position

    @property
    def update_count(self) -> int:
        """Number of times the position has been published."""
        with self._lock:
            return self._updates
