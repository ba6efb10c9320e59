"""Registry enforcing at most one active location watch."""

import asyncio
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from locwatch.location.channel import Channel


class WatchState(Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class WatchHandle:
    """The single active subscription and everything it owns."""

    success_channel: Channel
    error_channel: Channel
    native_handle_id: Any = None
    pump_tasks: list[asyncio.Task] = field(default_factory=list)
    failure: Optional[BaseException] = None

    def close_channels(self) -> None:
        self.success_channel.close()
        self.error_channel.close()


class WatchRegistry:
    """
    Holds zero or one ``WatchHandle``.

    ``start`` and ``stop`` do their test-and-set under a lock, so two callers can
    never both observe Idle and both install a handle.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._handle: Optional[WatchHandle] = None

    @property
    def state(self) -> WatchState:
        return WatchState.ACTIVE if self.is_active() else WatchState.IDLE

    @property
    def handle(self) -> Optional[WatchHandle]:
        with self._lock:
            return self._handle

    def is_active(self) -> bool:
        with self._lock:
            return self._handle is not None

    def start(self, create_handle: Callable[[], WatchHandle]) -> Optional[WatchHandle]:
        """
        Install a new handle built by ``create_handle`` if the registry is Idle.

        Returns:
            The new handle, or None if a watch was already active (the existing
            handle is left untouched).
        """
        with self._lock:
            if self._handle is not None:
                return None
            self._handle = create_handle()
            return self._handle

    def stop(self, expected: Optional[WatchHandle] = None) -> Optional[WatchHandle]:
        """
        Remove the active handle and return it, or None if Idle.

        If ``expected`` is given, only that handle is removed; a newer watch is
        left alone.
        """
        with self._lock:
            handle = self._handle
            if handle is None or (expected is not None and handle is not expected):
                return None
            self._handle = None
            return handle
