"""Coordinates one-shot fetches and the single continuous watch of a position source."""

import asyncio
from collections.abc import Callable
from typing import Any, Optional

from locwatch.actions.callback_executor import AbstractCallbackExecutor
from locwatch.actions.errors import log_action_execution_error
from locwatch.actions.trigger import CallbackDescriptor, EventType, TriggerMeta
from locwatch.constants import DUPLICATE_WATCH_MESSAGE, NO_ACTIVE_WATCH_MESSAGE
from locwatch.location.channel import Channel
from locwatch.location.errors import error_message
from locwatch.location.geo_state import CurrentGeoLocation
from locwatch.location.position import GeoPosition, normalize_position
from locwatch.location.position_source import AbstractPositionSource, PositionOptions
from locwatch.location.pumps import EventEnvelope, error_pump, success_pump
from locwatch.location.watch_registry import WatchHandle, WatchRegistry, WatchState
from locwatch.logging import LOCWATCH_LOGGER

ErrorLogger = Callable[[str, Optional[Any], Optional[str]], None]


class LocationWatchCoordinator:
    """
    Bridges a callback-driven position source into asyncio tasks.

    Native success and error callbacks feed two channels; one pump task per
    channel drains it, publishes positions to the shared geolocation state and
    runs the user's callback actions. Only one watch can be active at a time.

    Soft conditions (duplicate start, stop without a watch, one-shot fetch
    failures) are reported through ``error_logger`` and never raised. A
    ``TriggerFailure`` from the error pump is raised from ``join``.
    """

    def __init__(
        self,
        source: AbstractPositionSource,
        executor: AbstractCallbackExecutor,
        geo_state: Optional[CurrentGeoLocation] = None,
        error_logger: ErrorLogger = log_action_execution_error,
        registry: Optional[WatchRegistry] = None,
    ):
        self.source = source
        self.executor = executor
        self.geo_state = geo_state if geo_state is not None else CurrentGeoLocation()
        self._error_logger = error_logger
        self._registry = registry if registry is not None else WatchRegistry()
        self._last_handle: Optional[WatchHandle] = None
        self._watch_count = 0

    @property
    def is_active(self) -> bool:
        return self._registry.is_active()

    @property
    def state(self) -> WatchState:
        return self._registry.state

    # -- one-shot fetch --

    async def fetch_once(
        self,
        options: Optional[PositionOptions] = None,
        trigger_meta: Optional[TriggerMeta] = None,
    ) -> Optional[GeoPosition]:
        """
        Fetch a single position.

        Returns:
            The normalized position, also published to the geolocation state, or
            None if the source reported an error (the error is logged, not raised).
        """
        trigger_meta = trigger_meta or TriggerMeta()
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def settle(succeeded: bool, payload: Any) -> None:
            if not future.done():
                future.set_result((succeeded, payload))

        def deliver(succeeded: bool, payload: Any) -> None:
            try:
                loop.call_soon_threadsafe(settle, succeeded, payload)
            except RuntimeError:
                LOCWATCH_LOGGER.debug("Position delivered after the event loop closed, dropping it")

        try:
            self.source.fetch_once(
                options or PositionOptions(),
                lambda raw: deliver(True, raw),
                lambda error: deliver(False, error),
            )
        except Exception as e:
            settle(False, e)

        succeeded, payload = await future
        if not succeeded:
            self._error_logger(error_message(payload), trigger_meta.source, trigger_meta.trigger_property_name)
            return None

        position = normalize_position(payload)
        self.geo_state.set(position)
        return position

    # -- continuous watch --

    def start_watch(
        self,
        options: Optional[PositionOptions] = None,
        on_success: Optional[CallbackDescriptor] = None,
        on_error: Optional[CallbackDescriptor] = None,
        event_type: EventType = EventType.CUSTOM,
        trigger_meta: Optional[TriggerMeta] = None,
    ) -> bool:
        """
        Start the continuous watch. Must be called from a running event loop.

        Returns:
            True if a watch was started, False if one was already active (the
            existing watch keeps running untouched).
        """
        trigger_meta = trigger_meta or TriggerMeta()
        options = options or PositionOptions()

        def create_handle() -> WatchHandle:
            self._watch_count += 1
            watch_id = self._watch_count
            handle = WatchHandle(
                success_channel=Channel(f"watch-{watch_id}-success"),
                error_channel=Channel(f"watch-{watch_id}-error"),
            )
            handle.pump_tasks = [
                asyncio.create_task(
                    success_pump(handle.success_channel, self.geo_state, self.executor),
                    name=f"location-watch-{watch_id}-success",
                ),
                asyncio.create_task(
                    error_pump(handle.error_channel, self.executor),
                    name=f"location-watch-{watch_id}-error",
                ),
            ]
            for task in handle.pump_tasks:
                task.add_done_callback(lambda t, h=handle: self._on_pump_done(h, t))

            def on_native_success(raw: Any) -> None:
                handle.success_channel.put(EventEnvelope(raw, on_success, event_type, trigger_meta))

            def on_native_error(error: Any) -> None:
                handle.error_channel.put(EventEnvelope(error, on_error, event_type, trigger_meta))

            try:
                handle.native_handle_id = self.source.subscribe(options, on_native_success, on_native_error)
            except Exception:
                handle.close_channels()
                raise
            return handle

        handle = self._registry.start(create_handle)
        if handle is None:
            self._error_logger(DUPLICATE_WATCH_MESSAGE, trigger_meta.source, trigger_meta.trigger_property_name)
            return False

        self._last_handle = handle
        LOCWATCH_LOGGER.info(f"Location watch started (handle {handle.native_handle_id!r})")
        return True

    def stop_watch(self, trigger_meta: Optional[TriggerMeta] = None) -> bool:
        """
        Stop the active watch.

        Envelopes already queued are still delivered; native events arriving
        after this call are dropped.

        Returns:
            True if a watch was stopped, False if none was active.
        """
        trigger_meta = trigger_meta or TriggerMeta()
        handle = self._registry.stop()
        if handle is None:
            self._error_logger(NO_ACTIVE_WATCH_MESSAGE, trigger_meta.source, trigger_meta.trigger_property_name)
            return False

        self._teardown(handle)
        LOCWATCH_LOGGER.info(f"Location watch stopped (handle {handle.native_handle_id!r})")
        return True

    async def join(self) -> None:
        """
        Wait for the pumps of the current (or most recent) watch to finish.

        Raises:
            TriggerFailure: the error pump met an error without an error callback.
            Exception: any failure raised by the callback executor.
        """
        handle = self._registry.handle or self._last_handle
        if handle is None:
            return
        await asyncio.wait(handle.pump_tasks)
        if handle.failure is not None:
            raise handle.failure

    async def aclose(self) -> None:
        """Stop any active watch and wait for its pumps to exit."""
        handle = self._registry.stop()
        if handle is not None:
            self._teardown(handle)
        if self._last_handle is not None:
            await asyncio.wait(self._last_handle.pump_tasks)

    def _teardown(self, handle: WatchHandle) -> None:
        try:
            self.source.unsubscribe(handle.native_handle_id)
        finally:
            handle.close_channels()

    def _on_pump_done(self, handle: WatchHandle, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return

        LOCWATCH_LOGGER.error(f"Location watch pump {task.get_name()} failed: {exc}")
        if handle.failure is None:
            handle.failure = exc

        # A dead pump leaves its channel without a consumer
        if self._registry.stop(expected=handle) is not None:
            self._teardown(handle)
            LOCWATCH_LOGGER.warning(f"Location watch (handle {handle.native_handle_id!r}) stopped after pump failure")
