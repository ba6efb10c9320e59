"""Long-lived tasks draining a watch's channels into callback actions."""

from dataclasses import dataclass
from typing import Any, Optional

from locwatch.actions.callback_executor import AbstractCallbackExecutor
from locwatch.actions.errors import TriggerFailure
from locwatch.actions.trigger import CallbackDescriptor, EventContext, EventType, TriggerMeta
from locwatch.location.channel import Channel
from locwatch.location.errors import error_message
from locwatch.location.geo_state import CurrentGeoLocation
from locwatch.location.position import normalize_position
from locwatch.logging import LOCWATCH_LOGGER


@dataclass(frozen=True)
class EventEnvelope:
    """One native event on its way from the position source to a pump."""

    payload: Any  # raw position on the success channel, raw error on the error channel
    callback: Optional[CallbackDescriptor]
    event_type: EventType
    trigger_meta: TriggerMeta


async def success_pump(
    channel: Channel[EventEnvelope], geo_state: CurrentGeoLocation, executor: AbstractCallbackExecutor
) -> None:
    """Publish every position and run the success callback, until the channel is closed and drained."""
    async for envelope in channel:
        position = normalize_position(envelope.payload)
        geo_state.set(position)
        if envelope.callback is not None:
            await executor.execute(
                envelope.callback,
                [position],
                EventContext(envelope.event_type, envelope.trigger_meta),
            )
    LOCWATCH_LOGGER.debug(f"Success pump for {channel.name} finished")


async def error_pump(channel: Channel[EventEnvelope], executor: AbstractCallbackExecutor) -> None:
    """
    Run the error callback for every error, until the channel is closed and drained.

    Raises:
        TriggerFailure: an error arrived with no error callback to handle it.
    """
    async for envelope in channel:
        if envelope.callback is None:
            raise TriggerFailure(error_message(envelope.payload), envelope.trigger_meta)
        await executor.execute(
            envelope.callback,
            [envelope.payload],
            EventContext(envelope.event_type, envelope.trigger_meta),
        )
    LOCWATCH_LOGGER.debug(f"Error pump for {channel.name} finished")
