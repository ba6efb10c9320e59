import asyncio
import json
import sys

import click

from locwatch.actions import CallbackDescriptor, EventType, LoggingCallbackExecutor, TriggerFailure, TriggerMeta
from locwatch.constants import POSITION_SOURCES
from locwatch.location import LocationWatchCoordinator, create_position_source
from locwatch.logging import LOCWATCH_LOGGER, set_log_level
from locwatch.settings import LocWatchSettings

CLI_TRIGGER = TriggerMeta(source="cli", trigger_property_name="command")


def _load_settings(source, log_level) -> LocWatchSettings:
    overrides = {}
    if source:
        overrides["position_source"] = source
    if log_level:
        overrides["log_level"] = log_level
    settings = LocWatchSettings(**overrides)
    set_log_level(settings.log_level)
    return settings


async def _fetch(settings: LocWatchSettings):
    source = create_position_source(settings)
    coordinator = LocationWatchCoordinator(source, LoggingCallbackExecutor())
    try:
        return await coordinator.fetch_once(settings.position_options(), CLI_TRIGGER)
    finally:
        await asyncio.to_thread(source.close)


async def _watch(settings: LocWatchSettings, duration: float) -> None:
    source = create_position_source(settings)
    coordinator = LocationWatchCoordinator(source, LoggingCallbackExecutor())
    try:
        coordinator.start_watch(
            settings.position_options(),
            on_success=CallbackDescriptor("on_position"),
            on_error=CallbackDescriptor("on_position_error"),
            event_type=EventType.ON_LOCATION_SUCCESS,
            trigger_meta=CLI_TRIGGER,
        )
        join_task = asyncio.ensure_future(coordinator.join())
        await asyncio.wait({join_task}, timeout=duration)
        if coordinator.is_active:
            coordinator.stop_watch(CLI_TRIGGER)
        await join_task
    finally:
        await coordinator.aclose()
        await asyncio.to_thread(source.close)


@click.group()
@click.option("--source", type=click.Choice(POSITION_SOURCES), default=None, help="Position source to use")
@click.option("--log-level", default=None, help="Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
@click.pass_context
def cli(ctx, source, log_level):
    ctx.obj = _load_settings(source, log_level)


@cli.command()
@click.pass_obj
def fetch(settings):
    """Fetch the current position once and print it as JSON."""
    position = asyncio.run(_fetch(settings))
    if position is None:
        sys.exit(1)
    click.echo(json.dumps(position.to_dict(), indent=2))


@cli.command()
@click.option("--duration", default=30.0, type=float, help="Seconds to watch before stopping (default: 30)")
@click.pass_obj
def watch(settings, duration):
    """Watch the position and log every update."""
    try:
        asyncio.run(_watch(settings, duration))
    except TriggerFailure as e:
        LOCWATCH_LOGGER.error(f"Location watch failed: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
