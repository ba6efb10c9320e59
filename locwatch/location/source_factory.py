"""Selects the position source named in the settings."""

from typing import TYPE_CHECKING

from locwatch.constants import POSITION_SOURCE_DUMMY, POSITION_SOURCE_GPSD
from locwatch.location.dummy_position_source import DummyPositionSource
from locwatch.location.gpsd_position_source import GpsdPositionSource
from locwatch.location.position_source import AbstractPositionSource
from locwatch.logging import LOCWATCH_LOGGER

if TYPE_CHECKING:
    from locwatch.settings import LocWatchSettings


def create_position_source(settings: "LocWatchSettings") -> AbstractPositionSource:
    if settings.position_source == POSITION_SOURCE_GPSD:
        source = GpsdPositionSource(
            poll_interval_seconds=settings.gps_poll_interval_seconds,
            message_count=settings.gpspipe_message_count,
        )
        if not source.is_available():
            LOCWATCH_LOGGER.warning("gpspipe not found; gpsd position requests will report POSITION_UNAVAILABLE")
        return source

    if settings.position_source == POSITION_SOURCE_DUMMY:
        return DummyPositionSource(
            latitude=settings.dummy_latitude,
            longitude=settings.dummy_longitude,
            auto_interval_seconds=settings.dummy_interval_seconds,
        )

    raise ValueError(f"Unknown position source: {settings.position_source}")
