"""Location watching and one-shot position fetches for LocWatch."""

from locwatch.location.channel import Channel, ChannelClosed
from locwatch.location.coordinator import LocationWatchCoordinator
from locwatch.location.dummy_position_source import DummyPositionSource
from locwatch.location.errors import PositionErrorCode, PositionSourceError
from locwatch.location.geo_state import CurrentGeoLocation
from locwatch.location.gpsd_position_source import GpsdPositionSource
from locwatch.location.position import Coordinates, GeoPosition, normalize_position
from locwatch.location.position_source import AbstractPositionSource, PositionOptions
from locwatch.location.pumps import EventEnvelope
from locwatch.location.source_factory import create_position_source
from locwatch.location.watch_registry import WatchHandle, WatchRegistry, WatchState

__all__ = [
    "AbstractPositionSource",
    "Channel",
    "ChannelClosed",
    "Coordinates",
    "CurrentGeoLocation",
    "DummyPositionSource",
    "EventEnvelope",
    "GeoPosition",
    "GpsdPositionSource",
    "LocationWatchCoordinator",
    "PositionErrorCode",
    "PositionOptions",
    "PositionSourceError",
    "WatchHandle",
    "WatchRegistry",
    "WatchState",
    "create_position_source",
    "normalize_position",
]
