"""Position value objects and normalization of raw platform positions.

Position services hand back rich objects (accessor methods, native handles) that
can't be stored in shared state. ``normalize_position`` projects them onto a
plain, immutable ``GeoPosition`` holding only the documented numeric fields.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

# (attribute name, platform key) for every optional coordinate field
_OPTIONAL_COORD_FIELDS = (
    ("altitude", "altitude"),
    ("altitude_accuracy", "altitudeAccuracy"),
    ("heading", "heading"),
    ("speed", "speed"),
    ("accuracy", "accuracy"),
)


@dataclass(frozen=True)
class Coordinates:
    """Coordinate part of a position fix."""

    latitude: float  # degrees
    longitude: float  # degrees
    altitude: Optional[float] = None  # meters
    altitude_accuracy: Optional[float] = None  # meters
    heading: Optional[float] = None  # degrees clockwise from true north
    speed: Optional[float] = None  # meters per second
    accuracy: Optional[float] = None  # meters


@dataclass(frozen=True)
class GeoPosition:
    """Normalized, serializable position fix."""

    coords: Coordinates
    timestamp: int  # milliseconds, source clock

    def to_dict(self) -> dict[str, Any]:
        """Return the position keyed the way the platform names its fields."""
        coords = {
            "latitude": self.coords.latitude,
            "longitude": self.coords.longitude,
        }
        for attr, key in _OPTIONAL_COORD_FIELDS:
            coords[key] = getattr(self.coords, attr)
        return {"coords": coords, "timestamp": self.timestamp}


def _read(raw: Any, *names: str) -> Any:
    """Read the first present field of ``raw`` by key or attribute."""
    for name in names:
        if isinstance(raw, Mapping):
            if name in raw:
                return raw[name]
        elif hasattr(raw, name):
            return getattr(raw, name)
    return None


def normalize_position(raw: Any) -> GeoPosition:
    """Project a raw position record onto a ``GeoPosition``.

    ``raw`` may be a mapping shaped like ``{"coords": {...}, "timestamp": ...}``,
    an object exposing ``coords`` and ``timestamp`` attributes, or a
    ``GeoPosition``. Absent optional fields stay ``None``.
    """
    coords = _read(raw, "coords")
    optional = {attr: _read(coords, attr, key) for attr, key in _OPTIONAL_COORD_FIELDS}
    timestamp = _read(raw, "timestamp")
    return GeoPosition(
        coords=Coordinates(
            latitude=_read(coords, "latitude"),
            longitude=_read(coords, "longitude"),
            **optional,
        ),
        timestamp=int(timestamp) if timestamp is not None else None,
    )
