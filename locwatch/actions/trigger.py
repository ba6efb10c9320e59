"""Types describing what triggered an action and how to call user logic back."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class EventType(Enum):
    ON_LOCATION_SUCCESS = "ON_LOCATION_SUCCESS"
    ON_LOCATION_ERROR = "ON_LOCATION_ERROR"
    ON_CLICK = "ON_CLICK"
    ON_PAGE_LOAD = "ON_PAGE_LOAD"
    CUSTOM = "CUSTOM"


@dataclass(frozen=True)
class TriggerMeta:
    """Attribution of an action to the entity and property that triggered it."""

    source: Optional[Any] = None  # entity that owns the trigger, e.g. a widget id
    trigger_property_name: Optional[str] = None  # e.g. "onClick"


@dataclass(frozen=True)
class CallbackDescriptor:
    """Opaque reference to user logic, resolved by a callback executor."""

    action: str


@dataclass(frozen=True)
class EventContext:
    """Context handed to a callback executor alongside the callback data."""

    event_type: EventType
    trigger_meta: TriggerMeta
