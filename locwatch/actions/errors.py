"""Error types and the diagnostic sink for action execution."""

from typing import Any, Optional

from locwatch.actions.trigger import TriggerMeta
from locwatch.logging import LOCWATCH_LOGGER


class ActionExecutionError(Exception):
    """Failure while executing a user callback action."""


class TriggerFailure(ActionExecutionError):
    """Unrecoverable failure of a trigger; always propagates to the trigger's caller."""

    def __init__(self, message: str, trigger_meta: TriggerMeta):
        super().__init__(message)
        self.message = message
        self.trigger_meta = trigger_meta


def log_action_execution_error(message: str, source: Optional[Any] = None, trigger_property_name: Optional[str] = None):
    """Report a soft action failure. Never raises."""
    where = " ".join(str(part) for part in (source, trigger_property_name) if part is not None)
    if where:
        LOCWATCH_LOGGER.warning(f"Action execution error [{where}]: {message}")
    else:
        LOCWATCH_LOGGER.warning(f"Action execution error: {message}")
