"""Callback action execution for LocWatch."""

from locwatch.actions.callback_executor import (
    AbstractCallbackExecutor,
    CallbackRegistryExecutor,
    LoggingCallbackExecutor,
)
from locwatch.actions.errors import ActionExecutionError, TriggerFailure, log_action_execution_error
from locwatch.actions.trigger import CallbackDescriptor, EventContext, EventType, TriggerMeta

__all__ = [
    "AbstractCallbackExecutor",
    "ActionExecutionError",
    "CallbackDescriptor",
    "CallbackRegistryExecutor",
    "EventContext",
    "EventType",
    "LoggingCallbackExecutor",
    "TriggerFailure",
    "TriggerMeta",
    "log_action_execution_error",
]
