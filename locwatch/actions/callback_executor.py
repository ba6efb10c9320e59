"""Callback executors run user logic referenced by a ``CallbackDescriptor``."""

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from locwatch.actions.errors import ActionExecutionError
from locwatch.actions.trigger import CallbackDescriptor, EventContext
from locwatch.logging import LOCWATCH_LOGGER


class AbstractCallbackExecutor(ABC):
    @abstractmethod
    async def execute(self, descriptor: CallbackDescriptor, callback_data: list[Any], context: EventContext) -> Any:
        """
        Execute the user logic referenced by ``descriptor``.

        Args:
            descriptor: Reference to the user logic
            callback_data: Positional arguments for the user logic
            context: Event type and trigger attribution

        Returns:
            Whatever the user logic returns. Failures propagate to the caller.
        """


class CallbackRegistryExecutor(AbstractCallbackExecutor):
    """Resolves callback actions against named Python callables (sync or async)."""

    def __init__(self):
        self._actions: dict[str, Callable[..., Any]] = {}

    def register(self, name: str, func: Callable[..., Any]) -> None:
        self._actions[name] = func

    def unregister(self, name: str) -> None:
        self._actions.pop(name, None)

    def __contains__(self, name: str) -> bool:
        return name in self._actions

    async def execute(self, descriptor: CallbackDescriptor, callback_data: list[Any], context: EventContext) -> Any:
        func = self._actions.get(descriptor.action)
        if func is None:
            raise ActionExecutionError(f"Unknown callback action: {descriptor.action}")

        result = func(*callback_data)
        if inspect.isawaitable(result):
            result = await result
        return result


class LoggingCallbackExecutor(AbstractCallbackExecutor):
    """Logs every callback invocation instead of running user logic."""

    async def execute(self, descriptor: CallbackDescriptor, callback_data: list[Any], context: EventContext) -> Any:
        LOCWATCH_LOGGER.info(
            f"{context.event_type.value} -> {descriptor.action}({', '.join(repr(arg) for arg in callback_data)})"
        )
        return None
