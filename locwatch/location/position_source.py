"""Interface for platform position services."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[Any], None]


@dataclass(frozen=True)
class PositionOptions:
    """Options passed through untouched to the position source.

    Attributes:
        enable_high_accuracy: Hint that the caller wants the best fix available
        timeout_ms: Maximum time a single fix may take, None for no limit
        maximum_age_ms: Age of a cached fix the caller is willing to accept
    """

    enable_high_accuracy: bool = False
    timeout_ms: Optional[int] = None
    maximum_age_ms: int = 0


class AbstractPositionSource(ABC):
    """
    Callback-driven position service.

    Callbacks may be invoked from any thread. Raw positions and raw errors are
    handed over as produced by the device; callers normalize them.
    """

    @abstractmethod
    def fetch_once(self, options: PositionOptions, on_success: SuccessCallback, on_error: ErrorCallback) -> None:
        """Request a single fix. Exactly one of the callbacks is invoked, exactly once."""

    @abstractmethod
    def subscribe(self, options: PositionOptions, on_success: SuccessCallback, on_error: ErrorCallback) -> Any:
        """
        Start continuous updates.

        Either callback may fire zero or more times until ``unsubscribe`` is called
        with the returned handle.

        Returns:
            Opaque native handle identifying the subscription.
        """

    @abstractmethod
    def unsubscribe(self, handle: Any) -> None:
        """Stop the subscription identified by ``handle``. Unknown handles are ignored."""

    def close(self) -> None:  # noqa: B027
        """Release resources held by the source. Default is a no-op."""
