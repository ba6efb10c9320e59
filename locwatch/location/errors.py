"""Errors produced by position sources."""

from enum import IntEnum
from typing import Any


class PositionErrorCode(IntEnum):
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


class PositionSourceError(Exception):
    """Failure reported by a position source through its error callback."""

    def __init__(self, code: PositionErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"PositionSourceError({self.code.name}, {self.message!r})"


def error_message(error: Any) -> str:
    """Extract a human readable message from a raw error payload."""
    if isinstance(error, str):
        return error
    message = error.get("message") if isinstance(error, dict) else getattr(error, "message", None)
    if message:
        return str(message)
    return str(error)
