"""
Custom exceptions for the typing engine.

All errors are local and recoverable; a rejected operation never leaves a
session partially mutated.
"""

from typing import Optional


class TypingEngineError(Exception):
    """Base class for all typing engine exceptions."""

    def __init__(self, message: str = "Typing engine error") -> None:
        """Initialize the exception with a message."""
        self.message = message
        super().__init__(self.message)


class InvalidStateError(TypingEngineError):
    """Raised when an operation is illegal in the session's current phase."""

    def __init__(
        self,
        message: str = "Operation not allowed in the current phase",
        phase: Optional[object] = None,
    ) -> None:
        self.phase = phase
        super().__init__(message)


class SessionNotActiveError(TypingEngineError):
    """Raised when a keystroke is delivered while the session is not running."""

    def __init__(
        self,
        message: str = "Session is not accepting keystrokes",
        phase: Optional[object] = None,
    ) -> None:
        self.phase = phase
        super().__init__(message)


class EmptyTextError(TypingEngineError):
    """Raised when a session is started against a zero-length target text."""

    def __init__(self, message: str = "Target text is empty") -> None:
        super().__init__(message)
