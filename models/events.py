"""Events emitted by a TypingSession to its listeners."""

from typing import Callable

from pydantic import BaseModel, Field

from models.summary import Summary


class TypingEvent(BaseModel):
    """Base class for session events."""

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }


class KeyPressed(TypingEvent):
    """A keystroke was matched against the character at ``position``."""

    char: str
    correct: bool
    position: int = Field(..., ge=0)


class ErrorCorrected(TypingEvent):
    """A Forgiving-mode mistake at ``position`` was typed correctly."""

    position: int = Field(..., ge=0)


class WordCompleted(TypingEvent):
    """A whitespace character was typed correctly, closing a word."""

    wpm: float


class MilestoneReached(TypingEvent):
    """Progress crossed one of the configured milestone fractions."""

    progress: float = Field(..., gt=0.0, lt=1.0)


class SessionCompleted(TypingEvent):
    """The cursor reached the end of the text."""

    summary: Summary


SessionListener = Callable[[TypingEvent], None]
