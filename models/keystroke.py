"""Keystroke model for the logical character stream delivered by the input collaborator."""

import datetime
import logging
import unicodedata
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# Values accepted wherever a whitespace-class character is expected.
WHITESPACE_EQUIVALENTS = frozenset({" ", "\t", "\n", "\r", "\u00a0", "\u3000"})

BACKSPACE = "\b"


def as_local_naive(value: datetime.datetime) -> datetime.datetime:
    """Convert an offset-aware datetime to naive local time; naive values pass through.

    Sessions compare keystroke times with each other and with
    ``datetime.now()``, so every timestamp is kept naive and local.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class Keystroke(BaseModel):
    """Pydantic model for a single post-IME keystroke.

    Keystrokes are transient: the session turns each one into at most one
    CharOutcome and does not keep the keystroke itself.
    """

    value: str = ""
    timestamp: datetime.datetime = Field(default_factory=datetime.datetime.now)

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @field_validator("value", mode="before")
    @classmethod
    def _normalize_nfc(cls, v: object) -> str:
        """Normalize the value to NFC so it compares equal to the target text."""
        if v is None:
            return ""
        if not isinstance(v, str):
            v = str(v)
        return unicodedata.normalize("NFC", v)

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: str) -> str:
        """Ensure the value is at most one logical character."""
        if len(v) > 1:
            raise ValueError("value must be a single character")
        return v

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: datetime.datetime) -> datetime.datetime:
        return as_local_naive(v)

    def is_whitespace_equivalent(self) -> bool:
        return self.value in WHITESPACE_EQUIVALENTS

    def is_control(self) -> bool:
        """True for non-printable control input such as backspace or escape."""
        if not self.value or self.is_whitespace_equivalent():
            return False
        return unicodedata.category(self.value) == "Cc"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Keystroke":
        """Create a Keystroke from a dictionary, accepting ISO timestamps."""
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        if timestamp is None:
            return cls(value=data.get("value", ""))
        return cls(value=data.get("value", ""), timestamp=timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "timestamp": self.timestamp.isoformat()}
