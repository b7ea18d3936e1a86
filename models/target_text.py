"""Target text model: the immutable, indexed text a learner types against."""

from __future__ import annotations

import unicodedata
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


class CharClass(str, Enum):
    """Class of an expected character."""

    LETTER = "letter"
    DIGIT = "digit"
    PUNCTUATION = "punctuation"
    WHITESPACE = "whitespace"

    @classmethod
    def of(cls, ch: str) -> "CharClass":
        """Classify a single character.

        Anything that is not a letter, digit or whitespace (symbols included) is
        treated as punctuation.
        """
        if ch.isspace():
            return cls.WHITESPACE
        if ch.isdigit():
            return cls.DIGIT
        if ch.isalpha():
            return cls.LETTER
        return cls.PUNCTUATION


class ExpectedChar(BaseModel):
    """A single character of the target text with its class."""

    value: str
    char_class: CharClass

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: str) -> str:
        """Ensure value is exactly one character."""
        if len(v) != 1:
            raise ValueError("value must be exactly one character")
        return v

    @classmethod
    def from_char(cls, ch: str) -> "ExpectedChar":
        return cls(value=ch, char_class=CharClass.of(ch))


def normalize_text(text: str) -> str:
    """Normalize text to NFC and fold CRLF/CR line endings to LF."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return unicodedata.normalize("NFC", text)


class TargetText(BaseModel):
    """Pydantic model for the ordered sequence of expected characters.

    Immutable once built; a session owns its own instance.
    """

    chars: Tuple[ExpectedChar, ...] = ()

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @classmethod
    def from_string(cls, text: str) -> "TargetText":
        """Build a TargetText from raw lesson content."""
        normalized = normalize_text(text or "")
        return cls(chars=tuple(ExpectedChar.from_char(ch) for ch in normalized))

    def __len__(self) -> int:
        return len(self.chars)

    def __getitem__(self, index: int) -> ExpectedChar:
        return self.chars[index]

    def is_empty(self) -> bool:
        return not self.chars

    def as_string(self) -> str:
        """Return the text as a plain string."""
        return "".join(c.value for c in self.chars)

    def preview(self, limit: int = 20) -> str:
        """First ``limit`` characters, with an ellipsis when truncated."""
        text = self.as_string()
        if len(text) > limit:
            return text[:limit] + "..."
        return text

    def class_counts(self) -> Dict[CharClass, int]:
        """Count expected characters per class."""
        counts: Dict[CharClass, int] = {}
        for c in self.chars:
            counts[c.char_class] = counts.get(c.char_class, 0) + 1
        return counts


class Difficulty(str, Enum):
    """Lesson difficulty level."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class LessonMeta(BaseModel):
    """Lesson metadata handed over by the lesson-loading collaborator.

    The engine does not interpret these values; they travel with the session
    into its Summary.
    """

    title: Optional[str] = None
    difficulty: Difficulty = Difficulty.BEGINNER
    language: str = Field(default="en-US", min_length=1)
    tags: List[str] = Field(default_factory=list)
    estimated_duration: timedelta = timedelta(0)

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
    }

    @field_validator("estimated_duration")
    @classmethod
    def validate_estimated_duration(cls, v: timedelta) -> timedelta:
        if v < timedelta(0):
            raise ValueError("estimated_duration must not be negative")
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to plain JSON-compatible values."""
        return {
            "title": self.title,
            "difficulty": self.difficulty.value,
            "language": self.language,
            "tags": list(self.tags),
            "estimated_duration": self.estimated_duration.total_seconds(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LessonMeta":
        data = d.copy()
        duration = data.get("estimated_duration")
        if isinstance(duration, (int, float)):
            data["estimated_duration"] = timedelta(seconds=duration)
        return cls.model_validate(data)
