"""CharOutcome and KeystrokeResult: what the matching engine produces per keystroke."""

import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator


class CharOutcome(BaseModel):
    """One attempt at one index of the target text.

    Outcomes form the append-only log that every metric is derived from.
    """

    index: int = Field(..., ge=0, description="Index of the expected character")
    expected: str
    typed: str
    correct: bool
    timestamp: datetime.datetime
    corrected: bool = False

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @model_validator(mode="after")
    def check_corrected(self) -> "CharOutcome":
        """Only a correct attempt can be marked as a correction."""
        if self.corrected and not self.correct:
            raise ValueError("corrected outcomes must be correct")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "expected": self.expected,
            "typed": self.typed,
            "correct": self.correct,
            "timestamp": self.timestamp.isoformat(),
            "corrected": self.corrected,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CharOutcome":
        return cls.model_validate(d)


class ResultKind(str, Enum):
    """Kind of result returned by TypingSession.submit()."""

    ADVANCE = "advance"
    RETRY = "retry"
    IGNORED = "ignored"


class KeystrokeResult(BaseModel):
    """Result of submitting one keystroke.

    ADVANCE and RETRY carry the outcome that was logged; IGNORED carries none.
    """

    kind: ResultKind
    outcome: Optional[CharOutcome] = None

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @model_validator(mode="after")
    def check_outcome(self) -> "KeystrokeResult":
        if self.kind == ResultKind.IGNORED and self.outcome is not None:
            raise ValueError("ignored results carry no outcome")
        if self.kind != ResultKind.IGNORED and self.outcome is None:
            raise ValueError(f"{self.kind.value} results require an outcome")
        return self

    @classmethod
    def advance(cls, outcome: CharOutcome) -> "KeystrokeResult":
        return cls(kind=ResultKind.ADVANCE, outcome=outcome)

    @classmethod
    def retry(cls, outcome: CharOutcome) -> "KeystrokeResult":
        return cls(kind=ResultKind.RETRY, outcome=outcome)

    @classmethod
    def ignored(cls) -> "KeystrokeResult":
        return cls(kind=ResultKind.IGNORED)

    @property
    def advanced(self) -> bool:
        return self.kind == ResultKind.ADVANCE
