"""Output models handed to the UI and persistence collaborators."""

from __future__ import annotations

import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.char_outcome import CharOutcome
from models.key_stat import KeyStat
from models.session_state import InputMode, Phase
from models.target_text import LessonMeta


class LiveMetrics(BaseModel):
    """Metrics derived from the outcome log at one instant."""

    wpm: float = 0.0
    cpm: float = 0.0
    raw_wpm: float = 0.0
    recent_wpm: float = 0.0
    accuracy: float = Field(default=1.0, ge=0.0, le=1.0)
    raw_error_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    consistency: float = Field(default=1.0, ge=0.0, le=1.0)
    elapsed: datetime.timedelta = datetime.timedelta(0)

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }


class SessionSnapshot(BaseModel):
    """Lightweight view of a session for rendering."""

    cursor: int
    phase: Phase
    progress: float = Field(..., ge=0.0, le=1.0)
    recent_outcomes: List[CharOutcome] = Field(default_factory=list)
    metrics: LiveMetrics

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }


class Summary(BaseModel):
    """Summary of a session.

    ``final`` is True once the session has ended; a summary taken earlier is a
    live figure measured up to the time it was requested.
    """

    session_id: Optional[str] = None
    wpm: float
    cpm: float
    accuracy: float = Field(..., ge=0.0, le=1.0)
    raw_error_rate: float = Field(..., ge=0.0, le=1.0)
    consistency: float = Field(..., ge=0.0, le=1.0)
    duration: datetime.timedelta
    total_keystrokes: int = Field(..., ge=0)
    error_count: int = Field(..., ge=0)
    weak_keys: List[KeyStat] = Field(default_factory=list)
    mode: InputMode
    phase: Phase
    final: bool
    started_at: Optional[datetime.datetime] = None
    ended_at: Optional[datetime.datetime] = None
    text_preview: str = ""
    lesson_meta: Optional[LessonMeta] = None

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible values for an external store."""
        return {
            "session_id": self.session_id,
            "wpm": self.wpm,
            "cpm": self.cpm,
            "accuracy": self.accuracy,
            "raw_error_rate": self.raw_error_rate,
            "consistency": self.consistency,
            "duration": self.duration.total_seconds(),
            "total_keystrokes": self.total_keystrokes,
            "error_count": self.error_count,
            "weak_keys": [k.to_dict() for k in self.weak_keys],
            "mode": self.mode.value,
            "phase": self.phase.value,
            "final": self.final,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "text_preview": self.text_preview,
            "lesson_meta": self.lesson_meta.to_dict() if self.lesson_meta else None,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Summary":
        data = d.copy()
        duration = data.get("duration")
        if isinstance(duration, (int, float)):
            data["duration"] = datetime.timedelta(seconds=duration)
        data["weak_keys"] = [
            k if isinstance(k, KeyStat) else KeyStat.from_dict(k)
            for k in data.get("weak_keys", [])
        ]
        meta = data.get("lesson_meta")
        if isinstance(meta, dict):
            data["lesson_meta"] = LessonMeta.from_dict(meta)
        try:
            return cls.model_validate(data)
        except ValueError as e:
            raise ValueError(f"Invalid summary data: {str(e)}") from e

    def get_summary(self) -> str:
        """Return a one-line human readable description."""
        return (
            f"{self.wpm:.1f} WPM, {self.accuracy * 100:.1f}% accuracy, "
            f"{self.consistency * 100:.0f}% consistency over "
            f"{self.duration.total_seconds():.1f}s ({self.error_count} errors)"
        )
