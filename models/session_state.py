"""Session state: phase, cursor and the append-only outcome log."""

from __future__ import annotations

import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from models.char_outcome import CharOutcome


class Transition(str, Enum):
    """Operations that move a session between phases."""

    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    COMPLETE = "complete"
    ABORT = "abort"


class Phase(str, Enum):
    """Lifecycle phase of a typing session."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABORTED = "aborted"

    def next_phase(self, transition: Transition) -> Optional["Phase"]:
        """Phase reached by applying ``transition``, or None when it is not allowed."""
        return _TRANSITIONS.get((self, transition))

    @property
    def is_terminal(self) -> bool:
        return self in (Phase.COMPLETED, Phase.ABORTED)


_TRANSITIONS: Dict[Tuple[Phase, Transition], Phase] = {
    (Phase.NOT_STARTED, Transition.START): Phase.RUNNING,
    (Phase.RUNNING, Transition.PAUSE): Phase.PAUSED,
    (Phase.RUNNING, Transition.COMPLETE): Phase.COMPLETED,
    (Phase.RUNNING, Transition.ABORT): Phase.ABORTED,
    (Phase.PAUSED, Transition.RESUME): Phase.RUNNING,
    (Phase.PAUSED, Transition.ABORT): Phase.ABORTED,
}


class InputMode(str, Enum):
    """How mismatches are handled.

    STRICT records the error and advances; FORGIVING records the error and
    re-presents the same character until it is typed correctly.
    """

    STRICT = "strict"
    FORGIVING = "forgiving"


class SessionState(BaseModel):
    """Mutable state of one session, written only by its TypingSession.

    ``pauses`` holds closed pause intervals; a pause in progress is tracked by
    ``paused_at`` until the session resumes or is aborted.
    """

    cursor: int = Field(default=0, ge=0)
    phase: Phase = Phase.NOT_STARTED
    mode: InputMode = InputMode.STRICT
    outcomes: List[CharOutcome] = Field(default_factory=list)
    started_at: Optional[datetime.datetime] = None
    ended_at: Optional[datetime.datetime] = None
    paused_at: Optional[datetime.datetime] = None
    pauses: List[Tuple[datetime.datetime, datetime.datetime]] = Field(default_factory=list)

    model_config = {
        "extra": "forbid",
    }

    def paused_between(
        self, start: datetime.datetime, end: datetime.datetime
    ) -> datetime.timedelta:
        """Time spent paused within the window [start, end]."""
        total = datetime.timedelta(0)
        intervals = list(self.pauses)
        if self.paused_at is not None:
            intervals.append((self.paused_at, max(end, self.paused_at)))
        for pause_start, pause_end in intervals:
            overlap = min(end, pause_end) - max(start, pause_start)
            if overlap > datetime.timedelta(0):
                total += overlap
        return total

    def elapsed(self, now: Optional[datetime.datetime] = None) -> datetime.timedelta:
        """Active typing time from start to ``ended_at`` (or ``now``), pauses excluded."""
        if self.started_at is None:
            return datetime.timedelta(0)
        end = self.ended_at
        if end is None:
            end = now if now is not None else datetime.datetime.now()
        active = end - self.started_at - self.paused_between(self.started_at, end)
        return max(active, datetime.timedelta(0))

    def active_time_between(
        self, start: datetime.datetime, end: datetime.datetime
    ) -> datetime.timedelta:
        """Un-paused time between two instants, never negative."""
        delta = end - start - self.paused_between(start, end)
        return max(delta, datetime.timedelta(0))

    def last_event_time(self) -> Optional[datetime.datetime]:
        """Timestamp of the latest outcome, or the start time when none exist."""
        if self.outcomes:
            return self.outcomes[-1].timestamp
        return self.started_at
