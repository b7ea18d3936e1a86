"""TypingSession: the session state machine and keystroke entry point.

Lifecycle::

    NOT_STARTED --start()--> RUNNING --pause()--> PAUSED --resume()--> RUNNING
    RUNNING --(cursor reaches end)--> COMPLETED
    RUNNING | PAUSED --abort()--> ABORTED

A session has a single writer: one caller submits keystrokes and drives the
lifecycle. Nothing here is synchronized; callers that read snapshots or
summaries from another thread must serialize access themselves. Independent
sessions share no mutable state.
"""

from __future__ import annotations

import datetime
import logging
import uuid
from typing import Dict, List, Optional, Tuple, Union

from helpers.debug_util import DebugUtil
from models.char_outcome import CharOutcome, KeystrokeResult, ResultKind
from models.engine_config import EngineConfig
from models.events import (
    ErrorCorrected,
    KeyPressed,
    MilestoneReached,
    SessionCompleted,
    SessionListener,
    TypingEvent,
    WordCompleted,
)
from models.exceptions import EmptyTextError, InvalidStateError, SessionNotActiveError
from models.key_stat import KeyStat
from models.keystroke import Keystroke, as_local_naive
from models.matching import match_keystroke
from models.session_state import InputMode, Phase, SessionState, Transition
from models.summary import SessionSnapshot, Summary
from models.target_text import CharClass, ExpectedChar, LessonMeta, TargetText
from services.metrics_engine import MetricsEngine
from services.weak_key_analyzer import WeakKeyAnalyzer, latency_between

logger = logging.getLogger(__name__)


class TypingSession:
    """One practice run of a learner against one target text."""

    def __init__(
        self,
        text: Union[TargetText, str],
        config: Optional[EngineConfig] = None,
        lesson_meta: Optional[LessonMeta] = None,
        debug_util: Optional[DebugUtil] = None,
    ) -> None:
        self.session_id = str(uuid.uuid4())
        self.text = text if isinstance(text, TargetText) else TargetText.from_string(text)
        self.config = config or EngineConfig()
        self.lesson_meta = lesson_meta
        self.debug_util = debug_util or DebugUtil()
        self.metrics = MetricsEngine(self.config)
        self.analyzer = WeakKeyAnalyzer(self.config)
        self._state = SessionState()
        self._listeners: List[SessionListener] = []
        self._milestones_reached: List[float] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        """A deep copy of the current state."""
        return self._state.model_copy(deep=True)

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def mode(self) -> InputMode:
        return self._state.mode

    @property
    def cursor(self) -> int:
        return self._state.cursor

    @property
    def outcomes(self) -> Tuple[CharOutcome, ...]:
        return tuple(self._state.outcomes)

    @property
    def started_at(self) -> Optional[datetime.datetime]:
        return self._state.started_at

    @property
    def ended_at(self) -> Optional[datetime.datetime]:
        return self._state.ended_at

    @property
    def progress(self) -> float:
        if self.text.is_empty():
            return 0.0
        return self._state.cursor / len(self.text)

    def current_expected(self) -> Optional[ExpectedChar]:
        """The character the learner must type next, None at the end."""
        if self._state.cursor >= len(self.text):
            return None
        return self.text[self._state.cursor]

    def typed_text(self) -> str:
        """Characters accepted at each index the cursor has moved past.

        Rebuilt from the whole outcome log on every call, so this is linear in
        the number of keystrokes and is meant for display, not per-keystroke use.
        """
        accepted: Dict[int, str] = {}
        for outcome in self._state.outcomes:
            if outcome.index < self._state.cursor:
                accepted[outcome.index] = outcome.typed
        return "".join(accepted[i] for i in sorted(accepted))

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_listener(self, listener: SessionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: TypingEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Listener %r failed handling %s in session %s",
                    listener,
                    type(event).__name__,
                    self.session_id,
                )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _reject(self, operation: str) -> None:
        message = f"Cannot {operation} a session that is {self._state.phase.value}"
        logger.warning("%s (session %s)", message, self.session_id)
        raise InvalidStateError(message, phase=self._state.phase)

    def _next_phase(self, transition: Transition) -> Phase:
        target = self._state.phase.next_phase(transition)
        if target is None:
            self._reject(transition.value)
        return target

    def start(
        self, mode: InputMode = InputMode.STRICT, at: Optional[datetime.datetime] = None
    ) -> None:
        """Begin the session in the given input mode.

        Raises:
            InvalidStateError: If the session was already started.
            EmptyTextError: If the target text has no characters.
        """
        target = self._next_phase(Transition.START)
        if self.text.is_empty():
            logger.warning("Refusing to start session %s on empty text", self.session_id)
            raise EmptyTextError()
        self._state.mode = mode
        self._state.started_at = as_local_naive(at or datetime.datetime.now())
        self._state.phase = target
        logger.info(
            "Session %s started in %s mode (%d chars)", self.session_id, mode.value, len(self.text)
        )

    def pause(self, at: Optional[datetime.datetime] = None) -> None:
        """Suspend a running session; paused time does not count as typing time."""
        target = self._next_phase(Transition.PAUSE)
        self._state.paused_at = as_local_naive(at or datetime.datetime.now())
        self._state.phase = target
        logger.info("Session %s paused at cursor %d", self.session_id, self._state.cursor)

    def resume(self, at: Optional[datetime.datetime] = None) -> None:
        target = self._next_phase(Transition.RESUME)
        self._close_pause(as_local_naive(at or datetime.datetime.now()))
        self._state.phase = target
        logger.info("Session %s resumed", self.session_id)

    def abort(self, at: Optional[datetime.datetime] = None) -> None:
        """End the session early. Terminal."""
        target = self._next_phase(Transition.ABORT)
        at = as_local_naive(at or datetime.datetime.now())
        if self._state.phase == Phase.PAUSED:
            self._close_pause(at)
        self._state.ended_at = at
        self._state.phase = target
        logger.info(
            "Session %s aborted at cursor %d of %d",
            self.session_id,
            self._state.cursor,
            len(self.text),
        )

    def _close_pause(self, at: datetime.datetime) -> None:
        paused_at = self._state.paused_at
        if paused_at is not None:
            self._state.pauses.append((paused_at, max(at, paused_at)))
        self._state.paused_at = None

    # ------------------------------------------------------------------
    # Keystrokes
    # ------------------------------------------------------------------
    def submit(self, keystroke: Keystroke) -> KeystrokeResult:
        """Match one keystroke against the current character.

        Returns ADVANCE when the cursor moved, RETRY for a Forgiving-mode
        mismatch (cursor unchanged) and IGNORED for control input.

        Raises:
            SessionNotActiveError: If the session is not running. Nothing is
                recorded in that case.
        """
        state = self._state
        if state.phase != Phase.RUNNING:
            logger.warning(
                "Keystroke %r rejected: session %s is %s",
                keystroke.value,
                self.session_id,
                state.phase.value,
            )
            raise SessionNotActiveError(
                f"Session is {state.phase.value}, not running", phase=state.phase
            )

        expected = self.text[state.cursor]
        decision = match_keystroke(expected, keystroke, state.mode)
        if decision.kind == ResultKind.IGNORED:
            self.debug_util.debugMessage(
                f"Ignored control keystroke {keystroke.value!r} at {state.cursor}"
            )
            return KeystrokeResult.ignored()

        # Retries at an index are consecutive, so the last entry tells whether
        # this index has been missed before.
        retried_here = bool(state.outcomes) and state.outcomes[-1].index == state.cursor
        advance = decision.kind == ResultKind.ADVANCE
        outcome = CharOutcome(
            index=state.cursor,
            expected=expected.value,
            typed=keystroke.value,
            correct=decision.correct,
            timestamp=keystroke.timestamp,
            corrected=advance and decision.correct and retried_here,
        )
        latency = latency_between(state, state.last_event_time(), keystroke.timestamp)

        state.outcomes.append(outcome)
        self.analyzer.record(outcome, latency)
        if advance:
            state.cursor += 1
            if state.cursor == len(self.text):
                state.phase = state.phase.next_phase(Transition.COMPLETE)
                state.ended_at = keystroke.timestamp
                logger.info(
                    "Session %s completed after %d keystrokes",
                    self.session_id,
                    len(state.outcomes),
                )

        self.debug_util.debugMessage(
            f"pos {outcome.index}: expected={outcome.expected!r} typed={outcome.typed!r} "
            f"correct={outcome.correct} -> {decision.kind.value}"
        )
        if advance:
            result = KeystrokeResult.advance(outcome)
        else:
            result = KeystrokeResult.retry(outcome)
        self._publish(outcome, expected, advance, keystroke.timestamp)
        return result

    def _newly_reached_milestones(self) -> List[float]:
        progress = self.progress
        reached = [
            milestone
            for milestone in self.config.milestones
            if progress >= milestone and milestone not in self._milestones_reached
        ]
        self._milestones_reached.extend(reached)
        return reached

    def _publish(
        self,
        outcome: CharOutcome,
        expected: ExpectedChar,
        advanced: bool,
        now: datetime.datetime,
    ) -> None:
        """Emit the events that follow from one recorded outcome.

        Milestones are marked as reached even with no listener attached, so a
        listener added later only hears about milestones crossed after it.
        """
        milestones = self._newly_reached_milestones() if advanced else []
        if not self._listeners:
            return
        self._emit(KeyPressed(char=outcome.typed, correct=outcome.correct, position=outcome.index))
        if outcome.corrected:
            self._emit(ErrorCorrected(position=outcome.index))
        if not advanced:
            return
        if outcome.correct and expected.char_class == CharClass.WHITESPACE:
            elapsed = self._state.elapsed(now)
            self._emit(WordCompleted(wpm=self.metrics.wpm(self._state.outcomes, elapsed)))
        for milestone in milestones:
            self._emit(MilestoneReached(progress=milestone))
        if self._state.phase == Phase.COMPLETED:
            summary = self.summary()
            self._emit(SessionCompleted(summary=summary))

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------
    def _require_started(self, operation: str) -> None:
        if self._state.phase == Phase.NOT_STARTED:
            self._reject(operation)

    def snapshot(self, now: Optional[datetime.datetime] = None) -> SessionSnapshot:
        """Cursor, recent outcomes and live metrics for rendering."""
        self._require_started("snapshot")
        limit = self.config.snapshot_outcomes
        recent = self._state.outcomes[-limit:] if limit else []
        return SessionSnapshot(
            cursor=self._state.cursor,
            phase=self._state.phase,
            progress=self.progress,
            recent_outcomes=list(recent),
            metrics=self.metrics.live_metrics(self._state, now),
        )

    def summary(self, now: Optional[datetime.datetime] = None) -> Summary:
        """Summary of the session.

        Final (measured to ``ended_at``) once the session is completed or
        aborted; otherwise measured up to ``now``.
        """
        self._require_started("summarize")
        state = self._state
        final = state.phase.is_terminal
        metrics = self.metrics.live_metrics(state, state.ended_at if final else now)
        return Summary(
            session_id=self.session_id,
            wpm=metrics.wpm,
            cpm=metrics.cpm,
            accuracy=metrics.accuracy,
            raw_error_rate=metrics.raw_error_rate,
            consistency=metrics.consistency,
            duration=metrics.elapsed,
            total_keystrokes=len(state.outcomes),
            error_count=self.metrics.error_count(state.outcomes),
            weak_keys=self.analyzer.rank(self.config.weak_key_limit),
            mode=state.mode,
            phase=state.phase,
            final=final,
            started_at=state.started_at,
            ended_at=state.ended_at,
            text_preview=self.text.preview(),
            lesson_meta=self.lesson_meta,
        )

    def rank(self) -> List[KeyStat]:
        """Weak keys of this session, weakest first."""
        return self.analyzer.rank()
