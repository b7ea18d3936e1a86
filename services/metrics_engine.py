"""Metrics engine: speed, accuracy and consistency derived from the outcome log.

Every figure is recomputed from the outcome log on each call. There is no
running accumulator, so the metrics can never drift from the log.

Definitions:
- WPM = (correct characters / 5) / elapsed minutes, 0.0 below ``min_elapsed_ms``.
- CPM = correct characters / elapsed minutes.
- Raw WPM counts every logged attempt instead of correct characters only.
- Recent WPM uses only the correct outcomes inside the trailing
  ``recent_window_secs`` window.
- Accuracy = indices whose first attempt was correct / indices advanced past.
- Raw error rate = incorrect attempts / all attempts (every retry included).
- Consistency = max(0, 1 - coefficient of variation) of the inter-keystroke
  deltas of correct first-attempt outcomes.
"""

import datetime
import logging
import statistics
from typing import List, Optional, Sequence, Set

from models.char_outcome import CharOutcome
from models.engine_config import EngineConfig
from models.session_state import SessionState
from models.summary import LiveMetrics

logger = logging.getLogger(__name__)

CHARS_PER_WORD = 5.0


def first_attempt_flags(outcomes: Sequence[CharOutcome]) -> List[bool]:
    """For each outcome, whether it is the first attempt at its index."""
    seen: Set[int] = set()
    flags: List[bool] = []
    for outcome in outcomes:
        flags.append(outcome.index not in seen)
        seen.add(outcome.index)
    return flags


class MetricsEngine:
    """Stateless metric derivations parameterized by an EngineConfig."""

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()

    def _per_minute(self, count: float, elapsed: datetime.timedelta) -> float:
        seconds = elapsed.total_seconds()
        if count <= 0 or seconds * 1000.0 < self.config.min_elapsed_ms or seconds <= 0:
            return 0.0
        return count * 60.0 / seconds

    @staticmethod
    def correct_chars(outcomes: Sequence[CharOutcome]) -> int:
        return sum(1 for o in outcomes if o.correct)

    @staticmethod
    def error_count(outcomes: Sequence[CharOutcome]) -> int:
        return sum(1 for o in outcomes if not o.correct)

    def wpm(self, outcomes: Sequence[CharOutcome], elapsed: datetime.timedelta) -> float:
        """Words per minute over correct characters, never NaN or infinite."""
        return self._per_minute(self.correct_chars(outcomes) / CHARS_PER_WORD, elapsed)

    def cpm(self, outcomes: Sequence[CharOutcome], elapsed: datetime.timedelta) -> float:
        return self._per_minute(self.correct_chars(outcomes), elapsed)

    def raw_wpm(self, outcomes: Sequence[CharOutcome], elapsed: datetime.timedelta) -> float:
        return self._per_minute(len(outcomes) / CHARS_PER_WORD, elapsed)

    def recent_wpm(self, state: SessionState, now: datetime.datetime) -> float:
        """WPM over correct outcomes in the trailing window ending at ``now``.

        The window is measured from the first correct outcome inside it, so a
        burst of typing is not diluted by idle time before it.
        """
        window = datetime.timedelta(seconds=self.config.recent_window_secs)
        recent = [
            o
            for o in state.outcomes
            if o.correct and state.active_time_between(o.timestamp, now) <= window
        ]
        if not recent:
            return 0.0
        duration = state.active_time_between(recent[0].timestamp, now)
        return self._per_minute(len(recent) / CHARS_PER_WORD, duration)

    @staticmethod
    def accuracy(outcomes: Sequence[CharOutcome], cursor: int) -> float:
        """First-attempt accuracy over the indices the cursor has moved past.

        Retries never enlarge the denominator; a Forgiving session is scored on
        the same footing as a Strict one. 1.0 when nothing has been advanced.
        """
        if cursor <= 0:
            return 1.0
        first_correct = 0
        for outcome, first in zip(outcomes, first_attempt_flags(outcomes)):
            if first and outcome.index < cursor and outcome.correct:
                first_correct += 1
        return first_correct / cursor

    @staticmethod
    def raw_error_rate(outcomes: Sequence[CharOutcome]) -> float:
        """Incorrect attempts over all attempts, retries included."""
        if not outcomes:
            return 0.0
        return sum(1 for o in outcomes if not o.correct) / len(outcomes)

    @staticmethod
    def timing_deltas(state: SessionState) -> List[float]:
        """Seconds between each correct first-attempt outcome and the entry before it.

        The first outcome has no predecessor and is skipped; paused time is
        excluded.
        """
        outcomes = state.outcomes
        flags = first_attempt_flags(outcomes)
        deltas: List[float] = []
        for i in range(1, len(outcomes)):
            current = outcomes[i]
            if not (current.correct and flags[i]):
                continue
            delta = state.active_time_between(outcomes[i - 1].timestamp, current.timestamp)
            deltas.append(delta.total_seconds())
        return deltas

    def consistency(self, state: SessionState) -> float:
        """Evenness of pacing in [0, 1]; 1.0 means perfectly even."""
        deltas = self.timing_deltas(state)
        if len(deltas) < 2:
            return 1.0
        mean = statistics.fmean(deltas)
        if mean <= 0:
            return 1.0
        cv = statistics.pstdev(deltas) / mean
        return max(0.0, min(1.0, 1.0 - cv))

    def live_metrics(
        self, state: SessionState, now: Optional[datetime.datetime] = None
    ) -> LiveMetrics:
        """Derive every metric for the state as of ``now`` (or ``ended_at``)."""
        if now is None:
            now = state.ended_at or datetime.datetime.now()
        elapsed = state.elapsed(now)
        outcomes = state.outcomes
        metrics = LiveMetrics(
            wpm=self.wpm(outcomes, elapsed),
            cpm=self.cpm(outcomes, elapsed),
            raw_wpm=self.raw_wpm(outcomes, elapsed),
            recent_wpm=self.recent_wpm(state, state.ended_at or now),
            accuracy=self.accuracy(outcomes, state.cursor),
            raw_error_rate=self.raw_error_rate(outcomes),
            consistency=self.consistency(state),
            elapsed=elapsed,
        )
        logger.debug(
            "Metrics at cursor %d: %.1f wpm, %.3f accuracy", state.cursor, metrics.wpm, metrics.accuracy
        )
        return metrics
