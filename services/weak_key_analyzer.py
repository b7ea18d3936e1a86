"""Weak-key analyzer: per-key error and latency statistics and weakness ranking.

Stats are keyed by the expected character, i.e. the key the learner was
supposed to press. Each outcome counts as one attempt, so every Forgiving-mode
retry is an attempt (and an error) against that key.

The weakness score of a key is

    error_rate * error_weight + normalized_latency * latency_weight

where normalized_latency is the key's mean latency divided by the largest mean
latency among the keys being ranked. Keys with fewer than ``min_attempts``
attempts are left out of the ranking.
"""

from __future__ import annotations

import datetime
import logging
from typing import Dict, Iterable, List, Optional

from models.char_outcome import CharOutcome
from models.engine_config import EngineConfig
from models.key_stat import KeyStat
from models.session_state import SessionState

logger = logging.getLogger(__name__)


class WeakKeyAnalyzer:
    """Incrementally aggregated KeyStat table with weakness ranking."""

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()
        self._stats: Dict[str, KeyStat] = {}

    def record(self, outcome: CharOutcome, latency: datetime.timedelta) -> KeyStat:
        """Fold one outcome into the stats of its expected key."""
        stat = self._stats.get(outcome.expected)
        if stat is None:
            stat = KeyStat(key=outcome.expected)
            self._stats[outcome.expected] = stat
        stat.record(correct=outcome.correct, latency=latency)
        return stat

    def stats(self) -> Dict[str, KeyStat]:
        """Copy of every key's stats, eligible for ranking or not."""
        return {key: stat.model_copy() for key, stat in self._stats.items()}

    def get(self, key: str) -> Optional[KeyStat]:
        stat = self._stats.get(key)
        return stat.model_copy() if stat is not None else None

    def __len__(self) -> int:
        return len(self._stats)

    def scores(self) -> Dict[str, float]:
        """Weakness score for every key meeting the attempt threshold."""
        eligible = [s for s in self._stats.values() if s.attempts >= self.config.min_attempts]
        if not eligible:
            return {}
        max_latency = max(s.mean_latency for s in eligible)
        scores: Dict[str, float] = {}
        for stat in eligible:
            if max_latency > datetime.timedelta(0):
                normalized_latency = stat.mean_latency / max_latency
            else:
                normalized_latency = 0.0
            scores[stat.key] = (
                stat.error_rate * self.config.error_weight
                + normalized_latency * self.config.latency_weight
            )
        return scores

    def rank(self, limit: Optional[int] = None) -> List[KeyStat]:
        """Eligible keys ordered from weakest to strongest.

        Ties on score are broken by more errors, then more attempts, then key.
        """
        scores = self.scores()
        ranked = sorted(
            (self._stats[key] for key in scores),
            key=lambda s: (-scores[s.key], -s.errors, -s.attempts, s.key),
        )
        if limit is not None:
            ranked = ranked[:limit]
        return [s.model_copy() for s in ranked]

    def merge(self, other: "WeakKeyAnalyzer") -> "WeakKeyAnalyzer":
        """Combine two analyzers (e.g. across sessions) into a new one."""
        merged = WeakKeyAnalyzer(self.config)
        for source in (self, other):
            for key, stat in source._stats.items():
                existing = merged._stats.get(key)
                merged._stats[key] = existing.merge(stat) if existing else stat.model_copy()
        logger.debug("Merged weak-key stats: %d keys", len(merged._stats))
        return merged

    @classmethod
    def from_key_stats(
        cls, stats: Iterable[KeyStat], config: Optional[EngineConfig] = None
    ) -> "WeakKeyAnalyzer":
        """Rebuild an analyzer from persisted KeyStats, merging duplicate keys."""
        analyzer = cls(config)
        for stat in stats:
            existing = analyzer._stats.get(stat.key)
            analyzer._stats[stat.key] = existing.merge(stat) if existing else stat.model_copy()
        return analyzer

    @classmethod
    def from_state(
        cls, state: SessionState, config: Optional[EngineConfig] = None
    ) -> "WeakKeyAnalyzer":
        """Recompute the stats from scratch from a session's outcome log.

        Produces exactly what incremental recording during the session
        produces; used to verify the accumulator.
        """
        analyzer = cls(config)
        previous = state.started_at
        for outcome in state.outcomes:
            analyzer.record(outcome, latency_between(state, previous, outcome.timestamp))
            previous = outcome.timestamp
        return analyzer


def latency_between(
    state: SessionState,
    previous: Optional[datetime.datetime],
    current: datetime.datetime,
) -> datetime.timedelta:
    """Un-paused time from the previous event to the current outcome."""
    if previous is None:
        return datetime.timedelta(0)
    return state.active_time_between(previous, current)
