"""Tests for WeakKeyAnalyzer aggregation and ranking."""

from datetime import datetime, timedelta
from typing import Optional

import pytest

from models.char_outcome import CharOutcome
from models.engine_config import EngineConfig
from models.key_stat import KeyStat
from models.session_state import SessionState
from services.weak_key_analyzer import WeakKeyAnalyzer

T0 = datetime(2024, 1, 1, 12, 0, 0)


def outcome(key: str, correct: bool, index: int = 0, ms: float = 0) -> CharOutcome:
    return CharOutcome(
        index=index,
        expected=key,
        typed=key if correct else "#",
        correct=correct,
        timestamp=T0 + timedelta(milliseconds=ms),
    )


def feed(
    analyzer: WeakKeyAnalyzer,
    key: str,
    attempts: int,
    errors: int,
    latency_ms: float = 200,
) -> None:
    for i in range(attempts):
        analyzer.record(outcome(key, correct=i >= errors), timedelta(milliseconds=latency_ms))


class TestRecording:
    def test_record_updates_counts_and_latency(self) -> None:
        analyzer = WeakKeyAnalyzer()
        analyzer.record(outcome("a", True), timedelta(milliseconds=100))
        analyzer.record(outcome("a", False), timedelta(milliseconds=300))
        stat = analyzer.get("a")
        assert stat is not None
        assert stat.attempts == 2
        assert stat.errors == 1
        assert stat.total_latency == timedelta(milliseconds=400)
        assert stat.mean_latency == timedelta(milliseconds=200)

    def test_stats_keyed_by_expected_char(self) -> None:
        analyzer = WeakKeyAnalyzer()
        analyzer.record(outcome("a", False), timedelta(0))
        assert analyzer.get("#") is None
        assert analyzer.get("a") is not None

    def test_stats_returns_copies(self) -> None:
        analyzer = WeakKeyAnalyzer()
        feed(analyzer, "a", 3, 0)
        analyzer.stats()["a"].attempts = 99
        assert analyzer.get("a").attempts == 3

    def test_negative_latency_clamped(self) -> None:
        analyzer = WeakKeyAnalyzer()
        analyzer.record(outcome("a", True), timedelta(milliseconds=-50))
        assert analyzer.get("a").total_latency == timedelta(0)


class TestRanking:
    def test_minimum_attempts_excludes_noisy_keys(self) -> None:
        analyzer = WeakKeyAnalyzer()
        feed(analyzer, "x", attempts=5, errors=3)
        feed(analyzer, "y", attempts=2, errors=2)
        ranked = analyzer.rank()
        assert [s.key for s in ranked] == ["x"]
        assert ranked[0].attempts == 5
        assert ranked[0].errors == 3
        assert analyzer.get("y") is not None

    def test_threshold_is_configurable(self) -> None:
        analyzer = WeakKeyAnalyzer(EngineConfig(min_attempts=2))
        feed(analyzer, "x", attempts=5, errors=3)
        feed(analyzer, "y", attempts=2, errors=2)
        assert [s.key for s in analyzer.rank()] == ["y", "x"]

    def test_error_rate_ordering_with_equal_latency(self) -> None:
        analyzer = WeakKeyAnalyzer()
        feed(analyzer, "a", attempts=4, errors=1)
        feed(analyzer, "b", attempts=4, errors=3)
        feed(analyzer, "c", attempts=4, errors=0)
        assert [s.key for s in analyzer.rank()] == ["b", "a", "c"]

    def test_latency_contributes(self) -> None:
        analyzer = WeakKeyAnalyzer()
        feed(analyzer, "a", attempts=4, errors=0, latency_ms=100)
        feed(analyzer, "b", attempts=4, errors=0, latency_ms=400)
        scores = analyzer.scores()
        assert scores["b"] == pytest.approx(0.5)
        assert scores["a"] == pytest.approx(0.125)
        assert [s.key for s in analyzer.rank()] == ["b", "a"]

    def test_weights_are_configurable(self) -> None:
        config = EngineConfig(error_weight=1.0, latency_weight=0.0)
        analyzer = WeakKeyAnalyzer(config)
        feed(analyzer, "a", attempts=4, errors=1, latency_ms=900)
        feed(analyzer, "b", attempts=4, errors=2, latency_ms=100)
        scores = analyzer.scores()
        assert scores == {"a": pytest.approx(0.25), "b": pytest.approx(0.5)}
        assert [s.key for s in analyzer.rank()] == ["b", "a"]

    def test_zero_latency_everywhere(self) -> None:
        analyzer = WeakKeyAnalyzer()
        feed(analyzer, "a", attempts=3, errors=3, latency_ms=0)
        assert analyzer.scores() == {"a": pytest.approx(0.5)}

    def test_ties_broken_deterministically(self) -> None:
        analyzer = WeakKeyAnalyzer()
        feed(analyzer, "b", attempts=3, errors=0)
        feed(analyzer, "a", attempts=3, errors=0)
        feed(analyzer, "c", attempts=6, errors=0)
        assert [s.key for s in analyzer.rank()] == ["c", "a", "b"]

    def test_rank_limit(self) -> None:
        analyzer = WeakKeyAnalyzer()
        for key in "abcd":
            feed(analyzer, key, attempts=3, errors=1)
        assert len(analyzer.rank(limit=2)) == 2

    def test_empty_rank(self) -> None:
        assert WeakKeyAnalyzer().rank() == []
        assert WeakKeyAnalyzer().scores() == {}


class TestAggregation:
    def test_merge_combines_sessions(self) -> None:
        first = WeakKeyAnalyzer()
        second = WeakKeyAnalyzer()
        feed(first, "x", attempts=2, errors=1)
        feed(second, "x", attempts=2, errors=1)
        feed(second, "z", attempts=1, errors=0)
        merged = first.merge(second)
        x: Optional[KeyStat] = merged.get("x")
        assert x is not None
        assert (x.attempts, x.errors) == (4, 2)
        assert x.total_latency == timedelta(milliseconds=800)
        assert [s.key for s in merged.rank()] == ["x"]
        assert first.get("x").attempts == 2

    def test_from_key_stats(self) -> None:
        stats = [
            KeyStat(key="q", attempts=2, errors=1, total_latency=timedelta(seconds=1)),
            KeyStat(key="q", attempts=3, errors=0, total_latency=timedelta(seconds=1)),
        ]
        analyzer = WeakKeyAnalyzer.from_key_stats(stats)
        q = analyzer.get("q")
        assert q is not None
        assert (q.attempts, q.errors) == (5, 1)

    def test_from_state_uses_start_for_first_latency(self) -> None:
        state = SessionState(
            cursor=2,
            outcomes=[outcome("a", True, 0, 300), outcome("b", True, 1, 500)],
            started_at=T0,
        )
        analyzer = WeakKeyAnalyzer.from_state(state)
        assert analyzer.get("a").total_latency == timedelta(milliseconds=300)
        assert analyzer.get("b").total_latency == timedelta(milliseconds=200)
