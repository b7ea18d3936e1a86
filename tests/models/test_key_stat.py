"""Tests for the KeyStat model."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from models.key_stat import KeyStat


def test_defaults() -> None:
    stat = KeyStat(key="a")
    assert stat.attempts == 0
    assert stat.errors == 0
    assert stat.error_rate == 0.0
    assert stat.mean_latency == timedelta(0)


def test_record() -> None:
    stat = KeyStat(key="a")
    stat.record(correct=False, latency=timedelta(milliseconds=300))
    stat.record(correct=True, latency=timedelta(milliseconds=100))
    assert stat.attempts == 2
    assert stat.errors == 1
    assert stat.error_rate == 0.5
    assert stat.mean_latency == timedelta(milliseconds=200)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"key": "ab"},
        {"key": ""},
        {"key": "a", "attempts": -1},
        {"key": "a", "attempts": 1, "errors": 2},
        {"key": "a", "total_latency": timedelta(seconds=-1)},
    ],
)
def test_invalid(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        KeyStat(**kwargs)


def test_merge() -> None:
    a = KeyStat(key="k", attempts=3, errors=1, total_latency=timedelta(seconds=1))
    b = KeyStat(key="k", attempts=2, errors=2, total_latency=timedelta(seconds=2))
    merged = a.merge(b)
    assert (merged.attempts, merged.errors) == (5, 3)
    assert merged.total_latency == timedelta(seconds=3)
    assert a.attempts == 3


def test_merge_different_keys_rejected() -> None:
    with pytest.raises(ValueError):
        KeyStat(key="a").merge(KeyStat(key="b"))


def test_dict_round_trip() -> None:
    stat = KeyStat(key="z", attempts=4, errors=1, total_latency=timedelta(milliseconds=850))
    data = stat.to_dict()
    assert data["total_latency"] == pytest.approx(0.85)
    assert KeyStat.from_dict(data) == stat
