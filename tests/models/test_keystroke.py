"""Tests for the Keystroke model."""

import datetime

import pytest
from pydantic import ValidationError

from models.keystroke import Keystroke, as_local_naive


class TestKeystrokeCreation:
    def test_defaults(self) -> None:
        before = datetime.datetime.now()
        keystroke = Keystroke()
        after = datetime.datetime.now()
        assert keystroke.value == ""
        assert before <= keystroke.timestamp <= after

    def test_nfc_normalization(self) -> None:
        assert Keystroke(value="e\u0301").value == "\u00e9"

    def test_none_value_becomes_empty(self) -> None:
        assert Keystroke(value=None).value == ""

    def test_multi_char_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Keystroke(value="ab")

    def test_frozen(self) -> None:
        keystroke = Keystroke(value="a")
        with pytest.raises(ValidationError):
            keystroke.value = "b"


class TestKeystrokeClassification:
    @pytest.mark.parametrize("value", [" ", "\n", "\r", "\t", "\u00a0", "\u3000"])
    def test_whitespace_equivalents(self, value: str) -> None:
        keystroke = Keystroke(value=value)
        assert keystroke.is_whitespace_equivalent()
        assert not keystroke.is_control()

    @pytest.mark.parametrize("value", ["\b", "\x1b", "\x00", "\x7f"])
    def test_control(self, value: str) -> None:
        assert Keystroke(value=value).is_control()

    @pytest.mark.parametrize("value", ["a", "1", ",", "中", ""])
    def test_not_control(self, value: str) -> None:
        assert not Keystroke(value=value).is_control()


class TestKeystrokeFromDict:
    def test_iso_timestamp(self) -> None:
        keystroke = Keystroke.from_dict({"value": "x", "timestamp": "2024-01-01T12:00:00"})
        assert keystroke.timestamp == datetime.datetime(2024, 1, 1, 12, 0, 0)

    def test_iso_timestamp_with_z_becomes_naive_local(self) -> None:
        keystroke = Keystroke.from_dict({"value": "x", "timestamp": "2024-01-01T12:00:00Z"})
        utc = datetime.datetime(2024, 1, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)
        assert keystroke.timestamp.tzinfo is None
        assert keystroke.timestamp == utc.astimezone().replace(tzinfo=None)

    def test_aware_timestamp_converted_on_construction(self) -> None:
        offset = datetime.timezone(datetime.timedelta(hours=5))
        aware = datetime.datetime(2024, 1, 1, 17, 0, 0, tzinfo=offset)
        keystroke = Keystroke(value="x", timestamp=aware)
        assert keystroke.timestamp == aware.astimezone().replace(tzinfo=None)

    def test_missing_timestamp_defaults_to_now(self) -> None:
        keystroke = Keystroke.from_dict({"value": "y"})
        assert isinstance(keystroke.timestamp, datetime.datetime)

    def test_to_dict(self) -> None:
        ts = datetime.datetime(2024, 1, 1, 12, 0, 0)
        assert Keystroke(value="q", timestamp=ts).to_dict() == {
            "value": "q",
            "timestamp": "2024-01-01T12:00:00",
        }


class TestAsLocalNaive:
    def test_naive_passes_through(self) -> None:
        ts = datetime.datetime(2024, 1, 1, 12, 0, 0)
        assert as_local_naive(ts) is ts

    def test_aware_keeps_instant(self) -> None:
        aware = datetime.datetime(2024, 6, 1, 8, 30, tzinfo=datetime.timezone.utc)
        naive = as_local_naive(aware)
        assert naive.tzinfo is None
        assert naive.astimezone(datetime.timezone.utc) == aware
