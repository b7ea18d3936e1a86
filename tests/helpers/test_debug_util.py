"""Tests for DebugUtil mode handling."""

import logging

import pytest

from helpers.debug_util import DebugUtil


class TestDebugUtilMode:
    def test_default_quiet(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("KEYZEN_ENGINE_DEBUG_MODE", raising=False)
        util = DebugUtil()
        assert util.debug_mode() == "quiet"
        assert util.is_quiet()

    def test_env_loud(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KEYZEN_ENGINE_DEBUG_MODE", "LOUD")
        assert DebugUtil().is_loud()

    def test_invalid_env_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KEYZEN_ENGINE_DEBUG_MODE", "shouty")
        assert DebugUtil().is_quiet()

    def test_explicit_mode_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KEYZEN_ENGINE_DEBUG_MODE", "quiet")
        assert DebugUtil("loud").is_loud()

    def test_set_mode(self) -> None:
        util = DebugUtil("quiet")
        util.set_mode("loud")
        assert util.is_loud()
        util.set_mode("nonsense")
        assert util.is_quiet()


class TestDebugUtilOutput:
    def test_loud_prints(self, capsys: pytest.CaptureFixture[str]) -> None:
        DebugUtil("loud").debugMessage("pos", 3)
        assert "[DEBUG] pos 3" in capsys.readouterr().out

    def test_quiet_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="DebugUtil")
        DebugUtil("quiet").debugMessage("hello")
        assert "hello" in caplog.text

    def test_empty_message_ignored(self, capsys: pytest.CaptureFixture[str]) -> None:
        DebugUtil("loud").debugMessage()
        assert capsys.readouterr().out == ""
