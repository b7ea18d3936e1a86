"""Pytest configuration for the test suite."""

import os
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

ENGINE_ENV_PREFIX = "KEYZEN_ENGINE_"


@pytest.fixture(autouse=True)
def clean_engine_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep KEYZEN_ENGINE_* settings from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith(ENGINE_ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
