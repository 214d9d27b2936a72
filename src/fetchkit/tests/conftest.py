"""Shared fixtures for fetchkit tests."""

from __future__ import annotations

import os

import pytest

from fetchkit import clear_settings_cache
from fetchkit.tests.fakes import RecordingSink, RecordingTimer


@pytest.fixture
def timer() -> RecordingTimer:
    return RecordingTimer()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> object:
    """Isolate tests from FETCHKIT_* variables in the environment."""
    for key in [k for k in os.environ if k.startswith("FETCHKIT_")]:
        monkeypatch.delenv(key)
    clear_settings_cache()
    yield
    clear_settings_cache()
