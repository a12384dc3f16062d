"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from calendar_app.config import load_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("CALENDAR_EVENTS_FILE", raising=False)
    monkeypatch.delenv("CALENDAR_LOG_LEVEL", raising=False)

    settings = load_settings()

    assert settings.events_file is None
    assert settings.log_level == "INFO"


def test_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("CALENDAR_EVENTS_FILE", str(tmp_path / "events.json"))
    monkeypatch.setenv("CALENDAR_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.events_file == Path(tmp_path / "events.json")
    assert settings.log_level == "DEBUG"


def test_unknown_log_level(monkeypatch):
    monkeypatch.setenv("CALENDAR_LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        load_settings()
