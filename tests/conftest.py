"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os

import pytest

from quota_probe.config import ProbeSettings, get_probe_settings, runtime
from quota_probe.protocol_client import clear_protocol_cache


@pytest.fixture(autouse=True)
def isolated_configuration(monkeypatch):
    """Keep developer .env files and QUOTA_PROBE_* variables out of tests."""
    for name in list(os.environ):
        if name.startswith("QUOTA_PROBE_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(runtime, "_DOTENV_CANDIDATES", ())
    runtime.reset_default_values()
    get_probe_settings.cache_clear()
    yield
    runtime.reset_default_values()
    get_probe_settings.cache_clear()


@pytest.fixture(autouse=True)
def fresh_protocol_cache():
    clear_protocol_cache()
    yield
    clear_protocol_cache()


@pytest.fixture
def no_retry_sleep(monkeypatch):
    """Record retry delays instead of sleeping."""
    delays: list[float] = []

    async def _fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr("quota_probe.retry_engine.sleeper.sleep", _fake_sleep)
    return delays


@pytest.fixture
def settings() -> ProbeSettings:
    return ProbeSettings()
