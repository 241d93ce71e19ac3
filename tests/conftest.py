"""Pytest configuration and fixtures for DRIP tests."""

import os

import pytest


class FakeClock:
    """Controllable epoch-millis clock."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear DRIP-related environment variables before each test."""
    for key in list(os.environ.keys()):
        if key.startswith("DRIP_") or key == "DEBUG":
            monkeypatch.delenv(key, raising=False)
    # Keep a developer's .env file out of the tests
    monkeypatch.chdir(os.path.dirname(__file__))


@pytest.fixture
def clock():
    """A fake clock starting at a fixed instant."""
    return FakeClock()
