"""
Shared pytest fixtures for the KeyInfo test suite.

Every test gets its own data directory so nothing touches ~/.keyinfo.
"""

import datetime

import pytest

from keyinfo import config
from keyinfo.auth import AuthGate, AuthResult
from keyinfo.editor import ItemEditor
from keyinfo.settings import Settings
from keyinfo.storage import Item, StorageManager


@pytest.fixture(autouse=True)
def _isolate_data_dir(tmp_path, monkeypatch):
    """Point KEYINFO_HOME at a temp directory for every test."""
    monkeypatch.setenv(config.CONFIG_DIR_ENV_VAR, str(tmp_path / "home"))


@pytest.fixture
def store(tmp_path):
    return StorageManager(str(tmp_path / "items.json"))


@pytest.fixture
def editor(store):
    return ItemEditor(store)


@pytest.fixture
def settings():
    return Settings()


class FakeAuthenticator:
    """Stands in for the platform biometric prompt."""

    def __init__(self, available=True, result=None, error=None):
        self.available = available
        self.result = result or AuthResult.ok()
        self.error = error
        self.reasons = []

    def can_authenticate(self):
        return self.available

    def authenticate(self, reason):
        self.reasons.append(reason)
        if self.error is not None:
            raise self.error
        return self.result


class FakePasscode:
    def __init__(self, passcode="1234"):
        self.passcode = passcode

    def is_configured(self):
        return self.passcode is not None

    def verify(self, candidate):
        return candidate == self.passcode


@pytest.fixture
def authenticator():
    return FakeAuthenticator()


@pytest.fixture
def gate(authenticator, settings):
    return AuthGate(authenticator, FakePasscode(), settings)


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def make_item(label, value="secret", category="General", favorite=False, days_ago=0, color="blue"):
    """Build an Item without going through a store."""
    return Item(
        label=label,
        value=value,
        category=category,
        color_name=color,
        is_favorite=favorite,
        date_created=datetime.datetime(2024, 1, 31) - datetime.timedelta(days=days_ago),
    )
