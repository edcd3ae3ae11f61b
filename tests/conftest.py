"""Pytest configuration for the Roll Tracker Bot."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


def _ensure_repo_on_path() -> None:
    """Make the repository importable without an editable install."""
    repo_root = Path(__file__).resolve().parent.parent
    path_str = str(repo_root)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_ensure_repo_on_path()

from models.contest_settings import ContestSettings  # noqa: E402
from services.roll_engine import RollEngine  # noqa: E402


START = datetime(2026, 10, 19, 20, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class Recorder:
    """Collects everything the engine hands to its collaborators."""

    def __init__(self, known_names=()):
        self.notifications = []
        self.selected = []
        self.sent = []
        self.errors = []
        self.known_names = set(known_names)

    def notify(self, notification):
        self.notifications.append(notification)

    def request_select(self, base_name):
        self.selected.append(base_name)
        return base_name in self.known_names

    def send_outbound_text(self, message):
        self.sent.append(message)

    def report_error(self, message):
        self.errors.append(message)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return ContestSettings()


@pytest.fixture
def recorder():
    return Recorder(known_names={"Cloud Strife"})


@pytest.fixture
def engine(settings, recorder, clock):
    return RollEngine(
        settings,
        notify=recorder.notify,
        request_select=recorder.request_select,
        send_outbound_text=recorder.send_outbound_text,
        report_error=recorder.report_error,
        clock=clock
    )
