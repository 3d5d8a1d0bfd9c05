"""
Shared fixtures

The config file (and with it the log directory and default database) is
pointed at a throwaway directory before any herebefore_backend module is
imported, so tests never touch ~/.config/herebefore.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

_TEST_HOME = tempfile.mkdtemp(prefix="herebefore-tests-")
os.environ["HEREBEFORE_CONFIG"] = str(Path(_TEST_HOME) / "config.toml")

import pytest  # noqa: E402

from herebefore_backend.core.clock import FixedClock  # noqa: E402
from herebefore_backend.core.db import DatabaseManager  # noqa: E402
from herebefore_backend.core.db.store import SQLitePersistenceStore  # noqa: E402
from herebefore_backend.core.events import clear_subscribers, subscribe  # noqa: E402
from herebefore_backend.core.models import Episode  # noqa: E402
from herebefore_backend.system.notifier import InMemoryBadgeSurface, InMemoryNotifier  # noqa: E402
from herebefore_backend.system.runtime import Runtime  # noqa: E402

UTC = timezone.utc
PLUS_TWO = timezone(timedelta(hours=2))

# 2024-01-10 22:00 UTC
START = datetime(2024, 1, 10, 22, 0, tzinfo=UTC)


def make_episode(anchor: datetime, title: str = "Argument at work") -> Episode:
    return Episode.create(title=title, anchor_date=anchor)


@pytest.fixture(autouse=True)
def _isolated_event_bus():
    clear_subscribers()
    yield
    clear_subscribers()


@pytest.fixture
def events():
    """Every event emitted during the test, as (name, payload) tuples"""
    received = []
    subscribe("*", lambda name, payload: received.append((name, payload)))
    return received


@pytest.fixture
def clock():
    return FixedClock(START)


@pytest.fixture
def db(tmp_path):
    return DatabaseManager(str(tmp_path / "herebefore.db"))


@pytest.fixture
def store(db):
    return SQLitePersistenceStore(db)


@pytest.fixture
def notifier():
    return InMemoryNotifier(permission=True)


@pytest.fixture
def badge_surface():
    return InMemoryBadgeSurface()


@pytest.fixture
def runtime(clock, store, notifier, badge_surface):
    return Runtime(clock, store, notifier, badge_surface, refresh_interval=3600)


@pytest.fixture
def service(runtime):
    return runtime.check_ins
