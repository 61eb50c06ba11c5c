"""Shared fixtures for the OrbitCloud test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from modules.catalog import get_catalog
from services.order_store import InMemoryOrderStore


class FakeClock:
    """Controllable replacement for utc_now()."""

    def __init__(self, start: datetime = datetime(2026, 3, 14, 10, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """Clock frozen at 2026-03-14 10:00 UTC until advanced."""
    return FakeClock()


@pytest.fixture
def store(clock):
    """In-memory store seeded with the default catalog."""
    return InMemoryOrderStore(products=get_catalog(), clock=clock)
