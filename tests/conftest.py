from datetime import datetime, timedelta

import pytest

from ecopulse import EcoParameters, RuleEngine, SessionStore, StudentTracker


class FakeClock:
    """Manually advanced stand-in for datetime.now."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    # Mid-morning, inside the default daytime window
    return FakeClock(datetime(2026, 10, 19, 10, 0, 0))


@pytest.fixture
def params():
    return EcoParameters()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def tracker(store, params, clock):
    return StudentTracker(store, params, clock=clock)


@pytest.fixture
def rules(store, params, clock):
    return RuleEngine(store, params, clock=clock)
