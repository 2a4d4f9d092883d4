from datetime import date, datetime, timedelta, timezone

import pytest

from azan.core.db import Database
from azan.prayer.engine import AstronomicalEngine
from azan.prayer.methods import CountryMethodTable, MethodResolver
from azan.prayer.orchestrator import RefreshOrchestrator
from azan.prayer.preferences import LocationPreferences
from azan.prayer.staleness import StalenessPolicy
from azan.prayer.store import PrayerTimeStore
from azan.prayer.window import TimeWindowComputer

TODAY = date(2024, 3, 1)


class FakeClock:
    def __init__(self, today: date = TODAY):
        self.current = today

    def __call__(self) -> date:
        return self.current

    def advance(self, days: int) -> None:
        self.current += timedelta(days=days)


class FakeEngine(AstronomicalEngine):
    """Deterministic times; minutes shift with the day of month so dates are distinguishable."""

    def __init__(self, fail_on=None):
        super().__init__(timezone.utc)
        self.fail_on = fail_on
        self.calls = []

    def compute(self, coordinates, day, method_id):
        self.calls.append((coordinates, day, method_id))
        if self.fail_on is not None and day == self.fail_on:
            raise RuntimeError(f"polar night at {day}")
        base = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
        minute = day.day % 60
        return {
            "fajr": base.replace(hour=5, minute=minute),
            "sunrise": base.replace(hour=6, minute=minute),
            "dhuhr": base.replace(hour=12, minute=minute),
            "asr": base.replace(hour=15, minute=minute),
            "maghrib": base.replace(hour=18, minute=minute),
            "isha": base.replace(hour=19, minute=minute),
        }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db():
    database = Database("sqlite://")
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def store(db, clock):
    return PrayerTimeStore(db, today=clock)


@pytest.fixture
def table():
    return CountryMethodTable({
        "France": "MUSLIM_WORLD_LEAGUE",
        "United States": "NORTH_AMERICA",
        "United Kingdom": "MUSLIM_WORLD_LEAGUE",
        "Saudi Arabia": "UMM_AL_QURA",
        "India": "KARACHI",
        "Egypt": "EGYPTIAN",
    })


@pytest.fixture
def resolver(table):
    return MethodResolver(table)


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def computer(engine):
    return TimeWindowComputer(engine, timezone.utc)


@pytest.fixture
def policy(clock):
    return StalenessPolicy(40, 60, today=clock)


@pytest.fixture
def preferences(db):
    return LocationPreferences(db)


@pytest.fixture
def orchestrator(store, resolver, computer, policy, preferences, clock):
    return RefreshOrchestrator(
        store, resolver, computer, policy, preferences=preferences, window_days=60, today=clock
    )
