from datetime import date, timedelta, timezone

import pytest

from azan.prayer.errors import ComputationFailed
from azan.prayer.window import TimeWindowComputer

from conftest import FakeEngine

START = date(2024, 2, 20)


@pytest.mark.parametrize("num_days", [1, 2, 30, 60])
def test_window_is_contiguous_and_sized(computer, num_days):
    days = computer.compute_window((48.85, 2.35), START, "MUSLIM_WORLD_LEAGUE", num_days=num_days)
    assert len(days) == num_days
    assert [d.date for d in days] == [START + timedelta(days=i) for i in range(num_days)]


def test_default_window_is_sixty_days(computer):
    assert len(computer.compute_window((48.85, 2.35), START, "MUSLIM_WORLD_LEAGUE")) == 60


def test_records_carry_method_and_formatted_times(computer, engine):
    day = computer.compute_window((21.42, 39.83), date(2024, 3, 5), "UMM_AL_QURA", num_days=1)[0]
    assert day.calculation_method == "UMM_AL_QURA"
    assert day.times() == {
        "fajr": "05:05",
        "sunrise": "06:05",
        "dhuhr": "12:05",
        "asr": "15:05",
        "maghrib": "18:05",
        "isha": "19:05",
    }
    assert engine.calls == [((21.42, 39.83), date(2024, 3, 5), "UMM_AL_QURA")]


def test_times_are_converted_to_local_zone():
    computer = TimeWindowComputer(FakeEngine(), timezone(timedelta(hours=3)))
    day = computer.compute_window((0, 0), date(2024, 3, 5), "MUSLIM_WORLD_LEAGUE", num_days=1)[0]
    assert day.fajr == "08:05"
    assert day.isha == "22:05"


def test_failure_on_any_date_fails_whole_window():
    computer = TimeWindowComputer(FakeEngine(fail_on=START + timedelta(days=10)), timezone.utc)
    with pytest.raises(ComputationFailed):
        computer.compute_window((78.2, 15.6), START, "MUSLIM_WORLD_LEAGUE", num_days=60)


def test_rejects_empty_window(computer):
    with pytest.raises(ValueError):
        computer.compute_window((0, 0), START, "MUSLIM_WORLD_LEAGUE", num_days=0)
