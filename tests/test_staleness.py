from datetime import timedelta

import pytest

from azan.prayer.staleness import StalenessPolicy

from conftest import TODAY


def _store_ending(store, computer, newest):
    store.upsert_window(computer.compute_window((0, 0), newest, "MUSLIM_WORLD_LEAGUE", num_days=1))


def test_empty_store_needs_refresh(policy, store):
    assert policy.should_refresh(store) is True


def test_fresh_window_does_not_need_refresh(policy, store, computer):
    store.upsert_window(computer.compute_window((0, 0), TODAY, "MUSLIM_WORLD_LEAGUE", num_days=60))
    assert policy.should_refresh(store) is False


@pytest.mark.parametrize("days_ago,expected", [(0, False), (39, False), (40, True), (41, True), (100, True)])
def test_threshold_in_calendar_days(policy, store, computer, days_ago, expected):
    _store_ending(store, computer, TODAY - timedelta(days=days_ago))
    assert policy.should_refresh(store) is expected


def test_becomes_stale_as_clock_advances(policy, store, computer, clock):
    _store_ending(store, computer, TODAY)
    clock.advance(39)
    assert policy.should_refresh(store) is False
    clock.advance(1)
    assert policy.should_refresh(store) is True


@pytest.mark.parametrize("threshold,window", [(60, 60), (61, 60), (10, 5)])
def test_threshold_must_be_less_than_window(threshold, window):
    with pytest.raises(ValueError):
        StalenessPolicy(threshold, window)
