import threading
from datetime import date, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from azan.prayer.errors import PersistenceFailed

from conftest import TODAY

COORDS = (48.85, 2.35)


@pytest.fixture
def window(computer):
    return computer.compute_window(COORDS, TODAY, "MUSLIM_WORLD_LEAGUE", num_days=60)


def test_empty_store_metadata(store):
    assert store.count() == 0
    assert store.oldest_date() is None
    assert store.newest_date() is None
    assert store.get_all() == []
    assert store.get_today() is None


def test_upsert_and_read_back(store, window):
    assert store.upsert_window(window) == 60
    assert store.count() == 60
    assert store.oldest_date() == TODAY
    assert store.newest_date() == TODAY + timedelta(days=59)
    assert store.get_today() == window[0]
    assert store.get_for_date(TODAY + timedelta(days=5)) == window[5]
    assert store.get_for_date(TODAY + timedelta(days=60)) is None
    assert [d.date for d in store.get_all()] == [d.date for d in window]


def test_upsert_twice_is_idempotent(store, window):
    store.upsert_window(window)
    first = store.get_all()
    store.upsert_window(window)
    assert store.count() == 60
    assert store.get_all() == first


def test_overlapping_window_replaces_not_merges(store, computer, window):
    store.upsert_window(window)
    later_start = TODAY + timedelta(days=50)
    overlap = 10
    newer = computer.compute_window(COORDS, later_start, "EGYPTIAN", num_days=20)
    store.upsert_window(newer)

    assert store.count() == 60 + (20 - overlap)
    stored = {d.date: d for d in store.get_all()}
    updated = [d for d in stored.values() if d.calculation_method == "EGYPTIAN"]
    assert len(updated) == 20
    assert sum(1 for d in updated if d.date < TODAY + timedelta(days=60)) == overlap
    assert stored[TODAY] == window[0]
    assert store.newest_date() == later_start + timedelta(days=19)


def test_clear_all(store, window):
    store.upsert_window(window)
    assert store.clear_all() == 60
    assert store.count() == 0
    assert store.newest_date() is None


def test_get_today_follows_clock(store, window, clock):
    store.upsert_window(window)
    clock.advance(3)
    assert store.get_today().date == TODAY + timedelta(days=3)


def test_subscribers_see_current_state_then_each_write(store, window, computer):
    seen = []
    unsubscribe = store.subscribe(lambda days: seen.append(len(days)))
    store.upsert_window(window[:10])
    store.upsert_window(window)
    store.clear_all()
    unsubscribe()
    store.upsert_window(window)
    assert seen == [0, 10, 60, 0]


def test_failing_subscriber_does_not_break_writes(store, window):
    def boom(days):
        if days:
            raise RuntimeError("ui gone")

    store.subscribe(boom)
    assert store.upsert_window(window) == 60


def test_concurrent_overlapping_upserts_leave_one_record_per_date(store, computer):
    a = computer.compute_window(COORDS, TODAY, "MUSLIM_WORLD_LEAGUE", num_days=60)
    b = computer.compute_window(COORDS, TODAY + timedelta(days=30), "KARACHI", num_days=60)
    threads = [threading.Thread(target=store.upsert_window, args=(w,)) for w in (a, b)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert store.count() == 90
    dates = [d.date for d in store.get_all()]
    assert dates == sorted(set(dates))


def test_storage_errors_become_persistence_failed(store, window, monkeypatch):
    def broken_scope():
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(store.db, "session_scope", broken_scope)
    with pytest.raises(PersistenceFailed):
        store.upsert_window(window)
    with pytest.raises(PersistenceFailed):
        store.count()
