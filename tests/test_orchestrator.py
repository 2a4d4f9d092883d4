import threading
from datetime import timedelta, timezone

import pytest

from azan.prayer.errors import ErrorKind, PersistenceFailed
from azan.prayer.methods import CountryMethodTable, MethodResolver
from azan.prayer.orchestrator import RefreshOrchestrator, RefreshOutcome
from azan.prayer.staleness import StalenessPolicy
from azan.prayer.store import PrayerTimeStore
from azan.prayer.window import TimeWindowComputer

from conftest import TODAY, FakeEngine

PARIS = (48.85, 2.35)


def test_france_end_to_end(db, clock):
    store = PrayerTimeStore(db, today=clock)
    orchestrator = RefreshOrchestrator(
        store,
        MethodResolver(CountryMethodTable({"France": "MUSLIM_WORLD_LEAGUE"})),
        TimeWindowComputer(FakeEngine(), timezone.utc),
        StalenessPolicy(40, 60, today=clock),
        today=clock,
    )

    outcome = orchestrator.refresh(PARIS, "France")
    assert outcome == RefreshOutcome.success(60)
    days = store.get_all()
    assert len(days) == 60
    assert days[0].date == TODAY
    assert days[-1].date == TODAY + timedelta(days=59)
    assert {d.calculation_method for d in days} == {"MUSLIM_WORLD_LEAGUE"}

    clock.advance(10)
    assert orchestrator.refresh(PARIS, "France").status == RefreshOutcome.SKIPPED


def test_skipped_after_success_and_force_overrides(orchestrator, engine):
    assert orchestrator.refresh(PARIS, "France").status == RefreshOutcome.SUCCESS
    assert orchestrator.should_refresh() is False
    calls = len(engine.calls)

    assert orchestrator.refresh(PARIS, "France").status == RefreshOutcome.SKIPPED
    assert len(engine.calls) == calls

    forced = orchestrator.refresh(PARIS, "USA", force=True)
    assert forced.status == RefreshOutcome.SUCCESS
    assert orchestrator.store.get_today().calculation_method == "NORTH_AMERICA"


def test_blank_country_uses_default_country(orchestrator):
    orchestrator.refresh(PARIS, "  ")
    assert orchestrator.store.get_today().calculation_method == "NORTH_AMERICA"


def test_computation_failure_leaves_store_untouched(store, resolver, policy, clock):
    failing = TimeWindowComputer(FakeEngine(fail_on=TODAY + timedelta(days=30)), timezone.utc)
    orchestrator = RefreshOrchestrator(store, resolver, failing, policy, today=clock)
    outcome = orchestrator.refresh(PARIS, "France")
    assert outcome.status == RefreshOutcome.FAILED
    assert outcome.kind == ErrorKind.COMPUTATION_FAILED
    assert outcome.message
    assert store.count() == 0


def test_persistence_failure_is_classified(orchestrator, monkeypatch):
    def broken(days):
        raise PersistenceFailed("database is locked")

    monkeypatch.setattr(orchestrator.store, "upsert_window", broken)
    outcome = orchestrator.refresh(PARIS, "France")
    assert outcome.kind == ErrorKind.PERSISTENCE_FAILED


def test_unexpected_error_is_classified_unknown(orchestrator, monkeypatch):
    monkeypatch.setattr(orchestrator.resolver, "resolve", lambda name: 1 / 0)
    assert orchestrator.refresh(PARIS, "France").kind == ErrorKind.UNKNOWN


def test_cancel_before_persistence_has_no_effect(orchestrator):
    cancel = threading.Event()
    cancel.set()
    outcome = orchestrator.refresh(PARIS, "France", cancel_event=cancel)
    assert outcome.kind == ErrorKind.CANCELLED
    assert orchestrator.store.count() == 0


def test_refresh_from_preferences_without_location(orchestrator):
    outcome = orchestrator.refresh_from_preferences()
    assert outcome.kind == ErrorKind.LOCATION_UNAVAILABLE


def test_refresh_from_preferences_skips_before_checking_location(orchestrator):
    orchestrator.refresh(PARIS, "France")
    assert orchestrator.refresh_from_preferences().status == RefreshOutcome.SKIPPED


def test_refresh_from_preferences_uses_saved_location(orchestrator, preferences):
    preferences.save_location(21.42, 39.83, "KSA")
    outcome = orchestrator.refresh_from_preferences()
    assert outcome.status == RefreshOutcome.SUCCESS
    assert orchestrator.store.get_today().calculation_method == "UMM_AL_QURA"


def test_concurrent_refreshes_compute_once(orchestrator, engine):
    results = []
    threads = [
        threading.Thread(target=lambda: results.append(orchestrator.refresh(PARIS, "France")))
        for _ in range(3)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    statuses = sorted(r.status for r in results)
    assert statuses == [RefreshOutcome.SKIPPED, RefreshOutcome.SKIPPED, RefreshOutcome.SUCCESS]
    assert len(engine.calls) == 60
    assert orchestrator.store.count() == 60


@pytest.mark.parametrize("kind", [ErrorKind.COMPUTATION_FAILED, ErrorKind.LOCATION_UNAVAILABLE, "whatever"])
def test_failed_outcome_has_message(kind):
    outcome = RefreshOutcome.failed(kind)
    assert not outcome.ok
    assert outcome.message
