"""
One full refresh cycle: staleness check, method resolution, window computation, persistence.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from azan.core.clock import local_today
from azan.prayer.engine import Coordinates
from azan.prayer.errors import AzanError, ErrorKind, LocationUnavailable, RefreshCancelled
from azan.prayer.methods import MethodResolver
from azan.prayer.preferences import LocationPreferences
from azan.prayer.staleness import StalenessPolicy
from azan.prayer.store import PrayerTimeStore
from azan.prayer.window import DEFAULT_WINDOW_DAYS, TimeWindowComputer

DEFAULT_COUNTRY = "United States"

MESSAGES = {
    ErrorKind.PERMISSION_MISSING: "Location permission is required to calculate prayer times.",
    ErrorKind.LOCATION_UNAVAILABLE: "No saved location. Set a location to calculate prayer times.",
    ErrorKind.COMPUTATION_FAILED: "Prayer times could not be calculated. Will try again later.",
    ErrorKind.PERSISTENCE_FAILED: "Prayer times could not be saved. Will try again later.",
    ErrorKind.CANCELLED: "Prayer time refresh was cancelled.",
    ErrorKind.UNKNOWN: "Prayer times could not be updated.",
}


@dataclass(frozen=True)
class RefreshOutcome:
    status: str  # "success" | "skipped" | "failed"
    count: int = 0
    kind: Optional[str] = None
    message: str = ""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"

    @classmethod
    def success(cls, count: int) -> "RefreshOutcome":
        return cls(cls.SUCCESS, count=count, message=f"Stored prayer times for {count} days.")

    @classmethod
    def skipped(cls) -> "RefreshOutcome":
        return cls(cls.SKIPPED, message="Prayer times are up to date.")

    @classmethod
    def failed(cls, kind: str, detail: Optional[str] = None) -> "RefreshOutcome":
        message = MESSAGES.get(kind, MESSAGES[ErrorKind.UNKNOWN])
        if detail:
            message = f"{message} ({detail})"
        return cls(cls.FAILED, kind=kind, message=message)

    @property
    def ok(self) -> bool:
        return self.status != self.FAILED


class RefreshOrchestrator:
    """
    Start -> CheckStaleness -> Skip | Resolve -> Compute -> Persist -> Success, or Failure.
    No retries here; the caller (interactive or TaskManager) decides.
    """

    def __init__(
        self,
        store: PrayerTimeStore,
        resolver: MethodResolver,
        computer: TimeWindowComputer,
        policy: StalenessPolicy,
        preferences: Optional[LocationPreferences] = None,
        window_days: int = DEFAULT_WINDOW_DAYS,
        default_country: str = DEFAULT_COUNTRY,
        today: Optional[Callable[[], date]] = None,
    ):
        self.store = store
        self.resolver = resolver
        self.computer = computer
        self.policy = policy
        self.preferences = preferences
        self.window_days = window_days
        self.default_country = default_country
        self.today = today or local_today
        self.logger = logging.getLogger(self.__class__.__name__)
        # At most one refresh in flight; a waiting caller re-checks staleness afterwards
        self._refresh_lock = threading.Lock()

    def should_refresh(self) -> bool:
        return self.policy.should_refresh(self.store)

    def refresh(
        self,
        coordinates: Coordinates,
        country_name: Optional[str],
        force: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> RefreshOutcome:
        with self._refresh_lock:
            try:
                if not force and not self.should_refresh():
                    self.logger.debug("No need to recalculate prayer times yet")
                    return RefreshOutcome.skipped()
                return self._run(coordinates, country_name, cancel_event)
            except AzanError as e:
                return self._failed(e.kind, e)
            except Exception as e:
                self.logger.exception(f"Unexpected error refreshing prayer times: {e}")
                return self._failed(ErrorKind.UNKNOWN, e)

    def refresh_from_preferences(
        self,
        force: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> RefreshOutcome:
        """Refresh using the saved location; fails with LOCATION_UNAVAILABLE when none is stored."""
        if self.preferences is None:
            return self._failed(ErrorKind.LOCATION_UNAVAILABLE, None)
        with self._refresh_lock:
            try:
                if not force and not self.should_refresh():
                    self.logger.debug("No need to recalculate prayer times yet")
                    return RefreshOutcome.skipped()
                coordinates = self.preferences.get_coordinates()
                if coordinates is None:
                    raise LocationUnavailable("No location data available, cannot update prayer times")
                country = self.preferences.get_country_name()
                return self._run(coordinates, country, cancel_event)
            except AzanError as e:
                return self._failed(e.kind, e)
            except Exception as e:
                self.logger.exception(f"Unexpected error refreshing prayer times: {e}")
                return self._failed(ErrorKind.UNKNOWN, e)

    def _run(
        self,
        coordinates: Coordinates,
        country_name: Optional[str],
        cancel_event: Optional[threading.Event],
    ) -> RefreshOutcome:
        country = (country_name or "").strip()
        if not country:
            self.logger.warning(f"Country name is blank, using default country: {self.default_country}")
            country = self.default_country

        self._check_cancelled(cancel_event)
        method = self.resolver.resolve(country)
        self.logger.info(f"Calculating prayer times for {coordinates}, country: {country}, method: {method}")

        self._check_cancelled(cancel_event)
        days = self.computer.compute_window(coordinates, self.today(), method, num_days=self.window_days)

        # Last point where cancelling has no effect on the store
        self._check_cancelled(cancel_event)
        written = self.store.upsert_window(days)
        self.logger.info(f"Successfully updated prayer times ({written} days)")
        return RefreshOutcome.success(written)

    def _check_cancelled(self, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise RefreshCancelled("Refresh cancelled")

    def _failed(self, kind: str, error: Optional[BaseException]) -> RefreshOutcome:
        if kind == ErrorKind.CANCELLED:
            self.logger.info("Prayer time refresh cancelled before persisting")
        else:
            self.logger.error(f"Prayer time refresh failed ({kind}): {error}")
        return RefreshOutcome.failed(kind, str(error) if error else None)
