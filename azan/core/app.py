import logging
import queue
import sys
import threading
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from azan.core.clock import local_today, resolve_timezone
from azan.core.config import Config
from azan.core.constraints import Constraints
from azan.core.db import Database
from azan.core.task_manager import TaskManager
from azan.prayer.engine import AdhanEngine, AstronomicalEngine
from azan.prayer.geocoding import NominatimGeocoder
from azan.prayer.methods import CountryMethodTable, MethodResolver
from azan.prayer.models import PrayerDay
from azan.prayer.orchestrator import RefreshOrchestrator, RefreshOutcome
from azan.prayer.preferences import LocationPreferences
from azan.prayer.scheduler import PeriodicScheduler
from azan.prayer.staleness import StalenessPolicy
from azan.prayer.store import PrayerTimeStore
from azan.prayer.task import PrayerTimeUpdateTask
from azan.prayer.window import TimeWindowComputer

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"


class AzanApp:
    """Owns config, database, prayer services and the background scheduler for one process."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        watch_config: bool = True,
        configure_logging: bool = True,
        engine: Optional[AstronomicalEngine] = None,
        geocoder: Optional[NominatimGeocoder] = None,
        constraints: Optional[Constraints] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)

        self.config = Config(config_path=config_path, watch=watch_config)
        self.config.register_change_callback(self.handle_config_change)
        if configure_logging:
            self._setup_logging()

        prayer_config = self.config.section("prayer")
        scheduler_config = self.config.section("scheduler")

        self.db = Database.from_config({"database": self.config.section("database")})
        self.db.create_all()

        self.time_zone = resolve_timezone(prayer_config.get("timezone"))
        self.today = today or (lambda: local_today(self.time_zone))
        window_days = int(prayer_config["window_days"])

        self.method_table = CountryMethodTable.load(prayer_config.get("methods_file"))
        self.resolver = MethodResolver(self.method_table, notify=self._log_detected_country)
        self.engine = engine or AdhanEngine(self.time_zone)
        self.computer = TimeWindowComputer(self.engine, self.time_zone)
        self.store = PrayerTimeStore(self.db, today=self.today)
        self.policy = StalenessPolicy(
            int(prayer_config["stale_after_days"]), window_days, today=self.today
        )
        self.preferences = LocationPreferences(self.db)
        self.geocoder = geocoder or NominatimGeocoder(self.config.section("geocoding"))
        self.orchestrator = RefreshOrchestrator(
            self.store,
            self.resolver,
            self.computer,
            self.policy,
            preferences=self.preferences,
            window_days=window_days,
            default_country=prayer_config.get("default_country") or "United States",
            today=self.today,
        )

        self.task_manager = TaskManager(
            self.db, constraint_recheck_seconds=int(scheduler_config["constraint_recheck_seconds"])
        )
        self.update_task = PrayerTimeUpdateTask(
            self.db,
            self.orchestrator,
            interval_days=float(scheduler_config["interval_days"]),
            flex_days=float(scheduler_config["flex_days"]),
        )
        self.scheduler = PeriodicScheduler(
            self.task_manager,
            self.update_task,
            constraints or Constraints.from_config(scheduler_config),
        )
        self._stop_event = threading.Event()

    def _setup_logging(self) -> None:
        """Configure logging to write to stdout and, if configured, a file"""
        logging_config = self.config.section("logging")
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        root_logger.setLevel(getattr(logging, str(logging_config.get("level", "INFO")).upper(), logging.INFO))

        formatter = logging.Formatter(LOG_FORMAT)

        log_file = logging_config.get("file")
        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        self.logger.info("Logging configured")

    def _log_detected_country(self, country: str) -> None:
        self.logger.info(f"Detected Country: {country}")

    def handle_config_change(self, new_config: Dict[str, Any]) -> None:
        """Apply the settings that can change at runtime; the rest need a restart."""
        level = (new_config.get("logging") or {}).get("level")
        if level:
            logging.getLogger().setLevel(getattr(logging, str(level).upper(), logging.INFO))
        self.logger.info("Configuration reloaded; restart to apply database, window or scheduler changes")

    # Exposed surface

    def refresh(self, force: bool = False) -> RefreshOutcome:
        """Interactive refresh from the saved location."""
        return self.orchestrator.refresh_from_preferences(force=force)

    def get_today_record(self) -> Optional[PrayerDay]:
        return self.store.get_today()

    def get_all_records(self) -> List[PrayerDay]:
        return self.store.get_all()

    def subscribe_records(self, callback: Callable[[List[PrayerDay]], None]) -> Callable[[], None]:
        return self.store.subscribe(callback)

    def should_refresh(self) -> bool:
        return self.orchestrator.should_refresh()

    def schedule_periodic_refresh(self, replace: bool = False, arm: bool = True) -> bool:
        return self.scheduler.schedule_periodic_refresh(replace=replace, arm=arm)

    def cancel_periodic_refresh(self) -> bool:
        return self.scheduler.cancel_periodic_refresh()

    def set_location(
        self, latitude: float, longitude: float, country: Optional[str] = None
    ) -> RefreshOutcome:
        """Save a location (detecting the country if not given) and recalculate."""
        if country is None or not country.strip():
            country = self.geocoder.country_from_coordinates(latitude, longitude)
        self.preferences.save_location(latitude, longitude, country)
        return self.orchestrator.refresh((latitude, longitude), country, force=True)

    def set_country(self, country: str) -> RefreshOutcome:
        """Save a country selection and recalculate from the saved location."""
        self.preferences.save_country_name(country)
        return self.orchestrator.refresh_from_preferences(force=True)

    def reset(self) -> int:
        """Drop every cached record."""
        return self.store.clear_all()

    def drain_results(self) -> List[Tuple[str, RefreshOutcome]]:
        """Drain background task results and log them (called from the run loop)."""
        results = []
        result_queue = self.task_manager.result_queue
        while True:
            try:
                task_name, outcome = result_queue.get_nowait()
            except queue.Empty:
                break
            self.logger.debug(f"Processing task result for {task_name}: {outcome}")
            if isinstance(outcome, RefreshOutcome) and not outcome.ok:
                self.logger.warning(f"{task_name}: {outcome.message}")
            results.append((task_name, outcome))
        return results

    # Lifecycle

    def start(self, serve_api: Optional[bool] = None) -> None:
        scheduler_config = self.config.section("scheduler")
        if scheduler_config.get("enabled", True):
            self.schedule_periodic_refresh()
        else:
            self.logger.info("Periodic refresh disabled in config; saved schedule left idle")

        from azan.api.server import run_api_server
        run_api_server(self, enabled=serve_api)

    def run(self, serve_api: Optional[bool] = None) -> None:
        """Start and block until interrupted."""
        self.start(serve_api=serve_api)
        self.logger.info("Azan service running (Ctrl+C to stop)")
        try:
            while not self._stop_event.wait(1.0):
                self.drain_results()
        except KeyboardInterrupt:
            self.logger.info("Interrupted")
        finally:
            self.stop()

    def stop(self) -> None:
        self._stop_event.set()
        self.task_manager.stop()
        self.config.cleanup()
        self.db.dispose()
        self.logger.info("Azan service stopped")
