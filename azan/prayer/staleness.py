"""
Decides from store metadata whether the cached window must be recomputed.
"""
import logging
from datetime import date
from typing import Callable, Optional

from azan.core.clock import local_today
from azan.prayer.store import PrayerTimeStore
from azan.prayer.window import DEFAULT_WINDOW_DAYS

DEFAULT_STALE_AFTER_DAYS = 40


class StalenessPolicy:
    def __init__(
        self,
        stale_after_days: int = DEFAULT_STALE_AFTER_DAYS,
        window_days: int = DEFAULT_WINDOW_DAYS,
        today: Optional[Callable[[], date]] = None,
    ):
        if stale_after_days >= window_days:
            raise ValueError(
                f"stale_after_days ({stale_after_days}) must be less than window_days ({window_days})"
            )
        self.stale_after_days = stale_after_days
        self.window_days = window_days
        self.today = today or local_today
        self.logger = logging.getLogger(self.__class__.__name__)

    def should_refresh(self, store: PrayerTimeStore) -> bool:
        """True if the store is empty or today - newest stored date >= stale_after_days (calendar days)."""
        if store.count() == 0:
            self.logger.debug("No prayer times cached, refresh needed")
            return True
        newest = store.newest_date()
        if newest is None:
            return True
        days_between = (self.today() - newest).days
        self.logger.debug(f"Newest cached date {newest}, {days_between} days before today")
        return days_between >= self.stale_after_days
