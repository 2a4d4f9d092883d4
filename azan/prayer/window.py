"""
Builds the forward-looking window of daily prayer-time records.
"""
import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import List, Optional

from azan.core.clock import utc_now
from azan.prayer.engine import AstronomicalEngine, Coordinates
from azan.prayer.errors import ComputationFailed
from azan.prayer.models import PRAYER_NAMES, PrayerDay

DEFAULT_WINDOW_DAYS = 60


class TimeWindowComputer:
    def __init__(self, engine: AstronomicalEngine, time_zone: Optional[tzinfo] = None):
        self.engine = engine
        self.time_zone = time_zone
        self.logger = logging.getLogger(self.__class__.__name__)

    def compute_window(
        self,
        coordinates: Coordinates,
        start_date: date,
        method_id: str,
        num_days: int = DEFAULT_WINDOW_DAYS,
    ) -> List[PrayerDay]:
        """
        One record per date from start_date for num_days consecutive days.
        Any engine error fails the whole window; nothing partial is returned.
        """
        if num_days < 1:
            raise ValueError(f"num_days must be at least 1, got {num_days}")

        stamped_at = utc_now()
        days: List[PrayerDay] = []
        for offset in range(num_days):
            day = start_date + timedelta(days=offset)
            try:
                instants = self.engine.compute(coordinates, day, method_id)
                times = {name: self._format(instants[name]) for name in PRAYER_NAMES}
            except Exception as e:
                self.logger.error(f"Prayer time computation failed for {day}: {e}")
                raise ComputationFailed(f"Could not compute prayer times for {day}: {e}", cause=e) from e
            days.append(PrayerDay(date=day, calculation_method=method_id, last_updated=stamped_at, **times))

        self.logger.debug(f"Computed {len(days)} days from {start_date} with {method_id}")
        return days

    def _format(self, instant: datetime) -> str:
        """24-hour local "HH:MM"."""
        if instant.tzinfo is not None and self.time_zone is not None:
            instant = instant.astimezone(self.time_zone)
        return instant.strftime("%H:%M")
