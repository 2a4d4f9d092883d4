"""
Astronomical prayer-time engines. The calculation itself is delegated to adhanpy.
"""
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, tzinfo
from typing import Dict, Optional, Tuple

from adhanpy.PrayerTimes import PrayerTimes
from adhanpy.calculation import CalculationMethod

from azan.prayer.methods import BASELINE_METHOD

Coordinates = Tuple[float, float]

# Zero-angle placeholder in adhanpy, not a real convention.
EXCLUDED_METHODS = frozenset({"NONE"})


class AstronomicalEngine(ABC):
    """Pure function of (coordinates, date, method) to the six daily instants."""

    def __init__(self, time_zone: Optional[tzinfo] = None):
        self.time_zone = time_zone
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def compute(self, coordinates: Coordinates, day: date, method_id: str) -> Dict[str, datetime]:
        """Return {fajr, sunrise, dhuhr, asr, maghrib, isha} as aware datetimes."""
        pass


class AdhanEngine(AstronomicalEngine):
    """adhanpy backend. Unknown method ids use baseline parameters."""

    def _calculation_method(self, method_id: str):
        method = CalculationMethod.__members__.get(method_id)
        if method is None or method_id in EXCLUDED_METHODS:
            self.logger.warning(f"Unknown calculation method {method_id!r}, using {BASELINE_METHOD}")
            method = getattr(CalculationMethod, BASELINE_METHOD)
        return method

    def compute(self, coordinates: Coordinates, day: date, method_id: str) -> Dict[str, datetime]:
        prayer_times = PrayerTimes(
            coordinates,
            datetime(day.year, day.month, day.day),
            self._calculation_method(method_id),
            time_zone=self.time_zone,
        )
        return {
            "fajr": prayer_times.fajr,
            "sunrise": prayer_times.sunrise,
            "dhuhr": prayer_times.dhuhr,
            "asr": prayer_times.asr,
            "maghrib": prayer_times.maghrib,
            "isha": prayer_times.isha,
        }
