"""
Prayer-time records: the SQLAlchemy row (one per calendar date) and the plain value passed between services.
"""
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict

from sqlalchemy import Column, Date, DateTime, String

from azan.core.clock import utc_now
from azan.core.db import Base

PRAYER_NAMES = ("fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha")


class PrayerTimeRecord(Base):
    """One calendar date of prayer times. Times are local 24-hour "HH:MM" strings."""
    __tablename__ = "prayer_times"

    date = Column(Date, primary_key=True)  # one row per date
    fajr = Column(String(5), nullable=False)
    sunrise = Column(String(5), nullable=False)
    dhuhr = Column(String(5), nullable=False)
    asr = Column(String(5), nullable=False)
    maghrib = Column(String(5), nullable=False)
    isha = Column(String(5), nullable=False)
    calculation_method = Column(String(64), nullable=False)
    last_updated = Column(DateTime(timezone=False), nullable=False, default=utc_now)


@dataclass(frozen=True)
class PrayerDay:
    date: date
    fajr: str
    sunrise: str
    dhuhr: str
    asr: str
    maghrib: str
    isha: str
    calculation_method: str
    last_updated: datetime = field(default_factory=utc_now)

    @classmethod
    def from_record(cls, row: PrayerTimeRecord) -> "PrayerDay":
        return cls(
            date=row.date,
            fajr=row.fajr,
            sunrise=row.sunrise,
            dhuhr=row.dhuhr,
            asr=row.asr,
            maghrib=row.maghrib,
            isha=row.isha,
            calculation_method=row.calculation_method,
            last_updated=row.last_updated,
        )

    def to_record(self) -> PrayerTimeRecord:
        return PrayerTimeRecord(**asdict(self))

    def times(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in PRAYER_NAMES}

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        data["last_updated"] = self.last_updated.isoformat() if self.last_updated else None
        return data
