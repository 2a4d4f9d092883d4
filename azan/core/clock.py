"""
Time helpers: local calendar day in the configured zone, and naive UTC timestamps for DB columns.
"""
import logging
from datetime import date, datetime, timezone, tzinfo
from typing import Optional

from dateutil import tz

logger = logging.getLogger(__name__)


def resolve_timezone(name: Optional[str] = None) -> tzinfo:
    """Return tzinfo for an IANA name, or the host's local zone when name is empty or unknown."""
    if name:
        zone = tz.gettz(name)
        if zone is not None:
            return zone
        logger.warning(f"Unknown time zone {name!r}, falling back to local time")
    return tz.tzlocal()


def local_today(zone: Optional[tzinfo] = None) -> date:
    """Current calendar date in the given zone (local zone by default)."""
    return datetime.now(zone or tz.tzlocal()).date()


def utc_now() -> datetime:
    """UTC now as naive datetime for DateTime(timezone=False) columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
