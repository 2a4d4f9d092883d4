"""
Last known location and selected country, persisted in the preferences table.
"""
import logging
from typing import Optional, Tuple

from sqlalchemy import select

from azan.core.clock import utc_now
from azan.core.db import Database
from azan.core.models import Preference

LATITUDE_KEY = "latitude"
LONGITUDE_KEY = "longitude"
COUNTRY_NAME_KEY = "country_name"

logger = logging.getLogger(__name__)


class LocationPreferences:
    def __init__(self, db: Database):
        self.db = db

    def _get(self, key: str) -> Optional[str]:
        with self.db.session_scope() as session:
            row = session.execute(select(Preference).where(Preference.key == key)).scalars().first()
            return row.value if row else None

    def _set(self, **values: Optional[str]) -> None:
        now = utc_now()
        with self.db.session_scope() as session:
            for key, value in values.items():
                row = session.execute(select(Preference).where(Preference.key == key)).scalars().first()
                if row:
                    row.value = value
                    row.updated_at = now
                else:
                    session.add(Preference(key=key, value=value, updated_at=now))

    def save_location(self, latitude: float, longitude: float, country: Optional[str] = None) -> None:
        values = {LATITUDE_KEY: repr(float(latitude)), LONGITUDE_KEY: repr(float(longitude))}
        if country is not None:
            values[COUNTRY_NAME_KEY] = country.strip()
        self._set(**values)
        logger.debug(f"Saved location lat={latitude}, lon={longitude}, country={country}")

    def save_country_name(self, country: str) -> None:
        self._set(**{COUNTRY_NAME_KEY: country.strip()})

    def get_coordinates(self) -> Optional[Tuple[float, float]]:
        lat, lon = self._get(LATITUDE_KEY), self._get(LONGITUDE_KEY)
        if lat is None or lon is None:
            return None
        try:
            return float(lat), float(lon)
        except ValueError:
            logger.warning(f"Stored coordinates are invalid: {lat!r}, {lon!r}")
            return None

    def get_country_name(self) -> Optional[str]:
        return self._get(COUNTRY_NAME_KEY)

    def has_location_data(self) -> bool:
        return self.get_coordinates() is not None
