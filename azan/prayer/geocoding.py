"""
Reverse geocoding (coordinates → country name) via OpenStreetMap Nominatim.
"""
import logging
from typing import Any, Dict, Optional

import requests

DEFAULT_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"
DEFAULT_USER_AGENT = "azan-prayer-cache/1.0"


class NominatimGeocoder:
    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.url = config.get("url") or DEFAULT_REVERSE_URL
        self.user_agent = config.get("user_agent") or DEFAULT_USER_AGENT
        self.timeout = float(config.get("timeout", 10))
        self.enabled = config.get("enabled", True)
        self.logger = logging.getLogger(self.__class__.__name__)

    def country_from_coordinates(self, latitude: float, longitude: float) -> Optional[str]:
        """Country name in English, or None if it cannot be determined."""
        if not self.enabled:
            return None
        params = {
            "format": "jsonv2",
            "lat": latitude,
            "lon": longitude,
            "zoom": 3,  # country level
            "addressdetails": 1,
            "accept-language": "en",
        }
        try:
            r = requests.get(self.url, params=params, headers={"User-Agent": self.user_agent}, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            self.logger.warning(f"Reverse geocoding failed for {latitude},{longitude}: {e}")
            return None
        country = (data.get("address") or {}).get("country")
        if country:
            self.logger.info(f"Detected country: {country}")
        else:
            self.logger.warning(f"Could not detect country for {latitude},{longitude}")
        return country
