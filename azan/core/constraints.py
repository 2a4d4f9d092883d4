"""
Execution constraints for background tasks: network connectivity and battery level.
"""
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_CONNECTIVITY_URL = "https://clients3.google.com/generate_204"
DEFAULT_LOW_BATTERY_PERCENT = 15
POWER_SUPPLY_DIR = Path("/sys/class/power_supply")


def is_network_available(url: str = DEFAULT_CONNECTIVITY_URL, timeout: float = 5.0) -> bool:
    """True if a lightweight HTTP request to url gets any response."""
    try:
        requests.head(url, timeout=timeout, allow_redirects=False)
        return True
    except requests.RequestException as e:
        logger.debug(f"Connectivity check failed: {e}")
        return False


def read_battery_state(power_supply_dir: Path = POWER_SUPPLY_DIR) -> Optional[Dict[str, Any]]:
    """
    Read the first battery under /sys/class/power_supply.
    Returns {"percent": int, "charging": bool} or None when the host has no battery.
    """
    if not power_supply_dir.exists():
        return None
    for supply in sorted(power_supply_dir.glob("BAT*")):
        try:
            percent = int((supply / "capacity").read_text().strip())
            status_file = supply / "status"
            status = status_file.read_text().strip() if status_file.exists() else ""
        except (OSError, ValueError) as e:
            logger.debug(f"Could not read battery {supply.name}: {e}")
            continue
        return {"percent": percent, "charging": status in ("Charging", "Full")}
    return None


def is_battery_low(threshold: int = DEFAULT_LOW_BATTERY_PERCENT) -> bool:
    """True when running on a discharging battery at or below threshold percent."""
    state = read_battery_state()
    if state is None or state["charging"]:
        return False
    return state["percent"] <= threshold


class Constraints:
    """Conditions a scheduled task needs before it may run."""

    def __init__(
        self,
        require_network: bool = True,
        require_battery_not_low: bool = True,
        low_battery_percent: int = DEFAULT_LOW_BATTERY_PERCENT,
        connectivity_url: str = DEFAULT_CONNECTIVITY_URL,
        network_check: Optional[Callable[[], bool]] = None,
        battery_low_check: Optional[Callable[[], bool]] = None,
    ):
        self.require_network = require_network
        self.require_battery_not_low = require_battery_not_low
        self.low_battery_percent = low_battery_percent
        self.connectivity_url = connectivity_url
        self._network_check = network_check or (lambda: is_network_available(self.connectivity_url))
        self._battery_low_check = battery_low_check or (lambda: is_battery_low(self.low_battery_percent))

    @classmethod
    def from_config(cls, scheduler_config: Optional[Dict[str, Any]] = None) -> "Constraints":
        cfg = scheduler_config or {}
        return cls(
            require_network=cfg.get("require_network", True),
            require_battery_not_low=cfg.get("require_battery_not_low", True),
            low_battery_percent=int(cfg.get("low_battery_percent", DEFAULT_LOW_BATTERY_PERCENT)),
            connectivity_url=cfg.get("connectivity_url") or DEFAULT_CONNECTIVITY_URL,
        )

    def unmet_reason(self) -> Optional[str]:
        """Return why the task may not run now, or None if all constraints hold."""
        if self.require_network and not self._network_check():
            return "network unavailable"
        if self.require_battery_not_low and self._battery_low_check():
            return "battery low"
        return None
