"""
Country → calculation method resolution.

The table is a JSON object {country name: method id} shipped with the package.
Resolution never fails: anything that cannot be matched gets the baseline method.
"""
import json
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

BASELINE_METHOD = "MUSLIM_WORLD_LEAGUE"
DEFAULT_METHODS_FILE = Path(__file__).parent / "data" / "country_prayer_methods.json"


def _equals(alias: str) -> Callable[[str], bool]:
    alias = alias.casefold()
    return lambda name: name.casefold() == alias


def _contains(fragment: str) -> Callable[[str], bool]:
    fragment = fragment.casefold()
    return lambda name: fragment in name.casefold()


# Ordered (predicate, replacement) rules; first match wins. Exact aliases before containment.
COUNTRY_ALIASES: List[Tuple[Callable[[str], bool], str]] = [
    (_equals("Republic of India"), "India"),
    (_equals("United States of America"), "United States"),
    (_equals("USA"), "United States"),
    (_equals("US"), "United States"),
    (_equals("UK"), "United Kingdom"),
    (_equals("Great Britain"), "United Kingdom"),
    (_equals("UAE"), "United Arab Emirates"),
    (_equals("KSA"), "Saudi Arabia"),
    (_contains("India"), "India"),
    (_contains("United States"), "United States"),
    (_contains("Saudi"), "Saudi Arabia"),
]


def normalize_country_name(name: str) -> str:
    """Trim and map common variants to the table's spelling; unknown names pass through."""
    normalized = name.strip()
    for matches, replacement in COUNTRY_ALIASES:
        if matches(normalized):
            return replacement
    return normalized


class CountryMethodTable:
    """Read-only country → method id mapping, in file order."""

    def __init__(self, methods: Optional[Dict[str, str]] = None, source: Optional[str] = None):
        self.methods: Dict[str, str] = dict(methods or {})
        self.source = source

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "CountryMethodTable":
        """Load from JSON. A missing or malformed file yields an empty table (everything resolves to baseline)."""
        path = Path(path).expanduser() if path else DEFAULT_METHODS_FILE
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("root must be an object")
        except (OSError, ValueError) as e:
            logger.error(f"Country method table unavailable ({path}): {e}; using {BASELINE_METHOD} everywhere")
            return cls({}, source=str(path))
        methods = {str(k): str(v) for k, v in data.items()}
        logger.debug(f"Loaded {len(methods)} country methods from {path}")
        return cls(methods, source=str(path))

    def __len__(self) -> int:
        return len(self.methods)

    def get(self, country: str) -> Optional[str]:
        return self.methods.get(country)

    def items(self):
        return self.methods.items()

    def countries(self) -> List[str]:
        return sorted(self.methods)


class MethodResolver:
    """Maps a free-form country name (e.g. from reverse geocoding) to a method id."""

    def __init__(
        self,
        table: CountryMethodTable,
        baseline: str = BASELINE_METHOD,
        notify: Optional[Callable[[str], None]] = None,
    ):
        self.table = table
        self.baseline = baseline
        self.notify = notify
        self.logger = logging.getLogger(self.__class__.__name__)

    def resolve(self, raw_country_name: Optional[str]) -> str:
        country = (raw_country_name or "").strip()
        if not country:
            self.logger.warning(f"No country given, using {self.baseline}")
            return self.baseline

        normalized = normalize_country_name(country)
        self.logger.debug(f"Normalized country name: {normalized} from original: {country}")
        self._notify(country)

        method = self.table.get(normalized)
        if method is not None:
            self.logger.debug(f"Found calculation method for {normalized}: {method}")
            return method

        # Table keys may use variant spellings too; iteration order breaks ties
        wanted = normalized.casefold()
        for key, key_method in self.table.items():
            if normalize_country_name(key).casefold() == wanted:
                self.logger.debug(f"Found matching country: {key} for {normalized} with method: {key_method}")
                return key_method

        self.logger.warning(f"Country not found in method table: {normalized}, using default {self.baseline}")
        return self.baseline

    def available_countries(self) -> List[str]:
        return self.table.countries()

    def _notify(self, country: str) -> None:
        if self.notify is None:
            return
        try:
            self.notify(country)
        except Exception as e:
            self.logger.debug(f"Country notification failed: {e}")
