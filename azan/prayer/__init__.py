from azan.prayer.methods import BASELINE_METHOD, CountryMethodTable, MethodResolver
from azan.prayer.models import PrayerDay
from azan.prayer.orchestrator import RefreshOrchestrator, RefreshOutcome
from azan.prayer.staleness import StalenessPolicy
from azan.prayer.store import PrayerTimeStore
from azan.prayer.window import TimeWindowComputer

__all__ = [
    "BASELINE_METHOD",
    "CountryMethodTable",
    "MethodResolver",
    "PrayerDay",
    "PrayerTimeStore",
    "RefreshOrchestrator",
    "RefreshOutcome",
    "StalenessPolicy",
    "TimeWindowComputer",
]
