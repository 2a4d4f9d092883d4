"""
Background task: refresh the cached prayer-time window from the saved location.
"""
from typing import Any, Dict, Optional

from azan.core.db import Database
from azan.core.task import BaseTask, TaskResult, TaskType
from azan.prayer.errors import ErrorKind
from azan.prayer.orchestrator import RefreshOrchestrator, RefreshOutcome

PRAYER_TIME_UPDATE_WORK = "prayer_time_update_work"
DEFAULT_INTERVAL_DAYS = 40
DEFAULT_FLEX_DAYS = 1


def task_result_for(outcome: RefreshOutcome) -> str:
    """Map a refresh outcome to what the scheduler should do next."""
    if outcome.status != RefreshOutcome.FAILED:
        return TaskResult.SUCCESS
    if outcome.kind in ErrorKind.NOT_RETRYABLE:
        return TaskResult.FAILURE
    return TaskResult.RETRY


class PrayerTimeUpdateTask(BaseTask):
    """Recalculate prayer times when stale; never forces."""

    def __init__(
        self,
        db: Database,
        orchestrator: RefreshOrchestrator,
        interval_days: float = DEFAULT_INTERVAL_DAYS,
        flex_days: float = DEFAULT_FLEX_DAYS,
    ):
        super().__init__(
            db,
            PRAYER_TIME_UPDATE_WORK,
            TaskType.INTERVAL_DAYS,
            {"interval_days": interval_days, "flex_days": flex_days},
        )
        self.orchestrator = orchestrator

    def run(
        self,
        config: Dict[str, Any],
        result_queue: Any,
        config_data: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> str:
        self.logger.debug("Starting prayer time update task")
        outcome = self.orchestrator.refresh_from_preferences(force=False)
        result = task_result_for(outcome)
        if result == TaskResult.FAILURE:
            self.logger.warning(f"Prayer time update cannot run: {outcome.message}")
        elif result == TaskResult.RETRY:
            self.logger.info(f"Prayer time update failed, will retry: {outcome.kind}")
        result_queue.put((self.component_name, outcome))
        return result
