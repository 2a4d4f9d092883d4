"""
Periodic background refresh: one named job, persisted in task_schedules, run by the TaskManager.
"""
import logging
from typing import Optional

from azan.core.constraints import Constraints
from azan.core.task import delete_task_schedule, get_task_schedule
from azan.core.task_manager import TaskManager
from azan.prayer.task import PrayerTimeUpdateTask


class PeriodicScheduler:
    def __init__(
        self,
        task_manager: TaskManager,
        task: PrayerTimeUpdateTask,
        constraints: Optional[Constraints] = None,
    ):
        self.task_manager = task_manager
        self.task = task
        self.constraints = constraints
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def job_name(self) -> str:
        return self.task.component_name

    def is_scheduled(self) -> bool:
        return get_task_schedule(self.task.db, self.job_name) is not None

    def schedule_periodic_refresh(self, replace: bool = False, arm: bool = True) -> bool:
        """
        Ensure the periodic job exists. An existing schedule is kept (its next run is untouched)
        unless replace is True. Returns True if a new schedule was created.
        With arm=False only the persisted schedule changes; resume() starts timers later.
        """
        existing = get_task_schedule(self.task.db, self.job_name)
        if existing is not None and not replace:
            self.logger.info(f"Keeping existing schedule for {self.job_name} (next run {existing.next_run_at})")
            if arm:
                self._arm(only_if_idle=True)
            return False

        if existing is not None:
            self.logger.info(f"Replacing schedule for {self.job_name}")
            self.task_manager.cancel_timer(self.job_name)
            delete_task_schedule(self.task.db, self.job_name)

        # New row has next_run_at null, so the first run happens right away
        self.task.ensure_scheduled()
        if arm:
            self._arm(only_if_idle=False)
        self.logger.info(f"Scheduled {self.job_name} every {self.task.schedule_config.get('interval_days')} days")
        return True

    def resume(self) -> bool:
        """Re-arm a schedule persisted by a previous run of the app. Returns True if one existed."""
        if not self.is_scheduled():
            return False
        self._arm(only_if_idle=True)
        return True

    def cancel_periodic_refresh(self) -> bool:
        """Remove the periodic job. Returns True if one was scheduled."""
        self.task_manager.unregister_task(self.job_name)
        removed = delete_task_schedule(self.task.db, self.job_name)
        if removed:
            self.logger.info(f"Cancelled {self.job_name}")
        return removed

    def _arm(self, only_if_idle: bool) -> None:
        if only_if_idle and self.task_manager.is_scheduled(self.job_name):
            return
        self.task_manager.register_task(self.job_name, self.task.run, constraints=self.constraints)
        self.task_manager.schedule_registered_task(self.job_name)
