"""
Single place for scheduling: in-memory timers and DB-backed registered tasks.
"""
import logging
import threading
from datetime import datetime, timezone
from queue import Queue
from threading import Timer
from typing import Any, Callable, Dict, List, Optional

from azan.core.clock import utc_now
from azan.core.constraints import Constraints
from azan.core.db import Database
from azan.core.task import TaskResult, get_next_run_from_db, get_task_schedule, update_after_run

DEFAULT_CONSTRAINT_RECHECK_SECONDS = 15 * 60


class TaskManager:
    def __init__(self, db: Database, constraint_recheck_seconds: int = DEFAULT_CONSTRAINT_RECHECK_SECONDS):
        self.db = db
        self.constraint_recheck_seconds = constraint_recheck_seconds
        self.tasks: Dict[str, Timer] = {}
        self.result_queue = Queue()
        self.logger = logging.getLogger("TaskManager")
        self._lock = threading.Lock()
        self._registered_tasks: Dict[str, Callable[..., str]] = {}
        self._registered_config: Dict[str, Dict[str, Any]] = {}
        self._constraints: Dict[str, Optional[Constraints]] = {}
        self._stopped = False

    def schedule_task(self, name: str, callback: Callable, delay: float, one_time: bool = True) -> None:
        """Schedule a task to run after delay seconds."""
        if self._stopped:
            self.logger.debug(f"Not scheduling {name}: task manager stopped")
            return
        with self._lock:
            self.logger.info(f"Scheduling task {name} with delay {int(delay)} seconds")
            if name in self.tasks:
                self.logger.debug(f"Cancelling existing timer {name}")
                self.tasks[name].cancel()

            scheduled_time = datetime.now().timestamp() + delay
            timer = Timer(delay, self._run_task, args=(name, callback, delay, one_time))
            timer.daemon = True
            timer.scheduled_time = scheduled_time

            self.tasks[name] = timer
            timer.start()
        self.logger.info(f"Timer started for {name}, scheduled for {datetime.fromtimestamp(scheduled_time)}")

    def _run_task(self, name: str, callback: Callable, delay: float, one_time: bool) -> None:
        """Run the task and reschedule if needed."""
        try:
            callback()
            if not one_time:
                self.schedule_task(name, callback, delay, one_time)
        except Exception as e:
            self.logger.error(f"Error running task {name}: {e}")

    def cancel_timer(self, name: str) -> bool:
        with self._lock:
            timer = self.tasks.pop(name, None)
        if timer is None:
            return False
        timer.cancel()
        self.logger.info(f"Cancelled timer {name}")
        return True

    def is_scheduled(self, name: str) -> bool:
        with self._lock:
            timer = self.tasks.get(name)
        return timer is not None and timer.is_alive()

    def register_task(
        self,
        component_name: str,
        runnable: Callable[..., str],
        config: Optional[Dict[str, Any]] = None,
        constraints: Optional[Constraints] = None,
    ) -> None:
        """Register a runnable for a job. runnable(config, result_queue) does the work and returns a TaskResult."""
        self._registered_tasks[component_name] = runnable
        self._registered_config[component_name] = config or {}
        self._constraints[component_name] = constraints
        self.logger.debug(f"Registered task: {component_name}")

    def unregister_task(self, component_name: str) -> None:
        self._registered_tasks.pop(component_name, None)
        self._registered_config.pop(component_name, None)
        self._constraints.pop(component_name, None)
        self.cancel_timer(component_name)

    def schedule_registered_task(self, component_name: str) -> None:
        """
        Schedule a registered task: run at next_run from DB (or immediately if past due or null).
        After running, the result is persisted and we reschedule for the new next_run.
        """
        if component_name not in self._registered_tasks:
            self.logger.warning(f"No task registered for: {component_name}")
            return
        next_run = get_next_run_from_db(self.db, component_name)
        now = utc_now()
        if next_run is None:
            delay = 0
        else:
            delay = max(0, int((next_run - now).total_seconds()))
        callback = lambda: self._run_registered_and_reschedule(component_name)
        self.schedule_task(component_name, callback, delay, one_time=True)

    def _run_registered_and_reschedule(self, component_name: str) -> None:
        """Check constraints, run the registered runnable, persist its result, then reschedule."""
        runnable = self._registered_tasks.get(component_name)
        if runnable is None:
            return
        if get_task_schedule(self.db, component_name) is None:
            self.logger.info(f"Schedule for {component_name} was removed; not running")
            self.cancel_timer(component_name)
            return

        constraints = self._constraints.get(component_name)
        reason = constraints.unmet_reason() if constraints else None
        if reason:
            # Deferred, not failed: try again at the next eligible window
            self.logger.info(f"Deferring {component_name}: {reason}")
            callback = lambda: self._run_registered_and_reschedule(component_name)
            self.schedule_task(component_name, callback, self.constraint_recheck_seconds, one_time=True)
            return

        result, error = self._invoke(component_name, runnable)
        next_run = update_after_run(self.db, component_name, result, error)
        self.logger.info(f"Task {component_name} finished with {result}; next run at {next_run}")
        if next_run is not None and component_name in self._registered_tasks:
            self.schedule_registered_task(component_name)

    def _invoke(self, component_name: str, runnable: Callable[..., str]) -> tuple:
        config = self._registered_config.get(component_name, {})
        try:
            result = runnable(config, self.result_queue)
        except Exception as e:
            self.logger.exception(f"Registered task {component_name} failed: {e}")
            return TaskResult.RETRY, str(e)
        if result not in (TaskResult.SUCCESS, TaskResult.RETRY, TaskResult.FAILURE):
            self.logger.warning(f"Task {component_name} returned unknown result {result!r}, treating as success")
            result = TaskResult.SUCCESS
        return result, None

    def get_active_timers(self) -> List[Dict[str, Any]]:
        """Return list of active timer names and their next run time (for API)."""
        result = []
        with self._lock:
            timers = list(self.tasks.items())
        for name, timer in timers:
            if getattr(timer, "scheduled_time", None) is not None and timer.is_alive():
                next_run = datetime.fromtimestamp(timer.scheduled_time, tz=timezone.utc)
                result.append({"name": name, "next_run_at": next_run})
        return result

    def stop(self) -> None:
        """Stop all scheduled tasks."""
        self._stopped = True
        with self._lock:
            timers = list(self.tasks.values())
            self.tasks.clear()
        for timer in timers:
            timer.cancel()
