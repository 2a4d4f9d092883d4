"""
Base task type and abstract BaseTask with next_run persistence in DB.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from queue import Queue
from typing import Any, Dict, Optional

from sqlalchemy import delete, select

from azan.core.clock import utc_now
from azan.core.db import Database
from azan.core.models import TaskSchedule

logger = logging.getLogger(__name__)

# Exponential backoff for RETRY results, same bounds as Android WorkManager
RETRY_BACKOFF_INITIAL_SECONDS = 30
RETRY_BACKOFF_MAX_SECONDS = 5 * 60 * 60


class TaskType:
    """Schedule kind for tasks."""
    DAILY = "daily"
    HOURLY = "hourly"
    INTERVAL_SECONDS = "interval_seconds"
    INTERVAL_DAYS = "interval_days"


class TaskResult:
    """What a task run asks of the scheduler."""
    SUCCESS = "success"  # cycle complete, next run at normal cadence
    RETRY = "retry"  # re-run after backoff
    FAILURE = "failure"  # do not retry this cycle


def compute_next_run(
    schedule_type: str,
    schedule_config: Optional[Dict[str, Any]],
    last_run: Optional[datetime],
) -> datetime:
    """Compute next run datetime from schedule_type, schedule_config, and last_run."""
    now = utc_now()
    if last_run is None:
        last_run = now

    if schedule_type == TaskType.DAILY and schedule_config:
        time_str = schedule_config.get("time", "00:00")
        parts = str(time_str).strip().split(":")
        hour = int(parts[0]) if parts else 0
        minute = int(parts[1]) if len(parts) > 1 else 0
        next_run = last_run.replace(hour=hour, minute=minute, second=0, microsecond=0)
        if next_run <= last_run:
            next_run += timedelta(days=1)
        return next_run

    if schedule_type == TaskType.HOURLY:
        return last_run + timedelta(hours=1)

    if schedule_type == TaskType.INTERVAL_SECONDS and schedule_config:
        sec = int(schedule_config.get("interval_seconds", 86400))
        return last_run + timedelta(seconds=sec)

    if schedule_type == TaskType.INTERVAL_DAYS and schedule_config:
        # Run at the opening of the flex window: [interval - flex, interval] after last run
        days = float(schedule_config.get("interval_days", 1))
        flex = float(schedule_config.get("flex_days", 0))
        flex = min(max(flex, 0.0), days)
        return last_run + timedelta(days=days - flex)

    return last_run + timedelta(days=1)


def compute_retry_delay(attempts: int) -> int:
    """Seconds to wait before retry number `attempts` (1-based)."""
    attempts = max(1, attempts)
    delay = RETRY_BACKOFF_INITIAL_SECONDS * (2 ** (attempts - 1))
    return min(delay, RETRY_BACKOFF_MAX_SECONDS)


def get_task_schedule(db: Database, component_name: str) -> Optional[TaskSchedule]:
    with db.session_scope() as session:
        return session.execute(
            select(TaskSchedule).where(TaskSchedule.component_name == component_name)
        ).scalars().first()


def get_next_run_from_db(db: Database, component_name: str) -> Optional[datetime]:
    """Read next_run_at for a job. Returns None if no row or next_run_at is null (task will run immediately)."""
    try:
        row = get_task_schedule(db, component_name)
        if row and row.next_run_at is not None:
            return row.next_run_at
    except Exception as e:
        logger.debug(f"get_next_run_from_db {component_name}: {e}")
    return None


def upsert_task_schedule(
    db: Database,
    component_name: str,
    schedule_type: str,
    schedule_config: Optional[Dict[str, Any]],
    next_run_at: Optional[datetime] = None,
    last_run_at: Optional[datetime] = None,
    last_error: Optional[str] = None,
) -> None:
    """Create or update TaskSchedule row. If next_run_at not given: for new row leave it null (run immediately); for existing row leave next_run_at unchanged."""
    with db.session_scope() as session:
        row = session.execute(
            select(TaskSchedule).where(TaskSchedule.component_name == component_name)
        ).scalars().first()
        now = utc_now()
        if row:
            row.schedule_type = schedule_type
            row.schedule_config = schedule_config
            if next_run_at is not None:
                row.next_run_at = next_run_at
            if last_run_at is not None:
                row.last_run_at = last_run_at
            if last_error is not None:
                row.last_error = last_error
            row.updated_at = now
        else:
            session.add(TaskSchedule(
                component_name=component_name,
                schedule_type=schedule_type,
                schedule_config=schedule_config,
                next_run_at=next_run_at,
                last_run_at=last_run_at,
                last_error=last_error,
                attempts=0,
                created_at=now,
                updated_at=now,
            ))


def delete_task_schedule(db: Database, component_name: str) -> bool:
    """Remove a job's schedule row. Returns True if a row was deleted."""
    with db.session_scope() as session:
        result = session.execute(
            delete(TaskSchedule).where(TaskSchedule.component_name == component_name)
        )
        return bool(result.rowcount)


def update_after_run(
    db: Database,
    component_name: str,
    result: str = TaskResult.SUCCESS,
    error: Optional[str] = None,
) -> Optional[datetime]:
    """
    Persist the outcome of a run and return the new next_run_at.
    SUCCESS and FAILURE move to the normal cadence; RETRY backs off from now.
    """
    with db.session_scope() as session:
        row = session.execute(
            select(TaskSchedule).where(TaskSchedule.component_name == component_name)
        ).scalars().first()
        if not row:
            return None
        now = utc_now()
        row.last_run_at = now
        row.last_result = result
        if result == TaskResult.RETRY:
            row.attempts = (row.attempts or 0) + 1
            row.last_error = error
            row.next_run_at = now + timedelta(seconds=compute_retry_delay(row.attempts))
        else:
            row.attempts = 0
            row.last_error = error if result == TaskResult.FAILURE else None
            row.next_run_at = compute_next_run(row.schedule_type, row.schedule_config, now)
        row.updated_at = now
        return row.next_run_at


class BaseTask(ABC):
    """
    Abstract base for background tasks. Subclasses implement run();
    base persists the schedule row so next_run survives restarts.
    """

    def __init__(
        self,
        db: Database,
        component_name: str,
        schedule_type: str,
        schedule_config: Optional[Dict[str, Any]] = None,
    ):
        self.db = db
        self.component_name = component_name
        self.schedule_type = schedule_type
        self.schedule_config = schedule_config or {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def ensure_scheduled(self, next_run_at: Optional[datetime] = None) -> None:
        """Ensure TaskSchedule row exists so next run survives restarts. Does not overwrite next_run_at on existing row."""
        upsert_task_schedule(
            self.db,
            self.component_name,
            self.schedule_type,
            self.schedule_config,
            next_run_at=next_run_at,
        )

    @abstractmethod
    def run(
        self,
        config: Dict[str, Any],
        result_queue: Queue,
        **kwargs: Any,
    ) -> str:
        """
        Execute the task. Return a TaskResult value; the TaskManager persists it and reschedules.
        Subclasses should also result_queue.put((component_name, payload)).
        """
        pass
