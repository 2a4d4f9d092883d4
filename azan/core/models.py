"""
Core DB models: task schedule (next_run persistence) and key/value preferences.
"""
from typing import Any, Dict, List

from sqlalchemy import Column, DateTime, Integer, JSON, String, Text, select

from azan.core.clock import utc_now
from azan.core.db import Base, Database


class TaskSchedule(Base):
    """Per-job schedule: next_run_at and last_run_at so scheduling survives restarts."""
    __tablename__ = "task_schedules"

    component_name = Column(String(255), primary_key=True)  # unique job name
    schedule_type = Column(String(64), nullable=False)  # DAILY, HOURLY, INTERVAL_SECONDS, INTERVAL_DAYS
    schedule_config = Column(JSON, nullable=True)  # e.g. {"interval_days": 40, "flex_days": 1}
    next_run_at = Column(DateTime(timezone=False), nullable=True)  # null = run immediately
    last_run_at = Column(DateTime(timezone=False), nullable=True)
    last_result = Column(String(32), nullable=True)
    last_error = Column(Text, nullable=True)
    attempts = Column(Integer, default=0, nullable=False)  # consecutive retries
    created_at = Column(DateTime(timezone=False), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=utc_now, onupdate=utc_now, nullable=False)


class Preference(Base):
    """Small persistent key/value store (last coordinates, selected country)."""
    __tablename__ = "preferences"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=False), default=utc_now, onupdate=utc_now, nullable=False)


def get_all_task_schedules(db: Database) -> List[Dict[str, Any]]:
    """Return all TaskSchedule rows as list of dicts (for API). Datetimes are naive UTC."""
    with db.session_scope() as session:
        rows = list(session.execute(select(TaskSchedule)).scalars().all())
    return [
        {
            "component_name": r.component_name,
            "schedule_type": r.schedule_type,
            "schedule_config": r.schedule_config,
            "next_run_at": r.next_run_at,
            "last_run_at": r.last_run_at,
            "last_result": r.last_result,
            "last_error": r.last_error,
            "attempts": r.attempts,
        }
        for r in rows
    ]
