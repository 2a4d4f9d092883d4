"""
Service layer: save and load prayer-time records from DB.

Writes are one transaction each. Subscribers get the full ascending record list
after every committed write, in commit order.
"""
import logging
import threading
from datetime import date
from typing import Callable, Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from azan.core.clock import local_today
from azan.core.db import Database
from azan.prayer.errors import PersistenceFailed
from azan.prayer.models import PrayerDay, PrayerTimeRecord

Subscriber = Callable[[List[PrayerDay]], None]


class PrayerTimeStore:
    def __init__(self, db: Database, today: Optional[Callable[[], date]] = None):
        self.db = db
        self.today = today or local_today
        self.logger = logging.getLogger(self.__class__.__name__)
        self._subscribers: List[Subscriber] = []
        # Held across commit + snapshot so notifications follow commit order
        self._write_lock = threading.RLock()

    def upsert_window(self, days: Iterable[PrayerDay]) -> int:
        """Insert or replace one record per date. Dates not in days are untouched."""
        by_date = {day.date: day for day in days}
        if not by_date:
            return 0
        with self._write_lock:
            try:
                with self.db.session_scope() as session:
                    session.execute(
                        delete(PrayerTimeRecord).where(PrayerTimeRecord.date.in_(list(by_date)))
                    )
                    session.add_all(day.to_record() for day in by_date.values())
            except SQLAlchemyError as e:
                self.logger.error(f"Failed to store prayer times: {e}")
                raise PersistenceFailed(f"Could not store prayer times: {e}", cause=e) from e
            self.logger.info(f"Stored {len(by_date)} prayer times ({min(by_date)} to {max(by_date)})")
            self._notify()
        return len(by_date)

    def get_for_date(self, day: date) -> Optional[PrayerDay]:
        row = self._query(lambda s: s.get(PrayerTimeRecord, day))
        return PrayerDay.from_record(row) if row else None

    def get_today(self) -> Optional[PrayerDay]:
        return self.get_for_date(self.today())

    def get_all(self) -> List[PrayerDay]:
        rows = self._query(
            lambda s: s.execute(select(PrayerTimeRecord).order_by(PrayerTimeRecord.date.asc())).scalars().all()
        )
        return [PrayerDay.from_record(row) for row in rows]

    def clear_all(self) -> int:
        """Remove every record (full reset)."""
        with self._write_lock:
            try:
                with self.db.session_scope() as session:
                    removed = session.execute(delete(PrayerTimeRecord)).rowcount
            except SQLAlchemyError as e:
                raise PersistenceFailed(f"Could not clear prayer times: {e}", cause=e) from e
            self.logger.info(f"Cleared {removed} prayer times")
            self._notify()
        return removed

    def oldest_date(self) -> Optional[date]:
        return self._query(lambda s: s.execute(select(func.min(PrayerTimeRecord.date))).scalar())

    def newest_date(self) -> Optional[date]:
        return self._query(lambda s: s.execute(select(func.max(PrayerTimeRecord.date))).scalar())

    def count(self) -> int:
        return self._query(lambda s: s.execute(select(func.count()).select_from(PrayerTimeRecord)).scalar()) or 0

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Observe the ascending record list. callback is called now with the current list
        and again after every write. Returns a function that unsubscribes.
        """
        with self._write_lock:
            self._subscribers.append(callback)
            self._deliver(callback, self.get_all())

        def unsubscribe() -> None:
            with self._write_lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        if not self._subscribers:
            return
        snapshot = self.get_all()
        for callback in list(self._subscribers):
            self._deliver(callback, snapshot)

    def _deliver(self, callback: Subscriber, snapshot: List[PrayerDay]) -> None:
        try:
            callback(snapshot)
        except Exception as e:
            self.logger.error(f"Error in prayer times subscriber: {e}")

    def _query(self, fn):
        try:
            with self.db.session_scope() as session:
                return fn(session)
        except SQLAlchemyError as e:
            self.logger.error(f"Prayer times query failed: {e}")
            raise PersistenceFailed(f"Could not read prayer times: {e}", cause=e) from e
