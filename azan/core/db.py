"""
SQLAlchemy engine, session, and base. DB path from config or default.

The engine is owned by a Database instance created at application startup and
disposed on shutdown; nothing here is process-global except the declarative Base.
"""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_DB_DIR = Path.home() / ".azan"


def db_url_from_config(config_data: Optional[Dict[str, Any]] = None) -> str:
    """Build a SQLite URL from database.path in config, or the default ~/.azan/azan.db."""
    db_config = (config_data or {}).get("database") or {}
    url = db_config.get("url")
    if url:
        return url
    path = db_config.get("path")
    if path:
        path = Path(path).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{path}"
    DEFAULT_DB_DIR.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{DEFAULT_DB_DIR / 'azan.db'}"


class Database:
    """Engine plus session factory. Create one per application and pass it to the services that need it."""

    def __init__(self, db_url: str):
        self.url = db_url
        kwargs: Dict[str, Any] = {"echo": False, "future": True}
        if db_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if db_url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection so every session sees the same in-memory database
                kwargs["poolclass"] = StaticPool
        self.engine = create_engine(db_url, **kwargs)
        self._session_factory = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    @classmethod
    def from_config(cls, config_data: Optional[Dict[str, Any]] = None) -> "Database":
        return cls(db_url_from_config(config_data))

    def create_all(self) -> None:
        """Create tables for every model module."""
        # Import all model modules so tables are registered with Base
        from azan.core import models as _core_models  # noqa: F401
        from azan.prayer import models as _prayer_models  # noqa: F401

        Base.metadata.create_all(self.engine)
        logger.info(f"Database initialized: {self.url.split('?')[0]}")

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Context manager for a single DB session. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.debug("Database engine disposed")
