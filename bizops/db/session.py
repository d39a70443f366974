"""Engine/session handle for the SQL backend."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from bizops.core.config import get_settings

Base = declarative_base()

logger = logging.getLogger(__name__)

_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Explicitly constructed store handle.

    Owns one engine and its sessionmaker. Callers open it (or use it as a
    context manager), pass it to repositories/services and close it when done.
    """

    def __init__(self, url: Optional[str] = None, *, echo: Optional[bool] = None) -> None:
        settings = get_settings()
        self.url = (url or settings.database_url or "").strip()
        if not self.url:
            raise RuntimeError("DATABASE_URL must be configured to use the SQL backend.")
        self.echo = settings.sql_echo if echo is None else echo
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None

    # -------------------------- lifecycle --------------------------
    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def open(self) -> "Database":
        if self._engine is not None:
            return self
        kwargs: dict = {"future": True, "echo": self.echo}
        if self.url in _MEMORY_URLS:
            # a single shared connection, otherwise each session sees an empty database
            kwargs.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)
        else:
            kwargs["pool_pre_ping"] = True
        engine = create_engine(self.url, **kwargs)
        if self.is_sqlite:
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        self._engine = engine
        self._sessionmaker = sessionmaker(
            bind=engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )
        logger.debug("Database opened: %s", engine.url.render_as_string(hide_password=True))
        return self

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.debug("Database closed")

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self.open()
        return self._engine  # type: ignore[return-value]

    # -------------------------- sessions --------------------------
    @contextmanager
    def session(self) -> Iterator[Session]:
        if self._sessionmaker is None:
            self.open()
        session: Session = self._sessionmaker()  # type: ignore[misc]
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # -------------------------- schema --------------------------
    def create_all(self) -> None:
        from . import models  # noqa: F401  # ensure models are imported for metadata

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        from . import models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    def health_check(self) -> dict:
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {"status": "healthy", "timestamp": timestamp}
        except SQLAlchemyError as exc:
            logger.error("Database health check failed: %s", exc)
            return {"status": "unhealthy", "error": str(exc), "timestamp": timestamp}
