"""Engine and session factory for the Consejo database."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from consejo.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Models must be imported before metadata.create_all runs.
import consejo.models  # noqa: E402,F401


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SAVEPOINTs nest inside the request transaction on pysqlite.

    pysqlite defers BEGIN until the first write, so a SAVEPOINT opened before
    that write becomes the outermost transaction and its RELEASE commits. The
    driver's own transaction handling is switched off and BEGIN is emitted
    when SQLAlchemy starts a transaction.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def build_engine(url: str, **kwargs: Any) -> Engine:
    """Create an engine for ``url``; SQLite URLs get savepoint support.

    Extra keyword arguments go to :func:`sqlalchemy.create_engine`.
    """
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        connect_args = kwargs.setdefault("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
    else:
        kwargs.setdefault("pool_pre_ping", True)

    new_engine = create_engine(url, **kwargs)
    if is_sqlite:
        _enable_sqlite_savepoints(new_engine)
    return new_engine


engine = build_engine(settings.effective_database_url, echo=settings.sql_debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session; the route owns commit and rollback."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    Base.metadata.drop_all(bind=engine)
