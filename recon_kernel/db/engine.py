"""
Module: recon_kernel.db.engine
Responsibility: Engine and session factory for the bill/receipt database,
    and ``session_scope()``, the transaction boundary every reconciliation
    operation runs inside.
Architecture position: Kernel > DB.  Imports db/base.py; create_tables and
    drop_tables also import models/ so the metadata knows both tables.

Invariants enforced:
    - PostgreSQL connections run at READ COMMITTED.  Repair passes lock the
      bills they act on with SELECT ... FOR UPDATE before reading receipts.
    - SQLite (tests, local runs) gets explicit BEGIN so that reads and
      SAVEPOINTs belong to the surrounding transaction.  In-memory SQLite
      is a single shared connection, visible to every session.
    - session_scope(): commit on normal exit, rollback on any exception,
      close always.

Failure modes:
    - RuntimeError when the engine is used before init_engine_from_url().
    - Pool exhaustion past pool_size + max_overflow (PostgreSQL).
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from recon_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _sqlite_options(url: URL) -> dict[str, Any]:
    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    return options


def _server_options(
    pool_size: int,
    max_overflow: int,
    pool_pre_ping: bool,
    pool_timeout: int,
    pool_recycle: int,
) -> dict[str, Any]:
    return {
        "poolclass": QueuePool,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": pool_pre_ping,
        "pool_timeout": pool_timeout,
        "pool_recycle": pool_recycle,
        "isolation_level": "READ COMMITTED",
    }


def _use_explicit_begin(engine: Engine) -> None:
    """Make pysqlite leave BEGIN to SQLAlchemy.

    Left alone, pysqlite opens a transaction only at the first write, so a
    repair's snapshot read would sit outside it and RELEASE of an outermost
    SAVEPOINT would commit.
    """

    @event.listens_for(engine, "connect")
    def _autocommit_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 5,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create the module-level engine and session factory.

    Calling it again replaces both; call reset_engine() first to release
    the previous engine's connections.

    Args:
        database_url: ``postgresql://...`` or ``sqlite://`` / ``sqlite:///path``.
        echo: Log every SQL statement.
        pool_size, max_overflow, pool_pre_ping, pool_timeout, pool_recycle:
            QueuePool settings, ignored for SQLite.
    """
    global _engine, _SessionFactory

    url = make_url(database_url)
    dialect = url.get_backend_name()

    if dialect == "sqlite":
        engine = create_engine(url, echo=echo, **_sqlite_options(url))
        _use_explicit_begin(engine)
    else:
        engine = create_engine(
            url,
            echo=echo,
            **_server_options(
                pool_size, max_overflow, pool_pre_ping, pool_timeout, pool_recycle
            ),
        )

    _engine = engine
    _SessionFactory = sessionmaker(bind=engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": dialect, "pool_size": pool_size, "echo": echo},
    )
    return engine


def _require_factory() -> sessionmaker[Session]:
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session() -> Session:
    return _require_factory()()


def get_session_factory() -> sessionmaker[Session]:
    return _require_factory()


@contextmanager
def session_scope(
    session_factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """
    One transaction: commit on normal exit, rollback and re-raise on error.

    Usage:
        with session_scope(factory) as session:
            ReceiptRepairExecutor(session, numbers).create_missing_receipts()
    """
    session = (session_factory or _require_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def _metadata():
    from recon_kernel.db.base import Base
    import recon_kernel.models  # noqa: F401  registers bills and receipts

    return Base.metadata


def create_tables() -> None:
    """Create the bills and receipts tables if missing."""
    _metadata().create_all(get_engine())


def drop_tables() -> None:
    """Drop the bills and receipts tables. Tests and local resets only."""
    _metadata().drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


@atexit.register
def _dispose_at_exit() -> None:
    if _engine is not None:
        _engine.dispose()
