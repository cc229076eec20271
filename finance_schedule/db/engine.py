"""
Module: finance_schedule.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities.  Single point of database connection
    configuration.
Architecture position: DB layer.  May import from db/base.py.  MUST NOT import
    from stores/, services/ or domain/ (create_tables imports models lazily).

Invariants enforced:
    - PostgreSQL in production (READ COMMITTED plus conditional UPDATEs on
      schedule entries); SQLite is accepted for tests and local runs.
    - session_scope() is the commit-or-rollback boundary.  A settlement's
      ledger insert and entry transition are flushed inside one scope and
      therefore commit or roll back together.

Failure modes:
    - RuntimeError if get_engine/get_session/get_session_factory is called
      before init_engine_from_url().
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from finance_schedule.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _on_sqlite_connect(dbapi_connection, connection_record) -> None:
    """Switch on foreign keys and hand transaction control to SQLAlchemy.

    SQLite ignores ON DELETE CASCADE unless foreign keys are enabled, and the
    pysqlite driver's own BEGIN handling breaks SAVEPOINT (used by
    create_many and the regeneration sweep).
    """
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_sqlite_begin(conn) -> None:
    conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str, echo: bool = False, **pool_kwargs) -> Engine:
    """
    Create an engine for the given URL without touching module state.

    SQLite engines get foreign-key enforcement; PostgreSQL engines get the
    pool settings and READ COMMITTED isolation.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, echo=echo)
        event.listen(engine, "connect", _on_sqlite_connect)
        event.listen(engine, "begin", _on_sqlite_begin)
        return engine

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=pool_kwargs.pop("pool_pre_ping", True),
        isolation_level="READ COMMITTED",
        **pool_kwargs,
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
) -> Engine:
    """
    Initialize the module-level engine and session factory.

    Second call overwrites the first.

    Args:
        database_url: SQLAlchemy URL (postgresql://... or sqlite://...).
        echo: If True, log all SQL statements.
        pool_size: Connections kept in the pool (PostgreSQL only).
        max_overflow: Max connections beyond pool_size (PostgreSQL only).
    """
    global _engine, _SessionFactory

    pool_kwargs = {}
    if not database_url.startswith("sqlite"):
        pool_kwargs = {"pool_size": pool_size, "max_overflow": max_overflow}

    _engine = build_engine(database_url, echo=echo, **pool_kwargs)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "echo": echo},
    )
    return _engine


def get_engine() -> Engine:
    """
    Get the current engine instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session() -> Session:
    """
    Get a new session instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory()


def get_session_factory() -> sessionmaker[Session]:
    """Get the session factory (one session per request or cron tick)."""
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    On normal exit the session is committed and closed.  On exception it is
    rolled back and closed, and the exception is re-raised.

    Usage:
        with session_scope() as session:
            SettlementService(session).pay_installment(installment_id)
    """
    session = get_session()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create all tables defined by the ORM models."""
    from finance_schedule.db.base import Base
    import finance_schedule.models  # noqa: F401  (registers tables)

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop all tables. Use with caution - primarily for testing."""
    from finance_schedule.db.base import Base
    import finance_schedule.models  # noqa: F401

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None

    _SessionFactory = None
