from __future__ import annotations

from collections.abc import Generator
import logging
import os

from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.config import get_settings
from ..core.exceptions import DatabaseConnectionError, MigrationError
from .schema import verify_schema as verify_live_schema

logger = logging.getLogger(__name__)

Base = declarative_base()

# Embedded migration set: alembic scripts shipped with the package, applied in revision order.
MIGRATIONS = os.path.join(os.path.dirname(__file__), "migrations")

# Lazy engine/sessionmaker to avoid touching settings at import time.
_engine: Engine | None = None
_session_maker: sessionmaker[Session] | None = None


def _is_sqlite_memory(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:"))


def _emit_sqlite_begin(engine: Engine) -> None:
    # pysqlite emits no BEGIN before DDL; issue it ourselves so DDL rolls back with the transaction
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_db_engine(url: str, *, echo: bool = False) -> Engine:
    kwargs: dict = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_sqlite_memory(url):
            # one shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        _emit_sqlite_begin(engine)
    return engine


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        db_cfg = get_settings().database
        assert db_cfg is not None
        _engine = create_db_engine(db_cfg.url, echo=db_cfg.echo)
        logger.debug("Engine created")
    return _engine


def get_session_maker() -> sessionmaker[Session]:
    global _session_maker
    if _session_maker is None:
        _session_maker = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
        logger.debug("Sessionmaker created")
    return _session_maker


def get_db() -> Generator[Session]:
    db = get_session_maker()()
    try:
        logger.debug("Database session created")
        yield db
    except Exception as e:
        db.rollback()
        logger.error("Error in database session: %s", e)
        raise
    finally:
        db.close()
        logger.debug("Database session closed")


def check_db_connection(engine: Engine | None = None) -> bool:
    try:
        with (engine or get_engine()).connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection is healthy")
        return True
    except SQLAlchemyError as e:
        logger.error("Database connection check failed: %s", e)
        return False


def close_db_connections() -> None:
    global _engine, _session_maker
    try:
        if _engine is not None:
            _engine.dispose()
            logger.info("Database connections closed")
    finally:
        _engine = None
        _session_maker = None


def apply_pending(db: Session, script_location: str = MIGRATIONS) -> None:
    """Apply every migration in ``script_location`` that the ledger has not recorded yet.

    The ledger is alembic's ``alembic_version`` table, so re-running is a no-op.
    Any failure rolls the session back and raises MigrationError.
    """
    cfg = AlembicConfig()
    cfg.set_main_option("script_location", script_location)
    cfg.attributes["connection"] = db.connection()
    try:
        command.upgrade(cfg, "head")
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("Failed to apply migrations from %s: %s", script_location, e)
        raise MigrationError(f"Failed to apply migrations: {e}") from e
    logger.info("Migrations from %s are up to date", script_location)


def establish_connection(
    url: str | None = None,
    *,
    migrations: str | None = None,
    verify_schema: bool = False,
) -> Session:
    """Open a session on ``url`` (default: settings), optionally migrating and verifying it.

    Raises DatabaseConnectionError when the database cannot be reached and
    MigrationError when the migrations or the schema check fail.
    """
    echo = False
    if url is None:
        db_cfg = get_settings().database
        assert db_cfg is not None
        url, echo = db_cfg.url, db_cfg.echo

    try:
        engine = create_db_engine(url, echo=echo)
    except SQLAlchemyError as e:
        logger.error("Invalid database URL: %s", e)
        raise DatabaseConnectionError(f"Invalid database URL: {e}") from e

    db = Session(bind=engine, autoflush=False, expire_on_commit=False)
    try:
        db.execute(text("SELECT 1"))
        db.commit()
    except SQLAlchemyError as e:
        close_connection(db)
        logger.error("Cannot connect to database: %s", e)
        raise DatabaseConnectionError(f"Cannot connect to database: {e}") from e

    try:
        if migrations is not None:
            apply_pending(db, migrations)
        if verify_schema:
            verify_live_schema(db.connection())
            db.commit()
    except MigrationError:
        close_connection(db)
        raise

    logger.debug("Connection established to %s", engine.url.render_as_string(hide_password=True))
    return db


def close_connection(db: Session) -> None:
    bind = db.bind
    db.close()
    if isinstance(bind, Engine):
        bind.dispose()
