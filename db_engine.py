"""
Database engine and session management for FlipLedger.
Uses SQLModel with SQLite (or any SQLAlchemy URL) for persistent storage.
Features Write-Ahead Logging (WAL) mode for file-backed SQLite stores.

The engine is built once at process start and handed to the repository;
nothing here keeps a module-level instance.
"""

from pathlib import Path
import logging

from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from errors import StoreUnavailableError

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_MS = 5000


def _is_memory_database(database: str) -> bool:
    return database in ("", ":memory:") or database.startswith("file::memory:")


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create the database engine for a store URL.

    Args:
        database_url: SQLAlchemy URL, e.g. "sqlite:///flip_ledger.db"
        echo: Log every SQL statement

    Returns:
        Configured Engine

    Raises:
        StoreUnavailableError: If the URL is invalid or the backend cannot be loaded
    """
    try:
        url = make_url(database_url)
    except ArgumentError as e:
        raise StoreUnavailableError(f"Invalid database URL {database_url!r}: {e}") from e

    if url.get_backend_name() != "sqlite":
        try:
            return create_engine(url, echo=echo, pool_pre_ping=True)
        except (SQLAlchemyError, ImportError) as e:
            raise StoreUnavailableError(f"Could not create engine for {url.render_as_string()}: {e}") from e

    database = url.database or ""
    if _is_memory_database(database):
        # One shared connection, otherwise every session sees an empty database
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        return engine

    try:
        Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StoreUnavailableError(f"Cannot create directory for {database}: {e}") from e

    engine = create_engine(
        url,
        echo=echo,
        connect_args={
            "check_same_thread": False,  # Allow use across threads
        }
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    """Enable SQLite WAL mode for improved concurrent read/write performance."""
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
    except Exception as e:
        logger.warning(f"Could not enable WAL mode: {e}")
    finally:
        cursor.close()


def init_db(engine: Engine) -> None:
    """
    Initialize the database and create all tables.

    Raises:
        StoreUnavailableError: If the store cannot be reached or the schema cannot be created
    """
    from models import TradeRecord  # noqa: F401  (registers the table)

    try:
        SQLModel.metadata.create_all(engine)
    except SQLAlchemyError as e:
        raise StoreUnavailableError(f"Could not initialize database: {e}") from e
    logger.info("Database initialized")


def get_session(engine: Engine) -> Session:
    """Get a new database session."""
    return Session(engine)
