"""Database configuration and session management for SQLite.

This module configures the SQLite database engine with settings suited to
a service where request handlers and the background answer-sync worker
write to the same file.

SQLite Configuration Choices:
    - **WAL (Write-Ahead Logging)**: Allows concurrent readers while writing.
      Answer writes are persisted from a worker thread while operators and
      administrators keep reading checks.

    - **Foreign Keys**: Disabled by default in SQLite. Enabled so that check
      items always reference an existing check, and sessions an existing
      vehicle and check.

    - **check_same_thread=False**: Required because stores are called from
      FastAPI handlers and from the answer-sync worker thread.
"""

from sqlalchemy import event as sa_event
from sqlmodel import Session, SQLModel, create_engine

from fleetcheck.core.config import settings

connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=settings.debug,  # Log SQL statements when DEBUG=true
)


@sa_event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Configure SQLite pragmas on each new connection.

    These settings are connection-level, not database-level, so they must
    be set each time a new connection is established from the pool.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_and_tables():
    """Create all database tables."""
    # Table classes register themselves on import.
    import fleetcheck.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session
