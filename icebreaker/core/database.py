"""Database configuration and session management for SQLite.

Each document collection of the service (events, activities, users, answers,
group activities and reviews) is a SQLModel table. List- and object-valued
fields are stored in JSON columns so the rows keep the shape of the documents
the clients exchange.

SQLite Configuration Choices:
    - **WAL (Write-Ahead Logging)**: Allows concurrent readers while writing.
      Review refreshes run as background tasks after a response is sent, so
      a refresh may write while other requests read.

    - **Foreign Keys**: Enabled for referential integrity between tables that
      declare them.

    - **check_same_thread=False**: Background tasks run in Starlette's
      threadpool, so connections are used from more than one thread.
"""

from collections.abc import Callable

from sqlalchemy import event as sa_event
from sqlmodel import Session, SQLModel, create_engine

from icebreaker.core.config import settings

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
    # Import models so their tables are registered on the metadata
    import icebreaker.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session


def session_factory() -> Callable[[], Session]:
    """Return a callable opening new sessions on the application engine.

    Work that outlives a request (background review refreshes, the sweep job)
    opens its own session through this factory instead of reusing the
    request-scoped one.
    """
    return lambda: Session(engine)
