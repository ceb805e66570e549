"""
Database engine and session management.

Nothing here is global: callers own the engine and session factory and
pass them to whoever needs them.
"""

from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

DB_FILENAME = 'library.db'


def casefold(value):
    """SQL-callable case folding, shared by title search in and out of SQL."""
    if value is None:
        return None
    return value.casefold()


def library_db_url(library_path: Path) -> str:
    """Return the SQLite URL for a library directory, creating it if needed."""
    library_path = Path(library_path)
    library_path.mkdir(parents=True, exist_ok=True)
    return f'sqlite:///{library_path / DB_FILENAME}'


def create_db_engine(db_url: str = 'sqlite://', echo: bool = False) -> Engine:
    """
    Create an engine and make sure all tables exist.

    Args:
        db_url: SQLAlchemy URL; the default is a private in-memory database
        echo: If True, log all SQL statements (debug mode)

    Returns:
        SQLAlchemy engine
    """
    if db_url == 'sqlite://':
        engine = create_engine(
            db_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={'check_same_thread': False},
        )
    else:
        engine = create_engine(db_url, echo=echo)

    @event.listens_for(engine, "connect")
    def configure_sqlite(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        dbapi_conn.create_function('casefold', 1, casefold, deterministic=True)

    Base.metadata.create_all(engine)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory whose objects stay readable after commit."""
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker):
    """
    Provide a transactional scope around a series of operations.

    Usage:
        with session_scope(factory) as session:
            session.add(book)
            # Automatically commits or rolls back
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
