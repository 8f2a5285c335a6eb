import os
import sqlite3
from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv


DEFAULT_DB_URL = "sqlite:///./movieshelf.db"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_db_url() -> str:
    load_dotenv()
    return os.getenv("DB_URL", DEFAULT_DB_URL)


def make_engine(db_url: str) -> Engine:
    '''
    Creates an SQLAlchemy engine for the given url. SQLite engines are shared across
    the request threadpool, in-memory SQLite databases live on a single connection.

    Parameters
    ----------
    db_url: str
        SQLAlchemy database url.

    Returns
    -------
    engine: Engine
        The configured engine.
    '''
    if not db_url.startswith("sqlite"):
        return create_engine(db_url, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if db_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(db_url, pool_pre_ping=True, **kwargs)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Create global DB engine
engine = make_engine(get_db_url())

# Create Session factory
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


# Base class for models
class Base(DeclarativeBase):
    pass


def get_db():
    # Create  DB session
    db = SessionLocal()
    try:
        # Return session
        yield db
    finally:
        # Close session on second call
        db.close()
