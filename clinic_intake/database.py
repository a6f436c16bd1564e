"""
Database connection and session management.
Provides the SQLAlchemy engine and session factory used by the SQL repository.
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


def create_db_engine(database_url: str) -> Engine:
    """
    Create a SQLAlchemy engine for the configured database.

    SQLite connections are shared across threads because FastAPI runs sync
    work in a threadpool; in-memory SQLite additionally needs a single pooled
    connection so every session sees the same database.

    Args:
        database_url: SQLAlchemy connection string

    Returns:
        Engine: Database engine
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create session factory for database sessions"""
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)
