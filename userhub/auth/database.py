"""
userhub - Database Configuration

SQLModel database setup with connection pooling.
Supports PostgreSQL (production) and SQLite (development, tests).

The engine owns the connection pool shared by all request workers.
It is created once at startup and disposed on shutdown.

Usage:
    from userhub.auth.database import get_engine, init_db

    engine = get_engine(settings.DATABASE_URL)
    init_db(engine)  # Creates tables
"""

from typing import Callable

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine


SessionFactory = Callable[[], Session]


def get_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create SQLAlchemy engine with appropriate configuration.

    Args:
        database_url: SQLAlchemy database URL
        echo: Log SQL statements

    Returns:
        SQLAlchemy Engine
    """
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if ":memory:" in database_url or database_url == "sqlite://":
            # A single shared connection keeps the in-memory database alive
            return create_engine(
                database_url,
                echo=echo,
                connect_args=connect_args,
                poolclass=StaticPool,
            )
        return create_engine(database_url, echo=echo, connect_args=connect_args)

    # PostgreSQL configuration with connection pooling
    return create_engine(
        database_url,
        echo=echo,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )


def init_db(engine: Engine) -> None:
    """
    Initialize database tables.

    Safe to call multiple times (uses CREATE IF NOT EXISTS).
    """
    # Import models to register them with SQLModel
    from userhub.auth.models import Account  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session_factory(engine: Engine) -> SessionFactory:
    """
    Create a session factory bound to engine.

    Returns:
        Callable that creates new database sessions
    """
    def session_factory() -> Session:
        return Session(engine, expire_on_commit=False)

    return session_factory
