"""
GameSwipe Backend: Database Session Management
===============================================

What:  Async SQLAlchemy engine construction, session factory, declarative base,
       and the per-request session dependency.
How:   `build_engine(settings)` creates a pooled async engine; `create_app()`
       stores the engine and its session factory on `app.state`. Each request
       gets one session whose transaction commits on success and rolls back on
       any error.
Who:   Route handlers receive sessions through `Depends(get_db_session)`.

Transaction model:
    One request == one transaction. Multi-step operations (room + member +
    session creation, room deletion + session revocation) never commit
    partially: any exception raised by the handler rolls the whole request
    back.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from gameswipe.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for migrations and
    the test-suite uses for `create_all`.
    """
    pass


# ── Engine Configuration ──────────────────────────────────────────────────
def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    PostgreSQL gets a sized connection pool. SQLite (tests, local runs) gets
    foreign keys switched on and driver-level BEGIN so that SAVEPOINTs nest
    inside the request transaction instead of committing it.
    """
    if settings.is_sqlite:
        engine = create_async_engine(
            settings.database_url,
            echo=settings.log_level == "DEBUG",
        )
        _enable_sqlite_transactions(engine)
        return engine

    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        echo=settings.log_level == "DEBUG",
    )


def _enable_sqlite_transactions(engine: AsyncEngine) -> None:
    # pysqlite/aiosqlite defer BEGIN until the first DML statement, which
    # breaks SAVEPOINT nesting. Hand transaction control to SQLAlchemy.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


# ── Session Factory ───────────────────────────────────────────────────────
def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: response models are built from ORM objects
    # after the handler returns.
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the app's session factory
        2. Yields it to the route handler and its dependencies
        3. On success: commits the transaction
        4. On error: rolls back, then re-raises for the exception handlers
        5. Always: closes the session (returns the connection to the pool)
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine(engine: AsyncEngine) -> None:
    """Closes all pooled connections; called from the lifespan shutdown hook."""
    await engine.dispose()
