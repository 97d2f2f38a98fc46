"""Database session factory setup."""

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """Turn on FK enforcement (cascade deletes) and WAL for every new SQLite connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def create_engine(db_url: str) -> AsyncEngine:
    """Create async engine for the application database.

    Args:
        db_url: SQLAlchemy URL (sqlite+aiosqlite:///path/to/lexica.db)

    Returns:
        Async engine with SQLite connection pragmas installed
    """
    engine = create_async_engine(
        db_url,
        pool_pre_ping=True,  # Verify connections before using
        echo=False,  # Don't log SQL queries (use structlog instead)
    )

    if engine.dialect.name == "sqlite":
        sync_engine: Engine = engine.sync_engine
        event.listen(sync_engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def setup_db_session(db_url: str) -> async_sessionmaker[AsyncSession]:
    """Create async database session factory.

    Args:
        db_url: SQLAlchemy URL (sqlite+aiosqlite:///path/to/lexica.db)

    Returns:
        Async session factory for creating database sessions
    """
    engine = create_engine(db_url)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Prevent lazy loading issues after commit
    )

    return session_factory


async def create_schema(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Create all tables that do not exist yet.

    Used on first launch and in tests. Schema changes after the initial release
    go through Alembic migrations.
    """
    # Register all entities with SQLModel metadata
    import lexica.models  # noqa: F401

    engine = session_factory.kw["bind"]
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
