"""Async engine, session factory and migration helpers for the inbox store."""

import asyncio
from collections.abc import AsyncGenerator
from pathlib import Path

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from alembic.command import upgrade
from alembic.config import Config
from inbox_api.config import settings

Base = declarative_base()


def build_engine(db_url: str) -> AsyncEngine:
    """Create an async engine for ``db_url``.

    SQLite (used by the test suite through aiosqlite) gets a ``NullPool`` so
    every session opens its own connection to the database file.
    """
    if db_url.startswith("sqlite"):
        return create_async_engine(db_url, poolclass=NullPool, echo=False)
    return create_async_engine(db_url, echo=False, pool_pre_ping=True)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine(settings.database_url)
AsyncSessionLocal = build_sessionmaker(engine)


def _alembic_config(db_url: str) -> Config:
    root = Path(__file__).resolve().parents[1]
    config = Config(str(root / "alembic.ini"))
    config.set_main_option("script_location", str(root / "alembic"))
    config.set_main_option("sqlalchemy.url", db_url)
    # Keep structlog's handlers; alembic.ini's logging section is for the CLI.
    config.attributes["app_logging"] = True
    return config


def upgrade_schema(db_url: str) -> None:
    """Apply every pending inbox migration to ``db_url``."""
    upgrade(_alembic_config(db_url), "head")


async def init_db(db_url: str | None = None) -> None:
    """Bring the inbox schema to head.

    Runs in a worker thread because the alembic env starts its own event loop.
    """
    await asyncio.to_thread(upgrade_schema, db_url or settings.database_url)


async def dispose_db() -> None:
    await engine.dispose()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a request-scoped session.

    Mutating repository calls commit their own statement; the trailing commit
    here only closes out read transactions.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
