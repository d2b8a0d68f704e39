"""Async engine and per-request session. Postgres (asyncpg) in production, SQLite (aiosqlite) locally."""
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from photobank.core.config import get_settings
from photobank.db.models import Base


def _engine_options(database_url: str, echo: bool) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": echo}
    if make_url(database_url).get_backend_name() != "sqlite":
        # Drop connections the server closed while idle
        options["pool_pre_ping"] = True
    return options


settings = get_settings()
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url, settings.debug))
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; committed on success, rolled back when the handler raises."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the tables directly. Used by the seed script; deployments run Alembic."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
