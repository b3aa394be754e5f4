"""Database connection and session management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncGenerator
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from employee_payroll.models import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from employee_payroll.config import Settings


class Database:
    """Engine and session factory, constructed explicitly and passed around."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> Database:
        """Create a database from application settings."""
        kwargs: dict = {"echo": False, "pool_pre_ping": True}
        if settings.database_url.startswith("postgresql"):
            kwargs.update(pool_size=10, max_overflow=20)
        return cls(create_async_engine(settings.database_url, **kwargs))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create all tables that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def acquire_cycle_lock(session: AsyncSession, payroll_cycle_id: UUID) -> bool:
    """Acquire a transaction-scoped advisory lock for a payroll cycle.

    The lock is released automatically when the transaction commits or rolls
    back. Returns True if acquired, False if another transaction holds it.
    Dialects without advisory locks always return True.
    """
    if session.get_bind().dialect.name != "postgresql":
        return True

    result = await session.execute(
        text("SELECT pg_try_advisory_xact_lock(hashtext(:cycle_key))"),
        {"cycle_key": f"payroll_cycle:{payroll_cycle_id}"},
    )
    return bool(result.scalar())
