from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from pgsearch.config import get_settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for searchable models."""


def create_engine(url: str | None = None) -> AsyncEngine:
    """Build an async engine, defaulting to the configured database URL."""
    return create_async_engine(
        url or get_settings().async_database_url,
        echo=False,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
