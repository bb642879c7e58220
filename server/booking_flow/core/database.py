"""Database configuration for persisted booking drafts."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from .config import settings


def create_engine_for(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine, sharing one connection for SQLite URLs."""
    is_sqlite = "sqlite" in database_url
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        # One shared connection keeps in-memory SQLite databases alive
        poolclass=StaticPool if is_sqlite else None,
        connect_args={"check_same_thread": False} if is_sqlite else {},
    )


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to an engine."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_engine_for(settings.database_url, echo=settings.debug)

async_session_factory = create_session_factory(engine)

# Create declarative base for models
Base = declarative_base()


async def init_db(bind: AsyncEngine = engine) -> None:
    """Initialize the database by creating all tables."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(bind: AsyncEngine = engine) -> None:
    """Close database connections."""
    await bind.dispose()
