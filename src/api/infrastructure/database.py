"""Database infrastructure for API layer."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from loguru import logger
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.api.domain.models import Base


class Database:
    """Database connection manager."""

    def __init__(self, async_database_url: str):
        """
        Initialize database connection.

        Args:
            async_database_url: Asynchronous database URL
                (postgresql+asyncpg://... in production, sqlite+aiosqlite:// in tests)
        """
        self.async_database_url = async_database_url

        url = make_url(async_database_url)
        if url.get_backend_name() == "sqlite":
            # One shared connection so in-memory databases survive across sessions
            engine_kwargs = {"poolclass": StaticPool} if url.database in (None, "", ":memory:") else {}
        else:
            engine_kwargs = {
                "pool_pre_ping": True,  # Verify connections before using
                "pool_size": 10,
                "max_overflow": 5,
                "pool_recycle": 3600,  # Recycle connections after 1 hour
                "pool_timeout": 30,
            }

        self.async_engine = create_async_engine(async_database_url, echo=False, **engine_kwargs)
        self.async_session_factory = async_sessionmaker(
            bind=self.async_engine,
            class_=AsyncSession,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

        logger.info(f"Database engine configured for {self.async_engine.url.render_as_string(hide_password=True)}")

    async def create_all(self):
        """Create all tables."""
        logger.info("Creating database tables...")
        async with self.async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✓ Database tables created")

    @asynccontextmanager
    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get an asynchronous database session (commits on success)."""
        async with self.async_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self):
        """Close database connections."""
        await self.async_engine.dispose()
        logger.info("✓ Database connections closed")


# Dependency for FastAPI
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency to get database session."""
    from src.api.infrastructure.container import get_container

    container = get_container()
    db = container.database()

    async with db.get_async_session() as session:
        yield session
