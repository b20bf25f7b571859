"""Database configuration and session management."""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from app.config import settings


engine_kwargs = {
    "echo": settings.DATABASE_ECHO,
    "pool_pre_ping": True,
}

if settings.DATABASE_URL.startswith("sqlite"):
    engine_kwargs.update(
        {
            "poolclass": StaticPool,
        }
    )
else:
    engine_kwargs.update(
        {
            "pool_size": 10,
            "max_overflow": 20,
        }
    )

# Create async engine
engine = create_async_engine(settings.DATABASE_URL, **engine_kwargs)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for models
Base = declarative_base()


async def get_db() -> AsyncSession:
    """Dependency for getting database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(bootstrap: Optional[bool] = None) -> None:
    """Initialize database (create tables) and seed the default admin."""
    import app.changelog.hooks  # noqa: F401  registers mappers and change-log listeners

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if bootstrap is None:
        bootstrap = settings.BOOTSTRAP_ON_STARTUP
    if not bootstrap:
        return

    from app.services.bootstrap_service import populate_admin_and_permissions

    async with AsyncSessionLocal() as session:
        await populate_admin_and_permissions(session)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
