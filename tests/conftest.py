"""Pytest configuration and fixtures."""
import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_app.db")
os.environ.setdefault("BOOTSTRAP_ON_STARTUP", "false")
os.environ.setdefault("LOG_FORMAT", "text")

from app.main import app  # noqa: E402
from app.changelog import hooks  # noqa: E402,F401
from app.changelog.context import acting_as  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.models.changelog import ChangeLog  # noqa: E402
from app.models.inventory import Category, Department  # noqa: E402
from app.services.bootstrap_service import populate_admin_and_permissions  # noqa: E402
from app.utils.security import create_access_token  # noqa: E402

ACTOR_ID = 7


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path):
    """Session factory bound to a fresh file-backed SQLite database."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession):
    """Async client for the app with the database dependency overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession):
    """Seeded permissions, roles and the default admin."""
    return await populate_admin_and_permissions(db_session)


@pytest.fixture
def auth_headers(admin_user):
    """Get authentication headers for the admin."""
    token = create_access_token({"sub": str(admin_user.id), "username": admin_user.username})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def department(db_session: AsyncSession) -> Department:
    with acting_as(db_session, ACTOR_ID):
        department_obj = Department(name="Kitchen")
        db_session.add(department_obj)
        await db_session.commit()
    return department_obj


@pytest_asyncio.fixture
async def category(db_session: AsyncSession) -> Category:
    with acting_as(db_session, ACTOR_ID):
        category_obj = Category(name="Utensils")
        db_session.add(category_obj)
        await db_session.commit()
    return category_obj


@pytest.fixture
def fetch_logs(db_session: AsyncSession):
    """Return change logs matching the given association columns, oldest first."""

    async def _fetch(**association):
        result = await db_session.execute(
            select(ChangeLog)
            .filter_by(**association)
            .order_by(ChangeLog.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    return _fetch
