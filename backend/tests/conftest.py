from __future__ import annotations

import sys
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Add backend folder to sys.path so `import receipt_keeper...` works in tests when running from backend root
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from receipt_keeper.core.config import Settings  # noqa: E402
from receipt_keeper.core.database import Base, enable_sqlite_foreign_keys  # noqa: E402
from receipt_keeper.models import tables  # noqa: E402,F401
from receipt_keeper.models.tables import User  # noqa: E402

from factories import make_user  # noqa: E402

TEST_SECRET = "test-secret"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    Session = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def alice(db) -> User:
    return await make_user(db, "alice@example.com", "Alice")


@pytest_asyncio.fixture
async def bob(db) -> User:
    return await make_user(db, "bob@example.com", "Bob")


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        ENVIRONMENT="test",
        JWT_SECRET=TEST_SECRET,
        BCRYPT_ROUNDS=4,
        STORAGE_BACKEND="filesystem",
        STORAGE_DIRECTORY=str(tmp_path / "storage"),
        SENTRY_DSN=None,
    )
