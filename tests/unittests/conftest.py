import pytest

from datafixtures.database.database import DatabaseSessionManager
from datafixtures.database.registry import ManagerRegistry
from datafixtures.main.config import Settings, reset_settings
from tests.unittests.fixture_test_utils import MEMORY_URL, CapturedConsole
from tests.unittests.sample_fixtures import Base


@pytest.fixture(autouse=True)
def clean_settings():
    yield
    reset_settings()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with an in-memory default manager, independent of .env."""
    return Settings(
        database_url=MEMORY_URL,
        database_managers={},
        default_manager="default",
        database_shards={},
        fixture_modules=[],
    )


@pytest.fixture
async def manager():
    """Entity manager on an in-memory SQLite database with the sample schema."""
    manager = DatabaseSessionManager(name="default")
    manager.init(MEMORY_URL)

    async with manager.connect() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield manager

    await manager.close()


@pytest.fixture
async def registry(manager) -> ManagerRegistry:
    return ManagerRegistry({"default": manager})


@pytest.fixture
def console() -> CapturedConsole:
    return CapturedConsole()
