import pytest

from datafixtures.cli.load_fixtures import LoadDataFixturesCommand
from datafixtures.fixtures.purger import ORMPurgerFactory
from datafixtures.main.config import Settings, set_settings
from datafixtures.main.container.container import Container, register_purger_factory
from tests.unittests.fixture_test_utils import MEMORY_URL
from tests.unittests.sample_fixtures import AuthorFixtures, BookFixtures, GenreFixtures


class ArchivePurgerFactory(ORMPurgerFactory):
    pass


@pytest.fixture
def container() -> Container:
    set_settings(
        Settings(
            database_url=MEMORY_URL,
            fixture_modules=["tests.unittests.sample_fixtures"],
        )
    )
    return Container()


@pytest.mark.asyncio
async def test_container_wires_command_from_settings(container):
    command = container.load_fixtures_command()

    try:
        assert isinstance(command, LoadDataFixturesCommand)
        assert {type(f) for f in command.fixtures_loader.get_fixtures()} == {
            AuthorFixtures,
            BookFixtures,
            GenreFixtures,
        }
        assert command.registry.get_manager().url == MEMORY_URL
        assert isinstance(command.purger_factories["default"], ORMPurgerFactory)
    finally:
        await command.registry.close()


@pytest.mark.asyncio
async def test_registry_and_loader_are_singletons(container):
    first = container.load_fixtures_command()
    second = container.load_fixtures_command()

    try:
        assert first is not second
        assert first.registry is second.registry
        assert first.fixtures_loader is second.fixtures_loader
    finally:
        await first.registry.close()


@pytest.mark.asyncio
async def test_register_purger_factory_adds_alias(container):
    factory = ArchivePurgerFactory()

    register_purger_factory(container, "archive", factory)
    command = container.load_fixtures_command()

    try:
        assert command.purger_factories["archive"] is factory
        assert "default" in command.purger_factories
    finally:
        await command.registry.close()
