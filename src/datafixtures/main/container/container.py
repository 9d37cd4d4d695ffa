from dependency_injector import containers, providers

from datafixtures.cli.load_fixtures import LoadDataFixturesCommand
from datafixtures.database.registry import ManagerRegistry
from datafixtures.fixtures.loader import FixturesLoader
from datafixtures.fixtures.purger import ORMPurgerFactory, PurgerFactory
from datafixtures.main.config import get_settings


class Container(containers.DeclarativeContainer):
    settings = providers.Callable(get_settings)

    manager_registry = providers.Singleton(
        ManagerRegistry.from_settings,
        settings=settings,
    )

    fixtures_loader = providers.Singleton(
        FixturesLoader.from_modules,
        module_names=settings.provided.fixture_modules,
    )

    # Purger factories by alias, "default" is always available
    purger_factories = providers.Dict(
        default=providers.Singleton(ORMPurgerFactory),
    )

    load_fixtures_command = providers.Factory(
        LoadDataFixturesCommand,
        fixtures_loader=fixtures_loader,
        registry=manager_registry,
        purger_factories=purger_factories,
    )


def register_purger_factory(container: Container, alias: str, factory: PurgerFactory) -> None:
    """Make ``factory`` selectable through ``--purger <alias>``."""
    container.purger_factories.add_kwargs(**{alias: providers.Object(factory)})
