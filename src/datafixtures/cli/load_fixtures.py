"""Load data fixtures into the database.

Fixtures are classes registered with the fixtures loader, either discovered
from the modules listed in FIXTURE_MODULES or added explicitly. Every run
appends: purging is disabled in this version, so --append, --purger,
--purge-exclusions and --purge-with-truncate are accepted but have no effect.

Usage:
    python -m datafixtures.cli.load_fixtures [--group GROUP ...] [--em NAME] [--shard ID]
"""

import argparse
import asyncio
import sys
import warnings
from typing import TYPE_CHECKING, Mapping, Optional, Sequence

from rich.markup import escape

from datafixtures.cli.console import ConsoleStyle
from datafixtures.database.database import ShardedSessionManager
from datafixtures.database.registry import ManagerRegistry
from datafixtures.fixtures.executor import ORMExecutor
from datafixtures.fixtures.loader import FixturesLoader
from datafixtures.fixtures.purger import (
    PURGER_FACTORY_TAG,
    ORMPurgerFactory,
    PurgerFactory,
)
from datafixtures.main.command_context import command_scope, update_command_context
from datafixtures.main.config import get_settings
from datafixtures.main.exceptions import (
    FixturesError,
    ShardingNotSupportedError,
    resolve_exception,
)
from datafixtures.main.logging import get_logger

if TYPE_CHECKING:
    from datafixtures.main.container.container import Container

logger = get_logger(__name__)

COMMAND_NAME = "fixtures:load"

HELP = f"""\
The {COMMAND_NAME} command loads data fixtures from your application:

  python -m datafixtures.cli.load_fixtures

Fixtures are Fixture subclasses registered with the fixtures loader, either
found in the modules listed in FIXTURE_MODULES or added explicitly.

This version does not purge the database. Therefore the append and purger
options have no effect. Fixtures are always appended.

To execute only fixtures that live in a certain group, use:

  python -m datafixtures.cli.load_fixtures --group=group1
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=COMMAND_NAME,
        description="Load data fixtures to your database",
        epilog=HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--append",
        action="store_true",
        help="Append the data fixtures instead of deleting all data from the database first (no effect in this version).",
    )
    parser.add_argument(
        "--group",
        action="append",
        default=[],
        metavar="GROUP",
        help="Only load fixtures that belong to this group",
    )
    parser.add_argument(
        "--em",
        default=None,
        help="The entity manager to use for this command.",
    )
    parser.add_argument(
        "--purger",
        default="default",
        help="The purger to use for this command (no effect in this version)",
    )
    parser.add_argument(
        "--purge-exclusions",
        action="append",
        default=[],
        metavar="TABLE",
        help="List of database tables to ignore while purging (no effect in this version)",
    )
    parser.add_argument(
        "--shard",
        type=int,
        default=None,
        help="The shard connection to use for this command.",
    )
    parser.add_argument(
        "--purge-with-truncate",
        action="store_true",
        help="Purge data by using a database-level TRUNCATE statement (no effect in this version)",
    )
    return parser


class LoadDataFixturesCommand:
    name = COMMAND_NAME
    description = "Load data fixtures to your database"

    def __init__(
        self,
        fixtures_loader: FixturesLoader,
        registry: Optional[ManagerRegistry] = None,
        purger_factories: Optional[Mapping[str, PurgerFactory]] = None,
    ):
        if registry is None:
            warnings.warn(
                f"Argument 2 of {type(self).__name__}.__init__() expects an instance of"
                f" {ManagerRegistry.__name__}, not passing it will raise a TypeError in"
                " datafixtures 4.0.",
                DeprecationWarning,
                stacklevel=2,
            )
            registry = ManagerRegistry.from_settings(get_settings())

        self.fixtures_loader = fixtures_loader
        self.registry = registry
        self.purger_factories = dict(purger_factories or {})

    async def run(self, argv: Optional[Sequence[str]] = None, ui: Optional[ConsoleStyle] = None) -> int:
        options = build_parser().parse_args(argv)
        return await self.execute(options, ui or ConsoleStyle())

    async def execute(self, options: argparse.Namespace, ui: ConsoleStyle) -> int:
        manager = self.registry.get_manager(options.em)
        update_command_context(entity_manager=manager.name)

        if not options.append:
            ui.text("This version will always append and never purge")

        if options.shard:
            if not isinstance(manager, ShardedSessionManager):
                raise ShardingNotSupportedError(
                    f'Connection of entity manager "{options.em or ""}" must implement'
                    " shards configuration."
                )

            manager.connect_shard(options.shard)
            update_command_context(shard=manager.active_shard_id)

        groups = options.group or []
        fixtures = self.fixtures_loader.get_fixtures(groups)
        if not fixtures:
            message = "Could not find any fixture services to load"

            if groups:
                message += f" in the groups ({', '.join(groups)})"

            ui.error(message + ".")

            return 1

        if options.purger not in self.purger_factories:
            ui.warning(
                f'Could not find purger factory with alias "{options.purger}", using default'
                f" purger. Did you forget to register the"
                f" {PurgerFactory.__module__}.{PurgerFactory.__qualname__} implementation"
                f' with tag "{PURGER_FACTORY_TAG}" and alias "{options.purger}"?'
            )
            factory: PurgerFactory = ORMPurgerFactory()
        else:
            factory = self.purger_factories[options.purger]

        # Purging is removed, the factory is resolved but never asked for a purger
        logger.debug(
            f"Resolved purger factory {type(factory).__name__}",
            extra={"purger": options.purger},
        )

        executor = ORMExecutor(manager)
        executor.set_logger(
            lambda message: ui.text(f"  [comment]>[/comment] [info]{escape(message)}[/info]")
        )

        # Always append, never purge
        await executor.execute(fixtures, append=True)

        return 0


async def _run(options: argparse.Namespace, ui: ConsoleStyle, container: Optional["Container"]) -> int:
    if container is None:
        from datafixtures.main.container.container import Container

        container = Container()

    command = container.load_fixtures_command()
    try:
        return await command.execute(options, ui)
    finally:
        await command.registry.close()


def main(argv: Optional[Sequence[str]] = None, container: Optional["Container"] = None) -> int:
    """Entry point for CLI script."""
    options = build_parser().parse_args(argv)
    ui = ConsoleStyle()

    with command_scope(command=COMMAND_NAME, entity_manager=options.em, shard=options.shard):
        try:
            return asyncio.run(_run(options, ui, container))
        except KeyboardInterrupt:
            logger.info("Fixture loading interrupted by user")
            return 130
        except FixturesError as e:
            exit_code, message, error_code = resolve_exception(e)
            ui.error(message)
            logger.error(
                f"Fixture loading failed: {message}",
                extra={"error_code": error_code.value, "exit_code": exit_code},
            )
            return exit_code
        except Exception as e:
            logger.error(f"Fixture loading failed: {e}", exc_info=True)
            return 1


if __name__ == "__main__":
    sys.exit(main())
