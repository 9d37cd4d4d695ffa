from typing import Callable, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from datafixtures.database.database import DatabaseSessionManager
from datafixtures.fixtures.fixture import Fixture, OrderedFixture, fixture_name
from datafixtures.fixtures.purger import Purger
from datafixtures.fixtures.references import ReferenceRepository
from datafixtures.main.exceptions import PurgerNotSetError
from datafixtures.main.logging import get_logger

logger = get_logger(__name__)


class ORMExecutor:
    """Loads fixtures through one entity manager inside a single transaction.

    Either every fixture is persisted or, when any of them raises, nothing is.
    """

    def __init__(self, manager: DatabaseSessionManager, purger: Optional[Purger] = None):
        self.manager = manager
        self.purger = purger
        self.reference_repository = ReferenceRepository()
        self._logger: Optional[Callable[[str], None]] = None

    def set_purger(self, purger: Purger) -> None:
        self.purger = purger

    def set_logger(self, logger_callback: Callable[[str], None]) -> None:
        self._logger = logger_callback

    def log(self, message: str) -> None:
        if self._logger is not None:
            self._logger(message)

    async def purge(self) -> None:
        if self.purger is None:
            raise PurgerNotSetError("No purger has been set.")

        self.log("purging database")
        await self.purger.purge()

    async def load(self, session: AsyncSession, fixture: Fixture) -> None:
        prefix = ""
        if isinstance(fixture, OrderedFixture):
            prefix = f"[{fixture.get_order()}] "
        self.log(f"loading {prefix}{fixture_name(fixture)}")

        fixture.set_reference_repository(self.reference_repository)
        await fixture.load(session)
        await session.flush()

    async def execute(self, fixtures: Iterable[Fixture], append: bool = False) -> None:
        fixtures = list(fixtures)
        logger.info(
            f"Loading {len(fixtures)} fixture(s) into '{self.manager.name}'",
            extra={"entity_manager": self.manager.name, "append": append},
        )

        async with self.manager.session() as session, session.begin():
            if not append:
                await self.purge()

            for fixture in fixtures:
                await self.load(session, fixture)

        logger.info(
            f"Loaded {len(fixtures)} fixture(s) into '{self.manager.name}'",
            extra={"entity_manager": self.manager.name},
        )
