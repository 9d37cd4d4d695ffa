from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable

from datafixtures.database.database import DatabaseSessionManager
from datafixtures.main.logging import get_logger

logger = get_logger(__name__)

# Alias under which custom purger factories are registered with the container
PURGER_FACTORY_TAG = "datafixtures.purger_factory"


class PurgeMode(str, Enum):
    DELETE = "delete"
    TRUNCATE = "truncate"


class Purger(ABC):
    @abstractmethod
    async def purge(self) -> None: ...


class ORMPurger(Purger):
    """Purger bound to one entity manager.

    Purging is disabled in this release: ``purge`` records the request and
    leaves every table untouched. Fixtures are always appended.
    """

    def __init__(
        self,
        manager: DatabaseSessionManager,
        excluded: Iterable[str] = (),
        purge_mode: PurgeMode = PurgeMode.DELETE,
    ):
        self.manager = manager
        self.excluded = list(excluded)
        self.purge_mode = purge_mode

    async def purge(self) -> None:
        logger.info(
            "Purging is disabled, no data was removed",
            extra={
                "entity_manager": self.manager.name,
                "purge_mode": self.purge_mode.value,
                "excluded_tables": self.excluded,
            },
        )


class PurgerFactory(ABC):
    @abstractmethod
    def create_for_entity_manager(
        self,
        em_name: str | None,
        manager: DatabaseSessionManager,
        excluded: Iterable[str] = (),
        purge_with_truncate: bool = False,
    ) -> Purger: ...


class ORMPurgerFactory(PurgerFactory):
    def create_for_entity_manager(
        self,
        em_name: str | None,
        manager: DatabaseSessionManager,
        excluded: Iterable[str] = (),
        purge_with_truncate: bool = False,
    ) -> Purger:
        return ORMPurger(
            manager,
            excluded=excluded,
            purge_mode=PurgeMode.TRUNCATE if purge_with_truncate else PurgeMode.DELETE,
        )
