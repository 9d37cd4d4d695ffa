from typing import Mapping, Optional

from datafixtures.database.database import DatabaseSessionManager, ShardedSessionManager
from datafixtures.main.config import DEFAULT_MANAGER, Settings
from datafixtures.main.exceptions import UnknownManagerError
from datafixtures.main.logging import get_logger

logger = get_logger(__name__)


class ManagerRegistry:
    """Named entity managers, one of which is the default."""

    def __init__(
        self,
        managers: Mapping[str, DatabaseSessionManager],
        default_manager: str = DEFAULT_MANAGER,
    ):
        self._managers = dict(managers)
        self._default_manager = default_manager

    @classmethod
    def from_settings(cls, settings: Settings) -> "ManagerRegistry":
        managers: dict[str, DatabaseSessionManager] = {}

        for name, url in settings.manager_urls.items():
            shards = settings.database_shards.get(name)
            manager: DatabaseSessionManager
            if shards:
                manager = ShardedSessionManager(
                    name=name,
                    shards=shards,
                    pool_size=settings.pool_size,
                    max_overflow=settings.max_overflow,
                )
            else:
                manager = DatabaseSessionManager(
                    name=name,
                    pool_size=settings.pool_size,
                    max_overflow=settings.max_overflow,
                )
            manager.init(url)
            managers[name] = manager

        logger.debug(
            f"Registered {len(managers)} entity manager(s)",
            extra={"managers": sorted(managers)},
        )
        return cls(managers, default_manager=settings.default_manager)

    def get_default_manager_name(self) -> str:
        return self._default_manager

    def get_manager_names(self) -> list[str]:
        return list(self._managers)

    def get_manager(self, name: Optional[str] = None) -> DatabaseSessionManager:
        if name is None:
            name = self._default_manager

        try:
            return self._managers[name]
        except KeyError:
            raise UnknownManagerError(f'Entity manager named "{name}" does not exist.') from None

    def get_managers(self) -> dict[str, DatabaseSessionManager]:
        return dict(self._managers)

    async def close(self):
        for manager in self._managers.values():
            await manager.close()
