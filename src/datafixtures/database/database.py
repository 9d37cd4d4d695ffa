import contextlib
from typing import AsyncIterator, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from datafixtures.main.exceptions import (
    DatabaseNotInitializedError,
    ShardNotFoundError,
    ShardSwitchError,
)
from datafixtures.main.logging import get_logger

logger = get_logger(__name__)


class DatabaseSessionManager:
    """A managed database connection: one engine plus its session factory.

    This is what the fixtures command calls an entity manager.
    """

    def __init__(self, name: str = "default", pool_size: int = 20, max_overflow: int = 10):
        self.name = name
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._url: Optional[str] = None
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None
        self._open_sessions = 0

    @property
    def url(self) -> Optional[str]:
        return self._url

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise DatabaseNotInitializedError(
                f'Entity manager "{self.name}" is not initialized'
            )
        return self._engine

    @property
    def in_session(self) -> bool:
        return self._open_sessions > 0

    def init(self, host: str):
        # If already initialized, don't reinitialize (important for tests)
        if self._engine is not None:
            logger.debug("Database already initialized, skipping reinitialization")
            return

        self._url = host
        self._engine = self._create_engine(host)
        self._sessionmaker = self._build_sessionmaker(self._engine)
        logger.debug(
            f"Entity manager '{self.name}' connected",
            extra={"entity_manager": self.name, "backend": make_url(host).get_backend_name()},
        )

    def _create_engine(self, host: str) -> AsyncEngine:
        # sqlite uses a static/singleton pool that rejects sizing options
        if make_url(host).get_backend_name() == "sqlite":
            return create_async_engine(host)

        return create_async_engine(
            host, pool_size=self._pool_size, max_overflow=self._max_overflow
        )

    def _build_sessionmaker(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return async_sessionmaker(
            autocommit=False,
            bind=engine,
            autobegin=False,
            expire_on_commit=False,
        )

    async def close(self):
        if self._engine is None:
            logger.debug("DatabaseSessionManager already closed or not initialized")
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.debug(f"Entity manager '{self.name}' closed")

    def create_session(self) -> AsyncSession:
        """Create a raw AsyncSession without context manager wrapper.

        WARNING: The caller is responsible for closing this session!
        """
        if self._sessionmaker is None:
            raise DatabaseNotInitializedError(
                f'Entity manager "{self.name}" is not initialized'
            )
        return self._sessionmaker()

    @contextlib.asynccontextmanager
    async def connect(self) -> AsyncIterator[AsyncConnection]:
        async with self.engine.begin() as connection:
            try:
                yield connection
            except Exception:
                await connection.rollback()
                raise

    @contextlib.asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        session = self.create_session()
        self._open_sessions += 1
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            self._open_sessions -= 1
            await session.close()


class ShardedSessionManager(DatabaseSessionManager):
    """Entity manager whose connection can be routed to one of several shards.

    Shard 0 is the global connection given to ``init``. Other shards are
    configured up front by id and connected lazily on first selection.
    """

    GLOBAL_SHARD_ID = 0

    def __init__(
        self,
        name: str = "default",
        shards: Optional[dict[int, str]] = None,
        pool_size: int = 20,
        max_overflow: int = 10,
    ):
        super().__init__(name=name, pool_size=pool_size, max_overflow=max_overflow)
        self._shard_urls: dict[int, str] = {int(k): v for k, v in (shards or {}).items()}
        self._engines: dict[int, AsyncEngine] = {}
        self._active_shard_id = self.GLOBAL_SHARD_ID

    @property
    def active_shard_id(self) -> int:
        return self._active_shard_id

    def get_shard_ids(self) -> list[int]:
        return [self.GLOBAL_SHARD_ID, *sorted(self._shard_urls)]

    def init(self, host: str):
        super().init(host)
        self._engines.setdefault(self.GLOBAL_SHARD_ID, self.engine)

    def connect_shard(self, shard_id: Optional[int] = None) -> bool:
        """Route the connection to ``shard_id``.

        Returns True when the active shard changed, False when it was
        already selected.
        """
        shard_id = self.GLOBAL_SHARD_ID if shard_id is None else int(shard_id)

        if shard_id == self._active_shard_id:
            return False

        if self.in_session:
            raise ShardSwitchError("Cannot switch shard while a session is active.")

        if shard_id != self.GLOBAL_SHARD_ID and shard_id not in self._shard_urls:
            raise ShardNotFoundError(
                f'Shard "{shard_id}" is not configured for entity manager "{self.name}".'
            )

        if self._engine is None:
            raise DatabaseNotInitializedError(
                f'Entity manager "{self.name}" is not initialized'
            )

        engine = self._engines.get(shard_id)
        if engine is None:
            engine = self._create_engine(self._shard_urls[shard_id])
            self._engines[shard_id] = engine

        self._engine = engine
        self._sessionmaker = self._build_sessionmaker(engine)
        self._active_shard_id = shard_id

        logger.debug(
            f"Entity manager '{self.name}' switched to shard {shard_id}",
            extra={"entity_manager": self.name, "shard": shard_id},
        )
        return True

    async def close(self):
        if not self._engines:
            await super().close()
            return

        for engine in self._engines.values():
            await engine.dispose()
        self._engines = {}
        self._engine = None
        self._sessionmaker = None
        self._active_shard_id = self.GLOBAL_SHARD_ID
        logger.debug(f"Entity manager '{self.name}' closed")
