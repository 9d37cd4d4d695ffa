"""Contracts for authoring data fixtures.

A fixture is a class whose ``load`` coroutine adds seed records to the
session it is given. Fixtures can share objects through the reference
repository, declare other fixtures they depend on, carry an explicit load
order, and belong to named groups:

    class UserFixtures(Fixture, FixtureGroup):
        async def load(self, session):
            admin = User(name="admin")
            session.add(admin)
            self.add_reference("admin-user", admin)

        @classmethod
        def get_groups(cls):
            return ["users"]

Ordering and dependencies are mutually exclusive on a single fixture.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from datafixtures.fixtures.references import ReferenceRepository

T = TypeVar("T")


class Fixture(ABC):
    references: Optional[ReferenceRepository] = None

    @abstractmethod
    async def load(self, session: AsyncSession) -> None: ...

    def set_reference_repository(self, references: ReferenceRepository) -> None:
        self.references = references

    def _repository(self) -> ReferenceRepository:
        if self.references is None:
            # Standalone use outside the executor
            self.references = ReferenceRepository()
        return self.references

    def set_reference(self, name: str, obj: Any) -> None:
        self._repository().set_reference(name, obj)

    def add_reference(self, name: str, obj: Any) -> None:
        self._repository().add_reference(name, obj)

    def get_reference(self, name: str, cls: Optional[type[T]] = None) -> T:
        return self._repository().get_reference(name, cls)

    def has_reference(self, name: str) -> bool:
        return self._repository().has_reference(name)


class DependentFixture(ABC):
    @abstractmethod
    def get_dependencies(self) -> list[type[Fixture]]:
        """Fixture classes that must be loaded before this one."""


class OrderedFixture(ABC):
    @abstractmethod
    def get_order(self) -> int:
        """Lower numbers load first. Fixtures without an order count as 0."""


class FixtureGroup(ABC):
    @classmethod
    @abstractmethod
    def get_groups(cls) -> list[str]: ...


def fixture_name(fixture: Fixture | type[Fixture]) -> str:
    cls = fixture if isinstance(fixture, type) else type(fixture)
    return f"{cls.__module__}.{cls.__qualname__}"
