"""A small library schema with fixtures, shared by the unit tests."""

from typing import Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from datafixtures.fixtures.fixture import (
    DependentFixture,
    Fixture,
    FixtureGroup,
    OrderedFixture,
)


class Base(DeclarativeBase):
    pass


class Author(Base):
    __tablename__ = "authors"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True)


class Book(Base):
    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    author_id: Mapped[Optional[int]] = mapped_column(ForeignKey("authors.id"))


class Genre(Base):
    __tablename__ = "genres"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50))


class GenreFixtures(Fixture, OrderedFixture):
    async def load(self, session: AsyncSession) -> None:
        session.add_all([Genre(name="science fiction"), Genre(name="fantasy")])

    def get_order(self) -> int:
        return 1


class AuthorFixtures(Fixture, FixtureGroup):
    async def load(self, session: AsyncSession) -> None:
        for name in ("Ursula K. Le Guin", "Octavia E. Butler"):
            author = Author(name=name)
            session.add(author)
            self.add_reference(f"author-{name.split()[0].lower()}", author)

    @classmethod
    def get_groups(cls) -> list[str]:
        return ["library"]


class BookFixtures(Fixture, DependentFixture, FixtureGroup):
    async def load(self, session: AsyncSession) -> None:
        ursula = self.get_reference("author-ursula", Author)
        octavia = self.get_reference("author-octavia", Author)
        session.add_all(
            [
                Book(title="The Dispossessed", author_id=ursula.id),
                Book(title="Kindred", author_id=octavia.id),
            ]
        )

    def get_dependencies(self) -> list[type[Fixture]]:
        return [AuthorFixtures]

    @classmethod
    def get_groups(cls) -> list[str]:
        return ["library", "books"]
