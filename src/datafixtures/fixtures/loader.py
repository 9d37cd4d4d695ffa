import importlib
import inspect
from typing import Iterable, Optional, Sequence, Union

from datafixtures.fixtures.fixture import (
    DependentFixture,
    Fixture,
    FixtureGroup,
    OrderedFixture,
    fixture_name,
)
from datafixtures.main.exceptions import (
    CircularReferenceError,
    FixturesError,
    FixtureDependencyError,
    FixtureNotRegisteredError,
    InvalidFixtureError,
)
from datafixtures.main.logging import get_logger

logger = get_logger(__name__)

FixtureEntry = Union[Fixture, tuple[Fixture, Iterable[str]]]


class FixturesLoader:
    """Registry of fixture instances, one per class, with group filtering.

    Every fixture belongs to a group named after its class, plus any groups
    given at registration time or returned by ``FixtureGroup.get_groups``.
    """

    def __init__(self):
        # Everything registered, whether or not it has been added yet
        self._loaded: dict[type[Fixture], Fixture] = {}
        # Added fixtures, in insertion order
        self._fixtures: dict[type[Fixture], Fixture] = {}
        self._groups: dict[str, set[type[Fixture]]] = {}
        self._order_by_number = False
        self._order_by_dependencies = False

    @classmethod
    def from_modules(cls, module_names: Iterable[str]) -> "FixturesLoader":
        loader = cls()
        discovered: list[Fixture] = []
        for module_name in module_names:
            discovered.extend(loader.discover(module_name))

        loader.add_fixtures(discovered)
        return loader

    def discover(self, module_name: str) -> list[Fixture]:
        """Instantiate every concrete Fixture subclass defined in a module."""
        module = importlib.import_module(module_name)

        fixtures = []
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if obj.__module__ != module.__name__:
                continue
            if not issubclass(obj, Fixture) or inspect.isabstract(obj):
                continue
            fixtures.append(obj())

        logger.debug(
            f"Discovered {len(fixtures)} fixture(s) in {module_name}",
            extra={"fixtures": [fixture_name(f) for f in fixtures]},
        )
        return fixtures

    def load_from_module(self, module_name: str) -> int:
        fixtures = self.discover(module_name)
        self.add_fixtures(fixtures)
        return len(fixtures)

    def add_fixtures(self, entries: Iterable[FixtureEntry]) -> None:
        """Register several fixtures at once.

        All entries are made available before any of them is added, so a
        fixture may depend on one registered later in the same call.
        """
        normalized: list[tuple[Fixture, Sequence[str]]] = []
        for entry in entries:
            if isinstance(entry, tuple):
                fixture, groups = entry
                normalized.append((fixture, list(groups)))
            else:
                normalized.append((entry, []))

        for fixture, _ in normalized:
            self._loaded[type(fixture)] = fixture

        for fixture, groups in normalized:
            self.add_fixture(fixture, groups)

    def add_fixture(self, fixture: Fixture, groups: Iterable[str] = ()) -> None:
        cls = type(fixture)
        self._loaded[cls] = fixture

        self._add_group_mapping(cls, cls.__name__)
        for group in groups:
            self._add_group_mapping(cls, group)
        if isinstance(fixture, FixtureGroup):
            for group in fixture.get_groups():
                self._add_group_mapping(cls, group)

        self._add(fixture)

    def _add_group_mapping(self, cls: type[Fixture], group: str) -> None:
        self._groups.setdefault(group, set()).add(cls)

    def _add(self, fixture: Fixture) -> None:
        cls = type(fixture)
        if cls in self._fixtures:
            return

        if isinstance(fixture, OrderedFixture) and isinstance(fixture, DependentFixture):
            raise InvalidFixtureError(
                f"Class {fixture_name(cls)} can't implement both OrderedFixture and"
                " DependentFixture at the same time."
            )

        if isinstance(fixture, OrderedFixture):
            self._fixtures[cls] = fixture
            self._order_by_number = True
            return

        if not isinstance(fixture, DependentFixture):
            self._fixtures[cls] = fixture
            return

        dependencies = fixture.get_dependencies()
        if cls in dependencies:
            raise InvalidFixtureError(
                f"Class {fixture_name(cls)} can't have itself as a dependency"
            )
        resolved = [self._create_fixture(dependency) for dependency in dependencies]

        # Registered before its dependencies so cycles terminate; a failure
        # further down the graph unregisters it again.
        self._fixtures[cls] = fixture
        try:
            for dependency in resolved:
                self._add(dependency)
        except FixturesError:
            del self._fixtures[cls]
            raise

        self._order_by_dependencies = True

    def _create_fixture(self, cls: type) -> Fixture:
        if not (isinstance(cls, type) and issubclass(cls, Fixture)):
            raise InvalidFixtureError(f"{cls!r} is not a Fixture class")

        if cls not in self._loaded:
            raise FixtureNotRegisteredError(
                f'The "{fixture_name(cls)}" fixture class is trying to be loaded, but is not'
                " available. Make sure this class is registered with the fixtures loader."
            )
        return self._loaded[cls]

    def get_fixture(self, cls: type[Fixture]) -> Fixture:
        if cls not in self._fixtures:
            raise FixtureNotRegisteredError(f'Fixture "{fixture_name(cls)}" is not registered.')
        return self._fixtures[cls]

    def get_groups(self) -> dict[str, list[str]]:
        return {
            group: sorted(fixture_name(cls) for cls in classes)
            for group, classes in self._groups.items()
        }

    def get_fixtures(self, groups: Optional[Iterable[str]] = None) -> list[Fixture]:
        """Return fixtures in load order, optionally limited to some groups."""
        fixtures = self._ordered_fixtures()
        groups = list(groups or [])
        if not groups:
            return fixtures

        filtered: dict[type[Fixture], Fixture] = {}
        for fixture in fixtures:
            cls = type(fixture)
            if any(cls in self._groups.get(group, ()) for group in groups):
                filtered[cls] = fixture

        for fixture in filtered.values():
            self._validate_dependencies(filtered, fixture)

        return list(filtered.values())

    def _validate_dependencies(
        self, fixtures: dict[type[Fixture], Fixture], fixture: Fixture
    ) -> None:
        if not isinstance(fixture, DependentFixture):
            return

        for dependency in fixture.get_dependencies():
            if dependency not in fixtures:
                raise FixtureDependencyError(
                    f'Fixture "{fixture_name(dependency)}" was declared as a dependency for'
                    f' fixture "{fixture_name(fixture)}", but it was not included in any of'
                    " the loaded fixture groups."
                )

    def _ordered_fixtures(self) -> list[Fixture]:
        fixtures = list(self._fixtures.values())

        if self._order_by_number:
            # sorted() is stable, unordered fixtures keep their relative position
            fixtures = sorted(
                fixtures,
                key=lambda f: f.get_order() if isinstance(f, OrderedFixture) else 0,
            )

        if self._order_by_dependencies:
            fixtures = self._order_by_dependency_graph(fixtures)

        return fixtures

    def _order_by_dependency_graph(self, fixtures: list[Fixture]) -> list[Fixture]:
        ordered: list[Fixture] = []
        placed: set[type[Fixture]] = set()
        visiting: list[type[Fixture]] = []

        def visit(fixture: Fixture):
            cls = type(fixture)
            if cls in placed:
                return
            if cls in visiting:
                cycle = visiting[visiting.index(cls):] + [cls]
                raise CircularReferenceError(
                    "Graph contains cyclic dependency: "
                    + " -> ".join(fixture_name(c) for c in cycle)
                )

            visiting.append(cls)
            if isinstance(fixture, DependentFixture):
                for dependency in fixture.get_dependencies():
                    visit(self._fixtures[dependency])
            visiting.pop()

            placed.add(cls)
            ordered.append(fixture)

        # Fixtures without dependencies keep their position ahead of dependent ones
        for fixture in fixtures:
            if not isinstance(fixture, DependentFixture):
                visit(fixture)
        for fixture in fixtures:
            visit(fixture)

        return ordered
