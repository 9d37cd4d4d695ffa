import pytest

from datafixtures.fixtures.references import ReferenceRepository
from datafixtures.main.exceptions import DuplicateReferenceError, MissingReferenceError
from tests.unittests.sample_fixtures import Author, Book


def test_add_and_get_reference():
    references = ReferenceRepository()
    author = Author(name="N. K. Jemisin")

    references.add_reference("author", author)

    assert references.has_reference("author")
    assert references.get_reference("author") is author
    assert references.get_reference("author", Author) is author


def test_add_reference_twice_raises():
    references = ReferenceRepository()
    references.add_reference("author", Author(name="first"))

    with pytest.raises(DuplicateReferenceError, match="set_reference"):
        references.add_reference("author", Author(name="second"))


def test_set_reference_overrides():
    references = ReferenceRepository()
    second = Author(name="second")
    references.add_reference("author", Author(name="first"))

    references.set_reference("author", second)

    assert references.get_reference("author") is second


def test_missing_reference_raises():
    references = ReferenceRepository()

    assert not references.has_reference("author")
    with pytest.raises(MissingReferenceError, match='Reference to "author" does not exist'):
        references.get_reference("author")


def test_reference_of_unexpected_type_raises():
    references = ReferenceRepository()
    references.add_reference("author", Book(title="not an author"))

    with pytest.raises(MissingReferenceError, match="not a Author"):
        references.get_reference("author", Author)


def test_get_references_returns_copy():
    references = ReferenceRepository()
    references.add_reference("author", Author(name="someone"))

    snapshot = references.get_references()
    snapshot.clear()

    assert references.has_reference("author")
