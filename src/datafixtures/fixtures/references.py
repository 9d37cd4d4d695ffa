from typing import Any, Optional, TypeVar

from datafixtures.main.exceptions import DuplicateReferenceError, MissingReferenceError

T = TypeVar("T")


class ReferenceRepository:
    """Objects shared between fixtures of a single load, keyed by name."""

    def __init__(self):
        self._references: dict[str, Any] = {}

    def set_reference(self, name: str, obj: Any) -> None:
        self._references[name] = obj

    def add_reference(self, name: str, obj: Any) -> None:
        if name in self._references:
            raise DuplicateReferenceError(
                f'Reference to "{name}" already exists, use set_reference() in order to override it'
            )
        self.set_reference(name, obj)

    def get_reference(self, name: str, cls: Optional[type[T]] = None) -> T:
        if name not in self._references:
            raise MissingReferenceError(f'Reference to "{name}" does not exist')

        obj = self._references[name]
        if cls is not None and not isinstance(obj, cls):
            raise MissingReferenceError(
                f'Reference to "{name}" is a {type(obj).__name__}, not a {cls.__name__}'
            )
        return obj

    def has_reference(self, name: str) -> bool:
        return name in self._references

    def get_references(self) -> dict[str, Any]:
        return dict(self._references)
