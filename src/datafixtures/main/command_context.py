"""Logging context for the command that is currently running.

The context holds the command name, the entity manager and the shard the
command works against. JSON log records pick these values up, so every line
logged during a run can be traced back to the connection it touched.
"""

from __future__ import annotations

import contextlib
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any, Iterator, Mapping

_EMPTY: Mapping[str, Any] = MappingProxyType({})

_command_context: ContextVar[Mapping[str, Any]] = ContextVar("command_context", default=_EMPTY)


def _merge(base: Mapping[str, Any], values: Mapping[str, Any]) -> Mapping[str, Any]:
    merged = {key: value for key, value in base.items() if values.get(key, value) is not None}
    merged.update((key, value) for key, value in values.items() if value is not None)
    return MappingProxyType(merged)


def get_command_context() -> dict[str, Any]:
    return dict(_command_context.get())


def update_command_context(**values: Any) -> None:
    """Add values to the running command's context. ``None`` drops a key."""
    _command_context.set(_merge(_command_context.get(), values))


@contextlib.contextmanager
def command_scope(**values: Any) -> Iterator[Mapping[str, Any]]:
    """Bind context values for the duration of a command run.

    On exit the context is restored to what it was before, including any
    values added with ``update_command_context`` inside the block.
    """
    token = _command_context.set(_merge(_EMPTY, values))
    try:
        yield _command_context.get()
    finally:
        _command_context.reset(token)
