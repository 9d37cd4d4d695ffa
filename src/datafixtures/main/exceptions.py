from enum import Enum


class ErrorCodes(str, Enum):
    UNKNOWN_MANAGER = "unknown_manager"
    SHARDING_NOT_SUPPORTED = "sharding_not_supported"
    SHARD_NOT_FOUND = "shard_not_found"
    SHARD_SWITCH = "shard_switch"
    FIXTURE_NOT_REGISTERED = "fixture_not_registered"
    INVALID_FIXTURE = "invalid_fixture"
    CIRCULAR_REFERENCE = "circular_reference"
    FIXTURE_DEPENDENCY = "fixture_dependency"
    DUPLICATE_REFERENCE = "duplicate_reference"
    MISSING_REFERENCE = "missing_reference"
    PURGER_NOT_SET = "purger_not_set"
    DATABASE_NOT_INITIALIZED = "database_not_initialized"
    FIXTURES_ERROR = "fixtures_error"


class FixturesError(Exception):
    """Base class for every error raised while loading fixtures."""


class DatabaseNotInitializedError(FixturesError):
    pass


class UnknownManagerError(FixturesError):
    pass


class ShardingNotSupportedError(FixturesError):
    pass


class ShardNotFoundError(FixturesError):
    pass


class ShardSwitchError(FixturesError):
    pass


class FixtureNotRegisteredError(FixturesError):
    pass


class InvalidFixtureError(FixturesError):
    pass


class CircularReferenceError(FixturesError):
    pass


class FixtureDependencyError(FixturesError):
    pass


class DuplicateReferenceError(FixturesError):
    pass


class MissingReferenceError(FixturesError):
    pass


class PurgerNotSetError(FixturesError):
    pass


# Exception -> (exit code, message override, error code)
# A message of None means the exception text is shown as-is.
EXCEPTION_MAP = {
    UnknownManagerError: (1, None, ErrorCodes.UNKNOWN_MANAGER),
    ShardingNotSupportedError: (1, None, ErrorCodes.SHARDING_NOT_SUPPORTED),
    ShardNotFoundError: (1, None, ErrorCodes.SHARD_NOT_FOUND),
    ShardSwitchError: (1, None, ErrorCodes.SHARD_SWITCH),
    FixtureNotRegisteredError: (1, None, ErrorCodes.FIXTURE_NOT_REGISTERED),
    InvalidFixtureError: (1, None, ErrorCodes.INVALID_FIXTURE),
    CircularReferenceError: (1, None, ErrorCodes.CIRCULAR_REFERENCE),
    FixtureDependencyError: (1, None, ErrorCodes.FIXTURE_DEPENDENCY),
    DuplicateReferenceError: (1, None, ErrorCodes.DUPLICATE_REFERENCE),
    MissingReferenceError: (1, None, ErrorCodes.MISSING_REFERENCE),
    PurgerNotSetError: (1, None, ErrorCodes.PURGER_NOT_SET),
    DatabaseNotInitializedError: (
        1,
        "Database connection is not initialized",
        ErrorCodes.DATABASE_NOT_INITIALIZED,
    ),
    FixturesError: (1, None, ErrorCodes.FIXTURES_ERROR),
}


def resolve_exception(exc: FixturesError) -> tuple[int, str, ErrorCodes]:
    """Return (exit code, message, error code) for a fixtures error.

    Looks the exception up along its MRO so subclasses registered later
    still resolve to their closest mapped parent.
    """
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_MAP:
            exit_code, message, error_code = EXCEPTION_MAP[cls]
            return exit_code, message or str(exc), error_code

    return 1, str(exc), ErrorCodes.FIXTURES_ERROR
