import logging
import os
import sys
from typing import Optional

from pydantic import computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MANAGER = "default"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="allow")

    # Connection used by the default entity manager
    database_url: str = "sqlite+aiosqlite:///./datafixtures.db"

    # Additional named entity managers, e.g. {"reporting": "postgresql+asyncpg://..."}
    database_managers: dict[str, str] = {}
    default_manager: str = DEFAULT_MANAGER

    # Shard URLs per entity manager: {"default": {1: "...", 2: "..."}}
    # Shard 0 is always the manager's own (global) connection.
    database_shards: dict[str, dict[int, str]] = {}

    # Modules scanned for Fixture subclasses
    fixture_modules: list[str] = []

    # Engine pool options (not applied to sqlite)
    pool_size: int = 20
    max_overflow: int = 10

    @model_validator(mode="after")
    def validate_managers(self):
        """Ensure the manager and shard configuration is consistent."""
        if self.default_manager not in self.manager_urls:
            logging.error(
                "DEFAULT_MANAGER '%s' has no connection configured. Known managers: %s",
                self.default_manager,
                ", ".join(sorted(self.manager_urls)),
            )
            sys.exit(1)

        for manager_name, shards in self.database_shards.items():
            if manager_name not in self.manager_urls:
                logging.error(
                    "DATABASE_SHARDS references unknown entity manager '%s'",
                    manager_name,
                )
                sys.exit(1)

            if 0 in shards:
                logging.error(
                    "DATABASE_SHARDS for '%s' must not define shard 0,"
                    " it is reserved for the global connection",
                    manager_name,
                )
                sys.exit(1)

        return self

    @computed_field
    @property
    def manager_urls(self) -> dict[str, str]:
        urls = {DEFAULT_MANAGER: self.database_url}
        urls.update(self.database_managers)
        return urls


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton, creating it if needed.

    Returns:
        Settings: The application settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Override settings (primarily for testing).

    Args:
        settings: The Settings instance to use.
    """
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to None (for test cleanup)."""
    global _settings
    _settings = None


def get_loglevel():
    loglevel = os.getenv("LOGLEVEL", "INFO")

    match loglevel:
        case "INFO":
            return logging.INFO
        case "WARNING":
            return logging.WARNING
        case "ERROR":
            return logging.ERROR
        case "CRITICAL":
            return logging.CRITICAL
        case "DEBUG":
            return logging.DEBUG
        case _:
            return logging.INFO
