import logging

import pytest

from datafixtures.main.config import (
    Settings,
    get_loglevel,
    get_settings,
    reset_settings,
    set_settings,
)
from tests.unittests.fixture_test_utils import MEMORY_URL


def test_manager_urls_include_default_and_named_managers():
    settings = Settings(
        database_url=MEMORY_URL,
        database_managers={"reporting": "postgresql+asyncpg://u:p@db:5432/reporting"},
    )

    assert settings.manager_urls == {
        "default": MEMORY_URL,
        "reporting": "postgresql+asyncpg://u:p@db:5432/reporting",
    }


def test_default_manager_must_be_configured():
    with pytest.raises(SystemExit):
        Settings(database_url=MEMORY_URL, default_manager="missing")


def test_shards_must_reference_known_manager():
    with pytest.raises(SystemExit):
        Settings(database_url=MEMORY_URL, database_shards={"missing": {1: MEMORY_URL}})


def test_shard_zero_is_reserved():
    with pytest.raises(SystemExit):
        Settings(database_url=MEMORY_URL, database_shards={"default": {0: MEMORY_URL}})


def test_shards_are_read_from_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", MEMORY_URL)
    monkeypatch.setenv("DATABASE_SHARDS", '{"default": {"1": "sqlite+aiosqlite:///shard1.db"}}')
    monkeypatch.setenv("FIXTURE_MODULES", '["app.fixtures"]')

    settings = Settings()

    assert settings.database_shards == {"default": {1: "sqlite+aiosqlite:///shard1.db"}}
    assert settings.fixture_modules == ["app.fixtures"]


def test_set_and_reset_settings(test_settings):
    set_settings(test_settings)
    assert get_settings() is test_settings

    reset_settings()
    set_settings(Settings(database_url=MEMORY_URL, fixture_modules=["other"]))
    assert get_settings().fixture_modules == ["other"]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("DEBUG", logging.DEBUG),
        ("WARNING", logging.WARNING),
        ("ERROR", logging.ERROR),
        ("verbose", logging.INFO),
    ],
)
def test_get_loglevel(monkeypatch, value, expected):
    monkeypatch.setenv("LOGLEVEL", value)

    assert get_loglevel() == expected
