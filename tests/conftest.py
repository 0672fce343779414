"""
Shared pytest fixtures and configuration for rowspine tests.

This module provides:
- Cache and environment cleanup for test isolation
- File-backed and mocked data sources
- A PERSON table ready for repository tests

Sample entities and repository contracts live in ``_support.entities``.
"""

import sys
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure rowspine and the test support package are importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from rowspine.core.dialect import AnsiDialect
from rowspine.core.datasource import SqliteDataSource
from rowspine.core.repository import clear_repository_cache
from rowspine.core.schema import clear_schema_cache, create_table
from rowspine.core.settings import clear_settings_cache
from rowspine.core.transaction import transaction

from _support.entities import Person


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_caches() -> Generator[None, None, None]:
    """
    Forget derived schemas, built repositories and loaded settings
    before and after each test.
    """
    clear_schema_cache()
    clear_repository_cache()
    clear_settings_cache()
    yield
    clear_repository_cache()
    clear_schema_cache()
    clear_settings_cache()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove ROWSPINE_* variables inherited from the shell."""
    for name in ("ROWSPINE_DATABASE_URL", "ROWSPINE_DIALECT", "ROWSPINE_LOG_LEVEL", "ROWSPINE_LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# Data Source Fixtures
# =============================================================================


@pytest.fixture
def data_source(tmp_path: Path) -> SqliteDataSource:
    """SQLite data source backed by a fresh file."""
    return SqliteDataSource(str(tmp_path / "rowspine.db"))


@pytest.fixture
def person_table(data_source: SqliteDataSource) -> SqliteDataSource:
    """Data source whose database already holds an empty PERSON table."""
    with transaction(data_source):
        create_table(Person)
    return data_source


@pytest.fixture
def mock_connection() -> MagicMock:
    """PEP 249 connection double; ``cursor()`` always returns the same cursor."""
    connection = MagicMock(name="connection")
    cursor = MagicMock(name="cursor")
    cursor.fetchall.return_value = []
    cursor.fetchone.return_value = None
    cursor.lastrowid = None
    connection.cursor.return_value = cursor
    return connection


@pytest.fixture
def mock_data_source(mock_connection: MagicMock) -> MagicMock:
    """Data source double handing out ``mock_connection`` with the ANSI dialect."""
    data_source = MagicMock(name="data_source")
    data_source.dialect = AnsiDialect()
    data_source.get_connection.return_value = mock_connection
    return data_source
