"""Tests for the Dialect abstraction layer."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from rowspine.core import dialect as dialect_module
from rowspine.core.dialect import AnsiDialect, Dialect, SQLiteDialect, get_dialect, register_dialect
from rowspine.core.schema import table_spec_of

from _support.entities import Account, LogLine, Person


# =========================================================================
# Fixtures
# =========================================================================


@pytest.fixture(params=["ansi", "sqlite"])
def dialect(request: pytest.FixtureRequest) -> Dialect:
    """Parametric fixture: run each test against every dialect."""
    return get_dialect(request.param)


@pytest.fixture
def ansi() -> AnsiDialect:
    return AnsiDialect()


@pytest.fixture
def sqlite() -> SQLiteDialect:
    return SQLiteDialect()


# =========================================================================
# Protocol conformance
# =========================================================================


class TestProtocol:
    def test_is_dialect(self, dialect: Dialect) -> None:
        assert isinstance(dialect, Dialect)

    def test_placeholders(self, dialect: Dialect) -> None:
        assert dialect.placeholder(0) == "?"
        assert dialect.placeholders(3) == "?, ?, ?"

    def test_select_all(self, dialect: Dialect) -> None:
        assert dialect.select_all("PERSON") == "SELECT * FROM PERSON"

    def test_select_where(self, dialect: Dialect) -> None:
        assert dialect.select_where("PERSON", "AGE") == "SELECT * FROM PERSON WHERE AGE = ?"


# =========================================================================
# ANSI
# =========================================================================


class TestAnsiDialect:
    def test_create_table_with_generated_id(self, ansi: AnsiDialect) -> None:
        assert ansi.create_table(table_spec_of(Person)) == (
            "CREATE TABLE PERSON (ID INTEGER AUTO_INCREMENT, NAME VARCHAR(255), AGE INTEGER, PRIMARY KEY (ID))"
        )

    def test_create_table_without_id(self, ansi: AnsiDialect) -> None:
        assert ansi.create_table(table_spec_of(LogLine)) == (
            "CREATE TABLE LOGLINE (MESSAGE VARCHAR(255), LEVEL INTEGER)"
        )

    def test_create_table_not_null_and_renamed(self, ansi: AnsiDialect) -> None:
        assert ansi.create_table(table_spec_of(Account)) == (
            "CREATE TABLE ACCOUNTS (NUMBER VARCHAR(255), OWNER_NAME VARCHAR(255), "
            "BALANCE BIGINT NOT NULL, PRIMARY KEY (NUMBER))"
        )

    def test_merge(self, ansi: AnsiDialect) -> None:
        assert ansi.merge(table_spec_of(Person)) == "MERGE INTO PERSON (ID, NAME, AGE) VALUES (?, ?, ?)"


# =========================================================================
# SQLite
# =========================================================================


class TestSQLiteDialect:
    def test_generated_id_is_rowid_alias(self, sqlite: SQLiteDialect) -> None:
        assert sqlite.create_table(table_spec_of(Person)) == (
            "CREATE TABLE PERSON (ID INTEGER, NAME VARCHAR(255), AGE INTEGER, PRIMARY KEY (ID))"
        )

    def test_not_null_kept(self, sqlite: SQLiteDialect) -> None:
        assert "BALANCE BIGINT NOT NULL" in sqlite.create_table(table_spec_of(Account))

    def test_merge_is_insert_or_replace(self, sqlite: SQLiteDialect) -> None:
        assert sqlite.merge(table_spec_of(Person)) == (
            "INSERT OR REPLACE INTO PERSON (ID, NAME, AGE) VALUES (?, ?, ?)"
        )


# =========================================================================
# Generated keys
# =========================================================================


class TestGeneratedKey:
    def test_auto_increment_id_reads_lastrowid(self, dialect: Dialect) -> None:
        cursor = MagicMock(lastrowid=42)
        assert dialect.generated_key(cursor, table_spec_of(Person)) == 42

    def test_caller_assigned_id_has_no_generated_key(self, dialect: Dialect) -> None:
        cursor = MagicMock(lastrowid=42)
        assert dialect.generated_key(cursor, table_spec_of(Account)) is None

    def test_table_without_id(self, dialect: Dialect) -> None:
        cursor = MagicMock(lastrowid=42)
        assert dialect.generated_key(cursor, table_spec_of(LogLine)) is None


# =========================================================================
# Registry
# =========================================================================


class TestRegistry:
    def test_names(self) -> None:
        assert get_dialect("ansi").name == "ansi"
        assert get_dialect("sqlite").name == "sqlite"

    def test_case_insensitive_alias(self) -> None:
        assert get_dialect("H2").name == "ansi"

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown dialect"):
            get_dialect("oracle")

    def test_register(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(dialect_module, "_DIALECTS", dict(dialect_module._DIALECTS))
        custom = SQLiteDialect()
        register_dialect("Custom", custom)
        assert get_dialect("custom") is custom
