"""Tests for rowspine.core.schema — table derivation and DDL."""

from __future__ import annotations

import sqlite3

import pytest

from rowspine.core import introspection
from rowspine.core.dialect import SQLiteDialect
from rowspine.core.errors import NoActiveTransactionError, SchemaConfigurationError
from rowspine.core.introspection import PropertyDescriptor
from rowspine.core.schema import (
    BigInt,
    TYPE_MAPPING,
    clear_schema_cache,
    create_table,
    create_table_sql,
    table_spec_of,
)
from rowspine.core.transaction import transaction

from _support.entities import Account, Badge, Counter, Empty, LogLine, Person, Renamed, TwoIds, WithFloat


class TestTypeMapping:
    def test_fixed_table(self):
        assert TYPE_MAPPING == {int: "INTEGER", BigInt: "BIGINT", str: "VARCHAR(255)"}


class TestTableSpec:
    def test_default_names(self):
        spec = table_spec_of(Person)
        assert spec.table_name == "PERSON"
        assert spec.column_names == ["ID", "NAME", "AGE"]

    def test_marker_names(self):
        spec = table_spec_of(Renamed)
        assert spec.table_name == "RENAMED"
        assert spec.column_names == ["PERSON_ID", "ALIAS"]
        assert spec.id_column is not None
        assert spec.id_column.column_name == "PERSON_ID"

    def test_table_marker(self):
        assert table_spec_of(Account).table_name == "ACCOUNTS"

    def test_nullability(self):
        columns = {c.column_name: c for c in table_spec_of(Counter).columns}
        assert not columns["NAME"].nullable
        assert not columns["HITS"].nullable
        assert columns["TOTAL"].sql_type == "BIGINT"
        assert all(c.nullable for c in table_spec_of(Person).columns)

    def test_id_column(self):
        spec = table_spec_of(Person)
        assert spec.id_column is spec.columns[0]
        assert spec.id_column.primary_key
        assert spec.id_column.auto_increment

    def test_no_id(self):
        assert table_spec_of(LogLine).id_column is None

    def test_column_for_property(self):
        spec = table_spec_of(Account)
        assert spec.column_for_property("owner").column_name == "OWNER_NAME"
        assert spec.column_for_property("height") is None

    def test_property_name(self):
        assert [c.property_name for c in table_spec_of(Badge).columns] == ["id", "code", "shout"]


class TestDerivationErrors:
    def test_unknown_type(self):
        with pytest.raises(SchemaConfigurationError, match="unknown property type"):
            table_spec_of(WithFloat)

    def test_two_ids(self):
        with pytest.raises(SchemaConfigurationError, match="several primary keys") as excinfo:
            table_spec_of(TwoIds)
        assert excinfo.value.context.table == "TWOIDS"

    def test_no_properties(self):
        with pytest.raises(SchemaConfigurationError, match="no mappable property"):
            table_spec_of(Empty)

    def test_errors_are_not_cached(self):
        for _ in range(2):
            with pytest.raises(SchemaConfigurationError):
                table_spec_of(TwoIds)


class TestCaching:
    def test_same_instance(self):
        assert table_spec_of(Person) is table_spec_of(Person)

    def test_idempotent(self):
        first = table_spec_of(Account)
        clear_schema_cache()
        second = table_spec_of(Account)
        assert first is not second
        assert first == second

    def test_introspector_may_derive_other_schemas(self, monkeypatch: pytest.MonkeyPatch):
        default = introspection.get_introspector()

        class Nested:
            def properties_of(self, entity_type: type) -> list[PropertyDescriptor]:
                if entity_type is Account:
                    table_spec_of(Person)
                return default.properties_of(entity_type)

        monkeypatch.setattr(introspection, "_introspector", Nested())
        assert table_spec_of(Account).column_names == ["NUMBER", "OWNER_NAME", "BALANCE"]
        assert table_spec_of(Person) is table_spec_of(Person)


class TestCreateTableSql:
    def test_defaults_to_ansi(self):
        assert create_table_sql(table_spec_of(Person)) == (
            "CREATE TABLE PERSON (ID INTEGER AUTO_INCREMENT, NAME VARCHAR(255), AGE INTEGER, PRIMARY KEY (ID))"
        )

    @pytest.mark.parametrize("entity", [Person, Account, Badge, Renamed])
    def test_exactly_one_primary_key_clause(self, entity):
        assert create_table_sql(table_spec_of(entity)).count("PRIMARY KEY") == 1

    def test_no_primary_key_clause_without_id(self):
        assert "PRIMARY KEY" not in create_table_sql(table_spec_of(LogLine))

    def test_dialect(self):
        sql = create_table_sql(table_spec_of(Person), SQLiteDialect())
        assert "AUTO_INCREMENT" not in sql


@pytest.mark.integration
class TestCreateTable:
    def test_creates_table(self, data_source, tmp_path):
        with transaction(data_source):
            sql = create_table(Person)
        assert sql.startswith("CREATE TABLE PERSON")

        conn = sqlite3.connect(tmp_path / "rowspine.db")
        try:
            names = [row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")]
        finally:
            conn.close()
        assert names == ["PERSON"]

    def test_requires_transaction(self):
        with pytest.raises(NoActiveTransactionError):
            create_table(Person)

    def test_failure_rolls_back(self, person_table):
        with pytest.raises(sqlite3.OperationalError, match="already exists"):
            with transaction(person_table):
                create_table(Person)
