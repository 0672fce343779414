"""Schema derivation — entity type → table metadata → DDL.

Turns the ordered properties of an entity type into a :class:`TableSpec`:
one :class:`ColumnSpec` per property, in property order, plus at most one
primary-key column.

Naming conventions (each overridable with a marker):

- table name  = ``@table("NAME")`` or the class name upper-cased
- column name = ``column("NAME")`` or the property name upper-cased

Type mapping (fixed):

==================  ================
Python type         SQL type
==================  ================
``int``             ``INTEGER``
``BigInt``          ``BIGINT``
``str``             ``VARCHAR(255)``
==================  ================

A bare type is ``NOT NULL``; ``X | None`` is nullable. Anything else is a
:class:`~rowspine.core.errors.SchemaConfigurationError`, raised on first
derivation, as is a second ``primary_key`` property.

Derived specs are immutable and cached per entity type for the lifetime of
the process.

Examples:
    >>> @dataclass
    ... class Person:
    ...     id: int | None = field(default=None, metadata=field_markers(primary_key=True, generated_value=True))
    ...     name: str | None = None
    >>> create_table_sql(table_spec_of(Person))
    'CREATE TABLE PERSON (ID INTEGER AUTO_INCREMENT, NAME VARCHAR(255), PRIMARY KEY (ID))'
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, NewType

from rowspine.core import markers
from rowspine.core.dialect import AnsiDialect, Dialect
from rowspine.core.errors import SchemaConfigurationError
from rowspine.core.introspection import PropertyDescriptor, properties_of, unwrap_optional
from rowspine.core.logging import get_logger
from rowspine.core.transaction import current_transaction

logger = get_logger(__name__)

BigInt = NewType("BigInt", int)
"""64-bit integer property type, mapped to ``BIGINT``."""

TYPE_MAPPING: dict[Any, str] = {
    int: "INTEGER",
    BigInt: "BIGINT",
    str: "VARCHAR(255)",
}


@dataclass(frozen=True)
class ColumnSpec:
    """Derived metadata of one column."""

    column_name: str
    sql_type: str
    nullable: bool
    auto_increment: bool
    primary_key: bool
    descriptor: PropertyDescriptor = field(compare=False, repr=False)

    @property
    def property_name(self) -> str:
        return self.descriptor.name


@dataclass(frozen=True)
class TableSpec:
    """Derived metadata of one table."""

    table_name: str
    columns: tuple[ColumnSpec, ...]
    id_column: ColumnSpec | None = None

    @property
    def column_names(self) -> list[str]:
        return [column.column_name for column in self.columns]

    def column_for_property(self, property_name: str) -> ColumnSpec | None:
        for column in self.columns:
            if column.descriptor.name == property_name:
                return column
        return None


def table_name_of(entity_type: type) -> str:
    name = markers.markers_of(entity_type).get(markers.TABLE)
    if name:
        return name
    return entity_type.__name__.upper()


def column_name_of(prop: PropertyDescriptor) -> str:
    name = prop.annotation(markers.COLUMN)
    if name:
        return name
    return prop.name.upper()


def sql_type_of(prop: PropertyDescriptor) -> tuple[str, bool]:
    """``(sql_type, nullable)`` of a property."""
    base, nullable = unwrap_optional(prop.value_type)
    try:
        sql_type = TYPE_MAPPING.get(base)
    except TypeError:  # unhashable annotation
        sql_type = None
    if sql_type is None:
        raise SchemaConfigurationError(
            f"unknown property type {prop.value_type!r} for property {prop.name!r}"
        ).with_context(column=column_name_of(prop))
    return sql_type, nullable


def column_spec_of(prop: PropertyDescriptor) -> ColumnSpec:
    sql_type, nullable = sql_type_of(prop)
    return ColumnSpec(
        column_name=column_name_of(prop),
        sql_type=sql_type,
        nullable=nullable,
        auto_increment=bool(prop.annotation(markers.GENERATED_VALUE)),
        primary_key=bool(prop.annotation(markers.PRIMARY_KEY)),
        descriptor=prop,
    )


def _derive(entity_type: type) -> TableSpec:
    table_name = table_name_of(entity_type)
    columns = tuple(column_spec_of(prop) for prop in properties_of(entity_type))
    if not columns:
        raise SchemaConfigurationError(
            f"{entity_type.__name__} declares no mappable property"
        ).with_context(entity=entity_type.__name__, table=table_name)

    ids = [column for column in columns if column.primary_key]
    if len(ids) > 1:
        raise SchemaConfigurationError(
            f"{entity_type.__name__} declares several primary keys: "
            + ", ".join(column.column_name for column in ids)
        ).with_context(entity=entity_type.__name__, table=table_name)

    return TableSpec(
        table_name=table_name,
        columns=columns,
        id_column=ids[0] if ids else None,
    )


_cache: dict[type, TableSpec] = {}
_cache_lock = threading.Lock()


def table_spec_of(entity_type: type) -> TableSpec:
    """Derived (and cached) table metadata of ``entity_type``."""
    spec = _cache.get(entity_type)
    if spec is not None:
        return spec
    # Derived outside the lock: introspectors may look up other schemas.
    derived = _derive(entity_type)
    with _cache_lock:
        spec = _cache.setdefault(entity_type, derived)
    if spec is derived:
        logger.debug(
            "schema_derived",
            entity=entity_type.__name__,
            table=spec.table_name,
            columns=spec.column_names,
        )
    return spec


def clear_schema_cache() -> None:
    """Forget every derived schema (for testing)."""
    with _cache_lock:
        _cache.clear()


def create_table_sql(table: TableSpec, dialect: Dialect | None = None) -> str:
    """``CREATE TABLE`` statement of ``table`` (ANSI dialect by default)."""
    return (dialect or AnsiDialect()).create_table(table)


def create_table(entity_type: type) -> str:
    """Create the table of ``entity_type`` on the current transaction.

    Returns the executed statement.
    """
    tx = current_transaction()
    spec = table_spec_of(entity_type)
    sql = tx.dialect.create_table(spec)
    tx.execute(sql, method="create_table").close()
    logger.info("table_created", entity=entity_type.__name__, table=spec.table_name)
    return sql


__all__ = [
    "BigInt",
    "TYPE_MAPPING",
    "ColumnSpec",
    "TableSpec",
    "table_name_of",
    "column_name_of",
    "sql_type_of",
    "column_spec_of",
    "table_spec_of",
    "clear_schema_cache",
    "create_table_sql",
    "create_table",
]
