"""SQL dialect abstraction for the mapping core.

The schema deriver and the repository dispatcher never write SQL text
themselves. They hand a :class:`~rowspine.core.schema.TableSpec` to a
``Dialect`` and get back a statement for the target database.

The statement vocabulary is deliberately tiny: ``CREATE TABLE``,
``SELECT * FROM`` (optionally with one equality predicate) and a
merge/upsert of a whole row.

Architecture::

    ┌──────────────────────────────────────────────────────────────────┐
    │                     Dialect Abstraction Layer                     │
    └──────────────────────────────────────────────────────────────────┘

    Dispatcher / Schema Deriver:
    ┌────────────────────────────────────────────────────────────────┐
    │  sql = dialect.merge(table_spec)                                │
    │  cursor.execute(sql, entity_to_parameters(entity, table_spec))  │
    │  key = dialect.generated_key(cursor, table_spec)                │
    └────────────────────────────────────────────────────────────────┘
                              │
                              ▼
    ┌──────────────────────────────┐ ┌──────────────────────────────┐
    │ AnsiDialect                  │ │ SQLiteDialect                │
    │ ID INTEGER NOT NULL          │ │ ID INTEGER  (rowid alias)    │
    │   AUTO_INCREMENT             │ │                              │
    │ MERGE INTO t (..) VALUES (?) │ │ INSERT OR REPLACE INTO t ..  │
    └──────────────────────────────┘ └──────────────────────────────┘

Examples:
    >>> from rowspine.core.dialect import get_dialect
    >>> d = get_dialect("ansi")
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.select_where("PERSON", "AGE")
    'SELECT * FROM PERSON WHERE AGE = ?'

Guardrails:
    ❌ DON'T: Build SQL strings in repositories or the mapper
    ✅ DO: Ask the data source's dialect for every statement

Tags:
    dialect, sql, ddl, merge, upsert, rowspine
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rowspine.core.protocols import Cursor
    from rowspine.core.schema import ColumnSpec, TableSpec


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns either a SQL fragment or a complete statement
    with positional placeholders, valid for the target database.
    """

    @property
    def name(self) -> str:
        """Short lowercase identifier (``'ansi'``, ``'sqlite'``)."""
        ...

    # -- Placeholders ------------------------------------------------------

    def placeholder(self, index: int) -> str:
        """Single positional placeholder for parameter ``index`` (0-based)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list.

        >>> dialect.placeholders(3)
        '?, ?, ?'
        """
        ...

    # -- DDL ---------------------------------------------------------------

    def column_definition(self, column: ColumnSpec) -> str:
        """``<COLUMN> <TYPE>[ NOT NULL][ AUTO_INCREMENT]`` or equivalent."""
        ...

    def create_table(self, table: TableSpec) -> str:
        """Full ``CREATE TABLE`` statement for ``table``."""
        ...

    # -- Queries -----------------------------------------------------------

    def select_all(self, table_name: str) -> str:
        """``SELECT * FROM <table>``."""
        ...

    def select_where(self, table_name: str, column_name: str) -> str:
        """``SELECT * FROM <table> WHERE <column> = ?``."""
        ...

    # -- DML ---------------------------------------------------------------

    def merge(self, table: TableSpec) -> str:
        """Insert-or-update of a whole row, all columns in schema order."""
        ...

    def generated_key(self, cursor: Cursor, table: TableSpec) -> Any:
        """Key generated by the last write on ``cursor``, or ``None``."""
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


def _last_generated_key(cursor: Any, table: TableSpec) -> Any:
    # Only auto-increment ids are generated; other ids come from the caller.
    id_column = table.id_column
    if id_column is None or not id_column.auto_increment:
        return None
    return getattr(cursor, "lastrowid", None)


class AnsiDialect:
    """ANSI-ish dialect — ``?`` placeholders, ``AUTO_INCREMENT``, ``MERGE INTO``.

    Matches what H2, HSQLDB and DB2-style engines accept for the small
    statement vocabulary rowspine emits.
    """

    @property
    def name(self) -> str:
        return "ansi"

    # -- Placeholders ------------------------------------------------------

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    # -- DDL ---------------------------------------------------------------

    def column_definition(self, column: ColumnSpec) -> str:
        definition = f"{column.column_name} {column.sql_type}"
        if not column.nullable:
            definition += " NOT NULL"
        if column.auto_increment:
            definition += " AUTO_INCREMENT"
        return definition

    def create_table(self, table: TableSpec) -> str:
        definitions = [self.column_definition(column) for column in table.columns]
        if table.id_column is not None:
            definitions.append(f"PRIMARY KEY ({table.id_column.column_name})")
        return f"CREATE TABLE {table.table_name} ({', '.join(definitions)})"

    # -- Queries -----------------------------------------------------------

    def select_all(self, table_name: str) -> str:
        return f"SELECT * FROM {table_name}"

    def select_where(self, table_name: str, column_name: str) -> str:
        return f"SELECT * FROM {table_name} WHERE {column_name} = {self.placeholder(0)}"

    # -- DML ---------------------------------------------------------------

    def merge(self, table: TableSpec) -> str:
        cols = ", ".join(table.column_names)
        ph = self.placeholders(len(table.columns))
        return f"MERGE INTO {table.table_name} ({cols}) VALUES ({ph})"

    def generated_key(self, cursor: Cursor, table: TableSpec) -> Any:
        return _last_generated_key(cursor, table)


class SQLiteDialect(AnsiDialect):
    """SQLite dialect — the same statements, rendered for SQLite.

    SQLite has neither ``AUTO_INCREMENT`` nor ``MERGE``:

    - an auto-increment column is declared ``INTEGER`` so that, together
      with the table-level ``PRIMARY KEY (<col>)``, it becomes an alias of
      the rowid and inserting ``NULL`` draws the next key;
    - merge is ``INSERT OR REPLACE INTO``, which replaces the row holding
      the same primary key.
    """

    @property
    def name(self) -> str:
        return "sqlite"

    def column_definition(self, column: ColumnSpec) -> str:
        if column.auto_increment:
            return f"{column.column_name} INTEGER"
        definition = f"{column.column_name} {column.sql_type}"
        if not column.nullable:
            definition += " NOT NULL"
        return definition

    def merge(self, table: TableSpec) -> str:
        cols = ", ".join(table.column_names)
        ph = self.placeholders(len(table.columns))
        return f"INSERT OR REPLACE INTO {table.table_name} ({cols}) VALUES ({ph})"


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "ansi": AnsiDialect(),
    "h2": AnsiDialect(),  # alias
    "sqlite": SQLiteDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by name.

    Raises:
        ValueError: If ``db_type`` is not recognised.

    Example:
        >>> get_dialect("sqlite").merge(table_spec_of(Person))
        'INSERT OR REPLACE INTO PERSON (ID, NAME) VALUES (?, ?)'
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'h2'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation.

    Useful for third-party database drivers or test doubles.
    """
    _DIALECTS[name.lower()] = dialect


__all__ = [
    # Protocol
    "Dialect",
    # Implementations
    "AnsiDialect",
    "SQLiteDialect",
    # Factory
    "get_dialect",
    "register_dialect",
]
