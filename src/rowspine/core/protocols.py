"""
Canonical protocol definitions for rowspine.

The mapping core never imports a database driver. It talks to PEP 249
(DB-API 2.0) objects through the structural protocols below, and obtains
connections from a :class:`DataSource`.

Architecture:
    ::

        DataSource
        ├── dialect               — SQL rendering for the backend
        └── get_connection()      → Connection (new, caller owns it)
                                      ├── cursor()   → Cursor
                                      ├── commit()
                                      ├── rollback()
                                      └── close()

        Cursor
        ├── execute(sql, params)
        ├── fetchone() / fetchall()
        ├── lastrowid              — generated key of the last write
        └── close()

Guardrails:
    ❌ DON'T: Import sqlite3 or psycopg in schema, mapper or repository code
    ✅ DO: Depend on these protocols; drivers live behind a DataSource

Tags:
    protocol, connection, dbapi, pep-249, datasource, rowspine
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rowspine.core.dialect import Dialect


@runtime_checkable
class Cursor(Protocol):
    """Minimal PEP 249 cursor used by the mapping core."""

    @property
    def lastrowid(self) -> Any:
        """Row id / generated key of the last write, or ``None``."""
        ...

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        ...

    def fetchone(self) -> Sequence[Any] | None:
        ...

    def fetchall(self) -> list[Sequence[Any]]:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS PEP 249 connection.

    Drivers that expose an ``autocommit`` attribute (sqlite3 on Python
    3.12+, psycopg, pyodbc) have it switched off for the lifetime of a
    transaction.
    """

    def cursor(self) -> Cursor:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class DataSource(Protocol):
    """Connection provider: hands out a new connection per call."""

    @property
    def dialect(self) -> Dialect:
        ...

    def get_connection(self) -> Connection:
        ...


__all__ = [
    "Cursor",
    "Connection",
    "DataSource",
]
