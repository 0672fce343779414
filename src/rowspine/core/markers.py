"""Declarative markers — the configuration surface of entities and repositories.

Markers are plain decorators that record a key/value pair on the decorated
object. Every marker is optional; without them the schema deriver falls
back to naming conventions.

Usage::

    @table("PEOPLE")
    class Person:
        @property
        @primary_key
        @generated_value
        def id(self) -> int | None:
            return self._id

        @property
        @column("FULL_NAME")
        def name(self) -> str | None:
            return self._name

    class PersonRepository(Repository[Person, int]):
        @query("SELECT * FROM PEOPLE WHERE FULL_NAME LIKE ?")
        def search(self, pattern: str) -> list[Person]: ...

Dataclass entities carry the same keys in their field metadata::

    @dataclass
    class Person:
        id: int | None = field(default=None, metadata=field_markers(primary_key=True, generated_value=True))

Property markers go *under* ``@property`` (they mark the getter). Applied
to an existing ``property`` object they mark its getter too.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, TypeVar

T = TypeVar("T")

MARKERS_ATTR = "__rowspine_markers__"

TABLE = "table"
COLUMN = "column"
PRIMARY_KEY = "primary_key"
GENERATED_VALUE = "generated_value"
QUERY = "query"

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def _mark(target: T, key: str, value: Any) -> T:
    holder: Any = target.fget if isinstance(target, property) else target
    if holder is None:
        raise TypeError(f"cannot mark a property without getter with {key!r}")
    markers = holder.__dict__.get(MARKERS_ATTR)
    if markers is None:
        markers = {}
        setattr(holder, MARKERS_ATTR, markers)
    markers[key] = value
    return target


def markers_of(target: Any) -> Mapping[str, Any]:
    """Markers recorded directly on ``target`` (never inherited)."""
    if isinstance(target, property):
        target = target.fget
    namespace = getattr(target, "__dict__", None)
    if not namespace:
        return _EMPTY
    return MappingProxyType(namespace.get(MARKERS_ATTR) or {})


def table(name: str) -> Callable[[type[T]], type[T]]:
    """Override the table name of an entity class."""

    def decorator(cls: type[T]) -> type[T]:
        return _mark(cls, TABLE, name)

    return decorator


def column(name: str) -> Callable[[T], T]:
    """Override the column name of a property."""

    def decorator(getter: T) -> T:
        return _mark(getter, COLUMN, name)

    return decorator


def primary_key(getter: T) -> T:
    """Mark a property as the identifier of its entity."""
    return _mark(getter, PRIMARY_KEY, True)


def generated_value(getter: T) -> T:
    """Mark a property whose value is generated by the database."""
    return _mark(getter, GENERATED_VALUE, True)


def query(sql: str) -> Callable[[T], T]:
    """Bind a repository method to a literal SQL query."""

    def decorator(method: T) -> T:
        return _mark(method, QUERY, sql)

    return decorator


def field_markers(
    *,
    column: str | None = None,
    primary_key: bool = False,
    generated_value: bool = False,
) -> dict[str, Any]:
    """Markers for ``dataclasses.field(metadata=...)``."""
    metadata: dict[str, Any] = {}
    if column is not None:
        metadata[COLUMN] = column
    if primary_key:
        metadata[PRIMARY_KEY] = True
    if generated_value:
        metadata[GENERATED_VALUE] = True
    return metadata


__all__ = [
    "TABLE",
    "COLUMN",
    "PRIMARY_KEY",
    "GENERATED_VALUE",
    "QUERY",
    "table",
    "column",
    "primary_key",
    "generated_value",
    "query",
    "field_markers",
    "markers_of",
]
