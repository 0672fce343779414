"""Entity mapping — result rows ⇄ entity instances.

Rows are mapped *positionally*: value ``i`` of a row belongs to column ``i``
of the :class:`~rowspine.core.schema.TableSpec`. Queries must therefore
select columns in schema order, which ``SELECT *`` against a table created
from the same spec does.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from rowspine.core.dialect import Dialect
from rowspine.core.introspection import unwrap_optional
from rowspine.core.logging import get_logger
from rowspine.core.protocols import Cursor
from rowspine.core.schema import TableSpec

if TYPE_CHECKING:
    from rowspine.core.transaction import TransactionContext

logger = get_logger(__name__)

T = TypeVar("T")


def cast_value(value: Any, value_type: Any) -> Any:
    """Convert a column value to a property's declared type.

    ``None`` stays ``None``; ``NewType`` aliases cast through their
    supertype.
    """
    if value is None:
        return None
    target, _ = unwrap_optional(value_type)
    target = getattr(target, "__supertype__", target)
    if not isinstance(target, type) or isinstance(value, target):
        return value
    return target(value)


def row_to_entity(row: Sequence[Any], table: TableSpec, constructor: Callable[[], T]) -> T:
    """Build an entity from one result row."""
    instance = constructor()
    for value, column in zip(row, table.columns, strict=False):
        prop = column.descriptor
        if prop.setter is None:
            continue
        prop.setter(instance, cast_value(value, prop.value_type))
    return instance


def query_entities(
    tx: TransactionContext,
    sql: str,
    params: Sequence[Any],
    table: TableSpec,
    constructor: Callable[[], T],
    *,
    method: str | None = None,
) -> list[T]:
    """Run a SELECT on ``tx`` and map every row."""
    return [row_to_entity(row, table, constructor) for row in tx.fetch_all(sql, params, method=method)]


def entity_to_parameters(entity: Any, table: TableSpec) -> tuple[Any, ...]:
    """Property values of ``entity`` in column order."""
    return tuple(column.descriptor.getter(entity) for column in table.columns)


def propagate_generated_key(entity: Any, table: TableSpec, cursor: Cursor, dialect: Dialect) -> bool:
    """Copy a database-generated id back into ``entity``.

    Returns ``True`` when a key was produced and set.
    """
    id_column = table.id_column
    if id_column is None or id_column.descriptor.setter is None:
        return False
    key = dialect.generated_key(cursor, table)
    if key is None:
        return False
    id_column.descriptor.setter(entity, cast_value(key, id_column.descriptor.value_type))
    logger.debug("generated_key_propagated", table=table.table_name, column=id_column.column_name, key=key)
    return True


__all__ = [
    "cast_value",
    "row_to_entity",
    "query_entities",
    "entity_to_parameters",
    "propagate_generated_key",
]
