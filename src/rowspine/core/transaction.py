"""Transaction context — one connection, one unit of work.

``transaction(data_source)`` acquires a fresh connection, switches off
auto-commit, binds a :class:`TransactionContext` for the duration of the
block, and then either commits or rolls back, exactly once::

    with transaction(data_source) as tx:
        repository.save(person)       # reads the ambient context
        tx.connection                 # or pass the context explicitly

Architecture:
    ::

        transaction(data_source)
        │
        ├── active context? ──────────────── yes → NestedTransactionError
        ├── connection = data_source.get_connection()
        ├── connection.autocommit = False    (when the driver exposes it)
        ├── bind TransactionContext (ContextVar) + log context
        │
        ├── block ok     → commit
        ├── block raises → rollback
        │                  ├── rollback raises → add_suppressed(original, it)
        │                  └── re-raise original (DataAccessError unwrapped)
        │
        └── always: unbind, connection.close()  (exactly once)

The binding lives in a ``ContextVar``: every thread and every asyncio task
sees only the transaction it opened itself.

Tags:
    transaction, unit-of-work, contextvars, commit, rollback, rowspine
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterator, Sequence
from contextlib import closing, contextmanager
from contextvars import ContextVar
from typing import Any, TypeVar

from rowspine.core.dialect import Dialect
from rowspine.core.errors import (
    DataAccessError,
    NestedTransactionError,
    NoActiveTransactionError,
    add_suppressed,
    unwrap_data_access_error,
)
from rowspine.core.logging import LogContext, get_logger
from rowspine.core.protocols import Connection, Cursor, DataSource

logger = get_logger(__name__)

T = TypeVar("T")


class TransactionContext:
    """The connection bound to one unit of work, plus its dialect.

    Statements go through :meth:`execute` / :meth:`fetch_all` so that driver
    failures surface uniformly as :class:`DataAccessError`.
    """

    def __init__(self, data_source: DataSource, connection: Connection) -> None:
        self.data_source = data_source
        self.connection = connection
        self.dialect: Dialect = data_source.dialect
        self.transaction_id = uuid.uuid4().hex[:8]
        # PEP 249 extension: drivers expose their exception base on the connection.
        driver_error = getattr(connection, "Error", None)
        if not (isinstance(driver_error, type) and issubclass(driver_error, BaseException)):
            driver_error = Exception
        self.driver_error: type[BaseException] = driver_error

    def execute(self, sql: str, params: Sequence[Any] = (), *, method: str | None = None) -> Cursor:
        """Execute one statement and return its open cursor (caller closes it)."""
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, tuple(params))
        except self.driver_error as exc:
            cursor.close()
            raise DataAccessError(exc, sql=sql, method=method) from exc
        logger.debug("statement_executed", sql=sql, parameters=len(params), method=method)
        return cursor

    def fetch_all(self, sql: str, params: Sequence[Any] = (), *, method: str | None = None) -> list[Sequence[Any]]:
        """Execute a query and return every row."""
        with closing(self.execute(sql, params, method=method)) as cursor:
            try:
                return list(cursor.fetchall())
            except self.driver_error as exc:
                raise DataAccessError(exc, sql=sql, method=method) from exc

    def fetch_one(self, sql: str, params: Sequence[Any] = (), *, method: str | None = None) -> Sequence[Any] | None:
        """Execute a query and return its first row, or ``None``."""
        with closing(self.execute(sql, params, method=method)) as cursor:
            try:
                return cursor.fetchone()
            except self.driver_error as exc:
                raise DataAccessError(exc, sql=sql, method=method) from exc

    def __repr__(self) -> str:
        return f"TransactionContext(id={self.transaction_id!r}, dialect={self.dialect.name!r})"


_current: ContextVar[TransactionContext | None] = ContextVar("rowspine_transaction", default=None)


def current_transaction() -> TransactionContext:
    """The transaction bound to this unit of work.

    Raises:
        NoActiveTransactionError: outside of :func:`transaction`.
    """
    tx = _current.get()
    if tx is None:
        raise NoActiveTransactionError()
    return tx


def current_connection() -> Connection:
    """The connection bound to this unit of work."""
    return current_transaction().connection


def in_transaction() -> bool:
    return _current.get() is not None


def _rollback(connection: Connection, error: BaseException) -> None:
    try:
        connection.rollback()
    except Exception as rollback_error:
        add_suppressed(unwrap_data_access_error(error), rollback_error)
        logger.error(
            "rollback_failed",
            error=type(error).__name__,
            rollback_error=repr(rollback_error),
        )
    else:
        logger.info("transaction_rolled_back", error=type(error).__name__)


@contextmanager
def transaction(data_source: DataSource) -> Iterator[TransactionContext]:
    """Run the ``with`` block as one unit of work on a new connection."""
    if _current.get() is not None:
        raise NestedTransactionError()

    connection = data_source.get_connection()
    try:
        if hasattr(connection, "autocommit"):
            connection.autocommit = False
        tx = TransactionContext(data_source, connection)
        token = _current.set(tx)
        try:
            with LogContext(transaction_id=tx.transaction_id):
                logger.debug("transaction_started", dialect=tx.dialect.name)
                try:
                    yield tx
                except BaseException as exc:
                    _rollback(connection, exc)
                    failure = unwrap_data_access_error(exc)
                    if failure is exc:
                        raise
                    raise failure.with_traceback(failure.__traceback__)
                connection.commit()
                logger.debug("transaction_committed")
        finally:
            _current.reset(token)
    finally:
        connection.close()


def run_in_transaction(data_source: DataSource, block: Callable[[], T]) -> T:
    """Call ``block()`` inside :func:`transaction` and return its result."""
    with transaction(data_source):
        return block()


__all__ = [
    "TransactionContext",
    "transaction",
    "run_in_transaction",
    "current_transaction",
    "current_connection",
    "in_transaction",
]
