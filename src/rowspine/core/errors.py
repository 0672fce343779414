"""
Structured error types for rowspine.

Every failure the mapping core raises belongs to one of three categories, and
the category alone decides how the failure travels:

- **Configuration:** the entity or repository declaration is wrong
  (unmapped property type, two primary keys, a contract that does not name
  its entity type). Raised at derivation time, never retried.
- **State:** the call was made in the wrong state (no active transaction,
  nested transaction, unsupported repository method). Raised immediately to
  the caller.
- **Data access:** the database driver failed while executing a statement.
  Wrapped once into :class:`DataAccessError`, carried to the enclosing
  transaction, which rolls back and re-raises the driver error.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                        RowspineError                             │
        │              (category, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigurationError      StateError           DataAccessError    │
        │  (CONFIG)                (STATE)              (DATABASE)         │
        │       │                      │                                   │
        │  SchemaConfiguration     NoActiveTransaction                     │
        │  RepositoryConfiguration NestedTransaction                       │
        │                          UnsupportedRepositoryOperation          │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = SchemaConfigurationError("unknown property type")
    >>> error.category
    <ErrorCategory.CONFIG: 'CONFIG'>
    >>> error.with_context(entity="Person", column="AGE").context.column
    'AGE'

Tags:
    error-handling, exception-hierarchy, error-context, rowspine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    CONFIG = "CONFIG"             # Invalid entity/repository declaration
    STATE = "STATE"               # Call made outside the required state
    DATABASE = "DATABASE"         # Driver failure while executing SQL

    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Typed fields cover what the mapping core knows at the failure site;
    anything else goes into ``metadata``. ``to_dict()`` keeps only the
    fields that were set, so it can be splatted into a structured log line.

    Attributes:
        entity: Entity type name (e.g. ``"Person"``)
        table: Table name (e.g. ``"PERSON"``)
        column: Column name involved in the failure
        method: Repository method being dispatched
        sql: SQL statement being executed
        metadata: Additional key-value pairs
    """

    entity: str | None = None
    table: str | None = None
    column: str | None = None
    method: str | None = None
    sql: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["entity", "table", "column", "method", "sql"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RowspineError(Exception):
    """
    Base exception for all rowspine errors.

    Subclasses set ``default_category``; callers may still override it per
    instance. When ``cause`` is given it is also installed as
    ``__cause__`` so tracebacks show the chain.

    Examples:
        >>> try:
        ...     raise ValueError("bad value")
        ... except ValueError as e:
        ...     error = RowspineError("mapping failed", cause=e)
        >>> error.cause
        ValueError('bad value')
        >>> error.to_dict()["category"]
        'INTERNAL'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RowspineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SchemaConfigurationError("two ids").with_context(
                entity="Person", table="PERSON"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if context := self.context.to_dict():
            result["context"] = context
        if self.cause is not None:
            result["cause"] = repr(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(RowspineError):
    """
    Configuration error.

    Never retryable - the entity or repository declaration must be fixed.
    """

    default_category = ErrorCategory.CONFIG


class SchemaConfigurationError(ConfigurationError):
    """Entity type cannot be mapped to a table (unmapped type, several ids)."""

    pass


class RepositoryConfigurationError(ConfigurationError):
    """Repository contract has an invalid shape."""

    pass


# =============================================================================
# STATE ERRORS
# =============================================================================


class StateError(RowspineError):
    """Operation invoked in a state that does not allow it."""

    default_category = ErrorCategory.STATE


class NoActiveTransactionError(StateError):
    """No transaction is bound to the current unit of work."""

    def __init__(self, message: str = "no connection available", **kwargs: Any):
        super().__init__(message, **kwargs)


class NestedTransactionError(StateError):
    """A transaction is already active for the current unit of work."""

    def __init__(self, message: str = "a transaction is already active", **kwargs: Any):
        super().__init__(message, **kwargs)


class UnsupportedRepositoryOperation(StateError):
    """Repository method has no query strategy."""

    def __init__(self, method: str, contract: str | None = None):
        self.method = method
        where = f" on {contract}" if contract else ""
        super().__init__(
            f"unsupported repository operation {method!r}{where}",
            context=ErrorContext(method=method),
        )


# =============================================================================
# DATA ACCESS ERRORS
# =============================================================================


class DataAccessError(RowspineError):
    """
    Driver failure raised while a repository executed a statement.

    Always carries the original driver exception as ``cause``.
    """

    default_category = ErrorCategory.DATABASE

    def __init__(self, cause: BaseException, *, sql: str | None = None, method: str | None = None):
        super().__init__(
            f"data access failed: {cause}",
            context=ErrorContext(sql=sql, method=method),
            cause=cause,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, RowspineError):
        return error.category
    return ErrorCategory.UNKNOWN


def unwrap_data_access_error(error: BaseException) -> BaseException:
    """Return the driver exception behind a :class:`DataAccessError`.

    Any other exception is returned unchanged.
    """
    if isinstance(error, DataAccessError) and error.cause is not None:
        return error.cause
    return error


def add_suppressed(error: BaseException, secondary: BaseException) -> BaseException:
    """Attach ``secondary`` to ``error`` without replacing it.

    The secondary failure is appended to ``error.suppressed`` and recorded
    as an exception note so it shows up in the traceback.
    """
    suppressed = getattr(error, "suppressed", None)
    if suppressed is None:
        suppressed = []
        error.suppressed = suppressed  # type: ignore[attr-defined]
    suppressed.append(secondary)
    error.add_note(f"suppressed: {type(secondary).__name__}: {secondary}")
    return error


__all__ = [
    # Category enum
    "ErrorCategory",
    # Context
    "ErrorContext",
    # Base
    "RowspineError",
    # Config
    "ConfigurationError",
    "SchemaConfigurationError",
    "RepositoryConfigurationError",
    # State
    "StateError",
    "NoActiveTransactionError",
    "NestedTransactionError",
    "UnsupportedRepositoryOperation",
    # Data access
    "DataAccessError",
    # Utilities
    "categorize_error",
    "unwrap_data_access_error",
    "add_suppressed",
]
