"""rowspine core -- schema derivation, transactions, repositories.

Architecture::

    Layer 1 -- Errors, logging, settings
        errors.py          Structured error hierarchy (RowspineError + categories)
        logging.py         structlog configuration + LogContext
        settings.py        RowspineSettings (pydantic-settings, ROWSPINE_*)

    Layer 2 -- Database access
        protocols.py       Cursor / Connection / DataSource protocols
        dialect.py         SQL dialects (ansi, sqlite)
        datasource.py      SqliteDataSource + create_data_source(url)
        transaction.py     transaction() unit of work, ambient ContextVar

    Layer 3 -- Mapping
        markers.py         @table, column(), primary_key, generated_value, @query
        introspection.py   Ordered entity properties (dataclasses, properties)
        schema.py          TableSpec derivation, CREATE TABLE
        mapper.py          Row <-> entity, generated-key propagation
        repository.py      Repository[T, ID] contracts -> implementations

The ``transaction`` context manager is exported from the top-level
``rowspine`` package; here the name refers to the submodule.
"""

from rowspine.core.datasource import DataSourceInfo, SqliteDataSource, create_data_source
from rowspine.core.dialect import AnsiDialect, Dialect, SQLiteDialect, get_dialect, register_dialect
from rowspine.core.errors import (
    ConfigurationError,
    DataAccessError,
    ErrorCategory,
    ErrorContext,
    NestedTransactionError,
    NoActiveTransactionError,
    RepositoryConfigurationError,
    RowspineError,
    SchemaConfigurationError,
    StateError,
    UnsupportedRepositoryOperation,
)
from rowspine.core.introspection import PropertyDescriptor, PropertyIntrospector, set_introspector
from rowspine.core.logging import configure_logging, get_logger
from rowspine.core.markers import column, field_markers, generated_value, primary_key, query, table
from rowspine.core.repository import Repository, create_repository
from rowspine.core.schema import BigInt, ColumnSpec, TableSpec, create_table, create_table_sql, table_spec_of
from rowspine.core.settings import RowspineSettings, get_settings
from rowspine.core.transaction import (
    TransactionContext,
    current_connection,
    current_transaction,
    run_in_transaction,
)

__all__ = [
    # Errors
    "RowspineError",
    "ErrorCategory",
    "ErrorContext",
    "ConfigurationError",
    "SchemaConfigurationError",
    "RepositoryConfigurationError",
    "StateError",
    "NoActiveTransactionError",
    "NestedTransactionError",
    "UnsupportedRepositoryOperation",
    "DataAccessError",
    # Logging / settings
    "configure_logging",
    "get_logger",
    "RowspineSettings",
    "get_settings",
    # Database access
    "Dialect",
    "AnsiDialect",
    "SQLiteDialect",
    "get_dialect",
    "register_dialect",
    "DataSourceInfo",
    "SqliteDataSource",
    "create_data_source",
    "TransactionContext",
    "current_connection",
    "current_transaction",
    "run_in_transaction",
    # Mapping
    "table",
    "column",
    "primary_key",
    "generated_value",
    "query",
    "field_markers",
    "PropertyDescriptor",
    "PropertyIntrospector",
    "set_introspector",
    "BigInt",
    "ColumnSpec",
    "TableSpec",
    "table_spec_of",
    "create_table_sql",
    "create_table",
    "Repository",
    "create_repository",
]
