"""Tests for rowspine.core.errors module."""

import pytest

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
    add_suppressed,
    categorize_error,
    unwrap_data_access_error,
)


class TestErrorCategory:
    """Test ErrorCategory enum."""

    def test_categories_are_strings(self):
        assert ErrorCategory.CONFIG == "CONFIG"
        assert ErrorCategory.STATE.value == "STATE"

    def test_all_categories_defined(self):
        names = {c.name for c in ErrorCategory}
        assert {"CONFIG", "STATE", "DATABASE", "INTERNAL", "UNKNOWN"} <= names


class TestErrorContext:
    def test_to_dict_skips_unset_fields(self):
        ctx = ErrorContext(table="PERSON", method="find_by_id")
        assert ctx.to_dict() == {"table": "PERSON", "method": "find_by_id"}

    def test_to_dict_includes_metadata(self):
        ctx = ErrorContext(entity="Person", metadata={"attempt": 2})
        assert ctx.to_dict() == {"entity": "Person", "attempt": 2}


class TestRowspineError:
    def test_default_category_is_internal(self):
        assert RowspineError("boom").category == ErrorCategory.INTERNAL

    def test_category_override(self):
        error = RowspineError("boom", category=ErrorCategory.DATABASE)
        assert error.category == ErrorCategory.DATABASE

    def test_cause_is_chained(self):
        cause = ValueError("bad value")
        error = RowspineError("mapping failed", cause=cause)
        assert error.cause is cause
        assert error.__cause__ is cause

    def test_with_context_is_fluent(self):
        error = SchemaConfigurationError("two ids").with_context(entity="Person", extra="x")
        assert isinstance(error, SchemaConfigurationError)
        assert error.context.entity == "Person"
        assert error.context.metadata == {"extra": "x"}

    def test_to_dict(self):
        error = RowspineError("boom", cause=KeyError("k")).with_context(table="PERSON")
        data = error.to_dict()
        assert data["error_type"] == "RowspineError"
        assert data["message"] == "boom"
        assert data["category"] == "INTERNAL"
        assert data["context"] == {"table": "PERSON"}
        assert "KeyError" in data["cause"]

    def test_repr(self):
        assert repr(StateError("nope")) == "StateError('nope', category=STATE)"


class TestHierarchy:
    @pytest.mark.parametrize(
        ("error_type", "base", "category"),
        [
            (SchemaConfigurationError, ConfigurationError, ErrorCategory.CONFIG),
            (RepositoryConfigurationError, ConfigurationError, ErrorCategory.CONFIG),
            (NoActiveTransactionError, StateError, ErrorCategory.STATE),
            (NestedTransactionError, StateError, ErrorCategory.STATE),
        ],
    )
    def test_categories(self, error_type, base, category):
        error = error_type() if error_type in (NoActiveTransactionError, NestedTransactionError) else error_type("x")
        assert isinstance(error, base)
        assert isinstance(error, RowspineError)
        assert error.category == category

    def test_no_active_transaction_message(self):
        assert str(NoActiveTransactionError()) == "no connection available"

    def test_unsupported_operation_records_method(self):
        error = UnsupportedRepositoryOperation("__repr__", "PersonRepository")
        assert error.method == "__repr__"
        assert error.context.method == "__repr__"
        assert "PersonRepository" in str(error)
        assert error.category == ErrorCategory.STATE


class TestDataAccessError:
    def test_wraps_driver_error(self):
        cause = RuntimeError("disk I/O error")
        error = DataAccessError(cause, sql="SELECT 1", method="find_all")
        assert error.cause is cause
        assert error.__cause__ is cause
        assert error.category == ErrorCategory.DATABASE
        assert error.context.sql == "SELECT 1"
        assert "disk I/O error" in str(error)

    def test_unwrap_returns_cause(self):
        cause = RuntimeError("locked")
        assert unwrap_data_access_error(DataAccessError(cause)) is cause

    def test_unwrap_leaves_other_errors(self):
        error = ValueError("x")
        assert unwrap_data_access_error(error) is error


class TestCategorizeError:
    def test_rowspine_error(self):
        assert categorize_error(NestedTransactionError()) == ErrorCategory.STATE

    def test_foreign_error(self):
        assert categorize_error(ZeroDivisionError()) == ErrorCategory.UNKNOWN


class TestAddSuppressed:
    def test_appends_and_notes(self):
        error = ValueError("original")
        add_suppressed(error, RuntimeError("rollback failed"))
        add_suppressed(error, OSError("close failed"))
        assert [type(e) for e in error.suppressed] == [RuntimeError, OSError]
        assert error.__notes__ == [
            "suppressed: RuntimeError: rollback failed",
            "suppressed: OSError: close failed",
        ]

    def test_returns_original(self):
        error = ValueError("original")
        assert add_suppressed(error, RuntimeError()) is error
