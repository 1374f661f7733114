"""Tests for the rowmap error hierarchy."""

from __future__ import annotations

import pytest

from rowmap.core.errors import (
    CodegenError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
    ExecutionError,
    InvalidOutputError,
    InvalidShapeError,
    NoRowsError,
    RowmapError,
    ScanError,
    TemplateRenderError,
    WriteError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        ("error_cls", "category"),
        [
            (InvalidShapeError, ErrorCategory.SHAPE),
            (InvalidOutputError, ErrorCategory.OUTPUT),
            (ConfigError, ErrorCategory.CONFIG),
            (NoRowsError, ErrorCategory.DATABASE),
            (ExecutionError, ErrorCategory.DATABASE),
            (ScanError, ErrorCategory.SCAN),
            (TemplateRenderError, ErrorCategory.CODEGEN),
            (WriteError, ErrorCategory.CODEGEN),
        ],
    )
    def test_default_category(self, error_cls: type[RowmapError], category: ErrorCategory) -> None:
        err = error_cls("boom")
        assert isinstance(err, RowmapError)
        assert err.category == category

    def test_builtin_bases(self) -> None:
        assert issubclass(InvalidShapeError, TypeError)
        assert issubclass(InvalidOutputError, TypeError)
        assert issubclass(NoRowsError, LookupError)
        assert issubclass(WriteError, CodegenError)

    def test_category_override(self) -> None:
        err = ScanError("boom", category=ErrorCategory.INTERNAL)
        assert err.category == ErrorCategory.INTERNAL


class TestNoRowsError:
    def test_default_message(self) -> None:
        assert str(NoRowsError()) == "no rows in result set"

    def test_identity_is_preserved(self) -> None:
        err = NoRowsError()
        with pytest.raises(NoRowsError) as exc_info:
            raise err
        assert exc_info.value is err


class TestContext:
    def test_with_context_sets_known_and_extra_keys(self) -> None:
        err = InvalidShapeError("bad").with_context(record_type="app.Person", hint="use @dataclass")
        assert err.context.record_type == "app.Person"
        assert err.context.metadata == {"hint": "use @dataclass"}

    def test_context_to_dict_skips_unset(self) -> None:
        assert ErrorContext(table="person").to_dict() == {"table": "person"}

    def test_to_dict(self) -> None:
        cause = ValueError("inner")
        err = ScanError("outer", cause=cause).with_context(table="person")
        assert err.to_dict() == {
            "error_type": "ScanError",
            "message": "outer",
            "category": "SCAN",
            "context": {"table": "person"},
            "cause": "inner",
        }
        assert err.__cause__ is cause


class TestExecutionErrorWrap:
    def test_message_reproduces_statement(self) -> None:
        cause = RuntimeError("disk I/O error")
        err = ExecutionError.wrap("select", "SELECT id FROM person WHERE id = ?", [1], cause=cause, table="person")
        assert err.message == "select: disk I/O error [sql='SELECT id FROM person WHERE id = ?' params=[1]]"
        assert err.context.operation == "select"
        assert err.context.table == "person"
        assert err.context.params == [1]
        assert err.cause is cause

    def test_reason_without_cause(self) -> None:
        err = ExecutionError.wrap("insert", "INSERT", [], reason="no id")
        assert err.message.startswith("insert: no id")
        assert err.cause is None
