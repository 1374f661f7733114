"""
Structured error types for rowmap.

Every failure raised by the extractor, the code emitter and the query engine
is a :class:`RowmapError`.  Errors carry a category, a structured context
(operation, table, SQL text, bound parameters) and the chained driver
exception, so a failing statement can be reproduced from the error alone.

Manifesto:
    - **Typed hierarchy:** One class per failure kind, not string matching
    - **Reproducible:** Execution errors always carry SQL and parameters
    - **Distinguished no-rows:** ``NoRowsError`` is a condition, not a defect,
      and is never wrapped
    - **Error chaining:** The driver exception is preserved as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                        RowmapError                           │
        │            (category, context, cause)                        │
        ├──────────────────────────────────────────────────────────────┤
        │                                                              │
        │  InvalidShapeError   InvalidOutputError   ConfigError        │
        │  (SHAPE)             (OUTPUT)             (CONFIG)           │
        │                                                              │
        │  NoRowsError         ExecutionError       ScanError          │
        │  (DATABASE)          (DATABASE)           (SCAN)             │
        │                                                              │
        │  CodegenError ── TemplateRenderError, WriteError (CODEGEN)   │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> err = ExecutionError.wrap(
    ...     "update", "UPDATE person SET name = ? WHERE id = ?", ["x", 1],
    ...     cause=ValueError("boom"),
    ... )
    >>> err.context.sql
    'UPDATE person SET name = ? WHERE id = ?'
    >>> err.to_dict()["category"]
    'DATABASE'

Guardrails:
    ❌ DON'T: Wrap ``NoRowsError`` in ``ExecutionError``
    ✅ DO: Re-raise it unchanged so callers can branch on it

    ❌ DON'T: Raise bare ``Exception`` from library code
    ✅ DO: Pick the matching ``RowmapError`` subclass and pass ``cause=``

Tags:
    error-handling, exception-hierarchy, error-context, rowmap
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification."""

    SHAPE = "SHAPE"              # Type is not a mappable record
    OUTPUT = "OUTPUT"            # Destination argument has the wrong shape
    DATABASE = "DATABASE"        # Driver / statement failures
    SCAN = "SCAN"                # Row to record conversion
    CODEGEN = "CODEGEN"          # Template rendering, formatting, writing
    CONFIG = "CONFIG"            # Invalid settings
    INTERNAL = "INTERNAL"        # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only the fields that are set are serialized by :meth:`to_dict`, so the
    same context type works for extraction errors (``record_type``), query
    errors (``operation``, ``sql``, ``params``) and codegen errors (``path``).

    Attributes:
        operation: Query engine operation (``select``, ``insert`` ...)
        table: Table the statement targets
        sql: Final SQL text after placeholder expansion
        params: Flattened parameter list bound to ``sql``
        record_type: Qualified name of the record type involved
        path: Filesystem path (code generation)
        metadata: Additional key-value pairs
    """

    operation: str | None = None
    table: str | None = None
    sql: str | None = None
    params: list[Any] | None = None
    record_type: str | None = None
    path: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ["operation", "table", "sql", "params", "record_type", "path"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RowmapError(Exception):
    """
    Base exception for all rowmap errors.

    Subclasses set ``default_category``; callers may still override it.
    ``cause`` is chained through ``__cause__`` so tracebacks show the
    underlying driver error.
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

    def with_context(self, **kwargs: Any) -> RowmapError:
        """
        Add context to this error (fluent API).

        Usage:
            raise InvalidShapeError("not a dataclass").with_context(
                record_type="app.models.Person",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# SHAPE ERRORS (raised before any I/O)
# =============================================================================


class InvalidShapeError(RowmapError, TypeError):
    """The supplied type is not (and does not dereference to) a record."""

    default_category = ErrorCategory.SHAPE


class InvalidOutputError(RowmapError, TypeError):
    """The destination of ``select`` / ``select_row`` has the wrong shape."""

    default_category = ErrorCategory.OUTPUT


class ConfigError(RowmapError):
    """Invalid generator or logging settings."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class NoRowsError(RowmapError, LookupError):
    """
    The statement produced no row.

    This is a condition, not a defect: ``select_row`` raises it when the
    cursor is empty and every layer re-raises it unchanged.
    """

    default_category = ErrorCategory.DATABASE

    def __init__(self, message: str = "no rows in result set", **kwargs: Any):
        super().__init__(message, **kwargs)


class ExecutionError(RowmapError):
    """A driver failure, wrapped with the statement that caused it."""

    default_category = ErrorCategory.DATABASE

    @classmethod
    def wrap(
        cls,
        operation: str,
        sql: str,
        params: list[Any],
        *,
        cause: BaseException | None = None,
        table: str | None = None,
        reason: str | None = None,
    ) -> ExecutionError:
        """Build an error whose message alone reproduces the statement."""
        detail = reason or (str(cause) if cause is not None else "unknown failure")
        message = f"{operation}: {detail} [sql={sql!r} params={params!r}]"
        context = ErrorContext(operation=operation, table=table, sql=sql, params=list(params))
        return cls(message, context=context, cause=cause)


class ScanError(RowmapError):
    """A row could not be converted into the record's declared field types."""

    default_category = ErrorCategory.SCAN


# =============================================================================
# CODEGEN ERRORS (offline only)
# =============================================================================


class CodegenError(RowmapError):
    """Base for code emission failures."""

    default_category = ErrorCategory.CODEGEN


class TemplateRenderError(CodegenError):
    """The accessor template failed to render or the output failed to format."""


class WriteError(CodegenError):
    """The generated module could not be written to its destination."""


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "RowmapError",
    "InvalidShapeError",
    "InvalidOutputError",
    "ConfigError",
    "NoRowsError",
    "ExecutionError",
    "ScanError",
    "CodegenError",
    "TemplateRenderError",
    "WriteError",
]
