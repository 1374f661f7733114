"""
Capability protocols for rowmap.

The query engine never inspects record classes by name.  It relies on two
structural contracts, both produced by the code emitter (or installed at
runtime by :func:`rowmap.core.mapping.mapped`):

    ReadableRecord  - table(), columns(), scan(row)
    WritableRecord  - table(), primary_keys(), primary_values(),
                      value_columns(), values(), auto_increment_column()

and on two collaborator contracts it does not implement itself:

    Connection      - execute(sql, params) -> Cursor   (sqlite3.Connection)
    Cursor          - fetchone(), iteration, lastrowid, close()
    RowScanner      - scan(*types) -> tuple             (rowmap.core.rows)

Architecture:
    ::

        protocols.py
        ├── RowScanner      - positional, typed row reader
        ├── ReadableRecord  - select / select_row targets
        ├── WritableRecord  - insert / update / delete sources
        ├── Cursor          - DB-API 2.0 cursor subset
        └── Connection      - DB-API 2.0 connection subset

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep implementations in generated modules and rowmap.core.rows

Tags:
    protocol, connection, record, capability, rowmap
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RowScanner(Protocol):
    """
    Positional reader for a single result row.

    ``scan`` receives one declared type per selected column, in column order,
    and returns the converted values in the same order.  It raises
    :class:`~rowmap.core.errors.NoRowsError` when there is no row and
    :class:`~rowmap.core.errors.ScanError` on count or conversion mismatch.
    """

    def scan(self, *types: type) -> tuple[Any, ...]:
        ...


@runtime_checkable
class ReadableRecord(Protocol):
    """A record that can be selected and populated from a row.

    ``table`` and ``columns`` are classmethods so the engine can build a
    SELECT from the type alone, before any instance exists.
    """

    @classmethod
    def table(cls) -> str:
        ...

    @classmethod
    def columns(cls) -> list[str]:
        ...

    def scan(self, row: RowScanner) -> None:
        ...


@runtime_checkable
class WritableRecord(Protocol):
    """A record that can be inserted, updated and deleted.

    ``primary_keys``/``primary_values`` and ``value_columns``/``values`` are
    parallel sequences in the same order.
    """

    @classmethod
    def table(cls) -> str:
        ...

    @classmethod
    def primary_keys(cls) -> list[str]:
        ...

    def primary_values(self) -> list[Any]:
        ...

    @classmethod
    def value_columns(cls) -> list[str]:
        ...

    def values(self) -> list[Any]:
        ...

    @classmethod
    def auto_increment_column(cls) -> str:
        ...


@runtime_checkable
class Cursor(Protocol):
    """The subset of a DB-API 2.0 cursor the engine consumes."""

    lastrowid: Any

    def fetchone(self) -> Sequence[Any] | None:
        ...

    def __iter__(self) -> Iterator[Sequence[Any]]:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class Connection(Protocol):
    """
    Minimal synchronous connection interface.

    ``sqlite3.Connection`` satisfies it natively; DB-API drivers whose
    connections lack ``execute`` can be wrapped by a one-method adapter.
    The engine never commits or rolls back: transaction boundaries belong to
    the caller.
    """

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Cursor:
        ...


__all__ = [
    "RowScanner",
    "ReadableRecord",
    "WritableRecord",
    "Cursor",
    "Connection",
]
