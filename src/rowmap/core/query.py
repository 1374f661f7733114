"""
Generic SELECT / INSERT / UPDATE / DELETE over mapped records.

:class:`QueryEngine` pairs a :class:`~rowmap.core.metadata.MetadataRegistry`
with the capability protocols so that any record class produced by the code
emitter (or by :func:`~rowmap.core.mapping.mapped`) can be read and written
through any DB-API style connection, without per-type SQL.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                          QueryEngine                               │
    │                                                                    │
    │   registry: MetadataRegistry   ← cached (table, columns) per type  │
    │                                                                    │
    │   select(conn, Type, fragment, *args)      → list[Type]            │
    │   select_row(conn, record, fragment, *args) → record | NoRowsError │
    │   insert(conn, record)                     → generated id          │
    │   update(conn, record)                     → None                  │
    │   delete(conn, record)                     → None                  │
    └────────────────────────────────────────────────────────────────────┘
                │ expand(sql, *args)                 │ conn.execute(sql, params)
                ▼                                    ▼
        rowmap.core.placeholders              caller's connection

``fragment`` is everything after ``FROM <table>``: ``"WHERE name = ?"``,
``"WHERE id IN (?) ORDER BY id"``, or empty.

Usage:
    >>> people = select(conn, PersonRecord, "WHERE name IN (?)", ["Alberto", "Lamimi"])
    >>> person = select_row(conn, PersonRecord(), "WHERE id = ?", 6)
    >>> new_id = insert(conn, PersonRecord(name="X", created_at=now))

The engine never commits: transaction boundaries belong to the caller.

Tags:
    query, repository, database, sql, rowmap
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any, TypeVar

from rowmap.core.errors import (
    ExecutionError,
    InvalidOutputError,
    NoRowsError,
    RowmapError,
)
from rowmap.core.logging import get_logger
from rowmap.core.metadata import MetadataRegistry
from rowmap.core.placeholders import PLACEHOLDER, expand
from rowmap.core.protocols import (
    Connection,
    Cursor,
    ReadableRecord,
    WritableRecord,
)
from rowmap.core.rows import Row, SingleRow, allocate

logger = get_logger(__name__)

R = TypeVar("R")


def _conjunction(columns: Sequence[str]) -> str:
    return " AND ".join(f"{column} = {PLACEHOLDER}" for column in columns)


def _assignments(columns: Sequence[str]) -> str:
    return ", ".join(f"{column} = {PLACEHOLDER}" for column in columns)


def _parallel(record: Any, columns: list[str], values: list[Any], what: str) -> None:
    if len(columns) != len(values):
        raise InvalidOutputError(
            f"{type(record).__qualname__}: {len(columns)} {what} column(s) "
            f"but {len(values)} value(s)"
        )


class QueryEngine:
    """Builds and executes statements for mapped records.

    Parameters:
        registry: Metadata cache; a private one is created when omitted.
    """

    def __init__(self, registry: MetadataRegistry | None = None) -> None:
        self.registry = registry if registry is not None else MetadataRegistry()

    # -- Statement construction --------------------------------------------

    def build_select(
        self, record_type: type, fragment: str = "", *args: Any
    ) -> tuple[str, list[Any]]:
        """Return the expanded ``SELECT`` and its parameters."""
        table, columns = self.registry.select_shape(record_type)
        sql = f"SELECT {', '.join(columns)} FROM {table} {fragment}".rstrip()
        return expand(sql, *args)

    def build_insert(self, record: WritableRecord) -> tuple[str, list[Any]]:
        """Return the expanded ``INSERT`` (auto-increment column omitted)."""
        columns = [*record.primary_keys(), *record.value_columns()]
        values = [*record.primary_values(), *record.values()]
        _parallel(record, columns, values, "insert")

        auto = record.auto_increment_column()
        pairs = [(c, v) for c, v in zip(columns, values) if not auto or c != auto]
        placeholders = ", ".join(PLACEHOLDER for _ in pairs)
        sql = (
            f"INSERT INTO {record.table()} ({', '.join(c for c, _ in pairs)}) "
            f"VALUES ({placeholders})"
        )
        return expand(sql, *(v for _, v in pairs))

    def build_update(self, record: WritableRecord) -> tuple[str, list[Any]]:
        """Return the expanded ``UPDATE``; values bind before primary keys."""
        value_columns, values = record.value_columns(), record.values()
        keys, key_values = record.primary_keys(), record.primary_values()
        _parallel(record, value_columns, values, "value")
        _parallel(record, keys, key_values, "primary key")

        sql = (
            f"UPDATE {record.table()} SET {_assignments(value_columns)} "
            f"WHERE {_conjunction(keys)}"
        )
        return expand(sql, *values, *key_values)

    def build_delete(self, record: WritableRecord) -> tuple[str, list[Any]]:
        """Return the expanded ``DELETE`` keyed on the primary columns."""
        keys, key_values = record.primary_keys(), record.primary_values()
        _parallel(record, keys, key_values, "primary key")
        sql = f"DELETE FROM {record.table()} WHERE {_conjunction(keys)}"
        return expand(sql, *key_values)

    # -- Operations ---------------------------------------------------------

    def select(
        self,
        conn: Connection,
        record_type: type[R],
        fragment: str = "",
        *args: Any,
        into: list[R] | None = None,
    ) -> list[R]:
        """Select every matching row as a fresh ``record_type`` instance.

        Rows are appended to ``into`` (a new list when omitted) in cursor
        order.  If scanning a row fails, the error propagates and ``into``
        keeps the rows scanned before it.

        Raises:
            InvalidOutputError: ``record_type`` is not a readable record class
                or ``into`` is not a list.
            NoRowsError: Propagated unchanged from the driver.
            ExecutionError: Any other driver failure.
        """
        if not isinstance(record_type, type) or not isinstance(record_type, ReadableRecord):
            raise InvalidOutputError(
                f"output is not a ReadableRecord class: {record_type!r}"
            )
        if into is None:
            into = []
        elif not isinstance(into, list):
            raise InvalidOutputError(
                f"output container is not a list: {type(into).__qualname__}"
            )

        sql, params = self.build_select(record_type, fragment, *args)
        table = self.registry.select_shape(record_type)[0]
        cursor = self._execute(conn, "select", table, sql, params)
        try:
            for raw in self._iterate(cursor, "select", table, sql, params):
                record = allocate(record_type)
                record.scan(Row(raw))
                into.append(record)
        finally:
            cursor.close()
        return into

    def select_row(
        self,
        conn: Connection,
        record: R,
        fragment: str = "",
        *args: Any,
    ) -> R:
        """Populate ``record`` from the first matching row.

        Raises:
            InvalidOutputError: ``record`` is not a readable record instance.
            NoRowsError: No row matched; ``record`` is left unmodified.
            ExecutionError: Any other driver failure.
        """
        if isinstance(record, type) or not isinstance(record, ReadableRecord):
            raise InvalidOutputError(
                f"output is not a ReadableRecord instance: {record!r}"
            )

        record_type = type(record)
        sql, params = self.build_select(record_type, fragment, *args)
        table = self.registry.select_shape(record_type)[0]
        row = SingleRow(self._execute(conn, "select_row", table, sql, params))
        try:
            record.scan(row)
        except RowmapError:
            raise
        except Exception as exc:
            raise self._wrap("select_row", table, sql, params, exc) from exc
        finally:
            row.close()
        return record

    def insert(self, conn: Connection, record: WritableRecord) -> int:
        """Insert ``record`` and return the driver-assigned row id."""
        self._check_writable(record)
        sql, params = self.build_insert(record)
        table = record.table()
        cursor = self._execute(conn, "insert", table, sql, params)
        try:
            generated = cursor.lastrowid
        finally:
            cursor.close()
        if generated is None:
            logger.error("query_failed", operation="insert", table=table, sql=sql, params=params)
            raise ExecutionError.wrap(
                "insert",
                sql,
                params,
                table=table,
                reason="driver did not report a generated identifier",
            )
        return int(generated)

    def update(self, conn: Connection, record: WritableRecord) -> None:
        """Write the value columns of ``record`` to the row with its primary key."""
        self._check_writable(record)
        sql, params = self.build_update(record)
        self._execute(conn, "update", record.table(), sql, params).close()

    def delete(self, conn: Connection, record: WritableRecord) -> None:
        """Delete the row with ``record``'s primary key."""
        self._check_writable(record)
        sql, params = self.build_delete(record)
        self._execute(conn, "delete", record.table(), sql, params).close()

    # -- Internals ------------------------------------------------------------

    @staticmethod
    def _check_writable(record: Any) -> None:
        if isinstance(record, type) or not isinstance(record, WritableRecord):
            raise InvalidOutputError(f"not a WritableRecord instance: {record!r}")

    @staticmethod
    def _wrap(
        operation: str, table: str, sql: str, params: list[Any], exc: BaseException
    ) -> ExecutionError:
        logger.error(
            "query_failed",
            operation=operation,
            table=table,
            sql=sql,
            params=params,
            error=str(exc),
        )
        return ExecutionError.wrap(operation, sql, params, cause=exc, table=table)

    def _execute(
        self,
        conn: Connection,
        operation: str,
        table: str,
        sql: str,
        params: list[Any],
    ) -> Cursor:
        logger.debug("statement", operation=operation, sql=sql, params=params)
        try:
            return conn.execute(sql, params)
        except NoRowsError:
            raise
        except Exception as exc:
            raise self._wrap(operation, table, sql, params, exc) from exc

    def _iterate(
        self,
        cursor: Cursor,
        operation: str,
        table: str,
        sql: str,
        params: list[Any],
    ) -> Iterator[Sequence[Any]]:
        try:
            rows = iter(cursor)
        except Exception as exc:
            raise self._wrap(operation, table, sql, params, exc) from exc
        while True:
            try:
                raw = next(rows)
            except StopIteration:
                return
            except NoRowsError:
                raise
            except Exception as exc:
                raise self._wrap(operation, table, sql, params, exc) from exc
            yield raw


default_engine = QueryEngine()

select = default_engine.select
select_row = default_engine.select_row
insert = default_engine.insert
update = default_engine.update
delete = default_engine.delete


__all__ = [
    "QueryEngine",
    "default_engine",
    "select",
    "select_row",
    "insert",
    "update",
    "delete",
]
