"""Row scanners over DB-API cursors.

``Row`` wraps an already fetched row (multi-row ``select``); ``SingleRow``
wraps a cursor and fetches its first row on ``scan`` (``select_row``).  Both
convert each raw value to the type the record declares for that column, so
``TIMESTAMP`` text from SQLite arrives as ``datetime`` and ``0``/``1`` as
``bool``.

Generated ``scan`` methods call ``row.scan(int, str, datetime)`` once and only
assign the returned tuple after it succeeds.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import uuid
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from typing import Any, TypeVar

from rowmap.core.errors import NoRowsError, ScanError
from rowmap.core.protocols import Cursor

T = TypeVar("T")


def _to_datetime(value: Any) -> dt.datetime:
    if isinstance(value, (int, float)):
        return dt.datetime.fromtimestamp(value, tz=dt.timezone.utc)
    if isinstance(value, bytes):
        value = value.decode()
    return dt.datetime.fromisoformat(str(value))


def _to_date(value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, bytes):
        value = value.decode()
    return dt.date.fromisoformat(str(value)[:10])


def _to_time(value: Any) -> dt.time:
    if isinstance(value, bytes):
        value = value.decode()
    return dt.time.fromisoformat(str(value))


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "t", "yes", "y"):
            return True
        if lowered in ("0", "false", "f", "no", "n", ""):
            return False
        raise ValueError(f"not a boolean: {value!r}")
    return bool(value)


def _to_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, bytes) and len(value) == 16:
        return uuid.UUID(bytes=value)
    return uuid.UUID(str(value))


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        return value.encode()
    return bytes(value)


def _to_str(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode()
    return str(value)


def _to_int(value: Any) -> int:
    if isinstance(value, (float, Decimal)) and value != int(value):
        raise ValueError(f"{value!r} is not integral")
    if isinstance(value, (bytes, bytearray)):
        value = value.decode()
    return int(value)


_CONVERTERS: dict[type, Any] = {
    str: _to_str,
    int: _to_int,
    dt.datetime: _to_datetime,
    dt.date: _to_date,
    dt.time: _to_time,
    bool: _to_bool,
    uuid.UUID: _to_uuid,
    bytes: _to_bytes,
}


def convert(value: Any, tp: type) -> Any:
    """Convert a raw column value to ``tp``.

    ``None`` and values that already are ``tp`` pass through, as does
    everything when ``tp`` is ``object``.
    """
    if value is None or tp is object:
        return value
    # bool subclasses int and datetime subclasses date; neither may pass as its base
    if isinstance(value, tp) and not (
        (tp is int and isinstance(value, bool))
        or (tp is dt.date and isinstance(value, dt.datetime))
    ):
        return value
    converter = _CONVERTERS.get(tp)
    try:
        if converter is not None:
            return converter(value)
        return tp(value)
    except (TypeError, ValueError, InvalidOperation, OverflowError) as exc:
        raise ScanError(
            f"cannot convert {value!r} to {tp.__qualname__}", cause=exc
        ) from exc


def scan_values(values: Sequence[Any], types: Sequence[type]) -> tuple[Any, ...]:
    """Convert a whole row, enforcing the positional column count."""
    if len(values) != len(types):
        raise ScanError(
            f"expected {len(types)} destination(s) but row has {len(values)} column(s)"
        )
    return tuple(convert(v, t) for v, t in zip(values, types))


class Row:
    """A fetched row."""

    __slots__ = ("_values",)

    def __init__(self, values: Sequence[Any]) -> None:
        self._values = tuple(values)

    def scan(self, *types: type) -> tuple[Any, ...]:
        return scan_values(self._values, types)

    def __repr__(self) -> str:
        return f"Row({self._values!r})"


class SingleRow:
    """The first row of a cursor, fetched on demand.

    ``scan`` raises :class:`NoRowsError` when the cursor is empty.  The
    cursor is closed as soon as the row has been fetched, whatever the
    outcome.
    """

    def __init__(self, cursor: Cursor) -> None:
        self._cursor = cursor
        self._fetched = False
        self._values: Sequence[Any] | None = None

    def _fetch(self) -> Sequence[Any] | None:
        if not self._fetched:
            try:
                self._values = self._cursor.fetchone()
            finally:
                self._fetched = True
                self._cursor.close()
        return self._values

    def scan(self, *types: type) -> tuple[Any, ...]:
        values = self._fetch()
        if values is None:
            raise NoRowsError()
        return scan_values(values, types)

    def close(self) -> None:
        if not self._fetched:
            self._fetched = True
            self._cursor.close()


def allocate(record_type: type[T]) -> T:
    """Create a blank record without running ``__init__``.

    Dataclass defaults and default factories are applied so attributes that
    are not mapped to columns still exist.
    """
    record = record_type.__new__(record_type)
    if dataclasses.is_dataclass(record_type):
        for f in dataclasses.fields(record_type):
            if f.default is not dataclasses.MISSING:
                object.__setattr__(record, f.name, f.default)
            elif f.default_factory is not dataclasses.MISSING:
                object.__setattr__(record, f.name, f.default_factory())
    return record


def ensure_nested(owner: Any, attr: str, record_type: type[T]) -> T:
    """Return ``owner.attr``, allocating a blank ``record_type`` if unset."""
    nested = getattr(owner, attr, None)
    if nested is None:
        nested = allocate(record_type)
        object.__setattr__(owner, attr, nested)
    return nested


__all__ = [
    "Row",
    "SingleRow",
    "allocate",
    "convert",
    "ensure_nested",
    "scan_values",
]
