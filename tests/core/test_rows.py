"""Tests for row scanners and value conversion."""

from __future__ import annotations

import datetime as dt
import sqlite3
import uuid
from decimal import Decimal

import pytest

from rowmap.core.errors import NoRowsError, ScanError
from rowmap.core.rows import Row, SingleRow, allocate, convert, ensure_nested
from sample_records import Account, Auditable, Owner, Person


class FakeCursor:
    def __init__(self, rows: list[tuple]) -> None:
        self._rows = list(rows)
        self.closed = False
        self.lastrowid = None

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def __iter__(self):
        return iter(self._rows)

    def close(self) -> None:
        self.closed = True


class TestConvert:
    def test_none_passes_through(self) -> None:
        assert convert(None, int) is None

    def test_object_passes_through(self) -> None:
        value = ["anything"]
        assert convert(value, object) is value

    def test_same_type_passes_through(self) -> None:
        assert convert("x", str) == "x"

    def test_datetime_from_text(self) -> None:
        assert convert("2018-04-06 01:23:45", dt.datetime) == dt.datetime(2018, 4, 6, 1, 23, 45)

    def test_datetime_from_epoch(self) -> None:
        value = convert(0, dt.datetime)
        assert value == dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)

    def test_date_from_text_and_datetime(self) -> None:
        assert convert("2018-03-05 12:34:56", dt.date) == dt.date(2018, 3, 5)
        assert convert(dt.datetime(2018, 3, 5, 1, 2), dt.date) == dt.date(2018, 3, 5)

    def test_bool(self) -> None:
        assert convert(1, bool) is True
        assert convert(0, bool) is False
        assert convert("false", bool) is False

    def test_bool_rejects_garbage_text(self) -> None:
        with pytest.raises(ScanError):
            convert("maybe", bool)

    def test_bool_is_converted_for_int(self) -> None:
        assert type(convert(True, int)) is int

    def test_numeric(self) -> None:
        assert convert("42", int) == 42
        assert convert(1, float) == 1.0
        assert convert("1.50", Decimal) == Decimal("1.50")

    def test_integral_float_to_int(self) -> None:
        assert convert(4.0, int) == 4
        assert convert(Decimal("7"), int) == 7

    def test_fractional_float_to_int_raises(self) -> None:
        with pytest.raises(ScanError):
            convert(3.9, int)
        with pytest.raises(ScanError):
            convert(Decimal("2.5"), int)

    def test_bytes_to_str_decodes(self) -> None:
        assert convert(b"abc", str) == "abc"
        assert convert(memoryview(b"caf\xc3\xa9"), str) == "café"

    def test_undecodable_bytes_to_str_raises(self) -> None:
        with pytest.raises(ScanError):
            convert(b"\xff\xfe", str)

    def test_uuid(self) -> None:
        value = uuid.uuid4()
        assert convert(str(value), uuid.UUID) == value
        assert convert(value.bytes, uuid.UUID) == value

    def test_bytes_from_text(self) -> None:
        assert convert("ab", bytes) == b"ab"

    def test_failure_raises_scan_error(self) -> None:
        with pytest.raises(ScanError) as exc_info:
            convert("abc", int)
        assert isinstance(exc_info.value.__cause__, ValueError)


class TestRow:
    def test_scan(self) -> None:
        row = Row((1, "Alberto", "2018-03-05 12:34:56"))
        assert row.scan(int, str, dt.datetime) == (
            1,
            "Alberto",
            dt.datetime(2018, 3, 5, 12, 34, 56),
        )

    def test_count_mismatch(self) -> None:
        with pytest.raises(ScanError):
            Row((1, "x")).scan(int)

    def test_empty_scan(self) -> None:
        assert Row(()).scan() == ()


class TestSingleRow:
    def test_scan_first_row_and_close(self) -> None:
        cursor = FakeCursor([(1, "a"), (2, "b")])
        row = SingleRow(cursor)
        assert row.scan(int, str) == (1, "a")
        assert cursor.closed

    def test_no_rows(self) -> None:
        cursor = FakeCursor([])
        with pytest.raises(NoRowsError):
            SingleRow(cursor).scan(int)
        assert cursor.closed

    def test_close_without_scan(self) -> None:
        cursor = FakeCursor([(1,)])
        SingleRow(cursor).close()
        assert cursor.closed

    def test_sqlite_cursor(self) -> None:
        conn = sqlite3.connect(":memory:")
        row = SingleRow(conn.execute("SELECT 7, 'seven'"))
        assert row.scan(int, str) == (7, "seven")
        conn.close()


class TestAllocate:
    def test_applies_defaults_without_init(self) -> None:
        person = allocate(Person)
        assert person.id == 0
        assert person.name == ""
        assert person.created_at is None

    def test_applies_default_factories(self) -> None:
        account = allocate(Account)
        assert isinstance(account.audit, Auditable)
        assert account._cache == {}

    def test_ensure_nested_allocates_missing(self) -> None:
        account = Account()
        assert account.owner is None
        owner = ensure_nested(account, "owner", Owner)
        assert account.owner is owner
        assert ensure_nested(account, "owner", Owner) is owner
