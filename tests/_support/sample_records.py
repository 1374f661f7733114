"""Record types shared by the rowmap test suite.

Kept in an importable module (not inside test functions) so generated
accessor modules can ``import sample_records``.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any

from rowmap.core.errors import NoRowsError, ScanError
from rowmap.core.protocols import RowScanner


@dataclass
class Person:
    id: int = field(default=0, metadata={"db": "id,primary,auto_increment"})
    name: str = ""
    created_at: dt.datetime | None = None


class PersonRow(Person):
    """Hand-written accessors for ``person``, equivalent to generated output."""

    @classmethod
    def table(cls) -> str:
        return "person"

    @classmethod
    def columns(cls) -> list[str]:
        return ["id", "name", "created_at"]

    @classmethod
    def primary_keys(cls) -> list[str]:
        return ["id"]

    def primary_values(self) -> list[Any]:
        return [self.id]

    @classmethod
    def value_columns(cls) -> list[str]:
        return ["name", "created_at"]

    def values(self) -> list[Any]:
        return [self.name, self.created_at]

    @classmethod
    def auto_increment_column(cls) -> str:
        return "id"

    def scan(self, row: RowScanner) -> None:
        try:
            arg0, arg1, arg2 = row.scan(int, str, dt.datetime)
        except NoRowsError:
            raise
        except Exception as exc:
            raise ScanError(f"failed to scan person row: {exc}", cause=exc) from exc
        self.id = arg0
        self.name = arg1
        self.created_at = arg2


@dataclass
class Auditable:
    created_at: dt.datetime | None = None
    updated_by: str = field(default="", metadata={"db": "updated_by"})


@dataclass
class Owner:
    owner_name: str = ""


@dataclass
class Account:
    """Nested records, skipped and private fields."""

    id: int = field(default=0, metadata={"db": "account_id,primary,auto_increment"})
    emailAddress: str = ""
    audit: Auditable = field(default_factory=Auditable)
    owner: Owner | None = None
    notes: str = field(default="", metadata={"db": "-"})
    _cache: dict = field(default_factory=dict, repr=False)


@dataclass
class Membership:
    """Composite primary key, no auto-increment column."""

    group_id: int = field(default=0, metadata={"db": "group_id,primary"})
    user_id: int = field(default=0, metadata={"db": "user_id,primary"})
    role: str = "member"
    active: bool = True


@dataclass
class Label:
    """No primary key declared."""

    label: str = ""
    weight: int = 0


@dataclass
class Empty:
    _hidden: int = 0


@dataclass
class Shadowing:
    """A field named like an accessor."""

    id: int = field(default=0, metadata={"db": "id,primary"})
    values: str = ""


@dataclass
class SkippedShadowing:
    """An unmapped field that would still hide an accessor."""

    id: int = field(default=0, metadata={"db": "id,primary"})
    values: str = field(default="", metadata={"db": "-"})


@dataclass
class Base:
    id: int = field(default=0, metadata={"db": "id,primary,auto_increment"})


@dataclass
class Derived(Base):
    title: str = ""


@dataclass
class DoubleAuto:
    first: int = field(default=0, metadata={"db": "first,primary,auto_increment"})
    second: int = field(default=0, metadata={"db": "second,auto_increment"})
