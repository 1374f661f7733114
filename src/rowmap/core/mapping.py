"""Install record accessors at import time.

``@mapped`` is the no-codegen alternative to ``rowmap generate``: it extracts
the table description when the class is defined and attaches the same eight
accessors the emitter writes out, with the same two-phase ``scan``::

    @mapped("person")
    @dataclass
    class Person:
        id: int = field(default=0, metadata={"db": "id,primary,auto_increment"})
        name: str = ""

    select(conn, Person, "WHERE name = ?", "X")

Apply it above ``@dataclass``.
"""

from __future__ import annotations

import dataclasses
from typing import Any, TypeVar

from rowmap.core.errors import InvalidShapeError, NoRowsError, ScanError
from rowmap.core.metadata import DEFAULT_TAG, FieldSpec, TableDescription, extract
from rowmap.core.protocols import RowScanner
from rowmap.core.rows import ensure_nested

T = TypeVar("T")

DESCRIPTION_ATTR = "__rowmap_table__"

RESERVED_NAMES = frozenset(
    {
        "table",
        "columns",
        "primary_keys",
        "primary_values",
        "value_columns",
        "values",
        "auto_increment_column",
        "scan",
    }
)


def check_reserved(desc: TableDescription) -> None:
    """Reject records whose attributes would be shadowed by an accessor.

    Every dataclass field counts, including ones skipped with ``"-"``.
    """
    names = {f.name for f in dataclasses.fields(desc.record_type)}
    names.update(f.path[0] for f in desc.all_fields if f.path)
    clashes = sorted(names & RESERVED_NAMES)
    if clashes:
        raise InvalidShapeError(
            f"{desc.record_type.__qualname__}: field name(s) {', '.join(clashes)} "
            "collide with record accessors; map them under another attribute name"
        ).with_context(record_type=desc.record_type.__qualname__)


def read_field(record: Any, spec: FieldSpec) -> Any:
    """Follow ``spec.path``; a missing nested record reads as ``None``."""
    target = record
    for attr in spec.path:
        target = getattr(target, attr, None)
        if target is None:
            return None
    return target


def assign_field(record: Any, spec: FieldSpec, value: Any) -> None:
    target = record
    for attr, owner in zip(spec.path[:-1], spec.owners):
        target = ensure_nested(target, attr, owner)
    setattr(target, spec.path[-1], value)


def install_accessors(
    cls: type[T], desc: TableDescription, *, qualify_columns: bool = False
) -> type[T]:
    """Attach ReadableRecord/WritableRecord accessors for ``desc`` to ``cls``."""
    check_reserved(desc)

    fields = desc.all_fields
    prefix = f"{desc.table}." if qualify_columns else ""
    columns = [prefix + f.column for f in fields]
    scan_types = tuple(f.scan_type for f in fields)

    def scan(self: Any, row: RowScanner) -> None:
        try:
            scanned = row.scan(*scan_types)
        except NoRowsError:
            raise
        except Exception as exc:
            raise ScanError(
                f"failed to scan {desc.table} row: {exc}", cause=exc
            ).with_context(table=desc.table) from exc
        for spec, value in zip(fields, scanned):
            assign_field(self, spec, value)

    def primary_values(self: Any) -> list[Any]:
        return [read_field(self, f) for f in desc.primary]

    def values(self: Any) -> list[Any]:
        return [read_field(self, f) for f in desc.values]

    def _const(value: Any) -> classmethod:
        if isinstance(value, list):
            frozen = tuple(value)
            return classmethod(lambda _cls: list(frozen))
        return classmethod(lambda _cls: value)

    cls.table = _const(desc.table)  # type: ignore[attr-defined]
    cls.columns = _const(columns)  # type: ignore[attr-defined]
    cls.primary_keys = _const(desc.primary_keys)  # type: ignore[attr-defined]
    cls.value_columns = _const(desc.value_columns)  # type: ignore[attr-defined]
    cls.auto_increment_column = _const(desc.auto_increment_column)  # type: ignore[attr-defined]
    cls.primary_values = primary_values  # type: ignore[attr-defined]
    cls.values = values  # type: ignore[attr-defined]
    cls.scan = scan  # type: ignore[attr-defined]
    setattr(cls, DESCRIPTION_ATTR, desc)
    return cls


def mapped(
    table: str | type | None = None,
    *,
    tag: str = DEFAULT_TAG,
    qualify_columns: bool = False,
) -> Any:
    """Class decorator form of the code emitter.

    Usable as ``@mapped``, ``@mapped()`` or ``@mapped("person")``.
    """
    if isinstance(table, type):
        cls = table
        return install_accessors(cls, extract(cls, tag=tag))

    def decorator(cls: type[T]) -> type[T]:
        desc = extract(cls, table=table, tag=tag)
        return install_accessors(cls, desc, qualify_columns=qualify_columns)

    return decorator


def describe(cls: type) -> TableDescription:
    """Return the description attached by :func:`mapped`."""
    desc = cls.__dict__.get(DESCRIPTION_ATTR)
    if desc is None:
        raise InvalidShapeError(f"{cls.__qualname__} is not decorated with @mapped")
    return desc


__all__ = [
    "DESCRIPTION_ATTR",
    "RESERVED_NAMES",
    "assign_field",
    "check_reserved",
    "describe",
    "install_accessors",
    "mapped",
    "read_field",
]
