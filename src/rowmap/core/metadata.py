"""
Table metadata extraction from dataclass record types.

``extract`` reads a dataclass definition once and produces an immutable
:class:`TableDescription`: the table name, the ordered primary-key and value
columns, and the auto-increment column.  The code emitter renders it into
accessor code; :func:`rowmap.core.mapping.mapped` installs the same accessors
at import time.

Mapping annotations live in dataclass field metadata under a configurable key
(``"db"`` by default)::

    @dataclass
    class Person:
        id: int = field(default=0, metadata={"db": "id,primary,auto_increment"})
        name: str = ""
        created_at: datetime | None = None
        notes: str = field(default="", metadata={"db": "-"})

Per-field rules, in declaration order (inherited fields first):

    1. ``_private`` fields are skipped
    2. ``"col[,primary][,auto_increment]"`` sets the column and flags
    3. no annotation → column is the snake_case field name
    4. column ``-`` drops the field
    5. no annotation and a dataclass type (or ``X | None``) → recurse and
       splice the nested columns in place
    6. otherwise a leaf column

If no field is flagged ``primary`` the first value column is promoted and a
``no_primary_key`` warning is logged.

Examples:
    >>> desc = extract(Person)
    >>> desc.table, desc.primary_keys, desc.value_columns
    ('person', ['id'], ['name', 'created_at'])
    >>> desc.auto_increment_column
    'id'

Tags:
    metadata, introspection, dataclass, codegen, rowmap
"""

from __future__ import annotations

import dataclasses
import re
import types
import typing
from dataclasses import dataclass
from typing import Any, Union

from rowmap.core.errors import InvalidShapeError
from rowmap.core.logging import get_logger

logger = get_logger(__name__)

SKIP_COLUMN = "-"
FLAG_PRIMARY = "primary"
FLAG_AUTO_INCREMENT = "auto_increment"
DEFAULT_TAG = "db"


def camel_to_snake(name: str) -> str:
    """Transform CamelCase / camelCase to snake_case (``SerialID`` → ``serial_id``)."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    s2 = re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1)
    return s2.lower()


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ColumnTag:
    """A parsed mapping annotation."""

    column: str
    primary: bool = False
    auto_increment: bool = False

    @property
    def skipped(self) -> bool:
        return self.column == SKIP_COLUMN


def parse_tag(tag: str) -> ColumnTag:
    """Parse ``"col[,flag...]"``.

    An empty column part (``",primary"``) leaves the column empty so the
    caller falls back to the default name.
    """
    parts = [part.strip() for part in tag.split(",")]
    column, flags = parts[0], parts[1:]
    for flag in flags:
        if flag not in (FLAG_PRIMARY, FLAG_AUTO_INCREMENT):
            logger.debug("unknown_tag_flag", tag=tag, flag=flag)
    return ColumnTag(
        column=column,
        primary=FLAG_PRIMARY in flags,
        auto_increment=FLAG_AUTO_INCREMENT in flags,
    )


@dataclass(frozen=True)
class FieldSpec:
    """One mapped column.

    ``path`` is the attribute chain from the outer record to the leaf; it is
    longer than one element for columns spliced from a nested record, whose
    classes are listed in ``owners`` (one per intermediate attribute).
    """

    name: str
    column: str
    annotation: Any
    scan_type: type
    nullable: bool = False
    is_primary: bool = False
    is_auto_increment: bool = False
    path: tuple[str, ...] = ()
    owners: tuple[type, ...] = ()

    @property
    def attribute(self) -> str:
        """Dotted attribute path, e.g. ``audit.created_at``."""
        return ".".join(self.path or (self.name,))


@dataclass(frozen=True)
class TableDescription:
    """Immutable table metadata for one record type."""

    record_type: type
    table: str
    primary: tuple[FieldSpec, ...]
    values: tuple[FieldSpec, ...]
    auto_increment_column: str = ""

    @property
    def all_fields(self) -> tuple[FieldSpec, ...]:
        return self.primary + self.values

    @property
    def columns(self) -> list[str]:
        return [f.column for f in self.all_fields]

    @property
    def primary_keys(self) -> list[str]:
        return [f.column for f in self.primary]

    @property
    def value_columns(self) -> list[str]:
        return [f.column for f in self.values]

    @property
    def is_empty(self) -> bool:
        return not self.primary and not self.values


# ---------------------------------------------------------------------------
# Type helpers
# ---------------------------------------------------------------------------


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Strip a single ``X | None`` / ``Optional[X]`` wrapper.

    Returns ``(inner, nullable)``.  Unions of several non-None members are
    returned unchanged.
    """
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = typing.get_args(annotation)
        members = [a for a in args if a is not type(None)]
        if len(members) == 1 and len(members) != len(args):
            return members[0], True
    return annotation, False


def is_record_type(annotation: Any) -> bool:
    """True for dataclass classes (not instances, not generic aliases)."""
    return isinstance(annotation, type) and dataclasses.is_dataclass(annotation)


def _scan_type(annotation: Any) -> type:
    if isinstance(annotation, type) and typing.get_origin(annotation) is None:
        return annotation
    return object


def resolve_record_type(record_type: Any) -> type:
    """Dereference an instance or an optional wrapper to the record class."""
    candidate = record_type
    if not isinstance(candidate, type) and typing.get_origin(candidate) is None:
        candidate = type(candidate)
    candidate, _ = unwrap_optional(candidate)
    if not is_record_type(candidate):
        raise InvalidShapeError(
            f"unexpected type: {record_type!r} is not a dataclass record"
        ).with_context(record_type=repr(record_type))
    return candidate


def _type_hints(record_type: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(record_type)
    except (NameError, TypeError) as exc:
        # Unresolvable forward references: fall back to the raw annotations,
        # which makes the affected fields plain leaf columns.
        logger.debug(
            "type_hints_unresolved",
            record_type=record_type.__qualname__,
            error=str(exc),
        )
        return {f.name: f.type for f in dataclasses.fields(record_type)}


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


@dataclass
class _Partitions:
    primary: list[FieldSpec] = dataclasses.field(default_factory=list)
    values: list[FieldSpec] = dataclasses.field(default_factory=list)
    auto_increment_column: str = ""


def _collect(
    record_type: type,
    tag: str,
    path: tuple[str, ...],
    owners: tuple[type, ...],
) -> _Partitions:
    parts = _Partitions()
    hints = _type_hints(record_type)

    for f in dataclasses.fields(record_type):
        if f.name.startswith("_"):
            continue

        raw_tag = f.metadata.get(tag)
        has_tag = bool(raw_tag)
        column_tag = parse_tag(raw_tag) if has_tag else ColumnTag(column="")
        column = column_tag.column or camel_to_snake(f.name)
        if column == SKIP_COLUMN:
            continue

        annotation = hints.get(f.name, f.type)
        inner, nullable = unwrap_optional(annotation)

        if not has_tag and is_record_type(inner):
            nested = _collect(inner, tag, path + (f.name,), owners + (inner,))
            parts.primary.extend(nested.primary)
            parts.values.extend(nested.values)
            if not parts.auto_increment_column:
                parts.auto_increment_column = nested.auto_increment_column
            continue

        spec = FieldSpec(
            name=f.name,
            column=column,
            annotation=annotation,
            scan_type=_scan_type(inner),
            nullable=nullable,
            is_primary=column_tag.primary,
            is_auto_increment=column_tag.auto_increment,
            path=path + (f.name,),
            owners=owners,
        )
        if spec.is_primary:
            parts.primary.append(spec)
        else:
            parts.values.append(spec)
        if spec.is_auto_increment and not parts.auto_increment_column:
            parts.auto_increment_column = column

    return parts


def extract(
    record_type: Any,
    *,
    table: str | None = None,
    tag: str = DEFAULT_TAG,
) -> TableDescription:
    """Derive the :class:`TableDescription` of a dataclass record type.

    Args:
        record_type: Dataclass, dataclass instance, or ``Dataclass | None``.
        table: Table name; defaults to the snake_case class name.
        tag: Field-metadata key holding the mapping annotation.

    Raises:
        InvalidShapeError: If ``record_type`` does not resolve to a dataclass.
    """
    tp = resolve_record_type(record_type)
    parts = _collect(tp, tag, (), ())
    table_name = table or camel_to_snake(tp.__name__)

    primary, values = parts.primary, parts.values
    if not primary:
        if values:
            logger.warning(
                "no_primary_key",
                record_type=tp.__qualname__,
                promoted=values[0].name,
            )
            primary = [dataclasses.replace(values[0], is_primary=True)]
            values = values[1:]
        else:
            logger.warning("no_mapped_fields", record_type=tp.__qualname__)

    return TableDescription(
        record_type=tp,
        table=table_name,
        primary=tuple(primary),
        values=tuple(values),
        auto_increment_column=parts.auto_increment_column,
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class MetadataRegistry:
    """Lazily populated cache of per-type metadata.

    Descriptions and select shapes are immutable once computed, so entries
    are never invalidated.  Concurrent readers may race to fill an entry; the
    loser's value is identical and simply overwrites it.

    Example::

        registry = MetadataRegistry()
        registry.describe(Person).primary_keys      # ['id']
        registry.select_shape(PersonRecord)         # ('person', ['id', ...])
    """

    def __init__(self, tag: str = DEFAULT_TAG) -> None:
        self.tag = tag
        self._descriptions: dict[tuple[type, str | None], TableDescription] = {}
        self._shapes: dict[type, tuple[str, tuple[str, ...]]] = {}

    def describe(self, record_type: Any, *, table: str | None = None) -> TableDescription:
        """Return the (cached) description of ``record_type``."""
        tp = resolve_record_type(record_type)
        key = (tp, table)
        desc = self._descriptions.get(key)
        if desc is None:
            desc = extract(tp, table=table, tag=self.tag)
            self._descriptions[key] = desc
        return desc

    def select_shape(self, record_type: type) -> tuple[str, list[str]]:
        """Return ``(table, columns)`` as declared by a readable record type."""
        shape = self._shapes.get(record_type)
        if shape is None:
            shape = (record_type.table(), tuple(record_type.columns()))
            self._shapes[record_type] = shape
        return shape[0], list(shape[1])

    def clear(self) -> None:
        self._descriptions.clear()
        self._shapes.clear()

    def __len__(self) -> int:
        return len(self._descriptions) + len(self._shapes)


__all__ = [
    "DEFAULT_TAG",
    "SKIP_COLUMN",
    "ColumnTag",
    "FieldSpec",
    "MetadataRegistry",
    "TableDescription",
    "camel_to_snake",
    "extract",
    "is_record_type",
    "parse_tag",
    "resolve_record_type",
    "unwrap_optional",
]
