"""rowmap core -- metadata extraction and the generic query engine.

Architecture::

    Layer 1 -- Type System & Errors
        errors.py          Structured error hierarchy (RowmapError, NoRowsError)
        protocols.py       ReadableRecord, WritableRecord, RowScanner, Connection
        logging.py         Structured logging (structlog)
        settings.py        RowmapSettings (pydantic-settings)

    Layer 2 -- Metadata
        metadata.py        extract(), TableDescription, MetadataRegistry
        mapping.py         @mapped: accessors installed at import time

    Layer 3 -- Runtime
        placeholders.py    expand(): IN-clause placeholder expansion
        rows.py            Row / SingleRow scanners, value conversion
        query.py           QueryEngine: select, select_row, insert, update, delete
"""

from rowmap.core.errors import (
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
from rowmap.core.mapping import describe, mapped
from rowmap.core.metadata import (
    FieldSpec,
    MetadataRegistry,
    TableDescription,
    camel_to_snake,
    extract,
)
from rowmap.core.placeholders import expand
from rowmap.core.protocols import Connection, ReadableRecord, RowScanner, WritableRecord
from rowmap.core.query import (
    QueryEngine,
    delete,
    insert,
    select,
    select_row,
    update,
)
from rowmap.core.rows import Row, SingleRow

__all__ = [
    "Connection",
    "ErrorCategory",
    "ErrorContext",
    "ExecutionError",
    "FieldSpec",
    "InvalidOutputError",
    "InvalidShapeError",
    "MetadataRegistry",
    "NoRowsError",
    "QueryEngine",
    "ReadableRecord",
    "Row",
    "RowScanner",
    "RowmapError",
    "ScanError",
    "SingleRow",
    "TableDescription",
    "TemplateRenderError",
    "WritableRecord",
    "WriteError",
    "camel_to_snake",
    "delete",
    "describe",
    "expand",
    "extract",
    "insert",
    "mapped",
    "select",
    "select_row",
    "update",
]
