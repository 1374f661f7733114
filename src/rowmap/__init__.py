"""rowmap -- dataclass records to table rows, without an ORM.

Generate accessors once::

    rowmap generate app.models:Person --table person --out app/person_gen.py

then read and write through any DB-API connection::

    from rowmap import select, select_row, insert, update, delete
    from app.person_gen import PersonRecord

    people = select(conn, PersonRecord, "WHERE name IN (?)", ["Alberto", "Lamimi"])
"""

from rowmap.core import (
    ExecutionError,
    InvalidOutputError,
    InvalidShapeError,
    MetadataRegistry,
    NoRowsError,
    QueryEngine,
    ReadableRecord,
    RowmapError,
    ScanError,
    TableDescription,
    WritableRecord,
    delete,
    expand,
    extract,
    insert,
    mapped,
    select,
    select_row,
    update,
)

__version__ = "0.1.0"

__all__ = [
    "ExecutionError",
    "InvalidOutputError",
    "InvalidShapeError",
    "MetadataRegistry",
    "NoRowsError",
    "QueryEngine",
    "ReadableRecord",
    "RowmapError",
    "ScanError",
    "TableDescription",
    "WritableRecord",
    "delete",
    "expand",
    "extract",
    "insert",
    "mapped",
    "select",
    "select_row",
    "update",
]
