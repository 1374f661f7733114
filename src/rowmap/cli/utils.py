"""
CLI utility helpers: target loading and output formatting.
"""

from __future__ import annotations

import importlib
import json
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rowmap.core.errors import RowmapError
from rowmap.core.metadata import TableDescription

console = Console()
err_console = Console(stderr=True)


def load_target(target: str) -> tuple[str, type]:
    """Resolve ``package.module:ClassName`` to ``(module, class)``."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        err_console.print(
            "[bold red]Error[/bold red]: target must look like "
            f"package.module:ClassName, got {escape(repr(target))}"
        )
        raise typer.Exit(code=2)
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        err_console.print(
            f"[bold red]Error[/bold red]: cannot import {module_name}: {escape(str(exc))}"
        )
        raise typer.Exit(code=2) from exc

    obj: Any = module
    for part in attr.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            err_console.print(f"[bold red]Error[/bold red]: {module_name} has no attribute {attr}")
            raise typer.Exit(code=2)
    return module_name, obj


def fail(exc: RowmapError) -> NoReturn:
    """Print a rowmap error and exit non-zero."""
    err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {escape(exc.message)}")
    raise typer.Exit(code=1) from exc


def description_dict(desc: TableDescription) -> dict[str, Any]:
    return {
        "record_type": f"{desc.record_type.__module__}.{desc.record_type.__qualname__}",
        "table": desc.table,
        "primary_keys": desc.primary_keys,
        "value_columns": desc.value_columns,
        "auto_increment_column": desc.auto_increment_column,
        "fields": [
            {
                "attribute": f.attribute,
                "column": f.column,
                "type": getattr(f.scan_type, "__qualname__", str(f.scan_type)),
                "nullable": f.nullable,
                "primary": f.is_primary,
                "auto_increment": f.is_auto_increment,
            }
            for f in desc.all_fields
        ],
    }


def print_description(desc: TableDescription, *, as_json: bool = False) -> None:
    payload = description_dict(desc)
    if as_json:
        console.print_json(json.dumps(payload))
        return

    table = Table(title=f"{payload['record_type']} → {desc.table}", pad_edge=False)
    for col in ("attribute", "column", "type", "nullable", "primary", "auto_increment"):
        table.add_column(col, overflow="fold")
    for field in payload["fields"]:
        table.add_row(*(str(field[col]) for col in field))
    console.print(table)
