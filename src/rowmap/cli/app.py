"""
Root Typer application for the rowmap CLI.

    rowmap generate app.models:Person --table person --out app/person_gen.py
    rowmap describe app.models:Person --json
"""

from __future__ import annotations

from pathlib import Path

import typer
from typer import Typer

from rowmap.cli.utils import fail, load_target, print_description
from rowmap.codegen.emitter import Generator
from rowmap.codegen.formatting import get_formatter
from rowmap.core.errors import RowmapError
from rowmap.core.logging import configure_logging
from rowmap.core.metadata import extract
from rowmap.core.settings import get_settings

app = Typer(
    name="rowmap",
    help="rowmap: generate table accessors for dataclass records.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("rowmap")
        except PackageNotFoundError:
            v = "0.1.0"
        typer.echo(f"rowmap {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override ROWMAP_LOG_LEVEL."),
) -> None:
    """rowmap CLI: inspect and generate record accessors."""
    settings = get_settings()
    try:
        configure_logging(level=log_level or settings.log_level, json_format=settings.json_logs)
    except RowmapError as exc:
        fail(exc)


@app.command()
def generate(
    target: str = typer.Argument(..., help="Record class as package.module:ClassName"),
    out: Path = typer.Option(..., "--out", "-o", help="Destination .py file"),
    table: str | None = typer.Option(
        None, "--table", "-t", help="Table name (default: snake_case class name)"
    ),
    module: str | None = typer.Option(
        None, "--module", "-m", help="Import path used by the generated module"
    ),
    class_name: str | None = typer.Option(
        None, "--class-name", help="Generated class name (default: <Class>Record)"
    ),
    tag: str | None = typer.Option(
        None, "--tag", help="Field-metadata key (default: ROWMAP_TAG or 'db')"
    ),
    qualify: bool | None = typer.Option(
        None, "--qualify/--no-qualify", help="Qualify columns() with the table name"
    ),
    formatter: str | None = typer.Option(None, "--formatter", help="python or ruff"),
) -> None:
    """Generate the accessor module for a dataclass record."""
    settings = get_settings()
    module_name, record_type = load_target(target)
    try:
        gen = Generator(
            tag or settings.tag,
            qualify_columns=settings.qualify_columns if qualify is None else qualify,
            formatter=get_formatter(formatter or settings.formatter),
        )
        path = gen.generate(
            record_type, module or module_name, table, out, class_name=class_name
        )
    except RowmapError as exc:
        fail(exc)
    typer.echo(f"wrote {path}")


@app.command()
def describe(
    target: str = typer.Argument(..., help="Record class as package.module:ClassName"),
    table: str | None = typer.Option(None, "--table", "-t"),
    tag: str | None = typer.Option(None, "--tag"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show the table metadata extracted from a dataclass record."""
    _, record_type = load_target(target)
    try:
        desc = extract(record_type, table=table, tag=tag or get_settings().tag)
    except RowmapError as exc:
        fail(exc)
    print_description(desc, as_json=json_out)
