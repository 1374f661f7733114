"""
Accessor code generation for dataclass records.

:class:`Generator` extracts a record's :class:`~rowmap.core.metadata.TableDescription`
and renders a module holding ``class <Name>Record(<Name>)`` with the
ReadableRecord and WritableRecord accessors, so the query engine can work with
the record without any runtime introspection.

Architecture::

    Generator.generate(Person, "app.models", "person", "app/person_gen.py")
        │
        ├── extract(Person)             → TableDescription
        ├── record.py.j2 (jinja2)       → source text
        ├── SourceFormatter.format()    → checked / formatted source
        └── Path.write_text()           → app/person_gen.py

Generated ``scan`` is two-phase: ``row.scan(...)`` fills local temporaries and
only after it succeeds are they assigned to the record, so a failed scan never
leaves a half-populated record.  ``NoRowsError`` passes through unchanged and
every other failure becomes a ``ScanError``.

Usage:
    >>> gen = Generator(tag="db")
    >>> gen.generate(Person, "app.models", "person", Path("app/person_gen.py"))
    PosixPath('app/person_gen.py')

Tags:
    codegen, jinja2, templates, dataclass, rowmap
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    PackageLoader,
    StrictUndefined,
    TemplateError,
    select_autoescape,
)

from rowmap.codegen.formatting import PythonFormatter, SourceFormatter, get_formatter
from rowmap.core.errors import TemplateRenderError, WriteError
from rowmap.core.logging import LogContext, get_logger
from rowmap.core.mapping import check_reserved
from rowmap.core.metadata import DEFAULT_TAG, FieldSpec, TableDescription, extract
from rowmap.core.settings import RowmapSettings

logger = get_logger(__name__)

TEMPLATE_NAME = "record.py.j2"


class _Imports:
    """Module imports needed by type references in the generated code."""

    def __init__(self) -> None:
        self.modules: set[str] = set()

    def reference(self, tp: type, *, required: bool) -> str:
        """Return an expression naming ``tp`` from inside the generated module.

        Types that cannot be imported (defined in a function body) become
        ``object`` when ``required`` is false, and an error otherwise.
        """
        if tp is object:
            return "object"
        module, qualname = tp.__module__, tp.__qualname__
        if module == "builtins":
            return qualname
        if "<locals>" in qualname or module == "__main__":
            if not required:
                return "object"
            raise TemplateRenderError(
                f"{module}.{qualname} cannot be imported by generated code"
            ).with_context(record_type=qualname)
        self.modules.add(module)
        return f"{module}.{qualname}"

    def lines(self) -> list[str]:
        return [f"import {module}" for module in sorted(self.modules)]


def _read_expr(spec: FieldSpec) -> str:
    if len(spec.path) <= 1:
        return f"self.{spec.name}"
    expr = "self"
    for attr in spec.path:
        expr = f"getattr({expr}, {attr!r}, None)"
    return expr


def _assign_stmt(spec: FieldSpec, index: int, imports: _Imports) -> str:
    target = "self"
    for attr, owner in zip(spec.path[:-1], spec.owners):
        owner_ref = imports.reference(owner, required=True)
        target = f"ensure_nested({target}, {attr!r}, {owner_ref})"
    return f"{target}.{spec.path[-1] if spec.path else spec.name} = arg{index}"


class Generator:
    """Renders and writes accessor modules.

    Parameters:
        tag: Field-metadata key holding mapping annotations.
        qualify_columns: Emit ``table.column`` names from ``columns()``.
        formatter: Post-render formatter; ``PythonFormatter`` by default.
        class_suffix: Suffix of the generated subclass name.
    """

    def __init__(
        self,
        tag: str = DEFAULT_TAG,
        *,
        qualify_columns: bool = False,
        formatter: SourceFormatter | None = None,
        class_suffix: str = "Record",
    ) -> None:
        self.tag = tag
        self.qualify_columns = qualify_columns
        self.formatter = formatter or PythonFormatter()
        self.class_suffix = class_suffix
        self._env = Environment(
            loader=PackageLoader("rowmap.codegen", "templates"),
            autoescape=select_autoescape(enabled_extensions=()),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self._env.filters["pyrepr"] = repr

    @classmethod
    def from_settings(cls, settings: RowmapSettings) -> Generator:
        return cls(
            settings.tag,
            qualify_columns=settings.qualify_columns,
            formatter=get_formatter(settings.formatter),
        )

    def describe(self, source: Any, table: str | None = None) -> TableDescription:
        """Return ``source``'s description, re-tabled when ``table`` is given."""
        if isinstance(source, TableDescription):
            if table and table != source.table:
                return dataclasses.replace(source, table=table)
            return source
        return extract(source, table=table, tag=self.tag)

    def context(
        self,
        desc: TableDescription,
        *,
        module: str | None = None,
        class_name: str | None = None,
    ) -> dict[str, Any]:
        """Build the template variables for ``desc``."""
        check_reserved(desc)
        record_type = desc.record_type
        module = module or record_type.__module__
        qualname = record_type.__qualname__
        if module == "__main__" or "<locals>" in qualname:
            raise TemplateRenderError(
                f"{qualname} must be importable; pass the module it lives in"
            ).with_context(record_type=qualname)

        imports = _Imports()
        fields = desc.all_fields
        prefix = f"{desc.table}." if self.qualify_columns else ""
        return {
            "module": module,
            "base_name": qualname.split(".")[0],
            "base_expr": qualname,
            "class_name": class_name or f"{record_type.__name__}{self.class_suffix}",
            "table": desc.table,
            "columns": [prefix + f.column for f in fields],
            "primary_keys": desc.primary_keys,
            "value_columns": desc.value_columns,
            "primary_reads": [_read_expr(f) for f in desc.primary],
            "value_reads": [_read_expr(f) for f in desc.values],
            "auto_increment_column": desc.auto_increment_column,
            "scan_types": [imports.reference(f.scan_type, required=False) for f in fields],
            "assignments": [_assign_stmt(f, i, imports) for i, f in enumerate(fields)],
            "uses_nested": any(len(f.path) > 1 for f in fields),
            "module_imports": imports.lines(),
        }

    def render(
        self,
        source: Any,
        *,
        module: str | None = None,
        table: str | None = None,
        class_name: str | None = None,
        filename: str = "<generated>",
    ) -> str:
        """Render and format the accessor module for ``source``.

        Raises:
            InvalidShapeError: ``source`` is not a dataclass record.
            TemplateRenderError: Rendering or formatting failed.
        """
        desc = self.describe(source, table)
        variables = self.context(desc, module=module, class_name=class_name)
        try:
            text = self._env.get_template(TEMPLATE_NAME).render(**variables)
        except TemplateError as exc:
            logger.error(
                "template_failed",
                record_type=desc.record_type.__qualname__,
                error=str(exc),
            )
            raise TemplateRenderError(
                f"failed to execute template: {exc}", cause=exc
            ).with_context(record_type=desc.record_type.__qualname__) from exc
        return self.formatter.format(text, filename=filename)

    def generate(
        self,
        source: Any,
        module: str | None,
        table: str | None,
        destination: str | Path,
        *,
        class_name: str | None = None,
    ) -> Path:
        """Render the accessor module for ``source`` and write it to ``destination``.

        Raises:
            InvalidShapeError, TemplateRenderError: As for :meth:`render`.
            WriteError: The file could not be written.
        """
        path = Path(destination)
        desc = self.describe(source, table)
        with LogContext(record_type=desc.record_type.__qualname__, table=desc.table):
            text = self.render(desc, module=module, class_name=class_name, filename=str(path))
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(text, encoding="utf-8")
            except OSError as exc:
                logger.error("write_failed", path=str(path), error=str(exc))
                raise WriteError(
                    f"failed to create file {path}: {exc}", cause=exc
                ).with_context(path=str(path)) from exc

            logger.info("code_generated", path=str(path))
        return path


__all__ = ["Generator", "TEMPLATE_NAME"]
