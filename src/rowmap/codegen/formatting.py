"""Post-render formatting of generated modules.

The emitter hands every rendered module to a :class:`SourceFormatter` before
writing it.  ``PythonFormatter`` (the default) only checks that the output
parses and tidies whitespace; ``RuffFormatter`` pipes the source through
``ruff format`` for projects that want their generated code in house style.
"""

from __future__ import annotations

import ast
import re
import shutil
import subprocess
from typing import Protocol, runtime_checkable

from rowmap.core.errors import ConfigError, TemplateRenderError

_TRAILING_WS = re.compile(r"[ \t]+$", re.MULTILINE)
_BLANK_RUNS = re.compile(r"\n{4,}")


@runtime_checkable
class SourceFormatter(Protocol):
    def format(self, source: str, *, filename: str = "<generated>") -> str:
        ...


class PythonFormatter:
    """Syntax check plus whitespace normalization."""

    def format(self, source: str, *, filename: str = "<generated>") -> str:
        source = _TRAILING_WS.sub("", source)
        source = _BLANK_RUNS.sub("\n\n\n", source)
        source = source.strip("\n") + "\n"
        try:
            ast.parse(source, filename=filename)
        except SyntaxError as exc:
            raise TemplateRenderError(
                f"generated source for {filename} does not parse: {exc.msg} (line {exc.lineno})",
                cause=exc,
            ).with_context(path=filename) from exc
        return source


class RuffFormatter:
    """Formats with ``ruff format`` (the binary must be on ``PATH``)."""

    def __init__(self, executable: str = "ruff", timeout: float = 30.0) -> None:
        self.executable = executable
        self.timeout = timeout
        self._check = PythonFormatter()

    def format(self, source: str, *, filename: str = "<generated>") -> str:
        source = self._check.format(source, filename=filename)
        binary = shutil.which(self.executable)
        if binary is None:
            raise TemplateRenderError(
                f"formatter executable not found: {self.executable}"
            ).with_context(path=filename)
        try:
            proc = subprocess.run(
                [binary, "format", "--stdin-filename", filename, "-"],
                input=source,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise TemplateRenderError(
                f"ruff format failed for {filename}: {exc}", cause=exc
            ).with_context(path=filename) from exc
        if proc.returncode != 0:
            raise TemplateRenderError(
                f"ruff format failed for {filename}: {proc.stderr.strip()}"
            ).with_context(path=filename)
        return proc.stdout


def get_formatter(name: str) -> SourceFormatter:
    """Resolve a formatter by its settings name (``python`` or ``ruff``)."""
    if name == "python":
        return PythonFormatter()
    if name == "ruff":
        return RuffFormatter()
    raise ConfigError(f"unknown formatter: {name!r}")


__all__ = ["PythonFormatter", "RuffFormatter", "SourceFormatter", "get_formatter"]
