"""
CLI layer for rowmap.

Argument parsing and terminal output only; extraction and generation live in
``rowmap.core`` and ``rowmap.codegen``.

Entry point::

    rowmap --help
"""

from rowmap.cli.app import app

__all__ = ["app"]
