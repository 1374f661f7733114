"""Offline accessor generation (``rowmap generate``)."""

from rowmap.codegen.emitter import Generator
from rowmap.codegen.formatting import PythonFormatter, RuffFormatter, SourceFormatter

__all__ = ["Generator", "PythonFormatter", "RuffFormatter", "SourceFormatter"]
