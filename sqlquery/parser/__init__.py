"""Query template compilation and parameter binding."""

from .binder import MISSING, ParameterBinder
from .statement import (
    CompiledStatement,
    PlaceholderSpan,
    StatementCompiler,
    StatementKind,
    compile_statement,
    find_placeholders,
)

__all__ = [
    "MISSING",
    "ParameterBinder",
    "CompiledStatement",
    "PlaceholderSpan",
    "StatementCompiler",
    "StatementKind",
    "compile_statement",
    "find_placeholders",
]
