from __future__ import annotations

"""Python source parser backed by the standard library :mod:`ast` module."""

import ast
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from ast_outline.core.models import Span, TreeNode
from ast_outline.core.parsers.base import PARSE_ERROR, STACK_EXHAUSTION, ParseResult

__all__ = ["PythonSourceParser", "python_ast_to_tree"]

logger = logging.getLogger(__name__)

# Operator and context singletons become scalar attributes ("Add", "Load")
_SCALAR_NODE_TYPES = (ast.operator, ast.unaryop, ast.cmpop, ast.boolop, ast.expr_context)

_NESTING_MESSAGES = (
    "too many nested parentheses",
    "too many statically nested blocks",
    "too many nested",
)

# Line breaks as the tokenizer counts them
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

ColumnConverter = Callable[[int, int], int]


def _identity_columns(lineno: int, col: int) -> int:
    return col


def column_converter(source_text: Optional[str]) -> ColumnConverter:
    """Return a function mapping ``ast`` UTF-8 byte columns to character columns.

    ``ast`` reports ``col_offset`` in bytes; editors count characters. ASCII
    lines map one to one and are passed through untouched.
    """
    if not source_text:
        return _identity_columns
    lines = _LINE_BREAK.split(source_text)
    encoded: Dict[int, bytes] = {}

    def to_char(lineno: int, col: int) -> int:
        if lineno < 1 or lineno > len(lines):
            return col
        line = lines[lineno - 1]
        if line.isascii():
            return col
        data = encoded.get(lineno)
        if data is None:
            data = encoded[lineno] = line.encode("utf-8")
        return len(data[:col].decode("utf-8", "replace"))

    return to_char


def _span_of(node: ast.AST, to_char: ColumnConverter = _identity_columns) -> Optional[Span]:
    lineno = getattr(node, "lineno", None)
    col = getattr(node, "col_offset", None)
    if lineno is None or col is None:
        return None
    end_lineno = getattr(node, "end_lineno", None) or lineno
    end_col = getattr(node, "end_col_offset", None)
    if end_col is None:
        end_col = col
    return Span(lineno, to_char(lineno, col), end_lineno, to_char(end_lineno, end_col))


def python_ast_to_tree(root: ast.AST, source_text: Optional[str] = None) -> TreeNode:
    """Convert an :mod:`ast` tree to ``TreeNode`` objects without recursion.

    When ``source_text`` is given, span columns are converted from UTF-8
    byte offsets to character offsets.
    """
    to_char = column_converter(source_text)
    result = TreeNode(type(root).__name__, span=_span_of(root, to_char))
    stack: List[Tuple[ast.AST, TreeNode]] = [(root, result)]
    while stack:
        source, target = stack.pop()
        for field_name, value in ast.iter_fields(source):
            if isinstance(value, _SCALAR_NODE_TYPES):
                target.attributes[field_name] = type(value).__name__
            elif isinstance(value, ast.AST):
                child = TreeNode(type(value).__name__, span=_span_of(value, to_char))
                target.children[field_name] = child
                stack.append((value, child))
            elif isinstance(value, list):
                items: List[Any] = []
                for element in value:
                    if isinstance(element, _SCALAR_NODE_TYPES):
                        items.append(type(element).__name__)
                    elif isinstance(element, ast.AST):
                        child = TreeNode(type(element).__name__, span=_span_of(element, to_char))
                        items.append(child)
                        stack.append((element, child))
                    else:
                        items.append(element)
                target.children[field_name] = items
            else:
                target.attributes[field_name] = value
    return result


class PythonSourceParser:
    """Parse Python source text into a program tree."""

    name = "python"

    def __init__(self, filename: str = "<source>") -> None:
        self.filename = filename

    def parse(self, source_text: str) -> ParseResult:
        try:
            module = ast.parse(source_text, filename=self.filename)
        except (RecursionError, MemoryError) as exc:
            logger.info("Parser ran out of stack: %s", exc)
            return ParseResult.failure(f"Input is nested too deeply to parse ({type(exc).__name__})", STACK_EXHAUSTION)
        except SyntaxError as exc:
            message = exc.msg or "invalid syntax"
            kind = STACK_EXHAUSTION if any(text in message for text in _NESTING_MESSAGES) else PARSE_ERROR
            location = f" (line {exc.lineno}, column {exc.offset})" if exc.lineno else ""
            return ParseResult.failure(f"{message}{location}", kind)
        except ValueError as exc:
            # e.g. source containing null bytes
            return ParseResult.failure(str(exc), PARSE_ERROR)

        try:
            tree = python_ast_to_tree(module, source_text)
        except (RecursionError, MemoryError) as exc:
            return ParseResult.failure(f"Tree conversion ran out of resources ({type(exc).__name__})", STACK_EXHAUSTION)
        return ParseResult.ok(tree)
