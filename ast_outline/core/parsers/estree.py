from __future__ import annotations

"""ESTree / Babel JSON adapter.

Lets the viewer open trees produced by JavaScript tool chains
(``@babel/parser``, acorn, espree) that were dumped to JSON.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ast_outline.core.exceptions import MalformedNodeError
from ast_outline.core.models import Span, TreeNode
from ast_outline.core.parsers.base import PARSE_ERROR, STACK_EXHAUSTION, ParseResult

__all__ = ["tree_from_estree", "load_estree_file", "EstreeJsonParser", "SKIPPED_KEYS"]

logger = logging.getLogger(__name__)

SKIPPED_KEYS = frozenset(
    {
        "type",
        "start",
        "end",
        "loc",
        "range",
        "extra",
        "tokens",
        "errors",
        "directives",
        "comments",
        "leadingComments",
        "trailingComments",
        "innerComments",
    }
)


def _position(loc: Dict[str, Any], key: str) -> Tuple[int, int]:
    point = loc.get(key)
    if not isinstance(point, dict):
        raise MalformedNodeError(f"loc.{key} must be an object, got {point!r}")
    line, column = point.get("line"), point.get("column")
    for name, value in (("line", line), ("column", column)):
        if not isinstance(value, int) or isinstance(value, bool):
            raise MalformedNodeError(f"loc.{key}.{name} must be an int, got {value!r}")
    return line, column


def _new_node(data: Dict[str, Any]) -> TreeNode:
    kind = data.get("type")
    if kind is not None and not isinstance(kind, str):
        raise MalformedNodeError(f"Node type must be a string, got {kind!r}")
    span = None
    loc = data.get("loc")
    if isinstance(loc, dict):
        start = _position(loc, "start")
        end = _position(loc, "end")
        span = Span(start[0], start[1], end[0], end[1])
    node = TreeNode(kind, span=span)
    extra = data.get("extra")
    if isinstance(extra, dict) and "raw" in extra:
        node.attributes["raw"] = extra["raw"]
    return node


def tree_from_estree(data: Any) -> Optional[TreeNode]:
    """Convert decoded ESTree JSON into ``TreeNode`` objects, iteratively.

    Plain objects without a ``type`` become grouping nodes; scalars
    (including a literal's ``value``) become attributes.
    """
    if data is None:
        return None
    if not isinstance(data, dict):
        raise MalformedNodeError(f"Tree root must be an object, got {type(data).__name__}")
    root = _new_node(data)
    stack: List[Tuple[Dict[str, Any], TreeNode]] = [(data, root)]
    while stack:
        source, target = stack.pop()
        for key, value in source.items():
            if key in SKIPPED_KEYS:
                continue
            if isinstance(value, dict):
                child = _new_node(value)
                target.children[key] = child
                stack.append((value, child))
            elif isinstance(value, list):
                items: List[Any] = []
                for element in value:
                    if isinstance(element, dict):
                        child = _new_node(element)
                        items.append(child)
                        stack.append((element, child))
                    else:
                        items.append(element)
                target.children[key] = items
            else:
                target.attributes[key] = value
    return root


def load_estree_file(path: Union[str, Path]) -> Optional[TreeNode]:
    """Read a JSON dump and convert it."""
    text = Path(path).read_text(encoding="utf-8")
    return tree_from_estree(json.loads(text))


class EstreeJsonParser:
    """Parser service over ESTree JSON text."""

    name = "estree-json"

    def parse(self, source_text: str) -> ParseResult:
        try:
            data = json.loads(source_text)
        except RecursionError:
            return ParseResult.failure("JSON document is nested too deeply", STACK_EXHAUSTION)
        except ValueError as exc:
            return ParseResult.failure(f"Invalid JSON: {exc}", PARSE_ERROR)
        try:
            tree = tree_from_estree(data)
        except MalformedNodeError as exc:
            return ParseResult.failure(str(exc), PARSE_ERROR)
        if tree is None:
            return ParseResult.failure("Document is empty", PARSE_ERROR)
        return ParseResult.ok(tree)
