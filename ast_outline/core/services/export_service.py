from __future__ import annotations

"""Text and JSON exports of a (sub)tree, used by the copy actions.

Both exports walk with an explicit stack; they are safe on trees of any
depth.
"""

import json
from typing import Any, Dict, List, Optional, Tuple, Union

from ast_outline.core.models import Span, TreeNode

__all__ = ["node_to_tree_text", "node_to_json", "node_to_json_text", "source_excerpt", "EXCERPT_LIMIT"]

_EXTRA_ATTRIBUTES = ("name", "id", "attr", "arg", "value", "operator", "op", "kind")
_EXTRA_FLAGS = ("computed", "async", "generator")
_HIDDEN_ATTRIBUTES = frozenset(_EXTRA_ATTRIBUTES + _EXTRA_FLAGS + ("raw",))

EXCERPT_LIMIT = 200


def _scalar_text(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return json.dumps(str(value))


def _header(node: TreeNode) -> str:
    attrs = node.attributes
    extras: List[str] = []
    for name in _EXTRA_ATTRIBUTES:
        value = attrs.get(name)
        if value is None or value == "" or isinstance(value, (dict, list)):
            continue
        extras.append(f"{name}: {_scalar_text(value)}")
    extras.extend(flag for flag in _EXTRA_FLAGS if attrs.get(flag) is True)
    kind = node.kind or "Object"
    return f"{kind} ({', '.join(extras)})" if extras else kind


def node_to_tree_text(value: Any, label: str = "") -> str:
    """Indented, ``printAST``-like dump of ``value``.

    Examples
    --------
    >>> print(node_to_tree_text(TreeNode("Name", {"id": "x"})), end="")
    Name (id: "x")
    """
    lines: List[str] = []
    stack: List[Tuple[Any, int, str]] = [(value, 0, label)]
    while stack:
        current, indent, name = stack.pop()
        prefix = "  " * indent
        label_text = f"{name}: " if name else ""
        if current is None:
            lines.append(f"{prefix}{label_text}null")
        elif isinstance(current, list):
            lines.append(f"{prefix}{label_text}[Array: {len(current)} items]")
            stack.extend((item, indent + 1, f"[{i}]") for i, item in reversed(list(enumerate(current))))
        elif isinstance(current, TreeNode):
            lines.append(f"{prefix}{label_text}{_header(current)}")
            pending: List[Tuple[Any, int, str]] = []
            for key, attr in current.attributes.items():
                if key in _HIDDEN_ATTRIBUTES or attr is None:
                    continue
                pending.append((attr, indent + 1, key))
            for key, child in current.children.items():
                if child is None:
                    continue
                pending.append((child, indent + 1, key))
            stack.extend(reversed(pending))
        else:
            lines.append(f"{prefix}{label_text}{_scalar_text(current)}")
    return "\n".join(lines) + "\n"


def _shell(value: Any) -> Union[Dict[str, Any], List[Any]]:
    if isinstance(value, list):
        return []
    shell: Dict[str, Any] = {}
    if value.kind is not None:
        shell["type"] = value.kind
    shell.update(value.attributes)
    return shell


def node_to_json(value: Any) -> Any:
    """Plain ``dict``/``list`` data for ``value``, without span metadata."""
    if not isinstance(value, (TreeNode, list)):
        return value
    root = _shell(value)
    stack: List[Tuple[Any, Any]] = [(value, root)]
    while stack:
        source, out = stack.pop()
        if isinstance(source, TreeNode):
            for key, child in source.children.items():
                if isinstance(child, (TreeNode, list)):
                    out[key] = _shell(child)
                    stack.append((child, out[key]))
                else:
                    out[key] = child
        else:
            for child in source:
                if isinstance(child, (TreeNode, list)):
                    shell = _shell(child)
                    out.append(shell)
                    stack.append((child, shell))
                else:
                    out.append(child)
    return root


def node_to_json_text(value: Any, indent: int = 2) -> str:
    return json.dumps(node_to_json(value), indent=indent, default=str)


def source_excerpt(source: str, span: Optional[Span], limit: int = EXCERPT_LIMIT) -> str:
    """Text covered by ``span`` in ``source``, cut to ``limit`` characters.

    Lines are 1-based and columns 0-based. Out-of-range spans yield an
    empty string.
    """
    if span is None or not source:
        return ""
    lines = source.splitlines(keepends=True)
    if span.start_line < 1 or span.start_line > len(lines):
        return ""
    end_line = min(span.end_line, len(lines))
    stop = span.end_column if end_line == span.end_line else None
    if end_line == span.start_line:
        text = lines[span.start_line - 1][span.start_column:stop]
    else:
        parts = [lines[span.start_line - 1][span.start_column:]]
        parts.extend(lines[span.start_line:end_line - 1])
        parts.append(lines[end_line - 1][:stop])
        text = "".join(parts)
    if len(text) > limit:
        return text[:limit] + "..."
    return text
