from __future__ import annotations

"""Program tree value objects consumed by the outline engine.

The parser collaborators (see :mod:`ast_outline.core.parsers`) produce
``TreeNode`` instances. The engine never mutates them; it only derives
bookkeeping (ids, line indices, deferred entries) keyed by node identity.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from ast_outline.core.exceptions import MalformedNodeError

__all__ = ["Span", "TreeNode", "ChildValue", "iter_child_values", "SPAN_WEIGHT"]

# Weight of one line in Span.size; orders single-line spans before multi-line ones.
SPAN_WEIGHT = 10000


@dataclass(frozen=True)
class Span:
    """Source extent of a node.

    Lines are 1-based and columns 0-based. Both ends are inclusive for
    containment tests, so a cursor sitting right after the last character of
    a node still counts as inside it.
    """

    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def contains(self, line: int, column: int) -> bool:
        after_start = line > self.start_line or (line == self.start_line and column >= self.start_column)
        before_end = line < self.end_line or (line == self.end_line and column <= self.end_column)
        return after_start and before_end

    @property
    def size(self) -> int:
        return (self.end_line - self.start_line) * SPAN_WEIGHT + (self.end_column - self.start_column)

    def lines(self) -> range:
        return range(self.start_line, self.end_line + 1)

    def validate(self) -> None:
        for name in ("start_line", "start_column", "end_line", "end_column"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise MalformedNodeError(f"Span field {name!r} must be an int, got {value!r}")


@dataclass(eq=False)
class TreeNode:
    """A generic program tree node.

    Attributes
    ----------
    kind
        Node type tag (``"CallExpression"``, ``"FunctionDef"``...). ``None`` marks
        a plain grouping object that has no tag of its own.
    attributes
        Scalar properties (names, literal values, operators, boolean flags).
    children
        Ordered mapping of property name to a child node, a list of children,
        or ``None``.
    span
        Source extent, when the parser provided one.

    Nodes compare and hash by identity: the same object is the same node
    across render passes.
    """

    kind: Optional[str]
    attributes: Dict[str, Any] = field(default_factory=dict)
    children: Dict[str, "ChildValue"] = field(default_factory=dict)
    span: Optional[Span] = None

    def has_span(self) -> bool:
        return self.span is not None

    def is_grouping(self) -> bool:
        return self.kind is None

    def child_properties(self) -> List[str]:
        """Names of child properties that hold nodes or lists (not ``None``)."""
        return [name for name, value in self.children.items() if isinstance(value, (TreeNode, list))]

    def has_children(self) -> bool:
        return bool(self.child_properties())

    def validate(self) -> None:
        """Raise :class:`MalformedNodeError` when required fields are unusable."""
        if self.kind is not None and not isinstance(self.kind, str):
            raise MalformedNodeError(f"Node kind must be a string or None, got {self.kind!r}")
        if not isinstance(self.children, dict) or not isinstance(self.attributes, dict):
            raise MalformedNodeError(f"Node {self.kind!r} has non-mapping attributes/children")
        if self.span is not None:
            self.span.validate()

    def __repr__(self) -> str:
        loc = ""
        if self.span is not None:
            loc = f" @{self.span.start_line}:{self.span.start_column}"
        return f"<TreeNode {self.kind or '{}'}{loc}>"


ChildValue = Union[TreeNode, List[Any], None]


def iter_child_values(value: ChildValue) -> Iterator[Tuple[Any, Any]]:
    """Yield ``(key, child)`` pairs for a node or list; scalars yield nothing."""
    if isinstance(value, TreeNode):
        for name, child in value.children.items():
            yield name, child
    elif isinstance(value, list):
        for index, child in enumerate(value):
            yield index, child
