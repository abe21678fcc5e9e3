from __future__ import annotations

"""Parser service contract.

Parsers turn source text into a :class:`TreeNode` root. They never raise
for bad input: failures come back as a ``ParseResult`` with
``success=False`` and an ``error_kind`` that lets the viewer choose the
right hint.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from ast_outline.core.models import TreeNode

__all__ = ["ParseResult", "ParserService", "PARSE_ERROR", "STACK_EXHAUSTION"]

PARSE_ERROR = "parse_error"
STACK_EXHAUSTION = "stack_exhaustion"


@dataclass
class ParseResult:
    success: bool
    tree: Optional[TreeNode] = None
    message: str = ""
    error_kind: Optional[str] = None

    @classmethod
    def ok(cls, tree: TreeNode) -> "ParseResult":
        return cls(success=True, tree=tree)

    @classmethod
    def failure(cls, message: str, error_kind: str = PARSE_ERROR) -> "ParseResult":
        return cls(success=False, message=message, error_kind=error_kind)

    @property
    def is_stack_exhaustion(self) -> bool:
        return self.error_kind == STACK_EXHAUSTION


@runtime_checkable
class ParserService(Protocol):
    """Anything with ``parse(source_text) -> ParseResult``."""

    name: str

    def parse(self, source_text: str) -> ParseResult:
        ...
