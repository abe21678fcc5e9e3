from __future__ import annotations

"""Spatial position index over rendered nodes.

Two per-line bucket maps are kept: the *starting-line* index (nodes whose
span starts on the line) and the *spanning* index (nodes whose span covers
the line). Both buckets are sorted by :attr:`Span.size` so the first entry
that really contains a position is the most specific one.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ast_outline.core.engine.registry import NodeRegistry, RegistryEntry
from ast_outline.core.models import SPAN_WEIGHT, Span, TreeNode

__all__ = ["LineIndexEntry", "SpatialPositionIndex", "SPAN_WEIGHT", "FALLBACK_WINDOW"]

logger = logging.getLogger(__name__)

# Lower lines scanned when both buckets for the queried line miss.
FALLBACK_WINDOW = 20


@dataclass(frozen=True)
class LineIndexEntry:
    node_id: str
    span: Span
    depth: int = 0

    @property
    def span_size(self) -> int:
        return self.span.size

    def sort_key(self):
        # Equal spans: the deeper (nested) node is the more specific one
        return (self.span.size, -self.depth)

    def contains(self, line: int, column: int) -> bool:
        return self.span.contains(line, column)


class SpatialPositionIndex:
    """Line-bucketed lookup of the most specific rendered node at a position."""

    def __init__(self, registry: NodeRegistry) -> None:
        self._registry = registry
        self._starting: Dict[int, List[LineIndexEntry]] = {}
        self._spanning: Dict[int, List[LineIndexEntry]] = {}
        self._entry_count = 0

    @classmethod
    def build(cls, registry: NodeRegistry) -> "SpatialPositionIndex":
        index = cls(registry)
        index.rebuild()
        return index

    def rebuild(self) -> None:
        starting: Dict[int, List[LineIndexEntry]] = defaultdict(list)
        spanning: Dict[int, List[LineIndexEntry]] = defaultdict(list)
        count = 0
        for entry in self._registry.entries():
            span = self._span_of(entry)
            if span is None:
                continue
            item = LineIndexEntry(entry.node_id, span, entry.depth)
            starting[span.start_line].append(item)
            for line in span.lines():
                spanning[line].append(item)
            count += 1
        for bucket in starting.values():
            bucket.sort(key=LineIndexEntry.sort_key)
        for bucket in spanning.values():
            bucket.sort(key=LineIndexEntry.sort_key)
        self._starting = dict(starting)
        self._spanning = dict(spanning)
        self._entry_count = count
        logger.debug("Position index built: %s spans over %s lines", count, len(self._spanning))

    @staticmethod
    def _span_of(entry: RegistryEntry) -> Optional[Span]:
        node = entry.tree_node
        if isinstance(node, TreeNode) and node.span is not None:
            return node.span
        return None

    def __len__(self) -> int:
        return self._entry_count

    def starting_on(self, line: int) -> List[LineIndexEntry]:
        return list(self._starting.get(line, ()))

    def spanning(self, line: int) -> List[LineIndexEntry]:
        return list(self._spanning.get(line, ()))

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def query(self, line: int, column: int) -> Optional[str]:
        """Id of the most specific rendered node containing ``(line, column)``."""
        for bucket in (self._starting.get(line), self._spanning.get(line)):
            if bucket:
                found = self._first_containing(bucket, line, column)
                if found is not None:
                    return found
        return self._fallback(line, column)

    @staticmethod
    def _first_containing(bucket: Iterable[LineIndexEntry], line: int, column: int) -> Optional[str]:
        for entry in bucket:
            if entry.contains(line, column):
                return entry.node_id
        return None

    def _fallback(self, line: int, column: int) -> Optional[str]:
        best: Optional[LineIndexEntry] = None
        for candidate_line in range(line - 1, max(0, line - FALLBACK_WINDOW) - 1, -1):
            for entry in self._starting.get(candidate_line, ()):
                if entry.contains(line, column) and (best is None or entry.sort_key() < best.sort_key()):
                    best = entry
        if best is not None:
            return best.node_id
        return self.linear_scan(self._registry, line, column)

    @staticmethod
    def linear_scan(registry: NodeRegistry, line: int, column: int) -> Optional[str]:
        """Smallest registered span containing the position, scanning everything."""
        best_id: Optional[str] = None
        best_key = None
        for entry in registry.entries():
            node = entry.tree_node
            if not isinstance(node, TreeNode) or node.span is None:
                continue
            key = (node.span.size, -entry.depth)
            if node.span.contains(line, column) and (best_key is None or key < best_key):
                best_id = entry.node_id
                best_key = key
        return best_id
