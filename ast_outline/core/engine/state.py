from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Set, Tuple, Union

from ast_outline.core.models import RenderItem, RenderLimits, TreeNode, iter_child_values
from ast_outline.core.engine.registry import NodeRegistry

if TYPE_CHECKING:
    from ast_outline.core.engine.position_index import SpatialPositionIndex

Key = Union[str, int]


@dataclass
class DeferredEntry:
    """Backing data for a lazy boundary or a truncation placeholder.

    A truncation placeholder may stand for several siblings at once: the
    first one is ``tree_node`` and the rest are kept in ``following`` in
    source order.
    """

    tree_node: Any
    owner_property_name: Optional[Key]
    depth: int
    is_array_container: bool = False
    following: List[Tuple[Key, Any]] = field(default_factory=list)
    parent_id: Optional[str] = None
    reason: Optional[str] = None

    def pending(self) -> List[Tuple[Optional[Key], Any]]:
        return [(self.owner_property_name, self.tree_node)] + list(self.following)

    def iter_span_nodes(self) -> Iterator[TreeNode]:
        """Yield the nearest span-bearing nodes this entry stands for."""
        stack = [value for _key, value in reversed(self.pending())]
        while stack:
            value = stack.pop()
            if isinstance(value, TreeNode) and value.has_span():
                yield value
            elif isinstance(value, (TreeNode, list)):
                children = [child for _k, child in iter_child_values(value)]
                stack.extend(reversed(children))

    def holds(self, path: Set[int]) -> bool:
        """True when a pending value is on the raw-tree path (``id()`` set)."""
        return any(id(value) in path for _key, value in self.pending())

    def covers_position(self, line: int, column: int) -> bool:
        return any(node.span.contains(line, column) for node in self.iter_span_nodes())  # type: ignore[union-attr]


class EngineState:
    """All derived bookkeeping for one outline session.

    Created at first render, fully replaced by :meth:`reset` on every full
    render, incrementally extended by the resolvers, discarded on clear.
    """

    def __init__(self, limits: Optional[RenderLimits] = None) -> None:
        self.limits: RenderLimits = limits or RenderLimits()
        self.root: Optional[TreeNode] = None
        self.registry = NodeRegistry()
        self.lazy_store: Dict[str, DeferredEntry] = {}
        self.truncation_store: Dict[str, DeferredEntry] = {}
        self.index: Optional["SpatialPositionIndex"] = None
        self.items: Dict[str, RenderItem] = {}
        self.roots: List[RenderItem] = []
        self.expanded_ids: Set[str] = set()
        self.render_count = 0
        self.node_budget = self.limits.max_nodes
        self.lazy_mode = False
        self.limit_hit = False
        self.generation = 0
        self._id_counter = 0

    def reset(self, root: Optional[TreeNode], limits: RenderLimits) -> None:
        """Clear everything derived from the previous pass."""
        self.root = root
        self.limits = limits
        self.registry.clear()
        self.lazy_store.clear()
        self.truncation_store.clear()
        self.index = None
        self.items.clear()
        self.roots = []
        self.render_count = 0
        self.node_budget = limits.max_nodes
        self.lazy_mode = False
        self.limit_hit = False
        self.generation += 1
        self._id_counter = 0

    def discard(self) -> None:
        self.reset(None, self.limits)
        self.expanded_ids.clear()

    def next_id(self, prefix: str = "node") -> str:
        node_id = f"{prefix}-{self._id_counter}"
        self._id_counter += 1
        return node_id

    def siblings_of(self, item: RenderItem) -> Optional[List[RenderItem]]:
        """The list that holds ``item`` in the rendered tree, if still attached."""
        if item.parent_id is None:
            container = self.roots
        else:
            parent = self.items.get(item.parent_id)
            if parent is None:
                return None
            container = parent.children
        for existing in container:
            if existing is item:
                return container
        return None

    def ancestors_of(self, item_id: str) -> List[str]:
        """Ids from the item's parent up to the top-level row."""
        result: List[str] = []
        item = self.items.get(item_id)
        seen: Set[str] = set()
        while item is not None and item.parent_id is not None and item.parent_id not in seen:
            seen.add(item.parent_id)
            result.append(item.parent_id)
            item = self.items.get(item.parent_id)
        return result
