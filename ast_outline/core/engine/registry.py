from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Union

from ast_outline.core.models import TreeNode


@dataclass
class RegistryEntry:
    """Render metadata for one id-bearing row of the current pass."""

    node_id: str
    tree_node: Any
    owner_property_name: Optional[Union[str, int]]
    depth: int
    is_array_container: bool = False

    @property
    def is_tagged(self) -> bool:
        return isinstance(self.tree_node, TreeNode) and not self.tree_node.is_grouping()


class NodeRegistry:
    """Per-render mapping from RenderedNodeId to the tree value it wraps.

    Tagged tree nodes are the registered *nodes* (``len(registry)``). Array
    and grouping containers get entries as well, kept in a separate table so
    they can be deferred and expanded without counting as nodes.

    Cleared at the start of every full render; resolvers only ever add.
    """

    def __init__(self) -> None:
        self._nodes: Dict[str, RegistryEntry] = {}
        self._containers: Dict[str, RegistryEntry] = {}
        # id(tree value) -> node id, for identity lookups during path-seeking
        self._by_identity: Dict[int, str] = {}

    def clear(self) -> None:
        self._nodes.clear()
        self._containers.clear()
        self._by_identity.clear()

    def register(self, entry: RegistryEntry) -> None:
        if entry.is_tagged:
            self._nodes[entry.node_id] = entry
        else:
            self._containers[entry.node_id] = entry
        self._by_identity.setdefault(id(entry.tree_node), entry.node_id)

    def get(self, node_id: Optional[str]) -> Optional[RegistryEntry]:
        if node_id is None:
            return None
        entry = self._nodes.get(node_id)
        if entry is None:
            entry = self._containers.get(node_id)
        return entry

    def find_by_tree_node(self, value: Any) -> Optional[str]:
        node_id = self._by_identity.get(id(value))
        if node_id is None:
            return None
        entry = self.get(node_id)
        # Guard against id() reuse by a different, newer object
        if entry is None or entry.tree_node is not value:
            return None
        return node_id

    def entries(self) -> Iterator[RegistryEntry]:
        """Tagged node entries, in registration order."""
        return iter(list(self._nodes.values()))

    def all_entries(self) -> Iterator[RegistryEntry]:
        yield from list(self._nodes.values())
        yield from list(self._containers.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes or node_id in self._containers
