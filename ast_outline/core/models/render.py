from __future__ import annotations

"""Render description produced by the planner.

A ``RenderItem`` is the serializable, surface-agnostic description of one
outline row. Rendering surfaces (the Tk tree widget, tests) consume these
and key their own visual state by ``item_id``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

__all__ = [
    "RenderLimits",
    "RenderItem",
    "RenderPlan",
    "ItemType",
    "PlanStatus",
    "HARD_DEPTH_LIMIT",
    "FORCE_RENDER_NODE_LIMIT",
]

# Fixed ceiling, independent of user settings.
HARD_DEPTH_LIMIT = 150
FORCE_RENDER_NODE_LIMIT = 50000

ItemType = Literal["node", "array", "group", "primitive", "empty", "truncated"]
PlanStatus = Literal["ok", "empty", "too_large"]


@dataclass(frozen=True)
class RenderLimits:
    """Limits applied to one render pass."""

    max_nodes: int = 5000
    max_hard_depth: int = HARD_DEPTH_LIMIT
    max_configurable_depth: int = 50
    lazy_enabled: bool = True
    lazy_threshold_nodes: int = 1000
    lazy_pre_render_depth: int = 3


@dataclass(eq=False)
class RenderItem:
    """One rendered outline row.

    ``item_id`` is ``None`` for primitive leaves and empty containers; those
    rows cannot be deferred, selected or indexed.
    """

    item_id: Optional[str]
    item_type: ItemType
    label: str
    prop_name: Optional[Union[str, int]] = None
    depth: int = 0
    summary: str = ""
    location: Optional[str] = None
    badge: str = ""
    expanded: bool = False
    lazy: bool = False
    truncated_reason: Optional[str] = None
    has_children: bool = False
    parent_id: Optional[str] = None
    children: List["RenderItem"] = field(default_factory=list, repr=False)

    @property
    def collapsed(self) -> bool:
        return self.has_children and not self.expanded

    def header_text(self) -> str:
        """Single-line text shown for the row (also what search matches)."""
        parts: List[str] = []
        if self.prop_name is not None and self.prop_name != "root":
            parts.append(f"{self.prop_name}:")
        parts.append(self.label)
        if self.summary:
            parts.append(self.summary)
        if self.badge:
            parts.append(self.badge)
        if self.location:
            parts.append(self.location)
        return " ".join(parts)

    def _fields_dict(self) -> Dict[str, Any]:
        return {
            "id": self.item_id,
            "type": self.item_type,
            "label": self.label,
            "prop": self.prop_name,
            "depth": self.depth,
            "summary": self.summary,
            "location": self.location,
            "badge": self.badge,
            "expanded": self.expanded,
            "collapsed": self.collapsed,
            "lazy": self.lazy,
            "truncated": self.truncated_reason,
            "children": [],
        }

    def to_dict(self) -> Dict[str, Any]:
        """Nested dict form of this row and everything rendered below it."""
        result = self._fields_dict()
        stack: List[Tuple[RenderItem, Dict[str, Any]]] = [(self, result)]
        while stack:
            item, out = stack.pop()
            for child in item.children:
                child_out = child._fields_dict()
                out["children"].append(child_out)
                stack.append((child, child_out))
        return result


@dataclass
class RenderPlan:
    """Outcome of a full render pass."""

    status: PlanStatus
    items: List[RenderItem] = field(default_factory=list)
    lazy_mode: bool = False
    limit_hit: bool = False
    estimated_nodes: int = 0
    max_nodes: int = 0

    @property
    def banner(self) -> Optional[str]:
        """Status line shown above the tree, if any."""
        if self.status == "empty":
            return "Parse code to view AST"
        if self.status == "too_large":
            return (
                f"AST too complex ({self.estimated_nodes:,}+ nodes). "
                "Rendering is disabled to keep the viewer responsive."
            )
        notes: List[str] = []
        if self.lazy_mode:
            notes.append(f"Lazy mode active ({self.estimated_nodes:,} nodes) - expand nodes to load them")
        if self.limit_hit:
            notes.append(f"AST truncated at {self.max_nodes:,} nodes - click truncated rows to load more")
        return " | ".join(notes) if notes else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "lazy_mode": self.lazy_mode,
            "limit_hit": self.limit_hit,
            "estimated_nodes": self.estimated_nodes,
            "items": [item.to_dict() for item in self.items],
        }
