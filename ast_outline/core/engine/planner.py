from __future__ import annotations

"""Render planner.

Decides, for every value of a program tree, whether it becomes a fully
rendered row, a lazy boundary (header only, children deferred) or a
truncation placeholder. The walk uses an explicit stack of frames so input
depth never turns into Python recursion depth.

The same walk is reused by the resolvers to materialize deferred content
"as if" it were a fresh top-level call.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Set, Tuple

from ast_outline.core.engine.registry import RegistryEntry
from ast_outline.core.engine.state import DeferredEntry, EngineState, Key
from ast_outline.core.models import (
    FORCE_RENDER_NODE_LIMIT,
    RenderItem,
    RenderLimits,
    RenderPlan,
    TreeNode,
)

__all__ = [
    "RenderPlanner",
    "estimate_node_count",
    "ordered_child_pairs",
    "inline_summary",
    "format_scalar",
    "CHILD_PRIORITY",
]

logger = logging.getLogger(__name__)

CHILD_PRIORITY = (
    "id",
    "key",
    "value",
    "init",
    "body",
    "declarations",
    "expression",
    "left",
    "right",
    "test",
    "consequent",
    "alternate",
    "callee",
    "arguments",
    "object",
    "property",
    "params",
    "elements",
    "properties",
    # Python ast field names
    "decorator_list",
    "bases",
    "targets",
    "target",
    "iter",
    "func",
    "args",
    "keywords",
    "returns",
    "orelse",
    "handlers",
    "finalbody",
)
_PRIORITY_RANK = {name: rank for rank, name in enumerate(CHILD_PRIORITY)}

INLINE_ATTRIBUTES = (
    ("name", "name"),
    ("id", "id"),
    ("attr", "attr"),
    ("arg", "arg"),
    ("module", "module"),
    ("asname", "asname"),
    ("value", "value"),
    ("operator", "op"),
    ("op", "op"),
    ("kind", "kind"),
    ("ctx", "ctx"),
)
FLAG_ATTRIBUTES = (
    "computed",
    "async",
    "generator",
    "static",
    "optional",
    "shorthand",
    "method",
    "prefix",
    "await",
    "delegate",
    "tail",
)

# Default expansion depths (strictly less than)
NODE_EXPAND_DEPTH = 1
GROUP_EXPAND_DEPTH = 2
ARRAY_EXPAND_DEPTH = 3

LAZY_BADGE_CAP = 1000
SUMMARY_STRING_LIMIT = 30

TRUNCATION_LABELS = {
    "nodes": "... (truncated - click to load more)",
    "depth": "... (depth limit reached - click to load)",
    "max_depth": "... (max depth reached - click to load)",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def estimate_node_count(root: Any, cap: int) -> int:
    """Count tree nodes below ``root``, stopping as soon as ``cap`` is exceeded.

    The result is exact when it is ``<= cap`` and means "more than cap"
    otherwise.
    """
    count = 0
    stack: List[Any] = [root]
    while stack:
        value = stack.pop()
        if isinstance(value, TreeNode):
            count += 1
            if count > cap:
                return count
            stack.extend(child for child in value.children.values() if isinstance(child, (TreeNode, list)))
        elif isinstance(value, list):
            stack.extend(child for child in value if isinstance(child, (TreeNode, list)))
    return count


def ordered_child_pairs(node: TreeNode) -> List[Tuple[str, Any]]:
    """Child properties of a tagged node in outline order."""
    names = node.child_properties()
    names.sort(key=lambda name: (_PRIORITY_RANK.get(name, len(_PRIORITY_RANK)), name))
    return [(name, node.children[name]) for name in names]


def _group_pairs(node: TreeNode) -> List[Tuple[str, Any]]:
    pairs: List[Tuple[str, Any]] = list(node.attributes.items())
    names = list(node.children.keys())
    names.sort(key=lambda name: (_PRIORITY_RANK.get(name, len(_PRIORITY_RANK)), name))
    pairs.extend((name, node.children[name]) for name in names)
    return pairs


def format_scalar(value: Any, limit: Optional[int] = None) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        text = value
        if limit is not None and len(text) > limit:
            text = text[:limit] + "..."
        return f'"{text}"'
    return str(value)


def inline_summary(node: TreeNode) -> str:
    """Short ``name=... op=... flag=...`` text shown next to the node kind."""
    attrs = node.attributes
    parts: List[str] = []
    for attr_name, shown in INLINE_ATTRIBUTES:
        value = attrs.get(attr_name)
        if value is None or isinstance(value, (dict, list)):
            continue
        if attr_name == "value":
            parts.append(f"{shown}={format_scalar(value, SUMMARY_STRING_LIMIT)}")
        else:
            parts.append(f"{shown}={format_scalar(value)}")
    raw = attrs.get("raw")
    if isinstance(raw, str) and raw != str(attrs.get("value")):
        parts.append(f"raw={format_scalar(raw)}")
    for flag in FLAG_ATTRIBUTES:
        if flag in attrs and isinstance(attrs[flag], bool):
            parts.append(f"{flag}={format_scalar(attrs[flag])}")
    return " ".join(parts)


def _location(node: TreeNode) -> Optional[str]:
    if node.span is None:
        return None
    return f"{node.span.start_line}:{node.span.start_column}"


def _is_container(value: Any) -> bool:
    if isinstance(value, TreeNode):
        return True
    return isinstance(value, list) and len(value) > 0


@dataclass
class _Frame:
    parent: Optional[RenderItem]
    target: List[RenderItem]
    pairs: List[Tuple[Optional[Key], Any]]
    depth: int
    position: int = 0

    @property
    def parent_id(self) -> Optional[str]:
        return self.parent.item_id if self.parent is not None else None


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------

class RenderPlanner:
    """Bounded depth-first materialization of a program tree."""

    def plan(
        self,
        root: Optional[TreeNode],
        limits: RenderLimits,
        state: EngineState,
        expanded_ids: Optional[Set[str]] = None,
        *,
        force: bool = False,
    ) -> RenderPlan:
        """Run a full render pass and return its description.

        ``force`` skips the "too large" gate: the caller already asked for
        the big tree to be rendered anyway (with its own limits).
        """
        if expanded_ids is not None and expanded_ids is not state.expanded_ids:
            state.expanded_ids = set(expanded_ids)
        state.reset(root, limits)

        if root is None:
            return RenderPlan(status="empty", max_nodes=limits.max_nodes)
        root.validate()

        cap = max(limits.max_nodes, limits.lazy_threshold_nodes)
        estimated = estimate_node_count(root, cap)
        state.lazy_mode = limits.lazy_enabled and estimated > limits.lazy_threshold_nodes

        if estimated > limits.max_nodes and not limits.lazy_enabled and not force:
            logger.info("Render skipped: estimated %s+ nodes exceeds limit %s", estimated, limits.max_nodes)
            return RenderPlan(
                status="too_large",
                estimated_nodes=estimated,
                max_nodes=limits.max_nodes,
            )

        state.roots = self.walk(state, [("root", root)], depth=0, parent=None, budget=limits.max_nodes)
        plan = RenderPlan(
            status="ok",
            items=state.roots,
            lazy_mode=state.lazy_mode,
            limit_hit=state.limit_hit,
            estimated_nodes=estimated,
            max_nodes=limits.max_nodes,
        )
        logger.info(
            "Rendered %s nodes (estimated %s%s, lazy=%s, truncated=%s)",
            state.render_count,
            estimated,
            "+" if estimated > cap else "",
            state.lazy_mode,
            state.limit_hit,
        )
        return plan

    @staticmethod
    def force_limits(limits: RenderLimits) -> RenderLimits:
        """Limits used by the "render anyway" affordance."""
        return RenderLimits(
            max_nodes=FORCE_RENDER_NODE_LIMIT,
            max_hard_depth=limits.max_hard_depth,
            max_configurable_depth=limits.max_configurable_depth,
            lazy_enabled=False,
            lazy_threshold_nodes=limits.lazy_threshold_nodes,
            lazy_pre_render_depth=limits.lazy_pre_render_depth,
        )

    # ------------------------------------------------------------------
    # Walk
    # ------------------------------------------------------------------

    def walk(
        self,
        state: EngineState,
        pairs: List[Tuple[Optional[Key], Any]],
        depth: int,
        parent: Optional[RenderItem],
        budget: Optional[int] = None,
    ) -> List[RenderItem]:
        """Render ``pairs`` as siblings at ``depth`` and return the new rows.

        Rows are registered in ``state`` as they are produced; deferred
        content goes to the lazy or truncation store.
        """
        if budget is None:
            budget = state.node_budget
        out: List[RenderItem] = []
        stack: List[_Frame] = [_Frame(parent, out, list(pairs), depth)]
        limits = state.limits

        while stack:
            frame = stack[-1]
            if frame.position >= len(frame.pairs):
                stack.pop()
                continue
            key, value = frame.pairs[frame.position]
            frame.position += 1

            if _is_container(value):
                if state.render_count >= budget:
                    rest = frame.pairs[frame.position - 1:]
                    frame.position = len(frame.pairs)
                    frame.target.append(self._truncate(state, rest, frame, "nodes", frame.depth))
                    continue
                if frame.depth > limits.max_hard_depth:
                    frame.target.append(self._truncate(state, [(key, value)], frame, "depth", 0))
                    continue
                if limits.lazy_enabled and frame.depth > limits.max_configurable_depth:
                    frame.target.append(self._truncate(state, [(key, value)], frame, "max_depth", 0))
                    continue

            item, child_pairs = self._render_value(state, key, value, frame.depth, frame.parent_id)
            frame.target.append(item)
            if child_pairs:
                stack.append(_Frame(item, item.children, child_pairs, frame.depth + 1))
        return out

    def _render_value(
        self,
        state: EngineState,
        key: Optional[Key],
        value: Any,
        depth: int,
        parent_id: Optional[str],
    ) -> Tuple[RenderItem, List[Tuple[Optional[Key], Any]]]:
        """Build one row and return the child pairs still to be walked."""
        if isinstance(value, TreeNode):
            value.validate()
            if value.is_grouping():
                return self._render_group(state, key, value, depth, parent_id)
            return self._render_node(state, key, value, depth, parent_id)
        if isinstance(value, list):
            if not value:
                return RenderItem(None, "empty", "[]", prop_name=key, depth=depth, parent_id=parent_id), []
            return self._render_array(state, key, value, depth, parent_id)
        item = RenderItem(None, "primitive", format_scalar(value), prop_name=key, depth=depth, parent_id=parent_id)
        return item, []

    def _render_node(self, state, key, node: TreeNode, depth, parent_id):
        node_id = state.next_id()
        state.render_count += 1
        state.registry.register(RegistryEntry(node_id, node, key, depth))
        child_pairs = ordered_child_pairs(node)
        has_children = bool(child_pairs)
        item = RenderItem(
            node_id,
            "node",
            node.kind or "",
            prop_name=key,
            depth=depth,
            summary=inline_summary(node),
            location=_location(node),
            has_children=has_children,
            parent_id=parent_id,
        )
        state.items[node_id] = item
        should_lazy = state.lazy_mode and depth >= state.limits.lazy_pre_render_depth and has_children
        if should_lazy and node_id not in state.expanded_ids:
            self._mark_lazy(state, item, node, key, depth, is_array=False)
            return item, []
        item.expanded = node_id in state.expanded_ids or (not should_lazy and depth < NODE_EXPAND_DEPTH)
        return item, child_pairs

    def _render_array(self, state, key, values: List[Any], depth, parent_id):
        node_id = state.next_id()
        state.registry.register(RegistryEntry(node_id, values, key, depth, is_array_container=True))
        item = RenderItem(
            node_id,
            "array",
            f"[{len(values)}]",
            prop_name=key,
            depth=depth,
            has_children=True,
            parent_id=parent_id,
        )
        state.items[node_id] = item
        should_lazy = state.lazy_mode and depth >= state.limits.lazy_pre_render_depth
        if should_lazy and node_id not in state.expanded_ids:
            self._mark_lazy(state, item, values, key, depth, is_array=True)
            return item, []
        item.expanded = node_id in state.expanded_ids or (not should_lazy and depth < ARRAY_EXPAND_DEPTH)
        return item, list(enumerate(values))

    def _render_group(self, state, key, node: TreeNode, depth, parent_id):
        pairs = _group_pairs(node)
        if not pairs:
            return RenderItem(None, "empty", "{}", prop_name=key, depth=depth, parent_id=parent_id), []
        node_id = state.next_id()
        state.registry.register(RegistryEntry(node_id, node, key, depth))
        item = RenderItem(
            node_id,
            "group",
            f"{{{len(pairs)}}}",
            prop_name=key,
            depth=depth,
            location=_location(node),
            has_children=True,
            parent_id=parent_id,
        )
        item.expanded = node_id in state.expanded_ids or depth < GROUP_EXPAND_DEPTH
        state.items[node_id] = item
        return item, pairs

    @staticmethod
    def _mark_lazy(state: EngineState, item: RenderItem, value: Any, key, depth: int, *, is_array: bool) -> None:
        count = estimate_node_count(value, LAZY_BADGE_CAP) - (0 if is_array else 1)
        suffix = "+" if count >= LAZY_BADGE_CAP else ""
        item.lazy = True
        item.expanded = False
        item.badge = f"({count}{suffix} nodes)"
        state.lazy_store[item.item_id] = DeferredEntry(  # type: ignore[index]
            tree_node=value,
            owner_property_name=key,
            depth=depth,
            is_array_container=is_array,
            parent_id=item.parent_id,
            reason="lazy",
        )

    @staticmethod
    def _truncate(
        state: EngineState,
        pending: List[Tuple[Optional[Key], Any]],
        frame: _Frame,
        reason: str,
        resume_depth: int,
    ) -> RenderItem:
        """Emit one placeholder standing for ``pending`` siblings."""
        placeholder_id = state.next_id("trunc")
        first_key, first_value = pending[0]
        state.truncation_store[placeholder_id] = DeferredEntry(
            tree_node=first_value,
            owner_property_name=first_key,
            depth=resume_depth,
            is_array_container=isinstance(first_value, list),
            following=list(pending[1:]),
            parent_id=frame.parent_id,
            reason=reason,
        )
        state.limit_hit = True
        hidden = sum(1 for _k, value in pending if _is_container(value))
        item = RenderItem(
            placeholder_id,
            "truncated",
            TRUNCATION_LABELS[reason],
            depth=frame.depth,
            badge=f"({hidden} more)" if hidden > 1 else "",
            truncated_reason=reason,
            parent_id=frame.parent_id,
        )
        state.items[placeholder_id] = item
        return item
