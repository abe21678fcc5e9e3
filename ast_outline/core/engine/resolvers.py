from __future__ import annotations

"""Deferred content resolvers.

Both resolvers share one contract: ``resolve(id)`` materializes the
deferred subtree behind ``id``, splices it into the rendered output,
rebuilds the position index and tells the surface. Unknown or stale ids
are a no-op, so resolving twice is harmless.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

from ast_outline.core.engine.planner import RenderPlanner, ordered_child_pairs
from ast_outline.core.engine.position_index import SpatialPositionIndex
from ast_outline.core.engine.state import DeferredEntry, EngineState
from ast_outline.core.engine.surface import NullSurface, RenderSurface
from ast_outline.core.models import RenderItem

__all__ = ["DeferredResolver", "LazyResolver", "TruncationResolver", "RELAXED_BUDGET_STEP"]

logger = logging.getLogger(__name__)

# Extra nodes one truncation click may materialize.
RELAXED_BUDGET_STEP = 500


class DeferredResolver(ABC):
    """Shared resolution flow; subclasses pick the store and the splice."""

    kind = "deferred"

    def __init__(
        self,
        state: EngineState,
        planner: RenderPlanner,
        surface_getter: Optional[Callable[[], RenderSurface]] = None,
    ) -> None:
        self._state = state
        self._planner = planner
        self._get_surface = surface_getter or NullSurface

    @abstractmethod
    def store(self) -> Dict[str, DeferredEntry]:
        """Pending entries keyed by placeholder id."""

    def pending_ids(self) -> List[str]:
        return list(self.store().keys())

    def __contains__(self, item_id: object) -> bool:
        return item_id in self.store()

    def resolve(self, item_id: str) -> List[RenderItem]:
        """Materialize ``item_id``; return the new rows (empty on no-op)."""
        entry = self.store().get(item_id)
        if entry is None:
            logger.debug("Ignoring %s resolve for unknown id %s", self.kind, item_id)
            return []
        item = self._state.items.get(item_id)
        if item is None or self._state.siblings_of(item) is None:
            # Stale: the row went away without a full render
            self.store().pop(item_id, None)
            logger.debug("Dropping stale %s entry %s", self.kind, item_id)
            return []

        self.store().pop(item_id)
        rows = self._materialize(item, entry)
        self.rebuild_index()
        self._notify(item_id, rows)
        logger.debug("Resolved %s %s into %s rows (%s nodes rendered)", self.kind, item_id, len(rows), self._state.render_count)
        return rows

    def rebuild_index(self) -> None:
        if self._state.index is None:
            self._state.index = SpatialPositionIndex.build(self._state.registry)
        else:
            self._state.index.rebuild()

    @abstractmethod
    def _materialize(self, item: RenderItem, entry: DeferredEntry) -> List[RenderItem]:
        """Walk the deferred content and splice it into the rendered rows."""

    @abstractmethod
    def _notify(self, item_id: str, rows: List[RenderItem]) -> None:
        """Tell the surface about the new rows."""


class LazyResolver(DeferredResolver):
    """Loads the children of a lazy boundary when it is expanded."""

    kind = "lazy"

    def store(self) -> Dict[str, DeferredEntry]:
        return self._state.lazy_store

    def _materialize(self, item: RenderItem, entry: DeferredEntry) -> List[RenderItem]:
        pairs: List[Tuple[Any, Any]]
        if entry.is_array_container:
            pairs = list(enumerate(entry.tree_node))
        else:
            pairs = list(ordered_child_pairs(entry.tree_node))
        rows = self._planner.walk(self._state, pairs, entry.depth + 1, parent=item)
        item.children = rows
        item.lazy = False
        item.badge = ""
        item.expanded = True
        if item.item_id is not None:
            self._state.expanded_ids.add(item.item_id)
        return rows

    def _notify(self, item_id: str, rows: List[RenderItem]) -> None:
        surface = self._get_surface()
        if not surface.fill_children(item_id, rows):
            logger.debug("Surface no longer shows lazy row %s", item_id)


class TruncationResolver(DeferredResolver):
    """Replaces a truncation placeholder with the siblings it stood for.

    The walk runs with a relaxed budget (current count plus
    :data:`RELAXED_BUDGET_STEP`); whatever is still over budget ends up
    behind a new placeholder, so large subtrees load in steps.
    """

    kind = "truncation"

    def store(self) -> Dict[str, DeferredEntry]:
        return self._state.truncation_store

    def _materialize(self, item: RenderItem, entry: DeferredEntry) -> List[RenderItem]:
        state = self._state
        siblings = state.siblings_of(item) or []
        parent = state.items.get(entry.parent_id) if entry.parent_id is not None else None
        budget = state.render_count + RELAXED_BUDGET_STEP
        rows = self._planner.walk(state, entry.pending(), entry.depth, parent=parent, budget=budget)
        for position, existing in enumerate(siblings):
            if existing is item:
                siblings[position:position + 1] = rows
                break
        state.items.pop(item.item_id, None)  # type: ignore[arg-type]
        return rows

    def _notify(self, item_id: str, rows: List[RenderItem]) -> None:
        surface = self._get_surface()
        if not surface.replace_placeholder(item_id, rows):
            logger.debug("Surface no longer shows placeholder %s", item_id)
