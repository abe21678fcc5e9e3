from __future__ import annotations

"""Cursor to tree position synchronization.

Cursor events land in a single pending slot (latest position wins) and a
short debounce timer drains it. The lookup prefers the spatial index; when
the target may not be materialized yet (lazy mode, or the last render was
truncated) a path-seeking walk over the raw tree drives the resolvers until
the node is rendered or the iteration cap is reached.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Set, Tuple

from ast_outline.core.engine.position_index import SpatialPositionIndex
from ast_outline.core.engine.resolvers import DeferredResolver
from ast_outline.core.engine.state import EngineState
from ast_outline.core.models import TreeNode, iter_child_values

__all__ = [
    "CursorEvent",
    "Scheduler",
    "TkScheduler",
    "ImmediateScheduler",
    "SyncPhase",
    "PositionSynchronizer",
    "find_node_path",
    "DEBOUNCE_MS",
    "MAX_SEEK_ITERATIONS",
]

logger = logging.getLogger(__name__)

DEBOUNCE_MS = 50
MAX_SEEK_ITERATIONS = 20


@dataclass(frozen=True)
class CursorEvent:
    """Cursor moved in an editor. Lines are 1-based, columns 0-based."""

    editor_id: str
    line: int
    column: int


class Scheduler(Protocol):
    """Timer abstraction: schedule a callback, cancel it by token."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        ...

    def cancel(self, token: Any) -> None:
        ...


class TkScheduler:
    """:class:`Scheduler` on top of a Tk widget's ``after`` queue."""

    def __init__(self, widget: Any) -> None:
        self._widget = widget

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        return self._widget.after(delay_ms, callback)

    def cancel(self, token: Any) -> None:
        try:
            self._widget.after_cancel(token)
        except Exception as exc:
            # Widget destroyed or timer already fired
            logger.debug("after_cancel(%s) failed: %s", token, exc)


class SyncPhase(enum.Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    RESOLVING = "resolving"


def _descend(value: Any, line: int, column: int) -> List[Any]:
    """Values leading from ``value`` to the first child node containing the position.

    Lists and span-less nodes are looked through. Returns an empty list
    when no child contains the position.
    """
    visited: List[Tuple[Any, int]] = []
    stack: List[Tuple[Any, int]] = [(child, -1) for _k, child in reversed(list(iter_child_values(value)))]
    while stack:
        child, parent_index = stack.pop()
        if isinstance(child, TreeNode) and child.span is not None:
            if not child.span.contains(line, column):
                continue
            trail = [child]
            while parent_index >= 0:
                through, parent_index = visited[parent_index]
                trail.append(through)
            trail.reverse()
            return trail
        if isinstance(child, (TreeNode, list)):
            visited.append((child, parent_index))
            here = len(visited) - 1
            grandchildren = list(iter_child_values(child))
            stack.extend((grandchild, here) for _k, grandchild in reversed(grandchildren))
    return []


def find_node_path(root: Optional[TreeNode], line: int, column: int) -> List[Any]:
    """Raw-tree path from ``root`` to the deepest node whose span contains the position.

    The path includes the lists and span-less groupings passed through on
    the way. Returns an empty list when nothing contains the position.
    """
    if root is None:
        return []
    if root.span is not None and not root.span.contains(line, column):
        return []
    path: List[Any] = [root]
    current: Any = root
    while True:
        step = _descend(current, line, column)
        if not step:
            break
        path.extend(step)
        current = step[-1]
    if not any(isinstance(value, TreeNode) and value.span is not None for value in path):
        return []
    return path


class PositionSynchronizer:
    """Maps debounced cursor positions to rendered node ids.

    ``reveal`` is called with the resolved id while :attr:`syncing_from_cursor`
    is true; selection handlers use that flag to skip jumping the cursor
    back to the node.
    """

    def __init__(
        self,
        state: EngineState,
        resolvers: List[DeferredResolver],
        scheduler: Scheduler,
        reveal: Callable[[str], None],
        *,
        delay_ms: int = DEBOUNCE_MS,
        max_iterations: int = MAX_SEEK_ITERATIONS,
    ) -> None:
        self._state = state
        self._resolvers = list(resolvers)
        self._scheduler = scheduler
        self._reveal = reveal
        self._delay_ms = delay_ms
        self._max_iterations = max_iterations
        self._pending: Optional[CursorEvent] = None
        self._token: Any = None
        self._syncing = False
        self.phase = SyncPhase.IDLE
        self.last_result: Optional[str] = None

    @property
    def syncing_from_cursor(self) -> bool:
        return self._syncing

    @property
    def pending(self) -> Optional[CursorEvent]:
        return self._pending

    # ------------------------------------------------------------------
    # Event intake
    # ------------------------------------------------------------------

    def submit(self, event: CursorEvent) -> None:
        """Queue ``event``, replacing any position still waiting."""
        self._pending = event
        if self._token is not None:
            self._scheduler.cancel(self._token)
        self.phase = SyncPhase.DEBOUNCING
        self._token = self._scheduler.call_later(self._delay_ms, self._fire)

    def cancel(self) -> None:
        """Drop the pending position (a full render invalidated it)."""
        if self._token is not None:
            self._scheduler.cancel(self._token)
        self._token = None
        self._pending = None
        self.phase = SyncPhase.IDLE

    def _fire(self) -> None:
        self._token = None
        event, self._pending = self._pending, None
        if event is None:
            self.phase = SyncPhase.IDLE
            return
        self.phase = SyncPhase.RESOLVING
        try:
            node_id = self.resolve_position(event.line, event.column)
            self.last_result = node_id
            if node_id is not None:
                self._syncing = True
                try:
                    self._reveal(node_id)
                finally:
                    self._syncing = False
        except Exception:
            logger.exception("Cursor sync failed at %s:%s", event.line, event.column)
        finally:
            self.phase = SyncPhase.IDLE

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def resolve_position(self, line: int, column: int) -> Optional[str]:
        state = self._state
        if state.root is None:
            return None
        if state.lazy_mode:
            return self.seek(line, column)
        node_id = self.query(line, column)
        if node_id is None and state.limit_hit:
            node_id = self.seek(line, column)
        return node_id

    def query(self, line: int, column: int) -> Optional[str]:
        index = self._state.index
        if index is None:
            # Index build not run yet for this pass
            return SpatialPositionIndex.linear_scan(self._state.registry, line, column)
        return index.query(line, column)

    def seek(self, line: int, column: int) -> Optional[str]:
        """Materialize deferred content until the node at the position is rendered."""
        registry = self._state.registry
        path = find_node_path(self._state.root, line, column)
        if not path:
            return self.query(line, column)
        target = path[-1]
        path_ids: Set[int] = {id(value) for value in path}

        for _iteration in range(self._max_iterations):
            node_id = registry.find_by_tree_node(target)
            if node_id is not None:
                return node_id
            picked = self._pick_deferred(path_ids, line, column)
            if picked is None:
                break
            resolver, entry_id = picked
            resolver.resolve(entry_id)
        else:
            logger.info("Path-seek stopped after %s resolutions at %s:%s", self._max_iterations, line, column)

        node_id = registry.find_by_tree_node(target)
        if node_id is not None:
            return node_id
        for value in reversed(path):
            if isinstance(value, TreeNode) and not value.is_grouping():
                node_id = registry.find_by_tree_node(value)
                if node_id is not None:
                    logger.debug("Selecting nearest rendered ancestor %s for %s:%s", node_id, line, column)
                    return node_id
        return self.query(line, column)

    def _pick_deferred(self, path_ids: Set[int], line: int, column: int) -> Optional[Tuple[DeferredResolver, str]]:
        for resolver in self._resolvers:
            for entry_id, entry in list(resolver.store().items()):
                if entry.holds(path_ids):
                    return resolver, entry_id
        for resolver in self._resolvers:
            for entry_id, entry in list(resolver.store().items()):
                if entry.covers_position(line, column):
                    return resolver, entry_id
        return None


class ImmediateScheduler:
    """:class:`Scheduler` that runs callbacks right away (no event loop)."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        callback()
        return None

    def cancel(self, token: Any) -> None:
        return None
