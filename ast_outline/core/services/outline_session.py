from __future__ import annotations

"""Outline session: one tree, one view, one engine state.

The session is the public face of the engine for a single outline view. It
owns the :class:`EngineState`, runs full renders, routes placeholder
activations to the right resolver, forwards cursor events to the
synchronizer and calls the jump sink when the user picks a node.

Nothing here raises for routine conditions (too-large input, parse
failures, stale ids). A render that fails unexpectedly leaves the view in a
terminal error state instead of showing a partial tree.

Examples
--------
    session = OutlineSession(parser=PythonSourceParser(), surface=tree_widget,
                             jump_sink=editor_bridge, scheduler=TkScheduler(root))
    session.load_source("x = 1\\n")
    session.handle_cursor(CursorEvent("input", 1, 0))
"""

import logging
from typing import Any, Callable, List, Optional

from ast_outline.core.engine import (
    CursorEvent,
    EngineState,
    ImmediateScheduler,
    JumpSink,
    LazyResolver,
    NullSurface,
    PositionSynchronizer,
    RenderPlanner,
    RenderSurface,
    Scheduler,
    SpatialPositionIndex,
    TruncationResolver,
)
from ast_outline.core.exceptions import RenderAborted
from ast_outline.core.models import RenderItem, RenderLimits, RenderPlan, TreeNode
from ast_outline.core.parsers.base import ParseResult, ParserService
from ast_outline.core.services.search_service import OutlineSearch
from ast_outline.core.services.settings_service import ViewerSettings

__all__ = ["OutlineSession", "ViewStatus", "FORCE_RENDER_YIELD_MS"]

logger = logging.getLogger(__name__)

# Delay between painting "Rendering..." and the expensive walk
FORCE_RENDER_YIELD_MS = 50
INDEX_BUILD_DELAY_MS = 0

STACK_EXHAUSTION_HINT = (
    "The input is nested too deeply for the parser. "
    "Try simplifying it or splitting it into smaller parts first."
)


class ViewStatus:
    EMPTY = "empty"
    OK = "ok"
    TOO_LARGE = "too_large"
    RENDERING = "rendering"
    ERROR = "error"
    STACK_EXHAUSTION = "stack_exhaustion"


class OutlineSession:
    """Owner of the engine state for one outline view."""

    def __init__(
        self,
        parser: Optional[ParserService] = None,
        surface: Optional[RenderSurface] = None,
        jump_sink: Optional[JumpSink] = None,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[ViewerSettings] = None,
        *,
        editor_id: str = "input",
        on_settings_changed: Optional[Callable[[ViewerSettings], None]] = None,
    ) -> None:
        self.parser = parser
        self.surface: RenderSurface = surface or NullSurface()
        self.jump_sink = jump_sink
        self.scheduler: Scheduler = scheduler or ImmediateScheduler()
        self.settings = settings or ViewerSettings()
        self.editor_id = editor_id
        self.live_sync = True
        self.on_selection: Optional[Callable[[Optional[RenderItem], Optional[TreeNode]], None]] = None
        self._on_settings_changed = on_settings_changed

        self.state = EngineState(self.settings.to_limits())
        self.planner = RenderPlanner()
        self.lazy = LazyResolver(self.state, self.planner, self._get_surface)
        self.truncation = TruncationResolver(self.state, self.planner, self._get_surface)
        self.sync = PositionSynchronizer(
            self.state,
            [self.lazy, self.truncation],
            self.scheduler,
            self._reveal_from_cursor,
        )
        self.search = OutlineSearch(self.state, expand=self._expand_on_surface)

        self.status = ViewStatus.EMPTY
        self.message = ""
        self.last_plan: Optional[RenderPlan] = None
        self.last_error: Optional[RenderAborted] = None
        self.selected_id: Optional[str] = None
        self._root: Optional[TreeNode] = None
        self._pending_token: Any = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def root(self) -> Optional[TreeNode]:
        return self._root

    @property
    def limits(self) -> RenderLimits:
        return self.settings.to_limits()

    def item(self, item_id: Optional[str]) -> Optional[RenderItem]:
        if item_id is None:
            return None
        return self.state.items.get(item_id)

    def node_for(self, item_id: Optional[str]) -> Any:
        entry = self.state.registry.get(item_id)
        return entry.tree_node if entry is not None else None

    @property
    def selected_item(self) -> Optional[RenderItem]:
        return self.item(self.selected_id)

    @property
    def selected_node(self) -> Optional[TreeNode]:
        node = self.node_for(self.selected_id)
        return node if isinstance(node, TreeNode) else None

    def _get_surface(self) -> RenderSurface:
        return self.surface

    # ------------------------------------------------------------------
    # Loading and rendering
    # ------------------------------------------------------------------
    def load_source(self, source_text: str) -> ParseResult:
        """Parse ``source_text`` and render the result (or an error state)."""
        if self.parser is None:
            raise ValueError("OutlineSession has no parser service")
        result = self.parser.parse(source_text)
        if not result.success or result.tree is None:
            self._show_parse_error(result)
            return result
        self.set_tree(result.tree)
        return result

    def set_tree(self, root: Optional[TreeNode]) -> Optional[RenderPlan]:
        self._root = root
        if root is None:
            self.clear()
            return self.last_plan
        return self.render()

    def render(self) -> Optional[RenderPlan]:
        """Full render with the current settings."""
        return self._render(self.limits, force=False)

    def force_render(self) -> None:
        """Render a too-large tree anyway, after painting an interim state."""
        if self._root is None:
            return
        self._cancel_pending()
        self.status = ViewStatus.RENDERING
        self.message = "Rendering large AST..."
        self.surface.show_message(self.message, "rendering")
        limits = RenderPlanner.force_limits(self.limits)
        self._pending_token = self.scheduler.call_later(
            FORCE_RENDER_YIELD_MS, lambda: self._run_forced(limits)
        )

    def _run_forced(self, limits: RenderLimits) -> None:
        self._pending_token = None
        self._render(limits, force=True)

    def enable_lazy_and_render(self) -> Optional[RenderPlan]:
        self.apply_settings(self.settings.with_changes(lazy_load_enabled=True))
        return self.last_plan

    def apply_settings(self, settings: ViewerSettings) -> None:
        """Adopt new settings and re-render the current tree."""
        self.settings = settings
        if self._on_settings_changed is not None:
            self._on_settings_changed(settings)
        if self._root is not None:
            self.render()

    def clear(self) -> None:
        self._cancel_pending()
        self.sync.cancel()
        self.search.clear()
        self._root = None
        self.state.discard()
        self.selected_id = None
        self.status = ViewStatus.EMPTY
        self.message = ""
        self.last_plan = RenderPlan(status="empty", max_nodes=self.limits.max_nodes)
        self.surface.show_plan(self.last_plan)
        self._notify_selection()

    def _render(self, limits: RenderLimits, *, force: bool) -> Optional[RenderPlan]:
        self._cancel_pending()
        self.sync.cancel()
        self.search.clear()
        self.selected_id = None
        try:
            plan = self.planner.plan(self._root, limits, self.state, force=force)
        except Exception as exc:
            self._abort(exc)
            return None

        self.last_plan = plan
        self.last_error = None
        self.status = {
            "ok": ViewStatus.OK,
            "empty": ViewStatus.EMPTY,
            "too_large": ViewStatus.TOO_LARGE,
        }[plan.status]
        self.message = plan.banner or ""
        self.surface.show_plan(plan)
        if plan.status == "ok":
            generation = self.state.generation
            self.scheduler.call_later(INDEX_BUILD_DELAY_MS, lambda: self._build_index(generation))
        self._notify_selection()
        return plan

    def _abort(self, exc: Exception) -> None:
        error = RenderAborted(f"Render failed: {exc}", cause=exc)
        logger.exception("Render pass aborted")
        self.state.reset(None, self.state.limits)
        self.last_plan = None
        self.last_error = error
        self.status = ViewStatus.ERROR
        self.message = str(error)
        self.surface.show_message(self.message, "error")

    def _build_index(self, generation: int) -> None:
        if generation != self.state.generation:
            return  # superseded by a newer render
        if self.state.index is None:
            self.state.index = SpatialPositionIndex.build(self.state.registry)

    def _show_parse_error(self, result: ParseResult) -> None:
        self._cancel_pending()
        self.sync.cancel()
        self.search.clear()
        self.state.reset(None, self.state.limits)
        self.selected_id = None
        self.last_plan = None
        if result.is_stack_exhaustion:
            self.status = ViewStatus.STACK_EXHAUSTION
            self.message = f"Parse error: {result.message}\n{STACK_EXHAUSTION_HINT}"
        else:
            self.status = ViewStatus.ERROR
            self.message = f"Parse error: {result.message}"
        logger.info("Parse failed (%s): %s", result.error_kind, result.message)
        self.surface.show_message(self.message, self.status)

    def _cancel_pending(self) -> None:
        if self._pending_token is not None:
            self.scheduler.cancel(self._pending_token)
            self._pending_token = None

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------
    def resolve_placeholder(self, item_id: str) -> List[RenderItem]:
        """Load what is behind a lazy or truncated row; unknown ids are ignored."""
        if item_id in self.lazy:
            return self.lazy.resolve(item_id)
        if item_id in self.truncation:
            return self.truncation.resolve(item_id)
        return []

    def select(self, item_id: Optional[str], *, from_cursor: bool = False) -> bool:
        """Select a row. User selections jump the editor cursor to the node."""
        item = self.item(item_id)
        if item is None:
            return False
        if item.item_type == "truncated":
            self.resolve_placeholder(item.item_id)  # type: ignore[arg-type]
            return False
        self.selected_id = item.item_id
        self.surface.select(item.item_id)
        self._notify_selection()

        if from_cursor or self.sync.syncing_from_cursor:
            return True
        node = self.selected_node
        if self.jump_sink is not None and node is not None and node.span is not None:
            self.jump_sink.jump_to(self.editor_id, node.span.start_line, node.span.start_column)
        return True

    def toggle(self, item_id: str) -> None:
        item = self.item(item_id)
        if item is None or not item.has_children:
            return
        self.set_expanded(item_id, not item.expanded)

    def set_expanded(self, item_id: str, expanded: bool) -> None:
        """Open or close a row; opening a lazy row loads its children."""
        item = self.item(item_id)
        if item is None or not item.has_children:
            return
        if item.lazy:
            if expanded:
                self.lazy.resolve(item_id)
            return
        if item.expanded != expanded:
            self._set_expanded(item, expanded)

    def expand_all(self) -> None:
        """Expand every rendered row (lazy rows stay unloaded)."""
        for item in list(self.state.items.values()):
            if item.has_children and not item.lazy and not item.expanded:
                self._set_expanded(item, True)

    def collapse_all(self) -> None:
        for item in list(self.state.items.values()):
            if item.expanded:
                self._set_expanded(item, False)
        self.state.expanded_ids.clear()

    def _set_expanded(self, item: RenderItem, expanded: bool) -> None:
        item.expanded = expanded
        if expanded:
            self.state.expanded_ids.add(item.item_id)  # type: ignore[arg-type]
        else:
            self.state.expanded_ids.discard(item.item_id)  # type: ignore[arg-type]
        self.surface.set_expanded(item.item_id, expanded)  # type: ignore[arg-type]

    def _expand_on_surface(self, item_id: str) -> None:
        self.surface.set_expanded(item_id, True)

    # ------------------------------------------------------------------
    # Cursor sync
    # ------------------------------------------------------------------
    def handle_cursor(self, event: CursorEvent) -> None:
        if not self.live_sync or event.editor_id != self.editor_id:
            return
        if self._root is None or self.status != ViewStatus.OK:
            return
        self.sync.submit(event)

    def _reveal_from_cursor(self, node_id: str) -> None:
        for ancestor_id in reversed(self.state.ancestors_of(node_id)):
            ancestor = self.item(ancestor_id)
            if ancestor is not None and not ancestor.expanded and not ancestor.lazy:
                self._set_expanded(ancestor, True)
        target = self.item(node_id)
        if target is not None and target.collapsed and not target.lazy:
            self._set_expanded(target, True)
        self.select(node_id, from_cursor=True)
        self.surface.see(node_id)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    def run_search(self, query: str) -> List[str]:
        matches = self.search.search(query)
        self.surface.set_search_marks(matches, self.search.current)
        if self.search.current is not None:
            self.surface.see(self.search.current)
        return matches

    def search_next(self, direction: int = 1) -> Optional[str]:
        current = self.search.navigate(direction)
        self.surface.set_search_marks(self.search.matches, current)
        if current is not None:
            self.surface.see(current)
        return current

    def _notify_selection(self) -> None:
        if self.on_selection is None:
            return
        try:
            self.on_selection(self.selected_item, self.selected_node)
        except Exception:
            logger.exception("Selection listener failed")
