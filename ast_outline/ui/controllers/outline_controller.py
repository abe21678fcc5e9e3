from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Literal, Optional

from ast_outline.core.engine import CursorEvent, Scheduler
from ast_outline.core.models import TreeNode
from ast_outline.core.services.export_service import node_to_json_text, node_to_tree_text
from ast_outline.core.services.outline_session import OutlineSession
from ast_outline.core.services.settings_service import ViewerSettings

logger = logging.getLogger(__name__)

SEARCH_DEBOUNCE_MS = 150
PARSE_DEBOUNCE_MS = 300


class OutlineController:
    """Mediator between the outline widgets and an :class:`OutlineSession`.

    The controller keeps the transient UI state (pending search term, parse
    timer) and delegates everything else to the session. It contains no UI
    toolkit code; timers go through the injected scheduler and clipboard
    access through the ``clipboard`` callable.

    Parameters
    ----------
    session : OutlineSession
        The session owning the engine state of the view.
    scheduler : Scheduler
        Timer used for the search and parse debounces.
    clipboard : Optional[Callable[[str], None]]
        Receives text produced by the copy actions.
    persist_settings : Optional[Callable[[ViewerSettings], bool]]
        Stores settings after they were applied; returns success.
    on_search_status : Optional[Callable[[str], None]]
        Receives the "i/n" / "No matches" status after every search change.

    Notes
    -----
    - Methods are non-raising for routine conditions and return booleans or
      ``None`` where nothing happened.
    """

    def __init__(
        self,
        session: OutlineSession,
        scheduler: Scheduler,
        *,
        clipboard: Optional[Callable[[str], None]] = None,
        persist_settings: Optional[Callable[[ViewerSettings], bool]] = None,
        on_search_status: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.session = session
        self.scheduler = scheduler
        self._clipboard = clipboard
        self._persist_settings = persist_settings
        self._on_search_status = on_search_status

        # Transient UI-related state
        self.search_term: str = ""
        self.source_text: str = ""
        self._search_token: Any = None
        self._parse_token: Any = None

    # ---------------------------------------------------------------------------------
    # Source and cursor
    # ---------------------------------------------------------------------------------

    def handle_source_changed(self, text: str) -> None:
        """Re-parse ``text`` once typing pauses."""
        if text == self.source_text and self._parse_token is None and self.session.root is not None:
            return
        self.source_text = text
        if self._parse_token is not None:
            self.scheduler.cancel(self._parse_token)
        self._parse_token = self.scheduler.call_later(PARSE_DEBOUNCE_MS, self._parse_now)

    def load_source_now(self, text: str) -> None:
        if self._parse_token is not None:
            self.scheduler.cancel(self._parse_token)
            self._parse_token = None
        self.source_text = text
        self._parse_now()

    def _parse_now(self) -> None:
        self._parse_token = None
        if not self.source_text.strip():
            self.session.clear()
        else:
            self.session.load_source(self.source_text)
        self._refresh_search()

    def load_tree(self, root: Optional[TreeNode], source_text: str = "") -> None:
        """Show a tree that was parsed elsewhere (e.g. an ESTree JSON file)."""
        self.source_text = source_text
        self.session.set_tree(root)
        self._refresh_search()

    def handle_cursor(self, event: CursorEvent) -> None:
        self.session.handle_cursor(event)

    def set_live_sync(self, enabled: bool) -> None:
        self.session.live_sync = bool(enabled)
        if not enabled:
            self.session.sync.cancel()

    # ---------------------------------------------------------------------------------
    # Tree interaction
    # ---------------------------------------------------------------------------------

    def handle_select(self, item_id: str) -> bool:
        return self.session.select(item_id)

    def handle_expand_changed(self, item_id: str, expanded: bool) -> None:
        self.session.set_expanded(item_id, expanded)

    def handle_placeholder(self, item_id: str) -> int:
        """Load what is behind a placeholder row; returns the number of new rows."""
        rows = self.session.resolve_placeholder(item_id)
        self._refresh_search()
        return len(rows)

    def render_anyway(self) -> None:
        self.session.force_render()

    def enable_lazy_loading(self) -> None:
        settings = self.session.settings.with_changes(lazy_load_enabled=True)
        self.apply_settings(settings)

    def expand_all(self) -> None:
        self.session.expand_all()

    def collapse_all(self) -> None:
        self.session.collapse_all()

    # ---------------------------------------------------------------------------------
    # Search
    # ---------------------------------------------------------------------------------

    def handle_search_term_changed(self, term: str) -> None:
        """Store ``term`` and run the search once typing pauses."""
        self.search_term = term or ""
        if self._search_token is not None:
            self.scheduler.cancel(self._search_token)
        self._search_token = self.scheduler.call_later(SEARCH_DEBOUNCE_MS, self._run_search)

    def handle_search_navigation(self, direction: Literal["prev", "next"]) -> Optional[str]:
        if direction not in ("prev", "next"):
            return None
        current = self.session.search_next(1 if direction == "next" else -1)
        self._report_search_status()
        return current

    @property
    def search_status(self) -> str:
        return self.session.search.status_text

    def _run_search(self) -> None:
        self._search_token = None
        self.session.run_search(self.search_term)
        self._report_search_status()

    def _refresh_search(self) -> None:
        # Renders drop the previous matches; search again against the new rows
        if self.search_term:
            self._run_search()
        else:
            self._report_search_status()

    def _report_search_status(self) -> None:
        if self._on_search_status is None:
            return
        try:
            self._on_search_status(self.search_status)
        except Exception:
            logger.exception("Search status listener failed")

    # ---------------------------------------------------------------------------------
    # Settings
    # ---------------------------------------------------------------------------------

    def apply_settings(self, settings: ViewerSettings) -> bool:
        """Adopt ``settings``, re-render and persist; returns whether they were saved."""
        self.session.apply_settings(settings)
        self._refresh_search()
        if self._persist_settings is None:
            return False
        try:
            return bool(self._persist_settings(settings))
        except Exception:
            logger.exception("Persisting viewer settings failed")
            return False

    # ---------------------------------------------------------------------------------
    # Copy helpers
    # ---------------------------------------------------------------------------------

    def _copy_target(self) -> Optional[TreeNode]:
        return self.session.selected_node or self.session.root

    def copy_tree_text(self) -> Optional[str]:
        """Copy the selected node (or the whole tree) as indented text."""
        target = self._copy_target()
        if target is None:
            return None
        return self._to_clipboard(node_to_tree_text(target))

    def copy_json(self) -> Optional[str]:
        target = self._copy_target()
        if target is None:
            return None
        return self._to_clipboard(node_to_json_text(target))

    def _to_clipboard(self, text: str) -> str:
        if self._clipboard is not None:
            try:
                self._clipboard(text)
            except Exception:
                logger.exception("Clipboard write failed")
        return text

    def snapshot(self) -> Dict[str, Any]:
        """Small status summary for the status bar."""
        state = self.session.state
        return {
            "status": self.session.status,
            "message": self.session.message,
            "nodes": len(state.registry),
            "lazy_mode": state.lazy_mode,
            "limit_hit": state.limit_hit,
            "search": self.search_status,
        }
