from __future__ import annotations

"""Search over the rendered outline rows."""

import logging
from typing import Callable, List, Optional

from ast_outline.core.engine.state import EngineState

__all__ = ["OutlineSearch", "MIN_QUERY_LENGTH"]

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


class OutlineSearch:
    """Case-insensitive substring search over row header text.

    Only rows that are currently rendered can match; matches make their
    ancestors expanded. ``expand`` is called with each ancestor id that must
    be opened so the owner can update the surface.
    """

    def __init__(self, state: EngineState, expand: Optional[Callable[[str], None]] = None) -> None:
        self._state = state
        self._expand = expand
        self.query = ""
        self.matches: List[str] = []
        self.current_index = -1

    @property
    def current(self) -> Optional[str]:
        if 0 <= self.current_index < len(self.matches):
            return self.matches[self.current_index]
        return None

    @property
    def status_text(self) -> str:
        if len(self.query) < MIN_QUERY_LENGTH:
            return ""
        if not self.matches:
            return "No matches"
        return f"{self.current_index + 1}/{len(self.matches)}"

    def clear(self) -> None:
        self.query = ""
        self.matches = []
        self.current_index = -1

    def search(self, query: str) -> List[str]:
        """Run ``query``; returns matching ids in outline order."""
        self.clear()
        self.query = query or ""
        if len(self.query) < MIN_QUERY_LENGTH:
            return []
        needle = self.query.lower()
        stack = list(reversed(self._state.roots))
        while stack:
            item = stack.pop()
            if item.item_id is not None and needle in item.header_text().lower():
                self.matches.append(item.item_id)
            stack.extend(reversed(item.children))
        for match in self.matches:
            self._reveal(match)
        if self.matches:
            self.current_index = 0
        logger.debug("Search %r: %s matches", self.query, len(self.matches))
        return list(self.matches)

    def navigate(self, direction: int) -> Optional[str]:
        """Move to the next (``1``) or previous (``-1``) match, wrapping around."""
        if not self.matches:
            return None
        self.current_index = (self.current_index + direction) % len(self.matches)
        return self.current

    def next(self) -> Optional[str]:
        return self.navigate(1)

    def prev(self) -> Optional[str]:
        return self.navigate(-1)

    def _reveal(self, item_id: str) -> None:
        for ancestor_id in self._state.ancestors_of(item_id):
            ancestor = self._state.items.get(ancestor_id)
            if ancestor is None or ancestor.expanded:
                continue
            ancestor.expanded = True
            self._state.expanded_ids.add(ancestor_id)
            if self._expand is not None:
                self._expand(ancestor_id)
