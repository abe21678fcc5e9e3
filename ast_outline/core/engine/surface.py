from __future__ import annotations

"""Collaborator interfaces the engine talks to.

The rendering surface owns the visual rows keyed by RenderedNodeId; the
jump sink moves a text cursor. Neither is required to still know an id the
engine hands it: unknown ids are ignored.
"""

from typing import List, Optional, Protocol, Sequence, runtime_checkable

from ast_outline.core.models import RenderItem, RenderPlan


@runtime_checkable
class RenderSurface(Protocol):
    """Anything that can display a render plan.

    Methods receiving an id that the surface no longer shows must return
    quietly (``False`` where a result is expected).
    """

    def show_plan(self, plan: RenderPlan) -> None:
        """Replace the whole display with ``plan``."""
        ...

    def show_message(self, text: str, kind: str = "info") -> None:
        """Replace the display with a status message.

        Args:
            text: User-facing message
            kind: One of ``"info"``, ``"rendering"``, ``"error"``,
                ``"stack_exhaustion"``
        """
        ...

    def replace_placeholder(self, placeholder_id: str, items: Sequence[RenderItem]) -> bool:
        """Swap a truncation placeholder row for ``items`` at the same position."""
        ...

    def fill_children(self, item_id: str, items: Sequence[RenderItem]) -> bool:
        """Populate a lazy boundary row with its freshly materialized children."""
        ...

    def set_expanded(self, item_id: str, expanded: bool) -> None:
        ...

    def select(self, item_id: Optional[str]) -> None:
        ...

    def see(self, item_id: str) -> None:
        ...

    def set_search_marks(self, item_ids: List[str], current: Optional[str] = None) -> None:
        ...


@runtime_checkable
class JumpSink(Protocol):
    """Moves the cursor of an editor to a source position."""

    def jump_to(self, editor_id: str, line: int, column: int) -> None:
        ...


class NullSurface:
    """Surface that displays nothing; used until a real one is attached."""

    def show_plan(self, plan: RenderPlan) -> None:
        return None

    def show_message(self, text: str, kind: str = "info") -> None:
        return None

    def replace_placeholder(self, placeholder_id: str, items: Sequence[RenderItem]) -> bool:
        return False

    def fill_children(self, item_id: str, items: Sequence[RenderItem]) -> bool:
        return False

    def set_expanded(self, item_id: str, expanded: bool) -> None:
        return None

    def select(self, item_id: Optional[str]) -> None:
        return None

    def see(self, item_id: str) -> None:
        return None

    def set_search_marks(self, item_ids: List[str], current: Optional[str] = None) -> None:
        return None
