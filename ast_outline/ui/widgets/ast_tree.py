from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from ast_outline.core.models import RenderItem, RenderPlan

logger = logging.getLogger(__name__)

LOADING_TEXT = "Click to load..."
_LOADING_SUFFIX = "::loading"


class AstTreeWidget(ttk.Frame):
    """Treeview-based rendering surface for outline plans.

    Rows that carry a RenderedNodeId use that id as their Treeview iid, so the
    engine and the widget agree on row identity without a mapping table.
    Primitive leaves get widget-local iids and are never reported back.

    Callbacks:
        - on_select: a row with an id was selected by the user.
        - on_expand_changed: a row was opened or closed by the user. Receives
          the id and the new state. Lazy rows are opened through this hook.
        - on_placeholder: a truncation row was activated.
        - on_force_render / on_enable_lazy: buttons of the "too large" state.

    Notes
    -----
    - Selections made through :meth:`select` do not echo back through
      ``on_select``.
    - All callbacks are invoked inside try/except blocks to avoid raising into
      the Tkinter mainloop.
    """

    def __init__(
        self,
        master: "tk.Widget",
        *,
        on_select: Optional[Callable[[str], None]] = None,
        on_expand_changed: Optional[Callable[[str, bool], None]] = None,
        on_placeholder: Optional[Callable[[str], None]] = None,
        on_force_render: Optional[Callable[[], None]] = None,
        on_enable_lazy: Optional[Callable[[], None]] = None,
    ) -> None:
        super().__init__(master)
        self._on_select = on_select
        self._on_expand_changed = on_expand_changed
        self._on_placeholder = on_placeholder
        self._on_force_render = on_force_render
        self._on_enable_lazy = on_enable_lazy

        # Row bookkeeping
        self._truncated_ids: Set[str] = set()
        self._lazy_ids: Set[str] = set()
        self._search_marked: Set[str] = set()
        self._leaf_counter = 0
        self._items: Dict[str, RenderItem] = {}
        self._suppress_select: Optional[str] = None

        # Layout: banner / too-large actions / tree + scrollbar
        self.columnconfigure(0, weight=1)
        self.rowconfigure(2, weight=1)

        self._banner_var = tk.StringVar(value="")
        self._banner = ttk.Label(self, textvariable=self._banner_var, anchor="w", justify="left", wraplength=420)
        self._banner.grid(row=0, column=0, columnspan=2, sticky="ew", padx=4, pady=(2, 2))

        self._actions = ttk.Frame(self)
        self._force_btn = ttk.Button(self._actions, text="Render anyway", command=self._on_force_clicked)
        self._lazy_btn = ttk.Button(self._actions, text="Enable lazy loading", command=self._on_lazy_clicked)
        self._force_btn.grid(row=0, column=0, padx=(0, 6))
        self._lazy_btn.grid(row=0, column=1)
        self._actions.grid(row=1, column=0, columnspan=2, sticky="w", padx=4, pady=(0, 4))
        self._actions.grid_remove()

        self._tree = ttk.Treeview(self, show="tree", selectmode="browse", height=12)
        self._vsb = ttk.Scrollbar(self, orient="vertical", command=self._tree.yview)
        self._tree.configure(yscrollcommand=self._vsb.set)
        self._tree.grid(row=2, column=0, sticky="nsew")
        self._vsb.grid(row=2, column=1, sticky="ns")

        try:
            self._tree.tag_configure("truncated", foreground="#0098e4")
            self._tree.tag_configure("lazy", foreground="#555555")
            self._tree.tag_configure("loading", foreground="#888888")
            self._tree.tag_configure("search-match", background="#fff3b0")
            self._tree.tag_configure("search-current", background="#ffd54f")
        except Exception:
            pass

        self._tree.bind("<<TreeviewSelect>>", self._on_select_event, add="+")
        self._tree.bind("<<TreeviewOpen>>", lambda e: self._on_toggle_event(True), add="+")
        self._tree.bind("<<TreeviewClose>>", lambda e: self._on_toggle_event(False), add="+")
        self._tree.bind("<Return>", self._on_return_key, add="+")

    # ---------------------------------------------------------------------
    # Rendering surface
    # ---------------------------------------------------------------------
    def show_plan(self, plan: RenderPlan) -> None:
        self.clear()
        self._set_banner(plan.banner or "")
        if plan.status == "too_large":
            self._actions.grid()
            return
        self._actions.grid_remove()
        self._insert_rows("", plan.items, "end")

    def show_message(self, text: str, kind: str = "info") -> None:
        self.clear()
        self._actions.grid_remove()
        self._set_banner(text)
        try:
            color = "#c62828" if kind in ("error", "stack_exhaustion") else ""
            self._banner.configure(foreground=color)
        except Exception:
            pass

    def replace_placeholder(self, placeholder_id: str, items: Sequence[RenderItem]) -> bool:
        if not self._tree.exists(placeholder_id):
            return False
        parent = self._tree.parent(placeholder_id)
        index = self._tree.index(placeholder_id)
        self._tree.delete(placeholder_id)
        self._truncated_ids.discard(placeholder_id)
        self._items.pop(placeholder_id, None)
        self._insert_rows(parent, items, index)
        return True

    def fill_children(self, item_id: str, items: Sequence[RenderItem]) -> bool:
        if not self._tree.exists(item_id):
            return False
        loading = item_id + _LOADING_SUFFIX
        if self._tree.exists(loading):
            self._tree.delete(loading)
        self._lazy_ids.discard(item_id)
        item = self._items.get(item_id)
        if item is not None:
            self._tree.item(item_id, text=item.header_text(), tags=())
        self._insert_rows(item_id, items, "end")
        self._set_open(item_id, True)
        return True

    def set_expanded(self, item_id: str, expanded: bool) -> None:
        if self._tree.exists(item_id):
            self._set_open(item_id, expanded)

    def select(self, item_id: Optional[str]) -> None:
        if item_id is None or not self._tree.exists(item_id):
            return
        if tuple(self._tree.selection()) == (item_id,):
            return
        self._suppress_select = item_id
        self._tree.selection_set(item_id)
        self._tree.focus(item_id)

    def see(self, item_id: str) -> None:
        if self._tree.exists(item_id):
            self._tree.see(item_id)

    def set_search_marks(self, item_ids: List[str], current: Optional[str] = None) -> None:
        for iid in self._search_marked:
            if self._tree.exists(iid):
                tags = [t for t in self._tree.item(iid, "tags") if t not in ("search-match", "search-current")]
                self._tree.item(iid, tags=tags)
        self._search_marked = set()
        for iid in item_ids:
            if not self._tree.exists(iid):
                continue
            tags = list(self._tree.item(iid, "tags"))
            tags.append("search-current" if iid == current else "search-match")
            self._tree.item(iid, tags=tags)
            self._search_marked.add(iid)

    # ---------------------------------------------------------------------
    # Public helpers
    # ---------------------------------------------------------------------
    def clear(self) -> None:
        """Remove all rows and reset the banner."""
        self._tree.delete(*self._tree.get_children(""))
        self._truncated_ids.clear()
        self._lazy_ids.clear()
        self._items.clear()
        self._search_marked.clear()
        self._suppress_select = None
        self._set_banner("")
        try:
            self._banner.configure(foreground="")
        except Exception:
            pass

    def banner_text(self) -> str:
        return self._banner_var.get()

    def actions_visible(self) -> bool:
        return bool(self._actions.winfo_manager())

    def row_text(self, iid: str) -> str:
        return str(self._tree.item(iid, "text"))

    def children_of(self, iid: str = "") -> Tuple[str, ...]:
        return tuple(self._tree.get_children(iid))

    def is_open(self, iid: str) -> bool:
        try:
            return bool(self._tree.item(iid, "open"))
        except tk.TclError:
            return False

    def selected_id(self) -> Optional[str]:
        selection = self._tree.selection()
        return selection[0] if selection else None

    # ---------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------
    def _set_banner(self, text: str) -> None:
        self._banner_var.set(text)
        if text:
            self._banner.grid()
        else:
            self._banner.grid_remove()

    def _set_open(self, iid: str, is_open: bool) -> None:
        # Programmatic open/close does not fire <<TreeviewOpen>>/<<TreeviewClose>>
        self._tree.item(iid, open=is_open)

    def _next_leaf_iid(self) -> str:
        self._leaf_counter += 1
        return f"leaf-{self._leaf_counter}"

    def _insert_rows(self, parent: str, items: Sequence[RenderItem], index: object) -> None:
        # Siblings of the top-level call go to ``index``; everything below is appended.
        stack: List[Tuple[str, RenderItem, object]] = []
        position = index
        top: List[Tuple[str, RenderItem, object]] = []
        for item in items:
            top.append((parent, item, position))
            if isinstance(position, int):
                position += 1
        stack.extend(reversed(top))
        while stack:
            parent_iid, item, where = stack.pop()
            iid = self._insert_one(parent_iid, item, where)
            stack.extend((iid, child, "end") for child in reversed(item.children))

    def _insert_one(self, parent: str, item: RenderItem, where: object) -> str:
        iid = item.item_id or self._next_leaf_iid()
        if item.item_id is not None:
            self._items[iid] = item
        tags: Tuple[str, ...] = ()
        if item.item_type == "truncated":
            tags = ("truncated",)
            self._truncated_ids.add(iid)
        elif item.lazy:
            tags = ("lazy",)
            self._lazy_ids.add(iid)
        self._tree.insert(parent, where, iid=iid, text=item.header_text(), open=item.expanded, tags=tags)
        if item.lazy:
            self._tree.insert(iid, "end", iid=iid + _LOADING_SUFFIX, text=LOADING_TEXT, tags=("loading",))
        return iid

    # ---------------------------------------------------------------------
    # Event handlers
    # ---------------------------------------------------------------------
    def _on_select_event(self, _event: tk.Event) -> None:
        iid = self.selected_id()
        if iid is None:
            return
        if self._suppress_select is not None:
            suppressed, self._suppress_select = self._suppress_select, None
            if suppressed == iid:
                return
        if iid.endswith(_LOADING_SUFFIX):
            self._activate_lazy(iid[: -len(_LOADING_SUFFIX)])
            return
        if iid in self._truncated_ids:
            self._activate_placeholder(iid)
            return
        if iid.startswith("leaf-") or self._on_select is None:
            return
        try:
            self._on_select(iid)
        except Exception:
            logger.exception("Tree selection callback failed for %s", iid)

    def _on_toggle_event(self, is_opening: bool) -> None:
        if self._on_expand_changed is None:
            return
        iid = self._tree.focus()
        if not iid or iid.startswith("leaf-"):
            return
        try:
            self._on_expand_changed(iid, is_opening)
        except Exception:
            logger.exception("Tree expand callback failed for %s", iid)

    def _on_return_key(self, _event: tk.Event) -> str:
        iid = self.selected_id()
        if iid is not None and iid in self._truncated_ids:
            self._activate_placeholder(iid)
        return "break"

    def _activate_lazy(self, iid: str) -> None:
        if self._on_expand_changed is None:
            return
        try:
            self._on_expand_changed(iid, True)
        except Exception:
            logger.exception("Lazy load callback failed for %s", iid)

    def _activate_placeholder(self, iid: str) -> None:
        if self._on_placeholder is None:
            return
        try:
            self._on_placeholder(iid)
        except Exception:
            logger.exception("Placeholder callback failed for %s", iid)

    def _on_force_clicked(self) -> None:
        if self._on_force_render is None:
            return
        try:
            self._on_force_render()
        except Exception:
            logger.exception("Force render callback failed")

    def _on_lazy_clicked(self) -> None:
        if self._on_enable_lazy is None:
            return
        try:
            self._on_enable_lazy()
        except Exception:
            logger.exception("Enable lazy loading callback failed")
