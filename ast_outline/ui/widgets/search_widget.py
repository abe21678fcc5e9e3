from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk
from typing import Callable, Literal, Optional

logger = logging.getLogger(__name__)


class SearchWidget(ttk.Frame):
    """Search entry with clear, previous/next buttons and a match counter.

    Parameters
    ----------
    master : tk.Widget
        Parent Tkinter widget.
    on_term_changed : Optional[Callable[[str], None]], optional
        Callback invoked when the search term changes. Identical repeated
        values are not reported twice.
    on_navigate : Optional[Callable[[Literal["prev","next"]], None]], optional
        Callback invoked when navigation is requested, either by clicking the
        buttons or by pressing Return/Shift+Return in the entry.

    Notes
    -----
    - Keyboard bindings:
        * Return / Enter: ``on_navigate("next")``.
        * Shift+Return: ``on_navigate("prev")``.
        * Escape: clears the term and reports ``on_term_changed("")``.
    - All callbacks are invoked inside try/except blocks to avoid raising into
      the Tkinter mainloop.
    """

    def __init__(
        self,
        master: "tk.Widget",
        *,
        on_term_changed: Optional[Callable[[str], None]] = None,
        on_navigate: Optional[Callable[[Literal["prev", "next"]], None]] = None,
        entry_width: Optional[int] = None,
    ) -> None:
        super().__init__(master)

        self._on_term_changed = on_term_changed
        self._on_navigate = on_navigate

        self._term_var = tk.StringVar(value="")
        self._status_var = tk.StringVar(value="")
        self._last_notified_term: Optional[str] = None

        # Layout: Entry | Clear | Prev | Next | Status
        self.columnconfigure(0, weight=1)

        entry_kwargs = {"textvariable": self._term_var}
        if isinstance(entry_width, int) and entry_width > 0:
            entry_kwargs["width"] = entry_width
        self._entry = ttk.Entry(self, **entry_kwargs)
        self._entry.grid(row=0, column=0, padx=(0, 4), sticky="ew")

        self._clear_btn = ttk.Button(self, text="×", width=2, command=self._on_clear_clicked)
        self._clear_btn.grid(row=0, column=1, padx=(0, 4), sticky="nsew")
        self._prev_btn = ttk.Button(self, text="◀", width=3, command=lambda: self.navigate_results("prev"))
        self._prev_btn.grid(row=0, column=2, padx=(0, 4), sticky="nsew")
        self._next_btn = ttk.Button(self, text="▶", width=3, command=lambda: self.navigate_results("next"))
        self._next_btn.grid(row=0, column=3, padx=(0, 4), sticky="nsew")
        self._status = ttk.Label(self, textvariable=self._status_var, width=10, anchor="w")
        self._status.grid(row=0, column=4, sticky="w")

        self._term_var.trace_add("write", self._on_term_var_changed)
        self._entry.bind("<Return>", self._on_return, add="+")
        self._entry.bind("<KP_Enter>", self._on_return, add="+")
        self._entry.bind("<Shift-Return>", self._on_shift_return, add="+")
        self._entry.bind("<Shift-KP_Enter>", self._on_shift_return, add="+")
        self._entry.bind("<Escape>", self._on_escape, add="+")

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def set_search_term(self, term: str) -> None:
        self._term_var.set(term or "")

    def get_search_term(self) -> str:
        return self._term_var.get()

    def set_status(self, text: str) -> None:
        """Show ``text`` (e.g. ``"2/5"`` or ``"No matches"``) next to the buttons."""
        self._status_var.set(text or "")

    def get_status(self) -> str:
        return self._status_var.get()

    def navigate_results(self, direction: Literal["prev", "next"]) -> None:
        if self._on_navigate is None or direction not in ("prev", "next"):
            return
        try:
            self._on_navigate(direction)
        except Exception:
            logger.exception("Search navigation callback failed")

    def focus_entry(self) -> None:
        self._entry.focus_set()
        self._entry.icursor("end")

    # ---------------------------------------------------------------------
    # Internal helpers and handlers
    # ---------------------------------------------------------------------
    def _maybe_notify_term_changed(self) -> None:
        if self._on_term_changed is None:
            return
        term = self.get_search_term()
        if term == self._last_notified_term:
            return
        self._last_notified_term = term
        try:
            self._on_term_changed(term)
        except Exception:
            logger.exception("Search term callback failed")

    def _on_term_var_changed(self, *args) -> None:
        self._maybe_notify_term_changed()

    def _on_return(self, event: tk.Event) -> str:
        self.navigate_results("next")
        return "break"

    def _on_shift_return(self, event: tk.Event) -> str:
        self.navigate_results("prev")
        return "break"

    def _on_escape(self, event: tk.Event) -> str:
        self._clear_and_notify()
        return "break"

    def _on_clear_clicked(self) -> None:
        self._clear_and_notify()

    def _clear_and_notify(self) -> None:
        self.set_search_term("")
        # Report the empty term even when it was already empty
        self._last_notified_term = None
        self._maybe_notify_term_changed()
