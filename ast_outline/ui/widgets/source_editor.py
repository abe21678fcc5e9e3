from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk
from typing import Callable, Optional, Tuple

from ast_outline.core.engine import CursorEvent

logger = logging.getLogger(__name__)


class SourceEditor(ttk.Frame):
    """Plain text editor that reports cursor moves and accepts jumps.

    Parameters
    ----------
    master : tk.Widget
        Parent widget.
    editor_id : str
        Identifier stamped on every emitted :class:`CursorEvent`.
    on_cursor : Optional[Callable[[CursorEvent], None]]
        Invoked after key or mouse interaction moves the insertion cursor.
    on_text_changed : Optional[Callable[[str], None]]
        Invoked with the full text after each user edit.

    Notes
    -----
    Tk text indices are ``line.column`` with 1-based lines and 0-based
    columns, the same convention as the tree spans, so no conversion is
    needed at this boundary. :meth:`jump_to` moves the cursor without
    emitting a cursor event.
    """

    def __init__(
        self,
        master: "tk.Widget",
        *,
        editor_id: str = "input",
        on_cursor: Optional[Callable[[CursorEvent], None]] = None,
        on_text_changed: Optional[Callable[[str], None]] = None,
    ) -> None:
        super().__init__(master)
        self.editor_id = editor_id
        self._on_cursor = on_cursor
        self._on_text_changed = on_text_changed
        self._last_position: Optional[Tuple[int, int]] = None

        self.columnconfigure(0, weight=1)
        self.rowconfigure(0, weight=1)

        self._text = tk.Text(self, wrap="none", undo=True, font=("Courier", 10), width=60)
        self._vsb = ttk.Scrollbar(self, orient="vertical", command=self._text.yview)
        self._hsb = ttk.Scrollbar(self, orient="horizontal", command=self._text.xview)
        self._text.configure(yscrollcommand=self._vsb.set, xscrollcommand=self._hsb.set)
        self._text.grid(row=0, column=0, sticky="nsew")
        self._vsb.grid(row=0, column=1, sticky="ns")
        self._hsb.grid(row=1, column=0, sticky="ew")

        self._text.tag_configure("jump-target", background="#e3f2fd")

        self._text.bind("<KeyRelease>", self._on_cursor_moved, add="+")
        self._text.bind("<ButtonRelease-1>", self._on_cursor_moved, add="+")
        self._text.bind("<<Modified>>", self._on_modified, add="+")

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def get_text(self) -> str:
        # Text always appends a trailing newline
        return self._text.get("1.0", "end-1c")

    def set_text(self, text: str) -> None:
        """Replace the buffer content; reported through ``on_text_changed``."""
        self._text.delete("1.0", "end")
        self._text.insert("1.0", text or "")
        self._text.mark_set("insert", "1.0")
        self._text.edit_reset()

    def cursor_position(self) -> Tuple[int, int]:
        line, column = self._text.index("insert").split(".")
        return int(line), int(column)

    def jump_to(self, line: int, column: int) -> None:
        """Move the insertion cursor to ``line``/``column`` and scroll to it."""
        index = f"{max(1, int(line))}.{max(0, int(column))}"
        self._text.mark_set("insert", index)
        self._text.tag_remove("jump-target", "1.0", "end")
        self._text.tag_add("jump-target", f"{index} linestart", f"{index} lineend")
        self._text.see(index)
        self._last_position = self.cursor_position()
        try:
            self._text.focus_set()
        except tk.TclError:
            pass

    def focus_editor(self) -> None:
        self._text.focus_set()

    # ---------------------------------------------------------------------
    # Event handlers
    # ---------------------------------------------------------------------
    def _on_cursor_moved(self, _event: Optional[tk.Event] = None) -> None:
        position = self.cursor_position()
        if position == self._last_position:
            return
        self._last_position = position
        self._text.tag_remove("jump-target", "1.0", "end")
        if self._on_cursor is None:
            return
        try:
            self._on_cursor(CursorEvent(self.editor_id, position[0], position[1]))
        except Exception:
            logger.exception("Cursor callback failed")

    def _on_modified(self, _event: Optional[tk.Event] = None) -> None:
        if not self._text.edit_modified():
            return
        # Reset the flag so the next edit fires <<Modified>> again
        self._text.edit_modified(False)
        if self._on_text_changed is None:
            return
        try:
            self._on_text_changed(self.get_text())
        except Exception:
            logger.exception("Text change callback failed")
