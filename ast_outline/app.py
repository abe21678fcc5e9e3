# -*- coding: utf-8 -*-
"""Tk-based GUI front-end for AST Outline.

Main window with a source editor on the left and the outline tree (search
bar, tree, node details) on the right. Exposes :class:`AstOutlineApp` and
the ``main`` entry point used by ``run.py`` and the ``ast-outline`` script.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

import tkinter as tk
from tkinter import filedialog, messagebox, ttk

import sv_ttk

from ast_outline.core.engine import TkScheduler
from ast_outline.core.models import RenderItem, TreeNode
from ast_outline.core.parsers import EstreeJsonParser, PythonSourceParser
from ast_outline.core.services import OutlineSession, load_settings, save_settings
from ast_outline.logging_config import setup_logging
from ast_outline.ui.controllers import OutlineController
from ast_outline.ui.dialogs import SettingsDialog
from ast_outline.ui.widgets import AstTreeWidget, NodeDetailsPanel, SearchWidget, SourceEditor
from ast_outline.version import get_app_version

logger = logging.getLogger(__name__)

__all__ = ["AstOutlineApp", "EditorJumpSink", "main"]

EDITOR_ID = "input"

_FILE_TYPES = [
    ("Python source", "*.py"),
    ("ESTree JSON", "*.json"),
    ("All files", "*.*"),
]


class EditorJumpSink:
    """Routes jump requests to the editor registered under the event's id."""

    def __init__(self) -> None:
        self._editors: Dict[str, SourceEditor] = {}

    def register(self, editor: SourceEditor) -> None:
        self._editors[editor.editor_id] = editor

    def jump_to(self, editor_id: str, line: int, column: int) -> None:
        editor = self._editors.get(editor_id)
        if editor is None:
            logger.debug("No editor registered as %r", editor_id)
            return
        editor.jump_to(line, column)


class AstOutlineApp:
    """Main application widget wrapping all Tkinter UI components."""

    def __init__(self, root: tk.Tk) -> None:
        self.root = root
        self.scheduler = TkScheduler(root)
        self.jump_sink = EditorJumpSink()
        self.python_parser = PythonSourceParser()
        self.estree_parser = EstreeJsonParser()

        self.session = OutlineSession(
            parser=self.python_parser,
            jump_sink=self.jump_sink,
            scheduler=self.scheduler,
            settings=load_settings(),
            editor_id=EDITOR_ID,
        )
        self.controller = OutlineController(
            self.session,
            self.scheduler,
            clipboard=self._set_clipboard,
            persist_settings=save_settings,
            on_search_status=self._on_search_status,
        )
        self.current_path: Optional[Path] = None
        self.live_sync_var = tk.BooleanVar(value=True)
        self.status_var = tk.StringVar(value="")

        self._build_layout()
        self._build_menu()

        self.session.surface = self.tree
        self.session.on_selection = self._on_selection
        self.jump_sink.register(self.editor)
        self.session.clear()
        self._update_status()

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    def _build_layout(self) -> None:
        panes = ttk.PanedWindow(self.root, orient="horizontal")
        panes.pack(fill="both", expand=True)

        self.editor = SourceEditor(
            panes,
            editor_id=EDITOR_ID,
            on_cursor=self.controller.handle_cursor,
            on_text_changed=self._on_text_changed,
        )
        panes.add(self.editor, weight=1)

        right = ttk.Frame(panes)
        right.columnconfigure(0, weight=1)
        right.rowconfigure(1, weight=1)
        panes.add(right, weight=1)

        self.search = SearchWidget(
            right,
            on_term_changed=self.controller.handle_search_term_changed,
            on_navigate=self.controller.handle_search_navigation,
        )
        self.search.grid(row=0, column=0, sticky="ew", padx=4, pady=4)

        self.tree = AstTreeWidget(
            right,
            on_select=self.controller.handle_select,
            on_expand_changed=self.controller.handle_expand_changed,
            on_placeholder=self._on_placeholder,
            on_force_render=self.controller.render_anyway,
            on_enable_lazy=self._on_enable_lazy,
        )
        self.tree.grid(row=1, column=0, sticky="nsew", padx=4)

        self.details = NodeDetailsPanel(right)
        self.details.grid(row=2, column=0, sticky="ew", padx=4, pady=(4, 0))

        status = ttk.Label(self.root, textvariable=self.status_var, anchor="w")
        status.pack(fill="x", side="bottom", padx=4, pady=2)

    def _build_menu(self) -> None:
        menubar = tk.Menu(self.root)

        file_menu = tk.Menu(menubar, tearoff=0)
        file_menu.add_command(label="Open...", accelerator="Ctrl+O", command=self.open_file)
        file_menu.add_separator()
        file_menu.add_command(label="Exit", command=self.root.destroy)
        menubar.add_cascade(label="File", menu=file_menu)

        edit_menu = tk.Menu(menubar, tearoff=0)
        edit_menu.add_command(label="Copy tree text", command=self.controller.copy_tree_text)
        edit_menu.add_command(label="Copy JSON", command=self.controller.copy_json)
        edit_menu.add_separator()
        edit_menu.add_command(label="Find in tree", accelerator="Ctrl+F", command=self.search.focus_entry)
        menubar.add_cascade(label="Edit", menu=edit_menu)

        view_menu = tk.Menu(menubar, tearoff=0)
        view_menu.add_command(label="Expand all", command=self.controller.expand_all)
        view_menu.add_command(label="Collapse all", command=self.controller.collapse_all)
        view_menu.add_separator()
        view_menu.add_checkbutton(
            label="Sync tree with cursor", variable=self.live_sync_var, command=self._on_live_sync_toggled
        )
        view_menu.add_command(label="Settings...", command=self.open_settings)
        menubar.add_cascade(label="View", menu=view_menu)

        help_menu = tk.Menu(menubar, tearoff=0)
        help_menu.add_command(label="About", command=self.show_about)
        menubar.add_cascade(label="Help", menu=help_menu)

        self.root.config(menu=menubar)
        self.root.bind("<Control-o>", lambda _e: self.open_file())
        self.root.bind("<Control-f>", lambda _e: self.search.focus_entry())

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def open_file(self) -> None:
        filepath = filedialog.askopenfilename(title="Open source or ESTree JSON", filetypes=_FILE_TYPES)
        if not filepath:
            return
        path = Path(filepath)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Could not read %s: %s", path, exc)
            messagebox.showerror("Open failed", f"Could not read {path.name}:\n\n{exc}")
            return
        self._use_parser_for(path)
        self.current_path = path
        self.root.title(f"AST Outline - {path.name}")
        logger.info("Opened %s (%s chars)", path, len(text))
        self.editor.set_text(text)
        self.controller.load_source_now(text)
        self._update_status()

    def _use_parser_for(self, path: Path) -> None:
        if path.suffix.lower() == ".json":
            # ESTree spans point into the original JS source, not into the JSON text
            self.session.parser = self.estree_parser
            self.session.jump_sink = None
            self.live_sync_var.set(False)
            self.controller.set_live_sync(False)
        else:
            self.session.parser = PythonSourceParser(filename=str(path))
            self.session.jump_sink = self.jump_sink
            self.live_sync_var.set(True)
            self.controller.set_live_sync(True)

    def open_settings(self) -> None:
        dialog = SettingsDialog(self.root, settings=self.session.settings)
        settings = dialog.show()
        if settings is None:
            return
        if not self.controller.apply_settings(settings):
            messagebox.showwarning("Settings", "Settings were applied but could not be saved.")
        self._update_status()

    def show_about(self) -> None:
        messagebox.showinfo(
            "About AST Outline",
            f"AST Outline {get_app_version()}\n\nBrowse the syntax tree of Python source "
            "(or ESTree JSON) next to the code.",
        )

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------
    def _on_text_changed(self, text: str) -> None:
        self.controller.handle_source_changed(text)
        self.scheduler.call_later(350, self._update_status)

    def _on_placeholder(self, item_id: str) -> None:
        self.controller.handle_placeholder(item_id)
        self._update_status()

    def _on_enable_lazy(self) -> None:
        self.controller.enable_lazy_loading()
        self._update_status()

    def _on_live_sync_toggled(self) -> None:
        self.controller.set_live_sync(bool(self.live_sync_var.get()))

    def _on_search_status(self, text: str) -> None:
        self.search.set_status(text)

    def _on_selection(self, item: Optional[RenderItem], node: Optional[TreeNode]) -> None:
        self.details.show_node(node, self.controller.source_text)

    def _set_clipboard(self, text: str) -> None:
        self.root.clipboard_clear()
        self.root.clipboard_append(text)

    def _update_status(self) -> None:
        snapshot = self.controller.snapshot()
        parts = [f"{snapshot['nodes']:,} nodes rendered"]
        if snapshot["lazy_mode"]:
            parts.append("lazy")
        if snapshot["limit_hit"]:
            parts.append("truncated")
        if snapshot["status"] not in ("ok", "empty"):
            parts.append(snapshot["status"].replace("_", " "))
        self.status_var.set(" | ".join(parts))


def main() -> None:
    """Configure logging, main window, and launch application."""
    setup_logging()
    logger.info("===== AST Outline %s starting =====", get_app_version())

    root = tk.Tk()
    root.title("AST Outline")
    window_width, window_height = 1100, 700
    screen_width = root.winfo_screenwidth()
    screen_height = root.winfo_screenheight()
    pos_x = (screen_width // 2) - (window_width // 2)
    pos_y = (screen_height // 2) - (window_height // 2)
    root.geometry(f"{window_width}x{window_height}+{pos_x}+{pos_y}")

    sv_ttk.set_theme("light")

    AstOutlineApp(root)
    root.mainloop()
    logger.info("===== Application terminated =====")
