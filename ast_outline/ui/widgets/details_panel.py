from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import List, Optional, Tuple

from ast_outline.core.models import TreeNode
from ast_outline.core.services.export_service import source_excerpt


def describe_node(node: Optional[TreeNode], source: str = "") -> List[Tuple[str, str]]:
    """Label/value rows shown for ``node``."""
    if node is None:
        return []
    rows: List[Tuple[str, str]] = [("Kind", node.kind or "(object)")]
    if node.span is not None:
        span = node.span
        rows.append(("Location", f"{span.start_line}:{span.start_column} - {span.end_line}:{span.end_column}"))
    for name, value in node.attributes.items():
        rows.append((name, repr(value)))
    for name in node.child_properties():
        child = node.children[name]
        if isinstance(child, list):
            rows.append((name, f"[{len(child)} items]"))
        else:
            rows.append((name, child.kind or "{}"))
    excerpt = source_excerpt(source, node.span)
    if excerpt:
        rows.append(("Source", excerpt))
    return rows


class NodeDetailsPanel(ttk.Frame):
    """Read-only summary of the selected node."""

    def __init__(self, master: "tk.Widget") -> None:
        super().__init__(master)
        self.columnconfigure(0, weight=1)
        self.rowconfigure(0, weight=1)
        self._text = tk.Text(self, height=8, wrap="word", state="disabled", relief="flat")
        self._text.grid(row=0, column=0, sticky="nsew")
        self._text.tag_configure("label", font=("", 9, "bold"))
        self._rows: List[Tuple[str, str]] = []

    def show_node(self, node: Optional[TreeNode], source: str = "") -> None:
        self._rows = describe_node(node, source)
        self._text.configure(state="normal")
        self._text.delete("1.0", "end")
        if not self._rows:
            self._text.insert("end", "No node selected")
        for label, value in self._rows:
            self._text.insert("end", f"{label}: ", ("label",))
            self._text.insert("end", f"{value}\n")
        self._text.configure(state="disabled")

    def clear(self) -> None:
        self.show_node(None)

    @property
    def rows(self) -> List[Tuple[str, str]]:
        return list(self._rows)
