from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import Dict, Optional

from ast_outline.core.services.settings_service import SETTING_RANGES, ViewerSettings

_NUMERIC_FIELDS = (
    ("lazy_load_depth", "Lazy loading starts at depth"),
    ("lazy_load_threshold", "Lazy loading threshold (nodes)"),
    ("max_render_nodes", "Maximum rendered nodes"),
    ("max_render_depth", "Maximum render depth"),
)


class SettingsDialog(tk.Toplevel):
    """Modal editor for the viewer settings.

    Returns the validated :class:`ViewerSettings` via show(), or ``None`` when
    the dialog was cancelled. Values outside their range are clamped rather
    than rejected.
    """

    def __init__(self, parent: tk.Widget, *, settings: ViewerSettings) -> None:
        super().__init__(parent)
        self.title("Viewer settings")
        self.transient(parent)
        self.resizable(False, False)

        self._result: Optional[ViewerSettings] = None
        self._lazy_var = tk.BooleanVar(value=settings.lazy_load_enabled)
        self._vars: Dict[str, tk.StringVar] = {
            name: tk.StringVar(value=str(getattr(settings, name))) for name, _label in _NUMERIC_FIELDS
        }

        frm = ttk.Frame(self, padding=(12, 12, 12, 12))
        frm.grid(sticky="nsew")

        chk = ttk.Checkbutton(frm, text="Enable lazy loading for large trees", variable=self._lazy_var)
        chk.grid(row=0, column=0, columnspan=2, sticky="w", pady=(0, 6))

        for row, (name, label) in enumerate(_NUMERIC_FIELDS, start=1):
            low, high = SETTING_RANGES[name]
            ttk.Label(frm, text=f"{label} ({low}-{high})").grid(row=row, column=0, sticky="w", pady=2)
            spin = ttk.Spinbox(frm, from_=low, to=high, textvariable=self._vars[name], width=8)
            spin.grid(row=row, column=1, sticky="e", padx=(8, 0), pady=2)

        buttons = ttk.Frame(frm)
        buttons.grid(row=len(_NUMERIC_FIELDS) + 1, column=0, columnspan=2, sticky="ew", pady=(10, 0))
        ttk.Button(buttons, text="Reset to defaults", command=self._on_reset).grid(row=0, column=0, sticky="w")
        ttk.Button(buttons, text="OK", command=self._on_ok).grid(row=0, column=1, sticky="e", padx=(16, 0))
        ttk.Button(buttons, text="Cancel", command=self._on_cancel).grid(row=0, column=2, sticky="e", padx=(8, 0))

        self.bind("<Return>", lambda _e: self._on_ok())
        self.bind("<Escape>", lambda _e: self._on_cancel())
        self.protocol("WM_DELETE_WINDOW", self._on_cancel)

        # Center relative to parent
        try:
            self.update_idletasks()
            px = parent.winfo_rootx()
            py = parent.winfo_rooty()
            pw = parent.winfo_width()
            ph = parent.winfo_height()
            w = self.winfo_width()
            h = self.winfo_height()
            x = px + max(0, (pw - w) // 2)
            y = py + max(0, (ph - h) // 3)
            self.geometry(f"{w}x{h}+{x}+{y}")
        except tk.TclError:
            pass
        try:
            self.grab_set()
        except tk.TclError:
            # Window not viewable yet (e.g. withdrawn parent)
            pass

    def current_values(self) -> ViewerSettings:
        """Settings described by the fields right now, validated and clamped."""
        data = {name: var.get().strip() for name, var in self._vars.items()}
        data["lazy_load_enabled"] = bool(self._lazy_var.get())
        return ViewerSettings.from_mapping(data)

    def _load(self, settings: ViewerSettings) -> None:
        self._lazy_var.set(settings.lazy_load_enabled)
        for name, var in self._vars.items():
            var.set(str(getattr(settings, name)))

    def _on_reset(self) -> None:
        self._load(ViewerSettings())

    def _on_ok(self) -> None:
        self._result = self.current_values()
        self.destroy()

    def _on_cancel(self) -> None:
        self._result = None
        self.destroy()

    def show(self) -> Optional[ViewerSettings]:
        self.wait_window(self)
        return self._result
