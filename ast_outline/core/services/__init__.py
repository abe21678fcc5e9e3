from __future__ import annotations

"""Session-level services built on the engine (session, search, export, settings)."""

from .outline_session import OutlineSession, ViewStatus  # noqa: F401
from .search_service import OutlineSearch  # noqa: F401
from .export_service import node_to_json, node_to_json_text, node_to_tree_text, source_excerpt  # noqa: F401
from .settings_service import ViewerSettings, load_settings, reset_settings, save_settings  # noqa: F401

__all__: list[str] = [
    "OutlineSession",
    "ViewStatus",
    "OutlineSearch",
    "node_to_json",
    "node_to_json_text",
    "node_to_tree_text",
    "source_excerpt",
    "ViewerSettings",
    "load_settings",
    "reset_settings",
    "save_settings",
]
