"""AST Outline UI package.

Tkinter widgets, dialogs and the UI-free controller that connects them to
an :class:`~ast_outline.core.services.OutlineSession`.
"""

from .controllers.outline_controller import OutlineController  # noqa: F401
from .widgets.ast_tree import AstTreeWidget  # noqa: F401
from .widgets.details_panel import NodeDetailsPanel  # noqa: F401
from .widgets.search_widget import SearchWidget  # noqa: F401
from .widgets.source_editor import SourceEditor  # noqa: F401
from .dialogs.settings_dialog import SettingsDialog  # noqa: F401

__all__: list[str] = [
    "OutlineController",
    "AstTreeWidget",
    "NodeDetailsPanel",
    "SearchWidget",
    "SourceEditor",
    "SettingsDialog",
]
