from .ast_tree import AstTreeWidget  # noqa: F401
from .details_panel import NodeDetailsPanel  # noqa: F401
from .search_widget import SearchWidget  # noqa: F401
from .source_editor import SourceEditor  # noqa: F401

__all__ = ["AstTreeWidget", "NodeDetailsPanel", "SearchWidget", "SourceEditor"]
