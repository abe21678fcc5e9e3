"""Top-level package for AST Outline.

The engine lives in :mod:`ast_outline.core` and is GUI-agnostic. Front-ends
(the Tk application in :mod:`ast_outline.app`, tests, scripts) should only
depend on the public API exposed here rather than importing internal
modules directly.
"""

from .core.models import RenderLimits, TreeNode  # re-export for convenience
from .core.services import OutlineSession

__all__: list[str] = [
    "OutlineSession",
    "RenderLimits",
    "TreeNode",
]
