from __future__ import annotations

"""Tree and render-row models.

``tree`` holds the parsed program (``TreeNode`` with its ``Span``);
``render`` holds what the planner hands to a surface: the limits of a pass,
the rows it produced and the plan that wraps them.
"""

from .tree import SPAN_WEIGHT, Span, TreeNode, iter_child_values
from .render import (
    FORCE_RENDER_NODE_LIMIT,
    HARD_DEPTH_LIMIT,
    RenderItem,
    RenderLimits,
    RenderPlan,
)

__all__ = [
    "Span",
    "SPAN_WEIGHT",
    "TreeNode",
    "iter_child_values",
    "RenderItem",
    "RenderLimits",
    "RenderPlan",
    "HARD_DEPTH_LIMIT",
    "FORCE_RENDER_NODE_LIMIT",
]
