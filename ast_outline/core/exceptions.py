from __future__ import annotations

"""Outline engine exception classes.

Routine large-input conditions (truncation, laziness, stale ids) are not
errors and never raise. These exceptions cover the truly unexpected cases:
a malformed tree node, or an internal failure that aborts a render pass.
"""

from typing import Optional


class OutlineError(Exception):
    """Base exception for all outline engine errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.cause = cause


class MalformedNodeError(OutlineError):
    """Raised when a tree node lacks required fields or has unusable ones.

    The whole render pass is treated as aborted when this is raised.
    """


class RenderAborted(OutlineError):
    """Raised at the session boundary when a render pass failed part-way.

    Callers show a terminal error state instead of a partial tree.
    """
