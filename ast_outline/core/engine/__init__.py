from __future__ import annotations

"""Tree materialization, indexing and position synchronization engine.

Modules here are UI-free; the rendering surface, the scheduler and the
jump sink are injected collaborators.
"""

from .registry import NodeRegistry, RegistryEntry
from .state import DeferredEntry, EngineState
from .planner import RenderPlanner, estimate_node_count, ordered_child_pairs
from .position_index import LineIndexEntry, SpatialPositionIndex
from .resolvers import LazyResolver, TruncationResolver, RELAXED_BUDGET_STEP
from .surface import JumpSink, NullSurface, RenderSurface
from .synchronizer import (
    CursorEvent,
    ImmediateScheduler,
    PositionSynchronizer,
    Scheduler,
    SyncPhase,
    TkScheduler,
    find_node_path,
)

__all__ = [
    "NodeRegistry",
    "RegistryEntry",
    "DeferredEntry",
    "EngineState",
    "RenderPlanner",
    "estimate_node_count",
    "ordered_child_pairs",
    "LineIndexEntry",
    "SpatialPositionIndex",
    "LazyResolver",
    "TruncationResolver",
    "RELAXED_BUDGET_STEP",
    "JumpSink",
    "NullSurface",
    "RenderSurface",
    "CursorEvent",
    "ImmediateScheduler",
    "PositionSynchronizer",
    "Scheduler",
    "SyncPhase",
    "TkScheduler",
    "find_node_path",
]
