import pytest

from ast_outline.core.engine import (
    EngineState,
    LazyResolver,
    RenderPlanner,
    SpatialPositionIndex,
    TruncationResolver,
)
from ast_outline.core.engine.resolvers import RELAXED_BUDGET_STEP, DeferredResolver
from ast_outline.core.models import RenderLimits

from tests.conftest import RecordingSurface, flat_program, lazy_program, nested_chain


def _setup(root, limits):
    state = EngineState()
    planner = RenderPlanner()
    plan = planner.plan(root, limits, state)
    state.index = SpatialPositionIndex.build(state.registry)
    surface = RecordingSurface()
    surface.show_plan(plan)
    lazy = LazyResolver(state, planner, lambda: surface)
    truncation = TruncationResolver(state, planner, lambda: surface)
    return state, plan, surface, lazy, truncation


def test_truncation_resolution_grows_registry_and_index():
    root = flat_program(11)
    state, plan, surface, _lazy, truncation = _setup(root, RenderLimits(max_nodes=10))
    placeholder_id = truncation.pending_ids()[0]
    last_leaf = root.children["body"][-1]
    # Only the multi-line Program covers the last line so far
    assert state.index.query(11, 2) == state.registry.find_by_tree_node(root)

    rows = truncation.resolve(placeholder_id)

    assert len(rows) == 2
    assert len(state.registry) == 12
    assert placeholder_id not in state.items
    assert state.index.query(11, 2) == state.registry.find_by_tree_node(last_leaf)
    assert ("replace_placeholder", placeholder_id) in surface.calls
    # Spliced in place of the placeholder, in source order
    body = plan.items[0].children[0]
    assert [row.label for row in body.children[-3:]] == ["Literal", "Literal", "Literal"]
    assert all(row.item_type != "truncated" for row in body.children)


def test_resolving_twice_is_a_no_op():
    state, _plan, surface, _lazy, truncation = _setup(flat_program(11), RenderLimits(max_nodes=10))
    placeholder_id = truncation.pending_ids()[0]
    truncation.resolve(placeholder_id)
    registry_size = len(state.registry)
    calls = len(surface.calls)

    assert truncation.resolve(placeholder_id) == []
    assert len(state.registry) == registry_size
    assert state.truncation_store == {}
    assert len(surface.calls) == calls


def test_base_resolver_cannot_be_used_directly():
    with pytest.raises(TypeError):
        DeferredResolver(EngineState(), RenderPlanner())  # type: ignore[abstract]


def test_unknown_id_is_ignored():
    _state, _plan, _surface, lazy, truncation = _setup(flat_program(3), RenderLimits())
    assert lazy.resolve("node-12345") == []
    assert truncation.resolve("trunc-9") == []


def test_relaxed_budget_leaves_a_new_placeholder():
    count = 10 + RELAXED_BUDGET_STEP + 50
    state, plan, _surface, _lazy, truncation = _setup(flat_program(count), RenderLimits(max_nodes=10))
    first = truncation.pending_ids()[0]

    truncation.resolve(first)

    assert len(state.registry) == 10 + RELAXED_BUDGET_STEP
    pending = truncation.pending_ids()
    assert len(pending) == 1 and pending[0] != first
    assert state.items[pending[0]].badge == "(51 more)"

    truncation.resolve(pending[0])
    assert len(state.registry) == count + 1
    assert truncation.pending_ids() == []


def test_depth_placeholder_resumes_at_depth_zero():
    state, _plan, _surface, _lazy, truncation = _setup(nested_chain(400), RenderLimits(max_nodes=50000, lazy_enabled=False))
    first = truncation.pending_ids()[0]
    rows = truncation.resolve(first)
    assert rows[0].depth == 0
    # Another ceiling's worth of wrappers, then a fresh placeholder
    assert len(state.registry) == 2 * 151
    assert len(truncation.pending_ids()) == 1


def test_plan_description_survives_repeated_depth_resolution():
    state, plan, _surface, _lazy, truncation = _setup(nested_chain(3000), RenderLimits(max_nodes=50000, lazy_enabled=False))
    for _ in range(8):
        truncation.resolve(truncation.pending_ids()[0])
    assert len(state.registry) == 9 * 151

    description = plan.to_dict()
    levels = 0
    current = description["items"][0]
    while current["children"]:
        current = current["children"][0]
        levels += 1
    assert levels == 9 * 151
    assert current["type"] == "truncated"
    assert current["truncated"] == "depth"
    assert len(repr(plan.items[0])) < 500


def test_lazy_resolution_fills_children_and_indexes_them():
    root = lazy_program()
    state, plan, surface, lazy, _truncation = _setup(root, RenderLimits(lazy_threshold_nodes=5))
    boundary = plan.items[0].children[0].children[0].children[0]
    statement = root.children["body"][0].children["body"][1]

    rows = lazy.resolve(boundary.item_id)

    assert len(rows) == 3
    assert boundary.children == rows
    assert not boundary.lazy and boundary.expanded and boundary.badge == ""
    assert boundary.item_id in state.expanded_ids
    assert ("fill_children", boundary.item_id) in surface.calls
    assert state.index.query(3, 6) == state.registry.find_by_tree_node(statement)


def test_stale_entry_after_detached_row_is_dropped():
    state, plan, _surface, lazy, _truncation = _setup(lazy_program(), RenderLimits(lazy_threshold_nodes=5))
    boundary = plan.items[0].children[0].children[0].children[0]
    # Simulate the owning row disappearing without a full render
    plan.items[0].children[0].children[0].children = []

    assert lazy.resolve(boundary.item_id) == []
    assert boundary.item_id not in state.lazy_store


def test_surface_that_lost_the_row_is_tolerated():
    state, _plan, surface, _lazy, truncation = _setup(flat_program(11), RenderLimits(max_nodes=10))
    surface.shown.clear()
    rows = truncation.resolve(truncation.pending_ids()[0])
    assert len(rows) == 2
    assert len(state.registry) == 12
