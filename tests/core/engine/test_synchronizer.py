from ast_outline.core.engine import (
    CursorEvent,
    EngineState,
    LazyResolver,
    PositionSynchronizer,
    RenderPlanner,
    SyncPhase,
    TruncationResolver,
    find_node_path,
)
from ast_outline.core.engine.synchronizer import DEBOUNCE_MS
from ast_outline.core.models import RenderLimits
from ast_outline.core.services import OutlineSession, ViewerSettings

from tests.conftest import (
    ManualScheduler,
    RecordingJumpSink,
    RecordingSurface,
    concrete_program,
    flat_program,
    lazy_program,
    node,
)


def _session(settings=None):
    scheduler = ManualScheduler()
    surface = RecordingSurface()
    sink = RecordingJumpSink()
    session = OutlineSession(surface=surface, jump_sink=sink, scheduler=scheduler, settings=settings)
    return session, scheduler, surface, sink


def _engine(root, limits, max_iterations=20):
    state = EngineState()
    planner = RenderPlanner()
    planner.plan(root, limits, state)
    lazy = LazyResolver(state, planner)
    truncation = TruncationResolver(state, planner)
    revealed = []
    sync = PositionSynchronizer(
        state, [lazy, truncation], ManualScheduler(), revealed.append, max_iterations=max_iterations
    )
    return state, sync, revealed


def test_latest_cursor_position_wins():
    root = flat_program(12)
    session, scheduler, surface, _sink = _session()
    session.set_tree(root)
    scheduler.run_all()

    session.handle_cursor(CursorEvent("input", 3, 1))
    session.handle_cursor(CursorEvent("input", 7, 1))

    assert len(scheduler.pending) == 1
    assert session.sync.phase is SyncPhase.DEBOUNCING
    assert session.sync.pending == CursorEvent("input", 7, 1)
    assert DEBOUNCE_MS in scheduler.delays

    scheduler.run_all()
    leaf = root.children["body"][6]
    assert surface.selected == session.state.registry.find_by_tree_node(leaf)
    assert session.sync.phase is SyncPhase.IDLE


def test_cursor_selection_does_not_jump_back():
    root = flat_program(12)
    session, scheduler, surface, sink = _session()
    session.set_tree(root)
    scheduler.run_all()

    session.handle_cursor(CursorEvent("input", 10, 2))
    scheduler.run_all()

    leaf_id = session.state.registry.find_by_tree_node(root.children["body"][9])
    assert surface.selected == leaf_id
    assert ("see", leaf_id) in surface.calls
    assert sink.jumps == []

    # A user click on the same row does move the cursor
    assert session.select(leaf_id)
    assert sink.jumps == [("input", 10, 0)]


def test_events_from_other_editors_are_ignored():
    session, scheduler, _surface, _sink = _session()
    session.set_tree(flat_program(5))
    scheduler.run_all()

    session.handle_cursor(CursorEvent("output", 2, 0))
    assert scheduler.pending == {}


def test_cursor_in_lazy_mode_materializes_the_target():
    settings = ViewerSettings(lazy_load_threshold=100, lazy_load_depth=1)
    root = lazy_program(functions=40, statements=5)
    session, scheduler, surface, _sink = _session(settings)
    session.set_tree(root)
    scheduler.run_all()
    assert session.state.lazy_mode

    # FunctionDef f10 starts on line 61; its third statement sits on line 64
    statement = root.children["body"][10].children["body"][2]
    assert statement.attributes["name"] == "s64"
    assert session.state.registry.find_by_tree_node(statement) is None

    session.handle_cursor(CursorEvent("input", 64, 6))
    scheduler.run_all()

    statement_id = session.state.registry.find_by_tree_node(statement)
    assert statement_id is not None
    assert surface.selected == statement_id
    # Every ancestor row is open
    for ancestor_id in session.state.ancestors_of(statement_id):
        assert session.state.items[ancestor_id].expanded


def _chain():
    c = node("C", (3, 0, 3, 5))
    b = node("B", (2, 0, 3, 10), children={"child": c})
    a = node("A", (1, 0, 4, 0), children={"child": b})
    return node("Program", (1, 0, 5, 0), children={"child": a}), a, b, c


def test_seek_stops_at_the_iteration_cap_with_nearest_ancestor():
    root, _a, b, c = _chain()
    limits = RenderLimits(lazy_threshold_nodes=2, lazy_pre_render_depth=1)
    state, sync, _revealed = _engine(root, limits, max_iterations=1)
    assert state.lazy_mode

    node_id = sync.resolve_position(3, 2)

    assert node_id == state.registry.find_by_tree_node(b)
    assert state.registry.find_by_tree_node(c) is None


def test_seek_reaches_the_target_within_the_cap():
    root, _a, _b, c = _chain()
    limits = RenderLimits(lazy_threshold_nodes=2, lazy_pre_render_depth=1)
    state, sync, _revealed = _engine(root, limits)

    assert sync.resolve_position(3, 2) == state.registry.find_by_tree_node(c)


def test_query_before_the_index_is_built_scans_the_registry():
    root = concrete_program()
    state, sync, _revealed = _engine(root, RenderLimits())
    assert state.index is None

    call = root.children["body"][1].children["expression"]
    assert sync.query(2, 5) == state.registry.find_by_tree_node(call)


def test_cancel_drops_the_pending_position():
    state, sync, revealed = _engine(flat_program(3), RenderLimits())
    sync.submit(CursorEvent("input", 1, 0))
    sync.cancel()
    assert sync.pending is None
    assert sync.phase is SyncPhase.IDLE
    assert revealed == []


def test_find_node_path_walks_through_lists():
    root = concrete_program()
    body = root.children["body"]
    call = body[1].children["expression"]

    path = find_node_path(root, 2, 5)

    assert path[0] is root
    assert path[1] is body
    assert path[-1] is call
    assert find_node_path(root, 100, 0) == []
    assert find_node_path(None, 1, 0) == []
