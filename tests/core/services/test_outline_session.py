from ast_outline.core.exceptions import RenderAborted
from ast_outline.core.models import TreeNode
from ast_outline.core.parsers import PythonSourceParser
from ast_outline.core.services import OutlineSession, ViewerSettings, ViewStatus
from ast_outline.core.services.outline_session import FORCE_RENDER_YIELD_MS

from tests.conftest import ManualScheduler, RecordingJumpSink, RecordingSurface, concrete_program, flat_program


def _session(settings=None, parser=None):
    scheduler = ManualScheduler()
    surface = RecordingSurface()
    sink = RecordingJumpSink()
    session = OutlineSession(
        parser=parser or PythonSourceParser(),
        surface=surface,
        jump_sink=sink,
        scheduler=scheduler,
        settings=settings,
    )
    return session, scheduler, surface, sink


def test_load_source_renders_and_builds_the_index_later():
    session, scheduler, surface, _sink = _session()
    result = session.load_source("x = 1\ny = 2\n")

    assert result.success
    assert session.status == ViewStatus.OK
    assert surface.calls[0] == ("show_plan", "ok")
    assert session.state.index is None
    scheduler.run_all()
    assert session.state.index is not None
    assert len(session.state.index) > 0


def test_index_build_for_a_superseded_render_is_skipped():
    session, scheduler, _surface, _sink = _session()
    session.set_tree(concrete_program())
    session.set_tree(concrete_program())
    scheduler.run_next()
    assert session.state.index is None
    scheduler.run_next()
    assert session.state.index is not None


def test_parse_errors_replace_the_tree():
    session, _scheduler, surface, _sink = _session()
    session.load_source("x = 1\n")

    result = session.load_source("def (:\n")
    assert not result.success
    assert session.status == ViewStatus.ERROR
    assert session.message.startswith("Parse error:")
    assert surface.messages[-1][1] == "error"
    assert len(session.state.registry) == 0


def test_deep_nesting_gets_the_stack_exhaustion_hint():
    session, _scheduler, surface, _sink = _session()
    session.load_source("(" * 300 + ")" * 300)
    assert session.status == ViewStatus.STACK_EXHAUSTION
    assert "nested too deeply" in session.message
    assert surface.messages[-1][1] == ViewStatus.STACK_EXHAUSTION


def test_too_large_then_render_anyway():
    settings = ViewerSettings(lazy_load_enabled=False, max_render_nodes=500)
    session, scheduler, surface, _sink = _session(settings)

    session.set_tree(flat_program(600))
    assert session.status == ViewStatus.TOO_LARGE
    assert "too complex" in session.message

    session.force_render()
    assert session.status == ViewStatus.RENDERING
    assert surface.messages[-1] == ("Rendering large AST...", "rendering")
    assert scheduler.delays[-1] == FORCE_RENDER_YIELD_MS

    scheduler.run_all()
    assert session.status == ViewStatus.OK
    assert len(session.state.registry) == 601


def test_new_tree_cancels_a_queued_render_anyway():
    settings = ViewerSettings(lazy_load_enabled=False, max_render_nodes=500)
    session, scheduler, _surface, _sink = _session(settings)

    session.set_tree(flat_program(600))
    session.force_render()
    session.set_tree(flat_program(700))
    assert session.status == ViewStatus.TOO_LARGE

    scheduler.run_all()
    assert session.status == ViewStatus.TOO_LARGE
    assert len(session.state.registry) == 0


def test_enable_lazy_loading_notifies_the_settings_listener():
    saved = []
    session = OutlineSession(
        scheduler=ManualScheduler(),
        settings=ViewerSettings(lazy_load_enabled=False, max_render_nodes=500),
        on_settings_changed=saved.append,
    )
    session.set_tree(flat_program(600))
    assert session.status == ViewStatus.TOO_LARGE

    plan = session.enable_lazy_and_render()
    assert plan is not None and plan.status == "ok"
    assert saved[-1].lazy_load_enabled
    assert session.status == ViewStatus.OK


def test_malformed_tree_aborts_into_an_error_state():
    session, _scheduler, surface, _sink = _session()
    session.set_tree(TreeNode(123))  # type: ignore[arg-type]

    assert session.status == ViewStatus.ERROR
    assert isinstance(session.last_error, RenderAborted)
    assert session.last_plan is None
    assert surface.messages[-1][1] == "error"


def test_clear_returns_to_the_empty_state():
    session, _scheduler, surface, _sink = _session()
    session.set_tree(concrete_program())
    session.clear()
    assert session.status == ViewStatus.EMPTY
    assert session.root is None
    assert surface.plans[-1].status == "empty"
    assert len(session.state.registry) == 0


def test_user_selection_jumps_the_cursor():
    session, _scheduler, surface, sink = _session()
    session.load_source("x = 1\n\ny = 2\n")
    second = session.root.children["body"][1]
    second_id = session.state.registry.find_by_tree_node(second)

    assert session.select(second_id)
    assert surface.selected == second_id
    assert session.selected_node is second
    assert sink.jumps == [("input", 3, 0)]
    assert not session.select("node-999")


def test_selecting_a_placeholder_loads_it():
    session, _scheduler, _surface, sink = _session(ViewerSettings(max_render_nodes=500))
    session.set_tree(flat_program(501))
    placeholder_id = session.truncation.pending_ids()[0]

    assert session.select(placeholder_id) is False
    assert placeholder_id not in session.state.items
    assert len(session.state.registry) == 502
    assert sink.jumps == []


def test_toggle_and_expand_collapse_all():
    session, _scheduler, surface, _sink = _session()
    session.set_tree(concrete_program())
    statement_id = session.state.registry.find_by_tree_node(session.root.children["body"][1])

    session.toggle(statement_id)
    assert session.state.items[statement_id].expanded
    assert surface.expanded[statement_id] is True

    session.collapse_all()
    assert not any(item.expanded for item in session.state.items.values())
    assert session.state.expanded_ids == set()

    session.expand_all()
    assert session.state.items[statement_id].expanded


def test_expanded_rows_survive_a_rerender():
    session, _scheduler, _surface, _sink = _session()
    session.set_tree(concrete_program())
    statement_id = session.state.registry.find_by_tree_node(session.root.children["body"][1])
    session.set_expanded(statement_id, True)

    session.set_tree(concrete_program())
    assert session.state.items[statement_id].expanded


def test_search_marks_go_to_the_surface():
    session, _scheduler, surface, _sink = _session()
    session.set_tree(concrete_program())

    matches = session.run_search("expression")
    assert len(matches) == 2
    assert surface.marks == (matches, matches[0])
    assert session.search_next() == matches[1]
    assert surface.marks[1] == matches[1]


def test_selection_listener_errors_are_contained():
    session, _scheduler, _surface, _sink = _session()

    def broken(item, node):
        raise RuntimeError("listener")

    session.on_selection = broken
    session.set_tree(concrete_program())
    assert session.status == ViewStatus.OK
