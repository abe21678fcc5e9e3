import json

import pytest

from ast_outline.core.engine import CursorEvent
from ast_outline.core.parsers import PythonSourceParser
from ast_outline.core.services import OutlineSession, ViewerSettings, ViewStatus
from ast_outline.ui.controllers.outline_controller import (
    PARSE_DEBOUNCE_MS,
    SEARCH_DEBOUNCE_MS,
    OutlineController,
)

from tests.conftest import ManualScheduler, RecordingJumpSink, RecordingSurface, concrete_program, flat_program


SOURCE = "x = 1\n\ndef greet(name):\n    return name\n"


@pytest.fixture
def parts():
    scheduler = ManualScheduler()
    surface = RecordingSurface()
    session = OutlineSession(
        parser=PythonSourceParser(),
        surface=surface,
        jump_sink=RecordingJumpSink(),
        scheduler=scheduler,
    )
    clipboard = []
    statuses = []
    persisted = []

    def persist(settings):
        persisted.append(settings)
        return True

    controller = OutlineController(
        session,
        scheduler,
        clipboard=clipboard.append,
        persist_settings=persist,
        on_search_status=statuses.append,
    )
    return controller, session, scheduler, surface, clipboard, statuses, persisted


def test_typing_is_debounced_into_one_parse(parts):
    controller, session, scheduler, surface, *_rest = parts

    controller.handle_source_changed("x")
    controller.handle_source_changed("x =")
    controller.handle_source_changed(SOURCE)

    assert len(scheduler.pending) == 1
    assert scheduler.delays == [PARSE_DEBOUNCE_MS] * 3
    scheduler.run_all()
    assert session.status == ViewStatus.OK
    assert [call for call in surface.calls if call[0] == "show_plan"] == [("show_plan", "ok")]


def test_unchanged_text_does_not_reparse(parts):
    controller, session, scheduler, *_rest = parts
    controller.load_source_now(SOURCE)
    scheduler.run_all()

    controller.handle_source_changed(SOURCE)
    assert scheduler.pending == {}


def test_blank_source_clears_the_view(parts):
    controller, session, *_rest = parts
    controller.load_source_now(SOURCE)
    controller.load_source_now("   \n")
    assert session.status == ViewStatus.EMPTY
    assert session.root is None


def test_parse_error_is_shown(parts):
    controller, session, *_rest = parts
    controller.load_source_now("def (:\n")
    assert session.status == ViewStatus.ERROR


def test_search_is_debounced_and_reports_status(parts):
    controller, session, scheduler, _surface, _clipboard, statuses, _persisted = parts
    controller.load_source_now(SOURCE)
    scheduler.run_all()

    controller.handle_search_term_changed("gr")
    controller.handle_search_term_changed("greet")
    assert SEARCH_DEBOUNCE_MS in scheduler.delays
    assert len(scheduler.pending) == 1
    scheduler.run_all()

    assert controller.search_status == "1/1"
    assert statuses[-1] == "1/1"


def test_search_navigation(parts):
    controller, _session, scheduler, _surface, _clipboard, statuses, _persisted = parts
    controller.load_source_now(SOURCE)
    controller.handle_search_term_changed("name")
    scheduler.run_all()
    total = controller.search_status.split("/")[1]

    assert controller.handle_search_navigation("next") is not None
    assert statuses[-1] == f"2/{total}"
    controller.handle_search_navigation("prev")
    assert statuses[-1] == f"1/{total}"
    assert controller.handle_search_navigation("sideways") is None


def test_search_reruns_after_a_new_parse(parts):
    controller, _session, scheduler, _surface, _clipboard, statuses, _persisted = parts
    controller.load_source_now(SOURCE)
    controller.handle_search_term_changed("greet")
    scheduler.run_all()

    controller.load_source_now("x = 1\n")
    assert statuses[-1] == "No matches"


def test_placeholder_rows_are_loaded(parts):
    controller, session, *_rest = parts
    controller.apply_settings(ViewerSettings(max_render_nodes=500))
    controller.load_tree(flat_program(501))
    placeholder_id = session.truncation.pending_ids()[0]

    assert controller.handle_placeholder(placeholder_id) == 2
    assert controller.handle_placeholder(placeholder_id) == 0


def test_render_anyway_and_enable_lazy_loading(parts):
    controller, session, scheduler, _surface, _clipboard, _statuses, persisted = parts
    controller.apply_settings(ViewerSettings(lazy_load_enabled=False, max_render_nodes=500))
    controller.load_tree(flat_program(600))
    assert session.status == ViewStatus.TOO_LARGE

    controller.render_anyway()
    scheduler.run_all()
    assert session.status == ViewStatus.OK

    controller.enable_lazy_loading()
    assert persisted[-1].lazy_load_enabled
    assert session.settings.lazy_load_enabled


def test_apply_settings_reports_persistence_failures(parts):
    controller, session, *_rest = parts

    def broken(settings):
        raise OSError("disk full")

    controller._persist_settings = broken
    assert controller.apply_settings(ViewerSettings(max_render_depth=80)) is False
    assert session.settings.max_render_depth == 80


def test_copy_uses_selection_or_whole_tree(parts):
    controller, session, _scheduler, _surface, clipboard, *_rest = parts
    assert controller.copy_tree_text() is None

    controller.load_tree(concrete_program())
    text = controller.copy_tree_text()
    assert text.startswith("Program\n")
    assert clipboard == [text]

    call = session.root.children["body"][1].children["expression"]
    controller.handle_select(session.state.registry.find_by_tree_node(call))
    assert json.loads(controller.copy_json()) == {"type": "CallExpression"}


def test_live_sync_toggle(parts):
    controller, session, scheduler, *_rest = parts
    controller.load_source_now(SOURCE)
    scheduler.run_all()

    controller.set_live_sync(False)
    controller.handle_cursor(CursorEvent("input", 1, 0))
    assert scheduler.pending == {}

    controller.set_live_sync(True)
    controller.handle_cursor(CursorEvent("input", 1, 0))
    assert len(scheduler.pending) == 1


def test_expand_and_collapse_all(parts):
    controller, session, *_rest = parts
    controller.load_tree(concrete_program())
    controller.expand_all()
    assert all(item.expanded for item in session.state.items.values() if item.has_children)
    controller.collapse_all()
    assert not any(item.expanded for item in session.state.items.values())


def test_snapshot(parts):
    controller, *_rest = parts
    controller.load_tree(concrete_program())
    snapshot = controller.snapshot()
    assert snapshot["status"] == ViewStatus.OK
    assert snapshot["nodes"] == 4
    assert snapshot["lazy_mode"] is False
    assert snapshot["search"] == ""
