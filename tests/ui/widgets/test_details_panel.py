import tkinter as tk

import pytest

from ast_outline.ui.widgets.details_panel import NodeDetailsPanel, describe_node

from tests.conftest import concrete_program, node


def _can_create_tk_root() -> bool:
    try:
        r = tk.Tk()
        r.destroy()
        return True
    except tk.TclError:
        return False


needs_tk = pytest.mark.skipif(
    not _can_create_tk_root(),
    reason="Tkinter root cannot be created in this environment (likely headless CI without display).",
)


def test_describe_node_lists_kind_location_attributes_and_children():
    call = node("Call", (1, 4, 1, 11), children={"func": node("Name", (1, 4, 1, 9)), "args": [1, 2]}, lineno=1)
    rows = describe_node(call, "x = print()\n")

    assert rows[0] == ("Kind", "Call")
    assert rows[1] == ("Location", "1:4 - 1:11")
    assert ("lineno", "1") in rows
    assert ("func", "Name") in rows
    assert ("args", "[2 items]") in rows
    assert rows[-1] == ("Source", "print()")


def test_describe_grouping_and_missing_node():
    assert describe_node(None) == []
    rows = describe_node(concrete_program())
    assert rows[0] == ("Kind", "Program")
    assert ("body", "[2 items]") in rows
    assert not any(label == "Source" for label, _value in rows)


@needs_tk
def test_panel_shows_rows():
    root = tk.Tk()
    root.withdraw()
    try:
        panel = NodeDetailsPanel(root)
        panel.show_node(node("Name", (1, 0, 1, 1), id="x"), "x\n")
        assert panel.rows[0] == ("Kind", "Name")
        assert "Kind: Name" in panel._text.get("1.0", "end")

        panel.clear()
        assert panel.rows == []
        assert panel._text.get("1.0", "end-1c") == "No node selected"
    finally:
        root.destroy()
