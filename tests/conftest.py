"""Test configuration and fixtures for the AST Outline test suite.

Provides tree builders, a manually driven scheduler, a recording rendering
surface and a recording jump sink. Every test runs against a throw-away
user configuration directory.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ast_outline.config import CONFIG_DIR_ENV, ConfigManager
from ast_outline.core.models import RenderItem, RenderPlan, Span, TreeNode

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


# ---------------------------------------------------------------------------
# Tree builders
# ---------------------------------------------------------------------------

def node(kind: Optional[str], span: Optional[Tuple[int, int, int, int]] = None, children: Optional[Dict[str, Any]] = None, **attributes: Any) -> TreeNode:
    """Build a ``TreeNode``; ``span`` is ``(start_line, start_col, end_line, end_col)``."""
    return TreeNode(
        kind,
        attributes=dict(attributes),
        children=dict(children or {}),
        span=Span(*span) if span is not None else None,
    )


def concrete_program() -> TreeNode:
    """Program / VariableDeclaration / ExpressionStatement > CallExpression."""
    return node(
        "Program",
        children={
            "body": [
                node("VariableDeclaration", (1, 0, 1, 10)),
                node(
                    "ExpressionStatement",
                    (2, 0, 2, 20),
                    children={"expression": node("CallExpression", (2, 0, 2, 20))},
                ),
            ]
        },
    )


def flat_program(count: int) -> TreeNode:
    """Program whose body holds ``count`` single-line leaves, one per line."""
    leaves = [node("Literal", (line, 0, line, 5), value=line) for line in range(1, count + 1)]
    return node("Program", (1, 0, count, 5), children={"body": leaves})


def nested_chain(depth: int, kind: str = "Wrapper") -> TreeNode:
    """``depth`` single-child wrappers, built without recursion."""
    current = node(kind, (depth, 0, depth, 1))
    for level in range(depth - 1, 0, -1):
        current = node(kind, (level, 0, depth, 1), children={"body": current})
    return current


def lazy_program(functions: int = 3, statements: int = 3) -> TreeNode:
    """Program > FunctionDef* > body[Statement*]; statements sit on distinct lines."""
    funcs = []
    line = 1
    for f in range(functions):
        start = line
        stmts = []
        for _s in range(statements):
            line += 1
            stmts.append(node("Statement", (line, 4, line, 20), name=f"s{line}"))
        funcs.append(node("FunctionDef", (start, 0, line, 20), children={"body": stmts}, name=f"f{f}"))
        line += 1
    return node("Program", (1, 0, line, 0), children={"body": funcs})


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------

class ManualScheduler:
    """Scheduler whose callbacks only run when the test says so."""

    def __init__(self) -> None:
        self._next_token = 0
        self.pending: Dict[int, Tuple[int, Callable[[], None]]] = {}
        self.delays: List[int] = []

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> int:
        self._next_token += 1
        self.pending[self._next_token] = (delay_ms, callback)
        self.delays.append(delay_ms)
        return self._next_token

    def cancel(self, token: Any) -> None:
        self.pending.pop(token, None)

    def run_next(self) -> bool:
        if not self.pending:
            return False
        token = min(self.pending)
        _delay, callback = self.pending.pop(token)
        callback()
        return True

    def run_all(self, limit: int = 100) -> int:
        ran = 0
        while self.pending and ran < limit:
            self.run_next()
            ran += 1
        return ran


class RecordingSurface:
    """Rendering surface that records every call and tracks shown ids."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Any]] = []
        self.shown: set = set()
        self.plans: List[RenderPlan] = []
        self.messages: List[Tuple[str, str]] = []
        self.expanded: Dict[str, bool] = {}
        self.selected: Optional[str] = None
        self.marks: Tuple[List[str], Optional[str]] = ([], None)

    def _remember(self, items: Sequence[RenderItem]) -> None:
        stack = list(items)
        while stack:
            item = stack.pop()
            if item.item_id is not None:
                self.shown.add(item.item_id)
            stack.extend(item.children)

    def show_plan(self, plan: RenderPlan) -> None:
        self.calls.append(("show_plan", plan.status))
        self.plans.append(plan)
        self.shown = set()
        self._remember(plan.items)

    def show_message(self, text: str, kind: str = "info") -> None:
        self.calls.append(("show_message", kind))
        self.messages.append((text, kind))
        self.shown = set()

    def replace_placeholder(self, placeholder_id: str, items: Sequence[RenderItem]) -> bool:
        self.calls.append(("replace_placeholder", placeholder_id))
        if placeholder_id not in self.shown:
            return False
        self.shown.discard(placeholder_id)
        self._remember(items)
        return True

    def fill_children(self, item_id: str, items: Sequence[RenderItem]) -> bool:
        self.calls.append(("fill_children", item_id))
        if item_id not in self.shown:
            return False
        self._remember(items)
        return True

    def set_expanded(self, item_id: str, expanded: bool) -> None:
        self.calls.append(("set_expanded", item_id))
        self.expanded[item_id] = expanded

    def select(self, item_id: Optional[str]) -> None:
        self.calls.append(("select", item_id))
        self.selected = item_id

    def see(self, item_id: str) -> None:
        self.calls.append(("see", item_id))

    def set_search_marks(self, item_ids: List[str], current: Optional[str] = None) -> None:
        self.calls.append(("set_search_marks", len(item_ids)))
        self.marks = (list(item_ids), current)


class RecordingJumpSink:
    def __init__(self) -> None:
        self.jumps: List[Tuple[str, int, int]] = []

    def jump_to(self, editor_id: str, line: int, column: int) -> None:
        self.jumps.append((editor_id, line, column))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the configuration manager at a temporary user directory."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv(CONFIG_DIR_ENV, str(config_dir))
    ConfigManager.reset_instance()
    yield config_dir
    ConfigManager.reset_instance()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def jump_sink():
    return RecordingJumpSink()
