"""Parser collaborators producing :class:`~ast_outline.core.models.TreeNode` roots."""

from .base import PARSE_ERROR, STACK_EXHAUSTION, ParseResult, ParserService
from .python_source import PythonSourceParser, python_ast_to_tree
from .estree import EstreeJsonParser, load_estree_file, tree_from_estree

__all__ = [
    "PARSE_ERROR",
    "STACK_EXHAUSTION",
    "ParseResult",
    "ParserService",
    "PythonSourceParser",
    "python_ast_to_tree",
    "EstreeJsonParser",
    "load_estree_file",
    "tree_from_estree",
]
