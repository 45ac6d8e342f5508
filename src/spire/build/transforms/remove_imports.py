"""
Build-only import removal.

The annotation module only exists at build time. Imports of it are dropped,
and annotation names are removed from `from spire import ...` statements
while runtime names (such as `h`) are kept.
"""

import ast
from typing import List, Optional

from .chain import TransformContext, TransformResult

BUILD_ONLY_MODULES = frozenset({"spire.annotations"})
ANNOTATION_PACKAGE = "spire"
ANNOTATION_NAMES = frozenset({"Component", "Prop", "State", "Listen"})


def _filter_import(node: ast.stmt) -> Optional[ast.stmt]:
    """Return the statement without build-only parts, or None to drop it."""
    if isinstance(node, ast.ImportFrom) and node.level == 0:
        if node.module in BUILD_ONLY_MODULES:
            return None
        if node.module == ANNOTATION_PACKAGE:
            names = [alias for alias in node.names if alias.name not in ANNOTATION_NAMES]
            if not names:
                return None
            node.names = names
        return node

    if isinstance(node, ast.Import):
        names = [alias for alias in node.names if alias.name not in BUILD_ONLY_MODULES]
        if not names:
            return None
        node.names = names
        return node

    return node


def remove_imports(tree: ast.Module, ctx: TransformContext) -> TransformResult:
    """Strip build-only imports from the module body."""
    body: List[ast.stmt] = []
    for node in tree.body:
        filtered = _filter_import(node)
        if filtered is not None:
            body.append(filtered)
    tree.body = body
    return tree, []
