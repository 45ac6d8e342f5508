"""
Lifecycle method normalization.

Renames the lifecycle hooks of the component class to the names the runtime
calls, both where they are defined and where the class calls them through
`self`.
"""

import ast
from typing import List

from ...diagnostics import Diagnostic
from ...errors import TransformError
from .chain import TransformContext, TransformResult
from .decorators import component_class_node

LIFECYCLE_METHODS = {
    "component_will_load": "_will_load",
    "component_did_load": "_did_load",
    "component_will_update": "_will_update",
    "component_did_update": "_did_update",
    "component_did_unload": "_did_unload",
}


class _SelfReferenceRenamer(ast.NodeTransformer):
    """Rewrites `self.<hook>` attribute access inside the class."""

    def visit_Attribute(self, node: ast.Attribute) -> ast.AST:
        self.generic_visit(node)
        if isinstance(node.value, ast.Name) and node.value.id == "self" and node.attr in LIFECYCLE_METHODS:
            node.attr = LIFECYCLE_METHODS[node.attr]
        return node


def update_lifecycle_methods(tree: ast.Module, ctx: TransformContext) -> TransformResult:
    """Rename lifecycle hooks of the component class."""
    if ctx.metadata is None:
        return tree, []

    class_node = component_class_node(tree, ctx.metadata.component_class)
    if class_node is None:
        return tree, []

    methods = [
        member for member in class_node.body
        if isinstance(member, (ast.FunctionDef, ast.AsyncFunctionDef))
    ]
    defined = {member.name for member in methods}

    diagnostics: List[Diagnostic] = []
    clashes = sorted(name for name in defined if name in LIFECYCLE_METHODS and LIFECYCLE_METHODS[name] in defined)
    if clashes:
        error = TransformError(
            f"{class_node.name} defines both {clashes[0]} and {LIFECYCLE_METHODS[clashes[0]]}; "
            "lifecycle methods left unchanged",
            file_path=ctx.file_path,
            line=class_node.lineno,
            column=class_node.col_offset,
        )
        diagnostics.append(Diagnostic.from_exception(error, code="transform"))
        return tree, diagnostics

    for member in methods:
        if member.name in LIFECYCLE_METHODS:
            member.name = LIFECYCLE_METHODS[member.name]

    _SelfReferenceRenamer().visit(class_node)
    return tree, diagnostics
