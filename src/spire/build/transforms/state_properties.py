"""
State property extraction.

Collects the names of `@State` members of the component class into the
component metadata and removes the marker from the emitted class:

    @State
    def count(self) -> int:
        return 0

becomes `count: int = 0` and adds "count" to the metadata states.

Names are sorted case-insensitively. A property marked more than once is
listed once.
"""

import ast
from typing import List

from .chain import TransformContext, TransformResult
from .decorators import component_class_node, find_marker, lower_to_attribute, without_decorator

STATE_MARKER = "State"


def sort_state_names(names: List[str]) -> List[str]:
    """Deduplicate and sort names case-insensitively.

    Names that differ only by case are ordered by their exact text so the
    result does not depend on declaration order.
    """
    return sorted(set(names), key=lambda name: (name.lower(), name))


def state_properties(tree: ast.Module, ctx: TransformContext) -> TransformResult:
    """Extract `@State` member names from the component class."""
    if ctx.metadata is None:
        return tree, []

    class_node = component_class_node(tree, ctx.metadata.component_class)
    if class_node is None:
        return tree, []

    names = list(ctx.metadata.states)
    body = []

    for member in class_node.body:
        decorators = getattr(member, "decorator_list", None)
        if not decorators:
            body.append(member)
            continue

        index = find_marker(decorators, STATE_MARKER)
        if index is None:
            body.append(member)
            continue

        # Strip every copy of the marker, not just the first
        while index is not None:
            decorators = without_decorator(decorators, index)
            index = find_marker(decorators, STATE_MARKER)
        member.decorator_list = decorators
        names.append(member.name)

        lowered = lower_to_attribute(member) if not decorators else None
        body.append(lowered if lowered is not None else member)

    class_node.body = body
    ctx.metadata.states = sort_state_names(names)
    return tree, []
