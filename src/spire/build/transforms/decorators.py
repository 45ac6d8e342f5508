"""
Helpers shared by the transform passes for reading build-time annotations.
"""

import ast
from typing import Any, List, Optional, Union

from ...errors import TransformError

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


def is_decorator_marker(decorator: ast.expr, marker: str) -> bool:
    """Return True if a decorator is the given marker.

    A bare name, `@State`, matches when it equals the marker. Any other
    decorator matches when its first token, the leftmost name of its
    attribute or call chain, equals the marker: `@State()`, `@State.field`
    and `@State.field()` all match.

    `@ns.State()` and `@ns.State` are not markers (their first token is `ns`).
    """
    if isinstance(decorator, ast.Name):
        return decorator.id == marker
    first = _first_token(decorator)
    if first is not None:
        return first == marker
    return ast.unparse(decorator).strip() == marker


def _first_token(node: ast.expr) -> Optional[str]:
    while isinstance(node, (ast.Call, ast.Attribute, ast.Subscript)):
        node = node.func if isinstance(node, ast.Call) else node.value
    return node.id if isinstance(node, ast.Name) else None


def find_marker(decorators: List[ast.expr], marker: str) -> Optional[int]:
    """Index of the first decorator matching the marker, or None."""
    for index, decorator in enumerate(decorators):
        if is_decorator_marker(decorator, marker):
            return index
    return None


def without_decorator(decorators: List[ast.expr], index: int) -> List[ast.expr]:
    return decorators[:index] + decorators[index + 1:]


def literal_value(node: ast.expr, file_path: str, what: str) -> Any:
    """Evaluate a literal annotation argument.

    Raises:
        TransformError: If the node is not a literal
    """
    try:
        return ast.literal_eval(node)
    except ValueError:
        raise TransformError(
            f"{what} must be a literal value, got `{ast.unparse(node)}`",
            file_path=file_path,
            line=getattr(node, "lineno", None),
            column=getattr(node, "col_offset", None),
        )


def keyword_values(call: ast.Call, file_path: str, what: str) -> dict:
    """Literal values of a call's keyword arguments.

    Raises:
        TransformError: For `**kwargs` or non-literal values
    """
    values = {}
    for keyword in call.keywords:
        if keyword.arg is None:
            raise TransformError(
                f"{what} does not accept ** arguments",
                file_path=file_path,
                line=call.lineno,
                column=call.col_offset,
            )
        values[keyword.arg] = literal_value(keyword.value, file_path, f"{what} {keyword.arg}")
    return values


def single_return_value(member: ast.stmt) -> Optional[ast.expr]:
    """The returned expression of a `def x(self): return <expr>` member.

    A leading docstring is allowed. Returns None for any other body.
    """
    if not isinstance(member, ast.FunctionDef):
        return None
    body = member.body
    if body and isinstance(body[0], ast.Expr) and isinstance(getattr(body[0], "value", None), ast.Constant) \
            and isinstance(body[0].value.value, str):
        body = body[1:]
    if len(body) == 1 and isinstance(body[0], ast.Return) and body[0].value is not None:
        return body[0].value
    return None


def lower_to_attribute(member: FunctionNode) -> Optional[ast.stmt]:
    """Turn a single-return member into a class attribute.

    `def count(self) -> int: return 0` becomes `count: int = 0`.
    Returns None when the member body is not a single return.
    """
    value = single_return_value(member)
    if value is None:
        return None
    target = ast.Name(id=member.name, ctx=ast.Store())
    if member.returns is not None:
        node = ast.AnnAssign(target=target, annotation=member.returns, value=value, simple=1)
    else:
        node = ast.Assign(targets=[target], value=value)
    return ast.copy_location(node, member)


def component_class_node(tree: ast.Module, class_name: str) -> Optional[ast.ClassDef]:
    """Top-level class definition with the given name."""
    for node in tree.body:
        if isinstance(node, ast.ClassDef) and node.name == class_name:
            return node
    return None
