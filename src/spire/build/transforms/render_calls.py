"""
Template to render-call rewrite.

Render templates are written as nested `h()` calls:

    h("button", {"class": "primary big", "on_click": self.toggle}, "Count: ", self.count)

and are rewritten into the runtime's render-tree form, where attributes are
split into vnode data and text children are wrapped in `t()`:

    h("button", {"c": {"primary": True, "big": True}, "o": {"click": self.toggle}},
      [t("Count: "), self.count])

Vnode data keys: c (class map), s (style), k (key), o (event handlers),
a (everything else).
"""

import ast
from typing import Dict, List, Optional

from ...diagnostics import Diagnostic
from .chain import TransformContext, TransformResult

RENDER_FUNCTION = "h"
TEXT_FUNCTION = "t"

EVENT_PREFIX = "on_"


def _event_name(key: str) -> Optional[str]:
    """`on_click` and `onClick` are both the "click" event."""
    if key.startswith(EVENT_PREFIX) and len(key) > len(EVENT_PREFIX):
        return key[len(EVENT_PREFIX):]
    if key.startswith("on") and len(key) > 2 and key[2].isupper():
        return key[2:].lower()
    return None


def _class_map(value: ast.expr) -> ast.expr:
    if isinstance(value, ast.Constant) and isinstance(value.value, str):
        names = value.value.split()
        return ast.Dict(
            keys=[ast.Constant(value=name) for name in names],
            values=[ast.Constant(value=True) for _ in names],
        )
    return value


def _dict_node(entries: Dict[str, ast.expr]) -> ast.Dict:
    return ast.Dict(keys=[ast.Constant(value=key) for key in entries], values=list(entries.values()))


def _vnode_data(attrs: ast.expr) -> Optional[ast.expr]:
    """Split a literal attribute dict into vnode data.

    Returns None when the attributes are not a dict literal with string keys.
    """
    if isinstance(attrs, ast.Constant) and attrs.value is None:
        return attrs
    if not isinstance(attrs, ast.Dict):
        return None

    data: Dict[str, ast.expr] = {}
    events: Dict[str, ast.expr] = {}
    plain: Dict[str, ast.expr] = {}

    for key, value in zip(attrs.keys, attrs.values):
        if not (isinstance(key, ast.Constant) and isinstance(key.value, str)):
            return None
        name = key.value
        event = _event_name(name)
        if name in ("class", "class_"):
            data["c"] = _class_map(value)
        elif name == "style":
            data["s"] = value
        elif name == "key":
            data["k"] = value
        elif event is not None:
            events[event] = value
        else:
            plain[name] = value

    if events:
        data["o"] = _dict_node(events)
    if plain:
        data["a"] = _dict_node(plain)
    return _dict_node(data) if data else ast.Constant(value=None)


def _child(node: ast.expr) -> ast.expr:
    if isinstance(node, ast.Constant) and isinstance(node.value, (str, int, float)) \
            and not isinstance(node.value, bool):
        text = node.value if isinstance(node.value, str) else str(node.value)
        return ast.Call(
            func=ast.Name(id=TEXT_FUNCTION, ctx=ast.Load()),
            args=[ast.Constant(value=text)],
            keywords=[],
        )
    return node


class _RenderCallRewriter(ast.NodeTransformer):

    def __init__(self, ctx: TransformContext):
        self.ctx = ctx
        self.diagnostics: List[Diagnostic] = []

    def _skip(self, node: ast.Call, reason: str) -> ast.Call:
        self.diagnostics.append(
            Diagnostic.warning(
                f"Render call left unchanged: {reason}",
                file_path=self.ctx.file_path,
                line=getattr(node, "lineno", None),
                column=getattr(node, "col_offset", None),
                code="transform",
            )
        )
        return node

    def visit_Call(self, node: ast.Call) -> ast.AST:
        self.generic_visit(node)
        if not (isinstance(node.func, ast.Name) and node.func.id == RENDER_FUNCTION):
            return node

        if node.keywords:
            return self._skip(node, "keyword arguments are not supported")
        if not node.args:
            return self._skip(node, "missing tag")
        if any(isinstance(arg, ast.Starred) for arg in node.args):
            return self._skip(node, "starred arguments are not supported")

        tag = node.args[0]
        attrs = node.args[1] if len(node.args) > 1 else ast.Constant(value=None)
        data = _vnode_data(attrs)
        if data is None:
            return self._skip(node, "attributes must be a dict literal with string keys")

        args = [tag, data]
        children = node.args[2:]
        if children:
            args.append(ast.List(elts=[_child(child) for child in children], ctx=ast.Load()))

        return ast.copy_location(ast.Call(func=node.func, args=args, keywords=[]), node)


def render_calls(tree: ast.Module, ctx: TransformContext) -> TransformResult:
    """Rewrite `h()` template calls into render-tree calls."""
    rewriter = _RenderCallRewriter(ctx)
    tree = rewriter.visit(tree)
    return tree, rewriter.diagnostics
