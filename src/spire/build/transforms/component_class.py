"""
Component class extraction.

Finds the class decorated with `@Component(...)`, harvests its metadata and
strips every annotation it consumed so the emitted class runs without the
build-time annotation system:

    @Component(tag="my-counter", styleUrl="counter.scss")
    class Counter:
        @Prop
        def start(self) -> int:
            return 0

        @Listen("click", capture=True)
        def on_click(self, event):
            ...

Members are processed through MEMBER_EXTRACTORS, a table of
(marker, extractor) pairs applied in a single pass over the class body.
"""

import ast
import re
from typing import Callable, List, Optional, Tuple

from ...diagnostics import Diagnostic
from ...errors import TransformError
from ..metadata import DEFAULT_STYLE_MODE, AttributeMeta, ComponentMetadata, ListenerMeta, StyleModeMeta
from .chain import TransformContext, TransformResult
from .decorators import (
    find_marker,
    is_decorator_marker,
    keyword_values,
    literal_value,
    lower_to_attribute,
    single_return_value,
    without_decorator,
)

COMPONENT_MARKER = "Component"

# Custom element names: lowercase, start with a letter, contain a hyphen
TAG_PATTERN = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)+$")

# An extractor returns the node that replaces the member
MemberExtractor = Callable[[ast.stmt, ast.expr, ComponentMetadata, TransformContext], ast.stmt]


def _error(message: str, node: ast.AST, ctx: TransformContext) -> TransformError:
    return TransformError(
        message,
        file_path=ctx.file_path,
        line=getattr(node, "lineno", None),
        column=getattr(node, "col_offset", None),
    )


def _style_modes(values: dict, node: ast.AST, ctx: TransformContext) -> dict:
    """Normalize styleUrl/styleUrls into {mode: StyleModeMeta}."""
    styles = {}

    if "styleUrl" in values:
        style_url = values["styleUrl"]
        if not isinstance(style_url, str):
            raise _error("Component styleUrl must be a string", node, ctx)
        styles[DEFAULT_STYLE_MODE] = StyleModeMeta(style_urls=[style_url])

    if "styleUrls" in values:
        style_urls = values["styleUrls"]
        if isinstance(style_urls, str):
            style_urls = {DEFAULT_STYLE_MODE: [style_urls]}
        elif isinstance(style_urls, (list, tuple)):
            style_urls = {DEFAULT_STYLE_MODE: list(style_urls)}
        elif not isinstance(style_urls, dict):
            raise _error("Component styleUrls must be a string, list or dict of modes", node, ctx)

        for mode, urls in style_urls.items():
            if isinstance(urls, str):
                urls = [urls]
            if not isinstance(mode, str) or not all(isinstance(url, str) for url in urls):
                raise _error("Component styleUrls modes must map names to style paths", node, ctx)
            existing = styles.setdefault(mode, StyleModeMeta())
            for url in urls:
                if url not in existing.style_urls:
                    existing.style_urls.append(url)

    return styles


def read_component_decorator(
    decorator: ast.expr, class_node: ast.ClassDef, ctx: TransformContext
) -> ComponentMetadata:
    """Build ComponentMetadata from a `@Component(...)` decorator.

    Raises:
        TransformError: If the decorator is not a call with a valid literal tag
    """
    if not isinstance(decorator, ast.Call) or decorator.args:
        raise _error(
            f"@{COMPONENT_MARKER} on {class_node.name} must be called with keyword arguments",
            decorator,
            ctx,
        )

    values = keyword_values(decorator, ctx.file_path, f"@{COMPONENT_MARKER}")

    tag = values.get("tag")
    if not isinstance(tag, str) or not tag.strip():
        raise _error(f"@{COMPONENT_MARKER} on {class_node.name} requires a tag", decorator, ctx)
    tag = tag.strip().lower()
    if not TAG_PATTERN.match(tag):
        raise _error(f"Invalid component tag '{tag}': must be lowercase and contain a hyphen", decorator, ctx)

    shadow = values.get("shadow", False)
    if not isinstance(shadow, bool):
        raise _error("Component shadow must be True or False", decorator, ctx)

    return ComponentMetadata(
        tag=tag,
        component_class=class_node.name,
        styles=_style_modes(values, decorator, ctx),
        shadow=shadow,
    )


def _extract_prop(
    member: ast.stmt, decorator: ast.expr, meta: ComponentMetadata, ctx: TransformContext
) -> ast.stmt:
    if not isinstance(member, ast.FunctionDef):
        raise _error("@Prop must decorate a plain method", member, ctx)
    if member.name in meta.attribute_names:
        raise _error(f"Duplicate @Prop '{member.name}'", member, ctx)

    prop_type = ast.unparse(member.returns) if member.returns is not None else "any"
    default = None
    value = single_return_value(member)
    if value is not None:
        try:
            default = ast.literal_eval(value)
        except ValueError:
            default = None

    meta.attributes.append(AttributeMeta(name=member.name, type=prop_type, default=default))

    index = member.decorator_list.index(decorator)
    member.decorator_list = without_decorator(member.decorator_list, index)
    if not member.decorator_list:
        lowered = lower_to_attribute(member)
        if lowered is not None:
            return lowered
    return member


def _extract_listener(
    member: ast.stmt, decorator: ast.expr, meta: ComponentMetadata, ctx: TransformContext
) -> ast.stmt:
    if not isinstance(member, (ast.FunctionDef, ast.AsyncFunctionDef)):
        raise _error("@Listen must decorate a method", member, ctx)
    if not isinstance(decorator, ast.Call) or len(decorator.args) != 1:
        raise _error(f"@Listen on {member.name} requires exactly one event name", decorator, ctx)

    event_name = literal_value(decorator.args[0], ctx.file_path, "@Listen event name")
    if not isinstance(event_name, str) or not event_name:
        raise _error(f"@Listen on {member.name} requires a string event name", decorator, ctx)

    options = keyword_values(decorator, ctx.file_path, "@Listen")
    unknown = set(options) - {"capture", "passive", "enabled"}
    if unknown:
        raise _error(f"Unknown @Listen options: {', '.join(sorted(unknown))}", decorator, ctx)

    meta.listeners.append(
        ListenerMeta(
            event_name=event_name,
            method_name=member.name,
            capture=bool(options.get("capture", False)),
            passive=bool(options.get("passive", True)),
            enabled=bool(options.get("enabled", True)),
        )
    )

    index = member.decorator_list.index(decorator)
    member.decorator_list = without_decorator(member.decorator_list, index)
    return member


MEMBER_EXTRACTORS: List[Tuple[str, MemberExtractor]] = [
    ("Prop", _extract_prop),
    ("Listen", _extract_listener),
]


def _extract_members(
    class_node: ast.ClassDef, meta: ComponentMetadata, ctx: TransformContext
) -> List[Diagnostic]:
    diagnostics = []
    body = []

    for member in class_node.body:
        decorators = getattr(member, "decorator_list", None) or []
        replacement = member
        for marker, extractor in MEMBER_EXTRACTORS:
            decorator = next((d for d in decorators if is_decorator_marker(d, marker)), None)
            if decorator is None:
                continue
            try:
                replacement = extractor(member, decorator, meta, ctx)
            except TransformError as e:
                diagnostics.append(Diagnostic.from_exception(e, code="transform"))
            break
        body.append(replacement)

    class_node.body = body
    return diagnostics


def component_class(tree: ast.Module, ctx: TransformContext) -> TransformResult:
    """Extract component metadata from the decorated class of a module."""
    diagnostics: List[Diagnostic] = []

    for node in tree.body:
        if not isinstance(node, ast.ClassDef):
            continue
        index: Optional[int] = find_marker(node.decorator_list, COMPONENT_MARKER)
        if index is None:
            continue

        if ctx.metadata is not None:
            diagnostics.append(
                Diagnostic.from_exception(
                    _error(
                        f"Only one component per module is supported; "
                        f"{node.name} ignored (already found {ctx.metadata.component_class})",
                        node,
                        ctx,
                    ),
                    code="transform",
                )
            )
            continue

        try:
            meta = read_component_decorator(node.decorator_list[index], node, ctx)
        except TransformError as e:
            diagnostics.append(Diagnostic.from_exception(e, code="transform"))
            continue

        node.decorator_list = without_decorator(node.decorator_list, index)
        diagnostics.extend(_extract_members(node, meta, ctx))
        ctx.metadata = meta

    return tree, diagnostics
