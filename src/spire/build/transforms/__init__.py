"""
Syntax transforms applied to every compiled module.

Passes run in this order:
1. component_class - extract component metadata, strip its annotations
2. state_properties - collect `@State` member names
3. remove_imports - drop build-only imports
4. update_lifecycle_methods - rename lifecycle hooks
5. render_calls - rewrite `h()` templates (after the emission check)
"""

from .chain import TransformChain, TransformContext, TranspileOutput
from .component_class import component_class
from .decorators import is_decorator_marker
from .lifecycle_methods import LIFECYCLE_METHODS, update_lifecycle_methods
from .remove_imports import remove_imports
from .render_calls import render_calls
from .state_properties import sort_state_names, state_properties

BEFORE_TRANSFORMS = (
    component_class,
    state_properties,
    remove_imports,
    update_lifecycle_methods,
)

AFTER_TRANSFORMS = (
    render_calls,
)

__all__ = [
    "AFTER_TRANSFORMS",
    "BEFORE_TRANSFORMS",
    "LIFECYCLE_METHODS",
    "TransformChain",
    "TransformContext",
    "TranspileOutput",
    "component_class",
    "is_decorator_marker",
    "remove_imports",
    "render_calls",
    "sort_state_names",
    "state_properties",
    "update_lifecycle_methods",
]
