"""
Component metadata model.

ComponentMetadata is created by the transform chain when it recognizes a
component declaration, completed by the style resolver, merged across
collections by the manifest merger and finally serialized for the runtime.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_STYLE_MODE = "$default"


@dataclass
class AttributeMeta:
    """An observed attribute (a `@Prop` member)."""

    name: str
    type: str = "any"
    default: Any = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AttributeMeta":
        return cls(
            name=data["name"],
            type=data.get("type", "any"),
            default=data.get("default"),
        )


@dataclass
class ListenerMeta:
    """An event listener declared with `@Listen`."""

    event_name: str
    method_name: str
    capture: bool = False
    passive: bool = True
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ListenerMeta":
        return cls(
            event_name=data["event_name"],
            method_name=data["method_name"],
            capture=data.get("capture", False),
            passive=data.get("passive", True),
            enabled=data.get("enabled", True),
        )


@dataclass
class StyleModeMeta:
    """Style references of one mode and, once compiled, its CSS."""

    style_urls: List[str] = field(default_factory=list)
    style_str: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StyleModeMeta":
        return cls(
            style_urls=list(data.get("style_urls", [])),
            style_str=data.get("style_str"),
        )


@dataclass
class ComponentMetadata:
    """Everything the runtime needs to know about one component.

    Attributes:
        tag: Custom element tag name (unique within a manifest)
        component_class: Name of the component class
        module_path: Compiled module path, relative to the manifest location
        attributes: Observed attributes, in declaration order
        listeners: Declared event listeners
        styles: Style references keyed by mode name
        states: State property names, case-insensitively sorted
        shadow: Whether the component renders into a shadow root
    """

    tag: str
    component_class: str = ""
    module_path: str = ""
    attributes: List[AttributeMeta] = field(default_factory=list)
    listeners: List[ListenerMeta] = field(default_factory=list)
    styles: Dict[str, StyleModeMeta] = field(default_factory=dict)
    states: List[str] = field(default_factory=list)
    shadow: bool = False

    @property
    def attribute_names(self) -> List[str]:
        return [attr.name for attr in self.attributes]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComponentMetadata":
        """Create ComponentMetadata from dictionary."""
        return cls(
            tag=data["tag"],
            component_class=data.get("component_class", ""),
            module_path=data.get("module_path", ""),
            attributes=[AttributeMeta.from_dict(a) for a in data.get("attributes", [])],
            listeners=[ListenerMeta.from_dict(ls) for ls in data.get("listeners", [])],
            styles={
                mode: StyleModeMeta.from_dict(style)
                for mode, style in data.get("styles", {}).items()
            },
            states=list(data.get("states", [])),
            shadow=data.get("shadow", False),
        )


@dataclass
class StyleRecord:
    """A compiled stylesheet and every file it pulled in."""

    mode: str
    path: str
    css: Optional[str] = None
    included_files: List[str] = field(default_factory=list)

    @property
    def compiled(self) -> bool:
        return self.css is not None
