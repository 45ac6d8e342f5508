"""
Project file generation.

After bundling, three files describe the build to the runtime:

- <dest>/<namespace>/manifest.json  merged manifest, URLs relative to the
  namespace directory, so the directory can be published as a collection
- <dest>/<namespace>/registry.json  one descriptor per component, with the
  bundle that carries it
- <dest>/<namespace_lower>.py       loader module; register_components()
  defines one element class per descriptor on the platform
"""

import json
import logging
from typing import Any, Dict, List

from .bundler import BundleResults
from .fs_sync import FilesToWrite, add_file_to_write
from .manifest import MANIFEST_FILE_NAME, Manifest, serialize_manifest, update_manifest_urls

logger = logging.getLogger(__name__)

REGISTRY_FILE_NAME = "registry.json"

LOADER_TEMPLATE = '''"""Component loader for the {namespace} namespace. Generated by spire, do not edit."""

import json

NAMESPACE = {namespace!r}

REGISTRY = json.loads({registry_json!r})


def observed_attributes(descriptor):
    return list(descriptor["attributes"])


def create_element_class(platform, renderer, tag, descriptor):
    """Create the element class of one component descriptor."""
    base = getattr(platform, "element_class", object)

    class ComponentElement(base):
        def connected(self):
            platform.connected(self, renderer, descriptor)

        def disconnected(self):
            platform.disconnected(self)

        def attribute_changed(self, name, old_value, new_value):
            platform.attribute_changed(self, descriptor, name, old_value, new_value)

        def update(self):
            platform.queue_update(self, renderer, tag)

    ComponentElement.observed_attributes = observed_attributes(descriptor)
    ComponentElement.__name__ = descriptor.get("component_class") or "ComponentElement"
    ComponentElement.tag = tag
    return ComponentElement


def register_components(platform, renderer):
    """Define every component of this namespace on the platform.

    Returns:
        Dict of tag -> element class
    """
    registered = {{}}
    for tag, descriptor in REGISTRY["components"].items():
        element_class = create_element_class(platform, renderer, tag, descriptor)
        platform.define_component(tag, element_class)
        registered[tag] = element_class
    return registered
'''


def build_registry(namespace: str, manifest: Manifest, bundles: BundleResults) -> Dict[str, Any]:
    """Registry data: one runtime descriptor per component, in manifest order."""
    components = {}
    for component in manifest.components:
        entry = bundles.component_registry.get(component.tag, {})
        components[component.tag] = {
            "component_class": component.component_class,
            "module_path": component.module_path,
            "bundle": entry.get("bundle"),
            "bundle_url": entry.get("bundle_url"),
            "attributes": component.attribute_names,
            "listeners": [
                {
                    "event_name": listener.event_name,
                    "method_name": listener.method_name,
                    "capture": listener.capture,
                    "passive": listener.passive,
                    "enabled": listener.enabled,
                }
                for listener in component.listeners
            ],
            "states": list(component.states),
            "shadow": component.shadow,
            "styles": {mode: list(style.style_urls) for mode, style in component.styles.items()},
        }
    return {"namespace": namespace, "components": components}


def render_loader(namespace: str, registry: Dict[str, Any]) -> str:
    """Source text of the loader module."""
    registry_json = json.dumps(registry, sort_keys=True, separators=(",", ":"))
    return LOADER_TEMPLATE.format(namespace=namespace, registry_json=registry_json)


def generate_project_files(config, manifest: Manifest, bundles: BundleResults) -> FilesToWrite:
    """Generate manifest, registry and loader files.

    Args:
        config: Validated build configuration
        manifest: Merged manifest (URLs relative to dest_dir)
        bundles: Results of the bundle stage

    Returns:
        Files to add to the build's buffer
    """
    path = config.system.path
    namespace_dir = path.join(config.dest_dir, config.namespace.lower())
    files: FilesToWrite = {}

    published = update_manifest_urls(manifest, config.dest_dir, namespace_dir, path=path)
    published.bundles = _bundle_groups(bundles)
    add_file_to_write(files, path.join(namespace_dir, MANIFEST_FILE_NAME), serialize_manifest(published), path=path)

    registry = build_registry(config.namespace, manifest, bundles)
    add_file_to_write(
        files,
        path.join(namespace_dir, REGISTRY_FILE_NAME),
        json.dumps(registry, indent=2) + "\n",
        path=path,
    )

    loader_path = path.join(config.dest_dir, f"{config.namespace.lower()}.py")
    add_file_to_write(files, loader_path, render_loader(config.namespace, registry), path=path)

    logger.debug(f"project files, {len(registry['components'])} components registered")
    return files


def _bundle_groups(bundles: BundleResults) -> List[List[str]]:
    groups: Dict[str, List[str]] = {}
    for tag, entry in bundles.component_registry.items():
        groups.setdefault(entry["bundle"], []).append(tag)
    return [groups[bundle_id] for bundle_id in sorted(groups)]
