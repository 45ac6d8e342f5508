"""
Component manifests.

A manifest describes every component of a build (or of a published
collection): tag, attributes, listeners, styles and states, plus the
location of each component's compiled module. One manifest is produced
locally per build; collections ship their own manifest.json.

Paths inside a manifest are relative to the directory holding the manifest.
Before manifests are merged, update_manifest_urls() rewrites them to be
relative to the build's destination directory.
"""

import copy
import json
import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin

import requests

from ..diagnostics import Diagnostic, DiagnosticLevel
from ..errors import ManifestError
from .metadata import ComponentMetadata

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAME = "manifest.json"
COLLECTIONS_DIR_NAME = "collections"
REMOTE_TIMEOUT = 10


@dataclass
class Manifest:
    """Ordered collection of component descriptors."""

    components: List[ComponentMetadata] = field(default_factory=list)
    bundles: List[List[str]] = field(default_factory=list)

    def get_component(self, tag: str) -> Optional[ComponentMetadata]:
        for component in self.components:
            if component.tag == tag:
                return component
        return None

    @property
    def tags(self) -> List[str]:
        return [component.tag for component in self.components]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "components": [component.to_dict() for component in self.components],
            "bundles": [list(bundle) for bundle in self.bundles],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Manifest":
        """Create Manifest from dictionary.

        Raises:
            ManifestError: If the data does not have the manifest shape
        """
        if not isinstance(data, dict):
            raise ManifestError("Manifest must be a JSON object")
        try:
            return cls(
                components=[ComponentMetadata.from_dict(c) for c in data.get("components", [])],
                bundles=[list(bundle) for bundle in data.get("bundles", [])],
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ManifestError(f"Invalid manifest: {e}") from e


def parse_manifest(text: str, source: str) -> Manifest:
    """Parse manifest JSON text.

    Raises:
        ManifestError: If the text is not a valid manifest
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestError(f"Failed to parse {source}: {e}") from e
    return Manifest.from_dict(data)


def serialize_manifest(manifest: Manifest) -> str:
    return json.dumps(manifest.to_dict(), indent=2, sort_keys=False) + "\n"


def _is_remote(location: str) -> bool:
    return location.startswith("http://") or location.startswith("https://")


def _rewrite_url(path, url: str, manifest_dir: str, dest_dir: str) -> str:
    if not url or _is_remote(url):
        return url
    if _is_remote(manifest_dir):
        return urljoin(manifest_dir.rstrip("/") + "/", url)
    absolute = path.normpath(path.join(manifest_dir, url))
    relative = path.relpath(absolute, dest_dir)
    # Manifest URLs always use forward slashes
    return relative.replace(path.sep, "/")


def update_manifest_urls(manifest: Manifest, manifest_dir: str, dest_dir: str, path=posixpath) -> Manifest:
    """Rewrite module and style URLs relative to the destination directory.

    Args:
        manifest: Manifest whose URLs are relative to manifest_dir
        manifest_dir: Directory (or URL) the manifest was read from
        dest_dir: Destination directory of the build
        path: Path utilities capability (os.path interface)

    Returns:
        A new manifest; the input is not modified. URLs of remote
        manifests become absolute URLs.
    """
    updated = copy.deepcopy(manifest)
    for component in updated.components:
        component.module_path = _rewrite_url(path, component.module_path, manifest_dir, dest_dir)
        for mode_meta in component.styles.values():
            mode_meta.style_urls = [
                _rewrite_url(path, url, manifest_dir, dest_dir) for url in mode_meta.style_urls
            ]
    return updated


def merge_manifests(manifests: List[Manifest]) -> Tuple[Manifest, List[Diagnostic]]:
    """Merge manifests in priority order.

    The first manifest (the local one) has the highest priority. For each
    tag only the first entry is kept. Dropping a duplicate is reported only
    when its attribute names differ from the kept entry; identical
    duplicates are dropped silently.

    Returns:
        The merged manifest and any collision warnings
    """
    merged = Manifest()
    diagnostics: List[Diagnostic] = []
    seen: Dict[str, ComponentMetadata] = {}

    for manifest in manifests:
        if manifest is None:
            continue
        for component in manifest.components:
            existing = seen.get(component.tag)
            if existing is None:
                seen[component.tag] = component
                merged.components.append(component)
                continue

            if set(existing.attribute_names) != set(component.attribute_names):
                diagnostics.append(
                    Diagnostic.warning(
                        f"Component <{component.tag}> is defined more than once with different "
                        f"attributes; keeping {existing.module_path or existing.component_class}, "
                        f"dropping {component.module_path or component.component_class}",
                        code="manifest",
                    )
                )

        for bundle in manifest.bundles:
            if bundle not in merged.bundles:
                merged.bundles.append(list(bundle))

    return merged, diagnostics


class DependentManifestLoader:
    """Reads the manifests of dependency collections.

    A collection identifier is one of:
    - a name, read from <root_dir>/collections/<name>/manifest.json
    - a directory path containing manifest.json
    - an http(s) URL whose manifest.json is fetched over the network

    Example usage:
        loader = DependentManifestLoader(system.fs, system.path)
        manifests, diagnostics = loader.load_all(["ui-core"], root_dir, dest_dir)
    """

    def __init__(self, fs, path, timeout: int = REMOTE_TIMEOUT):
        self.fs = fs
        self.path = path
        self.timeout = timeout

    def collection_location(self, collection: str, root_dir: str) -> str:
        """Directory (or base URL) of a collection's manifest."""
        if _is_remote(collection):
            return collection.rstrip("/")
        if self.path.isabs(collection) or collection.startswith("."):
            return self.path.normpath(self.path.join(root_dir, collection))
        return self.path.normpath(self.path.join(root_dir, COLLECTIONS_DIR_NAME, collection))

    def load(self, collection: str, root_dir: str) -> Tuple[Manifest, str]:
        """Load one collection manifest.

        Returns:
            The manifest and the location its URLs are relative to

        Raises:
            ManifestError: If the manifest is missing or invalid
        """
        location = self.collection_location(collection, root_dir)

        if _is_remote(location):
            manifest_url = f"{location}/{MANIFEST_FILE_NAME}"
            logger.debug(f"dependent manifest, fetching {manifest_url}")
            try:
                response = requests.get(manifest_url, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                raise ManifestError(f"Collection '{collection}' manifest unavailable: {e}") from e
            return parse_manifest(response.text, manifest_url), location

        manifest_path = self.path.join(location, MANIFEST_FILE_NAME)
        if not self.fs.is_file(manifest_path):
            raise ManifestError(f"Collection '{collection}' manifest not found: {manifest_path}")
        logger.debug(f"dependent manifest, reading {manifest_path}")
        try:
            text = self.fs.read_text(manifest_path)
        except OSError as e:
            raise ManifestError(f"Failed to read {manifest_path}: {e}") from e
        return parse_manifest(text, manifest_path), location

    def load_all(
        self, collections: List[str], root_dir: str, dest_dir: str
    ) -> Tuple[List[Manifest], List[Diagnostic]]:
        """Load every collection manifest, in declared order.

        A collection without a readable manifest contributes no components
        and a warning diagnostic.

        Returns:
            Manifests with URLs rewritten relative to dest_dir, and diagnostics
        """
        manifests = []
        diagnostics = []
        for collection in collections:
            try:
                manifest, location = self.load(collection, root_dir)
            except ManifestError as e:
                diagnostics.append(Diagnostic.from_exception(e, level=DiagnosticLevel.WARNING, code="manifest"))
                continue
            manifests.append(update_manifest_urls(manifest, location, dest_dir, path=self.path))
        return manifests, diagnostics


def generate_dependent_manifests(
    system, collections: List[str], root_dir: str, dest_dir: str
) -> Tuple[List[Manifest], List[Diagnostic]]:
    """Load and rewrite the manifests of all dependency collections."""
    loader = DependentManifestLoader(system.fs, system.path)
    return loader.load_all(collections, root_dir, dest_dir)
