"""
Bundle stage.

The build core only depends on the bundler contract:

    bundler.bundle(context: BundleContext) -> BundleResults

ComponentBundler is the default implementation. It groups components by the
configured bundles (every component not named in a group gets a bundle of
its own) and packs the compiled modules of each group into one Python module
under the namespace directory. There is no module-graph analysis; a bundle
carries exactly the modules of its components.

Bundle ids are the joined tag names in dev mode and a content hash in prod
mode, so unchanged bundles keep their file name between releases.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..diagnostics import Diagnostic
from .fs_sync import FilesToWrite, add_file_to_write
from .manifest import Manifest
from .metadata import ComponentMetadata
from .worker_manager import WorkerTask

logger = logging.getLogger(__name__)

BUNDLE_ID_LENGTH = 16


@dataclass
class BundleContext:
    """Input of the bundle stage.

    Attributes:
        config: Validated build configuration
        manifest: Merged manifest (URLs relative to dest_dir)
        compiled_files: Files produced by the compile stage
        worker_manager: Connected worker manager for per-bundle tasks
    """

    config: Any
    manifest: Manifest
    compiled_files: FilesToWrite
    worker_manager: Any


@dataclass
class BundleResults:
    """Output of the bundle stage.

    Attributes:
        files_to_write: Bundle modules
        component_registry: tag -> {"bundle": id, "bundle_url": url}
        diagnostics: Problems found while bundling
    """

    files_to_write: FilesToWrite = field(default_factory=dict)
    component_registry: Dict[str, Dict[str, str]] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass
class _BundleOutput:
    bundle_id: str
    file_path: str
    text: str
    tags: List[str]
    diagnostics: List[Diagnostic]


class ComponentBundler:
    """Default bundler: one Python module per bundle group.

    Example usage:
        bundler = ComponentBundler()
        results = bundler.bundle(BundleContext(config, manifest, files, manager))
        for tag, entry in results.component_registry.items():
            print(tag, entry["bundle_url"])
    """

    def bundle(self, context: BundleContext) -> BundleResults:
        """Bundle every component of the manifest.

        One worker task is dispatched per bundle group.
        """
        results = BundleResults()
        groups, group_diagnostics = self.bundle_groups(context.manifest, context.config.bundles)
        results.diagnostics.extend(group_diagnostics)

        futures = [
            context.worker_manager.run(
                WorkerTask(name=" ".join(tags), func=self.build_bundle, args=(context, tags))
            )
            for tags in groups
        ]

        path = context.config.system.path
        for outcome in context.worker_manager.join(futures):
            if not outcome.success:
                results.diagnostics.append(Diagnostic.from_exception(outcome.error, code="bundle"))
                continue

            output: _BundleOutput = outcome.result
            results.diagnostics.extend(output.diagnostics)
            add_file_to_write(results.files_to_write, output.file_path, output.text, path=path)
            bundle_url = path.relpath(output.file_path, context.config.dest_dir).replace(path.sep, "/")
            for tag in output.tags:
                results.component_registry[tag] = {"bundle": output.bundle_id, "bundle_url": bundle_url}

        logger.debug(f"bundle stage, {len(futures)} bundles")
        return results

    def bundle_groups(
        self, manifest: Manifest, bundles: Tuple[Tuple[str, ...], ...]
    ) -> Tuple[List[List[str]], List[Diagnostic]]:
        """Split the manifest's tags into bundle groups.

        Configured groups come first, in declared order. A tag already
        placed in an earlier group is skipped. Unknown tags are reported.
        Remaining components are bundled alone, in manifest order.
        """
        known = set(manifest.tags)
        placed = set()
        groups = []
        diagnostics = []

        for group in bundles or ():
            tags = []
            for tag in group:
                if tag not in known:
                    diagnostics.append(
                        Diagnostic.warning(f"Bundle references unknown component <{tag}>", code="bundle")
                    )
                    continue
                if tag in placed:
                    continue
                placed.add(tag)
                tags.append(tag)
            if tags:
                groups.append(tags)

        for tag in manifest.tags:
            if tag not in placed:
                placed.add(tag)
                groups.append([tag])

        return groups, diagnostics

    def build_bundle(self, context: BundleContext, tags: List[str]) -> _BundleOutput:
        """Pack the compiled modules of one group. Runs on a worker."""
        config = context.config
        path = config.system.path
        diagnostics = []
        components = {}
        sources = {}

        for tag in tags:
            component = context.manifest.get_component(tag)
            components[tag] = {
                "module": component.module_path,
                "component_class": component.component_class,
            }
            if component.module_path in sources:
                continue
            source = self._module_source(context, component)
            if source is None:
                diagnostics.append(
                    Diagnostic.warning(
                        f"Module of <{tag}> is not available for bundling: {component.module_path}",
                        code="bundle",
                    )
                )
                continue
            sources[component.module_path] = source

        body = self._render_body(components, sources)
        bundle_id = self.bundle_id(tags, body, config.dev_mode)
        text = f'"""Spire bundle: {" ".join(tags)}"""\n\nBUNDLE_ID = {bundle_id!r}\n{body}'

        file_path = path.join(config.dest_dir, config.namespace.lower(), f"{bundle_id}.py")
        return _BundleOutput(
            bundle_id=bundle_id,
            file_path=file_path,
            text=text,
            tags=list(tags),
            diagnostics=diagnostics,
        )

    def bundle_id(self, tags: List[str], body: str, dev_mode: bool) -> str:
        if dev_mode:
            return ".".join(tags)
        return hashlib.sha256(body.encode("utf-8")).hexdigest()[:BUNDLE_ID_LENGTH]

    def _module_source(self, context: BundleContext, component: ComponentMetadata) -> Optional[str]:
        module_path = component.module_path
        if not module_path or module_path.startswith(("http://", "https://")):
            return None

        config = context.config
        path = config.system.path
        file_path = path.normpath(path.join(config.dest_dir, module_path))
        if file_path in context.compiled_files:
            return context.compiled_files[file_path]

        fs = config.system.fs
        if not fs.is_file(file_path):
            return None
        return fs.read_text(file_path)

    def _render_body(self, components: Dict[str, Dict[str, str]], sources: Dict[str, str]) -> str:
        lines = ["", "COMPONENTS = {"]
        for tag in components:
            lines.append(f"    {tag!r}: {components[tag]!r},")
        lines.append("}")
        lines.append("")
        lines.append("SOURCES = {")
        for module_path in sorted(sources):
            lines.append(f"    {module_path!r}: {sources[module_path]!r},")
        lines.append("}")
        return "\n".join(lines) + "\n"
