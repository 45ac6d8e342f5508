"""
Compile stage.

Drives the file host, the transform chain and the style resolver for every
source module under src_dir. One worker task is dispatched per module that
needs compiling; the stage waits on a join barrier before it assembles the
outputs of every module, including the ones whose compiled output was kept
from an earlier build in the same watch session.

Outputs:
- the compiled module, mirroring src_dir under dest_dir
- one CSS file per style mode per component, under the namespace directory
- the local manifest, with URLs relative to dest_dir
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Dict, List

from ..config import BuildConfig
from ..diagnostics import Diagnostic
from .file_host import FileHost
from .fs_sync import FilesToWrite, add_file_to_write
from .manifest import Manifest
from .metadata import DEFAULT_STYLE_MODE, ComponentMetadata
from .source_scanner import SourceScanner
from .style_resolver import StyleResolver
from .transforms import TransformChain
from .worker_manager import WorkerManager, WorkerTask

logger = logging.getLogger(__name__)


@dataclass
class CompileResults:
    """Everything the compile stage hands to the later stages.

    Attributes:
        diagnostics: Diagnostics of every module, in path order
        files_to_write: Compiled modules and CSS files
        manifest: Local manifest (URLs relative to dest_dir)
        compiled_modules: Source files compiled during this run
        included_style_files: Every stylesheet used by a component
    """

    diagnostics: List[Diagnostic] = field(default_factory=list)
    files_to_write: FilesToWrite = field(default_factory=dict)
    manifest: Manifest = field(default_factory=Manifest)
    compiled_modules: List[str] = field(default_factory=list)
    included_style_files: List[str] = field(default_factory=list)


def compiled_output_path(config: BuildConfig, file_path: str) -> str:
    """Output path of a compiled module (mirrors src_dir under dest_dir)."""
    path = config.system.path
    relative = path.relpath(file_path, config.src_dir)
    return path.normpath(path.join(config.dest_dir, relative))


def style_file_name(tag: str, mode: str) -> str:
    """File name of a component's compiled CSS for one mode."""
    if mode == DEFAULT_STYLE_MODE:
        return f"{tag}.css"
    return f"{tag}.{mode.lstrip('$')}.css"


def manifest_url(path, target: str, base_dir: str) -> str:
    """Relative URL (forward slashes) from base_dir to target."""
    return path.relpath(target, base_dir).replace(path.sep, "/")


def compile_file(
    file_path: str,
    output_path: str,
    host: FileHost,
    resolver: StyleResolver,
    chain: TransformChain,
) -> List[Diagnostic]:
    """Compile one module. Runs on a worker.

    The task only touches the host record of file_path. Diagnostics are
    stored on the record so they are reported again while the compiled
    output is reused.

    Returns:
        Diagnostics of this module
    """
    src_text = host.read_file(file_path)
    record = host.get_record(file_path)

    output = chain.transpile(src_text, file_path)
    diagnostics = list(output.diagnostics)
    if output.text is None:
        record.diagnostics = diagnostics
        return diagnostics

    style_diagnostics: List[Diagnostic] = []

    def on_styles(styled_record):
        _, found = resolver.process_styles(styled_record)
        style_diagnostics.extend(found)

    record.cmp_meta = output.metadata
    host.write_file(output_path, output.text, [file_path], on_styles=on_styles)

    diagnostics.extend(style_diagnostics)
    record.diagnostics = diagnostics
    logger.debug(f"compiled {file_path} -> {output_path}")
    return diagnostics


def compile_project(
    config: BuildConfig,
    host: FileHost,
    resolver: StyleResolver,
    worker_manager: WorkerManager,
    chain: TransformChain,
) -> CompileResults:
    """Compile every source module under config.src_dir.

    Args:
        config: Validated build configuration
        host: File host (kept across builds in watch mode)
        resolver: Style resolver sharing the style cache of this build
        worker_manager: Connected worker manager
        chain: Transform chain

    Returns:
        CompileResults for all modules
    """
    system = config.system
    results = CompileResults()

    scanner = SourceScanner(system.fs, system.path)
    sources = scanner.scan(config.src_dir, exclude=[config.dest_dir])
    logger.debug(f"compile stage, {len(sources.source_files)} source files")

    current = set(sources.source_files)
    for record in host.source_records():
        if record.file_path not in current:
            host.remove_file(record.file_path)

    pending = [file_path for file_path in sources.source_files if host.needs_compile(file_path)]
    futures = [
        worker_manager.run(
            WorkerTask(
                name=file_path,
                func=compile_file,
                args=(file_path, compiled_output_path(config, file_path), host, resolver, chain),
            )
        )
        for file_path in pending
    ]

    # Join barrier: nothing below runs before every task has finished
    for outcome in worker_manager.join(futures):
        if outcome.success:
            results.compiled_modules.append(outcome.task.name)
            continue
        diagnostic = Diagnostic.from_exception(outcome.error, code="worker")
        diagnostic.file_path = diagnostic.file_path or outcome.task.name
        results.diagnostics.append(diagnostic)

    logger.debug(
        f"compile stage, compiled {len(results.compiled_modules)} of {len(sources.source_files)} modules"
    )

    declared_tags: Dict[str, str] = {}
    for record in host.source_records():
        results.diagnostics.extend(record.diagnostics)
        if record.compiled_text is None:
            continue
        add_file_to_write(results.files_to_write, record.compiled_path, record.compiled_text)

        for style_path in record.included_style_files:
            if style_path not in results.included_style_files:
                results.included_style_files.append(style_path)

        if record.cmp_meta is None:
            continue
        tag = record.cmp_meta.tag
        if tag in declared_tags:
            # The first declaration keeps the tag and its stylesheets
            results.diagnostics.append(
                Diagnostic.error(
                    f"Component tag \"{tag}\" is declared in both {declared_tags[tag]} and {record.file_path}",
                    file_path=record.file_path,
                    code="manifest",
                )
            )
            continue
        declared_tags[tag] = record.file_path
        results.manifest.components.append(_manifest_entry(config, record, resolver, results.files_to_write))

    return results


def _manifest_entry(config: BuildConfig, record, resolver: StyleResolver, files: FilesToWrite) -> ComponentMetadata:
    path = config.system.path
    meta = copy.deepcopy(record.cmp_meta)
    meta.module_path = manifest_url(path, record.compiled_path, config.dest_dir)

    namespace_dir = path.join(config.dest_dir, config.namespace.lower())
    for mode, mode_meta in meta.styles.items():
        css = resolver.mode_css(record, mode)
        if css is None:
            # Nothing compiled; keep pointing at the sources
            mode_meta.style_urls = [
                manifest_url(path, resolver.resolve_path(record, url), config.dest_dir)
                for url in mode_meta.style_urls
            ]
            continue

        css_path = path.join(namespace_dir, style_file_name(meta.tag, mode))
        add_file_to_write(files, css_path, css)
        mode_meta.style_urls = [manifest_url(path, css_path, config.dest_dir)]
        mode_meta.style_str = css
    return meta
