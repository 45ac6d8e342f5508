"""
Build orchestration for Spire projects.

This module sequences the stages of a build and aggregates their
diagnostics into a single BuildResult:

    validate -> discover dependent manifests (alongside compile) -> compile
    -> merge manifests -> bundle -> generate project files
    -> reconcile directory -> finalize

A stage that fails appends an error diagnostic and the build jumps straight
to finalize. Only an invalid configuration stops a build before any I/O;
every other failure degrades the result instead of raising.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from ..config import BuildConfig, validate_build_config
from ..diagnostics import Diagnostic, DiagnosticLevel, has_errors
from ..errors import ConfigError
from ..log import TimeSpan
from .bundler import BundleContext
from .compile_stage import compile_project
from .file_host import FileHost
from .fs_sync import FilesToWrite, merge_files_to_write, reconcile
from .manifest import Manifest, generate_dependent_manifests, merge_manifests
from .project_files import generate_project_files
from .style_resolver import StyleResolver
from .transforms import TransformChain
from .worker_manager import WorkerManager, WorkerTask

logger = logging.getLogger(__name__)


class BuildStage(Enum):
    """Stages of a build, in execution order."""

    VALIDATE = "validate"
    DISCOVER_DEPENDENT_MANIFESTS = "discover-dependent-manifests"
    COMPILE = "compile"
    MERGE_MANIFESTS = "merge-manifests"
    BUNDLE = "bundle"
    GENERATE_PROJECT_FILES = "generate-project-files"
    RECONCILE_DIRECTORY = "reconcile-directory"
    FINALIZE = "finalize"


@dataclass
class BuildResult:
    """Result of a complete build operation.

    Attributes:
        success: True when no error diagnostic was reported
        diagnostics: Every diagnostic of the build, in stage order
        manifest: Merged manifest (None if the build stopped before merging)
        component_registry: tag -> bundle entry from the bundle stage
        files_written: Files written (or rewritten) in the output directory
        files_deleted: Stale files removed in prod mode
        build_time: Wall clock duration in seconds
        failed_stage: Stage that stopped the build, if any
    """

    success: bool
    diagnostics: List[Diagnostic] = field(default_factory=list)
    manifest: Optional[Manifest] = None
    component_registry: Dict[str, Dict[str, str]] = field(default_factory=dict)
    files_written: List[str] = field(default_factory=list)
    files_deleted: List[str] = field(default_factory=list)
    build_time: float = 0.0
    failed_stage: Optional[BuildStage] = None

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.level == DiagnosticLevel.WARNING]


class BuildOrchestrator:
    """
    Orchestrates a build of one Spire project.

    The orchestrator owns the worker manager for the lifetime of a build.
    In watch mode it also keeps the worker pool, the file host and the style
    cache alive so rebuild() only recompiles what changed.

    Example usage:
        orchestrator = BuildOrchestrator(config)
        result = orchestrator.build()
        if result.success:
            print(f"Wrote {len(result.files_written)} files")
        for diagnostic in result.errors:
            print(diagnostic.format())
    """

    def __init__(
        self,
        config: BuildConfig,
        worker_manager: Optional[WorkerManager] = None,
        chain: Optional[TransformChain] = None,
    ):
        """
        Initialize build orchestrator.

        Args:
            config: Build configuration (validated at the start of each build)
            worker_manager: Worker manager to use (a new one by default)
            chain: Transform chain (defaults to the standard passes)
        """
        self.config = config
        self.worker_manager = worker_manager or WorkerManager()
        self.chain = chain
        self.host: Optional[FileHost] = None
        self.resolver: Optional[StyleResolver] = None
        self.stage: Optional[BuildStage] = None

    def build(self) -> BuildResult:
        """Run a full build.

        Returns:
            BuildResult; never raises for build failures
        """
        return self._run(changed_files=None)

    def rebuild(self, changed_files: Iterable[str]) -> BuildResult:
        """Run an incremental build after files changed (watch mode).

        Only modules whose source (or one of whose stylesheets) changed are
        recompiled. Outside watch mode this is the same as build().
        """
        return self._run(changed_files=list(changed_files))

    def close(self) -> None:
        """Release the worker pool and forget cached compile state."""
        self.worker_manager.disconnect()
        self.host = None
        self.resolver = None

    def _run(self, changed_files: Optional[List[str]]) -> BuildResult:
        start_time = time.time()
        span = TimeSpan(logger, f"build, {self.config.mode_name} mode, started")

        result = BuildResult(success=False)

        self.stage = BuildStage.VALIDATE
        try:
            config = validate_build_config(self.config)
        except ConfigError as e:
            result.diagnostics.append(Diagnostic.from_exception(e, code=self.stage.value))
            result.failed_stage = self.stage
            return self._finalize(result, self.config, span, start_time)

        try:
            self._run_stages(config, result, changed_files)
        except Exception as e:
            result.diagnostics.append(Diagnostic.from_exception(e, code=self.stage.value))
            result.failed_stage = self.stage

        return self._finalize(result, config, span, start_time)

    def _run_stages(self, config: BuildConfig, result: BuildResult, changed_files: Optional[List[str]]) -> None:
        system = config.system
        self.worker_manager.connect(config.num_workers)
        self._prepare_host(config, changed_files)
        files_to_write: FilesToWrite = {}

        # Dependent manifests are read while the local modules compile
        self.stage = BuildStage.DISCOVER_DEPENDENT_MANIFESTS
        discovery = self.worker_manager.run(
            WorkerTask(
                name="dependent manifests",
                func=generate_dependent_manifests,
                args=(system, list(config.collections), config.root_dir, config.dest_dir),
            )
        )

        self.stage = BuildStage.COMPILE
        chain = self.chain or TransformChain(checker=system.type_checker)
        compile_results = compile_project(config, self.host, self.resolver, self.worker_manager, chain)
        result.diagnostics.extend(compile_results.diagnostics)
        files_to_write.update(compile_results.files_to_write)

        self.stage = BuildStage.DISCOVER_DEPENDENT_MANIFESTS
        dependent_manifests = []
        outcome = self.worker_manager.join([discovery])[0]
        if outcome.success:
            dependent_manifests, discovery_diagnostics = outcome.result
            result.diagnostics.extend(discovery_diagnostics)
        else:
            result.diagnostics.append(Diagnostic.from_exception(outcome.error, code=self.stage.value))

        self.stage = BuildStage.MERGE_MANIFESTS
        manifest, merge_diagnostics = merge_manifests([compile_results.manifest] + dependent_manifests)
        result.diagnostics.extend(merge_diagnostics)
        result.manifest = manifest

        self.stage = BuildStage.BUNDLE
        bundle_results = system.bundler.bundle(
            BundleContext(
                config=config,
                manifest=manifest,
                compiled_files=compile_results.files_to_write,
                worker_manager=self.worker_manager,
            )
        )
        result.diagnostics.extend(bundle_results.diagnostics)
        result.component_registry = dict(bundle_results.component_registry)
        self._add_files(files_to_write, bundle_results.files_to_write, result)

        self.stage = BuildStage.GENERATE_PROJECT_FILES
        self._add_files(files_to_write, generate_project_files(config, manifest, bundle_results), result)

        self.stage = BuildStage.RECONCILE_DIRECTORY
        reconciled = reconcile(config, files_to_write)
        result.files_written = reconciled.written
        result.files_deleted = reconciled.deleted
        logger.debug(
            f"reconcile, {len(reconciled.written)} written, {len(reconciled.deleted)} deleted, "
            f"{len(reconciled.unchanged)} unchanged"
        )

    def _add_files(self, files_to_write: FilesToWrite, new_files: FilesToWrite, result: BuildResult) -> None:
        for file_path in merge_files_to_write(files_to_write, new_files):
            result.diagnostics.append(
                Diagnostic.error(
                    f"{self.stage.value} output collides with a file already produced by this build: {file_path}",
                    file_path=file_path,
                    code=self.stage.value,
                )
            )

    def _prepare_host(self, config: BuildConfig, changed_files: Optional[List[str]]) -> None:
        system = config.system
        if not config.watch or self.host is None:
            self.host = FileHost(system.fs, system.path)
            self.resolver = StyleResolver(system.style_compiler, system.fs, system.path)
            return

        if changed_files:
            # Modules whose dropped stylesheet failed before are recompiled too
            dropped_styles = self.resolver.invalidate(changed_files)
            invalidated = self.host.invalidate(list(changed_files) + dropped_styles)
            logger.debug(f"watch, {len(invalidated)} modules invalidated")

    def _finalize(self, result: BuildResult, config: BuildConfig, span: TimeSpan, start_time: float) -> BuildResult:
        self.stage = BuildStage.FINALIZE

        for diagnostic in result.diagnostics:
            if diagnostic.level == DiagnosticLevel.ERROR:
                logger.error(diagnostic.format())
                if diagnostic.stack:
                    logger.debug(diagnostic.stack)
            elif diagnostic.level == DiagnosticLevel.WARNING:
                logger.warning(diagnostic.format())
            else:
                logger.info(diagnostic.format())

        result.success = not has_errors(result.diagnostics)
        result.build_time = time.time() - start_time

        if config.watch:
            span.finish("build ready, watching files...")
        else:
            self.worker_manager.disconnect()
            span.finish("build finished")
        return result
