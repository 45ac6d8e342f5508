"""
Build pipeline components for Spire.

This module provides the build pipeline implementation including:
- Virtual file host and source discovery
- Transform chain and style resolution
- Worker pool, compile and bundle stages
- Manifest merging and output directory reconciliation
- Build orchestration and watch mode
"""

from .bundler import BundleContext, BundleResults, ComponentBundler
from .compile_stage import CompileResults, compile_project
from .file_host import FileHost, ModuleFileRecord
from .fs_sync import (
    ReconcileResult,
    add_file_to_write,
    merge_files_to_write,
    reconcile,
    update_directories,
    write_files,
)
from .manifest import Manifest, generate_dependent_manifests, merge_manifests, update_manifest_urls
from .metadata import ComponentMetadata, StyleRecord
from .orchestrator import BuildOrchestrator, BuildResult, BuildStage
from .source_scanner import SourceCollection, SourceScanner
from .style_resolver import StyleResolver
from .watcher import Watcher
from .worker_manager import TaskOutcome, WorkerManager, WorkerTask

__all__ = [
    "BuildOrchestrator",
    "BuildResult",
    "BuildStage",
    "BundleContext",
    "BundleResults",
    "CompileResults",
    "ComponentBundler",
    "ComponentMetadata",
    "FileHost",
    "Manifest",
    "ModuleFileRecord",
    "ReconcileResult",
    "SourceCollection",
    "SourceScanner",
    "StyleRecord",
    "StyleResolver",
    "TaskOutcome",
    "Watcher",
    "WorkerManager",
    "WorkerTask",
    "add_file_to_write",
    "compile_project",
    "generate_dependent_manifests",
    "merge_files_to_write",
    "merge_manifests",
    "reconcile",
    "update_directories",
    "update_manifest_urls",
    "write_files",
]
