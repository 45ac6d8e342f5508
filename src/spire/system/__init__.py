"""Platform capabilities used by the build core.

A build never reaches for the disk, the style compiler, the bundler or the
type checker directly. It goes through a BuildSystem so each capability can
be replaced (tests use in-memory fakes).
"""

import os
from dataclasses import dataclass
from typing import Any, Optional

from .fs import LocalFileSystem
from .style_compiler import SassCompiler, StyleCompileOutput
from .type_checker import PythonSyntaxChecker

__all__ = [
    "BuildSystem",
    "LocalFileSystem",
    "PythonSyntaxChecker",
    "SassCompiler",
    "StyleCompileOutput",
    "default_system",
]


@dataclass
class BuildSystem:
    """Capabilities required by a build.

    Attributes:
        fs: File system (read_text, write_text, exists, list_files, ...)
        path: Path utilities with the os.path interface
        style_compiler: Object with compile(file_path) -> StyleCompileOutput
        bundler: Object with bundle(context) -> BundleResults
        type_checker: Object with check(tree, file_path) -> List[Diagnostic]
    """

    fs: Any = None
    path: Any = None
    style_compiler: Any = None
    bundler: Any = None
    type_checker: Any = None


def default_system(sass_executable: Optional[str] = None) -> BuildSystem:
    """Create a BuildSystem backed by the local machine."""
    from ..build.bundler import ComponentBundler

    return BuildSystem(
        fs=LocalFileSystem(),
        path=os.path,
        style_compiler=SassCompiler(sass_executable),
        bundler=ComponentBundler(),
        type_checker=PythonSyntaxChecker(),
    )
