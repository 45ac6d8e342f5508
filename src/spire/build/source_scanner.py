"""
Source file discovery.

This module handles:
- Scanning the source directory for component modules (.py)
- Skipping test, cache and output directories
- Collecting stylesheets so watch mode can tell style changes apart
"""

from dataclasses import dataclass
from typing import List

SOURCE_PATTERNS = (".py",)
STYLE_PATTERNS = (".scss", ".sass", ".css")

# Directories to exclude from scanning
EXCLUDED_DIRS = {
    "__pycache__", ".git", ".spire", "node_modules", "test", "tests", "build",
}


@dataclass
class SourceCollection:
    """Files found under the source directory."""

    source_files: List[str]     # Modules handed to the compiler
    style_files: List[str]      # Stylesheets, for change tracking

    def all_files(self) -> List[str]:
        """Get all files combined."""
        return self.source_files + self.style_files


class SourceScanner:
    """
    Scans the source directory for modules and stylesheets.

    Example usage:
        scanner = SourceScanner(system.fs, system.path)
        sources = scanner.scan("/project/src", exclude=["/project/www/build"])
        for path in sources.source_files:
            print(path)
    """

    def __init__(self, fs, path):
        """
        Initialize source scanner.

        Args:
            fs: File system capability
            path: Path utilities capability (os.path interface)
        """
        self.fs = fs
        self.path = path

    def scan(self, src_dir: str, exclude: List[str] = ()) -> SourceCollection:
        """
        Scan for all source files.

        Args:
            src_dir: Source directory to scan
            exclude: Absolute directories to skip (e.g. an output directory
                nested inside the source directory)

        Returns:
            SourceCollection with absolute, normalized paths in sorted order
        """
        src_dir = self.path.normpath(src_dir)
        excluded_roots = [self.path.normpath(p) for p in exclude]

        if not self.fs.is_dir(src_dir):
            return SourceCollection(source_files=[], style_files=[])

        source_files = []
        style_files = []
        for file_path in self.fs.list_files(src_dir):
            file_path = self.path.normpath(file_path)
            if self._is_excluded(src_dir, file_path, excluded_roots):
                continue
            if file_path.endswith(SOURCE_PATTERNS):
                source_files.append(file_path)
            elif file_path.endswith(STYLE_PATTERNS):
                style_files.append(file_path)

        return SourceCollection(
            source_files=sorted(source_files),
            style_files=sorted(style_files),
        )

    def _is_excluded(self, src_dir: str, file_path: str, excluded_roots: List[str]) -> bool:
        for root in excluded_roots:
            if file_path == root or file_path.startswith(root + self.path.sep):
                return True

        relative = self.path.relpath(file_path, src_dir)
        parts = relative.split(self.path.sep)
        return any(part in EXCLUDED_DIRS for part in parts[:-1])
