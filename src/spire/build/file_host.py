"""
Virtual file host for the compile stage.

The host is an in-memory registry of module files keyed by absolute,
normalized path and backed by lazy disk reads. It is the single source of
truth for what a file looks like during a build:

- read_file() returns the in-memory text, reading from disk only once
- write_file() attaches compiled output to the originating source records
- file_exists() only knows about files the host has been told about

In watch mode the host outlives a single build. Changed files are
invalidated explicitly and everything else keeps its compiled output.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from ..diagnostics import Diagnostic
from .metadata import ComponentMetadata

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = (".py",)

# Called with the record whose compiled output was just written
StyleCallback = Callable[["ModuleFileRecord"], None]


@dataclass
class ModuleFileRecord:
    """One source file known to the host.

    Attributes:
        file_path: Absolute, normalized source path
        src_text: Current source text
        is_source_file: True for modules the compiler transpiles
        cmp_meta: Component metadata found in the module, if any
        recompile_on_change: Recompile this file when its source changes
        compiled_path: Absolute output path of the compiled module
        compiled_text: Compiled module text (None until compiled, or stale)
        included_style_files: Stylesheets (transitively) used by the module
        diagnostics: Diagnostics of the last compilation, reported again
            while the compiled output is reused
    """

    file_path: str
    src_text: str
    is_source_file: bool = False
    cmp_meta: Optional[ComponentMetadata] = None
    recompile_on_change: bool = False
    compiled_path: Optional[str] = None
    compiled_text: Optional[str] = None
    included_style_files: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def needs_compile(self) -> bool:
        """True when there is no up-to-date compiled output."""
        return self.compiled_text is None


class FileHost:
    """In-memory overlay of module files with lazy disk fallback.

    Example usage:
        host = FileHost(system.fs, system.path)
        text = host.read_file("/project/src/button.py")
        host.write_file("/project/www/build/button.py", compiled, ["/project/src/button.py"])
    """

    def __init__(self, fs, path):
        """
        Initialize file host.

        Args:
            fs: File system capability
            path: Path utilities capability (os.path interface)
        """
        self.fs = fs
        self.path = path
        self._records: Dict[str, ModuleFileRecord] = {}
        # Guards record creation only; each compile task owns its records
        self._lock = threading.Lock()

    def normalize(self, file_path: str) -> str:
        return self.path.normpath(self.path.abspath(file_path))

    def is_source_path(self, file_path: str) -> bool:
        return file_path.endswith(SOURCE_SUFFIXES)

    def add_file(self, file_path: str, src_text: str) -> ModuleFileRecord:
        """Register a file with known contents.

        If a record already exists for the path it is updated in place, so
        there is never more than one record per path. A changed source
        drops the compiled output.
        """
        file_path = self.normalize(file_path)
        with self._lock:
            record = self._records.get(file_path)
            if record is None:
                record = ModuleFileRecord(
                    file_path=file_path,
                    src_text=src_text,
                    is_source_file=self.is_source_path(file_path),
                )
                self._records[file_path] = record
            elif record.src_text != src_text:
                record.src_text = src_text
                self._clear_compiled(record)
            return record

    def read_file(self, file_path: str) -> str:
        """Return the in-memory text of a file, reading it from disk once.

        Raises:
            FileNotFoundError: If the file is neither in memory nor on disk
        """
        file_path = self.normalize(file_path)
        record = self._records.get(file_path)
        if record is not None:
            return record.src_text

        logger.debug(f"file host, reading from disk: {file_path}")
        record = self.add_file(file_path, self.fs.read_text(file_path))
        record.recompile_on_change = True
        return record.src_text

    def write_file(
        self,
        output_path: str,
        text: str,
        origin_files: Iterable[str],
        on_styles: Optional[StyleCallback] = None,
    ) -> None:
        """Attach compiled output to the source records it came from.

        Args:
            output_path: Absolute output path of the compiled module
            text: Compiled module text
            origin_files: Source files that produced this output
            on_styles: Called for each origin record whose metadata declares
                style references
        """
        output_path = self.normalize(output_path)
        for origin in origin_files:
            record = self._records.get(self.normalize(origin))
            if record is None:
                continue
            record.recompile_on_change = True
            record.compiled_path = output_path
            record.compiled_text = text

            if on_styles is not None and record.is_source_file and record.cmp_meta and record.cmp_meta.styles:
                on_styles(record)

    def file_exists(self, file_path: str) -> bool:
        """True only for files the host already holds a record for."""
        return self.normalize(file_path) in self._records

    def get_record(self, file_path: str) -> Optional[ModuleFileRecord]:
        return self._records.get(self.normalize(file_path))

    def needs_compile(self, file_path: str) -> bool:
        record = self.get_record(file_path)
        return record is None or record.needs_compile

    def records(self) -> List[ModuleFileRecord]:
        return [self._records[key] for key in sorted(self._records)]

    def source_records(self) -> List[ModuleFileRecord]:
        return [record for record in self.records() if record.is_source_file]

    def invalidate(self, changed_files: Iterable[str]) -> List[str]:
        """Mark changed files for recompilation.

        A changed stylesheet invalidates every module that includes it.
        Records flagged recompile_on_change are re-read from disk; files
        that no longer exist are dropped.

        Returns:
            Source paths that need recompiling
        """
        changed = {self.normalize(p) for p in changed_files}
        invalidated = []

        for record in self.records():
            touched = record.file_path in changed or any(
                self.normalize(style) in changed for style in record.included_style_files
            )
            if not touched:
                continue

            if record.file_path in changed and record.recompile_on_change:
                if not self.fs.exists(record.file_path):
                    with self._lock:
                        self._records.pop(record.file_path, None)
                    logger.debug(f"file host, dropped deleted file: {record.file_path}")
                    continue
                record.src_text = self.fs.read_text(record.file_path)

            self._clear_compiled(record)
            if record.is_source_file:
                invalidated.append(record.file_path)

        return invalidated

    def remove_file(self, file_path: str) -> None:
        with self._lock:
            self._records.pop(self.normalize(file_path), None)

    def _clear_compiled(self, record: ModuleFileRecord) -> None:
        record.compiled_text = None
        record.cmp_meta = None
        record.included_style_files = []
        record.diagnostics = []
