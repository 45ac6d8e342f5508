"""
Style resolution for component modules.

For each style mode of a component the resolver locates the referenced
stylesheets next to the owning module, compiles them through the style
compiler capability and records every file they include so a change to any
of them invalidates the module in watch mode.

A stylesheet used by several components is compiled once per build. A
broken or missing stylesheet becomes a diagnostic; the module's script
output is unaffected.
"""

import logging
import threading
from typing import Dict, List, Optional, Tuple

from ..diagnostics import Diagnostic
from ..errors import StyleCompileError
from .file_host import ModuleFileRecord
from .metadata import StyleRecord
from .source_scanner import STYLE_PATTERNS

logger = logging.getLogger(__name__)


class StyleResolver:
    """Resolves and compiles the stylesheets of component modules.

    Example usage:
        resolver = StyleResolver(system.style_compiler, system.fs, system.path)
        records = resolver.process_styles(module_record)
        css = resolver.mode_css(module_record, "$default")
    """

    def __init__(self, style_compiler, fs, path):
        """
        Initialize style resolver.

        Args:
            style_compiler: Style compiler capability (compile(file_path))
            fs: File system capability
            path: Path utilities capability (os.path interface)
        """
        self.style_compiler = style_compiler
        self.fs = fs
        self.path = path
        self._cache: Dict[str, StyleRecord] = {}
        self._errors: Dict[str, StyleCompileError] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_lock = threading.Lock()

    def invalidate(self, changed_files: List[str]) -> List[str]:
        """Drop cached styles that include any of the changed files.

        A failed compile does not know which files it would have included,
        so any changed stylesheet drops every cached failure.

        Returns:
            Entry stylesheets that were dropped, sorted
        """
        changed = {self.path.normpath(p) for p in changed_files}
        styles_changed = any(p.endswith(STYLE_PATTERNS) for p in changed)
        dropped = []
        with self._locks_lock:
            for style_path in list(self._cache):
                if changed & set(self._cache[style_path].included_files) or style_path in changed:
                    del self._cache[style_path]
                    dropped.append(style_path)
            for style_path in list(self._errors):
                if styles_changed or style_path in changed:
                    del self._errors[style_path]
                    dropped.append(style_path)
        return sorted(dropped)

    def resolve_path(self, record: ModuleFileRecord, style_url: str) -> str:
        """Resolve a style URL relative to the owning module's directory."""
        src_dir = self.path.dirname(record.file_path)
        return self.path.normpath(self.path.join(src_dir, style_url))

    def process_styles(self, record: ModuleFileRecord) -> Tuple[List[StyleRecord], List[Diagnostic]]:
        """Compile every stylesheet referenced by a module's component.

        Included files are added to record.included_style_files.

        Returns:
            One StyleRecord per resolved stylesheet, in mode order, and
            a StyleCompileError diagnostic per stylesheet that failed
        """
        if not record.is_source_file or record.cmp_meta is None or not record.cmp_meta.styles:
            return [], []

        style_records = []
        diagnostics = []
        for mode, mode_meta in record.cmp_meta.styles.items():
            for style_url in mode_meta.style_urls:
                style_path = self.resolve_path(record, style_url)
                logger.debug(f"style resolver, {record.cmp_meta.tag} [{mode}]: {style_path}")

                style_record, error = self._compile(style_path, mode)
                style_records.append(style_record)
                if error is not None:
                    diagnostics.append(
                        Diagnostic.error(f"{record.cmp_meta.tag}: {error}", file_path=record.file_path, code="style")
                    )
                for included in [style_path] + style_record.included_files:
                    if included not in record.included_style_files:
                        record.included_style_files.append(included)
        return style_records, diagnostics

    def mode_css(self, record: ModuleFileRecord, mode: str) -> Optional[str]:
        """Concatenated CSS of one mode, or None if nothing compiled."""
        if record.cmp_meta is None or mode not in record.cmp_meta.styles:
            return None
        parts = []
        for style_url in record.cmp_meta.styles[mode].style_urls:
            cached = self._cache.get(self.resolve_path(record, style_url))
            if cached is not None and cached.css:
                parts.append(cached.css.strip())
        if not parts:
            return None
        return "\n".join(parts) + "\n"

    def _lock_for(self, style_path: str) -> threading.Lock:
        with self._locks_lock:
            lock = self._locks.get(style_path)
            if lock is None:
                lock = threading.Lock()
                self._locks[style_path] = lock
            return lock

    def _compile(self, style_path: str, mode: str) -> Tuple[StyleRecord, Optional[StyleCompileError]]:
        with self._lock_for(style_path):
            cached = self._cache.get(style_path)
            if cached is not None:
                return StyleRecord(mode=mode, path=style_path, css=cached.css,
                                   included_files=list(cached.included_files)), None

            error = self._errors.get(style_path)
            if error is None:
                try:
                    if not self.fs.is_file(style_path):
                        raise StyleCompileError(f"Style file not found: {style_path}", file_path=style_path)
                    output = self.style_compiler.compile(style_path)
                except StyleCompileError as e:
                    error = e
                except OSError as e:
                    error = StyleCompileError(f"Cannot read style file {style_path}: {e}", file_path=style_path)
                else:
                    included = [self.path.normpath(p) for p in output.included_files]
                    compiled = StyleRecord(mode=mode, path=style_path, css=output.css, included_files=included)
                    self._cache[style_path] = compiled
                    return compiled, None

                self._errors[style_path] = error

            logger.debug(f"style resolver, failed: {style_path}: {error}")
            return StyleRecord(mode=mode, path=style_path, css=None, included_files=[]), error
