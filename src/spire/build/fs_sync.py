"""
Output directory reconciliation.

Every stage appends to one FilesToWrite buffer (absolute, normalized path
-> text). At the end of a build the buffer is flushed in one of two ways:

- write_files(): additive. Creates missing directories and writes every
  entry. Never deletes anything. Used in dev mode.
- update_directories(): diff-and-prune. Deletes files under dest_dir that
  are not in the buffer (and directories left empty), then writes. Used
  in prod mode.

Files whose content already matches are left alone, so running either mode
twice with the same buffer changes nothing the second time.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List

from ..errors import ReconcileError

logger = logging.getLogger(__name__)

FilesToWrite = Dict[str, str]


@dataclass
class ReconcileResult:
    """What the reconciler did to the output directory."""

    written: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.written or self.deleted)


def add_file_to_write(files: FilesToWrite, file_path: str, text: str, path=os.path) -> str:
    """Add a file to the buffer under its absolute, normalized path.

    Returns:
        The key used
    """
    key = path.normpath(path.abspath(file_path))
    files[key] = text
    return key


def merge_files_to_write(files: FilesToWrite, new_files: FilesToWrite) -> List[str]:
    """Add another stage's files to the buffer without replacing any entry.

    Returns:
        Paths already in the buffer, sorted; those entries keep their first text
    """
    collisions = sorted(file_path for file_path in new_files if file_path in files)
    for file_path, text in new_files.items():
        files.setdefault(file_path, text)
    return collisions


def write_files(fs, path, dest_dir: str, files: FilesToWrite) -> ReconcileResult:
    """Write every buffered file, skipping ones whose content matches.

    Args:
        fs: File system capability
        path: Path utilities capability (os.path interface)
        dest_dir: Output directory
        files: Buffer to flush

    Raises:
        ReconcileError: If a directory or file cannot be written
    """
    result = ReconcileResult()

    directories = sorted({path.dirname(file_path) for file_path in files} | {dest_dir})
    for directory in directories:
        try:
            if not fs.is_dir(directory):
                fs.makedirs(directory)
        except OSError as e:
            raise ReconcileError(f"Cannot create directory {directory}: {e}") from e

    for file_path in sorted(files):
        text = files[file_path]
        try:
            if fs.is_file(file_path) and fs.read_text(file_path) == text:
                result.unchanged.append(file_path)
                continue
            fs.write_text(file_path, text)
        except OSError as e:
            raise ReconcileError(f"Cannot write {file_path}: {e}") from e
        result.written.append(file_path)

    logger.debug(f"write files, {len(result.written)} written, {len(result.unchanged)} unchanged")
    return result


def update_directories(fs, path, dest_dir: str, files: FilesToWrite) -> ReconcileResult:
    """Make dest_dir hold exactly the buffered files.

    Raises:
        ReconcileError: If a stale file cannot be removed or a file cannot
            be written
    """
    existing = fs.list_files(dest_dir) if fs.is_dir(dest_dir) else []
    wanted = {path.normpath(file_path) for file_path in files}
    stale = sorted(path.normpath(p) for p in existing if path.normpath(p) not in wanted)

    deleted = []
    for file_path in stale:
        try:
            fs.remove(file_path)
        except FileNotFoundError:
            continue
        except OSError as e:
            raise ReconcileError(f"Cannot remove stale file {file_path}: {e}") from e
        deleted.append(file_path)

    _remove_empty_directories(fs, path, dest_dir, deleted)

    result = write_files(fs, path, dest_dir, files)
    result.deleted = deleted
    logger.debug(f"update directories, {len(deleted)} stale files removed")
    return result


def _remove_empty_directories(fs, path, dest_dir: str, deleted: List[str]) -> None:
    dest_dir = path.normpath(dest_dir)
    candidates = {path.dirname(file_path) for file_path in deleted}

    # Deepest first so a parent is only checked once its children are gone
    for directory in sorted(candidates, key=len, reverse=True):
        while directory != dest_dir and directory.startswith(dest_dir + path.sep):
            try:
                if not fs.is_dir(directory) or fs.list_dir(directory):
                    break
                fs.rmdir(directory)
            except OSError as e:
                raise ReconcileError(f"Cannot remove empty directory {directory}: {e}") from e
            directory = path.dirname(directory)


def reconcile(config, files: FilesToWrite) -> ReconcileResult:
    """Flush the buffer with the strategy selected by config.dev_mode."""
    system = config.system
    if config.dev_mode:
        return write_files(system.fs, system.path, config.dest_dir, files)
    return update_directories(system.fs, system.path, config.dest_dir, files)
