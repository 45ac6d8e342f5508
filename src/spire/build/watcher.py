"""
Polling file watcher for watch mode.

Takes a snapshot of modification times under the watched directories and
reports the paths that were added, changed or removed since the previous
snapshot. Output directories are excluded so the build's own writes never
trigger a rebuild.
"""

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.5
WATCHED_SUFFIXES = (".py", ".scss", ".sass", ".css")


class Watcher:
    """Detects changed files by polling modification times.

    Example usage:
        watcher = Watcher(system.fs, system.path, [config.src_dir], exclude=[config.dest_dir])
        watcher.watch(lambda changed: orchestrator.rebuild(changed))
    """

    def __init__(
        self,
        fs,
        path,
        directories: Iterable[str],
        exclude: Iterable[str] = (),
        interval: float = DEFAULT_INTERVAL,
    ):
        self.fs = fs
        self.path = path
        self.directories = [path.normpath(d) for d in directories]
        self.exclude = [path.normpath(d) for d in exclude]
        self.interval = interval
        self._snapshot: Dict[str, float] = self.snapshot()

    def snapshot(self) -> Dict[str, float]:
        """Current modification time of every watched file."""
        mtimes = {}
        for directory in self.directories:
            for file_path in self.fs.list_files(directory):
                file_path = self.path.normpath(file_path)
                if not file_path.endswith(WATCHED_SUFFIXES) or self._is_excluded(file_path):
                    continue
                try:
                    mtimes[file_path] = self.fs.mtime(file_path)
                except FileNotFoundError:
                    continue
        return mtimes

    def poll(self) -> List[str]:
        """Return files changed since the previous poll, sorted."""
        current = self.snapshot()
        previous = self._snapshot
        self._snapshot = current

        changed = {p for p in current if previous.get(p) != current[p]}
        changed.update(p for p in previous if p not in current)
        return sorted(changed)

    def watch(
        self,
        on_change: Callable[[List[str]], None],
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> None:
        """Call on_change with each batch of changed files until stopped.

        Runs until should_stop() returns True or KeyboardInterrupt.
        """
        logger.info(f"watching {', '.join(self.directories)}")
        while should_stop is None or not should_stop():
            time.sleep(self.interval)
            changed = self.poll()
            if changed:
                logger.debug(f"watch, {len(changed)} files changed")
                on_change(changed)

    def _is_excluded(self, file_path: str) -> bool:
        return any(file_path == root or file_path.startswith(root + self.path.sep) for root in self.exclude)
