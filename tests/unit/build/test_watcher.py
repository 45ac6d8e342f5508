"""Tests for the polling file watcher."""

import os

import pytest

from spire.build.watcher import Watcher
from spire.system import LocalFileSystem


@pytest.fixture
def project(tmp_path):
    src = tmp_path / "src"
    (src / "build").mkdir(parents=True)
    (src / "button.py").write_text("A = 1\n")
    (src / "button.css").write_text("a {}\n")
    (src / "notes.txt").write_text("notes\n")
    (src / "build" / "button.py").write_text("A = 1\n")
    return src


@pytest.fixture
def watcher(project):
    return Watcher(LocalFileSystem(), os.path, [str(project)], exclude=[str(project / "build")], interval=0)


def _touch(file_path, text):
    file_path.write_text(text)
    stat = os.stat(file_path)
    # Move the mtime forward so the change is seen on coarse clocks
    os.utime(file_path, (stat.st_atime, stat.st_mtime + 10))


class TestWatcher:
    """Test change detection."""

    def test_snapshot_skips_excluded_and_unwatched_files(self, watcher, project):
        assert sorted(watcher.snapshot()) == [str(project / "button.css"), str(project / "button.py")]

    def test_no_changes(self, watcher):
        assert watcher.poll() == []

    def test_changed_added_and_removed(self, watcher, project):
        _touch(project / "button.py", "A = 2\n")
        (project / "card.py").write_text("B = 1\n")
        os.remove(project / "button.css")

        changed = watcher.poll()

        assert changed == [str(project / "button.css"), str(project / "button.py"), str(project / "card.py")]
        assert watcher.poll() == []

    def test_output_changes_ignored(self, watcher, project):
        _touch(project / "build" / "button.py", "A = 2\n")
        assert watcher.poll() == []

    def test_watch_calls_back_until_stopped(self, watcher, project):
        batches = []
        polls = iter([False, False, True])

        _touch(project / "button.py", "A = 3\n")
        watcher.watch(batches.append, should_stop=lambda: next(polls))

        assert batches == [[str(project / "button.py")]]
