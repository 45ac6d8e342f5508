"""
File system capability.

The build core never touches the disk directly; it goes through a file
system object so that tests and embedders can substitute their own.
"""

import os
from pathlib import Path
from typing import List


class LocalFileSystem:
    """File system capability backed by the local disk."""

    encoding = "utf-8"

    def read_text(self, path: str) -> str:
        """Read a text file.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        with open(path, "r", encoding=self.encoding) as f:
            return f.read()

    def write_text(self, path: str, text: str) -> None:
        """Write a text file, creating parent directories as needed."""
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w", encoding=self.encoding, newline="\n") as f:
            f.write(text)

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def makedirs(self, path: str) -> None:
        os.makedirs(path, exist_ok=True)

    def remove(self, path: str) -> None:
        os.remove(path)

    def rmdir(self, path: str) -> None:
        os.rmdir(path)

    def mtime(self, path: str) -> float:
        return os.path.getmtime(path)

    def list_dir(self, path: str) -> List[str]:
        """List absolute paths of the direct children of a directory."""
        return sorted(os.path.join(path, name) for name in os.listdir(path))

    def list_files(self, path: str) -> List[str]:
        """Recursively list absolute paths of all files under a directory."""
        root = Path(path)
        if not root.is_dir():
            return []
        return sorted(str(p) for p in root.rglob("*") if p.is_file())
