"""Style Compiler.

This module compiles component stylesheets by running the `sass` command line
compiler via subprocess.

Design:
    - Wraps subprocess.run for the sass executable
    - Writes output to a temporary file and reads the generated source map
      to learn which files were included (@use, @import, @forward)
    - Plain .css files are read as-is and include only themselves
    - Failures raise StyleCompileError with the compiler's stderr
"""

import json
import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

from ..errors import StyleCompileError


@dataclass
class StyleCompileOutput:
    """Result of compiling one stylesheet."""

    css: str
    included_files: List[str] = field(default_factory=list)


class SassCompiler:
    """Compiles .scss/.sass files with the sass CLI.

    Example usage:
        compiler = SassCompiler()
        output = compiler.compile("/project/src/button/button.scss")
        print(output.css, output.included_files)
    """

    def __init__(self, executable: Optional[str] = None, timeout: int = 60):
        """Initialize sass compiler.

        Args:
            executable: Path to the sass executable (defaults to `sass` on PATH)
            timeout: Seconds before a single compilation is abandoned
        """
        self.executable = executable or "sass"
        self.timeout = timeout

    def compile(self, file_path: str) -> StyleCompileOutput:
        """Compile a single stylesheet.

        Args:
            file_path: Absolute path of the stylesheet

        Returns:
            StyleCompileOutput with the CSS text and included files

        Raises:
            StyleCompileError: If the file is missing or compilation fails
        """
        if not os.path.isfile(file_path):
            raise StyleCompileError(f"Style file not found: {file_path}", file_path=file_path)

        if file_path.endswith(".css"):
            with open(file_path, "r", encoding="utf-8") as f:
                return StyleCompileOutput(css=f.read(), included_files=[file_path])

        executable = shutil.which(self.executable) or self.executable

        with tempfile.TemporaryDirectory(prefix="spire-sass-") as tmp_dir:
            out_file = os.path.join(tmp_dir, os.path.basename(file_path) + ".tmp.css")
            cmd = [
                executable,
                "--no-error-css",
                "--source-map-urls=absolute",
                file_path,
                out_file,
            ]

            try:
                result = subprocess.run(
                    cmd,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout
                )
            except FileNotFoundError:
                raise StyleCompileError(
                    f"Style compiler not found: {self.executable}. Install dart-sass.",
                    file_path=file_path,
                )
            except subprocess.TimeoutExpired:
                raise StyleCompileError(
                    f"Style compile timeout for {os.path.basename(file_path)}",
                    file_path=file_path,
                )

            if result.returncode != 0:
                raise StyleCompileError(
                    f"Style compile failed for {os.path.basename(file_path)}\n{result.stderr.strip()}",
                    file_path=file_path,
                )

            with open(out_file, "r", encoding="utf-8") as f:
                css = f.read()

            included_files = self._read_included_files(out_file + ".map", file_path)

        return StyleCompileOutput(css=_strip_source_map_comment(css), included_files=included_files)

    def _read_included_files(self, map_file: str, file_path: str) -> List[str]:
        """Read the list of source files from a source map.

        The entry file is always listed first.
        """
        included = [file_path]
        if not os.path.isfile(map_file):
            return included

        with open(map_file, "r", encoding="utf-8") as f:
            source_map = json.load(f)

        for source in source_map.get("sources", []):
            path = _source_url_to_path(source)
            if path and path not in included:
                included.append(path)
        return included


def _source_url_to_path(source: str) -> Optional[str]:
    parsed = urlparse(source)
    if parsed.scheme == "file":
        return os.path.normpath(url2pathname(parsed.path))
    if not parsed.scheme and os.path.isabs(source):
        return os.path.normpath(source)
    return None


def _strip_source_map_comment(css: str) -> str:
    lines = [line for line in css.splitlines() if not line.startswith("/*# sourceMappingURL=")]
    return "\n".join(lines).strip() + "\n"
