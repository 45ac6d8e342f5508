"""
Pytest configuration for the spire test suite.

This configuration enables the --full flag to run integration tests and
provides the fixtures shared by the build tests (a local BuildSystem with a
fake style compiler, and a project writer).
"""

import os
import textwrap

import pytest


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--full",
        action="store_true",
        default=False,
        help="Run full test suite including integration tests (slow)",
    )


def pytest_configure(config):
    """Configure pytest based on command-line options."""
    config.addinivalue_line("markers", "integration: builds a complete project on disk")
    if config.getoption("--full"):
        # Remove the default marker expression that excludes integration tests
        markexpr = config.getoption("-m", "")
        if markexpr == "not integration":
            # Clear the marker expression to run all tests
            config.option.markexpr = ""


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --full is given."""
    if config.getoption("--full"):
        return
    skip_integration = pytest.mark.skip(reason="integration test, use --full to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


class FakeStyleCompiler:
    """Style compiler that returns stylesheet text unchanged.

    `@import "other.css";` lines are inlined and reported as included files
    so change tracking can be tested without the sass executable.
    """

    def __init__(self):
        self.calls = []

    def compile(self, file_path):
        from spire.errors import StyleCompileError
        from spire.system import StyleCompileOutput

        self.calls.append(file_path)
        if not os.path.isfile(file_path):
            raise StyleCompileError(f"Style file not found: {file_path}", file_path=file_path)

        included = [file_path]
        lines = []
        with open(file_path, "r", encoding="utf-8") as f:
            for line in f.read().splitlines():
                if line.startswith("@import"):
                    name = line.split(None, 1)[1].strip().strip(";").strip("\"'")
                    imported = os.path.normpath(os.path.join(os.path.dirname(file_path), name))
                    included.append(imported)
                    with open(imported, "r", encoding="utf-8") as imported_file:
                        lines.append(imported_file.read().strip())
                else:
                    lines.append(line)
        return StyleCompileOutput(css="\n".join(lines).strip() + "\n", included_files=included)


@pytest.fixture
def style_compiler():
    """Fake style compiler that records every compiled path."""
    return FakeStyleCompiler()


@pytest.fixture
def build_system(style_compiler):
    """BuildSystem backed by the local disk and the fake style compiler."""
    from spire.build.bundler import ComponentBundler
    from spire.system import BuildSystem, LocalFileSystem, PythonSyntaxChecker

    return BuildSystem(
        fs=LocalFileSystem(),
        path=os.path,
        style_compiler=style_compiler,
        bundler=ComponentBundler(),
        type_checker=PythonSyntaxChecker(),
    )


@pytest.fixture
def write_project(tmp_path):
    """Write a dict of relative path -> text under tmp_path/project."""

    def write(files):
        project = tmp_path / "project"
        for relative, text in files.items():
            file_path = project / relative
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(textwrap.dedent(text).lstrip(), encoding="utf-8")
        return project

    return write
