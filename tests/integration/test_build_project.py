"""
Integration test for a complete project build.

Builds a small project from its spire.ini with the default system (plain
.css stylesheets, so no sass executable is required), then loads the
generated loader module and registers every component.
"""

import importlib.util
import json
import textwrap
from unittest.mock import Mock

import pytest

from spire.build import BuildOrchestrator
from spire.cli_utils import ProjectDetector

FILES = {
    "spire.ini": """
        [spire]
        src_dir = src
        namespace = Todo
        collections = icons
        bundles =
            todo-app, todo-item
        workers = 2
    """,
    "src/app.py": """
        from spire.annotations import Component, Listen, State


        @Component(tag="todo-app", styleUrl="app.css", shadow=True)
        class TodoApp:
            @State
            def items(self) -> list:
                return []

            @Listen("add")
            def on_add(self, event):
                self.items = self.items + [event.detail]

            def render(self):
                return h("ul", {"class": "list"}, [h("todo-item", {"text": item}) for item in self.items])
    """,
    "src/app.css": "ul.list { padding: 0; }\n",
    "src/item.py": """
        from spire.annotations import Component, Prop


        @Component(tag="todo-item", styleUrls={"ios": "item.ios.css"})
        class TodoItem:
            @Prop
            def text(self) -> str:
                return ""

            def render(self):
                return h("li", None, self.text)
    """,
    "src/item.ios.css": "li { font: -apple-system-body; }\n",
    "src/util.py": """
        def count(items):
            return len(items)
    """,
    "collections/icons/manifest.json": json.dumps({
        "components": [{"tag": "icon-check", "component_class": "Check", "module_path": "check.py"}],
    }),
    "collections/icons/check.py": "class Check:\n    pass\n",
}


def _write(project, files):
    for relative, text in files.items():
        file_path = project / relative
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(textwrap.dedent(text).lstrip(), encoding="utf-8")


def _load_module(file_path):
    spec = importlib.util.spec_from_file_location("todo_loader", file_path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.mark.integration
class TestBuildProject:
    """Build a project end to end."""

    @pytest.fixture
    def project(self, tmp_path):
        _write(tmp_path, FILES)
        return tmp_path

    def test_prod_build(self, project):
        config = ProjectDetector.load_project(project).to_build_config()
        result = BuildOrchestrator(config).build()

        assert result.success, [d.format() for d in result.diagnostics]
        dest = project / "www" / "build"

        assert (dest / "app.py").is_file()
        assert (dest / "util.py").is_file()
        assert (dest / "todo" / "todo-app.css").read_text() == "ul.list { padding: 0; }\n"
        assert (dest / "todo" / "todo-item.ios.css").is_file()

        manifest = json.loads((dest / "todo" / "manifest.json").read_text())
        tags = [component["tag"] for component in manifest["components"]]
        assert tags == ["todo-app", "todo-item", "icon-check"]
        assert manifest["components"][2]["module_path"] == "../../../collections/icons/check.py"

        registry = result.component_registry
        assert registry["todo-app"]["bundle"] == registry["todo-item"]["bundle"]
        assert registry["icon-check"]["bundle"] != registry["todo-app"]["bundle"]

        compiled = (dest / "app.py").read_text()
        assert "spire.annotations" not in compiled
        compile(compiled, str(dest / "app.py"), "exec")

    def test_loader_registers_components(self, project):
        config = ProjectDetector.load_project(project).to_build_config()
        BuildOrchestrator(config).build()

        loader = _load_module(project / "www" / "build" / "todo.py")
        platform = Mock()
        platform.element_class = object

        registered = loader.register_components(platform, Mock())

        assert sorted(registered) == ["icon-check", "todo-app", "todo-item"]
        assert registered["todo-item"].observed_attributes == ["text"]
        assert platform.define_component.call_count == 3

    def test_rebuild_in_dev_mode_is_additive(self, project):
        config = ProjectDetector.load_project(project).to_build_config(dev_mode=True)
        BuildOrchestrator(config).build()
        (project / "src" / "util.py").unlink()

        result = BuildOrchestrator(config).build()

        assert result.success
        assert result.files_deleted == []
        assert (project / "www" / "build" / "util.py").is_file()

    def test_prod_rebuild_prunes_removed_module(self, project):
        config = ProjectDetector.load_project(project).to_build_config()
        BuildOrchestrator(config).build()
        (project / "src" / "util.py").unlink()

        result = BuildOrchestrator(config).build()

        assert result.success
        assert str((project / "www" / "build" / "util.py").resolve()) in result.files_deleted
        assert not (project / "www" / "build" / "util.py").exists()
