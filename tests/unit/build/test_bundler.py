"""Tests for the default component bundler."""

import os
from dataclasses import replace

import pytest

from spire.build.bundler import BUNDLE_ID_LENGTH, BundleContext, ComponentBundler
from spire.build.manifest import Manifest
from spire.build.metadata import ComponentMetadata
from spire.build.worker_manager import WorkerManager
from spire.config import BuildConfig, validate_build_config


@pytest.fixture
def config(tmp_path, build_system):
    return validate_build_config(
        BuildConfig(
            src_dir=str(tmp_path / "src"),
            system=build_system,
            bundles=(("my-a", "my-b"), ("my-zzz",)),
            dev_mode=True,
        )
    )


@pytest.fixture
def manifest():
    return Manifest(
        components=[
            ComponentMetadata(tag="my-a", component_class="A", module_path="a.py"),
            ComponentMetadata(tag="my-b", component_class="B", module_path="b.py"),
            ComponentMetadata(tag="my-c", component_class="C", module_path="c.py"),
        ]
    )


@pytest.fixture
def compiled_files(config):
    return {
        os.path.join(config.dest_dir, "a.py"): "class A:\n    pass\n",
        os.path.join(config.dest_dir, "b.py"): "class B:\n    pass\n",
        os.path.join(config.dest_dir, "c.py"): "class C:\n    pass\n",
    }


@pytest.fixture
def manager():
    manager = WorkerManager()
    manager.connect(0)
    yield manager
    manager.disconnect()


def _bundle(config, manifest, compiled_files, manager):
    return ComponentBundler().bundle(BundleContext(config, manifest, compiled_files, manager))


class TestBundleGroups:
    """Test splitting components into bundles."""

    def test_configured_groups_first(self, manifest):
        groups, diagnostics = ComponentBundler().bundle_groups(manifest, (("my-c",), ("my-a", "my-b")))
        assert groups == [["my-c"], ["my-a", "my-b"]]
        assert diagnostics == []

    def test_unknown_tag_reported(self, manifest):
        groups, diagnostics = ComponentBundler().bundle_groups(manifest, (("my-a", "my-zzz"),))
        assert groups == [["my-a"], ["my-b"], ["my-c"]]
        assert len(diagnostics) == 1
        assert not diagnostics[0].is_error
        assert "my-zzz" in diagnostics[0].message

    def test_tag_bundled_once(self, manifest):
        groups, _ = ComponentBundler().bundle_groups(manifest, (("my-a", "my-b"), ("my-b", "my-c")))
        assert groups == [["my-a", "my-b"], ["my-c"]]

    def test_no_configured_bundles(self, manifest):
        groups, _ = ComponentBundler().bundle_groups(manifest, ())
        assert groups == [["my-a"], ["my-b"], ["my-c"]]


class TestBundle:
    """Test bundle output."""

    def test_dev_mode_bundle_ids(self, config, manifest, compiled_files, manager):
        results = _bundle(config, manifest, compiled_files, manager)

        assert results.component_registry == {
            "my-a": {"bundle": "my-a.my-b", "bundle_url": "app/my-a.my-b.py"},
            "my-b": {"bundle": "my-a.my-b", "bundle_url": "app/my-a.my-b.py"},
            "my-c": {"bundle": "my-c", "bundle_url": "app/my-c.py"},
        }
        assert sorted(results.files_to_write) == [
            os.path.join(config.dest_dir, "app", "my-a.my-b.py"),
            os.path.join(config.dest_dir, "app", "my-c.py"),
        ]
        # The unknown tag of the second configured group
        assert [d.code for d in results.diagnostics] == ["bundle"]

    def test_bundle_module_contents(self, config, manifest, compiled_files, manager):
        results = _bundle(config, manifest, compiled_files, manager)
        text = results.files_to_write[os.path.join(config.dest_dir, "app", "my-a.my-b.py")]

        namespace = {}
        exec(compile(text, "bundle.py", "exec"), namespace)

        assert namespace["BUNDLE_ID"] == "my-a.my-b"
        assert namespace["COMPONENTS"] == {
            "my-a": {"module": "a.py", "component_class": "A"},
            "my-b": {"module": "b.py", "component_class": "B"},
        }
        assert namespace["SOURCES"] == {"a.py": "class A:\n    pass\n", "b.py": "class B:\n    pass\n"}

    def test_prod_mode_hash_ids(self, config, manifest, compiled_files, manager):
        config = replace(config, dev_mode=False)

        first = _bundle(config, manifest, compiled_files, manager)
        second = _bundle(config, manifest, compiled_files, manager)

        bundle_id = first.component_registry["my-c"]["bundle"]
        assert len(bundle_id) == BUNDLE_ID_LENGTH
        assert second.component_registry == first.component_registry

        compiled_files[os.path.join(config.dest_dir, "c.py")] = "class C:\n    size = 2\n"
        changed = _bundle(config, manifest, compiled_files, manager)
        assert changed.component_registry["my-c"]["bundle"] != bundle_id
        assert changed.component_registry["my-a"] == first.component_registry["my-a"]

    def test_module_read_from_disk(self, config, manifest, manager):
        os.makedirs(config.dest_dir)
        with open(os.path.join(config.dest_dir, "a.py"), "w", encoding="utf-8") as f:
            f.write("A = 1\n")

        results = _bundle(config, manifest, {}, manager)

        text = results.files_to_write[os.path.join(config.dest_dir, "app", "my-a.my-b.py")]
        assert "'a.py': 'A = 1\\n'" in text
        missing = [d for d in results.diagnostics if "not available" in d.message]
        assert len(missing) == 2
        assert not any(d.is_error for d in results.diagnostics)

    def test_remote_module_not_bundled(self, config, manager):
        config = replace(config, bundles=())
        manifest = Manifest(
            components=[ComponentMetadata(tag="ext-card", module_path="https://cdn.example.com/ui/card.py")]
        )

        results = _bundle(config, manifest, {}, manager)

        assert results.component_registry["ext-card"]["bundle"] == "ext-card"
        assert results.component_registry["ext-card"]["bundle_url"] == "app/ext-card.py"
        assert len(results.diagnostics) == 1
        assert "not available" in results.diagnostics[0].message

    def test_task_failure_becomes_diagnostic(self, config, manifest, compiled_files, manager, monkeypatch):
        bundler = ComponentBundler()

        def fail(context, tags):
            raise RuntimeError("bundler crashed")

        monkeypatch.setattr(bundler, "build_bundle", fail)
        results = bundler.bundle(BundleContext(config, manifest, compiled_files, manager))

        errors = [d for d in results.diagnostics if d.is_error]
        assert len(errors) == 2
        assert all(d.code == "bundle" for d in errors)
        assert results.files_to_write == {}
