"""Tests for CLI build command."""

import sys
from unittest.mock import MagicMock, patch

import pytest

from spire import __version__
from spire.build import BuildOrchestrator, BuildResult, BuildStage
from spire.build.manifest import Manifest
from spire.build.metadata import ComponentMetadata
from spire.cli import main
from spire.diagnostics import Diagnostic


class TestCLIBuild:
    """Tests for the 'spire build' command."""

    @pytest.fixture
    def project_dir(self, tmp_path):
        """Create a project directory with a spire.ini file."""
        (tmp_path / "spire.ini").write_text("[spire]\nsrc_dir = src\nnamespace = Shop\nworkers = 2\n")
        (tmp_path / "src").mkdir()
        return tmp_path

    @pytest.fixture
    def mock_orchestrator(self):
        """Replace BuildOrchestrator in the CLI module."""
        with patch("spire.cli.BuildOrchestrator") as mock_orch_class:
            mock_instance = MagicMock(spec=BuildOrchestrator)
            mock_orch_class.return_value = mock_instance
            mock_instance.class_mock = mock_orch_class
            yield mock_instance

    @pytest.fixture
    def success_result(self):
        """Create successful build result."""
        return BuildResult(
            success=True,
            manifest=Manifest(components=[ComponentMetadata(tag="shop-cart"), ComponentMetadata(tag="shop-item")]),
            files_written=["/www/build/cart.py", "/www/build/shop.py"],
            files_deleted=["/www/build/old.py"],
            build_time=1.5,
        )

    @pytest.fixture
    def failure_result(self):
        """Create failed build result."""
        return BuildResult(
            success=False,
            diagnostics=[Diagnostic.error("invalid syntax", file_path="/src/cart.py", line=3, code="parse")],
            build_time=0.5,
        )

    def test_build_success(self, mock_orchestrator, success_result, project_dir, monkeypatch, capsys):
        """Test successful build."""
        mock_orchestrator.build.return_value = success_result
        monkeypatch.setattr(sys, "argv", ["spire", "build", str(project_dir)])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 0
        captured = capsys.readouterr()
        assert f"Spire Build System v{__version__}" in captured.out
        assert "Build successful" in captured.out
        assert "Components: 2" in captured.out
        assert "Files written: 2" in captured.out
        assert "Stale files removed: 1" in captured.out

        config = mock_orchestrator.class_mock.call_args[0][0]
        assert config.src_dir == str((project_dir / "src").resolve())
        assert config.namespace == "Shop"
        assert config.num_workers == 2
        assert config.dev_mode is False
        assert config.watch is False

    def test_build_failure(self, mock_orchestrator, failure_result, project_dir, monkeypatch, capsys):
        """Test failed build exits with 1 and prints diagnostics."""
        mock_orchestrator.build.return_value = failure_result
        monkeypatch.setattr(sys, "argv", ["spire", "build", str(project_dir)])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "Build failed!" in captured.out
        assert "/src/cart.py" in captured.out
        assert "invalid syntax" in captured.out

    def test_build_failure_reports_stage(self, mock_orchestrator, project_dir, monkeypatch, capsys):
        mock_orchestrator.build.return_value = BuildResult(
            success=False,
            diagnostics=[Diagnostic.error("bundler exploded", code="bundle")],
            failed_stage=BuildStage.BUNDLE,
        )
        monkeypatch.setattr(sys, "argv", ["spire", "build", str(project_dir)])

        with pytest.raises(SystemExit):
            main()

        assert "last stage: bundle" in capsys.readouterr().out

    def test_build_dev_mode(self, mock_orchestrator, success_result, project_dir, monkeypatch):
        """Test --dev overrides the project setting."""
        mock_orchestrator.build.return_value = success_result
        monkeypatch.setattr(sys, "argv", ["spire", "build", "--dev", str(project_dir)])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 0
        assert mock_orchestrator.class_mock.call_args[0][0].dev_mode is True

    def test_build_with_verbose(self, mock_orchestrator, success_result, project_dir, monkeypatch, capsys):
        """Test build with verbose flag."""
        mock_orchestrator.build.return_value = success_result
        monkeypatch.setattr(sys, "argv", ["spire", "build", "-v", str(project_dir)])

        with pytest.raises(SystemExit):
            main()

        captured = capsys.readouterr()
        assert "Building project:" in captured.out
        assert "Destination:" in captured.out

    def test_build_watch(self, mock_orchestrator, success_result, project_dir, monkeypatch):
        """Test watch mode rebuilds on change and closes the orchestrator."""
        mock_orchestrator.build.return_value = success_result
        mock_orchestrator.rebuild.return_value = success_result
        monkeypatch.setattr(sys, "argv", ["spire", "build", "--watch", str(project_dir)])

        with patch("spire.cli.Watcher") as mock_watcher_class:
            mock_watcher_class.return_value.watch.side_effect = lambda on_change: on_change(["/src/cart.py"])
            main()

        assert mock_orchestrator.class_mock.call_args[0][0].watch is True
        mock_orchestrator.rebuild.assert_called_once_with(["/src/cart.py"])
        mock_orchestrator.close.assert_called_once()

    def test_build_watch_interrupted(self, mock_orchestrator, success_result, project_dir, monkeypatch):
        mock_orchestrator.build.return_value = success_result
        monkeypatch.setattr(sys, "argv", ["spire", "build", "-w", str(project_dir)])

        with patch("spire.cli.Watcher") as mock_watcher_class:
            mock_watcher_class.return_value.watch.side_effect = KeyboardInterrupt()
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 130
        mock_orchestrator.close.assert_called_once()

    def test_build_missing_project_file(self, tmp_path, monkeypatch, capsys):
        """Test error when spire.ini is missing."""
        monkeypatch.setattr(sys, "argv", ["spire", "build", str(tmp_path)])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "File not found" in captured.out
        assert "spire.ini" in captured.out

    def test_build_invalid_project_file(self, tmp_path, monkeypatch, capsys):
        (tmp_path / "spire.ini").write_text("[spire]\nnamespace = Shop\n")
        monkeypatch.setattr(sys, "argv", ["spire", "build", str(tmp_path)])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "Invalid configuration" in capsys.readouterr().out

    def test_build_unexpected_error(self, mock_orchestrator, project_dir, monkeypatch, capsys):
        mock_orchestrator.build.side_effect = RuntimeError("boom")
        monkeypatch.setattr(sys, "argv", ["spire", "build", str(project_dir)])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "RuntimeError: boom" in capsys.readouterr().out

    def test_build_missing_directory(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["spire", "build", str(tmp_path / "missing")])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 2
        assert "Path does not exist" in capsys.readouterr().out


class TestCLIVersion:
    """Tests for version output."""

    def test_version_command(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["spire", "version"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 0
        assert f"spire {__version__}" in capsys.readouterr().out

    def test_no_command_prints_help(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["spire"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 0
        assert "usage: spire" in capsys.readouterr().out
