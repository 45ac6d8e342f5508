"""CLI utility functions for Spire.

This module provides common utilities used across CLI commands including:
- Project file detection (spire.ini)
- Error handling and formatting
- Diagnostic reporting
"""

import sys
from pathlib import Path
from typing import List

from spire.config import SpireConfig
from spire.diagnostics import Diagnostic, DiagnosticLevel

PROJECT_FILE_NAME = "spire.ini"


class ProjectDetector:
    """Handles project file detection."""

    @staticmethod
    def load_project(project_dir: Path) -> SpireConfig:
        """Load the spire.ini of a project directory.

        Args:
            project_dir: Project directory containing spire.ini

        Returns:
            Parsed project configuration

        Raises:
            FileNotFoundError: If spire.ini doesn't exist
            SpireConfigError: If spire.ini is malformed
        """
        ini_path = project_dir / PROJECT_FILE_NAME
        if not ini_path.exists():
            raise FileNotFoundError(f"{PROJECT_FILE_NAME} not found in {project_dir}")
        return SpireConfig(ini_path)


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "File not found", "Build failed")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        print()
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def format_diagnostics(diagnostics: List[Diagnostic]) -> str:
        """Format diagnostics as one line each, errors in red, warnings in yellow."""
        lines = []
        for diagnostic in diagnostics:
            if diagnostic.level == DiagnosticLevel.ERROR:
                color = ErrorFormatter.RED
            elif diagnostic.level == DiagnosticLevel.WARNING:
                color = ErrorFormatter.YELLOW
            else:
                color = ""
            reset = ErrorFormatter.RESET if color else ""
            lines.append(f"{color}{diagnostic.level.value}{reset}: {diagnostic.format()}")
        return "\n".join(lines)

    @staticmethod
    def handle_file_not_found(error: FileNotFoundError) -> None:
        ErrorFormatter.print_error("Error: File not found", str(error))
        print(f"Make sure you're in a Spire project directory with a {PROJECT_FILE_NAME} file.")
        sys.exit(1)

    @staticmethod
    def handle_config_error(error: Exception) -> None:
        ErrorFormatter.print_error("Error: Invalid configuration", str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Build interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class PathValidator:
    """Validates project paths and directories."""

    @staticmethod
    def validate_project_dir(project_dir: Path) -> None:
        """Validate that project directory exists and is a directory.

        Raises:
            SystemExit: If path doesn't exist or isn't a directory
        """
        if not project_dir.exists():
            print(f"{ErrorFormatter.RED}✗ Error: Path does not exist: {project_dir}{ErrorFormatter.RESET}")
            sys.exit(2)
        if not project_dir.is_dir():
            print(f"{ErrorFormatter.RED}✗ Error: Path is not a directory: {project_dir}{ErrorFormatter.RESET}")
            sys.exit(2)
