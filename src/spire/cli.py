"""
Command-line interface for Spire.

This module provides the `spire` CLI tool for building component projects.
"""

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from spire import __version__
from spire.build import BuildOrchestrator, BuildResult, Watcher
from spire.cli_utils import ErrorFormatter, PathValidator, ProjectDetector
from spire.config import SpireConfigError
from spire.errors import ConfigError
from spire.log import setup_logging


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    project_dir: Path
    dev: bool = False
    watch: bool = False
    verbose: bool = False
    log_file: Optional[Path] = None


def report_result(result: BuildResult) -> None:
    """Print the end-of-build summary."""
    if result.diagnostics:
        print(ErrorFormatter.format_diagnostics(result.diagnostics))

    if result.success:
        ErrorFormatter.print_success("Build successful!")
        print(f"Components: {len(result.manifest.components) if result.manifest else 0}")
        print(f"Files written: {len(result.files_written)}")
        if result.files_deleted:
            print(f"Stale files removed: {len(result.files_deleted)}")
        print(f"Build time: {result.build_time:.2f}s")
    else:
        stage = result.failed_stage.value if result.failed_stage else "compile"
        ErrorFormatter.print_error("Build failed!", f"{len(result.errors)} error(s), last stage: {stage}")


def build_command(args: BuildArgs) -> None:
    """Build a component project.

    Examples:
        spire build                    # Build the project in the current directory
        spire build examples/todo      # Build a specific project
        spire build --dev              # Dev build (additive writes, readable bundle ids)
        spire build --watch            # Rebuild on change
        spire build --verbose          # Debug logging
    """
    print(f"Spire Build System v{__version__}")
    print()

    setup_logging(verbose=args.verbose, log_file=args.log_file)

    try:
        project = ProjectDetector.load_project(args.project_dir)
        dev_mode = True if args.dev else None
        config = project.to_build_config(dev_mode=dev_mode, watch=args.watch)

        if args.verbose:
            print(f"Building project: {args.project_dir}")
            print(f"Source: {config.src_dir}")
            print(f"Destination: {config.dest_dir}")
            print()

        orchestrator = BuildOrchestrator(config)
        result = orchestrator.build()
        report_result(result)

        if not args.watch:
            sys.exit(0 if result.success else 1)

        watcher = Watcher(
            config.system.fs,
            config.system.path,
            [config.src_dir],
            exclude=[config.dest_dir],
        )
        try:
            watcher.watch(lambda changed: report_result(orchestrator.rebuild(changed)))
        finally:
            orchestrator.close()

    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except (SpireConfigError, ConfigError) as e:
        ErrorFormatter.handle_config_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def main() -> None:
    """Spire - build pipeline for annotated component modules."""
    parser = argparse.ArgumentParser(
        prog="spire",
        description="Spire - build pipeline for annotated component modules",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"spire {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build a component project",
    )
    build_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    build_parser.add_argument(
        "--dev",
        action="store_true",
        help="Dev mode: additive writes, no pruning",
    )
    build_parser.add_argument(
        "-w",
        "--watch",
        action="store_true",
        help="Rebuild when source files change",
    )
    build_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to a rotating log file",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose build output",
    )

    # Version command
    subparsers.add_parser(
        "version",
        help="Show the Spire version",
    )

    # Parse arguments
    parsed_args = parser.parse_args()

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    if parsed_args.command == "version":
        print(f"spire {__version__}")
        sys.exit(0)

    # Validate project directory exists
    PathValidator.validate_project_dir(parsed_args.project_dir)

    if parsed_args.command == "build":
        build_args = BuildArgs(
            project_dir=parsed_args.project_dir,
            dev=parsed_args.dev,
            watch=parsed_args.watch,
            verbose=parsed_args.verbose,
            log_file=parsed_args.log_file,
        )
        build_command(build_args)


if __name__ == "__main__":
    main()
