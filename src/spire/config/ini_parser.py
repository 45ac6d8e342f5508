"""
spire.ini configuration parser.

This module provides functionality to parse spire.ini project files and turn
them into a BuildConfig.
"""

import configparser
from pathlib import Path
from typing import List, Optional

import psutil

from ..system import BuildSystem, default_system
from .build_config import BuildConfig, normalize_bundles


class SpireConfigError(Exception):
    """Exception raised for spire.ini configuration errors."""

    pass


def default_worker_count() -> int:
    """Number of workers used for `workers = auto`.

    One worker per physical core, leaving one core for the orchestrator.
    """
    cores = psutil.cpu_count(logical=False) or psutil.cpu_count() or 1
    return max(1, cores - 1)


class SpireConfig:
    """
    Parser for spire.ini configuration files.

    Example spire.ini:
        [spire]
        src_dir = src
        dest_dir = www/build
        namespace = App
        collections =
            ui-core
            https://cdn.example.com/widgets
        bundles =
            my-app, my-header
            my-footer
        workers = auto

    Usage:
        config = SpireConfig(Path("spire.ini"))
        build_config = config.to_build_config(dev_mode=True)
    """

    SECTION = "spire"
    REQUIRED_FIELDS = {"src_dir"}

    def __init__(self, ini_path: Path):
        """
        Initialize the parser with a spire.ini file.

        Args:
            ini_path: Path to the spire.ini file

        Raises:
            SpireConfigError: If the file doesn't exist or cannot be parsed
        """
        self.ini_path = Path(ini_path)

        if not self.ini_path.exists():
            raise SpireConfigError(f"Configuration file not found: {self.ini_path}")

        self.config = configparser.ConfigParser(
            allow_no_value=True, interpolation=configparser.ExtendedInterpolation()
        )

        try:
            self.config.read(self.ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise SpireConfigError(f"Failed to parse {self.ini_path}: {e}") from e

        if self.SECTION not in self.config:
            raise SpireConfigError(f"Missing [{self.SECTION}] section in {self.ini_path}")

        missing_fields = self.REQUIRED_FIELDS - set(self.config[self.SECTION].keys())
        if missing_fields:
            raise SpireConfigError(
                f"[{self.SECTION}] is missing required fields: "
                + f"{', '.join(sorted(missing_fields))}"
            )

    @property
    def project_dir(self) -> Path:
        return self.ini_path.parent.resolve()

    def _get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.config[self.SECTION].get(key, default)
        if value is None:
            return default
        return value.strip()

    def get_src_dir(self) -> Path:
        """Source directory, resolved against the project directory."""
        return (self.project_dir / self._get("src_dir")).resolve()

    def get_dest_dir(self) -> Path:
        """Destination directory (default: www/build)."""
        return (self.project_dir / (self._get("dest_dir") or "www/build")).resolve()

    def get_namespace(self) -> Optional[str]:
        return self._get("namespace") or None

    def get_collections(self) -> List[str]:
        """
        Parse and return collection dependencies.

        Example:
            For collections =
                ui-core
                widgets, icons
            Returns: ['ui-core', 'widgets', 'icons']
        """
        collections_str = self._get("collections", "")
        if not collections_str:
            return []

        collections = []
        for line in collections_str.split("\n"):
            for item in line.split(","):
                item = item.strip()
                if item:
                    collections.append(item)
        return collections

    def get_bundles(self) -> List[List[str]]:
        """
        Parse bundle groups, one group per line with comma separated tags.

        Example:
            For bundles =
                my-app, my-header
                my-footer
            Returns: [['my-app', 'my-header'], ['my-footer']]
        """
        bundles_str = self._get("bundles", "")
        if not bundles_str:
            return []

        bundles = []
        for line in bundles_str.split("\n"):
            tags = [tag.strip() for tag in line.split(",") if tag.strip()]
            if tags:
                bundles.append(tags)
        return bundles

    def get_workers(self) -> int:
        """
        Worker pool size: an integer, `auto`, or 0 for inline compilation.

        Raises:
            SpireConfigError: If the value is not an integer or `auto`
        """
        value = self._get("workers", "0")
        if value.lower() == "auto":
            return default_worker_count()
        try:
            workers = int(value)
        except ValueError:
            raise SpireConfigError(f"Invalid workers value: {value!r} (expected integer or 'auto')")
        if workers < 0:
            raise SpireConfigError(f"Invalid workers value: {workers} (must not be negative)")
        return workers

    def get_dev_mode(self) -> bool:
        try:
            return self.config[self.SECTION].getboolean("dev_mode", fallback=False)
        except ValueError as e:
            raise SpireConfigError(f"Invalid dev_mode value: {e}") from e

    def to_build_config(
        self,
        dev_mode: Optional[bool] = None,
        watch: bool = False,
        system: Optional[BuildSystem] = None,
    ) -> BuildConfig:
        """
        Create a BuildConfig from this file.

        Args:
            dev_mode: Override the dev_mode setting of the file
            watch: Whether the build runs in watch mode
            system: Platform capabilities (defaults to the local machine)

        Returns:
            BuildConfig ready for validation
        """
        return BuildConfig(
            src_dir=str(self.get_src_dir()),
            dest_dir=str(self.get_dest_dir()),
            root_dir=str(self.project_dir),
            namespace=self.get_namespace(),
            collections=tuple(self.get_collections()),
            bundles=normalize_bundles(self.get_bundles()),
            dev_mode=self.get_dev_mode() if dev_mode is None else dev_mode,
            watch=watch,
            num_workers=self.get_workers(),
            system=system or default_system(),
        )
