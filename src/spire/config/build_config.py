"""
Build configuration.

BuildConfig is an immutable snapshot of everything a build needs. It is
validated once, at the start of a build, by validate_build_config() which
returns a normalized copy with defaults filled in.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from ..errors import ConfigError
from ..system import BuildSystem

DEFAULT_NAMESPACE = "App"

# Capabilities a build cannot run without, in the order they are checked
REQUIRED_CAPABILITIES = ("fs", "path", "style_compiler", "bundler", "type_checker")


@dataclass(frozen=True)
class BuildConfig:
    """Configuration for a single build (or watch session).

    Attributes:
        src_dir: Directory holding the annotated source modules
        dest_dir: Output directory (defaults to <root_dir>/www/build)
        root_dir: Project root, used to locate local collections
        namespace: Namespace of the generated loader and bundle directory
        collections: Dependency collection identifiers (names, paths or URLs)
        bundles: Groups of component tags bundled together
        dev_mode: Additive writes (True) or diff-and-prune writes (False)
        watch: Keep the worker pool and file host alive between builds
        num_workers: Worker pool size; 0 or None runs tasks inline
        system: Platform capabilities
    """

    src_dir: Optional[str] = None
    dest_dir: Optional[str] = None
    root_dir: Optional[str] = None
    namespace: Optional[str] = None
    collections: Tuple[str, ...] = ()
    bundles: Tuple[Tuple[str, ...], ...] = ()
    dev_mode: bool = False
    watch: bool = False
    num_workers: Optional[int] = None
    system: Optional[BuildSystem] = field(default=None, compare=False)

    @property
    def mode_name(self) -> str:
        return "dev" if self.dev_mode else "prod"


def validate_build_config(config: BuildConfig) -> BuildConfig:
    """Validate a build configuration and fill in defaults.

    Args:
        config: Configuration to validate

    Returns:
        Normalized copy of the configuration (absolute directories,
        default namespace, tuple collections and bundles)

    Raises:
        ConfigError: If a required field or capability is missing
    """
    if not config.src_dir:
        raise ConfigError("config.src_dir required")
    if not config.system:
        raise ConfigError("config.system required")
    for capability in REQUIRED_CAPABILITIES:
        if not getattr(config.system, capability, None):
            raise ConfigError(f"config.system.{capability} required")

    path = config.system.path

    src_dir = path.normpath(path.abspath(config.src_dir))
    root_dir = path.normpath(path.abspath(config.root_dir or path.dirname(src_dir)))
    dest_dir = config.dest_dir or path.join(root_dir, "www", "build")
    dest_dir = path.normpath(path.abspath(dest_dir))

    if dest_dir == src_dir or _is_within(src_dir, dest_dir, path.sep):
        raise ConfigError(f"config.dest_dir must not contain config.src_dir: {dest_dir}")
    if _is_within(root_dir, dest_dir, path.sep):
        raise ConfigError(f"config.dest_dir must not be the project root or one of its parents: {dest_dir}")

    namespace = (config.namespace or DEFAULT_NAMESPACE).strip() or DEFAULT_NAMESPACE

    num_workers = config.num_workers or 0
    if num_workers < 0:
        raise ConfigError(f"config.num_workers must not be negative: {num_workers}")

    return replace(
        config,
        src_dir=src_dir,
        dest_dir=dest_dir,
        root_dir=root_dir,
        namespace=namespace,
        collections=tuple(config.collections or ()),
        bundles=tuple(tuple(group) for group in (config.bundles or ())),
        num_workers=num_workers,
    )


def normalize_bundles(bundles: Optional[List[List[str]]]) -> Tuple[Tuple[str, ...], ...]:
    """Convert nested lists of tags into the tuple form used by BuildConfig."""
    return tuple(tuple(tag.strip().lower() for tag in group if tag.strip()) for group in (bundles or []))


def _is_within(child: str, parent: str, sep: str) -> bool:
    """True if normalized path child is parent itself or lies below it."""
    return child == parent or child.startswith(parent.rstrip(sep) + sep)
