"""Configuration management for beanjump indexing and resolution."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

CONFIG_FILE_NAME = ".beanjump"

DEFAULT_EXCLUDE_DIRS = (
    ".git",
    ".gradle",
    ".idea",
    "build",
    "node_modules",
    "out",
    "target",
)


@dataclass
class IndexingConfig:
    """Configuration for walking a project.

    Attributes:
        exclude_dirs: Directory names skipped anywhere in the tree.
        quick_scan: Skip the full parse for files without any relevant
            annotation text.
    """
    exclude_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    quick_scan: bool = True


@dataclass
class ResolutionConfig:
    """Configuration for the resolver.

    Attributes:
        subtype_matching: Offer beans whose declared supertypes match the
            requested type (score 60).
    """
    subtype_matching: bool = True


@dataclass
class BeanJumpConfig:
    indexing: IndexingConfig = field(default_factory=IndexingConfig)
    resolution: ResolutionConfig = field(default_factory=ResolutionConfig)


def load_config(project_root: Path | None = None) -> BeanJumpConfig:
    """Load configuration from the .beanjump file in the project root.

    Args:
        project_root: Path to project root. If None, uses current directory.

    Returns:
        BeanJumpConfig with loaded or default values.

    Notes:
        If .beanjump doesn't exist or can't be parsed, returns default config.
        Expected YAML structure:

        ```yaml
        indexing:
          exclude_dirs: [build, target]
          quick_scan: true
        resolution:
          subtype_matching: true
        ```
    """
    if project_root is None:
        project_root = Path.cwd()

    config_path = project_root / CONFIG_FILE_NAME

    if not config_path.exists():
        return BeanJumpConfig()

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            return BeanJumpConfig()

        indexing = data.get("indexing", {})
        if not isinstance(indexing, dict):
            indexing = {}
        resolution = data.get("resolution", {})
        if not isinstance(resolution, dict):
            resolution = {}

        exclude_dirs = indexing.get("exclude_dirs", list(DEFAULT_EXCLUDE_DIRS))
        if not isinstance(exclude_dirs, list):
            exclude_dirs = list(DEFAULT_EXCLUDE_DIRS)

        return BeanJumpConfig(
            indexing=IndexingConfig(
                exclude_dirs=[str(d) for d in exclude_dirs],
                quick_scan=bool(indexing.get("quick_scan", True)),
            ),
            resolution=ResolutionConfig(
                subtype_matching=bool(resolution.get("subtype_matching", True)),
            ),
        )
    except (yaml.YAMLError, OSError, KeyError, TypeError, ValueError):
        # Return default config on any parsing errors
        return BeanJumpConfig()
