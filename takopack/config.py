"""Configuration file loader for takopack.

Handles discovery, loading, parsing and validation of configuration files.
Supports two formats:

- ``takopack.toml`` — settings under ``[takopack]`` table
- ``pyproject.toml`` — settings under ``[tool.takopack]`` table

Discovery order:

1. Explicit path from ``--config`` or ``TAKOPACK_CONFIG``
2. ``takopack.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.takopack]`` section

The resulting :class:`TakopackConfig` is passed explicitly to every
translation and walk entry point; nothing reads process-wide state.

Example (``takopack.toml``)::

    [takopack]
    collapse_features = false
    testing = true
    registry_prefixes = ["registry+", "sparse+"]
    database_path = "~/.config/takopack/crate_db.txt"
"""

from __future__ import annotations

import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

import click

from takopack.exceptions import ConfigError
from takopack.utils.logger import get_logger
from takopack.constants import (
    DATABASE_FILENAME,
    DEFAULT_BACKUP_DATABASE,
    DEFAULT_COLLAPSE_FEATURES,
    DEFAULT_EPOCH_MARKER,
    DEFAULT_TESTING,
    EPOCH_MARKER,
    PACKAGE_PREFIX,
    REGISTRY_SOURCE_PREFIXES,
    TESTING_PACKAGE_PREFIX,
)

logger = get_logger("config")


@dataclass
class TakopackConfig:
    """Parsed and validated takopack configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        collapse_features: Merge every feature into the base package
            instead of reducing the feature graph.
        testing: Generate ``ruzt-`` prefixed packages that never clash
            with real archive packages.
        epoch_marker: Append ``-~~`` to every rendered range bound.
        registry_prefixes: Lockfile ``source`` prefixes accepted as the
            public registry.
        database_path: Location of the crate version database. ``None``
            selects the per-user application directory.
        backup_database: Keep timestamped backups when rewriting the
            database.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    collapse_features: bool = DEFAULT_COLLAPSE_FEATURES
    testing: bool = DEFAULT_TESTING
    epoch_marker: bool = DEFAULT_EPOCH_MARKER
    registry_prefixes: List[str] = field(
        default_factory=lambda: list(REGISTRY_SOURCE_PREFIXES)
    )
    database_path: Optional[Path] = None
    backup_database: bool = DEFAULT_BACKUP_DATABASE

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    @property
    def package_prefix(self) -> str:
        """Prefix of every generated package name."""
        return TESTING_PACKAGE_PREFIX if self.testing else PACKAGE_PREFIX

    @property
    def marker(self) -> str:
        """Suffix appended to rendered bounds."""
        return EPOCH_MARKER if self.epoch_marker else ""

    def resolved_database_path(self) -> Path:
        """Return the database location, falling back to the app directory."""
        if self.database_path is not None:
            return self.database_path.expanduser()
        return Path(click.get_app_dir("takopack")) / DATABASE_FILENAME

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging."""
        return {
            "collapse_features": self.collapse_features,
            "testing": self.testing,
            "epoch_marker": self.epoch_marker,
            "registry_prefixes": list(self.registry_prefixes),
            "database_path": str(self.database_path) if self.database_path else None,
            "backup_database": self.backup_database,
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    takopack_toml = cwd / "takopack.toml"
    if takopack_toml.is_file():
        logger.debug("Found takopack.toml: %s", takopack_toml)
        return takopack_toml

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_takopack_section(pyproject_toml):
        logger.debug("Found [tool.takopack] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_takopack_section(path: Path) -> bool:
    """Check if pyproject.toml contains a ``[tool.takopack]`` section.

    Parse errors fall back to ``False`` so a broken unrelated pyproject
    never blocks the tool.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    return "takopack" in raw.get("tool", {})


def load_config(config_path: Optional[Path] = None) -> TakopackConfig:
    """Load and validate takopack configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`TakopackConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return TakopackConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get("takopack", {})
    else:
        section = raw.get("takopack", {})

    if not section:
        logger.debug("Config file found but no takopack section, using defaults")
        return TakopackConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


_BOOL_OPTIONS = ("collapse_features", "testing", "epoch_marker", "backup_database")


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> TakopackConfig:
    """Parse and validate the ``[takopack]`` or ``[tool.takopack]`` table.

    Raises:
        ConfigError: Unknown keys or incorrect types.
    """
    config = TakopackConfig()

    known_top = set(_BOOL_OPTIONS) | {"registry_prefixes", "database_path"}

    unknown_top = set(section.keys()) - known_top
    if unknown_top:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown_top))}",
            config_path=config_path,
        )

    for option in _BOOL_OPTIONS:
        if option not in section:
            continue
        val = section[option]
        if not isinstance(val, bool):
            raise ConfigError(
                f"{option} must be a boolean, got {type(val).__name__}",
                config_path=config_path,
                option=option,
            )
        setattr(config, option, val)

    if "registry_prefixes" in section:
        val = section["registry_prefixes"]
        if not isinstance(val, list) or not all(isinstance(v, str) for v in val):
            raise ConfigError(
                "registry_prefixes must be a list of strings",
                config_path=config_path,
                option="registry_prefixes",
            )
        if not val:
            raise ConfigError(
                "registry_prefixes must not be empty",
                config_path=config_path,
                option="registry_prefixes",
            )
        config.registry_prefixes = list(val)

    if "database_path" in section:
        val = section["database_path"]
        if not isinstance(val, str):
            raise ConfigError(
                f"database_path must be a string, got {type(val).__name__}",
                config_path=config_path,
                option="database_path",
            )
        config.database_path = Path(val)

    return config
