"""
Settings for the ``quantum`` CLI.

Settings live in their own ``quantumpkg.toml`` (table ``[quantumpkg]``) or
inside the project manifest ``Quantum.toml`` (table ``[tool.quantumpkg]``).
The first of these wins:

1. the file named by ``--config`` / ``QUANTUM_CONFIG``
2. ``./quantumpkg.toml``
3. ``./Quantum.toml``, if it has a ``[tool.quantumpkg]`` table

Example (``quantumpkg.toml``)::

    [quantumpkg]
    cache_dir = "/var/cache/quantum"
    registry_url = "https://registry.internal.example"
    max_depth = 50
    timeout = 10

Library code never reads this module: the resolver and cache receive their
settings from the caller. Only the CLI turns a :class:`QuantumConfig` into
objects.
"""

from __future__ import annotations

import os
import tomli as tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from quantumpkg.exceptions import ConfigError
from quantumpkg.utils.logger import get_logger
from quantumpkg.constants import (
    CACHE_SUBPATH,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REGISTRY_URL,
    DEFAULT_GIT_TIMEOUT,
    DEFAULT_TIMEOUT,
    HOME_ENV_VARS,
    MANIFEST_FILE_NAME,
)

logger = get_logger("config")

CONFIG_FILE_NAME = "quantumpkg.toml"
CONFIG_SECTION = "quantumpkg"


@dataclass
class QuantumConfig:
    """Validated quantumpkg settings; every field has a default.

    Attributes:
        cache_dir: Cache root. ``None`` means the home-directory default.
        registry_url: Default package registry.
        max_depth: Resolution depth bound.
        timeout: Registry request timeout in seconds.
        max_retries: Registry retries; ``0`` makes failures terminal.
        git_timeout: Seconds allowed for each git clone or checkout.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    cache_dir: Optional[Path] = None
    registry_url: str = DEFAULT_REGISTRY_URL
    max_depth: int = DEFAULT_MAX_DEPTH
    timeout: int = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    git_timeout: int = DEFAULT_GIT_TIMEOUT

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def resolved_cache_dir(self, environ: Optional[Mapping[str, str]] = None) -> Path:
        """Return :attr:`cache_dir`, or the default under the home directory."""
        if self.cache_dir is not None:
            return self.cache_dir
        return default_cache_dir(environ)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging."""
        return {
            "cache_dir": str(self.cache_dir) if self.cache_dir else None,
            "registry_url": self.registry_url,
            "max_depth": self.max_depth,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            "git_timeout": self.git_timeout,
        }


def default_cache_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return ``<home>/.quantum/cache``.

    The home directory comes from ``HOME``, falling back to ``USERPROFILE``.

    Raises:
        ConfigError: Neither variable is set.
    """
    env = os.environ if environ is None else environ
    for var in HOME_ENV_VARS:
        home = env.get(var)
        if home:
            return Path(home).joinpath(*CACHE_SUBPATH)

    raise ConfigError(
        "Failed to get home directory: set HOME (or USERPROFILE) or configure cache_dir",
        option="cache_dir",
    )


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Return the settings file to read, or ``None`` when there is none.

    An ``explicit_path`` is used as given and must be an existing file;
    otherwise the current directory is searched in the order listed in the
    module docstring.

    Raises:
        ConfigError: ``explicit_path`` does not name a file.
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

    own_file = cwd / CONFIG_FILE_NAME
    if own_file.is_file():
        logger.debug("Found %s: %s", CONFIG_FILE_NAME, own_file)
        return own_file

    manifest = cwd / MANIFEST_FILE_NAME
    if manifest.is_file() and _manifest_has_tool_section(manifest):
        logger.debug("Found [tool.%s] in %s", CONFIG_SECTION, manifest)
        return manifest

    logger.debug("No configuration file found")
    return None


def _manifest_has_tool_section(path: Path) -> bool:
    """Check whether ``Quantum.toml`` carries a ``[tool.quantumpkg]`` table.

    Parse errors mean "no"; the manifest loader reports them properly later.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    tool = raw.get("tool", {})
    return isinstance(tool, dict) and CONFIG_SECTION in tool


def load_config(config_path: Optional[Path] = None) -> QuantumConfig:
    """Read the settings file (see :func:`discover_config_file`) into a :class:`QuantumConfig`.

    Missing files and missing tables yield the defaults.

    Raises:
        ConfigError: Unreadable TOML, unknown keys or out-of-range values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return QuantumConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == MANIFEST_FILE_NAME:
        section = raw.get("tool", {}).get(CONFIG_SECTION, {})
    else:
        section = raw.get(CONFIG_SECTION, {})

    if not section:
        logger.debug("Config file found but no %s section; using defaults", CONFIG_SECTION)
        return QuantumConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved), base_dir=resolved.parent)
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


_INT_OPTIONS = {
    "max_depth": 0,
    "timeout": 1,
    "max_retries": 0,
    "git_timeout": 1,
}


def _parse_section(
    section: Mapping[str, Any],
    *,
    config_path: str,
    base_dir: Optional[Path] = None,
) -> QuantumConfig:
    """Validate a ``[quantumpkg]`` table.

    A relative ``cache_dir`` is taken relative to the config file.

    Raises:
        ConfigError: Unknown keys, wrong types or out-of-range values.
    """
    config = QuantumConfig()

    known = {"cache_dir", "registry_url", *_INT_OPTIONS}
    unknown = set(section.keys()) - known
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    for option in ("cache_dir", "registry_url"):
        if option in section:
            val = section[option]
            if not isinstance(val, str) or not val:
                raise ConfigError(
                    f"{option} must be a non-empty string, got {type(val).__name__}",
                    config_path=config_path,
                    option=option,
                )

    if "cache_dir" in section:
        cache_dir = Path(section["cache_dir"]).expanduser()
        if not cache_dir.is_absolute() and base_dir is not None:
            cache_dir = base_dir / cache_dir
        config.cache_dir = cache_dir

    if "registry_url" in section:
        config.registry_url = section["registry_url"].rstrip("/")

    for option, minimum in _INT_OPTIONS.items():
        if option not in section:
            continue
        val = section[option]
        if isinstance(val, bool) or not isinstance(val, int):
            raise ConfigError(
                f"{option} must be an integer, got {type(val).__name__}",
                config_path=config_path,
                option=option,
            )
        if val < minimum:
            raise ConfigError(
                f"{option} must be >= {minimum}, got {val}",
                config_path=config_path,
                option=option,
            )
        setattr(config, option, val)

    return config
