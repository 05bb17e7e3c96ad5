"""
Centralized constants for quantumpkg.

This module defines immutable configuration values used across quantumpkg,
including file names, registry and cache locations, network settings, and
logging formats. All values are intended to be treated as read-only.
"""

from typing import Final, Tuple

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "quantum-cli/{version}"

# ---------------------------------------------------------------------------
# Package files
# ---------------------------------------------------------------------------

#: Name of the package manifest file.
MANIFEST_FILE_NAME: Final[str] = "Quantum.toml"

#: Name of the lockfile written next to the manifest.
LOCKFILE_NAME: Final[str] = "Quantum.lock"

#: Schema version written into new lockfiles.
LOCKFILE_VERSION: Final[int] = 1

#: Editions understood by the manifest loader.
SUPPORTED_EDITIONS: Final[Tuple[str, ...]] = ("2024",)

#: Edition assumed when a manifest does not declare one.
DEFAULT_EDITION: Final[str] = "2024"

#: Default optimisation level for ``[build]``.
DEFAULT_OPT_LEVEL: Final[int] = 2

#: Default target address size for ``[build]``.
DEFAULT_ADDRESS_SIZE: Final[int] = 64

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

#: Default package registry.
DEFAULT_REGISTRY_URL: Final[str] = "https://registry.silverbitcoin.org"

#: Download endpoint, relative to the registry URL.
REGISTRY_DOWNLOAD_PATH: Final[str] = "/api/v1/packages/{name}/{version}/download"

# ---------------------------------------------------------------------------
# Resolution and cache
# ---------------------------------------------------------------------------

#: Maximum traversal depth before resolution is aborted.
DEFAULT_MAX_DEPTH: Final[int] = 100

#: Environment variables consulted (in order) for the home directory.
HOME_ENV_VARS: Final[Tuple[str, ...]] = ("HOME", "USERPROFILE")

#: Cache location relative to the home directory.
CACHE_SUBPATH: Final[Tuple[str, ...]] = (".quantum", "cache")

#: Git reference used for the cache identity when none is declared.
DEFAULT_GIT_REF: Final[str] = "HEAD"

#: Characters replaced by ``_`` when building cache identities.
UNSAFE_IDENTITY_CHARS: Final[Tuple[str, ...]] = ("/", "\\", ":")

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Seconds allowed for each git clone or checkout.
DEFAULT_GIT_TIMEOUT: Final[int] = 600

#: Retries for registry downloads. Registry failures are terminal.
DEFAULT_MAX_RETRIES: Final[int] = 0

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading manifests and lockfiles.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
