"""
Package manifest model for quantumpkg.

Parses and validates ``Quantum.toml``::

    [package]
    name = "vault"
    version = "0.3.0"

    [dependencies]
    coin = "1.2.0"
    math = { path = "../math" }
    oracle = { git = "https://example.org/oracle.git", tag = "v2" }

    [dev-dependencies]
    testkit = "0.1.0"

Every problem with the file, from bad TOML to an unsupported edition, is
reported as :class:`~quantumpkg.exceptions.ParseError` naming the file.
"""

from __future__ import annotations

import re
import tomli as tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from quantumpkg.models.dependency import SourceKind
from quantumpkg.exceptions import FileOperationError, ParseError, SpecError
from quantumpkg.utils.filesystem import safe_read_file
from quantumpkg.constants import (
    DEFAULT_ADDRESS_SIZE,
    DEFAULT_EDITION,
    DEFAULT_OPT_LEVEL,
    MANIFEST_FILE_NAME,
    SUPPORTED_EDITIONS,
)

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")

_DEPENDENCY_KEYS = ("version", "git", "branch", "tag", "rev", "path", "registry")


def is_valid_version(version: str) -> bool:
    """Return True for ``MAJOR.MINOR.PATCH`` made of non-negative integers."""
    return bool(_VERSION_PATTERN.match(version))


# ---------------------------------------------------------------------------
# Dependency declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DependencySpec:
    """One entry of a ``[dependencies]`` table.

    A bare string ``"1.2.0"`` becomes ``DependencySpec(name, version="1.2.0")``.

    Attributes:
        name: Key the dependency was declared under.
        version: Exact registry version.
        git: Repository URL.
        branch: Branch to clone.
        tag: Tag; only used to tell cached clones apart.
        rev: Revision checked out after cloning.
        path: Local directory, relative to the declaring manifest.
        registry: Alternative registry URL for this dependency.
    """

    name: str
    version: Optional[str] = None
    git: Optional[str] = None
    branch: Optional[str] = None
    tag: Optional[str] = None
    rev: Optional[str] = None
    path: Optional[str] = None
    registry: Optional[str] = None

    @classmethod
    def from_raw(
        cls,
        name: str,
        raw: Union[str, Mapping[str, Any]],
        *,
        file_path: Optional[str] = None,
    ) -> "DependencySpec":
        """Build a spec from the TOML value found under ``name``.

        Raises:
            ParseError: ``raw`` is neither a string nor a table, or a table
                field is not a string.
        """
        if isinstance(raw, str):
            return cls(name=name, version=raw)

        if not isinstance(raw, Mapping):
            raise ParseError(
                f"Dependency '{name}' must be a version string or a table, "
                f"got {type(raw).__name__}",
                file_path=file_path,
            )

        values: Dict[str, Optional[str]] = {}
        for key in _DEPENDENCY_KEYS:
            value = raw.get(key)
            if value is not None and not isinstance(value, str):
                raise ParseError(
                    f"Dependency '{name}': '{key}' must be a string, "
                    f"got {type(value).__name__}",
                    file_path=file_path,
                )
            values[key] = value

        return cls(name=name, **values)

    @property
    def source_kind(self) -> SourceKind:
        """Resolution variant: ``path`` beats ``git`` beats ``version``.

        Raises:
            SpecError: None of ``path``, ``git`` or ``version`` is set.
        """
        if self.path is not None:
            return SourceKind.PATH
        if self.git is not None:
            return SourceKind.GIT
        if self.version is not None:
            return SourceKind.REGISTRY
        raise SpecError(
            f"Invalid dependency specification for '{self.name}': "
            "expected one of 'version', 'git' or 'path'",
            dependency=self.name,
            step="spec",
        )

    @property
    def git_ref(self) -> Optional[str]:
        """Declared git reference, by priority branch > tag > rev."""
        return self.branch or self.tag or self.rev


# ---------------------------------------------------------------------------
# Manifest sections
# ---------------------------------------------------------------------------


@dataclass
class PackageMetadata:
    """The ``[package]`` table."""

    name: str
    version: str
    authors: List[str] = field(default_factory=list)
    description: Optional[str] = None
    license: Optional[str] = None
    repository: Optional[str] = None
    homepage: Optional[str] = None
    edition: str = DEFAULT_EDITION


@dataclass
class BuildConfig:
    """The ``[build]`` table."""

    opt_level: int = DEFAULT_OPT_LEVEL
    debug: bool = False
    address_size: int = DEFAULT_ADDRESS_SIZE


@dataclass
class Manifest:
    """A parsed and validated ``Quantum.toml``.

    Attributes:
        package: Package metadata.
        dependencies: Production dependencies, keyed by declared name.
        dev_dependencies: Development-only dependencies. Never traversed
            by the resolver.
        build: Build settings.
        root: Directory the manifest was loaded from, if any.
    """

    package: PackageMetadata
    dependencies: Dict[str, DependencySpec] = field(default_factory=dict)
    dev_dependencies: Dict[str, DependencySpec] = field(default_factory=dict)
    build: BuildConfig = field(default_factory=BuildConfig)
    root: Optional[Path] = field(default=None, compare=False)

    @property
    def name(self) -> str:
        return self.package.name

    @property
    def version(self) -> str:
        return self.package.version

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Manifest":
        """Load a manifest from a ``Quantum.toml`` file or its directory.

        Raises:
            ParseError: The file is missing, unreadable, not valid TOML or
                fails validation.
        """
        manifest_path = Path(path)
        if manifest_path.is_dir():
            manifest_path = manifest_path / MANIFEST_FILE_NAME

        try:
            content = safe_read_file(manifest_path)
        except FileOperationError as exc:
            raise ParseError(
                f"Failed to read {MANIFEST_FILE_NAME}: {exc.message}",
                file_path=str(manifest_path),
            ) from exc

        manifest = cls.from_toml(content, file_path=str(manifest_path))
        manifest.root = manifest_path.parent
        return manifest

    @classmethod
    def from_toml(cls, content: str, *, file_path: Optional[str] = None) -> "Manifest":
        """Parse manifest text."""
        try:
            raw = tomllib.loads(content)
        except tomllib.TOMLDecodeError as exc:
            raise ParseError(
                f"Failed to parse {MANIFEST_FILE_NAME}: {exc}",
                file_path=file_path,
            ) from exc
        return cls.from_dict(raw, file_path=file_path)

    @classmethod
    def from_dict(
        cls,
        raw: Mapping[str, Any],
        *,
        file_path: Optional[str] = None,
    ) -> "Manifest":
        """Build and validate a manifest from already-parsed TOML data."""
        package_raw = raw.get("package")
        if not isinstance(package_raw, Mapping):
            raise ParseError("Missing [package] table", file_path=file_path)

        package = _parse_package(package_raw, file_path=file_path)
        build = _parse_build(raw.get("build", {}), file_path=file_path)

        manifest = cls(
            package=package,
            dependencies=_parse_dependencies(
                raw.get("dependencies", {}), "dependencies", file_path=file_path
            ),
            dev_dependencies=_parse_dependencies(
                raw.get("dev-dependencies", {}), "dev-dependencies", file_path=file_path
            ),
            build=build,
        )
        manifest.validate(file_path=file_path)
        return manifest

    def validate(self, *, file_path: Optional[str] = None) -> None:
        """Check name, version, edition and build settings."""
        name = self.package.name
        if not name:
            raise ParseError("Package name cannot be empty", file_path=file_path)

        if not _NAME_PATTERN.match(name):
            raise ParseError(
                "Package name can only contain alphanumeric characters, "
                f"underscores, and hyphens: {name!r}",
                file_path=file_path,
            )

        if not is_valid_version(self.package.version):
            raise ParseError(
                f"Invalid version format: {self.package.version}",
                file_path=file_path,
            )

        if self.package.edition not in SUPPORTED_EDITIONS:
            raise ParseError(
                f"Unsupported edition: {self.package.edition}",
                file_path=file_path,
            )

        if not 0 <= self.build.opt_level <= 3:
            raise ParseError("Optimization level must be 0-3", file_path=file_path)

        if self.build.address_size not in (32, 64):
            raise ParseError("Address size must be 32 or 64", file_path=file_path)

    def all_dependencies(self) -> Dict[str, DependencySpec]:
        """Production and development dependencies; dev entries win on clashes."""
        merged = dict(self.dependencies)
        merged.update(self.dev_dependencies)
        return merged


# ---------------------------------------------------------------------------
# Section parsers
# ---------------------------------------------------------------------------


def _expect_str(
    table: Mapping[str, Any],
    key: str,
    *,
    section: str,
    file_path: Optional[str],
    required: bool = False,
) -> Optional[str]:
    value = table.get(key)
    if value is None:
        if required:
            raise ParseError(f"Missing '{key}' in [{section}]", file_path=file_path)
        return None
    if not isinstance(value, str):
        raise ParseError(
            f"'{key}' in [{section}] must be a string, got {type(value).__name__}",
            file_path=file_path,
        )
    return value


def _parse_package(raw: Mapping[str, Any], *, file_path: Optional[str]) -> PackageMetadata:
    authors = raw.get("authors", [])
    if not isinstance(authors, list) or not all(isinstance(a, str) for a in authors):
        raise ParseError("'authors' in [package] must be a list of strings", file_path=file_path)

    def text(key: str, required: bool = False) -> Optional[str]:
        return _expect_str(raw, key, section="package", file_path=file_path, required=required)

    return PackageMetadata(
        name=text("name", required=True) or "",
        version=text("version", required=True) or "",
        authors=list(authors),
        description=text("description"),
        license=text("license"),
        repository=text("repository"),
        homepage=text("homepage"),
        edition=text("edition") or DEFAULT_EDITION,
    )


def _parse_build(raw: Any, *, file_path: Optional[str]) -> BuildConfig:
    if not isinstance(raw, Mapping):
        raise ParseError("[build] must be a table", file_path=file_path)

    config = BuildConfig()
    for key in ("opt_level", "address_size"):
        if key in raw:
            value = raw[key]
            # bool is an int subclass; reject it explicitly
            if isinstance(value, bool) or not isinstance(value, int):
                raise ParseError(f"'{key}' in [build] must be an integer", file_path=file_path)
            setattr(config, key, value)

    if "debug" in raw:
        if not isinstance(raw["debug"], bool):
            raise ParseError("'debug' in [build] must be a boolean", file_path=file_path)
        config.debug = raw["debug"]

    return config


def _parse_dependencies(
    raw: Any,
    section: str,
    *,
    file_path: Optional[str],
) -> Dict[str, DependencySpec]:
    if not isinstance(raw, Mapping):
        raise ParseError(f"[{section}] must be a table", file_path=file_path)

    return {
        name: DependencySpec.from_raw(name, value, file_path=file_path)
        for name, value in raw.items()
    }
