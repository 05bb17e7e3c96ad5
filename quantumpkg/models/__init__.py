"""
Unified data model exports for quantumpkg.

Example:
    >>> from quantumpkg.models import Manifest, DependencySpec, SourceKind
"""

from __future__ import annotations

from quantumpkg.models.lockfile import LockedEntry, Lockfile
from quantumpkg.models.dependency import ResolvedDependency, SourceKind
from quantumpkg.models.manifest import (
    BuildConfig,
    DependencySpec,
    Manifest,
    PackageMetadata,
)

__all__ = [
    "BuildConfig",
    "DependencySpec",
    "LockedEntry",
    "Lockfile",
    "Manifest",
    "PackageMetadata",
    "ResolvedDependency",
    "SourceKind",
]
