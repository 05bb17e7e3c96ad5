"""
Resolved dependency model for quantumpkg.

A :class:`ResolvedDependency` is one concrete, located and loaded
dependency: where it came from, which directory holds it, and the manifest
found there.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quantumpkg.models.manifest import Manifest


class SourceKind(Enum):
    """Origin of a dependency. Values are the lockfile ``source`` strings."""

    REGISTRY = "registry"
    PATH = "path"
    GIT = "git"


@dataclass
class ResolvedDependency:
    """A dependency after fetching and manifest loading.

    Attributes:
        name: Package name from the loaded manifest. May differ from the
            key the dependency was declared under.
        version: Package version from the loaded manifest.
        local_path: Directory holding the package. Owned by the cache for
            registry and git dependencies; the caller's own directory for
            path dependencies.
        manifest: The dependency's parsed manifest.
        source_kind: Which fetch variant produced this record.
    """

    name: str
    version: str
    local_path: Path
    manifest: "Manifest" = field(repr=False, compare=False)
    source_kind: SourceKind = SourceKind.REGISTRY

    @property
    def source(self) -> str:
        """Lockfile spelling of :attr:`source_kind`."""
        return self.source_kind.value
