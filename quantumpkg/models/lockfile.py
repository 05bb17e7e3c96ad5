"""
Lockfile data model for quantumpkg.

A :class:`Lockfile` is the persisted snapshot of one resolution. It is
always rebuilt wholesale from a fresh result set and never merged with an
earlier lockfile.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from quantumpkg.constants import LOCKFILE_VERSION


@dataclass
class LockedEntry:
    """Minimal persisted record of one resolved dependency.

    Attributes:
        name: Package name from the dependency's manifest.
        version: Resolved version.
        source: ``"registry"``, ``"path"`` or ``"git"``.
        source_url: Reserved; no fetch variant populates it yet.
        checksum: Reserved; no fetch variant populates it yet.
    """

    name: str
    version: str
    source: str
    source_url: Optional[str] = None
    checksum: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialisable form; unset optional fields are omitted."""
        data: Dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "source": self.source,
        }
        if self.source_url is not None:
            data["source_url"] = self.source_url
        if self.checksum is not None:
            data["checksum"] = self.checksum
        return data


@dataclass
class Lockfile:
    """Contents of ``Quantum.lock``.

    Attributes:
        version: Lockfile schema version.
        dependencies: Locked entries keyed by declared dependency name.
    """

    version: int = LOCKFILE_VERSION
    dependencies: Dict[str, LockedEntry] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.dependencies)

    def triples(self) -> List[Tuple[str, str, str]]:
        """Sorted ``(name, version, source)`` triples of every entry."""
        return sorted(
            (entry.name, entry.version, entry.source)
            for entry in self.dependencies.values()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "dependencies": {
                key: self.dependencies[key].to_dict()
                for key in sorted(self.dependencies)
            },
        }
