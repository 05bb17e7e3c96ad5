"""Deduplicated collection of dependencies resolved in one traversal."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

from quantumpkg.models.dependency import ResolvedDependency

__all__ = ["ResultSet"]


class ResultSet:
    """Mapping of declared dependency name to :class:`ResolvedDependency`.

    The set only grows. The resolver never adds a name twice: the first
    record resolved for a name wins, and later declarations of that name
    are skipped without comparing versions.
    """

    def __init__(self) -> None:
        self._dependencies: Dict[str, ResolvedDependency] = {}

    def contains(self, name: str) -> bool:
        return name in self._dependencies

    def add(self, name: str, record: ResolvedDependency) -> None:
        """Store ``record`` under ``name``, replacing any previous record."""
        self._dependencies[name] = record

    def get(self, name: str) -> Optional[ResolvedDependency]:
        return self._dependencies.get(name)

    def all(self) -> Mapping[str, ResolvedDependency]:
        """Read-only view of every resolved dependency."""
        return MappingProxyType(self._dependencies)

    def __contains__(self, name: object) -> bool:
        return name in self._dependencies

    def __iter__(self) -> Iterator[str]:
        return iter(self._dependencies)

    def __len__(self) -> int:
        return len(self._dependencies)

    def __repr__(self) -> str:
        return f"ResultSet({sorted(self._dependencies)!r})"
