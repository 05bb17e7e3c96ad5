"""Breadth-first dependency resolution for quantumpkg.

The resolver walks the transitive dependency graph of a manifest and
collects every reachable dependency into a :class:`ResultSet`.

Traversal rules:

1. The worklist is seeded with the manifest's production dependencies at
   depth 0. ``[dev-dependencies]`` are never traversed.
2. Entries are processed first-in, first-out, one at a time; each fetch is
   awaited before the next entry is popped.
3. An entry deeper than ``max_depth`` aborts resolution with
   :class:`DepthExceededError`. This is the only cycle guard.
4. An entry whose name is already resolved is dropped. The first version
   reached wins; there is no conflict detection between the versions
   different packages ask for.
5. Every declaration of a manifest is checked before any of them is
   queued, so a declaration naming no source raises :class:`SpecError`
   before further downloads or clones.
6. Any error aborts the whole call; no partial result is returned.

Typical usage::

    async with HTTPClient() as http:
        fetcher = SourceFetcher(
            CacheStore(cache_root),
            RegistryClient(http),
            SubprocessGitClient(),
        )
        result = await Resolver(fetcher).resolve(Manifest.load("."))
        print(len(result), "dependencies")
"""

from __future__ import annotations

from collections import deque
from pathlib import Path
from dataclasses import dataclass
from typing import Deque, Optional

from quantumpkg.core.result_set import ResultSet
from quantumpkg.core.sources import SourceFetcher
from quantumpkg.constants import DEFAULT_MAX_DEPTH
from quantumpkg.exceptions import DepthExceededError
from quantumpkg.models.manifest import DependencySpec, Manifest
from quantumpkg.utils.logger import get_logger

logger = get_logger("resolver")

__all__ = ["Resolver", "WorkItem"]


@dataclass(frozen=True)
class WorkItem:
    """One pending declaration in the worklist.

    Attributes:
        spec: The declaration to resolve.
        depth: Distance from the top-level manifest (direct deps are 0).
        base_dir: Directory of the manifest that declared ``spec``.
        parent: Declared name of the dependency that pulled this one in.
    """

    spec: DependencySpec
    depth: int
    base_dir: Optional[Path] = None
    parent: Optional[str] = None


class Resolver:
    """Resolve the transitive dependencies of a manifest.

    Args:
        fetcher: Fetches and loads single dependencies.
        max_depth: Deepest allowed worklist entry. Defaults to ``100``.

    Raises:
        ValueError: If ``max_depth`` is negative.
    """

    def __init__(
        self,
        fetcher: SourceFetcher,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")

        self.fetcher = fetcher
        self.max_depth = max_depth

    async def resolve(self, manifest: Manifest) -> ResultSet:
        """Resolve every dependency reachable from ``manifest``.

        Args:
            manifest: Top-level manifest. Only its ``dependencies`` table
                seeds the traversal.

        Returns:
            A fresh :class:`ResultSet`.

        Raises:
            DepthExceededError: The traversal went deeper than ``max_depth``.
            SpecError, NotFoundError, FetchError, ExtractError, ParseError:
                Propagated unchanged from the first dependency that failed.
        """
        resolved = ResultSet()
        _check_declarations(manifest)
        worklist: Deque[WorkItem] = deque(
            WorkItem(spec=spec, depth=0, base_dir=manifest.root)
            for spec in manifest.dependencies.values()
        )

        logger.info(
            "Resolving %d direct dependencies of %s v%s",
            len(worklist),
            manifest.name,
            manifest.version,
        )

        while worklist:
            item = worklist.popleft()
            name = item.spec.name

            if item.depth > self.max_depth:
                raise DepthExceededError(
                    "Dependency depth limit exceeded (possible circular dependency)",
                    dependency=name,
                    depth=item.depth,
                    max_depth=self.max_depth,
                )

            if resolved.contains(name):
                logger.debug(
                    "Skipping %s (already resolved, requested by %s)",
                    name,
                    item.parent or manifest.name,
                )
                continue

            record = await self.fetcher.fetch_one(item.spec, base_dir=item.base_dir)
            logger.debug(
                "Resolved %s -> %s v%s (%s) at depth %d",
                name,
                record.name,
                record.version,
                record.source,
                item.depth,
            )

            _check_declarations(record.manifest)
            base_dir = record.manifest.root or record.local_path
            for child in record.manifest.dependencies.values():
                worklist.append(
                    WorkItem(spec=child, depth=item.depth + 1, base_dir=base_dir, parent=name)
                )

            resolved.add(name, record)

        logger.info("Resolved %d dependencies", len(resolved))
        return resolved


def _check_declarations(manifest: Manifest) -> None:
    """Raise :class:`SpecError` for the first declaration selecting no variant.

    Runs before any of the manifest's dependencies are queued, so a broken
    declaration fails the resolution before further downloads or clones.
    """
    for spec in manifest.dependencies.values():
        spec.source_kind
