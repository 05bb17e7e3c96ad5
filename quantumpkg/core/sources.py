"""Turn one dependency declaration into a :class:`ResolvedDependency`.

Three variants, chosen by :attr:`DependencySpec.source_kind`:

* **registry**: cache identity ``"{name}-{version}"``; on a miss the archive
  is downloaded and extracted into the cache.
* **path**: a local directory, loaded in place. Never cached or copied.
* **git**: cache identity ``"{url}-{ref}"`` (both sanitised, ``ref`` being
  branch > tag > rev > ``HEAD``); on a miss the repository is cloned into
  the cache and the declared revision checked out.

Cached entries are reused as-is; nothing here ever refreshes them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Union

from quantumpkg.core.vcs import GitClient
from quantumpkg.core.registry import RegistryClient
from quantumpkg.core.cache import CacheStore, sanitize_identity_part
from quantumpkg.models.manifest import DependencySpec, Manifest
from quantumpkg.models.dependency import ResolvedDependency, SourceKind
from quantumpkg.constants import DEFAULT_GIT_REF
from quantumpkg.exceptions import FetchError, NotFoundError, ParseError
from quantumpkg.utils.archive import extract_archive
from quantumpkg.utils.filesystem import resolve_directory
from quantumpkg.utils.logger import get_logger

logger = get_logger("sources")

__all__ = ["SourceFetcher", "git_identity", "registry_identity"]


def registry_identity(name: str, version: str) -> str:
    """Cache identity of a registry package, e.g. ``"coin-1.2.0"``.

    Both parts are sanitised, so ``"org/coin"`` is cached as ``"org_coin-1.0.0"``.
    """
    return f"{sanitize_identity_part(name)}-{sanitize_identity_part(version)}"


def git_identity(url: str, ref: Optional[str] = None) -> str:
    """Cache identity of a git checkout.

    Example::

        >>> git_identity("https://example.org/oracle.git")
        'https___example.org_oracle.git-HEAD'
    """
    return f"{sanitize_identity_part(url)}-{sanitize_identity_part(ref or DEFAULT_GIT_REF)}"


class SourceFetcher:
    """Fetch and load single dependencies, using the cache where possible.

    Args:
        cache: Cache for registry and git dependencies.
        registry: Default registry client.
        git: Git capability used for cache misses.

    A declaration with its own ``registry = "<url>"`` is served by a client
    for that URL, created on first use and sharing the default client's
    HTTP session.
    """

    def __init__(
        self,
        cache: CacheStore,
        registry: RegistryClient,
        git: GitClient,
    ) -> None:
        self.cache = cache
        self.registry = registry
        self.git = git
        self._registries: Dict[str, RegistryClient] = {registry.url: registry}

    async def fetch_one(
        self,
        spec: DependencySpec,
        *,
        base_dir: Optional[Path] = None,
    ) -> ResolvedDependency:
        """Resolve ``spec`` to a located, loaded dependency.

        Args:
            spec: The declaration.
            base_dir: Directory of the manifest that declared ``spec``;
                relative ``path`` declarations are taken from there.

        Raises:
            SpecError: ``spec`` selects no variant. Raised before any I/O.
            NotFoundError: Missing path or registry artifact.
            FetchError: Network or git failure.
            ExtractError: The registry archive could not be unpacked.
            ParseError: The fetched directory has no valid manifest.
        """
        kind = spec.source_kind

        if kind is SourceKind.PATH:
            return self._fetch_path(spec, base_dir)
        if kind is SourceKind.GIT:
            return await self._fetch_git(spec)
        return await self._fetch_registry(spec)

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    async def _fetch_registry(self, spec: DependencySpec) -> ResolvedDependency:
        assert spec.version is not None
        identity = registry_identity(spec.name, spec.version)

        if self.cache.has(identity):
            logger.debug("Using cached %s", identity)
        else:
            registry = self._registry_for(spec.registry)
            payload = await registry.download(spec.name, spec.version)
            with self.cache.populate(identity) as staging:
                extract_archive(payload, staging, dependency=spec.name)

        return self._load(self.cache.path_for(identity), spec, SourceKind.REGISTRY)

    def _fetch_path(
        self,
        spec: DependencySpec,
        base_dir: Optional[Path],
    ) -> ResolvedDependency:
        assert spec.path is not None
        directory = resolve_directory(spec.path, base_dir=base_dir)

        if not directory.is_dir():
            raise NotFoundError(
                f"Path dependency not found: {spec.path}",
                dependency=spec.name,
                step="path",
                location=str(directory),
            )

        return self._load(directory, spec, SourceKind.PATH)

    async def _fetch_git(self, spec: DependencySpec) -> ResolvedDependency:
        assert spec.git is not None
        identity = git_identity(spec.git, spec.git_ref)

        if self.cache.has(identity):
            logger.debug("Using cached checkout %s", identity)
        else:
            try:
                with self.cache.populate(identity) as staging:
                    await self.git.clone(spec.git, spec.branch, staging)
                    if spec.rev:
                        await self.git.checkout_revision(staging, spec.rev)
            except FetchError as exc:
                raise FetchError(
                    exc.message,
                    dependency=spec.name,
                    step=exc.step or "git",
                    source=exc.source or spec.git,
                    output=exc.output,
                ) from exc

        return self._load(self.cache.path_for(identity), spec, SourceKind.GIT)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _registry_for(self, url: Optional[str]) -> RegistryClient:
        if not url:
            return self.registry
        key = url.rstrip("/")
        if key not in self._registries:
            self._registries[key] = RegistryClient(self.registry.http_client, key)
        return self._registries[key]

    @staticmethod
    def _load(
        directory: Union[str, Path],
        spec: DependencySpec,
        kind: SourceKind,
    ) -> ResolvedDependency:
        try:
            manifest = Manifest.load(directory)
        except ParseError as exc:
            raise ParseError(
                exc.message,
                file_path=exc.file_path,
                dependency=spec.name,
            ) from exc

        if manifest.name != spec.name:
            logger.debug(
                "Dependency '%s' resolved to package '%s'", spec.name, manifest.name
            )

        return ResolvedDependency(
            name=manifest.name,
            version=manifest.version,
            local_path=Path(directory),
            manifest=manifest,
            source_kind=kind,
        )
