"""Builders and fakes shared by the test suite."""

from __future__ import annotations

import io
import tarfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import tomli_w

from quantumpkg.exceptions import FetchError, NotFoundError

DependencyTable = Mapping[str, Any]


def manifest_text(
    name: str,
    version: str = "1.0.0",
    dependencies: Optional[DependencyTable] = None,
    dev_dependencies: Optional[DependencyTable] = None,
) -> str:
    """Render a minimal ``Quantum.toml``."""
    document: Dict[str, Any] = {"package": {"name": name, "version": version}}
    if dependencies:
        document["dependencies"] = dict(dependencies)
    if dev_dependencies:
        document["dev-dependencies"] = dict(dev_dependencies)
    return tomli_w.dumps(document)


def write_manifest(
    directory: Path,
    name: str,
    version: str = "1.0.0",
    dependencies: Optional[DependencyTable] = None,
    dev_dependencies: Optional[DependencyTable] = None,
) -> Path:
    """Write ``Quantum.toml`` into ``directory`` (created if needed)."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "Quantum.toml"
    path.write_text(
        manifest_text(name, version, dependencies, dev_dependencies),
        encoding="utf-8",
    )
    return path


def make_archive(files: Mapping[str, str], *, mode: str = "w:gz") -> bytes:
    """Build an in-memory tar archive from ``{member name: text}``."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode=mode) as archive:
        for member_name, text in files.items():
            data = text.encode("utf-8")
            info = tarfile.TarInfo(member_name)
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def package_archive(
    name: str,
    version: str,
    dependencies: Optional[DependencyTable] = None,
) -> bytes:
    """Registry archive holding just a manifest."""
    return make_archive({"Quantum.toml": manifest_text(name, version, dependencies)})


class FakeRegistry:
    """In-memory stand-in for :class:`RegistryClient`.

    Packages are registered up front with :meth:`publish`, or produced on
    demand by ``factory(name, version)``.
    """

    def __init__(
        self,
        url: str = "https://registry.test",
        factory: Optional[Callable[[str, str], bytes]] = None,
    ) -> None:
        self.url = url
        self.http_client = None
        self.factory = factory
        self.packages: Dict[Tuple[str, str], bytes] = {}
        self.downloads: List[Tuple[str, str]] = []

    def publish(
        self,
        name: str,
        version: str,
        dependencies: Optional[DependencyTable] = None,
    ) -> None:
        self.packages[(name, version)] = package_archive(name, version, dependencies)

    async def download(self, name: str, version: str) -> bytes:
        self.downloads.append((name, version))
        if (name, version) in self.packages:
            return self.packages[(name, version)]
        if self.factory is not None:
            return self.factory(name, version)
        raise NotFoundError(
            f"Package not found: {name} v{version}",
            dependency=name,
            step="registry",
            location=f"{self.url}/{name}/{version}",
        )


class FakeGitClient:
    """Git stand-in that "clones" by writing a manifest into the destination.

    ``repos`` maps a repository URL to the manifest fields served for it;
    ``revisions`` maps ``(url, rev)`` to the manifest left after checkout.
    """

    def __init__(self) -> None:
        self.repos: Dict[str, Dict[str, Any]] = {}
        self.revisions: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.clones: List[Tuple[str, Optional[str], Path]] = []
        self.checkouts: List[Tuple[Path, str]] = []
        self._origin: Dict[Path, str] = {}

    def add_repo(self, url: str, name: str, version: str = "1.0.0", **kwargs: Any) -> None:
        self.repos[url] = {"name": name, "version": version, **kwargs}

    async def clone(self, url: str, branch: Optional[str], destination: Path) -> None:
        self.clones.append((url, branch, destination))
        if url not in self.repos:
            raise FetchError(
                "git clone failed with exit code 128",
                step="git clone",
                source=url,
                output="fatal: repository not found",
            )
        write_manifest(destination, **self.repos[url])
        self._origin[destination] = url

    async def checkout_revision(self, destination: Path, rev: str) -> None:
        self.checkouts.append((destination, rev))
        url = self._origin[destination]
        if (url, rev) in self.revisions:
            write_manifest(destination, **self.revisions[(url, rev)])

