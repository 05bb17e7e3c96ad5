"""On-disk dependency cache for quantumpkg.

Maps a cache *identity* (``"coin-1.2.0"`` for registry packages,
``"https___example.org_oracle.git-v2"`` for git checkouts) to a directory
under a single cache root. Entries are written once and trusted forever:
there is no TTL, no staleness check and no content verification.

Population is atomic. :meth:`CacheStore.populate` hands out a private
temporary directory inside the root and renames it onto the identity only
when the writer finishes cleanly, so a reader never sees a half-written
entry. When two writers race for the same identity the first rename wins
and the loser's copy is discarded. No file locks are taken; both writers
may do the full download or clone.

Typical usage::

    cache = CacheStore(Path("~/.quantum/cache").expanduser())
    if not cache.has("coin-1.2.0"):
        with cache.populate("coin-1.2.0") as staging:
            extract_archive(payload, staging)
    package_dir = cache.path_for("coin-1.2.0")
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from contextlib import contextmanager
from typing import Iterator, Union

from quantumpkg.constants import UNSAFE_IDENTITY_CHARS
from quantumpkg.exceptions import FileOperationError
from quantumpkg.utils.logger import get_logger

logger = get_logger("cache")

__all__ = ["CacheStore", "sanitize_identity_part"]

_STAGING_PREFIX = ".staging-"


def sanitize_identity_part(value: str) -> str:
    """Replace path separators and ``:`` so ``value`` fits in one path component.

    Example::

        >>> sanitize_identity_part("https://example.org/oracle.git")
        'https___example.org_oracle.git'
    """
    for char in UNSAFE_IDENTITY_CHARS:
        value = value.replace(char, "_")
    return value


class CacheStore:
    """Identity-keyed directory cache shared across resolutions.

    The root is supplied by the caller and created lazily on the first
    write, so constructing a store never touches the filesystem.

    Args:
        root: Cache root directory.
    """

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)

    def __repr__(self) -> str:
        return f"CacheStore(root={str(self.root)!r})"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has(self, identity: str) -> bool:
        """Return True if an entry for ``identity`` exists."""
        return self.path_for(identity).is_dir()

    def path_for(self, identity: str) -> Path:
        """Return the directory for ``identity`` (which may not exist yet)."""
        _check_identity(identity)
        return self.root / identity

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    def create(self, identity: str) -> Path:
        """Create the directory for ``identity`` in place; idempotent.

        Unlike :meth:`populate` this is not atomic; it exists for callers
        that fill an entry with a single operation of their own.
        """
        path = self.path_for(identity)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FileOperationError(
                f"Failed to create cache entry: {exc}",
                file_path=str(path),
                operation="cache",
                original_error=exc,
            ) from exc
        return path

    @contextmanager
    def populate(self, identity: str) -> Iterator[Path]:
        """Yield a staging directory that becomes the entry on clean exit.

        If the body raises, the staging directory is removed and no entry
        appears. If another writer created the entry first, that entry is
        kept and this writer's staging copy is discarded.
        """
        final_path = self.path_for(identity)
        staging = self._make_staging_dir(identity)

        try:
            yield staging
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        try:
            os.rename(staging, final_path)
        except OSError as exc:
            shutil.rmtree(staging, ignore_errors=True)
            if final_path.is_dir():
                logger.debug("Cache entry %s was populated concurrently; keeping it", identity)
                return
            raise FileOperationError(
                f"Failed to publish cache entry: {exc}",
                file_path=str(final_path),
                operation="cache",
                original_error=exc,
            ) from exc

        logger.debug("Populated cache entry %s", final_path)

    def _make_staging_dir(self, identity: str) -> Path:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            return Path(
                tempfile.mkdtemp(prefix=f"{_STAGING_PREFIX}{identity}-", dir=str(self.root))
            )
        except OSError as exc:
            raise FileOperationError(
                f"Failed to create cache staging directory: {exc}",
                file_path=str(self.root),
                operation="cache",
                original_error=exc,
            ) from exc


def _check_identity(identity: str) -> None:
    """Reject identities that would escape the cache root."""
    if (
        not identity
        or identity in (".", "..")
        or identity.startswith(_STAGING_PREFIX)
        or any(sep in identity for sep in ("/", "\\"))
    ):
        raise FileOperationError(
            f"Invalid cache identity: {identity!r}",
            operation="cache",
        )
