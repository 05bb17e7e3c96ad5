"""
Archive helpers for registry downloads.

Registry packages arrive as tar streams (plain or compressed) with the
package manifest at the archive root.
"""

from __future__ import annotations

import io
import tarfile
from pathlib import Path
from typing import Optional

from quantumpkg.exceptions import ExtractError
from quantumpkg.utils.logger import get_logger

logger = get_logger("archive")

# Extraction filters arrived in 3.12 and were backported to 3.9.17, 3.10.12 and 3.11.4
_HAS_DATA_FILTER = hasattr(tarfile, "data_filter")


def extract_archive(
    data: bytes,
    destination: Path,
    *,
    dependency: Optional[str] = None,
) -> int:
    """Unpack a tar archive held in memory into ``destination``.

    The ``"data"`` extraction filter rejects absolute paths, ``..``
    traversal, device files and links pointing outside ``destination``.

    Args:
        data: Raw archive bytes.
        destination: Directory to extract into; created if missing.
        dependency: Dependency name, for error context.

    Returns:
        Number of archive members extracted.

    Raises:
        ExtractError: The bytes are not a readable tar archive, a member
            is unsafe, or the filesystem refused a write.
    """
    if not data:
        raise ExtractError(
            "Archive is empty",
            dependency=dependency,
            destination=str(destination),
        )

    try:
        destination.mkdir(parents=True, exist_ok=True)
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:*") as archive:
            members = archive.getmembers()
            if _HAS_DATA_FILTER:
                archive.extractall(path=str(destination), filter="data")
            else:
                for member in members:
                    _check_member(member, destination)
                archive.extractall(path=str(destination), members=members)
    except (tarfile.TarError, OSError) as exc:
        raise ExtractError(
            f"Failed to extract archive: {exc}",
            dependency=dependency,
            destination=str(destination),
        ) from exc

    logger.debug("Extracted %d member(s) into %s", len(members), destination)
    return len(members)


def _check_member(member: tarfile.TarInfo, destination: Path) -> None:
    """Reject the members the ``"data"`` filter would refuse."""
    root = destination.resolve()
    target = (root / member.name).resolve()

    if Path(member.name).is_absolute() or root not in (target, *target.parents):
        raise tarfile.TarError(f"{member.name!r} would be extracted outside the destination")
    if member.isdev():
        raise tarfile.TarError(f"{member.name!r} is a special file")
    if member.issym() or member.islnk():
        link = (target.parent if member.issym() else root) / member.linkname
        if Path(member.linkname).is_absolute() or root not in link.resolve().parents:
            raise tarfile.TarError(f"{member.name!r} links outside the destination")
