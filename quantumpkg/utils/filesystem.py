"""
Filesystem helpers for manifests and lockfiles.

Reads are size-limited, lockfile writes are atomic, and every ``OSError``
comes back as :class:`~quantumpkg.exceptions.FileOperationError` carrying
the path and the operation that failed.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from quantumpkg.utils.logger import get_logger
from quantumpkg.exceptions import FileOperationError
from quantumpkg.constants import MAX_FILE_SIZE

logger = get_logger("filesystem")

PathLike = Union[str, Path]


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Return the text of ``file_path``.

    Args:
        file_path: File to read.
        max_size: Refuse files larger than this many bytes; ``None`` for no limit.
        encoding: Text encoding.

    Raises:
        FileOperationError: The path is missing, is not a regular file, is
            too large, or cannot be read or decoded.
    """
    path = Path(file_path)

    if not path.exists():
        raise _read_error(f"File not found: {path}", path)
    if not path.is_file():
        raise _read_error(f"Not a file: {path}", path)

    try:
        size = path.stat().st_size
        if max_size is not None and size > max_size:
            raise _read_error(f"File too large: {size} bytes (max {max_size})", path)
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise _read_error(f"Failed to read file: {exc}", path, exc) from exc


def safe_write_file(file_path: PathLike, content: str) -> Path:
    """Replace ``file_path`` with ``content`` and return its resolved path.

    The text goes to a sibling temporary file which is fsynced and then
    renamed over the target, so readers see the old or the new content
    and nothing in between. Parent directories are created as needed.
    """
    target = Path(file_path)
    tmp_name: Optional[str] = None

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(target.parent),
            prefix=f".{target.name}.",
            suffix=".tmp",
        )
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        Path(tmp_name).replace(target)
    except OSError as exc:
        if tmp_name is not None:
            _discard(Path(tmp_name))
        raise FileOperationError(
            f"Atomic write failed: {exc}",
            file_path=str(target),
            operation="write",
            original_error=exc,
        ) from exc

    logger.debug("Wrote %d characters to %s", len(content), target)
    return target.resolve()


def resolve_directory(path: PathLike, *, base_dir: Optional[PathLike] = None) -> Path:
    """Return ``path`` as a directory path, anchored at ``base_dir`` if relative.

    Nothing is checked for existence here; callers decide how a missing
    directory should be reported.
    """
    candidate = Path(path).expanduser()
    if not candidate.is_absolute() and base_dir is not None:
        candidate = Path(base_dir) / candidate
    return candidate


def _read_error(
    message: str,
    path: Path,
    original: Optional[Exception] = None,
) -> FileOperationError:
    return FileOperationError(
        message,
        file_path=str(path),
        operation="read",
        original_error=original,
    )


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not remove temporary file %s: %s", path, exc)
