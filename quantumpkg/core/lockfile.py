"""Build, serialise and parse ``Quantum.lock``.

On-disk format::

    version = 1

    [dependencies.coin]
    name = "coin"
    version = "1.2.0"
    source = "registry"

``source_url`` and ``checksum`` may appear on an entry but are not written
by any fetch variant yet. Entries and keys are emitted in sorted order so
identical resolutions produce byte-identical lockfiles.
"""

from __future__ import annotations

import tomli as tomllib
import tomli_w
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from quantumpkg.core.result_set import ResultSet
from quantumpkg.models.dependency import SourceKind
from quantumpkg.models.lockfile import LockedEntry, Lockfile
from quantumpkg.constants import LOCKFILE_NAME, LOCKFILE_VERSION
from quantumpkg.exceptions import FileOperationError, ParseError
from quantumpkg.utils.filesystem import safe_read_file, safe_write_file
from quantumpkg.utils.logger import get_logger

logger = get_logger("lockfile")

__all__ = ["LockfileCodec"]

_VALID_SOURCES = frozenset(kind.value for kind in SourceKind)
_ENTRY_KEYS = frozenset({"name", "version", "source", "source_url", "checksum"})


class LockfileCodec:
    """Stateless converter between result sets, lockfiles and TOML text."""

    @staticmethod
    def from_result_set(result_set: ResultSet) -> Lockfile:
        """Snapshot ``result_set`` into a brand-new :class:`Lockfile`."""
        lockfile = Lockfile(version=LOCKFILE_VERSION)
        for key, record in result_set.all().items():
            lockfile.dependencies[key] = LockedEntry(
                name=record.name,
                version=record.version,
                source=record.source,
            )
        return lockfile

    @staticmethod
    def serialize(lockfile: Lockfile) -> str:
        """Render ``lockfile`` as TOML text."""
        return tomli_w.dumps(lockfile.to_dict())

    @staticmethod
    def deserialize(text: str, *, file_path: Optional[str] = None) -> Lockfile:
        """Parse lockfile TOML.

        Raises:
            ParseError: Invalid TOML, or a document that does not follow the
                lockfile schema.
        """
        try:
            raw = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ParseError(
                f"Failed to parse {LOCKFILE_NAME}: {exc}",
                file_path=file_path,
            ) from exc

        version = raw.get("version")
        if isinstance(version, bool) or not isinstance(version, int):
            raise ParseError(
                "Lockfile 'version' must be an integer",
                file_path=file_path,
            )

        dependencies = raw.get("dependencies", {})
        if not isinstance(dependencies, Mapping):
            raise ParseError(
                "Lockfile 'dependencies' must be a table",
                file_path=file_path,
            )

        return Lockfile(
            version=version,
            dependencies={
                key: _parse_entry(key, value, file_path=file_path)
                for key, value in dependencies.items()
            },
        )

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, path: Union[str, Path]) -> Lockfile:
        """Read and parse a lockfile from disk."""
        try:
            text = safe_read_file(path)
        except FileOperationError as exc:
            raise ParseError(
                f"Failed to read {LOCKFILE_NAME}: {exc.message}",
                file_path=str(path),
            ) from exc
        return cls.deserialize(text, file_path=str(path))

    @classmethod
    def save(cls, path: Union[str, Path], lockfile: Lockfile) -> Path:
        """Atomically replace ``path`` with the serialised ``lockfile``."""
        written = safe_write_file(path, cls.serialize(lockfile))
        logger.info("Wrote %s with %d dependencies", written, len(lockfile))
        return written


def _parse_entry(key: str, value: Any, *, file_path: Optional[str]) -> LockedEntry:
    if not isinstance(value, Mapping):
        raise ParseError(
            f"Lockfile entry '{key}' must be a table",
            file_path=file_path,
        )

    unknown = set(value) - _ENTRY_KEYS
    if unknown:
        raise ParseError(
            f"Lockfile entry '{key}' has unknown keys: {', '.join(sorted(unknown))}",
            file_path=file_path,
        )

    fields: Dict[str, Optional[str]] = {}
    for field_name in sorted(_ENTRY_KEYS):
        field_value = value.get(field_name)
        if field_value is not None and not isinstance(field_value, str):
            raise ParseError(
                f"Lockfile entry '{key}': '{field_name}' must be a string",
                file_path=file_path,
            )
        fields[field_name] = field_value

    for required in ("name", "version", "source"):
        if fields[required] is None:
            raise ParseError(
                f"Lockfile entry '{key}' is missing '{required}'",
                file_path=file_path,
            )

    if fields["source"] not in _VALID_SOURCES:
        raise ParseError(
            f"Lockfile entry '{key}' has unknown source {fields['source']!r}",
            file_path=file_path,
        )

    return LockedEntry(
        name=fields["name"] or "",
        version=fields["version"] or "",
        source=fields["source"] or "",
        source_url=fields["source_url"],
        checksum=fields["checksum"],
    )
