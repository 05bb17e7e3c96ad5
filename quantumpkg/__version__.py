"""Version of the quantumpkg distribution and the ``quantum`` CLI."""

from __future__ import annotations

from typing import Tuple

__version__ = "0.1.0"

#: ``(major, minor, patch)`` for programmatic comparisons.
VERSION_INFO: Tuple[int, ...] = tuple(int(part) for part in __version__.split("."))
