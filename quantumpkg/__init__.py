"""
quantumpkg: dependency resolution and lockfiles for Quantum packages.

Given a ``Quantum.toml`` whose dependencies are pinned by registry version,
local path or git reference, quantumpkg walks the dependency graph
breadth-first, fetches each package once (caching registry archives and
git clones on disk), and records the result in ``Quantum.lock``.
"""

from __future__ import annotations

from quantumpkg.__version__ import __version__

__license__ = "Apache-2.0"
__description__ = "Dependency resolution and lockfiles for Quantum packages."

__all__ = [
    "__version__",
]
