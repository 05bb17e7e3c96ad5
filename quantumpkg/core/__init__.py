"""
Core functionality exports for quantumpkg.

    from quantumpkg.core import Resolver, SourceFetcher, CacheStore
"""

from __future__ import annotations

from quantumpkg.core.cache import CacheStore
from quantumpkg.core.resolver import Resolver
from quantumpkg.core.result_set import ResultSet
from quantumpkg.core.lockfile import LockfileCodec
from quantumpkg.core.registry import RegistryClient
from quantumpkg.core.sources import SourceFetcher
from quantumpkg.core.vcs import GitClient, SubprocessGitClient

__all__ = [
    "CacheStore",
    "GitClient",
    "LockfileCodec",
    "RegistryClient",
    "Resolver",
    "ResultSet",
    "SourceFetcher",
    "SubprocessGitClient",
]
