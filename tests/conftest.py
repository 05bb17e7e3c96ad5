from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

from helpers import FakeGitClient, FakeRegistry
from quantumpkg.core.cache import CacheStore
from quantumpkg.core.sources import SourceFetcher
from quantumpkg.utils.logger import disable_logging


@pytest.fixture(autouse=True)
def _quiet_logging() -> Generator[None, None, None]:
    """Leave the ``quantumpkg`` logger unconfigured after every test."""
    yield
    disable_logging()


@pytest.fixture
def cache(tmp_path: Path) -> CacheStore:
    return CacheStore(tmp_path / "cache")


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def git() -> FakeGitClient:
    return FakeGitClient()


@pytest.fixture
def fetcher(cache: CacheStore, registry: FakeRegistry, git: FakeGitClient) -> SourceFetcher:
    return SourceFetcher(cache, registry, git)  # type: ignore[arg-type]
