"""Lock command implementation for quantumpkg.

Resolves the transitive dependencies of a ``Quantum.toml`` and writes the
result to ``Quantum.lock``.

The command wires together:

1. **Manifest**: the top-level package manifest.
2. **Resolver**: breadth-first traversal over a :class:`SourceFetcher`
   backed by the on-disk :class:`CacheStore`, the package registry and
   ``git``.
3. **LockfileCodec**: snapshot of the result, written atomically.

The lockfile is regenerated from scratch on every run; an existing
``Quantum.lock`` is replaced, never merged.

Typical usage::

    $ quantum lock
    $ quantum lock --manifest ../vault --format json
"""

from __future__ import annotations

import sys
import click
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

from quantumpkg.config import QuantumConfig
from quantumpkg.constants import LOCKFILE_NAME
from quantumpkg.exceptions import QuantumError
from quantumpkg.context import pass_context, QuantumContext
from quantumpkg.models import Lockfile, Manifest
from quantumpkg.core import (
    CacheStore,
    LockfileCodec,
    RegistryClient,
    Resolver,
    SourceFetcher,
    SubprocessGitClient,
)
from quantumpkg.utils import (
    HTTPClient,
    colorize_source,
    get_logger,
    print_error,
    print_json,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.lock")


@click.command()
@click.option(
    "--manifest",
    "-m",
    "manifest_path",
    type=click.Path(exists=True, path_type=Path),
    default=".",
    show_default=True,
    help="Quantum.toml, or the directory containing it.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to write the lockfile (default: next to the manifest).",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format for the resolved dependencies.",
)
@pass_context
def lock(
    ctx: QuantumContext,
    manifest_path: Path,
    output: Optional[Path],
    output_format: str,
) -> None:
    """Resolve dependencies and write Quantum.lock.

    Exits 0 on success and 1 if any dependency fails to resolve; in that
    case no lockfile is written.
    """
    try:
        manifest = Manifest.load(manifest_path)
        lockfile = asyncio.run(resolve_lockfile(manifest, ctx.config))

        target = output or (manifest.root or Path.cwd()) / LOCKFILE_NAME
        written = LockfileCodec.save(target, lockfile)

    except QuantumError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in lock command")
        sys.exit(1)

    if output_format == "json":
        print_json(lockfile.to_dict())
        return

    _display_table(lockfile)
    print_success(f"Resolved {len(lockfile)} dependencies into {written}")


async def resolve_lockfile(manifest: Manifest, config: QuantumConfig) -> Lockfile:
    """Resolve ``manifest`` with settings from ``config`` and snapshot the result."""
    cache = CacheStore(config.resolved_cache_dir())
    logger.debug("Using cache at %s", cache.root)

    if not manifest.dependencies:
        if manifest.dev_dependencies:
            print_warning("Only dev-dependencies declared; they are not locked")
        return Lockfile()

    async with HTTPClient(timeout=config.timeout, max_retries=config.max_retries) as http:
        fetcher = SourceFetcher(
            cache,
            RegistryClient(http, config.registry_url),
            SubprocessGitClient(timeout=config.git_timeout),
        )
        resolver = Resolver(fetcher, max_depth=config.max_depth)
        result = await resolver.resolve(manifest)

    return LockfileCodec.from_result_set(result)


def _display_table(lockfile: Lockfile) -> None:
    rows: List[Dict[str, Any]] = [
        {
            "Dependency": key,
            "Package": entry.name,
            "Version": entry.version,
            "Source": colorize_source(entry.source),
        }
        for key, entry in sorted(lockfile.dependencies.items())
    ]
    print_table(rows, title="Locked dependencies")
