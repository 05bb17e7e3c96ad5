"""Show command implementation for quantumpkg.

Prints the entries of an existing ``Quantum.lock``.
"""

from __future__ import annotations

import sys
import click
from pathlib import Path

from quantumpkg.constants import LOCKFILE_NAME
from quantumpkg.core import LockfileCodec
from quantumpkg.exceptions import QuantumError
from quantumpkg.utils import (
    colorize_source,
    get_logger,
    print_error,
    print_json,
    print_table,
    print_warning,
)

logger = get_logger("commands.show")


@click.command()
@click.argument(
    "lockfile_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=LOCKFILE_NAME,
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
def show(lockfile_path: Path, output_format: str) -> None:
    """Display the dependencies recorded in a lockfile."""
    try:
        lockfile = LockfileCodec.load(lockfile_path)
    except QuantumError as e:
        print_error(f"{e}")
        sys.exit(1)

    logger.debug("Lockfile %s: version %d, %d entries", lockfile_path, lockfile.version, len(lockfile))

    if output_format == "json":
        print_json(lockfile.to_dict())
        return

    if not lockfile.dependencies:
        print_warning("Lockfile has no dependencies")
        return

    print_table(
        [
            {
                "Dependency": key,
                "Package": entry.name,
                "Version": entry.version,
                "Source": colorize_source(entry.source),
                "Source URL": entry.source_url or "",
            }
            for key, entry in sorted(lockfile.dependencies.items())
        ],
        title=f"{lockfile_path} (version {lockfile.version})",
    )
