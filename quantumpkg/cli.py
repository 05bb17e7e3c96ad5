"""
``quantum`` command-line entry point.

The group callback turns global flags into a :class:`QuantumContext`
(logging level, colour, loaded configuration); subcommands receive it via
:data:`quantumpkg.context.pass_context`. :func:`main` maps failures to exit
codes so the console script never shows a raw traceback.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from quantumpkg.config import load_config
from quantumpkg.__version__ import __version__
from quantumpkg.context import QuantumContext
from quantumpkg.exceptions import ConfigError, QuantumError
from quantumpkg.utils.logger import get_logger, level_for_verbosity, setup_logging
from quantumpkg.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar="QUANTUM_CONFIG",
    help="Settings file (default: ./quantumpkg.toml or [tool.quantumpkg] in ./Quantum.toml).",
)
@click.option("--verbose", "-v", count=True, help="-v for progress, -vv for debug output.")
@click.option(
    "--color/--no-color",
    default=True,
    envvar="QUANTUM_COLOR",
    help="Colourise terminal output.",
)
@click.version_option(__version__, prog_name="quantum", message="%(prog)s %(version)s")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """Resolve Quantum package dependencies and manage Quantum.lock.

    \b
    Commands:
      quantum lock    Resolve Quantum.toml and write Quantum.lock
      quantum show    Print the entries of a Quantum.lock

    \b
    Examples:
      quantum lock
      quantum -v lock --manifest ../vault
      quantum show --format json
    """
    _prepare_output(color, verbose)

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        print_error(str(exc))
        ctx.exit(EXIT_FAILURE)

    state = QuantumContext(
        config_path=config_path or config.source_path,
        verbose=verbose,
        color=color,
        config=config,
    )
    ctx.obj = state

    logger.debug("quantum %s, config %s", __version__, state.config_path or "<defaults>")
    logger.debug("Settings: %s", config.to_log_dict())


def _prepare_output(color: bool, verbose: int) -> None:
    """Apply ``--no-color`` and ``-v`` before anything is printed."""
    # NO_COLOR is also honoured by Rich and by the log formatter
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    level = level_for_verbosity(verbose)
    setup_logging(level=level, verbose=verbose > 1)
    logger.debug("Log level %s", logging.getLevelName(level))


from quantumpkg.commands.lock import lock  # noqa: E402
from quantumpkg.commands.show import show  # noqa: E402

cli.add_command(lock)
cli.add_command(show)


def main() -> int:
    """Run the CLI and return a process exit code.

    ``0`` success, ``1`` any failure, ``2`` usage error, ``130`` Ctrl+C.
    """
    try:
        # Without standalone mode, click returns ctx.exit() codes instead of raising
        result = cli(standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_FAILURE
    except QuantumError as exc:
        print_error(str(exc))
        logger.debug("Error details: %s", dict(exc.details) or "<none>", exc_info=True)
        return EXIT_FAILURE
    except (KeyboardInterrupt, click.Abort):
        print_warning("Interrupted")
        return EXIT_INTERRUPTED
    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return EXIT_FAILURE

    return result if isinstance(result, int) else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
