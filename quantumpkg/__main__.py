"""
Executable module for quantumpkg.

Running:
    python -m quantumpkg

is equivalent to:
    quantum
"""

from __future__ import annotations

import sys


def main() -> int:
    """Entry point for ``python -m quantumpkg``."""
    # Import lazily so CLI dependencies are only loaded when running the CLI
    from quantumpkg.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
