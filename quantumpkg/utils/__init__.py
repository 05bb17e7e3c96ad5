"""
Support code shared by the resolver and the CLI: terminal output, logging,
file access, archive unpacking and the registry HTTP client.
"""

from __future__ import annotations

from quantumpkg.utils.http import HTTPClient
from quantumpkg.utils.archive import extract_archive
from quantumpkg.utils.logger import (
    disable_logging,
    get_logger,
    is_logging_configured,
    level_for_verbosity,
    setup_logging,
)
from quantumpkg.utils.filesystem import resolve_directory, safe_read_file, safe_write_file
from quantumpkg.utils.console import (
    colorize_source,
    get_raw_console,
    print_error,
    print_json,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

__all__ = [
    "HTTPClient",
    "extract_archive",
    "get_logger",
    "setup_logging",
    "disable_logging",
    "level_for_verbosity",
    "is_logging_configured",
    "safe_read_file",
    "safe_write_file",
    "resolve_directory",
    "print_error",
    "print_json",
    "print_table",
    "print_success",
    "print_warning",
    "colorize_source",
    "get_raw_console",
    "reconfigure_console",
]
