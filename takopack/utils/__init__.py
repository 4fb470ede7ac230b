"""
Utility helpers for takopack.

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem safety helpers
- Graph traversal

Version helpers live in :mod:`takopack.utils.version_utils` and are not
re-exported here because they depend on the models package.
"""

from __future__ import annotations

from takopack.utils.filesystem import (
    clean_old_backups,
    ensure_directory,
    safe_read_file,
    safe_write_file,
)
from takopack.utils.logger import (
    get_logger,
    level_for_verbosity,
    setup_logging,
)
from takopack.utils.console import (
    get_raw_console,
    print_error,
    print_lines,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)
from takopack.utils.graph import traverse_depth

__all__ = [
    # Console
    "print_error",
    "print_lines",
    "print_table",
    "print_success",
    "print_warning",
    "get_raw_console",
    "reconfigure_console",
    # Logging
    "get_logger",
    "setup_logging",
    "level_for_verbosity",
    # Filesystem
    "safe_read_file",
    "safe_write_file",
    "ensure_directory",
    "clean_old_backups",
    # Graph
    "traverse_depth",
]
