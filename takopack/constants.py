"""
Centralized constants for takopack.

This module defines immutable values used across takopack, including
package naming, lockfile markers, dependency filters, database defaults
and logging formats. All values are intended to be treated as read-only.
"""

from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Package naming
# ---------------------------------------------------------------------------

#: Prefix for every generated binary package name.
PACKAGE_PREFIX: Final[str] = "rust"

#: Prefix used in testing mode so generated packages never clash.
TESTING_PACKAGE_PREFIX: Final[str] = "ruzt"

#: Epoch marker appended to rendered bounds (``pkg (>= 1.2.3-~~)``).
EPOCH_MARKER: Final[str] = "-~~"

#: Feature requested when a dependency keeps its default features.
DEFAULT_FEATURE: Final[str] = "default"

# ---------------------------------------------------------------------------
# Lockfile handling
# ---------------------------------------------------------------------------

#: Source prefixes identifying packages from the public crate registry.
REGISTRY_SOURCE_PREFIXES: Final[Sequence[str]] = ("registry+", "sparse+")

#: Placeholder version key used by the walker when no version is requested.
LATEST_VERSION: Final[str] = "latest"

# ---------------------------------------------------------------------------
# Runtime dependency filtering
# ---------------------------------------------------------------------------

#: Toolchain shim crates that are never packaged.
TOOLCHAIN_SHIM_CRATES: Final[Sequence[str]] = (
    "rustc-std-workspace-core",
    "rustc-std-workspace-alloc",
    "rustc-std-workspace-std",
    "compiler_builtins",
)

#: Name suffixes of procedural macro helper crates.
PROC_MACRO_SUFFIXES: Final[Sequence[str]] = ("-derive", "-macro", "-macros")

# ---------------------------------------------------------------------------
# Crate database
# ---------------------------------------------------------------------------

#: File name of the crate version database inside the app directory.
DATABASE_FILENAME: Final[str] = "crate_db.txt"

#: Number of database backups retained after each save.
DEFAULT_BACKUP_KEEP: Final[int] = 5

# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

#: Timestamp format naming the default vendoring output directory.
OUTPUT_DIR_TIMESTAMP: Final[str] = "%Y%m%d_%H%M%S"

#: Maximum allowed size (in bytes) when reading lockfiles and databases.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Configuration defaults
# ---------------------------------------------------------------------------

#: Merge every feature into the base package instead of reducing.
DEFAULT_COLLAPSE_FEATURES: Final[bool] = False

#: Use the testing package prefix.
DEFAULT_TESTING: Final[bool] = False

#: Append the epoch marker to rendered bounds.
DEFAULT_EPOCH_MARKER: Final[bool] = True

#: Back up the crate database before rewriting it.
DEFAULT_BACKUP_DATABASE: Final[bool] = True

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
