"""
takopack — crate dependency translation for binary packaging

takopack turns the dependency metadata declared by a Rust crate into the
package graph a downstream binary packaging system understands, and walks
whole dependency trees to package them transitively.

Features include:
    • Semver requirement translation into ``>=`` / ``<<`` range clauses
    • Feature graph reduction into a minimal set of installable packages
    • Lockfile parsing into an explicit pinned dependency graph
    • A persistent crate version database for incremental runs
    • Recursive vendoring with cycle detection and failure isolation
"""

from __future__ import annotations

from takopack.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "takopack Contributors"
__license__ = "Apache-2.0"
__description__ = "Translate crate dependency metadata into binary package graphs."

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

from takopack.config import TakopackConfig, load_config
from takopack.core.crate_database import CrateDatabase
from takopack.core.features import reduce_features
from takopack.core.lockfile import parse_lockfile
from takopack.core.recursive import RecursivePackager
from takopack.core.translator import translate_dependency

__all__ = [
    "__version__",
    "TakopackConfig",
    "load_config",
    "CrateDatabase",
    "reduce_features",
    "parse_lockfile",
    "RecursivePackager",
    "translate_dependency",
]
