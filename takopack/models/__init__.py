"""
Data model exports for takopack.

Example:
    >>> from takopack.models import Version, CrateDependency, CrateEntry
"""

from __future__ import annotations

from takopack.models.version import Comparator, Op, PartialVersion, Version
from takopack.models.dependency import (
    CrateDependency,
    DependencyKind,
    TranslatedDependency,
)
from takopack.models.crate_entry import CrateEntry

__all__ = [
    "Comparator",
    "Op",
    "PartialVersion",
    "Version",
    "CrateDependency",
    "DependencyKind",
    "TranslatedDependency",
    "CrateEntry",
]
