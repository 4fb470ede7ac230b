"""
Core functionality exports for takopack.

    from takopack.core import translate_dependency, reduce_features
"""

from __future__ import annotations

from takopack.core.batch import BatchResult, process_batch, read_batch_file
from takopack.core.crate_database import CrateDatabase
from takopack.core.features import FeatureReduction, reduce_features
from takopack.core.lockfile import DependencyGraph, parse_lockfile
from takopack.core.packages import PackageDescriptor, build_packages
from takopack.core.pipeline import LockfilePipeline, PackagedCrate
from takopack.core.recursive import RecursivePackager, RecursiveSummary
from takopack.core.translator import translate_dependencies, translate_dependency
from takopack.core.version_range import VersionRange

__all__ = [
    "BatchResult",
    "process_batch",
    "read_batch_file",
    "CrateDatabase",
    "FeatureReduction",
    "reduce_features",
    "DependencyGraph",
    "parse_lockfile",
    "PackageDescriptor",
    "build_packages",
    "LockfilePipeline",
    "PackagedCrate",
    "RecursivePackager",
    "RecursiveSummary",
    "translate_dependencies",
    "translate_dependency",
    "VersionRange",
]
