"""
Single-crate packaging pipeline.

The recursive walker does not know how a crate gets packaged; it calls a
:class:`CratePipeline` and only looks at the returned
:class:`PackagedCrate`. :class:`LockfilePipeline` is the built-in
implementation: it resolves crates against a parsed lockfile, builds
their package descriptors and writes them as JSON.

Manifest reading is pluggable through :class:`ManifestReader`. Without
one, a crate's feature graph is derived from its lockfile entry alone
(a base package depending on every pinned dependency).
"""

from __future__ import annotations

import json
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

import semantic_version

from takopack.config import TakopackConfig
from takopack.constants import (
    LATEST_VERSION,
    PROC_MACRO_SUFFIXES,
    TOOLCHAIN_SHIM_CRATES,
)
from takopack.core.features import FeatureGraph
from takopack.core.lockfile import DependencyGraph
from takopack.core.packages import PackageDescriptor, build_packages
from takopack.exceptions import ConstraintError, PackagingError, ParseError
from takopack.models.dependency import CrateDependency, normalize_name
from takopack.models.version import Version, parse_requirement
from takopack.utils.filesystem import ensure_directory, safe_write_file
from takopack.utils.logger import get_logger
from takopack.utils.version_utils import compat_version

logger = get_logger("pipeline")

_SHIMS = frozenset(normalize_name(name) for name in TOOLCHAIN_SHIM_CRATES)

#: (dependency name, version requirement or ``None`` for any)
RuntimeDependency = Tuple[str, Optional[str]]


@dataclass
class CrateManifest:
    """What a manifest reader knows about one crate version."""

    name: str
    version: Version
    features: FeatureGraph = field(default_factory=dict)
    dependencies: List[CrateDependency] = field(default_factory=list)


@dataclass
class PackagedCrate:
    """Outcome of packaging one crate.

    Attributes:
        real_name: Crate name as published (may differ from the request
            by ``-`` versus ``_``).
        version: Version that was packaged.
        packages: Generated package descriptors.
        dependencies: Runtime dependencies the walker should visit next.
        output_path: Where the descriptors were written, if anywhere.
    """

    real_name: str
    version: str
    packages: List[PackageDescriptor] = field(default_factory=list)
    dependencies: List[RuntimeDependency] = field(default_factory=list)
    output_path: Optional[Path] = None


class CratePipeline(Protocol):
    """Packages one crate and reports its runtime dependencies."""

    def package(
        self, name: str, version: Optional[str], output_dir: Path
    ) -> PackagedCrate: ...


class ManifestReader(Protocol):
    """Supplies the feature graph and declared dependencies of a crate."""

    def read_manifest(self, name: str, version: Version) -> CrateManifest: ...


def runtime_dependencies(
    crate_name: str,
    dependencies: Iterable[CrateDependency],
) -> List[RuntimeDependency]:
    """Filter declared dependencies down to what must be packaged too.

    Dev and build dependencies, the crate itself, toolchain shim crates,
    proc-macro helper crates (``-derive``, ``-macro``, ``-macros``) and
    optional dependencies are skipped. Each name appears once; a ``*``
    requirement is reported as ``None``.
    """
    own = normalize_name(crate_name)
    seen = set()
    result: List[RuntimeDependency] = []

    for dep in dependencies:
        normalized = normalize_name(dep.name)
        if not dep.is_runtime:
            logger.debug("Skipping %s dependency %s", dep.kind.value, dep.name)
            continue
        if normalized == own or normalized in _SHIMS:
            continue
        if normalized.endswith(tuple(PROC_MACRO_SUFFIXES)):
            logger.debug("Skipping proc-macro crate %s", dep.name)
            continue
        if dep.optional:
            logger.debug("Skipping optional dependency %s", dep.name)
            continue
        if normalized in seen:
            continue
        seen.add(normalized)
        req = dep.req.strip()
        result.append((dep.name, None if req in ("", "*") else req))

    return result


class LockfileManifestReader:
    """Derives a minimal manifest from a lockfile entry.

    Every pinned dependency becomes an exact, non-optional dependency of
    the base package.
    """

    def __init__(self, graph: DependencyGraph) -> None:
        self.graph = graph

    def read_manifest(self, name: str, version: Version) -> CrateManifest:
        package = self.graph.get_package(name, version)
        if package is None:
            raise PackagingError(
                f"{name} {version} is not in the lockfile",
                crate_name=name,
                version=str(version),
            )
        deps = [
            CrateDependency(name=dep.name, req=f"={dep.version}")
            for dep in package.dependencies
        ]
        return CrateManifest(
            name=name,
            version=version,
            features={"": ([], deps)},
            dependencies=deps,
        )


class LockfilePipeline:
    """Packages crates whose versions are pinned by a lockfile.

    Args:
        graph: Parsed lockfile.
        config: Naming and feature settings.
        manifests: Manifest reader; defaults to :class:`LockfileManifestReader`.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        config: TakopackConfig,
        *,
        manifests: Optional[ManifestReader] = None,
    ) -> None:
        self.graph = graph
        self.config = config
        self.manifests = manifests or LockfileManifestReader(graph)

    def resolve_version(self, name: str, requested: Optional[str]) -> Version:
        """Pick the lockfile version of ``name`` matching ``requested``.

        ``None`` or ``"latest"`` selects the highest version. A full
        version must match exactly; anything else is read as a
        requirement and the highest matching version wins.

        Raises:
            PackagingError: Unknown crate or no matching version.
        """
        versions = self.graph.get_versions(name)
        if not versions:
            raise PackagingError(
                f"Crate {name} not found in lockfile",
                crate_name=name,
                version=requested,
            )
        if requested is None or requested == LATEST_VERSION:
            return versions[-1]

        try:
            exact = Version.parse(requested)
        except ParseError:
            exact = None
        if exact is not None:
            if exact in versions:
                return exact
            raise PackagingError(
                f"Crate {name} {requested} not found in lockfile",
                crate_name=name,
                version=requested,
            )

        try:
            comparators = parse_requirement(requested)
        except ConstraintError as exc:
            raise PackagingError(
                f"Invalid version requirement for {name}: {exc.message}",
                crate_name=name,
                version=requested,
            ) from exc
        if not comparators:
            return versions[-1]
        try:
            spec = semantic_version.SimpleSpec(",".join(str(c) for c in comparators))
        except ValueError as exc:
            raise PackagingError(
                f"Invalid version requirement for {name}: {exc}",
                crate_name=name,
                version=requested,
            ) from exc
        matching = [v for v in versions if spec.match(v.semver)]
        if not matching:
            raise PackagingError(
                f"No version of {name} in lockfile matches {requested}",
                crate_name=name,
                version=requested,
            )
        return matching[-1]

    def output_directory(self, base_dir: Path, name: str, version: Version) -> Path:
        prefix = self.config.package_prefix
        return base_dir / f"{prefix}-{normalize_name(name)}-{compat_version(version)}"

    def package(
        self, name: str, version: Optional[str], output_dir: Path
    ) -> PackagedCrate:
        """Resolve, build and write the descriptors of one crate.

        Raises:
            PackagingError: The crate cannot be resolved.
            TakopackError: Translation or feature reduction failed.
        """
        resolved = self.resolve_version(name, version)
        manifest = self.manifests.read_manifest(name, resolved)
        pins: Dict[str, Version] = self.graph.get_dependencies_map(name, resolved) or {}

        packages = build_packages(
            manifest.name, resolved, manifest.features, self.config, pins=pins
        )

        target_dir = ensure_directory(self.output_directory(output_dir, name, resolved))
        target = target_dir / f"{self.config.package_prefix}-{normalize_name(name)}.json"
        document = {
            "crate": manifest.name,
            "version": str(resolved),
            "packages": [package.to_dict() for package in packages],
        }
        safe_write_file(
            target,
            json.dumps(document, indent=2, sort_keys=True) + "\n",
            create_backup=False,
        )
        logger.info("Wrote %s", target)

        dependencies = []
        for dep_name, req in runtime_dependencies(manifest.name, manifest.dependencies):
            pin = pins.get(dep_name)
            dependencies.append((dep_name, f"={pin}" if pin is not None else req))

        return PackagedCrate(
            real_name=manifest.name,
            version=str(resolved),
            packages=packages,
            dependencies=dependencies,
            output_path=target,
        )
