"""
Lockfile graph parser.

Reads a ``Cargo.lock`` style TOML document into an explicit
:class:`DependencyGraph` of ``(name, version)`` packages, each with its
resolved ``(dependency name, version)`` list.

Only packages from the public registry are kept. Path and git sources
as well as workspace members (no ``source`` at all) are reported in
:attr:`DependencyGraph.skipped`.

Example document::

    [[package]]
    name = "serde"
    version = "1.0.210"
    source = "registry+https://github.com/rust-lang/crates.io-index"
    dependencies = ["serde_derive"]
"""

from __future__ import annotations

import functools
import tomli as tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from takopack.constants import REGISTRY_SOURCE_PREFIXES
from takopack.exceptions import LockfileError, ParseError
from takopack.models.version import Version
from takopack.utils.filesystem import safe_read_file
from takopack.utils.logger import get_logger

logger = get_logger("lockfile")


@functools.total_ordering
@dataclass(frozen=True)
class DependencyInfo:
    """A resolved dependency edge."""

    name: str
    version: Version

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, DependencyInfo):
            return NotImplemented
        return (self.name, self.version) < (other.name, other.version)


@dataclass
class PackageInfo:
    """A registry package and its resolved dependencies."""

    name: str
    version: Version
    dependencies: List[DependencyInfo] = field(default_factory=list)


@dataclass(frozen=True)
class SkippedPackage:
    """A lockfile entry left out of the graph."""

    name: str
    version: str
    source: Optional[str] = None

    def __str__(self) -> str:
        origin = self.source if self.source is not None else "workspace"
        return f"{self.name} {self.version} (source: {origin})"


class DependencyGraph:
    """Read-only view of a parsed lockfile."""

    def __init__(self) -> None:
        self._packages: Dict[Tuple[str, Version], PackageInfo] = {}
        self.skipped: List[SkippedPackage] = []

    def add_package(self, package: PackageInfo) -> None:
        self._packages[(package.name, package.version)] = package

    def packages(self) -> Iterator[PackageInfo]:
        """Packages ordered by name, then version."""
        for key in sorted(self._packages):
            yield self._packages[key]

    def get_package(
        self, name: str, version: Union[Version, str]
    ) -> Optional[PackageInfo]:
        if isinstance(version, str):
            version = Version.parse(version)
        return self._packages.get((name, version))

    def get_versions(self, name: str) -> List[Version]:
        """Every version of ``name`` in the graph, ascending."""
        return sorted(v for (n, v) in self._packages if n == name)

    def get_dependencies_map(
        self, name: str, version: Union[Version, str]
    ) -> Optional[Dict[str, Version]]:
        """Dependency name to pinned version for one package."""
        package = self.get_package(name, version)
        if package is None:
            return None
        return {dep.name: dep.version for dep in package.dependencies}

    def __len__(self) -> int:
        return len(self._packages)

    def __contains__(self, key: object) -> bool:
        return key in self._packages


def _is_registry(source: Optional[str], prefixes: Sequence[str]) -> bool:
    return source is not None and source.startswith(tuple(prefixes))


def _required_str(entry: Dict[str, Any], key: str, name: Optional[str]) -> str:
    value = entry.get(key)
    if not isinstance(value, str):
        raise LockfileError(
            f"Lockfile package is missing its '{key}' field",
            crate_name=name,
        )
    return value


def _parse_version(text: str, crate_name: str) -> Version:
    try:
        return Version.parse(text)
    except ParseError as exc:
        raise LockfileError(
            f"Failed to parse version '{text}' for package '{crate_name}'",
            crate_name=crate_name,
        ) from exc


def _resolve(
    reference: str,
    owner: str,
    index: Dict[str, List[Version]],
) -> Optional[DependencyInfo]:
    """Resolve ``name`` or ``name version [(source)]`` to a pinned edge."""
    parts = reference.split()
    if not parts:
        raise LockfileError(
            f"Empty dependency reference in package '{owner}'", crate_name=owner
        )
    name = parts[0]
    if len(parts) > 1:
        return DependencyInfo(name, _parse_version(parts[1], name))

    candidates = index.get(name)
    if not candidates:
        logger.debug("Dropping non-registry dependency %s of %s", name, owner)
        return None
    if len(candidates) > 1:
        logger.debug(
            "Ambiguous dependency %s of %s, using highest of %d versions",
            name,
            owner,
            len(candidates),
        )
    return DependencyInfo(name, max(candidates))


def parse_lockfile_data(
    data: Dict[str, Any],
    *,
    registry_prefixes: Sequence[str] = REGISTRY_SOURCE_PREFIXES,
) -> DependencyGraph:
    """Build a graph from an already decoded lockfile document.

    Raises:
        LockfileError: Missing ``package`` array, missing ``name`` or
            ``version``, or an unparsable version.
    """
    packages = data.get("package")
    if not isinstance(packages, list):
        raise LockfileError("Lockfile is missing its 'package' array")

    graph = DependencyGraph()
    index: Dict[str, List[Version]] = {}
    registry_entries: List[Tuple[Dict[str, Any], str, Version]] = []

    for entry in packages:
        if not isinstance(entry, dict):
            raise LockfileError("Lockfile 'package' entries must be tables")
        name = _required_str(entry, "name", None)
        version_text = _required_str(entry, "version", name)
        source = entry.get("source")

        if not _is_registry(source, registry_prefixes):
            graph.skipped.append(SkippedPackage(name, version_text, source))
            continue

        version = _parse_version(version_text, name)
        index.setdefault(name, []).append(version)
        registry_entries.append((entry, name, version))

    for entry, name, version in registry_entries:
        references = entry.get("dependencies", [])
        if not isinstance(references, list):
            raise LockfileError(
                f"Dependencies of '{name}' must be an array",
                crate_name=name,
            )
        resolved = set()
        for reference in references:
            if not isinstance(reference, str):
                raise LockfileError(
                    f"Dependency references of '{name}' must be strings",
                    crate_name=name,
                )
            dep = _resolve(reference, name, index)
            if dep is not None:
                resolved.add(dep)
        graph.add_package(PackageInfo(name, version, sorted(resolved)))

    if graph.skipped:
        logger.info(
            "Skipped %d non-registry package(s): %s",
            len(graph.skipped),
            ", ".join(str(s) for s in graph.skipped),
        )
    logger.debug("Parsed lockfile with %d registry packages", len(graph))
    return graph


def parse_lockfile_string(
    content: str,
    *,
    registry_prefixes: Sequence[str] = REGISTRY_SOURCE_PREFIXES,
) -> DependencyGraph:
    """Parse lockfile text.

    Raises:
        LockfileError: Invalid TOML or invalid content.
    """
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as exc:
        raise LockfileError(f"Failed to parse lockfile as TOML: {exc}") from exc
    return parse_lockfile_data(data, registry_prefixes=registry_prefixes)


def parse_lockfile(
    path: Union[str, Path],
    *,
    registry_prefixes: Sequence[str] = REGISTRY_SOURCE_PREFIXES,
) -> DependencyGraph:
    """Read and parse a lockfile from disk.

    Raises:
        FileOperationError: The file cannot be read.
        LockfileError: The content is invalid.
    """
    content = safe_read_file(path)
    try:
        return parse_lockfile_string(content, registry_prefixes=registry_prefixes)
    except LockfileError as exc:
        exc.file_path = str(path)
        exc.details["file"] = str(path)
        raise
