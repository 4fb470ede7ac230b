"""
Package descriptor construction.

Combines the feature graph reducer and the constraint translator into the
list of binary packages one crate version turns into: the base package
plus one package per surviving feature. Each descriptor carries the
structured dependency data and the rendered relationship fields
(depends, provides, recommends, suggests) a control file renderer needs.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from takopack.config import TakopackConfig
from takopack.constants import DEFAULT_FEATURE
from takopack.core.features import reduce_features
from takopack.models.version import Version
from takopack.models.dependency import (
    CrateDependency,
    TranslatedDependency,
    normalize_name,
)
from takopack.core.translator import (
    dependency_clauses,
    package_base_name,
    translate_dependencies,
)
from takopack.utils.logger import get_logger

logger = get_logger("packages")


def feature_package_name(base: str, feature: Optional[str]) -> str:
    """Package name of ``feature`` under ``base`` (``base`` itself for ``""``)."""
    if not feature:
        return base
    return f"{base}-{normalize_name(feature)}"


def version_suffixes(version: Version) -> List[str]:
    """Every version segment a package is also known by.

    ``1.2.3`` yields ``""``, ``-1``, ``-1.2`` and ``-1.2.3``.
    """
    return [
        "",
        f"-{version.major}",
        f"-{version.major}.{version.minor}",
        f"-{version.major}.{version.minor}.{version.patch}",
    ]


@dataclass
class PackageDescriptor:
    """One binary package generated from a crate.

    Attributes:
        name: Package name, e.g. ``rust-serde-derive``.
        crate_name: Crate the package was built from.
        version: Crate version.
        feature: Feature this package enables, ``None`` for the base package.
        depends: Rendered dependency clauses.
        crate_deps: The same dependencies as structured records.
        provides: Names this package also satisfies.
        recommends: Feature packages recommended by the base package.
        suggests: Feature packages suggested by the base package.
    """

    name: str
    crate_name: str
    version: str
    feature: Optional[str] = None
    depends: List[str] = field(default_factory=list)
    crate_deps: List[TranslatedDependency] = field(default_factory=list)
    provides: List[str] = field(default_factory=list)
    recommends: List[str] = field(default_factory=list)
    suggests: List[str] = field(default_factory=list)

    @property
    def is_base(self) -> bool:
        return self.feature is None

    def summary(self) -> str:
        if self.feature is None:
            return f"Rust source code for crate {self.crate_name}"
        extra = len(self.provides)
        text = f'feature "{self.feature}" of crate {self.crate_name}'
        return text if not extra else f"{text} ({extra} provided names)"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _split_recommendations(
    provides: Mapping[str, List[str]],
) -> Tuple[List[str], List[str]]:
    recommends: List[str] = []
    suggests: List[str] = []
    for feature, provided in sorted(provides.items()):
        if feature == "":
            continue
        if feature == DEFAULT_FEATURE or DEFAULT_FEATURE in provided:
            recommends.append(feature)
        else:
            suggests.append(feature)
    return recommends, suggests


def build_packages(
    crate_name: str,
    version: Version,
    features: Mapping[str, Tuple[Sequence[str], Sequence[CrateDependency]]],
    config: TakopackConfig,
    *,
    pins: Optional[Mapping[str, Version]] = None,
) -> List[PackageDescriptor]:
    """Build the package descriptors for one crate version.

    Args:
        crate_name: Crate name as published.
        version: Crate version being packaged.
        features: Feature graph from the manifest reader.
        config: Naming, marker and collapse settings.
        pins: Exact dependency versions from a lockfile.

    Returns:
        The base package first, then feature packages in name order.

    Raises:
        FeatureCycleError: Feature normalization produced a cycle.
        ConstraintError: A dependency requirement cannot be translated.
    """
    reduction = reduce_features(features, collapse=config.collapse_features)
    base = package_base_name(crate_name, config)
    recommends, suggests = _split_recommendations(reduction.provides)
    base_provides = reduction.provides.get("", [])

    packages = []
    for feature in sorted(reduction.graph):
        feature_deps, deps = reduction.graph[feature]
        f_provides = reduction.provides.get(feature, [])
        own_name = feature_package_name(base, feature)

        provides: List[str] = []
        for segment in version_suffixes(version):
            prefix = f"{base}{segment}"
            for name in [feature] + list(f_provides):
                candidate = feature_package_name(prefix, name)
                if candidate != own_name and candidate not in provides:
                    provides.append(candidate)

        depends: List[str] = []
        crate_deps: List[TranslatedDependency] = []
        if feature and "" not in feature_deps:
            depends.append(base)
            crate_deps.append(
                TranslatedDependency(normalize_name(crate_name), clauses=[base])
            )
        for dep_feature in feature_deps:
            depends.append(feature_package_name(base, dep_feature))
            crate_deps.append(
                TranslatedDependency(
                    normalize_name(crate_name),
                    feature=normalize_name(dep_feature) or None,
                    clauses=[feature_package_name(base, dep_feature)],
                )
            )

        translated = translate_dependencies(deps, config, pins=pins)
        crate_deps.extend(translated)
        for clause in dependency_clauses(translated):
            if clause not in depends:
                depends.append(clause)

        is_base = feature == ""
        packages.append(
            PackageDescriptor(
                name=own_name,
                crate_name=crate_name,
                version=str(version),
                feature=None if is_base else feature,
                depends=depends,
                crate_deps=crate_deps,
                provides=provides,
                recommends=[
                    feature_package_name(base, f)
                    for f in recommends
                    if f not in base_provides
                ]
                if is_base
                else [],
                suggests=[
                    feature_package_name(base, f)
                    for f in suggests
                    if f not in base_provides
                ]
                if is_base
                else [],
            )
        )

    logger.info(
        "Built %d package(s) for %s %s", len(packages), crate_name, version
    )
    return packages
