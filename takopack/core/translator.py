"""
Dependency constraint translation.

Turns a :class:`CrateDependency` into the package clauses that express it,
one :class:`TranslatedDependency` per enabled feature:

- default features on: the ``default`` feature package
- each explicitly requested feature: that feature's package
- neither: the bare crate package

When a lockfile pin is known for the crate the requirement is replaced by
the exact pinned version.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional

from takopack.config import TakopackConfig
from takopack.constants import DEFAULT_FEATURE
from takopack.exceptions import ConstraintError
from takopack.core.version_range import exact_range, range_from_comparators
from takopack.models.version import Comparator, Version, parse_requirement
from takopack.models.dependency import (
    CrateDependency,
    TranslatedDependency,
    normalize_name,
)
from takopack.utils.logger import get_logger

logger = get_logger("translator")


def package_base_name(crate_name: str, config: TakopackConfig) -> str:
    """Unversioned package name of a crate, e.g. ``rust-serde-json``."""
    return f"{config.package_prefix}-{normalize_name(crate_name)}"


def _enabled_features(dep: CrateDependency) -> List[Optional[str]]:
    features: List[Optional[str]] = []
    if dep.default_features:
        features.append(DEFAULT_FEATURE)
    for feature in dep.features:
        normalized = normalize_name(feature)
        if normalized not in features:
            features.append(normalized)
    if not features:
        features.append(None)
    return features


def _parse(dep: CrateDependency) -> List[Comparator]:
    try:
        return parse_requirement(dep.req)
    except ConstraintError as exc:
        raise ConstraintError(
            exc.message,
            crate_name=dep.name,
            requirement=dep.req,
        ) from exc


def _lookup_pin(
    dep: CrateDependency,
    pins: Optional[Mapping[str, Version]],
) -> Optional[Version]:
    if not pins:
        return None
    if dep.name in pins:
        return pins[dep.name]
    return pins.get(normalize_name(dep.name))


def translate_dependency(
    dep: CrateDependency,
    config: TakopackConfig,
    *,
    pin: Optional[Version] = None,
) -> List[TranslatedDependency]:
    """Translate one manifest dependency into package clauses.

    Args:
        dep: Dependency as declared by the manifest.
        config: Naming and marker settings.
        pin: Exact version from a lockfile, overriding ``dep.req``.

    Returns:
        One translated dependency per enabled feature.

    Raises:
        ConstraintError: The requirement cannot be parsed.
        UnrepresentableConstraintError: The requirement matches nothing.
        VersionRangeError: The comparators leave an empty range.
    """
    base = package_base_name(dep.name, config)
    crate_name = normalize_name(dep.name)
    if pin is not None:
        vrange = exact_range(pin)
    else:
        comparators = _parse(dep)
        if any(c.pre is not None for c in comparators):
            logger.warning(
                "Dependency %s has pre-release requirement %s, using full version",
                dep.name,
                dep.req,
            )
        vrange = range_from_comparators(comparators, crate_name=dep.name)

    translated = []
    for feature in _enabled_features(dep):
        suffix = f"-{feature}" if feature else ""
        translated.append(
            TranslatedDependency(
                crate_name=crate_name,
                feature=feature,
                version_range=None if vrange.is_unbounded else str(vrange),
                clauses=vrange.render(base, suffix, config.marker),
            )
        )

    logger.debug("Translated %s %s -> %s", dep.name, dep.req, translated)
    return translated


def translate_dependencies(
    deps: Iterable[CrateDependency],
    config: TakopackConfig,
    *,
    pins: Optional[Mapping[str, Version]] = None,
) -> List[TranslatedDependency]:
    """Translate many dependencies, one entry per (crate, feature).

    A crate declared more than once (for example under different target
    tables) keeps every distinct clause under a single entry.
    """
    merged: Dict[tuple, TranslatedDependency] = {}
    for dep in deps:
        for item in translate_dependency(dep, config, pin=_lookup_pin(dep, pins)):
            existing = merged.get(item.key)
            if existing is None:
                merged[item.key] = item
                continue
            existing.clauses = sorted(set(existing.clauses) | set(item.clauses))
            if item.version_range != existing.version_range:
                ranges = [r for r in (existing.version_range, item.version_range) if r]
                existing.version_range = "; ".join(ranges) or None
    return [merged[key] for key in sorted(merged)]


def dependency_clauses(translated: Iterable[TranslatedDependency]) -> List[str]:
    """Flatten translated dependencies into a sorted, deduplicated clause list."""
    return sorted({clause for item in translated for clause in item.clauses})
