"""
Feature graph reduction.

A crate's features form a graph: every feature (``""`` is the base crate)
pulls in other features and adds external dependencies. Packaging each
feature separately would flood the archive, so the graph is reduced to
the smallest set of installable packages, with the rest expressed as
"provides" of a package that already satisfies them.

Reduction runs in three steps:

1. Names that only differ by ``_`` versus ``-`` (or case) cannot be told
   apart once turned into package names, so colliding features are
   merged first. A merge that creates a feature cycle is fatal.
2. Features with identical dependency sets are deduplicated by making
   all but the first depend on the first.
3. Any feature with no external dependencies and exactly one feature
   dependency is absorbed by that dependency, transitively.

In collapse mode everything is folded into the base package instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence, Tuple

from takopack.exceptions import FeatureCycleError
from takopack.models.dependency import CrateDependency, normalize_name
from takopack.utils.graph import traverse_depth
from takopack.utils.logger import get_logger

logger = get_logger("features")

#: feature name -> (feature dependencies, external dependencies)
FeatureGraph = Dict[str, Tuple[List[str], List[CrateDependency]]]


@dataclass
class FeatureReduction:
    """Result of reducing a feature graph.

    Attributes:
        graph: Surviving features and their dependencies.
        provides: For every surviving feature, the sorted features it
            transitively satisfies.
    """

    graph: FeatureGraph = field(default_factory=dict)
    provides: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def installable(self) -> List[str]:
        return sorted(self.graph)


def _copy_graph(
    features: Mapping[str, Tuple[Sequence[str], Sequence[CrateDependency]]],
) -> FeatureGraph:
    return {name: (list(ff), list(dd)) for name, (ff, dd) in features.items()}


def _union(first: Sequence[CrateDependency], second: Sequence[CrateDependency]):
    merged = list(first)
    for dep in second:
        if dep not in merged:
            merged.append(dep)
    return merged


def normalize_feature_names(
    features: Mapping[str, Tuple[Sequence[str], Sequence[CrateDependency]]],
) -> FeatureGraph:
    """Merge features whose names collide after normalization.

    For a feature ``f`` such as ``with_std`` whose normalized name
    ``with-std`` is also a feature, the normalized entry is removed, its
    dependencies are merged into ``f`` and every reference to it is
    rewritten to ``f``.

    Raises:
        FeatureCycleError: The merge made ``f`` depend on itself.
    """
    graph = _copy_graph(features)

    for name in sorted(graph):
        normalized = normalize_name(name)
        if normalized == name or normalized not in graph or name not in graph:
            continue

        loser_features, loser_deps = graph.pop(normalized)
        own_features, own_deps = graph[name]
        merged_features = set(own_features) | set(loser_features)
        merged_features.discard(name)
        merged_features.discard(normalized)
        graph[name] = (sorted(merged_features), _union(own_deps, loser_deps))

        for other, (feature_deps, _) in graph.items():
            graph[other] = (
                [name if dep == normalized else dep for dep in feature_deps],
                graph[other][1],
            )

        reachable = traverse_depth(lambda f: graph.get(f, ((), ()))[0], name)
        if name in reachable:
            logger.debug("transitive deps of feature %s: %s", name, sorted(reachable))
            raise FeatureCycleError(
                f"Merging features {name} and {normalized} creates a feature "
                "cycle; the crate must be patched manually",
                feature=name,
                merged_feature=normalized,
            )
        logger.warning(
            "Merged features %s and %s as they are not representable separately",
            name,
            normalized,
        )

    return graph


def collapse_features(
    features: Mapping[str, Tuple[Sequence[str], Sequence[CrateDependency]]],
) -> FeatureReduction:
    """Fold every feature into the base package.

    The base package gets the union of all external dependencies and
    provides every other feature.
    """
    deps: List[CrateDependency] = []
    for name in sorted(features):
        deps = _union(deps, features[name][1])
    provided = [name for name in sorted(features) if name != ""]
    return FeatureReduction(graph={"": ([], deps)}, provides={"": provided})


def _deduplicate(graph: FeatureGraph) -> None:
    groups: Dict[tuple, List[str]] = {}
    for name in sorted(graph):
        feature_deps, deps = graph[name]
        groups.setdefault((tuple(feature_deps), tuple(deps)), []).append(name)

    for members in groups.values():
        first = members[0]
        for other in members[1:]:
            logger.debug("Feature %s duplicates %s", other, first)
            graph[other] = ([first], [])


def reduce_provides(
    features: Mapping[str, Tuple[Sequence[str], Sequence[CrateDependency]]],
) -> FeatureReduction:
    """Deduplicate features and absorb single-dependency ones.

    A feature with no deps at all is treated as depending on the base
    package, so it is absorbed into ``""``.
    """
    graph = _copy_graph(features)
    _deduplicate(graph)

    provided_by: Dict[str, List[str]] = {}
    absorbed: List[str] = []
    for name in sorted(graph):
        feature_deps, deps = graph[name]
        if deps:
            continue
        if not feature_deps:
            if name == "":
                continue
            target = ""
        elif len(feature_deps) == 1:
            target = feature_deps[0]
        else:
            continue
        provided_by.setdefault(target, []).append(name)
        absorbed.append(name)

    for name in absorbed:
        del graph[name]

    provides = {
        name: sorted(traverse_depth(lambda f: provided_by.get(f, ()), name))
        for name in sorted(graph)
    }
    return FeatureReduction(graph=graph, provides=provides)


def reduce_features(
    features: Mapping[str, Tuple[Sequence[str], Sequence[CrateDependency]]],
    *,
    collapse: bool = False,
) -> FeatureReduction:
    """Normalize feature names, then reduce or collapse the graph.

    Args:
        features: Feature graph from the manifest reader.
        collapse: Fold everything into the base package.

    Raises:
        FeatureCycleError: Normalization produced a cycle.
    """
    graph = normalize_feature_names(features)
    if collapse:
        return collapse_features(graph)
    reduction = reduce_provides(graph)
    logger.debug(
        "Reduced %d features to %d packages", len(graph), len(reduction.graph)
    )
    return reduction
