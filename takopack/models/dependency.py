"""
Dependency data models for takopack.

:class:`CrateDependency` is what a manifest reader hands us for each
declared dependency. :class:`TranslatedDependency` is the result of
translating one of them for one enabled feature.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


def normalize_name(name: str) -> str:
    """Normalize a crate or feature name for use in package names.

    Lower-cases and replaces underscores with hyphens, so ``Foo_Bar``
    and ``foo-bar`` map to the same package.
    """
    return name.lower().replace("_", "-")


class DependencyKind(enum.Enum):
    """Section of the manifest a dependency was declared in."""

    NORMAL = "normal"
    DEV = "dev"
    BUILD = "build"


@dataclass(frozen=True)
class CrateDependency:
    """A dependency as declared in a crate manifest.

    Attributes:
        name: Crate name exactly as declared.
        req: Version requirement string (``^1.2``, ``>=0.3, <0.5``, ``*``).
        kind: Manifest section the dependency came from.
        optional: Only pulled in when a feature enables it.
        features: Extra features requested on the dependency.
        default_features: Whether the dependency's default features are on.
    """

    name: str
    req: str = "*"
    kind: DependencyKind = DependencyKind.NORMAL
    optional: bool = False
    features: Tuple[str, ...] = ()
    default_features: bool = True

    @property
    def is_runtime(self) -> bool:
        return self.kind is DependencyKind.NORMAL


@dataclass
class TranslatedDependency:
    """One dependency translated for one enabled feature.

    Attributes:
        crate_name: Normalized name of the target crate.
        feature: Enabled feature, or ``None`` for the bare crate.
        version_range: Human readable range (``>= 1.2, << 2``), ``None``
            when any version is accepted.
        clauses: Rendered package clauses, ANDed together.
    """

    crate_name: str
    feature: Optional[str] = None
    version_range: Optional[str] = None
    clauses: List[str] = field(default_factory=list)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.crate_name, self.feature or "")

    def __str__(self) -> str:
        return ", ".join(self.clauses)
