"""
Version range accumulation and rendering.

A :class:`VersionRange` folds any number of requirement comparators into a
single ``[lower, upper)`` pair of :class:`PartialVersion` bounds and
renders it in the ``>=`` / ``<<`` clause syntax of the target package
manager.

Every crate is packaged under its plain name plus one name per
version prefix (``pkg-1``, ``pkg-1.2``, ``pkg-1.2.3``), so rendering picks
the coarsest of those names that still expresses the range. For example
``^1.0`` becomes the single clause ``pkg-1`` and ``^0.3.2`` becomes
``pkg-0.3 (>= 0.3.2)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from takopack.models.version import Comparator, Op, PartialVersion, Version
from takopack.exceptions import UnrepresentableConstraintError, VersionRangeError
from takopack.utils.logger import get_logger

logger = get_logger("version_range")

# (name version segment, is lower bound, bound)
_Clause = Tuple[Optional[PartialVersion], bool, PartialVersion]


@dataclass
class VersionRange:
    """Inclusive lower and exclusive upper bound, each optional.

    Bounds only ever tighten: :meth:`constrain_lower` keeps the greater
    lower bound and :meth:`constrain_upper` keeps the lesser upper bound.
    """

    lower: Optional[PartialVersion] = None
    upper: Optional[PartialVersion] = None

    def constrain_lower(self, bound: PartialVersion) -> "VersionRange":
        if self.lower is None or not bound < self.lower:
            self.lower = bound
        return self

    def constrain_upper(self, bound: PartialVersion) -> "VersionRange":
        if self.upper is None or bound < self.upper:
            self.upper = bound
        return self

    @property
    def is_unbounded(self) -> bool:
        return self.lower is None and self.upper is None

    def validate(self) -> None:
        """Raise :class:`VersionRangeError` if the range is empty."""
        if self.lower is not None and self.upper is not None:
            if self.lower >= self.upper:
                raise VersionRangeError(
                    f"bad version range: >= {self.lower}, << {self.upper}",
                    lower=str(self.lower),
                    upper=str(self.upper),
                )

    def render(self, base: str, suffix: str = "", marker: str = "") -> List[str]:
        """Render the range as one or more package clauses.

        Args:
            base: Unversioned package name, e.g. ``rust-serde``.
            suffix: Appended after the version segment, e.g. ``-derive``.
            marker: Appended to every printed bound, e.g. ``-~~``.

        Raises:
            VersionRangeError: Lower bound is not below the upper bound.
        """
        lower, upper = self.lower, self.upper

        if lower is None and upper is None:
            return [f"{base}{suffix}"]
        if upper is None:
            return [f"{base}{suffix} (>= {lower}{marker})"]
        if lower is None:
            return [f"{base}{suffix} (<< {upper}{marker})"]

        self.validate()
        clauses: List[_Clause] = []
        lo_maj, lo_min, _ = lower.triple
        up_maj, up_min, up_pat = upper.triple

        if lo_maj + 1 == up_maj and up_min == 0 and up_pat == 0:
            # The whole major series fits, name it
            clauses.append((PartialVersion(lo_maj), True, lower))
        elif lo_maj < up_maj:
            clauses.append((None, True, lower))
            clauses.append((None, False, upper))
        elif lo_maj == 0 and lo_min + 1 == up_min and up_pat == 0:
            clauses.append((PartialVersion(0, lo_min), True, lower))
        elif lo_maj == 0 and lo_min < up_min:
            # 0.x series are incompatible with each other
            clauses.append((None, True, lower))
            clauses.append((None, False, upper))
        elif lo_min < up_min:
            clauses.append((PartialVersion(lo_maj), True, lower))
            clauses.append((PartialVersion(up_maj), False, upper))
        else:
            clauses.append((PartialVersion(lo_maj, lo_min), True, lower))
            clauses.append((PartialVersion(up_maj, up_min), False, upper))

        rendered = []
        for segment, is_lower, bound in clauses:
            line = _render_clause(base, suffix, marker, segment, is_lower, bound)
            if line is not None:
                rendered.append(line)
        return rendered

    def __str__(self) -> str:
        parts = []
        if self.lower is not None:
            parts.append(f">= {self.lower}")
        if self.upper is not None:
            parts.append(f"<< {self.upper}")
        return ", ".join(parts) if parts else "*"


def _render_clause(
    base: str,
    suffix: str,
    marker: str,
    segment: Optional[PartialVersion],
    is_lower: bool,
    bound: PartialVersion,
) -> Optional[str]:
    op = ">=" if is_lower else "<<"
    if segment is None:
        return f"{base}{suffix} ({op} {bound}{marker})"

    name = f"{base}-{segment}{suffix}"
    if bound == segment and not bound.is_prerelease:
        # pkg-x (>= x) is implied; pkg-x (<< x) can never hold
        return name if is_lower else None
    return f"{name} ({op} {bound}{marker})"


def apply_comparator(
    vrange: VersionRange,
    comparator: Comparator,
    *,
    crate_name: Optional[str] = None,
) -> VersionRange:
    """Tighten ``vrange`` by the interval one comparator allows.

    ``>= 0`` cannot be told apart from "any version" in the target syntax
    and is coerced to ``> 0`` with a warning. ``< 0`` (and ``< 0.0``,
    ``< 0.0.0``) matches nothing and is rejected.

    Raises:
        UnrepresentableConstraintError: The comparator matches no version.
    """
    v = PartialVersion.from_comparator(comparator)
    op = comparator.op

    if op is Op.GREATER_EQ and v.is_major and v.major == 0:
        logger.warning(
            "Coercing unrepresentable predicate '>= 0' to '> 0' for %s",
            crate_name or "<unknown>",
        )
        op = Op.GREATER

    if op is Op.LESS:
        if v.triple == (0, 0, 0) and not v.is_prerelease:
            raise UnrepresentableConstraintError(
                f"Unrepresentable dependency version predicate: {comparator}",
                crate_name=crate_name,
                requirement=str(comparator),
            )
        vrange.constrain_upper(v)
    elif op is Op.LESS_EQ:
        vrange.constrain_upper(v.increment())
    elif op is Op.GREATER:
        vrange.constrain_lower(v.increment())
    elif op is Op.GREATER_EQ:
        vrange.constrain_lower(v)
    elif op in (Op.EXACT, Op.WILDCARD):
        vrange.constrain_upper(v.increment())
        vrange.constrain_lower(v)
    elif op is Op.TILDE:
        if v.is_major or v.is_major_minor:
            vrange.constrain_upper(v.increment())
        else:
            vrange.constrain_upper(PartialVersion(v.major, v.minor + 1))
        vrange.constrain_lower(v)
    elif op is Op.CARET:
        vrange.constrain_upper(_caret_upper(v))
        vrange.constrain_lower(v)
    else:  # pragma: no cover
        raise AssertionError(f"unhandled operator {op}")

    return vrange


def _caret_upper(v: PartialVersion) -> PartialVersion:
    if v.major == 0 and v.minor is not None:
        if v.minor == 0 and v.patch is not None:
            return v.increment()
        return PartialVersion(0, v.minor + 1)
    return PartialVersion(v.major + 1)


def range_from_comparators(
    comparators: List[Comparator],
    *,
    crate_name: Optional[str] = None,
) -> VersionRange:
    """Fold a list of comparators into a fresh range."""
    vrange = VersionRange()
    for comparator in comparators:
        apply_comparator(vrange, comparator, crate_name=crate_name)
    return vrange


def exact_range(version: Version) -> VersionRange:
    """Range matching exactly one version, ``[M.m.p, M.m.p+1)``.

    A pre-release keeps its tag on both bounds.
    """
    point = PartialVersion.from_version(version)
    return VersionRange(lower=point, upper=point.increment())
