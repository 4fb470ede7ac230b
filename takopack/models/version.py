"""
Semantic version models for takopack.

This module defines the three version shapes the translator works with:

- :class:`Version` — a fully specified semver version as found in
  lockfiles and the crate database.
- :class:`Comparator` — one ``op version`` pair of a requirement, where
  minor and patch may be omitted (``^1``, ``~1.2``, ``1.*``).
- :class:`PartialVersion` — the lattice element a comparator reduces to
  (major, major.minor, major.minor.patch or pre-release tagged).

Requirements are parsed with :func:`parse_requirement`, which accepts the
comma separated comparator syntax used by crate manifests.
"""

from __future__ import annotations

import re
import enum
import functools
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import semantic_version

from takopack.exceptions import ConstraintError, ParseError
from takopack.utils.logger import get_logger

logger = get_logger("version")

_COMPARATOR_RE = re.compile(
    r"^(?P<op>>=|<=|>|<|=|~|\^)?\s*"
    r"(?P<major>\d+|[*xX])"
    r"(?:\.(?P<minor>\d+|[*xX]))?"
    r"(?:\.(?P<patch>\d+|[*xX]))?"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

_WILDCARDS = ("*", "x", "X")


@functools.total_ordering
@dataclass(frozen=True)
class Version:
    """A fully specified semantic version.

    Parsing and precedence come from :class:`semantic_version.Version`;
    this class keeps the tag strings the translator and the database
    print.

    Attributes:
        major: Major component.
        minor: Minor component.
        patch: Patch component.
        pre: Pre-release tag without the leading ``-``.
        build: Build metadata without the leading ``+``.
    """

    major: int
    minor: int
    patch: int
    pre: Optional[str] = None
    build: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse ``MAJOR.MINOR.PATCH[-PRE][+BUILD]``.

        Raises:
            ParseError: ``text`` is not a valid semantic version.
        """
        try:
            parsed = semantic_version.Version(text.strip())
        except ValueError as exc:
            raise ParseError(f"Invalid version: {text!r}", line_content=text) from exc
        return cls(
            major=parsed.major,
            minor=parsed.minor,
            patch=parsed.patch,
            pre=".".join(parsed.prerelease) or None,
            build=".".join(parsed.build) or None,
        )

    @functools.cached_property
    def semver(self) -> semantic_version.Version:
        return semantic_version.Version(str(self))

    @property
    def is_prerelease(self) -> bool:
        return self.pre is not None

    @property
    def triple(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        if self.semver < other.semver:
            return True
        if other.semver < self.semver:
            return False
        # Build metadata has no precedence in semver; it only breaks ties
        # so that ordering agrees with equality.
        return (self.build or "") < (other.build or "")

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            text += f"-{self.pre}"
        if self.build:
            text += f"+{self.build}"
        return text


class Op(enum.Enum):
    """Requirement operators understood by crate manifests."""

    EXACT = "="
    GREATER = ">"
    GREATER_EQ = ">="
    LESS = "<"
    LESS_EQ = "<="
    TILDE = "~"
    CARET = "^"
    WILDCARD = "*"


@dataclass(frozen=True)
class Comparator:
    """One operator and partially specified version of a requirement."""

    op: Op
    major: int
    minor: Optional[int] = None
    patch: Optional[int] = None
    pre: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "Comparator":
        """Parse a single comparator such as ``>=1.2``, ``~0.3.1`` or ``1.*``.

        A bare version means caret. A wildcard in the minor or patch
        position truncates the version and, for bare or ``=``/``^``
        comparators, turns the operator into :attr:`Op.WILDCARD`.

        Raises:
            ConstraintError: The comparator is malformed.
        """
        raw = text.strip()
        match = _COMPARATOR_RE.match(raw)
        if not match:
            raise ConstraintError(f"Invalid comparator: {raw!r}", requirement=raw)

        op = Op(match.group("op")) if match.group("op") else Op.CARET
        components: List[Optional[str]] = [
            match.group("major"),
            match.group("minor"),
            match.group("patch"),
        ]

        numbers: List[int] = []
        wildcard = False
        for value in components:
            if value is None:
                break
            if value in _WILDCARDS:
                wildcard = True
                break
            numbers.append(int(value))

        if wildcard:
            if match.group("pre"):
                raise ConstraintError(
                    f"Wildcard comparator cannot carry a pre-release: {raw!r}",
                    requirement=raw,
                )
            if not numbers:
                raise ConstraintError(
                    f"Bare wildcard is not a comparator: {raw!r}",
                    requirement=raw,
                )
            if op in (Op.CARET, Op.EXACT):
                op = Op.WILDCARD

        if match.group("build"):
            logger.debug("Ignoring build metadata in comparator %r", raw)

        pre = match.group("pre")
        if pre is not None and len(numbers) < 3:
            raise ConstraintError(
                f"Pre-release comparator needs a full version: {raw!r}",
                requirement=raw,
            )

        return cls(
            op=op,
            major=numbers[0],
            minor=numbers[1] if len(numbers) > 1 else None,
            patch=numbers[2] if len(numbers) > 2 else None,
            pre=pre,
        )

    @property
    def version_text(self) -> str:
        """The comparator's version exactly as specified."""
        text = ".".join(
            str(n) for n in (self.major, self.minor, self.patch) if n is not None
        )
        if self.pre:
            text += f"-{self.pre}"
        return text

    def __str__(self) -> str:
        if self.op is Op.WILDCARD:
            return f"{self.version_text}.*"
        return f"{self.op.value}{self.version_text}"


def parse_requirement(text: str) -> List[Comparator]:
    """Parse a comma separated requirement into its comparators.

    ``*`` and the empty string match any version and yield no comparators.

    Raises:
        ConstraintError: Any comparator is malformed.
    """
    stripped = text.strip()
    if stripped in ("", "*", "x", "X"):
        return []
    comparators = []
    for part in stripped.split(","):
        if not part.strip():
            raise ConstraintError(f"Empty comparator in {text!r}", requirement=text)
        comparators.append(Comparator.parse(part))
    return comparators


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class PartialVersion:
    """A partially specified version used as a range bound.

    Exactly one of four shapes: ``M``, ``M.m``, ``M.m.p`` or ``M.m.p-pre``.
    Equality and ordering look at the numeric triple only, with missing
    components read as ``0``; the pre-release tag is carried but never
    compared.
    """

    major: int
    minor: Optional[int] = None
    patch: Optional[int] = None
    pre: Optional[str] = None

    def __post_init__(self) -> None:
        if self.minor is None and self.patch is not None:
            raise ValueError("patch given without minor")
        if self.pre is not None and self.patch is None:
            raise ValueError("pre-release requires a full version")

    @classmethod
    def from_comparator(cls, comparator: Comparator) -> "PartialVersion":
        return cls(comparator.major, comparator.minor, comparator.patch, comparator.pre)

    @classmethod
    def from_version(cls, version: Union[Version, str]) -> "PartialVersion":
        """Full ``M.m.p`` bound for a concrete version, build metadata dropped."""
        if isinstance(version, str):
            version = Version.parse(version)
        return cls(version.major, version.minor, version.patch, version.pre)

    @property
    def triple(self) -> Tuple[int, int, int]:
        return (self.major, self.minor or 0, self.patch or 0)

    @property
    def is_major(self) -> bool:
        return self.minor is None

    @property
    def is_major_minor(self) -> bool:
        return self.minor is not None and self.patch is None

    @property
    def is_prerelease(self) -> bool:
        return self.pre is not None

    def increment(self) -> "PartialVersion":
        """Bump the least significant component present.

        ``1`` becomes ``2``, ``1.2`` becomes ``1.3`` and ``1.2.3`` becomes
        ``1.2.4``. A pre-release keeps its tag.
        """
        if self.minor is None:
            return PartialVersion(self.major + 1)
        if self.patch is None:
            return PartialVersion(self.major, self.minor + 1)
        return PartialVersion(self.major, self.minor, self.patch + 1, self.pre)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PartialVersion):
            return NotImplemented
        return self.triple == other.triple

    def __hash__(self) -> int:
        return hash(self.triple)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PartialVersion):
            return NotImplemented
        return self.triple < other.triple

    def __str__(self) -> str:
        text = ".".join(
            str(n) for n in (self.major, self.minor, self.patch) if n is not None
        )
        if self.pre is not None:
            text += f"-{self.pre}"
        return text
