"""
Crate database entry model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from takopack.exceptions import ParseError
from takopack.models.version import Version
from takopack.utils.version_utils import compat_version


@dataclass(frozen=True)
class CrateEntry:
    """One crate version recorded in the crate database.

    Entries are immutable; a newer version of the same crate replaces the
    entry instead of mutating it.

    Attributes:
        name: Crate name with its original spelling.
        version: Exact crate version.
        compatible: ``False`` for pre-releases, which never share a
            package with any other version.
    """

    name: str
    version: Version
    compatible: bool = True

    @classmethod
    def create(cls, name: str, version: Version) -> "CrateEntry":
        """Build an entry, deriving ``compatible`` from the version."""
        return cls(name=name, version=version, compatible=not version.is_prerelease)

    @property
    def compat_version(self) -> str:
        return compat_version(self.version)

    @property
    def key(self) -> str:
        """Database key, ``name@compat``."""
        return f"{self.name}@{self.compat_version}"

    @classmethod
    def from_line(cls, line: str, *, line_number: Optional[int] = None) -> "CrateEntry":
        """Parse ``name version [false]``.

        Only a literal ``false`` third token marks the entry incompatible.

        Raises:
            ParseError: Blank line, comment, too few fields or bad version.
        """
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            raise ParseError(
                "Not a crate entry",
                line_number=line_number,
                line_content=line,
            )

        parts = stripped.split()
        if len(parts) < 2:
            raise ParseError(
                "Expected '<name> <version> [false]'",
                line_number=line_number,
                line_content=line,
            )

        try:
            version = Version.parse(parts[1])
        except ParseError as exc:
            raise ParseError(
                exc.message,
                line_number=line_number,
                line_content=line,
            ) from exc

        compatible = not (len(parts) > 2 and parts[2] == "false")
        return cls(name=parts[0], version=version, compatible=compatible)

    def to_line(self) -> str:
        line = f"{self.name} {self.version}"
        return line if self.compatible else f"{line} false"
