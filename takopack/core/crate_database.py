"""
Persistent crate version database.

The database remembers, per crate and compatibility version, the newest
exact version that has been packaged. Merging a freshly resolved
dependency set into it reports only the entries that are new or
upgraded, so repeated runs act on nothing else.

On disk it is a flat UTF-8 text file, one ``<name> <version> [false]``
entry per line, sorted, with a trailing newline::

    serde 1.0.210
    toml 0.8.19
    windows-sys 0.59.0-rc.1 false
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Union

from takopack.exceptions import ParseError
from takopack.models.crate_entry import CrateEntry
from takopack.models.version import Version
from takopack.utils.filesystem import (
    clean_old_backups,
    safe_read_file,
    safe_write_file,
)
from takopack.utils.logger import get_logger

if TYPE_CHECKING:
    from takopack.core.lockfile import DependencyGraph

logger = get_logger("crate_database")


class CrateDatabase:
    """Ordered map of ``name@compat`` keys to :class:`CrateEntry`.

    Entries are only ever added or replaced by a newer version; a merge
    never downgrades.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, CrateEntry] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_dependency_graph(cls, graph: "DependencyGraph") -> "CrateDatabase":
        """Build a database holding every package of a lockfile graph."""
        db = cls()
        for package in graph.packages():
            db.add_entry(CrateEntry.create(package.name, package.version))
        return db

    @classmethod
    def from_text(cls, text: str, *, source: Optional[str] = None) -> "CrateDatabase":
        """Parse database text, skipping malformed lines with a warning."""
        db = cls()
        for line_number, line in enumerate(text.splitlines(), start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            try:
                db.add_entry(CrateEntry.from_line(line, line_number=line_number))
            except ParseError as exc:
                logger.warning(
                    "Skipping invalid line %d%s: %s (%s)",
                    line_number,
                    f" of {source}" if source else "",
                    stripped,
                    exc.message,
                )
        return db

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "CrateDatabase":
        """Load a database file.

        Raises:
            FileOperationError: The file cannot be read.
        """
        db = cls.from_text(safe_read_file(path), source=str(path))
        logger.debug("Loaded %d entries from %s", len(db), path)
        return db

    @classmethod
    def load_or_create(cls, path: Union[str, Path]) -> "CrateDatabase":
        """Load ``path`` if it exists, otherwise start empty."""
        if Path(path).is_file():
            return cls.from_file(path)
        logger.info("No database at %s, starting a new one", path)
        return cls()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_text(self) -> str:
        lines = sorted(entry.to_line() for entry in self._entries.values())
        return "\n".join(lines) + "\n"

    def to_file(
        self,
        path: Union[str, Path],
        *,
        backup: bool = False,
        keep_backups: Optional[int] = None,
    ) -> Optional[Path]:
        """Rewrite the database file atomically.

        Args:
            path: Destination file.
            backup: Keep a timestamped copy of the previous file.
            keep_backups: Prune backups beyond this many, newest kept.

        Returns:
            Path of the backup made, if any.
        """
        created = safe_write_file(path, self.to_text(), create_backup=backup)
        if created is not None:
            logger.debug("Backed up database to %s", created)
        if backup and keep_backups is not None:
            clean_old_backups(path, keep=keep_backups)
        logger.info("Saved %d entries to %s", len(self), path)
        return created

    # ------------------------------------------------------------------
    # Access and mutation
    # ------------------------------------------------------------------

    def add_entry(self, entry: CrateEntry) -> None:
        """Insert ``entry``, replacing whatever shares its key."""
        self._entries[entry.key] = entry

    def entries(self) -> Iterator[CrateEntry]:
        for key in sorted(self._entries):
            yield self._entries[key]

    def get(self, name: str, version: Union[Version, str]) -> Optional[CrateEntry]:
        """Return the entry sharing ``version``'s compatibility slot."""
        if isinstance(version, str):
            version = Version.parse(version)
        return self._entries.get(CrateEntry.create(name, version).key)

    def merge(self, other: "CrateDatabase") -> List[CrateEntry]:
        """Fold ``other`` into this database.

        Returns:
            Entries that need action: keys not seen before and versions
            newer than the stored one. Equal or older versions are
            ignored.
        """
        needs_action: List[CrateEntry] = []
        for entry in other.entries():
            existing = self._entries.get(entry.key)
            if existing is None:
                logger.debug("New crate %s", entry.key)
            elif entry.version > existing.version:
                logger.debug(
                    "Upgrade %s: %s -> %s", entry.key, existing.version, entry.version
                )
            else:
                continue
            self._entries[entry.key] = entry
            needs_action.append(entry)
        return needs_action

    def merge_dependency_graph(self, graph: "DependencyGraph") -> List[CrateEntry]:
        """Merge every package of a lockfile graph, see :meth:`merge`."""
        return self.merge(CrateDatabase.from_dependency_graph(graph))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[CrateEntry]:
        return self.entries()
