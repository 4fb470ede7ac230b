"""
Recursive dependency walker (vendoring).

Starting from one root crate, :class:`RecursivePackager` packages the
crate and then every runtime dependency it reports, depth first in
pre-order, until the whole reachable tree has been attempted.

Each ``(name, version)`` key moves through ``unseen -> in_progress ->
processed | failed``. A key is skipped when it is already processed,
currently in progress (a dependency cycle), already failed, or when any
other version of the same crate has been claimed: a crate is packaged
at most once per tree, first one wins.

A crate that fails is retried once under its alternate spelling
(``foo-bar`` <-> ``foo_bar``) and then recorded; the rest of the walk is
unaffected. The walk uses an explicit stack, so arbitrarily deep chains
never hit the interpreter's recursion limit.
"""

from __future__ import annotations

from pathlib import Path
from datetime import datetime
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

from takopack.constants import LATEST_VERSION, OUTPUT_DIR_TIMESTAMP
from takopack.core.pipeline import CratePipeline, PackagedCrate, RuntimeDependency
from takopack.models.dependency import normalize_name
from takopack.utils.filesystem import ensure_directory
from takopack.utils.logger import get_logger

logger = get_logger("recursive")

#: (crate name, requested version or ``"latest"``)
CrateKey = Tuple[str, str]


@dataclass(frozen=True)
class FailedPackage:
    """A crate that could not be packaged."""

    crate_name: str
    version: str
    error: str


@dataclass
class RecursiveSummary:
    """Outcome of one recursive walk."""

    base_dir: Path
    total_attempted: int = 0
    processed: List[CrateKey] = field(default_factory=list)
    failed: List[FailedPackage] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        return (
            f"{self.total_attempted} attempted, {len(self.processed)} packaged, "
            f"{len(self.failed)} failed"
        )


def alternate_spelling(name: str) -> Optional[str]:
    """Swap ``-`` and ``_`` in a crate name, ``None`` if it has neither."""
    if "-" in name:
        return name.replace("-", "_")
    if "_" in name:
        return name.replace("_", "-")
    return None


class RecursivePackager:
    """Walks a dependency tree, packaging every crate once.

    Args:
        pipeline: Packages a single crate.
        base_dir: Output directory; defaults to a ``%Y%m%d_%H%M%S``
            timestamp directory in the current working directory.

    Raises:
        FileOperationError: The output directory cannot be created.
    """

    def __init__(
        self,
        pipeline: CratePipeline,
        base_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        if base_dir is None:
            base_dir = Path(datetime.now().strftime(OUTPUT_DIR_TIMESTAMP))
        self.pipeline = pipeline
        self.base_dir = ensure_directory(base_dir)
        self.processed: Set[CrateKey] = set()
        self.in_progress: Set[CrateKey] = set()
        self.failed: List[FailedPackage] = []
        #: normalized crate name -> published crate name
        self.crate_name_map: Dict[str, str] = {}
        self.total_attempted: int = 0

        self._processed_order: List[CrateKey] = []
        self._failed_keys: Set[CrateKey] = set()
        # normalized name -> key that claimed it
        self._claimed: Dict[str, CrateKey] = {}

        logger.info("Output directory: %s", self.base_dir)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, crate_name: str, version: Optional[str] = None) -> RecursiveSummary:
        """Package ``crate_name`` and its whole runtime dependency tree.

        Crate-level failures are recorded, never raised.
        """
        stack: List[Iterator[RuntimeDependency]] = [iter([(crate_name, version)])]
        while stack:
            try:
                name, requested = next(stack[-1])
            except StopIteration:
                stack.pop()
                continue
            dependencies = self._visit(name, requested)
            if dependencies:
                stack.append(iter(dependencies))

        summary = self.summary()
        logger.info("Recursive packaging finished: %s", summary.summary())
        return summary

    def summary(self) -> RecursiveSummary:
        return RecursiveSummary(
            base_dir=self.base_dir,
            total_attempted=self.total_attempted,
            processed=list(self._processed_order),
            failed=list(self.failed),
        )

    def resolve_name(self, name: str) -> str:
        """Published spelling of ``name`` if it has been packaged."""
        return self.crate_name_map.get(normalize_name(name), name)

    # ------------------------------------------------------------------
    # Walk steps
    # ------------------------------------------------------------------

    def _skip_reason(self, key: CrateKey) -> Optional[str]:
        name, _ = key
        if key in self.processed:
            return "already processed"
        if key in self.in_progress:
            return "circular dependency"
        claimed = self._claimed.get(normalize_name(name))
        if claimed is not None and claimed != key:
            return f"version {claimed[1]} already claimed"
        if key in self._failed_keys:
            return "previously failed"
        return None

    def _visit(
        self, name: str, requested: Optional[str]
    ) -> Optional[List[RuntimeDependency]]:
        key: CrateKey = (name, requested or LATEST_VERSION)
        reason = self._skip_reason(key)
        if reason is not None:
            logger.debug("Skipping %s %s: %s", key[0], key[1], reason)
            return None

        self.in_progress.add(key)
        self._claimed.setdefault(normalize_name(name), key)
        self.total_attempted += 1
        logger.info("Packaging %s %s", name, key[1])

        result, error = self._package_with_retry(name, requested)
        self.in_progress.discard(key)
        if result is None:
            self._record_failure(key, error)
            return None

        self.processed.add(key)
        self._processed_order.append(key)
        self.crate_name_map[normalize_name(result.real_name)] = result.real_name
        logger.info("Packaged %s %s", result.real_name, result.version)
        return list(result.dependencies)

    def _package_with_retry(
        self, name: str, requested: Optional[str]
    ) -> Tuple[Optional[PackagedCrate], str]:
        try:
            return self.pipeline.package(name, requested, self.base_dir), ""
        except Exception as exc:  # failures are isolated per crate
            first_error = exc

        alternate = alternate_spelling(name)
        if alternate is None:
            logger.debug("Packaging %s failed", name, exc_info=first_error)
            return None, str(first_error)

        logger.info("Packaging %s failed, retrying as %s", name, alternate)
        try:
            return self.pipeline.package(alternate, requested, self.base_dir), ""
        except Exception as exc:
            logger.debug("Packaging %s failed", alternate, exc_info=exc)
            return None, (
                f"Both failed - '{name}': {first_error}, '{alternate}': {exc}"
            )

    def _record_failure(self, key: CrateKey, message: str) -> None:
        name, version = key
        logger.warning("Failed to package %s %s: %s", name, version, message)
        self._failed_keys.add(key)
        if self._claimed.get(normalize_name(name)) == key:
            del self._claimed[normalize_name(name)]
        self.failed.append(FailedPackage(name, version, message))
