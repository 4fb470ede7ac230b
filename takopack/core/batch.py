"""
Batch packaging of a crate list.

A batch file lists one ``<crate> <version>`` pair per line; blank lines
and ``#`` comments are ignored. Every entry is packaged on its own,
without following dependencies, and a failure never stops the batch.
"""

from __future__ import annotations

from pathlib import Path
from datetime import datetime
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from takopack.constants import OUTPUT_DIR_TIMESTAMP
from takopack.core.pipeline import CratePipeline
from takopack.core.recursive import FailedPackage
from takopack.utils.filesystem import ensure_directory, safe_read_file
from takopack.utils.logger import get_logger

logger = get_logger("batch")


@dataclass
class BatchResult:
    base_dir: Path
    total: int = 0
    succeeded: List[Tuple[str, str]] = field(default_factory=list)
    failed: List[FailedPackage] = field(default_factory=list)

    def summary(self) -> str:
        return (
            f"{self.total} attempted, {len(self.succeeded)} packaged, "
            f"{len(self.failed)} failed"
        )


def parse_batch_text(text: str) -> List[Tuple[str, str]]:
    """Parse batch file content into ``(crate, version)`` pairs.

    Lines with fewer than two fields are skipped with a warning.
    """
    entries = []
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) < 2:
            logger.warning(
                "Invalid line %d (expected 'crate_name version'): %s",
                line_number,
                line,
            )
            continue
        entries.append((parts[0], parts[1]))
    return entries


def read_batch_file(path: Union[str, Path]) -> List[Tuple[str, str]]:
    """Read a batch file from disk.

    Raises:
        FileOperationError: The file cannot be read.
    """
    return parse_batch_text(safe_read_file(path))


def process_batch(
    entries: Sequence[Tuple[str, str]],
    pipeline: CratePipeline,
    base_dir: Optional[Union[str, Path]] = None,
) -> BatchResult:
    """Package every entry independently.

    Raises:
        FileOperationError: The output directory cannot be created.
    """
    if base_dir is None:
        base_dir = Path(datetime.now().strftime(OUTPUT_DIR_TIMESTAMP))
    output = ensure_directory(base_dir)
    result = BatchResult(base_dir=output, total=len(entries))

    for index, (name, version) in enumerate(entries, start=1):
        logger.info("[%d/%d] Processing %s %s", index, len(entries), name, version)
        try:
            pipeline.package(name, version, output)
        except Exception as exc:  # one crate never stops the batch
            logger.error("Failed to package %s %s: %s", name, version, exc)
            result.failed.append(FailedPackage(name, version, str(exc)))
            continue
        result.succeeded.append((name, version))

    return result
