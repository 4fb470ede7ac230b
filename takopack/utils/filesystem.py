"""
Filesystem utilities for takopack.

Safe helpers for reading and atomically rewriting the crate database,
lockfiles and generated descriptors, with optional timestamped backups.
All filesystem errors are normalized to ``FileOperationError``.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from datetime import datetime
from typing import List, Optional, Union

from takopack.utils.logger import get_logger
from takopack.exceptions import FileOperationError
from takopack.constants import DEFAULT_BACKUP_KEEP, MAX_FILE_SIZE


logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path) -> Path:
    """Ensure ``path`` is an existing regular file and resolve it."""
    if not path.exists():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )
    if not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation="read",
        )
    return path.resolve()


def _atomic_write(target: Path, content: str) -> None:
    """Atomically write text to a file using a temporary file + replace."""
    temp_path: Optional[Path] = None

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(target.parent),
            delete=False,
            prefix=f".{target.name}.",
            suffix=".tmp",
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())

        temp_path.replace(target)

    except OSError as exc:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
                logger.debug("Cleaned up temporary file: %s", temp_path)
            except OSError as cleanup_exc:
                logger.warning(
                    "Failed to clean up temporary file %s: %s",
                    temp_path,
                    cleanup_exc,
                )

        raise FileOperationError(
            f"Atomic write failed: {exc}",
            file_path=str(target),
            operation="write",
            original_error=exc,
        ) from exc


def _create_backup_internal(path: Path) -> Path:
    """Copy ``path`` to ``<name>.<timestamp>.backup`` next to it."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    backup_path = path.with_name(f"{path.name}.{timestamp}.backup")

    try:
        shutil.copy2(path, backup_path)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to create backup: {exc}",
            file_path=str(path),
            operation="backup",
            original_error=exc,
        ) from exc

    logger.debug("Created backup %s", backup_path)
    return backup_path


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Read a text file, refusing anything larger than ``max_size`` bytes.

    Raises:
        FileOperationError: Missing file, oversized file or read failure.
    """
    path = _validated_file(Path(file_path))
    size = path.stat().st_size

    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def safe_write_file(
    file_path: PathLike,
    content: str,
    *,
    create_backup: bool = True,
) -> Optional[Path]:
    """Atomically replace a file's contents.

    Args:
        file_path: Destination path. Parent directories are created.
        content: Text content to write.
        create_backup: Back up an existing file before replacing it.

    Returns:
        Path to the created backup, if any.
    """
    path = Path(file_path)
    backup: Optional[Path] = None

    if create_backup and path.is_file():
        backup = _create_backup_internal(path)

    _atomic_write(path, content)
    return backup


def ensure_directory(directory: PathLike) -> Path:
    """Create ``directory`` (and parents) if needed and return it.

    Raises:
        FileOperationError: The directory cannot be created.
    """
    path = Path(directory)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to create directory: {exc}",
            file_path=str(path),
            operation="mkdir",
            original_error=exc,
        ) from exc
    return path


def list_backups(file_path: PathLike) -> List[Path]:
    """List backups for a file, newest first."""
    path = Path(file_path)

    return sorted(
        path.parent.glob(f"{path.name}.*.backup"),
        key=lambda p: p.name,
        reverse=True,
    )


def clean_old_backups(
    file_path: PathLike,
    *,
    keep: int = DEFAULT_BACKUP_KEEP,
) -> int:
    """Delete old backups, keeping only the most recent ``keep``."""
    deleted = 0

    for backup in list_backups(file_path)[keep:]:
        try:
            backup.unlink()
            logger.debug("Deleted old backup: %s", backup)
            deleted += 1
        except OSError as exc:
            logger.warning("Failed to delete backup %s: %s", backup, exc)

    return deleted
