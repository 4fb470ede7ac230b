from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from takopack.exceptions import FileOperationError
from takopack.utils.filesystem import (
    _atomic_write,
    _create_backup_internal,
    _validated_file,
    clean_old_backups,
    ensure_directory,
    list_backups,
    safe_read_file,
    safe_write_file,
)


@pytest.fixture
def temp_file(tmp_path: Path) -> Path:
    """A file holding a one-line crate database."""
    path = tmp_path / "crate_db.txt"
    path.write_text("serde 1.0.210\n")
    return path


@pytest.mark.unit
class TestValidatedFile:
    """Tests for _validated_file."""

    def test_existing_file_resolved(self, temp_file: Path) -> None:
        result = _validated_file(temp_file)

        assert result.is_absolute()
        assert result == temp_file.resolve()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError, match="File not found"):
            _validated_file(tmp_path / "missing.txt")

    def test_directory_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError, match="Not a file"):
            _validated_file(tmp_path)


@pytest.mark.unit
class TestSafeReadFile:
    """Tests for safe_read_file."""

    def test_reads_content(self, temp_file: Path) -> None:
        assert safe_read_file(temp_file) == "serde 1.0.210\n"

    def test_rejects_large_file(self, temp_file: Path) -> None:
        with pytest.raises(FileOperationError, match="too large"):
            safe_read_file(temp_file, max_size=4)

    def test_no_size_limit(self, temp_file: Path) -> None:
        assert safe_read_file(temp_file, max_size=None).startswith("serde")

    def test_decode_error(self, tmp_path: Path) -> None:
        path = tmp_path / "binary.lock"
        path.write_bytes(b"\xff\xfe\x00")

        with pytest.raises(FileOperationError) as exc_info:
            safe_read_file(path)

        assert exc_info.value.operation == "read"


@pytest.mark.unit
class TestAtomicWrite:
    """Tests for _atomic_write and safe_write_file."""

    def test_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "out.json"

        _atomic_write(target, "{}\n")

        assert target.read_text() == "{}\n"

    def test_leaves_no_temp_files(self, tmp_path: Path) -> None:
        target = tmp_path / "out.txt"

        _atomic_write(target, "x")

        assert [p.name for p in tmp_path.iterdir()] == ["out.txt"]

    def test_replace_failure_wrapped(self, tmp_path: Path) -> None:
        target = tmp_path / "out.txt"

        with patch.object(Path, "replace", side_effect=OSError("disk full")):
            with pytest.raises(FileOperationError, match="Atomic write failed"):
                _atomic_write(target, "x")

        assert list(tmp_path.iterdir()) == []

    def test_safe_write_with_backup(self, temp_file: Path) -> None:
        backup = safe_write_file(temp_file, "log 0.4.22\n")

        assert backup is not None
        assert backup.read_text() == "serde 1.0.210\n"
        assert temp_file.read_text() == "log 0.4.22\n"

    def test_safe_write_without_backup(self, temp_file: Path) -> None:
        assert safe_write_file(temp_file, "x\n", create_backup=False) is None
        assert list_backups(temp_file) == []

    def test_safe_write_new_file_has_no_backup(self, tmp_path: Path) -> None:
        assert safe_write_file(tmp_path / "new.txt", "x\n") is None


@pytest.mark.unit
class TestBackups:
    """Tests for backup creation, listing and pruning."""

    def test_backup_name(self, temp_file: Path) -> None:
        backup = _create_backup_internal(temp_file)

        assert backup.parent == temp_file.parent
        assert backup.name.startswith("crate_db.txt.")
        assert backup.name.endswith(".backup")

    def test_list_newest_first(self, temp_file: Path) -> None:
        for stamp in ("20240101_000000_000000", "20250101_000000_000000"):
            (temp_file.parent / f"crate_db.txt.{stamp}.backup").write_text("x")

        names = [p.name for p in list_backups(temp_file)]

        assert names == [
            "crate_db.txt.20250101_000000_000000.backup",
            "crate_db.txt.20240101_000000_000000.backup",
        ]

    def test_clean_old_backups(self, temp_file: Path) -> None:
        for day in range(1, 8):
            (temp_file.parent / f"crate_db.txt.202401{day:02d}_000000_000000.backup").write_text(
                "x"
            )

        deleted = clean_old_backups(temp_file, keep=5)

        assert deleted == 2
        remaining = [p.name for p in list_backups(temp_file)]
        assert remaining[-1] == "crate_db.txt.20240103_000000_000000.backup"


@pytest.mark.unit
class TestEnsureDirectory:
    """Tests for ensure_directory."""

    def test_creates_nested(self, tmp_path: Path) -> None:
        path = ensure_directory(tmp_path / "x" / "y")

        assert path.is_dir()

    def test_existing_is_fine(self, tmp_path: Path) -> None:
        assert ensure_directory(tmp_path) == tmp_path

    def test_file_in_the_way(self, temp_file: Path) -> None:
        with pytest.raises(FileOperationError) as exc_info:
            ensure_directory(temp_file / "sub")

        assert exc_info.value.operation == "mkdir"
