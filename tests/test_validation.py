"""Tests for transfer validation."""

import os
from pathlib import Path

import pytest

from s3uploader.core.exceptions import (
    LocalIOError,
    SizeLimitExceededError,
    StorageValidationError,
)
from s3uploader.storage.validation import (
    key_basename,
    resolve_download_path,
    validate_download_destination,
    validate_object_key,
    validate_upload,
)

MB = 1024 * 1024


def make_sparse_file(path: Path, size: int) -> Path:
    """Create a file of ``size`` bytes without writing its content."""
    with path.open("wb") as fh:
        fh.truncate(size)
    return path


class TestValidateUpload:
    """Tests for validate_upload."""

    def test_returns_size_within_limit(self, tmp_path):
        """Test a file under the ceiling passes and reports its size."""
        path = tmp_path / "small.txt"
        path.write_bytes(b"x" * 10)

        assert validate_upload(path, max_size=100) == 10

    def test_size_equal_to_limit_passes(self, tmp_path):
        """Test the ceiling is inclusive."""
        path = tmp_path / "exact.bin"
        path.write_bytes(b"x" * 100)

        assert validate_upload(path, max_size=100) == 100

    def test_size_over_limit_fails(self, tmp_path):
        """Test one byte over the ceiling is rejected with both numbers."""
        path = tmp_path / "big.bin"
        path.write_bytes(b"x" * 101)

        with pytest.raises(SizeLimitExceededError) as exc_info:
            validate_upload(path, max_size=100)

        assert exc_info.value.size == 101
        assert exc_info.value.limit == 100

    def test_150mb_against_default_ceiling(self, tmp_path):
        """Test a 150MB file fails the default 100MB ceiling."""
        path = make_sparse_file(tmp_path / "video.mp4", 150 * MB)

        with pytest.raises(SizeLimitExceededError) as exc_info:
            validate_upload(path, max_size=100 * MB)

        assert exc_info.value.size == 150 * MB
        assert exc_info.value.limit == 100 * MB
        assert "150.00 MB" in exc_info.value.message
        assert "100.00 MB" in exc_info.value.message

    def test_missing_file(self, tmp_path):
        """Test a missing path is an I/O error."""
        with pytest.raises(LocalIOError, match="does not exist"):
            validate_upload(tmp_path / "nope.txt", max_size=100)

    def test_directory_is_rejected(self, tmp_path):
        """Test a directory is not a regular file."""
        with pytest.raises(LocalIOError, match="Not a regular file"):
            validate_upload(tmp_path, max_size=100)

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions")
    def test_unreadable_file(self, tmp_path):
        """Test an unreadable file is rejected."""
        path = tmp_path / "secret.txt"
        path.write_text("hidden")
        path.chmod(0)

        with pytest.raises(LocalIOError, match="not readable"):
            validate_upload(path, max_size=100)


class TestObjectKeys:
    """Tests for key checks."""

    def test_valid_key(self):
        """Test a normal nested key passes."""
        assert validate_object_key("documents/a.pdf") == "documents/a.pdf"

    def test_empty_key(self):
        """Test an empty key is rejected."""
        with pytest.raises(StorageValidationError):
            validate_object_key("")

    def test_overlong_key(self):
        """Test keys over 1024 bytes are rejected."""
        with pytest.raises(StorageValidationError):
            validate_object_key("a" * 1025)

    def test_basename(self):
        """Test the base name of a nested key."""
        assert key_basename("images/2024/cat.png") == "cat.png"

    def test_basename_of_directory_key(self):
        """Test a key ending in a parent reference has no file name."""
        with pytest.raises(StorageValidationError):
            key_basename("images/..")


class TestDownloadDestination:
    """Tests for download path handling."""

    def test_default_is_cwd_and_basename(self, tmp_path):
        """Test the default output uses the key's base name in the cwd."""
        assert resolve_download_path("docs/report.pdf") == Path.cwd() / "report.pdf"

    def test_directory_output(self, tmp_path):
        """Test an existing directory receives the base name."""
        assert resolve_download_path("docs/report.pdf", tmp_path) == tmp_path / "report.pdf"

    def test_explicit_file_output(self, tmp_path):
        """Test an explicit file path is used as is."""
        target = tmp_path / "copy.pdf"
        assert resolve_download_path("docs/report.pdf", target) == target

    def test_missing_parents_are_created(self, tmp_path):
        """Test missing parent directories are created."""
        target = tmp_path / "a" / "b" / "file.txt"

        assert validate_download_destination(target) == target
        assert target.parent.is_dir()

    def test_directory_destination_rejected(self, tmp_path):
        """Test a directory cannot be the download target."""
        with pytest.raises(LocalIOError):
            validate_download_destination(tmp_path)

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions")
    def test_read_only_directory(self, tmp_path):
        """Test a read-only directory fails before any transfer."""
        locked = tmp_path / "locked"
        locked.mkdir()
        locked.chmod(0o500)
        try:
            with pytest.raises(LocalIOError, match="not writable"):
                validate_download_destination(locked / "file.txt")
        finally:
            locked.chmod(0o700)
