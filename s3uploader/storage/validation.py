"""Pre-flight checks run before any bytes touch the network."""

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from s3uploader.core.exceptions import (
    LocalIOError,
    SizeLimitExceededError,
    StorageValidationError,
)

MAX_KEY_BYTES = 1024


@dataclass(frozen=True)
class TransferRequest:
    """A validated description of one upload or download.

    Attributes:
        local_path: File being read (upload) or written (download)
        key: Remote object key
        size: Byte size, known up front for uploads only
        max_size: Size ceiling that was in force during validation
    """

    local_path: Path
    key: str
    size: int | None = None
    max_size: int | None = None


def validate_object_key(key: str) -> str:
    """Reject keys S3 would refuse or that cannot name a local file."""
    if not key:
        raise StorageValidationError("Object key must not be empty", field="key")
    if "\x00" in key:
        raise StorageValidationError("Object key must not contain NUL bytes", field="key")
    if len(key.encode("utf-8")) > MAX_KEY_BYTES:
        raise StorageValidationError(
            f"Object key is longer than {MAX_KEY_BYTES} bytes", field="key"
        )
    return key


def validate_upload(local_path: str | os.PathLike, max_size: int) -> int:
    """Check that a local file may be uploaded.

    Only ``stat`` is used, so an oversized file is rejected without
    reading any of its content.

    Args:
        local_path: Path of the file to upload
        max_size: Size ceiling in bytes

    Returns:
        The file size in bytes

    Raises:
        LocalIOError: If the path is missing, not a file or unreadable
        SizeLimitExceededError: If the file is larger than ``max_size``
    """
    path = Path(local_path)

    if not path.exists():
        raise LocalIOError(f"File does not exist: {path}", path=str(path))
    if not path.is_file():
        raise LocalIOError(f"Not a regular file: {path}", path=str(path))
    if not os.access(path, os.R_OK):
        raise LocalIOError(f"File is not readable: {path}", path=str(path))

    try:
        size = path.stat().st_size
    except OSError as e:
        raise LocalIOError(f"Cannot stat {path}: {e}", path=str(path), original_error=e) from e

    if size > max_size:
        raise SizeLimitExceededError(size=size, limit=max_size, path=str(path))

    return size


def key_basename(key: str) -> str:
    """Return the last path segment of an object key."""
    name = PurePosixPath(key).name
    if not name or name in (".", ".."):
        raise StorageValidationError(
            f"Cannot derive a file name from key '{key}'", field="key", value=key
        )
    return name


def resolve_download_path(key: str, output: str | os.PathLike | None = None) -> Path:
    """Work out where a downloaded object should be written.

    Without ``output`` the object lands in the current directory under the
    key's base name. An existing directory as ``output`` receives the base
    name inside it; anything else is used as the file path.
    """
    if output is None:
        return Path.cwd() / key_basename(key)
    target = Path(output)
    if target.is_dir():
        return target / key_basename(key)
    return target


def validate_download_destination(output_path: str | os.PathLike) -> Path:
    """Make sure ``output_path`` can be written before downloading.

    Missing parent directories are created.

    Raises:
        LocalIOError: If the destination cannot be written
    """
    path = Path(output_path)
    parent = path.parent

    if path.is_dir():
        raise LocalIOError(f"Destination is a directory: {path}", path=str(path))

    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise LocalIOError(
            f"Cannot create directory {parent}: {e}", path=str(parent), original_error=e
        ) from e

    if not os.access(parent, os.W_OK):
        raise LocalIOError(f"Directory is not writable: {parent}", path=str(parent))
    if path.exists() and not os.access(path, os.W_OK):
        raise LocalIOError(f"File is not writable: {path}", path=str(path))

    return path
