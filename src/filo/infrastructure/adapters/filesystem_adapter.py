"""
Filesystem Adapter - Anti-Corruption Layer for filesystem operations.

This adapter isolates the engine from OS-specific concerns. Every primitive
the engine needs goes through it, so tests can substitute a subclass that
simulates cross-device renames or failing deletes.
"""

import errno
import os
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List

from ...domain.result import ErrorKind

PERMISSION_ERRNOS = {errno.EACCES, errno.EPERM, errno.EROFS}
DISK_FULL_ERRNOS = {errno.ENOSPC} | ({errno.EDQUOT} if hasattr(errno, "EDQUOT") else set())
NOT_FOUND_ERRNOS = {errno.ENOENT}
# Windows reports cross-volume renames as ERROR_NOT_SAME_DEVICE (17) via winerror
WINERROR_NOT_SAME_DEVICE = 17


def is_cross_device_error(error: OSError) -> bool:
    """Check whether a rename failed because it crossed filesystems."""
    if error.errno == errno.EXDEV:
        return True
    return getattr(error, "winerror", None) == WINERROR_NOT_SAME_DEVICE


def classify_os_error(error: OSError) -> ErrorKind:
    """Map an OSError onto the engine's error taxonomy."""
    if isinstance(error, PermissionError) or error.errno in PERMISSION_ERRNOS:
        return ErrorKind.PERMISSION_DENIED
    if error.errno in DISK_FULL_ERRNOS:
        return ErrorKind.DISK_FULL
    if isinstance(error, FileNotFoundError) or error.errno in NOT_FOUND_ERRNOS:
        return ErrorKind.NOT_FOUND
    return ErrorKind.IO_OTHER


_REASON_PREFIXES = {
    ErrorKind.PERMISSION_DENIED: "Permission denied",
    ErrorKind.DISK_FULL: "Disk full",
    ErrorKind.NOT_FOUND: "File not found",
    ErrorKind.IO_OTHER: "Operation failed",
}


def describe_os_error(error: OSError) -> str:
    """User-facing message for an OSError, prefixed by its category."""
    prefix = _REASON_PREFIXES[classify_os_error(error)]
    detail = error.strerror or str(error)
    return f"{prefix}: {detail}"


@dataclass(frozen=True)
class FileInfo:
    """Metadata the filters need about one file."""
    name: str
    path: Path
    size: int
    created: datetime
    modified: datetime

    @property
    def extension(self) -> str:
        """Lower-cased extension with its leading dot, or ''."""
        return self.path.suffix.lower()


class FilesystemAdapter:
    """
    Adapter for filesystem operations.

    Methods raise OSError unchanged; callers classify them with
    classify_os_error.
    """

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def is_file(self, path: Path) -> bool:
        return path.is_file()

    def same_file(self, first: Path, second: Path) -> bool:
        """True when both paths exist and name the same file."""
        if not (first.exists() and second.exists()):
            return False
        return os.path.samefile(first, second)

    def list_dir(self, directory: Path) -> List[Path]:
        """Entries directly inside `directory`, sorted by name."""
        return sorted(directory.iterdir(), key=lambda p: p.name)

    def stat(self, path: Path) -> FileInfo:
        """Collect size and timestamps for a file."""
        st = path.stat()
        # st_birthtime where the platform records it, otherwise ctime
        created_ts = getattr(st, "st_birthtime", None) or st.st_ctime
        return FileInfo(
            name=path.name,
            path=path,
            size=st.st_size,
            created=datetime.fromtimestamp(created_ts).astimezone(),
            modified=datetime.fromtimestamp(st.st_mtime).astimezone(),
        )

    def file_size(self, path: Path) -> int:
        return path.stat().st_size

    def make_dirs(self, directory: Path) -> None:
        """Create a directory and any necessary parents."""
        directory.mkdir(parents=True, exist_ok=True)

    def rename(self, source: Path, destination: Path) -> None:
        """Atomically rename within one filesystem, replacing the target."""
        os.replace(source, destination)

    def copy_file(self, source: Path, destination: Path) -> None:
        """Copy contents and metadata to exactly `destination`.

        Unlike shutil.copy2 this never copies *into* a directory that happens
        to sit at the destination path.
        """
        shutil.copyfile(source, destination)
        shutil.copystat(source, destination)

    def delete_file(self, path: Path) -> None:
        path.unlink()
