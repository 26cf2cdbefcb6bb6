"""Safe single-file move and copy.

Moves try an atomic rename first and only fall back to copy-then-delete when
the rename crossed filesystems. Every copy is verified by size, and a failed
copy never leaves a partial file behind or touches the source.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from ..domain.result import ErrorKind
from ..infrastructure.adapters.filesystem_adapter import (
    FilesystemAdapter,
    classify_os_error,
    describe_os_error,
    is_cross_device_error,
)
from ..models.results import Errored, Skipped, Succeeded, TransferOutcome
from ..models.ruleset import Action

logger = logging.getLogger(__name__)

DESTINATION_EXISTS = "destination exists"
SAME_FILE = "source and destination are the same file"


class TransferFailure(Exception):
    """A move or copy that did not complete.

    `destination_left` is True when a complete copy exists at the
    destination although the operation as a whole failed.
    """

    def __init__(self, kind: ErrorKind, reason: str, destination_left: bool = False):
        super().__init__(reason)
        self.kind = kind
        self.reason = reason
        self.destination_left = destination_left

    @classmethod
    def from_os_error(cls, error: OSError, destination_left: bool = False) -> "TransferFailure":
        return cls(classify_os_error(error), describe_os_error(error), destination_left)


class TransferExecutor:
    """Perform one file transfer through a FilesystemAdapter."""

    def __init__(self, filesystem: Optional[FilesystemAdapter] = None):
        self.fs = filesystem or FilesystemAdapter()

    def transfer(
        self,
        source: Path,
        destination_dir: Path,
        filename: str,
        action: Action,
        overwrite: bool,
    ) -> TransferOutcome:
        """Move or copy `source` into `destination_dir` under `filename`.

        Never raises for filesystem problems; they come back as Errored.
        """
        destination = destination_dir / filename

        try:
            same = self.fs.same_file(source, destination)
        except OSError as e:
            logger.error(f"Cannot compare {source} with {destination}: {e}")
            return Errored(describe_os_error(e), classify_os_error(e))
        if same:
            logger.debug(f"Skipping {filename}: already at {destination}")
            return Skipped(SAME_FILE, ErrorKind.OVERWRITE_BLOCKED, destination)

        if not overwrite and self.fs.exists(destination):
            logger.debug(f"Skipping {filename}: {destination} exists")
            return Skipped(DESTINATION_EXISTS, ErrorKind.OVERWRITE_BLOCKED, destination)

        try:
            if action == Action.MOVE:
                self.move_file(source, destination)
            elif action == Action.COPY:
                self.copy_and_verify(source, destination)
            else:
                raise ValueError(f"Unsupported action: {action}")
        except TransferFailure as e:
            logger.error(f"Failed to {action.value} {source} -> {destination}: {e.reason}")
            return Errored(e.reason, e.kind, destination if e.destination_left else None)

        logger.debug(f"{action.value.title()} {source} -> {destination}")
        return Succeeded(destination)

    def move_file(self, source: Path, destination: Path) -> None:
        """Rename, falling back to copy + delete across filesystems.

        Raises:
            TransferFailure: If the file could not be moved.
        """
        try:
            self.fs.rename(source, destination)
            return
        except OSError as e:
            if not is_cross_device_error(e):
                raise TransferFailure.from_os_error(e) from e
            logger.debug(f"Cross-device move of {source}, falling back to copy")

        self.copy_and_verify(source, destination)

        try:
            self.fs.delete_file(source)
        except OSError as e:
            kind = classify_os_error(e)
            reason = (
                f"{describe_os_error(e)} (source could not be removed; "
                f"a complete copy already exists at {destination})"
            )
            logger.warning(f"Move of {source} left a duplicate at {destination}")
            raise TransferFailure(kind, reason, destination_left=True) from e

    def copy_and_verify(self, source: Path, destination: Path) -> None:
        """Copy and compare sizes; remove the partial copy on any failure.

        Raises:
            TransferFailure: If the copy failed or the sizes differ.
        """
        try:
            expected = self.fs.file_size(source)
        except OSError as e:
            raise TransferFailure.from_os_error(e) from e

        try:
            self.fs.copy_file(source, destination)
            actual = self.fs.file_size(destination)
        except shutil.SameFileError as e:
            # destination is the source itself; nothing partial to remove
            raise TransferFailure(ErrorKind.IO_OTHER, SAME_FILE) from e
        except OSError as e:
            self._discard_partial(destination)
            raise TransferFailure.from_os_error(e) from e

        if actual != expected:
            self._discard_partial(destination)
            raise TransferFailure(
                ErrorKind.IO_OTHER,
                f"Copy incomplete: expected {expected} bytes, got {actual} bytes",
            )

    def _discard_partial(self, destination: Path) -> None:
        try:
            if self.fs.is_file(destination):
                self.fs.delete_file(destination)
        except OSError as e:
            logger.warning(f"Could not remove partial copy {destination}: {e}")
