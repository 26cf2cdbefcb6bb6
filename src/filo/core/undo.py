"""Reverse completed moves."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from ..domain.result import EngineError, ErrorKind, Failure, Result, Success
from ..infrastructure.adapters.filesystem_adapter import (
    FilesystemAdapter,
    classify_os_error,
    describe_os_error,
)
from ..models.results import UndoPair
from .transfer import TransferExecutor, TransferFailure

logger = logging.getLogger(__name__)


class UndoExecutor:
    """Move files back to where a Move rule found them.

    Uses the same rename / cross-device fallback as forward moves and never
    overwrites a file that has reappeared at the original location.
    """

    def __init__(self, filesystem: Optional[FilesystemAdapter] = None,
                 transfer_executor: Optional[TransferExecutor] = None):
        self.fs = filesystem or FilesystemAdapter()
        self.transfer_executor = transfer_executor or TransferExecutor(self.fs)

    def undo_file(self, source: Path, destination: Path) -> Result[None, EngineError]:
        """Move `destination` back to `source`."""
        if not self.fs.exists(destination):
            return Failure(EngineError(
                ErrorKind.NOT_FOUND, f"File no longer exists at destination: {destination}"
            ))
        if self.fs.exists(source):
            return Failure(EngineError(
                ErrorKind.IO_OTHER, f"File already exists at original location: {source}"
            ))

        try:
            self.fs.make_dirs(source.parent)
        except OSError as e:
            return Failure(EngineError(
                classify_os_error(e), f"Failed to create directory: {describe_os_error(e)}"
            ))

        try:
            self.transfer_executor.move_file(destination, source)
        except TransferFailure as e:
            logger.error(f"Undo of {destination} failed: {e.reason}")
            return Failure(EngineError(e.kind, e.reason))

        logger.info(f"Restored {destination} -> {source}")
        return Success(None)

    def undo_all(self, pairs: Iterable[UndoPair]) -> List[Result[None, EngineError]]:
        """Undo each pair in turn; a failure does not stop the rest."""
        return [self.undo_file(pair.source_path, pair.destination_path) for pair in pairs]
