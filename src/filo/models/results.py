"""Execution outcomes: per-file transfer outcomes and per-rule results."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from ..domain.result import ErrorKind
from .ruleset import Action


class ExecutionStatus(Enum):
    """Overall status of one rule execution."""
    COMPLETED = "Completed"
    PARTIAL_FAILURE = "PartialFailure"
    FAILED = "Failed"


@dataclass(frozen=True, slots=True)
class Succeeded:
    """The file reached its destination."""
    destination: Path


@dataclass(frozen=True, slots=True)
class Skipped:
    """The file was deliberately left alone."""
    reason: str
    kind: ErrorKind = ErrorKind.OVERWRITE_BLOCKED
    destination: Optional[Path] = None


@dataclass(frozen=True, slots=True)
class Errored:
    """The transfer failed.

    `destination` is set when a file may exist at the destination despite
    the failure (a cross-device move whose source could not be deleted).
    """
    reason: str
    kind: ErrorKind = ErrorKind.IO_OTHER
    destination: Optional[Path] = None


TransferOutcome = Union[Succeeded, Skipped, Errored]


@dataclass(frozen=True, slots=True)
class FileRecord:
    """One file's entry in a result bucket."""
    filename: str
    source_path: Path
    destination_path: Optional[Path] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "filename": self.filename,
            "source_path": str(self.source_path),
            "destination_path": str(self.destination_path) if self.destination_path else None,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileRecord":
        destination = data.get("destination_path")
        return cls(
            filename=data["filename"],
            source_path=Path(data["source_path"]),
            destination_path=Path(destination) if destination else None,
            reason=data.get("reason"),
        )


@dataclass(frozen=True, slots=True)
class UndoPair:
    """Where a moved file came from and where it is now."""
    source_path: Path
    destination_path: Path

    @classmethod
    def from_record(cls, record: FileRecord) -> "UndoPair":
        if record.destination_path is None:
            raise ValueError(f"Record for {record.filename} has no destination")
        return cls(source_path=record.source_path, destination_path=record.destination_path)


@dataclass(frozen=True)
class ExecutionResult:
    """Everything that happened while executing one rule."""
    rule_id: str
    rule_name: str
    action: Action
    status: ExecutionStatus
    succeeded: Tuple[FileRecord, ...] = ()
    skipped: Tuple[FileRecord, ...] = ()
    errors: Tuple[FileRecord, ...] = ()
    failure_reason: Optional[str] = None
    cancelled: bool = False

    @staticmethod
    def determine_status(succeeded_count: int, error_count: int) -> ExecutionStatus:
        """Derive the overall status from bucket sizes.

        A run with only skips counts as completed.
        """
        if error_count == 0:
            return ExecutionStatus.COMPLETED
        if succeeded_count == 0:
            return ExecutionStatus.FAILED
        return ExecutionStatus.PARTIAL_FAILURE

    @property
    def total_files(self) -> int:
        return len(self.succeeded) + len(self.skipped) + len(self.errors)

    def undo_pairs(self) -> Tuple[UndoPair, ...]:
        """Pairs that would reverse this run. Copies are never undone."""
        if self.action != Action.MOVE:
            return ()
        return tuple(UndoPair.from_record(record) for record in self.succeeded)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "action": self.action.value,
            "status": self.status.value,
            "succeeded": [r.to_dict() for r in self.succeeded],
            "skipped": [r.to_dict() for r in self.skipped],
            "errors": [r.to_dict() for r in self.errors],
            "failure_reason": self.failure_reason,
            "cancelled": self.cancelled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecutionResult":
        return cls(
            rule_id=data["rule_id"],
            rule_name=data["rule_name"],
            action=Action(data["action"]),
            status=ExecutionStatus(data["status"]),
            succeeded=tuple(FileRecord.from_dict(r) for r in data.get("succeeded", [])),
            skipped=tuple(FileRecord.from_dict(r) for r in data.get("skipped", [])),
            errors=tuple(FileRecord.from_dict(r) for r in data.get("errors", [])),
            failure_reason=data.get("failure_reason"),
            cancelled=data.get("cancelled", False),
        )


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Emitted once per matched file, before its transfer starts."""
    rule_name: str
    filename: str
