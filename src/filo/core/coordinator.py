"""Rule execution: enumerate, filter, resolve, transfer, aggregate."""

import logging
import threading
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..domain.result import EngineError, ErrorKind
from ..infrastructure.adapters.filesystem_adapter import (
    FilesystemAdapter,
    classify_os_error,
    describe_os_error,
)
from ..models.results import (
    Errored,
    ExecutionResult,
    ExecutionStatus,
    FileRecord,
    ProgressEvent,
    Skipped,
    Succeeded,
    TransferOutcome,
)
from ..models.ruleset import Rule
from .filter_engine import FilterEngine
from .path_resolver import resolve_destination
from .transfer import TransferExecutor

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


class _Buckets:
    """Mutable accumulator; frozen into an ExecutionResult at the end."""

    def __init__(self):
        self.succeeded: List[FileRecord] = []
        self.skipped: List[FileRecord] = []
        self.errors: List[FileRecord] = []

    def add(self, path: Path, outcome: TransferOutcome) -> None:
        if isinstance(outcome, Succeeded):
            self.succeeded.append(FileRecord(path.name, path, outcome.destination))
        elif isinstance(outcome, Skipped):
            self.skipped.append(FileRecord(path.name, path, outcome.destination, outcome.reason))
        elif isinstance(outcome, Errored):
            self.errors.append(FileRecord(path.name, path, outcome.destination, outcome.reason))
        else:
            raise TypeError(f"Unknown transfer outcome: {outcome!r}")


class ExecutionCoordinator:
    """Execute rules one file at a time.

    Per-file problems are recorded and the run continues; only folder-level
    problems abort a rule, and they abort it with a Failed result rather than
    an exception.
    """

    def __init__(self, filesystem: Optional[FilesystemAdapter] = None,
                 transfer_executor: Optional[TransferExecutor] = None):
        self.fs = filesystem or FilesystemAdapter()
        self.transfer_executor = transfer_executor or TransferExecutor(self.fs)

    def execute_rule(
        self,
        rule: Rule,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ExecutionResult:
        """Run one rule over its source folder."""
        logger.info(f"Executing rule '{rule.name}' ({rule.action.value}) on {rule.source_dir}")

        try:
            filter_engine = FilterEngine.build(rule.filters)
        except EngineError as e:
            return self._failed(rule, f"Invalid filters: {e.message}")

        source_dir = rule.source_path
        if not self.fs.is_dir(source_dir):
            if self.fs.exists(source_dir):
                return self._failed(rule, f"Source is not a directory: {source_dir}")
            return self._failed(rule, f"Source directory does not exist: {source_dir}")

        if not rule.is_templated:
            try:
                self.fs.make_dirs(rule.destination_path)
            except OSError as e:
                return self._failed(
                    rule, f"Failed to create destination directory: {describe_os_error(e)}"
                )

        try:
            entries = self.fs.list_dir(source_dir)
        except OSError as e:
            return self._failed(rule, f"Failed to read source directory: {describe_os_error(e)}")

        buckets = _Buckets()
        cancelled = False
        for path in entries:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Rule '{rule.name}' cancelled")
                cancelled = True
                break
            try:
                self._process_entry(rule, filter_engine, path, buckets, on_progress)
            except Exception as e:
                logger.exception(f"Unexpected error processing {path}")
                buckets.add(path, Errored(f"Unexpected error: {e}", ErrorKind.IO_OTHER))

        status = ExecutionResult.determine_status(len(buckets.succeeded), len(buckets.errors))
        logger.info(
            f"Rule '{rule.name}' {status.value}: succeeded={len(buckets.succeeded)}, "
            f"skipped={len(buckets.skipped)}, errors={len(buckets.errors)}"
        )
        return ExecutionResult(
            rule_id=rule.id,
            rule_name=rule.name,
            action=rule.action,
            status=status,
            succeeded=tuple(buckets.succeeded),
            skipped=tuple(buckets.skipped),
            errors=tuple(buckets.errors),
            cancelled=cancelled,
        )

    def execute_all(
        self,
        rules: Iterable[Rule],
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[ExecutionResult]:
        """Run every enabled rule, strictly in order."""
        results = []
        for rule in rules:
            if not rule.enabled:
                logger.debug(f"Rule '{rule.name}' is disabled")
                continue
            if cancel_event is not None and cancel_event.is_set():
                break
            results.append(self.execute_rule(rule, on_progress, cancel_event))
        return results

    def list_source_files(self, folder: Path) -> List[str]:
        """Names of regular files directly inside `folder`, sorted.

        Raises:
            EngineError: If the folder is missing or unreadable.
        """
        if not self.fs.is_dir(folder):
            raise EngineError(ErrorKind.NOT_FOUND, f"Directory does not exist: {folder}")
        try:
            return [path.name for path in self.fs.list_dir(folder) if self.fs.is_file(path)]
        except OSError as e:
            raise EngineError(classify_os_error(e), describe_os_error(e)) from e

    def _process_entry(
        self,
        rule: Rule,
        filter_engine: FilterEngine,
        path: Path,
        buckets: _Buckets,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        if not self.fs.is_file(path):
            return

        try:
            file_info = self.fs.stat(path)
        except OSError as e:
            buckets.add(path, Errored(
                f"Failed to read metadata: {describe_os_error(e)}", classify_os_error(e)
            ))
            return

        match = filter_engine.matches(file_info)
        if not match:
            return

        if on_progress is not None:
            on_progress(ProgressEvent(rule_name=rule.name, filename=path.name))

        resolved = resolve_destination(rule.destination_dir, match.captures, filter_engine.is_regex)
        if resolved.is_failure():
            error = resolved.error()
            logger.warning(f"Skipping {path.name}: {error.message}")
            buckets.add(path, Skipped(f"Template unresolved: {error.message}", error.kind))
            return

        destination_dir = resolved.value()
        if rule.is_templated:
            try:
                self.fs.make_dirs(destination_dir)
            except OSError as e:
                buckets.add(path, Errored(
                    f"Failed to create destination directory: {describe_os_error(e)}",
                    classify_os_error(e),
                ))
                return

        outcome = self.transfer_executor.transfer(
            path, destination_dir, path.name, rule.action, rule.overwrite
        )
        buckets.add(path, outcome)

    def _failed(self, rule: Rule, reason: str) -> ExecutionResult:
        logger.error(f"Rule '{rule.name}' failed: {reason}")
        return ExecutionResult(
            rule_id=rule.id,
            rule_name=rule.name,
            action=rule.action,
            status=ExecutionStatus.FAILED,
            failure_reason=reason,
        )
