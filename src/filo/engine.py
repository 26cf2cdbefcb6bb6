"""Public entry point to the rule engine.

FiloEngine wires the components together around one FilesystemAdapter and
exposes the operations the application layer calls.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .core.coordinator import ExecutionCoordinator, ProgressCallback
from .core.filter_engine import RegexPattern
from .core.path_resolver import resolve_destination
from .core.transfer import TransferExecutor
from .core.undo import UndoExecutor
from .domain.result import EngineError, Result
from .infrastructure.adapters.filesystem_adapter import FilesystemAdapter
from .models.results import ExecutionResult, UndoPair
from .models.ruleset import Rule, has_template_vars


@dataclass(frozen=True)
class PatternTestResult:
    """How one filename fares against a regex and destination template."""
    filename: str
    matched: bool
    captures: Dict[str, str] = field(default_factory=dict)
    resolved_destination: Optional[Path] = None
    unresolved_reason: Optional[str] = None


class FiloEngine:
    """Facade over coordinator, undo and listing."""

    def __init__(self, filesystem: Optional[FilesystemAdapter] = None):
        self.fs = filesystem or FilesystemAdapter()
        self.transfer_executor = TransferExecutor(self.fs)
        self.coordinator = ExecutionCoordinator(self.fs, self.transfer_executor)
        self.undo_executor = UndoExecutor(self.fs, self.transfer_executor)

    def execute_rule(self, rule: Rule, on_progress: Optional[ProgressCallback] = None,
                     cancel_event: Optional[threading.Event] = None) -> ExecutionResult:
        return self.coordinator.execute_rule(rule, on_progress, cancel_event)

    def execute_all(self, rules: Iterable[Rule], on_progress: Optional[ProgressCallback] = None,
                    cancel_event: Optional[threading.Event] = None) -> List[ExecutionResult]:
        return self.coordinator.execute_all(rules, on_progress, cancel_event)

    def undo_file(self, source: Path, destination: Path) -> Result[None, EngineError]:
        return self.undo_executor.undo_file(Path(source), Path(destination))

    def undo_all(self, pairs: Iterable[UndoPair]) -> List[Result[None, EngineError]]:
        return self.undo_executor.undo_all(pairs)

    @staticmethod
    def undo_pairs_for(result: ExecutionResult) -> List[UndoPair]:
        """Pairs that reverse a run; empty for Copy results."""
        return list(result.undo_pairs())

    def list_source_files(self, folder: Path) -> List[str]:
        return self.coordinator.list_source_files(Path(folder))

    def test_pattern(self, pattern: str, filenames: Iterable[str],
                     destination_template: str = "") -> List[PatternTestResult]:
        """Dry-run a regex (and optional destination template) over filenames.

        Raises:
            ValidationError: If the pattern does not compile.
        """
        regex = RegexPattern.compile(pattern)
        templated = has_template_vars(destination_template)
        results = []
        for filename in filenames:
            captures = regex.match(filename)
            if captures is None:
                results.append(PatternTestResult(filename=filename, matched=False))
                continue
            if not templated:
                results.append(PatternTestResult(filename=filename, matched=True, captures=captures))
                continue
            resolved = resolve_destination(destination_template, captures, is_regex=True)
            results.append(PatternTestResult(
                filename=filename,
                matched=True,
                captures=captures,
                resolved_destination=resolved.or_else(None),
                unresolved_reason=None if resolved.is_success() else resolved.error().message,
            ))
        return results
