"""filo

Rule-driven file organizer: move or copy files from a folder into place
using extension, filename and date filters.
"""

__version__ = "0.1.0"

from .engine import FiloEngine, PatternTestResult
from .models.ruleset import (
    Action,
    MatchType,
    FilenameFilter,
    DateTimeRange,
    Filters,
    Rule,
)
from .models.results import (
    ExecutionStatus,
    ExecutionResult,
    FileRecord,
    UndoPair,
    ProgressEvent,
)

__all__ = [
    "FiloEngine",
    "PatternTestResult",
    "Action",
    "MatchType",
    "FilenameFilter",
    "DateTimeRange",
    "Filters",
    "Rule",
    "ExecutionStatus",
    "ExecutionResult",
    "FileRecord",
    "UndoPair",
    "ProgressEvent",
]
