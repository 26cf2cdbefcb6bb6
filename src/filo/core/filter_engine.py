"""Filter evaluation for rule filters.

A FilterEngine is built once per rule execution: the filename pattern is
compiled up front so that a bad regex is reported before any file is
touched, and every file is then checked against the same compiled filters.
"""

import fnmatch
import logging
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Union

from ..domain.result import ValidationError
from ..infrastructure.adapters.filesystem_adapter import FileInfo
from ..models.ruleset import Filters, FilenameFilter, MatchType

logger = logging.getLogger(__name__)

CaptureSet = Dict[str, str]


@dataclass(frozen=True)
class GlobPattern:
    """Shell-style wildcard matched against the whole filename, case-sensitively."""
    raw: str

    def match(self, filename: str) -> Optional[CaptureSet]:
        return {} if fnmatch.fnmatchcase(filename, self.raw) else None


@dataclass(frozen=True)
class RegexPattern:
    """Compiled regex searched in the filename; named groups become captures."""
    compiled: re.Pattern
    group_names: tuple = ()

    @classmethod
    def compile(cls, pattern: str) -> "RegexPattern":
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            raise ValidationError(f"invalid regex '{pattern}': {e}") from None
        return cls(compiled=compiled, group_names=tuple(compiled.groupindex))

    def match(self, filename: str) -> Optional[CaptureSet]:
        found = self.compiled.search(filename)
        if found is None:
            return None
        return extract_named_captures(found, self.group_names)


FilenamePattern = Union[GlobPattern, RegexPattern]


def extract_named_captures(found: re.Match, group_names: tuple) -> CaptureSet:
    """Named groups in pattern order; groups that did not participate are left out."""
    captures: CaptureSet = {}
    for name in group_names:
        value = found.group(name)
        if value is not None:
            captures[name] = value
    return captures


def compile_filename_filter(filename_filter: FilenameFilter) -> FilenamePattern:
    """Turn a filename filter into its matching variant."""
    if filename_filter.match_type == MatchType.GLOB:
        return GlobPattern(filename_filter.pattern)
    elif filename_filter.match_type == MatchType.REGEX:
        return RegexPattern.compile(filename_filter.pattern)
    raise ValidationError(f"unsupported match type: {filename_filter.match_type}")


@dataclass(frozen=True)
class FilterMatch:
    """Outcome of evaluating one file. `captures` is set only for regex matches."""
    matched: bool
    captures: Optional[CaptureSet] = None

    def __bool__(self) -> bool:
        return self.matched


NO_MATCH = FilterMatch(matched=False)


@dataclass(frozen=True)
class FilterEngine:
    """Compiled filters for one rule."""
    filters: Filters
    extensions: Optional[FrozenSet[str]] = None
    filename_pattern: Optional[FilenamePattern] = None

    @classmethod
    def build(cls, filters: Filters) -> "FilterEngine":
        """Compile `filters`.

        Raises:
            ValidationError: If no filter category is set or the regex is invalid.
        """
        if not filters.has_at_least_one():
            raise ValidationError("at least one filter is required")

        extensions = frozenset(filters.extensions) if filters.extensions else None
        pattern = compile_filename_filter(filters.filename) if filters.filename else None
        return cls(filters=filters, extensions=extensions, filename_pattern=pattern)

    @property
    def is_regex(self) -> bool:
        return isinstance(self.filename_pattern, RegexPattern)

    def matches(self, file_info: FileInfo) -> FilterMatch:
        """Check one file against every configured filter category."""
        if self.extensions is not None and file_info.extension not in self.extensions:
            return NO_MATCH

        captures: Optional[CaptureSet] = None
        if self.filename_pattern is not None:
            captures = self.filename_pattern.match(file_info.name)
            if captures is None:
                return NO_MATCH
            if not self.is_regex:
                captures = None

        created_at = self.filters.created_at
        if created_at is not None and not created_at.contains(file_info.created):
            return NO_MATCH

        modified_at = self.filters.modified_at
        if modified_at is not None and not modified_at.contains(file_info.modified):
            return NO_MATCH

        logger.debug(f"Filters matched {file_info.name} (captures={captures})")
        return FilterMatch(matched=True, captures=captures)
