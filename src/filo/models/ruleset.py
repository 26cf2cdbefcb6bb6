"""Ruleset model: what to match and where matching files go."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..domain.result import ValidationError

TEMPLATE_VAR_PATTERN = re.compile(r"\{([^{}]+)\}")


class Action(Enum):
    """What to do with a matching file."""
    MOVE = "move"
    COPY = "copy"


class MatchType(Enum):
    """How a filename pattern is interpreted."""
    GLOB = "glob"
    REGEX = "regex"


def has_template_vars(template: str) -> bool:
    """Check whether a destination contains `{name}` placeholders."""
    return TEMPLATE_VAR_PATTERN.search(template) is not None


def normalize_extension(extension: str) -> str:
    """Lower-case an extension and make sure it starts with a dot."""
    extension = extension.strip().lower()
    if extension and not extension.startswith("."):
        extension = "." + extension
    return extension


def _flag(data: Dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValidationError(f"'{key}' must be true or false, got {value!r}")
    return value


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an RFC 3339 / ISO-8601 bound. None and "" mean no bound."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    # fromisoformat only accepts a trailing "Z" from 3.11 onwards
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"invalid datetime format: '{value}'") from None


@dataclass(frozen=True)
class FilenameFilter:
    """A filename pattern and how to interpret it."""
    pattern: str
    match_type: MatchType = MatchType.GLOB

    def __post_init__(self) -> None:
        if isinstance(self.match_type, str):
            object.__setattr__(self, "match_type", MatchType(self.match_type.lower()))

    @property
    def is_regex(self) -> bool:
        return self.match_type == MatchType.REGEX

    def to_dict(self) -> Dict[str, str]:
        return {"pattern": self.pattern, "match_type": self.match_type.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilenameFilter":
        return cls(pattern=data.get("pattern", ""), match_type=data.get("match_type", "glob"))


@dataclass(frozen=True)
class DateTimeRange:
    """Inclusive time window; a missing bound leaves that side open."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def contains(self, value: datetime) -> bool:
        """Check whether `value` falls inside the window.

        Naive datetimes (bounds or value) are taken to be local time.
        """
        value = value.astimezone()
        if self.start is not None and value < self.start.astimezone():
            return False
        if self.end is not None and value > self.end.astimezone():
            return False
        return True

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DateTimeRange":
        return cls(start=parse_datetime(data.get("start")), end=parse_datetime(data.get("end")))


@dataclass(frozen=True)
class Filters:
    """Match criteria. Present categories are AND-ed together."""
    extensions: Optional[List[str]] = None
    filename: Optional[FilenameFilter] = None
    created_at: Optional[DateTimeRange] = None
    modified_at: Optional[DateTimeRange] = None

    def __post_init__(self) -> None:
        if self.extensions is not None:
            if not isinstance(self.extensions, (list, tuple)):
                raise ValidationError(f"extensions must be a list, got {self.extensions!r}")
            normalized = [normalize_extension(ext) for ext in self.extensions]
            object.__setattr__(self, "extensions", [ext for ext in normalized if ext])

    def has_at_least_one(self) -> bool:
        """True when at least one filter category constrains the match."""
        return (
            bool(self.extensions)
            or self.filename is not None
            or self.created_at is not None
            or self.modified_at is not None
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "extensions": list(self.extensions) if self.extensions is not None else None,
            "filename": self.filename.to_dict() if self.filename else None,
            "created_at": self.created_at.to_dict() if self.created_at else None,
            "modified_at": self.modified_at.to_dict() if self.modified_at else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Filters":
        data = data or {}
        filename = data.get("filename")
        created_at = data.get("created_at")
        modified_at = data.get("modified_at")
        return cls(
            extensions=data.get("extensions"),
            filename=FilenameFilter.from_dict(filename) if filename else None,
            created_at=DateTimeRange.from_dict(created_at) if created_at else None,
            modified_at=DateTimeRange.from_dict(modified_at) if modified_at else None,
        )


@dataclass(frozen=True)
class Rule:
    """A named source → destination rule with its filters."""
    id: str
    name: str
    source_dir: str
    destination_dir: str
    filters: Filters = field(default_factory=Filters)
    action: Action = Action.MOVE
    overwrite: bool = False
    enabled: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.action, str):
            object.__setattr__(self, "action", Action(self.action.lower()))
        if isinstance(self.filters, dict):
            object.__setattr__(self, "filters", Filters.from_dict(self.filters))

    @property
    def source_path(self) -> Path:
        return Path(self.source_dir)

    @property
    def destination_path(self) -> Path:
        return Path(self.destination_dir)

    @property
    def is_templated(self) -> bool:
        return has_template_vars(self.destination_dir)

    def validate(self) -> None:
        """Check the rule is complete and executable.

        Raises:
            ValidationError: On the first problem found.
        """
        if not self.name.strip():
            raise ValidationError("name is required")
        if not self.source_dir.strip():
            raise ValidationError("source_dir is required")
        if not self.destination_dir.strip():
            raise ValidationError("destination_dir is required")
        if not self.filters.has_at_least_one():
            raise ValidationError("at least one filter is required")

        filename = self.filters.filename
        if self.is_templated and (filename is None or not filename.is_regex):
            raise ValidationError(
                "destination_dir contains template variables but filename filter is not regex"
            )
        if filename is not None and filename.is_regex:
            try:
                re.compile(filename.pattern)
            except re.error as e:
                raise ValidationError(f"invalid regex '{filename.pattern}': {e}") from None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "enabled": self.enabled,
            "source_dir": self.source_dir,
            "destination_dir": self.destination_dir,
            "action": self.action.value,
            "overwrite": self.overwrite,
            "filters": self.filters.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rule":
        """Build a rule from its serialized form.

        Raises:
            ValidationError: If a field has an unusable value.
        """
        try:
            return cls(
                id=str(data.get("id") or ""),
                name=str(data.get("name") or ""),
                enabled=_flag(data, "enabled", True),
                source_dir=str(data.get("source_dir") or ""),
                destination_dir=str(data.get("destination_dir") or ""),
                action=data.get("action", "move"),
                overwrite=_flag(data, "overwrite", False),
                filters=Filters.from_dict(data.get("filters")),
            )
        except (TypeError, AttributeError, ValueError) as e:
            raise ValidationError(f"malformed ruleset: {e}") from None
