"""
YAML ruleset repository.

Rulesets live in a single YAML document::

    version: 1
    rulesets:
      - id: "550e8400-e29b-41d4-a716-446655440000"
        name: "Sort pictures"
        enabled: true
        source_dir: "/home/me/Downloads"
        destination_dir: "/home/me/Pictures/sorted"
        action: move
        overwrite: false
        filters:
          extensions: [".jpg", ".png"]
          filename: {pattern: "screenshot_*", match_type: glob}
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ...domain.result import ValidationError
from ...exceptions import RulesetFileError, RulesetNotFoundError
from ...models.ruleset import Rule

logger = logging.getLogger(__name__)

CURRENT_VERSION = 1


@dataclass
class RulesetFile:
    """The whole ruleset document."""
    version: int = CURRENT_VERSION
    rulesets: List[Rule] = field(default_factory=list)

    @property
    def enabled(self) -> List[Rule]:
        return [rule for rule in self.rulesets if rule.enabled]

    def find(self, rule_id: str) -> Optional[Rule]:
        for rule in self.rulesets:
            if rule.id == rule_id:
                return rule
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "rulesets": [rule.to_dict() for rule in self.rulesets],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RulesetFile":
        rulesets = data.get("rulesets") or []
        if not isinstance(rulesets, list):
            raise RulesetFileError("'rulesets' must be a list")
        try:
            rules = [Rule.from_dict(item) for item in rulesets]
        except ValidationError as e:
            raise RulesetFileError(str(e)) from e
        return cls(version=int(data.get("version", CURRENT_VERSION)), rulesets=rules)

    @classmethod
    def from_yaml(cls, text: str) -> "RulesetFile":
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise RulesetFileError(f"YAML error: {e}") from e
        if not isinstance(data, dict):
            raise RulesetFileError("Ruleset file must contain a mapping")
        return cls.from_dict(data)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), allow_unicode=True, sort_keys=False)


class RulesetRepository:
    """Load, edit and save the ruleset file at `path`."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> RulesetFile:
        """Read the file; a missing file is an empty ruleset list."""
        if not self.path.exists():
            logger.debug(f"No ruleset file at {self.path}")
            return RulesetFile()
        return self.import_from(self.path)

    def save(self, ruleset_file: RulesetFile) -> None:
        self.export_to(ruleset_file, self.path)

    def get(self, rule_id: str) -> Rule:
        rule = self.load().find(rule_id)
        if rule is None:
            raise RulesetNotFoundError(f"Ruleset not found: {rule_id}")
        return rule

    def upsert(self, rule: Rule) -> Rule:
        """Validate and store `rule`, replacing one with the same id.

        A rule without an id is given a fresh uuid4.
        """
        rule.validate()
        if not rule.id:
            rule = replace(rule, id=str(uuid.uuid4()))

        ruleset_file = self.load()
        for i, existing in enumerate(ruleset_file.rulesets):
            if existing.id == rule.id:
                ruleset_file.rulesets[i] = rule
                break
        else:
            ruleset_file.rulesets.append(rule)
        self.save(ruleset_file)
        return rule

    def delete(self, rule_id: str) -> None:
        ruleset_file = self.load()
        ruleset_file.rulesets = [r for r in ruleset_file.rulesets if r.id != rule_id]
        self.save(ruleset_file)

    def reorder(self, ids: List[str]) -> None:
        """Keep only the listed rules, in the listed order."""
        ruleset_file = self.load()
        by_id = {rule.id: rule for rule in ruleset_file.rulesets}
        ruleset_file.rulesets = [by_id[rule_id] for rule_id in ids if rule_id in by_id]
        self.save(ruleset_file)

    @staticmethod
    def import_from(path: Path) -> RulesetFile:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise RulesetFileError(f"Cannot read {path}: {e}") from e
        return RulesetFile.from_yaml(text)

    @staticmethod
    def export_to(ruleset_file: RulesetFile, path: Path) -> None:
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(ruleset_file.to_yaml(), encoding="utf-8")
        except OSError as e:
            raise RulesetFileError(f"Cannot write {path}: {e}") from e
        logger.info(f"Saved {len(ruleset_file.rulesets)} rulesets to {path}")
