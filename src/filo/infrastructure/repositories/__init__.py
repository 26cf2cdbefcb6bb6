"""Ruleset persistence."""

from .ruleset_repository import RulesetFile, RulesetRepository

__all__ = ["RulesetFile", "RulesetRepository"]
