"""Custom exceptions for filo."""


class FiloError(Exception):
    """Base exception for filo errors."""
    pass


class ConfigurationError(FiloError):
    """Raised when there's an error in configuration."""
    pass


class RulesetFileError(FiloError):
    """Raised when a ruleset file cannot be read, parsed or written."""
    pass


class RulesetNotFoundError(FiloError):
    """Raised when a ruleset id is not present in the ruleset file."""
    pass
