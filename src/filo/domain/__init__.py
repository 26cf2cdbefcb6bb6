"""Domain primitives shared by the engine components."""

from .result import (
    Result,
    Success,
    Failure,
    partition,
    ErrorKind,
    EngineError,
    ValidationError,
    TemplateUnresolvedError,
)

__all__ = [
    "Result",
    "Success",
    "Failure",
    "partition",
    "ErrorKind",
    "EngineError",
    "ValidationError",
    "TemplateUnresolvedError",
]
