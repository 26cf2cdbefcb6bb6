"""Result pattern and error taxonomy for the rule engine.

Operations that can fail per item (template resolution, undo of a single
file) return a Result instead of raising, so a batch can keep going and the
caller decides how to surface each failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Iterable, TypeVar

T = TypeVar('T')  # Success type
E = TypeVar('E', bound=Exception)  # Error type


class Result(ABC, Generic[T, E]):
    """Abstract base class for Result pattern.

    A Result represents either a successful operation with a value,
    or a failed operation with an error.
    """

    @abstractmethod
    def is_success(self) -> bool:
        """Check if the result is a success."""
        ...

    @abstractmethod
    def is_failure(self) -> bool:
        """Check if the result is a failure."""
        ...

    @abstractmethod
    def value(self) -> T:
        """Get the success value.

        Raises:
            ValueError: If the result is a failure.
        """
        ...

    @abstractmethod
    def error(self) -> E:
        """Get the error.

        Raises:
            ValueError: If the result is a success.
        """
        ...

    def or_else(self, default: T) -> T:
        """Get the success value or return a default."""
        return self.value() if self.is_success() else default


@dataclass(frozen=True, slots=True)
class Success(Result[T, E]):
    """Represents a successful operation with a value."""
    _value: T

    def __repr__(self) -> str:
        return f"Success({self._value!r})"

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def value(self) -> T:
        return self._value

    def error(self) -> E:
        raise ValueError("Cannot get error from Success result")


@dataclass(frozen=True, slots=True)
class Failure(Result[T, E]):
    """Represents a failed operation with an error."""
    _error: E

    def __repr__(self) -> str:
        return f"Failure({self._error!r})"

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def value(self) -> T:
        raise ValueError(f"Cannot get value from Failure result: {self._error}")

    def error(self) -> E:
        return self._error


def partition(results: Iterable[Result[T, E]]) -> tuple[list[T], list[E]]:
    """Partition a list of Results into successes and failures.

    Returns:
        A tuple of (success_values, failure_errors)
    """
    successes = []
    failures = []

    for result in results:
        if result.is_success():
            successes.append(result.value())
        else:
            failures.append(result.error())

    return successes, failures


class ErrorKind(Enum):
    """Classification of engine failures.

    TEMPLATE_UNRESOLVED and OVERWRITE_BLOCKED are soft outcomes: they are
    recorded as skips, never as errors.
    """
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    DISK_FULL = "disk_full"
    IO_OTHER = "io_other"
    TEMPLATE_UNRESOLVED = "template_unresolved"
    OVERWRITE_BLOCKED = "overwrite_blocked"

    @property
    def is_soft(self) -> bool:
        return self in (ErrorKind.TEMPLATE_UNRESOLVED, ErrorKind.OVERWRITE_BLOCKED)


class EngineError(Exception):
    """An engine failure tagged with its ErrorKind."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.value}, {self.message!r})"


class ValidationError(EngineError):
    """Raised when a rule definition cannot be executed as written."""

    def __init__(self, message: str):
        super().__init__(ErrorKind.VALIDATION, message)


class TemplateUnresolvedError(EngineError):
    """A destination template could not be expanded for one file."""

    def __init__(self, message: str):
        super().__init__(ErrorKind.TEMPLATE_UNRESOLVED, message)
