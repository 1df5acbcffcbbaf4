"""Tagged result type for operations whose failure has a fallback.

Used where a failure is expected and must be handled at the call site
instead of propagating: answer decoding, AI-assisted routing and AI
synthesis. Construct with the factory classmethods:

    Result.ok(value)
    Result.err(error)
"""

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value (``ok``) or an exception describing why there is none."""

    value: Optional[T] = None
    error: Optional[Exception] = None

    def __post_init__(self):
        if (self.value is None) == (self.error is None):
            raise ValueError("Result requires exactly one of value or error")

    def __bool__(self) -> bool:
        """True only for an ok result."""
        return self.error is None

    @property
    def is_ok(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def err(cls, error: Exception) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value, raising the carried error for an err result."""
        if self.error is not None:
            raise self.error
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Return the value, or ``default`` for an err result."""
        return self.value if self.error is None else default

    def or_else(self, fallback: Callable[[Exception], T]) -> T:
        """Return the value, or substitute ``fallback(error)`` for an err result."""
        if self.error is None:
            return self.value
        return fallback(self.error)

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        if self.error is not None:
            return Result.err(self.error)
        return Result.ok(fn(self.value))
