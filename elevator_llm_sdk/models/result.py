from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from ..providers.base import APIError


T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success/failure value returned by every adapter operation.

    Attributes:
        value: Payload on success
        error: Classified failure, None on success
    """
    value: Optional[T] = None
    error: Optional[APIError] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: APIError) -> "Result[T]":
        return cls(error=error)

    @property
    def success(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the contained APIError."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
