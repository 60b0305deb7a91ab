"""Result wrappers for lookups that may legitimately have no answer yet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar, Union

T = TypeVar("T")


class NotYetAvailable:
    """Sentinel: the sequencer has not produced the requested item yet.

    This is a normal outcome that drives continued polling, never an error.
    """

    _instance: NotYetAvailable | None = None

    def __new__(cls) -> NotYetAvailable:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_YET_AVAILABLE"

    def __bool__(self) -> bool:
        return False


NOT_YET_AVAILABLE = NotYetAvailable()

Maybe: TypeAlias = Union[T, NotYetAvailable]


@dataclass(frozen=True)
class BatchItemResult(Generic[T]):
    """Per-key outcome of a batch query.

    Exactly one of three shapes: a value, ``NOT_YET_AVAILABLE``, or an error.
    One item's failure never affects another item of the same batch.
    """

    value: T | NotYetAvailable = NOT_YET_AVAILABLE
    error: Exception | None = None

    @classmethod
    def ok(cls, value: T) -> BatchItemResult[T]:
        return cls(value=value)

    @classmethod
    def pending(cls) -> BatchItemResult[T]:
        return cls()

    @classmethod
    def failed(cls, error: Exception) -> BatchItemResult[T]:
        return cls(error=error)

    @property
    def available(self) -> bool:
        return self.error is None and self.value is not NOT_YET_AVAILABLE

    def unwrap(self) -> T:
        """Return the value, raising the stored error or ``LookupError``."""
        if self.error is not None:
            raise self.error
        if isinstance(self.value, NotYetAvailable):
            raise LookupError("result is not available yet")
        return self.value
