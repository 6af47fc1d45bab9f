"""
Three-state result used by every per-file analysis step.

An `Outcome` is either present (holds a value), absent (nothing to report,
not an error), or failed (holds the exception that stopped the step). Steps
return outcomes instead of raising so that one file never aborts its siblings
and callers can still tell "dropped" from "broken".
"""

from __future__ import annotations

import dataclasses
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")

PRESENT = "present"
ABSENT = "absent"
FAILED = "failed"


@dataclasses.dataclass(frozen=True)
class Outcome(Generic[T]):
    state: str
    value: Any = None
    error: Exception | None = None

    @staticmethod
    def present(value: T) -> Outcome[T]:
        return Outcome(PRESENT, value=value)

    @staticmethod
    def absent() -> Outcome[Any]:
        return Outcome(ABSENT)

    @staticmethod
    def failed(error: Exception) -> Outcome[Any]:
        return Outcome(FAILED, error=error)

    @staticmethod
    def of_optional(value: T | None) -> Outcome[T]:
        return Outcome.absent() if value is None else Outcome.present(value)

    @staticmethod
    def attempt(fn: Callable[..., T | None], *args: Any) -> Outcome[T]:
        """Run `fn`; a `None` return is absent and an exception is a failure."""
        try:
            return Outcome.of_optional(fn(*args))
        except Exception as e:
            return Outcome.failed(e)

    @property
    def is_present(self) -> bool:
        return self.state == PRESENT

    @property
    def is_absent(self) -> bool:
        return self.state == ABSENT

    @property
    def is_failed(self) -> bool:
        return self.state == FAILED

    def map(self, fn: Callable[[T], U | None]) -> Outcome[U]:
        if not self.is_present:
            return self  # type: ignore[return-value]
        return Outcome.attempt(fn, self.value)

    def flat_map(self, fn: Callable[[T], Outcome[U]]) -> Outcome[U]:
        if not self.is_present:
            return self  # type: ignore[return-value]
        try:
            return fn(self.value)
        except Exception as e:
            return Outcome.failed(e)

    def filter(self, predicate: Callable[[T], bool]) -> Outcome[T]:
        if not self.is_present:
            return self
        try:
            return self if predicate(self.value) else Outcome.absent()
        except Exception as e:
            return Outcome.failed(e)

    def if_present(self, fn: Callable[[T], object]) -> Outcome[T]:
        """Run a side effect on the value; an exception turns this into a failure."""
        if not self.is_present:
            return self
        try:
            fn(self.value)
        except Exception as e:
            return Outcome.failed(e)
        return self

    def if_absent(self, fn: Callable[[], object]) -> Outcome[T]:
        if self.is_absent:
            fn()
        return self

    def if_failed(self, fn: Callable[[Exception], object]) -> Outcome[T]:
        if self.is_failed and self.error is not None:
            fn(self.error)
        return self

    def recover(self, fn: Callable[[Exception], T | None]) -> Outcome[T]:
        if not self.is_failed:
            return self
        return Outcome.attempt(fn, self.error)

    def get_or(self, default: T) -> T:
        return self.value if self.is_present else default
