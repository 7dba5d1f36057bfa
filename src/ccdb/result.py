"""Tagged success/error values for operations that must not raise."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self) -> Exception:
        raise ValueError(f"unwrap_err called on Ok({self.value!r})")

    def map(self, fn: Callable[[T], U]) -> "Ok[U]":
        return Ok(fn(self.value))

    def and_then(self, fn: Callable[[T], "Result[U]"]) -> "Result[U]":
        return fn(self.value)

    def on_success(self, fn: Callable[[T], object]) -> "Ok[T]":
        fn(self.value)
        return self


@dataclass(frozen=True)
class Err:
    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self):
        raise self.error

    def unwrap_err(self) -> Exception:
        return self.error

    def map(self, fn: Callable[[object], object]) -> "Err":
        return self

    def and_then(self, fn: Callable[[object], object]) -> "Err":
        return self

    def on_success(self, fn: Callable[[object], object]) -> "Err":
        return self


Result = Union[Ok[T], Err]


def capture(fn: Callable[[], T], *errors: type[Exception]) -> Result[T]:
    """Run ``fn`` and turn the listed exception types into ``Err``."""
    try:
        return Ok(fn())
    except errors as exc:
        return Err(exc)


__all__ = ["Err", "Ok", "Result", "capture"]
