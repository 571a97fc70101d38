"""Tagged success/failure values for fan-out operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterable, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E
    key: str | None = None


Result = Union[Ok[T], Err[E]]


def partition(results: Iterable[Result[T, E]]) -> tuple[list[T], list[Err[E]]]:
    """Split settled results into successful values and failures, keeping order."""
    values: list[T] = []
    errors: list[Err[E]] = []
    for result in results:
        match result:
            case Ok(value=value):
                values.append(value)
            case Err():
                errors.append(result)
    return values, errors


__all__ = ["Err", "Ok", "Result", "partition"]
