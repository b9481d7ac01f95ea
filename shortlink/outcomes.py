"""Typed outcomes returned by the allocator and the link store.

Expected business results are values, not exceptions, so callers branch on
them explicitly::

    match await store.claim(code, destination):
        case Ok(link):
            ...
        case Conflict(code):
            ...
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

__all__ = ["Ok", "Conflict", "NotFound", "AllocationExhausted"]

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Conflict:
    """The code is already claimed by a live link."""

    code: str


@dataclass(frozen=True, slots=True)
class NotFound:
    """No live link exists for the code."""

    code: str


@dataclass(frozen=True, slots=True)
class AllocationExhausted:
    """Every generated code collided; the retry bound was reached."""

    attempts: int
