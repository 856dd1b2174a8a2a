"""Tri-state result for lookups that may be skipped.

A lookup keyed on an optional id is either ``Disabled`` (no key, nothing was
asked), ``Pending`` (asked, answer not available yet) or ``Ready`` (answered,
possibly with ``None`` when the record is not visible). Callers branch on the
type instead of comparing against a sentinel.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar, Union


T = TypeVar("T")
K = TypeVar("K")


@dataclass(frozen=True)
class Disabled:
    def is_ready(self) -> bool:
        return False

    def unwrap_or(self, default):
        return default


@dataclass(frozen=True)
class Pending:
    def is_ready(self) -> bool:
        return False

    def unwrap_or(self, default):
        return default


@dataclass(frozen=True)
class Ready(Generic[T]):
    value: T

    def is_ready(self) -> bool:
        return True

    def unwrap_or(self, default):
        return self.value


Query = Union[Disabled, Pending, Ready[T]]


async def skip_if_none(key: Optional[K], fetch: Callable[[K], Awaitable[T]]) -> "Query[T]":
    if key is None:
        return Disabled()
    return Ready(await fetch(key))
