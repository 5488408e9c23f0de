"""Store-level predicates and sort keys.

A query is a list of predicates combined with AND. ``IsAbsent`` asks for
rows whose field is null; leaving a field out of the predicate list places
no constraint on it. The two must never be conflated.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Union


class Unset:
    """Marker for a filter the caller did not supply."""

    _instance: Unset | None = None

    def __new__(cls) -> Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = Unset()


@dataclass(frozen=True)
class Eq:
    """Exact equality."""

    field: str
    value: Any


@dataclass(frozen=True)
class Contains:
    """Partial, case-insensitive text match."""

    field: str
    text: str


@dataclass(frozen=True)
class Between:
    """Inclusive range; either bound may be open."""

    field: str
    low: date | None = None
    high: date | None = None

    def __post_init__(self) -> None:
        if self.low is None and self.high is None:
            raise ValueError("Between needs at least one bound")
        if self.low is not None and self.high is not None and self.low > self.high:
            raise ValueError(f"Empty range for {self.field}: {self.low} > {self.high}")


@dataclass(frozen=True)
class IsAbsent:
    """Field is null."""

    field: str


@dataclass(frozen=True)
class IsPresent:
    """Field is not null."""

    field: str


Predicate = Union[Eq, Contains, Between, IsAbsent, IsPresent]


@dataclass(frozen=True)
class Sort:
    """Sort key. Defaults to descending (most recent first)."""

    field: str
    descending: bool = True
