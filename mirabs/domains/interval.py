"""The interval domain over any totally ordered scalar type.

One generic Interval is instantiated twice by the value domain: once over
signed and once over unsigned integers. Python integers never wrap, so
abstract addition is exact on finite bounds.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from functools import total_ordering
from typing import Any, Generic, Optional, TypeVar

from mirabs.domains.booleans import AbstractBool
from mirabs.domains.domain import AbstractDomain

T = TypeVar("T")


class BoundKind(IntEnum):
    # ordered so that NEG_INF < ELEM < INF
    NEG_INF = 0
    ELEM = 1
    INF = 2


@total_ordering
@dataclass(frozen=True)
class IntervalElem(Generic[T]):
    """A bound of an interval: a value of T, or +/- infinity."""
    kind: BoundKind
    value: Optional[T] = None

    @staticmethod
    def of(value: T) -> IntervalElem[T]:
        return IntervalElem(BoundKind.ELEM, value)

    def is_finite(self) -> bool:
        return self.kind is BoundKind.ELEM

    def __lt__(self, other: IntervalElem[T]) -> bool:
        if self.kind is BoundKind.ELEM and other.kind is BoundKind.ELEM:
            return self.value < other.value
        return self.kind < other.kind

    def __add__(self, other: IntervalElem[T]) -> IntervalElem[T]:
        # Infinite bounds absorb; -inf wins over +inf.
        if BoundKind.NEG_INF in (self.kind, other.kind):
            return NEG_INF
        if BoundKind.INF in (self.kind, other.kind):
            return INF
        return IntervalElem.of(self.value + other.value)

    def __str__(self) -> str:
        if self.kind is BoundKind.NEG_INF:
            return "-inf"
        if self.kind is BoundKind.INF:
            return "+inf"
        return str(self.value)

    def to_json(self) -> Any:
        return self.value if self.is_finite() else str(self)


NEG_INF: IntervalElem[Any] = IntervalElem(BoundKind.NEG_INF)
INF: IntervalElem[Any] = IntervalElem(BoundKind.INF)


@dataclass(frozen=True)
class Interval(AbstractDomain, Generic[T]):
    """The interval abstract domain [lower, upper].

    Galois connection to P(T):
      alpha(S) = [min(S), max(S)]
      gamma([lo, hi]) = {n in T | lo <= n <= hi}

    Properties:
      - [lo, hi] <= [lo', hi']  iff  lo' <= lo and hi <= hi'
      - [lo, hi] join [lo', hi'] = [min(lo,lo'), max(hi,hi')]
      - top = [-inf, +inf]

    lower <= upper is a precondition of every operation; no empty interval
    is modelled.
    """
    lower: IntervalElem[T]
    upper: IntervalElem[T]

    @staticmethod
    def from_value(concrete: T) -> Interval[T]:
        elem = IntervalElem.of(concrete)
        return Interval(elem, elem)

    @staticmethod
    def from_interval(lower: T, upper: T) -> Interval[T]:
        return Interval(IntervalElem.of(lower), IntervalElem.of(upper))

    @staticmethod
    def unbounded() -> Interval[Any]:
        return Interval(NEG_INF, INF)

    def __str__(self) -> str:
        return f"[{self.lower}, {self.upper}]"

    def is_top(self) -> bool:
        return self.lower == NEG_INF and self.upper == INF

    def is_singleton(self) -> bool:
        return self.lower.is_finite() and self.lower == self.upper

    def contains(self, value: T) -> bool:
        return self.lower <= IntervalElem.of(value) <= self.upper

    def leq(self, other: Interval[T]) -> bool:
        return other.lower <= self.lower and self.upper <= other.upper

    def join(self, other: Interval[T]) -> Interval[T]:
        return Interval(min(self.lower, other.lower), max(self.upper, other.upper))

    def widen(self, other: Interval[T]) -> Interval[T]:
        """Standard widening:
          [a, b] nabla [c, d] = [c < a ? -inf : a,  d > b ? +inf : b]

        Each bound can jump to infinity at most once, so iterated widening
        stabilizes after at most two changes.
        """
        return Interval(
            NEG_INF if other.lower < self.lower else self.lower,
            INF if other.upper > self.upper else self.upper,
        )

    def top(self) -> Interval[T]:
        return Interval(NEG_INF, INF)

    # Abstract transfer functions
    def add(self, other: Interval[T]) -> Interval[T]:
        return Interval(self.lower + other.lower, self.upper + other.upper)

    __add__ = add

    def equals(self, other: Interval[T]) -> AbstractBool:
        if self.upper < other.lower or other.upper < self.lower:
            return AbstractBool.FALSE
        if self.is_singleton() and self == other:
            return AbstractBool.TRUE
        return AbstractBool.TOP

    def less_than(self, other: Interval[T]) -> AbstractBool:
        if self.upper < other.lower:
            return AbstractBool.TRUE
        if self.lower >= other.upper:
            return AbstractBool.FALSE
        return AbstractBool.TOP

    def to_json(self) -> list[Any]:
        return [self.lower.to_json(), self.upper.to_json()]
