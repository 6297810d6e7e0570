"""The abstract-domain contract shared by every lattice in mirabs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TypeVar

D = TypeVar("D", bound="AbstractDomain")


class AbstractDomain(ABC):
    """An element of an abstract domain.

    Implementations form a lattice with:
      - join (least upper bound), commutative, associative and idempotent
      - widen, an upper bound of join whose iteration along an ascending
        chain stabilizes in finitely many steps
      - top (no information)

    No bottom accessor is required: concrete domains may have bottom
    elements, but nothing in the analyzer needs to build one generically.
    """

    @abstractmethod
    def join(self: D, other: D) -> D:
        """Least upper bound: self join other."""
        ...

    @abstractmethod
    def widen(self: D, other: D) -> D:
        """Widening operator for fixpoint acceleration.

        Must satisfy: self widen other >= self join other
        """
        ...

    @abstractmethod
    def top(self: D) -> D:
        """The top element of this element's lattice."""
        ...
