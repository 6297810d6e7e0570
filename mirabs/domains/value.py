"""The composite value domain.

An AbstractValue is one of:
  - BoolValue          an AbstractBool
  - IntIntervalValue   an Interval over signed integers (any width up to 128 bits)
  - UintIntervalValue  an Interval over unsigned integers
  - TupleValue         a fixed-arity sequence of AbstractValues
  - Uninit             a deinitialized slot, distinct from top

Binary lattice operations require both operands to be the same variant;
anything else is a caller bug and raises ContractViolation.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from mirabs.domains.booleans import AbstractBool
from mirabs.domains.domain import AbstractDomain
from mirabs.domains.interval import INF, NEG_INF, Interval, IntervalElem
from mirabs.errors import (
    ContractViolation, IndexOutOfRangeError, InvalidArgumentError, UnsupportedError,
)
from mirabs.mir.ty import Ty


def _mismatch(left: AbstractValue, right: AbstractValue) -> ContractViolation:
    return ContractViolation(
        "Can only perform operations on abstract values of the same kind, "
        f"got {type(left).__name__} and {type(right).__name__}"
    )


class AbstractValue(AbstractDomain):
    """Base of the value variants."""

    @staticmethod
    def new(ty: Ty) -> AbstractValue:
        """Build the top abstract value for a declared type.

        Raises UnsupportedError for any type outside bool, signed and
        unsigned integers, and tuples of those.
        """
        if ty.is_bool():
            return BoolValue(AbstractBool.TOP)
        if ty.is_signed_int():
            return IntIntervalValue(Interval.unbounded())
        if ty.is_unsigned_int():
            return UintIntervalValue(Interval.unbounded())
        if ty.is_tuple():
            return TupleValue(tuple(AbstractValue.new(t) for t in ty.tuple_fields()))
        raise UnsupportedError(
            f"No abstract value for type '{ty}'", {"type": str(ty)},
        )

    @abstractmethod
    def leq(self, other: AbstractValue) -> bool:
        """Partial order: self <= other."""
        ...

    def get(self, index: int) -> Optional[AbstractValue]:
        raise UnsupportedError(f"Cannot index into a {type(self).__name__}")

    def set(self, index: int, value: AbstractValue) -> TupleValue:
        raise UnsupportedError(f"Cannot index into a {type(self).__name__}")

    @abstractmethod
    def to_json(self) -> Any:
        ...


@dataclass(frozen=True)
class BoolValue(AbstractValue):
    value: AbstractBool

    def __str__(self) -> str:
        return str(self.value)

    def join(self, other: AbstractValue) -> BoolValue:
        if not isinstance(other, BoolValue):
            raise _mismatch(self, other)
        return BoolValue(self.value.join(other.value))

    def widen(self, other: AbstractValue) -> BoolValue:
        if not isinstance(other, BoolValue):
            raise _mismatch(self, other)
        return BoolValue(self.value.widen(other.value))

    def leq(self, other: AbstractValue) -> bool:
        if not isinstance(other, BoolValue):
            raise _mismatch(self, other)
        return self.value.leq(other.value)

    def top(self) -> BoolValue:
        return BoolValue(AbstractBool.TOP)

    def to_json(self) -> Any:
        return {"bool": self.value.value}


@dataclass(frozen=True)
class _IntervalValue(AbstractValue):
    interval: Interval[int]

    def __str__(self) -> str:
        return str(self.interval)

    def join(self, other: AbstractValue) -> Any:
        if type(other) is not type(self):
            raise _mismatch(self, other)
        return type(self)(self.interval.join(other.interval))

    def widen(self, other: AbstractValue) -> Any:
        if type(other) is not type(self):
            raise _mismatch(self, other)
        return type(self)(self.interval.widen(other.interval))

    def leq(self, other: AbstractValue) -> bool:
        if type(other) is not type(self):
            raise _mismatch(self, other)
        return self.interval.leq(other.interval)

    def top(self) -> Any:
        return type(self)(self.interval.top())


@dataclass(frozen=True)
class IntIntervalValue(_IntervalValue):
    def to_json(self) -> Any:
        return {"int": self.interval.to_json()}


@dataclass(frozen=True)
class UintIntervalValue(_IntervalValue):
    def to_json(self) -> Any:
        return {"uint": self.interval.to_json()}


@dataclass(frozen=True)
class TupleValue(AbstractValue):
    items: tuple[AbstractValue, ...] = ()

    def __str__(self) -> str:
        if len(self.items) == 1:
            return f"({self.items[0]},)"
        return "(" + ", ".join(str(v) for v in self.items) + ")"

    def __len__(self) -> int:
        return len(self.items)

    def _pairs(self, other: AbstractValue) -> list[tuple[AbstractValue, AbstractValue]]:
        if not isinstance(other, TupleValue):
            raise _mismatch(self, other)
        if len(self.items) != len(other.items):
            raise ContractViolation(
                f"Cannot combine tuples of arity {len(self.items)} and {len(other.items)}"
            )
        return list(zip(self.items, other.items))

    def join(self, other: AbstractValue) -> TupleValue:
        return TupleValue(tuple(a.join(b) for a, b in self._pairs(other)))

    def widen(self, other: AbstractValue) -> TupleValue:
        return TupleValue(tuple(a.widen(b) for a, b in self._pairs(other)))

    def leq(self, other: AbstractValue) -> bool:
        return all(a.leq(b) for a, b in self._pairs(other))

    def top(self) -> TupleValue:
        return TupleValue(tuple(v.top() for v in self.items))

    def get(self, index: int) -> Optional[AbstractValue]:
        if 0 <= index < len(self.items):
            return self.items[index]
        return None

    def set(self, index: int, value: AbstractValue) -> TupleValue:
        """Return this tuple with the entry at index replaced by value."""
        if not 0 <= index < len(self.items):
            raise IndexOutOfRangeError(index, len(self.items))
        items = list(self.items)
        items[index] = value
        return TupleValue(tuple(items))

    def to_json(self) -> Any:
        return {"tuple": [v.to_json() for v in self.items]}


@dataclass(frozen=True)
class Uninit(AbstractValue):
    def __str__(self) -> str:
        return "uninit"

    def join(self, other: AbstractValue) -> Uninit:
        if not isinstance(other, Uninit):
            raise _mismatch(self, other)
        return self

    def widen(self, other: AbstractValue) -> Uninit:
        return self.join(other)

    def leq(self, other: AbstractValue) -> bool:
        if not isinstance(other, Uninit):
            raise _mismatch(self, other)
        return True

    def top(self) -> Uninit:
        return self

    def to_json(self) -> Any:
        return "uninit"


UNINIT = Uninit()


def _bound_from_json(data: Any) -> IntervalElem[int]:
    if data == "-inf":
        return NEG_INF
    if data == "+inf":
        return INF
    if isinstance(data, bool) or not isinstance(data, int):
        raise InvalidArgumentError(f"Malformed interval bound {data!r}")
    return IntervalElem.of(data)


def _interval_from_json(data: Any) -> Interval[int]:
    if not isinstance(data, list) or len(data) != 2:
        raise InvalidArgumentError(f"An interval must be a [lower, upper] pair, got {data!r}")
    lower = _bound_from_json(data[0])
    upper = _bound_from_json(data[1])
    if upper < lower:
        raise InvalidArgumentError(f"Inverted interval {data!r}")
    return Interval(lower, upper)


def value_from_json(data: Any) -> AbstractValue:
    """Inverse of AbstractValue.to_json, for values supplied by callers."""
    if data == "uninit":
        return UNINIT
    if not isinstance(data, dict) or len(data) != 1:
        raise InvalidArgumentError(f"Malformed abstract value {data!r}")
    (kind, payload), = data.items()
    if kind == "bool":
        try:
            return BoolValue(AbstractBool(payload))
        except ValueError as e:
            raise InvalidArgumentError(f"Malformed abstract bool {payload!r}") from e
    if kind == "int":
        return IntIntervalValue(_interval_from_json(payload))
    if kind == "uint":
        return UintIntervalValue(_interval_from_json(payload))
    if kind == "tuple" and isinstance(payload, list):
        return TupleValue(tuple(value_from_json(v) for v in payload))
    raise InvalidArgumentError(f"Unknown abstract value kind {kind!r}")
