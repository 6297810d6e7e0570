"""Type descriptors of the host IR.

Only the questions the analyzer asks are modelled: is this a bool, a signed
or unsigned integer (and of which width), a float, or a tuple of other types.
Everything else is carried opaquely so that real bodies can be represented
and rejected by the eligibility gate.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from mirabs.errors import InvalidArgumentError


# ---------------------------------------------------------------------------
# Type Representations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Ty(ABC):
    """Base type."""

    def __str__(self) -> str:
        return "?"

    def is_bool(self) -> bool:
        return False

    def is_signed_int(self) -> bool:
        return False

    def is_unsigned_int(self) -> bool:
        return False

    def is_float(self) -> bool:
        return False

    def is_numeric(self) -> bool:
        return self.is_signed_int() or self.is_unsigned_int() or self.is_float()

    def is_tuple(self) -> bool:
        return False

    def tuple_fields(self) -> tuple[Ty, ...]:
        raise InvalidArgumentError(f"Type '{self}' is not a tuple")

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Structured JSON form, inverted by ty_from_dict."""
        ...

    @staticmethod
    def from_dict(data: Any) -> Ty:
        return ty_from_dict(data)


@dataclass(frozen=True)
class BoolTy(Ty):
    def __str__(self) -> str:
        return "bool"

    def is_bool(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "bool"}


@dataclass(frozen=True)
class IntTy(Ty):
    bits: int = 32

    def __str__(self) -> str:
        return f"i{self.bits}"

    def is_signed_int(self) -> bool:
        return True

    def min_value(self) -> int:
        return -(1 << (self.bits - 1))

    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "int", "bits": self.bits}


@dataclass(frozen=True)
class UintTy(Ty):
    bits: int = 32

    def __str__(self) -> str:
        return f"u{self.bits}"

    def is_unsigned_int(self) -> bool:
        return True

    def min_value(self) -> int:
        return 0

    def max_value(self) -> int:
        return (1 << self.bits) - 1

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "uint", "bits": self.bits}


@dataclass(frozen=True)
class FloatTy(Ty):
    bits: int = 64

    def __str__(self) -> str:
        return f"f{self.bits}"

    def is_float(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "float", "bits": self.bits}


@dataclass(frozen=True)
class TupleTy(Ty):
    fields: tuple[Ty, ...] = ()

    def __str__(self) -> str:
        if len(self.fields) == 1:
            return f"({self.fields[0]},)"
        return "(" + ", ".join(str(f) for f in self.fields) + ")"

    def is_tuple(self) -> bool:
        return True

    def tuple_fields(self) -> tuple[Ty, ...]:
        return self.fields

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "tuple", "fields": [f.to_dict() for f in self.fields]}


@dataclass(frozen=True)
class RefTy(Ty):
    pointee: Ty
    mutable: bool = False

    def __str__(self) -> str:
        return f"&mut {self.pointee}" if self.mutable else f"&{self.pointee}"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "ref", "pointee": self.pointee.to_dict(), "mutable": self.mutable}


@dataclass(frozen=True)
class AdtTy(Ty):
    name: str = ""

    def __str__(self) -> str:
        return self.name

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "adt", "name": self.name}


@dataclass(frozen=True)
class StrTy(Ty):
    def __str__(self) -> str:
        return "str"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "str"}


# ---------------------------------------------------------------------------
# Built-in Types
# ---------------------------------------------------------------------------

BOOL = BoolTy()
I8, I16, I32, I64, I128 = (IntTy(b) for b in (8, 16, 32, 64, 128))
U8, U16, U32, U64, U128 = (UintTy(b) for b in (8, 16, 32, 64, 128))
ISIZE = IntTy(64)
USIZE = UintTy(64)
UNIT = TupleTy(())

_SIZED_KINDS = {"int": IntTy, "uint": UintTy, "float": FloatTy}


def ty_from_dict(data: Any) -> Ty:
    """Build a type descriptor from its structured JSON form."""
    if not isinstance(data, dict) or not isinstance(data.get("kind"), str):
        raise InvalidArgumentError(f"Malformed type descriptor: {data!r}")
    kind = data["kind"]
    if kind == "bool":
        return BOOL
    if kind in _SIZED_KINDS:
        bits = data.get("bits", 64)
        if bits in ("size", None):
            bits = 64
        if isinstance(bits, bool) or not isinstance(bits, int) or bits <= 0:
            raise InvalidArgumentError(f"Malformed bit width {bits!r}", {"key": "bits"})
        return _SIZED_KINDS[kind](bits)
    if kind == "tuple":
        fields = data.get("fields", [])
        if not isinstance(fields, list):
            raise InvalidArgumentError(f"Malformed tuple fields {fields!r}", {"key": "fields"})
        return TupleTy(tuple(ty_from_dict(f) for f in fields))
    if kind == "ref":
        if "pointee" not in data:
            raise InvalidArgumentError("Reference type is missing 'pointee'")
        return RefTy(ty_from_dict(data["pointee"]), bool(data.get("mutable", False)))
    if kind == "adt":
        return AdtTy(str(data.get("name", "")))
    if kind == "str":
        return StrTy()
    raise InvalidArgumentError(f"Unknown type kind '{kind}'")
