"""Function bodies of the host IR.

A body is an ordered list of basic blocks, each an ordered list of
statements, plus the declared locals. Local 0 is the return place and locals
1..=arg_count hold the arguments. The dataclasses mirror what a compiler
frontend hands the analyzer; `Crate` adds a JSON form so bodies can be
dumped by a frontend and analyzed out of process.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from mirabs.errors import InvalidArgumentError
from mirabs.mir.ty import Ty, ty_from_dict

Local = int


# ---------------------------------------------------------------------------
# Places and operands
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Field:
    index: int

    def __str__(self) -> str:
        return f".{self.index}"


@dataclass(frozen=True)
class Deref:
    def __str__(self) -> str:
        return "*"


@dataclass(frozen=True)
class Index:
    local: Local

    def __str__(self) -> str:
        return f"[_{self.local}]"


ProjectionElem = Union[Field, Deref, Index]


@dataclass(frozen=True)
class Place:
    local: Local
    projection: tuple[ProjectionElem, ...] = ()

    def __str__(self) -> str:
        return f"_{self.local}" + "".join(str(p) for p in self.projection)


class ConstKind(Enum):
    ALLOCATED = "allocated"
    ZERO_SIZED = "zero_sized"
    UNEVALUATED = "unevaluated"


@dataclass(frozen=True)
class Const:
    """A compile-time constant: its type plus its encoded bytes.

    A byte of None is an uninitialized byte of the allocation.
    """
    ty: Ty
    bytes: tuple[Optional[int], ...] = ()
    kind: ConstKind = ConstKind.ALLOCATED

    def __str__(self) -> str:
        return f"const {self.ty} {list(self.bytes)}"


@dataclass(frozen=True)
class Copy:
    place: Place

    def __str__(self) -> str:
        return f"copy {self.place}"


@dataclass(frozen=True)
class Move:
    place: Place

    def __str__(self) -> str:
        return f"move {self.place}"


@dataclass(frozen=True)
class Constant:
    literal: Const

    def __str__(self) -> str:
        return str(self.literal)


Operand = Union[Copy, Move, Constant]


# ---------------------------------------------------------------------------
# Rvalues
# ---------------------------------------------------------------------------

class BinOp(Enum):
    ADD = "Add"
    SUB = "Sub"
    MUL = "Mul"
    DIV = "Div"
    REM = "Rem"
    BIT_XOR = "BitXor"
    BIT_AND = "BitAnd"
    BIT_OR = "BitOr"
    SHL = "Shl"
    SHR = "Shr"
    EQ = "Eq"
    LT = "Lt"
    LE = "Le"
    NE = "Ne"
    GE = "Ge"
    GT = "Gt"
    OFFSET = "Offset"


class UnOp(Enum):
    NOT = "Not"
    NEG = "Neg"


@dataclass(frozen=True)
class Use:
    operand: Operand

    def __str__(self) -> str:
        return str(self.operand)


@dataclass(frozen=True)
class BinaryOp:
    op: BinOp
    left: Operand
    right: Operand

    def __str__(self) -> str:
        return f"{self.op.value}({self.left}, {self.right})"


@dataclass(frozen=True)
class CheckedBinaryOp:
    op: BinOp
    left: Operand
    right: Operand

    def __str__(self) -> str:
        return f"Checked{self.op.value}({self.left}, {self.right})"


@dataclass(frozen=True)
class UnaryOp:
    op: UnOp
    operand: Operand

    def __str__(self) -> str:
        return f"{self.op.value}({self.operand})"


@dataclass(frozen=True)
class Ref:
    place: Place
    mutable: bool = False

    def __str__(self) -> str:
        return f"&mut {self.place}" if self.mutable else f"&{self.place}"


@dataclass(frozen=True)
class Aggregate:
    operands: tuple[Operand, ...] = ()

    def __str__(self) -> str:
        return "(" + ", ".join(str(o) for o in self.operands) + ")"


@dataclass(frozen=True)
class Cast:
    operand: Operand
    ty: Ty

    def __str__(self) -> str:
        return f"{self.operand} as {self.ty}"


Rvalue = Union[Use, BinaryOp, CheckedBinaryOp, UnaryOp, Ref, Aggregate, Cast]


# ---------------------------------------------------------------------------
# Statements, blocks and bodies
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Assign:
    place: Place
    rvalue: Rvalue

    def __str__(self) -> str:
        return f"{self.place} = {self.rvalue}"


@dataclass(frozen=True)
class Deinit:
    place: Place

    def __str__(self) -> str:
        return f"Deinit({self.place})"


@dataclass(frozen=True)
class StorageLive:
    local: Local

    def __str__(self) -> str:
        return f"StorageLive(_{self.local})"


@dataclass(frozen=True)
class StorageDead:
    local: Local

    def __str__(self) -> str:
        return f"StorageDead(_{self.local})"


@dataclass(frozen=True)
class Nop:
    def __str__(self) -> str:
        return "nop"


Statement = Union[Assign, Deinit, StorageLive, StorageDead, Nop]


@dataclass
class LocalDecl:
    ty: Ty
    mutable: bool = False


@dataclass
class BasicBlock:
    statements: list[Statement] = field(default_factory=list)


@dataclass
class Body:
    """A function body: blocks in declaration order and declared locals."""
    blocks: list[BasicBlock] = field(default_factory=list)
    locals: list[LocalDecl] = field(default_factory=list)
    arg_count: int = 0

    def fn_types(self) -> tuple[list[Ty], Ty]:
        """Argument types and return type, read off the local declarations.

        The first declaration is always the return place and the argument
        declarations immediately follow it.
        """
        if not self.locals:
            raise InvalidArgumentError("Body declares no return place")
        arg_types = [decl.ty for decl in self.locals[1:1 + self.arg_count]]
        return arg_types, self.locals[0].ty

    def arg_locals(self) -> list[Local]:
        return list(range(1, self.arg_count + 1))

    def local_ty(self, local: Local) -> Ty:
        if not 0 <= local < len(self.locals):
            raise InvalidArgumentError(f"Body has no local _{local}")
        return self.locals[local].ty

    def to_dict(self) -> dict[str, Any]:
        return {
            "arg_count": self.arg_count,
            "locals": [_local_decl_to_dict(d) for d in self.locals],
            "blocks": [
                {"statements": [_statement_to_dict(s) for s in b.statements]}
                for b in self.blocks
            ],
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Body:
        return Body(
            blocks=[
                BasicBlock([_statement_from_dict(s) for s in _get(b, "statements", list)])
                for b in _get(data, "blocks", list)
            ],
            locals=[_local_decl_from_dict(d) for d in _get(data, "locals", list)],
            arg_count=_int(data.get("arg_count", 0), "arg_count"),
        )


@dataclass
class FunctionItem:
    name: str
    body: Body

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "body": self.body.to_dict()}


@dataclass
class Crate:
    """The local items of one crate, as handed over by the frontend."""
    name: str = "main"
    functions: list[FunctionItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "crate": self.name,
            "functions": [f.to_dict() for f in self.functions],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def function(self, name: str) -> FunctionItem:
        for item in self.functions:
            if item.name == name:
                return item
        raise InvalidArgumentError(f"Crate '{self.name}' has no function '{name}'")

    @staticmethod
    def from_dict(data: Any) -> Crate:
        if not isinstance(data, dict):
            raise InvalidArgumentError("Crate document must be a JSON object")
        functions = []
        for item in _get(data, "functions", list):
            functions.append(FunctionItem(
                name=str(_get(item, "name", str)),
                body=Body.from_dict(_get(item, "body", dict)),
            ))
        return Crate(name=str(data.get("crate", "main")), functions=functions)

    @staticmethod
    def from_json(text: str) -> Crate:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidArgumentError(f"Invalid crate JSON: {e}") from e
        return Crate.from_dict(data)


def load_crate(path: str) -> Crate:
    """Load a crate dump written by the frontend."""
    with open(path, "r") as f:
        return Crate.from_json(f.read())


# ---------------------------------------------------------------------------
# JSON (de)serialization helpers
# ---------------------------------------------------------------------------

def _get(data: Any, key: str, expected: type) -> Any:
    if not isinstance(data, dict) or key not in data:
        raise InvalidArgumentError(f"Missing key '{key}'", {"key": key})
    value = data[key]
    if not isinstance(value, expected):
        raise InvalidArgumentError(
            f"Key '{key}' must be a {expected.__name__}", {"key": key},
        )
    return value


def _int(value: Any, what: str) -> int:
    # bool is an int subclass but never a valid index or count
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"'{what}' must be an integer, got {value!r}", {"key": what})
    return value


def _local_decl_to_dict(decl: LocalDecl) -> dict[str, Any]:
    d: dict[str, Any] = {"ty": decl.ty.to_dict()}
    if decl.mutable:
        d["mutable"] = True
    return d


def _local_decl_from_dict(data: Any) -> LocalDecl:
    return LocalDecl(ty_from_dict(_get(data, "ty", dict)), bool(data.get("mutable", False)))


def _place_to_dict(place: Place) -> dict[str, Any]:
    d: dict[str, Any] = {"local": place.local}
    if place.projection:
        proj = []
        for elem in place.projection:
            if isinstance(elem, Field):
                proj.append({"field": elem.index})
            elif isinstance(elem, Index):
                proj.append({"index": elem.local})
            else:
                proj.append({"deref": True})
        d["projection"] = proj
    return d


def _place_from_dict(data: Any) -> Place:
    local = _int(_get(data, "local", int), "local")
    elems = data.get("projection", [])
    if not isinstance(elems, list):
        raise InvalidArgumentError(f"Malformed projection {elems!r}", {"key": "projection"})
    projection: list[ProjectionElem] = []
    for elem in elems:
        if not isinstance(elem, dict):
            raise InvalidArgumentError(f"Unknown projection element {elem!r}")
        if "field" in elem:
            projection.append(Field(_int(elem["field"], "field")))
        elif "index" in elem:
            projection.append(Index(_int(elem["index"], "index")))
        elif "deref" in elem:
            projection.append(Deref())
        else:
            raise InvalidArgumentError(f"Unknown projection element {elem!r}")
    return Place(local, tuple(projection))


def _operand_to_dict(op: Operand) -> dict[str, Any]:
    if isinstance(op, Copy):
        return {"copy": _place_to_dict(op.place)}
    if isinstance(op, Move):
        return {"move": _place_to_dict(op.place)}
    c = op.literal
    return {"const": {"ty": c.ty.to_dict(), "bytes": list(c.bytes), "kind": c.kind.value}}


def _operand_from_dict(data: Any) -> Operand:
    if not isinstance(data, dict):
        raise InvalidArgumentError(f"Malformed operand {data!r}")
    if "copy" in data:
        return Copy(_place_from_dict(data["copy"]))
    if "move" in data:
        return Move(_place_from_dict(data["move"]))
    if "const" in data:
        c = _get(data, "const", dict)
        try:
            kind = ConstKind(c.get("kind", "allocated"))
        except (ValueError, TypeError) as e:
            raise InvalidArgumentError(f"Unknown constant kind {c.get('kind')!r}") from e
        data_bytes = c.get("bytes", [])
        if not isinstance(data_bytes, list) or not all(
            b is None or (isinstance(b, int) and not isinstance(b, bool)) for b in data_bytes
        ):
            raise InvalidArgumentError(f"Malformed constant bytes {data_bytes!r}", {"key": "bytes"})
        return Constant(Const(ty_from_dict(_get(c, "ty", dict)), tuple(data_bytes), kind))
    raise InvalidArgumentError(f"Malformed operand {data!r}")


def _binop(name: Any) -> BinOp:
    try:
        return BinOp(name)
    except ValueError as e:
        raise InvalidArgumentError(f"Unknown binary operator {name!r}") from e


def _unpack(data: Any, arity: int, what: str) -> list[Any]:
    if not isinstance(data, list) or len(data) != arity:
        raise InvalidArgumentError(f"Malformed {what} {data!r}")
    return data


def _rvalue_to_dict(rv: Rvalue) -> dict[str, Any]:
    if isinstance(rv, Use):
        return {"use": _operand_to_dict(rv.operand)}
    if isinstance(rv, BinaryOp):
        return {"binary_op": [rv.op.value, _operand_to_dict(rv.left), _operand_to_dict(rv.right)]}
    if isinstance(rv, CheckedBinaryOp):
        return {"checked_binary_op": [rv.op.value, _operand_to_dict(rv.left), _operand_to_dict(rv.right)]}
    if isinstance(rv, UnaryOp):
        return {"unary_op": [rv.op.value, _operand_to_dict(rv.operand)]}
    if isinstance(rv, Ref):
        return {"ref": {"place": _place_to_dict(rv.place), "mutable": rv.mutable}}
    if isinstance(rv, Aggregate):
        return {"aggregate": [_operand_to_dict(o) for o in rv.operands]}
    return {"cast": {"operand": _operand_to_dict(rv.operand), "ty": rv.ty.to_dict()}}


def _rvalue_from_dict(data: Any) -> Rvalue:
    if not isinstance(data, dict):
        raise InvalidArgumentError(f"Malformed rvalue {data!r}")
    if "use" in data:
        return Use(_operand_from_dict(data["use"]))
    if "binary_op" in data:
        op, left, right = _unpack(data["binary_op"], 3, "binary_op")
        return BinaryOp(_binop(op), _operand_from_dict(left), _operand_from_dict(right))
    if "checked_binary_op" in data:
        op, left, right = _unpack(data["checked_binary_op"], 3, "checked_binary_op")
        return CheckedBinaryOp(_binop(op), _operand_from_dict(left), _operand_from_dict(right))
    if "unary_op" in data:
        op, operand = _unpack(data["unary_op"], 2, "unary_op")
        try:
            unop = UnOp(op)
        except ValueError as e:
            raise InvalidArgumentError(f"Unknown unary operator {op!r}") from e
        return UnaryOp(unop, _operand_from_dict(operand))
    if "ref" in data:
        r = data["ref"]
        return Ref(_place_from_dict(_get(r, "place", dict)), bool(r.get("mutable", False)))
    if "aggregate" in data:
        return Aggregate(tuple(_operand_from_dict(o) for o in _get(data, "aggregate", list)))
    if "cast" in data:
        c = data["cast"]
        return Cast(_operand_from_dict(_get(c, "operand", dict)), ty_from_dict(_get(c, "ty", dict)))
    raise InvalidArgumentError(f"Malformed rvalue {data!r}")


def _statement_to_dict(stmt: Statement) -> dict[str, Any]:
    if isinstance(stmt, Assign):
        return {"assign": {"place": _place_to_dict(stmt.place), "rvalue": _rvalue_to_dict(stmt.rvalue)}}
    if isinstance(stmt, Deinit):
        return {"deinit": _place_to_dict(stmt.place)}
    if isinstance(stmt, StorageLive):
        return {"storage_live": stmt.local}
    if isinstance(stmt, StorageDead):
        return {"storage_dead": stmt.local}
    return {"nop": True}


def _statement_from_dict(data: Any) -> Statement:
    if not isinstance(data, dict):
        raise InvalidArgumentError(f"Malformed statement {data!r}")
    if "assign" in data:
        a = data["assign"]
        return Assign(_place_from_dict(_get(a, "place", dict)), _rvalue_from_dict(_get(a, "rvalue", dict)))
    if "deinit" in data:
        return Deinit(_place_from_dict(data["deinit"]))
    if "storage_live" in data:
        return StorageLive(_int(data["storage_live"], "storage_live"))
    if "storage_dead" in data:
        return StorageDead(_int(data["storage_dead"], "storage_dead"))
    if "nop" in data:
        return Nop()
    raise InvalidArgumentError(f"Malformed statement {data!r}")
