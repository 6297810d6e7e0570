"""Abstract interpreter for function bodies.

Implements the abstract semantics of a body's statements over the value
domain:
  - Each local maps to an AbstractValue in a per-call state
  - Blocks are processed once, in declaration order
  - Assign evaluates its rvalue and stores it, Deinit stores Uninit

There is no fixpoint iteration over back-edges: a block is never revisited,
so join and widen are not applied at merge points. Summaries built by
interpret_intervals come from the declared types alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from mirabs.domains import (
    AbstractBool, AbstractFunction, AbstractValue, BoolValue,
    IntIntervalValue, TupleValue, UintIntervalValue, UNINIT, Uninit,
)
from mirabs.errors import (
    AnalysisError, IndexOutOfRangeError, InterpreterError,
    InvalidArgumentError, UnsupportedError,
)
from mirabs.mir.body import (
    Assign, BasicBlock, BinaryOp, BinOp, Body, CheckedBinaryOp, Constant,
    Copy, Deinit, Field, Local, LocalDecl, Move, Operand, Place, Rvalue,
    Statement, Use,
)
from mirabs.mir.ty import Ty

logger = logging.getLogger(__name__)

State = dict[Local, AbstractValue]


@dataclass(frozen=True)
class CheckedOpObservation:
    """A CheckedBinaryOp as the interpreter saw it, for overflow diagnostics."""
    block: int
    statement: int
    op: BinOp
    left: AbstractValue
    right: AbstractValue
    ty: Ty

    @property
    def location(self) -> str:
        return f"bb{self.block}[{self.statement}]"


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------

def _is_numeric_or_bool(ty: Ty) -> bool:
    return ty.is_numeric() or ty.is_bool()


def can_interpret(local_decls: Sequence[LocalDecl]) -> bool:
    """True if every local is numeric, boolean, or a tuple of those."""
    return all(
        _is_numeric_or_bool(decl.ty)
        or (decl.ty.is_tuple() and all(_is_numeric_or_bool(f) for f in decl.ty.tuple_fields()))
        for decl in local_decls
    )


def value_fits(value: AbstractValue, ty: Ty) -> bool:
    """True if value is the variant AbstractValue.new(ty) would build."""
    if ty.is_bool():
        return isinstance(value, BoolValue)
    if ty.is_signed_int():
        return isinstance(value, IntIntervalValue)
    if ty.is_unsigned_int():
        return isinstance(value, UintIntervalValue)
    if ty.is_tuple():
        fields = ty.tuple_fields()
        return (isinstance(value, TupleValue) and len(value) == len(fields)
                and all(value_fits(v, f) for v, f in zip(value.items, fields)))
    return False


# ---------------------------------------------------------------------------
# Abstract Interpreter
# ---------------------------------------------------------------------------

class BodyInterpreter:
    """Interprets one body against a fresh abstract state.

    Errors raised by a statement are collected in `errors` and end the
    current block; the next block still runs.
    """

    def __init__(self, body: Body):
        self.body = body
        self.errors: list[AnalysisError] = []
        self.checked_ops: list[CheckedOpObservation] = []
        self._location = (0, 0)

    def interpret(self, arg_values: Sequence[AbstractValue]) -> State:
        arg_types, _ = self.body.fn_types()
        if len(arg_values) != len(arg_types):
            raise InvalidArgumentError(
                "Must supply same number of arguments as the function takes "
                "as input when interpreting it.",
                {"expected": len(arg_types), "actual": len(arg_values)},
            )
        for local, (arg, ty) in enumerate(zip(arg_values, arg_types), start=1):
            if not value_fits(arg, ty):
                raise InvalidArgumentError(
                    f"Argument _{local} is {arg}, which does not match its declared type '{ty}'",
                    {"local": local, "type": str(ty), "value": arg.to_json()},
                )

        state: State = {}
        for local, arg in zip(self.body.arg_locals(), arg_values):
            state[local] = arg

        for bb, block in enumerate(self.body.blocks):
            try:
                self.interpret_block(bb, block, state)
            except AnalysisError as e:
                self.errors.append(e)

        if self.errors:
            logger.debug("Errors while interpreting body: %s", [str(e) for e in self.errors])
        return state

    def interpret_block(self, bb: int, block: BasicBlock, state: State) -> None:
        for i, statement in enumerate(block.statements):
            self._location = (bb, i)
            self.interpret_statement(statement, state)

    def interpret_statement(self, statement: Statement, state: State) -> None:
        if isinstance(statement, Assign):
            value = self.interpret_rvalue(statement.rvalue, state)
            self.write_place(statement.place, value, state)
            return
        if isinstance(statement, Deinit):
            self.write_place(statement.place, UNINIT, state)
            return
        raise UnsupportedError(
            f"Statement '{statement}' is not supported",
            {"statement": type(statement).__name__},
        )

    def interpret_rvalue(self, rvalue: Rvalue, state: State) -> AbstractValue:
        if isinstance(rvalue, Use):
            return self.interpret_operand(rvalue.operand, state)
        if isinstance(rvalue, BinaryOp):
            return self.interpret_binop(rvalue.op, rvalue.left, rvalue.right, state)
        if isinstance(rvalue, CheckedBinaryOp):
            left = self.interpret_operand(rvalue.left, state)
            right = self.interpret_operand(rvalue.right, state)
            value = apply_binop(rvalue.op, left, right)
            bb, i = self._location
            self.checked_ops.append(CheckedOpObservation(
                bb, i, rvalue.op, left, right, self.operand_ty(rvalue.left),
            ))
            # The overflow flag is always false: checked operations are
            # assumed never to fail.
            return TupleValue((value, BoolValue(AbstractBool.FALSE)))
        raise UnsupportedError(
            f"Rvalue '{rvalue}' is not supported",
            {"rvalue": type(rvalue).__name__},
        )

    def interpret_binop(self, op: BinOp, left: Operand, right: Operand,
                        state: State) -> AbstractValue:
        left_val = self.interpret_operand(left, state)
        right_val = self.interpret_operand(right, state)
        return apply_binop(op, left_val, right_val)

    def interpret_operand(self, operand: Operand, state: State) -> AbstractValue:
        if isinstance(operand, (Copy, Move)):
            return self.read_place(operand.place, state)
        if isinstance(operand, Constant):
            if operand.literal.ty.is_bool():
                return BoolValue(AbstractBool.from_const(operand.literal))
            raise UnsupportedError(
                f"Constants of type '{operand.literal.ty}' are not supported",
                {"type": str(operand.literal.ty)},
            )
        raise UnsupportedError(f"Operand '{operand}' is not supported")

    # -- places ------------------------------------------------------------

    def read_place(self, place: Place, state: State) -> AbstractValue:
        value = state.get(place.local)
        if value is None:
            raise InterpreterError(
                f"Read of unset local _{place.local}", {"place": str(place)},
            )
        for elem in place.projection:
            if not isinstance(elem, Field):
                raise UnsupportedError(f"Projection '{elem}' in '{place}' is not supported")
            inner = value.get(elem.index)
            if inner is None:
                raise IndexOutOfRangeError(elem.index, len(value))
            value = inner
        return value

    def write_place(self, place: Place, value: AbstractValue, state: State) -> None:
        if not place.projection:
            state[place.local] = value
            return
        current = state.get(place.local)
        if current is None or isinstance(current, Uninit):
            current = AbstractValue.new(self.body.local_ty(place.local))
        state[place.local] = self._write_projection(current, place, 0, value)

    def _write_projection(self, current: AbstractValue, place: Place, depth: int,
                          value: AbstractValue) -> AbstractValue:
        if depth == len(place.projection):
            return value
        elem = place.projection[depth]
        if not isinstance(elem, Field):
            raise UnsupportedError(f"Projection '{elem}' in '{place}' is not supported")
        inner = current.get(elem.index)
        if inner is None:
            raise IndexOutOfRangeError(elem.index, len(current))
        return current.set(elem.index, self._write_projection(inner, place, depth + 1, value))

    def operand_ty(self, operand: Operand) -> Ty:
        if isinstance(operand, Constant):
            return operand.literal.ty
        ty = self.body.local_ty(operand.place.local)
        for elem in operand.place.projection:
            if isinstance(elem, Field):
                fields = ty.tuple_fields()
                if not 0 <= elem.index < len(fields):
                    raise IndexOutOfRangeError(elem.index, len(fields))
                ty = fields[elem.index]
        return ty


def apply_binop(op: BinOp, left: AbstractValue, right: AbstractValue) -> AbstractValue:
    """Abstract semantics of a binary operator on two evaluated operands."""
    if op is BinOp.ADD:
        if isinstance(left, IntIntervalValue) and isinstance(right, IntIntervalValue):
            return IntIntervalValue(left.interval + right.interval)
        if isinstance(left, UintIntervalValue) and isinstance(right, UintIntervalValue):
            return UintIntervalValue(left.interval + right.interval)
    elif op is BinOp.EQ:
        if isinstance(left, BoolValue) and isinstance(right, BoolValue):
            return BoolValue(left.value.equals(right.value))
        if isinstance(left, IntIntervalValue) and isinstance(right, IntIntervalValue):
            return BoolValue(left.interval.equals(right.interval))
        if isinstance(left, UintIntervalValue) and isinstance(right, UintIntervalValue):
            return BoolValue(left.interval.equals(right.interval))
    elif op is BinOp.LT:
        if isinstance(left, IntIntervalValue) and isinstance(right, IntIntervalValue):
            return BoolValue(left.interval.less_than(right.interval))
        if isinstance(left, UintIntervalValue) and isinstance(right, UintIntervalValue):
            return BoolValue(left.interval.less_than(right.interval))
    raise UnsupportedError(
        f"Operator {op.value} is not supported on {type(left).__name__} "
        f"and {type(right).__name__}",
        {"op": op.value},
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def interpret_intervals(body: Body) -> AbstractFunction:
    """Summarize a function from its declared argument and return types."""
    arg_types, return_type = body.fn_types()
    arguments = [AbstractValue.new(ty) for ty in arg_types]
    return AbstractFunction(arguments, AbstractValue.new(return_type))


def interpret_body(body: Body, arg_values: Sequence[AbstractValue]) -> State:
    """Interpret a body once, block by block, seeded with the argument values.

    Per-statement failures are logged and skipped; see BodyInterpreter for
    access to the collected errors.
    """
    return BodyInterpreter(body).interpret(arg_values)
