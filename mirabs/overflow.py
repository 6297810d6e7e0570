"""Overflow diagnostics for checked arithmetic.

The interpreter gives every CheckedBinaryOp a constant "did not overflow"
flag. This module reports, separately, whether the operation can overflow
the operand type given the operands' abstract values. Each query is a
bit-vector satisfiability problem discharged with Z3:

  exists l in gamma(left), r in gamma(right).  l + r overflows ty

sat means a witness exists and the operation may overflow; unsat proves it
cannot; unknown (timeout) is reported as inconclusive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import z3

from mirabs.domains import AbstractValue, IntIntervalValue, Interval, UintIntervalValue
from mirabs.interpreter import CheckedOpObservation
from mirabs.mir.body import BinOp
from mirabs.mir.ty import IntTy, UintTy

logger = logging.getLogger(__name__)


@dataclass
class OverflowDiagnostic:
    function: str
    location: str
    op: str
    ty: str
    inconclusive: bool = False
    witness: dict[str, int] = field(default_factory=dict)

    @property
    def message(self) -> str:
        if self.inconclusive:
            return f"Could not decide whether checked {self.op} on {self.ty} may overflow"
        operands = ", ".join(f"{k}={v}" for k, v in self.witness.items())
        return f"Checked {self.op} on {self.ty} may overflow (e.g. {operands})"

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "function": self.function,
            "location": self.location,
            "op": self.op,
            "type": self.ty,
            "message": self.message,
        }
        if self.witness:
            d["witness"] = self.witness
        if self.inconclusive:
            d["inconclusive"] = True
        return d


def _interval_of(value: AbstractValue) -> Optional[Interval[int]]:
    if isinstance(value, (IntIntervalValue, UintIntervalValue)):
        return value.interval
    return None


def _bounds_in(interval: Interval[int], ty: IntTy | UintTy) -> tuple[int, int]:
    """The interval intersected with the concrete range of ty."""
    lo, hi = ty.min_value(), ty.max_value()
    if interval.lower.is_finite():
        lo = max(lo, interval.lower.value)
    if interval.upper.is_finite():
        hi = min(hi, interval.upper.value)
    return lo, hi


class OverflowChecker:
    """Discharges overflow queries for observed checked operations."""

    def __init__(self, timeout_ms: int = 10000):
        self.timeout_ms = timeout_ms

    def check(self, observation: CheckedOpObservation,
              function: str = "") -> Optional[OverflowDiagnostic]:
        ty = observation.ty
        if observation.op is not BinOp.ADD:
            return None
        if not isinstance(ty, (IntTy, UintTy)):
            return None
        left = _interval_of(observation.left)
        right = _interval_of(observation.right)
        if left is None or right is None:
            return None

        signed = ty.is_signed_int()
        solver = z3.Solver()
        solver.set("timeout", self.timeout_ms)
        x = z3.BitVec("left", ty.bits)
        y = z3.BitVec("right", ty.bits)

        for var, interval in ((x, left), (y, right)):
            lo, hi = _bounds_in(interval, ty)
            if lo > hi:
                # no concrete value of ty lies in the interval
                return None
            lo_bv = z3.BitVecVal(lo, ty.bits)
            hi_bv = z3.BitVecVal(hi, ty.bits)
            if signed:
                solver.add(var >= lo_bv, var <= hi_bv)
            else:
                solver.add(z3.UGE(var, lo_bv), z3.ULE(var, hi_bv))

        if signed:
            solver.add(z3.Or(
                z3.Not(z3.BVAddNoOverflow(x, y, True)),
                z3.Not(z3.BVAddNoUnderflow(x, y)),
            ))
        else:
            solver.add(z3.Not(z3.BVAddNoOverflow(x, y, False)))

        result = solver.check()
        logger.debug("Overflow query for %s at %s: %s", function, observation.location, result)

        if result == z3.unsat:
            return None
        diagnostic = OverflowDiagnostic(
            function=function,
            location=observation.location,
            op=observation.op.value,
            ty=str(ty),
        )
        if result == z3.sat:
            model = solver.model()
            for name, var in (("left", x), ("right", y)):
                val = model.eval(var, model_completion=True)
                diagnostic.witness[name] = val.as_signed_long() if signed else val.as_long()
        else:
            diagnostic.inconclusive = True
        return diagnostic


def check_overflows(observations: list[CheckedOpObservation], function: str = "",
                    timeout_ms: int = 10000) -> list[OverflowDiagnostic]:
    """Run the overflow checker over every observed checked operation."""
    checker = OverflowChecker(timeout_ms)
    diagnostics = []
    for obs in observations:
        diag = checker.check(obs, function)
        if diag is not None:
            diagnostics.append(diag)
    return diagnostics
