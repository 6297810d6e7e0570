"""The four-point boolean domain."""

from __future__ import annotations

from enum import Enum

from mirabs.domains.domain import AbstractDomain
from mirabs.errors import ContractViolation
from mirabs.mir.body import Const, ConstKind


class AbstractBool(Enum):
    """The abstract boolean lattice.

    Hasse diagram:
            top
          /     \\
       false    true
          \\     /
            bot

    gamma(top) = {false, true}, gamma(bot) = {} (unreachable).
    """
    TOP = "top"
    TRUE = "true"
    FALSE = "false"
    BOT = "bot"

    def __str__(self) -> str:
        return self.value

    def leq(self, other: AbstractBool) -> bool:
        """Partial order; false and true are incomparable."""
        if self is other:
            return True
        return self is AbstractBool.BOT or other is AbstractBool.TOP

    def join(self, other: AbstractBool) -> AbstractBool:
        if other.leq(self):
            return self
        if self.leq(other):
            return other
        # only true and false are incomparable
        return AbstractBool.TOP

    def widen(self, other: AbstractBool) -> AbstractBool:
        if self is AbstractBool.TOP or other is AbstractBool.TOP:
            return AbstractBool.TOP
        if self is AbstractBool.BOT:
            return other
        if other is AbstractBool.BOT:
            return self
        return self if self is other else AbstractBool.TOP

    def top(self) -> AbstractBool:
        return AbstractBool.TOP

    def equals(self, other: AbstractBool) -> AbstractBool:
        """Abstract boolean equality (==), not the lattice join.

        Top on either side gives top; otherwise bot on either side gives bot.
        """
        if self is AbstractBool.TOP or other is AbstractBool.TOP:
            return AbstractBool.TOP
        if self is AbstractBool.BOT or other is AbstractBool.BOT:
            return AbstractBool.BOT
        return AbstractBool.TRUE if self is other else AbstractBool.FALSE

    @staticmethod
    def from_bool(concrete: bool) -> AbstractBool:
        return AbstractBool.TRUE if concrete else AbstractBool.FALSE

    @staticmethod
    def from_const(constant: Const) -> AbstractBool:
        """Decode a boolean constant from its single-byte allocation."""
        if not constant.ty.is_bool():
            raise ContractViolation(
                f"Cannot construct an abstract boolean from a constant of type '{constant.ty}'"
            )
        if constant.kind is not ConstKind.ALLOCATED:
            raise ContractViolation(
                f"Boolean constants of kind '{constant.kind.value}' cannot be decoded"
            )
        if len(constant.bytes) != 1 or constant.bytes[0] is None:
            raise ContractViolation(
                f"Unexpected bytes {list(constant.bytes)} for a boolean constant"
            )
        return AbstractBool.FALSE if constant.bytes[0] == 0 else AbstractBool.TRUE


# Enum's metaclass cannot be combined with ABCMeta, so register virtually.
AbstractDomain.register(AbstractBool)
