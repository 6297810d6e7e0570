"""Structured error objects for the mirabs analyzer.

Every recoverable failure is an AnalysisError carrying a machine-readable
kind, so the orchestration layer can report it per function without halting
the whole run. ContractViolation is the one fatal signal: it marks a caller
bug (mixing lattice variants, a malformed boolean constant) and is never
caught by the analyzer itself.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    NOT_IMPLEMENTED = "not_implemented"
    INTERPRETER = "interpreter_error"
    INVALID_ARGUMENT = "invalid_argument"
    INDEX_OUT_OF_RANGE = "index_out_of_range"


class AnalysisError(Exception):
    """A typed, recoverable analysis failure."""

    def __init__(self, kind: ErrorKind, message: str = "",
                 details: Optional[dict[str, Any]] = None):
        self.kind = kind
        self.message = message or kind.value.replace("_", " ")
        self.details = details or {}
        super().__init__(str(self))

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.details:
            d["details"] = self.details
        return d

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        return f"[{self.kind.value}]: {self.message}"


class UnsupportedError(AnalysisError):
    """A type, statement, rvalue, operator or constant outside current coverage."""

    def __init__(self, message: str = "", details: Optional[dict] = None):
        super().__init__(ErrorKind.NOT_IMPLEMENTED, message, details)


class InterpreterError(AnalysisError):
    """Convenience subclass for runtime inconsistencies during interpretation."""

    def __init__(self, message: str = "", details: Optional[dict] = None):
        super().__init__(ErrorKind.INTERPRETER, message, details)


class InvalidArgumentError(AnalysisError):
    """Convenience subclass for malformed caller input."""

    def __init__(self, message: str = "", details: Optional[dict] = None):
        super().__init__(ErrorKind.INVALID_ARGUMENT, message, details)


class IndexOutOfRangeError(AnalysisError):
    """Convenience subclass for tuple accesses past the arity."""

    def __init__(self, index: int, arity: int):
        super().__init__(
            ErrorKind.INDEX_OUT_OF_RANGE,
            f"Index {index} is out of range for a tuple of arity {arity}",
            {"index": index, "arity": arity},
        )


class ContractViolation(Exception):
    """Fatal: an abstract-domain operation was called with operands that a
    well-typed caller can never produce."""


class AnalysisFailure(Exception):
    """Exception wrapping one or more AnalysisErrors."""

    def __init__(self, errors: list[AnalysisError] | AnalysisError):
        if isinstance(errors, AnalysisError):
            errors = [errors]
        self.errors = errors
        super().__init__(self._format())

    def _format(self) -> str:
        return "\n".join(str(e) for e in self.errors)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps([e.to_dict() for e in self.errors], indent=indent)
