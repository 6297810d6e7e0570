from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mirabs.domains.value import AbstractValue


@dataclass
class AbstractFunction:
    """Abstraction of a function as input and output abstract values."""
    arguments: list[AbstractValue] = field(default_factory=list)
    return_val: AbstractValue | None = None

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"({args}) -> {self.return_val}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "arguments": [a.to_json() for a in self.arguments],
            "return": self.return_val.to_json() if self.return_val is not None else None,
        }
