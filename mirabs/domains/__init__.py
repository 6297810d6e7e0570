"""Abstract domains: booleans, intervals and the composite value domain."""

from .domain import AbstractDomain
from .booleans import AbstractBool
from .interval import Interval, IntervalElem, BoundKind, INF, NEG_INF
from .value import (
    AbstractValue, BoolValue, IntIntervalValue, UintIntervalValue,
    TupleValue, Uninit, UNINIT, value_from_json,
)
from .function import AbstractFunction
