"""Property-based tests for the lattice laws of the abstract domains.

An abstract domain used for interpretation must satisfy:

  1. Partial order (leq): reflexivity, antisymmetry, transitivity
  2. Join: commutativity, associativity, idempotence, least upper bound
  3. Widening: a widen b is above both a and b, and ascending chains
     stabilize after finitely many widening steps
  4. Top: every element is below top

The comparison operators of the interval domain are checked for
soundness against the concrete comparison on every pair of members.
"""

from __future__ import annotations

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from mirabs.domains import (
    INF, NEG_INF, AbstractBool, IntIntervalValue, Interval, IntervalElem,
    TupleValue, BoolValue,
)


# ---------------------------------------------------------------------------
# Hypothesis strategies
# ---------------------------------------------------------------------------

@st.composite
def interval_strategy(draw):
    kind = draw(st.sampled_from(["top", "finite", "semi_inf"]))
    if kind == "top":
        return Interval.unbounded()
    if kind == "finite":
        lo = draw(st.integers(min_value=-1000, max_value=1000))
        hi = draw(st.integers(min_value=-1000, max_value=1000))
        if lo > hi:
            lo, hi = hi, lo
        return Interval.from_interval(lo, hi)
    bound = IntervalElem.of(draw(st.integers(min_value=-1000, max_value=1000)))
    return Interval(bound, INF) if draw(st.booleans()) else Interval(NEG_INF, bound)


@st.composite
def finite_interval_strategy(draw):
    lo = draw(st.integers(min_value=-50, max_value=50))
    width = draw(st.integers(min_value=0, max_value=20))
    return Interval.from_interval(lo, lo + width)


bool_strategy = st.sampled_from(list(AbstractBool))


@st.composite
def value_strategy(draw):
    ivs = draw(st.lists(interval_strategy(), min_size=1, max_size=3))
    flag = draw(bool_strategy)
    return TupleValue(tuple(IntIntervalValue(i) for i in ivs) + (BoolValue(flag),))


def _members(interval: Interval[int]) -> range:
    return range(interval.lower.value, interval.upper.value + 1)


# ---------------------------------------------------------------------------
# AbstractBool
# ---------------------------------------------------------------------------

class TestAbstractBoolLaws:

    @given(bool_strategy, bool_strategy)
    def test_join_commutative(self, a, b):
        assert a.join(b) is b.join(a)

    @given(bool_strategy, bool_strategy, bool_strategy)
    def test_join_associative(self, a, b, c):
        assert a.join(b).join(c) is a.join(b.join(c))

    @given(bool_strategy)
    def test_join_idempotent(self, a):
        assert a.join(a) is a

    @given(bool_strategy, bool_strategy)
    def test_join_is_upper_bound(self, a, b):
        j = a.join(b)
        assert a.leq(j) and b.leq(j)

    @given(bool_strategy, bool_strategy, bool_strategy)
    def test_join_is_least_upper_bound(self, a, b, c):
        assume(a.leq(c) and b.leq(c))
        assert a.join(b).leq(c)

    @given(bool_strategy, bool_strategy)
    def test_widen_is_upper_bound(self, a, b):
        w = a.widen(b)
        assert a.leq(w) and b.leq(w)

    @given(bool_strategy, bool_strategy)
    def test_leq_antisymmetric(self, a, b):
        if a.leq(b) and b.leq(a):
            assert a is b

    @given(bool_strategy, bool_strategy)
    def test_equals_sound(self, a, b):
        # for concrete booleans x in a and y in b, x == y must be in a.equals(b)
        gamma = {
            AbstractBool.TOP: {True, False}, AbstractBool.TRUE: {True},
            AbstractBool.FALSE: {False}, AbstractBool.BOT: set(),
        }
        result = a.equals(b)
        for x in gamma[a]:
            for y in gamma[b]:
                assert (x == y) in gamma[result]


# ---------------------------------------------------------------------------
# Interval
# ---------------------------------------------------------------------------

class TestIntervalLaws:

    @given(interval_strategy())
    def test_leq_reflexive(self, a):
        assert a.leq(a)

    @given(interval_strategy(), interval_strategy())
    def test_leq_antisymmetric(self, a, b):
        if a.leq(b) and b.leq(a):
            assert a == b

    @given(interval_strategy(), interval_strategy(), interval_strategy())
    def test_leq_transitive(self, a, b, c):
        if a.leq(b) and b.leq(c):
            assert a.leq(c)

    @given(interval_strategy(), interval_strategy())
    def test_join_commutative(self, a, b):
        assert a.join(b) == b.join(a)

    @given(interval_strategy(), interval_strategy(), interval_strategy())
    def test_join_associative(self, a, b, c):
        assert a.join(b).join(c) == a.join(b.join(c))

    @given(interval_strategy())
    def test_join_idempotent(self, a):
        assert a.join(a) == a

    @given(interval_strategy(), interval_strategy())
    def test_join_is_upper_bound(self, a, b):
        j = a.join(b)
        assert a.leq(j) and b.leq(j)

    @given(interval_strategy(), interval_strategy())
    def test_widen_is_upper_bound(self, a, b):
        w = a.widen(b)
        assert a.leq(w) and b.leq(w)

    @given(interval_strategy())
    def test_below_top(self, a):
        assert a.leq(a.top())

    @settings(max_examples=50)
    @given(st.lists(interval_strategy(), min_size=1, max_size=30))
    def test_widening_chain_stabilizes(self, chain):
        current = chain[0]
        changes = 0
        for nxt in chain[1:]:
            widened = current.widen(current.join(nxt))
            if widened != current:
                changes += 1
            current = widened
        # each bound can jump to infinity at most once
        assert changes <= 2

    @given(finite_interval_strategy(), finite_interval_strategy())
    def test_add_sound(self, a, b):
        s = a + b
        for x in _members(a):
            for y in _members(b):
                assert s.contains(x + y)

    @given(finite_interval_strategy(), finite_interval_strategy())
    def test_less_than_sound(self, a, b):
        result = a.less_than(b)
        outcomes = {x < y for x in _members(a) for y in _members(b)}
        if result is AbstractBool.TRUE:
            assert outcomes == {True}
        elif result is AbstractBool.FALSE:
            assert outcomes == {False}
        else:
            assert result is AbstractBool.TOP

    @given(finite_interval_strategy(), finite_interval_strategy())
    def test_equals_sound(self, a, b):
        result = a.equals(b)
        outcomes = {x == y for x in _members(a) for y in _members(b)}
        if result is AbstractBool.TRUE:
            assert outcomes == {True}
        elif result is AbstractBool.FALSE:
            assert outcomes == {False}
        else:
            assert result is AbstractBool.TOP


# ---------------------------------------------------------------------------
# Composite values
# ---------------------------------------------------------------------------

class TestValueLaws:

    @given(value_strategy())
    def test_join_idempotent(self, v):
        assert v.join(v) == v

    @given(value_strategy(), value_strategy())
    def test_join_is_upper_bound(self, a, b):
        assume(len(a) == len(b))
        j = a.join(b)
        assert a.leq(j) and b.leq(j)

    @given(value_strategy(), value_strategy())
    def test_widen_is_upper_bound(self, a, b):
        assume(len(a) == len(b))
        w = a.widen(b)
        assert a.leq(w) and b.leq(w)

    @given(value_strategy())
    def test_top_is_fixed_point(self, v):
        top = v.top()
        assert top.top() == top
        assert v.leq(top)
