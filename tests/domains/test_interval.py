"""Interval domain tests."""

import pytest

from mirabs.domains import INF, NEG_INF, AbstractBool, Interval, IntervalElem

TOP_IV = Interval.unbounded()


def iv(lo, hi):
    return Interval.from_interval(lo, hi)


class TestBounds:

    def test_order(self):
        assert NEG_INF < IntervalElem.of(-10**40) < IntervalElem.of(10**40) < INF

    def test_finite_bounds_compare_by_value(self):
        assert IntervalElem.of(3) < IntervalElem.of(4)
        assert IntervalElem.of(4) >= IntervalElem.of(4)

    def test_addition_absorbs_infinity(self):
        assert NEG_INF + IntervalElem.of(5) == NEG_INF
        assert IntervalElem.of(5) + INF == INF
        assert NEG_INF + INF == NEG_INF
        assert IntervalElem.of(2) + IntervalElem.of(3) == IntervalElem.of(5)


class TestLattice:

    def test_join_is_smallest_enclosing(self):
        assert iv(0, 5).join(iv(3, 10)) == iv(0, 10)
        assert iv(-4, -2).join(iv(7, 9)) == iv(-4, 9)

    def test_join_with_top(self):
        assert iv(1, 2).join(TOP_IV).is_top()

    def test_top(self):
        assert iv(1, 1).top() == Interval(NEG_INF, INF)

    def test_leq(self):
        assert iv(2, 3).leq(iv(0, 5))
        assert not iv(0, 5).leq(iv(2, 3))
        assert iv(2, 3).leq(TOP_IV)

    def test_widen_keeps_stable_bounds(self):
        assert iv(0, 10).widen(iv(2, 8)) == iv(0, 10)

    def test_widen_snaps_growing_bounds(self):
        assert iv(0, 10).widen(iv(-1, 10)) == Interval(NEG_INF, IntervalElem.of(10))
        assert iv(0, 10).widen(iv(0, 11)) == Interval(IntervalElem.of(0), INF)

    def test_widen_reaches_top_in_two_steps(self):
        current = iv(0, 0)
        changes = 0
        for k in range(1, 50):
            widened = current.widen(iv(-k, k * 2))
            if widened != current:
                changes += 1
            current = widened
        assert current.is_top()
        assert changes <= 2

    def test_widen_moving_one_bound_changes_once(self):
        current = iv(0, 0)
        seen = set()
        for k in range(1, 20):
            current = current.widen(iv(0, k))
            seen.add(current)
        assert current == Interval(IntervalElem.of(0), INF)
        assert len(seen) == 1


class TestTransfer:

    def test_from_value_is_singleton(self):
        assert Interval.from_value(7).is_singleton()
        assert not iv(1, 2).is_singleton()
        assert not TOP_IV.is_singleton()

    def test_add(self):
        assert iv(1, 2) + iv(10, 20) == iv(11, 22)
        assert iv(-5, 5).add(iv(-1, 1)) == iv(-6, 6)

    def test_add_does_not_wrap(self):
        u128_max = (1 << 128) - 1
        assert (iv(u128_max, u128_max) + iv(1, 1)).contains(1 << 128)

    def test_add_with_unbounded(self):
        assert (iv(1, 2) + TOP_IV).is_top()
        assert iv(1, 2) + Interval(IntervalElem.of(0), INF) == Interval(IntervalElem.of(1), INF)

    def test_contains(self):
        assert iv(0, 10).contains(0)
        assert iv(0, 10).contains(10)
        assert not iv(0, 10).contains(11)
        assert TOP_IV.contains(-10**50)

    def test_str(self):
        assert str(iv(1, 2)) == "[1, 2]"
        assert str(TOP_IV) == "[-inf, +inf]"


class TestLessThan:

    def test_same_point_is_false(self):
        assert Interval.from_value(10).less_than(Interval.from_value(10)) is AbstractBool.FALSE

    def test_strictly_below(self):
        assert iv(-10, 5).less_than(iv(20, 30)) is AbstractBool.TRUE

    def test_strictly_above(self):
        assert iv(20, 30).less_than(iv(-10, 5)) is AbstractBool.FALSE

    def test_overlap_is_top(self):
        assert iv(10, 30).less_than(iv(0, 15)) is AbstractBool.TOP

    def test_touching_bounds_are_ambiguous(self):
        assert iv(10, 20).less_than(iv(20, 30)) is AbstractBool.TOP

    @pytest.mark.parametrize("other", [iv(0, 0), iv(-5, 5), TOP_IV])
    def test_top_is_ambiguous(self, other):
        assert TOP_IV.less_than(other) is AbstractBool.TOP
        assert other.less_than(TOP_IV) is AbstractBool.TOP


class TestEquals:

    def test_disjoint_is_false(self):
        assert iv(0, 5).equals(iv(6, 9)) is AbstractBool.FALSE
        assert iv(6, 9).equals(iv(0, 5)) is AbstractBool.FALSE

    def test_same_point_is_true(self):
        assert Interval.from_value(4).equals(Interval.from_value(4)) is AbstractBool.TRUE

    def test_overlap_is_top(self):
        assert iv(0, 5).equals(iv(5, 9)) is AbstractBool.TOP
        assert iv(0, 5).equals(iv(0, 5)) is AbstractBool.TOP

    def test_unbounded_is_top(self):
        assert TOP_IV.equals(TOP_IV) is AbstractBool.TOP
