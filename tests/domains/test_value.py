"""Composite value domain tests."""

import pytest

from mirabs.domains import (
    AbstractBool, AbstractValue, BoolValue, IntIntervalValue, Interval,
    TupleValue, UintIntervalValue, UNINIT, value_from_json,
)
from mirabs.errors import (
    ContractViolation, ErrorKind, IndexOutOfRangeError, InvalidArgumentError,
    UnsupportedError,
)
from mirabs.mir import BOOL, I32, I128, U8, U64, AdtTy, FloatTy, RefTy, StrTy, TupleTy


def ints(lo, hi):
    return IntIntervalValue(Interval.from_interval(lo, hi))


def uints(lo, hi):
    return UintIntervalValue(Interval.from_interval(lo, hi))


class TestNew:

    def test_bool(self):
        assert AbstractValue.new(BOOL) == BoolValue(AbstractBool.TOP)

    @pytest.mark.parametrize("ty", [I32, I128])
    def test_signed(self, ty):
        assert AbstractValue.new(ty) == IntIntervalValue(Interval.unbounded())

    @pytest.mark.parametrize("ty", [U8, U64])
    def test_unsigned(self, ty):
        assert AbstractValue.new(ty) == UintIntervalValue(Interval.unbounded())

    def test_tuple_is_elementwise(self):
        value = AbstractValue.new(TupleTy((U8, BOOL, TupleTy((I32,)))))
        assert value == TupleValue((
            UintIntervalValue(Interval.unbounded()),
            BoolValue(AbstractBool.TOP),
            TupleValue((IntIntervalValue(Interval.unbounded()),)),
        ))

    def test_tuple_top_is_fixed_point(self):
        value = AbstractValue.new(TupleTy((U8, BOOL)))
        assert value.top() == value
        assert value.join(value) == value

    def test_empty_tuple(self):
        assert AbstractValue.new(TupleTy(())) == TupleValue(())

    @pytest.mark.parametrize("ty", [FloatTy(64), RefTy(I32), AdtTy("Vec"), StrTy()])
    def test_unsupported_types(self, ty):
        with pytest.raises(UnsupportedError) as exc:
            AbstractValue.new(ty)
        assert exc.value.kind is ErrorKind.NOT_IMPLEMENTED

    def test_unsupported_field_type(self):
        with pytest.raises(UnsupportedError):
            AbstractValue.new(TupleTy((I32, StrTy())))

    def test_base_class_is_abstract(self):
        with pytest.raises(TypeError):
            AbstractValue()


class TestLattice:

    def test_int_join(self):
        assert ints(0, 1).join(ints(5, 6)) == ints(0, 6)

    def test_uint_widen(self):
        widened = uints(0, 1).widen(uints(0, 2))
        assert widened.interval.upper.is_finite() is False
        assert widened.interval.lower.value == 0

    def test_bool_join(self):
        assert BoolValue(AbstractBool.TRUE).join(BoolValue(AbstractBool.FALSE)) == \
            BoolValue(AbstractBool.TOP)

    def test_bool_widen_uses_bool_widen(self):
        assert BoolValue(AbstractBool.BOT).widen(BoolValue(AbstractBool.TRUE)) == \
            BoolValue(AbstractBool.TRUE)

    def test_tuple_join_is_elementwise(self):
        a = TupleValue((ints(0, 0), BoolValue(AbstractBool.TRUE)))
        b = TupleValue((ints(4, 4), BoolValue(AbstractBool.TRUE)))
        assert a.join(b) == TupleValue((ints(0, 4), BoolValue(AbstractBool.TRUE)))

    def test_leq(self):
        assert ints(1, 2).leq(ints(0, 3))
        assert TupleValue((ints(1, 2),)).leq(TupleValue((ints(0, 3),)))
        assert not TupleValue((ints(0, 3),)).leq(TupleValue((ints(1, 2),)))

    def test_uninit(self):
        assert UNINIT.join(UNINIT) is UNINIT
        assert UNINIT.widen(UNINIT) is UNINIT
        assert UNINIT.top() is UNINIT

    @pytest.mark.parametrize("left,right", [
        (ints(0, 0), uints(0, 0)),
        (uints(0, 0), BoolValue(AbstractBool.TRUE)),
        (BoolValue(AbstractBool.TRUE), TupleValue(())),
        (TupleValue(()), UNINIT),
        (UNINIT, ints(0, 0)),
    ])
    def test_mixed_variants_are_contract_violations(self, left, right):
        with pytest.raises(ContractViolation):
            left.join(right)
        with pytest.raises(ContractViolation):
            left.widen(right)

    def test_tuple_arity_mismatch(self):
        with pytest.raises(ContractViolation):
            TupleValue((ints(0, 0),)).join(TupleValue((ints(0, 0), ints(1, 1))))

    def test_mismatch_nested_in_tuple(self):
        with pytest.raises(ContractViolation):
            TupleValue((ints(0, 0),)).join(TupleValue((uints(0, 0),)))


class TestTupleAccess:

    def test_get(self):
        t = TupleValue((ints(1, 1), BoolValue(AbstractBool.FALSE)))
        assert t.get(0) == ints(1, 1)
        assert t.get(1) == BoolValue(AbstractBool.FALSE)
        assert t.get(2) is None
        assert t.get(-1) is None

    def test_set_returns_new_tuple(self):
        t = TupleValue((ints(1, 1), ints(2, 2)))
        updated = t.set(1, ints(9, 9))
        assert updated == TupleValue((ints(1, 1), ints(9, 9)))
        assert t.get(1) == ints(2, 2)

    def test_set_out_of_range(self):
        with pytest.raises(IndexOutOfRangeError) as exc:
            TupleValue((ints(1, 1),)).set(3, ints(0, 0))
        assert exc.value.kind is ErrorKind.INDEX_OUT_OF_RANGE

    def test_get_on_scalar_is_unsupported(self):
        with pytest.raises(UnsupportedError):
            ints(0, 0).get(0)


class TestJson:

    def test_to_json(self):
        value = TupleValue((ints(3, 3), uints(0, 9), BoolValue(AbstractBool.TOP), UNINIT))
        assert value.to_json() == {
            "tuple": [{"int": [3, 3]}, {"uint": [0, 9]}, {"bool": "top"}, "uninit"],
        }

    def test_unbounded_to_json(self):
        assert AbstractValue.new(I32).to_json() == {"int": ["-inf", "+inf"]}

    @pytest.mark.parametrize("data", [
        {"int": [3, 3]},
        {"uint": [0, "+inf"]},
        {"int": ["-inf", "+inf"]},
        {"bool": "false"},
        {"tuple": [{"bool": "bot"}, "uninit"]},
        "uninit",
    ])
    def test_from_json_inverts_to_json(self, data):
        assert value_from_json(data).to_json() == data

    @pytest.mark.parametrize("data", [
        {"int": [5, 1]},
        {"int": [True, 2]},
        {"int": [1]},
        {"bool": "maybe"},
        {"float": [0, 1]},
        {"int": [0, 1], "uint": [0, 1]},
        [0, 1],
    ])
    def test_from_json_rejects_malformed(self, data):
        with pytest.raises(InvalidArgumentError):
            value_from_json(data)
