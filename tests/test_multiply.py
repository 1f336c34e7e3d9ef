import numpy as np
import pytest
from hypothesis import given, settings
import hypothesis.strategies as st

from BigIntDecimal.factory import digits, to_int
from BigIntDecimal.kernels import INT9, INT16
from BigIntDecimal.multiply import (
    MultiplicationCancelled,
    add,
    add_shifted,
    canonicalize,
    compare,
    multiply,
    multiply_chunked,
    multiply_karatsuba,
    multiply_simple,
    normalize,
    subtract_in_place,
)

WIDTHS = [INT9, INT16]
big = st.integers(min_value=0, max_value=10 ** 400)


def test_canonicalize_keeps_one_digit() -> None:
    assert canonicalize(np.array([0, 0, 5, 0], dtype=np.uint32)).tolist() == [5, 0]
    assert canonicalize(np.array([0, 0], dtype=np.uint32)).tolist() == [0]


def test_compare() -> None:
    assert compare(digits(5, INT9, 3), digits(5, INT9)) == 0
    assert compare(digits(10 ** 9, INT9), digits(999, INT9)) == 1
    assert compare(digits(7, INT9), digits(8, INT9)) == -1


def test_normalize_folds_oversized_cells() -> None:
    acc = np.array([0, 1_999_999_998, 1_500_000_000], dtype=np.uint32)
    value = to_int(acc, INT9)

    normalize(acc, INT9)

    assert acc.tolist() == [1, 999_999_999, 500_000_000]
    assert to_int(acc, INT9) == value


def test_normalize_raises_when_carry_escapes() -> None:
    with pytest.raises(OverflowError):
        normalize(np.array([1_500_000_000], dtype=np.uint32), INT9)


def test_add_shifted_and_subtract() -> None:
    acc = digits(999_999_999, INT9, 3)
    add_shifted(acc, [1], 0, INT9)
    assert acc.tolist() == [0, 1, 0]

    subtract_in_place(acc, [1], INT9)
    assert acc.tolist() == [0, 0, 999_999_999]

    with pytest.raises(ValueError):
        subtract_in_place(acc, [1, 0], INT9)
    with pytest.raises(IndexError):
        add_shifted(acc, [1, 2], 2, INT9)
    with pytest.raises(OverflowError):
        add_shifted(np.array([999_999_999], dtype=np.uint32), [1], 0, INT9)


@pytest.mark.parametrize("width", WIDTHS, ids=lambda w: w.name)
@settings(max_examples=40, deadline=None)
@given(a=big, b=big)
def test_add(width, a, b) -> None:
    assert to_int(add(digits(a, width), digits(b, width), width), width) == a + b


@pytest.mark.parametrize("width", WIDTHS, ids=lambda w: w.name)
@settings(max_examples=40, deadline=None)
@given(a=big, b=big)
def test_drivers_agree_with_python_int(width, a, b) -> None:
    lhs, rhs = digits(a, width), digits(b, width)

    assert to_int(multiply_simple(lhs, rhs, width), width) == a * b
    assert to_int(multiply_chunked(lhs, rhs, width, chunk=3), width) == a * b
    assert to_int(multiply_karatsuba(lhs, rhs, width, threshold=2), width) == a * b


@pytest.mark.parametrize("width", WIDTHS, ids=lambda w: w.name)
def test_karatsuba_with_all_max_digits_and_uneven_lengths(width) -> None:
    a = width.base ** 37 - 1
    b = width.base ** 5 - 1
    for threshold in (1, 3, 40):
        got = multiply_karatsuba(digits(a, width), digits(b, width), width, threshold=threshold)
        assert to_int(got, width) == a * b
        assert all(int(d) < width.base for d in got)


def test_results_are_canonical_and_operands_untouched() -> None:
    lhs = digits(12345, INT9, 4)
    rhs = digits(0, INT9, 3)
    lhs_before = lhs.copy()

    assert multiply_simple(lhs, rhs, INT9).tolist() == [0]
    assert multiply(lhs, digits(2, INT9, 2), INT9).tolist() == [24690]
    np.testing.assert_array_equal(lhs, lhs_before)


def test_chunked_can_be_cancelled_between_kernel_calls() -> None:
    calls = []

    def should_stop():
        calls.append(1)
        return len(calls) > 2

    with pytest.raises(MultiplicationCancelled):
        multiply_chunked(digits(10 ** 90, INT9), digits(10 ** 90, INT9), INT9, chunk=2, should_stop=should_stop)
    assert len(calls) == 3


def test_invalid_parameters() -> None:
    with pytest.raises(ValueError):
        multiply_karatsuba([1], [1], INT9, threshold=0)
    with pytest.raises(ValueError):
        multiply_chunked([1], [1], INT9, chunk=0)
    with pytest.raises(ValueError):
        multiply_simple([], [1], INT9)
    with pytest.raises(TypeError):
        multiply_simple(np.array([1.5]), [1], INT9)


@pytest.mark.parametrize("width", WIDTHS, ids=lambda w: w.name)
def test_out_of_range_digits_are_rejected(width) -> None:
    with pytest.raises(ValueError):
        multiply_simple([-1], [1], width)
    with pytest.raises(ValueError):
        add([-1], [0], width)
    with pytest.raises(ValueError):
        multiply([width.base], [1], width)
    with pytest.raises(ValueError):
        multiply_chunked([1], np.array([width.base], dtype=width.dtype), width)
