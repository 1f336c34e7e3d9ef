import numpy as np
import pytest

from BigIntDecimal.kernels import INT9, INT16, DigitRun, multiply_windows
from BigIntDecimal.model import DecimalInt


def test_digit_run_is_a_window_not_a_copy() -> None:
    buf = np.array([7, 1, 2, 3, 7], dtype=np.uint32)
    run = DigitRun(buf, 1, 3)

    assert len(run) == 3 and run.max_index == 3
    assert run.value(INT9) == 1 * 10 ** 18 + 2 * 10 ** 9 + 3

    run.digits()[0] = 9
    assert buf[1] == 9


def test_digit_run_feeds_the_kernel() -> None:
    lhs = DigitRun(np.array([0, 4, 0], dtype=np.uint64), 1, 1)
    rhs = DigitRun(np.array([5], dtype=np.uint64))
    acc = DigitRun(np.zeros(4, dtype=np.uint64), 1, 2)

    multiply_windows(acc, 0, lhs, rhs, INT16)

    assert acc.value(INT16) == 20
    assert acc.buffer.tolist() == [0, 0, 20, 0]


def test_digit_run_rejects_bad_windows() -> None:
    buf = np.zeros(3, dtype=np.uint32)
    with pytest.raises(IndexError):
        DigitRun(buf, 2, 2)
    with pytest.raises(IndexError):
        DigitRun(buf, 0, 0)


@pytest.mark.parametrize("width", ["int9", "int16"])
def test_decimal_int_arithmetic(width) -> None:
    a = 3 ** 200
    b = 7 ** 150 + 1
    x, y = DecimalInt.of(a, width), DecimalInt.parse(str(b), width)

    assert int(x * y) == a * b
    assert int(x + y) == a + b
    assert str(x * y) == str(a * b)
    assert x * DecimalInt.of(0, width) == DecimalInt.of(0, width)


def test_decimal_int_is_canonical() -> None:
    x = DecimalInt(np.array([0, 0, 12], dtype=np.uint32), INT9)
    assert len(x) == 1
    assert repr(x) == "DecimalInt(digits=1, width=int9)"
    assert x == DecimalInt.of(12, "int9")


def test_decimal_int_width_mismatch() -> None:
    with pytest.raises(TypeError):
        DecimalInt.of(1, INT9) * DecimalInt.of(1, INT16)
    assert DecimalInt.of(1, INT9) != DecimalInt.of(1, INT16)
    assert DecimalInt.of(1, INT9).__mul__(3) is NotImplemented


@pytest.mark.parametrize("width", ["int9", "int16"])
def test_decimal_int_subtraction(width) -> None:
    a = 5 ** 120
    b = 5 ** 119 + 3
    x, y = DecimalInt.of(a, width), DecimalInt.of(b, width)

    assert int(x - y) == a - b
    assert x - x == DecimalInt.of(0, width)
    # operands are left untouched
    assert int(x) == a and int(y) == b


def test_decimal_int_subtraction_stays_unsigned() -> None:
    with pytest.raises(ValueError):
        DecimalInt.of(3, INT9) - DecimalInt.of(4, INT9)
    with pytest.raises(TypeError):
        DecimalInt.of(4, INT9) - DecimalInt.of(3, INT16)
    assert DecimalInt.of(1, INT9).__sub__(1) is NotImplemented
