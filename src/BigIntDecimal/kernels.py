import functools
from dataclasses import dataclass

import numpy as np

# ==========================================
# 1. Width Instantiations
# ==========================================

@dataclass(frozen=True)
class Width:
    """
    Numeric parameters of one digit width.

    Args:
        name: Registry key ("int9" / "int16").
        decimals: Decimal digits per digit cell, BASE = 10**decimals.
        dtype: numpy dtype of a digit cell.
        intermediate_bits: Width of the widened product type.
    """
    name: str
    decimals: int
    dtype: np.dtype
    intermediate_bits: int

    def __post_init__(self):
        object.__setattr__(self, "dtype", np.dtype(self.dtype))
        if self.dtype.kind != "u":
            raise ValueError(f"Digit dtype must be unsigned. Got {self.dtype}.")

        base = self.base
        widest_step = (base - 1) * (base - 1) + (base - 1)
        if widest_step >= 1 << self.intermediate_bits:
            raise ValueError(
                f"{self.intermediate_bits}-bit intermediate cannot hold a product step for base {base}."
            )
        # additive carry write-back may leave one cell at up to 2*BASE-2
        if 2 * base - 1 > np.iinfo(self.dtype).max:
            raise ValueError(f"{self.dtype} has no carry headroom for base {base}.")

    @property
    def base(self) -> int:
        return 10 ** self.decimals

    @property
    def half_base(self) -> int:
        """Split point for emulated double-width products (10**(decimals/2))."""
        return 10 ** (self.decimals // 2)

    @property
    def native(self) -> bool:
        """True when the widened product fits a 64-bit machine word."""
        return self.intermediate_bits <= 64


INT9 = Width("int9", 9, np.uint32, 64)
INT16 = Width("int16", 16, np.uint64, 128)

WIDTHS = {w.name: w for w in (INT9, INT16)}


def get_width(name) -> Width:
    if isinstance(name, Width):
        return name
    try:
        return WIDTHS[name]
    except KeyError:
        raise ValueError(f"Unknown width {name!r}. Use one of {sorted(WIDTHS)}.") from None

# ==========================================
# 2. Contract Checks
# ==========================================

def _check_window(name, buf, offset, max_index):
    if offset < 0 or max_index < offset or max_index >= len(buf):
        raise IndexError(
            f"{name} window [{offset}, {max_index}] is empty or outside buffer of length {len(buf)}"
        )


def check_contract(result, result_length, shift, lhs, lhs_offset, lhs_max, rhs, rhs_offset, rhs_max):
    """
    Raise IndexError if any write of a multiply_core call would fall outside
    [0, result_length) or outside the result buffer.
    """
    _check_window("lhs", lhs, lhs_offset, lhs_max)
    _check_window("rhs", rhs, rhs_offset, rhs_max)
    if shift < 0:
        raise IndexError(f"shift must be non-negative, got {shift}")
    if result_length > len(result):
        raise IndexError(f"result_length {result_length} exceeds result buffer of length {len(result)}")

    lhs_len = lhs_max - lhs_offset + 1
    rhs_len = rhs_max - rhs_offset + 1
    lowest = result_length - 1 - shift
    highest = lowest - (rhs_len - 1) - lhs_len
    if highest < 0:
        raise IndexError(
            f"{lhs_len}x{rhs_len} product at shift {shift} writes [{highest}, {lowest}], "
            f"outside accumulator [0, {result_length})"
        )

# ==========================================
# 3. Multiply-Accumulate Kernel
# ==========================================

def multiply_core(result, result_length, shift,
                  lhs, lhs_offset, lhs_max,
                  rhs, rhs_offset, rhs_max,
                  width: Width):
    """
    Schoolbook multiply-accumulate: result[..] += lhs[lhs_offset:lhs_max+1] * rhs[rhs_offset:rhs_max+1].

    All runs are most-significant digit first. The least-significant product digit
    lands at result[result_length - 1 - shift]. Mutates result in place and only in
    the cells the product touches. lhs and rhs are never written.

    The widened intermediate is a Python int, so both 64-bit (INT9) and 128-bit
    (INT16) products are exact.
    """
    if __debug__:
        check_contract(result, result_length, shift, lhs, lhs_offset, lhs_max, rhs, rhs_offset, rhs_max)

    base = width.base
    row_shift = shift + 1
    for i in range(rhs_max, rhs_offset - 1, -1):
        carry = 0
        rhs_value = int(rhs[i])
        k = result_length - row_shift

        for j in range(lhs_max, lhs_offset - 1, -1):
            product = carry + int(lhs[j]) * rhs_value
            carry, digit = divmod(product, base)
            total = int(result[k]) + digit
            if total >= base:
                total -= base
                carry += 1
            result[k] = total
            k -= 1

        # the cell above the row may already hold digits from an earlier call
        result[k] = int(result[k]) + carry
        row_shift += 1


multiply_core_9 = functools.partial(multiply_core, width=INT9)
multiply_core_16 = functools.partial(multiply_core, width=INT16)

# ==========================================
# 4. Digit Run Windows
# ==========================================

class DigitRun:
    """
    A window [offset, offset + length) into a digit buffer, most-significant first.
    The buffer is shared, not copied.
    """

    def __init__(self, buffer, offset=0, length=None):
        self.buffer = buffer
        self.offset = offset
        self.length = len(buffer) - offset if length is None else length
        if offset < 0 or self.length <= 0 or offset + self.length > len(buffer):
            raise IndexError(
                f"Window [{offset}, {offset + self.length}) is empty or outside buffer of length {len(buffer)}"
            )

    @property
    def max_index(self):
        return self.offset + self.length - 1

    def __len__(self):
        return self.length

    def __repr__(self):
        return f"DigitRun(offset={self.offset}, length={self.length})"

    def digits(self):
        return self.buffer[self.offset:self.offset + self.length]

    def value(self, width: Width) -> int:
        out = 0
        for d in self.digits():
            out = out * width.base + int(d)
        return out


def multiply_windows(result: DigitRun, shift, lhs: DigitRun, rhs: DigitRun, width: Width):
    """
    multiply_core over DigitRun windows. The accumulator window must hold the full
    product at the given shift, so the top carry always has a cell to land in.
    """
    if len(lhs) + len(rhs) + shift > len(result):
        raise IndexError(
            f"{len(lhs)}x{len(rhs)} product at shift {shift} does not fit accumulator of {len(result)} digits"
        )
    multiply_core(result.buffer, result.max_index + 1, shift,
                  lhs.buffer, lhs.offset, lhs.max_index,
                  rhs.buffer, rhs.offset, rhs.max_index,
                  width)
