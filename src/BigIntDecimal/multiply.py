import numpy as np

from .factory import zeros
from .kernels import DigitRun, Width, multiply_windows

KARATSUBA_THRESHOLD = 40


class MultiplicationCancelled(Exception):
    """Raised between kernel calls when a chunked multiplication is asked to stop."""

# ==========================================
# 1. Run Helpers
# ==========================================

def _as_run(x, width: Width) -> np.ndarray:
    run = np.asarray(x)
    if run.ndim != 1 or run.size == 0:
        raise ValueError(f"Expected a non-empty 1-D digit run, got shape {run.shape}")
    if run.dtype.kind not in "ui":
        raise TypeError(f"Digit runs must be integer arrays, got {run.dtype}")
    # range checks run before the cast, which would wrap out-of-range digits
    if run.dtype.kind == "i" and (run < 0).any():
        raise ValueError("Digit runs are unsigned, got a negative digit")
    if (run >= width.base).any():
        raise ValueError(f"Digits must be below BASE {width.base}")
    if run.dtype != width.dtype:
        run = run.astype(width.dtype)
    return run


def canonicalize(run: np.ndarray) -> np.ndarray:
    """View of `run` without leading zero digits (at least one digit is kept)."""
    nz = np.flatnonzero(run)
    if nz.size == 0:
        return run[-1:]
    return run[nz[0]:]


def is_zero(run) -> bool:
    return not np.any(run)


def compare(lhs, rhs) -> int:
    """-1, 0 or 1 as the value of lhs is below, equal to or above rhs."""
    a, b = canonicalize(np.asarray(lhs)), canonicalize(np.asarray(rhs))
    if len(a) != len(b):
        return -1 if len(a) < len(b) else 1
    diff = np.flatnonzero(a != b)
    if diff.size == 0:
        return 0
    i = diff[0]
    return -1 if a[i] < b[i] else 1


def normalize(result, width: Width):
    """
    Carry pass over a whole accumulator, least-significant digit first.
    Afterwards every digit is in [0, BASE).
    """
    base = width.base
    carry = 0
    for k in range(len(result) - 1, -1, -1):
        carry, result[k] = divmod(int(result[k]) + carry, base)
    if carry:
        raise OverflowError(f"Carry {carry} does not fit in {len(result)} digits")
    return result


def add_shifted(result, term, shift: int, width: Width):
    """result += term * BASE**shift, in place. term's last digit lands at result[-1 - shift]."""
    base = width.base
    k = len(result) - 1 - shift
    if shift < 0 or k - (len(term) - 1) < 0:
        raise IndexError(f"{len(term)}-digit term at shift {shift} does not fit {len(result)} digits")

    carry = 0
    for j in range(len(term) - 1, -1, -1):
        carry, result[k] = divmod(int(result[k]) + int(term[j]) + carry, base)
        k -= 1
    while carry:
        if k < 0:
            raise OverflowError(f"Carry out of {len(result)}-digit accumulator")
        carry, result[k] = divmod(int(result[k]) + carry, base)
        k -= 1
    return result


def subtract_in_place(minuend, subtrahend, width: Width):
    """minuend -= subtrahend, in place. Requires minuend >= subtrahend."""
    if compare(minuend, subtrahend) < 0:
        raise ValueError("Subtraction would go negative: digit runs are unsigned")
    base = width.base
    subtrahend = canonicalize(np.asarray(subtrahend))
    k = len(minuend) - 1
    borrow = 0
    for j in range(len(subtrahend) - 1, -1, -1):
        diff = int(minuend[k]) - int(subtrahend[j]) - borrow
        borrow = 1 if diff < 0 else 0
        minuend[k] = diff + base if borrow else diff
        k -= 1
    while borrow:
        diff = int(minuend[k]) - 1
        borrow = 1 if diff < 0 else 0
        minuend[k] = diff + base if borrow else diff
        k -= 1
    return minuend


def add(lhs, rhs, width: Width) -> np.ndarray:
    lhs, rhs = _as_run(lhs, width), _as_run(rhs, width)
    result = zeros(max(len(lhs), len(rhs)) + 1, width)
    add_shifted(result, lhs, 0, width)
    add_shifted(result, rhs, 0, width)
    return canonicalize(result)

# ==========================================
# 2. Multiplication Drivers
# ==========================================

def multiply_simple(lhs, rhs, width: Width) -> np.ndarray:
    """Long multiplication as one kernel call into a fresh accumulator."""
    lhs = canonicalize(_as_run(lhs, width))
    rhs = canonicalize(_as_run(rhs, width))
    if is_zero(lhs) or is_zero(rhs):
        return zeros(1, width)
    # the inner loop runs over lhs, keep it the longer run
    if len(lhs) < len(rhs):
        lhs, rhs = rhs, lhs

    result = zeros(len(lhs) + len(rhs), width)
    multiply_windows(DigitRun(result), 0, DigitRun(lhs), DigitRun(rhs), width)
    return canonicalize(result)


def multiply_chunked(lhs, rhs, width: Width, chunk: int = 16, should_stop=None) -> np.ndarray:
    """
    Long multiplication split into one kernel call per `chunk` digits of rhs, all
    accumulating into the same buffer at increasing shifts.

    should_stop is polled before every kernel call; a true result raises
    MultiplicationCancelled and the partial accumulator is discarded.
    """
    if chunk < 1:
        raise ValueError(f"Illegal chunk size: {chunk}")
    lhs = canonicalize(_as_run(lhs, width))
    rhs = canonicalize(_as_run(rhs, width))

    result = zeros(len(lhs) + len(rhs), width)
    n = len(rhs)
    for end in range(n, 0, -chunk):
        if should_stop is not None and should_stop():
            raise MultiplicationCancelled(f"Stopped with {end} of {n} rhs digits left")
        start = max(0, end - chunk)
        multiply_windows(DigitRun(result), n - end, DigitRun(lhs), DigitRun(rhs, start, end - start), width)

    normalize(result, width)
    return canonicalize(result)


def _split(run, half):
    if len(run) <= half:
        return np.zeros((1,), dtype=run.dtype), run
    return canonicalize(run[:-half]), canonicalize(run[-half:])


def _karatsuba(lhs, rhs, width, threshold):
    if len(lhs) <= threshold or len(rhs) <= threshold:
        return multiply_simple(lhs, rhs, width)

    n = max(len(lhs), len(rhs))
    half = n >> 1
    a, b = _split(lhs, half)
    c, d = _split(rhs, half)
    ac = _karatsuba(a, c, width, threshold)
    bd = _karatsuba(b, d, width, threshold)
    middle = _karatsuba(add(a, b, width), add(c, d, width), width, threshold)

    # (a + b)(c + d) - ac - bd == ad + bc
    subtract_in_place(middle, ac, width)
    subtract_in_place(middle, bd, width)

    result = zeros(len(lhs) + len(rhs), width)
    add_shifted(result, ac, half << 1, width)
    add_shifted(result, canonicalize(middle), half, width)
    add_shifted(result, bd, 0, width)
    return canonicalize(result)


def multiply_karatsuba(lhs, rhs, width: Width, threshold: int = KARATSUBA_THRESHOLD) -> np.ndarray:
    if threshold < 1:
        raise ValueError(f"Illegal threshold: {threshold}")
    lhs = canonicalize(_as_run(lhs, width))
    rhs = canonicalize(_as_run(rhs, width))
    return _karatsuba(lhs, rhs, width, threshold)


def multiply(lhs, rhs, width: Width) -> np.ndarray:
    return multiply_karatsuba(lhs, rhs, width)
