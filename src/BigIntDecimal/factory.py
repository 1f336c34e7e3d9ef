import numpy as np

from .kernels import Width


def zeros(length: int, width: Width) -> np.ndarray:
    """Zero-initialized accumulator of `length` digits."""
    if length < 1:
        raise ValueError(f"length must be positive, got {length}")
    return np.zeros((length,), dtype=width.dtype)


def _count_digits(value: int, base: int) -> int:
    n = 1
    while value >= base:
        value //= base
        n += 1
    return n


def digits(data, width: Width, length=None) -> np.ndarray:
    """
    Factory function to create digit runs from python integers.
    Args:
        data: A single non-negative int, or a list of them.
        width: Digit width (INT9 / INT16).
        length: Digits per run. If None, the minimum that fits (the longest for a list).
    Returns:
        A run of shape (length,) or a batch of shape (len(data), length),
        most-significant digit first.
    """
    base = width.base

    def int_to_digits(x, n):
        x = int(x)
        if x < 0:
            raise ValueError(f"Digit runs are unsigned, got {x}")
        out = [0] * n
        for i in range(n - 1, -1, -1):
            x, out[i] = divmod(x, base)
        if x:
            raise ValueError(f"Value does not fit in {n} base-{base} digits")
        return out

    if isinstance(data, (int, np.integer)):
        n = length if length is not None else _count_digits(int(data), base)
        return np.array(int_to_digits(data, n), dtype=width.dtype)

    values = [int(x) for x in data]
    if not values:
        raise ValueError("Cannot build a batch from an empty list")
    if length is None:
        length = max(_count_digits(v, base) if v >= 0 else 1 for v in values)
    converted = [int_to_digits(v, length) for v in values]
    return np.array(converted, dtype=width.dtype).reshape(len(values), length)


def to_int(run, width: Width, offset=0, max_index=None) -> int:
    """
    Value of the window run[offset:max_index+1].
    Digits >= BASE (an accumulator before its normalization pass) are weighted as-is.
    """
    if max_index is None:
        max_index = len(run) - 1
    base = width.base
    x = 0
    for i in range(offset, max_index + 1):
        x = x * base + int(run[i])
    return x


def from_string(text: str, width: Width) -> np.ndarray:
    """Parse a run of decimal characters into a digit run."""
    text = text.strip()
    if not text or not text.isascii() or not text.isdigit():
        raise ValueError(f"Not an unsigned decimal integer: {text!r}")

    size = width.decimals
    head = len(text) % size
    chunks = [text[:head]] if head else []
    chunks += [text[i:i + size] for i in range(head, len(text), size)]
    return np.array([int(c) for c in chunks], dtype=width.dtype)


def to_string(run, width: Width) -> str:
    size = width.decimals
    parts = [str(int(d)).zfill(size) for d in run]
    return "".join(parts).lstrip("0") or "0"
