import numpy as np

from .factory import digits, from_string, to_int, to_string
from .kernels import DigitRun, Width, get_width
from .multiply import add, canonicalize, compare, multiply, subtract_in_place


class DecimalInt:
    """
    Unsigned big integer stored as a canonical digit run (most-significant first).
    Arithmetic goes through the multiply-accumulate kernel drivers.
    """

    def __init__(self, run: np.ndarray, width: Width):
        self.width = get_width(width)
        self.run = canonicalize(np.asarray(run, dtype=self.width.dtype))

    @classmethod
    def of(cls, value: int, width) -> "DecimalInt":
        width = get_width(width)
        return cls(digits(value, width), width)

    @classmethod
    def parse(cls, text: str, width) -> "DecimalInt":
        width = get_width(width)
        return cls(from_string(text, width), width)

    def __repr__(self):
        return f"DecimalInt(digits={len(self.run)}, width={self.width.name})"

    def __str__(self):
        return to_string(self.run, self.width)

    def __int__(self):
        return to_int(self.run, self.width)

    def __len__(self):
        return len(self.run)

    def _check_width(self, other):
        if self.width != other.width:
            raise TypeError(f"Width mismatch: {self.width.name} vs {other.width.name}")

    def __add__(self, other):
        if not isinstance(other, DecimalInt): return NotImplemented
        self._check_width(other)
        return DecimalInt(add(self.run, other.run, self.width), self.width)

    def __sub__(self, other):
        if not isinstance(other, DecimalInt): return NotImplemented
        self._check_width(other)
        return DecimalInt(subtract_in_place(self.run.copy(), other.run, self.width), self.width)

    def __mul__(self, other):
        if not isinstance(other, DecimalInt): return NotImplemented
        self._check_width(other)
        return DecimalInt(multiply(self.run, other.run, self.width), self.width)

    def __eq__(self, other):
        if not isinstance(other, DecimalInt): return NotImplemented
        return self.width == other.width and compare(self.run, other.run) == 0

    __hash__ = None
