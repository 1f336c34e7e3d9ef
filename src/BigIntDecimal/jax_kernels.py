import functools

import jax
import jax.numpy as jnp
from jax import lax

from .kernels import Width, check_contract

jax.config.update("jax_enable_x64", True)

# ==========================================
# 1. Widened Product Helpers
# ==========================================

def _mul_add_divmod(a, b, carry, width: Width):
    """
    (a * b + carry) divmod BASE for uint64 digits.

    INT9 products fit a uint64 directly. INT16 needs 108 bits, so the product is
    assembled from half-digit partials split at 10**8, each of which fits a uint64.
    """
    base = jnp.uint64(width.base)
    if width.native:
        p = a * b + carry
        return p // base, p % base

    h = jnp.uint64(width.half_base)
    a_hi, a_lo = a // h, a % h
    b_hi, b_lo = b // h, b % h

    mid = a_hi * b_lo + a_lo * b_hi          # < 2 * BASE
    low = a_lo * b_lo + (mid % h) * h + carry  # < 3 * BASE
    high = a_hi * b_hi + mid // h + low // base
    return high, low % base

# ==========================================
# 2. Multiply-Accumulate Kernel (functional)
# ==========================================

@functools.partial(
    jax.jit,
    static_argnames=("result_length", "shift", "lhs_offset", "lhs_max", "rhs_offset", "rhs_max", "width"),
)
def _multiply_core_jit(result, lhs, rhs, *, result_length, shift,
                       lhs_offset, lhs_max, rhs_offset, rhs_max, width):
    base = jnp.uint64(width.base)
    lhs_len = lhs_max - lhs_offset + 1
    rhs_len = rhs_max - rhs_offset + 1
    dtype = result.dtype

    def row(n, acc):
        rhs_value = rhs[rhs_max - n].astype(jnp.uint64)
        k0 = result_length - 1 - shift - n

        def step(m, state):
            acc, carry = state
            k = k0 - m
            hi, lo = _mul_add_divmod(lhs[lhs_max - m].astype(jnp.uint64), rhs_value, carry, width)
            total = acc[k].astype(jnp.uint64) + lo
            over = total >= base
            total = jnp.where(over, total - base, total)
            return acc.at[k].set(total.astype(dtype)), hi + over.astype(jnp.uint64)

        acc, carry = lax.fori_loop(0, lhs_len, step, (acc, jnp.uint64(0)))
        k = k0 - lhs_len
        return acc.at[k].set((acc[k].astype(jnp.uint64) + carry).astype(dtype))

    return lax.fori_loop(0, rhs_len, row, result)


def multiply_core_jax(result, lhs, rhs, *, result_length=None, shift=0,
                      lhs_offset=0, lhs_max=None, rhs_offset=0, rhs_max=None,
                      width: Width):
    """
    JAX version of kernels.multiply_core. Returns the updated accumulator instead
    of mutating it; every cell outside the product footprint is copied through.

    Window bounds default to the full operand. They are static, so the bounds
    check runs once per trace and raises IndexError.
    """
    result = jnp.asarray(result, dtype=width.dtype)
    lhs = jnp.asarray(lhs, dtype=width.dtype)
    rhs = jnp.asarray(rhs, dtype=width.dtype)
    if result_length is None:
        result_length = result.shape[-1]
    if lhs_max is None:
        lhs_max = lhs.shape[-1] - 1
    if rhs_max is None:
        rhs_max = rhs.shape[-1] - 1

    check_contract(result, result_length, shift, lhs, lhs_offset, lhs_max, rhs, rhs_offset, rhs_max)

    return _multiply_core_jit(
        result, lhs, rhs,
        result_length=result_length, shift=shift,
        lhs_offset=lhs_offset, lhs_max=lhs_max,
        rhs_offset=rhs_offset, rhs_max=rhs_max,
        width=width,
    )


def multiply_batch(results, lhs, rhs, *, shift=0, width: Width):
    """
    Full-window multiply-accumulate over a leading batch axis.
    results: [N, R], lhs: [N, A], rhs: [N, B] with R >= A + B + shift.
    """
    results = jnp.asarray(results, dtype=width.dtype)
    lhs = jnp.asarray(lhs, dtype=width.dtype)
    rhs = jnp.asarray(rhs, dtype=width.dtype)
    if not (results.ndim == lhs.ndim == rhs.ndim == 2):
        raise ValueError(f"Batched inputs must be 2-D. Got {results.shape}, {lhs.shape}, {rhs.shape}.")
    if not (results.shape[0] == lhs.shape[0] == rhs.shape[0]):
        raise ValueError(f"Batch sizes mismatch: {results.shape[0]}, {lhs.shape[0]}, {rhs.shape[0]}")

    result_length = results.shape[-1]
    lhs_max = lhs.shape[-1] - 1
    rhs_max = rhs.shape[-1] - 1
    check_contract(results[0], result_length, shift, lhs[0], 0, lhs_max, rhs[0], 0, rhs_max)

    kernel = functools.partial(
        _multiply_core_jit,
        result_length=result_length, shift=shift,
        lhs_offset=0, lhs_max=lhs_max,
        rhs_offset=0, rhs_max=rhs_max,
        width=width,
    )
    return jax.vmap(kernel)(results, lhs, rhs)
