import argparse
import random
import time
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from BigIntDecimal.config import load_params
from BigIntDecimal.factory import digits, to_int, zeros
from BigIntDecimal.jax_kernels import multiply_core_jax
from BigIntDecimal.kernels import get_width
from BigIntDecimal.multiply import multiply_chunked, multiply_karatsuba, multiply_simple


def random_operand(rng, n, width):
    return digits(rng.randrange(width.base ** (n - 1), width.base ** n), width, n)


def best_of(fn, repeats):
    best = float("inf")
    out = None
    for _ in range(repeats):
        t0 = time.perf_counter()
        out = fn()
        best = min(best, time.perf_counter() - t0)
    return best, out


def run(params, check=False):
    width = get_width(params["width"])
    rng = random.Random(params["seed"])
    repeats = int(params["repeats"])
    threshold = int(params["karatsuba_threshold"])
    chunk = int(params["chunk"])

    def jax_full(a, b):
        acc = multiply_core_jax(zeros(len(a) + len(b), width), a, b, width=width)
        return np.asarray(acc.block_until_ready())

    methods = {
        "simple": lambda a, b: multiply_simple(a, b, width),
        "chunked": lambda a, b: multiply_chunked(a, b, width, chunk=chunk),
        "karatsuba": lambda a, b: multiply_karatsuba(a, b, width, threshold=threshold),
        "jax": jax_full,
    }
    timings = {name: [] for name in methods}

    print(f"{'DIGITS':<8} | " + " | ".join(f"{name:<12}" for name in methods) + " | STATUS")
    print("-" * (11 + 15 * len(methods) + 8))

    for n in params["sizes"]:
        n = int(n)
        a = random_operand(rng, n, width)
        b = random_operand(rng, n, width)
        expected = to_int(a, width) * to_int(b, width)

        row = []
        ok = True
        for name, fn in methods.items():
            # jit compile outside the timed region
            if name == "jax":
                fn(a, b)
            seconds, out = best_of(lambda: fn(a, b), repeats)
            timings[name].append(seconds)
            row.append(f"{seconds * 1e3:>9.3f} ms")
            if check and to_int(out, width) != expected:
                ok = False
                print(f"[Error] {name} mismatch at {n} digits")

        status = "PASS" if ok else "FAIL"
        print(f"{n:<8} | " + " | ".join(f"{cell:<12}" for cell in row) + f" | {status}")

    return timings


def plot_timings(sizes, timings, width_name, filename):
    fig, ax = plt.subplots(figsize=(8, 5))
    for name, values in timings.items():
        ax.loglog(sizes, values, marker="o", label=name)
    ax.set_xlabel("Digits per operand")
    ax.set_ylabel("Seconds (best of repeats)")
    ax.set_title(f"Multiply-accumulate timings ({width_name})")
    ax.grid(True, linestyle="--", linewidth=0.5, alpha=0.7)
    ax.legend()
    fig.tight_layout()

    output_path = Path(filename).resolve()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Time the multiplication drivers built on the multiply-accumulate kernel.",
    )
    parser.add_argument("parfile", nargs="?", help="TOML parfile (defaults are used when omitted)")
    parser.add_argument("--plot", dest="plot", help="Override the plot output path")
    parser.add_argument("--check", action="store_true", help="Verify every product against Python int")
    args = parser.parse_args()

    params = load_params(args.parfile)
    if args.plot:
        params["plot"] = args.plot

    print(f"[Info] width={params['width']} sizes={params['sizes']} repeats={params['repeats']}")
    timings = run(params, check=args.check)

    if params["plot"]:
        path = plot_timings([int(s) for s in params["sizes"]], timings, params["width"], params["plot"])
        print(f"[Info] Plot written to {path}")


if __name__ == "__main__":
    main()
