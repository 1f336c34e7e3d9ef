import tomllib

from .kernels import WIDTHS

DEFAULTS = {
    "width": "int9",
    "sizes": [4, 16, 64, 256],
    "repeats": 3,
    "karatsuba_threshold": 40,
    "chunk": 16,
    "seed": 0,
    "plot": "",
}


def validate_params(params: dict) -> dict:
    for key in ("width", "sizes", "repeats"):
        if key not in params:
            raise ValueError(f"{key} is required")
    if params["width"] not in WIDTHS:
        raise ValueError(f"width must be one of {sorted(WIDTHS)}, got {params['width']!r}")
    sizes = params["sizes"]
    if not sizes or any(int(s) < 1 for s in sizes):
        raise ValueError(f"sizes must be a non-empty list of positive digit counts, got {sizes!r}")
    for key in ("repeats", "karatsuba_threshold", "chunk"):
        if int(params[key]) < 1:
            raise ValueError(f"{key} must be positive, got {params[key]!r}")
    return params


def load_params(parfile=None) -> dict:
    """
    Read benchmark parameters from a TOML parfile, filling gaps from DEFAULTS.
    With no parfile the defaults are returned.
    """
    params = dict(DEFAULTS)
    if parfile is not None:
        with open(parfile, "rb") as f:
            params.update(tomllib.load(f))
    return validate_params(params)
