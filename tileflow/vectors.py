"""
vectors.py — Velocity Vector Widths
====================================
Velocity lives on lattice points as small real-valued vectors.

  - Square lattices store 2 components per point: (x, y) flow.
  - Hex lattices store 3 components per point: flow along the
    top-left, top and top-right edges meeting at that point.

The width is a closed set, picked once when a grid is built. Everything
downstream stores velocity as a (cols+1, rows+1, width) array, so no
per-write type checks are needed beyond the width itself.
"""

from enum import IntEnum

import numpy as np


class ConfigurationError(ValueError):
    """Bad setup (grid size, vector width, parameters). Raised once, at construction."""


class VectorWidthError(ValueError):
    """A point write carried a vector of the wrong width for the active topology."""


class VectorWidth(IntEnum):
    PLANAR = 2
    HEX = 3


def check_width(width: int) -> VectorWidth:
    """Return the VectorWidth for `width`, or raise ConfigurationError."""
    try:
        return VectorWidth(int(width))
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Unsupported vector width: {width!r}. Use 2 (square) or 3 (hex)."
        ) from None


def zero_vector(width: int) -> np.ndarray:
    return np.zeros(int(width), dtype=np.float64)


def as_vector(value, width: int) -> np.ndarray:
    """
    Coerce `value` to a float vector of exactly `width` components.

    A 2-vector is never padded to 3, nor a 3-vector cut to 2:
    a mismatch raises VectorWidthError.
    """
    try:
        vec = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError):
        raise VectorWidthError(f"Not a numeric vector: {value!r}") from None

    if vec.shape != (int(width),):
        raise VectorWidthError(
            f"Expected a {int(width)}-component vector, got shape {vec.shape}"
        )
    if not np.all(np.isfinite(vec)):
        raise VectorWidthError(f"Vector has non-finite components: {vec}")
    return vec
