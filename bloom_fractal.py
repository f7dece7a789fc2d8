# -*- coding: utf-8 -*-
"""
Bloom: Painting escape-time fractals in perceptual color
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: bloom_fractal.py — Mandelbrot escape time and pixel → plane mapping.

Orientation:
    Pixel rows grow downward, the imaginary axis grows upward.  A bounding
    box is anchored at its upper-left corner U with extents (dx, dy):

        re = U.re + px * dx / W
        im = U.im - py * dy / H
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Final, Optional, Tuple

from numba import njit

__all__ = [
    "ESCAPE_RADIUS_SQR",
    "DEFAULT_MAX_ITER",
    "escape_count",
    "iterate_point",
    "map_pixel",
    "ComplexBoundingBox",
]

# |z| > 2 guarantees divergence of z -> z² + c.
ESCAPE_RADIUS_SQR: Final[float] = 4.0
DEFAULT_MAX_ITER: Final[int] = 1000


# ═══════════════════════════════════════════════════════════════════════════════
# Kernels
# ═══════════════════════════════════════════════════════════════════════════════

@njit(cache=True)
def escape_count(c_re: float, c_im: float, max_iter: int) -> int:
    """
    Iteration at which z -> z² + c (z₀ = 0) leaves the radius-2 disc.

    Returns -1 when the orbit stays bounded for ``max_iter`` iterations.
    """
    z_re = 0.0
    z_im = 0.0
    for i in range(max_iter):
        re2 = z_re * z_re
        im2 = z_im * z_im
        if re2 + im2 > ESCAPE_RADIUS_SQR:
            return i
        z_im = 2.0 * z_re * z_im + c_im
        z_re = re2 - im2 + c_re
    return -1


@njit(cache=True, inline='always')
def map_pixel(ul_re: float, ul_im: float, dx: float, dy: float,
              px: int, py: int, width: int, height: int) -> Tuple[float, float]:
    """Pixel (px, py) of a width × height image -> (re, im)."""
    return (
        ul_re + px * dx / width,
        ul_im - py * dy / height,
    )


def iterate_point(c: complex, max_iter: int = DEFAULT_MAX_ITER) -> Optional[int]:
    """
    Escape time of ``c``, or None if ``c`` is (to ``max_iter``) in the set.

    >>> iterate_point(1 + 0j)
    3
    >>> iterate_point(0j) is None
    True
    """
    c = complex(c)
    n = escape_count(c.real, c.imag, int(max_iter))
    return None if n < 0 else int(n)


# ═══════════════════════════════════════════════════════════════════════════════
# ComplexBoundingBox
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(slots=True, frozen=True)
class ComplexBoundingBox:
    """A region of the complex plane given by its upper-left vertex and extents."""
    upper_left: complex
    dims:       Tuple[float, float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "upper_left", complex(self.upper_left))
        width, height = (float(d) for d in self.dims)
        for label, value in (("width", width), ("height", height)):
            if not math.isfinite(value) or value <= 0.0:
                raise ValueError(f"Bounding box {label} must be positive, got {value}")
        object.__setattr__(self, "dims", (width, height))

    @classmethod
    def from_height(cls, upper_left: complex, complex_height: float,
                    aspect_ratio: float) -> "ComplexBoundingBox":
        """Box of the given plane height whose width is ``height * aspect_ratio``."""
        return cls(upper_left, (complex_height * aspect_ratio, complex_height))

    @property
    def width(self) -> float:
        return self.dims[0]

    @property
    def height(self) -> float:
        return self.dims[1]

    def map_pixel_to_point(self, pixel: Tuple[int, int],
                           image_dims: Tuple[int, int]) -> complex:
        """
        Complex point under ``pixel`` for an image of ``image_dims``.

        ``image_dims`` must be non-zero; the caller validates it.
        """
        re, im = map_pixel(self.upper_left.real, self.upper_left.imag,
                           self.dims[0], self.dims[1],
                           int(pixel[0]), int(pixel[1]),
                           int(image_dims[0]), int(image_dims[1]))
        return complex(re, im)
