# -*- coding: utf-8 -*-
"""
Bloom: Painting escape-time fractals in perceptual color
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: bloom_render.py — Parallel escape-time renderer.

Every pixel is independent: it reads the shared palette and geometry and
writes only its own cell.  Rows are distributed over Numba ``prange``
workers; the per-pixel arithmetic contains no reductions, so the output is
bit-identical for any worker count.

Per pixel:
    (px, py) -> c -> escape count n
        member of the set   -> black
        escaped at n        -> i = n / max_iter (1 - i when reversed)
                               -> palette trajectory -> PolarLuv
                               -> color engine -> (r, g, b)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import numba
import numpy as np
from numba import njit, prange
from PIL import Image

from bloom_colorengine import polar_luv_to_bytes
from bloom_fractal import ComplexBoundingBox, escape_count, map_pixel
from bloom_palette import PolarLuvPalette, trajectory

__all__ = [
    "FractalImage",
    "draw_fractal",
    "write_png",
]

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Core kernel
# ═══════════════════════════════════════════════════════════════════════════════

@njit(parallel=True, cache=True, error_model="numpy")
def _render_kernel(ul_re, ul_im, dx, dy, width, height, max_iter, pal, reverse):
    """
    Fills a (height, width, 3) uint8 buffer.

    Args:
        ul_re, ul_im (float64): Upper-left corner of the bounding box.
        dx, dy (float64): Extents of the box in the complex plane.
        width, height (int64): Image size in pixels.
        max_iter (int64): Iteration cap (>= 1).
        pal (float64[:]): ``PolarLuvPalette.kernel_params()``.
        reverse (bool): Run the palette from its other end.
    """
    out = np.zeros((height, width, 3), dtype=np.uint8)
    for py in prange(height):
        for px in range(width):
            c_re, c_im = map_pixel(ul_re, ul_im, dx, dy, px, py, width, height)
            n = escape_count(c_re, c_im, max_iter)
            if n < 0:
                continue

            i = n / max_iter
            if reverse:
                i = 1.0 - i

            h, C, L = trajectory(i, pal[0], pal[1], pal[2], pal[3], pal[4],
                                 pal[5], pal[6], pal[7], pal[8], pal[9])
            r, g, b = polar_luv_to_bytes(h, C, L)
            out[py, px, 0] = r
            out[py, px, 1] = g
            out[py, px, 2] = b
    return out


# ═══════════════════════════════════════════════════════════════════════════════
# Image container
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(slots=True, frozen=True)
class FractalImage:
    """Row-major RGB8 pixel buffer, ``pixels[y, x] = (r, g, b)``."""
    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 3 or self.pixels.dtype != np.uint8:
            raise ValueError(
                f"Expected a (height, width, 3) uint8 buffer, got "
                f"{self.pixels.shape} {self.pixels.dtype}"
            )

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def dimensions(self) -> Tuple[int, int]:
        return self.width, self.height

    def get_pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        r, g, b = self.pixels[y, x]
        return int(r), int(g), int(b)

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels)

    def save_png(self, path: Union[str, Path]) -> Path:
        return write_png(self, path)


def write_png(image: FractalImage, path: Union[str, Path]) -> Path:
    """Encodes *image* as an 8-bit RGB PNG.  OSError propagates to the caller."""
    path = Path(path)
    image.to_pil().save(path, format="PNG")
    return path


# ═══════════════════════════════════════════════════════════════════════════════
# Public entry point
# ═══════════════════════════════════════════════════════════════════════════════

def _clamp_threads(n_threads: int) -> int:
    return max(1, min(int(n_threads), numba.config.NUMBA_NUM_THREADS))


def draw_fractal(bounding_box: ComplexBoundingBox,
                 image_dims: Tuple[int, int],
                 max_iter: int,
                 palette: PolarLuvPalette,
                 reverse: bool = False,
                 n_threads: Optional[int] = None) -> FractalImage:
    """
    Renders the Mandelbrot set over *bounding_box*.

    Args:
        bounding_box: Region of the complex plane to draw.
        image_dims: ``(width, height)`` in pixels, both positive.
        max_iter: Iteration cap, at least 1.
        palette: Palette for escaped points; members are drawn black.
        reverse: Feed ``1 - i`` to the palette instead of ``i``.
        n_threads: Numba worker count for this call; defaults to the current
            Numba setting.  Clamped to ``[1, NUMBA_NUM_THREADS]``.

    Returns:
        FractalImage with ``height`` rows of ``width`` pixels.
    """
    width, height = (int(d) for d in image_dims)
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if int(max_iter) < 1:
        raise ValueError(f"max_iter must be at least 1, got {max_iter}")

    previous = numba.get_num_threads()
    workers = previous if n_threads is None else _clamp_threads(n_threads)

    logger.info("Rendering %dx%d, max_iter=%d, %d worker(s)",
                width, height, max_iter, workers)
    t0 = time.perf_counter()

    numba.set_num_threads(workers)
    try:
        pixels = _render_kernel(
            bounding_box.upper_left.real, bounding_box.upper_left.imag,
            bounding_box.dims[0], bounding_box.dims[1],
            width, height, int(max_iter),
            palette.kernel_params(), bool(reverse),
        )
    finally:
        numba.set_num_threads(previous)

    logger.info("Render finished in %.3f s", time.perf_counter() - t0)
    return FractalImage(pixels)
