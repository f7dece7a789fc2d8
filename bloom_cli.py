# -*- coding: utf-8 -*-
"""
Bloom: Painting escape-time fractals in perceptual color
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: bloom_cli.py — Command-line front end.

    bloom -W 1200 -H 800 --upper-left=-2.2+1.2i --cheight 2.4 \\
          -p data/palettes/viridis.json -o mandelbrot.png

Exit status:
    0  image written
    1  configuration or input error (bad option value, palette, output path)
    2  command-line syntax error (argparse)
    3  internal error
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from __about__ import metadata_summary
from bloom_fractal import DEFAULT_MAX_ITER, ComplexBoundingBox
from bloom_palette import BloomInputError, PolarLuvPalette
from bloom_render import draw_fractal

__all__ = [
    "RenderSettings",
    "parse_complex",
    "build_parser",
    "settings_from_args",
    "run",
    "main",
]

PROG = "bloom"

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# 1.  Settings
# ---------------------------------------------------------------------------
@dataclass(slots=True, frozen=True)
class RenderSettings:
    """Validated inputs of one render."""
    width:          int
    height:         int
    upper_left:     complex
    complex_height: float
    palette_path:   Path
    out_file:       Path
    reverse:        bool = False
    aspect_ratio:   Optional[float] = None
    max_iter:       int = DEFAULT_MAX_ITER
    threads:        Optional[int] = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise BloomInputError(
                f"image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.max_iter < 1:
            raise BloomInputError(f"--max-iter must be at least 1, got {self.max_iter}")
        if not self.complex_height > 0.0:
            raise BloomInputError(f"--cheight must be positive, got {self.complex_height}")
        if self.aspect_ratio is not None and not self.aspect_ratio > 0.0:
            raise BloomInputError(f"--aspect-ratio must be positive, got {self.aspect_ratio}")
        if self.threads is not None and self.threads < 1:
            raise BloomInputError(f"--threads must be at least 1, got {self.threads}")

    @property
    def effective_aspect_ratio(self) -> float:
        if self.aspect_ratio is None:
            return self.width / self.height
        return self.aspect_ratio

    def bounding_box(self) -> ComplexBoundingBox:
        return ComplexBoundingBox.from_height(
            self.upper_left, self.complex_height, self.effective_aspect_ratio
        )


# ---------------------------------------------------------------------------
# 2.  Argument parsing
# ---------------------------------------------------------------------------
def parse_complex(text: str) -> complex:
    """
    Parse '-2+1.5i', '-2+1.5j', '0.5' or '1.5i' into a complex number.

    Raises:
        argparse.ArgumentTypeError: *text* is not a complex number.
    """
    s = text.strip().lower().replace(" ", "")
    if s.endswith("i"):
        s = s[:-1] + "j"
    try:
        return complex(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid complex number: {text!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Render the Mandelbrot set with a polar Luv (HCL) palette.",
    )
    parser.add_argument('-W', '--width', type=int, required=True,
                        help='image width in pixels')
    parser.add_argument('-H', '--height', type=int, required=True,
                        help='image height in pixels')
    parser.add_argument('--upper-left', type=parse_complex, required=True,
                        dest='upper_left', metavar='Z',
                        help='upper-left corner in the complex plane, e.g. '
                             '--upper-left=-2+1.5i')
    parser.add_argument('--cheight', type=float, required=True,
                        help='height of the view in the complex plane')
    parser.add_argument('-p', '--palette', type=Path, required=True,
                        help='palette JSON file')
    parser.add_argument('-r', '--reverse', action='store_true',
                        help='run the palette from its other end')
    parser.add_argument('-a', '--aspect-ratio', type=float, default=None,
                        dest='aspect_ratio',
                        help='width/height of the view in the complex plane '
                             '(default: image width/height)')
    parser.add_argument('-N', '--max-iter', type=int, default=DEFAULT_MAX_ITER,
                        dest='max_iter',
                        help=f'iteration cap (default: {DEFAULT_MAX_ITER})')
    parser.add_argument('-o', '--out-file', type=Path, default=None,
                        dest='out_file',
                        help='output PNG (default: ./<unix time>.png)')
    parser.add_argument('-t', '--threads', type=int, default=None,
                        help='number of render threads (default: all)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='log progress to stderr')
    parser.add_argument('--version', action='version',
                        version="{title} {version} ({license})".format(**metadata_summary()))
    return parser


def settings_from_args(args: argparse.Namespace) -> RenderSettings:
    out_file = args.out_file
    if out_file is None:
        out_file = Path(f"./{int(time.time())}.png")
    return RenderSettings(
        width=args.width,
        height=args.height,
        upper_left=args.upper_left,
        complex_height=args.cheight,
        palette_path=args.palette,
        out_file=out_file,
        reverse=args.reverse,
        aspect_ratio=args.aspect_ratio,
        max_iter=args.max_iter,
        threads=args.threads,
    )


# ---------------------------------------------------------------------------
# 3.  Entry points
# ---------------------------------------------------------------------------
def run(settings: RenderSettings) -> Path:
    """Load the palette, render, write the PNG; returns the output path."""
    palette = PolarLuvPalette.from_json(settings.palette_path)
    logger.info("Loaded palette %s", settings.palette_path)

    image = draw_fractal(
        settings.bounding_box(),
        (settings.width, settings.height),
        settings.max_iter,
        palette,
        reverse=settings.reverse,
        n_threads=settings.threads,
    )
    try:
        path = image.save_png(settings.out_file)
    except OSError as exc:
        raise BloomInputError(
            f"cannot write {settings.out_file}: {exc.strerror or exc}"
        ) from exc
    logger.info("Wrote %s", path)
    return path


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        run(settings_from_args(args))
    except BloomInputError as exc:
        print(f"{PROG}: error: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:
        logger.debug("Unhandled exception", exc_info=True)
        print(f"{PROG}: internal error: {exc}", file=sys.stderr)
        return 3
    return 0


if __name__ == "__main__":
    sys.exit(main())
