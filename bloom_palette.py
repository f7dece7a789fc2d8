# -*- coding: utf-8 -*-
"""
Bloom: Painting escape-time fractals in perceptual color
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: bloom_palette.py — Sequential HCL palettes and their trajectories.

A palette is defined by two PolarLuv endpoints and two power-law exponents.
A normalized scalar i ∈ [0, 1] is mapped onto the palette as

    h = lin(i,         start.h, end.h)
    C = lin(i**powerC, start.C, end.C)        (or the triangular law below)
    L = lin(i**powerL, start.L, end.L)

where ``lin(t, a, b) = b - (b - a) * t`` runs from ``b`` at t = 0 to ``a``
at t = 1.

Triangular chroma:
──────────────────
With a chroma ceiling ``Cmax`` the chroma curve climbs from end.C to Cmax
and falls back to start.C, splitting the unit interval at

    j = 1 / (1 + |(Cmax - start.C) / (Cmax - end.C)|)

so both legs have the same slope magnitude.  A ceiling that yields j outside
the open interval (0, 1), or NaN, degrades to the linear law.

Palette files are JSON:

    {
      "start": {"h": 300, "C": 40, "L": 15},
      "end":   {"h": 75,  "C": 95, "L": 90},
      "powerC": 1.0,
      "powerL": 1.1,
      "Cmax": null
    }
"""

from __future__ import annotations

import json
import math
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import numpy as np
from numba import njit

from bloom_colorengine import PolarLuv, approx_le

__all__ = [
    "BloomInputError",
    "PaletteError",
    "linear_trajectory",
    "triangular_trajectory",
    "mixing_fraction",
    "trajectory",
    "PolarLuvPalette",
]


class BloomInputError(ValueError):
    """Raised for invalid configuration or input supplied by the user."""


class PaletteError(BloomInputError):
    """Raised when a palette definition cannot be loaded or is invalid."""


# ═══════════════════════════════════════════════════════════════════════════════
# 1.  Trajectory kernels
# ═══════════════════════════════════════════════════════════════════════════════

@njit(cache=True, error_model="numpy")
def linear_trajectory(t: float, a: float, b: float) -> float:
    return b - (b - a) * t


@njit(cache=True, error_model="numpy")
def triangular_trajectory(t: float, j: float, a: float, b: float, c_max: float) -> float:
    """
    Piecewise-linear chroma with its peak ``c_max`` at ``t = j``.

    ``b`` at t = 0, ``c_max`` at t = j, ``a`` at t = 1.  The split uses a
    ULP-tolerant ``<=`` so a ``t`` that lands on ``j`` up to rounding stays on
    the rising leg.
    """
    if approx_le(t, j):
        return linear_trajectory(t / j, c_max, b)
    return linear_trajectory(abs((t - j) / (1.0 - j)), a, c_max)


@njit(cache=True, error_model="numpy")
def mixing_fraction(start_c: float, end_c: float, c_max: float) -> float:
    """Split point of the triangular law; NaN when it is unusable."""
    j = 1.0 / (1.0 + abs((c_max - start_c) / (c_max - end_c)))
    if 0.0 < j < 1.0:
        return j
    return np.nan


@njit(cache=True, error_model="numpy")
def trajectory(i: float,
               h0: float, c0: float, l0: float,
               h1: float, c1: float, l1: float,
               power_c: float, power_l: float,
               c_max: float, j: float) -> Tuple[float, float, float]:
    """
    Maps ``i`` onto the palette, returning (h, C, L).

    ``(h0, c0, l0)`` is the start color, ``(h1, c1, l1)`` the end color.
    ``j`` is the precomputed mixing fraction, NaN selects linear chroma.
    """
    h = linear_trajectory(i, h0, h1)

    t_c = i ** power_c
    if math.isnan(j):
        C = linear_trajectory(t_c, c0, c1)
    else:
        C = triangular_trajectory(t_c, j, c0, c1, c_max)

    L = linear_trajectory(i ** power_l, l0, l1)
    return h, C, L


# ═══════════════════════════════════════════════════════════════════════════════
# 2.  PolarLuvPalette
# ═══════════════════════════════════════════════════════════════════════════════

def _require_number(value: Any, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PaletteError(f"{label} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise PaletteError(f"{label} must be finite, got {value}")
    return value


def _polar_luv_from_mapping(data: Any, label: str) -> PolarLuv:
    if not isinstance(data, Mapping):
        raise PaletteError(f"'{label}' must be an object with keys h, C, L")
    missing = [k for k in ("h", "C", "L") if k not in data]
    if missing:
        raise PaletteError(f"'{label}' is missing {', '.join(missing)}")
    return PolarLuv(
        h=_require_number(data["h"], f"{label}.h"),
        C=_require_number(data["C"], f"{label}.C"),
        L=_require_number(data["L"], f"{label}.L"),
    )


@dataclass(slots=True, frozen=True)
class PolarLuvPalette:
    """
    Sequential palette in polar Luv.

    Immutable and shared read-only by every pixel of a render.
    """
    start:   PolarLuv
    end:     PolarLuv
    power_c: float
    power_l: float
    c_max:   Optional[float] = None
    _params: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for label, color in (("start", self.start), ("end", self.end)):
            if not isinstance(color, PolarLuv):
                object.__setattr__(self, label, PolarLuv(*color))
        for label, color in (("start", self.start), ("end", self.end)):
            for name, value in zip(("h", "C", "L"), color):
                _require_number(value, f"{label}.{name}")
            if color.C < 0.0:
                raise PaletteError(f"{label}.C must be non-negative, got {color.C}")
            if not 0.0 <= color.L <= 100.0:
                raise PaletteError(f"{label}.L must lie in [0, 100], got {color.L}")
        _require_number(self.power_c, "powerC")
        _require_number(self.power_l, "powerL")
        if self.c_max is not None:
            if _require_number(self.c_max, "Cmax") < 0.0:
                raise PaletteError(f"Cmax must be non-negative, got {self.c_max}")
            if self.mixing_fraction is None:
                warnings.warn(
                    f"Cmax={self.c_max} gives no usable chroma peak between "
                    f"start.C={self.start.C} and end.C={self.end.C}; "
                    "falling back to linear chroma.",
                    stacklevel=3,
                )
        object.__setattr__(self, "_params", self._pack_params())

    # -- derived -----------------------------------------------------------
    @property
    def mixing_fraction(self) -> Optional[float]:
        """Split point of the triangular chroma law, None when unconstrained."""
        if self.c_max is None:
            return None
        j = mixing_fraction(float(self.start.C), float(self.end.C), float(self.c_max))
        return None if math.isnan(j) else float(j)

    def kernel_params(self) -> np.ndarray:
        """
        Flat float64 view for Numba kernels:
        ``[h0, C0, L0, h1, C1, L1, powerC, powerL, Cmax, j]``.

        ``Cmax`` and ``j`` are NaN when the palette is unconstrained.
        Returns a copy; the palette keeps its own.
        """
        return self._params.copy()

    def _pack_params(self) -> np.ndarray:
        j = self.mixing_fraction
        return np.array([
            self.start.h, self.start.C, self.start.L,
            self.end.h, self.end.C, self.end.L,
            self.power_c, self.power_l,
            np.nan if j is None else self.c_max,
            np.nan if j is None else j,
        ], dtype=np.float64)

    # -- mapping -----------------------------------------------------------
    def map_scalar_to_color(self, scalar: float, reverse: bool = False) -> PolarLuv:
        """Map a value in the closed interval [0.0, 1.0] to a color."""
        i = 1.0 - scalar if reverse else scalar
        return PolarLuv(*trajectory(float(i), *self._params.tolist()))

    # -- (de)serialisation -------------------------------------------------
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PolarLuvPalette":
        return cls._from_mapping(data, stacklevel=3)

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any], stacklevel: int) -> "PolarLuvPalette":
        # Constructor notices are re-issued against the caller of the public
        # loader, ``stacklevel`` frames above this one.
        if not isinstance(data, Mapping):
            raise PaletteError("Palette must be a JSON object")
        for key in ("start", "end", "powerC", "powerL"):
            if key not in data:
                raise PaletteError(f"Palette is missing required field '{key}'")
        c_max = data.get("Cmax")
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            palette = cls(
                start=_polar_luv_from_mapping(data["start"], "start"),
                end=_polar_luv_from_mapping(data["end"], "end"),
                power_c=_require_number(data["powerC"], "powerC"),
                power_l=_require_number(data["powerL"], "powerL"),
                c_max=None if c_max is None else _require_number(c_max, "Cmax"),
            )
        for notice in caught:
            warnings.warn(notice.message, notice.category, stacklevel=stacklevel)
        return palette

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "PolarLuvPalette":
        """
        Loads a palette file.

        Raises:
            PaletteError: the file is missing, unreadable, not valid JSON,
                or does not describe a valid palette.
        """
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            raise PaletteError(f"Palette file not found: {path}") from None
        except json.JSONDecodeError as exc:
            raise PaletteError(f"{path}: invalid JSON ({exc})") from exc
        except OSError as exc:
            raise PaletteError(f"{path}: {exc.strerror or exc}") from exc

        try:
            return cls._from_mapping(data, stacklevel=3)
        except PaletteError as exc:
            raise PaletteError(f"{path}: {exc}") from None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start._asdict(),
            "end": self.end._asdict(),
            "powerC": self.power_c,
            "powerL": self.power_l,
            "Cmax": self.c_max,
        }
