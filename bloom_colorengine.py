# -*- coding: utf-8 -*-
"""
Bloom: Painting escape-time fractals in perceptual color
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Polar Luv Color Engine
======================
One-way conversion chain from cylindrical CIELUV (HCL) coordinates to
display-ready 8-bit sRGB:

    PolarLuv (h, C, L)
      -> Luv (L, u*, v*)           polar -> Cartesian
      -> XYZ                       CIE 1976 inverse, D65 white, 2° observer
      -> LinearRGB                 Rec. 709 primaries
      -> SRGB                      IEC 61966-2-1 transfer function
      -> (r, g, b) bytes           clamp + truncate

Out-of-gamut values are carried unclamped through every stage; the final
quantization is the only gamut correction.

The scalar Numba kernels below are the single source of truth for the math.
The ``NamedTuple`` value types give a fluent per-color API on top of them and
``ColorSpaceEngine`` runs them over (N, 3) batches.  All kernels compile with
``fastmath=False`` so results are bit-identical between the scalar path, the
batch path and the parallel renderer.

References:
    - CIE 15:2004 "Colorimetry"
    - IEC 61966-2-1:1999 (sRGB Standard)
    - ITU-R BT.709
"""

import functools
import math
import numpy as np
import numpy.typing as npt
from numba import njit, prange
from typing import Callable, Final, NamedTuple, Tuple, TypeAlias, Any

__all__ = [
    # --- Type Aliases ---
    "ArrayFloat",

    # --- Constants ---
    "D65_L",
    "D65_U_PRIME",
    "D65_V_PRIME",
    "LUV_LINEAR_LIMIT",
    "LUV_LINEAR_SLOPE",
    "SRGB_THRESHOLD",
    "M_XYZ_TO_RGB",

    # --- Comparisons ---
    "approx_eq",
    "approx_le",

    # --- Scalar kernels ---
    "polar_luv_to_luv",
    "luv_to_xyz",
    "xyz_to_rgb",
    "srgb_transfer",
    "rgb_to_srgb",
    "srgb_to_bytes",
    "polar_luv_to_bytes",

    # --- Value types ---
    "PolarLuv",
    "Luv",
    "XYZ",
    "LinearRGB",
    "SRGB",

    # --- Decorators ---
    "handle_shapes",

    # --- Classes ---
    "ColorSpaceEngine",
]

# --- Type Aliases ---
ArrayFloat: TypeAlias = npt.NDArray[np.floating]
Bytes3: TypeAlias = Tuple[int, int, int]

# --- Constants ---

# L*, u', v' of CIE standard illuminant D65 (2° observer).
D65_L: Final[float] = 100.0
D65_U_PRIME: Final[float] = 0.197829
D65_V_PRIME: Final[float] = 0.468332

# Below L* = 8 the CIE lightness curve is linear: Y = (3/29)^3 * L*.
LUV_LINEAR_LIMIT: Final[float] = 8.0
LUV_LINEAR_SLOPE: Final[float] = (3.0 / 29.0) ** 3.0

# sRGB OETF breakpoint (IEC 61966-2-1).
SRGB_THRESHOLD: Final[float] = 0.0031308

# XYZ (D65) -> linear Rec. 709 RGB.
M_XYZ_TO_RGB: Final[ArrayFloat] = np.array([
    [ 3.240479, -1.537150, -0.498535],
    [-0.969256,  1.875992,  0.041556],
    [ 0.055648, -0.204043,  1.057311]
], dtype=np.float64)

# Unpacked for the kernels; Numba freezes module-level floats as constants.
(_M00, _M01, _M02), (_M10, _M11, _M12), (_M20, _M21, _M22) = M_XYZ_TO_RGB.tolist()


# =============================================================================
# 1. TOLERANT COMPARISONS
# =============================================================================

@njit(cache=True)
def approx_eq(a: float, b: float, epsilon: float = 0.0, ulps: int = 1) -> bool:
    """
    Floating point equality within an absolute margin or a ULP distance.

    ``a`` and ``b`` compare equal when ``|a - b| <= epsilon`` or when ``b``
    can be stepped onto ``a`` in at most ``ulps`` representable values.
    NaN never compares equal.
    """
    if a == b:
        return True
    if math.isnan(a) or math.isnan(b):
        return False
    if abs(a - b) <= epsilon:
        return True
    x = b
    for _ in range(ulps):
        x = np.nextafter(x, a)
        if x == a:
            return True
    return False


@njit(cache=True)
def approx_le(a: float, b: float, epsilon: float = 0.0, ulps: int = 1) -> bool:
    """``a < b`` or ``a`` approximately equal to ``b``."""
    return a < b or approx_eq(a, b, epsilon, ulps)


# =============================================================================
# 2. SCALAR KERNELS (Numba, strict IEEE)
# =============================================================================

@njit(cache=True, error_model="numpy")
def polar_luv_to_luv(h: float, C: float, L: float) -> Tuple[float, float, float]:
    """Cylindrical (hue in degrees, chroma, lightness) -> (L, u*, v*)."""
    h_rad = math.radians(h)
    return L, C * math.cos(h_rad), C * math.sin(h_rad)


@njit(cache=True, error_model="numpy")
def luv_to_xyz(L: float, u: float, v: float) -> Tuple[float, float, float]:
    """
    CIELUV -> CIE 1931 XYZ relative to D65.

    Black (L* approximately 0) maps to (0, 0, 0); the general formula divides
    by L*.  Division by a vanishing v' is not guarded and yields inf/NaN.
    """
    if approx_eq(L, 0.0):
        return 0.0, 0.0, 0.0

    u_prime = u / (13.0 * L) + D65_U_PRIME
    v_prime = v / (13.0 * L) + D65_V_PRIME

    if L > LUV_LINEAR_LIMIT:
        Y = ((L + 16.0) / 116.0) ** 3.0
    else:
        Y = LUV_LINEAR_SLOPE * L

    X = Y * (9.0 * u_prime) / (4.0 * v_prime)
    Z = Y * (12.0 - 3.0 * u_prime - 20.0 * v_prime) / (4.0 * v_prime)
    return X, Y, Z


@njit(cache=True, error_model="numpy")
def xyz_to_rgb(X: float, Y: float, Z: float) -> Tuple[float, float, float]:
    """XYZ -> linear Rec. 709 RGB.  No clamping."""
    return (
        _M00 * X + _M01 * Y + _M02 * Z,
        _M10 * X + _M11 * Y + _M12 * Z,
        _M20 * X + _M21 * Y + _M22 * Z,
    )


@njit(cache=True, error_model="numpy")
def srgb_transfer(component: float) -> float:
    """
    Applies the sRGB OETF to one linear component.

    IEC 61966-2-1 defines the slope below the breakpoint as exactly 12.92.
    """
    if component > SRGB_THRESHOLD:
        return 1.055 * component ** (1.0 / 2.4) - 0.055
    return 12.92 * component


@njit(cache=True, error_model="numpy")
def rgb_to_srgb(R: float, G: float, B: float) -> Tuple[float, float, float]:
    return srgb_transfer(R), srgb_transfer(G), srgb_transfer(B)


@njit(cache=True)
def _confine_to_gamut(component: float) -> float:
    # NaN quantizes to 0, the same as a saturating float -> u8 cast
    if math.isnan(component):
        return 0.0
    if component < 0.0:
        return 0.0
    if component > 255.0:
        return 255.0
    return component


@njit(cache=True, error_model="numpy")
def srgb_to_bytes(R: float, G: float, B: float) -> Tuple[int, int, int]:
    """Scale to 0..255, clamp, truncate."""
    return (
        int(_confine_to_gamut(R * 255.0)),
        int(_confine_to_gamut(G * 255.0)),
        int(_confine_to_gamut(B * 255.0)),
    )


@njit(cache=True, error_model="numpy")
def polar_luv_to_bytes(h: float, C: float, L: float) -> Tuple[int, int, int]:
    """Full chain: PolarLuv -> Luv -> XYZ -> RGB -> sRGB -> bytes."""
    L_, u, v = polar_luv_to_luv(h, C, L)
    X, Y, Z = luv_to_xyz(L_, u, v)
    R, G, B = xyz_to_rgb(X, Y, Z)
    r, g, b = rgb_to_srgb(R, G, B)
    return srgb_to_bytes(r, g, b)


# =============================================================================
# 3. VALUE TYPES
# =============================================================================

class PolarLuv(NamedTuple):
    """Cylindrical transformation of CIELUV (HCL / CIELCh(uv))."""
    h: float
    C: float
    L: float

    def as_luv(self) -> "Luv":
        return Luv(*polar_luv_to_luv(float(self.h), float(self.C), float(self.L)))

    def as_bytes(self) -> Bytes3:
        return polar_luv_to_bytes(float(self.h), float(self.C), float(self.L))


class Luv(NamedTuple):
    """CIE 1976 L*, u*, v* (CIELUV)."""
    L: float
    u: float
    v: float

    def as_xyz(self) -> "XYZ":
        return XYZ(*luv_to_xyz(float(self.L), float(self.u), float(self.v)))


class XYZ(NamedTuple):
    """CIE 1931 tristimulus values, D65 white."""
    X: float
    Y: float
    Z: float

    def as_rgb(self) -> "LinearRGB":
        return LinearRGB(*xyz_to_rgb(float(self.X), float(self.Y), float(self.Z)))


class LinearRGB(NamedTuple):
    """Rec. 709 RGB before the transfer function; may leave [0, 1]."""
    R: float
    G: float
    B: float

    def as_srgb(self) -> "SRGB":
        return SRGB(*rgb_to_srgb(float(self.R), float(self.G), float(self.B)))


class SRGB(NamedTuple):
    """Gamma-encoded sRGB, nominally in [0, 1]."""
    R: float
    G: float
    B: float

    def as_bytes(self) -> Bytes3:
        return srgb_to_bytes(float(self.R), float(self.G), float(self.B))


# =============================================================================
# 4. BATCH KERNELS
# =============================================================================

def handle_shapes(func: Callable[..., np.ndarray]) -> Callable[..., np.ndarray]:
    """
    Decorator to normalize inputs to (N, 3) float64 and safeguard shape.

    Returns:
        The wrapped function with shape handling.
        - If input is (3,), returns (3,)
        - If input is (N, 3), returns (N, 3)
    """
    @functools.wraps(func)
    def wrapper(arr: ArrayFloat, *args: Any, **kwargs: Any) -> np.ndarray:
        arr = np.asarray(arr)
        arr_in = np.ascontiguousarray(np.atleast_2d(arr), dtype=np.float64)

        if arr_in.ndim != 2 or arr_in.shape[-1] != 3:
            raise ValueError(f"Expected shape (3,) or (N, 3), got {arr.shape}")

        res = func(arr_in, *args, **kwargs)

        if arr.ndim == 1:
            return res[0]
        return res
    return wrapper


@njit(parallel=True, cache=True, error_model="numpy")
def _polar_luv_to_luv_kernel(lch: ArrayFloat) -> ArrayFloat:
    n = lch.shape[0]
    out = np.empty((n, 3), dtype=np.float64)
    for k in prange(n):
        a, b, c = polar_luv_to_luv(lch[k, 0], lch[k, 1], lch[k, 2])
        out[k, 0] = a
        out[k, 1] = b
        out[k, 2] = c
    return out


@njit(parallel=True, cache=True, error_model="numpy")
def _luv_to_xyz_kernel(luv: ArrayFloat) -> ArrayFloat:
    n = luv.shape[0]
    out = np.empty((n, 3), dtype=np.float64)
    for k in prange(n):
        a, b, c = luv_to_xyz(luv[k, 0], luv[k, 1], luv[k, 2])
        out[k, 0] = a
        out[k, 1] = b
        out[k, 2] = c
    return out


@njit(parallel=True, cache=True, error_model="numpy")
def _xyz_to_rgb_kernel(xyz: ArrayFloat) -> ArrayFloat:
    n = xyz.shape[0]
    out = np.empty((n, 3), dtype=np.float64)
    for k in prange(n):
        a, b, c = xyz_to_rgb(xyz[k, 0], xyz[k, 1], xyz[k, 2])
        out[k, 0] = a
        out[k, 1] = b
        out[k, 2] = c
    return out


@njit(parallel=True, cache=True, error_model="numpy")
def _rgb_to_srgb_kernel(rgb: ArrayFloat) -> ArrayFloat:
    n = rgb.shape[0]
    out = np.empty((n, 3), dtype=np.float64)
    for k in prange(n):
        a, b, c = rgb_to_srgb(rgb[k, 0], rgb[k, 1], rgb[k, 2])
        out[k, 0] = a
        out[k, 1] = b
        out[k, 2] = c
    return out


@njit(parallel=True, cache=True, error_model="numpy")
def _srgb_to_bytes_kernel(srgb: ArrayFloat) -> np.ndarray:
    n = srgb.shape[0]
    out = np.empty((n, 3), dtype=np.uint8)
    for k in prange(n):
        r, g, b = srgb_to_bytes(srgb[k, 0], srgb[k, 1], srgb[k, 2])
        out[k, 0] = r
        out[k, 1] = g
        out[k, 2] = b
    return out


@njit(parallel=True, cache=True, error_model="numpy")
def _polar_luv_to_bytes_kernel(lch: ArrayFloat) -> np.ndarray:
    n = lch.shape[0]
    out = np.empty((n, 3), dtype=np.uint8)
    for k in prange(n):
        r, g, b = polar_luv_to_bytes(lch[k, 0], lch[k, 1], lch[k, 2])
        out[k, 0] = r
        out[k, 1] = g
        out[k, 2] = b
    return out


# =============================================================================
# 5. COLOR SPACE ENGINE
# =============================================================================

class ColorSpaceEngine:
    """Static batch API for the PolarLuv -> sRGB bytes chain.

    Every method accepts a single color of shape (3,) or a batch of shape
    (N, 3) and returns the same leading shape.  Float stages return float64,
    the byte stages return uint8.
    """

    @staticmethod
    @handle_shapes
    def polar_luv_to_luv(lch_array: ArrayFloat) -> ArrayFloat:
        """(h, C, L) -> (L, u*, v*)."""
        return _polar_luv_to_luv_kernel(lch_array)

    @staticmethod
    @handle_shapes
    def luv_to_xyz(luv_array: ArrayFloat) -> ArrayFloat:
        """(L, u*, v*) -> (X, Y, Z), D65."""
        return _luv_to_xyz_kernel(luv_array)

    @staticmethod
    @handle_shapes
    def xyz_to_rgb(xyz_array: ArrayFloat) -> ArrayFloat:
        """(X, Y, Z) -> linear (R, G, B), unclamped."""
        return _xyz_to_rgb_kernel(xyz_array)

    @staticmethod
    @handle_shapes
    def rgb_to_srgb(rgb_array: ArrayFloat) -> ArrayFloat:
        """Linear RGB -> gamma-encoded sRGB, unclamped."""
        return _rgb_to_srgb_kernel(rgb_array)

    @staticmethod
    @handle_shapes
    def srgb_to_bytes(srgb_array: ArrayFloat) -> np.ndarray:
        """sRGB [0..1] -> uint8 with clamping."""
        return _srgb_to_bytes_kernel(srgb_array)

    @staticmethod
    @handle_shapes
    def polar_luv_to_bytes(lch_array: ArrayFloat) -> np.ndarray:
        """
        Full chain in one pass.

        Equivalent to chaining the individual stages, without the
        intermediate (N, 3) allocations.
        """
        return _polar_luv_to_bytes_kernel(lch_array)
