"""NSIDE / NPIX bookkeeping and entry-point validation."""

from __future__ import annotations

import math
import operator
from typing import Sequence

import torch
from torch import Tensor

from ..errors import InvalidPixelError, InvalidResolutionError
from ._common import _isqrt

# Largest NSIDE whose indices fit a signed 32-bit integer.
NSIDE_MAX = 1 << 13
# Largest NSIDE whose indices fit a signed 64-bit integer.
NSIDE_MAX64 = 1 << 29


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def check_nside(nside, nest: bool = False, max_nside: int = NSIDE_MAX64) -> int:
    """
    Validate NSIDE and return it as a Python int.

    RING accepts any positive integer up to `max_nside`; NEST additionally
    requires a power of two.
    """
    if isinstance(nside, bool):
        raise InvalidResolutionError(nside, "must be an integer")
    try:
        n = operator.index(nside)
    except TypeError:
        raise InvalidResolutionError(nside, "must be an integer") from None
    if n < 1:
        raise InvalidResolutionError(nside, "must be positive")
    if n > max_nside:
        raise InvalidResolutionError(nside, f"exceeds maximum {max_nside}")
    if nest and not is_power_of_two(n):
        raise InvalidResolutionError(nside, "must be a power of two for NEST ordering")
    return n


def check_pixels(nside: int, ipix: Tensor) -> None:
    """Raise InvalidPixelError if any index falls outside [0, npix)."""
    npix = 12 * nside * nside
    if ipix.numel() and bool(torch.any((ipix < 0) | (ipix >= npix))):
        raise InvalidPixelError(nside, npix)


def nside2npix(nside: int) -> int:
    """Return the number of pixels, 12 * nside**2."""
    n = check_nside(nside)
    return 12 * n * n


def npix2nside(npix: int) -> int:
    """Return sqrt(npix / 12) if it is a positive integer, otherwise -1."""
    if isinstance(npix, bool):
        return -1
    try:
        n = operator.index(npix)
    except TypeError:
        if isinstance(npix, float) and npix.is_integer():
            n = int(npix)
        else:
            return -1
    if n <= 0 or n % 12:
        return -1
    nside = math.isqrt(n // 12)
    if 12 * nside * nside != n:
        return -1
    return nside


def order2nside(order: int) -> int:
    """Return NSIDE for a NEST order (nside = 2**order)."""
    if order < 0 or (1 << order) > NSIDE_MAX64:
        raise InvalidResolutionError(order, "order out of range")
    return 1 << order


def nside2order(nside: int) -> int:
    """Return the NEST order log2(nside)."""
    n = check_nside(nside, nest=True)
    return n.bit_length() - 1


def isnsideok(nside: Tensor | int | Sequence[int], nest: bool = False) -> bool | Tensor:
    """
    Check whether NSIDE values are valid.

    Returns bool for scalar input and bool tensor for array-like input.
    """
    t = torch.as_tensor(nside)
    int_like = torch.ones_like(t, dtype=torch.bool)
    if t.is_floating_point():
        int_like = torch.isfinite(t) & (t == torch.floor(t))
        t = torch.where(int_like, t, torch.zeros_like(t))
    v = t.to(torch.int64)
    ok = int_like & (v > 0) & (v <= NSIDE_MAX64)
    if nest:
        ok = ok & ((v & (v - 1)) == 0)
    if t.ndim == 0:
        return bool(ok.item())
    return ok


def isnpixok(npix: Tensor | int | Sequence[int]) -> bool | Tensor:
    """
    Check whether NPIX values are valid pixelization sizes.

    Returns bool for scalar input and bool tensor for array-like input.
    """
    t = torch.as_tensor(npix)
    int_like = torch.ones_like(t, dtype=torch.bool)
    if t.is_floating_point():
        int_like = torch.isfinite(t) & (t == torch.floor(t))
        t = torch.where(int_like, t, torch.zeros_like(t))
    v = t.to(torch.int64)
    base = int_like & (v > 0) & ((v % 12) == 0)
    nside_sq = torch.where(base, v // 12, torch.ones_like(v))
    nside = _isqrt(nside_sq)
    ok = base & (nside * nside == nside_sq)
    if t.ndim == 0:
        return bool(ok.item())
    return ok


def nside2pixarea(nside: int, degrees: bool = False) -> float:
    """Return the solid angle of one pixel, 4 pi / npix."""
    area_sr = 4.0 * math.pi / float(nside2npix(nside))
    if not degrees:
        return area_sr
    return area_sr * ((180.0 / math.pi) ** 2)


def nside2resol(nside: int, arcmin: bool = False) -> float:
    """Return approximate resolution (sqrt pixel area)."""
    resol_rad = math.sqrt(nside2pixarea(nside, degrees=False))
    if not arcmin:
        return resol_rad
    return resol_rad * (180.0 * 60.0 / math.pi)
