"""Exact RING <-> NEST index translation through the base-face layout."""

from __future__ import annotations

import torch
from torch import Tensor

from ._common import _as_int64
from .bits import nest2xyf, xyf2nest
from .resolution import check_nside, npix2nside
from .ring import ring2xyf, xyf2ring


def _valid(nside: int, pix: Tensor) -> Tensor:
    return (pix >= 0) & (pix < 12 * nside * nside)


def ring2nest(nside: int, pix_ring: Tensor | int) -> Tensor:
    """
    Convert RING pixel indices to NEST.

    Indices outside [0, npix) map to -1. NSIDE must be a power of two.
    """
    nside = check_nside(nside, nest=True)
    pix_t = _as_int64(pix_ring)
    ok = _valid(nside, pix_t)
    safe = torch.where(ok, pix_t, torch.zeros_like(pix_t))
    ix, iy, face_num = ring2xyf(nside, safe)
    out = xyf2nest(nside, ix, iy, face_num)
    return torch.where(ok, out, torch.full_like(out, -1))


def nest2ring(nside: int, pix_nest: Tensor | int) -> Tensor:
    """
    Convert NEST pixel indices to RING.

    Indices outside [0, npix) map to -1. NSIDE must be a power of two.
    """
    nside = check_nside(nside, nest=True)
    pix_t = _as_int64(pix_nest)
    ok = _valid(nside, pix_t)
    safe = torch.where(ok, pix_t, torch.zeros_like(pix_t))
    ix, iy, face_num = nest2xyf(nside, safe)
    out = xyf2ring(nside, ix, iy, face_num)
    return torch.where(ok, out, torch.full_like(out, -1))


def reorder(m: Tensor, *, r2n: bool = False, n2r: bool = False) -> Tensor:
    """Reorder a full-sky map between RING and NEST layouts along axis 0."""
    if r2n == n2r:
        raise ValueError("exactly one of r2n/n2r must be True")
    t = torch.as_tensor(m)
    if t.ndim == 0:
        raise ValueError("map must have at least 1 dimension")
    npix = int(t.shape[0])
    nside = npix2nside(npix)
    if nside < 0:
        raise ValueError(f"map length {npix} is not a valid number of pixels")
    idx = torch.arange(npix, dtype=torch.int64, device=t.device)
    perm = ring2nest(nside, idx) if r2n else nest2ring(nside, idx)
    out = torch.empty_like(t)
    out[perm] = t
    return out
