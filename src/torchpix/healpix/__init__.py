"""
HEALPix pixelization on torch tensors.

All angles are in radians and theta is the colatitude, counted from the
north pole. NSIDE may be any positive integer up to 2**29 in RING ordering;
NEST ordering requires a power of two.
"""

from __future__ import annotations

from typing import Sequence, Tuple

from torch import Tensor

from .bits import compact_bits, nest2xyf, spread_bits, xyf2nest
from .convert import nest2ring, reorder, ring2nest
from .neighbours import get_all_neighbours, neighbors, neighbours
from .nest import (
    ang2pix_nest,
    nest_children,
    nest_parent,
    pix2ang_nest,
    pix2vec_nest,
    vec2pix_nest,
)
from .resolution import (
    NSIDE_MAX,
    NSIDE_MAX64,
    check_nside,
    check_pixels,
    is_power_of_two,
    isnpixok,
    isnsideok,
    npix2nside,
    nside2npix,
    nside2order,
    nside2pixarea,
    nside2resol,
    order2nside,
)
from .ring import (
    ang2pix_ring,
    pix2ang_ring,
    pix2vec_ring,
    ring2xyf,
    vec2pix_ring,
    xyf2ring,
)


def ang2pix(nside: int, theta: Tensor | float, phi: Tensor | float, nest: bool = False) -> Tensor:
    """Convert (theta, phi) in radians to pixel indices."""
    if nest:
        return ang2pix_nest(nside, theta, phi)
    return ang2pix_ring(nside, theta, phi)


def pix2ang(nside: int, ipix: Tensor | int, nest: bool = False) -> Tuple[Tensor, Tensor]:
    """Convert pixel indices to (theta, phi) of the pixel centres."""
    if nest:
        return pix2ang_nest(nside, ipix)
    return pix2ang_ring(nside, ipix)


def vec2pix(nside: int, vectors: Tensor | Sequence[float], nest: bool = False) -> Tensor:
    """Convert direction vectors [..., 3] to pixel indices."""
    if nest:
        return vec2pix_nest(nside, vectors)
    return vec2pix_ring(nside, vectors)


def pix2vec(nside: int, ipix: Tensor | int, nest: bool = False) -> Tensor:
    """Convert pixel indices to unit vectors [..., 3] of the pixel centres."""
    if nest:
        return pix2vec_nest(nside, ipix)
    return pix2vec_ring(nside, ipix)


__all__ = [
    "NSIDE_MAX",
    "NSIDE_MAX64",
    "ang2pix",
    "pix2ang",
    "vec2pix",
    "pix2vec",
    "ang2pix_ring",
    "pix2ang_ring",
    "vec2pix_ring",
    "pix2vec_ring",
    "ang2pix_nest",
    "pix2ang_nest",
    "vec2pix_nest",
    "pix2vec_nest",
    "ring2nest",
    "nest2ring",
    "reorder",
    "neighbours",
    "neighbors",
    "get_all_neighbours",
    "nest_parent",
    "nest_children",
    "nside2npix",
    "npix2nside",
    "nside2order",
    "order2nside",
    "nside2pixarea",
    "nside2resol",
    "isnsideok",
    "isnpixok",
    "is_power_of_two",
    "check_nside",
    "check_pixels",
    "spread_bits",
    "compact_bits",
    "xyf2nest",
    "nest2xyf",
    "xyf2ring",
    "ring2xyf",
]
