"""
Morton (Z-order) coding used by the NEST scheme.

Inside a base face a NEST index is the bit interleave of the face-local
coordinates: bit ``k`` of ``ix`` lands on bit ``2k`` and bit ``k`` of ``iy``
on bit ``2k + 1``. Coordinates are at most 29 bits wide (nside <= 2**29), so
a coordinate always fits the lower 32-bit half of an int64 and the
interleaved in-face index fits 58 bits.
"""

from __future__ import annotations

from typing import Tuple

import torch
from torch import Tensor

# (shift, mask) pairs of the magic-number interleave, widest block first.
_SPREAD_STEPS = (
    (16, 0x0000FFFF0000FFFF),
    (8, 0x00FF00FF00FF00FF),
    (4, 0x0F0F0F0F0F0F0F0F),
    (2, 0x3333333333333333),
    (1, 0x5555555555555555),
)
# The same blocks gathered back together, narrowest first.
_COMPACT_STEPS = (
    (1, 0x3333333333333333),
    (2, 0x0F0F0F0F0F0F0F0F),
    (4, 0x00FF00FF00FF00FF),
    (8, 0x0000FFFF0000FFFF),
    (16, 0x00000000FFFFFFFF),
)
_EVEN_BITS = 0x5555555555555555


def spread_bits(x: Tensor) -> Tensor:
    """Move bit k of each element to bit 2k (``0b111 -> 0b10101``)."""
    out = x.to(torch.int64)
    for shift, mask in _SPREAD_STEPS:
        out = (out | (out << shift)) & mask
    return out


def compact_bits(x: Tensor) -> Tensor:
    """Inverse of :func:`spread_bits`: keep the even bits and pack them."""
    out = x.to(torch.int64) & _EVEN_BITS
    for shift, mask in _COMPACT_STEPS:
        out = (out | (out >> shift)) & mask
    return out


def xyf2nest(nside: int, ix: Tensor, iy: Tensor, face_num: Tensor) -> Tensor:
    """NEST index ``face * nside**2 + spread(ix) + 2 * spread(iy)``."""
    in_face = spread_bits(ix) | (spread_bits(iy) << 1)
    return face_num.to(torch.int64) * (nside * nside) + in_face


def nest2xyf(nside: int, pix: Tensor) -> Tuple[Tensor, Tensor, Tensor]:
    """Split NEST indices into face-local ``(ix, iy)`` and the base face."""
    npface = nside * nside
    pix = pix.to(torch.int64)
    face_num = torch.div(pix, npface, rounding_mode="floor")
    in_face = pix - face_num * npface
    return compact_bits(in_face), compact_bits(in_face >> 1), face_num
