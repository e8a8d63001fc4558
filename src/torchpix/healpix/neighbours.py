"""
Neighbour lookup on the 12-face base tiling.

Neighbours come back in the order SW, W, NW, N, NE, E, SE, S. A slot is -1
where the tiling has no pixel, which happens at the eight vertices where only
three base faces meet.
"""

from __future__ import annotations

import torch
from torch import Tensor

from ._common import _as_int64
from .bits import nest2xyf, xyf2nest
from .resolution import check_nside, check_pixels
from .ring import ring2xyf, xyf2ring

_NB_XOFFSET = torch.tensor([-1, -1, 0, 1, 1, 1, 0, -1], dtype=torch.int64)
_NB_YOFFSET = torch.tensor([0, 1, 1, 1, 0, -1, -1, -1], dtype=torch.int64)

# Neighbouring face across an edge or corner, indexed by
# [crossing, face]. The crossing code is 4 + dx + 3 * dy with dx, dy the
# sign of the overflow in local x and y; row 4 is the face itself.
_NB_FACEARRAY = torch.tensor(
    [
        [8, 9, 10, 11, -1, -1, -1, -1, 10, 11, 8, 9],  # S
        [5, 6, 7, 4, 8, 9, 10, 11, 9, 10, 11, 8],  # SE
        [-1, -1, -1, -1, 5, 6, 7, 4, -1, -1, -1, -1],  # E
        [4, 5, 6, 7, 11, 8, 9, 10, 11, 8, 9, 10],  # SW
        [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11],  # center
        [1, 2, 3, 0, 0, 1, 2, 3, 5, 6, 7, 4],  # NE
        [-1, -1, -1, -1, 7, 4, 5, 6, -1, -1, -1, -1],  # W
        [3, 0, 1, 2, 3, 0, 1, 2, 4, 5, 6, 7],  # NW
        [2, 3, 0, 1, -1, -1, -1, -1, 0, 1, 2, 3],  # N
    ],
    dtype=torch.int64,
)
# Coordinate transform on arrival, indexed by [crossing, face band]
# (north, equatorial, south): bit 1 flips x, bit 2 flips y, bit 4 swaps x/y.
_NB_SWAPARRAY = torch.tensor(
    [
        [0, 0, 3],
        [0, 0, 6],
        [0, 0, 0],
        [0, 0, 5],
        [0, 0, 0],
        [5, 0, 0],
        [0, 0, 0],
        [6, 0, 0],
        [3, 0, 0],
    ],
    dtype=torch.int64,
)


def _cross_faces(
    nside: int, ix: Tensor, iy: Tensor, face: Tensor, m: int, xoff: Tensor, yoff: Tensor
) -> tuple[Tensor, Tensor, Tensor, Tensor]:
    """Step pixels (ix, iy, face) in direction `m`, resolving face edges."""
    x = ix + xoff[m]
    y = iy + yoff[m]
    nbnum = torch.full_like(x, 4)

    lx = x < 0
    gx = x >= nside
    x = torch.where(lx, x + nside, x)
    x = torch.where(gx, x - nside, x)
    nbnum = torch.where(lx, nbnum - 1, nbnum)
    nbnum = torch.where(gx, nbnum + 1, nbnum)

    ly = y < 0
    gy = y >= nside
    y = torch.where(ly, y + nside, y)
    y = torch.where(gy, y - nside, y)
    nbnum = torch.where(ly, nbnum - 3, nbnum)
    nbnum = torch.where(gy, nbnum + 3, nbnum)

    facearr = _NB_FACEARRAY.to(device=ix.device)
    swaparr = _NB_SWAPARRAY.to(device=ix.device)
    f = facearr[nbnum, face]
    bits = swaparr[nbnum, face >> 2]

    flip_x = (bits & 1) != 0
    flip_y = (bits & 2) != 0
    swap_xy = (bits & 4) != 0

    x = torch.where(flip_x, nside - x - 1, x)
    y = torch.where(flip_y, nside - y - 1, y)
    x_new = torch.where(swap_xy, y, x)
    y_new = torch.where(swap_xy, x, y)
    return x_new, y_new, f, f >= 0


def neighbours(nside: int, ipix: Tensor | int, nest: bool = True) -> Tensor:
    """
    Return the 8 neighbours (SW, W, NW, N, NE, E, SE, S) of each pixel.

    Output shape is `ipix.shape + (8,)`. Missing neighbours are -1. NEST
    ordering requires a power-of-two NSIDE; RING accepts any NSIDE.
    """
    nside = check_nside(nside, nest=nest)
    pix_t = _as_int64(ipix)
    pix_flat = pix_t.reshape(-1)
    check_pixels(nside, pix_flat)

    if nest:
        ix, iy, face = nest2xyf(nside, pix_flat)
        to_index = xyf2nest
    else:
        ix, iy, face = ring2xyf(nside, pix_flat)
        to_index = xyf2ring

    nsm1 = nside - 1
    out = torch.full(
        (pix_flat.numel(), 8), -1, dtype=torch.int64, device=pix_flat.device
    )
    xoff = _NB_XOFFSET.to(device=pix_flat.device)
    yoff = _NB_YOFFSET.to(device=pix_flat.device)

    interior = (ix > 0) & (ix < nsm1) & (iy > 0) & (iy < nsm1)
    if torch.any(interior):
        x_int = ix[interior].unsqueeze(1) + xoff.unsqueeze(0)
        y_int = iy[interior].unsqueeze(1) + yoff.unsqueeze(0)
        f_int = face[interior].unsqueeze(1).expand_as(x_int)
        vals = to_index(nside, x_int.reshape(-1), y_int.reshape(-1), f_int.reshape(-1))
        out[interior] = vals.reshape(-1, 8)

    boundary = ~interior
    if torch.any(boundary):
        ix_b = ix[boundary]
        iy_b = iy[boundary]
        face_b = face[boundary]
        out_b = out[boundary]
        for m in range(8):
            x, y, f, valid = _cross_faces(nside, ix_b, iy_b, face_b, m, xoff, yoff)
            if not torch.any(valid):
                continue
            vals = to_index(nside, x[valid], y[valid], f[valid])
            col = out_b[:, m]
            col[valid] = vals
            out_b[:, m] = col
        out[boundary] = out_b

    return out.reshape(*pix_t.shape, 8)


def get_all_neighbours(nside: int, ipix: Tensor | int, nest: bool = True) -> Tensor:
    """healpy-style layout of `neighbours`: the 8 directions come first."""
    neigh = neighbours(nside, ipix, nest=nest)
    if neigh.ndim == 1:
        return neigh
    return torch.movedim(neigh, -1, 0)


# American spelling alias.
neighbors = neighbours
