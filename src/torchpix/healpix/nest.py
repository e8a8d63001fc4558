"""
NEST ordering: each base face is an nside x nside grid whose (x, y)
coordinates are bit-interleaved, so children of a pixel share its index
prefix.

The sphere-to-face projection is linear in the equatorial belt and uses the
inverse of a quadratic relation in the polar caps; both preserve area.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import torch
from torch import Tensor

from ._common import (
    HALF_PI,
    TWO_THIRDS,
    _angles_to_zphi,
    _as_float64,
    _as_int64,
    _cap_extent,
    _cpu_float64,
    _face_consts,
    _float_dtype_for_device,
    _fold_phi,
    _needs_cpu,
    _vectors_to_zphi,
    _zsphi_to_angles,
    _zsphi_to_vectors,
)
from .bits import nest2xyf, xyf2nest
from .resolution import check_nside, check_pixels


def _zphi2xyf(nside: int, z: Tensor, s: Tensor, have_s: Tensor, phi: Tensor) -> Tuple[Tensor, Tensor, Tensor]:
    shape = z.shape
    z = z.reshape(-1)
    s = s.reshape(-1)
    have_s = have_s.reshape(-1)
    f_dtype = z.dtype

    za = torch.abs(z)
    tt = _fold_phi(phi.reshape(-1)) * (2.0 / math.pi)  # in [0, 4)

    face_num = torch.empty_like(z, dtype=torch.int64)
    ix = torch.empty_like(z, dtype=torch.int64)
    iy = torch.empty_like(z, dtype=torch.int64)

    equat = za <= TWO_THIRDS
    if equat.any():
        ze = z[equat]
        tte = tt[equat]
        temp1 = nside * (0.5 + tte)
        temp2 = nside * (ze * 0.75)
        jp = (temp1 - temp2).to(torch.int64)
        jm = (temp1 + temp2).to(torch.int64)

        ifp = jp // nside
        ifm = jm // nside
        face = torch.where(ifp == ifm, ifp | 4, torch.where(ifp < ifm, ifp, ifm + 8))

        face_num[equat] = face
        ix[equat] = jm & (nside - 1)
        iy[equat] = nside - (jp & (nside - 1)) - 1

    pol = ~equat
    if pol.any():
        zp = z[pol]
        ttp = tt[pol]
        ntt = ttp.to(torch.int64)
        ntt = torch.where(ntt >= 4, torch.full_like(ntt, 3), ntt)
        tp = ttp - ntt.to(f_dtype)

        tmp = _cap_extent(nside, za[pol], s[pol], have_s[pol])
        jp = (tp * tmp).to(torch.int64)
        jm = ((1.0 - tp) * tmp).to(torch.int64)
        # points too close to the face boundary
        jp = torch.clamp(jp, max=nside - 1)
        jm = torch.clamp(jm, max=nside - 1)

        north = zp >= 0
        face_num[pol] = torch.where(north, ntt, ntt + 8)
        ix[pol] = torch.where(north, nside - jm - 1, jp)
        iy[pol] = torch.where(north, nside - jp - 1, jm)

    return ix.reshape(shape), iy.reshape(shape), face_num.reshape(shape)


def _nest2zsphi(nside: int, pix: Tensor) -> Tuple[Tensor, Tensor, Tensor]:
    """Pixel centres as (z, sin_theta, phi)."""
    f_dtype = _float_dtype_for_device(pix.device)
    ix, iy, face_num = nest2xyf(nside, pix)
    jrll, jpll = _face_consts(pix.device)

    nl4 = 4 * nside
    fact2 = 4.0 / (12 * nside * nside)
    fact1 = (2 * nside) * fact2

    jr = jrll[face_num] * nside - ix - iy - 1

    north = jr < nside
    south = jr > (3 * nside)
    equat = ~(north | south)

    nr = torch.where(
        north, jr, torch.where(south, nl4 - jr, torch.full_like(jr, nside))
    )
    tmp = (nr * nr).to(f_dtype) * fact2
    z_belt = (2 * nside - jr).to(f_dtype) * fact1
    z = torch.where(north, 1.0 - tmp, torch.where(south, tmp - 1.0, z_belt))
    s = torch.where(
        equat,
        torch.sqrt(torch.clamp((1.0 - z) * (1.0 + z), min=0.0)),
        torch.sqrt(torch.clamp(tmp * (2.0 - tmp), min=0.0)),
    )
    kshift = torch.where(equat, (jr - nside) & 1, torch.zeros_like(jr))

    jp = (jpll[face_num] * nr + ix - iy + 1 + kshift) // 2
    jp = torch.where(jp > nl4, jp - nl4, jp)
    jp = torch.where(jp < 1, jp + nl4, jp)

    phi = (jp.to(f_dtype) - 0.5 * (kshift.to(f_dtype) + 1.0)) * (
        HALF_PI / nr.to(f_dtype)
    )
    return z, s, phi


def ang2pix_nest(nside: int, theta: Tensor | float, phi: Tensor | float) -> Tensor:
    """Convert colatitude/longitude (radians) to NEST indices."""
    nside = check_nside(nside, nest=True)
    if isinstance(theta, Tensor) and _needs_cpu(theta, "ang2pix_nest"):
        return ang2pix_nest(nside, _cpu_float64(theta), _cpu_float64(phi)).to(device=theta.device)
    theta_t = _as_float64(theta)
    z, s, have_s, phi_t = _angles_to_zphi(theta_t, phi)
    return xyf2nest(nside, *_zphi2xyf(nside, z, s, have_s, phi_t))


def pix2ang_nest(nside: int, pix: Tensor | int) -> Tuple[Tensor, Tensor]:
    """Return (theta, phi) in radians of the centres of NEST pixels."""
    nside = check_nside(nside, nest=True)
    pix_t = _as_int64(pix)
    if _needs_cpu(pix_t, "pix2ang_nest"):
        theta, phi = pix2ang_nest(nside, pix_t.cpu())
        return theta.to(device=pix_t.device, dtype=torch.float32), phi.to(
            device=pix_t.device, dtype=torch.float32
        )
    check_pixels(nside, pix_t)
    z, s, phi = _nest2zsphi(nside, pix_t)
    return _zsphi_to_angles(z, s, phi)


def vec2pix_nest(nside: int, vectors: Tensor | Sequence[float]) -> Tensor:
    """Convert direction vectors [..., 3] (any length) to NEST indices."""
    nside = check_nside(nside, nest=True)
    if isinstance(vectors, Tensor) and _needs_cpu(vectors, "vec2pix_nest"):
        return vec2pix_nest(nside, _cpu_float64(vectors)).to(device=vectors.device)
    v = _as_float64(vectors)
    z, s, have_s, phi = _vectors_to_zphi(v)
    return xyf2nest(nside, *_zphi2xyf(nside, z, s, have_s, phi))


def pix2vec_nest(nside: int, pix: Tensor | int) -> Tensor:
    """Return unit vectors [..., 3] of the centres of NEST pixels."""
    nside = check_nside(nside, nest=True)
    pix_t = _as_int64(pix)
    if _needs_cpu(pix_t, "pix2vec_nest"):
        return pix2vec_nest(nside, pix_t.cpu()).to(device=pix_t.device, dtype=torch.float32)
    check_pixels(nside, pix_t)
    z, s, phi = _nest2zsphi(nside, pix_t)
    return _zsphi_to_vectors(z, s, phi)


def nest_parent(pix_nest: Tensor | int, levels: int = 1) -> Tensor:
    """Return NEST parent index after reducing resolution by `levels`."""
    if levels <= 0:
        raise ValueError("levels must be positive")
    pix_nest_t = _as_int64(pix_nest)
    return pix_nest_t >> (2 * levels)


def nest_children(pix_nest: Tensor | int, levels: int = 1) -> Tensor:
    """Return all NEST children after increasing resolution by `levels`."""
    if levels <= 0:
        raise ValueError("levels must be positive")
    pix_nest_t = _as_int64(pix_nest)
    n_children = 1 << (2 * levels)
    offsets = torch.arange(n_children, dtype=torch.int64, device=pix_nest_t.device)
    return (pix_nest_t << (2 * levels)).unsqueeze(-1) + offsets
