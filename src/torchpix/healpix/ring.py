"""
RING ordering: pixels numbered ring by ring from the north pole.

The sphere splits into a north polar cap, an equatorial belt and a south
polar cap. In the caps ring ``i`` (counted from the nearest pole) holds
``4 i`` pixels; every belt ring holds ``4 nside``. All ring offsets follow in
closed form, so any positive NSIDE works and nothing is tabulated.
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
    _isqrt,
    _needs_cpu,
    _vectors_to_zphi,
    _zsphi_to_angles,
    _zsphi_to_vectors,
)
from .resolution import check_nside, check_pixels


def _zphi2ring(nside: int, z: Tensor, s: Tensor, have_s: Tensor, phi: Tensor) -> Tensor:
    shape = z.shape
    z = z.reshape(-1)
    s = s.reshape(-1)
    have_s = have_s.reshape(-1)
    f_dtype = z.dtype

    za = torch.abs(z)
    tt = _fold_phi(phi.reshape(-1)) * (2.0 / math.pi)  # in [0, 4)

    pix = torch.empty_like(z, dtype=torch.int64)

    equat = za <= TWO_THIRDS
    if equat.any():
        ze = z[equat]
        tte = tt[equat]
        nl4 = 4 * nside

        temp1 = nside * (0.5 + tte)
        temp2 = nside * ze * 0.75
        jp = (temp1 - temp2).to(torch.int64)  # ascending edge line
        jm = (temp1 + temp2).to(torch.int64)  # descending edge line

        ir = nside + 1 + jp - jm  # ring counted from z=2/3, in [1, 2n+1]
        kshift = 1 - (ir & 1)

        t1 = jp + jm - nside + kshift + 1 + 2 * nl4
        ip = (t1 >> 1) % nl4

        pix[equat] = 2 * nside * (nside - 1) + (ir - 1) * nl4 + ip

    pol = ~equat
    if pol.any():
        zp = z[pol]
        ttp = tt[pol]

        tp = ttp - ttp.to(torch.int64).to(f_dtype)
        tmp = _cap_extent(nside, za[pol], s[pol], have_s[pol])

        jp = (tp * tmp).to(torch.int64)
        jm = ((1.0 - tp) * tmp).to(torch.int64)

        ir = jp + jm + 1  # ring counted from the closest pole
        ip = torch.remainder((ttp * ir.to(f_dtype)).to(torch.int64), 4 * ir)

        pix[pol] = torch.where(
            zp > 0,
            2 * ir * (ir - 1) + ip,
            12 * nside * nside - 2 * ir * (ir + 1) + ip,
        )

    return pix.reshape(shape)


def _ring2zsphi(nside: int, pix: Tensor) -> Tuple[Tensor, Tensor, Tensor]:
    """Pixel centres as (z, sin_theta, phi)."""
    shape = pix.shape
    pix = pix.reshape(-1)
    f_dtype = _float_dtype_for_device(pix.device)

    ncap = 2 * nside * (nside - 1)
    npix = 12 * nside * nside
    fact2 = 4.0 / npix

    z = torch.empty_like(pix, dtype=f_dtype)
    s = torch.empty_like(pix, dtype=f_dtype)
    phi = torch.empty_like(pix, dtype=f_dtype)

    north = pix < ncap
    south = pix >= (npix - ncap)
    equat = ~(north | south)

    if north.any():
        p = pix[north]
        iring = (1 + _isqrt(1 + 2 * p)) >> 1
        iphi = (p + 1) - 2 * iring * (iring - 1)
        tmp = (iring * iring).to(f_dtype) * fact2
        z[north] = 1.0 - tmp
        s[north] = torch.sqrt(tmp * (2.0 - tmp))
        phi[north] = (iphi.to(f_dtype) - 0.5) * (HALF_PI / iring.to(f_dtype))

    if equat.any():
        p = pix[equat]
        fact1 = (2 * nside) * fact2
        ip = p - ncap
        iring = (ip // (4 * nside)) + nside
        iphi = (ip % (4 * nside)) + 1
        fodd = torch.where(((iring + nside) & 1).bool(), 1.0, 0.5).to(f_dtype)
        ze = (2 * nside - iring).to(f_dtype) * fact1
        z[equat] = ze
        s[equat] = torch.sqrt((1.0 - ze) * (1.0 + ze))
        phi[equat] = (iphi.to(f_dtype) - fodd) * (math.pi / (2 * nside))

    if south.any():
        p = pix[south]
        ip = npix - p
        iring = (1 + _isqrt(2 * ip - 1)) >> 1
        iphi = 4 * iring + 1 - (ip - 2 * iring * (iring - 1))
        tmp = (iring * iring).to(f_dtype) * fact2
        z[south] = tmp - 1.0
        s[south] = torch.sqrt(tmp * (2.0 - tmp))
        phi[south] = (iphi.to(f_dtype) - 0.5) * (HALF_PI / iring.to(f_dtype))

    return z.reshape(shape), s.reshape(shape), phi.reshape(shape)


def xyf2ring(nside: int, ix: Tensor, iy: Tensor, face_num: Tensor) -> Tensor:
    """RING index of face-local coordinates (ix, iy) on base face `face_num`."""
    nl4 = 4 * nside
    ncap = 2 * nside * (nside - 1)
    npix = 12 * nside * nside
    jrll, jpll = _face_consts(face_num.device)
    jr = jrll[face_num] * nside - ix - iy - 1

    north = jr < nside
    south = jr > (3 * nside)
    equat = ~(north | south)

    nr = torch.where(
        north, jr, torch.where(south, nl4 - jr, torch.full_like(jr, nside))
    )
    n_before_north = 2 * nr * (nr - 1)
    n_before_south = npix - 2 * (nr + 1) * nr
    n_before_equat = ncap + (jr - nside) * nl4
    n_before = torch.where(
        north, n_before_north, torch.where(south, n_before_south, n_before_equat)
    )
    kshift = torch.where(equat, (jr - nside) & 1, torch.zeros_like(jr))

    # The numerator is always even.
    jp = (jpll[face_num] * nr + ix - iy + 1 + kshift) // 2
    jp = torch.where(jp > nl4, jp - nl4, jp)
    jp = torch.where(jp < 1, jp + nl4, jp)

    return n_before + jp - 1


def ring2xyf(nside: int, pix: Tensor) -> Tuple[Tensor, Tensor, Tensor]:
    """Split a RING index into face-local coordinates (ix, iy, face)."""
    shape = pix.shape
    pix = pix.reshape(-1).to(torch.int64)
    ncap = 2 * nside * (nside - 1)
    npix = 12 * nside * nside
    nl2 = 2 * nside
    jrll, jpll = _face_consts(pix.device)

    iring = torch.empty_like(pix)
    iphi = torch.empty_like(pix)
    kshift = torch.zeros_like(pix)
    nr = torch.empty_like(pix)
    face_num = torch.empty_like(pix)

    north = pix < ncap
    south = pix >= (npix - ncap)
    equat = ~(north | south)

    if north.any():
        p = pix[north]
        ir = (1 + _isqrt(1 + 2 * p)) >> 1
        iph = (p + 1) - 2 * ir * (ir - 1)
        iring[north] = ir
        iphi[north] = iph
        nr[north] = ir
        face_num[north] = (iph - 1) // ir

    if equat.any():
        p = pix[equat]
        ip = p - ncap
        tmp = ip // (4 * nside)
        ir = tmp + nside
        iph = ip - tmp * 4 * nside + 1
        ire = tmp + 1
        irm = nl2 + 1 - tmp
        ifm = (iph - (ire >> 1) + nside - 1) // nside
        ifp = (iph - (irm >> 1) + nside - 1) // nside
        f = torch.where(ifp == ifm, ifp | 4, torch.where(ifp < ifm, ifp, ifm + 8))

        iring[equat] = ir
        iphi[equat] = iph
        kshift[equat] = (ir + nside) & 1
        nr[equat] = nside
        face_num[equat] = f

    if south.any():
        p = pix[south]
        ip = npix - p
        irs = (1 + _isqrt(2 * ip - 1)) >> 1
        iph = 4 * irs + 1 - (ip - 2 * irs * (irs - 1))

        iring[south] = 2 * nl2 - irs
        iphi[south] = iph
        nr[south] = irs
        face_num[south] = 8 + (iph - 1) // irs

    irt = iring - jrll[face_num] * nside + 1
    ipt = 2 * iphi - jpll[face_num] * nr - kshift - 1
    ipt = torch.where(ipt >= nl2, ipt - 8 * nside, ipt)

    ix = (ipt - irt) >> 1
    iy = (-ipt - irt) >> 1
    return ix.reshape(shape), iy.reshape(shape), face_num.reshape(shape)


def ang2pix_ring(nside: int, theta: Tensor | float, phi: Tensor | float) -> Tensor:
    """Convert colatitude/longitude (radians) to RING indices."""
    nside = check_nside(nside)
    if isinstance(theta, Tensor) and _needs_cpu(theta, "ang2pix_ring"):
        return ang2pix_ring(nside, _cpu_float64(theta), _cpu_float64(phi)).to(device=theta.device)
    theta_t = _as_float64(theta)
    z, s, have_s, phi_t = _angles_to_zphi(theta_t, phi)
    return _zphi2ring(nside, z, s, have_s, phi_t)


def pix2ang_ring(nside: int, pix: Tensor | int) -> Tuple[Tensor, Tensor]:
    """Return (theta, phi) in radians of the centres of RING pixels."""
    nside = check_nside(nside)
    pix_t = _as_int64(pix)
    if _needs_cpu(pix_t, "pix2ang_ring"):
        theta, phi = pix2ang_ring(nside, pix_t.cpu())
        return theta.to(device=pix_t.device, dtype=torch.float32), phi.to(
            device=pix_t.device, dtype=torch.float32
        )
    check_pixels(nside, pix_t)
    z, s, phi = _ring2zsphi(nside, pix_t)
    return _zsphi_to_angles(z, s, phi)


def vec2pix_ring(nside: int, vectors: Tensor | Sequence[float]) -> Tensor:
    """Convert direction vectors [..., 3] (any length) to RING indices."""
    nside = check_nside(nside)
    if isinstance(vectors, Tensor) and _needs_cpu(vectors, "vec2pix_ring"):
        return vec2pix_ring(nside, _cpu_float64(vectors)).to(device=vectors.device)
    v = _as_float64(vectors)
    z, s, have_s, phi = _vectors_to_zphi(v)
    return _zphi2ring(nside, z, s, have_s, phi)


def pix2vec_ring(nside: int, pix: Tensor | int) -> Tensor:
    """Return unit vectors [..., 3] of the centres of RING pixels."""
    nside = check_nside(nside)
    pix_t = _as_int64(pix)
    if _needs_cpu(pix_t, "pix2vec_ring"):
        return pix2vec_ring(nside, pix_t.cpu()).to(device=pix_t.device, dtype=torch.float32)
    check_pixels(nside, pix_t)
    z, s, phi = _ring2zsphi(nside, pix_t)
    return _zsphi_to_vectors(z, s, phi)
