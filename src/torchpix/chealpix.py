"""
Scalar interface with the classic C HEALPix names.

Every routine takes and returns plain Python numbers. Two index widths share
one algorithm:

* traditional names (``ang2pix_nest``, ``nest2ring``, ...) accept NSIDE up
  to ``NSIDE_MAX`` (8192), so every index fits in 32 bits;
* ``...64`` names accept NSIDE up to ``NSIDE_MAX64`` (2**29).

Failures that the C interface reports in-band keep doing so: ``nest2ring`` /
``ring2nest`` return -1 for an index outside [0, npix), ``npix2nside``
returns -1 for a size that is not 12 * nside**2, and missing neighbours are
-1. An unusable NSIDE raises InvalidResolutionError instead of producing
undefined output.
"""

from __future__ import annotations

import operator
from typing import List, Sequence, Tuple

import numpy as np
import torch

from .healpix import convert as _convert
from .healpix.neighbours import neighbours as _neighbours_of
from .healpix import nest as _nest
from .healpix import ring as _ring
from .healpix.resolution import NSIDE_MAX, NSIDE_MAX64, check_nside
from .healpix.resolution import npix2nside as _core_npix2nside
from .logging import log_errors, log_sentinel
from .sphere import core as _sphere

__all__ = [
    "NSIDE_MAX",
    "NSIDE_MAX64",
    "ang2pix_nest",
    "ang2pix_ring",
    "pix2ang_nest",
    "pix2ang_ring",
    "vec2pix_nest",
    "vec2pix_ring",
    "pix2vec_nest",
    "pix2vec_ring",
    "nest2ring",
    "ring2nest",
    "nside2npix",
    "npix2nside",
    "ang2pix_nest64",
    "ang2pix_ring64",
    "pix2ang_nest64",
    "pix2ang_ring64",
    "vec2pix_nest64",
    "vec2pix_ring64",
    "pix2vec_nest64",
    "pix2vec_ring64",
    "nest2ring64",
    "ring2nest64",
    "nside2npix64",
    "npix2nside64",
    "neighbours_nest64",
    "ang2vec",
    "vec2ang",
    "vect_prod",
    "angdist",
    "euclidean_distance",
]


def _vector(vec: Sequence[float]) -> torch.Tensor:
    arr = np.asarray(vec, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError("vector must have exactly three components")
    return torch.from_numpy(arr)


def _pixel(ipix) -> torch.Tensor:
    return torch.tensor(operator.index(ipix), dtype=torch.int64)


# --- shared implementations, parameterised by the index width -------------


def _ang2pix(nside, theta: float, phi: float, nest: bool, max_nside: int) -> int:
    n = check_nside(nside, nest=nest, max_nside=max_nside)
    theta_t = torch.tensor(float(theta), dtype=torch.float64)
    phi_t = torch.tensor(float(phi), dtype=torch.float64)
    if nest:
        return int(_nest.ang2pix_nest(n, theta_t, phi_t))
    return int(_ring.ang2pix_ring(n, theta_t, phi_t))


def _pix2ang(nside, ipix, nest: bool, max_nside: int) -> Tuple[float, float]:
    n = check_nside(nside, nest=nest, max_nside=max_nside)
    if nest:
        theta, phi = _nest.pix2ang_nest(n, _pixel(ipix))
    else:
        theta, phi = _ring.pix2ang_ring(n, _pixel(ipix))
    return float(theta), float(phi)


def _vec2pix(nside, vec: Sequence[float], nest: bool, max_nside: int) -> int:
    n = check_nside(nside, nest=nest, max_nside=max_nside)
    if nest:
        return int(_nest.vec2pix_nest(n, _vector(vec)))
    return int(_ring.vec2pix_ring(n, _vector(vec)))


def _pix2vec(nside, ipix, nest: bool, max_nside: int) -> List[float]:
    n = check_nside(nside, nest=nest, max_nside=max_nside)
    if nest:
        v = _nest.pix2vec_nest(n, _pixel(ipix))
    else:
        v = _ring.pix2vec_ring(n, _pixel(ipix))
    return [float(c) for c in v]


def _convert_index(nside, ipix, to_nest: bool, max_nside: int) -> int:
    n = check_nside(nside, nest=True, max_nside=max_nside)
    if to_nest:
        out = int(_convert.ring2nest(n, _pixel(ipix)))
    else:
        out = int(_convert.nest2ring(n, _pixel(ipix)))
    if out < 0:
        log_sentinel("ring2nest" if to_nest else "nest2ring", ipix, n)
    return out


def _npix2nside_width(npix, max_nside: int) -> int:
    nside = _core_npix2nside(npix)
    if nside > max_nside:
        nside = -1
    if nside < 0:
        log_sentinel("npix2nside", npix, max_nside)
    return nside


# --- traditional width -----------------------------------------------------


@log_errors
def ang2pix_nest(nside: int, theta: float, phi: float) -> int:
    """NEST index of the pixel containing (theta, phi)."""
    return _ang2pix(nside, theta, phi, True, NSIDE_MAX)


@log_errors
def ang2pix_ring(nside: int, theta: float, phi: float) -> int:
    """RING index of the pixel containing (theta, phi)."""
    return _ang2pix(nside, theta, phi, False, NSIDE_MAX)


@log_errors
def pix2ang_nest(nside: int, ipix: int) -> Tuple[float, float]:
    """(theta, phi) of the centre of NEST pixel `ipix`."""
    return _pix2ang(nside, ipix, True, NSIDE_MAX)


@log_errors
def pix2ang_ring(nside: int, ipix: int) -> Tuple[float, float]:
    """(theta, phi) of the centre of RING pixel `ipix`."""
    return _pix2ang(nside, ipix, False, NSIDE_MAX)


@log_errors
def vec2pix_nest(nside: int, vec: Sequence[float]) -> int:
    return _vec2pix(nside, vec, True, NSIDE_MAX)


@log_errors
def vec2pix_ring(nside: int, vec: Sequence[float]) -> int:
    return _vec2pix(nside, vec, False, NSIDE_MAX)


@log_errors
def pix2vec_nest(nside: int, ipix: int) -> List[float]:
    return _pix2vec(nside, ipix, True, NSIDE_MAX)


@log_errors
def pix2vec_ring(nside: int, ipix: int) -> List[float]:
    return _pix2vec(nside, ipix, False, NSIDE_MAX)


@log_errors
def nest2ring(nside: int, ipnest: int) -> int:
    """RING index of NEST pixel `ipnest`, or -1 if it is out of range."""
    return _convert_index(nside, ipnest, False, NSIDE_MAX)


@log_errors
def ring2nest(nside: int, ipring: int) -> int:
    """NEST index of RING pixel `ipring`, or -1 if it is out of range."""
    return _convert_index(nside, ipring, True, NSIDE_MAX)


@log_errors
def nside2npix(nside: int) -> int:
    n = check_nside(nside, max_nside=NSIDE_MAX)
    return 12 * n * n


def npix2nside(npix: int) -> int:
    """sqrt(npix / 12) if that is a valid traditional NSIDE, otherwise -1."""
    return _npix2nside_width(npix, NSIDE_MAX)


# --- wide width ------------------------------------------------------------


@log_errors
def ang2pix_nest64(nside: int, theta: float, phi: float) -> int:
    return _ang2pix(nside, theta, phi, True, NSIDE_MAX64)


@log_errors
def ang2pix_ring64(nside: int, theta: float, phi: float) -> int:
    return _ang2pix(nside, theta, phi, False, NSIDE_MAX64)


@log_errors
def pix2ang_nest64(nside: int, ipix: int) -> Tuple[float, float]:
    return _pix2ang(nside, ipix, True, NSIDE_MAX64)


@log_errors
def pix2ang_ring64(nside: int, ipix: int) -> Tuple[float, float]:
    return _pix2ang(nside, ipix, False, NSIDE_MAX64)


@log_errors
def vec2pix_nest64(nside: int, vec: Sequence[float]) -> int:
    return _vec2pix(nside, vec, True, NSIDE_MAX64)


@log_errors
def vec2pix_ring64(nside: int, vec: Sequence[float]) -> int:
    return _vec2pix(nside, vec, False, NSIDE_MAX64)


@log_errors
def pix2vec_nest64(nside: int, ipix: int) -> List[float]:
    return _pix2vec(nside, ipix, True, NSIDE_MAX64)


@log_errors
def pix2vec_ring64(nside: int, ipix: int) -> List[float]:
    return _pix2vec(nside, ipix, False, NSIDE_MAX64)


@log_errors
def nest2ring64(nside: int, ipnest: int) -> int:
    return _convert_index(nside, ipnest, False, NSIDE_MAX64)


@log_errors
def ring2nest64(nside: int, ipring: int) -> int:
    return _convert_index(nside, ipring, True, NSIDE_MAX64)


@log_errors
def nside2npix64(nside: int) -> int:
    n = check_nside(nside, max_nside=NSIDE_MAX64)
    return 12 * n * n


def npix2nside64(npix: int) -> int:
    return _npix2nside_width(npix, NSIDE_MAX64)


@log_errors
def neighbours_nest64(nside: int, ipix: int) -> List[int]:
    """
    The 8 neighbours of NEST pixel `ipix` (SW, W, NW, N, NE, E, SE, S).

    Missing neighbours are -1; a pixel has 7 or 8 valid neighbours.
    """
    n = check_nside(nside, nest=True, max_nside=NSIDE_MAX64)
    return [int(p) for p in _neighbours_of(n, _pixel(ipix), nest=True)]


# --- vector helpers --------------------------------------------------------


def ang2vec(theta: float, phi: float) -> List[float]:
    return [float(c) for c in _sphere.ang2vec(float(theta), float(phi))]


def vec2ang(vec: Sequence[float]) -> Tuple[float, float]:
    theta, phi = _sphere.vec2ang(_vector(vec))
    return float(theta), float(phi)


def vect_prod(vector_a: Sequence[float], vector_b: Sequence[float]) -> List[float]:
    return [float(c) for c in _sphere.cross_product(_vector(vector_a), _vector(vector_b))]


def angdist(vector_a: Sequence[float], vector_b: Sequence[float]) -> float:
    """Angle in radians between two vectors; they need not be normalized."""
    return float(_sphere.angular_distance(_vector(vector_a), _vector(vector_b)))


def euclidean_distance(va: Sequence[float], vb: Sequence[float]) -> float:
    return float(_sphere.euclidean_distance(_vector(va), _vector(vb)))
