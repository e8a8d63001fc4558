"""Shared tensor helpers and base-face layout for the HEALPix indexers."""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import torch
from torch import Tensor

from ..logging import log_device_fallback

# Ring of the southernmost corner of each base face, in units of nside,
# and longitude of that corner in units of pi/4.
_JRLL = torch.tensor([2, 2, 2, 2, 3, 3, 3, 3, 4, 4, 4, 4], dtype=torch.int64)
_JPLL = torch.tensor([1, 3, 5, 7, 0, 2, 4, 6, 1, 3, 5, 7], dtype=torch.int64)

TWO_THIRDS = 2.0 / 3.0
TWO_PI = 2.0 * math.pi
HALF_PI = 0.5 * math.pi

# Below this colatitude distance from a pole, sin(theta) replaces
# sqrt(1 - |cos(theta)|) in the cap projection.
_POLAR_THETA = 0.01
_POLAR_Z = 0.99


def _float_dtype_for_device(device: torch.device) -> torch.dtype:
    if device.type == "mps":
        return torch.float32
    return torch.float64


def _as_float64(x: Tensor | float | Sequence[float]) -> Tensor:
    if not isinstance(x, Tensor):
        return torch.as_tensor(x, dtype=torch.float64)
    return x.to(dtype=_float_dtype_for_device(x.device))


def _cpu_float64(x: Tensor | float | Sequence[float]) -> Tensor:
    """Float64 copy on CPU; tensors leave their device before they are widened."""
    if not isinstance(x, Tensor):
        return torch.as_tensor(x, dtype=torch.float64)
    return x.cpu().to(torch.float64)


def _as_int64(x: Tensor | int | Sequence[int]) -> Tensor:
    t = torch.as_tensor(x)
    if t.is_floating_point() or t.is_complex():
        raise TypeError("pixel indices must be integers")
    return t.to(torch.int64)


def _needs_cpu(t: Tensor, operation: str) -> bool:
    # MPS lacks float64; route through CPU for exact indexing.
    if t.device.type == "mps":
        log_device_fallback(operation, "mps")
        return True
    return False


def _face_consts(device: torch.device) -> Tuple[Tensor, Tensor]:
    return _JRLL.to(device=device), _JPLL.to(device=device)


def _isqrt(v: Tensor) -> Tensor:
    """Exact floor(sqrt(v)) for non-negative int64 tensors below 2**62."""
    v = v.to(torch.int64)
    r = torch.floor(torch.sqrt(v.to(torch.float64))).to(torch.int64)
    r = torch.where((r + 1) * (r + 1) <= v, r + 1, r)
    r = torch.where(r * r > v, r - 1, r)
    return r


def _fold_phi(phi: Tensor) -> Tensor:
    """Longitude folded into [0, 2pi), never returning 2pi itself."""
    out = torch.remainder(phi, TWO_PI)
    return torch.where(out >= TWO_PI, torch.zeros_like(out), out)


def _angles_to_zphi(theta: Tensor | float, phi: Tensor | float) -> Tuple[Tensor, Tensor, Tensor, Tensor]:
    """
    Return (z, sin_theta, have_sin, phi) for colatitude/longitude inputs.

    `have_sin` marks points close enough to a pole that the cap projection
    must use sin(theta) directly.
    """
    theta_t = _as_float64(theta)
    phi_t = _as_float64(phi).to(device=theta_t.device)
    theta_t, phi_t = torch.broadcast_tensors(theta_t, phi_t)
    z = torch.cos(theta_t)
    s = torch.sin(theta_t)
    have_s = (theta_t < _POLAR_THETA) | (theta_t > (math.pi - _POLAR_THETA))
    return z, s, have_s, phi_t


def _vectors_to_zphi(vectors: Tensor | Sequence[float] | Sequence[Sequence[float]]) -> Tuple[Tensor, Tensor, Tensor, Tensor]:
    """Return (z, sin_theta, have_sin, phi) for direction vectors [..., 3]."""
    v = _as_float64(vectors)
    if v.ndim == 0 or v.shape[-1] != 3:
        raise ValueError("vectors must have last dimension size 3")
    x, y, zc = v[..., 0], v[..., 1], v[..., 2]
    rxy = torch.hypot(x, y)
    vlen = torch.hypot(rxy, zc)
    z = zc / vlen
    s = rxy / vlen
    have_s = torch.abs(z) > _POLAR_Z
    phi = torch.atan2(y, x)
    return z, s, have_s, phi


def _cap_extent(nside: int, za: Tensor, s: Tensor, have_s: Tensor) -> Tensor:
    """nside * sqrt(3 (1 - |z|)), evaluated without cancellation near the poles."""
    from_z = nside * torch.sqrt(torch.clamp(3.0 * (1.0 - za), min=0.0))
    from_s = nside * s / torch.sqrt((1.0 + za) / 3.0)
    return torch.where(have_s, from_s, from_z)


def _zsphi_to_angles(z: Tensor, s: Tensor, phi: Tensor) -> Tuple[Tensor, Tensor]:
    return torch.atan2(s, z), _fold_phi(phi)


def _zsphi_to_vectors(z: Tensor, s: Tensor, phi: Tensor) -> Tensor:
    return torch.stack((s * torch.cos(phi), s * torch.sin(phi), z), dim=-1)
