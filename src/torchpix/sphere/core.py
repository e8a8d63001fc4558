"""Cartesian vector primitives on the unit sphere."""

from __future__ import annotations

import math
from typing import Sequence

import torch
from torch import Tensor


def _float_dtype(device: torch.device) -> torch.dtype:
    return torch.float32 if device.type == "mps" else torch.float64


def _as_float_tensor(x: Tensor | float | Sequence[float]) -> Tensor:
    if not isinstance(x, Tensor):
        return torch.as_tensor(x, dtype=torch.float64)
    t = x
    if t.is_floating_point():
        return t
    return t.to(dtype=_float_dtype(t.device))


def _as_vectors(v: Tensor | Sequence[float] | Sequence[Sequence[float]]) -> Tensor:
    t = _as_float_tensor(v)
    if t.ndim == 0 or t.shape[-1] != 3:
        raise ValueError("vectors must have last dimension size 3")
    return t


def ang2vec(theta: Tensor | float, phi: Tensor | float) -> Tensor:
    """
    Convert colatitude/longitude (radians) to unit vectors.

    Returns a tensor with last dimension 3. Angles outside [0, pi] x [0, 2pi)
    are not rejected.
    """
    theta_t = _as_float_tensor(theta)
    phi_t = _as_float_tensor(phi).to(device=theta_t.device, dtype=theta_t.dtype)
    theta_t, phi_t = torch.broadcast_tensors(theta_t, phi_t)
    sint = torch.sin(theta_t)
    return torch.stack(
        (sint * torch.cos(phi_t), sint * torch.sin(phi_t), torch.cos(theta_t)), dim=-1
    )


def vec2ang(vectors: Tensor | Sequence[float] | Sequence[Sequence[float]]) -> tuple[Tensor, Tensor]:
    """
    Convert vectors [..., 3] to (theta, phi) in radians.

    The vectors need not be normalized. Theta comes from atan2 rather than
    acos so it stays accurate close to the poles; phi is folded into [0, 2pi).
    """
    v = _as_vectors(vectors)
    x, y, z = v[..., 0], v[..., 1], v[..., 2]
    theta = torch.atan2(torch.hypot(x, y), z)
    phi = torch.atan2(y, x)
    phi = torch.where(phi < 0.0, phi + 2.0 * math.pi, phi)
    return theta, phi


def _cross(va: Tensor, vb: Tensor) -> Tensor:
    # Component-wise, so that a x a is exactly zero.
    ax, ay, az = va.unbind(-1)
    bx, by, bz = vb.unbind(-1)
    return torch.stack((ay * bz - az * by, az * bx - ax * bz, ax * by - ay * bx), dim=-1)


def cross_product(a: Tensor | Sequence[float], b: Tensor | Sequence[float]) -> Tensor:
    """Cross product of two (broadcastable) vector tensors, not normalized."""
    va = _as_vectors(a)
    vb = _as_vectors(b).to(device=va.device, dtype=va.dtype)
    va, vb = torch.broadcast_tensors(va, vb)
    return _cross(va, vb)


def angular_distance(a: Tensor | Sequence[float], b: Tensor | Sequence[float]) -> Tensor:
    """
    Angle in radians between two vectors of arbitrary length.

    Both inputs are normalized, then the angle is atan2(|a x b|, a . b),
    which keeps full precision for nearly parallel or antiparallel vectors.
    """
    va = _as_vectors(a)
    vb = _as_vectors(b).to(device=va.device, dtype=va.dtype)
    va = va / torch.linalg.norm(va, dim=-1, keepdim=True)
    vb = vb / torch.linalg.norm(vb, dim=-1, keepdim=True)
    va, vb = torch.broadcast_tensors(va, vb)
    cross = torch.linalg.norm(_cross(va, vb), dim=-1)
    dot = (va * vb).sum(dim=-1)
    return torch.atan2(cross, dot)


def euclidean_distance(a: Tensor | Sequence[float], b: Tensor | Sequence[float]) -> Tensor:
    """Straight-line distance between two points in R^3."""
    va = _as_vectors(a)
    vb = _as_vectors(b).to(device=va.device, dtype=va.dtype)
    return torch.linalg.norm(va - vb, dim=-1)


# Names used by the C interface.
vect_prod = cross_product
angdist = angular_distance
