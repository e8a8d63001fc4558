import math

import numpy as np
import pytest
import torch

from torchpix.errors import InvalidPixelError, InvalidResolutionError
from torchpix.healpix import (
    ang2pix,
    ang2pix_nest,
    ang2pix_ring,
    nside2npix,
    nside2resol,
    pix2ang,
    pix2ang_ring,
    pix2vec_ring,
    ring2xyf,
    vec2pix_nest,
    vec2pix_ring,
    xyf2ring,
)
from torchpix.healpix._common import _cpu_float64
from torchpix.sphere import ang2vec, angular_distance


def _random_angles(n: int, seed: int = 0) -> tuple[torch.Tensor, torch.Tensor]:
    rng = np.random.default_rng(seed)
    theta = np.arccos(rng.uniform(-1.0, 1.0, n))
    phi = rng.uniform(0.0, 2.0 * np.pi, n)
    return torch.from_numpy(theta), torch.from_numpy(phi)


def test_equator_scenario() -> None:
    # vertex point: cos(pi/2) is slightly positive, so it falls in ring 4
    assert int(ang2pix_ring(4, math.pi / 2, 0.0)) == 72
    assert int(ang2pix_ring(4, math.pi / 2, math.pi / 16)) == 88
    theta, phi = pix2ang_ring(4, 88)
    assert math.isclose(float(theta), math.pi / 2, abs_tol=1e-15)
    assert math.isclose(float(phi), math.pi / 16, abs_tol=1e-15)


def test_first_and_last_pixels() -> None:
    for nside in (1, 3, 16):
        npix = nside2npix(nside)
        assert int(ang2pix_ring(nside, 0.0, 0.3)) == 0
        assert int(ang2pix_ring(nside, math.pi, 0.3)) == npix - 4
        assert int(ang2pix_ring(nside, math.pi, 2.0 * math.pi - 1e-9)) == npix - 1


@pytest.mark.parametrize("nside", [1, 2, 3, 4, 5, 7, 8, 16, 33])
def test_pixel_centres_roundtrip(nside: int) -> None:
    pix = torch.arange(nside2npix(nside), dtype=torch.int64)
    theta, phi = pix2ang_ring(nside, pix)
    assert bool(torch.all((theta >= 0.0) & (theta <= math.pi)))
    assert bool(torch.all((phi >= 0.0) & (phi < 2.0 * math.pi)))
    assert torch.equal(ang2pix_ring(nside, theta, phi), pix)
    assert torch.equal(vec2pix_ring(nside, pix2vec_ring(nside, pix)), pix)


@pytest.mark.parametrize("nside", [1, 2, 3, 6, 16])
def test_ring_layout(nside: int) -> None:
    pix = torch.arange(nside2npix(nside), dtype=torch.int64)
    theta, _ = pix2ang_ring(nside, pix)
    # iso-latitude rings, numbered north to south
    assert bool(torch.all(theta[1:] >= theta[:-1]))
    z = pix2vec_ring(nside, pix)[:, 2]
    assert torch.unique(z).numel() == 4 * nside - 1


def test_pix2vec_is_unit() -> None:
    v = pix2vec_ring(7, torch.arange(nside2npix(7)))
    torch.testing.assert_close(
        torch.linalg.norm(v, dim=-1), torch.ones(v.shape[0], dtype=torch.float64),
        atol=1e-14, rtol=0.0,
    )


@pytest.mark.parametrize("nside", [1, 5, 64, 1000])
def test_vec2pix_matches_ang2pix(nside: int) -> None:
    theta, phi = _random_angles(20000, seed=nside)
    vec = ang2vec(theta, phi)
    expected = ang2pix_ring(nside, theta, phi)
    assert torch.equal(vec2pix_ring(nside, vec), expected)
    # scaling the vectors must not change the pixel
    assert torch.equal(vec2pix_ring(nside, 3.7 * vec), expected)


def test_point_inside_returned_pixel() -> None:
    nside = 32
    theta, phi = _random_angles(5000, seed=5)
    pix = ang2pix_ring(nside, theta, phi)
    d = angular_distance(ang2vec(theta, phi), pix2vec_ring(nside, pix))
    assert float(d.max()) < 2.0 * nside2resol(nside)


def test_broadcasting_shapes() -> None:
    theta = torch.linspace(0.1, 3.0, 3, dtype=torch.float64).unsqueeze(-1)
    phi = torch.linspace(0.0, 6.0, 4, dtype=torch.float64)
    pix = ang2pix_ring(8, theta, phi)
    assert pix.shape == (3, 4)
    assert pix.dtype == torch.int64
    t2, p2 = pix2ang_ring(8, pix)
    assert t2.shape == (3, 4) and p2.shape == (3, 4)
    assert pix2vec_ring(8, pix).shape == (3, 4, 3)


def test_longitude_wraps() -> None:
    theta = torch.full((4,), 1.0, dtype=torch.float64)
    phi = torch.tensor([0.5, 0.5 + 2 * math.pi, 0.5 - 2 * math.pi, 0.5 + 6 * math.pi], dtype=torch.float64)
    pix = ang2pix_ring(16, theta, phi)
    assert torch.unique(pix).numel() == 1


def test_near_pole_points() -> None:
    nside = 1 << 20
    theta = torch.tensor([1e-9, 1e-7, 1e-5, 0.009, math.pi - 1e-7, math.pi - 1e-9], dtype=torch.float64)
    phi = torch.full_like(theta, 0.3)
    pix = ang2pix_ring(nside, theta, phi)
    d = angular_distance(ang2vec(theta, phi), pix2vec_ring(nside, pix))
    assert float(d.max()) < 2.0 * nside2resol(nside)


def test_largest_nside_roundtrip() -> None:
    nside = 1 << 29
    npix = nside2npix(nside)
    ncap = 2 * nside * (nside - 1)
    pix = torch.tensor(
        [
            0, 1, 2, 3, 4, 12345,
            ncap - 1, ncap, ncap + 1,
            2**33 + 7, 2**40 + 3, 2**57 + 123,
            npix // 2, npix // 2 + 98765,
            npix - ncap - 1, npix - ncap,
            npix - 5, npix - 1,
        ],
        dtype=torch.int64,
    )
    theta, phi = pix2ang_ring(nside, pix)
    assert torch.equal(ang2pix_ring(nside, theta, phi), pix)
    assert torch.equal(vec2pix_ring(nside, pix2vec_ring(nside, pix)), pix)


def test_uniform_area() -> None:
    nside = 3
    npix = nside2npix(nside)
    n = 5000 * npix
    g = torch.Generator().manual_seed(1234)
    vec = torch.randn(n, 3, generator=g, dtype=torch.float64)
    counts = torch.bincount(vec2pix_ring(nside, vec), minlength=npix).to(torch.float64)
    expected = n / npix
    chi2 = float(((counts - expected) ** 2 / expected).sum())
    # npix - 1 degrees of freedom
    assert chi2 < 2.0 * (npix - 1)


@pytest.mark.parametrize("nside", [1, 2, 3, 8])
def test_xyf_roundtrip(nside: int) -> None:
    pix = torch.arange(nside2npix(nside), dtype=torch.int64)
    ix, iy, face = ring2xyf(nside, pix)
    assert bool(torch.all((ix >= 0) & (ix < nside) & (iy >= 0) & (iy < nside)))
    assert torch.equal(torch.bincount(face, minlength=12), torch.full((12,), nside * nside))
    assert torch.equal(xyf2ring(nside, ix, iy, face), pix)


def test_dispatch_defaults_to_ring() -> None:
    assert int(ang2pix(4, math.pi / 2, 0.0)) == 72
    assert int(ang2pix(4, math.pi / 2, math.pi / 16)) == 88
    theta, phi = pix2ang(4, 88)
    assert math.isclose(float(phi), math.pi / 16, abs_tol=1e-15)


def test_invalid_inputs() -> None:
    with pytest.raises(InvalidPixelError):
        pix2ang_ring(4, 192)
    with pytest.raises(InvalidPixelError):
        pix2vec_ring(4, torch.tensor([-1]))
    with pytest.raises(InvalidResolutionError):
        ang2pix_ring(0, 0.5, 0.5)
    with pytest.raises(TypeError):
        pix2ang_ring(4, torch.tensor([1.0]))
    with pytest.raises(ValueError):
        vec2pix_ring(4, torch.zeros(5, 2))


def test_cpu_float64_widens_after_leaving_device() -> None:
    x = torch.tensor([0.1 + 1e-12, 2.5], dtype=torch.float64)
    y = _cpu_float64(x)
    assert y.dtype == torch.float64 and y.device.type == "cpu"
    assert torch.equal(y, x)
    assert _cpu_float64(0.1).dtype == torch.float64
    assert torch.equal(_cpu_float64(x.to(torch.float32)), x.to(torch.float32).to(torch.float64))


@pytest.mark.skipif(
    not (hasattr(torch.backends, "mps") and torch.backends.mps.is_available()),
    reason="MPS not available",
)
def test_indexers_on_mps_match_cpu() -> None:
    theta, phi = _random_angles(2000, seed=21)
    theta32, phi32 = theta.to(torch.float32), phi.to(torch.float32)
    vec32 = ang2vec(theta, phi).to(torch.float32)
    for ang2pix_fn, vec2pix_fn in ((ang2pix_ring, vec2pix_ring), (ang2pix_nest, vec2pix_nest)):
        got = ang2pix_fn(64, theta32.to("mps"), phi32.to("mps"))
        assert got.device.type == "mps"
        assert torch.equal(got.cpu(), ang2pix_fn(64, theta32, phi32))
        got = vec2pix_fn(64, vec32.to("mps"))
        assert got.device.type == "mps"
        assert torch.equal(got.cpu(), vec2pix_fn(64, vec32))
