import math

import numpy as np
import pytest
import torch

from torchpix.sphere.core import (
    angdist,
    ang2vec,
    angular_distance,
    cross_product,
    euclidean_distance,
    vec2ang,
    vect_prod,
)


def _random_directions(n: int, seed: int = 0) -> tuple[torch.Tensor, torch.Tensor]:
    rng = np.random.default_rng(seed)
    theta = np.arccos(rng.uniform(-1.0, 1.0, n))
    phi = rng.uniform(0.0, 2.0 * np.pi, n)
    return torch.from_numpy(theta), torch.from_numpy(phi)


def test_ang2vec_axes() -> None:
    v = ang2vec(
        torch.tensor([0.0, math.pi / 2, math.pi / 2, math.pi], dtype=torch.float64),
        torch.tensor([0.0, 0.0, math.pi / 2, 0.0], dtype=torch.float64),
    )
    expected = torch.tensor(
        [[0.0, 0.0, 1.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, -1.0]],
        dtype=torch.float64,
    )
    torch.testing.assert_close(v, expected, atol=1e-15, rtol=0.0)


def test_ang2vec_is_unit_and_broadcasts() -> None:
    theta = torch.linspace(0.0, math.pi, 7, dtype=torch.float64).unsqueeze(-1)
    phi = torch.linspace(0.0, 6.0, 5, dtype=torch.float64)
    v = ang2vec(theta, phi)
    assert v.shape == (7, 5, 3)
    torch.testing.assert_close(
        torch.linalg.norm(v, dim=-1), torch.ones(7, 5, dtype=torch.float64)
    )


def test_vec2ang_roundtrip() -> None:
    theta, phi = _random_directions(5000, seed=1)
    theta2, phi2 = vec2ang(ang2vec(theta, phi))
    torch.testing.assert_close(theta2, theta, atol=1e-12, rtol=0.0)
    dphi = torch.remainder(phi2 - phi + math.pi, 2.0 * math.pi) - math.pi
    torch.testing.assert_close(dphi, torch.zeros_like(dphi), atol=1e-12, rtol=0.0)


def test_vec2ang_normalizes_and_folds_longitude() -> None:
    theta, phi = vec2ang(torch.tensor([0.0, -5.0, 5.0], dtype=torch.float64))
    assert math.isclose(float(theta), math.pi / 4, abs_tol=1e-15)
    assert math.isclose(float(phi), 1.5 * math.pi, abs_tol=1e-15)
    assert 0.0 <= float(phi) < 2.0 * math.pi


def test_vec2ang_rejects_bad_shape() -> None:
    with pytest.raises(ValueError):
        vec2ang(torch.zeros(4, 2))


def test_cross_product_basis() -> None:
    x = torch.tensor([1.0, 0.0, 0.0], dtype=torch.float64)
    y = torch.tensor([0.0, 1.0, 0.0], dtype=torch.float64)
    z = torch.tensor([0.0, 0.0, 1.0], dtype=torch.float64)
    torch.testing.assert_close(cross_product(x, y), z)
    torch.testing.assert_close(cross_product(y, x), -z)
    # not normalized
    torch.testing.assert_close(cross_product(2.0 * x, 3.0 * y), 6.0 * z)
    assert vect_prod is cross_product


def test_cross_product_of_parallel_vectors_is_exactly_zero() -> None:
    theta, phi = _random_directions(1000, seed=12)
    v = ang2vec(theta, phi)
    torch.testing.assert_close(cross_product(v, v), torch.zeros_like(v), atol=0.0, rtol=0.0)
    torch.testing.assert_close(cross_product(v, -v), torch.zeros_like(v), atol=0.0, rtol=0.0)
    w = torch.tensor([0.3, 0.4, math.sqrt(1.0 - 0.25)], dtype=torch.float64)
    assert float(angular_distance(w, w)) == 0.0


def test_angular_distance_identity_and_antipode() -> None:
    theta, phi = _random_directions(1000, seed=2)
    v = ang2vec(theta, phi)
    d_same = angular_distance(v, v)
    d_anti = angular_distance(v, -v)
    torch.testing.assert_close(d_same, torch.zeros_like(d_same), atol=0.0, rtol=0.0)
    torch.testing.assert_close(
        d_anti, torch.full_like(d_anti, math.pi), atol=1e-15, rtol=0.0
    )


def test_angular_distance_scale_invariant() -> None:
    theta, phi = _random_directions(500, seed=3)
    a = ang2vec(theta, phi)
    b = ang2vec(theta.flip(0), phi.flip(0))
    d = angular_distance(a, b)
    d_scaled = angular_distance(7.5 * a, 0.01 * b)
    torch.testing.assert_close(d, d_scaled, atol=1e-14, rtol=0.0)
    torch.testing.assert_close(d, angular_distance(b, a), atol=1e-14, rtol=0.0)
    assert angdist is angular_distance


def test_angular_distance_nearly_parallel() -> None:
    a = torch.tensor([1.0, 0.0, 0.0], dtype=torch.float64)
    b = torch.tensor([1.0, 1e-10, 0.0], dtype=torch.float64)
    d = angular_distance(a, b)
    assert math.isclose(float(d), 1e-10, rel_tol=1e-9)


def test_angular_distance_right_angle() -> None:
    d = angular_distance([3.0, 0.0, 0.0], [0.0, 0.0, -2.0])
    assert math.isclose(float(d), math.pi / 2, abs_tol=1e-15)


def test_euclidean_distance() -> None:
    a = torch.tensor([[1.0, 0.0, 0.0], [0.0, 0.0, 1.0]], dtype=torch.float64)
    b = torch.tensor([[-1.0, 0.0, 0.0], [0.0, 0.0, 1.0]], dtype=torch.float64)
    torch.testing.assert_close(
        euclidean_distance(a, b), torch.tensor([2.0, 0.0], dtype=torch.float64)
    )
