import pytest
import torch

from torchpix.errors import InvalidPixelError, InvalidResolutionError
from torchpix.healpix import (
    get_all_neighbours,
    neighbors,
    neighbours,
    nest2ring,
    nside2npix,
    nside2resol,
    pix2vec,
)
from torchpix.sphere import angular_distance


def test_interior_pixel() -> None:
    # face 4, ix=1, iy=1
    assert neighbours(4, 67).tolist() == [66, 72, 73, 76, 70, 68, 65, 64]


def test_base_pixel_nside1() -> None:
    assert neighbours(1, 0).tolist() == [4, -1, 3, 2, 1, -1, 5, 8]
    # RING and NEST coincide at nside 1
    assert torch.equal(neighbours(1, torch.arange(12), nest=False), neighbours(1, torch.arange(12)))


def test_nside1_every_pixel_has_six() -> None:
    nb = neighbours(1, torch.arange(12))
    assert ((nb >= 0).sum(dim=1) == 6).all()


@pytest.mark.parametrize("nside,nest", [(2, True), (4, True), (16, True), (2, False), (3, False), (5, False)])
def test_neighbour_counts(nside: int, nest: bool) -> None:
    nb = neighbours(nside, torch.arange(nside2npix(nside)), nest=nest)
    counts = (nb >= 0).sum(dim=1)
    assert bool(torch.all((counts == 7) | (counts == 8)))
    # three pixels at each of the eight vertices where three faces meet
    assert int((counts == 7).sum()) == 24


@pytest.mark.parametrize("nside,nest", [(2, True), (4, True), (8, True), (3, False)])
def test_neighbours_are_symmetric(nside: int, nest: bool) -> None:
    npix = nside2npix(nside)
    nb = neighbours(nside, torch.arange(npix), nest=nest)
    lists = [set(row) - {-1} for row in nb.tolist()]
    for p, row in enumerate(lists):
        assert p not in row
        for q in row:
            assert p in lists[q]


@pytest.mark.parametrize("nside", [4, 8])
def test_neighbours_are_distinct_and_close(nside: int) -> None:
    npix = nside2npix(nside)
    pix = torch.arange(npix)
    nb = neighbours(nside, pix)
    for row in nb.tolist():
        valid = [q for q in row if q >= 0]
        assert len(set(valid)) == len(valid)
    valid = nb >= 0
    centres = pix2vec(nside, pix, nest=True).unsqueeze(1).expand(-1, 8, -1)
    others = pix2vec(nside, torch.where(valid, nb, torch.zeros_like(nb)), nest=True)
    d = angular_distance(centres, others)[valid]
    # adjacent centres are never more than a few pixel widths apart
    assert float(d.max()) < 4.0 * nside2resol(nside)


def test_ring_matches_nest() -> None:
    nside = 8
    pix = torch.arange(nside2npix(nside))
    nb_nest = neighbours(nside, pix, nest=True)
    nb_ring = neighbours(nside, nest2ring(nside, pix), nest=False)
    assert torch.equal(nb_ring, nest2ring(nside, nb_nest))


def test_output_layout() -> None:
    pix = torch.arange(12).reshape(3, 4)
    assert neighbours(2, pix).shape == (3, 4, 8)
    assert get_all_neighbours(2, torch.arange(5)).shape == (8, 5)
    assert get_all_neighbours(2, 7).shape == (8,)
    assert torch.equal(get_all_neighbours(2, torch.arange(5)).T, neighbours(2, torch.arange(5)))
    assert neighbors is neighbours


def test_invalid_inputs() -> None:
    with pytest.raises(InvalidPixelError):
        neighbours(4, 192)
    with pytest.raises(InvalidPixelError):
        neighbours(3, torch.tensor([0, -1]), nest=False)
    with pytest.raises(InvalidResolutionError):
        neighbours(3, 0)
