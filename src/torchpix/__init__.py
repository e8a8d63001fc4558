"""
torchpix: HEALPix pixelization for PyTorch

Exact, vectorised mappings between sky directions and equal-area HEALPix
pixel indices in both RING and NEST ordering, conversion between the two
orderings, and neighbour lookup. All operations run on torch tensors on any
device.
"""

from . import chealpix, healpix, sphere
from .errors import HealpixError, InvalidPixelError, InvalidResolutionError
from .healpix import (
    NSIDE_MAX,
    NSIDE_MAX64,
    ang2pix,
    ang2pix_nest,
    ang2pix_ring,
    get_all_neighbours,
    isnpixok,
    isnsideok,
    neighbours,
    nest2ring,
    npix2nside,
    nside2npix,
    pix2ang,
    pix2ang_nest,
    pix2ang_ring,
    pix2vec,
    pix2vec_nest,
    pix2vec_ring,
    reorder,
    ring2nest,
    vec2pix,
    vec2pix_nest,
    vec2pix_ring,
)
from .logging import set_log_level
from .sphere import ang2vec, angular_distance, cross_product, euclidean_distance, vec2ang

__version__ = "0.1.0"
__all__ = [
    # Sub-modules
    "healpix", "sphere", "chealpix",
    # Resolution
    "NSIDE_MAX", "NSIDE_MAX64", "nside2npix", "npix2nside", "isnsideok", "isnpixok",
    # Indexers
    "ang2pix", "pix2ang", "vec2pix", "pix2vec",
    "ang2pix_ring", "pix2ang_ring", "vec2pix_ring", "pix2vec_ring",
    "ang2pix_nest", "pix2ang_nest", "vec2pix_nest", "pix2vec_nest",
    # Conversion and neighbours
    "ring2nest", "nest2ring", "reorder", "neighbours", "get_all_neighbours",
    # Vector geometry
    "ang2vec", "vec2ang", "cross_product", "angular_distance", "euclidean_distance",
    # Errors and logging
    "HealpixError", "InvalidResolutionError", "InvalidPixelError", "set_log_level",
]
