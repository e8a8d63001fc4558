"""Spherical vector geometry."""

from .core import (
    angdist,
    ang2vec,
    angular_distance,
    cross_product,
    euclidean_distance,
    vec2ang,
    vect_prod,
)

__all__ = [
    "ang2vec",
    "vec2ang",
    "cross_product",
    "angular_distance",
    "euclidean_distance",
    "vect_prod",
    "angdist",
]
