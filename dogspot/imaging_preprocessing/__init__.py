"""Imaging preprocessing utilities."""

from .median_filter import apply_median_filter
from .scale_space import (
    ScaleVector,
    compute_sigmas,
    gaussian_blur,
    difference_of_gaussian,
)

__all__ = [
    "apply_median_filter",
    "ScaleVector",
    "compute_sigmas",
    "gaussian_blur",
    "difference_of_gaussian",
]
