"""
Local extremum search on a DoG response volume.

An element is a maximum (minimum) when it is strictly greater (smaller) than
every in-bounds neighbor of its full 3^n - 1 neighborhood. Maxima are then
kept only if the raw image intensity at the same pixel reaches the threshold.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import List, Tuple

import numpy as np
from scipy import ndimage as ndi

logger = logging.getLogger(__name__)


class ExtremumType(enum.IntEnum):
    """Signed extremum type of a peak."""

    MIN = -1
    MAX = 1


@dataclass(frozen=True)
class Peak:
    """A local extremum of the DoG response.

    Attributes:
        pixel: Integer pixel position where the extremum was found.
        position: Position in pixels; equal to ``pixel`` until refined.
        extremum: Whether the peak is a maximum or a minimum.
        value: DoG response at ``position``.
        refined: True when ``position`` holds a sub-pixel estimate.
        converged: False when sub-pixel refinement ran out of moves.
    """

    pixel: Tuple[int, ...]
    position: Tuple[float, ...]
    extremum: ExtremumType
    value: float
    refined: bool = False
    converged: bool = True

    @classmethod
    def at_pixel(cls, pixel, extremum: ExtremumType, value: float) -> "Peak":
        pixel = tuple(int(p) for p in pixel)
        return cls(
            pixel=pixel,
            position=tuple(float(p) for p in pixel),
            extremum=extremum,
            value=float(value),
        )

    def unrefined(self, converged: bool = True) -> "Peak":
        """Copy of this peak placed back on its integer pixel."""
        return replace(
            self,
            position=tuple(float(p) for p in self.pixel),
            refined=False,
            converged=converged,
        )


def _neighborhood_footprint(ndim: int) -> np.ndarray:
    footprint = np.ones((3,) * ndim, dtype=bool)
    footprint[(1,) * ndim] = False
    return footprint


def find_extrema(response: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Find strict local maxima and minima of a response volume.

    Positions outside the volume are excluded from the comparison, so border
    elements are tested against their in-bounds neighbors only.

    Args:
        response: n-dimensional response volume.

    Returns:
        Tuple of (maxima, minima) coordinate arrays, each of shape (N, ndim),
        in C order.
    """
    response = np.asarray(response, dtype=np.float64)
    footprint = _neighborhood_footprint(response.ndim)

    neighbor_max = ndi.maximum_filter(response, footprint=footprint, mode="constant", cval=-np.inf)
    neighbor_min = ndi.minimum_filter(response, footprint=footprint, mode="constant", cval=np.inf)

    is_max = response > neighbor_max
    is_min = response < neighbor_min

    return np.argwhere(is_max), np.argwhere(is_min)


def extract_peaks(
    response: np.ndarray,
    reference_image: np.ndarray,
    threshold: float,
) -> List[Peak]:
    """
    Extract thresholded maxima from a DoG response.

    Args:
        response: DoG response volume.
        reference_image: Image whose intensity at the peak pixel is compared
            against the threshold. Must have the same shape as ``response``.
        threshold: Minimum intensity for a maximum to be kept.

    Returns:
        List of maximum peaks in C order. Empty when nothing passes.
    """
    reference_image = np.asarray(reference_image)
    if reference_image.shape != response.shape:
        raise ValueError(
            f"Reference image shape {reference_image.shape} must match response shape {response.shape}"
        )

    maxima, minima = find_extrema(response)
    logger.debug(f"Found {len(maxima)} maxima and {len(minima)} minima in the DoG response")

    peaks: List[Peak] = []
    for coords in maxima:
        index = tuple(coords)
        if reference_image[index] < threshold:
            continue
        peaks.append(Peak.at_pixel(index, ExtremumType.MAX, response[index]))

    logger.info(f"{len(peaks)} of {len(maxima)} maxima pass the intensity threshold {threshold}")
    return peaks


__all__ = ["ExtremumType", "Peak", "find_extrema", "extract_peaks"]
