"""Median filter pre-processing for the DoG detector.

The detector treats this step as a black box: it either returns an image of
the same extent or raises :class:`MedianFilterError`.
"""

from __future__ import annotations

import logging

import numpy as np
from skimage.filters import median

from ..core.exceptions import MedianFilterError

logger = logging.getLogger(__name__)


def apply_median_filter(image: np.ndarray, radius: int = 1) -> np.ndarray:
    """Apply an n-dimensional box median filter.

    Args:
        image: Input image of any dimensionality.
        radius: Half-width of the box footprint; the footprint spans
            ``2 * radius + 1`` pixels along every axis.

    Returns:
        Filtered image with the same shape and dtype as the input.

    Raises:
        MedianFilterError: If the filter cannot be applied.
    """
    arr = np.asarray(image)
    if radius < 1:
        raise MedianFilterError(f"Median filter radius must be >= 1, got {radius}")

    footprint = np.ones((2 * radius + 1,) * arr.ndim, dtype=bool)
    try:
        # Values outside the image count as zero.
        filtered = median(arr, footprint=footprint, mode="constant", cval=0, behavior="ndimage")
    except (ValueError, TypeError, RuntimeError) as exc:
        raise MedianFilterError(f"Median filter failed: {exc}") from exc
    except MemoryError as exc:
        raise MedianFilterError("Could not allocate the median filter output.") from exc

    if filtered is None or filtered.shape != arr.shape:
        raise MedianFilterError(
            f"Median filter returned shape {getattr(filtered, 'shape', None)}, expected {arr.shape}"
        )

    logger.debug(f"Applied median filter with footprint {footprint.shape}")
    return filtered
