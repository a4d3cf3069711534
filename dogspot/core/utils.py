"""
Utility functions for the DoG spot detector.
Helpers for calibration handling, input validation and unit conversion.
"""

from typing import Sequence, Tuple, Union
import logging
import math

import numpy as np


logger = logging.getLogger(__name__)


def validate_calibration(calibration: Sequence[float], ndim: int) -> Tuple[float, ...]:
    """Validate a per-axis calibration vector.

    Args:
        calibration: Physical size of one pixel along each axis.
        ndim: Number of image dimensions.

    Returns:
        Tuple[float, ...]: Calibration as a tuple of floats.

    Raises:
        ValueError: If the length does not match or a value is not positive.
    """
    values = tuple(float(c) for c in calibration)
    if len(values) != ndim:
        raise ValueError(
            f"Calibration has {len(values)} values but the image has {ndim} dimensions"
        )
    for axis, value in enumerate(values):
        if not math.isfinite(value) or value <= 0:
            raise ValueError(f"Calibration for axis {axis} must be positive, got {value}")
    return values


def as_working_image(image: np.ndarray) -> np.ndarray:
    """Return a float64 working copy of a real-valued image.

    Any real numeric dtype is accepted (bool, integers, floats). The input
    array is never modified.

    Raises:
        ValueError: If the image is empty, complex or not numeric.
    """
    arr = np.asarray(image)
    if arr.ndim == 0:
        raise ValueError("Image must have at least one dimension")
    if arr.size == 0:
        raise ValueError(f"Image is empty: shape {arr.shape}")
    if arr.dtype != np.bool_ and not np.issubdtype(arr.dtype, np.integer) \
            and not np.issubdtype(arr.dtype, np.floating):
        raise ValueError(f"Unsupported image dtype: {arr.dtype}")
    return arr.astype(np.float64, copy=True)


def convert_pixels_to_physical(pixels: Union[float, np.ndarray],
                               calibration: Union[float, Sequence[float]]) -> np.ndarray:
    """Convert pixel coordinates to physical coordinates.

    Args:
        pixels: Coordinates in pixels, last axis indexed by image axis.
        calibration: Pixel size per axis (or a scalar for isotropic images).

    Returns:
        np.ndarray: Coordinates in physical units.
    """
    return np.asarray(pixels, dtype=np.float64) * np.asarray(calibration, dtype=np.float64)


def convert_physical_to_pixels(physical: Union[float, np.ndarray],
                               calibration: Union[float, Sequence[float]]) -> np.ndarray:
    """Convert physical coordinates to pixel coordinates."""
    return np.asarray(physical, dtype=np.float64) / np.asarray(calibration, dtype=np.float64)
