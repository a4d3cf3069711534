"""
Scale-space filtering for DoG spot detection.

Provides the scale pair derivation for a target blob radius, a separable
Gaussian blur with a mirrored, exponentially windowed boundary, and the
difference of two such blurs.

Workflow:
- Derive inner/outer sigmas (pixel units) from radius and calibration
- Blur the working image at both scales, one 1-D pass per axis
- Subtract: response = blur(inner) - blur(outer)
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy.ndimage import convolve1d

from ..core.exceptions import DetectionError


# =============================================================================
# Module-level constants
# =============================================================================
_FADE_AREA_FACTOR = 0.2  # Fraction of the axis extent used for the fade-out
_FADE_EXPONENT = 10.0  # Steepness of the exponential window
_MIN_FADE_DISTANCE = 6  # Minimum fade-out distance in pixels

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScaleVector:
    """Inner and outer Gaussian sigmas, one entry per axis, in pixels."""

    sigma_inner: Tuple[float, ...]
    sigma_outer: Tuple[float, ...]

    @property
    def ndim(self) -> int:
        return len(self.sigma_inner)


def compute_sigmas(radius: float, calibration: Sequence[float], ndim: Optional[int] = None) -> ScaleVector:
    """
    Derive the DoG scale pair for blobs of a given physical radius.

    The inner sigma is ``2 / (1 + sqrt(n)) * r / c[i]`` and the outer sigma is
    ``sqrt(n)`` times the inner one, which makes the difference of the two
    blurs approximate the normalized Laplacian of Gaussian for a blob of
    radius ``r``.

    Args:
        radius: Expected blob radius in physical units (> 0).
        calibration: Pixel size per axis in physical units (all > 0).
        ndim: Number of dimensions. Defaults to ``len(calibration)``.

    Returns:
        ScaleVector with per-axis sigmas in pixel units.
    """
    if ndim is None:
        ndim = len(calibration)
    root_n = math.sqrt(ndim)
    inner = tuple(2.0 / (1.0 + root_n) * radius / calibration[i] for i in range(ndim))
    outer = tuple(root_n * s for s in inner)
    return ScaleVector(sigma_inner=inner, sigma_outer=outer)


def halfkernel_size(sigma: float) -> int:
    """Number of samples in a Gaussian half-kernel, center included."""
    return max(2, int(3 * sigma + 0.5) + 1)


def gaussian_kernel(sigma: float) -> np.ndarray:
    """Normalized, symmetric 1-D Gaussian kernel of odd length."""
    size = halfkernel_size(sigma)
    x = np.arange(-(size - 1), size, dtype=np.float64)
    if sigma <= 0:
        kernel = (x == 0).astype(np.float64)
    else:
        kernel = np.exp(-(x * x) / (2.0 * sigma * sigma))
    return kernel / kernel.sum()


def fade_weights(pad: int, extent: int) -> np.ndarray:
    """
    Exponential window weights for the samples outside one border.

    Weight ``w[k]`` applies to the ``k``-th sample beyond the border
    (``k = 0`` is the first outside sample). The window starts at 1 and
    reaches 0 at the fade-out distance; samples further out are zero.

    Args:
        pad: Number of outside samples needed.
        extent: Size of the image along this axis.

    Returns:
        Array of ``pad`` weights in [0, 1].
    """
    fade = max(_MIN_FADE_DISTANCE, int(extent * _FADE_AREA_FACTOR / 2))
    weights = np.zeros(pad, dtype=np.float64)
    n = min(pad, fade)
    rel = np.arange(n, dtype=np.float64) / (fade - 1.0)
    weights[:n] = (1.0 - 1.0 / np.power(_FADE_EXPONENT, 1.0 - rel)) * (1.0 + 1.0 / (_FADE_EXPONENT - 1.0))
    return np.clip(weights, 0.0, 1.0)


def extend_mirror_exp_window(volume: np.ndarray, pad: int, axis: int) -> np.ndarray:
    """
    Pad one axis with mirrored values faded out by an exponential window.

    The mirror does not repeat the border sample. A hard zero boundary
    would create spurious maxima at the image edge.
    """
    extent = volume.shape[axis]
    pad_width = [(0, 0)] * volume.ndim
    pad_width[axis] = (pad, pad)
    mode = "reflect" if extent > 1 else "edge"
    extended = np.pad(volume, pad_width, mode=mode)

    weights = fade_weights(pad, extent)
    shape = [1] * volume.ndim
    shape[axis] = pad

    before = [slice(None)] * volume.ndim
    before[axis] = slice(0, pad)
    after = [slice(None)] * volume.ndim
    after[axis] = slice(pad + extent, None)

    # Outside samples are ordered away from the border on both sides.
    extended[tuple(before)] *= weights[::-1].reshape(shape)
    extended[tuple(after)] *= weights.reshape(shape)
    return extended


def gaussian_blur(volume: np.ndarray, sigma: Sequence[float]) -> np.ndarray:
    """
    Separable Gaussian blur with per-axis sigma.

    Args:
        volume: Floating point n-dimensional array.
        sigma: Standard deviation per axis, in pixels.

    Returns:
        Blurred float64 array of the same shape.
    """
    if len(sigma) != volume.ndim:
        raise DetectionError(
            f"Got {len(sigma)} sigmas for a {volume.ndim}-dimensional image"
        )

    result = np.asarray(volume, dtype=np.float64)
    for axis, s in enumerate(sigma):
        kernel = gaussian_kernel(s)
        pad = kernel.size // 2
        extended = extend_mirror_exp_window(result, pad, axis)
        blurred = convolve1d(extended, kernel, axis=axis, mode="constant", cval=0.0)
        crop = [slice(None)] * volume.ndim
        crop[axis] = slice(pad, pad + volume.shape[axis])
        result = blurred[tuple(crop)]
    return np.ascontiguousarray(result)


def difference_of_gaussian(
    working: np.ndarray,
    scales: ScaleVector,
    *,
    num_threads: int = 1,
) -> np.ndarray:
    """
    Compute the DoG response ``blur(sigma_inner) - blur(sigma_outer)``.

    Args:
        working: Working image (float), possibly median filtered.
        scales: Inner and outer sigmas from :func:`compute_sigmas`.
        num_threads: Number of threads used for the two blurs. The detector
            keeps this at 1 and parallelizes across frames instead.

    Returns:
        Response volume (float64) with the same shape as ``working``.

    Raises:
        DetectionError: If the intermediate buffers cannot be allocated or
            the scales do not match the image dimensionality.
    """
    if num_threads < 1:
        raise DetectionError(f"num_threads must be >= 1, got {num_threads}")
    if scales.ndim != working.ndim:
        raise DetectionError(
            f"Scale vector has {scales.ndim} axes but the image has {working.ndim}"
        )

    try:
        if num_threads == 1:
            inner = gaussian_blur(working, scales.sigma_inner)
            outer = gaussian_blur(working, scales.sigma_outer)
        else:
            with ThreadPoolExecutor(max_workers=min(2, num_threads)) as pool:
                inner_future = pool.submit(gaussian_blur, working, scales.sigma_inner)
                outer_future = pool.submit(gaussian_blur, working, scales.sigma_outer)
                inner = inner_future.result()
                outer = outer_future.result()
        response = inner - outer
    except MemoryError as exc:
        raise DetectionError(
            f"Could not allocate intermediate buffers for an image of shape {working.shape}."
        ) from exc

    logger.info(
        f"DoG response computed: shape={response.shape}, "
        f"range=[{float(response.min()):.4g}, {float(response.max()):.4g}]"
    )
    return response


__all__ = [
    "ScaleVector",
    "compute_sigmas",
    "halfkernel_size",
    "gaussian_kernel",
    "fade_weights",
    "extend_mirror_exp_window",
    "gaussian_blur",
    "difference_of_gaussian",
]
