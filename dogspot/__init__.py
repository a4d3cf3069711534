"""
dogspot: Difference-of-Gaussians spot detection for calibrated n-dimensional images.

Detects blobs of a given radius with sub-pixel localization and removes
overlapping detections, keeping the strongest ones.
"""

__version__ = "0.1.0"

# Core utilities
from .core import (
    DogDetectorSettings,
    create_default_settings,
    DogSpotError,
    DetectionError,
    MedianFilterError,
    validate_calibration,
    convert_pixels_to_physical,
    convert_physical_to_pixels,
)

# Imaging preprocessing
from .imaging_preprocessing import (
    ScaleVector,
    apply_median_filter,
    compute_sigmas,
    gaussian_blur,
    difference_of_gaussian,
)

# Visualization
from .visualization import plot_spots

# Analysis modules
from .analysis import (
    ExtremumType,
    Peak,
    Spot,
    DetectionResult,
    DogDetector,
    detect,
    extract_peaks,
    localize_peaks,
    assemble_spots,
    suppress_overlapping_spots,
)

# Export all public components
__all__ = [
    # Version
    "__version__",

    # Core
    "DogDetectorSettings",
    "create_default_settings",
    "DogSpotError",
    "DetectionError",
    "MedianFilterError",
    "validate_calibration",
    "convert_pixels_to_physical",
    "convert_physical_to_pixels",

    # Imaging preprocessing
    "ScaleVector",
    "apply_median_filter",
    "compute_sigmas",
    "gaussian_blur",
    "difference_of_gaussian",

    # Visualization
    "plot_spots",

    # Analysis
    "ExtremumType",
    "Peak",
    "Spot",
    "DetectionResult",
    "DogDetector",
    "detect",
    "extract_peaks",
    "localize_peaks",
    "assemble_spots",
    "suppress_overlapping_spots",
]
