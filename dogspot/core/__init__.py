"""Core infrastructure modules."""

from .config import DogDetectorSettings, create_default_settings
from .exceptions import DogSpotError, DetectionError, MedianFilterError
from .utils import (
    validate_calibration,
    as_working_image,
    convert_pixels_to_physical,
    convert_physical_to_pixels,
)

__all__ = [
    # Configuration
    "DogDetectorSettings",
    "create_default_settings",

    # Errors
    "DogSpotError",
    "DetectionError",
    "MedianFilterError",

    # Utility functions
    "validate_calibration",
    "as_working_image",
    "convert_pixels_to_physical",
    "convert_physical_to_pixels",
]
