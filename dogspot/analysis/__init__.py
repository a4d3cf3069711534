"""Analysis modules."""

from .peaks import ExtremumType, Peak, find_extrema, extract_peaks
from .subpixel import localize_peak, localize_peaks
from .spots import Spot, assemble_spots
from .suppression import suppress_overlapping_spots
from .dog_detector import DetectionResult, DogDetector, detect

__all__ = [
    "ExtremumType",
    "Peak",
    "find_extrema",
    "extract_peaks",
    "localize_peak",
    "localize_peaks",
    "Spot",
    "assemble_spots",
    "suppress_overlapping_spots",
    "DetectionResult",
    "DogDetector",
    "detect",
]
