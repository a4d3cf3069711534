"""Error types raised by the detection stages.

Stage functions raise these; only the top-level detector converts them into
a failed :class:`~dogspot.analysis.dog_detector.DetectionResult`.
"""


class DogSpotError(Exception):
    """Base class for all dogspot errors."""


class DetectionError(DogSpotError):
    """A fatal failure inside the scale-space or localization stages."""


class MedianFilterError(DogSpotError):
    """The median filter pre-processing step could not produce an image."""


__all__ = ["DogSpotError", "DetectionError", "MedianFilterError"]
