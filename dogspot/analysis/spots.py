"""Spot construction from DoG peaks."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from ..core.utils import convert_pixels_to_physical
from .peaks import Peak

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Spot:
    """A detected blob in physical coordinates.

    Attributes:
        position: Center in physical units, one value per image axis.
        quality: Ranking score, higher is better.
        radius: Blob radius in physical units.
    """

    position: Tuple[float, ...]
    quality: float
    radius: float

    @property
    def ndim(self) -> int:
        return len(self.position)

    def distance_to(self, other: "Spot") -> float:
        """Euclidean distance between the two centers."""
        return math.sqrt(sum((a - b) ** 2 for a, b in zip(self.position, other.position)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": list(self.position),
            "quality": self.quality,
            "radius": self.radius,
        }


def spot_quality(peak: Peak) -> float:
    """Quality of the spot built from ``peak``.

    The response is ``blur(inner) - blur(outer)``, positive on bright blobs,
    so the quality is the response itself: the negated outer-minus-inner
    difference.
    """
    return float(peak.value)


def assemble_spots(
    peaks: Sequence[Peak],
    calibration: Sequence[float],
    radius: float,
) -> List[Spot]:
    """
    Build one spot per peak.

    Args:
        peaks: Peaks at integer or sub-pixel positions.
        calibration: Pixel size per axis.
        radius: Radius given to every spot.

    Returns:
        List of spots, in the order of ``peaks``.
    """
    spots: List[Spot] = []
    for peak in peaks:
        position = tuple(float(v) for v in convert_pixels_to_physical(peak.position, calibration))
        spots.append(Spot(position=position, quality=spot_quality(peak), radius=float(radius)))
    logger.debug(f"Assembled {len(spots)} spots with radius {radius}")
    return spots


__all__ = ["Spot", "spot_quality", "assemble_spots"]
