"""Visualization modules."""

from .visualization import plot_spots

__all__ = [
    "plot_spots",
]
