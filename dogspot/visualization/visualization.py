"""
Visualization of detected spots.
Overlays spot outlines on a 2D image or on the maximum projection of a volume.
"""

from typing import Optional, Sequence, Tuple
import logging

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.patches import Ellipse

from ..analysis.spots import Spot


logger = logging.getLogger(__name__)


def plot_spots(image: np.ndarray,
               spots: Sequence[Spot],
               calibration: Sequence[float],
               title: Optional[str] = None,
               colormap: str = 'gray',
               edgecolor: str = 'magenta',
               figsize: Tuple[int, int] = (8, 8),
               ax: Optional[Axes] = None) -> Tuple[Figure, Axes]:
    """Plot an image with one outline per spot.

    Volumes with more than two axes are shown as a maximum projection over
    the leading axes; spot positions use the last two axes.

    Args:
        image: Image array (..., Y, X).
        spots: Spots in physical coordinates.
        calibration: Pixel size per axis, used to place spots in pixels.
        title: Plot title.
        colormap: Colormap for the image.
        edgecolor: Outline color.
        figsize: Figure size.
        ax: Existing axes to plot on.

    Returns:
        Tuple[Figure, Axes]: Figure and axes objects.
    """
    image = np.asarray(image)
    if image.ndim < 2:
        raise ValueError(f"Need at least a 2D image, got {image.ndim}D")
    if len(calibration) != image.ndim:
        raise ValueError(f"Calibration has {len(calibration)} values for a {image.ndim}D image")

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    plane = image.max(axis=tuple(range(image.ndim - 2))) if image.ndim > 2 else image
    ax.imshow(plane, cmap=colormap, origin='upper')

    cal_y, cal_x = calibration[-2], calibration[-1]
    for spot in spots:
        y, x = spot.position[-2] / cal_y, spot.position[-1] / cal_x
        # Radius is physical, so the outline is an ellipse on anisotropic grids.
        ax.add_patch(Ellipse((x, y), width=2 * spot.radius / cal_x, height=2 * spot.radius / cal_y,
                             fill=False, edgecolor=edgecolor, linewidth=1.0))

    ax.set_title(title or f"{len(spots)} spots")
    ax.axis('off')
    logger.debug(f"Plotted {len(spots)} spots on image {plane.shape}")

    return fig, ax
