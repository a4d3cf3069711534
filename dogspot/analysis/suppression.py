"""
Greedy overlap suppression of spots.

Spots are visited by descending quality (stable for ties) and kept only when
their center is farther than the sum of radii from every spot kept so far.
A discarded spot is never reconsidered.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np
from scipy.spatial import cKDTree

from .spots import Spot

# Rebuild the tree of kept centers after this many insertions.
_REBUILD_EVERY = 64

logger = logging.getLogger(__name__)


def sort_by_quality(spots: Sequence[Spot]) -> List[Spot]:
    """Stable sort by descending quality."""
    return sorted(spots, key=lambda s: s.quality, reverse=True)


def _overlaps(candidate: Spot, center: np.ndarray, kept: List[Spot], indices) -> bool:
    for idx in indices:
        other = kept[idx]
        distance = float(np.linalg.norm(center - np.asarray(other.position)))
        if distance <= candidate.radius + other.radius:
            return True
    return False


def suppress_overlapping_spots(spots: Sequence[Spot]) -> List[Spot]:
    """
    Remove spots that overlap a better one.

    Args:
        spots: Spots to prune, in encounter order.

    Returns:
        Kept spots ordered by descending quality. No two kept spots are
        closer than the sum of their radii.
    """
    ordered = sort_by_quality(spots)
    if not ordered:
        return []

    max_radius = max(s.radius for s in ordered)
    kept: List[Spot] = []
    tree = None
    n_in_tree = 0

    for spot in ordered:
        center = np.asarray(spot.position, dtype=np.float64)
        search = spot.radius + max_radius

        candidates = []
        if tree is not None:
            candidates.extend(tree.query_ball_point(center, r=search))
        # Spots kept since the last rebuild are checked directly.
        candidates.extend(range(n_in_tree, len(kept)))

        if _overlaps(spot, center, kept, candidates):
            continue

        kept.append(spot)
        if len(kept) - n_in_tree >= _REBUILD_EVERY:
            tree = cKDTree(np.array([s.position for s in kept], dtype=np.float64))
            n_in_tree = len(kept)

    logger.info(f"Overlap suppression kept {len(kept)} of {len(ordered)} spots")
    return kept


__all__ = ["sort_by_quality", "suppress_overlapping_spots"]
