"""
Sub-pixel localization of DoG peaks by local quadratic fitting.

For each peak the response is approximated by its second-order Taylor
expansion around the integer base position, with gradient and Hessian taken
from finite differences. The offset solving ``H . delta = -g`` moves the
estimate; if it leaves the half-pixel cell, the base is shifted one pixel
toward it and the fit is repeated.

A peak that cannot be refined keeps its integer position. No peak is ever
dropped by this stage.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Sequence, Tuple

import numpy as np

from .peaks import Peak

_DEFAULT_MAX_MOVES = 4

logger = logging.getLogger(__name__)


def _is_interior(base: Sequence[int], shape: Sequence[int]) -> bool:
    return all(0 < b < s - 1 for b, s in zip(base, shape))


def quadratic_terms(response: np.ndarray, base: Sequence[int]) -> Tuple[float, np.ndarray, np.ndarray]:
    """
    Finite-difference value, gradient and Hessian at an interior position.

    Args:
        response: n-dimensional response volume.
        base: Integer position with at least one neighbor on each side
            along every axis.

    Returns:
        Tuple of (value, gradient of shape (n,), Hessian of shape (n, n)).
    """
    ndim = response.ndim
    patch = response[tuple(slice(b - 1, b + 2) for b in base)].astype(np.float64)
    center = (1,) * ndim
    value = float(patch[center])

    def _at(offsets):
        return patch[tuple(1 + o for o in offsets)]

    gradient = np.empty(ndim, dtype=np.float64)
    hessian = np.empty((ndim, ndim), dtype=np.float64)
    for i in range(ndim):
        step = [0] * ndim
        step[i] = 1
        plus = _at(step)
        step[i] = -1
        minus = _at(step)
        gradient[i] = (plus - minus) / 2.0
        hessian[i, i] = plus - 2.0 * value + minus

        for j in range(i + 1, ndim):
            corner = [0] * ndim
            corner[i], corner[j] = 1, 1
            pp = _at(corner)
            corner[j] = -1
            pm = _at(corner)
            corner[i] = -1
            mm = _at(corner)
            corner[j] = 1
            mp = _at(corner)
            hessian[i, j] = hessian[j, i] = (pp - pm - mp + mm) / 4.0

    return value, gradient, hessian


def localize_peak(response: np.ndarray, peak: Peak, max_moves: int = _DEFAULT_MAX_MOVES) -> Peak:
    """
    Refine one peak to sub-pixel precision.

    Args:
        response: DoG response volume the peak was found in.
        peak: Peak at an integer position.
        max_moves: Maximum number of one-pixel base shifts.

    Returns:
        Refined peak, or the peak on its integer position when the fit is
        degenerate, does not converge or walks a full pixel away.
    """
    shape = response.shape
    base = np.array(peak.pixel, dtype=np.int64)

    moves = 0
    while True:
        if not _is_interior(base, shape):
            logger.debug(f"Peak {peak.pixel}: fit window leaves the volume, keeping integer position")
            return peak.unrefined()

        value, gradient, hessian = quadratic_terms(response, base)
        try:
            delta = np.linalg.solve(hessian, -gradient)
        except np.linalg.LinAlgError:
            logger.debug(f"Peak {peak.pixel}: singular Hessian, keeping integer position")
            return peak.unrefined()
        if not np.all(np.isfinite(delta)):
            logger.debug(f"Peak {peak.pixel}: non-finite offset, keeping integer position")
            return peak.unrefined()

        shift = np.where(np.abs(delta) > 0.5, np.sign(delta), 0).astype(np.int64)
        if not shift.any():
            break
        if moves >= max_moves:
            logger.debug(f"Peak {peak.pixel}: no convergence after {moves} moves")
            return peak.unrefined(converged=False)
        base = base + shift
        moves += 1

    # A maximum needs a negative definite Hessian.
    if np.any(np.linalg.eigvalsh(hessian) >= 0):
        logger.debug(f"Peak {peak.pixel}: Hessian is not negative definite, keeping integer position")
        return peak.unrefined()

    position = base + delta
    if np.any(np.abs(position - np.asarray(peak.pixel)) >= 1.0):
        logger.debug(f"Peak {peak.pixel}: refined position {tuple(position)} is a full pixel away")
        return peak.unrefined(converged=False)

    return replace(
        peak,
        position=tuple(float(p) for p in position),
        value=float(value + 0.5 * np.dot(gradient, delta)),
        refined=True,
        converged=True,
    )


def localize_peaks(
    response: np.ndarray,
    peaks: Sequence[Peak],
    max_moves: int = _DEFAULT_MAX_MOVES,
) -> List[Peak]:
    """Refine every peak; the output is one-to-one with the input."""
    refined = [localize_peak(response, peak, max_moves=max_moves) for peak in peaks]
    n_refined = sum(1 for p in refined if p.refined)
    n_unconverged = sum(1 for p in refined if not p.converged)
    logger.info(
        f"Sub-pixel localization: {n_refined}/{len(refined)} peaks refined, "
        f"{n_unconverged} did not converge"
    )
    return refined


__all__ = ["quadratic_terms", "localize_peak", "localize_peaks"]
