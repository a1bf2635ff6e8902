"""Consensus scores for candidate polynomials.

A scorer turns the residuals of all evaluations into a :class:`CandidateScore`.
Lower ``value`` is better for every scorer, and a candidate replaces the
current best only when its value is strictly lower.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

__all__ = [
    "CandidateScore",
    "InlierCountScorer",
    "TruncatedQuadraticScorer",
    "MedianScorer",
    "STD_CONSTANT",
    "robust_standard_deviation",
]

#: Consistency factor turning a median absolute residual into a standard deviation.
STD_CONSTANT = 1.4826


def robust_standard_deviation(median: float, n: int, subset_size: int) -> float:
    """Returns ``1.4826 * (1 + 5 / (n - s)) * sqrt(median)``.

    ``nan`` when there are no evaluations beyond the minimal subset.
    """
    if n <= subset_size:
        return float("nan")
    return STD_CONSTANT * (1.0 + 5.0 / (n - subset_size)) * float(np.sqrt(median))


@dataclass(frozen=True)
class CandidateScore:
    """Score of one candidate against every evaluation.

    Attributes:
        value: Score to minimize.
        inlier_mask: Boolean mask of the consensus set.
        n_inliers: Number of ``True`` entries of ``inlier_mask``.
        threshold: Residual cutoff that produced ``inlier_mask``.
        robust_std: Median-based standard deviation (median scorers only).
    """

    value: float
    inlier_mask: NDArray[np.bool_]
    n_inliers: int
    threshold: float
    robust_std: Optional[float] = None


class InlierCountScorer:
    """RANSAC and PROSAC: maximize the number of residuals below ``threshold``."""

    def __init__(self, config, n: int, subset_size: int):
        self.threshold = config.threshold

    def score(self, residuals: NDArray[np.float64]) -> CandidateScore:
        mask = residuals < self.threshold
        count = int(np.count_nonzero(mask))
        return CandidateScore(-float(count), mask, count, self.threshold)

    def should_continue(self, best: Optional[CandidateScore]) -> bool:
        return True


class TruncatedQuadraticScorer:
    """MSAC: minimize ``sum(min(residual**2, threshold**2))``."""

    def __init__(self, config, n: int, subset_size: int):
        self.threshold = config.threshold

    def score(self, residuals: NDArray[np.float64]) -> CandidateScore:
        bound = self.threshold * self.threshold
        value = float(np.sum(np.minimum(residuals * residuals, bound)))
        mask = residuals < self.threshold
        return CandidateScore(value, mask, int(np.count_nonzero(mask)), self.threshold)

    def should_continue(self, best: Optional[CandidateScore]) -> bool:
        return True


class MedianScorer:
    """LMedS and PROMedS: minimize the median residual.

    The inlier threshold of a candidate is ``inlier_factor * median``. The
    loop stops once the best threshold reaches ``stop_threshold``. With
    ``cap_with_stop_threshold`` (PROMedS) the reported inlier set is the
    smaller of the median-threshold set and the ``stop_threshold`` set, and
    the early stop only applies when ``stop_threshold_enabled`` is set.
    """

    def __init__(self, config, n: int, subset_size: int, cap_with_stop_threshold: bool = False):
        self.inlier_factor = config.inlier_factor
        self.stop_threshold = config.stop_threshold
        self.cap_with_stop_threshold = cap_with_stop_threshold
        self.stop_enabled = not cap_with_stop_threshold or config.stop_threshold_enabled
        self.n = n
        self.subset_size = subset_size

    def score(self, residuals: NDArray[np.float64]) -> CandidateScore:
        median = float(np.median(residuals))
        threshold = self.inlier_factor * median
        mask = residuals <= threshold
        count = int(np.count_nonzero(mask))
        if self.cap_with_stop_threshold:
            stop_mask = residuals <= self.stop_threshold
            stop_count = int(np.count_nonzero(stop_mask))
            if stop_count <= count:
                mask, count = stop_mask, stop_count
        std = robust_standard_deviation(median, self.n, self.subset_size)
        return CandidateScore(median, mask, count, threshold, std)

    def should_continue(self, best: Optional[CandidateScore]) -> bool:
        if not self.stop_enabled:
            return True
        return best is None or best.threshold > self.stop_threshold
