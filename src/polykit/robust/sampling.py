"""Subset samplers for the sampling-consensus loop.

Two samplers are provided:

* :class:`UniformSubsetSampler` draws every minimal subset uniformly without
  replacement (RANSAC, MSAC, LMedS).
* :class:`ProgressiveSubsetSampler` implements PROSAC progressive sampling:
  evaluations are sorted by descending quality score and subsets are drawn
  from a window over the best evaluations that grows according to the PROSAC
  growth schedule. It also owns the PROSAC termination criteria (the
  non-randomness and maximality tests used to select the termination length
  ``n*``).

Both samplers write into a caller-owned index buffer and take an explicit
``numpy.random.Generator`` so that runs are reproducible.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
from numpy.typing import NDArray
from scipy.stats import chi2

from polykit.logger import polykit_logger

__all__ = [
    "compute_iterations",
    "UniformSubsetSampler",
    "ProgressiveSubsetSampler",
    "CHI_SQUARED",
]

#: 90% quantile of the chi-squared distribution with one degree of freedom,
#: used by the PROSAC non-randomness test (approximately 2.706).
CHI_SQUARED = float(chi2.ppf(0.90, df=1))


def compute_iterations(
    inlier_ratio: float,
    subset_size: int,
    confidence: float,
    max_iterations: Optional[int] = None,
) -> int:
    """Number of draws needed to hit an all-inlier subset with ``confidence``.

    Evaluates ``ceil(|log(1 - confidence) / log(1 - w**s)|)`` and clamps the
    result to ``[1, max_iterations]``.

    Args:
        inlier_ratio: Fraction ``w`` of inliers, clipped to ``[0, 1]``.
        subset_size: Size ``s`` of the minimal subset.
        confidence: Target probability in ``[0, 1]``.
        max_iterations: Optional upper bound.

    Returns:
        The required number of iterations (at least 1).
    """
    upper = math.inf if max_iterations is None else int(max_iterations)
    w = min(max(float(inlier_ratio), 0.0), 1.0)
    if w >= 1.0 or confidence <= 0.0:
        return 1
    p_good = w**subset_size
    if p_good <= 0.0 or confidence >= 1.0:
        return int(upper) if math.isfinite(upper) else np.iinfo(np.int64).max
    k = math.ceil(abs(math.log1p(-confidence) / math.log1p(-p_good)))
    return int(min(max(k, 1), upper))


class UniformSubsetSampler:
    """Draws minimal subsets uniformly at random."""

    #: The consensus loop bounds iterations with :func:`compute_iterations`.
    uses_confidence_bound = True

    def __init__(self, n: int, subset_size: int, rng: np.random.Generator, **_):
        self.n = int(n)
        self.subset_size = int(subset_size)
        self.rng = rng

    def draw(self, iteration: int, out: NDArray[np.intp]) -> NDArray[np.intp]:
        """Fills ``out`` with ``subset_size`` distinct indices."""
        out[:] = self.rng.choice(self.n, size=self.subset_size, replace=False)
        return out

    def update_best(self, inlier_mask: NDArray[np.bool_]) -> None:
        """Uniform sampling does not react to new best candidates."""

    def should_continue(self, iteration: int, n_inliers_best: int) -> bool:
        return True

    def expected_iterations(self) -> Optional[int]:
        return None


class ProgressiveSubsetSampler:
    """PROSAC progressive sampling over quality-sorted evaluations.

    Args:
        n: Number of evaluations.
        subset_size: Size of the minimal subset.
        rng: Random generator.
        quality_scores: One score per evaluation; larger means better.
        confidence: Target confidence for the total sampling budget.
        max_iterations: Hard upper bound on iterations.
        max_outliers_proportion: Assumed worst-case outlier fraction.
        eta0: Probability of missing a better solution (maximality test).
        beta: Probability that an outlier looks like an inlier by chance
            (non-randomness test).
    """

    uses_confidence_bound = False

    def __init__(
        self,
        n: int,
        subset_size: int,
        rng: np.random.Generator,
        *,
        quality_scores,
        confidence: float,
        max_iterations: int,
        max_outliers_proportion: float,
        eta0: float,
        beta: float,
        **_,
    ):
        self.n = int(n)
        self.subset_size = s = int(subset_size)
        self.rng = rng
        self.eta0 = float(eta0)
        self.beta = float(beta)

        scores = np.asarray(quality_scores, dtype=float)
        self.sorted_indices = np.argsort(-scores, kind="stable")

        self.max_samples = min(
            compute_iterations(1.0 - max_outliers_proportion, s, confidence, max_iterations),
            int(max_iterations),
        )
        tn = float(self.max_samples)
        for i in range(s):
            tn *= (s - i) / (self.n - i)
        self._tn = tn
        self._tn_prime = 1
        self.window = s
        self.n_star = self.n
        self.k_n_star = self.max_samples
        self._inliers_n_star = 0
        self.min_inliers = int((1.0 - max_outliers_proportion) * self.n)

        self._positions = np.empty(s, dtype=np.intp)

    def draw(self, iteration: int, out: NDArray[np.intp]) -> NDArray[np.intp]:
        """Fills ``out`` with evaluation indices for the ``iteration``-th draw.

        ``iteration`` counts draws starting at 1.
        """
        s = self.subset_size
        if iteration > self._tn_prime and self.window < self.n_star:
            tn_next = self._tn * (self.window + 1) / (self.window + 1 - s)
            self.window += 1
            self._tn_prime += math.ceil(tn_next - self._tn)
            self._tn = tn_next

        positions = self._positions
        if iteration > self._tn_prime:
            # finishing stage: plain uniform draw over every evaluation
            positions[:] = self.rng.choice(self.n, size=s, replace=False)
        else:
            positions[: s - 1] = self.rng.choice(self.window - 1, size=s - 1, replace=False)
            positions[s - 1] = self.window - 1

        out[:] = self.sorted_indices[positions]
        return out

    def min_inliers_for(self, n_test: int) -> int:
        """Smallest inlier count in the first ``n_test`` evaluations that is unlikely to be random."""
        mean = n_test * self.beta
        sigma = math.sqrt(n_test * self.beta * (1.0 - self.beta))
        return math.ceil(self.subset_size + mean + sigma * math.sqrt(CHI_SQUARED))

    def update_best(self, inlier_mask: NDArray[np.bool_]) -> None:
        """Selects a new termination length ``n*`` after a new best candidate.

        The first ``n_test`` quality-sorted evaluations are scanned from the
        whole set downwards. A shorter window replaces the current choice only
        if its inlier fraction is higher by a significant margin (chi-squared
        test on the binomial inlier count); the scan ends at the first such
        window failing the non-randomness test. ``n*`` changes only when the
        chosen window beats the previous ``n*`` in inlier fraction, and the
        maximality test then gives the matching iteration bound ``k_n*``.
        """
        cumulative = np.cumsum(np.asarray(inlier_mask, dtype=bool)[self.sorted_indices])
        n_best = self.n
        inliers_best = int(cumulative[-1])
        epsilon = inliers_best / n_best
        for n_test in range(self.n, self.subset_size, -1):
            inliers = int(cumulative[n_test - 1])
            margin = math.sqrt(n_test * epsilon * (1.0 - epsilon) * CHI_SQUARED)
            if inliers * n_best > inliers_best * n_test and inliers > epsilon * n_test + margin:
                if inliers < self.min_inliers_for(n_test):
                    break
                n_best, inliers_best = n_test, inliers
                epsilon = inliers_best / n_best

        if inliers_best * self.n_star <= self._inliers_n_star * n_best:
            return

        k_n_star = compute_iterations(epsilon, self.subset_size, 1.0 - self.eta0, self.max_samples)
        polykit_logger.debug(
            "PROSAC termination length n*=%d (inliers=%d), k_n*=%d", n_best, inliers_best, k_n_star
        )
        self.n_star = n_best
        self._inliers_n_star = inliers_best
        self.k_n_star = k_n_star

    def should_continue(self, iteration: int, n_inliers_best: int) -> bool:
        """PROSAC stopping rule for ``iteration`` completed draws."""
        return (
            (n_inliers_best < self.min_inliers or iteration < self.k_n_star)
            and iteration < self.max_samples
        )

    def expected_iterations(self) -> Optional[int]:
        return min(self.k_n_star, self.max_samples)
