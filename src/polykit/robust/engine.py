"""Provides the sampling-consensus loop shared by every robust method.

A robust method is a :class:`ConsensusStrategy`: a sampler class deciding how
minimal subsets are drawn and a scorer class deciding how a candidate is
ranked. :func:`run_consensus` runs the same loop for all of them:

1. draw a minimal subset of ``degree + 1`` evaluations;
2. fit a candidate exactly on that subset, skipping subsets whose linear
   system cannot be solved;
3. score the candidate on every evaluation and keep it if strictly better;
4. tighten the iteration bound and notify the listener;
5. after the loop, refit by least squares on the consensus set of the best
   candidate.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from polykit.estimators.lmse import fit_polynomial
from polykit.evaluations import PolynomialEvaluation
from polykit.events import EventKind
from polykit.exceptions import NotReadyError, PolynomialEstimationError, RobustEstimatorError
from polykit.logger import polykit_logger
from polykit.polynomial import Polynomial
from polykit.robust.config import ConsensusConfig
from polykit.robust.distance import residuals as compute_residuals
from polykit.robust.sampling import (
    ProgressiveSubsetSampler,
    UniformSubsetSampler,
    compute_iterations,
)
from polykit.robust.scoring import (
    CandidateScore,
    InlierCountScorer,
    MedianScorer,
    TruncatedQuadraticScorer,
)

__all__ = [
    "RobustEstimatorMethod",
    "ConsensusStrategy",
    "ConsensusResult",
    "BUILTIN_STRATEGIES",
    "run_consensus",
]


class RobustEstimatorMethod(enum.Enum):
    """Identifiers of the built-in robust methods."""

    RANSAC = "ransac"
    LMEDS = "lmeds"
    MSAC = "msac"
    PROSAC = "prosac"
    PROMEDS = "promeds"


@dataclass(frozen=True)
class ConsensusStrategy:
    """Sampler and scorer making up one robust method.

    Attributes:
        name: Method identifier reported by the estimator.
        sampler: Sampler class, constructed per estimation as
            ``sampler(n, subset_size, rng, **options)``.
        scorer: Factory ``scorer(config, n, subset_size)``.
        uses_quality_scores: Whether the method needs quality scores.
    """

    name: RobustEstimatorMethod | str
    sampler: type
    scorer: Callable
    uses_quality_scores: bool = False


def _promeds_scorer(config, n, subset_size):
    return MedianScorer(config, n, subset_size, cap_with_stop_threshold=True)


BUILTIN_STRATEGIES = {
    RobustEstimatorMethod.RANSAC: ConsensusStrategy(
        RobustEstimatorMethod.RANSAC, UniformSubsetSampler, InlierCountScorer
    ),
    RobustEstimatorMethod.MSAC: ConsensusStrategy(
        RobustEstimatorMethod.MSAC, UniformSubsetSampler, TruncatedQuadraticScorer
    ),
    RobustEstimatorMethod.LMEDS: ConsensusStrategy(
        RobustEstimatorMethod.LMEDS, UniformSubsetSampler, MedianScorer
    ),
    RobustEstimatorMethod.PROSAC: ConsensusStrategy(
        RobustEstimatorMethod.PROSAC, ProgressiveSubsetSampler, InlierCountScorer, uses_quality_scores=True
    ),
    RobustEstimatorMethod.PROMEDS: ConsensusStrategy(
        RobustEstimatorMethod.PROMEDS, ProgressiveSubsetSampler, _promeds_scorer, uses_quality_scores=True
    ),
}


@dataclass(frozen=True)
class ConsensusResult:
    """Outcome of :func:`run_consensus`.

    Attributes:
        polynomial: Returned polynomial (refit on the consensus set when
            refinement succeeded, otherwise the best candidate).
        candidate: Best minimal-subset candidate.
        score: Score of ``candidate``.
        residuals: Residuals of every evaluation against ``polynomial``.
        iterations: Number of completed iterations.
        refined: Whether ``polynomial`` is the least-squares refit.
    """

    polynomial: Polynomial
    candidate: Polynomial
    score: CandidateScore
    residuals: NDArray[np.float64]
    iterations: int
    refined: bool = field(default=False)


def _refine(
    evaluations: Sequence[PolynomialEvaluation],
    degree: int,
    score: CandidateScore,
) -> Optional[Polynomial]:
    if score.n_inliers < degree + 1:
        return None
    inliers = [e for e, keep in zip(evaluations, score.inlier_mask) if keep]
    try:
        return fit_polynomial(inliers, degree, allow_lmse=True)
    except PolynomialEstimationError as e:
        polykit_logger.warning(
            "Least-squares refit on %d inliers failed (%s); returning the best minimal-subset candidate.",
            score.n_inliers,
            e,
        )
        return None


def run_consensus(
    evaluations: Sequence[PolynomialEvaluation],
    degree: int,
    config: ConsensusConfig,
    strategy: ConsensusStrategy,
    quality_scores: Optional[Sequence[float]] = None,
    emit: Optional[Callable[..., None]] = None,
) -> ConsensusResult:
    """Runs the sampling-consensus loop.

    Args:
        evaluations: All evaluations, outliers included.
        degree: Degree of the polynomial to estimate.
        config: Loop parameters.
        strategy: Sampler and scorer to use.
        quality_scores: One score per evaluation for quality-driven sampling.
        emit: Optional ``emit(kind, iteration=None, progress=None)`` callback
            receiving ``ITERATION`` and ``PROGRESS`` notifications.

    Returns:
        The :class:`ConsensusResult` of the best candidate.

    Raises:
        RobustEstimatorError: If no minimal subset produced a candidate.
    """
    n = len(evaluations)
    subset_size = degree + 1

    rng = np.random.default_rng(config.seed)
    sampler = strategy.sampler(
        n,
        subset_size,
        rng,
        quality_scores=quality_scores,
        confidence=config.confidence,
        max_iterations=config.max_iterations,
        max_outliers_proportion=config.max_outliers_proportion,
        eta0=config.eta0,
        beta=config.beta,
    )
    scorer = strategy.scorer(config, n, subset_size)

    # Per-iteration buffers reused by index.
    subset_idx = np.empty(subset_size, dtype=np.intp)
    subset = [None] * subset_size
    matrix = np.empty((subset_size, subset_size), dtype=float)
    vector = np.empty(subset_size, dtype=float)
    residual_buf = np.empty(n, dtype=float)

    best_score: Optional[CandidateScore] = None
    best_candidate: Optional[Polynomial] = None
    required = config.max_iterations
    previous_progress = 0.0
    iteration = 0
    improved = False

    # The sampler stop rule is skipped right after an improvement.
    while (
        iteration < config.max_iterations
        and iteration < required
        and scorer.should_continue(best_score)
        and (improved or sampler.should_continue(iteration, 0 if best_score is None else best_score.n_inliers))
    ):
        improved = False
        sampler.draw(iteration + 1, subset_idx)
        for k, i in enumerate(subset_idx):
            subset[k] = evaluations[i]

        try:
            candidate = fit_polynomial(subset, degree, matrix=matrix, vector=vector)
        except (PolynomialEstimationError, NotReadyError):
            candidate = None

        if candidate is not None:
            compute_residuals(evaluations, candidate, config.use_geometric_distance, out=residual_buf)
            score = scorer.score(residual_buf)
            if best_score is None or score.value < best_score.value:
                best_score, best_candidate = score, candidate
                improved = True
                sampler.update_best(score.inlier_mask)
                if sampler.uses_confidence_bound:
                    required = min(
                        required,
                        compute_iterations(
                            score.n_inliers / n, subset_size, config.confidence, config.max_iterations
                        ),
                    )
                polykit_logger.debug(
                    "iteration %d: new best score %.6g with %d/%d inliers, iteration bound %d",
                    iteration,
                    score.value,
                    score.n_inliers,
                    n,
                    required,
                )

        iteration += 1
        if emit is not None:
            emit(EventKind.ITERATION, iteration=iteration)
            expected = sampler.expected_iterations() or required
            progress = min(iteration / expected, 1.0)
            if progress - previous_progress > config.progress_delta:
                previous_progress = progress
                emit(EventKind.PROGRESS, progress=progress)

    if best_candidate is None:
        raise RobustEstimatorError(
            f"no candidate polynomial of degree {degree} could be fitted in {iteration} iterations."
        )

    polynomial = _refine(evaluations, degree, best_score) if config.refine_result else None
    refined = polynomial is not None
    if not refined:
        polynomial = best_candidate

    final_residuals = compute_residuals(evaluations, polynomial, config.use_geometric_distance)
    polykit_logger.info(
        "%s finished after %d iterations with %d/%d inliers",
        getattr(strategy.name, "value", strategy.name),
        iteration,
        best_score.n_inliers,
        n,
    )
    return ConsensusResult(
        polynomial=polynomial,
        candidate=best_candidate,
        score=best_score,
        residuals=final_residuals,
        iterations=iteration,
        refined=refined,
    )
