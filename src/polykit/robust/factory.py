"""Factory for robust polynomial estimators."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from polykit.estimators.base import DEFAULT_DEGREE
from polykit.evaluations import PolynomialEvaluation
from polykit.events import Listener
from polykit.robust.engine import ConsensusStrategy, RobustEstimatorMethod
from polykit.robust.estimator import PolynomialRobustEstimator
from polykit.robust.methods import DEFAULT_METHOD

__all__ = ["create_robust_estimator"]


def create_robust_estimator(
    method: RobustEstimatorMethod | ConsensusStrategy | str = DEFAULT_METHOD,
    degree: int = DEFAULT_DEGREE,
    evaluations: Optional[Sequence[PolynomialEvaluation]] = None,
    listener: Optional[Listener] = None,
    quality_scores: Optional[Sequence[float]] = None,
    **config: Any,
) -> PolynomialRobustEstimator:
    """Creates a robust polynomial estimator.

    Args:
        method: Robust method; any registered name or alias is accepted.
            Defaults to PROSAC.
        degree: Degree of the polynomial to estimate.
        evaluations: Optional evaluations.
        listener: Optional event listener.
        quality_scores: Optional quality scores, needed by PROSAC and PROMedS.
        **config: :class:`~polykit.robust.config.ConsensusConfig` fields.

    Returns:
        The configured estimator.

    Raises:
        InvalidArgumentError: If the method is unknown or an argument is invalid.
    """
    return PolynomialRobustEstimator(
        degree=degree,
        evaluations=evaluations,
        listener=listener,
        quality_scores=quality_scores,
        method=method,
        **config,
    )
