"""Factory for the linear polynomial fitters."""

from __future__ import annotations

from typing import Optional, Sequence

from polykit.estimators.base import DEFAULT_DEGREE, PolynomialEstimator, PolynomialEstimatorType
from polykit.estimators.lmse import LMSEPolynomialEstimator
from polykit.estimators.weighted import WeightedPolynomialEstimator
from polykit.evaluations import PolynomialEvaluation
from polykit.events import Listener

__all__ = ["create_polynomial_estimator", "DEFAULT_ESTIMATOR_TYPE"]

DEFAULT_ESTIMATOR_TYPE = PolynomialEstimatorType.LMSE


def create_polynomial_estimator(
    estimator_type: PolynomialEstimatorType | str = DEFAULT_ESTIMATOR_TYPE,
    degree: int = DEFAULT_DEGREE,
    evaluations: Optional[Sequence[PolynomialEvaluation]] = None,
    listener: Optional[Listener] = None,
) -> PolynomialEstimator:
    """Creates a linear polynomial fitter.

    Args:
        estimator_type: :class:`PolynomialEstimatorType` or its value
            (``"lmse"`` or ``"weighted"``).
        degree: Polynomial degree.
        evaluations: Optional evaluations. A weighted fitter receives unit
            weights for them.
        listener: Optional event listener.

    Returns:
        The new fitter.

    Raises:
        ValueError: If ``estimator_type`` is unknown.
    """
    estimator_type = PolynomialEstimatorType(estimator_type)
    if estimator_type is PolynomialEstimatorType.WEIGHTED:
        weights = None if evaluations is None else [1.0] * len(evaluations)
        return WeightedPolynomialEstimator(degree, evaluations, weights, listener)
    return LMSEPolynomialEstimator(degree, evaluations, listener)
