"""Weighted least-squares polynomial fitter."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from polykit.estimators.base import DEFAULT_DEGREE, PolynomialEstimator, PolynomialEstimatorType
from polykit.estimators.design import build_system, solve_system
from polykit.evaluations import PolynomialEvaluation
from polykit.events import Listener
from polykit.exceptions import InvalidArgumentError, PolynomialEstimationError
from polykit.logger import polykit_logger
from polykit.polynomial import Polynomial
from polykit.utils.validate import validate_at_least

__all__ = [
    "WeightedPolynomialEstimator",
    "select_weights",
    "DEFAULT_MAX_EVALUATIONS",
    "DEFAULT_SORT_WEIGHTS",
]

DEFAULT_MAX_EVALUATIONS = 50
DEFAULT_SORT_WEIGHTS = True


def select_weights(
    weights: Sequence[float],
    max_evaluations: int,
    sort_weights: bool = DEFAULT_SORT_WEIGHTS,
) -> NDArray[np.intp]:
    """Chooses which evaluations take part in a weighted fit.

    Args:
        weights: One weight per evaluation.
        max_evaluations: Upper bound on the number of selected evaluations.
        sort_weights: If True, pick the largest weights (ties keep input
            order); otherwise pick the first ``max_evaluations``.

    Returns:
        Indices of the selected evaluations, in the order they are used.
    """
    w = np.asarray(weights, dtype=float)
    n = min(w.size, int(max_evaluations))
    if not sort_weights:
        return np.arange(n)
    return np.argsort(-w, kind="stable")[:n]


class WeightedPolynomialEstimator(PolynomialEstimator):
    """Fits a polynomial with per-evaluation weights.

    Every normalized row is additionally scaled by its weight, so evaluations
    with larger weights pull the least-squares solution harder. At most
    ``max_evaluations`` evaluations are used.
    """

    estimator_type = PolynomialEstimatorType.WEIGHTED

    def __init__(
        self,
        degree: int = DEFAULT_DEGREE,
        evaluations: Optional[Sequence[PolynomialEvaluation]] = None,
        weights: Optional[Sequence[float]] = None,
        listener: Optional[Listener] = None,
        max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
        sort_weights: bool = DEFAULT_SORT_WEIGHTS,
    ):
        super().__init__(degree, None, listener)
        self._weights = None
        if evaluations is not None or weights is not None:
            self.set_evaluations_and_weights(evaluations, weights)
        self._max_evaluations = self._check_max_evaluations(max_evaluations)
        self._sort_weights = bool(sort_weights)

    def _check_max_evaluations(self, value: int) -> int:
        return validate_at_least("max_evaluations", value, self.min_number_of_evaluations)

    @PolynomialEstimator.evaluations.setter
    def evaluations(self, value):
        raise AttributeError("use set_evaluations_and_weights() on a weighted estimator.")

    @property
    def weights(self) -> Optional[NDArray[np.float64]]:
        """Weights paired with :attr:`evaluations`."""
        return self._weights

    def set_evaluations_and_weights(
        self,
        evaluations: Sequence[PolynomialEvaluation],
        weights: Sequence[float],
    ) -> None:
        """Sets evaluations and their weights together.

        Raises:
            LockedError: If an estimation is running.
            InvalidArgumentError: If either is missing or their lengths differ.
        """
        self._check_unlocked()
        if evaluations is None or weights is None:
            raise InvalidArgumentError("evaluations and weights must be provided together.")
        evaluations = tuple(evaluations)
        w = np.array(weights, dtype=float)
        if w.ndim != 1 or w.size != len(evaluations):
            raise InvalidArgumentError(
                f"weights must have one value per evaluation ({len(evaluations)}); got shape {w.shape}."
            )
        w.flags.writeable = False
        self._evaluations = evaluations
        self._weights = w

    @property
    def max_evaluations(self) -> int:
        """Maximum number of evaluations used for the fit."""
        return self._max_evaluations

    @max_evaluations.setter
    def max_evaluations(self, value: int) -> None:
        self._check_unlocked()
        self._max_evaluations = self._check_max_evaluations(value)

    @property
    def sort_weights(self) -> bool:
        """Whether the highest weights are selected first."""
        return self._sort_weights

    @sort_weights.setter
    def sort_weights(self, value: bool) -> None:
        self._check_unlocked()
        self._sort_weights = bool(value)

    def is_ready(self) -> bool:
        """Also requires weights matching the evaluations."""
        return (
            super().is_ready()
            and self._weights is not None
            and self._weights.size == len(self._evaluations)
            and self._max_evaluations >= self.min_number_of_evaluations
        )

    def _fit(self) -> Polynomial:
        idx = select_weights(self._weights, self._max_evaluations, self._sort_weights)
        selected = [self._evaluations[i] for i in idx]
        matrix, vector = build_system(selected, self._degree, weights=self._weights[idx])
        try:
            return Polynomial(solve_system(matrix, vector))
        except PolynomialEstimationError as e:
            polykit_logger.warning("weighted polynomial fit of degree %d failed: %s", self._degree, e)
            raise
