"""Least mean square error polynomial fitter."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from polykit.estimators.base import DEFAULT_DEGREE, PolynomialEstimator, PolynomialEstimatorType
from polykit.estimators.design import build_system, solve_system
from polykit.evaluations import PolynomialEvaluation
from polykit.events import Listener
from polykit.exceptions import PolynomialEstimationError
from polykit.logger import polykit_logger
from polykit.polynomial import Polynomial

__all__ = ["LMSEPolynomialEstimator", "fit_polynomial", "DEFAULT_ALLOW_LMSE_SOLUTION"]

DEFAULT_ALLOW_LMSE_SOLUTION = False


def fit_polynomial(
    evaluations: Sequence[PolynomialEvaluation],
    degree: int,
    *,
    allow_lmse: bool = DEFAULT_ALLOW_LMSE_SOLUTION,
    matrix: Optional[NDArray[np.float64]] = None,
    vector: Optional[NDArray[np.float64]] = None,
) -> Polynomial:
    """Fits a polynomial of ``degree`` to ``evaluations``.

    Args:
        evaluations: Evaluations to fit; at least ``degree + 1``.
        degree: Polynomial degree.
        allow_lmse: Use every evaluation (least squares) instead of only the
            first ``degree + 1``.
        matrix: Optional preallocated design-matrix buffer.
        vector: Optional preallocated right-hand-side buffer.

    Returns:
        The fitted polynomial.

    Raises:
        PolynomialEstimationError: If the system cannot be solved.
    """
    max_rows = None if allow_lmse else degree + 1
    a, b = build_system(evaluations, degree, max_rows=max_rows, matrix=matrix, vector=vector)
    return Polynomial(solve_system(a, b))


class LMSEPolynomialEstimator(PolynomialEstimator):
    """Fits a polynomial by solving the normalized evaluation system.

    With ``allow_lmse=False`` (the default) only the first ``degree + 1``
    evaluations are used and the system is solved exactly; this is the
    fast path used for minimal subsets by the robust estimators. With
    ``allow_lmse=True`` every evaluation contributes and the least-squares
    solution is returned.

    Example:
        >>> from polykit.evaluations import DirectEvaluation
        >>> from polykit.estimators import LMSEPolynomialEstimator
        >>> evals = [DirectEvaluation(0, 1), DirectEvaluation(1, 3), DirectEvaluation(2, 7)]
        >>> LMSEPolynomialEstimator(2, evals).estimate().coefficients.round(6).tolist()
        [1.0, 1.0, 1.0]
    """

    estimator_type = PolynomialEstimatorType.LMSE

    def __init__(
        self,
        degree: int = DEFAULT_DEGREE,
        evaluations: Optional[Sequence[PolynomialEvaluation]] = None,
        listener: Optional[Listener] = None,
        allow_lmse: bool = DEFAULT_ALLOW_LMSE_SOLUTION,
    ):
        super().__init__(degree, evaluations, listener)
        self._allow_lmse = bool(allow_lmse)

    @property
    def allow_lmse(self) -> bool:
        """Whether more than ``degree + 1`` evaluations are used."""
        return self._allow_lmse

    @allow_lmse.setter
    def allow_lmse(self, value: bool) -> None:
        self._check_unlocked()
        self._allow_lmse = bool(value)

    def is_lmse_solution_allowed(self) -> bool:
        """Returns :attr:`allow_lmse`."""
        return self._allow_lmse

    def _fit(self) -> Polynomial:
        try:
            return fit_polynomial(self._evaluations, self._degree, allow_lmse=self._allow_lmse)
        except PolynomialEstimationError as e:
            if self._allow_lmse:
                polykit_logger.warning("LMSE polynomial fit of degree %d failed: %s", self._degree, e)
            raise
