"""Linear polynomial fitters."""

from polykit.estimators.base import PolynomialEstimator, PolynomialEstimatorType
from polykit.estimators.design import build_system, design_row, normalize_row, solve_system
from polykit.estimators.factory import create_polynomial_estimator
from polykit.estimators.lmse import LMSEPolynomialEstimator, fit_polynomial
from polykit.estimators.weighted import WeightedPolynomialEstimator, select_weights

__all__ = [
    "PolynomialEstimator",
    "PolynomialEstimatorType",
    "LMSEPolynomialEstimator",
    "WeightedPolynomialEstimator",
    "create_polynomial_estimator",
    "fit_polynomial",
    "select_weights",
    "build_system",
    "design_row",
    "normalize_row",
    "solve_system",
]
