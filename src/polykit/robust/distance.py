"""Residuals between a candidate polynomial and an evaluation.

The algebraic residual compares the observed value with the value the
candidate predicts for the same kind of observation. The geometric residual,
available for direct evaluations only, is the distance from the observed
point to the tangent line of the candidate at the same ``x``.
"""

from __future__ import annotations

from functools import singledispatch
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from polykit.evaluations import (
    DerivativeEvaluation,
    DirectEvaluation,
    IntegralEvaluation,
    IntegralIntervalEvaluation,
    PolynomialEvaluation,
)
from polykit.polynomial import Polynomial

__all__ = [
    "predicted_value",
    "algebraic_distance",
    "geometric_distance",
    "distance",
    "residuals",
]


@singledispatch
def predicted_value(evaluation: PolynomialEvaluation, polynomial: Polynomial) -> float:
    """Returns the value ``polynomial`` predicts for ``evaluation``.

    Raises:
        TypeError: If ``evaluation`` is not a known evaluation kind.
    """
    raise TypeError(f"unsupported evaluation type {type(evaluation).__name__}.")


@predicted_value.register
def _(evaluation: DirectEvaluation, polynomial: Polynomial) -> float:
    return polynomial.evaluate(evaluation.x)


@predicted_value.register
def _(evaluation: DerivativeEvaluation, polynomial: Polynomial) -> float:
    return polynomial.evaluate_nth_derivative(evaluation.x, evaluation.derivative_order)


@predicted_value.register
def _(evaluation: IntegralEvaluation, polynomial: Polynomial) -> float:
    integral = polynomial.nth_integration(evaluation.integral_order, evaluation.constants)
    return integral.evaluate(evaluation.x)


@predicted_value.register
def _(evaluation: IntegralIntervalEvaluation, polynomial: Polynomial) -> float:
    return polynomial.nth_order_integrate_interval(
        evaluation.start_x, evaluation.end_x, evaluation.integral_order, evaluation.constants
    )


def algebraic_distance(evaluation: PolynomialEvaluation, polynomial: Polynomial) -> float:
    """Returns ``|observed - predicted|``."""
    return abs(float(evaluation.evaluation) - predicted_value(evaluation, polynomial))


def geometric_distance(evaluation: PolynomialEvaluation, polynomial: Polynomial) -> float:
    """Returns the distance from a direct sample to the candidate's tangent line.

    The tangent at ``x`` is written as ``a*x + b*y + c = 0``. For steep
    tangents (``|slope| > 1``) the line is parametrized with ``a = 1`` so no
    coefficient grows with the slope. Non-direct evaluations fall back to
    :func:`algebraic_distance`.
    """
    if not isinstance(evaluation, DirectEvaluation):
        return algebraic_distance(evaluation, polynomial)

    x = float(evaluation.x)
    y_obs = float(evaluation.evaluation)
    y_fit = polynomial.evaluate(x)
    slope = polynomial.evaluate_derivative(x)

    if abs(slope) > 1.0:
        a = 1.0
        b = -1.0 / slope
        c = -x + y_fit / slope
    else:
        a = -slope
        b = 1.0
        c = slope * x - y_fit

    return abs(a * x + b * y_obs + c) / np.hypot(a, b)


def distance(
    evaluation: PolynomialEvaluation,
    polynomial: Polynomial,
    use_geometric_distance: bool = False,
) -> float:
    """Returns the geometric or algebraic residual of ``evaluation``."""
    if use_geometric_distance:
        return geometric_distance(evaluation, polynomial)
    return algebraic_distance(evaluation, polynomial)


def residuals(
    evaluations: Sequence[PolynomialEvaluation],
    polynomial: Polynomial,
    use_geometric_distance: bool = False,
    out: NDArray[np.float64] | None = None,
) -> NDArray[np.float64]:
    """Computes the residual of every evaluation.

    Args:
        evaluations: Evaluations to score.
        polynomial: Candidate polynomial.
        use_geometric_distance: Selects the residual kind.
        out: Optional preallocated output of length ``len(evaluations)``.

    Returns:
        Array of non-negative residuals.
    """
    if out is None:
        out = np.empty(len(evaluations), dtype=float)
    metric = geometric_distance if use_geometric_distance else algebraic_distance
    for i, evaluation in enumerate(evaluations):
        out[i] = metric(evaluation, polynomial)
    return out
