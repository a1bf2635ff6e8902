"""Utilities for building the linear system of a polynomial fit.

Every evaluation maps onto one row of a design matrix whose columns are the
polynomial coefficients ``a0..an``. Rows are normalized jointly with their
right-hand side so that evaluations of very different magnitude (a direct
sample next to a third integral, say) contribute comparably.
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
from polykit.exceptions import PolynomialEstimationError
from polykit.polynomial import integration_constant_terms
from polykit.utils.linalg import solve_linear_system

__all__ = [
    "design_row",
    "normalize_row",
    "build_system",
    "solve_system",
]


def _falling_factorials(exponents: NDArray[np.int64], order: int) -> NDArray[np.float64]:
    """Return ``e * (e - 1) * ... * (e - order + 1)`` for each exponent."""
    out = np.ones(exponents.shape, dtype=float)
    for j in range(order):
        out *= exponents - j
    return out


def _constants_or_fail(evaluation, order: int) -> NDArray[np.float64] | None:
    constants = evaluation.constants
    if constants is None:
        return None
    arr = np.asarray(constants, dtype=float)
    if arr.size != order:
        raise PolynomialEstimationError(
            f"integration constants must have length {order}; got {arr.size}."
        )
    return arr


@singledispatch
def design_row(evaluation: PolynomialEvaluation, n_coefficients: int) -> tuple[NDArray[np.float64], float]:
    """Maps an evaluation onto one row of the design matrix.

    Args:
        evaluation: The evaluation to map.
        n_coefficients: Number of polynomial coefficients (``degree + 1``).

    Returns:
        A pair ``(row, rhs)`` with ``row`` of shape ``(n_coefficients,)``.

    Raises:
        TypeError: If ``evaluation`` is not a known evaluation kind.
        PolynomialEstimationError: If integration constants do not match the
            integral order.
    """
    raise TypeError(f"unsupported evaluation type {type(evaluation).__name__}.")


@design_row.register
def _(evaluation: DirectEvaluation, n_coefficients: int):
    powers = np.arange(n_coefficients)
    return np.power(float(evaluation.x), powers), float(evaluation.evaluation)


@design_row.register
def _(evaluation: DerivativeEvaluation, n_coefficients: int):
    order = evaluation.derivative_order
    row = np.zeros(n_coefficients, dtype=float)
    if order < n_coefficients:
        exponents = np.arange(order, n_coefficients)
        row[order:] = _falling_factorials(exponents, order) * np.power(
            float(evaluation.x), exponents - order
        )
    return row, float(evaluation.evaluation)


@design_row.register
def _(evaluation: IntegralEvaluation, n_coefficients: int):
    order = evaluation.integral_order
    constants = _constants_or_fail(evaluation, order)
    x = float(evaluation.x)

    exponents = np.arange(order, n_coefficients + order)
    row = np.power(x, exponents) / _falling_factorials(exponents, order)

    terms = integration_constant_terms(constants, order)
    rhs = float(evaluation.evaluation) - float(np.dot(terms, np.power(x, np.arange(order))))
    return row, rhs


@design_row.register
def _(evaluation: IntegralIntervalEvaluation, n_coefficients: int):
    order = evaluation.integral_order
    constants = _constants_or_fail(evaluation, order)
    start = float(evaluation.start_x)
    end = float(evaluation.end_x)

    exponents = np.arange(order, n_coefficients + order)
    row = (np.power(end, exponents) - np.power(start, exponents)) / _falling_factorials(
        exponents, order
    )

    low = np.arange(order)
    terms = integration_constant_terms(constants, order)
    rhs = float(evaluation.evaluation) - float(
        np.dot(terms, np.power(end, low) - np.power(start, low))
    )
    return row, rhs


def normalize_row(row: NDArray[np.float64], rhs: float, weight: float = 1.0) -> tuple[NDArray[np.float64], float]:
    """Scales ``row`` and ``rhs`` by ``weight / sqrt(sum(row**2) + rhs**2)``.

    A zero row with zero rhs carries no information and is returned unscaled.
    """
    norm = float(np.sqrt(np.dot(row, row) + rhs * rhs))
    if norm == 0.0:
        return row, rhs
    factor = weight / norm
    return row * factor, rhs * factor


def build_system(
    evaluations: Sequence[PolynomialEvaluation],
    degree: int,
    *,
    max_rows: int | None = None,
    weights: Sequence[float] | None = None,
    matrix: NDArray[np.float64] | None = None,
    vector: NDArray[np.float64] | None = None,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Assembles the normalized linear system for ``evaluations``.

    Args:
        evaluations: Evaluations to map, in order.
        degree: Polynomial degree; the system has ``degree + 1`` columns.
        max_rows: Stop after this many rows (``None`` uses every evaluation).
        weights: Optional per-evaluation weights applied after normalization.
        matrix: Optional preallocated buffer of shape ``(>= rows, degree + 1)``.
        vector: Optional preallocated buffer of shape ``(>= rows,)``.

    Returns:
        ``(A, b)`` views with one row per used evaluation.
    """
    n_coefficients = degree + 1
    n_rows = len(evaluations) if max_rows is None else min(len(evaluations), max_rows)
    if matrix is None:
        matrix = np.empty((n_rows, n_coefficients), dtype=float)
    if vector is None:
        vector = np.empty(n_rows, dtype=float)

    for i in range(n_rows):
        row, rhs = design_row(evaluations[i], n_coefficients)
        weight = 1.0 if weights is None else float(weights[i])
        matrix[i], vector[i] = normalize_row(row, rhs, weight)
    return matrix[:n_rows], vector[:n_rows]


def solve_system(matrix: NDArray[np.float64], vector: NDArray[np.float64]) -> NDArray[np.float64]:
    """Solves the assembled system for the polynomial coefficients.

    Raises:
        PolynomialEstimationError: If the system is singular, rank-deficient
            or under-determined. The numeric cause is chained.
    """
    try:
        return solve_linear_system(matrix, vector, warn_context="polynomial fit")
    except (np.linalg.LinAlgError, ValueError) as e:
        raise PolynomialEstimationError(f"could not solve the polynomial system: {e}") from e
