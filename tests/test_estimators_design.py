"""Tests for polykit.estimators.design."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.testing import assert_allclose

from polykit.estimators.design import build_system, design_row, normalize_row, solve_system
from polykit.evaluations import (
    DerivativeEvaluation,
    DirectEvaluation,
    IntegralEvaluation,
    IntegralIntervalEvaluation,
)
from polykit.exceptions import PolynomialEstimationError
from polykit.polynomial import Polynomial


def test_direct_row_is_powers_of_x():
    """Tests that a direct evaluation maps to [1, x, x^2, ...]."""
    row, rhs = design_row(DirectEvaluation(2.0, 7.0), 3)
    assert_allclose(row, [1.0, 2.0, 4.0])
    assert rhs == 7.0


def test_derivative_rows():
    """Tests first and second derivative rows at x = 2."""
    row, rhs = design_row(DerivativeEvaluation(2.0, 5.0), 3)
    assert_allclose(row, [0.0, 1.0, 4.0])
    assert rhs == 5.0

    row, _ = design_row(DerivativeEvaluation(2.0, 2.0, derivative_order=2), 4)
    assert_allclose(row, [0.0, 0.0, 2.0, 12.0])


def test_derivative_row_above_degree_is_zero():
    """Tests that derivatives of higher order than the degree give a zero row."""
    row, _ = design_row(DerivativeEvaluation(1.0, 0.0, derivative_order=5), 3)
    assert_allclose(row, np.zeros(3))


def test_integral_row_without_constants():
    """Tests the first-integral row at x = 2."""
    row, rhs = design_row(IntegralEvaluation(2.0, 3.0), 3)
    assert_allclose(row, [2.0, 2.0, 8.0 / 3.0])
    assert rhs == 3.0


def test_integral_row_subtracts_constants():
    """Tests that constant contributions c_i / i! * x^i move to the rhs."""
    ev = IntegralEvaluation(1.0, 10.0, integral_order=2, constants=(2.0, 3.0))
    row, rhs = design_row(ev, 3)
    assert_allclose(row, [0.5, 1.0 / 6.0, 1.0 / 12.0])
    assert rhs == pytest.approx(10.0 - 2.0 - 3.0)


def test_integral_interval_row():
    """Tests the interval row as a difference of end and start powers."""
    ev = IntegralIntervalEvaluation(1.0, 2.0, 4.0, integral_order=2, constants=(1.0, 5.0))
    row, rhs = design_row(ev, 2)
    assert_allclose(row, [(4.0 - 1.0) / 2.0, (8.0 - 1.0) / 6.0])
    # constant 1 contributes to x^0 (cancels), constant 5 to x^1.
    assert rhs == pytest.approx(4.0 - 5.0 * (2.0 - 1.0))


def test_rows_agree_with_polynomial_operations():
    """Tests that row @ coefficients reproduces the polynomial's own evaluation."""
    p = Polynomial([1.0, -2.0, 0.5, 0.25])
    n = len(p)
    evals = [
        DirectEvaluation(1.5, p.evaluate(1.5)),
        DerivativeEvaluation(-0.5, p.evaluate_nth_derivative(-0.5, 2), derivative_order=2),
        IntegralEvaluation(0.7, p.nth_integration(2, (1.0, -1.0)).evaluate(0.7), 2, (1.0, -1.0)),
        IntegralIntervalEvaluation(-1.0, 2.0, p.nth_order_integrate_interval(-1.0, 2.0, 1, (4.0,)), 1, (4.0,)),
    ]
    for ev in evals:
        row, rhs = design_row(ev, n)
        assert row @ p.coefficients == pytest.approx(rhs)


def test_unknown_evaluation_type_raises_type_error():
    """Tests that dispatch on an unknown type fails loudly."""
    with pytest.raises(TypeError):
        design_row(object(), 3)


def test_constants_mismatch_raises_estimation_error():
    """Tests that a duck-typed integral with wrong constants fails the row fill."""
    ev = IntegralEvaluation(1.0, 2.0, integral_order=1)
    object.__setattr__(ev, "constants", (1.0, 2.0))
    with pytest.raises(PolynomialEstimationError):
        design_row(ev, 3)


def test_normalize_row():
    """Tests joint normalization of row and rhs, and weighting."""
    row, rhs = normalize_row(np.array([3.0, 0.0]), 4.0)
    assert_allclose(row, [0.6, 0.0])
    assert rhs == pytest.approx(0.8)

    row, rhs = normalize_row(np.array([3.0, 0.0]), 4.0, weight=2.0)
    assert_allclose(row, [1.2, 0.0])
    assert rhs == pytest.approx(1.6)

    row, rhs = normalize_row(np.zeros(2), 0.0)
    assert_allclose(row, [0.0, 0.0])
    assert rhs == 0.0


def test_build_system_respects_max_rows_and_buffers():
    """Tests row limiting and writing into preallocated buffers."""
    evals = [DirectEvaluation(float(x), float(x)) for x in range(5)]
    matrix = np.empty((5, 2))
    vector = np.empty(5)

    a, b = build_system(evals, 1, max_rows=2, matrix=matrix, vector=vector)
    assert a.shape == (2, 2)
    assert b.shape == (2,)
    assert np.shares_memory(a, matrix)
    # every row has unit norm jointly with its rhs
    assert_allclose(np.sum(a**2, axis=1) + b**2, 1.0)


def test_solve_system_wraps_linalg_errors():
    """Tests that singular systems raise PolynomialEstimationError with the numeric cause."""
    evals = [DirectEvaluation(1.0, 2.0), DirectEvaluation(1.0, 2.0)]
    a, b = build_system(evals, 1)
    with pytest.raises(PolynomialEstimationError) as excinfo:
        solve_system(a, b)
    assert isinstance(excinfo.value.__cause__, np.linalg.LinAlgError)
