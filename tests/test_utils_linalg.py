"""Tests for polykit.utils.linalg."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.testing import assert_allclose

from polykit.utils.linalg import solve_linear_system


def test_solve_square_system():
    """Tests that a square system is solved exactly."""
    a = np.array([[2.0, 1.0], [1.0, 3.0]])
    x = np.array([1.0, -2.0])
    assert_allclose(solve_linear_system(a, a @ x), x)


def test_solve_overdetermined_consistent_system():
    """Tests that a consistent over-determined system returns the exact solution."""
    a = np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
    x = np.array([3.0, 4.0])
    assert_allclose(solve_linear_system(a, a @ x), x)


def test_singular_square_system_raises():
    """Tests that a singular square system raises LinAlgError."""
    a = np.array([[1.0, 2.0], [2.0, 4.0]])
    with pytest.raises(np.linalg.LinAlgError):
        solve_linear_system(a, np.array([1.0, 2.0]))


def test_rank_deficient_overdetermined_raises():
    """Tests that duplicated columns are reported as rank deficient."""
    a = np.array([[1.0, 1.0], [2.0, 2.0], [3.0, 3.0]])
    with pytest.raises(np.linalg.LinAlgError, match="rank-deficient"):
        solve_linear_system(a, np.array([1.0, 2.0, 3.0]))


def test_underdetermined_raises():
    """Tests that fewer equations than unknowns is rejected."""
    with pytest.raises(np.linalg.LinAlgError, match="under-determined"):
        solve_linear_system(np.ones((1, 2)), np.ones(1))


def test_shape_mismatch_raises_value_error():
    """Tests that incompatible shapes are rejected."""
    with pytest.raises(ValueError):
        solve_linear_system(np.eye(2), np.ones(3))
    with pytest.raises(ValueError):
        solve_linear_system(np.ones(3), np.ones(3))


def test_ill_conditioned_system_warns():
    """Tests that a full-rank but ill-conditioned system emits a RuntimeWarning."""
    a = np.array([[1.0, 0.0], [0.0, 1e-11], [0.0, 0.0]])
    with pytest.warns(RuntimeWarning, match="ill-conditioned"):
        x = solve_linear_system(a, np.array([1.0, 1e-11, 0.0]), warn_context="test")
    assert_allclose(x, [1.0, 1.0])
