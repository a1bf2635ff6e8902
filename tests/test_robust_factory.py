"""Tests for polykit.robust.factory."""

from __future__ import annotations

import pytest

from polykit.events import EventRecorder
from polykit.robust.engine import RobustEstimatorMethod
from polykit.robust.estimator import PolynomialRobustEstimator
from polykit.robust.factory import create_robust_estimator


def test_default_method_is_prosac():
    """Tests that the factory defaults to PROSAC with degree one."""
    est = create_robust_estimator()
    assert isinstance(est, PolynomialRobustEstimator)
    assert est.method is RobustEstimatorMethod.PROSAC
    assert est.degree == 1


@pytest.mark.parametrize("method", list(RobustEstimatorMethod))
def test_every_method_can_be_created(method, contaminated):
    """Tests creation by enum with degree, evaluations, listener and quality scores."""
    evals, _, quality = contaminated
    rec = EventRecorder()
    est = create_robust_estimator(
        method, degree=2, evaluations=evals, listener=rec, quality_scores=quality, threshold=0.1, seed=0
    )

    assert est.get_method() is method
    assert est.evaluations == tuple(evals)
    assert est.quality_scores.tolist() == quality.tolist()
    assert est.listener is rec
    assert est.threshold == 0.1
    assert est.is_ready()


def test_config_fields_are_forwarded():
    """Tests that keyword config fields reach the estimator."""
    est = create_robust_estimator("lmeds", stop_threshold=1e-3, inlier_factor=1.5, max_iterations=10)
    assert est.stop_threshold == 1e-3
    assert est.inlier_factor == 1.5
    assert est.max_iterations == 10


def test_unknown_config_field_is_rejected():
    """Tests that misspelled config fields fail loudly."""
    with pytest.raises(TypeError):
        create_robust_estimator("ransac", treshold=0.1)
