"""Tests for polykit.robust.scoring."""

from __future__ import annotations

import math

import numpy as np
import pytest

from polykit.robust.config import ConsensusConfig
from polykit.robust.scoring import (
    STD_CONSTANT,
    InlierCountScorer,
    MedianScorer,
    TruncatedQuadraticScorer,
    robust_standard_deviation,
)

RESIDUALS = np.array([0.0, 0.05, 0.2, 0.5, 3.0])


def test_inlier_count_scorer():
    """Tests that RANSAC counts residuals strictly below the threshold."""
    scorer = InlierCountScorer(ConsensusConfig(threshold=0.2), 5, 2)
    score = scorer.score(RESIDUALS)
    assert score.n_inliers == 2
    assert score.value == -2.0
    assert score.inlier_mask.tolist() == [True, True, False, False, False]
    assert scorer.should_continue(score)


def test_truncated_quadratic_scorer():
    """Tests that MSAC sums squared residuals capped at threshold^2."""
    scorer = TruncatedQuadraticScorer(ConsensusConfig(threshold=0.3), 5, 2)
    score = scorer.score(RESIDUALS)
    assert score.value == pytest.approx(0.0 + 0.0025 + 0.04 + 0.09 + 0.09)
    assert score.n_inliers == 3


def test_median_scorer():
    """Tests LMedS median, inlier threshold and robust deviation."""
    cfg = ConsensusConfig(inlier_factor=2.0, stop_threshold=1e-3)
    scorer = MedianScorer(cfg, 5, 2)
    score = scorer.score(RESIDUALS)

    assert score.value == pytest.approx(0.2)
    assert score.threshold == pytest.approx(0.4)
    assert score.n_inliers == 3
    assert score.robust_std == pytest.approx(STD_CONSTANT * (1.0 + 5.0 / 3.0) * math.sqrt(0.2))
    assert scorer.should_continue(score)
    assert scorer.should_continue(None)


def test_median_scorer_stops_below_stop_threshold():
    """Tests the LMedS early stop once the threshold reaches stop_threshold."""
    scorer = MedianScorer(ConsensusConfig(stop_threshold=0.5), 5, 2)
    score = scorer.score(np.array([0.0, 0.1, 0.3, 0.4, 9.0]))
    assert not scorer.should_continue(score)


def test_median_scorer_caps_inliers_with_stop_threshold():
    """Tests that PROMedS reports the smaller of the two inlier sets."""
    cfg = ConsensusConfig(stop_threshold=0.01)
    capped = MedianScorer(cfg, 5, 2, cap_with_stop_threshold=True).score(RESIDUALS)
    plain = MedianScorer(cfg, 5, 2).score(RESIDUALS)
    assert plain.n_inliers == 3
    assert capped.n_inliers == 1
    assert capped.inlier_mask.tolist() == [True, False, False, False, False]

    cfg.update(stop_threshold_enabled=False)
    assert MedianScorer(cfg, 5, 2, cap_with_stop_threshold=True).score(RESIDUALS).n_inliers == 1


def test_stop_threshold_flag_switches_promeds_early_stop():
    """Tests that stop_threshold_enabled toggles the PROMedS stop but never the LMedS one."""
    residuals = np.array([0.0, 0.1, 0.3, 0.4, 9.0])
    enabled = ConsensusConfig(stop_threshold=0.5)
    disabled = ConsensusConfig(stop_threshold=0.5, stop_threshold_enabled=False)

    promeds_on = MedianScorer(enabled, 5, 2, cap_with_stop_threshold=True)
    promeds_off = MedianScorer(disabled, 5, 2, cap_with_stop_threshold=True)
    lmeds_off = MedianScorer(disabled, 5, 2)

    assert not promeds_on.should_continue(promeds_on.score(residuals))
    assert promeds_off.should_continue(promeds_off.score(residuals))
    assert not lmeds_off.should_continue(lmeds_off.score(residuals))


def test_robust_standard_deviation_needs_redundancy():
    """Tests that no redundancy gives NaN."""
    assert math.isnan(robust_standard_deviation(0.5, 3, 3))
