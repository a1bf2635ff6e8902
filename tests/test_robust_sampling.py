"""Tests for polykit.robust.sampling."""

from __future__ import annotations

import math

import numpy as np
import pytest

from polykit.robust.sampling import (
    CHI_SQUARED,
    ProgressiveSubsetSampler,
    UniformSubsetSampler,
    compute_iterations,
)


def _progressive(n=20, s=3, scores=None, **overrides):
    options = dict(
        confidence=0.99,
        max_iterations=5000,
        max_outliers_proportion=0.8,
        eta0=0.05,
        beta=0.01,
    )
    options.update(overrides)
    scores = np.arange(n, dtype=float) if scores is None else scores
    return ProgressiveSubsetSampler(n, s, np.random.default_rng(0), quality_scores=scores, **options)


def test_chi_squared_constant():
    """Tests the 90% chi-squared quantile with one degree of freedom."""
    assert CHI_SQUARED == pytest.approx(2.706, abs=1e-3)


def test_compute_iterations_formula():
    """Tests log(1 - c) / log(1 - w^s) rounded up."""
    expected = math.ceil(math.log(0.01) / math.log(1.0 - 0.5**3))
    assert compute_iterations(0.5, 3, 0.99) == expected == 35


def test_compute_iterations_edge_cases():
    """Tests clamping for perfect, hopeless and bounded cases."""
    assert compute_iterations(1.0, 3, 0.99) == 1
    assert compute_iterations(1.5, 3, 0.99) == 1
    assert compute_iterations(0.0, 3, 0.99, max_iterations=123) == 123
    assert compute_iterations(0.1, 4, 0.99, max_iterations=50) == 50
    assert compute_iterations(0.9, 2, 0.0) == 1
    assert compute_iterations(0.9, 2, 1.0, max_iterations=10) == 10


def test_compute_iterations_decreases_with_inlier_ratio():
    """Tests that more inliers never require more iterations."""
    counts = [compute_iterations(w, 3, 0.99) for w in (0.2, 0.4, 0.6, 0.8, 0.95)]
    assert counts == sorted(counts, reverse=True)


def test_uniform_sampler_draws_distinct_indices():
    """Tests that uniform subsets are distinct and in range."""
    sampler = UniformSubsetSampler(10, 4, np.random.default_rng(3))
    out = np.empty(4, dtype=np.intp)
    for t in range(1, 50):
        sampler.draw(t, out)
        assert len(set(out.tolist())) == 4
        assert out.min() >= 0 and out.max() < 10
    assert sampler.should_continue(10, 0)
    assert sampler.expected_iterations() is None


def test_uniform_sampler_is_reproducible():
    """Tests that equal seeds give equal subset sequences."""
    a = UniformSubsetSampler(30, 3, np.random.default_rng(11))
    b = UniformSubsetSampler(30, 3, np.random.default_rng(11))
    out_a = np.empty(3, dtype=np.intp)
    out_b = np.empty(3, dtype=np.intp)
    for t in range(1, 20):
        assert a.draw(t, out_a).tolist() == b.draw(t, out_b).tolist()


def test_progressive_first_draw_uses_best_scores():
    """Tests that the first PROSAC subset is the top-quality minimal set."""
    scores = np.array([0.1, 0.9, 0.5, 0.8, 0.2, 0.7])
    sampler = _progressive(n=6, s=3, scores=scores)
    out = np.empty(3, dtype=np.intp)
    sampler.draw(1, out)
    assert sorted(out.tolist()) == [1, 3, 5]


def test_progressive_window_grows_and_stays_in_window():
    """Tests that subsets come from a growing window of top-ranked evaluations."""
    n, s = 20, 3
    scores = np.arange(n, dtype=float)  # evaluation n-1 is best
    sampler = _progressive(n=n, s=s, scores=scores)
    out = np.empty(s, dtype=np.intp)

    windows = []
    for t in range(1, 200):
        sampler.draw(t, out)
        ranks = n - 1 - out  # rank 0 is the best evaluation
        assert len(set(out.tolist())) == s
        assert ranks.max() < sampler.window
        windows.append(sampler.window)

    assert windows == sorted(windows)
    assert windows[-1] > s


def test_progressive_update_best_shrinks_bound():
    """Tests that a perfect consensus among top-ranked points ends sampling quickly."""
    n, s = 40, 3
    scores = np.r_[np.ones(20), np.zeros(20)]
    sampler = _progressive(n=n, s=s, scores=scores)
    assert sampler.k_n_star == sampler.max_samples

    mask = scores > 0.5
    sampler.update_best(mask)
    assert sampler.n_star == 20
    assert sampler.k_n_star == 1
    assert not sampler.should_continue(1, int(mask.sum()))


def test_progressive_ignores_random_looking_consensus():
    """Tests that a consensus no larger than chance does not set n*."""
    sampler = _progressive(n=50, s=3)
    mask = np.zeros(50, dtype=bool)
    mask[:3] = True
    sampler.update_best(mask)
    assert sampler.n_star == 50
    assert sampler.k_n_star == sampler.max_samples


def test_progressive_min_inliers_for():
    """Tests the non-randomness bound for a window of 100 points."""
    sampler = _progressive(n=100, s=3)
    expected = math.ceil(3 + 100 * 0.01 + math.sqrt(100 * 0.01 * 0.99) * math.sqrt(CHI_SQUARED))
    assert sampler.min_inliers_for(100) == expected


def test_progressive_budget_from_outlier_proportion():
    """Tests that the total budget follows the assumed outlier fraction."""
    sampler = _progressive(n=30, s=3, max_iterations=100000)
    assert sampler.max_samples == compute_iterations(0.2, 3, 0.99)
    assert sampler.min_inliers == int((1.0 - 0.8) * 30)
    capped = _progressive(n=30, s=3, max_iterations=10)
    assert capped.max_samples == 10


def _top_ranked_mask(n, k):
    mask = np.zeros(n, dtype=bool)
    mask[n - k:] = True  # with arange scores the last k evaluations rank first
    return mask


def test_progressive_small_local_consensus_needs_significant_ratio():
    """Tests that a few top-ranked inliers do not collapse n* to their own count."""
    sampler = _progressive(n=40, s=3)
    sampler.update_best(_top_ranked_mask(40, 7))

    assert sampler.n_star == 8
    assert sampler.k_n_star == compute_iterations(7 / 8, 3, 0.95, sampler.max_samples)
    assert sampler.k_n_star > 1


def test_progressive_n_star_only_moves_to_a_better_ratio():
    """Tests that a later consensus with a lower inlier fraction keeps n*."""
    sampler = _progressive(n=40, s=3)
    sampler.update_best(_top_ranked_mask(40, 20))
    assert sampler.n_star == 20
    assert sampler.k_n_star == 1

    sampler.update_best(_top_ranked_mask(40, 7))
    assert sampler.n_star == 20
    assert sampler.k_n_star == 1


def test_progressive_finishing_stage_draws_from_all_evaluations():
    """Tests that once the window stops at n*, draws cover every evaluation."""
    n, s = 20, 3
    sampler = _progressive(n=n, s=s)
    sampler.n_star = 5
    out = np.empty(s, dtype=np.intp)

    ranks = set()
    for t in range(1, 300):
        sampler.draw(t, out)
        assert len(set(out.tolist())) == s
        ranks.update((n - 1 - out).tolist())

    assert sampler.window == 5
    assert max(ranks) >= 5
