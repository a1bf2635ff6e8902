"""Pytest configuration file with shared evaluation fixtures."""

import os

import numpy as np
import pytest

from polykit.evaluations import DirectEvaluation
from polykit.polynomial import Polynomial

__all__ = ["direct_samples"]


@pytest.fixture(autouse=True, scope="session")
def _limit_blas_threads():
    os.environ.setdefault("OMP_NUM_THREADS", "1")
    os.environ.setdefault("OPENBLAS_NUM_THREADS", "1")
    os.environ.setdefault("MKL_NUM_THREADS", "1")


def direct_samples(polynomial, xs, offsets=None):
    """Return direct evaluations of ``polynomial`` at ``xs`` shifted by ``offsets``."""
    xs = np.asarray(xs, dtype=float)
    offsets = np.zeros_like(xs) if offsets is None else np.asarray(offsets, dtype=float)
    return [DirectEvaluation(float(x), polynomial.evaluate(x) + float(d)) for x, d in zip(xs, offsets)]


@pytest.fixture
def rng():
    """Seeded generator for reproducible synthetic data."""
    return np.random.default_rng(1234)


@pytest.fixture
def true_polynomial():
    """``1 + x + x**2``."""
    return Polynomial([1.0, 1.0, 1.0])


@pytest.fixture
def contaminated(true_polynomial):
    """Twenty exact samples of ``1 + x + x**2`` followed by eight gross outliers.

    Returns:
        A tuple ``(evaluations, outlier_mask, quality_scores)`` where the
        quality scores rank every inlier above every outlier.
    """
    inlier_x = np.linspace(-2.0, 2.0, 20)
    outlier_x = np.linspace(-1.9, 1.9, 8)
    outlier_offsets = np.array([5.0, -7.0, 9.0, -11.0, 6.0, -8.0, 12.0, -15.0])

    evaluations = direct_samples(true_polynomial, inlier_x) + direct_samples(
        true_polynomial, outlier_x, outlier_offsets
    )
    outlier_mask = np.r_[np.zeros(20, dtype=bool), np.ones(8, dtype=bool)]
    quality_scores = np.where(outlier_mask, 0.1, 1.0)
    return evaluations, outlier_mask, quality_scores


@pytest.fixture
def noisy_contaminated(true_polynomial, rng):
    """Like ``contaminated`` but the inliers carry Gaussian noise (sigma 0.001)."""
    inlier_x = np.linspace(-2.0, 2.0, 30)
    outlier_x = np.linspace(-1.5, 1.5, 10)
    evaluations = direct_samples(
        true_polynomial, inlier_x, rng.normal(0.0, 0.001, inlier_x.size)
    ) + direct_samples(true_polynomial, outlier_x, rng.uniform(5.0, 20.0, outlier_x.size))
    outlier_mask = np.r_[np.zeros(30, dtype=bool), np.ones(10, dtype=bool)]
    return evaluations, outlier_mask


@pytest.fixture
def make_direct():
    """Return :func:`direct_samples` for use inside tests."""
    return direct_samples
