"""Provides the robust polynomial estimator.

:class:`PolynomialRobustEstimator` fits a polynomial of a given degree to
evaluations contaminated with outliers. Every robust method (RANSAC, MSAC,
LMedS, PROSAC, PROMedS or a registered custom one) runs through the same
estimator; the method only selects the sampler and scorer of the
consensus loop.

Examples:
    >>> from polykit.evaluations import DirectEvaluation
    >>> from polykit.robust import PolynomialRobustEstimator
    >>> xs = [0, 1, 2, 3, 4, 5]
    >>> ys = [1, 3, 7, 100, 21, 31]  # 1 + x + x**2 with one outlier
    >>> evals = [DirectEvaluation(x, y) for x, y in zip(xs, ys)]
    >>> est = PolynomialRobustEstimator(2, evals, method="ransac", threshold=1.0, seed=0)
    >>> est.estimate().coefficients.round(6).tolist()  # doctest: +SKIP
    [1.0, 1.0, 1.0]

Notes:
    The estimator is locked while :meth:`PolynomialRobustEstimator.estimate`
    runs; every setter and a nested ``estimate`` call raise
    :class:`~polykit.exceptions.LockedError` until it returns. The lock is a
    re-entrancy guard for listener callbacks, not a thread lock; callers
    sharing an instance across threads must serialize access themselves.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from polykit.estimators.base import DEFAULT_DEGREE, MIN_DEGREE
from polykit.evaluations import PolynomialEvaluation, is_anchor
from polykit.events import EstimationEvent, EventKind, Listener
from polykit.exceptions import InvalidArgumentError, LockedError, NotReadyError
from polykit.polynomial import Polynomial
from polykit.robust.config import ConsensusConfig
from polykit.robust.diagnostics import make_consensus_diag
from polykit.robust.engine import ConsensusStrategy, RobustEstimatorMethod, run_consensus
from polykit.robust.methods import DEFAULT_METHOD, resolve_method
from polykit.utils.validate import validate_at_least

__all__ = ["PolynomialRobustEstimator"]


def _config_property(name: str, doc: str) -> property:
    def getter(self):
        return getattr(self._config, name)

    def setter(self, value):
        self._check_unlocked()
        self._config.update(**{name: value})

    return property(getter, setter, doc=doc)


class PolynomialRobustEstimator:
    """Robust polynomial fitter driven by a sampling-consensus strategy."""

    def __init__(
        self,
        degree: int = DEFAULT_DEGREE,
        evaluations: Optional[Sequence[PolynomialEvaluation]] = None,
        listener: Optional[Listener] = None,
        quality_scores: Optional[Sequence[float]] = None,
        method: RobustEstimatorMethod | ConsensusStrategy | str = DEFAULT_METHOD,
        config: Optional[ConsensusConfig] = None,
        **config_overrides: Any,
    ):
        """Initializes the estimator.

        Args:
            degree: Degree of the polynomial to estimate (>= 1).
            evaluations: Evaluations to fit; at least ``degree + 1``.
            listener: Optional callable receiving :class:`EstimationEvent`.
            quality_scores: One score per evaluation, larger is better.
                Required by PROSAC and PROMedS, ignored otherwise.
            method: Robust method name, enum or strategy. Defaults to PROSAC.
            config: Optional :class:`ConsensusConfig`; it is copied.
            **config_overrides: Individual config fields such as
                ``threshold=0.5`` or ``seed=0``.

        Raises:
            InvalidArgumentError: If any argument is invalid.
        """
        self._locked = False
        self._strategy = resolve_method(method)
        self._config = ConsensusConfig() if config is None else ConsensusConfig(**config.as_dict())
        self._config.update(**config_overrides)
        self._degree = validate_at_least("degree", degree, MIN_DEGREE)
        self._listener = listener
        self._evaluations = None
        self._quality_scores = None
        if evaluations is not None:
            self.evaluations = evaluations
        if quality_scores is not None:
            self.quality_scores = quality_scores

    def _check_unlocked(self) -> None:
        if self._locked:
            raise LockedError()

    # ---------- method ----------

    @property
    def strategy(self) -> ConsensusStrategy:
        """Sampler and scorer used by :meth:`estimate`."""
        return self._strategy

    @property
    def method(self) -> RobustEstimatorMethod | str:
        """Identifier of the robust method."""
        return self._strategy.name

    def get_method(self) -> RobustEstimatorMethod | str:
        """Returns :attr:`method`."""
        return self._strategy.name

    @property
    def config(self) -> ConsensusConfig:
        """Copy of the consensus loop configuration.

        Changes go through the setters so that they are rejected while
        :meth:`estimate` runs.
        """
        return ConsensusConfig(**self._config.as_dict())

    # ---------- data ----------

    @property
    def degree(self) -> int:
        """Degree of the polynomial to estimate."""
        return self._degree

    @degree.setter
    def degree(self, value: int) -> None:
        self._check_unlocked()
        self._degree = validate_at_least("degree", value, MIN_DEGREE)

    @property
    def min_number_of_evaluations(self) -> int:
        """Size of a minimal subset, ``degree + 1``."""
        return self._degree + 1

    @property
    def evaluations(self) -> Optional[tuple[PolynomialEvaluation, ...]]:
        """Evaluations to fit, outliers included."""
        return self._evaluations

    @evaluations.setter
    def evaluations(self, value: Sequence[PolynomialEvaluation]) -> None:
        self._check_unlocked()
        value = tuple(value)
        if len(value) < self.min_number_of_evaluations:
            raise InvalidArgumentError(
                f"at least {self.min_number_of_evaluations} evaluations are required; got {len(value)}."
            )
        self._evaluations = value

    @property
    def quality_scores(self) -> Optional[NDArray[np.float64]]:
        """Quality score of each evaluation (larger is better)."""
        return self._quality_scores

    @quality_scores.setter
    def quality_scores(self, value: Optional[Sequence[float]]) -> None:
        self._check_unlocked()
        if value is None:
            self._quality_scores = None
            return
        scores = np.array(value, dtype=float)
        if scores.ndim != 1 or scores.size < self.min_number_of_evaluations:
            raise InvalidArgumentError(
                f"quality_scores must be 1D with at least {self.min_number_of_evaluations} values; "
                f"got shape {scores.shape}."
            )
        scores.flags.writeable = False
        self._quality_scores = scores

    @property
    def listener(self) -> Optional[Listener]:
        """Callable notified with :class:`EstimationEvent` values."""
        return self._listener

    @listener.setter
    def listener(self, value: Optional[Listener]) -> None:
        self._check_unlocked()
        self._listener = value

    # ---------- algorithm parameters ----------

    confidence = _config_property("confidence", "Target probability of drawing an outlier-free subset.")
    max_iterations = _config_property("max_iterations", "Hard upper bound on iterations.")
    progress_delta = _config_property("progress_delta", "Progress increment between PROGRESS events.")
    threshold = _config_property("threshold", "Inlier residual cutoff for RANSAC, MSAC and PROSAC.")
    stop_threshold = _config_property("stop_threshold", "Early-stop cutoff for LMedS and PROMedS.")
    use_geometric_distance = _config_property(
        "use_geometric_distance", "Measure direct residuals orthogonally to the tangent line."
    )
    inlier_factor = _config_property("inlier_factor", "Median multiple accepted as inlier by median methods.")
    max_outliers_proportion = _config_property(
        "max_outliers_proportion", "Worst-case outlier fraction assumed by progressive sampling."
    )
    eta0 = _config_property("eta0", "Probability of missing a better solution (PROSAC maximality).")
    beta = _config_property("beta", "Probability of an outlier passing as inlier (PROSAC non-randomness).")
    stop_threshold_enabled = _config_property(
        "stop_threshold_enabled", "Let PROMedS stop early once its threshold reaches the stop threshold."
    )
    refine_result = _config_property("refine_result", "Refit on the consensus set before returning.")
    seed = _config_property("seed", "Seed of the subset sampler; None for fresh entropy.")

    # ---------- state ----------

    def is_locked(self) -> bool:
        """Returns True while an estimation is in progress."""
        return self._locked

    def is_ready(self) -> bool:
        """Returns True if :meth:`estimate` can run.

        Requires at least ``degree + 1`` evaluations including one direct or
        integral evaluation and, for quality-driven methods, one quality score
        per evaluation.
        """
        evaluations = self._evaluations
        if evaluations is None or len(evaluations) < self.min_number_of_evaluations:
            return False
        if not any(is_anchor(e) for e in evaluations):
            return False
        if self._strategy.uses_quality_scores:
            return self._quality_scores is not None and self._quality_scores.size == len(evaluations)
        return True

    def _emit(self, kind: EventKind, iteration: Optional[int] = None, progress: Optional[float] = None) -> None:
        if self._listener is not None:
            self._listener(EstimationEvent(kind, self, iteration, progress))

    def estimate(self, diagnostics: bool = False):
        """Estimates the polynomial while rejecting outliers.

        Args:
            diagnostics: If True, also return a diagnostics dictionary (see
                :func:`polykit.robust.diagnostics.make_consensus_diag`).

        Returns:
            The estimated :class:`~polykit.polynomial.Polynomial`, or
            ``(polynomial, diag)`` when ``diagnostics`` is True.

        Raises:
            LockedError: If an estimation is already running.
            NotReadyError: If :meth:`is_ready` is False.
            RobustEstimatorError: If no candidate could be fitted.
        """
        self._check_unlocked()
        if not self.is_ready():
            raise NotReadyError()

        self._locked = True
        config = self.config
        try:
            self._emit(EventKind.START)
            result = run_consensus(
                self._evaluations,
                self._degree,
                config,
                self._strategy,
                quality_scores=self._quality_scores,
                emit=self._emit,
            )
            self._emit(EventKind.END)
        finally:
            self._locked = False

        polynomial: Polynomial = result.polynomial
        if diagnostics:
            return polynomial, make_consensus_diag(self.method, result)
        return polynomial
