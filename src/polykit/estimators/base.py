"""Shared state of the linear polynomial fitters."""

from __future__ import annotations

import enum
from typing import Optional, Sequence

from polykit.evaluations import PolynomialEvaluation, is_anchor
from polykit.events import EstimationEvent, EventKind, Listener
from polykit.exceptions import LockedError, NotReadyError
from polykit.polynomial import Polynomial
from polykit.utils.validate import validate_at_least

__all__ = ["PolynomialEstimator", "PolynomialEstimatorType", "MIN_DEGREE", "DEFAULT_DEGREE"]

MIN_DEGREE = 1
DEFAULT_DEGREE = 1


class PolynomialEstimatorType(enum.Enum):
    """Available linear fitters."""

    LMSE = "lmse"
    WEIGHTED = "weighted"


class PolynomialEstimator:
    """Base class of the linear fitters.

    Holds the polynomial degree, the evaluations, an optional listener and the
    lock flag that rejects reconfiguration while :meth:`estimate` runs.
    Subclasses implement :meth:`_fit`.
    """

    estimator_type: PolynomialEstimatorType

    def __init__(
        self,
        degree: int = DEFAULT_DEGREE,
        evaluations: Optional[Sequence[PolynomialEvaluation]] = None,
        listener: Optional[Listener] = None,
    ):
        self._locked = False
        self._degree = validate_at_least("degree", degree, MIN_DEGREE)
        self._evaluations = None if evaluations is None else tuple(evaluations)
        self._listener = listener

    def _check_unlocked(self) -> None:
        if self._locked:
            raise LockedError()

    @property
    def degree(self) -> int:
        """Degree of the polynomial to estimate (>= 1)."""
        return self._degree

    @degree.setter
    def degree(self, value: int) -> None:
        self._check_unlocked()
        self._degree = validate_at_least("degree", value, MIN_DEGREE)

    @property
    def evaluations(self) -> Optional[tuple[PolynomialEvaluation, ...]]:
        """Evaluations used for the fit."""
        return self._evaluations

    @evaluations.setter
    def evaluations(self, value: Optional[Sequence[PolynomialEvaluation]]) -> None:
        self._check_unlocked()
        self._evaluations = None if value is None else tuple(value)

    @property
    def listener(self) -> Optional[Listener]:
        """Callable notified with :class:`EstimationEvent` values."""
        return self._listener

    @listener.setter
    def listener(self, value: Optional[Listener]) -> None:
        self._check_unlocked()
        self._listener = value

    @property
    def min_number_of_evaluations(self) -> int:
        """Smallest number of evaluations that determines the polynomial."""
        return self._degree + 1

    def is_locked(self) -> bool:
        """Returns True while an estimation is in progress."""
        return self._locked

    def is_ready(self) -> bool:
        """Returns True if there are enough evaluations and at least one anchor."""
        evaluations = self._evaluations
        return (
            evaluations is not None
            and len(evaluations) >= self.min_number_of_evaluations
            and any(is_anchor(e) for e in evaluations)
        )

    def _emit(self, kind: EventKind, iteration: Optional[int] = None, progress: Optional[float] = None) -> None:
        if self._listener is not None:
            self._listener(EstimationEvent(kind, self, iteration, progress))

    def estimate(self) -> Polynomial:
        """Estimates the polynomial from the current evaluations.

        Returns:
            The estimated polynomial with ``degree + 1`` coefficients.

        Raises:
            LockedError: If an estimation is already running.
            NotReadyError: If :meth:`is_ready` is False.
            PolynomialEstimationError: If the linear system cannot be solved.
        """
        self._check_unlocked()
        if not self.is_ready():
            raise NotReadyError()

        self._locked = True
        try:
            self._emit(EventKind.START)
            polynomial = self._fit()
            self._emit(EventKind.END)
            return polynomial
        finally:
            self._locked = False

    def _fit(self) -> Polynomial:
        raise NotImplementedError
