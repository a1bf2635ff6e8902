"""Error types raised by PolyKit.

Every failure is a distinct type so callers can branch on the kind of
problem: fix inputs on :class:`InvalidArgumentError` or
:class:`NotReadyError`, relax thresholds on :class:`RobustEstimatorError`.
"""

from __future__ import annotations

__all__ = [
    "PolykitError",
    "LockedError",
    "NotReadyError",
    "InvalidArgumentError",
    "PolynomialError",
    "PolynomialEstimationError",
    "RobustEstimatorError",
]


class PolykitError(Exception):
    """Base class for all errors raised by PolyKit."""


class LockedError(PolykitError):
    """Raised when an estimator is modified or run while an estimation is in progress."""

    def __init__(self, message: str = "estimator is locked while an estimation is in progress"):
        super().__init__(message)


class NotReadyError(PolykitError):
    """Raised when ``estimate()`` is called before the estimator has enough data."""

    def __init__(self, message: str = "estimator is not ready"):
        super().__init__(message)


class InvalidArgumentError(PolykitError, ValueError):
    """Raised eagerly by constructors and setters on out-of-range arguments."""


class PolynomialError(PolykitError):
    """Raised when a polynomial operation (e.g. root finding) fails numerically."""


class PolynomialEstimationError(PolykitError):
    """Raised when a linear polynomial fit cannot be computed.

    The underlying numerical cause, when there is one, is chained as
    ``__cause__``.
    """


class RobustEstimatorError(PolykitError):
    """Raised when a robust estimator finishes without any valid candidate."""
