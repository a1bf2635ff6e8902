"""Provides polynomial algebra and robust polynomial estimation."""

from importlib.metadata import PackageNotFoundError, version

from polykit.estimators import (
    LMSEPolynomialEstimator,
    PolynomialEstimatorType,
    WeightedPolynomialEstimator,
    create_polynomial_estimator,
)
from polykit.evaluations import (
    DerivativeEvaluation,
    DirectEvaluation,
    EvaluationType,
    IntegralEvaluation,
    IntegralIntervalEvaluation,
)
from polykit.events import EstimationEvent, EventKind, EventRecorder
from polykit.exceptions import (
    InvalidArgumentError,
    LockedError,
    NotReadyError,
    PolykitError,
    PolynomialError,
    PolynomialEstimationError,
    RobustEstimatorError,
)
from polykit.polynomial import Polynomial
from polykit.robust import (
    ConsensusConfig,
    PolynomialRobustEstimator,
    RobustEstimatorMethod,
    available_methods,
    create_robust_estimator,
    register_method,
)

try:
    __version__ = version("polykit")
except PackageNotFoundError:
    pass

__all__ = [
    "Polynomial",
    "EvaluationType",
    "DirectEvaluation",
    "DerivativeEvaluation",
    "IntegralEvaluation",
    "IntegralIntervalEvaluation",
    "LMSEPolynomialEstimator",
    "WeightedPolynomialEstimator",
    "PolynomialEstimatorType",
    "create_polynomial_estimator",
    "PolynomialRobustEstimator",
    "RobustEstimatorMethod",
    "ConsensusConfig",
    "create_robust_estimator",
    "available_methods",
    "register_method",
    "EstimationEvent",
    "EventKind",
    "EventRecorder",
    "PolykitError",
    "LockedError",
    "NotReadyError",
    "InvalidArgumentError",
    "PolynomialError",
    "PolynomialEstimationError",
    "RobustEstimatorError",
]
