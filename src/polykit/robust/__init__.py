"""Robust polynomial estimation by sampling consensus."""

from polykit.robust.config import ConsensusConfig
from polykit.robust.diagnostics import format_consensus_diagnostics, make_consensus_diag
from polykit.robust.distance import algebraic_distance, distance, geometric_distance, residuals
from polykit.robust.engine import (
    BUILTIN_STRATEGIES,
    ConsensusResult,
    ConsensusStrategy,
    RobustEstimatorMethod,
    run_consensus,
)
from polykit.robust.estimator import PolynomialRobustEstimator
from polykit.robust.factory import create_robust_estimator
from polykit.robust.methods import available_methods, register_method, resolve_method
from polykit.robust.sampling import ProgressiveSubsetSampler, UniformSubsetSampler, compute_iterations
from polykit.robust.scoring import (
    CandidateScore,
    InlierCountScorer,
    MedianScorer,
    TruncatedQuadraticScorer,
)

__all__ = [
    "ConsensusConfig",
    "ConsensusResult",
    "ConsensusStrategy",
    "RobustEstimatorMethod",
    "BUILTIN_STRATEGIES",
    "PolynomialRobustEstimator",
    "create_robust_estimator",
    "available_methods",
    "register_method",
    "resolve_method",
    "run_consensus",
    "algebraic_distance",
    "geometric_distance",
    "distance",
    "residuals",
    "compute_iterations",
    "UniformSubsetSampler",
    "ProgressiveSubsetSampler",
    "CandidateScore",
    "InlierCountScorer",
    "TruncatedQuadraticScorer",
    "MedianScorer",
    "make_consensus_diag",
    "format_consensus_diagnostics",
]
