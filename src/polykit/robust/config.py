"""Configuration for the sampling-consensus polynomial estimators.

A :class:`ConsensusConfig` gathers every tunable of the consensus loop.
Values are validated when the config is built and whenever a field is
changed through :meth:`ConsensusConfig.update`.
"""

from __future__ import annotations

from polykit.exceptions import InvalidArgumentError
from polykit.utils.validate import (
    validate_at_least,
    validate_in_unit_interval,
    validate_positive,
)

__all__ = [
    "ConsensusConfig",
    "DEFAULT_CONFIDENCE",
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_PROGRESS_DELTA",
    "DEFAULT_THRESHOLD",
    "DEFAULT_STOP_THRESHOLD",
]

DEFAULT_CONFIDENCE = 0.99
DEFAULT_MAX_ITERATIONS = 5000
DEFAULT_PROGRESS_DELTA = 0.05
DEFAULT_THRESHOLD = 1e-6
DEFAULT_STOP_THRESHOLD = 1e-6
DEFAULT_USE_GEOMETRIC_DISTANCE = False
DEFAULT_INLIER_FACTOR = 1.0
DEFAULT_MAX_OUTLIERS_PROPORTION = 0.8
DEFAULT_ETA0 = 0.05
DEFAULT_BETA = 0.01
DEFAULT_STOP_THRESHOLD_ENABLED = True
DEFAULT_REFINE_RESULT = True


def _validate_seed(name, value):
    if value is not None and (isinstance(value, bool) or int(value) != value or value < 0):
        raise InvalidArgumentError(f"{name} must be None or a non-negative integer; got {value}.")
    return None if value is None else int(value)


_VALIDATORS = {
    "confidence": validate_in_unit_interval,
    "max_iterations": lambda name, v: validate_at_least(name, v, 1),
    "progress_delta": validate_in_unit_interval,
    "threshold": validate_positive,
    "stop_threshold": validate_positive,
    "use_geometric_distance": lambda name, v: bool(v),
    "inlier_factor": validate_positive,
    "max_outliers_proportion": validate_in_unit_interval,
    "eta0": validate_in_unit_interval,
    "beta": validate_in_unit_interval,
    "stop_threshold_enabled": lambda name, v: bool(v),
    "refine_result": lambda name, v: bool(v),
    "seed": _validate_seed,
}


class ConsensusConfig:
    """Parameters of the sampling-consensus loop."""

    def __init__(
        self,
        confidence: float = DEFAULT_CONFIDENCE,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        progress_delta: float = DEFAULT_PROGRESS_DELTA,
        threshold: float = DEFAULT_THRESHOLD,
        stop_threshold: float = DEFAULT_STOP_THRESHOLD,
        use_geometric_distance: bool = DEFAULT_USE_GEOMETRIC_DISTANCE,
        inlier_factor: float = DEFAULT_INLIER_FACTOR,
        max_outliers_proportion: float = DEFAULT_MAX_OUTLIERS_PROPORTION,
        eta0: float = DEFAULT_ETA0,
        beta: float = DEFAULT_BETA,
        stop_threshold_enabled: bool = DEFAULT_STOP_THRESHOLD_ENABLED,
        refine_result: bool = DEFAULT_REFINE_RESULT,
        seed: int | None = None,
    ):
        """Initialize configuration.

        Args:
            confidence:
                Probability in ``[0, 1]`` that at least one drawn subset is
                free of outliers. Drives the adaptive iteration bound
                ``log(1 - confidence) / log(1 - w**s)`` where ``w`` is the
                inlier ratio of the best candidate and ``s`` the subset size.

            max_iterations:
                Hard upper bound on the number of sampling iterations (>= 1).

            progress_delta:
                A ``PROGRESS`` event is emitted whenever the completed
                fraction advances by more than this amount. Must be in
                ``[0, 1]``.

            threshold:
                Residual below which an evaluation counts as an inlier for
                RANSAC, MSAC and PROSAC. MSAC also truncates squared
                residuals at ``threshold**2``. Must be > 0.

            stop_threshold:
                LMedS and PROMedS stop as soon as the median-based inlier
                threshold falls to or below this value (PROMedS only when
                ``stop_threshold_enabled`` is set). PROMedS also keeps the
                smaller of its median-threshold inlier set and the set of
                residuals at most this value. Must be > 0.

            use_geometric_distance:
                If ``True``, residuals of direct evaluations are measured
                orthogonally to the tangent line of the candidate instead of
                vertically.

            inlier_factor:
                Median strategies accept an evaluation as inlier when its
                residual is at most ``inlier_factor * median``. Must be > 0.

            max_outliers_proportion:
                Expected worst-case outlier fraction used by PROSAC and
                PROMedS to size the total sampling budget ``T_N`` and the
                minimum acceptable consensus.

            eta0:
                PROSAC/PROMedS probability of missing a better solution,
                used by the maximality test. In ``[0, 1]``.

            beta:
                PROSAC/PROMedS probability that an outlier is classified as
                inlier by chance, used by the non-randomness test.
                In ``[0, 1]``.

            stop_threshold_enabled:
                PROMedS only. When enabled, the loop stops once the
                median-based threshold of the best candidate reaches
                ``stop_threshold``; when disabled, PROMedS runs until its
                sampling bounds are met.

            refine_result:
                If ``True``, the best candidate is refit by least squares on
                its consensus set before being returned.

            seed:
                Seed for ``numpy.random.default_rng``. ``None`` draws fresh
                entropy on every estimation.
        """
        self.update(
            confidence=confidence,
            max_iterations=max_iterations,
            progress_delta=progress_delta,
            threshold=threshold,
            stop_threshold=stop_threshold,
            use_geometric_distance=use_geometric_distance,
            inlier_factor=inlier_factor,
            max_outliers_proportion=max_outliers_proportion,
            eta0=eta0,
            beta=beta,
            stop_threshold_enabled=stop_threshold_enabled,
            refine_result=refine_result,
            seed=seed,
        )

    def update(self, **changes) -> None:
        """Validates and applies ``changes``; nothing is applied on error.

        Raises:
            InvalidArgumentError: If a value is out of range.
            TypeError: If a name is not a config field.
        """
        validated = {}
        for name, value in changes.items():
            try:
                validator = _VALIDATORS[name]
            except KeyError:
                raise TypeError(f"ConsensusConfig has no field '{name}'.") from None
            validated[name] = validator(name, value)
        self.__dict__.update(validated)

    def as_dict(self) -> dict:
        """Returns the configuration as a plain dictionary."""
        return {name: getattr(self, name) for name in _VALIDATORS}

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.as_dict().items())
        return f"ConsensusConfig({fields})"
