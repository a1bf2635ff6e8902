"""Observations of an unknown polynomial used to estimate it.

Four kinds of observation are supported:

* :class:`DirectEvaluation`: ``p(x) = value``.
* :class:`DerivativeEvaluation`: ``p^(k)(x) = value``.
* :class:`IntegralEvaluation`: ``P_k(x) = value`` where ``P_k`` is the
  ``k``-th integral of ``p`` with optional integration constants.
* :class:`IntegralIntervalEvaluation`: ``P_k(end_x) - P_k(start_x) = value``.

All of them are immutable and validated on construction.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import ClassVar, Sequence

from polykit.exceptions import InvalidArgumentError

__all__ = [
    "EvaluationType",
    "PolynomialEvaluation",
    "DirectEvaluation",
    "DerivativeEvaluation",
    "IntegralEvaluation",
    "IntegralIntervalEvaluation",
    "ANCHOR_TYPES",
    "is_anchor",
]

MIN_DERIVATIVE_ORDER = 1
MIN_INTEGRAL_ORDER = 1


class EvaluationType(enum.Enum):
    """Tag identifying the kind of a polynomial evaluation."""

    DIRECT = "direct"
    DERIVATIVE = "derivative"
    INTEGRAL = "integral"
    INTEGRAL_INTERVAL = "integral_interval"


#: Evaluation kinds able to pin down the constant term of a polynomial.
ANCHOR_TYPES = frozenset(
    {EvaluationType.DIRECT, EvaluationType.INTEGRAL, EvaluationType.INTEGRAL_INTERVAL}
)


def _normalize_constants(constants: Sequence[float] | None, order: int) -> tuple[float, ...] | None:
    if constants is None:
        return None
    out = tuple(float(c) for c in constants)
    if len(out) != order:
        raise InvalidArgumentError(
            f"constants must contain exactly {order} values (the integral order); got {len(out)}."
        )
    return out


class PolynomialEvaluation:
    """Common base of all evaluation kinds."""

    type: ClassVar[EvaluationType]
    evaluation: float


@dataclass(frozen=True)
class DirectEvaluation(PolynomialEvaluation):
    """Sample ``p(x) = evaluation``."""

    type: ClassVar[EvaluationType] = EvaluationType.DIRECT

    x: float
    evaluation: float


@dataclass(frozen=True)
class DerivativeEvaluation(PolynomialEvaluation):
    """Sample ``p^(derivative_order)(x) = evaluation``."""

    type: ClassVar[EvaluationType] = EvaluationType.DERIVATIVE

    x: float
    evaluation: float
    derivative_order: int = MIN_DERIVATIVE_ORDER

    def __post_init__(self):
        if self.derivative_order < MIN_DERIVATIVE_ORDER:
            raise InvalidArgumentError(
                f"derivative_order must be at least {MIN_DERIVATIVE_ORDER}; got {self.derivative_order}."
            )


@dataclass(frozen=True)
class IntegralEvaluation(PolynomialEvaluation):
    """Sample of the ``integral_order``-th integral at ``x``.

    Attributes:
        x: Point where the integral is observed.
        evaluation: Observed value.
        integral_order: Number of integrations (>= 1).
        constants: Optional integration constants, one per integration.
    """

    type: ClassVar[EvaluationType] = EvaluationType.INTEGRAL

    x: float
    evaluation: float
    integral_order: int = MIN_INTEGRAL_ORDER
    constants: tuple[float, ...] | None = field(default=None)

    def __post_init__(self):
        if self.integral_order < MIN_INTEGRAL_ORDER:
            raise InvalidArgumentError(
                f"integral_order must be at least {MIN_INTEGRAL_ORDER}; got {self.integral_order}."
            )
        object.__setattr__(self, "constants", _normalize_constants(self.constants, self.integral_order))


@dataclass(frozen=True)
class IntegralIntervalEvaluation(PolynomialEvaluation):
    """Sample of the ``integral_order``-th integral over ``[start_x, end_x]``."""

    type: ClassVar[EvaluationType] = EvaluationType.INTEGRAL_INTERVAL

    start_x: float
    end_x: float
    evaluation: float
    integral_order: int = MIN_INTEGRAL_ORDER
    constants: tuple[float, ...] | None = field(default=None)

    def __post_init__(self):
        if self.integral_order < MIN_INTEGRAL_ORDER:
            raise InvalidArgumentError(
                f"integral_order must be at least {MIN_INTEGRAL_ORDER}; got {self.integral_order}."
            )
        object.__setattr__(self, "constants", _normalize_constants(self.constants, self.integral_order))


def is_anchor(evaluation: PolynomialEvaluation) -> bool:
    """Returns True if ``evaluation`` constrains the constant term."""
    return evaluation.type in ANCHOR_TYPES
