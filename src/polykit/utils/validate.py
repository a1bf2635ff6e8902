"""Validation utilities for estimator parameters.

All validators raise :class:`~polykit.exceptions.InvalidArgumentError` and
return the value converted to the expected Python type.
"""

from __future__ import annotations

from polykit.exceptions import InvalidArgumentError

__all__ = [
    "validate_at_least",
    "validate_in_unit_interval",
    "validate_positive",
]


def validate_in_unit_interval(name: str, value: float) -> float:
    """Validates that ``value`` lies in the closed interval ``[0, 1]``.

    Args:
        name: Parameter name used in the error message.
        value: Value to check.

    Returns:
        ``value`` as a float.

    Raises:
        InvalidArgumentError: If ``value`` is outside ``[0, 1]`` or NaN.
    """
    v = float(value)
    if not 0.0 <= v <= 1.0:
        raise InvalidArgumentError(f"{name} must be in [0, 1]; got {value}.")
    return v


def validate_positive(name: str, value: float) -> float:
    """Validates that ``value`` is strictly positive."""
    v = float(value)
    if not v > 0.0:
        raise InvalidArgumentError(f"{name} must be > 0; got {value}.")
    return v


def validate_at_least(name: str, value: int, minimum: int) -> int:
    """Validates that the integer ``value`` is at least ``minimum``."""
    if int(value) != value:
        raise InvalidArgumentError(f"{name} must be an integer; got {value}.")
    v = int(value)
    if v < minimum:
        raise InvalidArgumentError(f"{name} must be at least {minimum}; got {value}.")
    return v
