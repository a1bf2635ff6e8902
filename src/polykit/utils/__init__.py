"""Utility functions for PolyKit package."""

from .linalg import solve_linear_system
from .validate import (
    validate_at_least,
    validate_in_unit_interval,
    validate_positive,
)

__all__ = [
    "solve_linear_system",
    "validate_at_least",
    "validate_in_unit_interval",
    "validate_positive",
]
